"""
Lexis Validators — Shape predicates for registration and lookup inputs.

Pure functions; no side effects, never raise. Callers decide which error to
record when a predicate fails.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any


def is_string_value(value: Any) -> bool:
    return isinstance(value, str) and value != ""


def is_valid_language(language: Any) -> bool:
    return is_string_value(language)


def is_valid_label(label: Any) -> bool:
    return is_string_value(label)


def is_valid_url(url: Any) -> bool:
    return is_string_value(url)


def is_valid_parameters(parameters: Any) -> bool:
    """Ordered sequences only. Strings are sequences too but are rejected."""
    return isinstance(parameters, (list, tuple))


def is_valid_translation(translation: Any) -> bool:
    """A translation document is any non-null mapping, empty included."""
    return translation is not None and isinstance(translation, Mapping)


def is_valid_extend_flag(extend: Any) -> bool:
    """Absent (None) or a real boolean. Truthy ints are not accepted."""
    return extend is None or isinstance(extend, bool)
