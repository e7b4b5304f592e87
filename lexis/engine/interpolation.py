"""
Lexis Lookup & Interpolation — Resolve a label to text and fill placeholders.

Placeholders are positional: ``{0}``, ``{1}``… with optional inner whitespace
(``{ 0 }``). They are substituted in ascending index order; indices with no
matching parameter are left verbatim.
"""

from __future__ import annotations

import re
from typing import Any, Mapping, Optional, Sequence

from lexis.engine.errors import (
    InvalidLabelError,
    InvalidParametersError,
    InvalidValueError,
    LabelNotFoundError,
    LanguageNotConfiguredError,
)
from lexis.engine.validators import is_valid_label, is_valid_parameters


def placeholder_pattern(index: int) -> re.Pattern:
    return re.compile(r"\{\s*" + str(index) + r"\s*\}")


def interpolate(template: str, parameters: Sequence[Any]) -> str:
    """
    Replace every ``{i}`` with ``str(parameters[i])``.

    >>> interpolate("{0} and {1}", ["A"])
    'A and {1}'
    """
    value = template
    for index, parameter in enumerate(parameters):
        replacement = str(parameter)
        value = placeholder_pattern(index).sub(lambda _m: replacement, value)
    return value


def lookup(
    table: Mapping[str, Mapping[str, Any]],
    current_language: Optional[str],
    label: Any,
    parameters: Optional[Any] = None,
) -> str:
    """
    Resolve label against the current language document.

    Raises:
        InvalidLabelError, LanguageNotConfiguredError, LabelNotFoundError,
        InvalidValueError, InvalidParametersError — checked in that order.
    """
    if not is_valid_label(label):
        raise InvalidLabelError("Invalid label. It must be a non empty string.", value=repr(label))

    if not current_language:
        raise LanguageNotConfiguredError("The current language is not configured", label=label)

    document = table.get(current_language) or {}
    if label not in document:
        raise LabelNotFoundError(
            f'No message found for label "{label}"',
            label=label,
            language=current_language,
        )

    value = document[label]
    if not isinstance(value, str):
        raise InvalidValueError(
            f'Invalid value for label "{label}". It must be a string.',
            label=label,
            language=current_language,
            value=type(value).__name__,
        )

    if parameters is None:
        return value

    if not is_valid_parameters(parameters):
        raise InvalidParametersError(
            f'Invalid parameters for label "{label}". They must be a list.',
            label=label,
            language=current_language,
            value=type(parameters).__name__,
        )
    return interpolate(value, parameters)
