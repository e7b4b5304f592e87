"""
Lexis Documents — Decoding translation documents from text and files.

JSON is the wire default; YAML is accepted for files and for remote sources
that advertise it. Both go through PyYAML's safe loader for YAML input, since
the structure rules are the same.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Mapping, Union

import yaml

from lexis.engine.errors import InvalidTranslationError, TranslationSourceError
from lexis.engine.validators import is_valid_translation

YAML_SUFFIXES = (".yaml", ".yml")


def decode_document(text: str, *, as_yaml: bool = False, source: str = "literal") -> Mapping[str, Any]:
    """
    Decode a translation document body.

    Raises:
        InvalidTranslationError if the body cannot be decoded or is not a mapping.
    """
    try:
        data = yaml.safe_load(text) if as_yaml else json.loads(text)
    except (ValueError, yaml.YAMLError) as e:
        raise InvalidTranslationError(
            f'Invalid translation fetched from "{source}": {e}',
            source=source,
        ) from e

    if not is_valid_translation(data):
        raise InvalidTranslationError(
            f'Invalid translation fetched from "{source}". It must be a non empty object.',
            source=source,
            value=type(data).__name__,
        )
    return data


def load_document_file(path: Union[str, os.PathLike]) -> Mapping[str, Any]:
    """
    Read a YAML or JSON translation file.

    Raises:
        TranslationSourceError if the file is unreadable or unparsable.
        InvalidTranslationError if it parses to something other than a mapping.
    """
    if not isinstance(path, (str, os.PathLike)) or str(path) == "":
        raise TranslationSourceError(
            "Invalid translation file. It must be a non empty path.",
            path=repr(path),
        )

    file_path = Path(path)
    try:
        text = file_path.read_text(encoding="utf-8")
    except OSError as e:
        raise TranslationSourceError(
            f'Error reading translation from "{file_path}": {e}',
            path=str(file_path),
        ) from e

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise TranslationSourceError(
            f'Error parsing translation from "{file_path}": {e}',
            path=str(file_path),
        ) from e

    if not is_valid_translation(data):
        raise InvalidTranslationError(
            f'Invalid translation read from "{file_path}". It must be a non empty object.',
            source=str(file_path),
            value=type(data).__name__,
        )
    return data
