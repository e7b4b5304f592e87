"""
Lexis — Label translation engine.

Collapses an ordered sequence of "set the language" and "register a
translation set" requests (literal, file or remote) into one translation
table, then resolves labels with positional ``{N}`` placeholders.

    from lexis import TranslationSession

    async with TranslationSession() as session:
        session.language("en").translation_url("en", "https://cdn.example.com/labels")
        text = await session.translate("GREETING", ["World"])
"""

__version__ = "1.0.0"

from lexis.engine.errors import (  # noqa: F401
    ConfigurationFailedError,
    FetchFailedError,
    InvalidExtendFlagError,
    InvalidLabelError,
    InvalidLanguageError,
    InvalidParametersError,
    InvalidTranslationError,
    InvalidUrlError,
    InvalidValueError,
    LabelNotFoundError,
    LanguageNotConfiguredError,
    LexisError,
)
from lexis.engine.session import TranslationSession  # noqa: F401

__all__ = [
    "TranslationSession",
    "LexisError",
    "ConfigurationFailedError",
    "FetchFailedError",
    "InvalidExtendFlagError",
    "InvalidLabelError",
    "InvalidLanguageError",
    "InvalidParametersError",
    "InvalidTranslationError",
    "InvalidUrlError",
    "InvalidValueError",
    "LabelNotFoundError",
    "LanguageNotConfiguredError",
]
