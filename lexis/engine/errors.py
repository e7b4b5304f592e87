"""
Lexis Error Hierarchy — Structured exceptions for translation failures.

Registration calls never raise: their failures are captured and surface when
the pipeline drains the request. configure() raises only the aggregate
ConfigurationFailedError; translate() raises exactly one error per call.

Hierarchy:
    LexisError
    ├── LexisValidationError
    │   ├── InvalidLanguageError      — language tag not a non-empty string
    │   ├── InvalidLabelError         — label not a non-empty string
    │   ├── InvalidParametersError    — parameters not an ordered sequence
    │   ├── InvalidTranslationError   — document not a mapping
    │   ├── InvalidUrlError           — url not a non-empty string
    │   ├── InvalidExtendFlagError    — extend present but not a bool
    │   └── InvalidValueError         — resolved entry is not a string
    ├── FetchFailedError              — remote source could not be fetched
    ├── TranslationSourceError        — local file source could not be read
    ├── LanguageNotConfiguredError    — no language was ever set
    ├── LabelNotFoundError            — label missing from current document
    ├── ConfigurationFailedError      — aggregate of per-request failures
    └── LexisConfigError              — invalid lexis.yaml
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

_CORE_FIELDS = ("language", "label", "source")


class LexisError(Exception):
    """
    Base error for all Lexis failures.
    All context is serializable to JSON for the structured log files.
    """

    def __init__(self, message: str, **context: Any):
        self.message = message
        self.language: Optional[str] = context.get("language")
        self.label: Optional[str] = context.get("label")
        self.source: Optional[str] = context.get("source")
        self.error_type: str = self.__class__.__name__
        self.context: Dict[str, Any] = context
        self.timestamp: str = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize error to a JSON-compatible dict."""
        return {
            "error_type": self.error_type,
            "message": self.message,
            "language": self.language,
            "label": self.label,
            "source": self.source,
            "timestamp": self.timestamp,
            "context": {
                k: str(v) for k, v in self.context.items()
                if k not in _CORE_FIELDS
            },
        }

    def to_json(self) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), default=str)

    def __repr__(self) -> str:
        parts = [f"{self.error_type}: {self.message}"]
        if self.language:
            parts.append(f"language={self.language}")
        if self.label:
            parts.append(f"label={self.label}")
        if self.source:
            parts.append(f"source={self.source}")
        return " | ".join(parts)


class LexisValidationError(LexisError):
    """Input shape validation failed."""

    def __init__(self, message: str, **context: Any):
        self.value: Any = context.get("value")
        super().__init__(message, **context)


class InvalidLanguageError(LexisValidationError):
    """Language tag is not a non-empty string."""
    pass


class InvalidLabelError(LexisValidationError):
    """Label is not a non-empty string."""
    pass


class InvalidParametersError(LexisValidationError):
    """Parameters were given but are not an ordered sequence."""
    pass


class InvalidTranslationError(LexisValidationError):
    """Translation document is not a non-null mapping."""
    pass


class InvalidUrlError(LexisValidationError):
    """Translation URL is not a non-empty string."""
    pass


class InvalidExtendFlagError(LexisValidationError):
    """The extend flag was supplied but is not a boolean."""
    pass


class InvalidValueError(LexisValidationError):
    """The entry stored for a label is not a string."""
    pass


class FetchFailedError(LexisError):
    """Remote translation document could not be fetched."""

    def __init__(self, message: str, **context: Any):
        self.url: Optional[str] = context.get("url", context.get("source"))
        self.status_code: Optional[int] = context.get("status_code")
        context.setdefault("source", self.url)
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["url"] = self.url
        d["status_code"] = self.status_code
        return d


class TranslationSourceError(LexisError):
    """Local translation file could not be read or parsed."""

    def __init__(self, message: str, **context: Any):
        self.path: Optional[str] = context.get("path", context.get("source"))
        context.setdefault("source", self.path)
        super().__init__(message, **context)


class LanguageNotConfiguredError(LexisError):
    """Lookup attempted while no current language has ever been set."""
    pass


class LabelNotFoundError(LexisError):
    """The current language document has no entry for the label."""
    pass


class ConfigurationFailedError(LexisError):
    """
    One or more pending requests failed during a configure() run.
    Carries every recorded failure in registration order; the successful
    requests of the same run were still applied.
    """

    def __init__(self, message: str, errors: Optional[List[LexisError]] = None, **context: Any):
        self.errors: List[LexisError] = list(errors or [])
        super().__init__(message, **context)

    @property
    def reasons(self) -> List[str]:
        return [e.message for e in self.errors]

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["errors"] = [e.to_dict() for e in self.errors]
        return d


class LexisConfigError(LexisError):
    """Configuration error — invalid or unreadable lexis.yaml."""
    pass
