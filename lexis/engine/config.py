"""
Lexis Configuration — Load and validate lexis.yaml.

Usage:
    from lexis.engine.config import load_config, get_config

Example lexis.yaml:
    default_language: en
    fetch:
      timeout: 5
      retries: 2
    logging:
      level: DEBUG
      directory: .lexis/logs
    sources:
      - language: en
        file: translations/en.yaml
      - language: fr
        url: https://cdn.example.com/i18n/labels.json
      - language: fr
        translations:
          GREETING: "Bonjour, {0} !"
        extend: true
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from lexis.engine.errors import LexisConfigError

CONFIG_FILENAME = "lexis.yaml"


# ---------------------------------------------------------------------------
# Pydantic models for lexis.yaml
# ---------------------------------------------------------------------------

class FetchConfig(BaseModel):
    timeout: float = 10.0
    connect_timeout: float = 5.0
    retries: int = 0
    retry_delay: float = 0.5
    backoff: str = "exponential"
    headers: Dict[str, str] = Field(default_factory=dict)

    @field_validator("timeout", "connect_timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"timeout must be positive, got {v}")
        return v

    @field_validator("retries")
    @classmethod
    def validate_retries(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"retries must be >= 0, got {v}")
        return v

    @field_validator("backoff")
    @classmethod
    def validate_backoff(cls, v: str) -> str:
        if v not in ("exponential", "linear", "fixed"):
            raise ValueError(f"backoff must be exponential/linear/fixed, got '{v}'")
        return v


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    directory: Optional[str] = None
    flush_interval_ms: int = 100
    flush_batch_size: int = 50
    max_queue_size: int = 10000

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"level must be a logging level name, got '{v}'")
        return level


class SourceConfig(BaseModel):
    """One translation source declared in lexis.yaml."""
    language: str
    url: Optional[str] = None
    file: Optional[str] = None
    translations: Optional[Dict[str, Any]] = None
    extend: bool = False

    @model_validator(mode="after")
    def validate_single_origin(self) -> "SourceConfig":
        given = [k for k in ("url", "file", "translations") if getattr(self, k) is not None]
        if len(given) != 1:
            raise ValueError(
                f"source for '{self.language}' needs exactly one of url/file/translations, got {given or 'none'}"
            )
        return self


class LexisConfig(BaseModel):
    """Root model for lexis.yaml."""
    default_language: Optional[str] = None
    fetch: FetchConfig = FetchConfig()
    logging: LoggingConfig = LoggingConfig()
    sources: List[SourceConfig] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Config Loading Functions
# ---------------------------------------------------------------------------

_config: Optional[LexisConfig] = None


def _find_config_file() -> Optional[Path]:
    """Find lexis.yaml by walking up from CWD."""
    current = Path.cwd()
    for parent in [current, *current.parents]:
        candidate = parent / CONFIG_FILENAME
        if candidate.exists():
            return candidate
    return None


def load_config(config_path: Optional[str] = None) -> LexisConfig:
    """
    Load and validate lexis.yaml.

    Args:
        config_path: Explicit path to lexis.yaml. If None, auto-discovers.

    Returns:
        Validated LexisConfig instance. Defaults if no file is found.

    Raises:
        LexisConfigError on unreadable YAML or invalid values.
    """
    global _config

    path = Path(config_path) if config_path else _find_config_file()
    if path is None or not path.exists():
        if config_path:
            raise LexisConfigError(f"Config file not found: {config_path}", source=config_path)
        _config = LexisConfig()
        return _config

    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise LexisConfigError(f"Could not read {path}: {e}", source=str(path)) from e

    if not isinstance(raw, dict):
        raise LexisConfigError(f"{path} must contain a mapping at top level", source=str(path))

    # Relative file sources resolve against the config file's directory
    for source in raw.get("sources") or []:
        if isinstance(source, dict) and source.get("file"):
            file_path = Path(source["file"])
            if not file_path.is_absolute():
                source["file"] = str(path.parent / file_path)

    try:
        _config = LexisConfig(**raw)
    except ValidationError as e:
        raise LexisConfigError(
            f"Invalid configuration in {path}",
            source=str(path),
            validation_errors=e.errors(),
        ) from e
    return _config


def get_config() -> LexisConfig:
    """Get the currently loaded config, loading if necessary."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def get_log_level(config: Optional[LexisConfig] = None) -> int:
    """Numeric stdlib logging level for the configured level name."""
    cfg = config or get_config()
    return getattr(logging, cfg.logging.level, logging.INFO)
