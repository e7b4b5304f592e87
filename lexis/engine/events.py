"""
Lexis Events — Diagnostic notifications emitted during a configure() run.

Each table mutation (and each failure) is narrated as one ConfigurationEvent,
delivered in order to every subscribed observer and mirrored to the log.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from lexis.engine.logging import log, log_configuration_event

logger = logging.getLogger("lexis.engine.events")


class EventKind(str, Enum):
    LANGUAGE_SET = "language_set"
    LANGUAGE_FAILED = "language_failed"
    TRANSLATION_REPLACED = "translation_replaced"
    TRANSLATION_EXTENDED = "translation_extended"
    TRANSLATION_FAILED = "translation_failed"
    CONFIGURATION_COMPLETED = "configuration_completed"
    CONFIGURATION_FAILED = "configuration_failed"


@dataclass
class ConfigurationEvent:
    """One progress notification from the resolution pipeline."""
    kind: EventKind
    message: str
    language: Optional[str] = None
    source: Optional[str] = None
    error: Optional[Dict[str, Any]] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def failed(self) -> bool:
        return self.error is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "language": self.language,
            "source": self.source,
            "error": self.error,
            "timestamp": self.timestamp.isoformat(),
        }


Observer = Callable[[ConfigurationEvent], Any]


class EventEmitter:
    """
    Ordered fan-out of ConfigurationEvents to observers.

    An observer that raises is logged and skipped; it never aborts a run.
    """

    def __init__(self, observers: Optional[List[Observer]] = None):
        self._observers: List[Observer] = list(observers or [])

    def subscribe(self, observer: Observer) -> None:
        if observer not in self._observers:
            self._observers.append(observer)

    def unsubscribe(self, observer: Observer) -> bool:
        try:
            self._observers.remove(observer)
            return True
        except ValueError:
            return False

    @property
    def observers(self) -> List[Observer]:
        return list(self._observers)

    def emit(self, event: ConfigurationEvent) -> None:
        level = logging.WARNING if event.failed else logging.INFO
        logger.log(level, event.message)
        log(log_configuration_event(
            event=event.kind.value,
            message=event.message,
            language=event.language,
            source=event.source,
            error=event.error,
        ))

        for observer in list(self._observers):
            try:
                observer(event)
            except Exception as e:
                logger.error(f"Observer {observer!r} failed on '{event.kind.value}': {e}")
