"""
Lexis Resolution Pipeline — Drain a queue snapshot into the translation table.

Order (per run):
    1. Start every remote fetch of the snapshot (they run concurrently)
    2. Resolve the pending language request → current language
    3. Await each translation request in registration order and apply it:
         replace → table[language] = document
         extend  → table[language] = {**table[language], **document}
    4. Record failures without mutating the table (collect-all, not fail-fast)

Each mutation is a single assignment of a fresh dict, so a request is applied
entirely or not at all. The caller owns the table and the single-run guard.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from lexis.engine.errors import LexisError
from lexis.engine.events import ConfigurationEvent, EventEmitter, EventKind
from lexis.engine.request_queue import MergeMode, PendingTranslationRequest, QueueSnapshot

logger = logging.getLogger("lexis.engine.pipeline")

TranslationTable = Dict[str, Dict[str, Any]]


@dataclass
class ConfigurationReport:
    """Outcome of one pipeline run."""
    language: Optional[str] = None
    language_changed: bool = False
    applied: int = 0
    languages: List[str] = field(default_factory=list)
    errors: List[LexisError] = field(default_factory=list)
    events: List[ConfigurationEvent] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return not self.errors

    def to_dict(self) -> Dict[str, Any]:
        return {
            "language": self.language,
            "language_changed": self.language_changed,
            "applied": self.applied,
            "languages": self.languages,
            "errors": [e.to_dict() for e in self.errors],
            "events": [e.to_dict() for e in self.events],
        }


class _Recorder:
    """Emits events and keeps them on the report."""

    def __init__(self, emitter: EventEmitter, report: ConfigurationReport):
        self._emitter = emitter
        self._report = report

    def __call__(self, kind: EventKind, message: str, **fields: Any) -> None:
        event = ConfigurationEvent(kind=kind, message=message, **fields)
        self._report.events.append(event)
        self._emitter.emit(event)


async def _await_outcome(request_outcome: Any, source: str) -> Any:
    try:
        return await request_outcome.result()
    except LexisError:
        raise
    except Exception as e:
        raise LexisError(f'Unexpected failure resolving "{source}": {e!r}', source=source) from e


def _apply(table: TranslationTable, request: PendingTranslationRequest, document: Any) -> None:
    language = request.language
    if request.mode is MergeMode.EXTEND:
        table[language] = {**table.get(language, {}), **document}
    else:
        table[language] = dict(document)


async def run_pipeline(
    snapshot: QueueSnapshot,
    table: TranslationTable,
    current_language: Optional[str],
    emitter: Optional[EventEmitter] = None,
) -> ConfigurationReport:
    """
    Apply every request in the snapshot to the table.

    Args:
        snapshot: Requests taken from the queue for this run.
        table: The durable translation table, mutated in place.
        current_language: Language active before the run.
        emitter: Receives the ordered diagnostic events.

    Returns:
        ConfigurationReport; ``report.errors`` lists every failed request.
    """
    report = ConfigurationReport(language=current_language)
    record = _Recorder(emitter or EventEmitter(), report)

    for request in snapshot.translations:
        request.outcome.start()

    # ── Language ──
    if snapshot.language is not None:
        try:
            language = await _await_outcome(snapshot.language.outcome, "language")
        except LexisError as e:
            report.errors.append(e)
            record(EventKind.LANGUAGE_FAILED, f"language not set: {e.message}", error=e.to_dict())
        else:
            report.language_changed = language != current_language
            report.language = language
            record(EventKind.LANGUAGE_SET, f"language set to {language}", language=language)

    # ── Translations, strictly in registration order ──
    for request in snapshot.translations:
        try:
            document = await _await_outcome(request.outcome, request.source)
        except LexisError as e:
            if e.language is None and isinstance(request.language, str):
                e.language = request.language
            report.errors.append(e)
            record(
                EventKind.TRANSLATION_FAILED,
                f"translation failed for {request.language}: {e.message}",
                language=request.language if isinstance(request.language, str) else None,
                source=request.source,
                error=e.to_dict(),
            )
            continue

        _apply(table, request, document)
        report.applied += 1
        if request.language not in report.languages:
            report.languages.append(request.language)

        if request.mode is MergeMode.EXTEND:
            kind, verb = EventKind.TRANSLATION_EXTENDED, "extended"
        else:
            kind, verb = EventKind.TRANSLATION_REPLACED, "replaced"
        record(
            kind,
            f"translation {verb} for {request.language} ({len(document)} labels from {request.source})",
            language=request.language,
            source=request.source,
        )

    if report.errors:
        record(
            EventKind.CONFIGURATION_FAILED,
            f"configuration failed: {len(report.errors)} of {len(snapshot)} requests failed",
            language=report.language,
            error={"reasons": [e.message for e in report.errors]},
        )
    else:
        record(
            EventKind.CONFIGURATION_COMPLETED,
            f"configuration completed: {len(snapshot)} requests applied",
            language=report.language,
        )
    return report
