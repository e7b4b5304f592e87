"""Lexis Engine — Request queue, remote fetcher, resolution pipeline, lookup."""

from lexis.engine.session import TranslationSession  # noqa: F401
from lexis.engine.fetcher import RemoteFetcher  # noqa: F401
from lexis.engine.pipeline import ConfigurationReport, run_pipeline  # noqa: F401
from lexis.engine.events import ConfigurationEvent, EventKind  # noqa: F401

__all__ = [
    "TranslationSession",
    "RemoteFetcher",
    "ConfigurationReport",
    "run_pipeline",
    "ConfigurationEvent",
    "EventKind",
]
