"""
Lexis Translation Session — Owns the table, the current language and the queue.

Lifecycle:
    session = TranslationSession()
    session.language("en").translation("en", {"GREETING": "Hello, {0}!"})
    await session.configure()
    await session.translate("GREETING", ["World"])   # → "Hello, World!"
    await session.aclose()

Registration calls never raise; they return the session for chaining.
At most one pipeline run is active at a time: overlapping configure() calls
join the run in flight and observe its outcome.
"""

from __future__ import annotations

import asyncio
import copy
import logging
import os
from typing import Any, Dict, List, Optional, Union

import httpx

from lexis.engine.config import FetchConfig, LexisConfig
from lexis.engine.errors import ConfigurationFailedError, LexisError
from lexis.engine.events import EventEmitter, Observer
from lexis.engine.fetcher import RemoteFetcher
from lexis.engine.interpolation import lookup
from lexis.engine.logging import log, log_lookup_failure
from lexis.engine.pipeline import ConfigurationReport, TranslationTable, run_pipeline
from lexis.engine.request_queue import QueueSnapshot, RequestQueue

logger = logging.getLogger("lexis.engine.session")


class TranslationSession:
    """
    One independent translation context (e.g. per tenant).

    Args:
        fetch_config: Timeout / retry settings for remote sources.
        transport: Optional httpx transport (tests use httpx.MockTransport).
        fetcher: Pre-built RemoteFetcher; overrides fetch_config/transport.
        observers: Callables receiving each ConfigurationEvent.
    """

    def __init__(
        self,
        fetch_config: Optional[FetchConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        fetcher: Optional[RemoteFetcher] = None,
        observers: Optional[List[Observer]] = None,
    ):
        self._fetcher = fetcher or RemoteFetcher(fetch_config, transport=transport)
        self._emitter = EventEmitter(observers)
        self._queue = RequestQueue()
        self._table: TranslationTable = {}
        self._current_language: Optional[str] = None
        self._inflight: Optional[asyncio.Task] = None
        self._last_report: Optional[ConfigurationReport] = None

    @classmethod
    def from_config(
        cls,
        config: LexisConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        observers: Optional[List[Observer]] = None,
    ) -> "TranslationSession":
        """Build a session with the default language and sources of lexis.yaml queued."""
        session = cls(fetch_config=config.fetch, transport=transport, observers=observers)
        if config.default_language:
            session.language(config.default_language)
        for source in config.sources:
            if source.url is not None:
                session.translation_url(source.language, source.url, extend=source.extend)
            elif source.file is not None:
                session.translation_file(source.language, source.file, extend=source.extend)
            else:
                session.translation(source.language, source.translations, extend=source.extend)
        return session

    # -----------------------------------------------------------------------
    # Registration (chainable, never raises)
    # -----------------------------------------------------------------------

    def language(self, language: Any) -> "TranslationSession":
        self._queue.add_language(language)
        return self

    def translation(self, language: Any, translation: Any, extend: Any = None) -> "TranslationSession":
        self._queue.add_translation(language, translation, extend=extend)
        return self

    def translation_url(self, language: Any, url: Any, extend: Any = None) -> "TranslationSession":
        self._queue.add_translation_url(language, url, self._fetcher.fetch, extend=extend)
        return self

    def translation_file(
        self,
        language: Any,
        path: Union[str, os.PathLike],
        extend: Any = None,
    ) -> "TranslationSession":
        self._queue.add_translation_file(language, path, extend=extend)
        return self

    # -----------------------------------------------------------------------
    # Configuration
    # -----------------------------------------------------------------------

    @property
    def configuring(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    async def configure(self) -> ConfigurationReport:
        """
        Apply all pending requests.

        Returns:
            ConfigurationReport of the run (an empty report for an empty queue).

        Raises:
            ConfigurationFailedError if any request of the run failed. The
            successful requests of that run were still applied.
        """
        if self.configuring:
            logger.debug("configure() joining the run in flight")
            return await asyncio.shield(self._inflight)

        if not len(self._queue):
            return ConfigurationReport(language=self._current_language)

        snapshot = self._queue.drain()
        self._inflight = asyncio.ensure_future(self._run(snapshot))
        return await asyncio.shield(self._inflight)

    async def _run(self, snapshot: QueueSnapshot) -> ConfigurationReport:
        logger.debug(f"Configuration run started with {len(snapshot)} pending requests")
        report = await run_pipeline(
            snapshot,
            self._table,
            self._current_language,
            emitter=self._emitter,
        )
        self._current_language = report.language
        self._last_report = report

        if report.errors:
            raise ConfigurationFailedError(
                f"Configuration failed: {len(report.errors)} of {len(snapshot)} requests failed",
                errors=report.errors,
                language=report.language,
            )
        return report

    # -----------------------------------------------------------------------
    # Lookup
    # -----------------------------------------------------------------------

    async def translate(self, label: Any, parameters: Optional[Any] = None) -> str:
        """
        Resolve label (and optional positional parameters) to text.

        Runs configure() first while requests are pending or a run is in
        flight; a ConfigurationFailedError from that run propagates.
        """
        while len(self._queue) or self.configuring:
            await self.configure()

        try:
            return lookup(self._table, self._current_language, label, parameters)
        except LexisError as e:
            log(log_lookup_failure(label, self._current_language, e.to_dict()))
            raise

    # -----------------------------------------------------------------------
    # Observers + state accessors
    # -----------------------------------------------------------------------

    def subscribe(self, observer: Observer) -> "TranslationSession":
        self._emitter.subscribe(observer)
        return self

    def unsubscribe(self, observer: Observer) -> bool:
        return self._emitter.unsubscribe(observer)

    @property
    def current_language(self) -> Optional[str]:
        return self._current_language

    @property
    def languages(self) -> List[str]:
        return sorted(self._table)

    @property
    def table(self) -> Dict[str, Dict[str, Any]]:
        """Deep copy of the translation table; mutating it has no effect."""
        return copy.deepcopy(self._table)

    @property
    def pending(self) -> int:
        return len(self._queue)

    @property
    def last_report(self) -> Optional[ConfigurationReport]:
        return self._last_report

    @property
    def fetcher(self) -> RemoteFetcher:
        return self._fetcher

    async def aclose(self) -> None:
        """Drop pending requests, cancel their fetches and close the HTTP client."""
        tasks = self._queue.cancel_pending()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.debug(f"Cancelled {len(tasks)} pending fetch(es) on close")
        await self._fetcher.aclose()

    async def __aenter__(self) -> "TranslationSession":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
