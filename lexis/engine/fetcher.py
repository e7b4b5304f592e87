"""
Lexis Remote Fetcher — Outbound GET for translation_url() registrations.

Lifecycle (per fetch):
    1. GET url with ?language=<tag> (plus configured static headers)
    2. Retry transport errors and 5xx with backoff, if configured
    3. Non-2xx → FetchFailedError; undecodable / non-mapping body →
       InvalidTranslationError
    4. Log the call to the fetch/ log category

Uses one httpx.AsyncClient per fetcher, created lazily and closed by aclose().
Fetches for different registrations are independent; their results are only
applied by the resolution pipeline, in registration order.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Mapping, Optional

import httpx

from lexis.engine.config import FetchConfig
from lexis.engine.documents import YAML_SUFFIXES, decode_document
from lexis.engine.errors import FetchFailedError, LexisError
from lexis.engine.logging import log, log_fetch

logger = logging.getLogger("lexis.engine.fetcher")


class RemoteFetcher:
    """
    Resolves (language, url) into a translation document.

    Usage:
        fetcher = RemoteFetcher(FetchConfig(timeout=5))
        document = await fetcher.fetch("en", "https://cdn.example.com/en.json")
        await fetcher.aclose()
    """

    def __init__(
        self,
        config: Optional[FetchConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._config = config or FetchConfig()
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._fetch_count = 0

    @property
    def config(self) -> FetchConfig:
        return self._config

    @property
    def fetch_count(self) -> int:
        """Number of fetches issued (one per translation_url registration)."""
        return self._fetch_count

    async def fetch(self, language: str, url: str) -> Mapping[str, Any]:
        """
        Fetch and decode the translation document for a language.

        The language is merged into the URL's own query string, so
        "https://cdn/labels?v=2" is requested as "...?v=2&language=en".

        Raises:
            FetchFailedError on a malformed URL, transport failure, timeout
            or non-2xx status.
            InvalidTranslationError on a body that is not a mapping.
        """
        self._fetch_count += 1
        start_time = time.monotonic()
        max_retries = self._config.retries
        last_error: Optional[Exception] = None
        last_status: Optional[int] = None

        try:
            request_url = httpx.URL(url).copy_merge_params({"language": language})
        except httpx.InvalidURL as e:
            raise self._failure(language, url, start_time, None, repr(e)) from e

        for attempt in range(max_retries + 1):
            try:
                response = await self._get_client().get(
                    request_url,
                    headers=self._config.headers,
                )
            except httpx.HTTPError as e:
                last_error = e
                if attempt < max_retries:
                    delay = self._calc_delay(attempt)
                    logger.warning(
                        f"Fetching '{url}' failed: {e!r}, retrying in {delay}s "
                        f"(attempt {attempt + 1}/{max_retries})"
                    )
                    await asyncio.sleep(delay)
                    continue
                break

            last_status = response.status_code
            if 200 <= response.status_code < 300:
                duration_ms = (time.monotonic() - start_time) * 1000
                try:
                    document = decode_document(
                        response.text,
                        as_yaml=self._is_yaml(response),
                        source=url,
                    )
                except LexisError as e:
                    e.language = language
                    self._log_call(language, url, last_status, duration_ms, error=e.message)
                    raise
                self._log_call(language, url, last_status, duration_ms)
                return document

            if response.status_code >= 500 and attempt < max_retries:
                delay = self._calc_delay(attempt)
                logger.info(
                    f"Fetching '{url}' got {response.status_code}, retrying in {delay}s "
                    f"(attempt {attempt + 1}/{max_retries})"
                )
                await asyncio.sleep(delay)
                continue
            break

        reason = f"HTTP {last_status}" if last_error is None else repr(last_error)
        raise self._failure(language, url, start_time, last_status, reason)

    # -----------------------------------------------------------------------
    # HTTP Client (httpx)
    # -----------------------------------------------------------------------

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                transport=self._transport,
                timeout=httpx.Timeout(self._config.timeout, connect=self._config.connect_timeout),
                follow_redirects=True,
            )
            logger.debug("Created httpx client for remote translations")
        return self._client

    async def aclose(self) -> None:
        """Close the underlying httpx client, if one was created."""
        if self._client is None:
            return
        client, self._client = self._client, None
        await client.aclose()
        logger.debug("Closed httpx client for remote translations")

    # -----------------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------------

    @staticmethod
    def _is_yaml(response: httpx.Response) -> bool:
        content_type = response.headers.get("content-type", "")
        return "yaml" in content_type or response.url.path.endswith(YAML_SUFFIXES)

    def _calc_delay(self, attempt: int) -> float:
        """Compute retry delay based on the configured backoff strategy."""
        base = self._config.retry_delay
        if self._config.backoff == "exponential":
            return base * (2 ** attempt)
        if self._config.backoff == "linear":
            return base * (attempt + 1)
        return base

    @staticmethod
    def _log_call(
        language: str,
        url: str,
        status_code: Optional[int],
        duration_ms: float,
        error: Optional[str] = None,
    ) -> None:
        log(log_fetch(
            language=language,
            url=url,
            status_code=status_code,
            duration_ms=duration_ms,
            success=error is None,
            error=error,
        ))

    def _failure(
        self,
        language: str,
        url: str,
        start_time: float,
        status_code: Optional[int],
        reason: str,
    ) -> FetchFailedError:
        duration_ms = (time.monotonic() - start_time) * 1000
        self._log_call(language, url, status_code, duration_ms, error=reason)
        return FetchFailedError(
            f'Error fetching translation from "{url}"',
            url=url,
            language=language,
            status_code=status_code,
            cause=reason,
        )
