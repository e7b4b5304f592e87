"""
Lexis Request Queue — Pending language and translation requests.

Every registration is validated immediately but its failure is deferred:
the request is queued either way, carrying a Deferred outcome that the
resolution pipeline awaits later. Nothing here touches the translation table.

Queue shape:
    - at most one PendingLanguageRequest (a new one overwrites the old)
    - an ordered list of PendingTranslationRequest (registration order)
"""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, List, Mapping, Optional, Union

from lexis.engine.documents import load_document_file
from lexis.engine.errors import (
    InvalidExtendFlagError,
    InvalidLanguageError,
    InvalidTranslationError,
    InvalidUrlError,
    LexisError,
)
from lexis.engine.validators import (
    is_valid_extend_flag,
    is_valid_language,
    is_valid_translation,
    is_valid_url,
)

logger = logging.getLogger("lexis.engine.request_queue")

FetchFn = Callable[[str, str], Awaitable[Mapping[str, Any]]]


class MergeMode(str, Enum):
    """How a translation document is applied to the table."""
    REPLACE = "replace"
    EXTEND = "extend"


class SourceKind(str, Enum):
    LITERAL = "literal"
    URL = "url"
    FILE = "file"


class Deferred:
    """
    Outcome of a pending request: a value, an error, or a coroutine still
    to be run. The coroutine is started at most once.
    """

    def __init__(
        self,
        value: Any = None,
        error: Optional[LexisError] = None,
        factory: Optional[Callable[[], Awaitable[Any]]] = None,
    ):
        self._value = value
        self._error = error
        self._factory = factory
        self._task: Optional[asyncio.Future] = None

    @classmethod
    def resolved(cls, value: Any) -> "Deferred":
        return cls(value=value)

    @classmethod
    def rejected(cls, error: LexisError) -> "Deferred":
        return cls(error=error)

    @classmethod
    def from_factory(cls, factory: Callable[[], Awaitable[Any]]) -> "Deferred":
        return cls(factory=factory)

    @property
    def is_remote(self) -> bool:
        return self._factory is not None

    @property
    def started(self) -> bool:
        return self._task is not None

    @property
    def error(self) -> Optional[LexisError]:
        return self._error

    @property
    def cancelled(self) -> bool:
        return self._task is not None and self._task.cancelled()

    def start(self) -> None:
        """Schedule the coroutine on the running loop. No-op if settled or started."""
        if self._factory is not None and self._task is None:
            self._task = asyncio.ensure_future(self._factory())

    async def result(self) -> Any:
        """Return the value or raise the recorded error."""
        if self._error is not None:
            raise self._error
        if self._factory is None:
            return self._value

        self.start()
        return await self._task

    def cancel(self) -> Optional[asyncio.Future]:
        """Cancel a started, unfinished coroutine. Returns its task if cancelled."""
        if self._task is None:
            return None
        if self._task.done():
            if not self._task.cancelled():
                # Marks a failed fetch as retrieved.
                self._task.exception()
            return None
        self._task.cancel()
        return self._task


@dataclass
class PendingLanguageRequest:
    """A request to become the active language."""
    language: Any
    outcome: Deferred


@dataclass
class PendingTranslationRequest:
    """A request to apply one translation document to one language."""
    language: Any
    outcome: Deferred
    mode: MergeMode = MergeMode.REPLACE
    kind: SourceKind = SourceKind.LITERAL
    source: str = "literal"


@dataclass
class QueueSnapshot:
    """Everything that was pending when a pipeline run took the queue."""
    language: Optional[PendingLanguageRequest] = None
    translations: List[PendingTranslationRequest] = field(default_factory=list)

    def __len__(self) -> int:
        return (1 if self.language is not None else 0) + len(self.translations)


def _start_if_loop_running(deferred: Deferred) -> None:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        # No loop yet; the pipeline starts it at drain time.
        return
    deferred.start()


def _merge_mode(extend: Any) -> MergeMode:
    return MergeMode.EXTEND if extend is True else MergeMode.REPLACE


def _language_error(language: Any) -> InvalidLanguageError:
    return InvalidLanguageError(
        "Invalid language. It must be a non empty string.",
        value=repr(language),
    )


def _extend_error(language: Any, extend: Any) -> InvalidExtendFlagError:
    return InvalidExtendFlagError(
        "Invalid extend flag. It must be a boolean.",
        language=language,
        value=repr(extend),
    )


class RequestQueue:
    """
    Accumulates pending requests until a pipeline run drains them.

    Usage:
        queue = RequestQueue()
        queue.add_language("en")
        queue.add_translation("en", {"GREETING": "Hello"})
        snapshot = queue.drain()   # queue is empty again
    """

    def __init__(self):
        self._language: Optional[PendingLanguageRequest] = None
        self._translations: List[PendingTranslationRequest] = []

    def add_language(self, language: Any) -> PendingLanguageRequest:
        if is_valid_language(language):
            outcome = Deferred.resolved(language)
        else:
            outcome = Deferred.rejected(_language_error(language))

        if self._language is not None:
            logger.debug(f"Pending language request {self._language.language!r} overwritten by {language!r}")
        self._language = PendingLanguageRequest(language=language, outcome=outcome)
        return self._language

    def add_translation(
        self,
        language: Any,
        translation: Any,
        extend: Any = None,
    ) -> PendingTranslationRequest:
        if not is_valid_language(language):
            outcome = Deferred.rejected(_language_error(language))
        elif not is_valid_translation(translation):
            outcome = Deferred.rejected(InvalidTranslationError(
                "Invalid translation. It must be a non empty object.",
                language=language,
                value=type(translation).__name__,
            ))
        elif not is_valid_extend_flag(extend):
            outcome = Deferred.rejected(_extend_error(language, extend))
        else:
            outcome = Deferred.resolved(translation)

        return self._append(PendingTranslationRequest(
            language=language,
            outcome=outcome,
            mode=_merge_mode(extend),
        ))

    def add_translation_url(
        self,
        language: Any,
        url: Any,
        fetch: FetchFn,
        extend: Any = None,
    ) -> PendingTranslationRequest:
        if not is_valid_language(language):
            outcome = Deferred.rejected(_language_error(language))
        elif not is_valid_url(url):
            outcome = Deferred.rejected(InvalidUrlError(
                "Invalid translation URL. It must be a non empty URL string.",
                language=language,
                value=repr(url),
            ))
        elif not is_valid_extend_flag(extend):
            outcome = Deferred.rejected(_extend_error(language, extend))
        else:
            outcome = Deferred.from_factory(lambda: fetch(language, url))
            _start_if_loop_running(outcome)

        return self._append(PendingTranslationRequest(
            language=language,
            outcome=outcome,
            mode=_merge_mode(extend),
            kind=SourceKind.URL,
            source=url if isinstance(url, str) else repr(url),
        ))

    def add_translation_file(
        self,
        language: Any,
        path: Union[str, os.PathLike],
        extend: Any = None,
    ) -> PendingTranslationRequest:
        if not is_valid_language(language):
            outcome = Deferred.rejected(_language_error(language))
        elif not is_valid_extend_flag(extend):
            outcome = Deferred.rejected(_extend_error(language, extend))
        else:
            try:
                outcome = Deferred.resolved(load_document_file(path))
            except LexisError as e:
                e.language = language
                outcome = Deferred.rejected(e)

        return self._append(PendingTranslationRequest(
            language=language,
            outcome=outcome,
            mode=_merge_mode(extend),
            kind=SourceKind.FILE,
            source=str(path),
        ))

    def _append(self, request: PendingTranslationRequest) -> PendingTranslationRequest:
        self._translations.append(request)
        return request

    def drain(self) -> QueueSnapshot:
        """Take everything pending and leave the queue empty."""
        snapshot = QueueSnapshot(language=self._language, translations=self._translations)
        self._language = None
        self._translations = []
        return snapshot

    def cancel_pending(self) -> List[asyncio.Future]:
        """Drop everything pending, cancelling remote fetches already under way."""
        tasks = []
        for request in self.drain().translations:
            task = request.outcome.cancel()
            if task is not None:
                tasks.append(task)
        return tasks

    @property
    def language_request(self) -> Optional[PendingLanguageRequest]:
        return self._language

    @property
    def translation_requests(self) -> List[PendingTranslationRequest]:
        return list(self._translations)

    def __len__(self) -> int:
        return (1 if self._language is not None else 0) + len(self._translations)
