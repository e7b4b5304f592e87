"""
Lexis Filters — Glue for display layers that render translated text.

A display layer re-invokes the filter whenever label or parameters change.
Unlike TranslationSession.translate(), the filter never raises: it logs the
failure reason and renders the label itself (or "" for an invalid label).
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Optional

from lexis.engine.errors import InvalidLabelError, LexisError
from lexis.engine.session import TranslationSession

logger = logging.getLogger("lexis.engine.filters")

TranslateFilter = Callable[..., Awaitable[str]]


def make_translate_filter(session: TranslationSession) -> TranslateFilter:
    """Build an async ``translate(label, parameters=None) -> str`` for templates."""

    async def translate(label: Any, parameters: Optional[Any] = None) -> str:
        try:
            return await session.translate(label, parameters)
        except InvalidLabelError as e:
            logger.error(e.message)
            return ""
        except LexisError as e:
            logger.error(f"Could not translate {label!r}: {e.message}")
            return str(label)

    return translate
