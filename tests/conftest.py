"""
Lexis Test Suite — Shared fixtures and configuration.

Run:  pytest tests/ -v
"""

from __future__ import annotations

import json
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest


# ---------------------------------------------------------------------------
# Global state isolation
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _isolate_globals(monkeypatch, tmp_path):
    """Reset module singletons and keep config discovery inside tmp_path."""
    import lexis.engine.config as cfg_mod
    import lexis.engine.logging as log_mod

    cfg_mod._config = None
    monkeypatch.chdir(tmp_path)
    yield
    log_mod.shutdown_logging()
    cfg_mod._config = None


# ---------------------------------------------------------------------------
# Remote translation sources (httpx.MockTransport)
# ---------------------------------------------------------------------------

class FakeTranslationServer:
    """
    Serves translation documents keyed by URL path.

    routes: path → document (dict, served as JSON), httpx.Response, or a
    callable(request) returning either.
    """

    def __init__(self, routes: Optional[Dict[str, Any]] = None):
        self.routes: Dict[str, Any] = dict(routes or {})
        self.requests: List[httpx.Request] = []

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, text="not found")
        if callable(route):
            route = route(request)
            if hasattr(route, "__await__"):
                route = await route
        if isinstance(route, httpx.Response):
            return route
        return httpx.Response(
            200,
            content=json.dumps(route).encode("utf-8"),
            headers={"content-type": "application/json"},
        )

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    def paths(self) -> List[str]:
        return [r.url.path for r in self.requests]


@pytest.fixture
def server() -> FakeTranslationServer:
    return FakeTranslationServer()


@pytest.fixture
def session(server):
    """A TranslationSession whose remote sources are served by ``server``."""
    from lexis.engine.session import TranslationSession

    return TranslationSession(transport=server.transport)


@pytest.fixture
def events() -> List[Any]:
    return []


@pytest.fixture
def en_document() -> Dict[str, str]:
    return {
        "GREETING": "Hello, {0}!",
        "FAREWELL": "Goodbye",
        "PAIR": "{0} and {1}",
    }


@pytest.fixture
def fr_document() -> Dict[str, str]:
    return {
        "GREETING": "Bonjour, {0} !",
        "FAREWELL": "Au revoir",
    }


@pytest.fixture
def write_file(tmp_path) -> Callable[[str, str], str]:
    def _write(name: str, content: str) -> str:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return str(path)
    return _write
