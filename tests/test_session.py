"""Unit tests for lexis.engine.session — TranslationSession lifecycle."""

import asyncio

import httpx
import pytest

from lexis.engine.config import LexisConfig, SourceConfig
from lexis.engine.errors import (
    ConfigurationFailedError,
    FetchFailedError,
    InvalidLabelError,
    LabelNotFoundError,
    LanguageNotConfiguredError,
)
from lexis.engine.events import EventKind
from lexis.engine.session import TranslationSession


class TestRegistration:
    def test_chaining_returns_session(self, session):
        result = (
            session.language("en")
            .translation("en", {"A": "a"})
            .translation_url("en", "https://x/en.json")
            .translation_file("en", "missing.yaml")
        )
        assert result is session
        assert session.pending == 4

    def test_invalid_requests_never_raise(self, session):
        session.language(None).translation(None, None, extend="x").translation_url("", 5)
        assert session.pending == 3


class TestConfigure:
    @pytest.mark.asyncio
    async def test_literal_round_trip(self, session, en_document):
        session.language("en").translation("en", en_document)
        report = await session.configure()
        assert report.succeeded
        assert session.current_language == "en"
        assert session.pending == 0
        for label, template in en_document.items():
            assert await session.translate(label) == template

    @pytest.mark.asyncio
    async def test_empty_queue_is_noop_success(self, session):
        report = await session.configure()
        assert report.succeeded
        assert report.applied == 0

    @pytest.mark.asyncio
    async def test_empty_configure_after_success_keeps_table(self, session):
        session.language("en").translation("en", {"A": "a"})
        await session.configure()
        await session.configure()
        assert await session.translate("A") == "a"

    @pytest.mark.asyncio
    async def test_extend_and_replace(self, session):
        session.language("en").translation("en", {"A": "a", "B": "b"})
        session.translation("en", {"B": "B!", "C": "c"}, extend=True)
        await session.configure()
        assert session.table["en"] == {"A": "a", "B": "B!", "C": "c"}

        session.translation("en", {"Z": "z"})
        await session.configure()
        assert session.table["en"] == {"Z": "z"}

    @pytest.mark.asyncio
    async def test_failure_aggregated_and_queue_cleared(self, session, server):
        server.routes["/fr.json"] = {"A": "fr-a"}
        session.language("en")
        session.translation_url("en", "https://x/missing.json")
        session.translation("en", {"A": "en-a"})
        session.translation_url("fr", "https://x/fr.json")

        with pytest.raises(ConfigurationFailedError) as exc:
            await session.configure()

        assert len(exc.value.errors) == 1
        assert isinstance(exc.value.errors[0], FetchFailedError)
        assert exc.value.errors[0].url == "https://x/missing.json"
        assert session.pending == 0
        assert session.table == {"en": {"A": "en-a"}, "fr": {"A": "fr-a"}}
        assert session.current_language == "en"

        # Nothing is replayed
        report = await session.configure()
        assert report.applied == 0
        assert await session.translate("A") == "en-a"

    @pytest.mark.asyncio
    async def test_malformed_url_is_fetch_failure(self, session):
        session.language("en").translation("en", {"A": "a"})
        session.translation_url("en", "http://[::1/en.json", extend=True)

        with pytest.raises(ConfigurationFailedError) as exc:
            await session.configure()

        error = exc.value.errors[0]
        assert isinstance(error, FetchFailedError)
        assert error.url == "http://[::1/en.json"
        assert error.language == "en"
        assert session.table == {"en": {"A": "a"}}

    @pytest.mark.asyncio
    async def test_concurrent_configure_shares_one_run(self, session, server):
        async def slow(request):
            await asyncio.sleep(0.02)
            return httpx.Response(200, json={"A": "a"})

        server.routes["/en.json"] = slow
        session.language("en").translation_url("en", "https://x/en.json")

        first, second = await asyncio.gather(session.configure(), session.configure())

        assert first is second
        assert len(server.requests) == 1
        assert session.fetcher.fetch_count == 1

    @pytest.mark.asyncio
    async def test_concurrent_configure_shares_failure(self, session):
        session.translation("en", None)
        results = await asyncio.gather(
            session.configure(), session.configure(), return_exceptions=True,
        )
        assert isinstance(results[0], ConfigurationFailedError)
        assert results[0] is results[1]

    @pytest.mark.asyncio
    async def test_failed_language_keeps_current(self, session):
        session.language("en").translation("en", {"A": "a"})
        await session.configure()
        session.language("")
        with pytest.raises(ConfigurationFailedError):
            await session.configure()
        assert session.current_language == "en"

    @pytest.mark.asyncio
    async def test_last_report(self, session):
        session.language("en")
        report = await session.configure()
        assert session.last_report is report


class TestTranslate:
    @pytest.mark.asyncio
    async def test_triggers_configure(self, session):
        session.language("en").translation("en", {"GREETING": "Hello, {0}!"})
        assert await session.translate("GREETING", ["World"]) == "Hello, World!"
        assert session.pending == 0

    @pytest.mark.asyncio
    async def test_whitespace_placeholder(self, session):
        session.language("en").translation("en", {"GREETING": "Hello, { 0 }!"})
        assert await session.translate("GREETING", ["World"]) == "Hello, World!"

    @pytest.mark.asyncio
    async def test_unresolved_placeholder(self, session):
        session.language("en").translation("en", {"PAIR": "{0} and {1}"})
        assert await session.translate("PAIR", ["A"]) == "A and {1}"

    @pytest.mark.asyncio
    async def test_before_language(self, session):
        with pytest.raises(LanguageNotConfiguredError):
            await session.translate("GREETING")

    @pytest.mark.asyncio
    async def test_translations_without_language(self, session):
        session.translation("en", {"A": "a"})
        with pytest.raises(LanguageNotConfiguredError):
            await session.translate("A")

    @pytest.mark.asyncio
    async def test_invalid_label(self, session):
        with pytest.raises(InvalidLabelError):
            await session.translate("")

    @pytest.mark.asyncio
    async def test_label_not_found(self, session):
        session.language("en").translation("en", {"A": "a"})
        with pytest.raises(LabelNotFoundError):
            await session.translate("B")

    @pytest.mark.asyncio
    async def test_propagates_configuration_failure_once(self, session):
        session.language("en").translation("en", {"A": "a"}).translation("fr", "nope")
        with pytest.raises(ConfigurationFailedError):
            await session.translate("A")
        assert await session.translate("A") == "a"

    @pytest.mark.asyncio
    async def test_switch_language(self, session, en_document, fr_document):
        session.language("en").translation("en", en_document).translation("fr", fr_document)
        assert await session.translate("FAREWELL") == "Goodbye"
        session.language("fr")
        assert await session.translate("FAREWELL") == "Au revoir"

    @pytest.mark.asyncio
    async def test_remote_source(self, session, server, en_document):
        server.routes["/i18n"] = en_document
        session.language("en").translation_url("en", "https://x/i18n")
        assert await session.translate("GREETING", ["Ada"]) == "Hello, Ada!"
        assert server.requests[0].url.params["language"] == "en"

    @pytest.mark.asyncio
    async def test_translate_joins_inflight_run(self, session, server):
        async def slow(request):
            await asyncio.sleep(0.02)
            return httpx.Response(200, json={"A": "remote"})

        server.routes["/en.json"] = slow
        session.language("en").translation_url("en", "https://x/en.json")
        configure_task = asyncio.ensure_future(session.configure())
        await asyncio.sleep(0)
        assert session.configuring
        assert await session.translate("A") == "remote"
        await configure_task


class TestObservers:
    @pytest.mark.asyncio
    async def test_events_in_order(self, session, events):
        session.subscribe(events.append)
        session.language("fr").translation("fr", {"A": "a"}).translation("fr", {"B": "b"}, extend=True)
        await session.configure()
        assert [e.message.split(" (")[0] for e in events] == [
            "language set to fr",
            "translation replaced for fr",
            "translation extended for fr",
            "configuration completed: 3 requests applied",
        ]

    @pytest.mark.asyncio
    async def test_unsubscribe(self, session, events):
        session.subscribe(events.append)
        assert session.unsubscribe(events.append) is True
        session.language("en")
        await session.configure()
        assert events == []

    @pytest.mark.asyncio
    async def test_failing_observer_does_not_abort(self, session, events):
        def broken(event):
            raise RuntimeError("observer down")

        session.subscribe(broken).subscribe(events.append)
        session.language("en").translation("en", {"A": "a"})
        await session.configure()
        assert events[-1].kind is EventKind.CONFIGURATION_COMPLETED
        assert session.table == {"en": {"A": "a"}}


class TestSessionState:
    @pytest.mark.asyncio
    async def test_table_is_a_copy(self, session):
        session.language("en").translation("en", {"A": "a"})
        await session.configure()
        snapshot = session.table
        snapshot["en"]["A"] = "changed"
        assert await session.translate("A") == "a"

    @pytest.mark.asyncio
    async def test_sessions_are_independent(self):
        one = TranslationSession().language("en").translation("en", {"A": "one"})
        two = TranslationSession().language("en").translation("en", {"A": "two"})
        assert await one.translate("A") == "one"
        assert await two.translate("A") == "two"

    @pytest.mark.asyncio
    async def test_languages(self, session):
        session.translation("fr", {}).translation("en", {})
        await session.configure()
        assert session.languages == ["en", "fr"]

    @pytest.mark.asyncio
    async def test_async_context_manager(self, server):
        server.routes["/en.json"] = {"A": "a"}
        async with TranslationSession(transport=server.transport) as session:
            session.language("en").translation_url("en", "https://x/en.json")
            assert await session.translate("A") == "a"
        assert session.fetcher._client is None

    @pytest.mark.asyncio
    async def test_aclose_cancels_started_fetches(self, server):
        started = asyncio.Event()

        async def hang(request):
            started.set()
            await asyncio.sleep(10)
            return httpx.Response(200, json={"A": "a"})

        server.routes["/en.json"] = hang
        session = TranslationSession(transport=server.transport)
        session.language("en").translation_url("en", "https://x/en.json")
        outcome = session._queue.translation_requests[0].outcome
        await asyncio.wait_for(started.wait(), timeout=1)

        await session.aclose()

        assert outcome.cancelled
        assert session.pending == 0
        assert session.fetcher._client is None


class TestFromConfig:
    @pytest.mark.asyncio
    async def test_sources_registered_in_order(self, server, write_file):
        server.routes["/fr.json"] = {"A": "fr-remote"}
        path = write_file("en.yaml", "A: en-file\nB: en-file\n")
        config = LexisConfig(
            default_language="en",
            sources=[
                SourceConfig(language="en", file=path),
                SourceConfig(language="en", translations={"B": "en-literal"}, extend=True),
                SourceConfig(language="fr", url="https://x/fr.json"),
            ],
        )
        session = TranslationSession.from_config(config, transport=server.transport)
        assert session.pending == 4
        await session.configure()
        assert session.table == {
            "en": {"A": "en-file", "B": "en-literal"},
            "fr": {"A": "fr-remote"},
        }
        assert session.current_language == "en"
        await session.aclose()
