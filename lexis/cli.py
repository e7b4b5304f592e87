"""
Lexis CLI — Resolve labels and inspect translation sources from the shell.

Commands:
- lexis translate  — Print the translation of one label
- lexis check      — Run configuration over all sources and report events
- lexis show       — Dump the resolved translation table as YAML

Sources come from lexis.yaml (auto-discovered or --config) plus any
--file TAG=PATH / --url TAG=URL given on the command line.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Optional, Tuple

import yaml

from lexis.engine.config import LexisConfig, load_config
from lexis.engine.errors import ConfigurationFailedError, LexisError
from lexis.engine.events import ConfigurationEvent
from lexis.engine.logging import configure_logging, shutdown_logging
from lexis.engine.session import TranslationSession

logger = logging.getLogger("lexis.cli")


def main(argv: Optional[list] = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="lexis",
        description="Lexis — label translation engine",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    def add_source_args(p: argparse.ArgumentParser) -> None:
        p.add_argument("--config", help="Path to lexis.yaml (default: auto-discover)")
        p.add_argument("--language", help="Language to make current (overrides default_language)")
        p.add_argument(
            "--file", action="append", default=[], metavar="TAG=PATH",
            help="Register a YAML/JSON translation file for a language",
        )
        p.add_argument(
            "--url", action="append", default=[], metavar="TAG=URL",
            help="Register a remote translation source for a language",
        )
        p.add_argument(
            "--extend", action="store_true",
            help="Merge command-line sources into existing documents instead of replacing them",
        )

    # lexis translate
    translate_parser = subparsers.add_parser("translate", help="Translate one label")
    translate_parser.add_argument("label", help="Label to translate (e.g., GREETING)")
    translate_parser.add_argument("params", nargs="*", help="Positional parameters for {0}, {1}, …")
    add_source_args(translate_parser)

    # lexis check
    check_parser = subparsers.add_parser("check", help="Validate all translation sources")
    add_source_args(check_parser)

    # lexis show
    show_parser = subparsers.add_parser("show", help="Print the resolved translation table")
    add_source_args(show_parser)
    show_parser.add_argument("--only", metavar="TAG", help="Print a single language")

    args = parser.parse_args(argv)

    if args.command == "translate":
        return cmd_translate(args)
    elif args.command == "check":
        return cmd_check(args)
    elif args.command == "show":
        return cmd_show(args)
    else:
        parser.print_help()
        return 0


# ---------------------------------------------------------------------------
# Session construction
# ---------------------------------------------------------------------------

def _split_pair(value: str, option: str) -> Tuple[str, str]:
    language, sep, target = value.partition("=")
    if not sep:
        raise argparse.ArgumentTypeError(f"{option} expects TAG=VALUE, got '{value}'")
    return language, target


def _build_session(args: argparse.Namespace, observers: Optional[list] = None) -> TranslationSession:
    config: LexisConfig = load_config(args.config)
    configure_logging(config.logging)

    session = TranslationSession.from_config(config, observers=observers)
    extend = True if args.extend else None
    for value in args.file:
        language, path = _split_pair(value, "--file")
        session.translation_file(language, path, extend=extend)
    for value in args.url:
        language, url = _split_pair(value, "--url")
        session.translation_url(language, url, extend=extend)
    if args.language:
        session.language(args.language)
    return session


def _run(args: argparse.Namespace, coro_factory, observers: Optional[list] = None) -> int:
    try:
        session = _build_session(args, observers)
    except (LexisError, argparse.ArgumentTypeError) as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 1

    async def runner() -> int:
        async with session:
            return await coro_factory(session)

    try:
        return asyncio.run(runner())
    finally:
        shutdown_logging()


# ---------------------------------------------------------------------------
# lexis translate
# ---------------------------------------------------------------------------

def cmd_translate(args: argparse.Namespace) -> int:
    """Print the translation of a label."""

    async def translate(session: TranslationSession) -> int:
        try:
            text = await session.translate(args.label, args.params or None)
        except ConfigurationFailedError as e:
            for error in e.errors:
                print(f"[ERROR] {error.message}", file=sys.stderr)
            return 1
        except LexisError as e:
            print(f"[ERROR] {e.message}", file=sys.stderr)
            return 1
        print(text)
        return 0

    return _run(args, translate)


# ---------------------------------------------------------------------------
# lexis check
# ---------------------------------------------------------------------------

def cmd_check(args: argparse.Namespace) -> int:
    """Run one configuration pass and print every diagnostic event."""

    def printer(event: ConfigurationEvent) -> None:
        marker = "[ERROR]" if event.failed else "[OK]"
        print(f"{marker} {event.message}")

    async def check(session: TranslationSession) -> int:
        if not session.pending:
            print("[WARN] No translation sources configured.")
            return 0
        try:
            report = await session.configure()
        except ConfigurationFailedError as e:
            print(f"\n{len(e.errors)} source(s) failed.")
            return 1
        print(f"\nAll sources valid! ({report.applied} applied, languages: {', '.join(report.languages) or '-'})")
        return 0

    return _run(args, check, observers=[printer])


# ---------------------------------------------------------------------------
# lexis show
# ---------------------------------------------------------------------------

def cmd_show(args: argparse.Namespace) -> int:
    """Dump the resolved table (or one language) as YAML."""

    async def show(session: TranslationSession) -> int:
        status = 0
        try:
            await session.configure()
        except ConfigurationFailedError as e:
            for error in e.errors:
                print(f"[ERROR] {error.message}", file=sys.stderr)
            status = 1

        table = session.table
        if args.only:
            if args.only not in table:
                print(f"[ERROR] No translations loaded for '{args.only}'", file=sys.stderr)
                return 1
            table = {args.only: table[args.only]}
        print(yaml.safe_dump(table, allow_unicode=True, sort_keys=True), end="")
        return status

    return _run(args, show)


if __name__ == "__main__":
    sys.exit(main())
