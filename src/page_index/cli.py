"""Command line entry point for the page index.

Examples:
  page-index reset
  page-index index https://example.com/ --title "Example" --file page.txt
  cat page.txt | page-index index https://example.com/
  page-index status https://example.com/
  page-index --metrics-file /var/lib/node_exporter/page_index.prom index https://example.com/ --file page.txt
"""

# ruff: noqa: T201  # CLI intentionally prints results

from __future__ import annotations

import argparse
from collections.abc import Sequence
import json
import logging
from pathlib import Path
import sys
import textwrap

from opentelemetry.sdk.trace.export import ConsoleSpanExporter, SimpleSpanProcessor

from page_index.bootstrap import bootstrap, build_database
from page_index.config import Settings
from page_index.domain.errors import InvalidInputError, StorageUnavailableError
from page_index.domain.model import Page
from page_index.observability.logging import configure_logging
from page_index.observability.metrics import get_metrics
from page_index.observability.tracing import init_tracing


logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_STORAGE_ERROR = 1
EXIT_INVALID_INPUT = 2


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="page-index",
        description="Maintain the inverted index of crawled pages",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent(__doc__.split("Examples:", 1)[1]).strip(),
    )
    parser.add_argument("--db", dest="database_path", help="SQLite database path (overrides DATABASE_PATH)")
    parser.add_argument("--log-level", help="Logging level (overrides LOG_LEVEL)")
    parser.add_argument("--plain-logs", action="store_true", help="Human-readable logs instead of JSON")
    parser.add_argument("--trace", action="store_true", help="Print finished spans to stderr")
    parser.add_argument(
        "--metrics-file",
        type=Path,
        help="Write Prometheus metrics for this run to PATH (textfile collector format)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("reset", help="Drop and recreate the index schema")

    index_parser = subparsers.add_parser("index", help="Index the text of one page")
    index_parser.add_argument("url", help="Page URL")
    index_parser.add_argument("--title", help="Page title")
    index_parser.add_argument("--file", type=Path, help="Read page text from this file instead of stdin")

    status_parser = subparsers.add_parser("status", help="Report whether a page is due for re-crawl")
    status_parser.add_argument("url", help="Page URL")

    subparsers.add_parser("stats", help="Print row counts of the index tables")
    return parser


def _settings_from_args(args: argparse.Namespace) -> Settings:
    overrides = {}
    if args.database_path:
        overrides["database_path"] = args.database_path
    if args.log_level:
        overrides["log_level"] = args.log_level
    if args.plain_logs:
        overrides["log_json"] = False
    if args.trace:
        overrides["trace_console"] = True
    return Settings(**overrides)


def _init_tracing(settings: Settings) -> None:
    processors = []
    if settings.trace_console:
        processors.append(SimpleSpanProcessor(ConsoleSpanExporter(out=sys.stderr)))
    init_tracing(span_processors=processors)


def _page_payload(page: Page) -> dict:
    return {
        "id": page.id,
        "url": page.url,
        "title": page.title,
        "created_at": page.created_at.isoformat() if page.created_at else None,
        "updated_at": page.updated_at.isoformat() if page.updated_at else None,
    }


def _read_text(path: Path | None) -> str:
    if path is None:
        return sys.stdin.read()
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        raise InvalidInputError(f"Cannot read {path}: {exc}") from exc


def _write_metrics(path: Path) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(get_metrics())
    except OSError as exc:
        logger.error("Failed to write metrics to %s: %s", path, exc)


def _run(args: argparse.Namespace, settings: Settings) -> int:
    try:
        if args.command == "reset":
            build_database(settings).reset()
            print(json.dumps({"reset": True, "database": settings.database_path}))
            return EXIT_OK

        service = bootstrap(settings)
        if args.command == "index":
            page = service.index_page(args.url, _read_text(args.file), args.title)
            print(json.dumps(_page_payload(page)))
        elif args.command == "status":
            print(json.dumps(service.freshness(args.url).to_dict()))
        elif args.command == "stats":
            counts = service.counts()
            print(json.dumps({"pages": counts.pages, "words": counts.words, "locations": counts.locations}))
    except InvalidInputError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_INVALID_INPUT
    except StorageUnavailableError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_STORAGE_ERROR
    return EXIT_OK


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_argument_parser()
    args = parser.parse_args(argv)
    settings = _settings_from_args(args)
    configure_logging(settings.log_level, settings.log_json)
    _init_tracing(settings)

    code = _run(args, settings)
    if args.metrics_file is not None:
        _write_metrics(args.metrics_file)
    return code


if __name__ == "__main__":
    sys.exit(main())
