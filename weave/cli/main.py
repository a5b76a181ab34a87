"""Standalone CLI running the ingestion pipeline outside the web server.

Usage::

    python -m weave.cli ingest https://youtu.be/dQw4w9WgXcQ --user alice
    python -m weave.cli file ~/Downloads/scan.pdf --title "Scanned notes"
    python -m weave.cli extract https://example.com/post

``ingest`` and ``file`` write to the same SQLite store and file directory
as the API (``DATABASE_PATH`` / ``STORAGE_DIR``); ``extract`` stores
nothing and prints the text with the strategy that produced it.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any

from weave.config.loader import load_config
from weave.config.settings import Settings
from weave.models.pipeline import IngestionOutcome
from weave.utils.errors import WeaveError


def _print_outcome(outcome: IngestionOutcome) -> None:
    print(f"\n{outcome.message}")
    print(f"  Document:  {outcome.document_id}")
    print(f"  Title:     {outcome.title}")
    print(f"  Kind:      {getattr(outcome.kind, 'value', outcome.kind)}")
    print(f"  Strategy:  {outcome.strategy or '-'}")
    print(f"  Insights:  {outcome.insights_created}")
    if outcome.used_fallback:
        print("  Note: no text could be extracted; a placeholder was stored.")
    if outcome.needs_manual_content:
        print("  Note: paste the caption/thread via the API for full extraction.")
    if outcome.summary:
        print(f"\nSummary:\n  {outcome.summary}")


async def _handle_ingest(args: argparse.Namespace, components: dict[str, Any]) -> int:
    print(f"Ingesting: {args.input[:80]}")
    outcome = await components["ingestion_service"].smart_ingest(args.user, args.input)
    _print_outcome(outcome)
    return 0


async def _handle_file(args: argparse.Namespace, components: dict[str, Any]) -> int:
    path = Path(args.path).expanduser()
    if not path.is_file():
        print(f"Error: file not found: {path}", file=sys.stderr)
        return 1

    print(f"Uploading: {path.name} ({path.stat().st_size} bytes)")
    outcome = await components["ingestion_service"].ingest_file(
        args.user,
        filename=path.name,
        content_type=None,
        data=path.read_bytes(),
        title=args.title,
    )
    _print_outcome(outcome)
    return 0


async def _handle_extract(args: argparse.Namespace, components: dict[str, Any]) -> int:
    path = Path(args.target).expanduser()
    if path.is_file():
        result = await components["document_text_service"].extract(
            path.read_bytes(), args.title or path.stem, filename=path.name
        )
        source = "file"
    else:
        detected, result = await components["ingestion_service"].extract_only(args.target)
        source = detected.kind.value

    print(f"Source:    {source}")
    print(f"Title:     {result.title}")
    print(f"Strategy:  {result.strategy}")
    for attempt in result.attempts:
        status = "ok" if attempt.succeeded else f"failed ({attempt.error or 'no text'})"
        print(f"  - {attempt.strategy}: {status}, {attempt.chars} chars")
    print()
    print(result.text)
    return 0


_HANDLERS = {
    "ingest": _handle_ingest,
    "file": _handle_file,
    "extract": _handle_extract,
}


async def _run(args: argparse.Namespace, app_settings: Settings) -> int:
    # Deferred so `--help` does not build providers.
    from weave.main import build_components

    components = build_components(app_settings, load_config(settings=app_settings))
    try:
        if args.command != "extract":
            await components["content_store"].initialize()
        return await _HANDLERS[args.command](args, components)
    except WeaveError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    finally:
        await components["http_client"].aclose()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m weave.cli",
        description="Capture links, text and files into the local Weave store.",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    ingest_parser = subparsers.add_parser("ingest", help="Smart-ingest a URL or text")
    ingest_parser.add_argument("input", help="URL or free text")

    file_parser = subparsers.add_parser("file", help="Upload a PDF, image or text file")
    file_parser.add_argument("path", help="Path to the file")
    file_parser.add_argument("--title", default=None, help="Document title (default: filename)")

    extract_parser = subparsers.add_parser(
        "extract", help="Print extracted text for a file path or URL without storing it"
    )
    extract_parser.add_argument("target", help="File path, URL or text")
    extract_parser.add_argument("--title", default=None, help="Title used for placeholders")

    for sub in (ingest_parser, file_parser, extract_parser):
        sub.add_argument("--user", default="local", help="User id to store under (default: local)")

    return parser


def main() -> None:
    """CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    sys.exit(asyncio.run(_run(args, Settings())))


if __name__ == "__main__":
    main()
