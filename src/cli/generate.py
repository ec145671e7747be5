# =============================================================================
# src/cli/generate.py — CLI Generate Command
# =============================================================================
#
# Standalone CLI tool for generating study material from the command line,
# bypassing the API server:
#
#   python -m src.cli.generate https://www.youtube.com/watch?v=dQw4w9WgXcQ
#   python -m src.cli.generate notes.txt --json
#   python -m src.cli.generate https://example.com/article -o study.json --json
#   python -m src.cli.generate https://youtu.be/abc123def45 --user-id alice
#
# A source that names an existing local file is read as UTF-8 text; any
# other source is treated as a URL and extracted by the first content
# provider that supports it.  With --user-id, URL results are cached and
# stored in the SQLite study store exactly as the API does.
#
# The --quiet flag (auto-enabled with --json) sends log output to stderr at
# WARNING+ so stdout carries only the study material.
# =============================================================================

"""Standalone CLI for generating study material from a URL or text file.

Usage::

    python -m src.cli.generate https://www.youtube.com/watch?v=VIDEO_ID
    python -m src.cli.generate lecture.txt --json
    python -m src.cli.generate https://example.com/page --output study.json
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
import time
from pathlib import Path

from src.models.study import StudyDocument
from src.utils.errors import StudyMaterialError

# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def _format_text_output(document: StudyDocument, source: str, cached: bool = False) -> str:
    """Format a study document as a human-readable text report."""
    lines: list[str] = []
    sep = "=" * 60

    lines.append(sep)
    lines.append("  Study Material")
    lines.append(f"  Source: {source}" + ("  (cached)" if cached else ""))
    lines.append(sep)
    lines.append("")

    meta = []
    if document.difficulty_level:
        meta.append(f"Level: {document.difficulty_level.value}")
    if document.estimated_study_time:
        meta.append(f"Study time: {document.estimated_study_time}")
    if meta:
        lines.append("  |  ".join(meta))
        lines.append("")

    if document.summary:
        lines.append("SUMMARY")
        lines.append("-" * 40)
        for point in document.summary:
            lines.append(f"  - {point}")
        lines.append("")

    if document.flashcards:
        lines.append(f"FLASHCARDS ({len(document.flashcards)})")
        lines.append("-" * 40)
        for number, card in enumerate(document.flashcards, start=1):
            lines.append(f"  {number}. Q: {card.question}")
            lines.append(f"     A: {card.answer}")
        lines.append("")

    if document.quiz:
        lines.append(f"QUIZ ({len(document.quiz)})")
        lines.append("-" * 40)
        for number, question in enumerate(document.quiz, start=1):
            lines.append(f"  {number}. [{question.difficulty.value}] {question.question}")
            for letter, option in zip("ABCD", question.options):
                marker = "*" if option == question.correct_answer else " "
                lines.append(f"     {marker} {letter}) {option}")
            if question.explanation:
                lines.append(f"     Why: {question.explanation}")
        lines.append("")

    if document.hashtags:
        lines.append(" ".join(f"#{tag}" for tag in document.hashtags))
        lines.append("")

    return "\n".join(lines)


def _format_json_output(document: StudyDocument) -> str:
    return json.dumps(document.to_payload(), indent=2, ensure_ascii=False)


# ---------------------------------------------------------------------------
# Runner
# ---------------------------------------------------------------------------


def _suppress_logs() -> None:
    """Reconfigure logging to WARNING+ on stderr.

    Must run before ``src.main`` is imported so cached loggers pick up the
    quiet configuration.
    """
    import logging
    import os

    from src.utils.logging import configure_logging

    os.environ["LOG_LEVEL"] = "WARNING"
    configure_logging(log_level="WARNING", stream=sys.stderr)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


async def _generate(source: str, user_id: str | None) -> tuple[StudyDocument, bool]:
    """Return ``(document, cached)`` for *source*."""
    # Deferred import: src.main bootstraps settings, logging and providers.
    from src.main import build_pipeline

    pipeline = build_pipeline()
    path = Path(source)
    if path.is_file():
        content = path.read_text(encoding="utf-8")
        return await pipeline.generate(content), False

    import httpx

    from src.main import _build_content_providers, settings
    from src.providers.store.sqlite_study_store import SQLiteStudyMaterialStore
    from src.services.study_material_service import StudyMaterialService

    store = None
    if user_id:
        store = SQLiteStudyMaterialStore(db_path=settings.study_db_path)
        await store.initialize()

    async with httpx.AsyncClient(
        timeout=httpx.Timeout(settings.http_timeout),
        follow_redirects=True,
    ) as http_client:
        service = StudyMaterialService(
            content_providers=_build_content_providers(settings, http_client),
            pipeline=pipeline,
            store=store,
        )
        result = await service.process(source, user_id=user_id)
    return result.document, result.cached


async def _run(
    source: str,
    json_output: bool,
    output_file: str | None,
    user_id: str | None = None,
) -> int:
    """Generate study material for *source* and write it out.

    Returns 0 on success, 1 on any application error.
    """
    print(f"Generating study material for: {source}", file=sys.stderr)
    start = time.monotonic()

    try:
        document, cached = await _generate(source, user_id)
    except StudyMaterialError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    elapsed = time.monotonic() - start
    print(f"Done in {elapsed:.1f}s", file=sys.stderr)

    if json_output:
        text = _format_json_output(document)
    else:
        text = _format_text_output(document, source, cached=cached)

    if output_file:
        Path(output_file).write_text(text, encoding="utf-8")
        print(f"Results written to: {output_file}", file=sys.stderr)
    else:
        print(text)

    return 0


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m src.cli.generate",
        description=(
            "Generate study material (summary, flashcards, quiz) from a "
            "YouTube video, a web page, or a local text file."
        ),
    )
    parser.add_argument(
        "source",
        type=str,
        help="URL (YouTube or web page) or path to a UTF-8 text file.",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        dest="json_output",
        help="Output the study document as JSON instead of formatted text.",
    )
    parser.add_argument(
        "--output", "-o",
        type=str,
        default=None,
        help="Write results to a file instead of stdout.",
    )
    parser.add_argument(
        "--user-id",
        type=str,
        default=None,
        help="Store URL results for this user (enables the URL cache).",
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Suppress log output (useful with --json for clean stdout).",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry point; exits with the code returned by :func:`_run`."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    # JSON mode implies quiet.
    if args.quiet or args.json_output:
        _suppress_logs()

    exit_code = asyncio.run(_run(args.source, args.json_output, args.output, args.user_id))
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
