"""Argument parser for Prompt Shelf CLI.

Updates:
  v0.2.0 - 2026-09-28 - Add purge-invalid command and --new-ids import flag.
  v0.1.0 - 2026-08-27 - Add stats, listing, export, and import commands.
"""

from __future__ import annotations

import argparse
from collections.abc import Sequence
from pathlib import Path

from models.tag_model import TagColor

SNAPSHOT_KINDS: tuple[str, ...] = ("prompts", "tags", "all")


def build_parser() -> argparse.ArgumentParser:
    """Return the argument parser for the Prompt Shelf launcher."""
    parser = argparse.ArgumentParser(description="Prompt Shelf command line")
    parser.add_argument(
        "--logging-config",
        type=Path,
        default=None,
        help="Path to logging configuration file (INI format)",
    )
    parser.add_argument(
        "--print-settings",
        action="store_true",
        help="Print resolved settings and exit",
    )

    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("stats", help="Show prompt and tag statistics.")

    list_prompts_parser = subparsers.add_parser(
        "list-prompts",
        help="Search stored prompts and print one page of results.",
    )
    list_prompts_parser.add_argument("--keyword", type=str, default=None)
    list_prompts_parser.add_argument(
        "--tag",
        dest="tags",
        action="append",
        default=None,
        help="Tag id filter (repeatable; prompts matching any tag are listed).",
    )
    list_prompts_parser.add_argument("--source", type=str, default=None)
    list_prompts_parser.add_argument(
        "--sort-by",
        choices=("created_at", "updated_at", "title"),
        default=None,
    )
    list_prompts_parser.add_argument("--order", choices=("asc", "desc"), default="asc")
    list_prompts_parser.add_argument("--page", type=int, default=1)
    list_prompts_parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Page size (defaults to the configured page size).",
    )

    list_tags_parser = subparsers.add_parser(
        "list-tags",
        help="Search stored tags and print one page of results.",
    )
    list_tags_parser.add_argument("--keyword", type=str, default=None)
    list_tags_parser.add_argument(
        "--color",
        choices=tuple(color.value for color in TagColor),
        default=None,
    )
    list_tags_parser.add_argument(
        "--include-empty",
        action="store_true",
        help="Include tags that no prompt references.",
    )

    export_parser = subparsers.add_parser(
        "export",
        help="Write a JSON snapshot of prompts, tags, or every stored document.",
    )
    export_parser.add_argument("path", type=Path, help="Destination JSON file")
    export_parser.add_argument("--kind", choices=SNAPSHOT_KINDS, default="all")

    import_parser = subparsers.add_parser(
        "import",
        help="Load a JSON snapshot produced by the export command.",
    )
    import_parser.add_argument("path", type=Path, help="Snapshot JSON file")
    import_parser.add_argument("--kind", choices=SNAPSHOT_KINDS, default="all")
    import_parser.add_argument(
        "--new-ids",
        action="store_true",
        help="Create imported prompts with fresh ids instead of keeping snapshot ids.",
    )

    subparsers.add_parser(
        "purge-invalid",
        help="Remove prompt documents whose ids were written by faulty releases.",
    )

    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Return parsed CLI arguments."""
    return build_parser().parse_args(argv)


__all__ = ["SNAPSHOT_KINDS", "build_parser", "parse_args"]
