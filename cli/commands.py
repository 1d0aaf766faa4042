"""CLI command handlers for Prompt Shelf.

Updates:
  v0.2.0 - 2026-09-28 - Add purge-invalid handler and fresh-id prompt imports.
  v0.1.0 - 2026-08-27 - Add stats, listing, export, and import handlers.
"""

from __future__ import annotations

import argparse
import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from models.prompt_model import PromptQuery
from models.tag_model import TagQuery

from .utils import format_json, print_and_log, read_text_file, write_text_file

if TYPE_CHECKING:  # pragma: no cover - typing helpers
    from core.factory import ServiceContainer
else:  # pragma: no cover - runtime placeholders for type-only imports
    ServiceContainer = object

EXIT_OK = 0
EXIT_OPERATION_FAILED = 4

CommandHandler = Callable[[ServiceContainer, argparse.Namespace, logging.Logger], int]


@dataclass(frozen=True)
class CommandSpec:
    """Metadata for dispatching CLI command handlers."""

    handler: CommandHandler
    description: str = ""


def run_stats(
    services: ServiceContainer,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    del args, logger
    payload = {
        "prompts": services.prompts.stats().to_record(),
        "tags": services.tags.stats().to_record(),
    }
    print(format_json(payload))
    return EXIT_OK


def run_list_prompts(
    services: ServiceContainer,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    del logger
    page = services.prompts.search(
        PromptQuery(
            keyword=args.keyword,
            tags=args.tags,
            source=args.source,
            sort_by=args.sort_by,
            sort_order=args.order,
            page=args.page,
            limit=args.limit,
        )
    )
    if not page.items:
        print("No prompts matched.")
        return EXIT_OK
    for prompt in page.items:
        title = prompt.title or prompt.content.strip().splitlines()[0][:60]
        tags = ", ".join(prompt.tags) or "-"
        print(f"{prompt.id}  {title}  [tags: {tags}]")
    more = " (more available)" if page.has_more else ""
    print(f"\nPage {page.page}, {len(page.items)} of {page.total}{more}")
    return EXIT_OK


def run_list_tags(
    services: ServiceContainer,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    del logger
    page = services.tags.search(
        TagQuery(
            keyword=args.keyword,
            color=args.color,
            include_empty=args.include_empty,
            sort_by="name",
            limit=None,
        )
    )
    if not page.items:
        print("No tags matched.")
        return EXIT_OK
    for tag in page.items:
        print(f"{tag.id}  {tag.name}  {tag.color.value}  prompts={tag.prompt_count}")
    print(f"\n{page.total} tag(s)")
    return EXIT_OK


def run_export(
    services: ServiceContainer,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    kind = args.kind
    if kind == "prompts":
        result = services.prompts.export_data()
        if not result.success or result.data is None:
            print_and_log(logger, logging.ERROR, f"Prompt export failed: {result.error}")
            return EXIT_OPERATION_FAILED
        snapshot, count = result.data, result.count
    elif kind == "tags":
        result = services.tags.export_data()
        if not result.success or result.data is None:
            print_and_log(logger, logging.ERROR, f"Tag export failed: {result.error}")
            return EXIT_OPERATION_FAILED
        snapshot, count = result.data, result.count
    else:
        count = len(services.store.enumerate())
        snapshot = services.store.export_all()
    try:
        resolved = write_text_file(Path(args.path), snapshot)
    except ValueError as exc:
        print_and_log(logger, logging.ERROR, str(exc))
        return EXIT_OPERATION_FAILED
    print_and_log(logger, logging.INFO, f"Exported {count} {kind} record(s) to {resolved}")
    return EXIT_OK


def run_import(
    services: ServiceContainer,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    try:
        snapshot = read_text_file(Path(args.path))
    except ValueError as exc:
        print_and_log(logger, logging.ERROR, str(exc))
        return EXIT_OPERATION_FAILED
    kind = args.kind
    if kind == "prompts":
        outcome = services.prompts.import_data(snapshot, preserve_ids=not args.new_ids)
        success, imported, errors = outcome.success, outcome.imported, outcome.errors
    elif kind == "tags":
        outcome = services.tags.import_data(snapshot)
        success, imported, errors = outcome.success, outcome.imported, outcome.errors
    else:
        report = services.store.import_all(snapshot)
        success = report.success and not report.errors
        imported, errors = report.imported, report.errors
    for error in errors:
        print_and_log(logger, logging.WARNING, error)
    print_and_log(logger, logging.INFO, f"Imported {imported} {kind} record(s)")
    return EXIT_OK if success else EXIT_OPERATION_FAILED


def run_purge_invalid(
    services: ServiceContainer,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    del args
    result = services.prompts.purge_invalid()
    for error in result.errors:
        print_and_log(logger, logging.WARNING, error)
    print_and_log(logger, logging.INFO, f"Removed {len(result.removed)} invalid prompt document(s)")
    return EXIT_OK if result.success else EXIT_OPERATION_FAILED


COMMAND_SPECS: dict[str, CommandSpec] = {
    "stats": CommandSpec(run_stats, "Show prompt and tag statistics"),
    "list-prompts": CommandSpec(run_list_prompts, "Search prompts"),
    "list-tags": CommandSpec(run_list_tags, "Search tags"),
    "export": CommandSpec(run_export, "Write a JSON snapshot"),
    "import": CommandSpec(run_import, "Load a JSON snapshot"),
    "purge-invalid": CommandSpec(run_purge_invalid, "Remove prompts with unusable ids"),
}


__all__ = [
    "COMMAND_SPECS",
    "CommandSpec",
    "EXIT_OK",
    "EXIT_OPERATION_FAILED",
    "run_export",
    "run_import",
    "run_list_prompts",
    "run_list_tags",
    "run_purge_invalid",
    "run_stats",
]
