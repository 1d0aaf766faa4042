"""Shared CLI utility functions for Prompt Shelf commands.

Updates:
  v0.1.0 - 2026-08-27 - Extract stdout logging, path description, and file helpers.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:  # pragma: no cover - typing helpers
    from logging import Logger
else:  # pragma: no cover - runtime placeholders for type-only imports
    Logger = Any


def print_and_log(logger: Logger, level: int, message: str) -> None:
    """Log *message* at *level* and mirror it to stdout."""
    logger.log(level, message)
    print(message)


def describe_path(path_value: object, *, allow_missing_file: bool = False) -> str:
    """Return a human-friendly description of a file path's suitability."""
    try:
        path = Path(str(path_value)) if path_value is not None else None
    except TypeError:
        path = None
    if path is None:
        return "not set"

    resolved = path.expanduser()
    if resolved.exists():
        if resolved.is_dir():
            return f"{resolved} (exists but is a directory)"
        return f"{resolved} (exists)"

    message = f"{resolved} (missing)"
    if allow_missing_file:
        message = f"{resolved} (missing - created on demand)"
    parent = resolved.parent
    if not parent.exists():
        message += f", parent missing: {parent}"
    return message


def read_text_file(path: Path) -> str:
    """Return UTF-8 contents of *path*, raising ValueError on IO failure."""
    try:
        return path.expanduser().read_text(encoding="utf-8")
    except OSError as exc:
        raise ValueError(f"Unable to read {path}: {exc}") from exc


def write_text_file(path: Path, contents: str) -> Path:
    """Write *contents* to *path*, creating parent directories, and return the path."""
    resolved = path.expanduser()
    try:
        resolved.parent.mkdir(parents=True, exist_ok=True)
        resolved.write_text(contents, encoding="utf-8")
    except OSError as exc:
        raise ValueError(f"Unable to write {path}: {exc}") from exc
    return resolved


def format_json(value: Any) -> str:
    """Return indented JSON for CLI output."""
    return json.dumps(value, ensure_ascii=False, indent=2, default=str)
