"""Shared document-store helpers, result dataclasses, and SQLite plumbing.

Updates:
  v0.3.0 - 2026-09-14 - Add import report and snapshot envelope constants.
  v0.2.0 - 2026-09-02 - Add bulk operation and remove result dataclasses.
  v0.1.0 - 2026-08-27 - Extract logger, JSON helpers, and connection factory.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, cast

from ..exceptions import SerializationFailureError

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger("prompt_shelf.store")

# Fields owned by the backend; never surfaced as document fields.
BACKEND_FIELDS: frozenset[str] = frozenset({"_id", "_rev", "_deleted"})

SNAPSHOT_VERSION = "1.0.0"


def _string_list_factory() -> list[str]:
    return []


@dataclass(slots=True, frozen=True)
class StoredDocument:
    """Document read back from a backend with bookkeeping fields removed."""

    key: str
    id: str
    revision: str | None
    fields: Mapping[str, Any]


@dataclass(slots=True, frozen=True)
class WriteResult:
    """Outcome of a single put or bulk entry."""

    ok: bool
    id: str
    revision: str | None = None
    error: str | None = None
    conflict: bool = False


@dataclass(slots=True, frozen=True)
class RemoveResult:
    """Outcome of removing a document."""

    ok: bool
    id: str
    error: str | None = None


@dataclass(slots=True, frozen=True)
class BulkOperation:
    """Single entry of a bulk request; ``delete`` wins over ``fields``."""

    id: str
    fields: Mapping[str, Any] | None = None
    delete: bool = False


@dataclass(slots=True)
class ImportReport:
    """Aggregate result of replaying a snapshot into the store."""

    success: bool
    imported: int = 0
    errors: list[str] = field(default_factory=_string_list_factory)


def ensure_directory(path: Path) -> None:
    """Ensure the directory for the SQLite database exists."""
    path.parent.mkdir(parents=True, exist_ok=True)


def connect(db_path: Path) -> sqlite3.Connection:
    """Return a configured SQLite connection."""
    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode = WAL;")
    conn.execute("PRAGMA synchronous = NORMAL;")
    return conn


def json_dumps(value: Any) -> str:
    """Serialize plain data to JSON, raising SerializationFailureError otherwise."""
    try:
        return json.dumps(value, ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError) as exc:
        raise SerializationFailureError(f"Value is not plain JSON data: {exc}") from exc


def json_loads_dict(value: str | bytes | None) -> dict[str, Any] | None:
    """Deserialize JSON objects, returning None for corrupt or non-object payloads."""
    if value is None or value in ("", b""):
        return None
    try:
        parsed: object = json.loads(value)
    except json.JSONDecodeError:
        return None
    if isinstance(parsed, dict):
        parsed_map = cast("Mapping[str, Any]", parsed)
        return {str(key): parsed_map[key] for key in parsed_map}
    return None


def strip_backend_fields(raw: Mapping[str, Any]) -> dict[str, Any]:
    """Return *raw* without backend-private bookkeeping fields."""
    return {str(key): value for key, value in raw.items() if key not in BACKEND_FIELDS}


__all__ = [
    "BACKEND_FIELDS",
    "BulkOperation",
    "ImportReport",
    "RemoveResult",
    "SNAPSHOT_VERSION",
    "StoredDocument",
    "WriteResult",
    "connect",
    "ensure_directory",
    "json_dumps",
    "json_loads_dict",
    "logger",
    "strip_backend_fields",
]
