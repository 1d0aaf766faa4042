"""Storage backends behind the document store.

Two implementations share one interface: ``HostStoreBackend`` adapts a
host-provided document database (revisioned, conflict-checked) and
``SQLiteFallbackBackend`` persists documents in a local SQLite table when no
host is available. Selection happens once via :func:`select_backend`.

Updates:
  v0.3.0 - 2026-09-14 - Resolve host stores from ``module:attribute`` import paths.
  v0.2.0 - 2026-09-02 - Route host bulk writes through ``bulk_docs`` when offered.
  v0.1.0 - 2026-08-27 - Introduce host adapter and SQLite fallback backend.
"""

from __future__ import annotations

import importlib
import sqlite3
import time
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any, Protocol, cast, runtime_checkable

from ..exceptions import BackendUnavailableError, SerializationFailureError, StoreError
from .base import (
    BACKEND_FIELDS,
    RemoveResult,
    WriteResult,
    connect,
    ensure_directory,
    json_dumps,
    json_loads_dict,
    logger,
    strip_backend_fields,
)

if TYPE_CHECKING:
    from pathlib import Path

_REQUIRED_HOST_METHODS: tuple[str, ...] = ("put", "get", "remove", "all_docs")


@runtime_checkable
class HostDocumentAPI(Protocol):
    """Document database contract offered by an embedding host.

    Documents are mappings carrying ``_id`` and, once stored, ``_rev``. Writes
    and removals answer with ``{"ok": True, "id": ..., "rev": ...}`` or an
    error mapping such as ``{"error": True, "name": "conflict", "message": ...}``.
    """

    def put(self, doc: Mapping[str, Any]) -> Mapping[str, Any]: ...

    def get(self, key: str) -> Mapping[str, Any] | None: ...

    def remove(self, doc: Mapping[str, Any]) -> Mapping[str, Any]: ...

    def all_docs(self) -> Sequence[Mapping[str, Any]]: ...


class StorageBackend(ABC):
    """Interface every physical document backend implements."""

    name: str = "abstract"

    @abstractmethod
    def read(self, key: str) -> dict[str, Any] | None:
        """Return the raw document stored under *key*, including ``_id``/``_rev``."""

    @abstractmethod
    def write(self, doc: Mapping[str, Any]) -> WriteResult:
        """Create or replace the document keyed by ``doc["_id"]``."""

    @abstractmethod
    def delete(self, key: str, revision: str | None) -> RemoveResult:
        """Delete the document stored under *key*."""

    @abstractmethod
    def scan(self) -> list[dict[str, Any]]:
        """Return every raw document the backend can see."""

    def write_many(self, docs: Sequence[Mapping[str, Any]]) -> list[WriteResult]:
        """Apply writes and ``_deleted`` tombstones one by one."""
        results: list[WriteResult] = []
        for doc in docs:
            key = str(doc.get("_id") or "")
            if doc.get("_deleted"):
                removed = self.delete(key, _optional_str(doc.get("_rev")))
                results.append(WriteResult(ok=removed.ok, id=key, error=removed.error))
            else:
                results.append(self.write(doc))
        return results


def _optional_str(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def _response_error(response: Mapping[str, Any], key: str) -> str:
    name = str(response.get("name") or "")
    if name == "conflict":
        return f"Revision conflict for {key}"
    message = response.get("message") or name or "request rejected"
    return str(message)


class HostStoreBackend(StorageBackend):
    """Adapter over a host document database."""

    name = "host"

    def __init__(self, host: HostDocumentAPI) -> None:
        self._host = host

    def read(self, key: str) -> dict[str, Any] | None:
        try:
            raw = self._host.get(key)
        except Exception as exc:  # noqa: BLE001 - host failures read as missing
            logger.warning("Host get failed for %s: %s", key, exc)
            return None
        if not isinstance(raw, Mapping):
            return None
        return {str(name): value for name, value in cast("Mapping[str, Any]", raw).items()}

    def write(self, doc: Mapping[str, Any]) -> WriteResult:
        key = str(doc.get("_id") or "")
        try:
            response = self._host.put(dict(doc))
        except Exception as exc:  # noqa: BLE001 - host failures become failed writes
            logger.warning("Host put failed for %s: %s", key, exc)
            return WriteResult(ok=False, id=key, error=str(exc))
        return self._write_result(key, response)

    def delete(self, key: str, revision: str | None) -> RemoveResult:
        target: dict[str, Any] = {"_id": key}
        if revision:
            target["_rev"] = revision
        try:
            response = self._host.remove(target)
        except Exception as exc:  # noqa: BLE001 - host failures become failed removals
            logger.warning("Host remove failed for %s: %s", key, exc)
            return RemoveResult(ok=False, id=key, error=str(exc))
        if not isinstance(response, Mapping):
            return RemoveResult(ok=False, id=key, error="Unexpected host response")
        response_map = cast("Mapping[str, Any]", response)
        if response_map.get("ok") or response_map.get("name") == "not_found":
            return RemoveResult(ok=True, id=key)
        return RemoveResult(ok=False, id=key, error=_response_error(response_map, key))

    def scan(self) -> list[dict[str, Any]]:
        try:
            rows = self._host.all_docs()
        except Exception as exc:  # noqa: BLE001 - an unreadable host lists nothing
            logger.warning("Host all_docs failed: %s", exc)
            return []
        docs: list[dict[str, Any]] = []
        for row in rows or ():
            if isinstance(row, Mapping):
                row_map = cast("Mapping[str, Any]", row)
                docs.append({str(name): value for name, value in row_map.items()})
        return docs

    def write_many(self, docs: Sequence[Mapping[str, Any]]) -> list[WriteResult]:
        bulk_docs = getattr(self._host, "bulk_docs", None)
        if not callable(bulk_docs):
            return super().write_many(docs)
        keys = [str(doc.get("_id") or "") for doc in docs]
        try:
            responses = bulk_docs([dict(doc) for doc in docs])
        except Exception as exc:  # noqa: BLE001 - a failed batch fails every entry
            logger.warning("Host bulk_docs failed: %s", exc)
            return [WriteResult(ok=False, id=key, error=str(exc)) for key in keys]
        response_list = list(responses or ())
        results: list[WriteResult] = []
        for index, key in enumerate(keys):
            response = response_list[index] if index < len(response_list) else None
            results.append(self._write_result(key, response))
        return results

    @staticmethod
    def _write_result(key: str, response: Any) -> WriteResult:
        if not isinstance(response, Mapping):
            return WriteResult(ok=False, id=key, error="Unexpected host response")
        response_map = cast("Mapping[str, Any]", response)
        if response_map.get("ok"):
            return WriteResult(
                ok=True,
                id=str(response_map.get("id") or key),
                revision=_optional_str(response_map.get("rev")),
            )
        return WriteResult(
            ok=False,
            id=key,
            error=_response_error(response_map, key),
            conflict=response_map.get("name") == "conflict",
        )


class SQLiteFallbackBackend(StorageBackend):
    """Local key/value persistence used when no host store is present.

    Revisions are ``<generation>-<nanosecond clock hex>``; writes always
    overwrite, so no conflict checks happen here.
    """

    name = "sqlite"

    def __init__(self, db_path: Path) -> None:
        self._db_path = db_path
        ensure_directory(db_path)
        self._initialise()

    @property
    def db_path(self) -> Path:
        return self._db_path

    def _initialise(self) -> None:
        try:
            with connect(self._db_path) as conn:
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS documents (
                        key TEXT PRIMARY KEY,
                        body TEXT NOT NULL,
                        revision TEXT NOT NULL,
                        updated_at TEXT NOT NULL
                    );
                    """
                )
        except sqlite3.Error as exc:
            raise StoreError(f"Unable to initialise fallback store at {self._db_path}") from exc

    def read(self, key: str) -> dict[str, Any] | None:
        try:
            with connect(self._db_path) as conn:
                row = conn.execute(
                    "SELECT key, body, revision FROM documents WHERE key = ?;",
                    (key,),
                ).fetchone()
        except sqlite3.Error as exc:
            logger.warning("Fallback read failed for %s: %s", key, exc)
            return None
        if row is None:
            return None
        return self._row_to_doc(row)

    def write(self, doc: Mapping[str, Any]) -> WriteResult:
        key = str(doc.get("_id") or "")
        if not key:
            return WriteResult(ok=False, id=key, error="Document key is required")
        try:
            body = json_dumps(strip_backend_fields(doc))
        except SerializationFailureError as exc:
            return WriteResult(ok=False, id=key, error=str(exc))
        try:
            with connect(self._db_path) as conn:
                row = conn.execute(
                    "SELECT revision FROM documents WHERE key = ?;",
                    (key,),
                ).fetchone()
                revision = self._next_revision(row["revision"] if row else None)
                conn.execute(
                    """
                    INSERT INTO documents (key, body, revision, updated_at)
                    VALUES (?, ?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        body = excluded.body,
                        revision = excluded.revision,
                        updated_at = excluded.updated_at;
                    """,
                    (key, body, revision, str(time.time_ns())),
                )
        except sqlite3.Error as exc:
            logger.warning("Fallback write failed for %s: %s", key, exc)
            return WriteResult(ok=False, id=key, error=str(exc))
        return WriteResult(ok=True, id=key, revision=revision)

    def delete(self, key: str, revision: str | None) -> RemoveResult:
        try:
            with connect(self._db_path) as conn:
                conn.execute("DELETE FROM documents WHERE key = ?;", (key,))
        except sqlite3.Error as exc:
            logger.warning("Fallback delete failed for %s: %s", key, exc)
            return RemoveResult(ok=False, id=key, error=str(exc))
        return RemoveResult(ok=True, id=key)

    def scan(self) -> list[dict[str, Any]]:
        try:
            with connect(self._db_path) as conn:
                rows = conn.execute(
                    "SELECT key, body, revision FROM documents ORDER BY key;"
                ).fetchall()
        except sqlite3.Error as exc:
            logger.warning("Fallback scan failed: %s", exc)
            return []
        docs: list[dict[str, Any]] = []
        for row in rows:
            doc = self._row_to_doc(row)
            if doc is not None:
                docs.append(doc)
        return docs

    @staticmethod
    def _row_to_doc(row: sqlite3.Row) -> dict[str, Any] | None:
        body = json_loads_dict(row["body"])
        if body is None:
            logger.warning("Skipping corrupt fallback document %s", row["key"])
            return None
        doc = {name: value for name, value in body.items() if name not in BACKEND_FIELDS}
        doc["_id"] = row["key"]
        doc["_rev"] = row["revision"]
        return doc

    @staticmethod
    def _next_revision(current: str | None) -> str:
        generation = 0
        if current:
            head = current.split("-", 1)[0]
            if head.isdigit():
                generation = int(head)
        return f"{generation + 1}-{time.time_ns():x}"


def host_is_usable(host: object | None) -> bool:
    """Return True when *host* offers the document API and reports itself available."""
    if host is None:
        return False
    for method in _REQUIRED_HOST_METHODS:
        if not callable(getattr(host, method, None)):
            return False
    is_available = getattr(host, "is_available", None)
    if callable(is_available):
        try:
            return bool(is_available())
        except Exception as exc:  # noqa: BLE001 - a failing probe means unavailable
            logger.warning("Host availability probe failed: %s", exc)
            return False
    return True


def load_host_store(import_path: str) -> object:
    """Import ``package.module:attribute`` and return the host store object.

    Callable attributes are treated as factories and invoked without arguments.
    """
    module_name, _, attribute = import_path.partition(":")
    if not module_name or not attribute:
        raise BackendUnavailableError(
            f"Host store path must look like 'module:attribute', got {import_path!r}"
        )
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise BackendUnavailableError(f"Unable to import host store module {module_name}") from exc
    try:
        target = getattr(module, attribute)
    except AttributeError as exc:
        raise BackendUnavailableError(
            f"Host store module {module_name} has no attribute {attribute}"
        ) from exc
    if isinstance(target, type) or (callable(target) and not host_is_usable(target)):
        target = target()
    return target


def select_backend(host: object | None, fallback_path: Path) -> StorageBackend:
    """Return the host adapter when the host is usable, otherwise the SQLite fallback."""
    if host_is_usable(host):
        logger.info("Using host document store %s", type(host).__name__)
        return HostStoreBackend(cast("HostDocumentAPI", host))
    if host is not None:
        logger.warning("Host document store unavailable; falling back to %s", fallback_path)
    else:
        logger.info("Using local fallback store at %s", fallback_path)
    return SQLiteFallbackBackend(fallback_path)


__all__ = [
    "HostDocumentAPI",
    "HostStoreBackend",
    "SQLiteFallbackBackend",
    "StorageBackend",
    "host_is_usable",
    "load_host_store",
    "select_backend",
]
