"""Namespaced document store over a pluggable backend.

The store owns key derivation, legacy key fallback, revision bookkeeping,
legacy payload unwrapping, and snapshot export/import. Services talk to it
with logical ids only and never see physical keys or backend fields.

Updates:
  v0.5.0 - 2026-10-19 - Resolve ids to the newest live copy and remove every copy by id.
  v0.4.0 - 2026-09-20 - Report snapshot import failures by 1-based entry position.
  v0.3.0 - 2026-09-14 - Accept StoredDocument targets in ``remove``.
  v0.2.0 - 2026-09-08 - Unwrap legacy ``data``/``value`` payloads on read.
  v0.1.0 - 2026-08-27 - Introduce DocumentStore with put/get/remove/enumerate/bulk.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping, Sequence
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, cast

from models.common import format_timestamp, parse_timestamp, utc_now

from ..exceptions import SerializationFailureError, SnapshotFormatError
from .backends import StorageBackend, select_backend
from .base import (
    BACKEND_FIELDS,
    SNAPSHOT_VERSION,
    BulkOperation,
    ImportReport,
    RemoveResult,
    StoredDocument,
    WriteResult,
    json_dumps,
    logger,
    strip_backend_fields,
)
from .keys import KeyCodec

if TYPE_CHECKING:
    from pathlib import Path

_LEGACY_PAYLOAD_FIELDS: tuple[str, ...] = ("data", "value")
_LEGACY_ENVELOPE_FIELDS: frozenset[str] = frozenset({"createdAt", "updatedAt"})
_UNDATED = datetime.min.replace(tzinfo=UTC)


class DocumentStore:
    """Persist JSON documents under namespaced keys."""

    def __init__(self, backend: StorageBackend, *, codec: KeyCodec | None = None) -> None:
        self._backend = backend
        self._codec = codec or KeyCodec()

    @classmethod
    def open(
        cls,
        fallback_path: Path,
        *,
        host: object | None = None,
        codec: KeyCodec | None = None,
    ) -> DocumentStore:
        """Probe *host* once and build a store on the selected backend."""
        return cls(select_backend(host, fallback_path), codec=codec)

    @property
    def codec(self) -> KeyCodec:
        return self._codec

    @property
    def backend(self) -> StorageBackend:
        return self._backend

    @property
    def backend_name(self) -> str:
        return self._backend.name

    # Single-document operations ---------------------------------------- #

    def put(self, doc_id: str, fields: Mapping[str, Any]) -> WriteResult:
        """Create or replace *doc_id* with *fields*.

        An existing document found under any historical key shape is updated
        in place; when several shapes hold a copy, the newest one is written.
        A caller-supplied ``updatedAt`` is preserved.

        Raises:
            SerializationFailureError: If *fields* is not plain JSON data.
        """
        if not doc_id:
            return WriteResult(ok=False, id="", error="Document id is required")
        doc = self._prepare_write(doc_id, fields)
        result = self._backend.write(doc)
        if not result.ok:
            logger.warning("Failed to store document %s: %s", doc_id, result.error)
        return self._logical_result(result)

    def get(self, doc_id: str) -> StoredDocument | None:
        """Return the newest live document stored for *doc_id*, or None when absent."""
        if not doc_id:
            return None
        key, raw = self._locate(doc_id)
        if raw is None:
            return None
        return self._to_document(key, raw)

    def locate_all(self, doc_id: str) -> list[StoredDocument]:
        """Return every live copy of *doc_id* across historical key shapes."""
        if not doc_id:
            return []
        return [self._to_document(key, raw) for key, raw in self._live_copies(doc_id)]

    def remove(self, target: str | StoredDocument) -> RemoveResult:
        """Delete *target*; removing an absent document succeeds.

        An id removes every live copy under any key shape. A document removes
        exactly that stored copy.
        """
        if isinstance(target, StoredDocument):
            return self._delete(target.key, target.revision)
        if not target:
            return RemoveResult(ok=False, id="", error="Document id is required")
        errors: list[str] = []
        for key, raw in self._live_copies(target):
            result = self._delete(key, _revision_of(raw))
            if not result.ok:
                errors.append(result.error or f"Unable to remove {key}")
        logical = self._codec.logical_id(target)
        if errors:
            return RemoveResult(ok=False, id=logical, error="; ".join(errors))
        return RemoveResult(ok=True, id=logical)

    # Collection operations ---------------------------------------------- #

    def enumerate(self, prefix_filter: str | None = None) -> list[StoredDocument]:
        """Return every document in this namespace, optionally filtered by id substring."""
        documents: list[StoredDocument] = []
        for raw in self._backend.scan():
            key = str(raw.get("_id") or "")
            if not key or raw.get("_deleted"):
                continue
            if not self._codec.in_namespace(key):
                continue
            if prefix_filter and not self._codec.matches(key, prefix_filter):
                continue
            documents.append(self._to_document(key, raw))
        return documents

    def bulk(self, operations: Sequence[BulkOperation]) -> list[WriteResult]:
        """Apply independent writes and deletes, one result per operation in order."""
        results: list[WriteResult | None] = [None] * len(operations)
        pending: list[dict[str, Any]] = []
        positions: list[int] = []
        for index, operation in enumerate(operations):
            logical = self._codec.logical_id(operation.id)
            if not operation.id:
                results[index] = WriteResult(ok=False, id="", error="Document id is required")
            elif operation.delete:
                copies = self._live_copies(operation.id)
                if not copies:
                    results[index] = WriteResult(ok=True, id=logical)
                    continue
                for key, raw in copies:
                    tombstone: dict[str, Any] = {"_id": key, "_deleted": True}
                    revision = _revision_of(raw)
                    if revision:
                        tombstone["_rev"] = revision
                    pending.append(tombstone)
                    positions.append(index)
            elif operation.fields is None:
                results[index] = WriteResult(
                    ok=False, id=logical, error="Invalid operation"
                )
            else:
                try:
                    pending.append(self._prepare_write(operation.id, operation.fields))
                except SerializationFailureError as exc:
                    results[index] = WriteResult(ok=False, id=logical, error=str(exc))
                    continue
                positions.append(index)
        if pending:
            for index, outcome in zip(positions, self._backend.write_many(pending), strict=True):
                previous = results[index]
                if previous is None or (previous.ok and not outcome.ok):
                    results[index] = self._logical_result(outcome)
        failures = sum(1 for result in results if result is not None and not result.ok)
        if failures:
            logger.warning("Bulk request finished with %d failed operation(s)", failures)
        return [result for result in results if result is not None]

    # Snapshots ----------------------------------------------------------- #

    def export_all(self, prefix_filter: str | None = None) -> str:
        """Return a JSON snapshot of every matching document."""
        entries = [
            {**document.fields, "id": document.id} for document in self.enumerate(prefix_filter)
        ]
        return self.dump_snapshot(entries)

    @staticmethod
    def dump_snapshot(entries: Iterable[Mapping[str, Any]]) -> str:
        """Wrap *entries* in the snapshot envelope and serialise it."""
        payload = {
            "exportTime": format_timestamp(utc_now()),
            "version": SNAPSHOT_VERSION,
            "data": [dict(entry) for entry in entries],
        }
        try:
            return json.dumps(payload, ensure_ascii=False, indent=2, allow_nan=False)
        except (TypeError, ValueError) as exc:
            raise SerializationFailureError(f"Snapshot is not plain JSON data: {exc}") from exc

    @staticmethod
    def load_snapshot(snapshot: str | bytes | Mapping[str, Any]) -> list[Any]:
        """Return the ``data`` entries of a snapshot.

        Raises:
            SnapshotFormatError: If the payload is not a snapshot envelope.
        """
        payload: object
        if isinstance(snapshot, Mapping):
            payload = snapshot
        else:
            try:
                payload = json.loads(snapshot)
            except json.JSONDecodeError as exc:
                raise SnapshotFormatError(f"Snapshot is not valid JSON: {exc}") from exc
        if not isinstance(payload, Mapping):
            raise SnapshotFormatError("Snapshot must be a JSON object")
        entries = cast("Mapping[str, Any]", payload).get("data")
        if not isinstance(entries, list):
            raise SnapshotFormatError("Snapshot is missing its 'data' list")
        return list(cast("list[Any]", entries))

    def import_all(self, snapshot: str | bytes | Mapping[str, Any]) -> ImportReport:
        """Replay every snapshot entry through ``put``; entry failures do not stop the run."""
        try:
            entries = self.load_snapshot(snapshot)
        except SnapshotFormatError as exc:
            logger.warning("Rejected snapshot import: %s", exc)
            return ImportReport(success=False, errors=[str(exc)])
        report = ImportReport(success=True)
        for position, entry in enumerate(entries, start=1):
            if not isinstance(entry, Mapping):
                report.errors.append(f"Entry {position}: expected an object")
                continue
            entry_map = cast("Mapping[str, Any]", entry)
            entry_id = str(entry_map.get("id") or "").strip()
            if not entry_id:
                report.errors.append(f"Entry {position}: missing id")
                continue
            fields = {str(name): value for name, value in entry_map.items() if name != "id"}
            try:
                result = self.put(entry_id, fields)
            except SerializationFailureError as exc:
                report.errors.append(f"Entry {position} ({entry_id}): {exc}")
                continue
            if result.ok:
                report.imported += 1
            else:
                report.errors.append(f"Entry {position} ({entry_id}): {result.error}")
        logger.info(
            "Imported %d of %d snapshot entries (%d errors)",
            report.imported,
            len(entries),
            len(report.errors),
        )
        return report

    # Internal helpers ---------------------------------------------------- #

    def _live_copies(self, doc_id: str) -> list[tuple[str, dict[str, Any]]]:
        copies: list[tuple[str, dict[str, Any]]] = []
        for key in self._codec.candidate_keys(doc_id):
            raw = self._backend.read(key)
            if raw is not None and not raw.get("_deleted"):
                copies.append((key, raw))
        return copies

    def _locate(self, doc_id: str) -> tuple[str, dict[str, Any] | None]:
        """Return the key of the newest live copy of *doc_id*, or the write key and None.

        Ties keep the preferred key shape.
        """
        copies = self._live_copies(doc_id)
        if not copies:
            return self._codec.to_physical_key(doc_id), None
        if len(copies) > 1:
            logger.debug("Document %s has %d live copies", doc_id, len(copies))
        return max(copies, key=lambda entry: _updated_at(entry[1]))

    def _prepare_write(self, doc_id: str, fields: Mapping[str, Any]) -> dict[str, Any]:
        payload: dict[str, Any] = {"updatedAt": format_timestamp(utc_now())}
        payload.update(strip_backend_fields(fields))
        json_dumps(payload)
        key, current = self._locate(doc_id)
        doc: dict[str, Any] = {"_id": key, **payload}
        if current is not None:
            revision = _revision_of(current)
            if revision:
                doc["_rev"] = revision
        return doc

    def _to_document(self, key: str, raw: Mapping[str, Any]) -> StoredDocument:
        return StoredDocument(
            key=key,
            id=self._codec.logical_id(key),
            revision=_revision_of(raw),
            fields=_unwrap_legacy_payload(strip_backend_fields(raw)),
        )

    def _delete(self, key: str, revision: str | None) -> RemoveResult:
        result = self._backend.delete(key, revision)
        if not result.ok:
            logger.warning("Failed to remove document %s: %s", key, result.error)
        return RemoveResult(ok=result.ok, id=self._codec.logical_id(key), error=result.error)

    def _logical_result(self, result: WriteResult) -> WriteResult:
        return WriteResult(
            ok=result.ok,
            id=self._codec.logical_id(result.id),
            revision=result.revision,
            error=result.error,
            conflict=result.conflict,
        )


def _revision_of(raw: Mapping[str, Any]) -> str | None:
    revision = raw.get("_rev")
    return str(revision) if revision else None


def _updated_at(raw: Mapping[str, Any]) -> datetime:
    fields = _unwrap_legacy_payload(strip_backend_fields(raw))
    stamp = parse_timestamp(fields.get("updatedAt")) or parse_timestamp(fields.get("createdAt"))
    return stamp or _UNDATED


def _unwrap_legacy_payload(fields: dict[str, Any]) -> dict[str, Any]:
    """Flatten ``{"data": {...}}`` / ``{"value": {...}}`` payloads written by old releases."""
    for wrapper in _LEGACY_PAYLOAD_FIELDS:
        inner = fields.get(wrapper)
        if not isinstance(inner, Mapping):
            continue
        others = set(fields) - {wrapper}
        if not others <= _LEGACY_ENVELOPE_FIELDS:
            continue
        merged = {name: fields[name] for name in others}
        merged.update(
            {
                str(name): value
                for name, value in cast("Mapping[str, Any]", inner).items()
                if name not in BACKEND_FIELDS
            }
        )
        return merged
    return fields


__all__ = ["DocumentStore"]
