"""Pytest configuration for shared test fixtures.

Updates:
  v0.2.0 - 2026-09-14 - Parametrise the document store fixture over both backends.
  v0.1.0 - 2026-08-27 - Add an in-memory host document store with revision checks.
"""

from __future__ import annotations

import copy
import itertools
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

import pytest

from core.prompt_service import PromptService
from core.store import DocumentStore, HostStoreBackend, KeyCodec, SQLiteFallbackBackend
from core.tag_service import TagService

if TYPE_CHECKING:
    from pathlib import Path


class FakeHostStore:
    """In-memory document database mimicking a revisioned host store.

    Writes and removals must present the current ``_rev``; removals leave a
    ``_deleted`` tombstone that ``all_docs`` still reports.
    """

    def __init__(self) -> None:
        self.docs: dict[str, dict[str, Any]] = {}
        self.available = True
        self.put_calls = 0
        self.bulk_calls = 0
        self._counter = itertools.count(1)

    def is_available(self) -> bool:
        return self.available

    def _next_revision(self, current: str | None) -> str:
        generation = int(current.split("-", 1)[0]) if current else 0
        return f"{generation + 1}-{next(self._counter):08x}"

    def seed(self, key: str, fields: Mapping[str, Any], revision: str = "1-seed") -> None:
        self.docs[key] = {"_id": key, "_rev": revision, **copy.deepcopy(dict(fields))}

    def put(self, doc: Mapping[str, Any]) -> dict[str, Any]:
        self.put_calls += 1
        key = str(doc["_id"])
        current = self.docs.get(key)
        live = current is not None and not current.get("_deleted")
        if live and doc.get("_rev") != current["_rev"]:  # type: ignore[index]
            return {"error": True, "name": "conflict", "message": "Document update conflict"}
        revision = self._next_revision(current["_rev"] if current else None)
        stored = {name: copy.deepcopy(value) for name, value in doc.items() if name != "_deleted"}
        stored["_rev"] = revision
        self.docs[key] = stored
        return {"ok": True, "id": key, "rev": revision}

    def get(self, key: str) -> dict[str, Any] | None:
        doc = self.docs.get(key)
        if doc is None or doc.get("_deleted"):
            return None
        return copy.deepcopy(doc)

    def remove(self, doc: Mapping[str, Any] | str) -> dict[str, Any]:
        key = doc if isinstance(doc, str) else str(doc["_id"])
        current = self.docs.get(key)
        if current is None or current.get("_deleted"):
            return {"error": True, "name": "not_found", "message": "missing"}
        if not isinstance(doc, str) and doc.get("_rev") != current["_rev"]:
            return {"error": True, "name": "conflict", "message": "Document update conflict"}
        revision = self._next_revision(current["_rev"])
        self.docs[key] = {"_id": key, "_rev": revision, "_deleted": True}
        return {"ok": True, "id": key, "rev": revision}

    def all_docs(self) -> list[dict[str, Any]]:
        return [copy.deepcopy(doc) for doc in self.docs.values()]

    def bulk_docs(self, docs: list[Mapping[str, Any]]) -> list[dict[str, Any]]:
        self.bulk_calls += 1
        return [self.remove(doc) if doc.get("_deleted") else self.put(doc) for doc in docs]


@pytest.fixture()
def fake_host() -> FakeHostStore:
    return FakeHostStore()


@pytest.fixture()
def host_store(fake_host: FakeHostStore) -> DocumentStore:
    return DocumentStore(HostStoreBackend(fake_host), codec=KeyCodec())


@pytest.fixture()
def fallback_store(tmp_path: Path) -> DocumentStore:
    return DocumentStore(SQLiteFallbackBackend(tmp_path / "fallback.db"), codec=KeyCodec())


@pytest.fixture(params=["host", "sqlite"])
def store(request: pytest.FixtureRequest, tmp_path: Path) -> DocumentStore:
    """Document store on each backend in turn."""
    if request.param == "host":
        return DocumentStore(HostStoreBackend(FakeHostStore()))
    return DocumentStore(SQLiteFallbackBackend(tmp_path / "store.db"))


@pytest.fixture()
def prompt_service(store: DocumentStore) -> PromptService:
    return PromptService(store, page_size=50)


@pytest.fixture()
def tag_service(store: DocumentStore) -> TagService:
    return TagService(store)
