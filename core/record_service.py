"""Shared plumbing for the prompt and tag record services.

Updates:
  v0.2.0 - 2026-09-20 - Collapse records found under several key shapes to the newest copy.
  v0.1.0 - 2026-08-27 - Extract pagination and store write helpers from the services.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from typing import TYPE_CHECKING, Any, Protocol, TypeVar

from .exceptions import PromptShelfError, RecordValidationError, RevisionConflictError, StoreError
from .results import OperationResult, SearchPage

if TYPE_CHECKING:
    from datetime import datetime

    from .store import DocumentStore

logger = logging.getLogger("prompt_shelf.services")

DEFAULT_PAGE_SIZE = 50


class _Timestamped(Protocol):
    @property
    def id(self) -> str: ...

    @property
    def updated_at(self) -> datetime: ...


RecordT = TypeVar("RecordT", bound=_Timestamped)
ItemT = TypeVar("ItemT")
ResultT = TypeVar("ResultT")


def latest_by_id(records: Iterable[RecordT]) -> list[RecordT]:
    """Keep the most recently updated record per id, preserving first-seen order."""
    chosen: dict[str, RecordT] = {}
    for record in records:
        current = chosen.get(record.id)
        if current is None or record.updated_at > current.updated_at:
            chosen[record.id] = record
    return list(chosen.values())


def paginate(items: Sequence[ItemT], page: int, limit: int) -> SearchPage[ItemT]:
    """Slice *items* into a 1-based page."""
    page = max(int(page or 1), 1)
    limit = max(int(limit), 1)
    start = (page - 1) * limit
    end = start + limit
    return SearchPage(
        items=list(items[start:end]),
        total=len(items),
        page=page,
        limit=limit,
        has_more=end < len(items),
    )


def failure(exc: PromptShelfError) -> OperationResult[Any]:
    """Translate a domain exception into a failed operation result."""
    warnings = exc.warnings if isinstance(exc, RecordValidationError) else []
    return OperationResult.fail(str(exc), warnings)


def guarded(action: Callable[[], OperationResult[ResultT]], label: str) -> OperationResult[ResultT]:
    """Run *action*, converting domain exceptions into failed results."""
    try:
        return action()
    except PromptShelfError as exc:
        logger.warning("%s failed: %s", label, exc)
        return failure(exc)


class RecordService:
    """Base class wiring a service to the shared document store."""

    record_label = "Record"

    def __init__(self, store: DocumentStore, *, page_size: int = DEFAULT_PAGE_SIZE) -> None:
        self._store = store
        self._page_size = page_size if page_size > 0 else DEFAULT_PAGE_SIZE

    @property
    def store(self) -> DocumentStore:
        return self._store

    def _page_limit(self, requested: int | None) -> int:
        if requested is None or requested < 1:
            return self._page_size
        return requested

    def _write(self, store_id: str, fields: dict[str, Any]) -> None:
        """Persist *fields* under *store_id*, raising on rejected writes."""
        result = self._store.put(store_id, fields)
        if result.ok:
            return
        if result.conflict:
            raise RevisionConflictError(result.error or f"Revision conflict for {store_id}")
        raise StoreError(result.error or f"Unable to store {self.record_label.lower()} {store_id}")


__all__ = [
    "DEFAULT_PAGE_SIZE",
    "RecordService",
    "failure",
    "guarded",
    "latest_by_id",
    "paginate",
]
