"""Structured results returned by the record services.

Services never raise for expected failures; every public operation returns
one of these objects carrying ``success`` plus either data or an error.

Updates:
  v0.2.0 - 2026-09-20 - Add purge and tag delete results.
  v0.1.0 - 2026-08-27 - Introduce operation, batch, search page, and stats results.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

T = TypeVar("T")


@dataclass(slots=True)
class OperationResult(Generic[T]):
    """Outcome of a single record operation."""

    success: bool
    data: T | None = None
    error: str | None = None
    warnings: list[str] = field(default_factory=list)

    @classmethod
    def ok(cls, data: T | None = None, warnings: list[str] | None = None) -> OperationResult[T]:
        return cls(success=True, data=data, warnings=list(warnings or []))

    @classmethod
    def fail(cls, error: str, warnings: list[str] | None = None) -> OperationResult[T]:
        return cls(success=False, error=error, warnings=list(warnings or []))


@dataclass(slots=True)
class SearchPage(Generic[T]):
    """One page of search results."""

    items: list[T]
    total: int
    page: int
    limit: int
    has_more: bool


@dataclass(slots=True)
class BatchOperationResult:
    """Aggregate outcome of a per-id best-effort batch."""

    success: bool = True
    total: int = 0
    succeeded: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)

    def record(self, record_id: str, error: str | None) -> None:
        """Count one processed id; *error* marks it as failed."""
        self.total += 1
        if error is None:
            self.succeeded += 1
        else:
            self.failed += 1
            self.errors.append(f"{record_id}: {error}")

    def summary(self) -> dict[str, int]:
        """Return aggregate counts for logging and CLI output."""
        return {"total": self.total, "succeeded": self.succeeded, "failed": self.failed}


@dataclass(slots=True)
class PromptStats:
    """Aggregate counters over the prompt collection."""

    total: int = 0
    tag_count: int = 0
    recent_count: int = 0
    source_stats: dict[str, int] = field(default_factory=dict)

    def to_record(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "tag_count": self.tag_count,
            "recent_count": self.recent_count,
            "source_stats": dict(self.source_stats),
        }


@dataclass(slots=True)
class TagStats:
    """Aggregate counters over the tag collection."""

    total: int = 0
    used: int = 0
    unused: int = 0
    color_stats: dict[str, int] = field(default_factory=dict)
    average_prompt_count: float = 0.0

    def to_record(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "used": self.used,
            "unused": self.unused,
            "color_stats": dict(self.color_stats),
            "average_prompt_count": self.average_prompt_count,
        }


@dataclass(slots=True)
class TagDeleteResult:
    """Outcome of removing a tag; references are reported, not rewritten."""

    success: bool
    deleted_tag: Any | None = None
    affected_prompts: int = 0
    message: str | None = None
    error: str | None = None


@dataclass(slots=True)
class ExportResult:
    """Serialized snapshot produced by an export."""

    success: bool
    data: str | None = None
    count: int = 0
    error: str | None = None


@dataclass(slots=True)
class ImportResult:
    """Aggregate outcome of importing a snapshot."""

    success: bool
    imported: int = 0
    errors: list[str] = field(default_factory=list)

    def summary(self) -> dict[str, int]:
        return {"imported": self.imported, "errors": len(self.errors)}


@dataclass(slots=True)
class PurgeResult:
    """Outcome of removing documents whose ids are unusable."""

    success: bool = True
    removed: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


__all__ = [
    "BatchOperationResult",
    "ExportResult",
    "ImportResult",
    "OperationResult",
    "PromptStats",
    "PurgeResult",
    "SearchPage",
    "TagDeleteResult",
    "TagStats",
]
