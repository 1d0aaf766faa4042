"""Prompt data model definitions.

Updates: v0.3.0 - 2026-09-20 - Add search query dataclass with sort/pagination options.
Updates: v0.2.0 - 2026-09-02 - Read legacy soft-delete flags and JSON-encoded tag lists.
Updates: v0.1.0 - 2026-08-27 - Initial Prompt schema with document serialization helpers.
"""
from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Literal

from .common import (
    coerce_bool,
    coerce_int,
    coerce_str_list,
    format_timestamp,
    parse_timestamp,
    utc_now,
)

PromptSortField = Literal["created_at", "updated_at", "title"]
SortOrder = Literal["asc", "desc"]


@dataclass(slots=True)
class Prompt:
    """Dataclass representation of a stored prompt."""
    id: str
    content: str
    title: str = ""
    tags: list[str] = field(default_factory=list)
    source: str = ""
    usage_count: int = 0
    is_favorite: bool = False
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
    # Legacy soft-delete marker; new deletes always remove the document.
    is_deleted: bool = False

    def to_document(self) -> dict[str, Any]:
        """Return plain, JSON-safe document fields for the store."""
        fields: dict[str, Any] = {
            "title": str(self.title or ""),
            "content": str(self.content or ""),
            "tags": [str(tag) for tag in self.tags],
            "source": str(self.source or ""),
            "usageCount": int(self.usage_count or 0),
            "isFavorite": bool(self.is_favorite),
            "createdAt": format_timestamp(self.created_at),
            "updatedAt": format_timestamp(self.updated_at),
        }
        if self.is_deleted:
            fields["isDeleted"] = True
        return fields

    def to_record(self) -> dict[str, Any]:
        """Return a snake_case mapping for display and CLI output."""
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "tags": list(self.tags),
            "source": self.source,
            "usage_count": self.usage_count,
            "is_favorite": self.is_favorite,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_document(cls, prompt_id: str, fields: Mapping[str, Any]) -> Prompt:
        """Hydrate a Prompt from stored document fields, tolerating legacy shapes."""
        created_at = parse_timestamp(fields.get("createdAt"))
        updated_at = parse_timestamp(fields.get("updatedAt"))
        if created_at is None:
            created_at = updated_at or utc_now()
        if updated_at is None:
            updated_at = created_at
        return cls(
            id=prompt_id,
            title=str(fields.get("title") or ""),
            content=str(fields.get("content") or ""),
            tags=coerce_str_list(fields.get("tags")),
            source=str(fields.get("source") or ""),
            usage_count=max(coerce_int(fields.get("usageCount")), 0),
            is_favorite=coerce_bool(fields.get("isFavorite", False)),
            created_at=created_at,
            updated_at=updated_at,
            is_deleted=coerce_bool(fields.get("isDeleted", False)),
        )


@dataclass(slots=True)
class PromptDraft:
    """Caller-supplied values for creating a prompt."""
    content: str
    title: str = ""
    tags: Sequence[str] | None = None
    source: str | None = None


@dataclass(slots=True)
class PromptPatch:
    """Partial update; ``None`` leaves the stored value untouched."""
    title: str | None = None
    content: str | None = None
    tags: Sequence[str] | None = None
    source: str | None = None
    usage_count: int | None = None
    is_favorite: bool | None = None

    def is_empty(self) -> bool:
        """Return True when the patch changes nothing."""
        return all(
            value is None
            for value in (
                self.title,
                self.content,
                self.tags,
                self.source,
                self.usage_count,
                self.is_favorite,
            )
        )

    def apply(self, prompt: Prompt, *, updated_at: datetime) -> Prompt:
        """Return *prompt* with the patch merged in; ``id``/``created_at`` never change."""
        return replace(
            prompt,
            title=self.title.strip() if self.title is not None else prompt.title,
            content=self.content if self.content is not None else prompt.content,
            tags=[str(tag) for tag in self.tags] if self.tags is not None else prompt.tags,
            source=self.source.strip() if self.source is not None else prompt.source,
            usage_count=(
                int(self.usage_count) if self.usage_count is not None else prompt.usage_count
            ),
            is_favorite=(
                bool(self.is_favorite) if self.is_favorite is not None else prompt.is_favorite
            ),
            updated_at=updated_at,
        )


@dataclass(slots=True)
class PromptQuery:
    """Search, sort, and pagination options for prompt listings."""
    keyword: str | None = None
    tags: Sequence[str] | None = None
    source: str | None = None
    sort_by: PromptSortField | None = None
    sort_order: SortOrder = "asc"
    page: int = 1
    limit: int | None = None


__all__ = [
    "Prompt",
    "PromptDraft",
    "PromptPatch",
    "PromptQuery",
    "PromptSortField",
    "SortOrder",
]
