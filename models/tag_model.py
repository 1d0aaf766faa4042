"""Tag metadata models and helpers.

Updates: v0.2.0 - 2026-09-20 - Add tag search query and colour hex palette.
Updates: v0.1.0 - 2026-08-27 - Introduce Tag dataclass with document helpers.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Literal

from .common import coerce_bool, coerce_int, format_timestamp, parse_timestamp, utc_now
from .prompt_model import SortOrder

TAG_ID_PREFIX = "tag_"

TagSortField = Literal["name", "prompt_count", "created_at", "updated_at"]


class TagColor(str, Enum):
    """Enumerate the fixed tag colour palette."""

    DEFAULT = "default"
    PRIMARY = "primary"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
    INFO = "info"
    PURPLE = "purple"
    PINK = "pink"
    CYAN = "cyan"
    LIME = "lime"

    @classmethod
    def parse(cls, value: Any, default: TagColor | None = None) -> TagColor | None:
        """Return the colour matching *value*, or *default* when unknown."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return default


TAG_COLOR_HEX: dict[TagColor, str] = {
    TagColor.DEFAULT: "#666666",
    TagColor.PRIMARY: "#00B25A",
    TagColor.SUCCESS: "#52c41a",
    TagColor.WARNING: "#faad14",
    TagColor.ERROR: "#ff4d4f",
    TagColor.INFO: "#1890ff",
    TagColor.PURPLE: "#722ed1",
    TagColor.PINK: "#eb2f96",
    TagColor.CYAN: "#13c2c2",
    TagColor.LIME: "#a0d911",
}


def _clean_optional_text(value: Any) -> str | None:
    """Strip whitespace from optional string inputs."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(slots=True)
class Tag:
    """Structured representation of a prompt tag."""

    id: str
    name: str
    color: TagColor = TagColor.PRIMARY
    description: str | None = None
    prompt_count: int = 0
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
    is_deleted: bool = False

    @property
    def hex_color(self) -> str:
        """Return the display colour for the tag."""
        return TAG_COLOR_HEX[self.color]

    def to_document(self) -> dict[str, Any]:
        """Serialize the tag into plain document fields."""
        fields: dict[str, Any] = {
            "name": str(self.name),
            "color": self.color.value,
            "promptCount": int(self.prompt_count),
            "createdAt": format_timestamp(self.created_at),
            "updatedAt": format_timestamp(self.updated_at),
        }
        if self.description is not None:
            fields["description"] = str(self.description)
        if self.is_deleted:
            fields["isDeleted"] = True
        return fields

    def to_record(self) -> dict[str, Any]:
        """Return a snake_case mapping for display and CLI output."""
        return {
            "id": self.id,
            "name": self.name,
            "color": self.color.value,
            "description": self.description,
            "prompt_count": self.prompt_count,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    def with_prompt_count(self, count: int, *, updated_at: datetime) -> Tag:
        """Return a copy carrying a recomputed prompt counter."""
        return replace(self, prompt_count=max(int(count), 0), updated_at=updated_at)

    @classmethod
    def from_document(cls, tag_id: str, fields: Mapping[str, Any]) -> Tag:
        """Hydrate a Tag from stored document fields."""
        created_at = parse_timestamp(fields.get("createdAt"))
        updated_at = parse_timestamp(fields.get("updatedAt"))
        if created_at is None:
            created_at = updated_at or utc_now()
        if updated_at is None:
            updated_at = created_at
        return cls(
            id=tag_id,
            name=str(fields.get("name") or "").strip(),
            color=TagColor.parse(fields.get("color"), TagColor.DEFAULT) or TagColor.DEFAULT,
            description=_clean_optional_text(fields.get("description")),
            prompt_count=max(coerce_int(fields.get("promptCount")), 0),
            created_at=created_at,
            updated_at=updated_at,
            is_deleted=coerce_bool(fields.get("isDeleted", False)),
        )


@dataclass(slots=True)
class TagDraft:
    """Caller-supplied values for creating a tag."""

    name: str
    color: TagColor | str | None = None
    description: str | None = None


@dataclass(slots=True)
class TagPatch:
    """Partial tag update; ``None`` leaves the stored value untouched."""

    name: str | None = None
    color: TagColor | str | None = None
    description: str | None = None

    def apply(self, tag: Tag, *, updated_at: datetime) -> Tag:
        """Return *tag* with the patch merged in."""
        color = tag.color
        if self.color is not None:
            color = TagColor.parse(self.color, tag.color) or tag.color
        description = tag.description
        if self.description is not None:
            description = _clean_optional_text(self.description)
        return replace(
            tag,
            name=self.name.strip() if self.name else tag.name,
            color=color,
            description=description,
            updated_at=updated_at,
        )


@dataclass(slots=True)
class TagQuery:
    """Search, sort, and pagination options for tag listings."""

    keyword: str | None = None
    color: TagColor | str | None = None
    sort_by: TagSortField | None = None
    sort_order: SortOrder = "asc"
    include_empty: bool = False
    page: int = 1
    limit: int | None = None


__all__ = [
    "TAG_COLOR_HEX",
    "TAG_ID_PREFIX",
    "Tag",
    "TagColor",
    "TagDraft",
    "TagPatch",
    "TagQuery",
    "TagSortField",
]
