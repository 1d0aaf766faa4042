"""Validation rules for prompt and tag records.

Validators are pure functions returning :class:`ValidationResult`; they never
touch the store. :func:`ensure_valid` turns a failed result into a
:class:`~core.exceptions.RecordValidationError` for callers that prefer to raise.

Updates:
  v0.2.0 - 2026-09-14 - Add tag delete warnings and case-insensitive name uniqueness.
  v0.1.0 - 2026-08-27 - Introduce prompt and tag field rules as pure validators.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from models.tag_model import TagColor

from .exceptions import RecordValidationError

if TYPE_CHECKING:
    from models.prompt_model import Prompt, PromptDraft, PromptPatch
    from models.tag_model import Tag, TagDraft, TagPatch

PROMPT_TITLE_MAX = 100
PROMPT_CONTENT_MAX = 10_000
PROMPT_CONTENT_WARN = 5_000
PROMPT_TAGS_MAX = 10
PROMPT_SOURCE_MAX = 200
TAG_NAME_MAX = 6
TAG_DESCRIPTION_MAX = 100

SENSITIVE_WORDS: tuple[str, ...] = ("password", "secret", "密码", "机密")

_TAG_NAME_PATTERN = re.compile(r"[\u4e00-\u9fa5A-Za-z0-9\s_-]+")


@dataclass(slots=True)
class ValidationResult:
    """Outcome of validating a record or a partial update."""

    is_valid: bool = True
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @classmethod
    def from_messages(cls, errors: Sequence[str], warnings: Sequence[str] = ()) -> ValidationResult:
        return cls(is_valid=not errors, errors=list(errors), warnings=list(warnings))

    def merge(self, other: ValidationResult) -> ValidationResult:
        """Return a result holding the messages of both results, without repeats."""
        return ValidationResult.from_messages(
            list(dict.fromkeys([*self.errors, *other.errors])),
            list(dict.fromkeys([*self.warnings, *other.warnings])),
        )


# Field rules -------------------------------------------------------------- #


def _check_length(value: str, label: str, minimum: int, maximum: int) -> list[str]:
    length = len(value.strip())
    errors: list[str] = []
    if length < minimum:
        if minimum == 1:
            errors.append(f"{label} is required")
        else:
            errors.append(f"{label} must be at least {minimum} characters")
    if length > maximum:
        errors.append(f"{label} must be at most {maximum} characters")
    return errors


def _check_content(content: Any, errors: list[str], warnings: list[str]) -> None:
    if not isinstance(content, str):
        errors.append("Content is required")
        return
    errors.extend(_check_length(content, "Content", 1, PROMPT_CONTENT_MAX))
    if len(content) > PROMPT_CONTENT_WARN:
        warnings.append("Content is long; consider trimming it")
    lowered = content.lower()
    if any(word in lowered for word in SENSITIVE_WORDS):
        warnings.append("Content may contain sensitive information")


def _check_tag_ids(tags: Any, errors: list[str], warnings: list[str]) -> None:
    if isinstance(tags, str) or not isinstance(tags, Iterable):
        errors.append("Tags must be a list of tag ids")
        return
    tag_list = list(tags)
    if len(tag_list) > PROMPT_TAGS_MAX:
        errors.append(f"Tags must contain at most {PROMPT_TAGS_MAX} entries")
    for position, tag_id in enumerate(tag_list, start=1):
        if not isinstance(tag_id, str) or not tag_id.strip():
            errors.append(f"Tag {position} has an invalid id")
    if len(set(map(str, tag_list))) != len(tag_list):
        warnings.append("Tags contain duplicate ids")


def _check_tag_name(name: Any, errors: list[str], warnings: list[str]) -> None:
    if not isinstance(name, str) or not name.strip():
        errors.append("Name is required")
        return
    errors.extend(_check_length(name, "Name", 1, TAG_NAME_MAX))
    if not _TAG_NAME_PATTERN.fullmatch(name):
        errors.append(
            "Name may only contain CJK characters, letters, digits, spaces, hyphens and underscores"
        )
    if len(name.strip()) == TAG_NAME_MAX:
        warnings.append("Name has reached the maximum length")


def _check_color(color: Any, errors: list[str]) -> None:
    if TagColor.parse(color) is None:
        errors.append(f"Color {color!r} is not supported")


def _check_timestamps(record: Prompt | Tag, errors: list[str]) -> None:
    if record.updated_at < record.created_at:
        errors.append("Updated time cannot be earlier than created time")


# Prompt validators -------------------------------------------------------- #


def validate_prompt_create(draft: PromptDraft) -> ValidationResult:
    """Validate the values supplied when creating a prompt."""
    errors: list[str] = []
    warnings: list[str] = []
    if draft.title:
        errors.extend(_check_length(draft.title, "Title", 0, PROMPT_TITLE_MAX))
    _check_content(draft.content, errors, warnings)
    if draft.tags is not None:
        _check_tag_ids(draft.tags, errors, warnings)
    if draft.source:
        errors.extend(_check_length(draft.source, "Source", 0, PROMPT_SOURCE_MAX))
    return ValidationResult.from_messages(errors, warnings)


def validate_prompt_update(patch: PromptPatch) -> ValidationResult:
    """Validate only the fields present on *patch*."""
    errors: list[str] = []
    warnings: list[str] = []
    if patch.title is not None:
        errors.extend(_check_length(patch.title, "Title", 0, PROMPT_TITLE_MAX))
    if patch.content is not None:
        _check_content(patch.content, errors, warnings)
    if patch.tags is not None:
        _check_tag_ids(patch.tags, errors, warnings)
    if patch.source is not None:
        errors.extend(_check_length(patch.source, "Source", 0, PROMPT_SOURCE_MAX))
    if patch.usage_count is not None and patch.usage_count < 0:
        errors.append("Usage count must be a non-negative integer")
    return ValidationResult.from_messages(errors, warnings)


def validate_prompt(prompt: Prompt) -> ValidationResult:
    """Validate a complete prompt record."""
    errors: list[str] = []
    warnings: list[str] = []
    if not prompt.id:
        errors.append("ID is required")
    errors.extend(_check_length(prompt.title, "Title", 0, PROMPT_TITLE_MAX))
    _check_content(prompt.content, errors, warnings)
    _check_tag_ids(prompt.tags, errors, warnings)
    errors.extend(_check_length(prompt.source, "Source", 0, PROMPT_SOURCE_MAX))
    if prompt.usage_count < 0:
        errors.append("Usage count must be a non-negative integer")
    _check_timestamps(prompt, errors)
    return ValidationResult.from_messages(errors, warnings)


# Tag validators ----------------------------------------------------------- #


def validate_tag_create(draft: TagDraft) -> ValidationResult:
    """Validate the values supplied when creating a tag."""
    errors: list[str] = []
    warnings: list[str] = []
    _check_tag_name(draft.name, errors, warnings)
    if draft.color is not None:
        _check_color(draft.color, errors)
    if draft.description:
        errors.extend(_check_length(draft.description, "Description", 0, TAG_DESCRIPTION_MAX))
    return ValidationResult.from_messages(errors, warnings)


def validate_tag_update(patch: TagPatch) -> ValidationResult:
    """Validate only the fields present on *patch*."""
    errors: list[str] = []
    warnings: list[str] = []
    if patch.name is not None:
        _check_tag_name(patch.name, errors, warnings)
    if patch.color is not None:
        _check_color(patch.color, errors)
    if patch.description is not None:
        errors.extend(_check_length(patch.description, "Description", 0, TAG_DESCRIPTION_MAX))
    return ValidationResult.from_messages(errors, warnings)


def validate_tag(tag: Tag) -> ValidationResult:
    """Validate a complete tag record."""
    errors: list[str] = []
    warnings: list[str] = []
    if not tag.id:
        errors.append("ID is required")
    _check_tag_name(tag.name, errors, warnings)
    _check_color(tag.color, errors)
    if tag.description:
        errors.extend(_check_length(tag.description, "Description", 0, TAG_DESCRIPTION_MAX))
    if tag.prompt_count < 0:
        errors.append("Prompt count must be a non-negative integer")
    _check_timestamps(tag, errors)
    return ValidationResult.from_messages(errors, warnings)


def validate_tag_delete(tag: Tag, *, force: bool = False) -> ValidationResult:
    """Warn when a tag about to be removed is still referenced by prompts."""
    warnings: list[str] = []
    if not force and tag.prompt_count > 0:
        warnings.append(
            f"Tag is associated with {tag.prompt_count} prompt(s); those references will dangle"
        )
    return ValidationResult.from_messages([], warnings)


def validate_tag_name_unique(
    name: str,
    existing: Iterable[Tag],
    exclude_id: str | None = None,
) -> ValidationResult:
    """Reject *name* when another tag already uses it, ignoring case."""
    wanted = name.strip().casefold()
    for tag in existing:
        if exclude_id is not None and tag.id == exclude_id:
            continue
        if tag.name.strip().casefold() == wanted:
            return ValidationResult.from_messages([f"Tag name '{name.strip()}' already exists"])
    return ValidationResult()


def ensure_valid(result: ValidationResult, operation: str = "Operation") -> None:
    """Raise RecordValidationError when *result* carries errors."""
    if not result.is_valid:
        raise RecordValidationError(
            f"{operation} validation failed",
            errors=result.errors,
            warnings=result.warnings,
        )


__all__ = [
    "PROMPT_CONTENT_MAX",
    "PROMPT_SOURCE_MAX",
    "PROMPT_TAGS_MAX",
    "PROMPT_TITLE_MAX",
    "SENSITIVE_WORDS",
    "TAG_DESCRIPTION_MAX",
    "TAG_NAME_MAX",
    "ValidationResult",
    "ensure_valid",
    "validate_prompt",
    "validate_prompt_create",
    "validate_prompt_update",
    "validate_tag",
    "validate_tag_create",
    "validate_tag_delete",
    "validate_tag_name_unique",
    "validate_tag_update",
]
