"""Tests for prompt and tag validation rules.

Updates:
  v0.2.0 - 2026-09-14 - Cover tag delete warnings and case-insensitive name checks.
  v0.1.0 - 2026-08-27 - Initial prompt/tag field rule coverage.
"""

from __future__ import annotations

from datetime import timedelta

import pytest

from core.exceptions import RecordValidationError
from core.validation import (
    ValidationResult,
    ensure_valid,
    validate_prompt,
    validate_prompt_create,
    validate_prompt_update,
    validate_tag,
    validate_tag_create,
    validate_tag_delete,
    validate_tag_name_unique,
    validate_tag_update,
)
from models.common import utc_now
from models.prompt_model import Prompt, PromptDraft, PromptPatch
from models.tag_model import Tag, TagColor, TagDraft, TagPatch


def test_prompt_create_accepts_minimal_draft() -> None:
    result = validate_prompt_create(PromptDraft(content="Summarise this"))
    assert result.is_valid
    assert result.errors == []
    assert result.warnings == []


@pytest.mark.parametrize("content", ["", "   "])
def test_prompt_create_requires_content(content: str) -> None:
    result = validate_prompt_create(PromptDraft(content=content))
    assert not result.is_valid
    assert "Content is required" in result.errors


def test_prompt_create_enforces_length_limits() -> None:
    result = validate_prompt_create(
        PromptDraft(content="x" * 10_001, title="t" * 101, source="s" * 201)
    )
    assert result.errors == [
        "Title must be at most 100 characters",
        "Content must be at most 10000 characters",
        "Source must be at most 200 characters",
    ]


def test_prompt_create_warns_about_long_and_sensitive_content() -> None:
    result = validate_prompt_create(PromptDraft(content="my password " + "x" * 5_000))
    assert result.is_valid
    assert result.warnings == [
        "Content is long; consider trimming it",
        "Content may contain sensitive information",
    ]


def test_prompt_tags_are_limited_and_checked_for_duplicates() -> None:
    too_many = validate_prompt_create(PromptDraft(content="x", tags=[f"t{i}" for i in range(11)]))
    assert "Tags must contain at most 10 entries" in too_many.errors

    duplicated = validate_prompt_create(PromptDraft(content="x", tags=["a", "a"]))
    assert duplicated.is_valid
    assert duplicated.warnings == ["Tags contain duplicate ids"]

    blank = validate_prompt_create(PromptDraft(content="x", tags=["a", " "]))
    assert blank.errors == ["Tag 2 has an invalid id"]


def test_prompt_update_checks_only_present_fields() -> None:
    assert validate_prompt_update(PromptPatch()).is_valid
    assert validate_prompt_update(PromptPatch(title="new title")).is_valid

    result = validate_prompt_update(PromptPatch(content="", usage_count=-1))
    assert result.errors == ["Content is required", "Usage count must be a non-negative integer"]


def test_full_prompt_rejects_inverted_timestamps() -> None:
    now = utc_now()
    prompt = Prompt(id="p1", content="x", created_at=now, updated_at=now - timedelta(seconds=1))

    result = validate_prompt(prompt)

    assert result.errors == ["Updated time cannot be earlier than created time"]


def test_full_prompt_requires_an_id() -> None:
    assert "ID is required" in validate_prompt(Prompt(id="", content="x")).errors


def test_tag_create_accepts_cjk_and_ascii_names() -> None:
    assert validate_tag_create(TagDraft(name="工作")).is_valid
    assert validate_tag_create(TagDraft(name="my-tag", color="info")).is_valid


def test_tag_name_rules() -> None:
    assert validate_tag_create(TagDraft(name="")).errors == ["Name is required"]
    assert validate_tag_create(TagDraft(name="toolong")).errors == [
        "Name must be at most 6 characters"
    ]
    assert validate_tag_create(TagDraft(name="a!b")).errors == [
        "Name may only contain CJK characters, letters, digits, spaces, hyphens and underscores"
    ]
    at_limit = validate_tag_create(TagDraft(name="abcdef"))
    assert at_limit.is_valid
    assert at_limit.warnings == ["Name has reached the maximum length"]


def test_tag_color_and_description_rules() -> None:
    result = validate_tag_create(TagDraft(name="ok", color="magenta", description="d" * 101))
    assert result.errors == [
        "Color 'magenta' is not supported",
        "Description must be at most 100 characters",
    ]


def test_tag_update_checks_only_present_fields() -> None:
    assert validate_tag_update(TagPatch()).is_valid
    assert validate_tag_update(TagPatch(color=TagColor.LIME)).is_valid
    assert not validate_tag_update(TagPatch(name="")).is_valid


def test_full_tag_rejects_negative_prompt_counts() -> None:
    tag = Tag(id="tag_1", name="work", prompt_count=-1)
    assert validate_tag(tag).errors == ["Prompt count must be a non-negative integer"]


def test_tag_delete_warns_about_references() -> None:
    tag = Tag(id="tag_1", name="work", prompt_count=3)

    warned = validate_tag_delete(tag)
    forced = validate_tag_delete(tag, force=True)

    assert warned.is_valid
    assert warned.warnings == [
        "Tag is associated with 3 prompt(s); those references will dangle"
    ]
    assert forced.warnings == []


def test_tag_name_uniqueness_ignores_case_and_excluded_id() -> None:
    existing = [Tag(id="tag_1", name="Work")]

    clash = validate_tag_name_unique(" work ", existing)

    assert clash.errors == ["Tag name 'work' already exists"]
    assert validate_tag_name_unique("work", existing, exclude_id="tag_1").is_valid
    assert validate_tag_name_unique("home", existing).is_valid


def test_merge_deduplicates_messages() -> None:
    left = ValidationResult.from_messages(["a"], ["w"])
    right = ValidationResult.from_messages(["a", "b"], ["w"])

    merged = left.merge(right)

    assert not merged.is_valid
    assert merged.errors == ["a", "b"]
    assert merged.warnings == ["w"]


def test_ensure_valid_raises_with_messages() -> None:
    result = ValidationResult.from_messages(["Content is required"], ["hint"])

    with pytest.raises(RecordValidationError) as excinfo:
        ensure_valid(result, "Prompt create")

    assert str(excinfo.value) == "Prompt create validation failed: Content is required"
    assert excinfo.value.errors == ["Content is required"]
    assert excinfo.value.warnings == ["hint"]
    ensure_valid(ValidationResult())
