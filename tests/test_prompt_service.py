"""Tests for the prompt record service.

Updates:
  v0.5.0 - 2026-10-19 - Cover prompts stored under several key shapes.
  v0.4.0 - 2026-09-28 - Cover purge of documents with unusable ids.
  v0.3.0 - 2026-09-20 - Cover snapshot imports that mint fresh ids.
  v0.2.0 - 2026-09-08 - Cover usage tracking, favourites, and batch operations.
  v0.1.0 - 2026-08-27 - Initial CRUD, search, and stats coverage.
"""

from __future__ import annotations

import json
from datetime import timedelta
from typing import TYPE_CHECKING

import pytest

from core.prompt_service import PromptService, is_unusable_prompt_id, prompt_store_id
from core.store import DocumentStore, HostStoreBackend, SQLiteFallbackBackend
from models.common import format_timestamp, utc_now
from models.prompt_model import Prompt, PromptDraft, PromptPatch, PromptQuery

if TYPE_CHECKING:
    from pathlib import Path

    from tests.conftest import FakeHostStore


def _create(service: PromptService, content: str, **kwargs: object) -> Prompt:
    result = service.create(PromptDraft(content=content, **kwargs))  # type: ignore[arg-type]
    assert result.success, result.error
    assert result.data is not None
    return result.data


def test_create_assigns_id_and_matching_timestamps(prompt_service: PromptService) -> None:
    result = prompt_service.create(
        PromptDraft(content="Explain recursion", title=" Teach ", tags=["tag_1"], source="web")
    )

    assert result.success
    prompt = result.data
    assert prompt is not None
    assert prompt.id
    assert not is_unusable_prompt_id(prompt.id)
    assert prompt.title == "Teach"
    assert prompt.created_at == prompt.updated_at
    assert prompt.usage_count == 0
    assert prompt.is_favorite is False

    stored = prompt_service.get_by_id(prompt.id)
    assert stored == prompt


def test_create_rejects_invalid_drafts_without_writing(prompt_service: PromptService) -> None:
    result = prompt_service.create(PromptDraft(content="   "))

    assert not result.success
    assert result.error is not None
    assert "Content is required" in result.error
    assert prompt_service.list() == []


def test_create_surfaces_validation_warnings(prompt_service: PromptService) -> None:
    result = prompt_service.create(PromptDraft(content="rotate the secret key", tags=["a", "a"]))

    assert result.success
    assert result.warnings == [
        "Content may contain sensitive information",
        "Tags contain duplicate ids",
    ]


def test_update_merges_patch_and_advances_updated_at(prompt_service: PromptService) -> None:
    prompt = _create(prompt_service, "Original", title="First", tags=["a"], source="book")

    result = prompt_service.update(prompt.id, PromptPatch(title="Second"))

    assert result.success
    updated = result.data
    assert updated is not None
    assert updated.title == "Second"
    assert updated.content == "Original"
    assert updated.tags == ["a"]
    assert updated.source == "book"
    assert updated.created_at == prompt.created_at
    assert updated.updated_at > prompt.updated_at
    assert prompt_service.get_by_id(prompt.id) == updated


def test_successive_updates_strictly_increase_updated_at(prompt_service: PromptService) -> None:
    prompt = _create(prompt_service, "Tick")
    stamps = [prompt.updated_at]

    for index in range(5):
        result = prompt_service.update(prompt.id, PromptPatch(content=f"Tick {index}"))
        assert result.data is not None
        stamps.append(result.data.updated_at)

    assert stamps == sorted(stamps)
    assert len(set(stamps)) == len(stamps)


def test_update_missing_prompt_fails(prompt_service: PromptService) -> None:
    result = prompt_service.update("1700000000000_missing00", PromptPatch(title="x"))

    assert not result.success
    assert result.error == "Prompt 1700000000000_missing00 not found"


def test_update_rejects_invalid_patch(prompt_service: PromptService) -> None:
    prompt = _create(prompt_service, "Keep me")

    result = prompt_service.update(prompt.id, PromptPatch(content=""))

    assert not result.success
    stored = prompt_service.get_by_id(prompt.id)
    assert stored is not None and stored.content == "Keep me"


def test_remove_is_idempotent(prompt_service: PromptService) -> None:
    prompt = _create(prompt_service, "Short lived")

    assert prompt_service.remove(prompt.id).success
    assert prompt_service.get_by_id(prompt.id) is None
    assert prompt_service.remove(prompt.id).success


def test_usage_and_favourite_updates(prompt_service: PromptService) -> None:
    prompt = _create(prompt_service, "Count me")

    prompt_service.record_usage(prompt.id)
    prompt_service.record_usage(prompt.id)
    favourite = prompt_service.set_favorite(prompt.id, True)

    assert favourite.data is not None
    assert favourite.data.usage_count == 2
    assert favourite.data.is_favorite is True
    assert not prompt_service.record_usage("1700000000000_missing00").success


def test_get_by_id_hides_soft_deleted_and_unknown_records(
    fake_host: FakeHostStore,
    host_store: DocumentStore,
) -> None:
    service = PromptService(host_store)
    fake_host.seed(
        "prompt_manager_prompt_1700000000000_softdel01",
        {"content": "hidden", "isDeleted": True},
    )

    assert service.get_by_id("1700000000000_softdel01") is None
    assert service.get_by_id("") is None
    assert service.list() == []


def test_list_reads_legacy_shapes_and_keeps_the_newest_copy(
    fake_host: FakeHostStore,
    host_store: DocumentStore,
) -> None:
    """Duplicate copies under different key shapes collapse to one prompt."""
    service = PromptService(host_store)
    fake_host.seed(
        "prompt_1700000000000_legacy001",
        {"content": "old copy", "updatedAt": "2024-01-01T00:00:00Z", "tags": '["a"]'},
    )
    fake_host.seed(
        "prompt_manager_prompt_manager_prompt_1700000000000_legacy001",
        {"content": "new copy", "updatedAt": "2024-02-01T00:00:00Z"},
    )
    fake_host.seed(
        "prompt_manager_prompt_1700000000000_wrapped01",
        {"data": {"content": "wrapped", "title": "W"}},
    )
    fake_host.seed("prompt_manager_prompt_1700000000000_empty0001", {"title": "no content"})

    prompts = service.list()

    assert sorted(prompt.id for prompt in prompts) == [
        "1700000000000_legacy001",
        "1700000000000_wrapped01",
    ]
    by_id = {prompt.id: prompt for prompt in prompts}
    assert by_id["1700000000000_legacy001"].content == "new copy"
    assert by_id["1700000000000_wrapped01"].title == "W"


_DUPLICATED_ID = "1700000000000_abcdefghi"


def _seed_stale_and_fresh_copies(store: DocumentStore) -> None:
    """Store one prompt under the current key (older) and the bare legacy key (newer)."""
    stale = {
        "content": "old",
        "title": "t-old",
        "createdAt": "2024-01-01T00:00:00Z",
        "updatedAt": "2024-01-01T00:00:00Z",
    }
    fresh = {
        "content": "new",
        "title": "t-new",
        "createdAt": "2024-01-01T00:00:00Z",
        "updatedAt": "2024-06-01T00:00:00Z",
    }
    assert store.backend.write({"_id": f"prompt_manager_prompt_{_DUPLICATED_ID}", **stale}).ok
    assert store.backend.write({"_id": f"prompt_{_DUPLICATED_ID}", **fresh}).ok


def test_reads_and_updates_agree_on_the_newest_copy(prompt_service: PromptService) -> None:
    _seed_stale_and_fresh_copies(prompt_service.store)

    fetched = prompt_service.get_by_id(_DUPLICATED_ID)
    assert fetched is not None
    assert (fetched.content, fetched.title) == ("new", "t-new")
    assert prompt_service.list() == [fetched]

    updated = prompt_service.update(_DUPLICATED_ID, PromptPatch(is_favorite=True))

    assert updated.success, updated.error
    assert updated.data is not None
    assert (updated.data.content, updated.data.title) == ("new", "t-new")
    assert updated.data.is_favorite is True
    assert prompt_service.get_by_id(_DUPLICATED_ID) == updated.data
    assert prompt_service.list() == [updated.data]


def test_remove_deletes_every_stored_copy(prompt_service: PromptService) -> None:
    """A removed prompt must not resurface from an older key shape."""
    _seed_stale_and_fresh_copies(prompt_service.store)

    assert prompt_service.remove(_DUPLICATED_ID).success

    assert prompt_service.list() == []
    assert prompt_service.get_by_id(_DUPLICATED_ID) is None
    assert prompt_service.store.locate_all(prompt_store_id(_DUPLICATED_ID)) == []


def test_soft_deleted_newest_copy_hides_older_copies(
    fake_host: FakeHostStore,
    host_store: DocumentStore,
) -> None:
    service = PromptService(host_store)
    fake_host.seed(
        f"prompt_manager_prompt_{_DUPLICATED_ID}",
        {"content": "old", "updatedAt": "2024-01-01T00:00:00Z"},
    )
    fake_host.seed(
        f"prompt_{_DUPLICATED_ID}",
        {"content": "gone", "isDeleted": True, "updatedAt": "2024-06-01T00:00:00Z"},
    )

    assert service.get_by_id(_DUPLICATED_ID) is None
    assert service.list() == []


def test_list_orders_by_most_recent_update(prompt_service: PromptService) -> None:
    first = _create(prompt_service, "First")
    second = _create(prompt_service, "Second")
    prompt_service.update(first.id, PromptPatch(title="touched"))

    assert [prompt.id for prompt in prompt_service.list()] == [first.id, second.id]


def test_search_filters_by_keyword_tags_and_source(prompt_service: PromptService) -> None:
    _create(prompt_service, "Write a haiku", title="Poetry", tags=["tag_a"], source="Book")
    _create(prompt_service, "Summarise text", title="Summary", tags=["tag_b"], source="web")
    _create(prompt_service, "Translate POETRY", tags=["tag_a", "tag_c"], source="Web page")

    keyword = prompt_service.search(PromptQuery(keyword="poetry"))
    tagged = prompt_service.search(PromptQuery(tags=["tag_b", "tag_c"]))
    sourced = prompt_service.search(PromptQuery(source="WEB"))
    combined = prompt_service.search(PromptQuery(keyword="poetry", source="book"))

    assert keyword.total == 2
    assert {prompt.content for prompt in tagged.items} == {"Summarise text", "Translate POETRY"}
    assert {prompt.content for prompt in sourced.items} == {"Summarise text", "Translate POETRY"}
    assert [prompt.title for prompt in combined.items] == ["Poetry"]


def test_search_sorts_and_paginates(prompt_service: PromptService) -> None:
    for index in range(25):
        _create(prompt_service, f"Prompt body {index}", title=f"Title {index:02d}")

    pages = [
        prompt_service.search(PromptQuery(sort_by="title", page=page, limit=10))
        for page in (1, 2, 3)
    ]

    assert [len(page.items) for page in pages] == [10, 10, 5]
    assert [page.has_more for page in pages] == [True, True, False]
    assert all(page.total == 25 for page in pages)
    assert pages[0].items[0].title == "Title 00"
    assert pages[2].items[-1].title == "Title 24"

    descending = prompt_service.search(PromptQuery(sort_by="title", sort_order="desc", limit=1))
    assert descending.items[0].title == "Title 24"
    beyond = prompt_service.search(PromptQuery(page=4, limit=10))
    assert beyond.items == []
    assert not beyond.has_more


def test_search_uses_configured_page_size(store: DocumentStore) -> None:
    service = PromptService(store, page_size=3)
    for index in range(4):
        _create(service, f"Body {index}")

    page = service.search()

    assert page.limit == 3
    assert len(page.items) == 3
    assert page.has_more


def test_stats_counts_sources_tags_and_recent_prompts(
    fake_host: FakeHostStore,
    host_store: DocumentStore,
) -> None:
    service = PromptService(host_store, recent_window_days=7)
    _create(service, "One", tags=["tag_a", "tag_b"], source="web")
    _create(service, "Two", tags=["tag_a"], source="web")
    _create(service, "Three")
    old = format_timestamp(utc_now() - timedelta(days=30))
    fake_host.seed(
        "prompt_manager_prompt_1600000000000_oldprompt",
        {"content": "Old", "source": "book", "createdAt": old, "updatedAt": old},
    )

    stats = service.stats()

    assert stats.total == 4
    assert stats.tag_count == 2
    assert stats.recent_count == 3
    assert stats.source_stats == {"web": 2, "unknown": 1, "book": 1}


def test_batch_delete_and_update(prompt_service: PromptService) -> None:
    first = _create(prompt_service, "First")
    second = _create(prompt_service, "Second")

    updated = prompt_service.batch_operation(
        "update", [first.id, "1700000000000_missing00"], PromptPatch(is_favorite=True)
    )
    assert not updated.success
    assert (updated.total, updated.succeeded, updated.failed) == (2, 1, 1)
    assert updated.errors == ["1700000000000_missing00: Prompt 1700000000000_missing00 not found"]

    deleted = prompt_service.batch_operation("delete", [first.id, second.id])
    assert deleted.success
    assert deleted.succeeded == 2
    assert prompt_service.list() == []


def test_batch_rejects_unknown_operations(prompt_service: PromptService) -> None:
    result = prompt_service.batch_operation("archive", ["x"])

    assert not result.success
    assert result.errors == ["Unsupported batch operation: archive"]
    assert prompt_service.batch_operation("update", ["x"]).errors == [
        "x: Update requires a patch"
    ]


@pytest.mark.parametrize(
    ("prompt_id", "unusable"),
    [
        ("", True),
        ("undefined", True),
        ("null", True),
        ("abc_undefined_123", True),
        ("prompt_manager_x1234567", True),
        ("short", True),
        ("1700000000000_abcdefghi", False),
    ],
)
def test_unusable_prompt_ids(prompt_id: str, unusable: bool) -> None:
    assert is_unusable_prompt_id(prompt_id) is unusable


def test_purge_invalid_removes_only_bad_prompt_documents(
    fake_host: FakeHostStore,
    host_store: DocumentStore,
) -> None:
    service = PromptService(host_store)
    keeper = _create(service, "Keep me")
    fake_host.seed("prompt_manager_prompt_undefined", {"content": "bad"})
    fake_host.seed("prompt_manager_prompt_123", {"content": "too short"})
    fake_host.seed("prompt_manager_tag_1", {"name": "tag"})

    result = service.purge_invalid()

    assert result.success
    assert sorted(result.removed) == [
        "prompt_manager_prompt_123",
        "prompt_manager_prompt_undefined",
    ]
    assert [prompt.id for prompt in service.list()] == [keeper.id]
    assert host_store.get("tag_1") is not None


def test_export_then_import_reproduces_prompts(
    prompt_service: PromptService,
    tmp_path: Path,
) -> None:
    _create(prompt_service, "Alpha", title="A", tags=["tag_x"], source="web")
    beta = _create(prompt_service, "Beta")
    prompt_service.update(beta.id, PromptPatch(is_favorite=True, usage_count=4))

    exported = prompt_service.export_data()
    assert exported.success
    assert exported.count == 2
    assert exported.data is not None
    payload = json.loads(exported.data)
    assert payload["version"] == "1.0.0"
    expected_ids = {prompt.id for prompt in prompt_service.list()}
    assert {entry["id"] for entry in payload["data"]} == expected_ids

    target = PromptService(DocumentStore(SQLiteFallbackBackend(tmp_path / "copy.db")))
    imported = target.import_data(exported.data)

    assert imported.success
    assert imported.imported == 2
    assert sorted(target.list(), key=lambda p: p.id) == sorted(
        prompt_service.list(), key=lambda p: p.id
    )


def test_import_with_fresh_ids_creates_new_prompts(
    prompt_service: PromptService,
    fake_host: FakeHostStore,
) -> None:
    source = _create(prompt_service, "Shared", title="S", tags=["tag_1"])
    snapshot = prompt_service.export_data().data
    assert snapshot is not None

    target = PromptService(DocumentStore(HostStoreBackend(fake_host)))
    result = target.import_data(snapshot, preserve_ids=False)

    assert result.success
    prompts = target.list()
    assert len(prompts) == 1
    assert prompts[0].id != source.id
    assert (prompts[0].content, prompts[0].title, prompts[0].tags) == ("Shared", "S", ["tag_1"])


def test_import_reports_invalid_entries(prompt_service: PromptService) -> None:
    snapshot = {
        "data": [
            {"id": "1700000000000_imported1", "content": "Fine"},
            {"id": "1700000000000_imported2", "content": ""},
            {"content": "no id"},
            42,
        ]
    }

    result = prompt_service.import_data(snapshot)

    assert not result.success
    assert result.imported == 1
    assert result.errors == [
        "Entry 2: Content is required",
        "Entry 3: missing id",
        "Entry 4: expected an object",
    ]
    assert prompt_service.get_by_id("1700000000000_imported1") is not None


def test_import_rejects_malformed_snapshot(prompt_service: PromptService) -> None:
    result = prompt_service.import_data("{broken")

    assert not result.success
    assert result.imported == 0
    assert result.errors and result.errors[0].startswith("Snapshot is not valid JSON")


def test_prompt_store_ids_carry_the_segment() -> None:
    assert prompt_store_id("abc") == "prompt_abc"
