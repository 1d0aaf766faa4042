"""Tag record service: CRUD, search, stats, prompt counters, and snapshots.

Tags are stored under their own id (``tag_<epoch-ms>_<suffix>``); a legacy
shape ``tags_<tag id>`` is still read. ``prompt_count`` is a projection the
caller maintains; removing a tag never rewrites prompts that reference it.

Updates:
  v0.4.0 - 2026-10-19 - Resolve tags to the newest stored copy and remove every copy.
  v0.3.0 - 2026-09-20 - Re-mint colliding ids when importing tag snapshots.
  v0.2.0 - 2026-09-08 - Add batch prompt-count updates and tag statistics.
  v0.1.0 - 2026-08-27 - Introduce TagService over the shared DocumentStore.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Mapping, Sequence
from typing import Any, Literal, cast

from models.common import mint_record_id, next_timestamp, utc_now
from models.tag_model import TAG_ID_PREFIX, Tag, TagColor, TagDraft, TagPatch, TagQuery

from .exceptions import PromptShelfError, RecordNotFoundError, SnapshotFormatError
from .record_service import RecordService, guarded, latest_by_id, paginate
from .results import (
    BatchOperationResult,
    ExportResult,
    ImportResult,
    OperationResult,
    SearchPage,
    TagDeleteResult,
    TagStats,
)
from .store import DocumentStore, StoredDocument, split_record_id
from .validation import (
    ensure_valid,
    validate_tag,
    validate_tag_create,
    validate_tag_delete,
    validate_tag_name_unique,
    validate_tag_update,
)

logger = logging.getLogger("prompt_shelf.tags")

LEGACY_TAG_STORE_PREFIX = "tags_"

BatchAction = Literal["delete", "update"]


def tag_id_from_document(document: StoredDocument) -> str:
    """Return the ``tag_...`` id encoded in a tag document key."""
    return f"{TAG_ID_PREFIX}{split_record_id(document.id, TAG_ID_PREFIX)}"


def _tag_store_ids(tag_id: str) -> tuple[str, str]:
    return tag_id, f"{LEGACY_TAG_STORE_PREFIX}{tag_id}"


class TagService(RecordService):
    """Manage tag records stored in the shared document store."""

    record_label = "Tag"

    # Reads -------------------------------------------------------------- #

    def get_by_id(self, tag_id: str) -> Tag | None:
        """Return the active tag for *tag_id*, or None."""
        found = self._find(tag_id)
        if found is None:
            return None
        return found[1]

    def list(self) -> list[Tag]:
        """Return active tags, oldest first."""
        tags: list[Tag] = []
        for document in self._store.enumerate(TAG_ID_PREFIX):
            tag = Tag.from_document(tag_id_from_document(document), document.fields)
            if not tag.name:
                logger.debug("Skipping tag document without a name %s", document.key)
                continue
            tags.append(tag)
        active = [tag for tag in latest_by_id(tags) if not tag.is_deleted]
        active.sort(key=lambda tag: tag.created_at)
        return active

    def search(self, query: TagQuery | None = None) -> SearchPage[Tag]:
        """Filter, sort, and paginate tags."""
        query = query or TagQuery()
        tags = self.list()
        keyword = (query.keyword or "").strip().casefold()
        if keyword:
            tags = [
                tag
                for tag in tags
                if keyword in tag.name.casefold() or keyword in (tag.description or "").casefold()
            ]
        if query.color is not None:
            color = TagColor.parse(query.color)
            tags = [tag for tag in tags if tag.color is color]
        if not query.include_empty:
            tags = [tag for tag in tags if tag.prompt_count > 0]
        if query.sort_by == "name":
            tags.sort(key=lambda tag: tag.name.casefold(), reverse=query.sort_order == "desc")
        elif query.sort_by == "prompt_count":
            tags.sort(key=lambda tag: tag.prompt_count, reverse=query.sort_order == "desc")
        elif query.sort_by == "created_at":
            tags.sort(key=lambda tag: tag.created_at, reverse=query.sort_order == "desc")
        elif query.sort_by == "updated_at":
            tags.sort(key=lambda tag: tag.updated_at, reverse=query.sort_order == "desc")
        return paginate(tags, query.page, self._page_limit(query.limit))

    def stats(self) -> TagStats:
        """Return usage and colour counters over active tags."""
        tags = self.list()
        used = sum(1 for tag in tags if tag.prompt_count > 0)
        total_prompts = sum(tag.prompt_count for tag in tags)
        return TagStats(
            total=len(tags),
            used=used,
            unused=len(tags) - used,
            color_stats=dict(Counter(tag.color.value for tag in tags)),
            average_prompt_count=round(total_prompts / len(tags), 2) if tags else 0.0,
        )

    # Writes ------------------------------------------------------------- #

    def create(self, draft: TagDraft) -> OperationResult[Tag]:
        """Validate *draft* and store it as a new tag; names are unique ignoring case."""
        return guarded(lambda: self._create(draft), "Tag create")

    def update(self, tag_id: str, patch: TagPatch) -> OperationResult[Tag]:
        """Merge *patch* onto the stored tag."""
        return guarded(lambda: self._update(tag_id, patch), f"Tag update {tag_id}")

    def remove(self, tag_id: str) -> TagDeleteResult:
        """Delete *tag_id* and report how many prompts referenced it."""
        found = self._find(tag_id)
        if found is None:
            return TagDeleteResult(success=False, error=f"Tag {tag_id} not found")
        _, tag = found
        warnings = validate_tag_delete(tag).warnings
        errors: list[str] = []
        for store_id in _tag_store_ids(tag_id):
            removed = self._store.remove(store_id)
            if not removed.ok:
                errors.append(removed.error or f"Unable to remove tag {store_id}")
        if errors:
            logger.warning("Tag remove %s failed: %s", tag_id, "; ".join(errors))
            return TagDeleteResult(success=False, error="; ".join(errors))
        logger.info("Removed tag %s (%d referencing prompts)", tag.id, tag.prompt_count)
        message = "Tag removed"
        if warnings:
            message = f"{message}; {warnings[0]}"
        return TagDeleteResult(
            success=True,
            deleted_tag=tag,
            affected_prompts=tag.prompt_count,
            message=message,
        )

    def batch_operation(
        self,
        operation: BatchAction | str,
        ids: Sequence[str],
        patch: TagPatch | None = None,
    ) -> BatchOperationResult:
        """Apply *operation* to every id independently."""
        result = BatchOperationResult()
        if operation not in ("delete", "update"):
            result.success = False
            result.errors.append(f"Unsupported batch operation: {operation}")
            return result
        for tag_id in ids:
            if operation == "delete":
                removed = self.remove(tag_id)
                error = None if removed.success else removed.error or "failed"
            elif patch is None:
                error = "Update requires a patch"
            else:
                outcome = self.update(tag_id, patch)
                error = None if outcome.success else outcome.error or "failed"
            result.record(tag_id, error)
        result.success = result.failed == 0
        logger.info("Tag batch %s finished: %s", operation, result.summary())
        return result

    def update_prompt_count(self, tag_id: str, count: int) -> bool:
        """Store a recomputed prompt counter; False when the tag is missing or the write fails."""
        found = self._find(tag_id)
        if found is None:
            return False
        document, tag = found
        updated = tag.with_prompt_count(count, updated_at=next_timestamp(tag.updated_at))
        try:
            self._write(document.id, updated.to_document())
        except PromptShelfError as exc:
            logger.warning("Prompt count update for %s failed: %s", tag_id, exc)
            return False
        return True

    def batch_update_prompt_counts(self, counts: Mapping[str, int]) -> BatchOperationResult:
        """Apply several prompt counters, one independent write per tag."""
        result = BatchOperationResult()
        for tag_id, count in counts.items():
            ok = self.update_prompt_count(tag_id, count)
            result.record(tag_id, None if ok else "tag missing or write rejected")
        result.success = result.failed == 0
        return result

    # Snapshots ---------------------------------------------------------- #

    def export_data(self) -> ExportResult:
        """Serialize every active tag into a snapshot."""
        tags = self.list()
        try:
            snapshot = DocumentStore.dump_snapshot(
                {**tag.to_document(), "id": tag.id} for tag in tags
            )
        except PromptShelfError as exc:
            logger.warning("Tag export failed: %s", exc)
            return ExportResult(success=False, error=str(exc))
        return ExportResult(success=True, data=snapshot, count=len(tags))

    def import_data(self, snapshot: str | bytes | Mapping[str, Any]) -> ImportResult:
        """Import tags, minting a fresh id when an entry collides with a stored tag."""
        try:
            entries = DocumentStore.load_snapshot(snapshot)
        except SnapshotFormatError as exc:
            logger.warning("Rejected tag snapshot: %s", exc)
            return ImportResult(success=False, errors=[str(exc)])
        result = ImportResult(success=True)
        known = self.list()
        for position, entry in enumerate(entries, start=1):
            if not isinstance(entry, Mapping):
                result.errors.append(f"Entry {position}: expected an object")
                continue
            fields = cast("Mapping[str, Any]", entry)
            tag, error = self._prepare_import(fields, known)
            if tag is None:
                result.errors.append(f"Entry {position}: {error}")
                continue
            try:
                self._write(tag.id, tag.to_document())
            except PromptShelfError as exc:
                result.errors.append(f"Entry {position}: {exc}")
                continue
            known.append(tag)
            result.imported += 1
        result.success = not result.errors
        logger.info("Tag import finished: %s", result.summary())
        return result

    # Internal helpers --------------------------------------------------- #

    def _copies(self, tag_id: str) -> list[tuple[StoredDocument, Tag]]:
        copies: list[tuple[StoredDocument, Tag]] = []
        for store_id in _tag_store_ids(tag_id):
            for document in self._store.locate_all(store_id):
                tag = Tag.from_document(tag_id_from_document(document), document.fields)
                copies.append((document, tag))
        return copies

    def _find(self, tag_id: str) -> tuple[StoredDocument, Tag] | None:
        """Return the newest stored copy of *tag_id* unless it is soft-deleted."""
        if not tag_id:
            return None
        copies = self._copies(tag_id)
        if not copies:
            return None
        document, tag = max(copies, key=lambda entry: entry[1].updated_at)
        if tag.is_deleted:
            return None
        return document, tag

    def _require(self, tag_id: str) -> tuple[StoredDocument, Tag]:
        found = self._find(tag_id)
        if found is None:
            raise RecordNotFoundError(f"Tag {tag_id} not found")
        return found

    def _create(self, draft: TagDraft) -> OperationResult[Tag]:
        validation = validate_tag_create(draft)
        ensure_valid(validation, "Tag create")
        ensure_valid(validate_tag_name_unique(draft.name, self.list()), "Tag create")
        now = utc_now()
        tag = Tag(
            id=mint_record_id(TAG_ID_PREFIX),
            name=draft.name.strip(),
            color=TagColor.parse(draft.color, TagColor.PRIMARY) or TagColor.PRIMARY,
            description=(draft.description or "").strip() or None,
            created_at=now,
            updated_at=now,
        )
        self._write(tag.id, tag.to_document())
        logger.info("Created tag %s (%s)", tag.id, tag.name)
        return OperationResult.ok(tag, validation.warnings)

    def _update(self, tag_id: str, patch: TagPatch) -> OperationResult[Tag]:
        validation = validate_tag_update(patch)
        ensure_valid(validation, "Tag update")
        document, current = self._require(tag_id)
        if patch.name is not None:
            ensure_valid(
                validate_tag_name_unique(patch.name, self.list(), exclude_id=current.id),
                "Tag update",
            )
        updated = patch.apply(current, updated_at=next_timestamp(current.updated_at))
        validation = validation.merge(validate_tag(updated))
        ensure_valid(validation, "Tag update")
        self._write(document.id, updated.to_document())
        logger.debug("Updated tag %s", updated.id)
        return OperationResult.ok(updated, validation.warnings)

    def _prepare_import(
        self, fields: Mapping[str, Any], known: Sequence[Tag]
    ) -> tuple[Tag | None, str | None]:
        raw_id = self._store.codec.logical_id(str(fields.get("id") or "").strip())
        tag_id = f"{TAG_ID_PREFIX}{split_record_id(raw_id, TAG_ID_PREFIX)}" if raw_id else ""
        if not tag_id or tag_id == TAG_ID_PREFIX:
            tag_id = mint_record_id(TAG_ID_PREFIX)
        elif any(tag.id == tag_id for tag in known) or self._find(tag_id) is not None:
            tag_id = mint_record_id(TAG_ID_PREFIX)
        tag = Tag.from_document(tag_id, fields)
        validation = validate_tag(tag).merge(validate_tag_name_unique(tag.name, known))
        if not validation.is_valid:
            return None, "; ".join(validation.errors)
        return tag, None


__all__ = [
    "LEGACY_TAG_STORE_PREFIX",
    "TagService",
    "tag_id_from_document",
]
