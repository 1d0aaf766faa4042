"""Prompt record service: CRUD, search, stats, batch, and snapshot operations.

Prompts are stored under store id ``prompt_<id>``. Older releases wrote the
same record under bare and double-prefixed keys; the domain id is always the
part of the key after the last ``prompt_`` so every shape maps to one prompt.

Updates:
  v0.5.0 - 2026-10-19 - Remove every stored copy of a prompt; hide soft deletes after dedupe.
  v0.4.0 - 2026-09-28 - Add purge of documents with unusable ids.
  v0.3.0 - 2026-09-20 - Support catalogue-merge imports that mint fresh ids.
  v0.2.0 - 2026-09-08 - Add usage tracking and favourite toggles.
  v0.1.0 - 2026-08-27 - Introduce PromptService over the shared DocumentStore.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Mapping, Sequence
from datetime import timedelta
from typing import TYPE_CHECKING, Any, Literal, cast

from models.common import mint_record_id, next_timestamp, utc_now
from models.prompt_model import Prompt, PromptDraft, PromptPatch, PromptQuery

from .exceptions import PromptShelfError, RecordNotFoundError, SnapshotFormatError
from .record_service import DEFAULT_PAGE_SIZE, RecordService, guarded, latest_by_id, paginate
from .results import (
    BatchOperationResult,
    ExportResult,
    ImportResult,
    OperationResult,
    PromptStats,
    PurgeResult,
    SearchPage,
)
from .store import DocumentStore, split_record_id
from .validation import (
    ensure_valid,
    validate_prompt,
    validate_prompt_create,
    validate_prompt_update,
)

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger("prompt_shelf.prompts")

PROMPT_SEGMENT = "prompt_"
DEFAULT_RECENT_WINDOW_DAYS = 7
UNKNOWN_SOURCE = "unknown"
_MIN_VALID_ID_LENGTH = 10

BatchAction = Literal["delete", "update"]


def prompt_store_id(prompt_id: str) -> str:
    """Return the store id used for *prompt_id*."""
    return f"{PROMPT_SEGMENT}{prompt_id}"


def is_unusable_prompt_id(prompt_id: str) -> bool:
    """Return True for ids written by buggy releases (``undefined``, truncated, re-prefixed)."""
    return (
        not prompt_id
        or prompt_id in {"undefined", "null"}
        or "undefined" in prompt_id
        or "manager" in prompt_id
        or len(prompt_id) < _MIN_VALID_ID_LENGTH
    )


class PromptService(RecordService):
    """Manage prompt records stored in the shared document store."""

    record_label = "Prompt"

    def __init__(
        self,
        store: DocumentStore,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        recent_window_days: int = DEFAULT_RECENT_WINDOW_DAYS,
    ) -> None:
        super().__init__(store, page_size=page_size)
        self._recent_window = timedelta(days=max(recent_window_days, 0))

    # Reads -------------------------------------------------------------- #

    def get_by_id(self, prompt_id: str) -> Prompt | None:
        """Return the active prompt for *prompt_id*, or None."""
        if not prompt_id:
            return None
        document = self._store.get(prompt_store_id(prompt_id))
        if document is None:
            return None
        prompt = Prompt.from_document(
            split_record_id(document.id, PROMPT_SEGMENT), document.fields
        )
        if prompt.is_deleted:
            return None
        return prompt

    def list(self) -> list[Prompt]:
        """Return active prompts, most recently updated first."""
        prompts: list[Prompt] = []
        for document in self._store.enumerate(PROMPT_SEGMENT):
            prompt = Prompt.from_document(
                split_record_id(document.id, PROMPT_SEGMENT), document.fields
            )
            if not prompt.id or not prompt.content.strip():
                logger.debug("Skipping prompt document without content %s", document.key)
                continue
            prompts.append(prompt)
        active: list[Prompt] = []
        for prompt in latest_by_id(prompts):
            if prompt.is_deleted:
                logger.debug("Skipping soft-deleted prompt %s", prompt.id)
                continue
            active.append(prompt)
        active.sort(key=lambda prompt: prompt.updated_at, reverse=True)
        return active

    def search(self, query: PromptQuery | None = None) -> SearchPage[Prompt]:
        """Filter, sort, and paginate prompts."""
        query = query or PromptQuery()
        prompts = self.list()
        keyword = (query.keyword or "").strip().casefold()
        if keyword:
            prompts = [
                prompt
                for prompt in prompts
                if keyword in prompt.title.casefold() or keyword in prompt.content.casefold()
            ]
        if query.tags:
            wanted = {str(tag) for tag in query.tags}
            prompts = [prompt for prompt in prompts if wanted.intersection(prompt.tags)]
        source = (query.source or "").strip().casefold()
        if source:
            prompts = [prompt for prompt in prompts if source in prompt.source.casefold()]
        sort_key = _PROMPT_SORT_KEYS.get(query.sort_by or "")
        if sort_key is not None:
            prompts.sort(key=sort_key, reverse=query.sort_order == "desc")
        return paginate(prompts, query.page, self._page_limit(query.limit))

    def stats(self) -> PromptStats:
        """Return counts over active prompts."""
        prompts = self.list()
        cutoff = utc_now() - self._recent_window
        tag_ids = {tag for prompt in prompts for tag in prompt.tags}
        sources = Counter(prompt.source or UNKNOWN_SOURCE for prompt in prompts)
        return PromptStats(
            total=len(prompts),
            tag_count=len(tag_ids),
            recent_count=sum(1 for prompt in prompts if prompt.created_at >= cutoff),
            source_stats=dict(sources),
        )

    # Writes ------------------------------------------------------------- #

    def create(self, draft: PromptDraft) -> OperationResult[Prompt]:
        """Validate *draft* and store it as a new prompt."""
        return guarded(lambda: self._create(draft), "Prompt create")

    def update(self, prompt_id: str, patch: PromptPatch) -> OperationResult[Prompt]:
        """Merge *patch* onto the stored prompt; omitted fields stay unchanged."""
        return guarded(lambda: self._update(prompt_id, patch), f"Prompt update {prompt_id}")

    def remove(self, prompt_id: str) -> OperationResult[None]:
        """Delete *prompt_id*; removing a missing prompt succeeds."""
        return guarded(lambda: self._remove(prompt_id), f"Prompt remove {prompt_id}")

    def record_usage(self, prompt_id: str) -> OperationResult[Prompt]:
        """Increment the usage counter of *prompt_id*."""

        def _bump() -> OperationResult[Prompt]:
            current = self._require(prompt_id)
            return self._update(prompt_id, PromptPatch(usage_count=current.usage_count + 1))

        return guarded(_bump, f"Prompt usage {prompt_id}")

    def set_favorite(self, prompt_id: str, favorite: bool) -> OperationResult[Prompt]:
        """Mark or unmark *prompt_id* as a favourite."""
        return self.update(prompt_id, PromptPatch(is_favorite=bool(favorite)))

    def batch_operation(
        self,
        operation: BatchAction | str,
        ids: Sequence[str],
        patch: PromptPatch | None = None,
    ) -> BatchOperationResult:
        """Apply *operation* to every id independently."""
        result = BatchOperationResult()
        if operation not in ("delete", "update"):
            result.success = False
            result.errors.append(f"Unsupported batch operation: {operation}")
            return result
        for prompt_id in ids:
            if operation == "delete":
                outcome: OperationResult[Any] = self.remove(prompt_id)
            elif patch is None:
                outcome = OperationResult.fail("Update requires a patch")
            else:
                outcome = self.update(prompt_id, patch)
            result.record(prompt_id, None if outcome.success else outcome.error or "failed")
        result.success = result.failed == 0
        logger.info("Prompt batch %s finished: %s", operation, result.summary())
        return result

    def purge_invalid(self) -> PurgeResult:
        """Remove prompt documents whose extracted id is unusable."""
        result = PurgeResult()
        for document in self._store.enumerate(PROMPT_SEGMENT):
            prompt_id = split_record_id(document.id, PROMPT_SEGMENT)
            if not is_unusable_prompt_id(prompt_id):
                continue
            removed = self._store.remove(document)
            if removed.ok:
                result.removed.append(document.key)
                logger.info("Purged prompt document with unusable id %s", document.key)
            else:
                result.errors.append(f"{document.key}: {removed.error}")
        result.success = not result.errors
        return result

    # Snapshots ---------------------------------------------------------- #

    def export_data(self) -> ExportResult:
        """Serialize every active prompt into a snapshot."""
        prompts = self.list()
        try:
            snapshot = DocumentStore.dump_snapshot(
                {**prompt.to_document(), "id": prompt.id} for prompt in prompts
            )
        except PromptShelfError as exc:
            logger.warning("Prompt export failed: %s", exc)
            return ExportResult(success=False, error=str(exc))
        return ExportResult(success=True, data=snapshot, count=len(prompts))

    def import_data(
        self,
        snapshot: str | bytes | Mapping[str, Any],
        *,
        preserve_ids: bool = True,
    ) -> ImportResult:
        """Import prompts from a snapshot.

        With ``preserve_ids`` entries keep their ids and timestamps; otherwise
        each entry is created afresh with a new id.
        """
        try:
            entries = DocumentStore.load_snapshot(snapshot)
        except SnapshotFormatError as exc:
            logger.warning("Rejected prompt snapshot: %s", exc)
            return ImportResult(success=False, errors=[str(exc)])
        result = ImportResult(success=True)
        for position, entry in enumerate(entries, start=1):
            if not isinstance(entry, Mapping):
                result.errors.append(f"Entry {position}: expected an object")
                continue
            fields = cast("Mapping[str, Any]", entry)
            if preserve_ids:
                error = self._import_preserving_id(fields)
            else:
                outcome = self.create(
                    PromptDraft(
                        content=str(fields.get("content") or ""),
                        title=str(fields.get("title") or ""),
                        tags=Prompt.from_document("", fields).tags,
                        source=str(fields.get("source") or ""),
                    )
                )
                error = None if outcome.success else outcome.error
            if error is None:
                result.imported += 1
            else:
                result.errors.append(f"Entry {position}: {error}")
        result.success = not result.errors
        logger.info("Prompt import finished: %s", result.summary())
        return result

    # Internal helpers --------------------------------------------------- #

    def _require(self, prompt_id: str) -> Prompt:
        prompt = self.get_by_id(prompt_id)
        if prompt is None:
            raise RecordNotFoundError(f"Prompt {prompt_id} not found")
        return prompt

    def _create(self, draft: PromptDraft) -> OperationResult[Prompt]:
        validation = validate_prompt_create(draft)
        ensure_valid(validation, "Prompt create")
        now = utc_now()
        prompt = Prompt(
            id=mint_record_id(),
            content=draft.content,
            title=(draft.title or "").strip(),
            tags=[str(tag) for tag in draft.tags or ()],
            source=(draft.source or "").strip(),
            created_at=now,
            updated_at=now,
        )
        self._write(prompt_store_id(prompt.id), prompt.to_document())
        logger.info("Created prompt %s", prompt.id)
        return OperationResult.ok(prompt, validation.warnings)

    def _update(self, prompt_id: str, patch: PromptPatch) -> OperationResult[Prompt]:
        validation = validate_prompt_update(patch)
        ensure_valid(validation, "Prompt update")
        current = self._require(prompt_id)
        updated = patch.apply(current, updated_at=next_timestamp(current.updated_at))
        validation = validation.merge(validate_prompt(updated))
        ensure_valid(validation, "Prompt update")
        self._write(prompt_store_id(updated.id), updated.to_document())
        logger.debug("Updated prompt %s", updated.id)
        return OperationResult.ok(updated, validation.warnings)

    def _remove(self, prompt_id: str) -> OperationResult[None]:
        if not prompt_id:
            return OperationResult.ok()
        removed = self._store.remove(prompt_store_id(prompt_id))
        if not removed.ok:
            return OperationResult.fail(removed.error or f"Unable to remove prompt {prompt_id}")
        logger.info("Removed prompt %s", prompt_id)
        return OperationResult.ok()

    def _import_preserving_id(self, fields: Mapping[str, Any]) -> str | None:
        raw_id = str(fields.get("id") or "").strip()
        prompt_id = split_record_id(self._store.codec.logical_id(raw_id), PROMPT_SEGMENT)
        if not prompt_id:
            return "missing id"
        prompt = Prompt.from_document(prompt_id, fields)
        validation = validate_prompt(prompt)
        if not validation.is_valid:
            return "; ".join(validation.errors)
        try:
            self._write(prompt_store_id(prompt.id), prompt.to_document())
        except PromptShelfError as exc:
            return str(exc)
        return None


_PROMPT_SORT_KEYS: dict[str, Callable[[Prompt], Any]] = {
    "title": lambda prompt: prompt.title.casefold(),
    "created_at": lambda prompt: prompt.created_at,
    "updated_at": lambda prompt: prompt.updated_at,
}


__all__ = [
    "DEFAULT_RECENT_WINDOW_DAYS",
    "PROMPT_SEGMENT",
    "PromptService",
    "is_unusable_prompt_id",
    "prompt_store_id",
]
