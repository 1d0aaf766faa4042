"""Core service layer for Prompt Shelf.

Updates:
  v0.3.0 - 2026-09-28 - Export purge results and the shared RecordService base.
  v0.2.0 - 2026-09-14 - Export build_services factory for shared bootstrap.
  v0.1.0 - 2026-08-27 - Surface DocumentStore, PromptService, and TagService.
"""

from models.prompt_model import Prompt, PromptDraft, PromptPatch, PromptQuery
from models.tag_model import Tag, TagColor, TagDraft, TagPatch, TagQuery

from .exceptions import (
    BackendUnavailableError,
    PromptShelfError,
    RecordNotFoundError,
    RecordValidationError,
    RevisionConflictError,
    SerializationFailureError,
    SnapshotFormatError,
    StoreError,
)
from .factory import ServiceContainer, build_document_store, build_services
from .prompt_service import PromptService
from .record_service import RecordService
from .results import (
    BatchOperationResult,
    ExportResult,
    ImportResult,
    OperationResult,
    PromptStats,
    PurgeResult,
    SearchPage,
    TagDeleteResult,
    TagStats,
)
from .store import (
    BulkOperation,
    DocumentStore,
    HostDocumentAPI,
    ImportReport,
    KeyCodec,
    RemoveResult,
    StoredDocument,
    WriteResult,
)
from .tag_service import TagService
from .validation import (
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

__all__ = [
    "BackendUnavailableError",
    "BatchOperationResult",
    "BulkOperation",
    "DocumentStore",
    "ExportResult",
    "HostDocumentAPI",
    "ImportReport",
    "ImportResult",
    "KeyCodec",
    "OperationResult",
    "Prompt",
    "PromptDraft",
    "PromptPatch",
    "PromptQuery",
    "PromptService",
    "PromptShelfError",
    "PromptStats",
    "PurgeResult",
    "RecordNotFoundError",
    "RecordService",
    "RecordValidationError",
    "RemoveResult",
    "RevisionConflictError",
    "SearchPage",
    "SerializationFailureError",
    "ServiceContainer",
    "SnapshotFormatError",
    "StoreError",
    "StoredDocument",
    "Tag",
    "TagColor",
    "TagDeleteResult",
    "TagDraft",
    "TagPatch",
    "TagQuery",
    "TagService",
    "TagStats",
    "ValidationResult",
    "WriteResult",
    "build_document_store",
    "build_services",
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
