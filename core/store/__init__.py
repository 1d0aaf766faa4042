"""Document storage package: key codec, backends, and the namespaced store.

Updates: v0.1.0 - 2026-08-27 - Split storage concerns into keys, backends, and store modules.
"""

from .backends import (
    HostDocumentAPI,
    HostStoreBackend,
    SQLiteFallbackBackend,
    StorageBackend,
    host_is_usable,
    load_host_store,
    select_backend,
)
from .base import (
    SNAPSHOT_VERSION,
    BulkOperation,
    ImportReport,
    RemoveResult,
    StoredDocument,
    WriteResult,
)
from .document_store import DocumentStore
from .keys import DEFAULT_NAMESPACE_PREFIX, KeyCodec, split_record_id

__all__ = [
    "BulkOperation",
    "DEFAULT_NAMESPACE_PREFIX",
    "DocumentStore",
    "HostDocumentAPI",
    "HostStoreBackend",
    "ImportReport",
    "KeyCodec",
    "RemoveResult",
    "SNAPSHOT_VERSION",
    "SQLiteFallbackBackend",
    "StorageBackend",
    "StoredDocument",
    "WriteResult",
    "host_is_usable",
    "load_host_store",
    "select_backend",
    "split_record_id",
]
