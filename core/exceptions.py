"""Common exception classes for core package.

All exceptions ultimately inherit from :class:`PromptShelfError`, allowing
callers to catch a single base class for any store or service failure while
still distinguishing individual error categories when needed.

Record services translate these exceptions into ``success=False`` results at
their public boundary; only the CLI ever sees them raised.

Updates:
  v0.3.0 - 2026-09-14 - Add snapshot format errors for import/export envelopes.
  v0.2.0 - 2026-09-02 - Add revision conflict and serialization failure errors.
  v0.1.0 - 2026-08-27 - Created module with validation/not-found hierarchy.
"""

from __future__ import annotations

from collections.abc import Sequence


class PromptShelfError(Exception):
    """Base exception for Prompt Shelf failures."""


class StoreError(PromptShelfError):
    """Raised when the document store cannot complete a request."""


class BackendUnavailableError(StoreError):
    """Raised when a host document store fails its capability probe."""


class RevisionConflictError(StoreError):
    """Raised when a write presents a revision that is no longer current."""


class SerializationFailureError(StoreError):
    """Raised when document fields cannot be encoded as plain JSON data."""


class SnapshotFormatError(StoreError):
    """Raised when an import snapshot is not a valid export envelope."""


class RecordNotFoundError(PromptShelfError):
    """Raised when a prompt or tag cannot be located in the store."""


class RecordValidationError(PromptShelfError):
    """Raised when a record fails validation before reaching the store."""

    def __init__(
        self,
        message: str,
        errors: Sequence[str] = (),
        warnings: Sequence[str] = (),
    ) -> None:
        super().__init__(message)
        self.errors = list(errors)
        self.warnings = list(warnings)

    def __str__(self) -> str:
        base = super().__str__()
        if not self.errors:
            return base
        return f"{base}: {'; '.join(self.errors)}"


__all__ = [
    "BackendUnavailableError",
    "PromptShelfError",
    "RecordNotFoundError",
    "RecordValidationError",
    "RevisionConflictError",
    "SerializationFailureError",
    "SnapshotFormatError",
    "StoreError",
]
