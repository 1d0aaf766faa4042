"""Factories for constructing the document store and record services from settings.

Updates:
  v0.2.0 - 2026-09-14 - Resolve host stores from settings and fall back quietly when unavailable.
  v0.1.0 - 2026-08-27 - Introduce build_services returning a shared-store service container.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .exceptions import BackendUnavailableError
from .prompt_service import PromptService
from .store import DocumentStore, KeyCodec, load_host_store
from .tag_service import TagService

if TYPE_CHECKING:  # pragma: no cover - typing only
    from config import PromptShelfSettings
else:  # pragma: no cover - typing only
    PromptShelfSettings = Any

factory_logger = logging.getLogger("prompt_shelf.factory")


@dataclass(slots=True, frozen=True)
class ServiceContainer:
    """Record services sharing one DocumentStore."""

    store: DocumentStore
    prompts: PromptService
    tags: TagService


def _resolve_host(settings: PromptShelfSettings, host: object | None) -> object | None:
    """Return the explicit host, or the one named by ``settings.host_store``."""
    if host is not None or not settings.host_store:
        return host
    try:
        return load_host_store(settings.host_store)
    except BackendUnavailableError as exc:
        factory_logger.warning("Host store %s unavailable: %s", settings.host_store, exc)
        return None


def build_document_store(
    settings: PromptShelfSettings,
    *,
    host: object | None = None,
) -> DocumentStore:
    """Return a DocumentStore on the host backend when usable, else on SQLite."""
    codec = KeyCodec(prefix=settings.namespace_prefix)
    return DocumentStore.open(
        Path(settings.db_path),
        host=_resolve_host(settings, host),
        codec=codec,
    )


def build_services(
    settings: PromptShelfSettings,
    *,
    host: object | None = None,
    store: DocumentStore | None = None,
) -> ServiceContainer:
    """Return prompt and tag services configured from validated settings."""
    resolved_store = store or build_document_store(settings, host=host)
    prompts = PromptService(
        resolved_store,
        page_size=settings.default_page_size,
        recent_window_days=settings.recent_window_days,
    )
    tags = TagService(resolved_store, page_size=settings.default_page_size)
    factory_logger.debug("Built services on %s backend", resolved_store.backend_name)
    return ServiceContainer(store=resolved_store, prompts=prompts, tags=tags)


__all__ = ["ServiceContainer", "build_document_store", "build_services"]
