"""Printable summaries for Prompt Shelf configuration.

Updates:
  v0.1.0 - 2026-08-27 - Extract CLI settings summary rendering.
"""

from __future__ import annotations

from config import PromptShelfSettings

from .utils import describe_path


def print_settings_summary(settings: PromptShelfSettings) -> None:
    """Emit a readable summary of the resolved configuration."""
    host_store = settings.host_store or "not set (local SQLite fallback)"
    lines = [
        "Prompt Shelf configuration summary",
        "----------------------------------",
        f"Fallback database: {describe_path(settings.db_path, allow_missing_file=True)}",
        f"Namespace prefix: {settings.namespace_prefix}",
        f"Host document store: {host_store}",
        f"Default page size: {settings.default_page_size}",
        f"Recent window: {settings.recent_window_days} day(s)",
    ]
    print("\n".join(lines))
