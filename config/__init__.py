"""Configuration helpers for Prompt Shelf.

Updates: v0.2.0 - 2026-09-20 - Expose page size and recent window defaults.
Updates: v0.1.0 - 2026-08-27 - Expose settings loader and configuration error types.
"""

from .settings import (
    DEFAULT_DB_PATH,
    DEFAULT_NAMESPACE_PREFIX,
    DEFAULT_PAGE_SIZE,
    DEFAULT_RECENT_WINDOW_DAYS,
    PromptShelfSettings,
    SettingsError,
    load_settings,
)

__all__ = [
    "DEFAULT_DB_PATH",
    "DEFAULT_NAMESPACE_PREFIX",
    "DEFAULT_PAGE_SIZE",
    "DEFAULT_RECENT_WINDOW_DAYS",
    "PromptShelfSettings",
    "SettingsError",
    "load_settings",
]
