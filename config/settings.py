"""Settings management utilities for Prompt Shelf configuration.

Updates:
  v0.3.0 - 2026-09-20 - Accept ``module:attribute`` host store paths and validate their shape.
  v0.2.0 - 2026-09-08 - Read ``.env`` values through python-dotenv without mutating os.environ.
  v0.1.0 - 2026-08-27 - Introduce PromptShelfSettings with JSON, env, and secrets sources.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, cast

from dotenv import dotenv_values
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

_DOTENV_FALLBACK_PATH = ".env"
_ENV_PREFIX = "PROMPT_SHELF_"

DEFAULT_DB_PATH = Path("data") / "prompt_shelf.db"
DEFAULT_NAMESPACE_PREFIX = "prompt_manager_"
DEFAULT_PAGE_SIZE = 50
DEFAULT_RECENT_WINDOW_DAYS = 7

# Field name -> accepted environment keys (checked with the PROMPT_SHELF_ prefix).
_ENV_ALIASES: dict[str, tuple[str, ...]] = {
    "db_path": ("DB_PATH", "DATABASE_PATH"),
    "namespace_prefix": ("NAMESPACE_PREFIX", "KEY_PREFIX"),
    "host_store": ("HOST_STORE",),
    "default_page_size": ("DEFAULT_PAGE_SIZE", "PAGE_SIZE"),
    "recent_window_days": ("RECENT_WINDOW_DAYS",),
}

_JSON_KEYS: tuple[str, ...] = tuple(_ENV_ALIASES)

logger = logging.getLogger("prompt_shelf.settings")


def _read_dotenv_values() -> dict[str, str]:
    """Load ``.env`` entries into a mapping without mutating ``os.environ``."""
    env_file_override = os.getenv("PROMPT_SHELF_ENV_FILE")
    if env_file_override is not None:
        candidate = env_file_override.strip()
        if not candidate:
            return {}
        path = Path(candidate).expanduser()
    else:
        path = Path(_DOTENV_FALLBACK_PATH).expanduser()
    if not path.is_file():
        return {}
    raw_values = dotenv_values(str(path))
    return {str(key): str(value) for key, value in raw_values.items() if value is not None}


class SettingsError(Exception):
    """Raised when Prompt Shelf configuration cannot be loaded or validated."""


class PromptShelfSettings(BaseSettings):
    """Application configuration sourced from kwargs, JSON files, or the environment."""

    db_path: Path = Field(
        default=DEFAULT_DB_PATH,
        validate_default=True,
        description="SQLite file used when no host document store is available.",
    )
    namespace_prefix: str = Field(
        default=DEFAULT_NAMESPACE_PREFIX,
        description="Prefix shared by every document key this application writes.",
    )
    host_store: str | None = Field(
        default=None,
        description="Optional 'module:attribute' path to a host document store object.",
    )
    default_page_size: int = Field(default=DEFAULT_PAGE_SIZE)
    recent_window_days: int = Field(default=DEFAULT_RECENT_WINDOW_DAYS)

    model_config = cast(
        "SettingsConfigDict",
        {
            "env_prefix": _ENV_PREFIX,
            "case_sensitive": False,
            "populate_by_name": True,
        },
    )

    @field_validator("db_path", mode="before")
    def _normalise_path(cls, value: Any) -> Path:
        """Expand user-relative paths and coerce values to Path instances."""
        if value is None or not str(value).strip():
            raise ValueError("a filesystem path is required")
        path = Path(str(value).strip()).expanduser()
        return path.resolve()

    @field_validator("namespace_prefix", mode="before")
    def _validate_prefix(cls, value: Any) -> str:
        """Reject empty namespace prefixes."""
        text = str(value or "").strip()
        if not text:
            raise ValueError("namespace_prefix cannot be empty")
        return text

    @field_validator("host_store", mode="before")
    def _normalise_host_store(cls, value: str | None) -> str | None:
        """Strip whitespace and require the ``module:attribute`` form."""
        if value is None:
            return None
        stripped = str(value).strip()
        if not stripped:
            return None
        module_name, _, attribute = stripped.partition(":")
        if not module_name or not attribute:
            raise ValueError("host_store must look like 'package.module:attribute'")
        return stripped

    @field_validator("default_page_size")
    def _validate_page_size(cls, value: int) -> int:
        """Ensure the page size is a positive integer."""
        if value <= 0:
            raise ValueError("default_page_size must be greater than zero")
        return value

    @field_validator("recent_window_days")
    def _validate_recent_window(cls, value: int) -> int:
        """Ensure the recent window is not negative."""
        if value < 0:
            raise ValueError("recent_window_days cannot be negative")
        return value

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[
        PydanticBaseSettingsSource,
        PydanticBaseSettingsSource,
        PydanticBaseSettingsSource,
        PydanticBaseSettingsSource,
    ]:
        """Define configuration source precedence.

        Order (highest → lowest):
            1. Explicit keyword arguments (e.g. load_settings(db_path="...")).
            2. JSON configuration file.
            3. Environment variables, then ``.env`` entries.
            4. File secrets.
        """

        def env_with_aliases(_: BaseSettings | None = None) -> dict[str, Any]:
            data: dict[str, Any] = {}
            dotenv_data = _read_dotenv_values()

            def _lookup(candidate: str) -> str | None:
                value = os.getenv(candidate)
                if value is None:
                    value = dotenv_data.get(candidate)
                if value is None:
                    return None
                stripped_value = str(value).strip()
                return stripped_value or None

            for field, keys in _ENV_ALIASES.items():
                for key in keys:
                    value = _lookup(f"{_ENV_PREFIX}{key}")
                    if value is not None:
                        data[field] = value
                        break
            return data

        return (
            init_settings,
            cls._json_config_settings_source(settings_cls),
            cast("PydanticBaseSettingsSource", env_with_aliases),
            file_secret_settings,
        )

    @classmethod
    def _json_config_settings_source(
        cls,
        _: type[BaseSettings],
    ) -> PydanticBaseSettingsSource:
        """Return settings extracted from an optional JSON config file."""

        def _loader(_: BaseSettings | None = None) -> dict[str, Any]:
            explicit_path = os.getenv("PROMPT_SHELF_CONFIG_JSON")
            candidates: list[Path] = []
            if explicit_path:
                candidates.append(Path(explicit_path).expanduser())
            candidates.append((Path("config") / "config.json").expanduser())

            for path in candidates:
                if not path.exists():
                    if explicit_path and path == candidates[0]:
                        raise SettingsError(f"Configuration file not found: {path}")
                    continue
                try:
                    raw_contents = path.read_text(encoding="utf-8")
                except OSError as exc:  # pragma: no cover - filesystem failure is env-specific
                    raise SettingsError(f"Unable to read configuration file: {path}") from exc
                try:
                    data = json.loads(raw_contents)
                except json.JSONDecodeError as exc:
                    raise SettingsError(f"Invalid JSON in configuration file: {path}") from exc
                if not isinstance(data, dict):
                    message = f"Configuration file {path} must contain a JSON object"
                    raise SettingsError(message)
                mapping_data = cast("Mapping[object, Any]", data)
                data_dict: dict[str, Any] = {str(key): value for key, value in mapping_data.items()}
                mapped: dict[str, Any] = {}
                if "database_path" in data_dict and "db_path" not in data_dict:
                    mapped["db_path"] = data_dict["database_path"]
                for key in _JSON_KEYS:
                    if key in data_dict:
                        mapped[key] = data_dict[key]
                ignored = sorted(set(data_dict) - set(_JSON_KEYS) - {"database_path"})
                if ignored:
                    logger.warning(
                        "Ignoring unknown key(s) %s in configuration file %s",
                        ", ".join(ignored),
                        path,
                    )
                return mapped
            return {}

        return cast("PydanticBaseSettingsSource", _loader)


def load_settings(**overrides: Any) -> PromptShelfSettings:
    """Return validated settings, raising SettingsError on failure."""
    try:
        return PromptShelfSettings(**overrides)
    except SettingsError:
        raise
    except ValidationError as exc:
        raise SettingsError("Invalid Prompt Shelf configuration") from exc


__all__ = [
    "DEFAULT_DB_PATH",
    "DEFAULT_NAMESPACE_PREFIX",
    "DEFAULT_PAGE_SIZE",
    "DEFAULT_RECENT_WINDOW_DAYS",
    "PromptShelfSettings",
    "SettingsError",
    "load_settings",
]
