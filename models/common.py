"""Timestamp and identifier helpers shared by the record models.

Updates: v0.2.0 - 2026-09-02 - Guarantee strictly increasing update timestamps.
Updates: v0.1.0 - 2026-08-27 - Extract UTC/ISO helpers and record id minting.
"""
from __future__ import annotations

import json
import secrets
import string
import time
from collections.abc import Iterable
from datetime import UTC, datetime, timedelta
from typing import Any

_ID_ALPHABET = string.digits + string.ascii_lowercase
_ID_SUFFIX_LENGTH = 9


def utc_now() -> datetime:
    """Return an aware UTC timestamp."""
    return datetime.now(UTC)


def parse_timestamp(value: Any) -> datetime | None:
    """Return an aware datetime parsed from ISO strings (``Z`` suffix included)."""
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def format_timestamp(value: datetime) -> str:
    """Serialise *value* as an ISO-8601 UTC string with microsecond precision."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="microseconds")


def next_timestamp(previous: datetime | None = None) -> datetime:
    """Return the current time, nudged past *previous* when the clock has not advanced."""
    now = utc_now()
    if previous is not None and now <= previous:
        return previous + timedelta(microseconds=1)
    return now


def mint_record_id(prefix: str = "") -> str:
    """Return ``<prefix><epoch-ms>_<random base36>`` identifiers."""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(_ID_SUFFIX_LENGTH))
    return f"{prefix}{int(time.time() * 1000)}_{suffix}"


def coerce_str_list(value: Any) -> list[str]:
    """Coerce stored list fields (lists, JSON strings, scalars) into string lists."""
    if value is None:
        return []
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return []
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError:
            return [text]
        if isinstance(parsed, list):
            return [str(item) for item in parsed if item not in (None, "")]
        return [text]
    if isinstance(value, Iterable):
        return [str(item) for item in value if item not in (None, "")]
    return [str(value)]


def coerce_int(value: Any, default: int = 0) -> int:
    """Return ``int(value)`` for numeric-looking inputs, else *default*."""
    if isinstance(value, bool):
        return int(value)
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return default


def coerce_bool(value: Any) -> bool:
    """Interpret legacy boolean encodings (``"true"``, ``1``) as booleans."""
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


__all__ = [
    "coerce_bool",
    "coerce_int",
    "coerce_str_list",
    "format_timestamp",
    "mint_record_id",
    "next_timestamp",
    "parse_timestamp",
    "utc_now",
]
