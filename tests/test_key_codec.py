"""Tests for physical key derivation and legacy key shapes.

Updates:
  v0.3.0 - 2026-10-19 - Cover namespace prefixes appearing mid-key.
  v0.2.0 - 2026-09-08 - Cover namespace-free filter matching.
  v0.1.0 - 2026-08-27 - Cover candidate key ordering and logical id extraction.
"""

from __future__ import annotations

import pytest

from core.store import KeyCodec, split_record_id


def test_new_ids_receive_a_single_prefix() -> None:
    codec = KeyCodec()
    assert codec.to_physical_key("prompt_abc") == "prompt_manager_prompt_abc"
    assert codec.to_physical_key("prompt_manager_prompt_abc") == "prompt_manager_prompt_abc"


def test_logical_id_strips_repeated_prefixes() -> None:
    codec = KeyCodec()
    assert codec.logical_id("prompt_manager_prompt_manager_prompt_abc") == "prompt_abc"
    assert codec.logical_id("prompt_abc") == "prompt_abc"


def test_candidate_keys_cover_every_historical_shape() -> None:
    """Preferred key first, then double prefix, then the bare legacy key."""
    codec = KeyCodec()
    assert codec.candidate_keys("prompt_abc") == [
        "prompt_manager_prompt_abc",
        "prompt_manager_prompt_manager_prompt_abc",
        "prompt_abc",
    ]


def test_candidate_keys_skip_bare_keys_outside_the_namespace() -> None:
    codec = KeyCodec()
    assert "settings" not in codec.candidate_keys("settings")


def test_in_namespace_accepts_legacy_segments_only() -> None:
    codec = KeyCodec()
    assert codec.in_namespace("prompt_manager_anything")
    assert codec.in_namespace("tags_tag_1")
    assert codec.in_namespace("prompt_1")
    assert not codec.in_namespace("other_plugin_doc")


def test_matches_ignores_the_namespace_prefix() -> None:
    """Filtering by ``manager`` must not match every namespaced key."""
    codec = KeyCodec()
    assert codec.matches("prompt_manager_prompt_abc", "prompt_")
    assert not codec.matches("prompt_manager_tag_1", "manager")


def test_empty_prefix_is_rejected() -> None:
    with pytest.raises(ValueError):
        KeyCodec(prefix="")


def test_split_record_id_uses_the_last_segment() -> None:
    assert split_record_id("prompt_prompt_abc", "prompt_") == "abc"
    assert split_record_id("tags_tag_1_x", "tag_") == "1_x"
    assert split_record_id("plain", "prompt_") == "plain"


def test_prefix_inside_a_key_is_kept_and_matchable() -> None:
    """A namespace prefix that is not the leading segment is legacy data, not a shape to strip."""
    codec = KeyCodec()
    key = "legacy_prompt_manager_prompt_abc"

    assert codec.in_namespace(key)
    assert codec.logical_id(key) == key
    assert codec.matches(key, "abc")
    assert not codec.matches(key, "xyz")
