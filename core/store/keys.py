"""Physical key derivation for the shared document namespace.

Three key shapes exist in the field, written by successive releases:

* bare ids such as ``prompt_<id>`` (no namespace prefix),
* prefixed ids such as ``prompt_manager_prompt_<id>`` (current scheme),
* double-prefixed ids such as ``prompt_manager_prompt_manager_prompt_<id>``.

New writes always use the single-prefix shape. Reads and enumeration accept
all three so existing records stay reachable.

Updates:
  v0.2.0 - 2026-09-08 - Match enumeration filters against the namespace-free key.
  v0.1.0 - 2026-08-27 - Introduce KeyCodec with legacy candidate keys.
"""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_NAMESPACE_PREFIX = "prompt_manager_"
DEFAULT_LEGACY_SEGMENTS: tuple[str, ...] = ("prompt_", "tag_", "tags_")


@dataclass(slots=True, frozen=True)
class KeyCodec:
    """Map logical document ids to physical keys and back."""

    prefix: str = DEFAULT_NAMESPACE_PREFIX
    legacy_segments: tuple[str, ...] = DEFAULT_LEGACY_SEGMENTS

    def __post_init__(self) -> None:
        if not self.prefix:
            raise ValueError("namespace prefix cannot be empty")

    def looks_like_namespaced(self, doc_id: str) -> bool:
        """Return True when *doc_id* already starts with the namespace prefix."""
        return doc_id.startswith(self.prefix)

    def to_physical_key(self, doc_id: str) -> str:
        """Return the key used when writing *doc_id* for the first time."""
        if self.looks_like_namespaced(doc_id):
            return doc_id
        return f"{self.prefix}{doc_id}"

    def logical_id(self, key: str) -> str:
        """Strip every leading repetition of the namespace prefix from *key*."""
        while key.startswith(self.prefix):
            key = key[len(self.prefix) :]
        return key

    def in_namespace(self, key: str) -> bool:
        """Return True when *key* belongs to this application under any historical shape."""
        if self.prefix in key:
            return True
        return key.startswith(self.legacy_segments)

    def candidate_keys(self, doc_id: str) -> list[str]:
        """Return every key *doc_id* may be stored under, preferred shape first."""
        bare = self.logical_id(doc_id)
        ordered = [
            self.to_physical_key(doc_id),
            f"{self.prefix}{bare}",
            f"{self.prefix}{self.prefix}{bare}",
        ]
        if bare and self.in_namespace(bare):
            ordered.append(bare)
        keys: list[str] = []
        for key in ordered:
            if key not in keys:
                keys.append(key)
        return keys

    def matches(self, key: str, substring: str) -> bool:
        """Return True when *substring* occurs in the namespace-free part of *key*."""
        return substring in self.logical_id(key)


def split_record_id(logical_id: str, segment: str) -> str:
    """Return the part of *logical_id* after the last *segment* occurrence."""
    index = logical_id.rfind(segment)
    if index < 0:
        return logical_id
    return logical_id[index + len(segment) :]


__all__ = [
    "DEFAULT_LEGACY_SEGMENTS",
    "DEFAULT_NAMESPACE_PREFIX",
    "KeyCodec",
    "split_record_id",
]
