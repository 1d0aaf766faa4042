"""Data models for Prompt Shelf.

Updates: v0.2.0 - 2026-09-20 - Export query dataclasses for prompt and tag search.
Updates: v0.1.0 - 2026-08-27 - Export Prompt and Tag dataclasses.
"""

from .prompt_model import Prompt, PromptDraft, PromptPatch, PromptQuery
from .tag_model import TAG_COLOR_HEX, Tag, TagColor, TagDraft, TagPatch, TagQuery

__all__ = [
    "Prompt",
    "PromptDraft",
    "PromptPatch",
    "PromptQuery",
    "TAG_COLOR_HEX",
    "Tag",
    "TagColor",
    "TagDraft",
    "TagPatch",
    "TagQuery",
]
