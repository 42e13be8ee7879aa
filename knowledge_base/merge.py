# knowledge_base/merge.py
"""Helpers for folding extracted items and building merged entries."""

from __future__ import annotations

import structlog

from models import (
    DuplicateGroup,
    ExtractedItem,
    KnowledgeEntry,
    create_empty_details,
)

logger = structlog.get_logger(__name__)

CONTENT_SEPARATOR = "\n\n"
MERGED_TITLE_SUFFIX = "（合并）"


def merge_keywords(existing: list[str], incoming: list[str]) -> list[str]:
    """Union of two keyword lists in first-seen order without exact duplicates."""
    return list(dict.fromkeys([*existing, *incoming]))


def merge_extracted_items(items: list[ExtractedItem]) -> list[ExtractedItem]:
    """Fold items that share an exact ``(title, category)`` pair.

    Args:
        items: Items in extraction order.

    Returns:
        One item per distinct pair, in first-seen order. Content is joined
        with a blank line and keywords are unioned.
    """
    merged: dict[tuple[str, str], ExtractedItem] = {}
    for item in items:
        key = (item.title, item.category.value)
        existing = merged.get(key)
        if existing is None:
            merged[key] = item.model_copy(deep=True)
            continue
        existing.content = existing.content + CONTENT_SEPARATOR + item.content
        existing.keywords = merge_keywords(existing.keywords, item.keywords)

    if len(merged) < len(items):
        logger.info(
            "Folded extracted items sharing title and category.",
            before=len(items),
            after=len(merged),
        )
    return list(merged.values())


def build_merged_entry(group: DuplicateGroup, parsed: dict) -> KnowledgeEntry:
    """Create the consolidated entry for ``group`` from a parsed merge reply.

    The merged text goes into the first field of the category template; the
    remaining fields stay empty.
    """
    details = create_empty_details(group.category)
    first_key = next(iter(details), None)
    content = parsed.get("content") or ""
    if first_key is not None:
        details[first_key] = content
    else:
        details = {"content": content}
    keywords = parsed.get("keywords")
    return KnowledgeEntry(
        category=group.category,
        title=parsed.get("title") or f"{group.base_title}{MERGED_TITLE_SUFFIX}",
        keywords=keywords if isinstance(keywords, list) else [],
        details=details,
    )
