# processing/duplicate_grouper.py
"""Group knowledge entries that share a category and base title."""

from __future__ import annotations

import structlog
from utils.text_processing import normalize_base_title

from models import DuplicateGroup, KnowledgeEntry

logger = structlog.get_logger(__name__)


def find_duplicates(entries: list[KnowledgeEntry]) -> list[DuplicateGroup]:
    """Return groups of two or more entries, largest first.

    Entries are keyed by ``(category, normalized title)``; ties keep the order
    in which each group was first encountered.
    """
    groups: dict[tuple[str, str], list[KnowledgeEntry]] = {}
    for entry in entries:
        key = (entry.category_label, normalize_base_title(entry.title))
        groups.setdefault(key, []).append(entry)

    duplicates = [
        DuplicateGroup(category=members[0].category, base_title=base, entries=members)
        for (_, base), members in groups.items()
        if len(members) > 1
    ]
    duplicates.sort(key=lambda g: g.size, reverse=True)
    logger.info(
        "Duplicate scan complete.",
        entries=len(entries),
        groups=len(duplicates),
        duplicated_entries=sum(g.size for g in duplicates),
    )
    return duplicates
