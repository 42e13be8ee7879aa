# processing/relevance_matcher.py
"""Heuristic relevance matching of knowledge entries against a query.

This is a cheap, explainable heuristic rather than semantic search: it misses
paraphrases, and short common tokens can still produce false positives.
"""

from __future__ import annotations

import structlog
from utils.text_processing import tokenize_query

from models import KnowledgeEntry
from storage.knowledge_store import KnowledgeStore

logger = structlog.get_logger(__name__)

MIN_TOKEN_HITS = 2


def _clean_keywords(entry: KnowledgeEntry) -> list[str]:
    return [kw.strip().lower() for kw in entry.keywords if kw and kw.strip()]


def matches(entry: KnowledgeEntry, query_text: str) -> bool:
    """Return ``True`` when ``entry`` looks relevant to ``query_text``.

    Checks, in order: title containment, keyword containment, then whether at
    least two distinct query tokens occur in the title, a keyword or the
    detail text.
    """
    normalized_query = (query_text or "").lower()
    title = (entry.title or "").lower()

    if title and title in normalized_query:
        return True

    keywords = _clean_keywords(entry)
    if any(kw in normalized_query for kw in keywords):
        return True

    details_text = entry.details_text().lower()
    hits = 0
    for token in dict.fromkeys(tokenize_query(query_text)):
        if (
            token in title
            or any(token in kw for kw in keywords)
            or token in details_text
        ):
            hits += 1
            if hits >= MIN_TOKEN_HITS:
                return True
    return False


class RelevanceMatcher:
    """Selects the entries of a store that are relevant to a query."""

    def __init__(self, store: KnowledgeStore) -> None:
        self.store = store

    def all_entries(self) -> list[KnowledgeEntry]:
        """Local entries followed by external ones, without de-duplication."""
        return self.store.list() + self.store.list_external()

    def find_relevant(
        self, query_text: str, entries: list[KnowledgeEntry] | None = None
    ) -> list[KnowledgeEntry]:
        """Return matching entries in collection order."""
        candidates = self.all_entries() if entries is None else entries
        matched = [entry for entry in candidates if matches(entry, query_text)]
        logger.debug(
            "Relevance matching complete.",
            candidates=len(candidates),
            matched=len(matched),
        )
        return matched
