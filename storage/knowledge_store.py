# storage/knowledge_store.py
"""Knowledge store capability and two small backends."""

from __future__ import annotations

import json
import os
from collections.abc import Iterable
from typing import Protocol

import structlog
from pydantic import ValidationError

from models import KnowledgeEntry

logger = structlog.get_logger(__name__)


class KnowledgeStore(Protocol):
    """The operations the pipelines need from a knowledge store.

    ``list`` and ``list_external`` return snapshots; mutating the returned
    entries never changes the store.
    """

    def add(self, entry: KnowledgeEntry) -> KnowledgeEntry: ...

    def delete(self, entry_id: str) -> bool: ...

    def list(self) -> list[KnowledgeEntry]: ...

    def list_external(self) -> list[KnowledgeEntry]: ...


class InMemoryKnowledgeStore:
    """Dictionary-backed store keeping insertion order."""

    def __init__(
        self,
        entries: Iterable[KnowledgeEntry] | None = None,
        external: Iterable[KnowledgeEntry] | None = None,
    ) -> None:
        self._entries: dict[str, KnowledgeEntry] = {}
        for entry in entries or []:
            self._entries[entry.id] = entry.model_copy(deep=True)
        self._external = [e.model_copy(deep=True) for e in external or []]

    def add(self, entry: KnowledgeEntry) -> KnowledgeEntry:
        stored = entry.model_copy(deep=True)
        self._entries[stored.id] = stored
        logger.debug("Knowledge entry added.", entry_id=stored.id, title=stored.title)
        return stored.model_copy(deep=True)

    def delete(self, entry_id: str) -> bool:
        removed = self._entries.pop(entry_id, None)
        if removed is None:
            logger.warning("Delete requested for unknown entry.", entry_id=entry_id)
            return False
        logger.debug("Knowledge entry deleted.", entry_id=entry_id)
        return True

    def list(self) -> list[KnowledgeEntry]:
        return [e.model_copy(deep=True) for e in self._entries.values()]

    def list_external(self) -> list[KnowledgeEntry]:
        return [e.model_copy(deep=True) for e in self._external]

    def __len__(self) -> int:
        return len(self._entries)


def _load_entries(file_path: str) -> list[KnowledgeEntry]:
    """Load a JSON list of entries, skipping records that fail validation."""
    if not os.path.exists(file_path):
        return []
    with open(file_path, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, list):
        logger.warning("Knowledge file is not a JSON list.", file_path=file_path)
        return []
    entries: list[KnowledgeEntry] = []
    for raw in data:
        try:
            entries.append(KnowledgeEntry.model_validate(raw))
        except ValidationError as e:
            logger.warning(
                "Skipping invalid knowledge record.", file_path=file_path, error=str(e)
            )
    return entries


class JsonKnowledgeStore(InMemoryKnowledgeStore):
    """In-memory store written through to a JSON file on every mutation."""

    def __init__(self, file_path: str, external_path: str | None = None) -> None:
        self.file_path = file_path
        self.external_path = external_path
        external = _load_entries(external_path) if external_path else []
        super().__init__(_load_entries(file_path), external)
        logger.info(
            "Knowledge store loaded.",
            file_path=file_path,
            entries=len(self._entries),
            external=len(self._external),
        )

    def _save(self) -> None:
        directory = os.path.dirname(self.file_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.file_path, "w", encoding="utf-8") as f:
            json.dump(
                [e.model_dump(mode="json") for e in self._entries.values()],
                f,
                ensure_ascii=False,
                indent=2,
            )

    def add(self, entry: KnowledgeEntry) -> KnowledgeEntry:
        stored = super().add(entry)
        self._save()
        return stored

    def delete(self, entry_id: str) -> bool:
        removed = super().delete(entry_id)
        if removed:
            self._save()
        return removed
