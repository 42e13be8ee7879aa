"""Logic for extracting knowledge entries from long source text."""

from __future__ import annotations

from collections.abc import Callable

import structlog
from config import settings
from utils.ingestion_utils import segment_text

from core.llm_interface import CompletionFn, ensure_api_key, llm_service
from core.pacing import FixedDelayPacer, Pacer
from knowledge_base.merge import merge_extracted_items
from models import ExtractedItem, KnowledgeCategory, KnowledgeEntry, TextChunk
from parsing import parse_extracted_items
from prompt_renderer import render_prompt
from storage.file_manager import FileManager
from storage.knowledge_store import KnowledgeStore

logger = structlog.get_logger(__name__)

ProgressCallback = Callable[[int, int], None]

EXTRACTION_TEMPLATE = "ingestion/extract_knowledge.j2"


def build_extraction_prompt(chunk: TextChunk) -> str:
    return render_prompt(
        EXTRACTION_TEMPLATE,
        {
            "categories": [c.value for c in KnowledgeCategory],
            "chapter": chunk.chapter,
            "content": chunk.content,
        },
    )


class IngestionManager:
    """Turn long documents into candidate knowledge entries."""

    def __init__(
        self,
        store: KnowledgeStore,
        completion_fn: CompletionFn | None = None,
        pacer: Pacer | None = None,
        api_key: str | None = None,
        file_manager: FileManager | None = None,
    ) -> None:
        self.store = store
        self.completion_fn = completion_fn or llm_service.async_call_llm
        self.pacer = pacer or FixedDelayPacer(settings.EXTRACTION_PACING_SECONDS)
        self.api_key = settings.OPENAI_API_KEY if api_key is None else api_key
        self.file_manager = file_manager or FileManager()

    async def _extract_chunk(self, chunk: TextChunk) -> list[ExtractedItem]:
        reply = await self.completion_fn(build_extraction_prompt(chunk))
        return parse_extracted_items(reply or "[]")

    async def extract(
        self,
        chunks: list[TextChunk],
        progress: ProgressCallback | None = None,
    ) -> list[ExtractedItem]:
        """Run one extraction call per chunk, sequentially.

        A failed chunk is logged and contributes no items; the remaining
        chunks are still processed.
        """
        ensure_api_key(self.api_key)
        total = len(chunks)
        collected: list[ExtractedItem] = []
        failed = 0

        for idx, chunk in enumerate(chunks, 1):
            if progress is not None:
                progress(idx, total)
            try:
                items = await self._extract_chunk(chunk)
                collected.extend(items)
                logger.info(
                    "Extracted items from chunk %d/%d: %d",
                    idx,
                    total,
                    len(items),
                )
            except Exception as e:
                failed += 1
                logger.error(
                    "Extraction failed for chunk %d/%d: %s",
                    idx,
                    total,
                    e,
                    exc_info=True,
                )
            if idx < total:
                await self.pacer.wait()

        logger.info(
            "Extraction pass complete.",
            chunks=total,
            failed_chunks=failed,
            items=len(collected),
        )
        return collected

    async def extract_from_text(
        self,
        text: str,
        progress: ProgressCallback | None = None,
        max_len: int = settings.CHUNK_MAX_CHARS,
    ) -> list[ExtractedItem]:
        """Segment ``text``, extract every chunk and fold same-titled items."""
        if not text or not text.strip():
            return []
        ensure_api_key(self.api_key)
        chunks = segment_text(text, max_len=max_len)
        items = await self.extract(chunks, progress=progress)
        return merge_extracted_items(items)

    async def ingest_file(
        self, file_path: str, progress: ProgressCallback | None = None
    ) -> list[ExtractedItem]:
        """Read ``file_path`` and return the merged candidate items."""
        logger.info("--- Lorekeeper: Starting long text analysis ---", file=file_path)
        raw_text = await self.file_manager.read_source_text(file_path)
        return await self.extract_from_text(raw_text, progress=progress)

    def import_items(self, items: list[ExtractedItem]) -> list[KnowledgeEntry]:
        """Add every item to the knowledge store."""
        added = [self.store.add(item.to_entry()) for item in items]
        logger.info("Imported extracted items into the knowledge store.", count=len(added))
        return added
