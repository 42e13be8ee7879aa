# orchestration/services/deduplication_service.py
"""Service for finding and merging duplicate knowledge entries."""

from collections.abc import Callable

import structlog

from config import settings
from core.errors import ResponseFormatError
from core.llm_interface import CompletionFn, ensure_api_key, llm_service
from core.pacing import FixedDelayPacer, Pacer
from knowledge_base.merge import build_merged_entry
from models import DuplicateGroup, MergeResult
from parsing import parse_merged_entry
from processing.context_generator import format_entry_details
from processing.duplicate_grouper import find_duplicates
from prompt_renderer import render_prompt
from storage.knowledge_store import KnowledgeStore

logger = structlog.get_logger(__name__)

MERGE_TEMPLATE = "deduplication/merge_group.j2"
FORMAT_ERROR_MESSAGE = "AI 返回格式错误，请重试"
MERGE_DETAIL_SEPARATOR = ": "

GroupProgressCallback = Callable[[int, int, DuplicateGroup], None]


def build_merge_prompt(group: DuplicateGroup) -> str:
    members = [
        {
            "title": entry.title,
            "keywords": entry.keywords,
            "details": format_entry_details(entry, separator=MERGE_DETAIL_SEPARATOR),
        }
        for entry in group.entries
    ]
    return render_prompt(
        MERGE_TEMPLATE,
        {
            "category": group.entries[0].category_label,
            "base_title": group.base_title,
            "members": members,
        },
    )


class DeduplicationService:
    def __init__(
        self,
        store: KnowledgeStore,
        completion_fn: CompletionFn | None = None,
        pacer: Pacer | None = None,
        api_key: str | None = None,
    ):
        self.store = store
        self.completion_fn = completion_fn or llm_service.async_call_llm
        self.pacer = pacer or FixedDelayPacer(settings.MERGE_PACING_SECONDS)
        self.api_key = settings.OPENAI_API_KEY if api_key is None else api_key

    def find_groups(self) -> list[DuplicateGroup]:
        """Scan the local knowledge store for duplicate groups."""
        return find_duplicates(self.store.list())

    async def merge_group(
        self, group: DuplicateGroup, delete_originals: bool = False
    ) -> MergeResult:
        """
        Merges one duplicate group into a single new entry.

        Args:
            group: The group to consolidate.
            delete_originals: Remove the group members after a successful merge.

        Returns:
            A ``MergeResult``; transport and format failures are reported in
            its ``error`` field instead of being raised.

        Raises:
            ConfigurationError: no API key is configured. Nothing is sent.
        """
        ensure_api_key(self.api_key)
        logger.info(
            f"DeduplicationService: Merging {group.size} entries for '{group.base_title}' ({group.entries[0].category_label})..."
        )
        try:
            reply = await self.completion_fn(build_merge_prompt(group))
            parsed = parse_merged_entry(reply or "")
        except ResponseFormatError as e:
            logger.warning(
                f"Merge reply for '{group.base_title}' had an unexpected format: {e}"
            )
            return MergeResult(group=group, error=FORMAT_ERROR_MESSAGE)
        except Exception as e:
            logger.error(
                f"Error merging duplicate group '{group.base_title}': {e}",
                exc_info=True,
            )
            return MergeResult(group=group, error=f"合并失败: {e}")

        merged_entry = self.store.add(build_merged_entry(group, parsed))
        deleted_ids: list[str] = []
        if delete_originals:
            for entry in group.entries:
                if self.store.delete(entry.id):
                    deleted_ids.append(entry.id)

        result = MergeResult(
            group=group, merged_entry=merged_entry, deleted_ids=deleted_ids
        )
        logger.info(result.message)
        return result

    async def merge_all(
        self,
        groups: list[DuplicateGroup] | None = None,
        delete_originals: bool = False,
        progress: GroupProgressCallback | None = None,
    ) -> list[MergeResult]:
        """Merge every group sequentially, pacing between groups.

        A failed group does not stop the remaining ones.
        """
        ensure_api_key(self.api_key)
        pending = self.find_groups() if groups is None else groups
        results: list[MergeResult] = []
        total = len(pending)
        for idx, group in enumerate(pending, 1):
            if progress is not None:
                progress(idx, total, group)
            results.append(await self.merge_group(group, delete_originals))
            if idx < total:
                await self.pacer.wait()

        succeeded = sum(1 for r in results if r.succeeded)
        logger.info(
            f"DeduplicationService: merged {succeeded}/{total} duplicate group(s)."
        )
        return results
