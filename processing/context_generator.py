# processing/context_generator.py
"""Assemble the knowledge section of the chat system prompt under a budget."""

from __future__ import annotations

import structlog
from config import settings
from utils.text_processing import strip_html_tags

from models import KnowledgeEntry, category_fields
from storage.knowledge_store import KnowledgeStore

logger = structlog.get_logger(__name__)

INDEX_HEADER = "【知识库索引】"
DETAILS_HEADER = "\n\n以下是与问题相关的详细设定资料：\n"
SUMMARY_HEADER = "\n\n【更多相关条目摘要】\n"
DOCUMENT_HEADER = "\n\n当前文档内容：\n"
ELLIPSIS = "..."
DETAIL_SEPARATOR = "："


def format_entry_details(
    entry: KnowledgeEntry, separator: str = DETAIL_SEPARATOR
) -> str:
    """Render the detail fields of ``entry`` as ``label<separator>value`` lines."""
    fields = category_fields(entry.category)
    if fields is None:
        # Unknown category: no schema, dump every non-empty value.
        return "\n".join(v for v in entry.details.values() if v)
    parts = []
    for field in fields:
        value = entry.details.get(field.key, "")
        if value and value.strip():
            parts.append(f"{field.label}{separator}{value}")
    return "\n".join(parts)


def build_knowledge_index(entries: list[KnowledgeEntry]) -> str:
    """List every title grouped by category, in first-seen order."""
    if not entries:
        return ""
    by_category: dict[str, list[str]] = {}
    for entry in entries:
        by_category.setdefault(entry.category_label, []).append(entry.title)
    lines = [INDEX_HEADER]
    lines.extend(f"{cat}: {'、'.join(titles)}" for cat, titles in by_category.items())
    return "\n".join(lines) + "\n"


def format_full_block(entry: KnowledgeEntry) -> str:
    return f"\n【{entry.category_label}】{entry.title}：\n{format_entry_details(entry)}\n"


def format_summary_line(
    entry: KnowledgeEntry, max_chars: int = settings.PROMPT_SUMMARY_CHARS
) -> str:
    details = format_entry_details(entry)
    summary = details[:max_chars] + ELLIPSIS if len(details) > max_chars else details
    summary = summary.replace("\n", " ")
    return f"• {entry.category_label} - {entry.title}: {summary}\n"


def omitted_trailer(count: int) -> str:
    return f"\n（注：还有 {count} 个相关条目未显示）"


class PromptBudgetAssembler:
    """Decides how much of each matched entry is shown to the model."""

    def __init__(
        self,
        store: KnowledgeStore,
        full_detail_entries: int = settings.PROMPT_FULL_DETAIL_ENTRIES,
        max_listed_entries: int = settings.PROMPT_MAX_LISTED_ENTRIES,
        summary_chars: int = settings.PROMPT_SUMMARY_CHARS,
        summary_headroom_chars: int = settings.PROMPT_SUMMARY_HEADROOM_CHARS,
        document_excerpt_chars: int = settings.PROMPT_DOCUMENT_EXCERPT_CHARS,
    ) -> None:
        self.store = store
        self.full_detail_entries = full_detail_entries
        self.max_listed_entries = max_listed_entries
        self.summary_chars = summary_chars
        self.summary_headroom_chars = summary_headroom_chars
        self.document_excerpt_chars = document_excerpt_chars

    def knowledge_index(self) -> str:
        return build_knowledge_index(self.store.list() + self.store.list_external())

    def render_matched(
        self, matched: list[KnowledgeEntry], max_total_chars: int
    ) -> str:
        """Render full blocks, summary lines and the omitted-count trailer."""
        if not matched:
            return ""
        parts = [DETAILS_HEADER]
        used_chars = 0
        full_count = 0

        for entry in matched[: self.full_detail_entries]:
            block = format_full_block(entry)
            if used_chars + len(block) < max_total_chars:
                parts.append(block)
                used_chars += len(block)
                full_count += 1

        summary_entries = matched[self.full_detail_entries : self.max_listed_entries]
        summary_count = 0
        if (
            summary_entries
            and used_chars < max_total_chars - self.summary_headroom_chars
        ):
            parts.append(SUMMARY_HEADER)
            for entry in summary_entries:
                line = format_summary_line(entry, self.summary_chars)
                if used_chars + len(line) < max_total_chars:
                    parts.append(line)
                    used_chars += len(line)
                    summary_count += 1

        omitted = len(matched) - self.max_listed_entries
        if omitted > 0:
            parts.append(omitted_trailer(omitted))

        logger.info(
            "Assembled knowledge context.",
            matched=len(matched),
            full=full_count,
            summaries=summary_count,
            omitted=max(omitted, 0),
            budget_used=used_chars,
            budget=max_total_chars,
        )
        return "".join(parts)

    def document_excerpt(self, current_document: str | None) -> str:
        if not current_document:
            return ""
        plain = strip_html_tags(current_document).strip()
        if not plain:
            return ""
        return DOCUMENT_HEADER + plain[: self.document_excerpt_chars]

    def assemble(
        self,
        matched: list[KnowledgeEntry],
        max_total_chars: int = settings.PROMPT_MAX_KNOWLEDGE_CHARS,
        current_document: str | None = None,
    ) -> str:
        """Build the knowledge fragment of the system prompt.

        The category index and the document excerpt sit outside the budget;
        only the matched-entry blocks count against ``max_total_chars``.
        """
        fragment = ""
        index = self.knowledge_index()
        if index:
            fragment += f"\n\n{index}"
        fragment += self.render_matched(matched, max_total_chars)
        fragment += self.document_excerpt(current_document)
        return fragment
