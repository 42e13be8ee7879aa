# orchestration/cli_runner.py
"""Command-line runner for the Lorekeeper pipelines."""

from __future__ import annotations

import argparse
import asyncio

import structlog
from config import KNOWLEDGE_STORE_PATH, settings
from rich.prompt import Confirm
from rich.text import Text
from ui.rich_display import RichDisplayManager
from utils.logging import setup_logging

from core.errors import LorekeeperError
from core.llm_interface import llm_service
from ingestion.ingestion_manager import IngestionManager
from orchestration.chat_service import ChatService
from orchestration.services.deduplication_service import DeduplicationService
from storage.file_manager import FileManager
from storage.knowledge_store import JsonKnowledgeStore, KnowledgeStore

logger = structlog.get_logger(__name__)


def build_store() -> JsonKnowledgeStore:
    return JsonKnowledgeStore(KNOWLEDGE_STORE_PATH, settings.EXTERNAL_KNOWLEDGE_FILE)


async def run_import(
    store: KnowledgeStore,
    display: RichDisplayManager,
    file_path: str,
    assume_yes: bool = False,
) -> int:
    """Extract entries from ``file_path`` and add them after confirmation."""
    manager = IngestionManager(store)
    display.start("正在分析文本")
    try:
        items = await manager.ingest_file(
            file_path,
            progress=lambda idx, total: display.update(
                idx, total, f"正在分析第 {idx}/{total} 段"
            ),
        )
    finally:
        display.stop()

    if not items:
        display.console.print("未提取到任何条目。")
        return 0
    display.show_extracted_items(items)
    if not assume_yes and not Confirm.ask(
        f"导入全部 {len(items)} 个条目？", console=display.console
    ):
        display.console.print("已取消导入。")
        return 0
    added = manager.import_items(items)
    display.console.print(f"已导入 {len(added)} 个条目。")
    return len(added)


def run_duplicates(store: KnowledgeStore, display: RichDisplayManager) -> None:
    display.show_duplicate_groups(DeduplicationService(store).find_groups())


async def run_merge(
    store: KnowledgeStore,
    display: RichDisplayManager,
    group_number: int | None = None,
    delete_originals: bool = False,
) -> list:
    service = DeduplicationService(store)
    groups = service.find_groups()
    if not groups:
        display.show_duplicate_groups(groups)
        return []
    if group_number is not None:
        if not 1 <= group_number <= len(groups):
            raise LorekeeperError(f"分组编号超出范围: 1-{len(groups)}")
        groups = [groups[group_number - 1]]

    display.start("正在合并")
    try:
        results = await service.merge_all(
            groups,
            delete_originals=delete_originals,
            progress=lambda idx, total, group: display.update(
                idx, total, f"正在合并 {idx}/{total}: {group.base_title}"
            ),
        )
    finally:
        display.stop()
    display.show_merge_results(results)
    return results


async def run_chat(
    store: KnowledgeStore,
    display: RichDisplayManager,
    question: str,
    document_path: str | None = None,
) -> str:
    document = None
    if document_path:
        document = await FileManager().read_source_text(document_path)
    reply = await ChatService(store).send(
        [{"role": "user", "content": question}], current_document=document
    )
    display.console.print(reply, markup=False, highlight=False)
    return reply


async def run_export(
    display: RichDisplayManager, file_path: str, title: str, fmt: str
) -> str:
    file_manager = FileManager()
    html = await file_manager.read_plain_text(file_path)
    output_path = await file_manager.export_document(title, html, fmt)
    display.console.print(f"已导出: {output_path}", markup=False)
    return output_path


async def _dispatch(args: argparse.Namespace, display: RichDisplayManager) -> None:
    try:
        if args.command == "export":
            await run_export(display, args.file, args.title, args.format)
            return
        store = build_store()
        if args.command == "import":
            await run_import(store, display, args.file, assume_yes=args.yes)
        elif args.command == "duplicates":
            run_duplicates(store, display)
        elif args.command == "merge":
            await run_merge(
                store,
                display,
                group_number=args.group,
                delete_originals=args.delete_originals,
            )
        elif args.command == "chat":
            await run_chat(store, display, args.question, args.document)
    finally:
        await llm_service.aclose()


def run(args: argparse.Namespace) -> int:
    """Set up logging and run the requested subcommand. Returns an exit code."""
    setup_logging()
    display = RichDisplayManager()
    try:
        asyncio.run(_dispatch(args, display))
    except LorekeeperError as e:
        logger.error("Lorekeeper command failed: %s", e)
        display.console.print(Text(str(e), style="red"))
        return 1
    except KeyboardInterrupt:
        logger.info("Lorekeeper shutting down due to KeyboardInterrupt...")
        return 130
    return 0
