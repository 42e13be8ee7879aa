# tests/ingestion/test_ingestion_manager.py

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from core.errors import ConfigurationError, TransportError
from ingestion import IngestionManager, build_extraction_prompt
from models import KnowledgeCategory, TextChunk
from storage.file_manager import FileManager
from storage.knowledge_store import InMemoryKnowledgeStore


def _reply(*items):
    return json.dumps(list(items), ensure_ascii=False)


def _pacer():
    return SimpleNamespace(wait=AsyncMock())


def test_build_extraction_prompt_includes_chapter_and_categories():
    prompt = build_extraction_prompt(TextChunk(content="林逸拔剑。", chapter="第一章 开端"))
    assert "当前章节：第一章 开端" in prompt
    assert "人物|世界观|剧情|设定|其他" in prompt
    assert prompt.endswith("林逸拔剑。")


def test_build_extraction_prompt_without_chapter():
    prompt = build_extraction_prompt(TextChunk(content="片段"))
    assert "当前章节" not in prompt


@pytest.mark.asyncio
async def test_extract_continues_after_failed_chunk():
    calls = []

    async def fake_completion(prompt):
        calls.append(prompt)
        if len(calls) == 2:
            raise TransportError("API错误: 500", status_code=500)
        return _reply({"category": "人物", "title": f"角色{len(calls)}", "content": "x"})

    pacer = _pacer()
    progress = []
    manager = IngestionManager(
        InMemoryKnowledgeStore(), completion_fn=fake_completion, pacer=pacer, api_key="k"
    )
    chunks = [TextChunk(content=f"片段{i}") for i in range(3)]

    items = await manager.extract(chunks, progress=lambda i, t: progress.append((i, t)))

    assert [i.title for i in items] == ["角色1", "角色3"]
    assert progress == [(1, 3), (2, 3), (3, 3)]
    assert pacer.wait.await_count == 2


@pytest.mark.asyncio
async def test_extract_ignores_reply_without_array():
    manager = IngestionManager(
        InMemoryKnowledgeStore(),
        completion_fn=AsyncMock(return_value="无内容"),
        pacer=_pacer(),
        api_key="k",
    )
    assert await manager.extract([TextChunk(content="a")]) == []


@pytest.mark.asyncio
async def test_missing_api_key_fails_before_any_call():
    completion = AsyncMock()
    manager = IngestionManager(
        InMemoryKnowledgeStore(), completion_fn=completion, pacer=_pacer(), api_key=""
    )
    with pytest.raises(ConfigurationError):
        await manager.extract([TextChunk(content="a")])
    completion.assert_not_awaited()


@pytest.mark.asyncio
async def test_extract_from_text_folds_items_across_chunks():
    replies = iter(
        [
            _reply({"category": "人物", "title": "林逸", "keywords": ["剑"], "content": "少年"}),
            _reply({"category": "人物", "title": "林逸", "keywords": ["宗门"], "content": "剑客"}),
        ]
    )
    manager = IngestionManager(
        InMemoryKnowledgeStore(),
        completion_fn=AsyncMock(side_effect=lambda _p: next(replies)),
        pacer=_pacer(),
        api_key="k",
    )
    text = "第一章\n\n" + "甲" * 80 + "\n\n第二章\n\n" + "乙" * 80

    items = await manager.extract_from_text(text)

    assert len(items) == 1
    assert items[0].content == "少年\n\n剑客"
    assert items[0].keywords == ["剑", "宗门"]


@pytest.mark.asyncio
async def test_extract_from_blank_text_makes_no_calls():
    completion = AsyncMock()
    manager = IngestionManager(
        InMemoryKnowledgeStore(), completion_fn=completion, pacer=_pacer(), api_key="k"
    )
    assert await manager.extract_from_text("   ") == []
    completion.assert_not_awaited()


@pytest.mark.asyncio
async def test_ingest_file_and_import_items(tmp_path):
    source = tmp_path / "novel.txt"
    source.write_text("青" * 120, encoding="utf-8")
    store = InMemoryKnowledgeStore()
    manager = IngestionManager(
        store,
        completion_fn=AsyncMock(
            return_value=_reply({"category": "世界观", "title": "青云宗", "content": "正道"})
        ),
        pacer=_pacer(),
        api_key="k",
        file_manager=FileManager(export_dir=str(tmp_path / "exports")),
    )

    items = await manager.ingest_file(str(source))
    added = manager.import_items(items)

    assert len(store) == 1
    assert added[0].category == KnowledgeCategory.WORLD
    assert added[0].details["overview"] == "正道"
