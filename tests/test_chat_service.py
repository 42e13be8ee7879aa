from unittest.mock import AsyncMock, MagicMock

import pytest
from models import KnowledgeCategory
from orchestration.chat_service import EMPTY_REPLY, ChatService
from processing.context_generator import DETAILS_HEADER, DOCUMENT_HEADER, INDEX_HEADER
from storage.knowledge_store import InMemoryKnowledgeStore


def _llm(reply="回答"):
    llm = MagicMock()
    llm.async_complete = AsyncMock(return_value=reply)
    return llm


@pytest.fixture
def chat_store(make_entry):
    return InMemoryKnowledgeStore(
        [
            make_entry("林逸", overview="少年剑客"),
            make_entry("青云宗", KnowledgeCategory.WORLD, overview="正道魁首"),
        ]
    )


def test_system_prompt_contains_index_and_matched_entries(chat_store):
    service = ChatService(chat_store, llm=_llm(), system_prompt="你是助手")

    prompt = service.build_system_prompt("林逸是谁？")

    assert prompt.startswith("你是助手\n\n【重要】你拥有一个知识库")
    assert INDEX_HEADER in prompt
    assert "人物: 林逸" in prompt
    assert DETAILS_HEADER in prompt
    assert "简介：少年剑客" in prompt
    assert "正道魁首" not in prompt


def test_system_prompt_without_matches_has_no_details(chat_store):
    service = ChatService(chat_store, llm=_llm(), system_prompt="你是助手")
    prompt = service.build_system_prompt("天气如何")
    assert DETAILS_HEADER not in prompt
    assert "世界观: 青云宗" in prompt


@pytest.mark.asyncio
async def test_send_prepends_system_message(chat_store):
    llm = _llm()
    service = ChatService(chat_store, llm=llm, system_prompt="你是助手")
    messages = [
        {"role": "user", "content": "你好"},
        {"role": "assistant", "content": "你好！"},
        {"role": "user", "content": "青云宗在哪"},
    ]

    reply = await service.send(messages, current_document="<p>当前章节</p>")

    assert reply == "回答"
    payload = llm.async_complete.await_args.args[0]
    assert payload[0]["role"] == "system"
    assert "正道魁首" in payload[0]["content"]
    assert payload[0]["content"].endswith(DOCUMENT_HEADER + "当前章节")
    assert payload[1:] == messages


@pytest.mark.asyncio
async def test_empty_reply_is_replaced(chat_store):
    service = ChatService(chat_store, llm=_llm(reply=""), system_prompt="x")
    assert await service.send([{"role": "user", "content": "hi"}]) == EMPTY_REPLY
