# orchestration/chat_service.py
"""Conversation with the model, grounded in the relevant knowledge entries."""

from __future__ import annotations

from typing import Literal, TypedDict

import structlog
from config import DEFAULT_SYSTEM_PROMPT, settings

from core.llm_interface import LLMService, llm_service
from processing.context_generator import PromptBudgetAssembler
from processing.relevance_matcher import RelevanceMatcher
from prompt_renderer import render_prompt
from storage.knowledge_store import KnowledgeStore

logger = structlog.get_logger(__name__)

EMPTY_REPLY = "无响应"


class ChatMessage(TypedDict):
    role: Literal["user", "assistant"]
    content: str


class ChatService:
    """Builds the knowledge-aware system prompt and sends the conversation."""

    def __init__(
        self,
        store: KnowledgeStore,
        llm: LLMService | None = None,
        matcher: RelevanceMatcher | None = None,
        assembler: PromptBudgetAssembler | None = None,
        system_prompt: str | None = None,
    ) -> None:
        self.store = store
        self.llm = llm or llm_service
        self.matcher = matcher or RelevanceMatcher(store)
        self.assembler = assembler or PromptBudgetAssembler(store)
        self.system_prompt = (
            system_prompt or settings.SYSTEM_PROMPT or DEFAULT_SYSTEM_PROMPT
        )

    def build_system_prompt(
        self, query: str, current_document: str | None = None
    ) -> str:
        matched = self.matcher.find_relevant(query)
        instructions = render_prompt("chat/knowledge_instructions.j2", {})
        knowledge = self.assembler.assemble(
            matched,
            max_total_chars=settings.PROMPT_MAX_KNOWLEDGE_CHARS,
            current_document=current_document,
        )
        return f"{self.system_prompt}\n\n{instructions}{knowledge}"

    async def send(
        self,
        messages: list[ChatMessage],
        current_document: str | None = None,
    ) -> str:
        """Send the conversation and return the assistant reply."""
        last_user_message = messages[-1]["content"] if messages else ""
        system_prompt = self.build_system_prompt(last_user_message, current_document)
        payload = [{"role": "system", "content": system_prompt}]
        payload.extend({"role": m["role"], "content": m["content"]} for m in messages)
        logger.debug(
            "Sending chat request.",
            turns=len(messages),
            system_prompt_chars=len(system_prompt),
        )
        reply = await self.llm.async_complete(payload)
        return reply or EMPTY_REPLY
