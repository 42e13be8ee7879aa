# config.py
"""Configuration settings for the Lorekeeper writing assistant.
Uses Pydantic BaseSettings for automatic environment variable loading.
"""

from __future__ import annotations

import os

import structlog
from dotenv import load_dotenv
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()

logger = structlog.get_logger()

DEFAULT_SYSTEM_PROMPT = (
    "你是一个专业的小说写作助手。帮助用户进行创作、润色、分析角色、构思情节等。\n"
    "回答要简洁实用，直接给出建议或修改后的内容。"
)


class LoreSettings(BaseSettings):
    """Full configuration for Lorekeeper."""

    # API and Model Configuration
    OPENAI_API_BASE: str = "https://api.openai.com/v1"
    OPENAI_API_KEY: str = ""
    MODEL: str = "gpt-4o-mini"
    HTTPX_TIMEOUT: float = 120.0

    # Long text segmentation
    CHUNK_MAX_CHARS: int = 3000
    CHUNK_MIN_CHARS: int = 50

    # Pacing between sequential model calls (seconds)
    EXTRACTION_PACING_SECONDS: float = 0.5
    MERGE_PACING_SECONDS: float = 2.0

    # Prompt budget for injected knowledge
    PROMPT_MAX_KNOWLEDGE_CHARS: int = 50000
    PROMPT_FULL_DETAIL_ENTRIES: int = 10
    PROMPT_MAX_LISTED_ENTRIES: int = 30
    PROMPT_SUMMARY_CHARS: int = 200
    PROMPT_SUMMARY_HEADROOM_CHARS: int = 2000
    PROMPT_DOCUMENT_EXCERPT_CHARS: int = 3000

    # Chat
    SYSTEM_PROMPT: str = ""

    # Storage and Output
    BASE_OUTPUT_DIR: str = "lorekeeper_output"
    KNOWLEDGE_STORE_FILE: str = "knowledge.json"
    EXTERNAL_KNOWLEDGE_FILE: str | None = None
    EXPORT_DIR: str = "exports"

    # Logging & UI
    LOG_LEVEL_STR: str = Field("INFO", alias="AGENT_LOG_LEVEL")
    LOG_FORMAT: str = (
        "%(asctime)s - %(levelname)s - [%(name)s:%(funcName)s:%(lineno)d] - %(message)s"
    )
    LOG_DATE_FORMAT: str = "%Y-%m-%d %H:%M:%S"
    LOG_FILE: str | None = "lorekeeper.log"
    ENABLE_RICH_PROGRESS: bool = True

    @model_validator(mode="after")
    def check_budget_ordering(self) -> LoreSettings:
        if self.PROMPT_MAX_LISTED_ENTRIES < self.PROMPT_FULL_DETAIL_ENTRIES:
            logger.warning(
                "PROMPT_MAX_LISTED_ENTRIES is below PROMPT_FULL_DETAIL_ENTRIES; "
                "no summary lines will be rendered.",
                listed=self.PROMPT_MAX_LISTED_ENTRIES,
                full=self.PROMPT_FULL_DETAIL_ENTRIES,
            )
        self.OPENAI_API_BASE = self.OPENAI_API_BASE.rstrip("/")
        return self

    model_config = SettingsConfigDict(
        env_prefix="", env_file=".env", populate_by_name=True, extra="ignore"
    )


settings = LoreSettings()


KNOWLEDGE_STORE_PATH = os.path.join(
    settings.BASE_OUTPUT_DIR, settings.KNOWLEDGE_STORE_FILE
)
EXPORT_DIR = os.path.join(settings.BASE_OUTPUT_DIR, settings.EXPORT_DIR)
