"""Core data models for knowledge entries and the transient pipeline types."""

from __future__ import annotations

import uuid
from enum import Enum
from typing import Any, NamedTuple

import structlog
from pydantic import BaseModel, Field, field_validator

logger = structlog.get_logger(__name__)


class KnowledgeCategory(str, Enum):
    """Closed set of knowledge categories."""

    PERSON = "人物"
    WORLD = "世界观"
    PLOT = "剧情"
    SETTING = "设定"
    OTHER = "其他"

    @classmethod
    def parse(cls, value: Any) -> KnowledgeCategory | None:
        """Return the matching member, or ``None`` for an unknown value."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            stripped = value.strip()
            for member in cls:
                if stripped in (member.value, member.name, member.name.lower()):
                    return member
        return None


class CategoryField(NamedTuple):
    key: str
    label: str


# The first field of every category holds freeform text.
CATEGORY_FIELDS: dict[KnowledgeCategory, tuple[CategoryField, ...]] = {
    KnowledgeCategory.PERSON: (
        CategoryField("overview", "简介"),
        CategoryField("identity", "身份"),
        CategoryField("appearance", "外貌"),
        CategoryField("personality", "性格"),
        CategoryField("background", "背景经历"),
        CategoryField("abilities", "能力"),
        CategoryField("relationships", "人物关系"),
        CategoryField("notes", "备注"),
    ),
    KnowledgeCategory.WORLD: (
        CategoryField("overview", "概述"),
        CategoryField("geography", "地理"),
        CategoryField("history", "历史"),
        CategoryField("factions", "势力"),
        CategoryField("rules", "规则体系"),
        CategoryField("notes", "备注"),
    ),
    KnowledgeCategory.PLOT: (
        CategoryField("summary", "剧情概要"),
        CategoryField("chapter", "所在章节"),
        CategoryField("participants", "参与人物"),
        CategoryField("cause", "起因"),
        CategoryField("outcome", "结果"),
        CategoryField("foreshadowing", "伏笔"),
    ),
    KnowledgeCategory.SETTING: (
        CategoryField("description", "描述"),
        CategoryField("rules", "规则"),
        CategoryField("limitations", "限制"),
        CategoryField("notes", "备注"),
    ),
    KnowledgeCategory.OTHER: (CategoryField("content", "内容"),),
}


def category_fields(
    category: KnowledgeCategory | str,
) -> tuple[CategoryField, ...] | None:
    """Return the field schema for ``category`` or ``None`` when unknown."""
    known = KnowledgeCategory.parse(category)
    if known is None:
        return None
    return CATEGORY_FIELDS[known]


def create_empty_details(category: KnowledgeCategory | str) -> dict[str, str]:
    """Return a details mapping with every field of ``category`` set to ``""``."""
    fields = category_fields(category)
    if fields is None:
        return {}
    return {field.key: "" for field in fields}


def category_label(category: KnowledgeCategory | str) -> str:
    return category.value if isinstance(category, KnowledgeCategory) else str(category)


def _coerce_keywords(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, list | tuple):
        return [kw for kw in value if isinstance(kw, str)]
    return []


class KnowledgeEntry(BaseModel):
    """A stored fact record about the work."""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    category: KnowledgeCategory | str
    title: str = ""
    keywords: list[str] = Field(default_factory=list)
    details: dict[str, str] = Field(default_factory=dict)

    @field_validator("category", mode="before")
    @classmethod
    def _known_category_when_possible(cls, value: Any) -> Any:
        known = KnowledgeCategory.parse(value)
        if known is not None:
            return known
        return str(value) if value is not None else ""

    @field_validator("keywords", mode="before")
    @classmethod
    def _keywords_as_strings(cls, value: Any) -> list[str]:
        return _coerce_keywords(value)

    @field_validator("details", mode="before")
    @classmethod
    def _details_as_strings(cls, value: Any) -> dict[str, str]:
        if not isinstance(value, dict):
            return {}
        return {str(k): v for k, v in value.items() if isinstance(v, str)}

    @property
    def is_known_category(self) -> bool:
        return isinstance(self.category, KnowledgeCategory)

    @property
    def category_label(self) -> str:
        return category_label(self.category)

    def detail(self, key: str) -> str:
        return self.details.get(key, "")

    def details_text(self) -> str:
        """Join the non-empty detail values with spaces."""
        return " ".join(v for v in self.details.values() if v)


class ExtractedItem(BaseModel):
    """A partial knowledge item produced by one extraction call."""

    category: KnowledgeCategory = KnowledgeCategory.OTHER
    title: str
    keywords: list[str] = Field(default_factory=list)
    content: str = ""

    @field_validator("category", mode="before")
    @classmethod
    def _unknown_category_is_other(cls, value: Any) -> KnowledgeCategory:
        known = KnowledgeCategory.parse(value)
        if known is None:
            logger.warning(
                "Extracted item has unknown category; filing under OTHER.",
                category=value,
            )
            return KnowledgeCategory.OTHER
        return known

    @field_validator("keywords", mode="before")
    @classmethod
    def _keywords_as_strings(cls, value: Any) -> list[str]:
        return _coerce_keywords(value)

    @field_validator("content", mode="before")
    @classmethod
    def _content_as_string(cls, value: Any) -> str:
        return "" if value is None else str(value)

    def to_entry(self) -> KnowledgeEntry:
        """Create a ``KnowledgeEntry`` with ``content`` in the first field."""
        details = create_empty_details(self.category)
        first_key = next(iter(details), None)
        if first_key is not None:
            details[first_key] = self.content
        return KnowledgeEntry(
            category=self.category,
            title=self.title,
            keywords=list(self.keywords),
            details=details,
        )


class TextChunk(BaseModel):
    """A bounded slice of a long document prepared for one extraction call."""

    content: str
    chapter: str | None = None


class DuplicateGroup(BaseModel):
    """Entries sharing category and normalized base title."""

    category: KnowledgeCategory | str
    base_title: str
    entries: list[KnowledgeEntry]

    @property
    def size(self) -> int:
        return len(self.entries)


class MergeResult(BaseModel):
    """Outcome of merging one duplicate group."""

    group: DuplicateGroup
    merged_entry: KnowledgeEntry | None = None
    error: str | None = None
    deleted_ids: list[str] = Field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.merged_entry is not None and self.error is None

    @property
    def message(self) -> str:
        if self.succeeded and self.merged_entry is not None:
            return (
                f"已成功合并 {self.group.size} 个条目为 "
                f"\"{self.merged_entry.title}\""
            )
        return self.error or ""
