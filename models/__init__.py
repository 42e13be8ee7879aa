"""Central package for Lorekeeper data models."""

from .knowledge_models import (
    CATEGORY_FIELDS,
    CategoryField,
    DuplicateGroup,
    ExtractedItem,
    KnowledgeCategory,
    KnowledgeEntry,
    MergeResult,
    TextChunk,
    category_fields,
    category_label,
    create_empty_details,
)

__all__ = [
    "CATEGORY_FIELDS",
    "CategoryField",
    "DuplicateGroup",
    "ExtractedItem",
    "KnowledgeCategory",
    "KnowledgeEntry",
    "MergeResult",
    "TextChunk",
    "category_fields",
    "category_label",
    "create_empty_details",
]
