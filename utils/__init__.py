# utils/__init__.py
"""General utility functions for Lorekeeper."""

from __future__ import annotations

from .ingestion_utils import find_chapter_headings, segment_text
from .logging import setup_logging
from .text_processing import normalize_base_title, strip_html_tags, tokenize_query

__all__ = [
    "find_chapter_headings",
    "normalize_base_title",
    "segment_text",
    "setup_logging",
    "strip_html_tags",
    "tokenize_query",
]
