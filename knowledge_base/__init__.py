"""Knowledge base maintenance helpers."""

from .merge import (
    build_merged_entry,
    merge_extracted_items,
    merge_keywords,
)

__all__ = [
    "build_merged_entry",
    "merge_extracted_items",
    "merge_keywords",
]
