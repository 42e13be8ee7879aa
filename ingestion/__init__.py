"""Long text ingestion."""

from .ingestion_manager import IngestionManager, build_extraction_prompt

__all__ = ["IngestionManager", "build_extraction_prompt"]
