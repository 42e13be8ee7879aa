# parsing/__init__.py
"""Parsing of structured JSON embedded in free-form model replies."""

from __future__ import annotations

import json
import re
from typing import Any

import structlog
from pydantic import ValidationError

from core.errors import ResponseFormatError
from models import ExtractedItem

logger = structlog.get_logger(__name__)

_JSON_ARRAY_RE = re.compile(r"\[[\s\S]*\]")
_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


class ParseError(ResponseFormatError):
    """The reply lacks a parseable JSON array or object."""


def find_json_array(text: str) -> str | None:
    """Return the greedy ``[...]`` substring of ``text`` or ``None``."""
    if not text:
        return None
    match = _JSON_ARRAY_RE.search(text)
    return match.group(0) if match else None


def find_json_object(text: str) -> str | None:
    """Return the greedy ``{...}`` substring of ``text`` or ``None``."""
    if not text:
        return None
    match = _JSON_OBJECT_RE.search(text)
    return match.group(0) if match else None


def _load(fragment: str | None, kind: str) -> Any:
    if fragment is None:
        raise ParseError(f"No JSON {kind} found in model reply.")
    try:
        return json.loads(fragment)
    except json.JSONDecodeError as e:
        raise ParseError(f"Invalid JSON {kind}: {e}") from e


def parse_json_array(text: str) -> list[Any]:
    """Locate and decode the first JSON array in ``text``."""
    data = _load(find_json_array(text), "array")
    if not isinstance(data, list):
        raise ParseError(f"Expected a JSON array, got {type(data).__name__}.")
    return data


def parse_json_object(text: str) -> dict[str, Any]:
    """Locate and decode the first JSON object in ``text``."""
    data = _load(find_json_object(text), "object")
    if not isinstance(data, dict):
        raise ParseError(f"Expected a JSON object, got {type(data).__name__}.")
    return data


def parse_extracted_items(text: str) -> list[ExtractedItem]:
    """Parse an extraction reply into items.

    A reply with no array at all yields no items; malformed elements inside a
    valid array are skipped individually.
    """
    if find_json_array(text) is None:
        logger.info("Extraction reply contained no JSON array.")
        return []
    items: list[ExtractedItem] = []
    for idx, raw in enumerate(parse_json_array(text)):
        if not isinstance(raw, dict):
            logger.warning(
                "Extracted element is not an object; skipping.",
                index=idx,
                element=str(raw)[:100],
            )
            continue
        title = raw.get("title")
        if not isinstance(title, str) or not title.strip():
            logger.warning("Extracted element has no title; skipping.", index=idx)
            continue
        try:
            items.append(ExtractedItem.model_validate(raw))
        except ValidationError as e:
            logger.warning(
                "Extracted element failed validation; skipping.",
                index=idx,
                error=str(e),
            )
    return items


def parse_merged_entry(text: str) -> dict[str, Any]:
    """Parse a merge reply into ``{"title", "keywords", "content"}``."""
    data = parse_json_object(text)
    title = data.get("title")
    keywords = data.get("keywords")
    content = data.get("content")
    return {
        "title": title.strip() if isinstance(title, str) else "",
        "keywords": [kw for kw in keywords if isinstance(kw, str)]
        if isinstance(keywords, list)
        else [],
        "content": content if isinstance(content, str) else "",
    }


__all__ = [
    "ParseError",
    "find_json_array",
    "find_json_object",
    "parse_json_array",
    "parse_json_object",
    "parse_extracted_items",
    "parse_merged_entry",
]
