"""Split long source documents into chunks sized for one extraction call."""

from __future__ import annotations

import re

import structlog
from config import settings

from models import TextChunk

logger = structlog.get_logger(__name__)

CHAPTER_HEADING_PATTERN = re.compile(
    r"第[一二三四五六七八九十百千\d]+章[^\n]*|Chapter\s*\d+[^\n]*",
    re.IGNORECASE,
)
_PARAGRAPH_BREAK = re.compile(r"\n\n+")
_PARAGRAPH_SEPARATOR = "\n\n"


def find_chapter_headings(text: str) -> list[tuple[int, int]]:
    """Return the ``(start, end)`` spans of every chapter heading in ``text``."""
    return [m.span() for m in CHAPTER_HEADING_PATTERN.finditer(text)]


def _iter_segments(text: str):
    """Yield ``(is_heading, segment)`` pairs in document order."""
    cursor = 0
    for start, end in find_chapter_headings(text):
        yield False, text[cursor:start]
        yield True, text[start:end]
        cursor = end
    yield False, text[cursor:]


def _pack_paragraphs(
    body: str, chapter: str | None, max_len: int, min_len: int
) -> list[TextChunk]:
    """Greedily pack blank-line separated paragraphs into chunks."""
    chunks: list[TextChunk] = []
    buffer: list[str] = []
    buffer_len = 0

    def flush() -> None:
        content = _PARAGRAPH_SEPARATOR.join(buffer).strip()
        if len(content) >= min_len:
            chunks.append(TextChunk(content=content, chapter=chapter))
        else:
            logger.debug("Dropping short paragraph chunk.", chars=len(content))

    for paragraph in _PARAGRAPH_BREAK.split(body):
        projected = buffer_len + len(_PARAGRAPH_SEPARATOR) + len(paragraph)
        if buffer and projected > max_len:
            flush()
            buffer = [paragraph]
            buffer_len = len(paragraph)
        else:
            buffer.append(paragraph)
            buffer_len = projected if len(buffer) > 1 else len(paragraph)

    tail = _PARAGRAPH_SEPARATOR.join(buffer).strip()
    if len(tail) > min_len:
        chunks.append(TextChunk(content=tail, chapter=chapter))
    return chunks


def segment_text(
    text: str,
    max_len: int = settings.CHUNK_MAX_CHARS,
    min_len: int = settings.CHUNK_MIN_CHARS,
) -> list[TextChunk]:
    """Split ``text`` into chunks aligned to chapter headings and paragraphs.

    Heading lines are not emitted; they label the chunks that follow them.
    Bodies longer than ``max_len`` are split on blank lines, and a single
    paragraph longer than ``max_len`` forms its own chunk rather than being
    cut. Fragments shorter than ``min_len`` characters are dropped.
    """
    if max_len <= 0:
        raise ValueError("max_len must be positive")
    if not text or not text.strip():
        return []

    chunks: list[TextChunk] = []
    current_chapter: str | None = None

    for is_heading, raw_segment in _iter_segments(text):
        segment = raw_segment.strip()
        if not segment:
            continue
        if is_heading:
            current_chapter = segment
            continue
        if len(segment) < min_len:
            continue
        if len(segment) <= max_len:
            chunks.append(TextChunk(content=segment, chapter=current_chapter))
        else:
            chunks.extend(
                _pack_paragraphs(segment, current_chapter, max_len, min_len)
            )

    logger.info(
        "Segmented document.",
        chars=len(text),
        chunks=len(chunks),
        max_len=max_len,
    )
    return chunks
