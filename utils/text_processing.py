import re

import structlog

logger = structlog.get_logger(__name__)

# Full-width and CJK punctuation treated as word separators in queries.
QUERY_PUNCTUATION = "，。？！、“”‘’：；（）【】"
_QUERY_PUNCTUATION_RE = re.compile(f"[{re.escape(QUERY_PUNCTUATION)}]")

MIN_QUERY_TOKEN_LENGTH = 2

_ENUMERATOR_SUFFIX_RE = re.compile(r"\s*[（(]\d+[)）]\s*$")
_HTML_TAG_RE = re.compile(r"<[^>]*>")


def tokenize_query(text: str) -> list[str]:
    """Lowercase ``text`` and split it into coarse word-like tokens.

    CJK punctuation counts as whitespace and tokens shorter than two
    characters are discarded.
    """
    if not text:
        return []
    normalized = _QUERY_PUNCTUATION_RE.sub(" ", text.lower())
    return [w for w in normalized.split() if len(w) >= MIN_QUERY_TOKEN_LENGTH]


def normalize_base_title(title: str) -> str:
    """Strip trailing ``(2)`` / ``（2）`` style enumerators from ``title``."""
    if not isinstance(title, str):
        title = str(title)
    base = title.strip()
    while True:
        stripped = _ENUMERATOR_SUFFIX_RE.sub("", base).strip()
        if stripped == base:
            return base
        base = stripped


def strip_html_tags(html: str) -> str:
    if not html:
        return ""
    return _HTML_TAG_RE.sub("", html)
