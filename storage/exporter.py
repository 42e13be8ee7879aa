# storage/exporter.py
"""Rendering of HTML documents for plain-text and Word export."""

from __future__ import annotations

import re

_ILLEGAL_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1F]')
_TRAILING_DOTS_SPACES = re.compile(r"[. ]+$")
_HTML_TAG_RE = re.compile(r"<[^>]*>")

FALLBACK_FILENAME = "document"

EXPORT_EXTENSIONS = {"txt": ".txt", "doc": ".doc"}


def sanitize_filename(name: str) -> str:
    """Return ``name`` made safe for use as a file name."""
    cleaned = _ILLEGAL_FILENAME_CHARS.sub("_", name or "")
    cleaned = re.sub(r"\s+", " ", cleaned).strip()
    cleaned = _TRAILING_DOTS_SPACES.sub("", cleaned)
    return cleaned or FALLBACK_FILENAME


def escape_html(text: str) -> str:
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&#39;")
    )


def html_to_plain_text(html: str) -> str:
    """Convert editor HTML to plain text, keeping paragraph breaks."""
    text = re.sub(r"<br\s*/?>", "\n", html, flags=re.IGNORECASE)
    text = re.sub(r"</p>", "\n\n", text, flags=re.IGNORECASE)
    text = re.sub(r"</div>", "\n", text, flags=re.IGNORECASE)
    text = re.sub(r"</h[1-6]>", "\n\n", text, flags=re.IGNORECASE)
    text = _HTML_TAG_RE.sub("", text)
    text = (
        text.replace("&nbsp;", " ")
        .replace("&lt;", "<")
        .replace("&gt;", ">")
        .replace("&amp;", "&")
    )
    return text.strip()


def render_word_document(title: str, html: str) -> str:
    """Wrap ``html`` in a container Word opens as a ``.doc`` document."""
    return (
        '<html xmlns:o="urn:schemas-microsoft-com:office:office"\n'
        '      xmlns:w="urn:schemas-microsoft-com:office:word">\n'
        f'<head><meta charset="utf-8"><title>{escape_html(title)}</title></head>\n'
        f"<body>{html}</body>\n"
        "</html>\n"
    )


def render_export(title: str, html: str, fmt: str) -> tuple[str, str]:
    """Return ``(file_name, body)`` for exporting ``html`` as ``fmt``."""
    if fmt not in EXPORT_EXTENSIONS:
        raise ValueError(f"Unsupported export format: {fmt!r}")
    safe_title = sanitize_filename(title)
    if fmt == "txt":
        body = html_to_plain_text(html)
    else:
        body = render_word_document(safe_title, html)
    return f"{safe_title}{EXPORT_EXTENSIONS[fmt]}", body
