# storage/file_manager.py
"""Utility class for asynchronous file operations."""

from __future__ import annotations

import asyncio
import os

import structlog
from config import EXPORT_DIR
from docx import Document

from core.errors import UnsupportedFileError
from storage.exporter import render_export

logger = structlog.get_logger(__name__)

TEXT_EXTENSIONS = (".txt",)
WORD_EXTENSIONS = (".docx", ".doc")

UNSUPPORTED_TYPE_MESSAGE = "只支持 .txt 和 .docx 文件"
WORD_READ_FAILED_MESSAGE = "Word 文件读取失败，请尝试另存为 .docx 格式"
TEXT_DECODE_FAILED_MESSAGE = "文本文件不是 UTF-8 编码，请转换为 UTF-8 后重试"


class FileManager:
    """Handle reading source documents and writing exports."""

    def __init__(self, export_dir: str = EXPORT_DIR) -> None:
        self.export_dir = export_dir

    async def read_source_text(self, file_path: str) -> str:
        """Return the raw text of a ``.txt`` or Word document."""
        lowered = file_path.lower()
        if not lowered.endswith(TEXT_EXTENSIONS + WORD_EXTENSIONS):
            raise UnsupportedFileError(UNSUPPORTED_TYPE_MESSAGE)
        loop = asyncio.get_running_loop()
        if lowered.endswith(TEXT_EXTENSIONS):
            return await loop.run_in_executor(None, self._read_text_sync, file_path)
        return await loop.run_in_executor(None, self._read_word_sync, file_path)

    async def read_plain_text(self, file_path: str) -> str:
        """Return the UTF-8 contents of ``file_path`` regardless of extension."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._read_text_sync, file_path)

    def _read_text_sync(self, file_path: str) -> str:
        try:
            with open(file_path, encoding="utf-8") as f:
                return f.read()
        except UnicodeDecodeError as e:
            logger.warning(
                "Text file is not valid UTF-8.", file_path=file_path, error=str(e)
            )
            raise UnsupportedFileError(TEXT_DECODE_FAILED_MESSAGE) from e

    def _read_word_sync(self, file_path: str) -> str:
        """Extract paragraph text from a Word document.

        Args:
            file_path: Path to the document.

        Returns:
            Paragraphs joined by blank lines.
        """
        try:
            document = Document(file_path)
        except Exception as e:
            logger.warning(
                "Failed to open Word document.", file_path=file_path, error=str(e)
            )
            raise UnsupportedFileError(WORD_READ_FAILED_MESSAGE) from e
        return "\n\n".join(p.text for p in document.paragraphs)

    async def export_document(
        self, title: str, html: str, fmt: str, output_dir: str | None = None
    ) -> str:
        """Write ``html`` as ``.txt`` or ``.doc`` and return the file path."""
        file_name, body = render_export(title, html, fmt)
        target_dir = output_dir or self.export_dir
        file_path = os.path.join(target_dir, file_name)
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._write_sync, file_path, body)
        logger.info("Document exported.", file_path=file_path, format=fmt)
        return file_path

    def _write_sync(self, file_path: str, body: str) -> None:
        os.makedirs(os.path.dirname(file_path) or ".", exist_ok=True)
        with open(file_path, "w", encoding="utf-8") as f:
            f.write(body)
