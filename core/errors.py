# core/errors.py
"""Error taxonomy shared by the extraction, merge and chat pipelines."""

from __future__ import annotations


class LorekeeperError(Exception):
    """Base class for recoverable Lorekeeper failures."""


class ConfigurationError(LorekeeperError):
    """Raised before any work starts, e.g. when no API key is configured."""


class TransportError(LorekeeperError):
    """Non-2xx response or network failure talking to the model provider."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ResponseFormatError(LorekeeperError):
    """The model reply did not contain the expected JSON structure."""


class UnsupportedFileError(LorekeeperError):
    """The source file type is not supported or could not be read."""
