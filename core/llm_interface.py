# core/llm_interface.py
"""
Handles all direct interactions with the chat-completion provider.
Requests follow the OpenAI chat-completions JSON contract and are sent
one at a time through a shared asynchronous HTTP client.

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at

    http://www.apache.org/licenses/LICENSE-2.0

Unless required by applicable law or agreed to in writing, software
distributed under the License is distributed on an "AS IS" BASIS,
WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
See the License for the specific language governing permissions and
limitations under the License.

Copyright 2025 Dennis Lewis
"""

# Standard library imports
import json
from collections.abc import Awaitable, Callable

# Type hints
from typing import Any

# Third-party imports
import httpx
import structlog

# Local imports
from config import settings

from core.errors import ConfigurationError, ResponseFormatError, TransportError

logger = structlog.get_logger(__name__)

CompletionFn = Callable[[str], Awaitable[str]]

MISSING_API_KEY_MESSAGE = "请先在 AI设置 中配置 API Key"


def ensure_api_key(api_key: str | None) -> str:
    """Return ``api_key`` or raise ``ConfigurationError`` when it is blank."""
    if not api_key or not api_key.strip():
        raise ConfigurationError(MISSING_API_KEY_MESSAGE)
    return api_key


class LLMService:
    """Utility class for interacting with the chat-completion endpoint."""

    def __init__(
        self,
        api_base: str | None = None,
        api_key: str | None = None,
        model: str | None = None,
        timeout: float = settings.HTTPX_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ):
        self.api_base = (api_base or settings.OPENAI_API_BASE).rstrip("/")
        self.api_key = settings.OPENAI_API_KEY if api_key is None else api_key
        self.model = model or settings.MODEL
        # Use a single async client for all requests to reuse connections
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self.request_count = 0

    @property
    def has_credentials(self) -> bool:
        return bool(self.api_key and self.api_key.strip())

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    def _log_llm_usage(self, model_name: str, usage_data: Any) -> None:
        """Helper to log LLM token usage if available in the response."""
        if usage_data and isinstance(usage_data, dict):
            logger.info(
                f"LLM ('{model_name}') Usage - Prompt: {usage_data.get('prompt_tokens', 'N/A')} tk, "
                f"Comp: {usage_data.get('completion_tokens', 'N/A')} tk, Total: {usage_data.get('total_tokens', 'N/A')} tk"
            )
        else:
            logger.debug(
                f"LLM ('{model_name}') response missing 'usage' information or 'usage' was not a dictionary."
            )

    async def async_complete(
        self, messages: list[dict[str, str]], model: str | None = None
    ) -> str:
        """Send ``messages`` and return the first choice's content.

        Raises:
            ConfigurationError: no API key is configured.
            TransportError: non-2xx status or network failure.
            ResponseFormatError: the body is not the expected JSON document.
        """
        api_key = ensure_api_key(self.api_key)
        model_name = model or self.model
        payload: dict[str, Any] = {"model": model_name, "messages": messages}
        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }
        prompt_chars = sum(len(m.get("content", "")) for m in messages)
        logger.debug(
            f"Calling LLM '{model_name}' with {len(messages)} message(s), {prompt_chars} prompt chars."
        )

        self.request_count += 1
        try:
            response = await self._client.post(
                f"{self.api_base}/chat/completions",
                json=payload,
                headers=headers,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e_status:
            status = e_status.response.status_code
            logger.warning(
                f"LLM ('{model_name}') HTTP status {status}. Body: {e_status.response.text[:200]}"
            )
            raise TransportError(f"API错误: {status}", status_code=status) from e_status
        except httpx.RequestError as e_req:
            logger.warning(f"LLM ('{model_name}') request error: {e_req}")
            raise TransportError(f"网络错误: {e_req}") from e_req

        try:
            data = response.json()
        except json.JSONDecodeError as e_json:
            raise ResponseFormatError(
                f"响应不是有效的 JSON: {response.text[:200]}"
            ) from e_json

        if not isinstance(data, dict):
            raise ResponseFormatError("响应结构异常")

        self._log_llm_usage(model_name, data.get("usage"))
        choices = data.get("choices") or []
        if not isinstance(choices, list):
            raise ResponseFormatError("响应结构异常: choices 不是数组")
        if not choices:
            logger.error(
                f"LLM ('{model_name}') Invalid response structure - missing choices despite 200 OK: {str(data)[:300]}"
            )
            return ""
        first_choice = choices[0]
        if not isinstance(first_choice, dict):
            raise ResponseFormatError("响应结构异常: choice 不是对象")
        message = first_choice.get("message") or {}
        if not isinstance(message, dict):
            raise ResponseFormatError("响应结构异常: message 不是对象")
        content = message.get("content")
        return content if isinstance(content, str) else ""

    async def async_call_llm(self, prompt: str, model: str | None = None) -> str:
        """Send ``prompt`` as a single user message."""
        return await self.async_complete(
            [{"role": "user", "content": prompt}], model=model
        )


# Instantiate the service for other modules to import and use
llm_service = LLMService()
