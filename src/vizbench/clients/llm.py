"""OpenAI-compatible chat and responses API client."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import httpx

from ..constants import (
    DEFAULT_LLM_BASE_URL,
    DEFAULT_LLM_MAX_CONCURRENT,
    DEFAULT_LLM_TIMEOUT_SECONDS,
)
from ..errors import LLMError

logger = logging.getLogger(__name__)

SSE_DATA_PREFIX = "data:"
SSE_DONE = "[DONE]"


def parse_sse_line(line: str) -> str:
    """Return the content delta carried by one server-sent event line.

    Blank lines, comments, non-data fields and the terminal ``[DONE]`` marker
    yield an empty string.
    """
    line = line.strip()
    if not line.startswith(SSE_DATA_PREFIX):
        return ""
    payload = line[len(SSE_DATA_PREFIX) :].strip()
    if not payload or payload == SSE_DONE:
        return ""
    try:
        chunk = json.loads(payload)
    except json.JSONDecodeError:
        logger.debug("Ignoring malformed stream chunk: %s", payload[:80])
        return ""
    choices = chunk.get("choices") or []
    if not choices:
        return ""
    delta = choices[0].get("delta") or {}
    return delta.get("content") or ""


def extract_output_text(response: dict) -> str:
    """Concatenate every output_text part of a responses API payload."""
    parts = []
    for output in response.get("output") or []:
        for content in output.get("content") or []:
            if content.get("type") == "output_text" and content.get("text"):
                parts.append(content["text"])
    return "\n".join(parts).strip()


@dataclass
class LLMClient:
    """Async client for OpenAI-compatible chat completions and responses.

    Features:
    - Streaming chat completions read from server-sent events
    - Multimodal requests through the responses API
    - Concurrency limiting via semaphore
    """

    api_key: str | None = None
    base_url: str = DEFAULT_LLM_BASE_URL
    timeout: float = DEFAULT_LLM_TIMEOUT_SECONDS
    max_concurrent: int = DEFAULT_LLM_MAX_CONCURRENT
    _semaphore: asyncio.Semaphore = field(default=None, repr=False)  # type: ignore[assignment]

    def __post_init__(self) -> None:
        self.base_url = self.base_url.rstrip("/")
        self._semaphore = asyncio.Semaphore(self.max_concurrent)

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def chat(
        self,
        messages: list[dict[str, str]],
        model: str,
        temperature: float | None = None,
        json_mode: bool = False,
        on_token: Callable[[str], None] | None = None,
    ) -> str:
        """
        Run a streaming chat completion and return the full text.

        Args:
            messages: Chat messages with role and content.
            model: Model name.
            temperature: Sampling temperature, omitted when None.
            json_mode: Request a JSON object response format.
            on_token: Called with each content delta as it arrives.

        Returns:
            The concatenated assistant content.

        Raises:
            httpx.HTTPStatusError: If the API returns an error status.
            LLMError: If the stream carried no content.
        """
        body: dict[str, Any] = {"model": model, "messages": messages, "stream": True}
        if temperature is not None:
            body["temperature"] = temperature
        if json_mode:
            body["response_format"] = {"type": "json_object"}

        pieces: list[str] = []
        async with self._semaphore:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                async with client.stream(
                    "POST",
                    f"{self.base_url}/chat/completions",
                    json=body,
                    headers=self._headers(),
                ) as response:
                    if response.is_error:
                        await response.aread()
                    response.raise_for_status()
                    async for line in response.aiter_lines():
                        delta = parse_sse_line(line)
                        if delta:
                            pieces.append(delta)
                            if on_token is not None:
                                on_token(delta)

        content = "".join(pieces)
        if not content.strip():
            raise LLMError(f"Model {model} returned no content")
        logger.debug("Chat completion from %s: %d characters", model, len(content))
        return content

    async def respond(self, content: list[dict[str, Any]], model: str) -> str:
        """
        Send one multimodal user turn to the responses API.

        Args:
            content: Input parts such as ``{"type": "input_text", "text": ...}`` and
                ``{"type": "input_image", "image_url": "data:image/png;base64,..."}``.
            model: Vision-capable model name.

        Returns:
            The concatenated output text.

        Raises:
            httpx.HTTPStatusError: If the API returns an error status.
            LLMError: If the response has no text output.
        """
        body = {"model": model, "input": [{"role": "user", "content": content}]}

        async with self._semaphore:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.base_url}/responses", json=body, headers=self._headers()
                )
                response.raise_for_status()
                data = response.json()

        text = extract_output_text(data)
        if not text:
            raise LLMError("The API returned no text content")
        return text
