"""Chat-completion collaborators and generic LLM call helpers.

Every LLM call in the pipeline (classification, synthesis, drug-name
translation) goes through a ``ChatClient``: ``complete(model, messages,
system) -> str``. Two backends are provided, Anthropic directly and
OpenRouter's OpenAI-compatible endpoint.
"""

import asyncio
import json
import logging
import random
import re
from abc import ABC, abstractmethod
from typing import Any

import httpx
from anthropic import NOT_GIVEN, APIConnectionError, APIStatusError, AsyncAnthropic

from evidence_scout.config import Settings

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})

Message = dict[str, str]


class LLMError(Exception):
    """A chat backend call failed."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)

    @property
    def retryable(self) -> bool:
        # No status code means the request never got an HTTP answer.
        return self.status_code is None or self.status_code in RETRYABLE_STATUS_CODES


def user_message(content: str) -> Message:
    return {"role": "user", "content": content}


def extract_json_object(response: str) -> dict[str, Any]:
    """Parse the first ``{...}`` block out of a model response.

    Models sometimes wrap JSON in preamble or markdown fences even when told
    not to, so the object is located by pattern before decoding.
    """
    match = re.search(r"\{.*\}", response, re.DOTALL)
    if not match:
        raise ValueError("No JSON object found in LLM response")
    parsed = json.loads(match.group())
    if not isinstance(parsed, dict):
        raise ValueError("LLM response JSON is not an object")
    return parsed


class ChatClient(ABC):
    """Chat-completion capability: (model, history, system prompt) -> text."""

    @abstractmethod
    async def complete(
        self, model: str, messages: list[Message], system: str = ""
    ) -> str:
        """Return the assistant's reply. Raises LLMError on failure."""
        ...

    async def close(self) -> None:
        return None


class AnthropicChatClient(ChatClient):
    def __init__(
        self, api_key: str = "", timeout: float = 120.0, max_tokens: int = 4096
    ) -> None:
        self.api_key = api_key
        self.timeout = timeout
        self.max_tokens = max_tokens
        self._client: AsyncAnthropic | None = None

    def _get_client(self) -> AsyncAnthropic:
        if self._client is None:
            self._client = AsyncAnthropic(
                api_key=self.api_key or None, timeout=self.timeout
            )
        return self._client

    async def complete(
        self, model: str, messages: list[Message], system: str = ""
    ) -> str:
        try:
            response = await self._get_client().messages.create(
                model=model,
                max_tokens=self.max_tokens,
                system=system or NOT_GIVEN,
                messages=messages,
            )
        except APIStatusError as e:
            raise LLMError(f"Anthropic HTTP {e.status_code}: {e}", e.status_code) from e
        except APIConnectionError as e:
            raise LLMError(f"Anthropic connection error: {e}") from e

        return "".join(
            block.text for block in response.content if getattr(block, "type", "") == "text"
        )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()


class OpenRouterChatClient(ChatClient):
    """OpenRouter's OpenAI-compatible ``/chat/completions`` endpoint."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://openrouter.ai/api/v1",
        timeout: float = 120.0,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    async def complete(
        self, model: str, messages: list[Message], system: str = ""
    ) -> str:
        payload_messages = [{"role": "system", "content": system}] if system else []
        payload_messages.extend(messages)

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                resp = await client.post(
                    f"{self.base_url}/chat/completions",
                    headers={"Authorization": f"Bearer {self.api_key}"},
                    json={"model": model, "messages": payload_messages},
                )
            except httpx.HTTPError as e:
                raise LLMError(f"OpenRouter connection error: {e}") from e

        if resp.status_code >= 400:
            raise LLMError(
                f"OpenRouter HTTP {resp.status_code}: {resp.text[:200]}",
                resp.status_code,
            )
        try:
            return resp.json()["choices"][0]["message"]["content"] or ""
        except (json.JSONDecodeError, KeyError, IndexError, TypeError) as e:
            raise LLMError(f"Malformed OpenRouter response: {e}") from e


def build_chat_client(settings: Settings) -> ChatClient:
    """Pick the chat backend named by ``settings.llm_provider``."""
    if settings.llm_provider == "openrouter":
        return OpenRouterChatClient(
            api_key=settings.openrouter_api_key,
            base_url=settings.openrouter_base_url,
            timeout=settings.synthesis_timeout_seconds,
        )
    if settings.llm_provider == "anthropic":
        return AnthropicChatClient(
            api_key=settings.anthropic_api_key,
            timeout=settings.synthesis_timeout_seconds,
        )
    raise ValueError(f"Unknown llm_provider: {settings.llm_provider!r}")


async def complete_with_retry(
    client: ChatClient,
    model: str,
    messages: list[Message],
    system: str = "",
    *,
    max_retries: int = 2,
    base_delay: float = 1.0,
    max_delay: float = 20.0,
) -> str:
    """Call ``client.complete`` retrying transient failures with jittered backoff.

    Non-retryable errors (auth, bad request) are raised immediately.
    """
    attempt = 0
    while True:
        try:
            return await client.complete(model, messages, system)
        except LLMError as e:
            if not e.retryable or attempt >= max_retries:
                raise
            delay = min(base_delay * 2**attempt, max_delay)
            delay = random.uniform(delay / 2, delay)
            logger.warning(
                "LLM call to %s failed (attempt=%d): %s; retrying in %.1fs",
                model,
                attempt + 1,
                e,
                delay,
            )
            await asyncio.sleep(delay)
            attempt += 1
