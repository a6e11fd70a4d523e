"""OpenAI client for chat completion relaying."""

import logging
from dataclasses import dataclass
from typing import Any

import httpx
from openai import APIConnectionError, APIStatusError, AsyncOpenAI

from core.config import settings
from core.exceptions import UpstreamAPIError

logger = logging.getLogger(__name__)

SERVICE_NAME = "OpenAI"
UPSTREAM_FAILURE_MESSAGE = "OpenAI API request failed"


@dataclass
class ChatCompletionResult:
    """The parts of a completion the relay passes on."""

    content: str
    total_tokens: int = 0
    model: str | None = None


class OpenAIClient:
    """Client for OpenAI's chat completions API."""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize OpenAI client.

        Retries are disabled; upstream failures go straight back to the caller.
        """
        self.client = AsyncOpenAI(
            api_key=api_key or settings.openai_api_key,
            base_url=base_url or settings.openai_base_url,
            timeout=settings.openai_timeout,
            max_retries=0,
            http_client=http_client,
        )

    def build_request(self, messages: list[dict[str, Any]]) -> dict[str, Any]:
        """Chat completions parameters for a converted message list."""
        return {
            "model": settings.openai_model,
            "messages": messages,
            "max_tokens": settings.openai_max_tokens,
            "temperature": settings.openai_temperature,
        }

    async def create_chat_completion(
        self, messages: list[dict[str, Any]]
    ) -> ChatCompletionResult:
        """
        Forward messages to the chat completions endpoint.

        Args:
            messages: Messages already in chat-completions (vision) format

        Returns:
            The first choice's content and the token usage

        Raises:
            UpstreamAPIError: non-2xx status, network failure or empty reply
        """
        try:
            response = await self.client.chat.completions.create(
                **self.build_request(messages)
            )
        except APIStatusError as e:
            logger.error(f"OpenAI API error {e.status_code}: {e.response.text}")
            raise UpstreamAPIError(
                SERVICE_NAME, UPSTREAM_FAILURE_MESSAGE, e.status_code
            ) from e
        except APIConnectionError as e:
            logger.error(f"OpenAI API unreachable: {e}")
            raise UpstreamAPIError(SERVICE_NAME, UPSTREAM_FAILURE_MESSAGE) from e

        if not response.choices:
            logger.error("OpenAI API returned no choices")
            raise UpstreamAPIError(SERVICE_NAME, UPSTREAM_FAILURE_MESSAGE)

        return ChatCompletionResult(
            content=response.choices[0].message.content or "",
            total_tokens=response.usage.total_tokens if response.usage else 0,
            model=response.model,
        )

    async def close(self) -> None:
        """Release the underlying HTTP connection pool."""
        await self.client.close()


# Global client instance
openai_client = OpenAIClient()
