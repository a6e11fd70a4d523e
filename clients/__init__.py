"""Clients package for external API integrations."""

from .openai_client import ChatCompletionResult, OpenAIClient, openai_client

__all__ = ["ChatCompletionResult", "OpenAIClient", "openai_client"]
