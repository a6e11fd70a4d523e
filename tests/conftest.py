"""Shared fixtures for relay tests."""

import json
import os
import time
from typing import Any

import pytest

# Settings are read at import time
os.environ.setdefault("OPENAI_API_KEY", "sk-test-key")
os.environ.setdefault("SHARED_SECRET", "test-shared-secret")

from fastapi.testclient import TestClient  # noqa: E402

from api.app import app  # noqa: E402
from clients.openai_client import ChatCompletionResult  # noqa: E402
from core.auth import compute_request_hash, derive_dynamic_secret  # noqa: E402
from core.config import settings  # noqa: E402
from core.exceptions import UpstreamAPIError  # noqa: E402
from core.rate_limit import rate_limit_service  # noqa: E402
from services.relay_service import relay_service  # noqa: E402

SECRET = "test-shared-secret"


class FakeOpenAIClient:
    """Stands in for the upstream client and records what it was sent."""

    def __init__(
        self,
        content: str = "Hello from the model",
        total_tokens: int = 42,
        error: UpstreamAPIError | None = None,
    ) -> None:
        self.content = content
        self.total_tokens = total_tokens
        self.error = error
        self.calls: list[list[dict[str, Any]]] = []

    async def create_chat_completion(
        self, messages: list[dict[str, Any]]
    ) -> ChatCompletionResult:
        self.calls.append(messages)
        if self.error is not None:
            raise self.error
        return ChatCompletionResult(
            content=self.content, total_tokens=self.total_tokens, model="gpt-4o-test"
        )


def legacy_payload(messages: list[dict[str, Any]] | str) -> dict[str, str]:
    """A body signed with the base secret."""
    raw = messages if isinstance(messages, str) else json.dumps(messages)
    return {
        "messages": raw,
        "hash": compute_request_hash(raw, SECRET),
        "shared_secret": SECRET,
    }


def dynamic_payload(
    messages: list[dict[str, Any]] | str, timestamp: int | None = None
) -> dict[str, str]:
    """A body signed with a timestamped secret."""
    raw = messages if isinstance(messages, str) else json.dumps(messages)
    ts = str(timestamp if timestamp is not None else int(time.time()))
    secret = derive_dynamic_secret(SECRET, ts)
    return {
        "messages": raw,
        "hash": compute_request_hash(raw, secret),
        "shared_secret": secret,
        "timestamp": ts,
    }


@pytest.fixture(autouse=True)
def _reset_state(monkeypatch):
    """Fresh rate limit windows and the test secret for every test."""
    monkeypatch.setattr(settings, "shared_secret", SECRET)
    rate_limit_service.reset()
    yield
    rate_limit_service.reset()


@pytest.fixture
def fake_openai(monkeypatch) -> FakeOpenAIClient:
    fake = FakeOpenAIClient()
    monkeypatch.setattr(relay_service, "client", fake)
    return fake


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)
