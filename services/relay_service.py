"""Relay service: parse, authenticate, convert and forward chat requests."""

import json
import logging
import time
from collections.abc import Mapping
from typing import Any
from urllib.parse import parse_qsl

from fastapi import Request
from pydantic import ValidationError

from clients.openai_client import OpenAIClient, openai_client
from core.auth import verify_relay_auth
from core.config import settings
from core.constants import (
    FORM_CONTENT_TYPE,
    HASH_HEADER,
    JSON_CONTENT_TYPE,
    SHARED_SECRET_HEADER,
    TIMESTAMP_HEADER,
)
from core.exceptions import InvalidRequestError, PayloadTooLargeError
from core.rate_limit import InMemoryRateLimitService, rate_limit_service
from schemas.relay import ClientMessage, RelayFields, RelayResponse

logger = logging.getLogger(__name__)


async def read_limited_body(request: Request, max_size: int | None = None) -> bytes:
    """Read the request body, refusing anything over ``max_size`` bytes."""
    if max_size is None:
        max_size = settings.max_request_size

    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > max_size:
        raise PayloadTooLargeError()

    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > max_size:
            raise PayloadTooLargeError()
    return bytes(body)


def _as_text(value: Any) -> str | None:
    """Normalise a scalar field value to text."""
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, bool):
        raise InvalidRequestError("Invalid request body")
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, float):
        return str(value)
    raise InvalidRequestError("Invalid request body")


class RelayService:
    """Relays authenticated mobile chat requests to the upstream model."""

    def __init__(
        self,
        client: OpenAIClient | None = None,
        rate_limiter: InMemoryRateLimitService | None = None,
    ) -> None:
        self.client = client if client is not None else openai_client
        self.rate_limiter = (
            rate_limiter if rate_limiter is not None else rate_limit_service
        )

    def parse_body(self, content_type: str, body: bytes) -> dict[str, Any]:
        """Decode a JSON or form-encoded body into a field mapping."""
        normalized = content_type.lower()

        if JSON_CONTENT_TYPE in normalized:
            if not body.strip():
                return {}
            try:
                payload = json.loads(body)
            except (UnicodeDecodeError, json.JSONDecodeError) as e:
                raise InvalidRequestError("Invalid request body") from e
            if not isinstance(payload, dict):
                raise InvalidRequestError("Invalid request body")
            return payload

        if FORM_CONTENT_TYPE in normalized:
            try:
                text = body.decode("utf-8")
            except UnicodeDecodeError as e:
                raise InvalidRequestError("Invalid request body") from e
            return dict(parse_qsl(text, keep_blank_values=True))

        raise InvalidRequestError(
            "Unsupported content type", details={"contentType": content_type}
        )

    def extract_fields(
        self, content_type: str, body: bytes, headers: Mapping[str, str]
    ) -> RelayFields:
        """
        Pull the relay fields out of a request.

        ``hash``, ``shared_secret`` and ``timestamp`` fall back to the
        ``x-hash``, ``x-shared-secret`` and ``x-timestamp`` headers.

        Raises:
            InvalidRequestError: unsupported content type, unreadable body,
                missing fields or an oversized messages payload
        """
        payload = self.parse_body(content_type, body)

        messages = payload.get("messages")
        hash_value = _as_text(payload.get("hash")) or headers.get(HASH_HEADER)
        shared_secret = _as_text(payload.get("shared_secret")) or headers.get(
            SHARED_SECRET_HEADER
        )
        timestamp = _as_text(payload.get("timestamp")) or headers.get(TIMESTAMP_HEADER)

        if not messages or not hash_value or not shared_secret:
            raise InvalidRequestError("Missing required fields")

        # The hash covers the exact string the client sent
        if not isinstance(messages, str):
            raise InvalidRequestError("Invalid messages format")

        if len(messages) > settings.max_message_length:
            raise InvalidRequestError("Message too long")

        return RelayFields(
            messages=messages,
            hash=hash_value,
            shared_secret=shared_secret,
            timestamp=timestamp or None,
        )

    def parse_messages(self, messages: str) -> list[dict[str, Any]]:
        """Decode the messages string and convert each entry for the upstream API."""
        try:
            parsed = json.loads(messages)
        except json.JSONDecodeError as e:
            raise InvalidRequestError("Invalid messages format") from e

        if not isinstance(parsed, list) or not parsed:
            raise InvalidRequestError("Invalid messages structure")

        try:
            client_messages = [ClientMessage.model_validate(item) for item in parsed]
        except ValidationError as e:
            raise InvalidRequestError("Invalid messages structure") from e

        return [message.to_openai() for message in client_messages]

    async def relay(
        self, fields: RelayFields, client_ip: str, rate_limit_key: str | None = None
    ) -> RelayResponse:
        """
        Authenticate a request and forward it upstream.

        Args:
            fields: Extracted relay fields
            client_ip: Client address, used for logging
            rate_limit_key: Window to charge upstream token usage to

        Returns:
            The completion in the client's response shape
        """
        start_time = time.perf_counter()

        auth = verify_relay_auth(fields)
        logger.debug(f"Authenticated {client_ip} ({auth.mode.value})")

        converted = self.parse_messages(fields.messages)
        logger.info(
            f"Sending to OpenAI from IP: {client_ip} with {len(converted)} messages"
        )

        result = await self.client.create_chat_completion(converted)

        if rate_limit_key and result.total_tokens:
            self.rate_limiter.record_tokens(rate_limit_key, result.total_tokens)

        processing_ms = int((time.perf_counter() - start_time) * 1000)
        logger.info(
            f"OpenAI response for IP {client_ip} from {result.model}: "
            f"{len(result.content)} chars, {result.total_tokens} tokens, {processing_ms}ms"
        )

        return RelayResponse.from_content(result.content)


# Global service instance
relay_service = RelayService()
