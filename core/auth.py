"""Shared-secret and request-hash authentication."""

import hashlib
import hmac
import logging
import re
import time
from dataclasses import dataclass

from core.config import settings
from core.constants import DYNAMIC_SECRET_SEPARATOR, AuthMode
from core.exceptions import AuthenticationError, ConfigurationError
from schemas.relay import RelayFields

logger = logging.getLogger(__name__)

_LEADING_INT = re.compile(r"\s*[+-]?\d+")


@dataclass(frozen=True)
class AuthResult:
    """Outcome of a successful authentication."""

    mode: AuthMode
    expected_secret: str


def constant_time_equals(provided: str, expected: str) -> bool:
    """Compare two strings without leaking where they differ."""
    return hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))


def derive_dynamic_secret(base_secret: str, timestamp: str | int) -> str:
    """Build the per-request secret a client sends in dynamic mode."""
    return f"{base_secret}{DYNAMIC_SECRET_SEPARATOR}{timestamp}"


def compute_request_hash(messages: str, secret: str) -> str:
    """
    Hash a messages payload the way the mobile client does.

    Args:
        messages: The raw JSON-encoded messages string, exactly as sent
        secret: The expected secret (base or dynamic)

    Returns:
        Lowercase hex MD5 digest of ``messages + secret``
    """
    # Deployed clients compute MD5
    return hashlib.md5((messages + secret).encode("utf-8")).hexdigest()  # noqa: S324


def parse_timestamp(value: str) -> int | None:
    """
    Read the leading integer of a timestamp, so "1750000000.25" is 1750000000.

    The secret is still built from the raw text; only the window check uses
    the truncated value.
    """
    match = _LEADING_INT.match(value)
    return int(match.group(0)) if match else None


def is_dynamic_request(fields: RelayFields) -> bool:
    """Dynamic mode needs both a timestamp and a separator in the secret."""
    return bool(fields.timestamp) and DYNAMIC_SECRET_SEPARATOR in fields.shared_secret


def resolve_expected_secret(
    fields: RelayFields,
    base_secret: str,
    now: int | None = None,
    tolerance: int | None = None,
) -> AuthResult:
    """Work out which secret the client should have sent."""
    if not is_dynamic_request(fields):
        return AuthResult(mode=AuthMode.LEGACY, expected_secret=base_secret)

    if tolerance is None:
        tolerance = settings.timestamp_tolerance
    if now is None:
        now = int(time.time())

    request_timestamp = parse_timestamp(fields.timestamp or "")
    if request_timestamp is None:
        raise AuthenticationError("Invalid timestamp")

    timestamp_diff = abs(now - request_timestamp)
    if timestamp_diff > tolerance:
        logger.info(f"Timestamp outside tolerance, diff: {timestamp_diff}s")
        raise AuthenticationError("Request timestamp expired")

    return AuthResult(
        mode=AuthMode.DYNAMIC,
        expected_secret=derive_dynamic_secret(base_secret, fields.timestamp or ""),
    )


def verify_relay_auth(
    fields: RelayFields,
    base_secret: str | None = None,
    now: int | None = None,
) -> AuthResult:
    """
    Authenticate a relay request.

    Checks the shared secret (legacy or timestamped) and then the MD5 hash
    over the messages payload, both in constant time.

    Raises:
        ConfigurationError: the server has no shared secret configured
        AuthenticationError: stale timestamp, wrong secret or wrong hash
    """
    if base_secret is None:
        base_secret = settings.shared_secret
    if not base_secret:
        logger.error("SHARED_SECRET environment variable not set")
        raise ConfigurationError("SHARED_SECRET is not set")

    result = resolve_expected_secret(fields, base_secret, now=now)

    if not constant_time_equals(fields.shared_secret, result.expected_secret):
        logger.info(f"Invalid shared secret ({result.mode.value})")
        raise AuthenticationError("Invalid authentication")

    expected_hash = compute_request_hash(fields.messages, result.expected_secret)
    if not constant_time_equals(fields.hash, expected_hash):
        logger.info(f"Invalid hash ({result.mode.value})")
        raise AuthenticationError("Invalid authentication")

    return result
