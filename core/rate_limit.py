"""Simple in-memory rate limiting keyed by client address."""

import asyncio
import logging
import math
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Request

from core.config import settings
from core.exceptions import RateLimitExceededError

logger = logging.getLogger(__name__)


@dataclass
class RateLimitWindow:
    """Counters for one client within one fixed window."""

    requests: int
    tokens: int
    reset_time: float


@dataclass
class RateLimitDecision:
    """Outcome of a rate limit check."""

    allowed: bool
    remaining: int
    reset_in: int = 0


class InMemoryRateLimitService:
    """In-memory fixed-window rate limiting service.

    Counters live in this process only and reset on restart; this is a
    best-effort guard, not a quota system.
    """

    def __init__(
        self,
        max_requests: int | None = None,
        max_tokens: int | None = None,
        window: int | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize rate limiting service."""
        self.max_requests = max_requests or settings.rate_limit_requests
        self.max_tokens = max_tokens or settings.rate_limit_tokens
        self.window = window or settings.rate_limit_window
        self._clock = clock
        self._windows: dict[str, RateLimitWindow] = {}

    def check(self, key: str) -> RateLimitDecision:
        """
        Count a request against the key's current window.

        Returns:
            Decision with the remaining request budget, or the seconds until
            the window resets when the request is denied.
        """
        now = self._clock()
        data = self._windows.get(key)

        if data is None or now > data.reset_time:
            self._windows[key] = RateLimitWindow(
                requests=1, tokens=0, reset_time=now + self.window
            )
            return RateLimitDecision(allowed=True, remaining=self.max_requests - 1)

        if data.requests >= self.max_requests or data.tokens >= self.max_tokens:
            return RateLimitDecision(
                allowed=False,
                remaining=0,
                reset_in=math.ceil(data.reset_time - now),
            )

        data.requests += 1
        return RateLimitDecision(
            allowed=True, remaining=self.max_requests - data.requests
        )

    def record_tokens(self, key: str, tokens: int) -> None:
        """Charge upstream token usage to the key's current window."""
        data = self._windows.get(key)
        if data is not None and self._clock() <= data.reset_time:
            data.tokens += tokens

    def purge_expired(self) -> int:
        """Drop windows that have already reset. Returns how many were dropped."""
        now = self._clock()
        expired = [key for key, data in self._windows.items() if now > data.reset_time]
        for key in expired:
            del self._windows[key]
        return len(expired)

    def reset(self) -> None:
        """Forget every window."""
        self._windows.clear()

    def __len__(self) -> int:
        return len(self._windows)


# Global rate limit service
rate_limit_service = InMemoryRateLimitService()


def get_client_ip(request: Request) -> str:
    """Best-effort client address, honouring proxy headers."""
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()

    return request.client.host if request.client else "unknown"


def get_rate_limit_key(request: Request) -> str:
    """Generate rate limit key from request."""
    return f"rate_limit:ip:{get_client_ip(request)}"


async def check_rate_limit(request: Request) -> None:
    """Check rate limit for request."""
    client_ip = get_client_ip(request)
    decision = rate_limit_service.check(get_rate_limit_key(request))

    if not decision.allowed:
        logger.warning(f"Rate limit exceeded for IP: {client_ip}")
        raise RateLimitExceededError(reset_in=decision.reset_in)

    # Picked up by the response middleware
    request.state.rate_limit_remaining = decision.remaining
    request.state.rate_limit_limit = rate_limit_service.max_requests
    request.state.rate_limit_window = rate_limit_service.window


async def purge_expired_periodically(interval: float | None = None) -> None:
    """Background task that keeps the window table from growing unbounded."""
    interval = interval or rate_limit_service.window
    while True:
        await asyncio.sleep(interval)
        dropped = rate_limit_service.purge_expired()
        if dropped:
            logger.debug(f"Purged {dropped} expired rate limit windows")


# Dependency for rate limiting
RateLimited = Annotated[None, Depends(check_rate_limit)]
