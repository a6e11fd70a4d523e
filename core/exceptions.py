"""Custom exceptions for the relay."""

from typing import Any


class RelayError(Exception):
    """Base exception carrying the HTTP status and the message shown to clients."""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

    def to_content(self) -> dict[str, Any]:
        """Client-facing JSON body."""
        return {"error": self.message, **self.details}


class InvalidRequestError(RelayError):
    """Raised when the request body or its fields are malformed."""

    status_code = 400


class PayloadTooLargeError(RelayError):
    """Raised when the request body exceeds the configured size."""

    status_code = 413

    def __init__(self, message: str = "Request too large") -> None:
        super().__init__(message)


class AuthenticationError(RelayError):
    """Raised when the shared secret, timestamp or hash does not check out."""

    status_code = 401


class ConfigurationError(RelayError):
    """Raised when the server is missing required configuration."""

    status_code = 500

    def __init__(self, reason: str) -> None:
        super().__init__("Server configuration error")
        self.reason = reason


class RateLimitExceededError(RelayError):
    """Raised when a client exhausts its rate-limit window."""

    status_code = 429

    def __init__(self, reset_in: int) -> None:
        super().__init__("Rate limit exceeded", details={"resetIn": reset_in})
        self.reset_in = reset_in


class UpstreamAPIError(RelayError):
    """Raised when the upstream model API call fails."""

    def __init__(
        self, service: str, message: str, status_code: int | None = None
    ) -> None:
        super().__init__(message, status_code or 502)
        self.service = service
