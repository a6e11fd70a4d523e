"""Schemas package for request/response validation."""

from .common import ErrorResponse, HealthResponse
from .relay import (
    ClientMessage,
    RelayChoice,
    RelayFields,
    RelayMessage,
    RelayResponse,
)

__all__ = [
    "ClientMessage",
    "ErrorResponse",
    "HealthResponse",
    "RelayChoice",
    "RelayFields",
    "RelayMessage",
    "RelayResponse",
]
