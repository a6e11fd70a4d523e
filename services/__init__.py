"""Services package for business logic."""

from .relay_service import RelayService, relay_service

__all__ = ["RelayService", "relay_service"]
