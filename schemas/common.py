"""Common schemas shared across different modules."""

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(default="healthy", description="Service status")
    version: str = Field(..., description="Application version")
    timestamp: int = Field(..., description="Current timestamp")


class ErrorResponse(BaseModel):
    """Error body returned for every failed request."""

    error: str = Field(..., description="Human-readable error message")
    request_id: str | None = Field(default=None, description="Request ID for debugging")
