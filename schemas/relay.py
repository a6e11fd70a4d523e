"""Relay request and response schemas."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from core.constants import LEGACY_IMAGE_MIME_TYPE


class ClientMessage(BaseModel):
    """A chat message as sent by the mobile client.

    Older app versions send ``message`` (plus an optional base64 ``image``);
    newer ones send ``content`` as text or as a list of content parts.
    """

    model_config = ConfigDict(extra="allow")

    role: str | None = Field(default=None, description="Message role, defaults to user")
    message: str | None = Field(default=None, description="Legacy message text")
    content: str | list[Any] | None = Field(
        default=None, description="Message text or content parts"
    )
    image: str | None = Field(default=None, description="Legacy base64 JPEG image")

    def to_openai(self) -> dict[str, Any]:
        """Convert to a chat-completions message."""
        role = self.role or "user"

        if self.image and self.message:
            return {
                "role": role,
                "content": [
                    {"type": "text", "text": self.message},
                    {
                        "type": "image_url",
                        "image_url": {
                            "url": f"data:{LEGACY_IMAGE_MIME_TYPE};base64,{self.image}"
                        },
                    },
                ],
            }

        # Already in vision format, forward untouched
        if isinstance(self.content, list):
            return self.model_dump(exclude_unset=True)

        return {"role": role, "content": self.message or self.content or ""}


class RelayFields(BaseModel):
    """Authentication and payload fields pulled from a relay request."""

    messages: str = Field(..., description="JSON-encoded list of client messages")
    hash: str = Field(..., description="MD5 of messages + expected secret")
    shared_secret: str = Field(..., description="Base or timestamped secret")
    timestamp: str | None = Field(default=None, description="Unix seconds for dynamic auth")


class RelayMessage(BaseModel):
    """Assistant message returned to the client."""

    content: str = Field(..., description="Completion text")


class RelayChoice(BaseModel):
    """Single completion choice."""

    message: RelayMessage


class RelayResponse(BaseModel):
    """Completion in the shape the mobile client parses."""

    choices: list[RelayChoice] = Field(..., description="Always exactly one choice")

    @classmethod
    def from_content(cls, content: str) -> "RelayResponse":
        return cls(choices=[RelayChoice(message=RelayMessage(content=content))])
