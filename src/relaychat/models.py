"""Chat domain models."""

from datetime import datetime
from enum import StrEnum
from typing import Annotated

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    field_serializer,
    field_validator,
)

from relaychat.timestamps import format_wire_timestamp, normalize_timestamp

Timestamp = Annotated[datetime | None, BeforeValidator(normalize_timestamp)]
"""Aware datetime, or None when the source value could not be parsed."""


class ConnectionStatus(StrEnum):
    """Connection state of a chat session."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class ChatMessage(BaseModel):
    """A single chat message.

    Immutable once built. ``text`` must contain something other than
    whitespace; ``timestamp`` is always normalized (see
    :func:`relaychat.timestamps.normalize_timestamp`).
    """

    model_config = ConfigDict(frozen=True)

    room: str
    user: str
    text: str
    timestamp: Timestamp = None

    @field_validator("text")
    @classmethod
    def _text_not_blank(cls, value: str) -> str:
        if not value.strip():
            msg = "text must not be blank"
            raise ValueError(msg)
        return value

    @field_serializer("timestamp", when_used="json")
    def _serialize_timestamp(self, value: datetime | None) -> str | None:
        return format_wire_timestamp(value)

    @property
    def has_valid_timestamp(self) -> bool:
        return self.timestamp is not None
