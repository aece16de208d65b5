"""Logical wire contract with the relay service.

Event names and payload codecs. Inbound payloads are validated here and
never trusted as already-typed.
"""

from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from relaychat.models import ChatMessage

# Inbound events
CONNECT = "connect"
DISCONNECT = "disconnect"
CONNECT_ERROR = "connect_error"
RECEIVE_MESSAGE = "receive_message"

# Outbound events
JOIN_ROOM = "join_room"
SEND_MESSAGE = "send_message"


class InvalidPayloadError(ValueError):
    """Raised when an inbound payload does not match the wire contract."""


def encode_message(message: ChatMessage) -> dict[str, Any]:
    """Build the ``send_message`` payload for a message."""
    return message.model_dump(mode="json")


def decode_message(payload: Any) -> ChatMessage:
    """Parse a ``receive_message`` payload.

    A missing or unparseable timestamp is not an error: the message is
    returned with the invalid sentinel. Anything else that does not fit the
    contract raises InvalidPayloadError.
    """
    if not isinstance(payload, Mapping):
        msg = f"Expected an object payload, got {type(payload).__name__}"
        raise InvalidPayloadError(msg)
    try:
        return ChatMessage.model_validate(dict(payload))
    except ValidationError as e:
        raise InvalidPayloadError(str(e)) from e


def encode_room(room: str) -> str:
    """Build the ``join_room`` payload."""
    return room
