"""Ordered, append-only message history."""

from collections.abc import Iterable

from relaychat.models import ChatMessage


class MessageStore:
    """Ordered sequence of chat messages for one session.

    Messages are kept in the order they were appended. Growth is
    unbounded; there is no eviction.
    """

    def __init__(self, messages: Iterable[ChatMessage] = ()) -> None:
        self._messages: list[ChatMessage] = []
        self.replace(messages)

    def append(self, message: ChatMessage) -> int:
        """Append a message and return the new length."""
        if not isinstance(message, ChatMessage):
            msg = f"Expected ChatMessage, got {type(message).__name__}"
            raise TypeError(msg)
        self._messages.append(message)
        return len(self._messages)

    def snapshot(self) -> tuple[ChatMessage, ...]:
        """Point-in-time copy of the history."""
        return tuple(self._messages)

    def replace(self, messages: Iterable[ChatMessage]) -> None:
        """Replace the whole history, e.g. when restoring a snapshot."""
        restored = list(messages)
        for message in restored:
            if not isinstance(message, ChatMessage):
                msg = f"Expected ChatMessage, got {type(message).__name__}"
                raise TypeError(msg)
        self._messages = restored

    def __len__(self) -> int:
        return len(self._messages)
