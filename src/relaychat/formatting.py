"""Text rendering helpers for session state."""

from datetime import datetime, tzinfo

from relaychat.models import ChatMessage, ConnectionStatus

INVALID_DATE_LABEL = "Invalid Date"
TIME_FORMAT = "%H:%M"

_STATUS_LABELS = {
    ConnectionStatus.CONNECTED: "Connected",
    ConnectionStatus.CONNECTING: "Connecting",
    ConnectionStatus.DISCONNECTED: "Disconnected",
}


def format_timestamp(timestamp: datetime | None, tz: tzinfo | None = None) -> str:
    """Render a message time as HH:MM, in local time unless ``tz`` is given.

    The invalid sentinel, and times that fall outside the datetime range once
    shifted to ``tz``, render as "Invalid Date".
    """
    if timestamp is None:
        return INVALID_DATE_LABEL
    try:
        return timestamp.astimezone(tz).strftime(TIME_FORMAT)
    except (OverflowError, ValueError):
        return INVALID_DATE_LABEL


def format_status(status: ConnectionStatus) -> str:
    return _STATUS_LABELS[status]


def format_message(message: ChatMessage, tz: tzinfo | None = None) -> str:
    return f"[{format_timestamp(message.timestamp, tz)}] {message.user}: {message.text}"
