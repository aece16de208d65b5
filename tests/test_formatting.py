"""Tests for text rendering helpers."""

from datetime import UTC, datetime, timedelta, timezone

import pytest

from relaychat.formatting import (
    INVALID_DATE_LABEL,
    format_message,
    format_status,
    format_timestamp,
)
from relaychat.models import ChatMessage, ConnectionStatus

SENT_AT = datetime(2024, 5, 1, 8, 5, 30, tzinfo=UTC)


def test_format_timestamp_in_given_zone() -> None:
    assert format_timestamp(SENT_AT, UTC) == "08:05"
    assert format_timestamp(SENT_AT, timezone(timedelta(hours=2))) == "10:05"


def test_format_timestamp_invalid_sentinel() -> None:
    assert format_timestamp(None) == INVALID_DATE_LABEL


@pytest.mark.parametrize(
    ("timestamp", "tz"),
    [
        (datetime(9999, 12, 31, 23, 30, tzinfo=UTC), timezone(timedelta(hours=2))),
        (datetime(1, 1, 1, 0, 30, tzinfo=UTC), timezone(timedelta(hours=-3))),
    ],
)
def test_format_timestamp_outside_range_in_zone(
    timestamp: datetime, tz: timezone
) -> None:
    assert format_timestamp(timestamp, tz) == INVALID_DATE_LABEL


def test_format_timestamp_range_edges_in_utc() -> None:
    assert format_timestamp(datetime(1, 1, 1, tzinfo=UTC), UTC) == "00:00"
    assert format_timestamp(datetime(9999, 12, 31, 23, 59, tzinfo=UTC), UTC) == "23:59"


def test_format_status() -> None:
    assert format_status(ConnectionStatus.CONNECTED) == "Connected"
    assert format_status(ConnectionStatus.CONNECTING) == "Connecting"
    assert format_status(ConnectionStatus.DISCONNECTED) == "Disconnected"


def test_format_message() -> None:
    message = ChatMessage(room="general", user="Bo", text="hi", timestamp=SENT_AT)
    assert format_message(message, UTC) == "[08:05] Bo: hi"


def test_format_message_with_invalid_timestamp() -> None:
    message = ChatMessage(room="general", user="Bo", text="hi", timestamp="??")
    assert format_message(message) == "[Invalid Date] Bo: hi"
