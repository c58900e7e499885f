"""Tests for progress events."""

import pytest

from flashlink.models.progress import ProgressEvent, ProgressEventType


@pytest.mark.parametrize(
    ("wire", "expected"),
    [
        ("info", ProgressEventType.INFO),
        ("output", ProgressEventType.OUTPUT),
        ("success", ProgressEventType.SUCCESS),
        ("error", ProgressEventType.ERROR),
        ("ERROR", ProgressEventType.ERROR),
        ("debug", ProgressEventType.OUTPUT),
        (None, ProgressEventType.OUTPUT),
    ],
)
def test_from_wire(wire, expected):
    assert ProgressEventType.from_wire(wire) == expected


def test_event_text_is_kept_verbatim():
    event = ProgressEvent.output("   Writing | ####   ")

    assert event.text == "   Writing | ####   "
    assert event.type == ProgressEventType.OUTPUT
