"""Tests for progress event display formatting."""

import pytest

from flashlink.models.progress import ProgressEvent
from flashlink.remote.formatting import format_progress_event


@pytest.mark.parametrize(
    ("event", "emoji", "ascii_line"),
    [
        (ProgressEvent.info("Starting flash"), "ℹ️  Starting flash", "[INFO] Starting flash"),
        (ProgressEvent.success("Flash completed"), "🎉 Flash completed", "[OK] Flash completed"),
        (ProgressEvent.error("Flash failed"), "❌ Flash failed", "[ERROR] Flash failed"),
    ],
)
def test_typed_events(event, emoji, ascii_line):
    assert format_progress_event(event) == emoji
    assert format_progress_event(event, use_emoji=False) == ascii_line


@pytest.mark.parametrize(
    ("text", "tag"),
    [
        ("avrdude: Version 7.1", "[VERSION]"),
        ("avrdude: device signature = 0x1e950f", "[SIGNATURE]"),
        ("avrdude: writing flash (1024 bytes):", "[WRITE]"),
        ("Writing | ################ | 100% 0.20s", "[PROGRESS]"),
        ("avrdude: 1024 bytes of flash written", "[DONE]"),
        ("avrdude: 1024 bytes of flash verified", "[DONE]"),
        ("avrdude done.  Thank you.", "[OK]"),
    ],
)
def test_recognised_avrdude_output(text, tag):
    assert format_progress_event(ProgressEvent.output(text), use_emoji=False) == (
        f"{tag} {text}"
    )


def test_recognised_output_with_emoji():
    line = format_progress_event(ProgressEvent.output("avrdude: Version 7.1"))

    assert line == "📋 avrdude: Version 7.1"


def test_plain_output_is_indented():
    event = ProgressEvent.output("avrdude: reading input file")

    assert format_progress_event(event) == "   avrdude: reading input file"
    assert format_progress_event(event, use_emoji=False) == (
        "   avrdude: reading input file"
    )
