"""Display formatting for progress events."""

from flashlink.models.progress import ProgressEvent, ProgressEventType


# (icon, text tag) per event type; OUTPUT is decided per line
TYPE_PREFIXES: dict[ProgressEventType, tuple[str, str]] = {
    ProgressEventType.INFO: ("ℹ️ ", "[INFO]"),
    ProgressEventType.SUCCESS: ("🎉", "[OK]"),
    ProgressEventType.ERROR: ("❌", "[ERROR]"),
}

OUTPUT_INDENT = "   "


def _output_prefix(text: str) -> tuple[str, str] | None:
    """Icon and tag for a line of avrdude output, or None for plain output."""
    if "avrdude: Version" in text:
        return "📋", "[VERSION]"
    if "device signature" in text:
        return "🔍", "[SIGNATURE]"
    if "writing" in text and "flash" in text:
        return "📝", "[WRITE]"
    if "Writing |" in text or "Reading |" in text:
        return "⏳", "[PROGRESS]"
    if "bytes of flash written" in text or "bytes of flash verified" in text:
        return "✅", "[DONE]"
    if "avrdude done" in text:
        return "🎉", "[OK]"
    return None


def format_progress_event(event: ProgressEvent, use_emoji: bool = True) -> str:
    """Render an event as one display line.

    Args:
        event: The event to render
        use_emoji: Use emoji icons; otherwise bracketed ASCII tags

    Returns:
        The line, without a trailing newline
    """
    if event.type == ProgressEventType.OUTPUT:
        prefix = _output_prefix(event.text)
        if prefix is None:
            return f"{OUTPUT_INDENT}{event.text}"
    else:
        prefix = TYPE_PREFIXES[event.type]

    icon, tag = prefix
    return f"{icon if use_emoji else tag} {event.text}"
