"""Remote flashing service client and progress stream handling."""

from .client import RemoteFlasherClient, create_remote_flasher_client
from .formatting import format_progress_event
from .stream_parser import StreamProgressParser, parse_stream_line


__all__ = [
    "RemoteFlasherClient",
    "StreamProgressParser",
    "create_remote_flasher_client",
    "format_progress_event",
    "parse_stream_line",
]
