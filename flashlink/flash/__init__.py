"""Flash sessions against a remote flasher."""

from .firmware_resolver import FirmwareResolver
from .service import RemoteFlashService, create_remote_flash_service
from .session import FlashSession, SessionState
from .sinks import CollectingProgressSink, LoggingProgressSink


__all__ = [
    "CollectingProgressSink",
    "FirmwareResolver",
    "FlashSession",
    "LoggingProgressSink",
    "RemoteFlashService",
    "SessionState",
    "create_remote_flash_service",
]
