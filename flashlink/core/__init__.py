from .errors import (
    ConfigError,
    FlashError,
    FlashLinkError,
    LocalError,
    ServiceError,
    TransportError,
)
from .logging import setup_logging


__all__ = [
    "setup_logging",
    "ConfigError",
    "FlashError",
    "FlashLinkError",
    "LocalError",
    "ServiceError",
    "TransportError",
]
