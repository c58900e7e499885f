"""Models package for FlashLink.

This package contains the models shared by the transport, the remote client
and the flash session.
"""

from .base import FlashLinkBaseModel
from .options import DeviceOperationOptions, FlashRequest
from .progress import ProgressEvent, ProgressEventType
from .results import FailureKind, OperationResult


__all__ = [
    "DeviceOperationOptions",
    "FailureKind",
    "FlashLinkBaseModel",
    "FlashRequest",
    "OperationResult",
    "ProgressEvent",
    "ProgressEventType",
]
