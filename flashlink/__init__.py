"""FlashLink - remote firmware flashing client."""

from importlib.metadata import distribution

from .models.options import DeviceOperationOptions, FlashRequest
from .models.progress import ProgressEvent, ProgressEventType
from .models.results import FailureKind, OperationResult


__version__ = distribution(__package__ or "flashlink").version

__all__ = [
    "DeviceOperationOptions",
    "FailureKind",
    "FlashRequest",
    "OperationResult",
    "ProgressEvent",
    "ProgressEventType",
    "__version__",
]
