"""Protocol definitions for FlashLink collaborators.

These protocols use Python's typing.Protocol system with the
@runtime_checkable decorator to enable both static type checking and
runtime isinstance() checks.
"""

from .build_protocols import BuildProducerProtocol
from .progress_protocols import ProgressSink
from .transport_protocols import (
    RemoteFlasherTransport,
    StreamHandleProtocol,
    StreamingTransportProtocol,
    TransportProtocol,
)


__all__ = [
    "BuildProducerProtocol",
    "ProgressSink",
    "RemoteFlasherTransport",
    "StreamHandleProtocol",
    "StreamingTransportProtocol",
    "TransportProtocol",
]
