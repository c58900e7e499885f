"""Protocol for receiving human-readable progress lines."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class ProgressSink(Protocol):
    """Callable that receives one display line at a time."""

    def __call__(self, line: str) -> None: ...
