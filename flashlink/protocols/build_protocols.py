"""Protocol for the local build step that produces a firmware image."""

from pathlib import Path
from typing import Protocol, runtime_checkable


@runtime_checkable
class BuildProducerProtocol(Protocol):
    """Compiles source code into a firmware image."""

    def build(self, code: str) -> Path:
        """Build ``code`` and return the path of the firmware image.

        Raises:
            Exception: Any exception means the build failed
        """
        ...
