"""Locate the firmware image for a flash request."""

from pathlib import Path

from flashlink.core.errors import LocalError
from flashlink.core.structlog_logger import get_struct_logger
from flashlink.models.options import FlashRequest
from flashlink.models.results import FailureKind


logger = get_struct_logger(__name__)


class FirmwareResolver:
    """Resolve which firmware file a request refers to.

    An explicit path (override first, then the build producer's path) is used
    verbatim. Without one, the build output directory is searched for files
    with the firmware extension and the first one by name is used.
    """

    def __init__(self, build_dir: Path | None = None, extension: str = ".hex") -> None:
        self.build_dir = build_dir
        self.extension = extension if extension.startswith(".") else f".{extension}"

    def resolve(self, request: FlashRequest) -> Path:
        """Return the firmware path for ``request``.

        Raises:
            LocalError: With kind ``file_not_found`` if no usable file exists
        """
        explicit = request.explicit_path
        if explicit is not None:
            if not explicit.is_file():
                raise LocalError(
                    f"Firmware file not found: {explicit}",
                    kind=FailureKind.FILE_NOT_FOUND,
                )
            logger.debug("firmware_resolved", path=str(explicit), source="explicit")
            return explicit

        found = self.find_in_build_dir()
        if found is None:
            raise LocalError(
                f"No {self.extension} file found for flashing in {self.build_dir}",
                kind=FailureKind.FILE_NOT_FOUND,
            )
        logger.debug("firmware_resolved", path=str(found), source="build_dir")
        return found

    def find_in_build_dir(self) -> Path | None:
        if self.build_dir is None or not self.build_dir.is_dir():
            return None
        candidates = sorted(
            path
            for path in self.build_dir.iterdir()
            if path.is_file() and path.suffix == self.extension
        )
        return candidates[0] if candidates else None
