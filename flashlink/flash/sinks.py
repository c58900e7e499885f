"""Progress sinks that do not need a terminal."""

import structlog

from flashlink.core.structlog_logger import get_struct_logger


class LoggingProgressSink:
    """Forward every progress line to a structlog logger."""

    def __init__(self, logger: structlog.stdlib.BoundLogger | None = None) -> None:
        self.logger = logger or get_struct_logger(__name__)

    def __call__(self, line: str) -> None:
        if line.strip():
            self.logger.info("flash_progress", line=line.rstrip())


class CollectingProgressSink:
    """Keep progress lines in memory, e.g. to attach them to a report."""

    def __init__(self) -> None:
        self.lines: list[str] = []

    def __call__(self, line: str) -> None:
        self.lines.append(line)

    @property
    def text(self) -> str:
        return "\n".join(self.lines)
