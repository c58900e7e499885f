"""Parser for the remote flasher's progress stream.

The service answers a streamed flash with newline-delimited records of the
form ``data: {"type": "...", "message": "..."}``. Chunks arrive at arbitrary
byte boundaries, so decoding is incremental and incomplete lines are kept
until the next chunk.
"""

import codecs
import json
from collections.abc import Iterable

from flashlink.core.structlog_logger import get_struct_logger
from flashlink.models.progress import ProgressEvent, ProgressEventType
from flashlink.models.results import FailureKind, OperationResult
from flashlink.transport.curl import curl_exit_kind


logger = get_struct_logger(__name__)

DATA_PREFIX = "data:"
DEFAULT_SUCCESS_MARKERS = ("Flash completed successfully",)
DEFAULT_FAILURE_MARKERS = ("Flash failed",)


def parse_stream_line(line: str) -> ProgressEvent | None:
    """Decode one stream line; anything that is not a well-formed record is None."""
    stripped = line.strip()
    if not stripped.startswith(DATA_PREFIX):
        return None

    try:
        record = json.loads(stripped[len(DATA_PREFIX) :].strip())
    except ValueError:
        return None
    if not isinstance(record, dict):
        return None

    message = record.get("message")
    if message is None:
        return None
    return ProgressEvent(
        type=ProgressEventType.from_wire(record.get("type")), text=str(message)
    )


class StreamProgressParser:
    """Turns raw stream chunks into progress events and judges the outcome.

    Every event seen is kept so that ``verdict()`` can scan the whole stream
    once the child has exited.
    """

    def __init__(
        self,
        success_markers: Iterable[str] | None = None,
        failure_markers: Iterable[str] | None = None,
    ) -> None:
        self.success_markers = tuple(success_markers or DEFAULT_SUCCESS_MARKERS)
        self.failure_markers = tuple(
            DEFAULT_FAILURE_MARKERS if failure_markers is None else failure_markers
        )
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self.events: list[ProgressEvent] = []

    def feed(self, chunk: bytes | str) -> list[ProgressEvent]:
        """Consume one chunk and return the events it completed."""
        if isinstance(chunk, bytes):
            chunk = self._decoder.decode(chunk)
        self._buffer += chunk

        *lines, self._buffer = self._buffer.split("\n")
        return self._parse_lines(lines)

    def finish(self) -> list[ProgressEvent]:
        """Flush the decoder and the buffered tail."""
        self._buffer += self._decoder.decode(b"", final=True)
        tail, self._buffer = self._buffer, ""
        return self._parse_lines([tail]) if tail.strip() else []

    def _parse_lines(self, lines: list[str]) -> list[ProgressEvent]:
        events: list[ProgressEvent] = []
        for line in lines:
            event = parse_stream_line(line)
            if event is None:
                if line.strip():
                    logger.debug("stream_line_ignored", line=line[:200])
                continue
            events.append(event)
        self.events.extend(events)
        return events

    def _find(self, markers: tuple[str, ...]) -> ProgressEvent | None:
        for event in self.events:
            if any(marker in event.text for marker in markers):
                return event
        return None

    def verdict(self, return_code: int, stderr: str = "") -> OperationResult:
        """Judge the finished stream.

        A success phrase together with a clean exit is a success, even when
        alarming lines follow it. Otherwise a failure phrase or an ``error``
        event fails the flash as a server error, a non-zero exit fails it with
        the kind the exit code maps to, and a clean exit with no phrase at all
        is a protocol error.
        """
        detail = {
            "return_code": return_code,
            "stderr": stderr,
            "event_count": len(self.events),
        }

        success_event = self._find(self.success_markers)
        if return_code == 0 and success_event is not None:
            return OperationResult.ok(
                message=success_event.text,
                data={"success": True, "message": success_event.text},
            )

        failure_event = self._find(self.failure_markers)
        if failure_event is None:
            failure_event = next(
                (e for e in self.events if e.type == ProgressEventType.ERROR), None
            )
        if failure_event is not None:
            return OperationResult.fail(
                FailureKind.SERVER_ERROR,
                failure_event.text or "Flash operation failed",
                detail=detail,
            )

        reason = stderr.strip().splitlines()[-1] if stderr.strip() else ""
        if return_code != 0:
            message = f"Stream operation failed with code {return_code}"
            if reason:
                message = f"{message}: {reason}"
            return OperationResult.fail(
                curl_exit_kind(return_code), message, detail=detail
            )

        last_text = self.events[-1].text if self.events else ""
        detail["last_message"] = last_text
        message = "No clear success or error indication found in the flash stream"
        if reason:
            message = f"{message}: {reason}"
        return OperationResult.fail(
            FailureKind.PROTOCOL_ERROR, message, detail=detail
        )
