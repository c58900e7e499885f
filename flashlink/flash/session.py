"""One remote flash of one device, from connectivity check to reboot."""

import threading
import time
from collections.abc import Callable
from enum import Enum
from pathlib import Path

from flashlink.config.models import ResetTimingConfig
from flashlink.core.errors import FlashError, LocalError
from flashlink.core.structlog_logger import StructlogMixin
from flashlink.flash.firmware_resolver import FirmwareResolver
from flashlink.models.options import FlashRequest
from flashlink.models.progress import ProgressEvent
from flashlink.models.results import FailureKind, OperationResult
from flashlink.protocols.progress_protocols import ProgressSink
from flashlink.remote.client import RemoteFlasherClient
from flashlink.remote.formatting import format_progress_event


class SessionState(str, Enum):
    """Where a flash session is in its lifecycle."""

    IDLE = "idle"
    CONNECTIVITY_CHECKED = "connectivity_checked"
    RESET_ASSERTED = "reset_asserted"
    FLASHING = "flashing"
    RESET_RELEASED = "reset_released"
    COMPLETED = "completed"
    ABORTED = "aborted"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionState.COMPLETED, SessionState.ABORTED)


class FlashSession(StructlogMixin):
    """Drive one device through connectivity check, reset, flash and reboot.

    A session is single use: ``run()`` may be called once. ``abort()`` may be
    called from any thread; it is honoured before the session starts and
    before the flash request is sent, but a request already in flight is
    allowed to finish.
    """

    def __init__(
        self,
        client: RemoteFlasherClient,
        reset_config: ResetTimingConfig | None = None,
        resolver: FirmwareResolver | None = None,
        sleep: Callable[[float], None] = time.sleep,
        use_emoji: bool = True,
        raw: bool = False,
    ) -> None:
        self.client = client
        self.reset_config = reset_config or ResetTimingConfig()
        self.resolver = resolver or FirmwareResolver()
        self.use_emoji = use_emoji
        self.raw = raw
        self._sleep = sleep
        self._abort_event = threading.Event()
        self._state = SessionState.IDLE
        self._started = False
        self._result: OperationResult | None = None
        self._sink: ProgressSink | None = None
        self._raw_buffer = ""

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def result(self) -> OperationResult | None:
        """Final result once the session reached a terminal state."""
        return self._result

    @property
    def is_aborted(self) -> bool:
        return self._abort_event.is_set()

    def abort(self) -> None:
        """Ask the session to stop at the next checkpoint."""
        self.logger.info("flash_session_abort_requested", state=self._state.value)
        self._abort_event.set()

    # Progress relay

    def _relay(self, line: str) -> None:
        if self._state.is_terminal or self._sink is None:
            self.logger.debug("progress_line_dropped", line=line)
            return
        self._sink(line)

    def _relay_event(self, event: ProgressEvent) -> None:
        self._relay(format_progress_event(event, use_emoji=self.use_emoji))

    def _relay_chunk(self, text: str) -> None:
        *lines, self._raw_buffer = (self._raw_buffer + text).split("\n")
        for line in lines:
            self._relay(line.rstrip("\r"))

    def _flush_raw(self) -> None:
        if self._raw_buffer:
            tail, self._raw_buffer = self._raw_buffer, ""
            self._relay(tail.rstrip("\r"))

    # Terminal transitions

    def _complete(self, result: OperationResult) -> OperationResult:
        self._result = result
        self._state = SessionState.COMPLETED
        self.logger.info(
            "flash_session_completed",
            success=result.success,
            kind=result.kind.value if result.kind else None,
        )
        return result

    def _aborted(self) -> OperationResult:
        self._relay("Remote flash aborted")
        result = OperationResult.fail(
            FailureKind.ABORTED,
            "Flash session was aborted",
            detail={"state": self._state.value},
        )
        self._result = result
        self._state = SessionState.ABORTED
        self.logger.info("flash_session_aborted", state=result.detail["state"])
        return result

    # Steps

    def _reset(self, reset: bool, duration: float | None = None) -> bool:
        result = self.client.control_reset(reset, duration)
        if result.success:
            self._relay(f"Remote device reset {'activated' if reset else 'released'}")
        else:
            self._relay(f"Remote reset control failed: {result.message}")
        return result.success

    def _check_connectivity(self) -> OperationResult:
        self._relay("Testing remote flasher connection...")
        result = self.client.test_connection()
        if result.success:
            self._relay("Remote flasher connection OK")
        else:
            self._relay(f"Remote flasher connection failed: {result.message}")
        return result

    def _query_device_info(self, request: FlashRequest) -> None:
        result = self.client.get_device_info(request.options)
        if result.success:
            self._relay("Remote device info retrieved successfully")
        else:
            self._relay(f"Failed to get remote device info: {result.message}")

    def _flash(self, firmware: Path, request: FlashRequest) -> OperationResult:
        self._relay(f"Flashing {firmware} to remote device...")
        if self.raw:
            result = self.client.flash_file_stream(
                firmware, request.options, self._relay_chunk
            )
            self._flush_raw()
            return result
        return self.client.perform_operation(
            firmware, request.options, self._relay_event
        )

    def run(
        self, request: FlashRequest, progress_sink: ProgressSink
    ) -> OperationResult:
        """Run the session to completion.

        Raises:
            FlashError: If this session has already been run
        """
        if self._started:
            raise FlashError("A flash session can only be run once")
        self._started = True
        self._sink = progress_sink

        if self.is_aborted:
            return self._aborted()

        try:
            firmware = self.resolver.resolve(request)
        except LocalError as e:
            self._relay(f"Remote flash failed: {e}")
            return self._complete(
                OperationResult.fail(e.kind, str(e), detail={"step": "firmware"})
            )

        self.logger.info("flash_session_started", firmware=str(firmware))
        connectivity = self._check_connectivity()
        if not connectivity.success:
            assert connectivity.kind is not None
            return self._complete(
                OperationResult.fail(
                    connectivity.kind,
                    f"Remote flasher connection failed: {connectivity.message}",
                    detail=connectivity.detail,
                )
            )
        self._state = SessionState.CONNECTIVITY_CHECKED

        self._query_device_info(request)

        timing = self.reset_config
        self._reset(True, timing.enter_pulse)
        self._state = SessionState.RESET_ASSERTED
        self._sleep(timing.enter_settle)
        self._reset(False)
        self._sleep(timing.release_settle)

        if self.is_aborted:
            return self._aborted()

        self._state = SessionState.FLASHING
        result = self._flash(firmware, request)
        if not result.success:
            self._relay(f"Remote flash failed: {result.message}")
            return self._complete(result)

        self._relay("Remote flash completed successfully!")
        self._reset(True, timing.exit_pulse)
        self._reset(False)
        self._state = SessionState.RESET_RELEASED
        self._relay("Remote device operation completed successfully!")
        return self._complete(result)
