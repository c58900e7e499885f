"""Remote flash service: one client, one device, one session at a time."""

import threading
import time
from collections.abc import Callable
from pathlib import Path

import structlog

from flashlink.config.models import (
    DeviceDefaultsConfig,
    ResetTimingConfig,
    UserConfigData,
)
from flashlink.core.errors import FlashError
from flashlink.core.structlog_logger import StructlogMixin
from flashlink.flash.firmware_resolver import FirmwareResolver
from flashlink.flash.session import FlashSession
from flashlink.flash.sinks import LoggingProgressSink
from flashlink.models.options import DeviceOperationOptions, FlashRequest
from flashlink.models.results import FailureKind, OperationResult
from flashlink.protocols.build_protocols import BuildProducerProtocol
from flashlink.protocols.progress_protocols import ProgressSink
from flashlink.remote.client import RemoteFlasherClient, create_remote_flasher_client
from flashlink.utils.xdg import get_default_build_dir


class RemoteFlashService(StructlogMixin):
    """Flash firmware onto the device behind one remote flasher.

    Each call to ``flash()`` runs a fresh ``FlashSession``. Starting a
    session while another one is still running raises ``FlashError``.
    """

    def __init__(
        self,
        client: RemoteFlasherClient,
        device_defaults: DeviceDefaultsConfig | None = None,
        reset_config: ResetTimingConfig | None = None,
        use_emoji: bool = True,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.client = client
        self.device_defaults = device_defaults or DeviceDefaultsConfig()
        self.reset_config = reset_config or ResetTimingConfig()
        self.use_emoji = use_emoji
        self._sleep = sleep
        self._lock = threading.Lock()
        self._active_session: FlashSession | None = None

    @property
    def is_busy(self) -> bool:
        with self._lock:
            return self._active_session is not None

    def create_session(self, raw: bool = False) -> FlashSession:
        return FlashSession(
            client=self.client,
            reset_config=self.reset_config,
            resolver=FirmwareResolver(
                build_dir=self.device_defaults.build_dir or get_default_build_dir(),
                extension=self.device_defaults.firmware_extension,
            ),
            sleep=self._sleep,
            use_emoji=self.use_emoji,
            raw=raw,
        )

    def flash(
        self,
        firmware: Path | None = None,
        options: DeviceOperationOptions | None = None,
        progress_sink: ProgressSink | None = None,
        firmware_path: Path | None = None,
        raw: bool = False,
    ) -> OperationResult:
        """Run a full flash session.

        Args:
            firmware: Explicit firmware file; always wins
            options: Device options; absent fields come from the device defaults
            progress_sink: Receives one display line per progress step
            firmware_path: Firmware produced by a build step
            raw: Relay the raw stream output instead of parsed events

        Raises:
            FlashError: If a session is already running on this service
        """
        request = FlashRequest(
            override_path=firmware,
            firmware_path=firmware_path,
            options=(options or DeviceOperationOptions()).merged_with(
                self.device_defaults.to_options()
            ),
        )
        session = self.create_session(raw=raw)

        with self._lock:
            if self._active_session is not None:
                raise FlashError("A flash session is already running on this device")
            self._active_session = session

        try:
            return session.run(request, progress_sink or LoggingProgressSink())
        finally:
            with self._lock:
                self._active_session = None

    def abort(self) -> bool:
        """Abort the running session, if any.

        Returns:
            True if a session was running
        """
        with self._lock:
            session = self._active_session
        if session is None:
            return False
        session.abort()
        return True

    def flash_realtime_firmware(
        self,
        name: str,
        options: DeviceOperationOptions | None = None,
        progress_sink: ProgressSink | None = None,
    ) -> OperationResult:
        """Flash a firmware bundled in the tools directory."""
        tools_dir = self.device_defaults.tools_dir
        if tools_dir is None:
            return OperationResult.fail(
                FailureKind.FILE_NOT_FOUND,
                "No tools directory configured for bundled firmwares",
            )
        return self.flash(
            firmware=tools_dir / name, options=options, progress_sink=progress_sink
        )

    def build_and_flash(
        self,
        code: str,
        producer: BuildProducerProtocol,
        options: DeviceOperationOptions | None = None,
        progress_sink: ProgressSink | None = None,
    ) -> OperationResult:
        """Build ``code`` with ``producer`` and flash the resulting image."""
        sink = progress_sink or LoggingProgressSink()
        try:
            firmware_path = producer.build(code)
        except Exception as e:
            self.log_error_with_context("build_failed", e)
            sink(f"Build failed: {e}")
            return OperationResult.fail(
                FailureKind.BUILD_FAILED,
                f"Build failed: {e}",
                detail={"error_type": e.__class__.__name__},
            )

        self.logger.info("build_succeeded", firmware=str(firmware_path))
        return self.flash(
            firmware_path=Path(firmware_path), options=options, progress_sink=sink
        )


def create_remote_flash_service(
    config: UserConfigData,
    use_emoji: bool = True,
    logger: structlog.stdlib.BoundLogger | None = None,
) -> RemoteFlashService:
    """Create a flash service for the configured remote flasher.

    Raises:
        ConfigError: If remote flashing is disabled or not configured
    """
    client = create_remote_flasher_client(
        config.remote_flasher,
        transport_config=config.transport,
        reset_config=config.reset,
        stream_config=config.stream,
        logger=logger,
    )
    return RemoteFlashService(
        client,
        device_defaults=config.device,
        reset_config=config.reset,
        use_emoji=use_emoji,
    )
