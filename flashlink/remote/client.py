"""Client for the remote flashing service."""

import codecs
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

import structlog

from flashlink.config.models import (
    RemoteFlasherConfig,
    ResetTimingConfig,
    StreamConfig,
    TransportConfig,
)
from flashlink.core.errors import ConfigError, LocalError, TransportError
from flashlink.core.structlog_logger import StructlogMixin
from flashlink.models.options import DeviceOperationOptions
from flashlink.models.progress import ProgressEvent
from flashlink.models.results import FailureKind, OperationResult
from flashlink.protocols.transport_protocols import (
    RemoteFlasherTransport,
    StreamHandleProtocol,
)
from flashlink.remote.stream_parser import StreamProgressParser
from flashlink.transport import create_transport
from flashlink.transport.curl import curl_exit_kind
from flashlink.transport.models import MultipartField, RawResponse


STREAM_PATH = "/flash/stream"

# Transport failure kind -> kind reported to callers
TRANSPORT_KIND_MAP: dict[FailureKind, FailureKind] = {
    FailureKind.CONNECTION_FAILED: FailureKind.CONNECTION_FAILED,
    FailureKind.DNS_FAILURE: FailureKind.CONNECTION_FAILED,
    FailureKind.TIMEOUT: FailureKind.TIMEOUT,
    FailureKind.MALFORMED_RESPONSE: FailureKind.INVALID_RESPONSE,
}


class RemoteFlasherClient(StructlogMixin):
    """Typed wrapper around the remote flasher's HTTP API.

    No method raises for remote conditions. Every outcome, including
    unreachable services and HTTP errors, comes back as an
    ``OperationResult`` with a stable ``kind``.
    """

    def __init__(
        self,
        server_url: str,
        transport: RemoteFlasherTransport,
        reset_config: ResetTimingConfig | None = None,
        stream_config: StreamConfig | None = None,
        upload_timeout: float = 120.0,
        logger: structlog.stdlib.BoundLogger | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.server_url = server_url
        self.transport = transport
        self.reset_config = reset_config or ResetTimingConfig()
        self.stream_config = stream_config or StreamConfig()
        self.upload_timeout = upload_timeout
        self._sleep = sleep
        self._clock = clock
        if logger is not None:
            self._logger = logger

    # Response handling

    def _transport_failure(
        self, error: TransportError, operation: str
    ) -> OperationResult:
        kind = TRANSPORT_KIND_MAP.get(error.kind, error.kind)
        underlying = error.errors or [error]
        if kind == FailureKind.TIMEOUT:
            message = f"Remote flasher did not answer the {operation} request in time"
        elif kind == FailureKind.INVALID_RESPONSE:
            message = f"Remote flasher sent a malformed {operation} response"
        else:
            message = f"Cannot connect to remote flasher at {self.server_url}"
        self.logger.warning(
            "remote_request_failed",
            operation=operation,
            kind=kind.value,
            error=str(error),
        )
        return OperationResult.fail(
            kind,
            f"{message}: {error}",
            detail={"transport_errors": [e.to_detail() for e in underlying]},
        )

    def _handle_response(
        self, response: RawResponse, operation: str
    ) -> OperationResult:
        payload = response.payload
        if not response.ok:
            self.logger.warning(
                "remote_request_rejected",
                operation=operation,
                status_code=response.status_code,
            )
            reason = ""
            if isinstance(payload, dict):
                reason = str(payload.get("error") or payload.get("message") or "")
            elif isinstance(payload, str):
                reason = payload.strip()[:200]
            message = (
                f"Remote flasher {operation} failed with HTTP {response.status_code}"
            )
            if reason:
                message = f"{message}: {reason}"
            return OperationResult.fail(
                FailureKind.SERVER_ERROR,
                message,
                detail={"status_code": response.status_code, "body": payload},
            )
        return OperationResult.ok(message=f"{operation} succeeded", data=payload)

    def _call(
        self, method: str, path: str, operation: str, **kwargs: Any
    ) -> OperationResult:
        try:
            response = self.transport.request(method, path, **kwargs)
        except TransportError as e:
            return self._transport_failure(e, operation)
        except LocalError as e:
            return OperationResult.fail(e.kind, str(e))
        return self._handle_response(response, operation)

    @staticmethod
    def _missing_file(path: Path) -> OperationResult | None:
        if not Path(path).is_file():
            return OperationResult.fail(
                FailureKind.FILE_NOT_FOUND,
                f"Firmware file not found: {path}",
                detail={"path": str(path)},
            )
        return None

    @staticmethod
    def _upload_fields(path: Path, params: dict[str, str]) -> list[MultipartField]:
        return [
            MultipartField.file("file", Path(path)),
            *MultipartField.from_params(params),
        ]

    # Service checks

    def get_status(self) -> OperationResult:
        """Liveness probe (``GET /status``)."""
        result = self._call("GET", "/status", "status")
        if not result.success:
            return result
        if not isinstance(result.data, dict):
            return OperationResult.fail(
                FailureKind.PROTOCOL_ERROR,
                "Remote flasher returned an invalid status response",
                detail={"body": result.data},
            )
        if result.data.get("flasher_ready") is False:
            self.logger.warning("flasher_not_ready", server_url=self.server_url)
        else:
            self.logger.debug("status_check_succeeded", server_url=self.server_url)
        return OperationResult.ok("Remote flasher is reachable", data=result.data)

    def get_config(self) -> OperationResult:
        """Service configuration (``GET /config``)."""
        result = self._call("GET", "/config", "config")
        if not result.success:
            return result
        if not isinstance(result.data, dict):
            return OperationResult.fail(
                FailureKind.PROTOCOL_ERROR,
                "Remote flasher returned an invalid configuration response",
                detail={"body": result.data},
            )
        return OperationResult.ok(
            "Remote flasher configuration received", data=result.data
        )

    def test_connection(self) -> OperationResult:
        """Check status and configuration, stopping at the first failure."""
        self.logger.info("connection_test_started", server_url=self.server_url)

        status = self.get_status()
        if not status.success:
            assert status.kind is not None
            return OperationResult.fail(
                status.kind,
                f"Status check failed: {status.message}",
                detail={**status.detail, "failed_check": "status"},
            )

        config = self.get_config()
        if not config.success:
            assert config.kind is not None
            return OperationResult.fail(
                config.kind,
                f"Config check failed: {config.message}",
                detail={**config.detail, "failed_check": "config"},
            )

        self.logger.info("connection_test_succeeded", server_url=self.server_url)
        return OperationResult.ok(
            "Remote flasher connection successful",
            data={"status": status.data, "config": config.data},
        )

    def wait_for_service(self, max_wait: float = 30.0, interval: float = 1.0) -> bool:
        """Poll the status endpoint until it answers or ``max_wait`` elapses."""
        deadline = self._clock() + max_wait
        attempts = 0
        while True:
            attempts += 1
            if self.get_status().success:
                self.logger.info("service_available", attempts=attempts)
                return True
            remaining = deadline - self._clock()
            if remaining <= 0:
                self.logger.warning(
                    "service_wait_timed_out", max_wait=max_wait, attempts=attempts
                )
                return False
            self._sleep(min(interval, remaining))

    # Device operations

    def get_device_info(
        self, options: DeviceOperationOptions | None = None
    ) -> OperationResult:
        """Describe the attached device (``GET /device/info``)."""
        options = options or DeviceOperationOptions()
        return self._call(
            "GET", "/device/info", "device info", query=options.to_params()
        )

    def control_reset(
        self, reset: bool, duration: float | None = None
    ) -> OperationResult:
        """Assert (``reset=True``) or release the device reset line."""
        if duration is None:
            duration = self.reset_config.default_pulse
        self.logger.debug("reset_control", reset=reset, duration=duration)
        return self._call(
            "POST",
            "/control/reset",
            "reset control",
            json_body={"reset": reset, "duration": duration},
        )

    def flash_file(
        self, path: Path, options: DeviceOperationOptions | None = None
    ) -> OperationResult:
        """Upload a firmware image and flash it in one request."""
        missing = self._missing_file(path)
        if missing:
            return missing
        options = options or DeviceOperationOptions()
        self.logger.info("flash_file_started", path=str(path))
        return self._call(
            "POST",
            "/flash/file",
            "flash",
            fields=self._upload_fields(path, options.to_params()),
            timeout=self.upload_timeout,
        )

    def flash_url(
        self, url: str, options: DeviceOperationOptions | None = None
    ) -> OperationResult:
        """Ask the service to download a firmware image and flash it."""
        options = options or DeviceOperationOptions()
        self.logger.info("flash_url_started", url=url)
        return self._call(
            "POST",
            "/flash/url",
            "flash",
            json_body={"url": url, **options.to_params()},
            timeout=self.upload_timeout,
        )

    def _open_stream(
        self,
        path: Path,
        options: DeviceOperationOptions,
        with_query: bool,
    ) -> StreamHandleProtocol:
        params = options.to_params()
        return self.transport.stream_request(
            "POST",
            STREAM_PATH,
            self._upload_fields(path, params),
            query=params if with_query else None,
        )

    def flash_file_stream(
        self,
        path: Path,
        options: DeviceOperationOptions | None,
        on_chunk: Callable[[str], None],
    ) -> OperationResult:
        """Stream a flash and relay the raw output text as it arrives.

        Success is judged by the subprocess alone: exit code 0 and nothing
        written to stderr.
        """
        missing = self._missing_file(path)
        if missing:
            return missing
        options = options or DeviceOperationOptions()

        try:
            handle = self._open_stream(path, options, with_query=False)
        except TransportError as e:
            return self._transport_failure(e, "stream flash")

        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        try:
            for chunk in handle:
                text = decoder.decode(chunk)
                if text:
                    on_chunk(text)
            tail = decoder.decode(b"", final=True)
            if tail:
                on_chunk(tail)
        finally:
            handle.close()

        return_code = handle.return_code
        stderr = handle.stderr
        detail = {"return_code": return_code, "stderr": stderr}
        if return_code == 0 and not stderr:
            self.logger.info("flash_stream_completed", path=str(path))
            return OperationResult.ok("Flash stream completed", data=detail)

        self.logger.warning(
            "flash_stream_failed", return_code=return_code, stderr=stderr
        )
        if return_code:
            kind = curl_exit_kind(return_code)
            message = f"Stream flash failed with code {return_code}"
        else:
            kind = FailureKind.SERVER_ERROR
            message = "Stream flash reported errors"
        if stderr:
            message = f"{message}: {stderr.splitlines()[-1]}"
        return OperationResult.fail(kind, message, detail=detail)

    def perform_operation(
        self,
        path: Path,
        options: DeviceOperationOptions | None,
        on_event: Callable[[ProgressEvent], None],
    ) -> OperationResult:
        """Stream a flash, delivering parsed progress events as they arrive."""
        missing = self._missing_file(path)
        if missing:
            return missing
        options = options or DeviceOperationOptions()

        parser = StreamProgressParser(
            success_markers=self.stream_config.success_markers,
            failure_markers=self.stream_config.failure_markers,
        )
        self.logger.info("stream_operation_started", path=str(path))
        try:
            handle = self._open_stream(path, options, with_query=True)
        except TransportError as e:
            return self._transport_failure(e, "stream flash")

        try:
            for chunk in handle:
                for event in parser.feed(chunk):
                    on_event(event)
            for event in parser.finish():
                on_event(event)
        finally:
            handle.close()

        return_code = handle.return_code if handle.return_code is not None else -1
        result = parser.verdict(return_code, handle.stderr)
        self.logger.info(
            "stream_operation_finished",
            success=result.success,
            kind=result.kind.value if result.kind else None,
            return_code=return_code,
            events=len(parser.events),
        )
        return result


def create_remote_flasher_client(
    config: RemoteFlasherConfig,
    transport_config: TransportConfig | None = None,
    reset_config: ResetTimingConfig | None = None,
    stream_config: StreamConfig | None = None,
    logger: structlog.stdlib.BoundLogger | None = None,
) -> RemoteFlasherClient:
    """Create a client for the configured remote flasher.

    Raises:
        ConfigError: If remote flashing is disabled or no server URL is set
    """
    if not config.enabled:
        raise ConfigError("Remote flasher is disabled in the configuration")
    if not config.server_url:
        raise ConfigError("Remote flasher server URL is not configured")

    transport_config = transport_config or TransportConfig()
    return RemoteFlasherClient(
        server_url=config.server_url,
        transport=create_transport(config, transport_config),
        reset_config=reset_config,
        stream_config=stream_config,
        upload_timeout=transport_config.upload_timeout,
        logger=logger,
    )
