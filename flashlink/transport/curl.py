"""Subprocess transport driving the ``curl`` binary.

Used as the fallback for simple requests and as the only transport for
streamed flashes, where curl's unbuffered output (``-N``) gives us progress
lines as soon as the service writes them.
"""

import json
import subprocess
from typing import Any

from flashlink.core.errors import TransportError
from flashlink.core.structlog_logger import StructlogMixin
from flashlink.models.results import FailureKind
from flashlink.transport.models import (
    ACCEPT_JSON,
    ACCEPT_STREAM,
    USER_AGENT,
    MultipartField,
    RawResponse,
    ServiceEndpoint,
)
from flashlink.utils.stream_process import StreamHandle, run_command


CURL_EXIT_KINDS: dict[int, FailureKind] = {
    6: FailureKind.DNS_FAILURE,
    7: FailureKind.CONNECTION_FAILED,
    8: FailureKind.MALFORMED_RESPONSE,
    22: FailureKind.SERVER_ERROR,
    26: FailureKind.FILE_NOT_FOUND,
    28: FailureKind.TIMEOUT,
    52: FailureKind.MALFORMED_RESPONSE,
    56: FailureKind.MALFORMED_RESPONSE,
}

# Extra seconds granted to the child beyond curl's own --max-time
PROCESS_TIMEOUT_SLACK = 5.0


def curl_exit_kind(return_code: int) -> FailureKind:
    """Failure kind for a curl exit code; unknown codes are connection failures."""
    return CURL_EXIT_KINDS.get(return_code, FailureKind.CONNECTION_FAILED)


def parse_http_output(output: bytes) -> RawResponse:
    """Parse ``curl -i`` output into a response.

    Interim ``1xx`` header blocks (e.g. ``HTTP/1.1 100 Continue``) precede the
    final block; the last final block wins.

    Raises:
        TransportError: If the output does not start with an HTTP status line
    """
    remaining = output
    while True:
        if not remaining.startswith(b"HTTP/"):
            raise TransportError(
                "curl output does not contain an HTTP response",
                kind=FailureKind.MALFORMED_RESPONSE,
            )

        head, separator, body = _split_header_block(remaining)
        lines = head.decode("iso-8859-1").splitlines()
        status_parts = lines[0].split(None, 2)
        try:
            status_code = int(status_parts[1])
        except (IndexError, ValueError) as e:
            raise TransportError(
                f"Invalid HTTP status line: {lines[0]!r}",
                kind=FailureKind.MALFORMED_RESPONSE,
            ) from e

        if 100 <= status_code < 200 and body.startswith(b"HTTP/"):
            remaining = body
            continue

        headers: dict[str, str] = {}
        for line in lines[1:]:
            name, colon, value = line.partition(":")
            if colon:
                headers[name.strip()] = value.strip()

        if not separator:
            body = b""
        return RawResponse(
            status_code=status_code,
            headers=headers,
            text=body.decode("utf-8", errors="replace"),
        )


def _split_header_block(data: bytes) -> tuple[bytes, bytes, bytes]:
    crlf = data.find(b"\r\n\r\n")
    lf = data.find(b"\n\n")
    if crlf != -1 and (lf == -1 or crlf < lf):
        return data[:crlf], data[crlf : crlf + 4], data[crlf + 4 :]
    if lf != -1:
        return data[:lf], data[lf : lf + 2], data[lf + 2 :]
    return data, b"", b""


def _form_args(fields: list[MultipartField]) -> list[str]:
    args: list[str] = []
    for field in fields:
        if field.path is not None:
            # Quoted so that ";" and "," in the path are not read as part options
            escaped = str(field.path).replace("\\", "\\\\").replace('"', '\\"')
            args.extend(["-F", f'{field.name}=@"{escaped}"'])
        else:
            # --form-string keeps values starting with @ or < literal
            args.extend(["--form-string", f"{field.name}={field.value}"])
    return args


class CurlTransport(StructlogMixin):
    """Runs one ``curl`` child per request."""

    name = "curl"

    def __init__(self, endpoint: ServiceEndpoint, curl_path: str = "curl") -> None:
        self.endpoint = endpoint
        self.curl_path = curl_path

    def _base_args(self, method: str, max_time: float, accept: str) -> list[str]:
        return [
            self.curl_path,
            "-s",
            "-S",
            "-X",
            method,
            "--connect-timeout",
            f"{self.endpoint.connect_timeout:g}",
            "--max-time",
            f"{max_time:g}",
            "-H",
            f"User-Agent: {USER_AGENT}",
            "-H",
            f"Accept: {accept}",
        ]

    def build_request_args(
        self,
        method: str,
        path: str,
        *,
        json_body: dict[str, Any] | None = None,
        fields: list[MultipartField] | None = None,
        query: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> list[str]:
        """Command line for a simple request."""
        args = self._base_args(
            method, timeout or self.endpoint.request_timeout, ACCEPT_JSON
        )
        args.insert(3, "-i")
        for name, value in (headers or {}).items():
            args.extend(["-H", f"{name}: {value}"])
        if json_body is not None:
            args.extend(
                [
                    "-H",
                    "Content-Type: application/json",
                    "--data-binary",
                    json.dumps(json_body),
                ]
            )
        if fields:
            args.extend(_form_args(fields))
        args.append(self.endpoint.url_for(path, query))
        return args

    def build_stream_args(
        self,
        method: str,
        path: str,
        fields: list[MultipartField],
        query: dict[str, str] | None = None,
    ) -> list[str]:
        """Command line for a streamed request."""
        args = self._base_args(method, self.endpoint.upload_timeout, ACCEPT_STREAM)
        args[3:3] = ["-N", "--fail-with-body"]
        args.extend(_form_args(fields))
        args.append(self.endpoint.url_for(path, query))
        return args

    def request(
        self,
        method: str,
        path: str,
        *,
        json_body: dict[str, Any] | None = None,
        fields: list[MultipartField] | None = None,
        query: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> RawResponse:
        args = self.build_request_args(
            method,
            path,
            json_body=json_body,
            fields=fields,
            query=query,
            headers=headers,
            timeout=timeout,
        )
        url = args[-1]
        max_time = timeout or self.endpoint.request_timeout
        self.logger.debug("curl_request_started", method=method, url=url)

        try:
            return_code, stdout, stderr = run_command(
                args, timeout=max_time + PROCESS_TIMEOUT_SLACK
            )
        except FileNotFoundError as e:
            raise TransportError(
                f"curl executable not found: {self.curl_path}",
                kind=FailureKind.CONNECTION_FAILED,
            ) from e
        except subprocess.TimeoutExpired as e:
            raise TransportError(
                f"curl did not finish within {max_time:g}s",
                kind=FailureKind.TIMEOUT,
            ) from e

        if return_code != 0:
            kind = curl_exit_kind(return_code)
            reason = stderr[-1] if stderr else f"exit code {return_code}"
            self.logger.debug(
                "curl_request_failed",
                url=url,
                return_code=return_code,
                kind=kind.value,
            )
            raise TransportError(f"curl request to {url} failed: {reason}", kind=kind)

        response = parse_http_output(stdout)
        self.logger.debug(
            "curl_request_completed", url=url, status_code=response.status_code
        )
        return response

    def stream_request(
        self,
        method: str,
        path: str,
        fields: list[MultipartField],
        query: dict[str, str] | None = None,
    ) -> StreamHandle:
        args = self.build_stream_args(method, path, fields, query)
        self.logger.debug("curl_stream_started", method=method, url=args[-1])
        try:
            return StreamHandle(args)
        except FileNotFoundError as e:
            raise TransportError(
                f"curl executable not found: {self.curl_path}",
                kind=FailureKind.CONNECTION_FAILED,
            ) from e
