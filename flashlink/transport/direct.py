"""Direct HTTP transport built on a requests session."""

import time
from collections.abc import Callable
from contextlib import ExitStack
from typing import Any

import requests

from flashlink.core.errors import LocalError, TransportError
from flashlink.core.structlog_logger import StructlogMixin
from flashlink.models.results import FailureKind
from flashlink.transport.models import (
    ACCEPT_JSON,
    USER_AGENT,
    MultipartField,
    RawResponse,
    ServiceEndpoint,
)


CHUNK_SIZE = 8192

# Fragments of resolver errors as they show up in requests/urllib3 messages
DNS_ERROR_MARKERS = (
    "NameResolutionError",
    "Name or service not known",
    "nodename nor servname",
    "getaddrinfo failed",
    "Temporary failure in name resolution",
    "No address associated with hostname",
)


def classify_request_exception(error: requests.RequestException) -> FailureKind:
    """Map a requests exception to a transport failure kind."""
    if isinstance(error, requests.Timeout):
        return FailureKind.TIMEOUT
    if isinstance(error, requests.ConnectionError):
        message = str(error)
        if any(marker in message for marker in DNS_ERROR_MARKERS):
            return FailureKind.DNS_FAILURE
        return FailureKind.CONNECTION_FAILED
    if isinstance(
        error,
        (
            requests.exceptions.ChunkedEncodingError,
            requests.exceptions.ContentDecodingError,
            requests.exceptions.InvalidHeader,
        ),
    ):
        return FailureKind.MALFORMED_RESPONSE
    return FailureKind.CONNECTION_FAILED


class DirectTransport(StructlogMixin):
    """Talks to the service over a pooled ``requests.Session``."""

    name = "direct"

    def __init__(
        self,
        endpoint: ServiceEndpoint,
        session: requests.Session | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.endpoint = endpoint
        self._clock = clock
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": USER_AGENT, "Accept": ACCEPT_JSON})

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
        url = self.endpoint.url_for(path)
        total_timeout = timeout or self.endpoint.request_timeout
        deadline = self._clock() + total_timeout
        self.logger.debug("direct_request_started", method=method, url=url)

        with ExitStack() as stack:
            data: dict[str, str] | None = None
            files: dict[str, Any] | None = None
            if fields:
                data = {f.name: f.value for f in fields if f.value is not None}
                files = {}
                for field in fields:
                    if field.path is None:
                        continue
                    try:
                        handle = stack.enter_context(field.path.open("rb"))
                    except OSError as e:
                        raise LocalError(
                            f"Cannot read {field.path}: {e}",
                            kind=FailureKind.FILE_NOT_FOUND,
                        ) from e
                    files[field.name] = (
                        field.path.name,
                        handle,
                        "application/octet-stream",
                    )

            try:
                response = self.session.request(
                    method,
                    url,
                    params=query or None,
                    json=json_body,
                    data=data,
                    files=files or None,
                    headers=headers,
                    # The read value only bounds gaps between bytes; the deadline
                    # caps the whole exchange
                    timeout=(self.endpoint.connect_timeout, total_timeout),
                    stream=True,
                )
                text = self._read_body(response, url, deadline, total_timeout)
            except requests.RequestException as e:
                kind = classify_request_exception(e)
                self.logger.debug(
                    "direct_request_failed", url=url, kind=kind.value, error=str(e)
                )
                raise TransportError(
                    f"Request to {url} failed: {e}", kind=kind
                ) from e

        self.logger.debug(
            "direct_request_completed", url=url, status_code=response.status_code
        )
        return RawResponse(
            status_code=response.status_code,
            headers=dict(response.headers),
            text=text,
        )

    def _read_body(
        self,
        response: requests.Response,
        url: str,
        deadline: float,
        total_timeout: float,
    ) -> str:
        chunks: list[bytes] = []
        try:
            for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                chunks.append(chunk)
                if self._clock() > deadline:
                    self.logger.debug("direct_request_deadline_exceeded", url=url)
                    raise TransportError(
                        f"Response from {url} took longer than {total_timeout:g}s",
                        kind=FailureKind.TIMEOUT,
                    )
        finally:
            response.close()
        return b"".join(chunks).decode(response.encoding or "utf-8", errors="replace")
