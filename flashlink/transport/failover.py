"""Ordered transport fallback."""

from typing import Any

from flashlink.core.errors import TransportError
from flashlink.core.structlog_logger import StructlogMixin
from flashlink.protocols.transport_protocols import (
    StreamHandleProtocol,
    StreamingTransportProtocol,
    TransportProtocol,
)
from flashlink.transport.models import MultipartField, RawResponse


class FailoverTransport(StructlogMixin):
    """Try each transport in order until one produces an HTTP response.

    Only transport failures move on to the next transport. An HTTP error
    status is a response like any other and is returned as-is. When every
    transport fails, the raised error carries the kind of the first failure
    and all underlying errors in ``errors``.

    Streamed requests are not retried; they go straight to ``streaming``.
    """

    def __init__(
        self,
        transports: list[TransportProtocol],
        streaming: StreamingTransportProtocol,
    ) -> None:
        if not transports:
            raise ValueError("At least one transport is required")
        self.transports = transports
        self.streaming = streaming

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
        errors: list[TransportError] = []
        for transport in self.transports:
            transport_name = getattr(transport, "name", type(transport).__name__)
            try:
                response = transport.request(
                    method,
                    path,
                    json_body=json_body,
                    fields=fields,
                    query=query,
                    headers=headers,
                    timeout=timeout,
                )
            except TransportError as e:
                self.logger.debug(
                    "transport_failed",
                    transport=transport_name,
                    path=path,
                    kind=e.kind.value,
                    error=str(e),
                )
                errors.append(e)
                continue

            if errors:
                self.logger.info(
                    "transport_fallback_succeeded", transport=transport_name, path=path
                )
            return response

        if len(errors) == 1:
            raise errors[0]

        summary = "; ".join(str(error) for error in errors)
        raise TransportError(
            f"All {len(errors)} transports failed: {summary}",
            kind=errors[0].kind,
            errors=errors,
        )

    def stream_request(
        self,
        method: str,
        path: str,
        fields: list[MultipartField],
        query: dict[str, str] | None = None,
    ) -> StreamHandleProtocol:
        return self.streaming.stream_request(method, path, fields, query)
