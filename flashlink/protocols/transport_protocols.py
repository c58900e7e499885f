"""Protocol definitions for HTTP transports."""

from collections.abc import Iterator
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable


if TYPE_CHECKING:
    from flashlink.transport.models import MultipartField, RawResponse


@runtime_checkable
class TransportProtocol(Protocol):
    """Single request/response against the service endpoint."""

    def request(
        self,
        method: str,
        path: str,
        *,
        json_body: dict[str, Any] | None = None,
        fields: "list[MultipartField] | None" = None,
        query: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> "RawResponse":
        """Send one request.

        Raises:
            TransportError: If no HTTP response was obtained
        """
        ...


@runtime_checkable
class StreamHandleProtocol(Protocol):
    """Lazy, finite, non-restartable stream of raw byte chunks."""

    return_code: int | None

    @property
    def stderr(self) -> str: ...

    def __iter__(self) -> Iterator[bytes]: ...

    def close(self) -> None: ...


@runtime_checkable
class StreamingTransportProtocol(Protocol):
    """Long-lived request whose response body is consumed as it arrives."""

    def stream_request(
        self,
        method: str,
        path: str,
        fields: "list[MultipartField]",
        query: dict[str, str] | None = None,
    ) -> StreamHandleProtocol:
        """Start a streamed request.

        Raises:
            TransportError: If the request could not be started
        """
        ...


@runtime_checkable
class RemoteFlasherTransport(TransportProtocol, StreamingTransportProtocol, Protocol):
    """Transport able to do both simple and streamed requests."""
