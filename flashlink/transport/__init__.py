"""HTTP transports for talking to the remote flashing service."""

from flashlink.config.models import RemoteFlasherConfig, TransportConfig
from flashlink.protocols.transport_protocols import TransportProtocol

from .curl import CurlTransport, curl_exit_kind, parse_http_output
from .direct import DirectTransport
from .failover import FailoverTransport
from .models import MultipartField, RawResponse, ServiceEndpoint


def create_transport(
    remote: RemoteFlasherConfig,
    transport_config: TransportConfig | None = None,
) -> FailoverTransport:
    """Create the transport stack for a remote flasher.

    The direct transport is tried first; the curl transport is the fallback
    (unless disabled) and always carries streamed requests.
    """
    transport_config = transport_config or TransportConfig()
    endpoint = ServiceEndpoint.from_config(remote, transport_config)
    curl = CurlTransport(endpoint, curl_path=transport_config.curl_path)

    transports: list[TransportProtocol] = [DirectTransport(endpoint)]
    if transport_config.curl_fallback:
        transports.append(curl)
    return FailoverTransport(transports, streaming=curl)


__all__ = [
    "CurlTransport",
    "DirectTransport",
    "FailoverTransport",
    "MultipartField",
    "RawResponse",
    "ServiceEndpoint",
    "create_transport",
    "curl_exit_kind",
    "parse_http_output",
]
