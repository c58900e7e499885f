"""Tests for ordered transport fallback."""

from unittest.mock import Mock

import pytest

from flashlink.config.models import RemoteFlasherConfig, TransportConfig
from flashlink.core.errors import TransportError
from flashlink.models.results import FailureKind
from flashlink.protocols.transport_protocols import (
    StreamingTransportProtocol,
    TransportProtocol,
)
from flashlink.transport import (
    CurlTransport,
    DirectTransport,
    FailoverTransport,
    create_transport,
)
from tests.helpers import json_response


@pytest.fixture
def primary():
    return Mock(spec=TransportProtocol)


@pytest.fixture
def fallback():
    return Mock(spec=TransportProtocol)


@pytest.fixture
def streaming():
    return Mock(spec=StreamingTransportProtocol)


class TestFailoverTransport:
    def test_primary_success_skips_fallback(self, primary, fallback, streaming):
        primary.request.return_value = json_response({"ok": True})
        transport = FailoverTransport([primary, fallback], streaming)

        response = transport.request("GET", "/status")

        assert response.payload == {"ok": True}
        fallback.request.assert_not_called()

    def test_transport_error_falls_back_once(self, primary, fallback, streaming):
        primary.request.side_effect = TransportError(
            "refused", kind=FailureKind.CONNECTION_FAILED
        )
        fallback.request.return_value = json_response({"ok": True})
        transport = FailoverTransport([primary, fallback], streaming)

        response = transport.request("GET", "/status", query={"a": "b"})

        assert response.payload == {"ok": True}
        fallback.request.assert_called_once_with(
            "GET",
            "/status",
            json_body=None,
            fields=None,
            query={"a": "b"},
            headers=None,
            timeout=None,
        )

    def test_http_error_status_does_not_fall_back(self, primary, fallback, streaming):
        primary.request.return_value = json_response({"error": "busy"}, status_code=503)
        transport = FailoverTransport([primary, fallback], streaming)

        response = transport.request("GET", "/status")

        assert response.status_code == 503
        fallback.request.assert_not_called()

    def test_both_failing_carries_both_errors(self, primary, fallback, streaming):
        primary_error = TransportError("timed out", kind=FailureKind.TIMEOUT)
        fallback_error = TransportError("refused", kind=FailureKind.CONNECTION_FAILED)
        primary.request.side_effect = primary_error
        fallback.request.side_effect = fallback_error
        transport = FailoverTransport([primary, fallback], streaming)

        with pytest.raises(TransportError) as exc_info:
            transport.request("GET", "/status")

        error = exc_info.value
        assert error.kind == FailureKind.TIMEOUT
        assert error.errors == [primary_error, fallback_error]
        assert [d["kind"] for d in error.to_detail()["errors"]] == [
            "timeout",
            "connection_failed",
        ]

    def test_single_transport_reraises_its_error(self, primary, streaming):
        error = TransportError("refused")
        primary.request.side_effect = error
        transport = FailoverTransport([primary], streaming)

        with pytest.raises(TransportError) as exc_info:
            transport.request("GET", "/status")

        assert exc_info.value is error

    def test_streaming_goes_to_streaming_transport(self, primary, fallback, streaming):
        transport = FailoverTransport([primary, fallback], streaming)

        transport.stream_request("POST", "/flash/stream", [], {"mcu": "m"})

        streaming.stream_request.assert_called_once_with(
            "POST", "/flash/stream", [], {"mcu": "m"}
        )
        primary.request.assert_not_called()

    def test_requires_a_transport(self, streaming):
        with pytest.raises(ValueError):
            FailoverTransport([], streaming)


class TestCreateTransport:
    def test_direct_then_curl(self):
        transport = create_transport(
            RemoteFlasherConfig(enabled=True, server_url="http://pi:5000"),
            TransportConfig(curl_path="/usr/bin/curl"),
        )

        assert [type(t) for t in transport.transports] == [
            DirectTransport,
            CurlTransport,
        ]
        assert isinstance(transport.streaming, CurlTransport)
        assert transport.streaming.curl_path == "/usr/bin/curl"

    def test_fallback_can_be_disabled(self):
        transport = create_transport(
            RemoteFlasherConfig(enabled=True, server_url="http://pi:5000"),
            TransportConfig(curl_fallback=False),
        )

        assert [type(t) for t in transport.transports] == [DirectTransport]
        assert isinstance(transport.streaming, CurlTransport)
