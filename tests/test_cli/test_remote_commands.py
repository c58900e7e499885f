"""Tests for the status, test, info, reset and wait commands."""

from unittest.mock import patch

from flashlink.core.errors import ConfigError
from flashlink.models.options import DeviceOperationOptions
from flashlink.models.results import FailureKind, OperationResult


class TestStatusCommand:
    def test_reachable(self, invoke, patched_client):
        result = invoke("status")

        assert result.exit_code == 0
        assert "[OK] Remote flasher at http://flasher.local:5000 is reachable" in (
            result.output
        )

    def test_not_ready_warning(self, invoke, patched_client, mock_client):
        mock_client.get_status.return_value = OperationResult.ok(
            "reachable", data={"flasher_ready": False}
        )

        result = invoke("status")

        assert result.exit_code == 0
        assert "[WARN] The remote flasher reports it is not ready" in result.output

    def test_unreachable(self, invoke, patched_client, mock_client):
        mock_client.get_status.return_value = OperationResult.fail(
            FailureKind.CONNECTION_FAILED, "Cannot connect to remote flasher"
        )

        result = invoke("status")

        assert result.exit_code == 1
        assert "[ERROR] Cannot connect to remote flasher" in result.output
        assert "kind: connection_failed" in result.output

    def test_url_option_overrides_config(self, invoke, patched_client):
        invoke("status", "--url", "http://other-pi:5000")

        remote = patched_client.call_args.args[0]
        assert remote.server_url == "http://other-pi:5000"
        assert remote.enabled is True

    def test_disabled_remote_exits_with_error(self, invoke):
        with patch(
            "flashlink.cli.app.create_remote_flasher_client",
            side_effect=ConfigError("Remote flasher is disabled in the configuration"),
        ):
            result = invoke("status")

        assert result.exit_code == 1


class TestTestCommand:
    def test_success(self, invoke, patched_client):
        result = invoke("test")

        assert result.exit_code == 0
        assert "Remote flasher connection OK (http://flasher.local:5000)" in (
            result.output
        )

    def test_failure(self, invoke, patched_client, mock_client):
        mock_client.test_connection.return_value = OperationResult.fail(
            FailureKind.SERVER_ERROR,
            "Config check failed: HTTP 500",
            detail={"status_code": 500},
        )

        result = invoke("test")

        assert result.exit_code == 1
        assert "Config check failed" in result.output
        assert "HTTP status: 500" in result.output


class TestInfoCommand:
    def test_fqbn_sets_device_options(self, invoke, patched_client, mock_client):
        result = invoke("info", "--fqbn", "arduino:avr:mega", "-p", "/dev/ttyUSB0")

        assert result.exit_code == 0
        mock_client.get_device_info.assert_called_once_with(
            DeviceOperationOptions(
                mcu="atmega2560",
                programmer="arduino",
                port="/dev/ttyUSB0",
                baudrate=115200,
            )
        )
        assert "signature" in result.output

    def test_explicit_mcu_wins_over_fqbn(self, invoke, patched_client, mock_client):
        invoke("info", "--fqbn", "arduino:avr:uno", "--mcu", "atmega168")

        options = mock_client.get_device_info.call_args.args[0]
        assert options.mcu == "atmega168"


class TestResetCommand:
    def test_assert_reset(self, invoke, patched_client, mock_client):
        result = invoke("reset", "-d", "0.3")

        assert result.exit_code == 0
        mock_client.control_reset.assert_called_once_with(True, 0.3)
        assert "Remote device reset activated" in result.output

    def test_release(self, invoke, patched_client, mock_client):
        result = invoke("reset", "--release")

        assert result.exit_code == 0
        mock_client.control_reset.assert_called_once_with(False, None)
        assert "Remote device reset released" in result.output

    def test_failure(self, invoke, patched_client, mock_client):
        mock_client.control_reset.return_value = OperationResult.fail(
            FailureKind.TIMEOUT, "Remote flasher did not answer in time"
        )

        assert invoke("reset").exit_code == 1


class TestWaitCommand:
    def test_available(self, invoke, patched_client, mock_client):
        result = invoke("wait", "-t", "5", "--interval", "0.5")

        assert result.exit_code == 0
        mock_client.wait_for_service.assert_called_once_with(max_wait=5.0, interval=0.5)

    def test_times_out(self, invoke, patched_client, mock_client):
        mock_client.wait_for_service.return_value = False

        result = invoke("wait", "-t", "2")

        assert result.exit_code == 1
        assert "did not answer within 2s" in result.output
