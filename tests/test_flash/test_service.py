"""Tests for RemoteFlashService."""

from pathlib import Path
from unittest.mock import Mock

import pytest

from flashlink.config.models import DeviceDefaultsConfig, UserConfigData
from flashlink.core.errors import ConfigError, FlashError
from flashlink.flash.service import RemoteFlashService, create_remote_flash_service
from flashlink.flash.sinks import CollectingProgressSink
from flashlink.models.options import DeviceOperationOptions
from flashlink.models.results import FailureKind, OperationResult
from flashlink.remote.client import RemoteFlasherClient
from tests.helpers import SERVER_URL


@pytest.fixture
def remote():
    client = Mock(spec=RemoteFlasherClient)
    client.test_connection.return_value = OperationResult.ok("connected")
    client.get_device_info.return_value = OperationResult.ok("info")
    client.control_reset.return_value = OperationResult.ok("reset")
    client.perform_operation.return_value = OperationResult.ok("flashed")
    return client


@pytest.fixture
def service(remote, tmp_path):
    defaults = DeviceDefaultsConfig(
        mcu="atmega328p", port="/dev/ttyS0", build_dir=tmp_path / "build"
    )
    return RemoteFlashService(remote, device_defaults=defaults, sleep=Mock())


class TestFlash:
    def test_options_merged_with_defaults(self, service, remote, firmware_file):
        result = service.flash(
            firmware_file, DeviceOperationOptions(port="/dev/ttyUSB0")
        )

        assert result.success
        options = remote.perform_operation.call_args.args[1]
        assert options.mcu == "atmega328p"
        assert options.port == "/dev/ttyUSB0"
        assert options.programmer == "arduino"
        assert options.baudrate == 115200

    def test_not_busy_after_flash(self, service, firmware_file):
        service.flash(firmware_file, progress_sink=CollectingProgressSink())

        assert not service.is_busy

    def test_second_session_rejected_while_running(
        self, service, remote, firmware_file
    ):
        def perform(path, options, on_event):
            assert service.is_busy
            with pytest.raises(FlashError):
                service.flash(firmware_file)
            return OperationResult.ok("flashed")

        remote.perform_operation.side_effect = perform

        assert service.flash(firmware_file).success
        assert not service.is_busy

    def test_abort_reaches_running_session(self, service, remote, firmware_file):
        aborted = []

        def reset(value, duration=None):
            aborted.append(service.abort())
            return OperationResult.ok("reset")

        remote.control_reset.side_effect = reset

        result = service.flash(firmware_file)

        assert aborted[0] is True
        assert result.kind == FailureKind.ABORTED
        remote.perform_operation.assert_not_called()

    def test_abort_without_session(self, service):
        assert service.abort() is False

    def test_build_output_discovered(self, service, remote, tmp_path):
        build_dir = tmp_path / "build"
        build_dir.mkdir()
        (build_dir / "sketch.ino.hex").write_text(":00000001FF\n")

        assert service.flash().success
        assert remote.perform_operation.call_args.args[0] == (
            build_dir / "sketch.ino.hex"
        )


class TestRealtimeFirmware:
    def test_flashes_from_tools_dir(self, remote, tmp_path):
        tools_dir = tmp_path / "tools"
        tools_dir.mkdir()
        (tools_dir / "realtime.hex").write_text(":00000001FF\n")
        service = RemoteFlashService(
            remote, DeviceDefaultsConfig(tools_dir=tools_dir), sleep=Mock()
        )

        assert service.flash_realtime_firmware("realtime.hex").success
        assert remote.perform_operation.call_args.args[0] == tools_dir / "realtime.hex"

    def test_without_tools_dir(self, service, remote):
        result = service.flash_realtime_firmware("realtime.hex")

        assert result.kind == FailureKind.FILE_NOT_FOUND
        assert remote.method_calls == []


class TestBuildAndFlash:
    def test_build_then_flash(self, service, remote, firmware_file):
        producer = Mock()
        producer.build.return_value = firmware_file

        result = service.build_and_flash("void setup() {}", producer)

        assert result.success
        producer.build.assert_called_once_with("void setup() {}")
        assert remote.perform_operation.call_args.args[0] == firmware_file

    def test_build_failure(self, service, remote):
        producer = Mock()
        producer.build.side_effect = RuntimeError("compile error")
        sink = CollectingProgressSink()

        result = service.build_and_flash("broken", producer, progress_sink=sink)

        assert result.kind == FailureKind.BUILD_FAILED
        assert sink.lines == ["Build failed: compile error"]
        assert remote.method_calls == []


@pytest.mark.usefixtures("clean_environment")
class TestCreateService:
    def test_from_config(self):
        config = UserConfigData(
            remote_flasher={"enabled": True, "server_url": SERVER_URL},
            device={"mcu": "atmega2560", "build_dir": "/tmp/fw"},
        )

        service = create_remote_flash_service(config, use_emoji=False)

        assert service.client.server_url == SERVER_URL
        assert service.device_defaults.mcu == "atmega2560"
        assert service.device_defaults.build_dir == Path("/tmp/fw")
        assert service.use_emoji is False

    def test_disabled_remote(self):
        with pytest.raises(ConfigError):
            create_remote_flash_service(UserConfigData())
