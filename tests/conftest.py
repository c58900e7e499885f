"""Core test fixtures for the flashlink project."""

import os
from collections.abc import Generator
from pathlib import Path
from unittest.mock import Mock

import pytest
import yaml
from typer.testing import CliRunner

from flashlink.config.user_config import UserConfig
from flashlink.protocols.transport_protocols import RemoteFlasherTransport
from flashlink.remote.client import RemoteFlasherClient
from tests.helpers import SERVER_URL, json_response


# ---- Base Fixtures ----


@pytest.fixture
def cli_runner() -> CliRunner:
    """Return a Typer CLI test runner."""
    return CliRunner()


@pytest.fixture
def mock_transport() -> Mock:
    """Transport mock answering every request with an empty JSON object."""
    transport = Mock(spec=RemoteFlasherTransport)
    transport.request.return_value = json_response({})
    return transport


@pytest.fixture
def client(mock_transport: Mock) -> RemoteFlasherClient:
    """Client on top of the mock transport with a silent logger."""
    return RemoteFlasherClient(
        SERVER_URL, mock_transport, logger=Mock(), sleep=Mock(), clock=Mock()
    )


@pytest.fixture
def firmware_file(tmp_path: Path) -> Path:
    """A small Intel HEX firmware image."""
    path = tmp_path / "sketch.ino.hex"
    path.write_text(":100000000C9434000C9446000C9446000C9446006A\n:00000001FF\n")
    return path


# ---- Test Isolation Fixtures ----


@pytest.fixture
def clean_environment(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Generator[Path, None, None]:
    """Run in an empty directory with no FLASHLINK_ variables and a private XDG home."""
    for key in list(os.environ):
        if key.startswith("FLASHLINK_"):
            monkeypatch.delenv(key)

    work_dir = tmp_path / "work"
    work_dir.mkdir()
    monkeypatch.chdir(work_dir)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg-config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "xdg-data"))
    yield work_dir


@pytest.fixture
def config_file(tmp_path: Path, clean_environment: Path) -> Path:
    """A config file enabling the remote flasher."""
    path = tmp_path / "flashlink.yaml"
    data = {
        "log_level": "INFO",
        "remote_flasher": {"enabled": True, "server_url": SERVER_URL},
        "device": {"build_dir": str(tmp_path / "build")},
    }
    with path.open("w") as f:
        yaml.safe_dump(data, f)
    return path


@pytest.fixture
def isolated_config(config_file: Path) -> UserConfig:
    """UserConfig loaded from the isolated config file."""
    return UserConfig(cli_config_path=config_file)
