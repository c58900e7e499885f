"""Test fixtures for CLI tests."""

from collections.abc import Callable
from pathlib import Path
from unittest.mock import Mock, patch

import pytest
from typer.testing import CliRunner, Result

from flashlink.cli.app import app
from flashlink.flash.service import RemoteFlashService
from flashlink.models.results import OperationResult
from flashlink.remote.client import RemoteFlasherClient
from tests.helpers import SERVER_URL


@pytest.fixture
def mock_client():
    """Remote client mock that answers every call successfully."""
    client = Mock(spec=RemoteFlasherClient)
    client.server_url = SERVER_URL
    client.get_status.return_value = OperationResult.ok(
        "Remote flasher is reachable", data={"flasher_ready": True}
    )
    client.test_connection.return_value = OperationResult.ok("connected")
    client.get_device_info.return_value = OperationResult.ok(
        "device info succeeded", data={"signature": "1e950f"}
    )
    client.control_reset.return_value = OperationResult.ok("reset control succeeded")
    client.flash_url.return_value = OperationResult.ok("flash succeeded")
    client.wait_for_service.return_value = True
    return client


@pytest.fixture
def patched_client(mock_client):
    """Make the CLI build ``mock_client`` instead of a real client."""
    with patch(
        "flashlink.cli.app.create_remote_flasher_client", return_value=mock_client
    ) as factory:
        yield factory


@pytest.fixture
def mock_flash_service():
    service = Mock(spec=RemoteFlashService)
    service.flash.return_value = OperationResult.ok("Flash completed successfully")
    return service


@pytest.fixture
def patched_flash_service(mock_flash_service):
    with patch(
        "flashlink.cli.app.create_remote_flash_service",
        return_value=mock_flash_service,
    ) as factory:
        yield factory


@pytest.fixture
def invoke(cli_runner: CliRunner, config_file: Path) -> Callable[..., Result]:
    """Run the CLI with the isolated config file and ASCII output."""

    def _invoke(*args: str) -> Result:
        return cli_runner.invoke(
            app,
            ["--no-emoji", "-c", str(config_file), *args],
            env={"COLUMNS": "200"},
        )

    return _invoke
