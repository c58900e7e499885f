"""CLI command modules."""

import typer

from flashlink.cli.commands.config import register_commands as register_config_commands
from flashlink.cli.commands.flash import register_commands as register_flash_commands
from flashlink.cli.commands.remote import (
    register_commands as register_remote_commands,
)


def register_all_commands(app: typer.Typer) -> None:
    """Register all CLI commands with the main app.

    Args:
        app: The main Typer app
    """
    register_remote_commands(app)
    register_flash_commands(app)
    register_config_commands(app)
