"""Main CLI application for FlashLink."""

import sys
from importlib.metadata import distribution
from typing import Annotated

import typer

from flashlink.cli.decorators.error_handling import print_stack_trace_if_verbose
from flashlink.config.models import RemoteFlasherConfig
from flashlink.config.user_config import create_user_config
from flashlink.core.logging import setup_logging
from flashlink.core.structlog_logger import get_struct_logger
from flashlink.flash.service import RemoteFlashService, create_remote_flash_service
from flashlink.remote.client import RemoteFlasherClient, create_remote_flasher_client


__all__ = ["app", "main", "__version__", "setup_logging"]


__version__ = distribution("flashlink").version

logger = get_struct_logger(__name__)


class AppContext:
    """Application context for storing shared state."""

    def __init__(
        self,
        verbose: int = 0,
        log_file: str | None = None,
        config_file: str | None = None,
        no_emoji: bool = False,
    ):
        self.verbose = verbose
        self.log_file = log_file
        self.config_file = config_file
        self.no_emoji = no_emoji
        self.user_config = create_user_config(cli_config_path=config_file)

    @property
    def use_emoji(self) -> bool:
        return not self.no_emoji

    def create_client(self, url: str | None = None) -> RemoteFlasherClient:
        """Client for the configured remote flasher, or for ``url`` if given.

        Raises:
            ConfigError: If no usable remote flasher is configured
        """
        config = self.user_config.config
        remote = config.remote_flasher
        if url:
            remote = RemoteFlasherConfig(enabled=True, server_url=url)
        return create_remote_flasher_client(
            remote,
            transport_config=config.transport,
            reset_config=config.reset,
            stream_config=config.stream,
        )

    def create_flash_service(self) -> RemoteFlashService:
        return create_remote_flash_service(
            self.user_config.config, use_emoji=self.use_emoji
        )


app = typer.Typer(
    name="flashlink",
    help=f"""FlashLink remote firmware flashing client v{__version__}

Uploads firmware to a remote flasher service (for example a Raspberry Pi
wired to the target board) and streams the flash progress back.

Common workflows:
  • Configure:      flashlink config remote --url http://raspberrypi:5000 --enable
  • Check service:  flashlink test
  • Flash:          flashlink flash build/sketch.ino.hex --fqbn arduino:avr:uno""",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        int,
        typer.Option(
            "-v",
            "--verbose",
            count=True,
            help="Increase verbosity (-v=INFO, -vv=DEBUG)",
        ),
    ] = 0,
    debug: Annotated[
        bool,
        typer.Option("--debug", help="Enable debug logging (equivalent to -vv)"),
    ] = False,
    log_file: Annotated[
        str | None, typer.Option("--log-file", help="Also write JSON logs to a file")
    ] = None,
    config_file: Annotated[
        str | None,
        typer.Option("-c", "--config", help="Path to configuration file"),
    ] = None,
    no_emoji: Annotated[
        bool,
        typer.Option("--no-emoji", help="Disable emoji icons in output"),
    ] = False,
    version: Annotated[
        bool, typer.Option("--version", help="Show version and exit")
    ] = False,
) -> None:
    """FlashLink remote firmware flashing client."""
    if version:
        print(f"FlashLink v{__version__}")
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        print(ctx.get_help())
        raise typer.Exit()

    app_context = AppContext(
        verbose=verbose, log_file=log_file, config_file=config_file, no_emoji=no_emoji
    )
    ctx.obj = app_context

    if debug or verbose >= 2:
        log_level_name = "DEBUG"
    elif verbose == 1:
        log_level_name = "INFO"
    else:
        log_level_name = app_context.user_config.config.log_level

    setup_logging(log_level_name=log_level_name, log_file=log_file)


def _register_commands() -> None:
    from flashlink.cli.commands import register_all_commands

    register_all_commands(app)


_register_commands()


def main() -> int:
    """Main CLI entry point."""
    try:
        app()
        return 0
    except SystemExit as e:
        return e.code if isinstance(e.code, int) else 0
    except Exception as e:
        logger.exception("unexpected_error", error=str(e))
        print_stack_trace_if_verbose()
        return 1


if __name__ == "__main__":
    sys.exit(main())
