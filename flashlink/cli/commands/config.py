"""Configuration CLI commands."""

from typing import TYPE_CHECKING, Annotated, Any

import typer
from rich.table import Table

from flashlink.cli.decorators import handle_errors
from flashlink.cli.helpers.output import (
    get_console,
    print_error_message,
    print_info_message,
    print_success_message,
)


if TYPE_CHECKING:
    from flashlink.cli.app import AppContext


config_app = typer.Typer(
    name="config",
    help="Configuration management commands",
    no_args_is_help=True,
)


def _flatten(data: dict[str, Any], prefix: str = "") -> dict[str, Any]:
    flat: dict[str, Any] = {}
    for key, value in data.items():
        full_key = f"{prefix}.{key}" if prefix else key
        if isinstance(value, dict):
            flat.update(_flatten(value, full_key))
        else:
            flat[full_key] = value
    return flat


@config_app.command(name="show")
@handle_errors
def show_config(
    ctx: typer.Context,
    sources: Annotated[
        bool, typer.Option("--sources", "-s", help="Show where each value comes from")
    ] = False,
) -> None:
    """Show the current configuration."""
    app_ctx: AppContext = ctx.obj
    user_config = app_ctx.user_config
    values = _flatten(user_config.config.model_dump(mode="json"))

    table = Table(title="FlashLink Configuration", show_header=True)
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    if sources:
        table.add_column("Source", style="dim")

    for key, value in values.items():
        row = [key, "" if value is None else str(value)]
        if sources:
            row.append(user_config.get_source(key))
        table.add_row(*row)

    console = get_console()
    console.print(table)
    console.print(f"Config file: {user_config.config_path}", markup=False)


@config_app.command(name="remote")
@handle_errors
def remote_config(
    ctx: typer.Context,
    url: Annotated[
        str | None, typer.Option("--url", help="Remote flasher base URL")
    ] = None,
    enable: Annotated[
        bool | None,
        typer.Option("--enable/--disable", help="Enable or disable remote flashing"),
    ] = None,
) -> None:
    """Show or change the remote flasher settings."""
    app_ctx: AppContext = ctx.obj
    user_config = app_ctx.user_config
    current = user_config.get_remote_flasher()

    if url is None and enable is None:
        state = "enabled" if current.enabled else "disabled"
        print_info_message(
            f"Remote flasher: {state}, URL: {current.server_url or '(not set)'}",
            use_emoji=app_ctx.use_emoji,
        )
        return

    try:
        user_config.set_remote_flasher(
            enabled=current.enabled if enable is None else enable,
            server_url=url,
        )
    except ValueError as e:
        print_error_message(str(e), use_emoji=app_ctx.use_emoji)
        raise typer.Exit(1) from e

    updated = user_config.get_remote_flasher()
    state = "enabled" if updated.enabled else "disabled"
    print_success_message(
        f"Remote flasher {state} ({updated.server_url or 'no URL'}), "
        f"saved to {user_config.config_path}",
        use_emoji=app_ctx.use_emoji,
    )


def register_commands(app: typer.Typer) -> None:
    """Register config commands with the main app.

    Args:
        app: The main Typer app
    """
    app.add_typer(config_app, name="config")
