"""Commands that query and control the remote flasher."""

from typing import TYPE_CHECKING, Annotated

import typer

from flashlink.cli.decorators import handle_errors
from flashlink.cli.helpers.output import (
    print_error_message,
    print_result,
    print_success_message,
    print_warning_message,
)
from flashlink.cli.helpers.parameters import (
    BaudrateOption,
    FqbnOption,
    McuOption,
    PortOption,
    ProgrammerOption,
    UrlOption,
    build_device_options,
)


if TYPE_CHECKING:
    from flashlink.cli.app import AppContext


def _app_context(ctx: typer.Context) -> "AppContext":
    return ctx.obj  # type: ignore[no-any-return]


@handle_errors
def status(ctx: typer.Context, url: UrlOption = None) -> None:
    """Show the remote flasher status."""
    app_ctx = _app_context(ctx)
    client = app_ctx.create_client(url)
    result = client.get_status()
    print_result(
        result,
        success_message=f"Remote flasher at {client.server_url} is reachable",
        use_emoji=app_ctx.use_emoji,
    )
    if not result.success:
        raise typer.Exit(1)
    if result.data.get("flasher_ready") is False:
        print_warning_message(
            "The remote flasher reports it is not ready", use_emoji=app_ctx.use_emoji
        )


@handle_errors
def test(ctx: typer.Context, url: UrlOption = None) -> None:
    """Test the connection (status and configuration) to the remote flasher."""
    app_ctx = _app_context(ctx)
    client = app_ctx.create_client(url)
    result = client.test_connection()
    if result.success:
        print_success_message(
            f"Remote flasher connection OK ({client.server_url})",
            use_emoji=app_ctx.use_emoji,
        )
        return
    print_result(result, use_emoji=app_ctx.use_emoji)
    raise typer.Exit(1)


@handle_errors
def info(
    ctx: typer.Context,
    fqbn: FqbnOption = None,
    mcu: McuOption = None,
    programmer: ProgrammerOption = None,
    port: PortOption = None,
    baudrate: BaudrateOption = None,
    url: UrlOption = None,
) -> None:
    """Show information about the device attached to the remote flasher."""
    app_ctx = _app_context(ctx)
    options = build_device_options(fqbn, mcu, programmer, port, baudrate)
    result = app_ctx.create_client(url).get_device_info(options)
    print_result(
        result,
        success_message="Remote device info retrieved",
        use_emoji=app_ctx.use_emoji,
    )
    if not result.success:
        raise typer.Exit(1)


@handle_errors
def reset(
    ctx: typer.Context,
    release: Annotated[
        bool, typer.Option("--release", help="Release the reset line instead")
    ] = False,
    duration: Annotated[
        float | None,
        typer.Option("--duration", "-d", min=0, help="Pulse duration in seconds"),
    ] = None,
    url: UrlOption = None,
) -> None:
    """Assert (or release) the reset line of the remote device."""
    app_ctx = _app_context(ctx)
    result = app_ctx.create_client(url).control_reset(not release, duration)
    action = "released" if release else "activated"
    print_result(
        result,
        success_message=f"Remote device reset {action}",
        use_emoji=app_ctx.use_emoji,
    )
    if not result.success:
        raise typer.Exit(1)


@handle_errors
def wait(
    ctx: typer.Context,
    max_wait: Annotated[
        float,
        typer.Option("--max-wait", "-t", min=0, help="Seconds to wait at most"),
    ] = 30.0,
    interval: Annotated[
        float, typer.Option("--interval", min=0.1, help="Seconds between checks")
    ] = 1.0,
    url: UrlOption = None,
) -> None:
    """Wait until the remote flasher answers."""
    app_ctx = _app_context(ctx)
    client = app_ctx.create_client(url)
    if client.wait_for_service(max_wait=max_wait, interval=interval):
        print_success_message(
            f"Remote flasher at {client.server_url} is available",
            use_emoji=app_ctx.use_emoji,
        )
        return
    print_error_message(
        f"Remote flasher at {client.server_url} did not answer within {max_wait:g}s",
        use_emoji=app_ctx.use_emoji,
    )
    raise typer.Exit(1)


def register_commands(app: typer.Typer) -> None:
    """Register remote flasher commands with the main app."""
    app.command(name="status")(status)
    app.command(name="test")(test)
    app.command(name="info")(info)
    app.command(name="reset")(reset)
    app.command(name="wait")(wait)
