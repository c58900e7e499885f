"""Commands that flash firmware through the remote flasher."""

from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer

from flashlink.cli.decorators import handle_errors
from flashlink.cli.helpers.output import (
    ConsoleProgressSink,
    print_error_message,
    print_list_item,
    print_result,
    print_success_message,
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


@handle_errors
def flash(
    ctx: typer.Context,
    firmware: Annotated[
        Path | None,
        typer.Argument(
            help="Firmware image to flash; defaults to the first image in the build directory",
            dir_okay=False,
        ),
    ] = None,
    fqbn: FqbnOption = None,
    mcu: McuOption = None,
    programmer: ProgrammerOption = None,
    port: PortOption = None,
    baudrate: BaudrateOption = None,
    raw: Annotated[
        bool, typer.Option("--raw", help="Show the raw flasher output")
    ] = False,
) -> None:
    """Flash firmware onto the device behind the remote flasher.

    Runs the full sequence: connection test, device info, bootloader reset,
    streamed flash and the final reset that starts the new program.
    """
    app_ctx: AppContext = ctx.obj
    service = app_ctx.create_flash_service()
    options = build_device_options(fqbn, mcu, programmer, port, baudrate)

    result = service.flash(
        firmware=firmware,
        options=options,
        progress_sink=ConsoleProgressSink(),
        raw=raw,
    )
    if result.success:
        print_success_message(
            "Firmware flashed successfully", use_emoji=app_ctx.use_emoji
        )
        return

    print_error_message(f"Flash failed: {result.message}", use_emoji=app_ctx.use_emoji)
    if result.kind is not None:
        print_list_item(f"kind: {result.kind.value}", use_emoji=app_ctx.use_emoji)
    raise typer.Exit(1)


@handle_errors
def flash_url(
    ctx: typer.Context,
    firmware_url: Annotated[
        str, typer.Argument(help="URL the remote flasher downloads the firmware from")
    ],
    fqbn: FqbnOption = None,
    mcu: McuOption = None,
    programmer: ProgrammerOption = None,
    port: PortOption = None,
    baudrate: BaudrateOption = None,
    url: UrlOption = None,
) -> None:
    """Let the remote flasher download a firmware image and flash it."""
    app_ctx: AppContext = ctx.obj
    defaults = app_ctx.user_config.config.device.to_options()
    options = build_device_options(fqbn, mcu, programmer, port, baudrate)

    result = app_ctx.create_client(url).flash_url(
        firmware_url, options.merged_with(defaults)
    )
    print_result(
        result,
        success_message="Firmware flashed successfully",
        use_emoji=app_ctx.use_emoji,
    )
    if not result.success:
        raise typer.Exit(1)


def register_commands(app: typer.Typer) -> None:
    """Register flash commands with the main app."""
    app.command(name="flash")(flash)
    app.command(name="flash-url")(flash_url)
