"""Common CLI parameter definitions for reuse across commands."""

from typing import Annotated

import typer

from flashlink.models.options import FQBN_TO_MCU, DeviceOperationOptions


def complete_fqbn(incomplete: str) -> list[str]:
    """Tab completion for known Arduino boards."""
    return [fqbn for fqbn in FQBN_TO_MCU if fqbn.startswith(incomplete)]


FqbnOption = Annotated[
    str | None,
    typer.Option(
        "--fqbn",
        help="Arduino board FQBN (e.g. 'arduino:avr:uno'); sets MCU, programmer and baud rate",
        autocompletion=complete_fqbn,
    ),
]

McuOption = Annotated[
    str | None, typer.Option("--mcu", help="Target MCU (e.g. atmega328p)")
]

ProgrammerOption = Annotated[
    str | None, typer.Option("--programmer", help="avrdude programmer id")
]

PortOption = Annotated[
    str | None, typer.Option("--port", "-p", help="Serial port on the remote host")
]

BaudrateOption = Annotated[
    int | None, typer.Option("--baudrate", "-b", min=1, help="Upload baud rate")
]

UrlOption = Annotated[
    str | None,
    typer.Option("--url", help="Remote flasher URL (overrides the configuration)"),
]


def build_device_options(
    fqbn: str | None = None,
    mcu: str | None = None,
    programmer: str | None = None,
    port: str | None = None,
    baudrate: int | None = None,
) -> DeviceOperationOptions:
    """Combine the device options given on the command line.

    Explicit ``--mcu``/``--programmer``/``--baudrate`` win over what the FQBN
    implies; options left out stay absent so configuration defaults apply.
    """
    if fqbn is None:
        return DeviceOperationOptions(
            mcu=mcu, programmer=programmer, port=port, baudrate=baudrate
        )

    board = DeviceOperationOptions.from_fqbn(fqbn, port=port)
    return DeviceOperationOptions(
        mcu=mcu or board.mcu,
        programmer=programmer or board.programmer,
        port=board.port,
        baudrate=baudrate or board.baudrate,
    )
