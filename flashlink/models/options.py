"""Device operation options and flash requests."""

from pathlib import Path

from pydantic import ConfigDict, Field, field_validator

from flashlink.models.base import FlashLinkBaseModel


# Arduino FQBN -> avrdude part name
FQBN_TO_MCU: dict[str, str] = {
    "arduino:avr:uno": "atmega328p",
    "arduino:avr:nano": "atmega328p",
    "arduino:avr:leonardo": "atmega32u4",
    "arduino:avr:mega": "atmega2560",
    "arduino:avr:micro": "atmega32u4",
}

DEFAULT_MCU = "atmega328p"

# Peripheral id the desktop app uses for "the device behind the remote flasher"
REMOTE_DEVICE_PLACEHOLDER = "remote-flasher-device"
REMOTE_DEVICE_DEFAULT_PORT = "/dev/ttyS0"


class DeviceOperationOptions(FlashLinkBaseModel):
    """Target device parameters passed to every device-targeted request.

    Every field is optional; only the fields that are present are sent to the
    remote service, so "absent" never gets confused with a default value.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", str_strip_whitespace=True)

    mcu: str | None = None
    programmer: str | None = None
    port: str | None = None
    baudrate: int | None = Field(default=None, gt=0)

    @field_validator("mcu", "programmer", "port")
    @classmethod
    def empty_string_is_absent(cls, v: str | None) -> str | None:
        """Treat blank strings as absent fields."""
        if v is not None and not v.strip():
            return None
        return v

    def to_params(self) -> dict[str, str]:
        """Sparse encoding: only present fields, as strings."""
        params: dict[str, str] = {}
        if self.mcu is not None:
            params["mcu"] = self.mcu
        if self.programmer is not None:
            params["programmer"] = self.programmer
        if self.port is not None:
            params["port"] = self.port
        if self.baudrate is not None:
            params["baudrate"] = str(self.baudrate)
        return params

    def merged_with(
        self, defaults: "DeviceOperationOptions"
    ) -> "DeviceOperationOptions":
        """Fill absent fields from ``defaults``; fields set here win."""
        return DeviceOperationOptions(
            mcu=self.mcu if self.mcu is not None else defaults.mcu,
            programmer=(
                self.programmer if self.programmer is not None else defaults.programmer
            ),
            port=self.port if self.port is not None else defaults.port,
            baudrate=self.baudrate if self.baudrate is not None else defaults.baudrate,
        )

    @classmethod
    def from_fqbn(
        cls,
        fqbn: str,
        port: str | None = None,
        programmer: str = "arduino",
        baudrate: int = 115200,
    ) -> "DeviceOperationOptions":
        """Build options for an Arduino board identified by its FQBN.

        Unknown boards fall back to the ATmega328P. The desktop placeholder
        peripheral is mapped to the remote host's default serial port.
        """
        if port == REMOTE_DEVICE_PLACEHOLDER:
            port = REMOTE_DEVICE_DEFAULT_PORT
        return cls(
            mcu=FQBN_TO_MCU.get(fqbn, DEFAULT_MCU),
            programmer=programmer,
            port=port,
            baudrate=baudrate,
        )


class FlashRequest(FlashLinkBaseModel):
    """One firmware to flash onto one device.

    ``override_path`` is an explicit path supplied by the caller and always
    wins; ``firmware_path`` is what the build producer reported. When neither
    is set the build output directory is searched.
    """

    firmware_path: Path | None = None
    override_path: Path | None = None
    options: DeviceOperationOptions = Field(default_factory=DeviceOperationOptions)

    @property
    def explicit_path(self) -> Path | None:
        """The path to use without discovery, if any."""
        return self.override_path or self.firmware_path


__all__ = [
    "DEFAULT_MCU",
    "DeviceOperationOptions",
    "FQBN_TO_MCU",
    "FlashRequest",
]
