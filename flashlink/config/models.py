"""User configuration models."""

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from flashlink.models.options import DeviceOperationOptions


class RemoteFlasherConfig(BaseModel):
    """Where the remote flashing service lives and whether to use it."""

    model_config = ConfigDict(validate_assignment=True)

    enabled: bool = Field(default=False, description="Use the remote flasher")
    server_url: str = Field(
        default="",
        description="Base URL of the remote flasher service (e.g. http://raspberrypi:5000)",
    )

    @field_validator("server_url")
    @classmethod
    def normalize_server_url(cls, v: str) -> str:
        """Strip whitespace and trailing slashes."""
        v = v.strip().rstrip("/")
        if v and not v.startswith(("http://", "https://")):
            raise ValueError("server_url must start with http:// or https://")
        return v

    @property
    def is_usable(self) -> bool:
        """Enabled and pointing somewhere."""
        return self.enabled and bool(self.server_url)


class TransportConfig(BaseModel):
    """HTTP transport settings."""

    model_config = ConfigDict(validate_assignment=True)

    connect_timeout: float = Field(
        default=10.0, gt=0, description="Connect timeout in seconds"
    )
    request_timeout: float = Field(
        default=30.0, gt=0, description="Total timeout for simple requests in seconds"
    )
    upload_timeout: float = Field(
        default=120.0,
        gt=0,
        description="Total timeout for uploads and streamed flashes in seconds",
    )
    curl_fallback: bool = Field(
        default=True, description="Retry failed requests through the curl binary"
    )
    curl_path: str = Field(default="curl", description="curl executable to run")


class ResetTimingConfig(BaseModel):
    """Reset pulse durations and settle delays, in seconds."""

    model_config = ConfigDict(validate_assignment=True)

    enter_pulse: float = Field(
        default=0.5, ge=0, description="Reset pulse used to enter the bootloader"
    )
    enter_settle: float = Field(
        default=0.5, ge=0, description="Wait after asserting the bootloader reset"
    )
    release_settle: float = Field(
        default=0.5, ge=0, description="Wait after releasing the bootloader reset"
    )
    exit_pulse: float = Field(
        default=0.1, ge=0, description="Reset pulse used to start the new program"
    )
    default_pulse: float = Field(
        default=0.2, ge=0, description="Pulse used when no duration is given"
    )


class StreamConfig(BaseModel):
    """Phrases used to judge a streamed flash."""

    model_config = ConfigDict(validate_assignment=True)

    success_markers: list[str] = Field(
        default_factory=lambda: ["Flash completed successfully"]
    )
    failure_markers: list[str] = Field(default_factory=lambda: ["Flash failed"])

    @field_validator("success_markers")
    @classmethod
    def require_success_marker(cls, v: list[str]) -> list[str]:
        """Without a success phrase no stream could ever succeed."""
        markers = [marker for marker in v if marker.strip()]
        if not markers:
            raise ValueError("At least one success marker is required")
        return markers


class DeviceDefaultsConfig(BaseModel):
    """Defaults for the target device and the local build output."""

    model_config = ConfigDict(validate_assignment=True)

    mcu: str | None = None
    programmer: str | None = "arduino"
    port: str | None = "/dev/ttyS0"
    baudrate: int | None = 115200
    build_dir: Path | None = Field(
        default=None, description="Directory searched for built firmware images"
    )
    firmware_extension: str = Field(
        default=".hex", description="File extension of firmware images"
    )
    tools_dir: Path | None = Field(
        default=None, description="Directory holding bundled firmwares"
    )

    @field_validator("firmware_extension")
    @classmethod
    def normalize_extension(cls, v: str) -> str:
        v = v.strip()
        return v if v.startswith(".") else f".{v}"

    @field_validator("build_dir", "tools_dir", mode="before")
    @classmethod
    def expand_paths(cls, v: Any) -> Path | None:
        if v is None or v == "":
            return None
        return Path(v).expanduser()

    def to_options(self) -> DeviceOperationOptions:
        return DeviceOperationOptions(
            mcu=self.mcu,
            programmer=self.programmer,
            port=self.port,
            baudrate=self.baudrate,
        )


class UserConfigData(BaseSettings):
    """User configuration data model with automatic environment variable support.

    Precedence order (highest to lowest):
    1. Environment variables (``FLASHLINK_`` prefix, ``__`` for nesting)
    2. Constructor arguments (file data)
    3. .env file
    4. Default values
    """

    model_config = SettingsConfigDict(
        env_prefix="FLASHLINK_",
        env_nested_delimiter="__",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        validate_assignment=True,
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: Any,
        env_settings: Any,
        dotenv_settings: Any,
        file_secret_settings: Any,
    ) -> tuple[Any, ...]:
        """Environment variables override file configuration."""
        return (
            env_settings,
            init_settings,
            dotenv_settings,
            file_secret_settings,
        )

    log_level: str = "WARNING"

    remote_flasher: RemoteFlasherConfig = Field(default_factory=RemoteFlasherConfig)
    transport: TransportConfig = Field(default_factory=TransportConfig)
    reset: ResetTimingConfig = Field(default_factory=ResetTimingConfig)
    stream: StreamConfig = Field(default_factory=StreamConfig)
    device: DeviceDefaultsConfig = Field(default_factory=DeviceDefaultsConfig)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a recognized value."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        upper_v = v.strip().upper()
        if upper_v not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return upper_v
