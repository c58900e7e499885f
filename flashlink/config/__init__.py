"""Configuration package for FlashLink."""

from .models import (
    DeviceDefaultsConfig,
    RemoteFlasherConfig,
    ResetTimingConfig,
    StreamConfig,
    TransportConfig,
    UserConfigData,
)
from .user_config import UserConfig, create_user_config


__all__ = [
    "DeviceDefaultsConfig",
    "RemoteFlasherConfig",
    "ResetTimingConfig",
    "StreamConfig",
    "TransportConfig",
    "UserConfig",
    "UserConfigData",
    "create_user_config",
]
