"""XDG Base Directory specification helpers."""

import os
from pathlib import Path


APP_DIR_NAME = "flashlink"


def get_xdg_config_dir() -> Path:
    """Get XDG config directory for FlashLink.

    Returns:
        Path to config directory: $XDG_CONFIG_HOME/flashlink or ~/.config/flashlink
    """
    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        return Path(xdg_config) / APP_DIR_NAME
    return Path.home() / ".config" / APP_DIR_NAME


def get_xdg_data_dir() -> Path:
    """Get XDG data directory for FlashLink.

    Returns:
        Path to data directory: $XDG_DATA_HOME/flashlink or ~/.local/share/flashlink
    """
    xdg_data = os.environ.get("XDG_DATA_HOME")
    if xdg_data:
        return Path(xdg_data) / APP_DIR_NAME
    return Path.home() / ".local" / "share" / APP_DIR_NAME


def get_default_build_dir() -> Path:
    """Where the local build producer leaves firmware images by default."""
    return get_xdg_data_dir() / "build"
