"""Utility modules and functions for FlashLink.

1. Process Streaming: subprocess execution with live output (used by the curl transport)
2. XDG paths: configuration and data directories
"""

from flashlink.utils.stream_process import (
    ProcessResult,
    StreamHandle,
    run_command,
    terminate_active_processes,
)
from flashlink.utils.xdg import get_xdg_config_dir, get_xdg_data_dir


__all__ = [
    "ProcessResult",
    "StreamHandle",
    "get_xdg_config_dir",
    "get_xdg_data_dir",
    "run_command",
    "terminate_active_processes",
]
