"""CLI helper functions."""

from flashlink.cli.helpers.output import (
    ConsoleProgressSink,
    print_error_message,
    print_info_message,
    print_key_value_table,
    print_list_item,
    print_result,
    print_success_message,
    print_warning_message,
)
from flashlink.cli.helpers.parameters import build_device_options


__all__ = [
    "ConsoleProgressSink",
    "build_device_options",
    "print_error_message",
    "print_info_message",
    "print_key_value_table",
    "print_list_item",
    "print_result",
    "print_success_message",
    "print_warning_message",
]
