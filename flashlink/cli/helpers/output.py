"""Helper functions for CLI output formatting with Rich integration."""

from typing import Any

from rich.console import Console
from rich.table import Table

from flashlink.models.results import OperationResult


# name -> (emoji, text mode)
ICONS: dict[str, tuple[str, str]] = {
    "SUCCESS": ("✅", "[OK]"),
    "ERROR": ("❌", "[ERROR]"),
    "INFO": ("ℹ️ ", "[INFO]"),
    "WARNING": ("⚠️ ", "[WARN]"),
    "BULLET": ("•", "-"),
}

STYLES = {
    "SUCCESS": "green",
    "ERROR": "bold red",
    "INFO": "cyan",
    "WARNING": "yellow",
    "BULLET": "",
}


def get_console(stderr: bool = False) -> Console:
    """Console that never inserts line breaks or highlights numbers."""
    return Console(stderr=stderr, soft_wrap=True, highlight=False)


def get_icon(name: str, use_emoji: bool = True) -> str:
    emoji, text = ICONS[name]
    return emoji if use_emoji else text


def _print_with_icon(name: str, message: str, use_emoji: bool) -> None:
    console = get_console()
    console.print(
        f"{get_icon(name, use_emoji)} {message}", style=STYLES[name], markup=False
    )


def print_success_message(message: str, use_emoji: bool = True) -> None:
    """Print a success message with a checkmark."""
    _print_with_icon("SUCCESS", message, use_emoji)


def print_error_message(message: str, use_emoji: bool = True) -> None:
    """Print an error message with an X symbol."""
    _print_with_icon("ERROR", message, use_emoji)


def print_info_message(message: str, use_emoji: bool = True) -> None:
    _print_with_icon("INFO", message, use_emoji)


def print_warning_message(message: str, use_emoji: bool = True) -> None:
    _print_with_icon("WARNING", message, use_emoji)


def print_list_item(item: str, indent: int = 1, use_emoji: bool = True) -> None:
    """Print a list item with bullet and indentation."""
    bullet = get_icon("BULLET", use_emoji)
    get_console().print(f"{' ' * (indent * 2)}{bullet} {item}", markup=False)


def print_key_value_table(title: str, data: dict[str, Any]) -> None:
    """Print a flat mapping as a two column table."""
    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    for key, value in data.items():
        table.add_row(str(key), str(value))
    get_console().print(table)


def print_result(
    result: OperationResult,
    success_message: str | None = None,
    use_emoji: bool = True,
) -> None:
    """Print an operation result with appropriate formatting.

    Failures show the message and the failure kind; successes show
    ``success_message`` (or the result's own message) and a table of the
    payload when it is a mapping.
    """
    if result.success:
        print_success_message(success_message or result.message, use_emoji=use_emoji)
        if isinstance(result.data, dict) and result.data:
            print_key_value_table("Details", result.data)
        elif result.data not in (None, "", {}):
            print_list_item(str(result.data), use_emoji=use_emoji)
        return

    print_error_message(result.message, use_emoji=use_emoji)
    if result.kind is not None:
        print_list_item(f"kind: {result.kind.value}", use_emoji=use_emoji)
    status_code = result.detail.get("status_code")
    if status_code is not None:
        print_list_item(f"HTTP status: {status_code}", use_emoji=use_emoji)


class ConsoleProgressSink:
    """Progress sink that prints each line to the terminal as it arrives."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or get_console()

    def __call__(self, line: str) -> None:
        self.console.print(line, markup=False)
