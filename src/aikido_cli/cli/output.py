"""
CLI Output Utilities

Machine-aware output functions that adapt based on machine mode.
"""

import json
from typing import Optional

import typer
from rich.console import Console as RichConsole
from rich.markup import escape
from rich.status import Status
from rich.text import Text

from aikido_cli.cli.config import CLIConfig
from aikido_cli.exceptions import ApiError


class MachineAwareConsole:
    """
    A Console wrapper that automatically adapts output based on machine mode.
    Acts as a drop-in replacement for rich.console.Console.
    """

    def __init__(self):
        self._rich_console = RichConsole(highlight=False)

    def print(self, *args, **kwargs):
        """Print that respects machine mode."""
        if CLIConfig.is_machine_mode():
            for arg in args:
                if isinstance(arg, str):
                    # Strip rich markup, keep the text
                    plain = Text.from_markup(arg).plain.strip()
                    if plain:
                        print(plain)
                elif hasattr(arg, '__rich__') or hasattr(arg, '__rich_console__'):
                    # Skip rich renderables in machine mode
                    pass
                elif arg:
                    print(arg)
        else:
            self._rich_console.print(*args, **kwargs)

    def __getattr__(self, name):
        """Delegate all other attributes to the rich console."""
        return getattr(self._rich_console, name)


_console = MachineAwareConsole()


def get_console() -> MachineAwareConsole:
    """Get the console instance for advanced usage."""
    return _console


def echo(message: str = "", **kwargs) -> None:
    """
    Print a message respecting machine mode.
    In machine mode, prints plain text.
    """
    if CLIConfig.is_machine_mode():
        print(message, **kwargs)
    else:
        typer.echo(message, **kwargs)


def print_json(data: dict, minified: bool = None) -> None:
    """
    Print JSON data respecting machine mode.
    In machine mode, always minifies. In human mode, pretty prints.
    """
    if minified is None:
        minified = CLIConfig.is_machine_mode()

    if minified:
        echo(json.dumps(data, separators=(',', ':')))
    else:
        echo(json.dumps(data, indent=2))


def print_error(message: str, code: Optional[str] = None) -> None:
    """
    Print an error message respecting machine mode.
    In machine mode, outputs a structured JSON error.

    Args:
        message: Error message
        code: Error code (e.g., "NOT_FOUND")
    """
    if CLIConfig.is_machine_mode():
        error_obj = {
            "status": "error",
            "message": message
        }
        if code:
            error_obj["code"] = code
        print_json(error_obj)
    else:
        _console.print(f"[red]Error: {escape(message)}[/red]", soft_wrap=True)


def print_http_error(error: BaseException) -> None:
    """
    Describe a failed API call.

    ApiError carries the status code; anything else is shown by its message.
    """
    if isinstance(error, ApiError):
        if error.status_code is not None:
            print_error(f"Aikido API returned {error.status_code}: {error.message}", code="API_ERROR")
        else:
            print_error(error.message, code="API_UNREACHABLE")
    else:
        print_error(str(error) or error.__class__.__name__, code="UNEXPECTED_ERROR")


class Spinner:
    """
    Progress indicator for long-running steps.

    Human mode shows a rich status spinner; machine mode prints only the
    final succeed/fail line.
    """

    def __init__(self, text: str, console: Optional[MachineAwareConsole] = None):
        self.text = text
        self._console = console or _console
        self._status: Optional[Status] = None

    def start(self) -> "Spinner":
        # Non-terminal consoles (CI logs) get no animation
        if not CLIConfig.is_machine_mode() and self._console.is_terminal:
            self._status = self._console.status(escape(self.text))
            self._status.start()
        return self

    def _stop(self) -> None:
        if self._status is not None:
            self._status.stop()
            self._status = None

    def succeed(self, text: Optional[str] = None) -> None:
        self._stop()
        self._console.print(f"[green]✔[/green] {escape(text or self.text)}")

    def fail(self, text: Optional[str] = None) -> None:
        self._stop()
        self._console.print(f"[red]✖[/red] {escape(text or self.text)}")


def start_spinner(text: str) -> Spinner:
    return Spinner(text).start()
