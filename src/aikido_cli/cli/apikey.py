"""
The `apikey` command: store the Aikido CI token in the user config.
"""

import typer

from aikido_cli.user_config import get_user_config

from .exit_codes import EXIT_ERROR
from .output import get_console, print_error

console = get_console()


def apikey_cmd(
    key: str = typer.Argument(..., help="Your Aikido CI api key (Settings > Integrations > Continuous Integration)."),
):
    """
    Save the api key used to authenticate against Aikido.
    """
    key = key.strip()
    if not key:
        print_error("Please provide a non-empty api key", code="INVALID_API_KEY")
        raise typer.Exit(code=EXIT_ERROR)

    config = get_user_config()
    if not config.set("apikey", key):
        print_error(f"Could not write {config.config_path}", code="CONFIG_ERROR")
        raise typer.Exit(code=EXIT_ERROR)

    console.print(f"[green]✔[/green] Api key saved to {config.config_path}")
