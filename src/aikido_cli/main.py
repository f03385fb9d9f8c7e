import typer

from aikido_cli import __version__
from aikido_cli.logging_config import setup_logging
from aikido_cli.cli import apikey, scan
from aikido_cli.cli.config import CLIConfig

app = typer.Typer(no_args_is_help=True, add_completion=False)


# Global CLI callback for flags that apply to all commands
@app.callback()
def global_options(
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Machine mode: plain output and a JSON summary (also via AIKIDO_MACHINE_MODE env var)",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log API calls and lifecycle transitions to stderr",
    ),
):
    """
    aikido-cli: run Aikido CI scans from your pipeline.

    Exit codes: 0 = gate passed, 10 = gate failed, 1 = error.
    """
    CLIConfig.reset()
    if json_output:
        CLIConfig.set_machine_mode(True)

    if verbose:
        setup_logging(level="DEBUG", suppress_console=False, force=True)
    elif CLIConfig.is_machine_mode():
        setup_logging(suppress_console=True, force=True)


app.command(name="scan")(scan.scan_cmd)
app.command(name="apikey")(apikey.apikey_cmd)


@app.command()
def version():
    """
    Prints the current version of aikido-cli.
    """
    typer.echo(f"aikido-cli v{__version__}")


if __name__ == "__main__":
    app()
