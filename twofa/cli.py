from importlib.metadata import version, PackageNotFoundError
from pathlib import Path

import typer
from rich import print

import twofa.commands as commands
from twofa.utils import root_keychain_option, setup_logging

try:
    __version__ = version("twofa")
except PackageNotFoundError:
    __version__ = "unknown"

app = typer.Typer(add_completion=False)

for cmd in commands.__all__:
    app.command()(cmd)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
    keychain: Path = root_keychain_option(),
):
    """Two-factor authentication agent.

    With no command, prints codes for all time-based keys.
    """
    setup_logging(verbose)
    ctx.ensure_object(dict)["keychain"] = keychain
    if ctx.invoked_subcommand is None:
        commands.show_all(ctx, None)


@app.command("version")
def version():
    """Print version."""
    print(f"2fa version: {__version__}")


if __name__ == "__main__":
    app()
