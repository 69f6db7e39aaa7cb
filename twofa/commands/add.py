import typing as t
from pathlib import Path

import typer
from rich import print
from rich.markup import escape

from twofa.engine import KeyConfig
from twofa.errors import TwofaError
from twofa.utils import fail, keychain_option, open_engine, read_secret


def add(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Key name"),
    seven: bool = typer.Option(False, "-7", help="Generate 7-digit codes"),
    eight: bool = typer.Option(False, "-8", help="Generate 8-digit codes"),
    hotp: bool = typer.Option(False, "--hotp", help="Counter-based (HOTP) key"),
    keychain: t.Optional[Path] = keychain_option(),
):
    """Add a key, reading its secret from a prompt."""
    try:
        config = KeyConfig.from_flags(seven, eight, hotp)
        secret = read_secret(name)
        engine = open_engine(ctx, keychain)
        record = engine.add_key(name, secret, config)
    except TwofaError as err:
        fail(err)
    print(
        f"[green]✓[/green] added {escape(repr(record.name))} "
        f"({record.digits} digits, {record.mode.value})"
    )
