import typing as t
from pathlib import Path

import typer

from twofa.errors import TwofaError
from twofa.utils import copy_to_clipboard, fail, keychain_option, open_engine


def show(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Key name, exact or fuzzy"),
    clip: bool = typer.Option(True, help="Copy a single code to the clipboard"),
    keychain: t.Optional[Path] = keychain_option(),
):
    """Show the code for a key."""
    engine = open_engine(ctx, keychain)
    try:
        emission = engine.emit_code(name)
    except TwofaError as err:
        fail(err)

    if not emission.multiple:
        result = emission.results[0]
        if clip and copy_to_clipboard(result.code):
            typer.echo(f"copied\t{result.code}\t{result.name}")
        else:
            typer.echo(f"{result.code}\t{result.name}")
        return

    typer.echo(f"multiple matches found for {name!r}:", err=True)
    width = max(r.digits for r in emission.results)
    for result in emission.results:
        typer.echo(f"{result.code:<{width}}\t{result.name}")
    raise typer.Exit(1)
