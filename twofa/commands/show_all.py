import typing as t
from pathlib import Path

import typer

from twofa.errors import TwofaError
from twofa.utils import fail, keychain_option, open_engine


def show_all(ctx: typer.Context, keychain: t.Optional[Path] = keychain_option()):
    """Show codes for all time-based keys (counter-based keys as dashes)."""
    engine = open_engine(ctx, keychain)
    try:
        results = engine.emit_all_time_based_codes()
    except TwofaError as err:
        fail(err)
    width = max((r.digits for r in results), default=0)
    for result in results:
        typer.echo(f"{result.display:<{width}}\t{result.name}")
