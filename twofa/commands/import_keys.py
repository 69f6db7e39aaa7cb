import typing as t
from pathlib import Path

import typer
from rich import print

from twofa.errors import TwofaError
from twofa.importers import IMPORTERS, read_import
from twofa.utils import fail, keychain_option, open_engine


def import_keys(
    ctx: typer.Context,
    format: str = typer.Argument(..., help=f"Export format ({', '.join(IMPORTERS)})"),
    path: Path = typer.Argument(..., help="Export file"),
    keychain: t.Optional[Path] = keychain_option(),
):
    """Import keys from another authenticator's export."""
    engine = open_engine(ctx, keychain)
    try:
        entries = read_import(format, path)
        report = engine.import_entries(entries)
    except TwofaError as err:
        fail(err)
    for name in report.imported:
        typer.echo(f"imported: {name}")
    print(f"\nSuccessfully imported {len(report.imported)} key(s)")
