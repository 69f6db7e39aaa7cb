import typing as t
from pathlib import Path

import typer

from twofa.utils import keychain_option, open_engine


def list_keys(ctx: typer.Context, keychain: t.Optional[Path] = keychain_option()):
    """List key names."""
    for name in open_engine(ctx, keychain).names():
        typer.echo(name)
