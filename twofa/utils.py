import logging
import typing as t
from pathlib import Path

import pyperclip
import typer
from rich.console import Console
from rich.logging import RichHandler

from .constants import DEFAULT_KEYCHAIN, KEYCHAIN_ENV
from .engine import KeychainEngine
from .errors import TwofaError

logger = logging.getLogger(__name__)


def root_keychain_option():
    return typer.Option(
        DEFAULT_KEYCHAIN, envvar=KEYCHAIN_ENV, help="Keychain file", show_default=True
    )


def keychain_option():
    return typer.Option(None, help="Keychain file [default: 2fa --keychain]")


def keychain_path(ctx: typer.Context, keychain: t.Optional[Path]) -> Path:
    """The command's --keychain, falling back to the one given to 2fa itself."""
    if keychain is not None:
        return keychain
    return ctx.ensure_object(dict).get("keychain", DEFAULT_KEYCHAIN)


def setup_logging(verbose: bool = False):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[
            RichHandler(
                console=Console(stderr=True), show_time=False, show_path=False
            )
        ],
        force=True,
    )


def fail(err: TwofaError, code: int = 1) -> t.NoReturn:
    typer.secho(str(err), fg="red", err=True)
    raise typer.Exit(code) from err


def open_engine(
    ctx: typer.Context, keychain: t.Optional[Path] = None
) -> KeychainEngine:
    try:
        return KeychainEngine.open(keychain_path(ctx, keychain))
    except TwofaError as err:
        fail(err)


def read_secret(name: str) -> str:
    """Prompt on stderr for a two-factor secret, without echoing it."""
    return typer.prompt(f"2fa key for {name}", hide_input=True, err=True)


def copy_to_clipboard(text: str) -> bool:
    try:
        pyperclip.copy(text)
    except pyperclip.PyperclipException as err:
        logger.warning("clipboard unavailable: %s", err)
        return False
    return True
