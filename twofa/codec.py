import base64
import binascii

from .constants import WHITESPACE_RE
from .errors import InvalidSecret


def normalize_secret(text: str) -> str:
    """Strip all whitespace and pad with '=' to a multiple of 8 chars."""
    text = WHITESPACE_RE.sub("", text)
    return text + "=" * (-len(text) % 8)


def decode_secret(text: str) -> bytes:
    """Decode a case-insensitive, '='-padded base32 secret (RFC 4648)."""
    try:
        raw = base64.b32decode(text, casefold=True)
    except (binascii.Error, ValueError) as err:
        raise InvalidSecret(f"invalid key: {err}") from err
    if not raw:
        raise InvalidSecret("invalid key: empty secret")
    return raw
