import struct
import time
import typing as t
from datetime import datetime

from cryptography.hazmat.primitives import hashes, hmac

from .constants import MAX_COUNTER, MAX_DIGITS, TIME_STEP_NS


Timestamp = t.Union[None, int, float, datetime]


def hotp(secret: bytes, counter: int, digits: int) -> int:
    """HMAC-based one-time password (RFC 4226).

    Returns the numeric code; use format_code() to render it. Digit counts
    above 8 behave like 8, since the truncated value has at most 10 digits.
    """
    if not 0 <= counter <= MAX_COUNTER:
        raise ValueError(f"counter out of range: {counter}")
    h = hmac.HMAC(secret, hashes.SHA1())
    h.update(struct.pack(">Q", counter))
    digest = h.finalize()
    # dynamic truncation
    offset = digest[-1] & 0x0F
    value = struct.unpack(">I", digest[offset : offset + 4])[0] & 0x7FFFFFFF
    return value % 10 ** min(digits, MAX_DIGITS)


def unix_nanos(timestamp: Timestamp = None) -> int:
    if timestamp is None:
        return time.time_ns()
    if isinstance(timestamp, datetime):
        return int(timestamp.timestamp()) * 1_000_000_000 + timestamp.microsecond * 1000
    if isinstance(timestamp, int):
        return timestamp * 1_000_000_000
    return int(timestamp * 1_000_000_000)


def time_counter(timestamp: Timestamp = None) -> int:
    return unix_nanos(timestamp) // TIME_STEP_NS


def totp(secret: bytes, timestamp: Timestamp, digits: int) -> int:
    """Time-based one-time password (RFC 6238), fixed 30 second step."""
    return hotp(secret, time_counter(timestamp), digits)


def format_code(code: int, digits: int) -> str:
    return f"{code:0{digits}d}"
