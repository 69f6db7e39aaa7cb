"""Keychain file storage.

The keychain is a plain text file, one key per line:

    name digits secret [counter]

Lines are kept sorted case-insensitively by name. Counter-based (HOTP) keys
carry a fixed-width 20 digit counter as the last field, and that field is
updated in place, by byte offset, every time a code is generated. Adding keys
rewrites the whole file.

Counter updates take no lock: two overlapping invocations for the same HOTP
key can both read counter N and both write N+1 (last writer wins). This is
accepted for a single-user tool.
"""

import enum
import logging
import os
import typing as t
from dataclasses import dataclass, field
from pathlib import Path

from .codec import decode_secret
from .constants import (
    COUNTER_LEN,
    DIGIT_CHOICES,
    FIELD_SEP,
    KEYCHAIN_MODE,
    LINE_SEP,
    MAX_COUNTER,
)
from .errors import (
    CorruptCounter,
    InvalidArguments,
    InvalidSecret,
    KeychainIOError,
    MalformedRecord,
)

logger = logging.getLogger(__name__)

_DIGIT_MARKERS = {str(d).encode("ascii") for d in DIGIT_CHOICES}


class Mode(str, enum.Enum):
    TOTP = "totp"
    HOTP = "hotp"


@dataclass
class KeyRecord:
    name: str
    secret: bytes
    digits: int
    mode: Mode = Mode.TOTP
    counter_offset: t.Optional[int] = None


@dataclass
class Keychain:
    path: Path
    data: bytearray = field(default_factory=bytearray)
    keys: t.Dict[str, KeyRecord] = field(default_factory=dict)


# ---------- Line parsing ----------
def _digit_marker(fields: t.List[bytes]) -> int:
    """Index of the right-most digit-count field followed by a non-empty field."""
    for i in range(len(fields) - 2, 0, -1):
        if fields[i] in _DIGIT_MARKERS and fields[i + 1]:
            return i
    return -1


def _parse_counter(raw: bytes) -> int:
    if len(raw) != COUNTER_LEN or not raw.isdigit():
        raise ValueError(f"counter must be {COUNTER_LEN} digits")
    value = int(raw)
    if value > MAX_COUNTER:
        raise ValueError("counter overflows 64 bits")
    return value


def parse_line(line: bytes) -> KeyRecord:
    """Parse one keychain line (without its newline).

    A counter_offset on the result is relative to the start of the line.
    """
    fields = line.split(FIELD_SEP)
    pos = _digit_marker(fields)
    if pos < 1:
        raise MalformedRecord("missing digit count or secret")
    rest = fields[pos + 2 :]
    if len(rest) > 1:
        raise MalformedRecord("too many fields")

    name = FIELD_SEP.join(fields[:pos]).decode("utf-8", errors="replace")
    try:
        secret = decode_secret(fields[pos + 1].decode("ascii"))
    except (UnicodeDecodeError, InvalidSecret) as err:
        raise MalformedRecord(f"bad secret: {err}") from err
    record = KeyRecord(name=name, secret=secret, digits=int(fields[pos]))

    if rest:
        try:
            _parse_counter(rest[0])
        except ValueError as err:
            raise MalformedRecord(str(err)) from err
        record.mode = Mode.HOTP
        record.counter_offset = len(line) - COUNTER_LEN
    return record


def line_name(line: bytes) -> str:
    """Name part of a raw line; the first field if the line doesn't parse."""
    fields = line.split(FIELD_SEP)
    pos = _digit_marker(fields)
    if pos < 1:
        pos = 1
    return FIELD_SEP.join(fields[:pos]).decode("utf-8", errors="replace")


# ---------- Loading ----------
def parse_keychain(
    path: Path, data: bytes, warn: bool = True
) -> t.Dict[str, KeyRecord]:
    keys: t.Dict[str, KeyRecord] = {}
    cursor = 0
    for lineno, chunk in enumerate(data.split(LINE_SEP), start=1):
        start = cursor
        cursor += len(chunk) + len(LINE_SEP)
        if not chunk:
            continue
        try:
            record = parse_line(chunk)
        except MalformedRecord as err:
            if warn:
                logger.warning("%s:%d: malformed key (%s)", path, lineno, err)
            continue
        if record.counter_offset is not None:
            record.counter_offset += start
        if record.name in keys and warn:
            logger.warning("%s:%d: duplicate key %r", path, lineno, record.name)
        keys[record.name] = record
    return keys


def read_keychain_data(path: Path) -> bytes:
    """Raw keychain content; a missing file reads as empty."""
    try:
        return Path(path).read_bytes()
    except FileNotFoundError:
        return b""
    except OSError as err:
        raise KeychainIOError(f"reading keychain: {err}") from err


def load_keychain(path: Path) -> Keychain:
    path = Path(path)
    data = read_keychain_data(path)
    return Keychain(path, bytearray(data), parse_keychain(path, data))


def reload_keychain(keychain: Keychain):
    """Refresh records and raw content from the file as it is now."""
    data = read_keychain_data(keychain.path)
    keychain.data = bytearray(data)
    keychain.keys = parse_keychain(keychain.path, data, warn=False)


# ---------- Sorted rewrite ----------
def format_record(name: str, digits: int, secret_text: str, mode: Mode) -> str:
    if digits not in DIGIT_CHOICES:
        raise InvalidArguments(f"unsupported digit count: {digits}")
    line = f"{name} {digits} {secret_text}"
    if mode is Mode.HOTP:
        line += " " + "0" * COUNTER_LEN
    return line


def record_sort_key(line: bytes) -> t.Tuple[str, bytes]:
    return (line_name(line).lower(), line)


def merge_lines(existing: bytes, new_lines: t.Iterable[str]) -> t.List[bytes]:
    """Existing non-empty raw lines plus new ones, sorted by name."""
    lines = [line for line in existing.split(LINE_SEP) if line]
    lines.extend(line.encode("utf-8") for line in new_lines)
    return sorted(lines, key=record_sort_key)


def render_lines(lines: t.Iterable[bytes]) -> bytes:
    return b"".join(line + LINE_SEP for line in lines)


def write_keychain(path: Path, data: bytes):
    try:
        fd = os.open(path, os.O_CREAT | os.O_WRONLY | os.O_TRUNC, KEYCHAIN_MODE)
    except OSError as err:
        raise KeychainIOError(f"opening keychain: {err}") from err
    try:
        os.fchmod(fd, KEYCHAIN_MODE)
        view = memoryview(data)
        while view:
            written = os.write(fd, view)
            view = view[written:]
        os.fsync(fd)
    except OSError as err:
        raise KeychainIOError(f"writing keychain: {err}") from err
    finally:
        os.close(fd)


def add_lines(keychain: Keychain, new_lines: t.Sequence[str]):
    """Merge new formatted lines into the keychain and rewrite the file sorted.

    The existing lines are re-read from the file right before the rewrite so
    counters advanced by other invocations since loading are kept.
    """
    existing = read_keychain_data(keychain.path)
    data = render_lines(merge_lines(existing, new_lines))
    write_keychain(keychain.path, data)
    keychain.data = bytearray(data)
    keychain.keys = parse_keychain(keychain.path, data, warn=False)


# ---------- Counter update ----------
def advance_counter(keychain: Keychain, record: KeyRecord) -> int:
    """Increment the stored counter of an HOTP key and return the new value.

    The counter is read from and written back to the live file at the same
    offset; the value is only returned once the write has been synced.
    """
    offset = record.counter_offset
    if offset is None:
        raise InvalidArguments(f"{record.name!r} is not a counter-based key")
    try:
        fd = os.open(keychain.path, os.O_RDWR)
    except OSError as err:
        raise KeychainIOError(f"opening keychain: {err}") from err
    try:
        # one extra byte to check the field isn't followed by another digit
        raw = os.pread(fd, COUNTER_LEN + 1, offset)
        current, tail = raw[:COUNTER_LEN], raw[COUNTER_LEN:]
        try:
            if tail.isdigit():
                raise ValueError("counter field too long")
            value = _parse_counter(current) + 1
        except ValueError as err:
            raise CorruptCounter(
                f"malformed key counter for {record.name!r} ({current!r})"
            ) from err
        if value > MAX_COUNTER:
            raise CorruptCounter(f"key counter for {record.name!r} is exhausted")
        encoded = b"%0*d" % (COUNTER_LEN, value)
        if os.pwrite(fd, encoded, offset) != COUNTER_LEN:
            raise KeychainIOError("updating keychain: short write")
        os.fsync(fd)
    except OSError as err:
        raise KeychainIOError(f"updating keychain: {err}") from err
    finally:
        os.close(fd)
    keychain.data[offset : offset + COUNTER_LEN] = encoded
    return value
