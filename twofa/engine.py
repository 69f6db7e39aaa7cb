"""Keychain operations used by the command line.

Each invocation opens the keychain, performs one operation and exits; there
is no state kept between runs other than the keychain file itself.
"""

import logging
import typing as t
from dataclasses import dataclass, field
from pathlib import Path

from .codec import decode_secret, normalize_secret
from .constants import DEFAULT_DIGITS, DIGIT_CHOICES
from .errors import InvalidArguments, InvalidSecret, NoSuchKey
from .otp import Timestamp, format_code, hotp, totp
from .resolver import ExactMatch, FuzzyMatches, resolve
from .store import (
    KeyRecord,
    Keychain,
    Mode,
    add_lines,
    advance_counter,
    format_record,
    load_keychain,
    reload_keychain,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KeyConfig:
    digits: int = DEFAULT_DIGITS
    mode: Mode = Mode.TOTP

    @classmethod
    def from_flags(cls, seven: bool, eight: bool, counter_based: bool) -> "KeyConfig":
        if seven and eight:
            raise InvalidArguments("cannot use -7 and -8 together")
        digits = 7 if seven else 8 if eight else DEFAULT_DIGITS
        return cls(digits, Mode.HOTP if counter_based else Mode.TOTP)


@dataclass
class CodeResult:
    name: str
    code: t.Optional[str]
    digits: int
    mode: Mode = Mode.TOTP

    @property
    def display(self) -> str:
        """The code, or dashes for a counter-based key that wasn't advanced."""
        return self.code if self.code is not None else "-" * self.digits


@dataclass
class CodeEmission:
    results: t.List[CodeResult]

    @property
    def multiple(self) -> bool:
        return len(self.results) > 1


@dataclass
class ImportEntry:
    name: str
    secret: str
    digits: int = DEFAULT_DIGITS
    counter_based: bool = False


@dataclass
class ImportReport:
    imported: t.List[str] = field(default_factory=list)
    skipped: t.List[t.Tuple[str, str]] = field(default_factory=list)


def clean_name(name: str) -> str:
    return " ".join(name.split())


class KeychainEngine:
    def __init__(self, keychain: Keychain):
        self.keychain = keychain

    @classmethod
    def open(cls, path: Path) -> "KeychainEngine":
        return cls(load_keychain(path))

    def names(self) -> t.List[str]:
        return sorted(self.keychain.keys)

    def code_for(self, name: str, timestamp: Timestamp = None) -> str:
        """Generate the current code for a stored key.

        For counter-based keys the stored counter is advanced, and written
        back, before the code is derived from the new value.
        """
        record = self.keychain.keys.get(name)
        if record is None:
            raise NoSuchKey(name)
        if record.mode is Mode.HOTP:
            counter = advance_counter(self.keychain, record)
            code = hotp(record.secret, counter, record.digits)
        else:
            code = totp(record.secret, timestamp, record.digits)
        return format_code(code, record.digits)

    def _result(self, name: str, timestamp: Timestamp) -> CodeResult:
        record = self.keychain.keys[name]
        return CodeResult(
            name, self.code_for(name, timestamp), record.digits, record.mode
        )

    def emit_code(self, query: str, timestamp: Timestamp = None) -> CodeEmission:
        match = resolve(self.keychain, query)
        if isinstance(match, ExactMatch):
            names = [match.name]
        elif isinstance(match, FuzzyMatches):
            names = list(match.names)
        else:
            raise NoSuchKey(query)
        return CodeEmission([self._result(name, timestamp) for name in names])

    def emit_all_time_based_codes(
        self, timestamp: Timestamp = None
    ) -> t.List[CodeResult]:
        results = []
        for name in self.names():
            record = self.keychain.keys[name]
            if record.mode is Mode.HOTP:
                results.append(CodeResult(name, None, record.digits, record.mode))
            else:
                results.append(self._result(name, timestamp))
        return results

    def add_key(self, name: str, secret_text: str, config: KeyConfig) -> KeyRecord:
        if config.digits not in DIGIT_CHOICES:
            raise InvalidArguments(f"unsupported digit count: {config.digits}")
        name = clean_name(name)
        reload_keychain(self.keychain)
        if not name:
            raise InvalidArguments("key name must not be empty")
        if name in self.keychain.keys:
            raise InvalidArguments(f"key {name!r} already exists")
        secret_text = normalize_secret(secret_text)
        decode_secret(secret_text)
        add_lines(
            self.keychain, [format_record(name, config.digits, secret_text, config.mode)]
        )
        return self.keychain.keys[name]

    def import_entries(self, entries: t.Iterable[ImportEntry]) -> ImportReport:
        report = ImportReport()
        lines = []
        reload_keychain(self.keychain)
        for entry in entries:
            name = clean_name(entry.name)
            reason = None
            secret_text = normalize_secret(entry.secret)
            if not name:
                reason = "no name"
            elif name in self.keychain.keys or name in report.imported:
                reason = "already exists"
            elif entry.digits not in DIGIT_CHOICES:
                reason = f"unsupported digit count {entry.digits}"
            else:
                try:
                    decode_secret(secret_text)
                except InvalidSecret as err:
                    reason = str(err)
            if reason is not None:
                logger.warning("skipping %r: %s", name, reason)
                report.skipped.append((name, reason))
                continue
            mode = Mode.HOTP if entry.counter_based else Mode.TOTP
            lines.append(format_record(name, entry.digits, secret_text, mode))
            report.imported.append(name)
        if lines:
            add_lines(self.keychain, lines)
        return report
