import os
import re
from pathlib import Path


KEYCHAIN_ENV = "TWOFA_KEYCHAIN"
DEFAULT_KEYCHAIN = Path(os.path.expanduser("~/.2fa"))
KEYCHAIN_MODE = 0o600

# ===== Keychain file format =====
FIELD_SEP = b" "
LINE_SEP = b"\n"
DIGIT_CHOICES = (6, 7, 8)
DEFAULT_DIGITS = 6
COUNTER_LEN = 20  # fixed-width, zero-padded decimal
MAX_COUNTER = 2**64 - 1

# ===== Code generation =====
TIME_STEP_NS = 30_000_000_000  # RFC 6238 default step
MAX_DIGITS = 8

# Regex: any run of whitespace, stripped out of pasted secrets
WHITESPACE_RE = re.compile(r"\s+")
