import pytest

from twofa.store import load_keychain

# RFC 4226 / RFC 6238 reference secret "12345678901234567890"
RFC_SECRET = b"12345678901234567890"
RFC_SECRET_B32 = "GEZDGNBVGY3TQOJQGEZDGNBVGY3TQOJQ"
OTHER_SECRET_B32 = "JBSWY3DPEHPK3PXP"
ZERO_COUNTER = "0" * 20


@pytest.fixture
def keychain_path(tmp_path):
    return tmp_path / "keychain"


@pytest.fixture
def write_keychain(keychain_path):
    def write(*lines):
        keychain_path.write_bytes("".join(line + "\n" for line in lines).encode())
        return load_keychain(keychain_path)

    return write
