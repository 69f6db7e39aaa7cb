import os

import pytest

from twofa.engine import ImportEntry, KeyConfig, KeychainEngine
from twofa.errors import InvalidArguments, InvalidSecret, KeychainIOError, NoSuchKey
from twofa.store import Mode, load_keychain

from conftest import OTHER_SECRET_B32, RFC_SECRET_B32, ZERO_COUNTER


@pytest.fixture
def engine(write_keychain):
    return KeychainEngine(
        write_keychain(
            f"bank 6 {RFC_SECRET_B32} {ZERO_COUNTER}",
            f"github 8 {RFC_SECRET_B32}",
            f"gojek 6 {RFC_SECRET_B32}",
            f"google 6 {RFC_SECRET_B32}",
        )
    )


def test_key_config_from_flags():
    assert KeyConfig.from_flags(False, False, False) == KeyConfig(6, Mode.TOTP)
    assert KeyConfig.from_flags(True, False, True) == KeyConfig(7, Mode.HOTP)
    assert KeyConfig.from_flags(False, True, False) == KeyConfig(8, Mode.TOTP)
    with pytest.raises(InvalidArguments):
        KeyConfig.from_flags(True, True, False)


def test_names_sorted(engine):
    assert engine.names() == ["bank", "github", "gojek", "google"]


def test_emit_code_exact(engine):
    emission = engine.emit_code("github", timestamp=59)
    assert not emission.multiple
    (result,) = emission.results
    assert (result.name, result.code) == ("github", "94287082")


def test_emit_code_single_fuzzy(engine):
    emission = engine.emit_code("gthb", timestamp=1111111109)
    assert [(r.name, r.code) for r in emission.results] == [("github", "07081804")]


def test_emit_code_multiple_fuzzy(engine):
    emission = engine.emit_code("go", timestamp=59)
    assert emission.multiple
    assert [(r.name, r.code) for r in emission.results] == [
        ("gojek", "287082"),
        ("google", "287082"),
    ]


def test_emit_code_no_match(engine):
    with pytest.raises(NoSuchKey):
        engine.emit_code("nomatch")


def test_emit_code_advances_counter_first(engine):
    first = engine.emit_code("bank").results[0]
    second = engine.emit_code("bank").results[0]
    assert (first.code, second.code) == ("287082", "359152")
    assert first.mode is Mode.HOTP
    data = engine.keychain.path.read_bytes()
    assert b" 00000000000000000002\n" in data


def test_emit_all_does_not_advance_counters(engine):
    before = engine.keychain.path.read_bytes()
    results = engine.emit_all_time_based_codes(timestamp=59)
    assert [(r.name, r.display) for r in results] == [
        ("bank", "------"),
        ("github", "94287082"),
        ("gojek", "287082"),
        ("google", "287082"),
    ]
    assert results[0].code is None
    assert engine.keychain.path.read_bytes() == before


def test_add_key_round_trip(keychain_path):
    engine = KeychainEngine.open(keychain_path)
    engine.add_key("svc", " jbsw y3dp ehpk 3pxp ", KeyConfig(6, Mode.TOTP))

    record = load_keychain(keychain_path).keys["svc"]
    assert record.digits == 6
    assert record.mode is Mode.TOTP
    assert keychain_path.read_text() == "svc 6 jbswy3dpehpk3pxp\n"


def test_add_key_counter_based_keeps_sorted(engine):
    record = engine.add_key("Azure", OTHER_SECRET_B32, KeyConfig(7, Mode.HOTP))
    assert record.mode is Mode.HOTP
    lines = engine.keychain.path.read_text().splitlines()
    assert lines[0] == f"Azure 7 {OTHER_SECRET_B32} {ZERO_COUNTER}"
    assert engine.emit_code("bank").results[0].code == "287082"


def test_add_key_normalizes_name(engine):
    record = engine.add_key("  My   Bank ", OTHER_SECRET_B32, KeyConfig())
    assert record.name == "My Bank"


@pytest.mark.parametrize("name", ["github", "   "])
def test_add_key_rejects_bad_names(engine, name):
    with pytest.raises(InvalidArguments):
        engine.add_key(name, OTHER_SECRET_B32, KeyConfig())


def test_add_key_rejects_bad_secret(engine):
    before = engine.keychain.path.read_bytes()
    with pytest.raises(InvalidSecret):
        engine.add_key("svc", "not base32 at all!", KeyConfig())
    assert engine.keychain.path.read_bytes() == before


def test_add_key_rejects_bad_digits(engine):
    with pytest.raises(InvalidArguments):
        engine.add_key("svc", OTHER_SECRET_B32, KeyConfig(digits=9))


def test_import_entries(engine):
    report = engine.import_entries(
        [
            ImportEntry("Dropbox/me@example.com", OTHER_SECRET_B32),
            ImportEntry("github", OTHER_SECRET_B32),
            ImportEntry("", OTHER_SECRET_B32),
            ImportEntry("broken", "!!!"),
            ImportEntry("Counter", "jbsw y3dp ehpk 3pxp", digits=8, counter_based=True),
            ImportEntry("Counter", OTHER_SECRET_B32),
            ImportEntry("odd", OTHER_SECRET_B32, digits=5),
        ]
    )
    assert report.imported == ["Dropbox/me@example.com", "Counter"]
    assert [name for name, _ in report.skipped] == ["github", "", "broken", "Counter", "odd"]
    assert engine.keychain.keys["Counter"].mode is Mode.HOTP
    assert engine.keychain.keys["Counter"].digits == 8
    lines = engine.keychain.path.read_text().splitlines()
    assert [line.split(" ")[0] for line in lines] == [
        "bank",
        "Counter",
        "Dropbox/me@example.com",
        "github",
        "gojek",
        "google",
    ]


def test_import_nothing_leaves_file_alone(engine):
    before = engine.keychain.path.read_bytes()
    report = engine.import_entries([ImportEntry("github", OTHER_SECRET_B32)])
    assert report.imported == []
    assert engine.keychain.path.read_bytes() == before


@pytest.mark.parametrize("call", ["pwrite", "fsync"])
def test_emit_code_fails_when_counter_not_committed(engine, monkeypatch, call):
    before = engine.keychain.path.read_bytes()

    def broken(*args):
        raise OSError(5, "Input/output error")

    monkeypatch.setattr(os, call, broken)
    with pytest.raises(KeychainIOError):
        engine.emit_code("bank")
    monkeypatch.undo()
    if call == "pwrite":
        assert engine.keychain.path.read_bytes() == before
        assert engine.emit_code("bank").results[0].code == "287082"
    else:
        assert engine.emit_code("bank").results[0].code == "359152"


def test_add_key_keeps_counter_advanced_by_another_invocation(engine):
    other = KeychainEngine.open(engine.keychain.path)
    assert other.emit_code("bank").results[0].code == "287082"

    engine.add_key("svc", OTHER_SECRET_B32, KeyConfig())

    data = engine.keychain.path.read_text()
    assert f"bank 6 {RFC_SECRET_B32} 00000000000000000001\n" in data
    assert engine.emit_code("bank").results[0].code == "359152"
