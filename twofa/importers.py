import json
import typing as t
from pathlib import Path

from .constants import DEFAULT_DIGITS
from .engine import ImportEntry
from .errors import ImportFileError, InvalidArguments, KeychainIOError

MALFORMED_SERVICE = "parsing 2fas JSON: malformed service"


def _field(mapping: dict, key: str, kind: type):
    """mapping[key], or None when absent; any other JSON type is malformed."""
    value = mapping.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, kind):
        raise ImportFileError(MALFORMED_SERVICE)
    return value


def twofas_service_name(service: dict) -> str:
    """Best available name for a 2FAS service: "service/account"."""
    otp = _field(service, "otp", dict) or {}
    service_name = (
        _field(service, "name", str) or _field(otp, "issuer", str) or ""
    ).replace(" ", "_")
    account = _field(otp, "account", str) or _field(otp, "label", str) or ""
    if service_name and account:
        return f"{service_name}/{account}"
    return service_name or account


def read_2fas(path: Path) -> t.List[ImportEntry]:
    """Read the services of a 2FAS JSON export."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as err:
        raise KeychainIOError(f"reading import file: {err}") from err
    try:
        export = json.loads(text)
    except json.JSONDecodeError as err:
        raise ImportFileError(f"parsing 2fas JSON: {err}") from err
    if not isinstance(export, dict) or not isinstance(
        export.get("services", []), list
    ):
        raise ImportFileError("parsing 2fas JSON: no services list")

    entries = []
    for service in export.get("services", []):
        if not isinstance(service, dict):
            raise ImportFileError(MALFORMED_SERVICE)
        otp = _field(service, "otp", dict) or {}
        entries.append(
            ImportEntry(
                name=twofas_service_name(service),
                secret=_field(service, "secret", str) or "",
                digits=_field(otp, "digits", int) or DEFAULT_DIGITS,
                counter_based=_field(otp, "tokenType", str) == "HOTP",
            )
        )
    return entries


IMPORTERS: t.Dict[str, t.Callable[[Path], t.List[ImportEntry]]] = {
    "2fas": read_2fas,
}


def read_import(format: str, path: Path) -> t.List[ImportEntry]:
    try:
        reader = IMPORTERS[format]
    except KeyError:
        raise InvalidArguments(f"unsupported import format: {format}") from None
    return reader(path)
