class TwofaError(Exception):
    """Base class for keychain errors shown to the user."""


class InvalidSecret(TwofaError):
    pass


class MalformedRecord(TwofaError):
    pass


class NoSuchKey(TwofaError):
    def __init__(self, name: str):
        super().__init__(f"no such key {name!r}")
        self.name = name


class CorruptCounter(TwofaError):
    pass


class InvalidArguments(TwofaError):
    pass


class KeychainIOError(TwofaError):
    pass


class ImportFileError(TwofaError):
    pass
