"""Exceptions raised by pyps."""


class PypsError(Exception):
    """Base class for pyps errors."""


class FatalEnvironmentError(PypsError):
    """The process metadata root or a system constant is unusable."""


class RecordParseError(PypsError):
    """A /proc record does not match the expected kernel grammar."""

    def __init__(self, record: str, message: str) -> None:
        super().__init__(f"{record}: {message}")
        self.record = record
