"""Diff subsystem exceptions."""


class DiffError(Exception):
    """Base class for diff subsystem errors."""


class NoDifferenceError(DiffError, AssertionError):
    """Raised by ``assert_no_difference`` when two values differ."""

    def __init__(self, message: str, *, difference: str | None = None) -> None:
        super().__init__(message)
        self.difference = difference
