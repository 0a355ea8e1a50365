from __future__ import annotations


class SheetRangeError(Exception):
    """Base class for errors raised by sheetrange."""


class InvocationError(SheetRangeError, TypeError):
    """Raised when a required argument is omitted."""


class A1SyntaxError(SheetRangeError, ValueError):
    """Raised when a string is not a valid A1 range reference."""

    def __init__(self, value: str, reason: str | None = None) -> None:
        message = f"Invalid A1 notation: {value!r}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
        self.value = value


class InvalidArgumentError(SheetRangeError, TypeError):
    """Raised when a helper receives an argument of the wrong type or shape."""


class LockTimeoutError(SheetRangeError, TimeoutError):
    """Raised when the document lock cannot be acquired in time."""


class SheetDataError(SheetRangeError, ValueError):
    """Raised when sheet contents cannot satisfy a request."""
