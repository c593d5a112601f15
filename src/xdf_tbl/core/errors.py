"""Errors and warnings raised by summarise."""


class SummariseError(Exception):
    """Base class for summarise failures."""

    pass


class UnsupportedExpressionError(SummariseError, ValueError):
    """Raised when an aggregate is not a bare-column call or n()."""

    def __init__(self, column: str, expr: object):
        self.column = column
        self.expr = expr
        super().__init__(
            f"summarise with xdf tables only works with named variables, not expressions: "
            f"{column}={expr!r}"
        )


class InvalidMethodSelectorError(SummariseError, ValueError):
    """Raised when an explicit method is not a number from 1 to 5."""

    pass


class UnexpectedWorkerOutputError(SummariseError, RuntimeError):
    """Raised when a summary engine returns a file-backed table for distributed data."""

    pass


class UnknownFunctionError(SummariseError, KeyError):
    """Raised when a named aggregate function is neither built in nor registered."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "unknown aggregate function"


class MethodFallbackWarning(UserWarning):
    """Explicit method could not be honoured; automatic selection was used instead."""


class DegradedOutputWarning(UserWarning):
    """Summary engine returned an unexpected representation and output was salvaged."""
