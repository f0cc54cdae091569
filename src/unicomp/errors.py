"""Exception hierarchy used inside the lexer and parser.

These never cross the public API: ``parse_unicomp`` and friends catch
``UniCompError`` and hand back a ``ParseFailure`` carrying a ``ParseError``.
"""
from __future__ import annotations

from typing import Literal

type ErrorCategory = Literal["syntax", "security"]


class UniCompError(Exception):
    """Base error with the source position of the offending token."""

    category: ErrorCategory = "syntax"

    def __init__(
        self,
        message: str,
        *,
        code: str,
        offset: int | None = None,
        line: int | None = None,
        column: int | None = None,
        context: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.offset = offset
        self.line = line
        self.column = column
        self.context = context


class UniCompSyntaxError(UniCompError):
    """Malformed input: unexpected token, bad value, index out of range."""

    category: ErrorCategory = "syntax"


class SecurityError(UniCompError):
    """A resource guardrail was hit (length, count, time, grid size)."""

    category: ErrorCategory = "security"
