"""Core value types for UniComp rules: tokens, specs, results.

Every type here is a frozen dataclass.  Nothing in the package mutates a
``UniCompSpec`` after it is built; edits construct new values with
``dataclasses.replace``.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from unicomp.errors import ErrorCategory

type TokenKind = Literal[
    "LPAREN", "RPAREN", "LBRACKET", "RBRACKET",
    "COLON", "SEMICOLON", "COMMA", "DASH", "EQUALS",
    "TIMES", "NUMBER", "QUOTED_STRING", "IDENTIFIER", "SYMBOL",
    "UNKNOWN", "EOF",
]

# "grid_spec" while between '(' and ')': x/X lex as the TIMES separator there.
type LexerMode = Literal["default", "grid_spec"]

type Flip = Literal["h", "v", "hv"]


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Token:
    """A single lexical token.

    ``text`` is the lexeme as written in the source (quotes and escapes
    included); ``value`` is the decoded content the parser works with.
    ``offset`` is the character offset, ``line``/``column`` are 1-based.
    """

    kind: TokenKind
    text: str
    value: str
    offset: int
    line: int
    column: int


# ---------------------------------------------------------------------------
# Spec model
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Box:
    """Four-sided numeric value used by ``margin`` and ``position``."""

    top: float = 0.0
    right: float = 0.0
    bottom: float = 0.0
    left: float = 0.0


@dataclass(frozen=True, slots=True)
class Scale:
    x: float
    y: float


@dataclass(frozen=True, slots=True)
class SymbolSpec:
    """One placed glyph.

    ``start``/``end`` are opposite corners of the footprint as linear cell
    indices; either may be the larger one.
    """

    char: str
    start: int
    end: int
    opacity: float | None = None
    color: str | None = None
    rotate: float | None = None
    flip: Flip | None = None
    font_family: str | None = None
    id: str | None = None
    class_name: str | None = None
    name: str | None = None
    scale: Scale | None = None
    margin: Box | None = None
    position: Box | None = None
    transition: float | None = None


@dataclass(frozen=True, slots=True)
class UniCompSpec:
    """A parsed rule: grid size plus symbols, bottom layer first."""

    grid_width: int
    grid_height: int
    symbols: tuple[SymbolSpec, ...]
    raw: str
    name: str | None = None
    id: str | None = None
    class_name: str | None = None

    @property
    def cell_count(self) -> int:
        return self.grid_width * self.grid_height

    @property
    def max_index(self) -> int:
        return self.cell_count - 1


# ---------------------------------------------------------------------------
# Parse results
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class ParseError:
    """A parse failure with enough position data to highlight the token."""

    message: str
    code: str = "unexpected_token"
    category: ErrorCategory = "syntax"
    position: int | None = None   # character offset in source text
    line: int | None = None
    column: int | None = None
    context: str | None = None    # offending lexeme, when known

    @property
    def is_security(self) -> bool:
        return self.category == "security"


@dataclass(frozen=True, slots=True)
class ParseSuccess:
    spec: UniCompSpec

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class ParseFailure:
    error: ParseError

    @property
    def ok(self) -> bool:
        return False


type ParseResult = ParseSuccess | ParseFailure


# ---------------------------------------------------------------------------
# Multi-line documents
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class ParsedBlock:
    """Outcome of parsing one rule line of a document."""

    line_number: int   # 1-based
    raw_line: str
    result: ParseResult
    name: str | None = None


@dataclass(frozen=True, slots=True)
class ErrorLine:
    line_number: int
    message: str
    raw_line: str
    column: int | None = None


@dataclass(frozen=True, slots=True)
class MultiLineParseResult:
    """Aggregate of every rule line in a document.

    Comment and blank lines count toward ``total_lines`` only.
    """

    blocks: tuple[ParsedBlock, ...]
    total_lines: int
    valid_count: int
    error_count: int
    error_lines: tuple[ErrorLine, ...]

    @property
    def ok(self) -> bool:
        return self.error_count == 0
