"""Hand-written tokenizer for UniComp rules.

The scanner is character-driven rather than regex-driven so that every step
is bounded: input length is rejected up front and the wall-clock budget is
re-checked once per token.

``x`` and ``X`` are context sensitive: inside ``( ... )`` they are the grid
size separator (``TIMES``), everywhere else they start an identifier so they
stay usable as glyph letters.
"""
from __future__ import annotations

from unicomp.errors import SecurityError, UniCompSyntaxError
from unicomp.limits import DEFAULT_LIMITS, Deadline, SecurityLimits
from unicomp.types import LexerMode, Token, TokenKind

# ---------------------------------------------------------------------------
# Character classes
# ---------------------------------------------------------------------------

WHITESPACE: frozenset[str] = frozenset({" ", "\t", "\r", "\n"})

QUOTE_CHARS: frozenset[str] = frozenset({'"', "'", "`"})

# Punctuation that never lexes as a SYMBOL.  Characters in this set that have
# no structural meaning become UNKNOWN tokens so the parser can reject them
# with a precise position.
SPECIAL_CHARS: frozenset[str] = frozenset({
    "(", ")", "[", "]", "{", "}",
    ":", ";", ",", "-", "=",
    '"', "'", "`", "\\",
    "<", ">", "^", "@", "#", "№",
    "!", "?", "*", "×", "÷",
    "+", "_", "~", "/", "|",
    "&", "%", "$", " ",
})

_STRUCTURAL: dict[str, TokenKind] = {
    "(": "LPAREN",
    ")": "RPAREN",
    "[": "LBRACKET",
    "]": "RBRACKET",
    ":": "COLON",
    ";": "SEMICOLON",
    ",": "COMMA",
    "-": "DASH",
    "=": "EQUALS",
    "×": "TIMES",
}

_QUOTED_ESCAPES: dict[str, str] = {"n": "\n", "t": "\t", "r": "\r"}


def is_digit(char: str) -> bool:
    return "0" <= char <= "9"


def is_ascii_letter(char: str) -> bool:
    return "a" <= char <= "z" or "A" <= char <= "Z"


def is_identifier_char(char: str) -> bool:
    return is_ascii_letter(char) or char == "_"


def _is_high_surrogate(char: str) -> bool:
    return "\ud800" <= char <= "\udbff"


def _is_low_surrogate(char: str) -> bool:
    return "\udc00" <= char <= "\udfff"


# ---------------------------------------------------------------------------
# Scanner
# ---------------------------------------------------------------------------

class _Lexer:
    """Single-pass scanner producing positioned tokens."""

    def __init__(self, text: str, limits: SecurityLimits) -> None:
        self._text = text
        self._pos = 0
        self._line = 1
        self._column = 1
        self._mode: LexerMode = "default"
        self._deadline = Deadline(limits)

    def _current(self) -> str | None:
        if self._pos < len(self._text):
            return self._text[self._pos]
        return None

    def _advance(self) -> None:
        if self._pos < len(self._text):
            if self._text[self._pos] == "\n":
                self._line += 1
                self._column = 1
            else:
                self._column += 1
            self._pos += 1

    def _token(
        self,
        kind: TokenKind,
        value: str,
        start: int,
        line: int,
        column: int,
    ) -> Token:
        return Token(
            kind=kind,
            text=self._text[start:self._pos],
            value=value,
            offset=start,
            line=line,
            column=column,
        )

    # ─── Token readers ────────────────────────────────────────────

    def _read_number(self) -> Token:
        start, line, column = self._pos, self._line, self._column
        while (ch := self._current()) is not None and is_digit(ch):
            self._advance()
        if self._current() == ".":
            self._advance()
            while (ch := self._current()) is not None and is_digit(ch):
                self._advance()
        return self._token("NUMBER", self._text[start:self._pos], start, line, column)

    def _read_quoted(self, quote: str) -> Token:
        start, line, column = self._pos, self._line, self._column
        self._advance()  # opening quote
        parts: list[str] = []
        while (ch := self._current()) is not None and ch != quote:
            if ch == "\\":
                self._advance()
                escaped = self._current()
                if escaped is not None:
                    parts.append(_QUOTED_ESCAPES.get(escaped, escaped))
                    self._advance()
            else:
                parts.append(ch)
                self._advance()

        if self._current() != quote:
            raise UniCompSyntaxError(
                f"Unclosed quote starting at line {line}, column {column}",
                code="unclosed_quote",
                offset=start,
                line=line,
                column=column,
                context=quote,
            )
        self._advance()  # closing quote
        return self._token("QUOTED_STRING", "".join(parts), start, line, column)

    def _read_identifier(self) -> Token:
        start, line, column = self._pos, self._line, self._column
        while (ch := self._current()) is not None and is_identifier_char(ch):
            self._advance()
        return self._token("IDENTIFIER", self._text[start:self._pos], start, line, column)

    def _read_escaped_symbol(self) -> Token:
        start, line, column = self._pos, self._line, self._column
        self._advance()  # backslash
        escaped = self._current()
        if escaped is None:
            raise UniCompSyntaxError(
                "Invalid escape at end of input",
                code="invalid_escape",
                offset=start,
                line=line,
                column=column,
                context="\\",
            )
        self._advance()
        return self._token("SYMBOL", escaped, start, line, column)

    def _read_symbol(self) -> Token:
        """Read one Unicode scalar value, joining a split surrogate pair."""
        start, line, column = self._pos, self._line, self._column
        char = self._text[self._pos]
        self._advance()
        if _is_high_surrogate(char):
            low = self._current()
            if low is not None and _is_low_surrogate(low):
                self._advance()
                scalar = 0x10000 + ((ord(char) - 0xD800) << 10) + (ord(low) - 0xDC00)
                return self._token("SYMBOL", chr(scalar), start, line, column)
        return self._token("SYMBOL", char, start, line, column)

    # ─── Main loop ────────────────────────────────────────────────

    def run(self) -> list[Token]:
        tokens: list[Token] = []
        text = self._text

        while self._pos < len(text):
            self._deadline.check(offset=self._pos, line=self._line, column=self._column)

            char = text[self._pos]
            if char in WHITESPACE:
                self._advance()
                continue

            start, line, column = self._pos, self._line, self._column

            if char in _STRUCTURAL:
                if char == "(":
                    self._mode = "grid_spec"
                elif char == ")":
                    self._mode = "default"
                self._advance()
                tokens.append(self._token(_STRUCTURAL[char], char, start, line, column))
            elif char in ("x", "X") and self._mode == "grid_spec":
                self._advance()
                tokens.append(self._token("TIMES", char, start, line, column))
            elif char in QUOTE_CHARS:
                tokens.append(self._read_quoted(char))
            elif is_digit(char):
                tokens.append(self._read_number())
            elif is_identifier_char(char):
                tokens.append(self._read_identifier())
            elif char == "\\":
                tokens.append(self._read_escaped_symbol())
            elif char in SPECIAL_CHARS:
                self._advance()
                tokens.append(self._token("UNKNOWN", char, start, line, column))
            else:
                tokens.append(self._read_symbol())

        tokens.append(Token(
            kind="EOF", text="", value="",
            offset=self._pos, line=self._line, column=self._column,
        ))
        return tokens


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def tokenize(text: str, *, limits: SecurityLimits = DEFAULT_LIMITS) -> list[Token]:
    """Tokenize one rule into a list of tokens ending with ``EOF``.

    Raises
    ------
    SecurityError
        Input longer than ``limits.max_input_length`` (checked before any
        scanning) or the time budget ran out.
    UniCompSyntaxError
        Unclosed quote or a trailing backslash.
    """
    if len(text) > limits.max_input_length:
        raise SecurityError(
            f"Input too long: {len(text)} chars (max: {limits.max_input_length})",
            code="input_too_long",
        )
    return _Lexer(text, limits).run()
