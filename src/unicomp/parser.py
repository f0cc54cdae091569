"""Recursive descent parser for UniComp rules.

Grammar::

    spec        := grid_spec ':' symbol_list
    grid_spec   := '(' NUMBER [TIMES NUMBER] ')' | NUMBER
    symbol_list := [symbol (';' symbol)* [';']]
    symbol      := symbol_char [params] [','] index_range
    symbol_char := SYMBOL | QUOTED_STRING | IDENTIFIER
    params      := '[' param (';'? param)* ']'
    param       := IDENTIFIER '=' ['-'] value
    index_range := NUMBER '-' NUMBER

An identifier such as ``F5`` whose tail is all digits is split into the glyph
``F`` and a leading index ``5``; any other multi-letter identifier is kept
whole as a literal glyph name.

Public API:

* ``parse_unicomp(text)`` — parse one rule into a ``ParseResult``.
"""
from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from unicomp.errors import SecurityError, UniCompError, UniCompSyntaxError
from unicomp.lexer import is_digit, tokenize
from unicomp.limits import DEFAULT_LIMITS, Deadline, SecurityLimits
from unicomp.types import (
    ParseError,
    ParseFailure,
    ParseResult,
    ParseSuccess,
    Scale,
    SymbolSpec,
    Token,
    TokenKind,
    UniCompSpec,
)
from unicomp.validators import (
    is_valid_color,
    normalize_rotation,
    parse_box_value,
    parse_float,
)

_VALUE_KINDS: frozenset[TokenKind] = frozenset({
    "NUMBER", "SYMBOL", "QUOTED_STRING", "IDENTIFIER",
})

_FLIPS: frozenset[str] = frozenset({"h", "v", "hv"})


@dataclass(frozen=True, slots=True)
class _Param:
    """A raw ``key=value`` entry with the token that carried the value."""

    key: str
    value: str
    token: Token


# ---------------------------------------------------------------------------
# Parameter handlers: raw value -> SymbolSpec field(s)
# ---------------------------------------------------------------------------

def _invalid(param: _Param, message: str) -> UniCompSyntaxError:
    tok = param.token
    return UniCompSyntaxError(
        message,
        code="invalid_value",
        offset=tok.offset,
        line=tok.line,
        column=tok.column,
        context=tok.text,
    )


def _color(param: _Param) -> dict[str, Any]:
    if not is_valid_color(param.value):
        raise _invalid(param, f"Invalid color: {param.value!r}")
    return {"color": param.value}


def _opacity(param: _Param) -> dict[str, Any]:
    opacity = parse_float(param.value)
    if opacity is None or not 0.0 <= opacity <= 1.0:
        raise _invalid(param, f"Invalid opacity: {param.value!r} (must be 0-1)")
    return {"opacity": opacity}


def _rotate(param: _Param) -> dict[str, Any]:
    rotate = parse_float(param.value)
    if rotate is None:
        raise _invalid(param, f"Invalid rotation: {param.value!r} (must be a number)")
    return {"rotate": normalize_rotation(rotate)}


def _flip(param: _Param) -> dict[str, Any]:
    if param.value not in _FLIPS:
        raise _invalid(param, f"Invalid flip: {param.value!r} (must be h, v, or hv)")
    return {"flip": param.value}


def _scale(param: _Param) -> dict[str, Any]:
    parts = param.value.split(",")
    sx = parse_float(parts[0])
    sy = parse_float(parts[1]) if len(parts) > 1 else sx
    if sx is None or sy is None or sx <= 0 or sy <= 0:
        raise _invalid(param, f"Invalid scale: {param.value!r} (must be positive numbers)")
    return {"scale": Scale(x=sx, y=sy)}


def _transition(param: _Param) -> dict[str, Any]:
    transition = parse_float(param.value)
    if transition is None or transition < 0:
        raise _invalid(param, f"Invalid transition: {param.value!r} (must be >= 0)")
    return {"transition": transition}


def _text_field(field_name: str) -> Callable[[_Param], dict[str, Any]]:
    def handler(param: _Param) -> dict[str, Any]:
        return {field_name: param.value}
    return handler


def _box_field(field_name: str) -> Callable[[_Param], dict[str, Any]]:
    def handler(param: _Param) -> dict[str, Any]:
        return {field_name: parse_box_value(param.value)}
    return handler


# Lower-cased key -> handler.  Unknown keys are ignored.
PARAM_HANDLERS: dict[str, Callable[[_Param], dict[str, Any]]] = {
    "c": _color,
    "color": _color,
    "a": _opacity,
    "alpha": _opacity,
    "opacity": _opacity,
    "r": _rotate,
    "rotate": _rotate,
    "f": _flip,
    "flip": _flip,
    "font": _text_field("font_family"),
    "fontfamily": _text_field("font_family"),
    "n": _text_field("name"),
    "name": _text_field("name"),
    "id": _text_field("id"),
    "class": _text_field("class_name"),
    "classname": _text_field("class_name"),
    "s": _scale,
    "scale": _scale,
    "t": _transition,
    "transition": _transition,
    "m": _box_field("margin"),
    "margin": _box_field("margin"),
    "p": _box_field("position"),
    "position": _box_field("position"),
}


def check_grid_size(
    label: str,
    size: int,
    limits: SecurityLimits,
    tok: Token | None = None,
) -> None:
    """Raise ``SecurityError`` unless *size* is within the grid bounds."""
    lo, hi = limits.min_grid_size, limits.max_grid_size
    if lo <= size <= hi:
        return
    raise SecurityError(
        f"Grid {label} must be between {lo} and {hi}, got {size}",
        code="grid_size",
        offset=tok.offset if tok else None,
        line=tok.line if tok else None,
        column=tok.column if tok else None,
        context=tok.text if tok else None,
    )


# ---------------------------------------------------------------------------
# Recursive descent parser
# ---------------------------------------------------------------------------

class _Parser:
    """Recursive descent parser over a token list.

    Stops at the first error by raising a ``UniCompError``; ``parse_unicomp``
    turns it into a ``ParseFailure``.
    """

    def __init__(self, tokens: list[Token], limits: SecurityLimits) -> None:
        self._tokens = tokens
        self._limits = limits
        self._pos = 0
        self._symbol_count = 0
        self._deadline = Deadline(limits)

    def _peek(self) -> Token:
        return self._tokens[self._pos]

    def _advance(self) -> Token:
        tok = self._tokens[self._pos]
        if self._pos < len(self._tokens) - 1:
            self._pos += 1
        return tok

    def _syntax_error(
        self, message: str, tok: Token, code: str = "unexpected_token",
    ) -> UniCompSyntaxError:
        return UniCompSyntaxError(
            message,
            code=code,
            offset=tok.offset,
            line=tok.line,
            column=tok.column,
            context=tok.text or None,
        )

    def _unexpected(self, expected: str, tok: Token) -> UniCompSyntaxError:
        return self._syntax_error(
            f"Expected {expected} but got {tok.kind} {tok.value!r} "
            f"at line {tok.line}, column {tok.column}",
            tok,
        )

    def _expect(self, kind: TokenKind) -> Token:
        tok = self._peek()
        if tok.kind != kind:
            raise self._unexpected(kind, tok)
        return self._advance()

    def _expect_integer(self, what: str, code: str = "unexpected_token") -> int:
        tok = self._peek()
        if tok.kind != "NUMBER":
            raise self._syntax_error(
                f"Expected {what} but got {tok.kind} {tok.value!r} "
                f"at line {tok.line}, column {tok.column}",
                tok,
                code,
            )
        if not tok.value.isdigit():
            raise self._syntax_error(
                f"Expected integer {what} but got {tok.value!r} "
                f"at line {tok.line}, column {tok.column}",
                tok,
                code,
            )
        self._advance()
        return int(tok.value)

    # ─── Top-level ────────────────────────────────────────────────

    def parse_spec(self) -> UniCompSpec:
        """spec := grid_spec ':' symbol_list"""
        width, height = self._parse_grid_spec()
        self._expect("COLON")

        symbols: list[SymbolSpec] = []
        while self._peek().kind != "EOF":
            symbols.append(self._parse_symbol(width, height))
            tok = self._peek()
            if tok.kind == "SEMICOLON":
                self._advance()
            elif tok.kind != "EOF":
                raise self._syntax_error(
                    f"Unexpected token {tok.kind} {tok.value!r} at line {tok.line}, "
                    f"column {tok.column}. Expected semicolon or end of input.",
                    tok,
                )

        raw = "".join(t.text for t in self._tokens)
        return UniCompSpec(
            grid_width=width,
            grid_height=height,
            symbols=tuple(symbols),
            raw=raw,
        )

    def _parse_grid_spec(self) -> tuple[int, int]:
        """grid_spec := '(' NUMBER [TIMES NUMBER] ')' | NUMBER"""
        has_paren = self._peek().kind == "LPAREN"
        if has_paren:
            self._advance()
        width_tok = self._peek()
        width = self._expect_integer("grid size", "invalid_grid")
        height_tok, height = width_tok, width
        if has_paren:
            if self._peek().kind == "TIMES":
                self._advance()
                height_tok = self._peek()
                height = self._expect_integer("grid height", "invalid_grid")
            self._expect("RPAREN")

        check_grid_size("width", width, self._limits, width_tok)
        check_grid_size("height", height, self._limits, height_tok)
        return width, height

    # ─── Symbols ──────────────────────────────────────────────────

    def _parse_symbol(self, width: int, height: int) -> SymbolSpec:
        """symbol := symbol_char [params] [','] index_range"""
        tok = self._peek()
        self._deadline.check(offset=tok.offset, line=tok.line, column=tok.column)
        if self._symbol_count >= self._limits.max_symbols:
            raise SecurityError(
                f"Too many symbols: max {self._limits.max_symbols}",
                code="too_many_symbols",
                offset=tok.offset,
                line=tok.line,
                column=tok.column,
            )
        self._symbol_count += 1

        char, lead = self._parse_symbol_char()
        fields: dict[str, Any] = {}
        if lead is None:
            fields = self._parse_params()
            if self._peek().kind == "COMMA":
                self._advance()
        start, end, start_tok = self._parse_index_range(lead)

        max_index = width * height - 1
        if not (0 <= start <= max_index and 0 <= end <= max_index):
            raise self._syntax_error(
                f"Index out of bounds. Valid range for {width}×{height} grid "
                f"is 0-{max_index}",
                start_tok,
                "index_out_of_bounds",
            )
        return SymbolSpec(char=char, start=start, end=end, **fields)

    def _parse_symbol_char(self) -> tuple[str, Token | None]:
        """symbol_char := SYMBOL | QUOTED_STRING | IDENTIFIER

        Returns the glyph plus, when an identifier like ``F5`` is split, a
        synthetic NUMBER token standing for the digits after the first letter.
        """
        tok = self._peek()
        if tok.kind == "QUOTED_STRING" and not tok.value:
            raise self._syntax_error(
                f"Empty glyph at line {tok.line}, column {tok.column}",
                tok,
                "invalid_value",
            )
        if tok.kind in ("SYMBOL", "QUOTED_STRING"):
            self._advance()
            return tok.value, None
        if tok.kind != "IDENTIFIER":
            raise self._unexpected("symbol", tok)

        self._advance()
        head, tail = tok.value[:1], tok.value[1:]
        if not tail:
            return head, None
        if not all(is_digit(ch) for ch in tail):
            return tok.value, None
        lead = Token(
            kind="NUMBER",
            text=tail,
            value=tail,
            offset=tok.offset + 1,
            line=tok.line,
            column=tok.column + 1,
        )
        return head, lead

    def _parse_params(self) -> dict[str, Any]:
        """params := '[' param (';'? param)* ']'"""
        if self._peek().kind != "LBRACKET":
            return {}
        self._advance()

        fields: dict[str, Any] = {}
        count = 0
        while self._peek().kind not in ("RBRACKET", "EOF"):
            tok = self._peek()
            if count >= self._limits.max_params_per_symbol:
                raise SecurityError(
                    f"Too many parameters: max {self._limits.max_params_per_symbol}",
                    code="too_many_params",
                    offset=tok.offset,
                    line=tok.line,
                    column=tok.column,
                )
            count += 1

            param = self._parse_param()
            handler = PARAM_HANDLERS.get(param.key.lower())
            if handler is not None:
                fields.update(handler(param))

            if self._peek().kind == "SEMICOLON":
                self._advance()

        self._expect("RBRACKET")
        return fields

    def _parse_param(self) -> _Param:
        """param := IDENTIFIER '=' ['-'] value"""
        key_tok = self._peek()
        if key_tok.kind != "IDENTIFIER":
            raise self._unexpected("parameter key", key_tok)
        self._advance()
        self._expect("EQUALS")

        tok = self._peek()
        if tok.kind == "DASH":
            self._advance()
            num = self._peek()
            if num.kind != "NUMBER":
                raise self._unexpected("number after '-'", num)
            self._advance()
            return _Param(key=key_tok.value, value="-" + num.value, token=num)
        if tok.kind not in _VALUE_KINDS:
            raise self._unexpected("parameter value", tok)
        self._advance()
        return _Param(key=key_tok.value, value=tok.value, token=tok)

    def _parse_index_range(self, lead: Token | None) -> tuple[int, int, Token]:
        """index_range := NUMBER '-' NUMBER"""
        start_tok = lead if lead is not None else self._peek()
        if lead is None:
            start = self._expect_integer("start index")
        else:
            start = int(lead.value)

        dash = self._peek()
        if dash.kind != "DASH":
            raise self._syntax_error(
                f"Expected '-' after index but got {dash.kind} {dash.value!r} "
                f"at line {dash.line}, column {dash.column}",
                dash,
            )
        self._advance()

        end_tok = self._peek()
        if end_tok.kind != "NUMBER":
            raise self._syntax_error(
                f"Expected number after '-' but got {end_tok.kind} {end_tok.value!r} "
                f"at line {end_tok.line}, column {end_tok.column}. Invalid index range.",
                end_tok,
            )
        end = self._expect_integer("end index")
        return start, end, start_tok


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def error_from_exception(exc: UniCompError) -> ParseError:
    return ParseError(
        message=exc.message,
        code=exc.code,
        category=exc.category,
        position=exc.offset,
        line=exc.line,
        column=exc.column,
        context=exc.context,
    )


def parse_unicomp(text: str, *, limits: SecurityLimits = DEFAULT_LIMITS) -> ParseResult:
    """Parse one UniComp rule.

    Parameters
    ----------
    text:
        The rule text, e.g. ``"(10×3):F[c=red]0-29;→0-9"``.
    limits:
        Guardrails to enforce; defaults to ``DEFAULT_LIMITS``.

    Returns
    -------
    ParseResult
        ``ParseSuccess`` with the spec, or ``ParseFailure`` with a
        ``ParseError``.  Never raises for bad input.
    """
    try:
        tokens = tokenize(text, limits=limits)
        spec = _Parser(tokens, limits).parse_spec()
    except UniCompError as exc:
        return ParseFailure(error=error_from_exception(exc))
    return ParseSuccess(spec=spec)
