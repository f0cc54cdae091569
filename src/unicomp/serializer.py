"""Serializer: UniCompSpec -> canonical rule text.

Round-trip: ``parse_unicomp(stringify_spec(spec))`` yields the same grid and
the same ordered symbols as ``spec``.  The output always uses ``×`` as the
grid separator, even when the source used ``x``/``X``.
"""
from __future__ import annotations

from decimal import Decimal

from unicomp.lexer import SPECIAL_CHARS, WHITESPACE, is_digit
from unicomp.types import Box, Scale, SymbolSpec, UniCompSpec

# Keys whose values are always quoted, regardless of length.
_STRING_KEYS: frozenset[str] = frozenset({"n", "id", "class", "font"})

_ESCAPES: dict[str, str] = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\t": "\\t",
    "\r": "\\r",
}


def format_number(value: float) -> str:
    """Render a number the way the lexer reads it back: no exponent, no ``.0``."""
    if value == int(value):
        return str(int(value))
    text = format(Decimal(repr(value)), "f")
    return text.rstrip("0").rstrip(".") if "." in text else text


def quote(value: str) -> str:
    return '"' + "".join(_ESCAPES.get(ch, ch) for ch in value) + '"'


def needs_quoting(char: str) -> bool:
    """True if *char* would not lex back as a single glyph when written bare."""
    if len(char) != 1:
        return True
    return is_digit(char) or char in SPECIAL_CHARS or char in WHITESPACE


def _param(key: str, value: str | float) -> str:
    if isinstance(value, str):
        if key in _STRING_KEYS or len(value) != 1 or needs_quoting(value):
            return f"{key}={quote(value)}"
        return f"{key}={value}"
    return f"{key}={format_number(value)}"


def _scale(scale: Scale) -> str:
    if scale.x == scale.y:
        return _param("s", scale.x)
    return _param("s", f"{format_number(scale.x)},{format_number(scale.y)}")


def _box(box: Box) -> str:
    return " ".join(
        format_number(side) for side in (box.top, box.right, box.bottom, box.left)
    )


def serialize_params(sym: SymbolSpec) -> str:
    """Bracketed parameter list in fixed order, or ``""`` when there is none."""
    parts: list[str] = []
    if sym.color is not None:
        parts.append(_param("c", sym.color))
    if sym.opacity is not None:
        parts.append(_param("a", sym.opacity))
    if sym.rotate is not None:
        parts.append(_param("r", sym.rotate))
    if sym.flip is not None:
        parts.append(_param("f", sym.flip))
    if sym.font_family is not None:
        parts.append(_param("font", sym.font_family))
    if sym.id is not None:
        parts.append(_param("id", sym.id))
    if sym.class_name is not None:
        parts.append(_param("class", sym.class_name))
    if sym.name is not None:
        parts.append(_param("n", sym.name))
    if sym.scale is not None:
        parts.append(_scale(sym.scale))
    if sym.transition is not None:
        parts.append(_param("t", sym.transition))
    if sym.margin is not None:
        parts.append(_param("m", _box(sym.margin)))
    if sym.position is not None:
        parts.append(_param("p", _box(sym.position)))
    if not parts:
        return ""
    return "[" + ";".join(parts) + "]"


def serialize_symbol(sym: SymbolSpec) -> str:
    char = quote(sym.char) if needs_quoting(sym.char) else sym.char
    return f"{char}{serialize_params(sym)}{sym.start}-{sym.end}"


def serialize_grid(width: int, height: int) -> str:
    if width == height:
        return f"({width})"
    return f"({width}×{height})"


def stringify_spec(spec: UniCompSpec) -> str:
    """Serialize a spec to canonical rule text, preserving layer order."""
    symbols = ";".join(serialize_symbol(sym) for sym in spec.symbols)
    return f"{serialize_grid(spec.grid_width, spec.grid_height)}:{symbols}"
