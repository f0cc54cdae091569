"""UniComp: a compact DSL placing styled glyphs on a linear-indexed grid."""

from unicomp.document import COMMENT_PREFIXES, is_comment_line, parse_multiline
from unicomp.errors import SecurityError, UniCompError, UniCompSyntaxError
from unicomp.geometry import (
    CellBox,
    CellCoords,
    GridRect,
    IndexRange,
    coords_to_symbol_indices,
    get_rect,
    linear_to_coords,
    resize_grid,
    symbol_to_coords,
)
from unicomp.limits import DEFAULT_LIMITS, SecurityLimits, load_limits
from unicomp.parser import parse_unicomp
from unicomp.serializer import stringify_spec
from unicomp.types import (
    Box,
    ErrorLine,
    MultiLineParseResult,
    ParsedBlock,
    ParseError,
    ParseFailure,
    ParseResult,
    ParseSuccess,
    Scale,
    SymbolSpec,
    Token,
    UniCompSpec,
)

__all__ = [
    "COMMENT_PREFIXES",
    "DEFAULT_LIMITS",
    "Box",
    "CellBox",
    "CellCoords",
    "ErrorLine",
    "GridRect",
    "IndexRange",
    "MultiLineParseResult",
    "ParseError",
    "ParseFailure",
    "ParseResult",
    "ParseSuccess",
    "ParsedBlock",
    "Scale",
    "SecurityError",
    "SecurityLimits",
    "SymbolSpec",
    "Token",
    "UniCompError",
    "UniCompSpec",
    "UniCompSyntaxError",
    "coords_to_symbol_indices",
    "get_rect",
    "is_comment_line",
    "linear_to_coords",
    "load_limits",
    "parse_multiline",
    "parse_unicomp",
    "resize_grid",
    "stringify_spec",
    "symbol_to_coords",
]
