"""Grid geometry: linear index <-> cell coordinates, and grid resizing.

A cell at column ``x`` and row ``y`` of a grid ``width`` cells wide has the
linear index ``y * width + x``.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace

from unicomp.errors import UniCompError
from unicomp.limits import DEFAULT_LIMITS, SecurityLimits
from unicomp.parser import check_grid_size, error_from_exception, parse_unicomp
from unicomp.serializer import stringify_spec
from unicomp.types import ParseFailure, ParseResult, ParseSuccess, SymbolSpec

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CellCoords:
    x: int
    y: int


@dataclass(frozen=True, slots=True)
class GridRect:
    """Normalized footprint: ``x1 <= x2`` and ``y1 <= y2``, sizes in cells."""

    x1: int
    y1: int
    x2: int
    y2: int
    width: int
    height: int


@dataclass(frozen=True, slots=True)
class CellBox:
    """Footprint as top-left cell plus width/height in cells."""

    x: int
    y: int
    w: int
    h: int


@dataclass(frozen=True, slots=True)
class IndexRange:
    start: int
    end: int


def linear_to_coords(index: int, grid_width: int) -> CellCoords:
    y, x = divmod(index, grid_width)
    return CellCoords(x=x, y=y)


def coords_to_linear(x: int, y: int, grid_width: int) -> int:
    return y * grid_width + x


def get_rect(start: int, end: int, grid_width: int) -> GridRect:
    """Normalize two opposite corner indices into a rectangle.

    The corners may be given in any order: ``get_rect(a, b, w) == get_rect(b, a, w)``.
    """
    a = linear_to_coords(start, grid_width)
    b = linear_to_coords(end, grid_width)
    x1, x2 = min(a.x, b.x), max(a.x, b.x)
    y1, y2 = min(a.y, b.y), max(a.y, b.y)
    return GridRect(x1=x1, y1=y1, x2=x2, y2=y2, width=x2 - x1 + 1, height=y2 - y1 + 1)


def symbol_to_coords(symbol: SymbolSpec | IndexRange, grid_width: int) -> CellBox:
    rect = get_rect(symbol.start, symbol.end, grid_width)
    return CellBox(x=rect.x1, y=rect.y1, w=rect.width, h=rect.height)


def coords_to_symbol_indices(coords: CellBox, grid_width: int) -> IndexRange:
    """Inverse of :func:`symbol_to_coords` for boxes inside the grid."""
    start = coords_to_linear(coords.x, coords.y, grid_width)
    end = coords_to_linear(
        coords.x + coords.w - 1, coords.y + coords.h - 1, grid_width,
    )
    return IndexRange(start=start, end=end)


def _clamp(value: int, upper: int) -> int:
    return max(0, min(value, upper))


def _resize_symbol(
    sym: SymbolSpec,
    old_width: int,
    new_width: int,
    new_height: int,
) -> SymbolSpec:
    corners: list[int] = []
    for index in (sym.start, sym.end):
        cell = linear_to_coords(index, old_width)
        x = _clamp(cell.x, new_width - 1)
        y = _clamp(cell.y, new_height - 1)
        corners.append(coords_to_linear(x, y, new_width))
    start, end = corners
    if (start, end) != (sym.start, sym.end):
        log.debug(
            "Moved %r from %d-%d to %d-%d", sym.char, sym.start, sym.end, start, end,
        )
    return replace(sym, start=start, end=end)


def resize_grid(
    rule: str,
    new_width: int,
    new_height: int,
    *,
    limits: SecurityLimits = DEFAULT_LIMITS,
) -> ParseResult:
    """Change a rule's grid size, keeping every symbol at the same cell.

    Each corner keeps its (x, y) cell; coordinates past the new right or
    bottom edge are clamped onto it.  A symbol entirely outside the new grid
    collapses to a single edge cell rather than being dropped.

    Returns a ``ParseSuccess`` whose ``spec.raw`` is the new canonical rule
    text.  If *rule* itself does not parse, its failure is returned
    unchanged; a target size outside the grid bounds fails with
    ``grid_size``.  The output is not re-parsed, so canonical text longer
    than ``limits.max_input_length`` is still returned.
    """
    parsed = parse_unicomp(rule, limits=limits)
    if isinstance(parsed, ParseFailure):
        return parsed
    spec = parsed.spec

    try:
        check_grid_size("width", new_width, limits)
        check_grid_size("height", new_height, limits)
    except UniCompError as exc:
        return ParseFailure(error=error_from_exception(exc))

    symbols = tuple(
        _resize_symbol(sym, spec.grid_width, new_width, new_height)
        for sym in spec.symbols
    )
    resized = replace(
        spec, grid_width=new_width, grid_height=new_height, symbols=symbols,
    )
    return ParseSuccess(spec=replace(resized, raw=stringify_spec(resized)))
