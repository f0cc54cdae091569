"""JSON-ready dict conversion for specs and parse results.

Used by ``scripts/unicomp_tool.py`` and the dashboard API.  Optional fields
that are unset are left out of the output.
"""
from __future__ import annotations

from dataclasses import asdict
from typing import Any

from unicomp.types import (
    Box,
    MultiLineParseResult,
    ParseError,
    ParseResult,
    ParseSuccess,
    SymbolSpec,
    UniCompSpec,
)

# SymbolSpec field -> JSON key
_SYMBOL_KEYS: dict[str, str] = {
    "char": "char",
    "start": "start",
    "end": "end",
    "opacity": "opacity",
    "color": "color",
    "rotate": "rotate",
    "flip": "flip",
    "font_family": "fontFamily",
    "id": "id",
    "class_name": "className",
    "name": "name",
    "scale": "scale",
    "margin": "margin",
    "position": "position",
    "transition": "transition",
}


def _box_to_dict(box: Box) -> dict[str, float]:
    return asdict(box)


def symbol_to_dict(sym: SymbolSpec) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for field_name, key in _SYMBOL_KEYS.items():
        value = getattr(sym, field_name)
        if value is None:
            continue
        if isinstance(value, Box):
            value = _box_to_dict(value)
        elif field_name == "scale":
            value = {"x": value.x, "y": value.y}
        out[key] = value
    return out


def spec_to_dict(spec: UniCompSpec) -> dict[str, Any]:
    out: dict[str, Any] = {
        "gridWidth": spec.grid_width,
        "gridHeight": spec.grid_height,
        "symbols": [symbol_to_dict(s) for s in spec.symbols],
        "raw": spec.raw,
    }
    for field_name, key in (("name", "name"), ("id", "id"), ("class_name", "className")):
        value = getattr(spec, field_name)
        if value is not None:
            out[key] = value
    return out


def parse_error_to_dict(error: ParseError) -> dict[str, Any]:
    out: dict[str, Any] = {
        "message": error.message,
        "code": error.code,
        "category": error.category,
    }
    for key in ("position", "line", "column", "context"):
        value = getattr(error, key)
        if value is not None:
            out[key] = value
    return out


def parse_result_to_dict(result: ParseResult) -> dict[str, Any]:
    if isinstance(result, ParseSuccess):
        return {"ok": True, "spec": spec_to_dict(result.spec)}
    return {"ok": False, "error": parse_error_to_dict(result.error)}


def multiline_result_to_dict(result: MultiLineParseResult) -> dict[str, Any]:
    blocks: list[dict[str, Any]] = []
    for block in result.blocks:
        row: dict[str, Any] = {
            "lineNumber": block.line_number,
            "raw": block.raw_line,
            "result": parse_result_to_dict(block.result),
        }
        if block.name is not None:
            row["name"] = block.name
        blocks.append(row)

    error_lines: list[dict[str, Any]] = []
    for err in result.error_lines:
        row = {"lineNumber": err.line_number, "message": err.message, "raw": err.raw_line}
        if err.column is not None:
            row["column"] = err.column
        error_lines.append(row)

    return {
        "ok": result.ok,
        "blocks": blocks,
        "totalLines": result.total_lines,
        "validCount": result.valid_count,
        "errorCount": result.error_count,
        "errorLines": error_lines,
    }
