"""Tests for unicomp.payloads — JSON-ready dicts."""
from __future__ import annotations

import orjson

from unicomp.document import parse_multiline
from unicomp.parser import parse_unicomp
from unicomp.payloads import (
    multiline_result_to_dict,
    parse_error_to_dict,
    parse_result_to_dict,
    spec_to_dict,
    symbol_to_dict,
)
from unicomp.types import Box, ParseError, Scale, SymbolSpec, UniCompSpec


def test_symbol_omits_unset_fields() -> None:
    assert symbol_to_dict(SymbolSpec(char="F", start=0, end=4)) == {
        "char": "F", "start": 0, "end": 4,
    }


def test_symbol_camel_case_and_nested_values() -> None:
    sym = SymbolSpec(
        char="→",
        start=1,
        end=2,
        font_family="serif",
        class_name="big",
        scale=Scale(1.0, 2.0),
        margin=Box(top=4.0),
    )
    out = symbol_to_dict(sym)
    assert out["fontFamily"] == "serif"
    assert out["className"] == "big"
    assert out["scale"] == {"x": 1.0, "y": 2.0}
    assert out["margin"] == {"top": 4.0, "right": 0.0, "bottom": 0.0, "left": 0.0}
    assert "font_family" not in out


def test_spec_to_dict() -> None:
    spec = UniCompSpec(
        grid_width=10, grid_height=3, symbols=(SymbolSpec("F", 15, 17),),
        raw="(10×3):F15-17", name="demo",
    )
    assert spec_to_dict(spec) == {
        "gridWidth": 10,
        "gridHeight": 3,
        "symbols": [{"char": "F", "start": 15, "end": 17}],
        "raw": "(10×3):F15-17",
        "name": "demo",
    }


def test_parse_error_to_dict() -> None:
    err = ParseError(message="boom", code="invalid_value", position=8, line=1, column=9)
    assert parse_error_to_dict(err) == {
        "message": "boom",
        "code": "invalid_value",
        "category": "syntax",
        "position": 8,
        "line": 1,
        "column": 9,
    }


def test_parse_result_to_dict() -> None:
    ok = parse_result_to_dict(parse_unicomp("(5):F[c=red]0-0"))
    assert ok["ok"] is True
    assert ok["spec"]["symbols"][0]["color"] == "red"

    bad = parse_result_to_dict(parse_unicomp("(1):F0-0"))
    assert bad["ok"] is False
    assert bad["error"]["code"] == "grid_size"
    assert bad["error"]["category"] == "security"


def test_multiline_result_to_dict() -> None:
    out = multiline_result_to_dict(parse_multiline("# c\n(5):F0-0\n  (5):F0-99"))
    assert out["ok"] is False
    assert (out["totalLines"], out["validCount"], out["errorCount"]) == (3, 1, 1)
    assert out["blocks"][0] == {
        "lineNumber": 2,
        "raw": "(5):F0-0",
        "result": parse_result_to_dict(parse_unicomp("(5):F0-0")),
        "name": "Line 2",
    }
    assert "name" not in out["blocks"][1]
    assert out["errorLines"][0]["lineNumber"] == 3
    assert out["errorLines"][0]["raw"] == "  (5):F0-99"
    assert out["errorLines"][0]["column"] == 8


def test_payloads_serialize_with_orjson() -> None:
    out = multiline_result_to_dict(parse_multiline('(10×10):"🥶"[m="1 2"]0-89'))
    assert orjson.loads(orjson.dumps(out)) == out
