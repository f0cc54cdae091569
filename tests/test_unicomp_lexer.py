"""Tests for unicomp.lexer — context-sensitive tokenizer."""
from __future__ import annotations

import itertools

import pytest

from unicomp import limits as limits_module
from unicomp.errors import SecurityError, UniCompSyntaxError
from unicomp.lexer import tokenize
from unicomp.limits import SecurityLimits


def _kinds(text: str) -> list[str]:
    return [t.kind for t in tokenize(text) if t.kind != "EOF"]


class TestTokenKinds:
    def test_square_grid_rule(self) -> None:
        assert _kinds("(5):F12-12") == [
            "LPAREN", "NUMBER", "RPAREN", "COLON",
            "IDENTIFIER", "NUMBER", "DASH", "NUMBER",
        ]

    def test_times_sign_is_always_separator(self) -> None:
        assert _kinds("(10×3)") == ["LPAREN", "NUMBER", "TIMES", "NUMBER", "RPAREN"]
        assert _kinds("×") == ["TIMES"]

    @pytest.mark.parametrize("sep", ["x", "X"])
    def test_letter_x_is_separator_inside_grid_spec(self, sep: str) -> None:
        tokens = tokenize(f"(8{sep}4):A15-17")
        assert tokens[2].kind == "TIMES"
        assert tokens[2].value == sep

    def test_letter_x_is_identifier_outside_grid_spec(self) -> None:
        tokens = tokenize("(5):x0-0")
        assert tokens[4].kind == "IDENTIFIER"
        assert tokens[4].value == "x"

    def test_parameter_block(self) -> None:
        assert _kinds("[c=red;a=0.5]") == [
            "LBRACKET", "IDENTIFIER", "EQUALS", "IDENTIFIER", "SEMICOLON",
            "IDENTIFIER", "EQUALS", "NUMBER", "RBRACKET",
        ]

    def test_decimal_number(self) -> None:
        tokens = tokenize("1.25")
        assert tokens[0].kind == "NUMBER"
        assert tokens[0].value == "1.25"

    def test_identifier_stops_at_digit(self) -> None:
        tokens = tokenize("dx31")
        assert [(t.kind, t.value) for t in tokens[:2]] == [
            ("IDENTIFIER", "dx"), ("NUMBER", "31"),
        ]

    def test_unicode_glyph_is_symbol(self) -> None:
        tokens = tokenize("→")
        assert tokens[0].kind == "SYMBOL"
        assert tokens[0].value == "→"

    def test_reserved_punctuation_is_unknown(self) -> None:
        assert _kinds("@ # !") == ["UNKNOWN", "UNKNOWN", "UNKNOWN"]

    def test_whitespace_is_insignificant(self) -> None:
        assert _kinds(" ( 5 )\t:\r\n F 1 - 2 ") == _kinds("(5):F1-2")

    def test_trailing_eof_always_present(self) -> None:
        assert [t.kind for t in tokenize("")] == ["EOF"]
        assert tokenize("(5)")[-1].kind == "EOF"


class TestQuotedStrings:
    @pytest.mark.parametrize("quote", ['"', "'", "`"])
    def test_all_delimiters(self, quote: str) -> None:
        tokens = tokenize(f"{quote}dx{quote}")
        assert tokens[0].kind == "QUOTED_STRING"
        assert tokens[0].value == "dx"
        assert tokens[0].text == f"{quote}dx{quote}"

    def test_escapes(self) -> None:
        tokens = tokenize(r'"a\nb\tc\rd\"e\\f\q"')
        assert tokens[0].value == 'a\nb\tc\rd"e\\fq'

    def test_other_quote_kinds_inside(self) -> None:
        tokens = tokenize("\"it's `x`\"")
        assert tokens[0].value == "it's `x`"

    def test_unclosed_quote_reports_opening_position(self) -> None:
        with pytest.raises(UniCompSyntaxError) as exc_info:
            tokenize('(5):\n  "abc')
        err = exc_info.value
        assert err.code == "unclosed_quote"
        assert err.line == 2
        assert err.column == 3
        assert err.offset == 7


class TestSymbols:
    def test_backslash_escapes_punctuation(self) -> None:
        tokens = tokenize("\\;")
        assert tokens[0].kind == "SYMBOL"
        assert tokens[0].value == ";"
        assert tokens[0].text == "\\;"

    def test_trailing_backslash(self) -> None:
        with pytest.raises(UniCompSyntaxError) as exc_info:
            tokenize("(5):\\")
        assert exc_info.value.code == "invalid_escape"

    def test_surrogate_pair_stays_one_token(self) -> None:
        tokens = tokenize("\ud83d\ude00")
        assert [t.kind for t in tokens] == ["SYMBOL", "EOF"]
        assert tokens[0].value == "😀"
        assert tokens[0].text == "\ud83d\ude00"

    def test_astral_glyph_is_one_token(self) -> None:
        tokens = tokenize("🥶0-1")
        assert tokens[0].kind == "SYMBOL"
        assert tokens[0].value == "🥶"
        assert tokens[1].kind == "NUMBER"


class TestPositions:
    def test_line_and_column_tracking(self) -> None:
        tokens = tokenize("(5):\nF12-12")
        f_tok = tokens[4]
        assert f_tok.value == "F"
        assert (f_tok.line, f_tok.column, f_tok.offset) == (2, 1, 5)
        dash = tokens[6]
        assert (dash.line, dash.column) == (2, 4)

    def test_first_token_position(self) -> None:
        tok = tokenize("  (5)")[0]
        assert (tok.offset, tok.line, tok.column) == (2, 1, 3)


class TestGuardrails:
    def test_input_too_long(self) -> None:
        with pytest.raises(SecurityError) as exc_info:
            tokenize("a" * 10_001)
        assert exc_info.value.code == "input_too_long"
        assert exc_info.value.category == "security"

    def test_input_at_limit_is_accepted(self) -> None:
        tokens = tokenize("a" * 10_000)
        assert tokens[0].value == "a" * 10_000

    def test_custom_length_limit(self) -> None:
        with pytest.raises(SecurityError):
            tokenize("(5):F1-1", limits=SecurityLimits(max_input_length=4))

    def test_timeout(self, monkeypatch: pytest.MonkeyPatch) -> None:
        ticks = itertools.count(0.0, 1.0)
        monkeypatch.setattr(limits_module, "_monotonic", lambda: next(ticks))
        with pytest.raises(SecurityError) as exc_info:
            tokenize("(5):F12-12")
        assert exc_info.value.code == "timeout"
