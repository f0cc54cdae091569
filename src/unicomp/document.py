"""Multi-line documents: one independently parsed rule per line.

Blank lines and lines starting with a comment marker are skipped.  A line
that fails to parse is reported on its own and never affects its siblings.

The persisted-file header (``# UNICOMP v1.0`` and following ``# `` lines) is
removed by whatever reads the file before the text gets here; to this module
those lines are ordinary comments.
"""
from __future__ import annotations

import logging

from unicomp.limits import DEFAULT_LIMITS, SecurityLimits
from unicomp.parser import parse_unicomp
from unicomp.types import (
    ErrorLine,
    MultiLineParseResult,
    ParsedBlock,
    ParseFailure,
)

log = logging.getLogger(__name__)

COMMENT_PREFIXES: tuple[str, ...] = ("#", "//", "--", "/*", "<!--", "'''", '"""')


def is_comment_line(trimmed: str) -> bool:
    """True if an already-stripped line opens with a comment marker."""
    return trimmed.startswith(COMMENT_PREFIXES)


def parse_multiline(
    text: str,
    *,
    limits: SecurityLimits = DEFAULT_LIMITS,
) -> MultiLineParseResult:
    """Parse every rule line of *text*.

    Each non-blank, non-comment line becomes one ``ParsedBlock`` carrying its
    1-based line number; failures are also listed in ``error_lines``.
    """
    lines = text.split("\n")
    blocks: list[ParsedBlock] = []
    error_lines: list[ErrorLine] = []
    valid_count = 0

    for line_number, line in enumerate(lines, start=1):
        trimmed = line.strip()
        if not trimmed or is_comment_line(trimmed):
            continue

        result = parse_unicomp(trimmed, limits=limits)
        if isinstance(result, ParseFailure):
            log.debug("Line %d failed: %s", line_number, result.error.message)
            column = result.error.column
            if column is not None:
                # columns from the parser count from the stripped line
                column += len(line) - len(line.lstrip())
            error_lines.append(ErrorLine(
                line_number=line_number,
                message=result.error.message,
                raw_line=line,
                column=column,
            ))
            blocks.append(ParsedBlock(line_number=line_number, raw_line=line, result=result))
            continue

        valid_count += 1
        blocks.append(ParsedBlock(
            line_number=line_number,
            raw_line=line,
            result=result,
            name=result.spec.name or f"Line {line_number}",
        ))

    return MultiLineParseResult(
        blocks=tuple(blocks),
        total_lines=len(lines),
        valid_count=valid_count,
        error_count=len(error_lines),
        error_lines=tuple(error_lines),
    )
