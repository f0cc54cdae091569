#!/usr/bin/env python3
"""Command-line front end for UniComp rules and documents.

Usage:
    python3 scripts/unicomp_tool.py check composition.unicomp
    python3 scripts/unicomp_tool.py format '(8x4):A[c=red]15-17'
    python3 scripts/unicomp_tool.py resize '(10):A8-9' --width 5 --height 5
    python3 scripts/unicomp_tool.py export rules.txt --output composition.unicomp

Structured JSON output goes to stdout; human messages go to stderr.
Limits come from ``UNICOMP_*`` environment variables, overridable with
``--timeout-ms`` / ``--max-symbols``.
"""
from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any

import orjson

sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from unicomp.document import parse_multiline  # noqa: E402
from unicomp.geometry import resize_grid  # noqa: E402
from unicomp.limits import SecurityLimits, load_limits  # noqa: E402
from unicomp.parser import parse_unicomp  # noqa: E402
from unicomp.payloads import (  # noqa: E402
    multiline_result_to_dict,
    parse_error_to_dict,
    parse_result_to_dict,
)
from unicomp.serializer import stringify_spec  # noqa: E402
from unicomp.types import ParseFailure  # noqa: E402

log = logging.getLogger("unicomp_tool")

FILE_HEADER = "# UNICOMP v1.0\n"
_HEADER_MARKER = "# UNICOMP v"


def dump_json(obj: Any) -> None:
    sys.stdout.buffer.write(orjson.dumps(obj, option=orjson.OPT_INDENT_2))
    sys.stdout.buffer.write(b"\n")
    sys.stdout.flush()


# ---------------------------------------------------------------------------
# File helpers
# ---------------------------------------------------------------------------

def strip_file_header(content: str) -> str:
    """Drop the persisted-file header: leading ``# `` lines after ``# UNICOMP v``.

    Content without the marker on its first line is returned untouched.
    """
    if not content.startswith(_HEADER_MARKER):
        return content
    lines = content.split("\n")
    start = 0
    for idx, line in enumerate(lines):
        if not line.strip().startswith("# "):
            break
        start = idx + 1
    return "\n".join(lines[start:]).strip()


def read_document(source: str) -> str:
    """Read a document from a path, or stdin for ``-``, minus its header."""
    if source == "-":
        content = sys.stdin.read()
    else:
        content = Path(source).read_text(encoding="utf-8")
    return strip_file_header(content)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def cmd_check(args: argparse.Namespace, limits: SecurityLimits) -> int:
    result = parse_multiline(read_document(args.file), limits=limits)
    dump_json(multiline_result_to_dict(result))
    log.info(
        "%d rule line(s): %d valid, %d invalid",
        len(result.blocks), result.valid_count, result.error_count,
    )
    for err in result.error_lines:
        log.warning("line %d: %s", err.line_number, err.message)
    return 0 if result.ok else 1


def cmd_format(args: argparse.Namespace, limits: SecurityLimits) -> int:
    result = parse_unicomp(args.rule, limits=limits)
    if isinstance(result, ParseFailure):
        dump_json(parse_error_to_dict(result.error))
        log.error("Rule does not parse: %s", result.error.message)
        return 1
    print(stringify_spec(result.spec))
    return 0


def cmd_resize(args: argparse.Namespace, limits: SecurityLimits) -> int:
    result = resize_grid(args.rule, args.width, args.height, limits=limits)
    if isinstance(result, ParseFailure):
        dump_json(parse_result_to_dict(result))
        log.error("Resize failed: %s", result.error.message)
        return 1
    print(result.spec.raw)
    return 0


def cmd_export(args: argparse.Namespace, limits: SecurityLimits) -> int:
    content = read_document(args.file)
    result = parse_multiline(content, limits=limits)
    if not result.ok:
        for err in result.error_lines:
            log.error("line %d: %s", err.line_number, err.message)
        log.error("Refusing to export a document with %d error(s)", result.error_count)
        return 1
    output = Path(args.output)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(FILE_HEADER + content, encoding="utf-8")
    log.info("Wrote %d rule(s) to %s", result.valid_count, output)
    return 0


_COMMANDS = {
    "check": cmd_check,
    "format": cmd_format,
    "resize": cmd_resize,
    "export": cmd_export,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Validate, canonicalize and resize UniComp rules.",
    )
    parser.add_argument("--verbose", "-v", action="store_true")
    parser.add_argument(
        "--timeout-ms", type=int, default=None,
        help="Per-phase parse time budget (default: UNICOMP_TIMEOUT_MS or 100)",
    )
    parser.add_argument(
        "--max-symbols", type=int, default=None,
        help="Maximum symbols per rule (default: UNICOMP_MAX_SYMBOLS or 1000)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_check = sub.add_parser("check", help="Parse every rule line of a document")
    p_check.add_argument("file", help="Document path, or - for stdin")

    p_format = sub.add_parser("format", help="Print the canonical form of one rule")
    p_format.add_argument("rule")

    p_resize = sub.add_parser("resize", help="Move a rule onto a new grid size")
    p_resize.add_argument("rule")
    p_resize.add_argument("--width", type=int, required=True)
    p_resize.add_argument("--height", type=int, required=True)

    p_export = sub.add_parser("export", help="Write a document with the file header")
    p_export.add_argument("file", help="Document path, or - for stdin")
    p_export.add_argument("--output", required=True)

    return parser


def resolve_limits(args: argparse.Namespace) -> SecurityLimits:
    limits = load_limits()
    overrides: dict[str, int] = {}
    if args.timeout_ms is not None:
        overrides["timeout_ms"] = args.timeout_ms
    if args.max_symbols is not None:
        overrides["max_symbols"] = args.max_symbols
    return replace(limits, **overrides) if overrides else limits


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
        stream=sys.stderr,
    )

    try:
        limits = resolve_limits(args)
    except ValueError as exc:
        parser.error(str(exc))
    return _COMMANDS[args.command](args, limits)


if __name__ == "__main__":
    raise SystemExit(main())
