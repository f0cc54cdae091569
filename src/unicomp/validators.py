"""Value validators for symbol parameters: colors, box values, numbers."""
from __future__ import annotations

import math
import re

from unicomp.types import Box

NAMED_COLORS: frozenset[str] = frozenset({
    "red", "green", "blue", "yellow", "orange", "purple", "pink", "cyan",
    "magenta", "lime", "teal", "indigo", "violet", "brown", "gray", "grey",
    "black", "white", "gold", "silver", "coral", "salmon", "crimson",
    "navy", "olive", "maroon", "aqua", "fuchsia", "tomato", "plum",
})

_HEX_DIGITS: frozenset[str] = frozenset("0123456789abcdefABCDEF")
_HEX_LENGTHS: frozenset[int] = frozenset({3, 6, 8})

# <number><t|r|b|l>, e.g. "4t" or "-1.5L"
_DIRECTIONAL_RE = re.compile(r"^(-?\d*\.?\d+)([trbl])$", re.IGNORECASE)
_BOX_SIDES: dict[str, str] = {"t": "top", "r": "right", "b": "bottom", "l": "left"}


def is_valid_color(value: str) -> bool:
    """True for a palette name (any case) or ``#RGB``/``#RRGGBB``/``#RRGGBBAA``."""
    if value.lower() in NAMED_COLORS:
        return True
    if not value.startswith("#"):
        return False
    digits = value[1:]
    if len(digits) not in _HEX_LENGTHS:
        return False
    return all(ch in _HEX_DIGITS for ch in digits)


def parse_float(value: str) -> float | None:
    """Parse a finite float, or return None.

    Stricter than a lenient prefix parse: ``"12abc"``, ``"nan"`` and
    ``"inf"`` are all rejected.
    """
    try:
        number = float(value.strip())
    except ValueError:
        return None
    if not math.isfinite(number):
        return None
    return number


def parse_box_value(value: str) -> Box:
    """Parse a ``margin``/``position`` value into a :class:`Box`.

    Two forms, tried in order:

    * directional: ``"4t 2l"`` sets sides independently, missing sides are 0;
    * CSS shorthand: 1 number for all sides, 2 for (vertical, horizontal),
      3 for (top, horizontal, bottom), 4+ for (top, right, bottom, left).
      Extra numbers, non-numeric parts and numbers that overflow to
      infinity are ignored.
    """
    parts = value.split()

    sides: dict[str, float] = {}
    for part in parts:
        m = _DIRECTIONAL_RE.match(part)
        if m:
            number = parse_float(m.group(1))
            if number is not None:
                sides[_BOX_SIDES[m.group(2).lower()]] = number
    if sides:
        return Box(**sides)

    nums = [n for n in (parse_float(p) for p in parts) if n is not None]
    if len(nums) == 1:
        return Box(nums[0], nums[0], nums[0], nums[0])
    if len(nums) == 2:
        return Box(top=nums[0], right=nums[1], bottom=nums[0], left=nums[1])
    if len(nums) == 3:
        return Box(top=nums[0], right=nums[1], bottom=nums[2], left=nums[1])
    if len(nums) >= 4:
        return Box(top=nums[0], right=nums[1], bottom=nums[2], left=nums[3])
    return Box()


def normalize_rotation(degrees: float) -> float:
    """Map any angle into ``[0, 360)``."""
    normalized = degrees % 360.0
    # -1e-20 % 360.0 rounds to 360.0
    if normalized >= 360.0:
        return 0.0
    return normalized
