"""Resource guardrails shared by the lexer, parser and document driver.

``DEFAULT_LIMITS`` is used whenever a caller passes no ``limits=``.
``load_limits`` reads overrides from ``UNICOMP_*`` environment variables.
"""
from __future__ import annotations

import os
import time
from collections.abc import Mapping
from dataclasses import dataclass, replace

from unicomp.errors import SecurityError

_monotonic = time.monotonic

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

MAX_INPUT_LENGTH = 10_000
MAX_SYMBOLS = 1000
MAX_PARAMS_PER_SYMBOL = 10
MIN_GRID_SIZE = 2
MAX_GRID_SIZE = 100
TIMEOUT_MS = 100

# env var -> SecurityLimits field
_ENV_FIELDS: dict[str, str] = {
    "UNICOMP_MAX_INPUT_LENGTH": "max_input_length",
    "UNICOMP_MAX_SYMBOLS": "max_symbols",
    "UNICOMP_MAX_PARAMS": "max_params_per_symbol",
    "UNICOMP_TIMEOUT_MS": "timeout_ms",
}


@dataclass(frozen=True, slots=True)
class SecurityLimits:
    """Hard caps enforced while tokenizing and parsing one rule."""

    max_input_length: int = MAX_INPUT_LENGTH
    max_symbols: int = MAX_SYMBOLS
    max_params_per_symbol: int = MAX_PARAMS_PER_SYMBOL
    min_grid_size: int = MIN_GRID_SIZE
    max_grid_size: int = MAX_GRID_SIZE
    timeout_ms: int = TIMEOUT_MS

    def __post_init__(self) -> None:
        for name in (
            "max_input_length", "max_symbols", "max_params_per_symbol", "timeout_ms",
        ):
            value = getattr(self, name)
            if value <= 0:
                raise ValueError(f"{name} must be > 0, got {value}")
        if not 1 <= self.min_grid_size <= self.max_grid_size:
            raise ValueError(
                f"grid size bounds must satisfy 1 <= min <= max, "
                f"got {self.min_grid_size}..{self.max_grid_size}",
            )

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000.0


DEFAULT_LIMITS = SecurityLimits()


def load_limits(
    environ: Mapping[str, str] | None = None,
    *,
    base: SecurityLimits = DEFAULT_LIMITS,
) -> SecurityLimits:
    """Build limits from ``UNICOMP_*`` environment variables.

    Unset or blank variables keep the value from *base*.  A value that is not
    a positive integer raises ``ValueError`` here, so a bad deployment fails
    at startup rather than on the first parse.
    """
    env = os.environ if environ is None else environ
    overrides: dict[str, int] = {}
    for var, field_name in _ENV_FIELDS.items():
        raw = str(env.get(var, "") or "").strip()
        if not raw:
            continue
        try:
            value = int(raw)
        except ValueError:
            raise ValueError(f"{var} must be an integer, got {raw!r}") from None
        if value <= 0:
            raise ValueError(f"{var} must be > 0, got {value}")
        overrides[field_name] = value
    if not overrides:
        return base
    return replace(base, **overrides)


class Deadline:
    """Cooperative wall-clock budget.

    Checked between units of work (one token, one symbol), so a slow unit can
    overrun the budget by its own cost before the check fires.
    """

    __slots__ = ("_expires_at", "_timeout_ms")

    def __init__(self, limits: SecurityLimits = DEFAULT_LIMITS) -> None:
        self._timeout_ms = limits.timeout_ms
        self._expires_at = _monotonic() + limits.timeout_seconds

    def check(
        self,
        *,
        offset: int | None = None,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        if _monotonic() > self._expires_at:
            raise SecurityError(
                f"Parsing timeout exceeded ({self._timeout_ms} ms)",
                code="timeout",
                offset=offset,
                line=line,
                column=column,
            )
