"""Query interval sizing: how wide one data point should be for a range."""

from __future__ import annotations

import re
from bisect import bisect_right

from explore_state.core.contracts import IntervalValues, TimeRange

INTERVAL_MS = {
    "y": 31_536_000_000,
    "M": 2_592_000_000,
    "w": 604_800_000,
    "d": 86_400_000,
    "h": 3_600_000,
    "m": 60_000,
    "s": 1_000,
    "ms": 1,
}

_INTERVAL_RE = re.compile(r"^(\d+(?:\.\d+)?)(ms|[yMwdhms])$")

# (upper bound exclusive, rounded interval), both in ms.
_ROUNDING_TABLE: tuple[tuple[int, int], ...] = (
    (10, 1),
    (15, 10),
    (35, 20),
    (75, 50),
    (150, 100),
    (350, 200),
    (750, 500),
    (1_500, 1_000),
    (3_500, 2_000),
    (7_500, 5_000),
    (12_500, 10_000),
    (17_500, 15_000),
    (25_000, 20_000),
    (45_000, 30_000),
    (90_000, 60_000),
    (210_000, 120_000),
    (450_000, 300_000),
    (750_000, 600_000),
    (1_050_000, 900_000),
    (1_500_000, 1_200_000),
    (2_700_000, 1_800_000),
    (5_400_000, 3_600_000),
    (9_000_000, 7_200_000),
    (16_200_000, 10_800_000),
    (32_400_000, 21_600_000),
    (86_400_000, 43_200_000),
    (604_800_000, 86_400_000),
    (1_814_400_000, 604_800_000),
    (3_628_800_000, 2_592_000_000),
)
_ROUNDING_BOUNDS = [bound for bound, _ in _ROUNDING_TABLE]
_ONE_YEAR_MS = INTERVAL_MS["y"]


def interval_to_ms(interval: str) -> int:
    """Convert ``"30s"``, ``"5m"``, ``"100ms"`` (optionally ``>``-prefixed) to ms."""
    text = str(interval).strip().lstrip(">")
    m = _INTERVAL_RE.match(text)
    if not m:
        raise ValueError(f"Invalid interval string: {interval!r}")
    return int(float(m.group(1)) * INTERVAL_MS[m.group(2)])


def round_interval(interval_ms: float) -> int:
    idx = bisect_right(_ROUNDING_BOUNDS, interval_ms)
    if idx >= len(_ROUNDING_TABLE):
        return _ONE_YEAR_MS
    return _ROUNDING_TABLE[idx][1]


def seconds_to_hms(seconds: float) -> str:
    """Render a duration with its largest whole unit, e.g. ``90`` -> ``"1m"``."""
    num_years = int(seconds // 31_536_000)
    if num_years:
        return f"{num_years}y"
    num_days = int((seconds % 31_536_000) // 86_400)
    if num_days:
        return f"{num_days}d"
    num_hours = int((seconds % 86_400) // 3_600)
    if num_hours:
        return f"{num_hours}h"
    num_minutes = int((seconds % 3_600) // 60)
    if num_minutes:
        return f"{num_minutes}m"
    num_seconds = int(seconds % 60)
    if num_seconds:
        return f"{num_seconds}s"
    num_ms = int(seconds * 1000)
    if num_ms:
        return f"{num_ms}ms"
    return "less than a millisecond"


def calculate_interval(time_range: TimeRange, resolution: int, low_limit: str | None = None) -> IntervalValues:
    """Size the interval so ``resolution`` points cover the range, never below ``low_limit``."""
    low_limit_ms = interval_to_ms(low_limit) if low_limit else 1

    span_ms = (time_range.to - time_range.from_).total_seconds() * 1000
    interval_ms = round_interval(span_ms / resolution)
    if low_limit_ms > interval_ms:
        interval_ms = low_limit_ms

    return IntervalValues(interval=seconds_to_hms(interval_ms / 1000), interval_ms=int(interval_ms))
