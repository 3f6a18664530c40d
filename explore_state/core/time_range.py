"""Range resolution for explore URLs.

URL ranges come in several shapes, because older links are still around:
- relative expressions containing ``now`` (passed through to date math)
- ``YYYYMMDD`` and ``YYYYMMDDTHHmmss`` compact dates (UTC)
- ``YYYY-MM-DD HH:mm:ss`` (legacy)
- epoch milliseconds
"""

from __future__ import annotations

import logging
from typing import Any, Callable

import pandas as pd

from explore_state.config import EXPLORE_DEFAULTS
from explore_state.core import datemath, intervals
from explore_state.core.contracts import IntervalValues, RawTimeRange, TimeRange

logger = logging.getLogger(__name__)

DateMathParser = Callable[[Any, bool, "str | None"], "pd.Timestamp | None"]
IntervalCalculator = Callable[[TimeRange, int, "str | None"], IntervalValues]

_FORMATS_BY_LENGTH = {
    8: "%Y%m%d",
    15: "%Y%m%dT%H%M%S",
    19: "%Y-%m-%d %H:%M:%S",
}


def parse_raw_time(value: Any) -> pd.Timestamp | str | None:
    """Classify a raw URL time by shape; unparseable input gives None."""
    if value is None:
        return None
    if isinstance(value, pd.Timestamp):
        return value

    text = str(value)
    if "now" in text:
        return text

    fmt = _FORMATS_BY_LENGTH.get(len(text))
    if fmt is not None:
        try:
            return pd.to_datetime(text, format=fmt, utc=True)
        except (ValueError, TypeError):
            logger.debug("Raw time %r does not match %s", text, fmt)
            return None

    if text.isdigit():
        try:
            return pd.Timestamp(int(text), unit="ms", tz="UTC")
        except (ValueError, OverflowError):
            return None

    return None


def get_time_range(
    time_zone: str | None,
    raw_range: RawTimeRange,
    parser: DateMathParser = datemath.parse,
) -> TimeRange:
    return TimeRange(
        from_=parser(raw_range.from_, False, time_zone),
        to=parser(raw_range.to, True, time_zone),
        raw=raw_range,
    )


def get_time_range_from_url(
    raw_range: RawTimeRange,
    time_zone: str | None = EXPLORE_DEFAULTS.timezone,
    parser: DateMathParser = datemath.parse,
) -> TimeRange:
    """Resolve a URL range: lower bound rounds down, upper bound rounds up."""
    raw = RawTimeRange(from_=parse_raw_time(raw_range.from_), to=parse_raw_time(raw_range.to))
    return get_time_range(time_zone, raw, parser)


def get_intervals(
    time_range: TimeRange,
    low_limit: str | None,
    resolution: int | None,
    calculator: IntervalCalculator = intervals.calculate_interval,
) -> IntervalValues:
    if resolution and not time_range.is_valid:
        logger.warning("Invalid time range %s; using single-point interval", time_range.raw)
    if not resolution or not time_range.is_valid:
        return IntervalValues(
            interval=EXPLORE_DEFAULTS.single_point_interval,
            interval_ms=EXPLORE_DEFAULTS.single_point_interval_ms,
        )
    return calculator(time_range, resolution, low_limit)
