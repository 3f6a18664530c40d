"""Relative date expressions (``now-6h``, ``now/d``) resolved to timestamps.

Grammar:
    expr   := anchor [math]
    anchor := "now" | <date> "||" | <date>
    math   := ( ("+"|"-") [N] unit | "/" unit )*
    unit   := y | M | w | d | h | m | s

Rounding (``/unit``) goes to the start of the unit, or to its last
millisecond when ``round_up`` is set (used for range upper bounds).

Invalid input yields ``None``; callers decide how to surface that.
"""

from __future__ import annotations

import logging
from datetime import datetime

import pandas as pd

logger = logging.getLogger(__name__)

UNITS = ("y", "M", "w", "d", "h", "m", "s")


def _tz_name(timezone: str | None) -> str | None:
    if not timezone or timezone == "browser":
        return None
    if timezone.lower() == "utc":
        return "UTC"
    return timezone


def _now(timezone: str | None) -> pd.Timestamp:
    tz = _tz_name(timezone)
    if tz is None:
        return pd.Timestamp.now(tz="UTC").tz_convert(datetime.now().astimezone().tzinfo)
    return pd.Timestamp.now(tz=tz)


def _localize(ts: pd.Timestamp, timezone: str | None) -> pd.Timestamp:
    if ts.tzinfo is not None:
        return ts
    tz = _tz_name(timezone)
    if tz is None:
        return ts.tz_localize(datetime.now().astimezone().tzinfo)
    return ts.tz_localize(tz)


def _offset(unit: str, n: int) -> pd.DateOffset | pd.Timedelta:
    if unit == "y":
        return pd.DateOffset(years=n)
    if unit == "M":
        return pd.DateOffset(months=n)
    if unit == "w":
        return pd.Timedelta(weeks=n)
    if unit == "d":
        return pd.DateOffset(days=n)
    if unit == "h":
        return pd.Timedelta(hours=n)
    if unit == "m":
        return pd.Timedelta(minutes=n)
    return pd.Timedelta(seconds=n)


def start_of(ts: pd.Timestamp, unit: str) -> pd.Timestamp:
    if unit == "s":
        return ts.replace(microsecond=0, nanosecond=0)
    if unit == "m":
        return ts.replace(second=0, microsecond=0, nanosecond=0)
    if unit == "h":
        return ts.replace(minute=0, second=0, microsecond=0, nanosecond=0)
    day = ts.normalize()
    if unit == "d":
        return day
    if unit == "w":
        # ISO weeks start on Monday.
        return (day - pd.Timedelta(days=day.weekday())).normalize()
    if unit == "M":
        return day.replace(day=1)
    return day.replace(month=1, day=1)


def end_of(ts: pd.Timestamp, unit: str) -> pd.Timestamp:
    return start_of(start_of(ts, unit) + _offset(unit, 1), unit) - pd.Timedelta(milliseconds=1)


def parse_date_math(math: str, time: pd.Timestamp, round_up: bool = False) -> pd.Timestamp | None:
    """Apply a math string such as ``-1d/d`` to ``time``; None if malformed."""
    result = time
    i = 0
    length = len(math)

    while i < length:
        op = math[i]
        i += 1
        if op == "/":
            kind = "round"
        elif op in "+-":
            kind = "shift"
        else:
            return None

        num = 1
        if kind == "shift" and i < length and math[i].isdigit():
            start = i
            while i < length and math[i].isdigit():
                i += 1
            num = int(math[start:i])

        if i >= length:
            return None
        unit = math[i]
        i += 1
        if unit not in UNITS:
            return None

        if kind == "round":
            result = end_of(result, unit) if round_up else start_of(result, unit)
        elif op == "+":
            result = result + _offset(unit, num)
        else:
            result = result - _offset(unit, num)

    return result


def parse(text, round_up: bool = False, timezone: str | None = None) -> pd.Timestamp | None:
    """Resolve ``text`` (expression, date string, datetime or epoch ms) to a timestamp."""
    if text is None or text == "":
        return None

    if isinstance(text, (pd.Timestamp, datetime)):
        return _localize(pd.Timestamp(text), timezone)

    if isinstance(text, (int, float)) and not isinstance(text, bool):
        if pd.isna(text):
            return None
        return pd.Timestamp(int(text), unit="ms", tz="UTC")

    text = str(text)
    if text.startswith("now"):
        anchor = _now(timezone)
        math = text[len("now"):]
    else:
        sep = text.find("||")
        if sep == -1:
            anchor_text, math = text, ""
        else:
            anchor_text, math = text[:sep], text[sep + 2:]
        try:
            anchor = pd.Timestamp(anchor_text)
        except (ValueError, TypeError):
            logger.debug("Unparseable date anchor %r", anchor_text)
            return None
        if pd.isna(anchor):
            return None
        anchor = _localize(anchor, timezone)

    if not math:
        return anchor
    return parse_date_math(math, anchor, round_up)


def is_valid(text) -> bool:
    return parse(text) is not None
