"""Logs view model: typed series data -> log rows plus a per-level histogram.

Query results arrive in a few shapes (time series with ``datapoints``,
tables with ``columns``/``rows``, or already typed ``fields``/``rows``);
``to_series_data`` normalises them and ``guess_field_types`` fills in any
field type the datasource did not declare.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Iterable

import pandas as pd

from explore_state.core.contracts import DedupStrategy

logger = logging.getLogger(__name__)


class FieldType(str, Enum):
    TIME = "time"
    NUMBER = "number"
    STRING = "string"
    BOOLEAN = "boolean"
    OTHER = "other"


class LogLevel(str, Enum):
    CRITICAL = "critical"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    DEBUG = "debug"
    TRACE = "trace"
    UNKNOWN = "unknown"


# Spellings seen in the wild, mapped to a level.
_LEVEL_ALIASES: dict[str, LogLevel] = {
    "emerg": LogLevel.CRITICAL,
    "alert": LogLevel.CRITICAL,
    "crit": LogLevel.CRITICAL,
    "critical": LogLevel.CRITICAL,
    "fatal": LogLevel.CRITICAL,
    "err": LogLevel.ERROR,
    "eror": LogLevel.ERROR,
    "error": LogLevel.ERROR,
    "warn": LogLevel.WARNING,
    "warning": LogLevel.WARNING,
    "info": LogLevel.INFO,
    "notice": LogLevel.INFO,
    "dbug": LogLevel.DEBUG,
    "debug": LogLevel.DEBUG,
    "trace": LogLevel.TRACE,
}
_LEVEL_RE = re.compile(r"\b(" + "|".join(_LEVEL_ALIASES) + r")\b", re.IGNORECASE)

LOG_LEVEL_COLORS: dict[LogLevel, str] = {
    LogLevel.CRITICAL: "#705da0",
    LogLevel.ERROR: "#e24d42",
    LogLevel.WARNING: "#eab839",
    LogLevel.INFO: "#7eb26d",
    LogLevel.DEBUG: "#1f78c1",
    LogLevel.TRACE: "#6ed0e0",
    LogLevel.UNKNOWN: "#8e8e8e",
}

_NUMBER_RE = re.compile(r"^\s*[-+]?(\d+\.?\d*|\.\d+)([eE][-+]?\d+)?\s*$")
_TIME_FIELD_NAMES = {"time", "ts", "timestamp"}


@dataclass(frozen=True)
class Field:
    name: str
    type: FieldType | None = None


@dataclass(frozen=True)
class SeriesData:
    fields: list[Field]
    rows: list[list[Any]]
    name: str | None = None
    labels: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class LogRow:
    time_epoch_ms: int
    time_utc: str
    entry: str
    log_level: LogLevel
    labels: dict[str, str] = field(default_factory=dict)
    unique_labels: dict[str, str] = field(default_factory=dict)
    duplicates: int = 0


@dataclass(frozen=True)
class LogsModel:
    rows: list[LogRow]
    series: list[dict[str, Any]] = field(default_factory=list)
    meta: list[dict[str, Any]] = field(default_factory=list)
    has_unique_labels: bool = False


def _field_type(value: Any) -> FieldType | None:
    if value is None:
        return None
    try:
        return FieldType(value)
    except ValueError:
        return FieldType.OTHER


def to_series_data(raw: Any) -> SeriesData:
    """Normalise one raw query result into ``SeriesData``."""
    if isinstance(raw, SeriesData):
        return raw
    if not isinstance(raw, dict):
        raise ValueError(f"Unsupported data format: {type(raw).__name__}")

    labels = raw.get("labels") or raw.get("tags") or {}

    if "fields" in raw and "rows" in raw:
        fields = [Field(name=str(f.get("name", "")), type=_field_type(f.get("type"))) for f in raw["fields"]]
        return SeriesData(fields=fields, rows=[list(r) for r in raw["rows"]], name=raw.get("name"), labels=labels)

    if "columns" in raw and "rows" in raw:
        fields = [
            Field(name=str(c.get("text", "")), type=_field_type(c.get("type")))
            if isinstance(c, dict)
            else Field(name=str(c))
            for c in raw["columns"]
        ]
        return SeriesData(fields=fields, rows=[list(r) for r in raw["rows"]], name=raw.get("name"), labels=labels)

    if "datapoints" in raw:
        name = raw.get("target") or "Value"
        fields = [Field(name=name, type=FieldType.NUMBER), Field(name="Time", type=FieldType.TIME)]
        return SeriesData(fields=fields, rows=[list(p) for p in raw["datapoints"]], name=name, labels=labels)

    raise ValueError("Unsupported data format: expected datapoints, columns/rows or fields/rows")


def guess_field_type_from_value(value: Any) -> FieldType:
    if isinstance(value, bool):
        return FieldType.BOOLEAN
    if isinstance(value, (int, float)):
        return FieldType.NUMBER
    if isinstance(value, pd.Timestamp) or hasattr(value, "isoformat"):
        return FieldType.TIME
    if isinstance(value, str):
        if _NUMBER_RE.match(value):
            return FieldType.NUMBER
        if value.lower() in ("true", "false"):
            return FieldType.BOOLEAN
        return FieldType.STRING
    return FieldType.OTHER


def guess_field_types(series: SeriesData) -> SeriesData:
    """Fill in missing field types from the field name or first non-null value."""
    if all(f.type is not None for f in series.fields):
        return series

    fields: list[Field] = []
    for idx, f in enumerate(series.fields):
        if f.type is not None:
            fields.append(f)
            continue
        if f.name.lower() in _TIME_FIELD_NAMES:
            fields.append(replace(f, type=FieldType.TIME))
            continue
        guessed = FieldType.OTHER
        for row in series.rows:
            if idx < len(row) and row[idx] is not None:
                guessed = guess_field_type_from_value(row[idx])
                break
        fields.append(replace(f, type=guessed))
    return replace(series, fields=fields)


def get_log_level(line: str) -> LogLevel:
    if not line:
        return LogLevel.UNKNOWN
    m = _LEVEL_RE.search(line)
    if not m:
        return LogLevel.UNKNOWN
    return _LEVEL_ALIASES[m.group(1).lower()]


def _to_epoch_ms(value: Any) -> int | None:
    if value is None:
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return int(value)
    try:
        ts = pd.Timestamp(value)
    except (ValueError, TypeError):
        return None
    if pd.isna(ts):
        return None
    if ts.tzinfo is None:
        ts = ts.tz_localize("UTC")
    return int(ts.value // 1_000_000)


def _common_labels(label_sets: list[dict[str, str]]) -> dict[str, str]:
    if not label_sets:
        return {}
    common = dict(label_sets[0])
    for labels in label_sets[1:]:
        common = {k: v for k, v in common.items() if labels.get(k) == v}
    return common


def _first_index(series: SeriesData, field_type: FieldType) -> int | None:
    for idx, f in enumerate(series.fields):
        if f.type == field_type:
            return idx
    return None


def series_data_to_logs_model(series_list: Iterable[SeriesData], interval_ms: int | None) -> LogsModel:
    """Convert typed series into log rows (newest first) and a level histogram.

    Series without both a time field and a string field carry no log lines
    and are skipped.
    """
    log_series = [
        s
        for s in series_list
        if _first_index(s, FieldType.TIME) is not None and _first_index(s, FieldType.STRING) is not None
    ]
    if not log_series:
        return LogsModel(rows=[])

    common = _common_labels([dict(s.labels) for s in log_series])
    rows: list[LogRow] = []
    for s in log_series:
        time_idx = _first_index(s, FieldType.TIME)
        entry_idx = _first_index(s, FieldType.STRING)
        labels = dict(s.labels)
        unique = {k: v for k, v in labels.items() if k not in common}
        for raw_row in s.rows:
            ts = _to_epoch_ms(raw_row[time_idx] if time_idx < len(raw_row) else None)
            if ts is None:
                continue
            entry = "" if entry_idx >= len(raw_row) or raw_row[entry_idx] is None else str(raw_row[entry_idx])
            level = _LEVEL_ALIASES.get(str(labels.get("level", "")).lower()) or get_log_level(entry)
            rows.append(
                LogRow(
                    time_epoch_ms=ts,
                    time_utc=pd.Timestamp(ts, unit="ms", tz="UTC").isoformat(),
                    entry=entry,
                    log_level=level,
                    labels=labels,
                    unique_labels=unique,
                )
            )

    rows.sort(key=lambda r: r.time_epoch_ms, reverse=True)

    meta: list[dict[str, Any]] = []
    if common:
        meta.append({"label": "Common labels", "value": common, "kind": "labels"})

    return LogsModel(
        rows=rows,
        series=_level_histogram(rows, interval_ms),
        meta=meta,
        has_unique_labels=any(r.unique_labels for r in rows),
    )


def _level_histogram(rows: list[LogRow], interval_ms: int | None) -> list[dict[str, Any]]:
    """Count rows per level in ``interval_ms`` buckets, one series per level."""
    if not rows or not interval_ms or interval_ms <= 0:
        return []

    df = pd.DataFrame(
        {
            "level": [r.log_level.value for r in rows],
            "bucket": [(r.time_epoch_ms // interval_ms) * interval_ms for r in rows],
        }
    )
    counts = df.groupby(["level", "bucket"]).size()

    series: list[dict[str, Any]] = []
    for level in LogLevel:
        if level.value not in counts.index.get_level_values("level"):
            continue
        per_bucket = counts.loc[level.value].sort_index()
        series.append(
            {
                "alias": level.value,
                "color": LOG_LEVEL_COLORS[level],
                "datapoints": [[int(n), int(bucket)] for bucket, n in per_bucket.items()],
            }
        )
    return series


def _dedup_signature(entry: str, strategy: DedupStrategy) -> str:
    if strategy == DedupStrategy.NUMBERS:
        return re.sub(r"\d", "", entry)
    if strategy == DedupStrategy.SIGNATURE:
        return re.sub(r"\w", "", entry)
    return entry


def dedup_log_rows(rows: list[LogRow], strategy: Any) -> list[LogRow]:
    """Collapse consecutive duplicate rows, counting them on the kept row."""
    try:
        strategy = DedupStrategy(strategy)
    except ValueError:
        logger.debug("Unknown dedup strategy %r, not deduplicating", strategy)
        return rows
    if strategy == DedupStrategy.NONE:
        return rows

    result: list[LogRow] = []
    for row in rows:
        if result and _dedup_signature(result[-1].entry, strategy) == _dedup_signature(row.entry, strategy):
            result[-1] = replace(result[-1], duplicates=result[-1].duplicates + 1)
        else:
            result.append(replace(row, duplicates=0))
    return result
