from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

import pandas as pd

from explore_state.config import DEFAULT_RANGE, DEFAULT_UI_STATE


Query = dict[str, Any]


class ResultType(str, Enum):
    GRAPH = "Graph"
    TABLE = "Table"
    LOGS = "Logs"


class DedupStrategy(str, Enum):
    NONE = "none"
    EXACT = "exact"
    NUMBERS = "numbers"
    SIGNATURE = "signature"


@dataclass(frozen=True)
class RawTimeRange:
    """Unresolved range bounds: relative expressions, encoded dates or timestamps."""

    from_: Any = DEFAULT_RANGE["from"]
    to: Any = DEFAULT_RANGE["to"]

    def to_dict(self) -> dict[str, Any]:
        return {"from": self.from_, "to": self.to}

    @classmethod
    def from_dict(cls, d: dict[str, Any] | None) -> "RawTimeRange":
        if not isinstance(d, dict):
            return cls()
        return cls(from_=d.get("from", DEFAULT_RANGE["from"]), to=d.get("to", DEFAULT_RANGE["to"]))


@dataclass(frozen=True)
class TimeRange:
    from_: pd.Timestamp | None
    to: pd.Timestamp | None
    raw: RawTimeRange

    @property
    def is_valid(self) -> bool:
        return self.from_ is not None and self.to is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "from": self.from_.isoformat() if self.from_ is not None else None,
            "to": self.to.isoformat() if self.to is not None else None,
            "raw": {k: _json_time(v) for k, v in self.raw.to_dict().items()},
        }


def _json_time(value: Any) -> Any:
    if isinstance(value, pd.Timestamp):
        return value.isoformat()
    return value


@dataclass(frozen=True)
class UiState:
    showing_graph: bool = DEFAULT_UI_STATE["showingGraph"]
    showing_logs: bool = DEFAULT_UI_STATE["showingLogs"]
    showing_table: bool = DEFAULT_UI_STATE["showingTable"]
    # Kept as received: legacy URLs may carry a numeric strategy.
    dedup_strategy: Any = DedupStrategy(DEFAULT_UI_STATE["dedupStrategy"])

    def to_dict(self) -> dict[str, Any]:
        return {
            "showingGraph": self.showing_graph,
            "showingLogs": self.showing_logs,
            "showingTable": self.showing_table,
            "dedupStrategy": self.dedup_strategy,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any] | None) -> "UiState":
        if not isinstance(d, dict):
            return cls()
        default = cls()
        return cls(
            showing_graph=d.get("showingGraph", default.showing_graph),
            showing_logs=d.get("showingLogs", default.showing_logs),
            showing_table=d.get("showingTable", default.showing_table),
            dedup_strategy=d.get("dedupStrategy", default.dedup_strategy),
        )


@dataclass(frozen=True)
class ExploreUrlState:
    """Session state of one explore pane, as carried in its URL parameter."""

    datasource: str | None = None
    queries: list[Query] = field(default_factory=list)
    range: RawTimeRange = field(default_factory=RawTimeRange)
    ui: UiState = field(default_factory=UiState)

    def to_dict(self) -> dict[str, Any]:
        return {
            "datasource": self.datasource,
            "queries": [dict(q) for q in self.queries],
            "range": self.range.to_dict(),
            "ui": self.ui.to_dict(),
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "ExploreUrlState":
        queries = d.get("queries")
        return cls(
            datasource=d.get("datasource"),
            queries=[q for q in queries if isinstance(q, dict)] if isinstance(queries, list) else [],
            range=RawTimeRange.from_dict(d.get("range")),
            ui=UiState.from_dict(d.get("ui")),
        )


@dataclass(frozen=True)
class IntervalValues:
    interval: str
    interval_ms: int

    def to_dict(self) -> dict[str, Any]:
        return {"interval": self.interval, "intervalMs": self.interval_ms}


@dataclass(frozen=True)
class QueryTransaction:
    """Execution descriptor for one query batch.

    The execution layer records progress by replacing the whole object
    (see ``with_result``); nothing here mutates a transaction in place.
    """

    id: str
    queries: list[Query]
    options: dict[str, Any]
    result_type: ResultType
    scanning: bool = False
    done: bool = False
    latency: float = 0
    result: list[Any] | None = None
    error: str | None = None

    def with_result(self, result: list[Any], latency: float) -> "QueryTransaction":
        return replace(self, result=result, latency=latency, done=True)

    def with_error(self, error: str, latency: float) -> "QueryTransaction":
        return replace(self, error=error, latency=latency, done=True)

    def to_dict(self) -> dict[str, Any]:
        options = dict(self.options)
        time_range = options.get("range")
        if isinstance(time_range, TimeRange):
            options["range"] = time_range.to_dict()
        raw = options.get("rangeRaw")
        if isinstance(raw, RawTimeRange):
            options["rangeRaw"] = {k: _json_time(v) for k, v in raw.to_dict().items()}
        return {
            "id": self.id,
            "queries": self.queries,
            "options": options,
            "resultType": self.result_type.value,
            "scanning": self.scanning,
            "done": self.done,
            "latency": self.latency,
            "result": self.result,
            "error": self.error,
        }


@dataclass(frozen=True)
class HistoryItem:
    query: Query
    ts: int

    def to_dict(self) -> dict[str, Any]:
        return {"query": self.query, "ts": self.ts}

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "HistoryItem":
        return cls(query=d["query"], ts=int(d["ts"]))
