from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Sequence

from explore_state.core.contracts import QueryTransaction, ResultType

# Series palette. Keep the first entries highly distinguishable; the
# sequence repeats once a graph holds more series than colors.
COLORS: tuple[str, ...] = (
    "#7EB26D",  # green
    "#EAB839",  # yellow
    "#6ED0E0",  # light blue
    "#EF843C",  # orange
    "#E24D42",  # red
    "#1F78C1",  # blue
    "#BA43A9",  # purple
    "#705DA0",  # violet
    "#508642",
    "#CCA300",
    "#447EBC",
    "#C15C17",
    "#890F02",
    "#0A437C",
    "#6D1F62",
    "#584477",
    "#B7DBAB",
    "#F4D598",
    "#70DBED",
    "#F9BA8F",
    "#F29191",
    "#82B5D8",
    "#E5A8E2",
    "#AEA2E0",
    "#629E51",
    "#E5AC0E",
    "#64B0C8",
    "#E0752D",
    "#BF1B00",
    "#0A50A1",
    "#962D82",
    "#614D93",
    "#9AC48A",
    "#F2C96D",
    "#65C5DB",
    "#F9934E",
    "#EA6460",
    "#5195CE",
    "#D683CE",
    "#806EB7",
    "#3F6833",
    "#967302",
    "#2F575E",
    "#99440A",
    "#58140C",
    "#052B51",
    "#511749",
    "#3F2B5B",
    "#E0F9D7",
    "#FCEACA",
    "#CFFAFF",
    "#F9E2D2",
    "#FCE2DE",
    "#BADFF4",
    "#F9D9F9",
    "#DEDAF7",
)


@dataclass(frozen=True)
class TimeSeries:
    alias: str | None
    color: str
    datapoints: list[Any] = field(default_factory=list)
    unit: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"alias": self.alias, "color": self.color, "datapoints": self.datapoints, "unit": self.unit}


def color_index_offset(transaction: QueryTransaction, all_transactions: Sequence[QueryTransaction]) -> int:
    """Count series of finished Graph transactions listed before ``transaction``."""
    offset = 0
    for other in all_transactions:
        if other is transaction:
            break
        if other.result_type == ResultType.GRAPH and other.done:
            offset += len(other.result or [])
    return offset


def make_time_series_list(
    data_list: Sequence[dict[str, Any]],
    transaction: QueryTransaction,
    all_transactions: Sequence[QueryTransaction],
    palette: Sequence[str] = COLORS,
) -> list[TimeSeries]:
    """Color the series of ``transaction`` so they don't repeat earlier graphs' colors."""
    offset = color_index_offset(transaction, all_transactions)
    return [
        TimeSeries(
            datapoints=series_data.get("datapoints") or [],
            alias=series_data.get("target"),
            color=palette[(offset + index) % len(palette)],
            unit=series_data.get("unit"),
        )
        for index, series_data in enumerate(data_list)
    ]
