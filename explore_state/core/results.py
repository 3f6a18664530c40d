"""Aggregate raw per-query results into the graph, table or logs view model."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable

from explore_state.core.contracts import ResultType
from explore_state.core.logs_model import LogsModel, guess_field_types, series_data_to_logs_model, to_series_data
from explore_state.core.table_model import TableModel, is_table_like, merge_tables_into_model


@dataclass(frozen=True)
class QueryResults:
    graph_result: list[Any] | None
    table_result: TableModel
    logs_result: LogsModel | None


def flatten_results(raw_results: Iterable[Any] | None) -> list[Any]:
    """Flatten one level: each query may return a list of series/tables."""
    flattened: list[Any] = []
    for item in raw_results or []:
        if isinstance(item, (list, tuple)):
            flattened.extend(item)
        else:
            flattened.append(item)
    return flattened


def calculate_results(
    raw_results: list[Any] | None,
    result_type: ResultType | str,
    graph_interval: int | None,
) -> QueryResults:
    """Build the view model for ``result_type``.

    The table model is never None so renderers always get a valid shape.
    Graph results are passed through unconverted.
    """
    result_type = ResultType(result_type)
    flattened = flatten_results(raw_results)
    has_results = raw_results is not None

    graph_result = flattened if result_type == ResultType.GRAPH and has_results else None

    if result_type == ResultType.TABLE and has_results:
        table_result = merge_tables_into_model(TableModel(), *[r for r in flattened if is_table_like(r)])
    else:
        table_result = merge_tables_into_model(TableModel())

    logs_result = None
    if result_type == ResultType.LOGS and has_results:
        series = [guess_field_types(to_series_data(r)) for r in flattened]
        logs_result = series_data_to_logs_model(series, graph_interval)

    return QueryResults(graph_result=graph_result, table_result=table_result, logs_result=logs_result)
