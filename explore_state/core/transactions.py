from __future__ import annotations

from typing import Any, Mapping

from explore_state.core.contracts import IntervalValues, Query, QueryTransaction, ResultType, TimeRange
from explore_state.core.query_keys import generate_key


def build_query_transaction(
    queries: list[Query],
    result_type: ResultType | str,
    query_options: Mapping[str, Any],
    time_range: TimeRange,
    query_intervals: IntervalValues,
    scanning: bool = False,
) -> QueryTransaction:
    """Assemble the request descriptor handed to the execution layer.

    ``panelId`` is ``<format>-<keys of all queries, in batch order>``; the
    execution layer uses it to cancel superseded requests, so it must be
    unique per request and identical when the same batch is re-issued.
    """
    interval = query_intervals.interval
    interval_ms = query_intervals.interval_ms

    configured_queries = [{**query, **query_options} for query in queries]
    combined_key = "".join(str(query.get("key", "")) for query in queries)
    panel_id = f"{query_options.get('format')}-{combined_key}"

    options = {
        "interval": interval,
        "intervalMs": interval_ms,
        "panelId": panel_id,
        # Datasources read the queries from the "targets" key.
        "targets": configured_queries,
        "range": time_range,
        "rangeRaw": time_range.raw,
        "scopedVars": {
            "__interval": {"text": interval, "value": interval},
            "__interval_ms": {"text": interval_ms, "value": interval_ms},
        },
        "maxDataPoints": query_options.get("maxDataPoints"),
    }

    return QueryTransaction(
        id=generate_key(),
        queries=queries,
        options=options,
        result_type=ResultType(result_type),
        scanning=scanning,
        done=False,
        latency=0,
    )
