from __future__ import annotations

from explore_state.core.colors import COLORS, TimeSeries, color_index_offset, make_time_series_list
from explore_state.core.contracts import QueryTransaction, ResultType


def _tx(tx_id: str, result_type=ResultType.GRAPH, done=True, n_series=0) -> QueryTransaction:
    return QueryTransaction(
        id=tx_id,
        queries=[],
        options={},
        result_type=result_type,
        done=done,
        result=[{"target": f"{tx_id}-{i}"} for i in range(n_series)] if done else None,
    )


def test_offset_counts_prior_done_graph_transactions() -> None:
    first = _tx("t1", n_series=2)
    second = _tx("t2", n_series=3)
    current = _tx("t3", done=False)
    later = _tx("t4", n_series=7)

    series = make_time_series_list(
        [{"target": "x", "datapoints": [[1, 2]], "unit": "s"}, {"target": "y"}],
        current,
        [first, second, current, later],
    )

    assert series[0] == TimeSeries(alias="x", color=COLORS[5 % len(COLORS)], datapoints=[[1, 2]], unit="s")
    assert series[1].color == COLORS[6]
    assert series[1].datapoints == []
    assert series[1].unit is None


def test_offset_ignores_unfinished_and_non_graph_transactions() -> None:
    current = _tx("cur", done=False)
    all_tx = [
        _tx("pending", done=False),
        _tx("table", result_type=ResultType.TABLE, n_series=4),
        _tx("logs", result_type=ResultType.LOGS, n_series=4),
        _tx("graph", n_series=1),
        current,
    ]
    assert color_index_offset(current, all_tx) == 1


def test_offset_uses_identity_not_equality() -> None:
    current = _tx("same", n_series=2)
    twin = _tx("same", n_series=2)
    assert twin == current
    assert color_index_offset(current, [twin, current]) == 2


def test_palette_wraps_around() -> None:
    current = _tx("cur", done=False)
    series = make_time_series_list(
        [{"target": "a"}, {"target": "b"}],
        current,
        [_tx("prev", n_series=5), current],
        palette=("red", "green", "blue"),
    )
    assert [s.color for s in series] == ["blue", "red"]


def test_first_transaction_starts_at_first_color() -> None:
    current = _tx("cur", done=False)
    series = make_time_series_list([{"target": "a"}], current, [current])
    assert series[0].color == COLORS[0]
    assert series[0].to_dict()["alias"] == "a"


def test_failed_graph_transactions_add_no_offset() -> None:
    current = _tx("cur", done=False)
    failed = _tx("failed", done=False).with_error("boom", latency=1)
    assert color_index_offset(current, [failed, _tx("ok", n_series=2), current]) == 2
