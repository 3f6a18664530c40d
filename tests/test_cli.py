from __future__ import annotations

import json
from pathlib import Path

from explore_state.cli import main
from explore_state.history import HistoryStore
from explore_state.storage import JsonFileStore


def test_decode_legacy_compact_param(capsys) -> None:
    param = '["now-1h","now","Loki",{"expr":"{job=\\"x\\"}"},{"ui":[true,false,true,"exact"]}]'
    assert main(["decode", param]) == 0

    state = json.loads(capsys.readouterr().out)
    assert state["datasource"] == "Loki"
    assert state["range"] == {"from": "now-1h", "to": "now"}
    assert state["queries"] == [{"expr": '{job="x"}'}]
    assert state["ui"]["showingLogs"] is False
    assert state["ui"]["dedupStrategy"] == "exact"


def test_decode_garbage_prints_default_state(capsys) -> None:
    assert main(["decode", "not-json"]) == 0
    state = json.loads(capsys.readouterr().out)
    assert state["datasource"] is None
    assert state["range"] == {"from": "now-6h", "to": "now"}


def test_encode_compact(capsys) -> None:
    state = {"datasource": "prom", "queries": [{"expr": "up"}], "range": {"from": "now-1h", "to": "now"}}
    assert main(["encode", "--state", json.dumps(state), "--compact"]) == 0

    param = capsys.readouterr().out.strip()
    decoded = json.loads(param)
    assert decoded[:3] == ["now-1h", "now", "prom"]
    assert decoded[3] == {"kind": "query", "payload": {"expr": "up"}}


def test_encode_rejects_non_object(capsys) -> None:
    assert main(["encode", "--state", "[1, 2]"]) == 2
    assert "error:" in capsys.readouterr().err


def test_history_show_and_clear(tmp_path: Path, capsys) -> None:
    HistoryStore(JsonFileStore(tmp_path)).update([], "prom", [{"expr": "up"}])

    assert main(["history", "show", "prom", "--state-dir", str(tmp_path)]) == 0
    rows = json.loads(capsys.readouterr().out)
    assert [r["query"] for r in rows] == [{"expr": "up"}]

    assert main(["history", "clear", "prom", "--state-dir", str(tmp_path)]) == 0
    assert main(["history", "show", "prom", "--state-dir", str(tmp_path)]) == 0
    assert json.loads(capsys.readouterr().out) == []


def test_interval_for_absolute_day(capsys) -> None:
    assert main(["interval", "--from", "20240101", "--to", "20240102", "--resolution", "100"]) == 0
    out = json.loads(capsys.readouterr().out)
    assert out["intervalMs"] == 900_000
    assert out["interval"] == "15m"
    assert out["from"].startswith("2024-01-01T00:00:00")


def test_interval_without_resolution_is_single_point(capsys) -> None:
    assert main(["interval", "--from", "now-1h", "--to", "now"]) == 0
    out = json.loads(capsys.readouterr().out)
    assert (out["interval"], out["intervalMs"]) == ("1s", 1000)


def test_interval_invalid_range_fails(capsys) -> None:
    assert main(["interval", "--from", "garbage", "--to", "now"]) == 2
    assert "Invalid time range" in capsys.readouterr().err
