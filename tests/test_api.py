from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from api.main import app, get_store
from explore_state.core.contracts import IntervalValues
from explore_state.storage import MemoryStore


@pytest.fixture
def store():
    return MemoryStore()


# Fixture for the test client, with the JSON file store swapped for memory
@pytest.fixture
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def test_health_check(client: TestClient):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_parse_compact_param(client: TestClient):
    param = '["now-15m","now","prom",{"kind":"query","payload":{"expr":"up"}},{"kind":"ui","payload":[false,true,true,"numbers"]}]'
    response = client.post("/url-state/parse", json={"param": param})

    assert response.status_code == 200
    body = response.json()
    assert body["datasource"] == "prom"
    assert body["queries"] == [{"expr": "up"}]
    assert body["range"] == {"from": "now-15m", "to": "now"}
    assert body["ui"] == {"showingGraph": False, "showingLogs": True, "showingTable": True, "dedupStrategy": "numbers"}


def test_parse_malformed_param_gives_default_state(client: TestClient):
    response = client.post("/url-state/parse", json={"param": "[1, 2"})
    assert response.status_code == 200
    assert response.json()["range"] == {"from": "now-6h", "to": "now"}
    assert response.json()["queries"] == []


def test_serialize_full_form(client: TestClient):
    response = client.post(
        "/url-state/serialize",
        json={"state": {"datasource": "prom", "queries": [{"expr": "up"}]}},
    )
    assert response.status_code == 200
    param = response.json()["param"]
    assert param.startswith("{")
    assert '"datasource":"prom"' in param


def test_create_transaction(client: TestClient):
    response = client.post(
        "/transactions",
        json={
            "queries": [{"expr": "up"}],
            "resultType": "Graph",
            "queryOptions": {"format": "time_series", "maxDataPoints": 100},
            "range": {"from": "now-1h", "to": "now"},
            "resolution": 100,
        },
    )

    assert response.status_code == 200
    tx = response.json()
    assert tx["resultType"] == "Graph"
    assert tx["done"] is False
    assert tx["latency"] == 0
    assert tx["queries"][0]["refId"] == "A"
    assert tx["options"]["interval"] == "30s"
    assert tx["options"]["intervalMs"] == 30_000
    assert tx["options"]["panelId"].startswith("time_series-Q-")
    assert tx["options"]["targets"][0]["format"] == "time_series"
    assert tx["options"]["rangeRaw"] == {"from": "now-1h", "to": "now"}


def test_create_transaction_invalid_range(client: TestClient):
    response = client.post("/transactions", json={"range": {"from": "bogus", "to": "now"}, "resolution": 100})
    assert response.status_code == 400
    assert "Invalid time range" in response.json()["detail"]


def test_create_transaction_bad_low_limit(client: TestClient):
    response = client.post(
        "/transactions",
        json={"range": {"from": "now-1h", "to": "now"}, "resolution": 100, "lowLimit": "soon"},
    )
    assert response.status_code == 400


def test_create_transaction_unknown_result_type(client: TestClient):
    response = client.post("/transactions", json={"range": {"from": "now-1h", "to": "now"}, "resultType": "Heatmap"})
    assert response.status_code == 422


def test_history_endpoints(client: TestClient, store: MemoryStore):
    assert client.get("/history/prom").json() == []

    client.post("/history/prom", json={"queries": [{"expr": "a"}]})
    response = client.post("/history/prom", json={"queries": [{"expr": "b"}, {"expr": "c"}]})
    assert response.status_code == 200
    assert [h["query"]["expr"] for h in response.json()] == ["c", "b", "a"]

    assert [h["query"]["expr"] for h in client.get("/history/prom").json()] == ["c", "b", "a"]
    assert store.get("explore.history.prom") is not None

    assert client.delete("/history/prom").json() == {"status": "cleared"}
    assert client.get("/history/prom").json() == []


@patch("api.main.get_intervals")
def test_create_transaction_uses_computed_intervals(mock_get_intervals, client: TestClient):
    mock_get_intervals.return_value = IntervalValues(interval="7s", interval_ms=7000)

    response = client.post(
        "/transactions",
        json={"range": {"from": "now-1h", "to": "now"}, "resolution": 300, "lowLimit": ">5s"},
    )

    assert response.status_code == 200
    assert response.json()["options"]["scopedVars"]["__interval"] == {"text": "7s", "value": "7s"}
    args, _ = mock_get_intervals.call_args
    assert args[1:] == (">5s", 300)
