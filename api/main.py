from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Literal, Optional

from explore_state.core.contracts import RawTimeRange
from explore_state.core.query_keys import ensure_queries
from explore_state.core.time_range import get_intervals, get_time_range_from_url
from explore_state.core.transactions import build_query_transaction
from explore_state.core.url_state import parse_url_state, serialize_state_to_url_param
from explore_state.history import HistoryStore
from explore_state.storage import JsonFileStore, KeyValueStore

app = FastAPI(
    title="Explore State API",
    description="Encode/decode explore URL state, build query transactions and manage query history.",
    version="0.1.0",
)


def get_store() -> KeyValueStore:
    return JsonFileStore()


class ParseRequest(BaseModel):
    param: str


class SerializeRequest(BaseModel):
    state: Dict[str, Any]
    compact: bool = False


class RangeRaw(BaseModel):
    start: str = Field(..., alias="from")
    end: str = Field(..., alias="to")


class TransactionRequest(BaseModel):
    queries: List[Dict[str, Any]] = []
    resultType: Literal["Graph", "Table", "Logs"] = "Graph"
    queryOptions: Dict[str, Any] = {}
    range: RangeRaw
    timezone: str = "utc"
    resolution: Optional[int] = None
    lowLimit: Optional[str] = None
    scanning: bool = False


class HistoryRequest(BaseModel):
    queries: List[Dict[str, Any]]


@app.get("/health", summary="Health check", response_description="API health status")
async def health_check():
    return {"status": "ok"}


@app.post("/url-state/parse", summary="Decode an explore URL parameter")
async def parse_state(request: ParseRequest):
    """Malformed parameters decode to the default state; this endpoint never fails on input."""
    return parse_url_state(request.param).to_dict()


@app.post("/url-state/serialize", summary="Encode explore state as a URL parameter")
async def serialize_state(request: SerializeRequest):
    return {"param": serialize_state_to_url_param(request.state, compact=request.compact)}


@app.post("/transactions", summary="Build a query transaction for a batch")
async def create_transaction(request: TransactionRequest):
    raw = RawTimeRange(from_=request.range.start, to=request.range.end)
    time_range = get_time_range_from_url(raw, request.timezone)
    if not time_range.is_valid:
        raise HTTPException(status_code=400, detail=f"Invalid time range: {raw.to_dict()}")

    try:
        intervals = get_intervals(time_range, request.lowLimit, request.resolution)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    queries = ensure_queries(request.queries)
    transaction = build_query_transaction(
        queries,
        request.resultType,
        request.queryOptions,
        time_range,
        intervals,
        request.scanning,
    )
    return transaction.to_dict()


@app.get("/history/{datasource_id}", summary="Query history of a datasource")
async def read_history(datasource_id: str, store: KeyValueStore = Depends(get_store)):
    return [item.to_dict() for item in HistoryStore(store).load(datasource_id)]


@app.post("/history/{datasource_id}", summary="Record executed queries")
async def add_history(datasource_id: str, request: HistoryRequest, store: KeyValueStore = Depends(get_store)):
    history = HistoryStore(store)
    updated = history.update(history.load(datasource_id), datasource_id, request.queries)
    return [item.to_dict() for item in updated]


@app.delete("/history/{datasource_id}", summary="Clear the query history of a datasource")
async def delete_history(datasource_id: str, store: KeyValueStore = Depends(get_store)):
    HistoryStore(store).clear(datasource_id)
    return {"status": "cleared"}
