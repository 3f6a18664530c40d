"""Identity for queries: synthetic keys and per-batch refId letters."""

from __future__ import annotations

import random
import string
import time
from typing import Any, Iterable

from explore_state.core.contracts import Query

REF_ID_CHARS = string.ascii_uppercase


def generate_key(index: int = 0) -> str:
    """Return a session-unique key; also reused as a transaction id."""
    return f"Q-{int(time.time() * 1000)}-{random.random()}-{index}"


def get_next_ref_id_char(queries: Iterable[Query] | None) -> str:
    """Return the first letter not already used as a refId in ``queries``."""
    used = {q.get("refId") for q in (queries or [])}
    for ch in REF_ID_CHARS:
        if ch not in used:
            return ch
    # More than 26 queries: fall back to numbered ids, still unique.
    n = len(REF_ID_CHARS)
    while f"{REF_ID_CHARS[n % 26]}{n // 26}" in used:
        n += 1
    return f"{REF_ID_CHARS[n % 26]}{n // 26}"


def generate_empty_query(queries: Iterable[Query] | None = None, index: int = 0) -> Query:
    return {"refId": get_next_ref_id_char(queries), "key": generate_key(index)}


def ensure_queries(queries: list[Query] | None = None) -> list[Query]:
    """Ensure at least one query exists and that every query is keyed.

    Existing refIds are kept unless an earlier query in the output already
    claimed the same letter.
    """
    if not queries:
        return [generate_empty_query()]

    all_queries: list[Query] = []
    for index, query in enumerate(queries):
        ref_id = query.get("refId")
        if not ref_id or any(q["refId"] == ref_id for q in all_queries):
            ref_id = get_next_ref_id_char(all_queries)
        all_queries.append({**query, "refId": ref_id, "key": generate_key(index)})
    return all_queries


def has_non_empty_query(queries: list[Query] | None) -> bool:
    """A query is non-empty when it has truthy values beyond refId and key."""
    return bool(queries) and any(
        len([v for v in query.values() if v]) > 2 for query in queries
    )


def clear_query_keys(query: Query) -> dict[str, Any]:
    return {k: v for k, v in query.items() if k not in ("key", "refId")}
