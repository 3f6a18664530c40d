"""Query history per datasource, persisted through an injected store.

History is newest-first and capped at MAX_HISTORY_ITEMS. Every query of a
batch is prepended in turn with one shared timestamp, so a multi-query
batch lands in reverse input order.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Iterable

from explore_state.config import LAST_USED_DATASOURCE_KEY, MAX_HISTORY_ITEMS, STORAGE
from explore_state.core.contracts import HistoryItem, Query
from explore_state.storage import KeyValueStore

logger = logging.getLogger(__name__)


def history_key(datasource_id: str) -> str:
    return STORAGE.history_key(datasource_id)


class HistoryStore:
    def __init__(self, store: KeyValueStore, max_items: int = MAX_HISTORY_ITEMS) -> None:
        self.store = store
        self.max_items = max_items

    def load(self, datasource_id: str) -> list[HistoryItem]:
        """Return persisted history for a datasource, [] if missing or malformed."""
        data = self.store.get_object(history_key(datasource_id), [])
        if not isinstance(data, list):
            logger.error("History for %r is not a list; ignoring it", datasource_id)
            return []

        items: list[HistoryItem] = []
        for entry in data:
            try:
                items.append(HistoryItem.from_dict(entry))
            except (KeyError, TypeError, ValueError):
                logger.warning("Skipping malformed history entry for %r: %r", datasource_id, entry)
        return items

    def update(
        self,
        history: Iterable[HistoryItem],
        datasource_id: str,
        queries: Iterable[Query],
    ) -> list[HistoryItem]:
        """Prepend ``queries`` to ``history``, truncate, persist, and return it."""
        ts = int(time.time() * 1000)
        updated = list(history)
        for query in queries:
            updated = [HistoryItem(query=query, ts=ts), *updated]

        if len(updated) > self.max_items:
            updated = updated[: self.max_items]

        # All queries of a datasource share one history.
        self.store.set_object(history_key(datasource_id), [item.to_dict() for item in updated])
        return updated

    def clear(self, datasource_id: str) -> None:
        self.store.delete(history_key(datasource_id))


def get_query_keys(queries: list[Query], datasource_instance: Any = None) -> list[str]:
    """One display key per query, stable while datasource and batch order hold."""
    name = getattr(datasource_instance, "name", None) if datasource_instance is not None else None
    return [f"{name or query.get('key')}-{index}" for index, query in enumerate(queries)]


def get_last_used_datasource(store: KeyValueStore) -> str | None:
    return store.get(LAST_USED_DATASOURCE_KEY)


def set_last_used_datasource(store: KeyValueStore, name: str) -> None:
    store.set(LAST_USED_DATASOURCE_KEY, name)
