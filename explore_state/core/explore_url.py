"""Explore link for a dashboard panel.

A panel on the "mixed" datasource has targets from several datasources;
the link opens the first target datasource (in target order) that
supports explore, with only that datasource's targets.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol
from urllib.parse import quote, urlencode

from explore_state.core.contracts import Query

logger = logging.getLogger(__name__)

MIXED_DATASOURCE_ID = "mixed"
EXPLORE_PATH = "/explore"


class DatasourceResolver(Protocol):
    async def get(self, name: str | None) -> Any: ...


class TimeProvider(Protocol):
    def time_range_for_url(self) -> dict[str, Any]: ...


def _meta(datasource: Any, key: str) -> Any:
    meta = getattr(datasource, "meta", None)
    if isinstance(meta, dict):
        return meta.get(key)
    return getattr(meta, key, None)


def render_url(path: str, query: dict[str, Any]) -> str:
    if not query:
        return path
    return f"{path}?{urlencode(query, quote_via=quote)}"


async def find_explore_datasource(targets: list[Query], resolver: DatasourceResolver) -> Any | None:
    """Resolve target datasources one at a time; the first explore-capable one wins."""
    for target in targets:
        datasource = await resolver.get(target.get("datasource"))
        if datasource is not None and _meta(datasource, "explore"):
            return datasource
    return None


async def get_explore_url(
    panel_targets: list[Query],
    panel_datasource: Any,
    resolver: DatasourceResolver,
    time_provider: TimeProvider,
) -> str | None:
    if panel_datasource is None:
        return None

    explore_datasource = panel_datasource
    explore_targets = list(panel_targets or [])

    if _meta(panel_datasource, "id") == MIXED_DATASOURCE_ID and explore_targets:
        found = await find_explore_datasource(explore_targets, resolver)
        if found is not None:
            explore_datasource = found
            explore_targets = [t for t in explore_targets if t.get("datasource") == found.name]
        else:
            logger.info("No explore-capable datasource among mixed panel targets")

    state: dict[str, Any] = {"range": time_provider.time_range_for_url()}
    get_explore_state = getattr(explore_datasource, "get_explore_state", None)
    if callable(get_explore_state):
        state.update(get_explore_state(explore_targets))
    else:
        name = explore_datasource.name
        state.update(
            {
                "datasource": name,
                "queries": [{**t, "datasource": name} for t in explore_targets],
            }
        )

    return render_url(EXPLORE_PATH, {"left": json.dumps(state, separators=(",", ":"))})
