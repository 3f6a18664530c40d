# explore_state/config.py

import os
from dataclasses import dataclass, field

# --- Base paths ---
# Project root can be overridden if needed (e.g. for tests or deployment)
BASE_DIR = os.path.abspath(os.getenv("EXPLORE_BASE_DIR", os.path.join(os.path.dirname(__file__), "..")))


# ---------------------------
# Structured configuration
# ---------------------------

@dataclass(frozen=True)
class StorageConfig:
    """Where persisted explore state lives.

    Values can be overridden via environment variables:
    - EXPLORE_STATE_DIR
    - EXPLORE_MAX_HISTORY_ITEMS
    """

    state_dir: str = field(
        default_factory=lambda: os.getenv(
            "EXPLORE_STATE_DIR", os.path.join(BASE_DIR, "ui_state", "explore")
        )
    )
    max_history_items: int = field(
        default_factory=lambda: int(os.getenv("EXPLORE_MAX_HISTORY_ITEMS", "100"))
    )
    last_used_datasource_key: str = "explore.datasource"
    history_key_prefix: str = "explore.history"

    def history_key(self, datasource_id: str) -> str:
        return f"{self.history_key_prefix}.{datasource_id}"


@dataclass(frozen=True)
class ExploreDefaultsConfig:
    """Defaults for a fresh explore session.

    EXPLORE_TIMEZONE selects the timezone used when resolving URL ranges
    ("browser" = local time, "utc", or an IANA zone name).
    """

    range_from: str = "now-6h"
    range_to: str = "now"
    showing_graph: bool = True
    showing_logs: bool = True
    showing_table: bool = True
    dedup_strategy: str = "none"
    timezone: str = field(default_factory=lambda: os.getenv("EXPLORE_TIMEZONE", "browser"))
    single_point_interval: str = "1s"
    single_point_interval_ms: int = 1000


STORAGE = StorageConfig()
EXPLORE_DEFAULTS = ExploreDefaultsConfig()

# Backwards-compatible flat aliases
MAX_HISTORY_ITEMS = STORAGE.max_history_items
LAST_USED_DATASOURCE_KEY = STORAGE.last_used_datasource_key
HISTORY_KEY_PREFIX = STORAGE.history_key_prefix
DEFAULT_TIMEZONE = EXPLORE_DEFAULTS.timezone

DEFAULT_RANGE = {
    "from": EXPLORE_DEFAULTS.range_from,
    "to": EXPLORE_DEFAULTS.range_to,
}

DEFAULT_UI_STATE = {
    "showingGraph": EXPLORE_DEFAULTS.showing_graph,
    "showingLogs": EXPLORE_DEFAULTS.showing_logs,
    "showingTable": EXPLORE_DEFAULTS.showing_table,
    "dedupStrategy": EXPLORE_DEFAULTS.dedup_strategy,
}


def get_state_dir() -> str:
    """Return the JSON store root, honouring a late EXPLORE_STATE_DIR override."""
    return os.getenv("EXPLORE_STATE_DIR", STORAGE.state_dir)
