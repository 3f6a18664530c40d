"""Key-value storage for persisted explore state.

The core never reaches for a global store: history and the last used
datasource take a ``KeyValueStore``, created and torn down by the hosting
application.

``JsonFileStore`` keeps one file per key under a directory (by default
``ui_state/explore/``); ``MemoryStore`` is for tests and short-lived sessions.
Readers are tolerant: missing or malformed entries read as the default.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Protocol, runtime_checkable
from urllib.parse import quote

from explore_state.config import get_state_dir

logger = logging.getLogger(__name__)


@runtime_checkable
class KeyValueStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...

    def get_object(self, key: str, default: Any = None) -> Any: ...

    def set_object(self, key: str, obj: Any) -> None: ...


class _JsonObjectMixin:
    def get_object(self, key: str, default: Any = None) -> Any:
        raw = self.get(key)  # type: ignore[attr-defined]
        if raw is None or raw == "":
            return default
        try:
            return json.loads(raw)
        except ValueError:
            logger.error("Stored value for %r is not valid JSON; ignoring it", key)
            return default

    def set_object(self, key: str, obj: Any) -> None:
        self.set(key, json.dumps(obj, ensure_ascii=False))  # type: ignore[attr-defined]


class MemoryStore(_JsonObjectMixin):
    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._data)


def _file_stem(key: str) -> str:
    # Percent-encoding keeps distinct keys in distinct files ("a/b" vs "a_b").
    return quote(str(key), safe="")


class JsonFileStore(_JsonObjectMixin):
    """One ``<key>.json`` file per key under ``root``."""

    def __init__(self, root: str | Path | None = None) -> None:
        self.root = Path(root) if root is not None else Path(get_state_dir())

    def path_for(self, key: str) -> Path:
        return self.root / f"{_file_stem(key)}.json"

    def get(self, key: str) -> str | None:
        path = self.path_for(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.error("Failed to read %s: %s", path, exc)
            return None

    def set(self, key: str, value: str) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        self.path_for(key).write_text(value, encoding="utf-8")

    def delete(self, key: str) -> None:
        self.path_for(key).unlink(missing_ok=True)
