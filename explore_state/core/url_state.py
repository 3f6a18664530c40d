"""Explore session state <-> URL parameter.

Two encodings are accepted:

- Full: the JSON object form of ``ExploreUrlState``.
- Compact: a positional JSON array
  ``[from, to, datasource, <segment>..., <ui segment>]``.

Compact segments are written tagged, ``{"kind": "query", "payload": {...}}``
and ``{"kind": "ui", "payload": [graph, logs, table, dedup]}``. Links written
before tagging carry bare segments; those are told apart by their fields
(a query has one of ``expr``/``target``/``datasource``, the UI segment has
``ui``).

Serialized parameters are percent-encoded (JSON punctuation left readable),
so parsing, which URI-decodes first, is their exact inverse.

Parsing never raises: anything malformed is logged and replaced by the
full default state.
"""

from __future__ import annotations

import json
import logging
from enum import IntEnum
from typing import Any
from urllib.parse import quote, unquote

from explore_state.core.contracts import ExploreUrlState, Query, RawTimeRange, UiState

logger = logging.getLogger(__name__)

METRIC_PROPERTIES = ("expr", "target", "datasource")
SEGMENT_KINDS = ("query", "ui")
# JSON punctuation stays readable; everything else, "%" included, is escaped.
URL_SAFE_CHARS = '[]{}:,"'


class UrlStateIndex(IntEnum):
    RANGE_FROM = 0
    RANGE_TO = 1
    DATASOURCE = 2
    SEGMENTS_START = 3


class UiStateIndex(IntEnum):
    GRAPH = 0
    LOGS = 1
    TABLE = 2
    STRATEGY = 3


def safe_parse_json(text: str | None) -> Any:
    """URI-decode and parse ``text``; None when empty or malformed."""
    if not text:
        return None
    try:
        return json.loads(unquote(text))
    except (ValueError, TypeError) as exc:
        logger.error("Could not parse JSON URL state: %s", exc)
        return None


def safe_stringify_value(value: Any, indent: int | None = None) -> str:
    if not value:
        return ""
    try:
        if indent is None:
            return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
        return json.dumps(value, indent=indent, ensure_ascii=False)
    except (TypeError, ValueError) as exc:
        logger.error("Could not serialize value to JSON: %s", exc)
        return ""


def _is_tagged(segment: dict[str, Any]) -> bool:
    return set(segment) == {"kind", "payload"} and segment["kind"] in SEGMENT_KINDS


def _is_metric_segment(segment: dict[str, Any]) -> bool:
    return any(prop in segment for prop in METRIC_PROPERTIES)


def _is_ui_segment(segment: dict[str, Any]) -> bool:
    return "ui" in segment


def _ui_from_segment(values: Any) -> UiState:
    if isinstance(values, dict):
        return UiState.from_dict(values)
    if not isinstance(values, list):
        logger.error("Ignoring malformed UI segment in URL state: %r", values)
        return UiState()

    default = UiState()

    def at(index: UiStateIndex, fallback: Any) -> Any:
        return values[index] if len(values) > index else fallback

    return UiState(
        showing_graph=at(UiStateIndex.GRAPH, default.showing_graph),
        showing_logs=at(UiStateIndex.LOGS, default.showing_logs),
        showing_table=at(UiStateIndex.TABLE, default.showing_table),
        dedup_strategy=at(UiStateIndex.STRATEGY, default.dedup_strategy),
    )


def _split_segments(segments: list[Any]) -> tuple[list[Query], list[Any]]:
    queries: list[Query] = []
    ui_values: list[Any] = []
    for segment in segments:
        if not isinstance(segment, dict):
            logger.warning("Skipping non-object URL state segment: %r", segment)
            continue
        if _is_tagged(segment):
            payload = segment["payload"]
            if segment["kind"] == "query":
                if isinstance(payload, dict):
                    queries.append(payload)
                else:
                    logger.warning("Skipping query segment without object payload")
            else:
                ui_values.append(payload)
            continue
        if _is_metric_segment(segment):
            queries.append(segment)
        if _is_ui_segment(segment):
            ui_values.append(segment["ui"])
    return queries, ui_values


def parse_url_state(initial: str | None) -> ExploreUrlState:
    parsed = safe_parse_json(initial)
    if parsed is None:
        return ExploreUrlState()

    if not isinstance(parsed, list):
        if isinstance(parsed, dict):
            return ExploreUrlState.from_dict(parsed)
        logger.error("URL state is neither an object nor an array: %r", parsed)
        return ExploreUrlState()

    if len(parsed) <= UrlStateIndex.SEGMENTS_START:
        logger.error("Error parsing compact URL state for Explore.")
        return ExploreUrlState()

    time_range = RawTimeRange(
        from_=parsed[UrlStateIndex.RANGE_FROM],
        to=parsed[UrlStateIndex.RANGE_TO],
    )
    datasource = parsed[UrlStateIndex.DATASOURCE]
    queries, ui_values = _split_segments(parsed[UrlStateIndex.SEGMENTS_START:])
    ui = _ui_from_segment(ui_values[0]) if ui_values else UiState()

    return ExploreUrlState(datasource=datasource, queries=queries, range=time_range, ui=ui)


def serialize_state_to_url_param(url_state: ExploreUrlState | dict[str, Any], compact: bool = False) -> str:
    """Encode state for the URL; ``parse_url_state`` unquotes it back.

    A plain dict is written verbatim in the full form, unknown keys included.
    """
    if not compact:
        payload = url_state if isinstance(url_state, dict) else url_state.to_dict()
        return quote(safe_stringify_value(payload), safe=URL_SAFE_CHARS)

    if isinstance(url_state, dict):
        url_state = ExploreUrlState.from_dict(url_state)

    ui = url_state.ui
    text = safe_stringify_value(
        [
            url_state.range.from_,
            url_state.range.to,
            url_state.datasource,
            *({"kind": "query", "payload": query} for query in url_state.queries),
            {
                "kind": "ui",
                "payload": [
                    bool(ui.showing_graph),
                    bool(ui.showing_logs),
                    bool(ui.showing_table),
                    ui.dedup_strategy,
                ],
            },
        ]
    )
    return quote(text, safe=URL_SAFE_CHARS)
