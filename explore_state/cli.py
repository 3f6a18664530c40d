from __future__ import annotations

import argparse
import json
import logging
import sys

from explore_state.core.contracts import RawTimeRange
from explore_state.core.time_range import get_intervals, get_time_range_from_url
from explore_state.core.url_state import parse_url_state, serialize_state_to_url_param
from explore_state.history import HistoryStore
from explore_state.storage import JsonFileStore


def _cmd_decode(args: argparse.Namespace) -> int:
    state = parse_url_state(args.param)
    print(json.dumps(state.to_dict(), indent=2, ensure_ascii=False))
    return 0


def _cmd_encode(args: argparse.Namespace) -> int:
    payload = json.loads(args.state)
    if not isinstance(payload, dict):
        raise ValueError("state JSON must be an object")
    print(serialize_state_to_url_param(payload, compact=args.compact))
    return 0


def _cmd_history(args: argparse.Namespace) -> int:
    history = HistoryStore(JsonFileStore(args.state_dir))
    if args.action == "clear":
        history.clear(args.datasource_id)
        return 0
    rows = [item.to_dict() for item in history.load(args.datasource_id)]
    print(json.dumps(rows, indent=2, ensure_ascii=False))
    return 0


def _cmd_interval(args: argparse.Namespace) -> int:
    time_range = get_time_range_from_url(RawTimeRange(from_=args.range_from, to=args.range_to), args.timezone)
    if not time_range.is_valid:
        raise ValueError(f"Invalid time range: {args.range_from} -> {args.range_to}")
    intervals = get_intervals(time_range, args.low_limit, args.resolution)
    print(json.dumps({**time_range.to_dict(), **intervals.to_dict()}, indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Inspect and convert explore URL state and query history.")
    p.add_argument("--log-level", default="WARNING", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    sub = p.add_subparsers(dest="command", required=True)

    decode = sub.add_parser("decode", help="Decode a URL parameter (compact or full) to state JSON.")
    decode.add_argument("param", type=str)
    decode.set_defaults(func=_cmd_decode)

    encode = sub.add_parser("encode", help="Encode state JSON as a URL parameter.")
    encode.add_argument("--state", required=True, type=str, help="ExploreUrlState as a JSON object.")
    encode.add_argument("--compact", action="store_true")
    encode.set_defaults(func=_cmd_encode)

    history = sub.add_parser("history", help="Show or clear the query history of a datasource.")
    history.add_argument("action", choices=["show", "clear"])
    history.add_argument("datasource_id", type=str)
    history.add_argument("--state-dir", default=None, help="JSON store directory (default: EXPLORE_STATE_DIR).")
    history.set_defaults(func=_cmd_history)

    interval = sub.add_parser("interval", help="Resolve a range and size its query interval.")
    interval.add_argument("--from", dest="range_from", default="now-6h")
    interval.add_argument("--to", dest="range_to", default="now")
    interval.add_argument("--resolution", type=int, default=0)
    interval.add_argument("--low-limit", default=None)
    interval.add_argument("--timezone", default="utc")
    interval.set_defaults(func=_cmd_interval)

    return p


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(levelname)s %(name)s: %(message)s")

    try:
        return args.func(args)
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
