"""Core (pure) library layer.

This package is intended to be UI-agnostic and safe to import from:
- the HTTP API
- CLI entrypoints
- tests

It should not touch persistent storage or trigger side effects at import time.
Storage-backed pieces (history, last used datasource) live in
``explore_state.history`` and take an injected store.
"""
