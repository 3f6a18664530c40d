"""State codec and query-transaction pipeline for a query-exploration pane."""

__version__ = "0.1.0"
