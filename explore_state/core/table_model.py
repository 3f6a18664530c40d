"""Table view model and merging of tabular query results."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import pandas as pd


@dataclass
class TableModel:
    columns: list[dict[str, Any]] = field(default_factory=list)
    rows: list[list[Any]] = field(default_factory=list)
    type: str = "table"

    @property
    def column_names(self) -> list[str]:
        return [str(c.get("text", "")) for c in self.columns]

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "columns": self.columns, "rows": self.rows}

    @classmethod
    def from_raw(cls, raw: Any) -> "TableModel":
        """Build from a TableModel or a ``{"columns": ..., "rows": ...}`` mapping."""
        if isinstance(raw, TableModel):
            return raw
        columns = [c if isinstance(c, dict) else {"text": str(c)} for c in raw["columns"]]
        return cls(columns=columns, rows=[list(r) for r in raw["rows"]])


def is_table_like(raw: Any) -> bool:
    if isinstance(raw, TableModel):
        return True
    return isinstance(raw, dict) and bool(raw.get("columns")) and raw.get("rows") is not None


def merge_tables_into_model(dst: TableModel | None = None, *tables: Any) -> TableModel:
    """Merge ``tables`` into ``dst``: union of columns, rows in input order.

    Cells for columns a table does not have are filled with None.
    """
    model = dst if dst is not None else TableModel()
    sources = [TableModel.from_raw(t) for t in tables]
    if not sources:
        return model

    # A column is identified by (name, n-th occurrence of that name in its
    # table), so repeated names stay separate columns.
    union: dict[tuple[str, int], int] = {}
    columns: list[dict[str, Any]] = []
    frames = []
    for table in sources:
        seen: dict[str, int] = {}
        positions = []
        for column, name in zip(table.columns, table.column_names):
            ident = (name, seen.get(name, 0))
            seen[name] = ident[1] + 1
            if ident not in union:
                union[ident] = len(columns)
                columns.append(column)
            positions.append(union[ident])
        frames.append(pd.DataFrame(table.rows, columns=positions, dtype=object))

    merged = pd.concat(frames, ignore_index=True, sort=False)
    merged = merged.reindex(columns=range(len(columns)))
    merged = merged.astype(object).where(merged.notna(), None)

    model.columns = columns
    model.rows = merged.values.tolist()
    return model
