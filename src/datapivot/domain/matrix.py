from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Union

from datapivot.domain.key import CompositeKey

Number = Union[int, float]
Cell = tuple[CompositeKey, CompositeKey]


class DataMatrix(Mapping[Cell, Number]):
    """Aggregated values keyed by (row key, column key).

    Only cells that received at least one record are stored; ``value`` reads
    absent cells as ``0``.
    """

    def __init__(self, cells: Mapping[Cell, Number] | None = None) -> None:
        self._cells: dict[Cell, Number] = dict(cells or {})
        self._rows: dict[CompositeKey, dict[CompositeKey, Number]] = {}
        self._columns: dict[CompositeKey, dict[CompositeKey, Number]] = {}
        for (row_key, column_key), value in self._cells.items():
            self._rows.setdefault(row_key, {})[column_key] = value
            self._columns.setdefault(column_key, {})[row_key] = value

    def __getitem__(self, cell: Cell) -> Number:
        return self._cells[cell]

    def __iter__(self) -> Iterator[Cell]:
        return iter(self._cells)

    def __len__(self) -> int:
        return len(self._cells)

    def __repr__(self) -> str:
        return f"DataMatrix({len(self._cells)} cells)"

    def value(self, row_key: CompositeKey, column_key: CompositeKey, default: Number = 0) -> Number:
        return self._cells.get((row_key, column_key), default)

    def row(self, row_key: CompositeKey) -> dict[CompositeKey, Number]:
        return dict(self._rows.get(row_key, {}))

    def column(self, column_key: CompositeKey) -> dict[CompositeKey, Number]:
        return dict(self._columns.get(column_key, {}))

    def bounds(self) -> tuple[Number, Number] | None:
        """Return (min, max) over present cells, or None when empty."""
        if not self._cells:
            return None
        values = self._cells.values()
        return min(values), max(values)

    def total(self) -> Number:
        return sum(self._cells.values())
