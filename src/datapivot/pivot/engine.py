from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Sequence, Union

from datapivot.config.pivot import HeatmapConfig, PivotConfig
from datapivot.domain.key import CompositeKey
from datapivot.domain.matrix import DataMatrix
from datapivot.domain.record import FieldNotFoundError, Record, Scalar, is_number
from datapivot.pivot.aggregation import (
    AggregationMode,
    InvalidValueError,
    reduce_values,
)
from datapivot.pivot.headers import HeaderSpan, merge_headers
from datapivot.pivot.heatmap import Color, HeatmapNormalizer, LegendEntry
from datapivot.pivot.keygen import KeyGenerator

logger = logging.getLogger(__name__)

RecordLike = Union[Record, Mapping[str, Any]]


@dataclass(frozen=True)
class ColumnGroup:
    key: CompositeKey
    records: tuple[Record, ...]

    @property
    def label(self) -> str:
        return self.key.label


@dataclass(frozen=True)
class Aggregation:
    """Grouped and reduced pivot data, ordered by composite key."""

    column_groups: list[ColumnGroup]
    row_headers: list[CompositeKey]
    matrix: DataMatrix

    @property
    def column_keys(self) -> list[CompositeKey]:
        return [group.key for group in self.column_groups]


class PivotAccumulator:
    """Collect records into row x column cells, then reduce them.

    Records may be added in any number of batches; ``result`` always sorts
    and reduces the full set, so batching does not change the output.
    """

    def __init__(
        self,
        row_fields: Sequence[str],
        column_fields: Sequence[str],
        value_field: str,
        mode: AggregationMode | str = AggregationMode.SUM,
    ) -> None:
        self.mode = AggregationMode.parse(mode)
        self.rows = KeyGenerator(row_fields)
        self.columns = KeyGenerator(column_fields)
        self.value_field = value_field
        self.record_count = 0
        self._column_records: dict[CompositeKey, list[Record]] = {}
        self._row_keys: set[CompositeKey] = set()
        self._cells: dict[tuple[CompositeKey, CompositeKey], list[Scalar]] = {}

    def _value_of(self, record: Record) -> Scalar:
        try:
            value = record[self.value_field]
        except FieldNotFoundError as exc:
            raise InvalidValueError(
                f"value field {self.value_field!r} missing from record {record!r}",
                field=self.value_field,
                record=record,
            ) from exc
        except TypeError as exc:
            raise InvalidValueError(
                f"{exc} in record {record!r}",
                field=self.value_field,
                record=record,
            ) from exc
        if self.mode.numeric and not is_number(value):
            raise InvalidValueError(
                f"{self.mode.value} needs a numeric {self.value_field!r}, got {value!r} in record {record!r}",
                field=self.value_field,
                record=record,
            )
        return value

    def add(self, item: RecordLike) -> None:
        record = Record.coerce(item)
        row_key = self.rows.generate(record)
        column_key = self.columns.generate(record)
        value = self._value_of(record)

        self._column_records.setdefault(column_key, []).append(record)
        self._row_keys.add(row_key)
        self._cells.setdefault((row_key, column_key), []).append(value)
        self.record_count += 1

    def extend(self, items: Iterable[RecordLike]) -> "PivotAccumulator":
        for item in items:
            self.add(item)
        return self

    def result(self) -> Aggregation:
        column_groups = [
            ColumnGroup(key=key, records=tuple(self._column_records[key]))
            for key in sorted(self._column_records)
        ]
        row_headers = sorted(self._row_keys)
        matrix = DataMatrix(
            {cell: reduce_values(values, self.mode) for cell, values in sorted(self._cells.items())}
        )
        logger.debug(
            "Aggregated %d records into %d rows x %d columns (%d cells, mode=%s)",
            self.record_count,
            len(row_headers),
            len(column_groups),
            len(matrix),
            self.mode.value,
        )
        return Aggregation(column_groups=column_groups, row_headers=row_headers, matrix=matrix)


def aggregate(
    records: Iterable[RecordLike],
    row_fields: Sequence[str],
    column_fields: Sequence[str],
    value_field: str,
    mode: AggregationMode | str = AggregationMode.SUM,
) -> Aggregation:
    """Group ``records`` by row and column keys and reduce each cell by ``mode``."""
    return PivotAccumulator(row_fields, column_fields, value_field, mode).extend(records).result()


@dataclass(frozen=True)
class PivotResult:
    """Everything a renderer needs; no aggregation logic left to do."""

    row_fields: tuple[str, ...]
    column_fields: tuple[str, ...]
    value_field: str
    aggregation: AggregationMode
    column_groups: list[ColumnGroup]
    row_headers: list[CompositeKey]
    matrix: DataMatrix
    column_spans: list[list[HeaderSpan]]
    row_spans: list[list[HeaderSpan]]
    colors: dict[tuple[CompositeKey, CompositeKey], Color] = field(default_factory=dict)
    legend: list[LegendEntry] = field(default_factory=list)
    heatmap: HeatmapConfig | None = None

    @property
    def column_keys(self) -> list[CompositeKey]:
        return [group.key for group in self.column_groups]

    def value(self, row_key: CompositeKey, column_key: CompositeKey):
        return self.matrix.value(row_key, column_key)

    def color(self, row_key: CompositeKey, column_key: CompositeKey) -> Color | None:
        return self.colors.get((row_key, column_key))

    def to_dict(self) -> dict[str, Any]:
        def spans(levels: list[list[HeaderSpan]]) -> list[list[dict[str, Any]]]:
            return [
                [{"label": s.label, "span": s.span, "start": s.start} for s in level]
                for level in levels
            ]

        payload: dict[str, Any] = {
            "rows": list(self.row_fields),
            "columns": list(self.column_fields),
            "value": self.value_field,
            "aggregation": self.aggregation.value,
            "column_groups": [
                {"key": list(group.key.parts), "label": group.label, "size": len(group.records)}
                for group in self.column_groups
            ],
            "row_headers": [
                {"key": list(key.parts), "label": key.label} for key in self.row_headers
            ],
            "column_spans": spans(self.column_spans),
            "row_spans": spans(self.row_spans),
            "matrix": [
                [self.matrix.value(row_key, column_key) for column_key in self.column_keys]
                for row_key in self.row_headers
            ],
        }
        if self.heatmap is not None:
            payload["heatmap"] = {
                "scope": self.heatmap.scope.value,
                "colors": [
                    [self.colors[(row_key, column_key)].hex for column_key in self.column_keys]
                    for row_key in self.row_headers
                ],
            }
            if self.heatmap.show_legend:
                payload["heatmap"]["legend"] = [
                    {"color": entry.color.hex, "start": entry.start, "end": entry.end, "label": entry.label}
                    for entry in self.legend
                ]
        return payload


def build_pivot(records: Iterable[RecordLike], config: PivotConfig) -> PivotResult:
    """Aggregate ``records`` and derive header spans, colors and legend."""
    grouped = aggregate(
        records,
        config.rows,
        config.columns,
        config.value,
        config.aggregation,
    )
    column_keys = grouped.column_keys
    column_spans = merge_headers(column_keys, len(config.columns))
    row_spans = merge_headers(grouped.row_headers, len(config.rows))

    colors: dict[tuple[CompositeKey, CompositeKey], Color] = {}
    legend_entries: list[LegendEntry] = []
    heatmap = config.heatmap
    if heatmap is not None:
        normalizer = HeatmapNormalizer(grouped.matrix, heatmap.scope, heatmap.color_scale())
        colors = normalizer.cell_colors(grouped.row_headers, column_keys)
        if heatmap.show_legend:
            legend_entries = normalizer.legend(heatmap.legend_steps)
        logger.debug("Heatmap scope=%s colored %d cells", heatmap.scope.value, len(colors))

    return PivotResult(
        row_fields=tuple(config.rows),
        column_fields=tuple(config.columns),
        value_field=config.value,
        aggregation=config.aggregation,
        column_groups=grouped.column_groups,
        row_headers=grouped.row_headers,
        matrix=grouped.matrix,
        column_spans=column_spans,
        row_spans=row_spans,
        colors=colors,
        legend=legend_entries,
        heatmap=heatmap,
    )
