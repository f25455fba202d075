from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import NamedTuple

from datapivot.domain.key import CompositeKey
from datapivot.domain.matrix import DataMatrix, Number

_HEX_COLOR = re.compile(r"^#?([0-9a-fA-F]{6})$")


class HeatmapScope(str, Enum):
    GLOBAL = "global"
    ROW = "row"
    COLUMN = "column"
    NONE = "none"

    @classmethod
    def parse(cls, value: "HeatmapScope | str") -> "HeatmapScope":
        if isinstance(value, cls):
            return value
        name = str(value).strip().lower()
        try:
            return cls(name)
        except ValueError:
            names = ", ".join(scope.value for scope in cls)
            raise ValueError(f"heatmap scope must be one of {names}, got {value!r}") from None


class Color(NamedTuple):
    r: int
    g: int
    b: int

    @classmethod
    def from_hex(cls, value: str) -> "Color":
        match = _HEX_COLOR.match(value.strip())
        if not match:
            raise ValueError(f"expected a #rrggbb color, got {value!r}")
        digits = match.group(1)
        return cls(int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16))

    @property
    def css(self) -> str:
        return f"rgb({self.r},{self.g},{self.b})"

    @property
    def hex(self) -> str:
        return f"#{self.r:02x}{self.g:02x}{self.b:02x}"


WHITE = Color(255, 255, 255)
RED = Color(255, 0, 0)


def _clamp_channel(value: float) -> int:
    return min(255, max(0, round(value)))


@dataclass(frozen=True)
class ColorScale:
    """Linear interpolation between a low and a high color."""

    low: Color = WHITE
    high: Color = RED

    def interpolate(self, factor: float) -> Color:
        return Color(
            *(
                _clamp_channel(lo + factor * (hi - lo))
                for lo, hi in zip(self.low, self.high)
            )
        )


DEFAULT_SCALE = ColorScale()


def intensity(value: Number, lower: Number, upper: Number) -> float:
    """Normalise ``value`` into [0, 1]; a degenerate range maps to 0."""
    if upper == lower:
        return 0.0
    ratio = (value - lower) / (upper - lower)
    return min(1.0, max(0.0, ratio))


def _bounds(values) -> tuple[Number, Number] | None:
    values = list(values)
    if not values:
        return None
    return min(values), max(values)


@dataclass(frozen=True)
class LegendEntry:
    color: Color
    start: float
    end: float

    @property
    def label(self) -> str:
        return f"{self.start:.2f} - {self.end:.2f}"


def legend(
    lower: Number,
    upper: Number,
    steps: int = 10,
    scale: ColorScale = DEFAULT_SCALE,
) -> list[LegendEntry]:
    """Split [lower, upper] into ``steps`` equal buckets, colored at their start."""
    if steps < 1:
        raise ValueError("legend steps must be at least 1")
    width = (upper - lower) / steps
    entries: list[LegendEntry] = []
    for index in range(steps):
        start = lower + width * index
        end = lower + width * (index + 1)
        color = scale.interpolate(intensity(start, lower, upper))
        entries.append(LegendEntry(color=color, start=float(start), end=float(end)))
    return entries


@dataclass
class HeatmapNormalizer:
    """Map matrix values to colors under a normalisation scope.

    Ranges are taken over present cells only: the whole matrix for
    ``global`` (and ``none``), the value's row for ``row`` and its column for
    ``column``.
    """

    matrix: DataMatrix
    scope: HeatmapScope = HeatmapScope.GLOBAL
    scale: ColorScale = field(default_factory=ColorScale)

    def __post_init__(self) -> None:
        self.scope = HeatmapScope.parse(self.scope)
        self._global = self.matrix.bounds()
        self._rows: dict[CompositeKey, tuple[Number, Number] | None] = {}
        self._columns: dict[CompositeKey, tuple[Number, Number] | None] = {}

    def bounds_for(self, row_key: CompositeKey | None, column_key: CompositeKey | None) -> tuple[Number, Number] | None:
        if self.scope is HeatmapScope.ROW and row_key is not None:
            if row_key not in self._rows:
                self._rows[row_key] = _bounds(self.matrix.row(row_key).values())
            return self._rows[row_key]
        if self.scope is HeatmapScope.COLUMN and column_key is not None:
            if column_key not in self._columns:
                self._columns[column_key] = _bounds(self.matrix.column(column_key).values())
            return self._columns[column_key]
        return self._global

    def intensity_for(
        self,
        value: Number,
        row_key: CompositeKey | None = None,
        column_key: CompositeKey | None = None,
    ) -> float:
        bounds = self.bounds_for(row_key, column_key)
        if bounds is None:
            return 0.0
        return intensity(value, *bounds)

    def color_for(
        self,
        value: Number,
        row_key: CompositeKey | None = None,
        column_key: CompositeKey | None = None,
    ) -> Color:
        return self.scale.interpolate(self.intensity_for(value, row_key, column_key))

    def cell_colors(
        self,
        row_keys: list[CompositeKey],
        column_keys: list[CompositeKey],
    ) -> dict[tuple[CompositeKey, CompositeKey], Color]:
        """Color every (row, column) cell; absent cells are colored as 0."""
        return {
            (row_key, column_key): self.color_for(
                self.matrix.value(row_key, column_key), row_key, column_key
            )
            for row_key in row_keys
            for column_key in column_keys
        }

    def legend(self, steps: int = 10) -> list[LegendEntry]:
        if self._global is None:
            return []
        return legend(*self._global, steps=steps, scale=self.scale)


def color_for(
    value: Number,
    scope: HeatmapScope | str,
    row_key: CompositeKey | None,
    column_key: CompositeKey | None,
    matrix: DataMatrix,
    scale: ColorScale = DEFAULT_SCALE,
) -> Color:
    return HeatmapNormalizer(matrix, HeatmapScope.parse(scope), scale).color_for(
        value, row_key, column_key
    )
