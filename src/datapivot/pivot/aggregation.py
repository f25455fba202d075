from __future__ import annotations

from enum import Enum
from statistics import mean, median
from typing import Any, Callable, Sequence

from datapivot.domain.record import Scalar, is_number


class UnsupportedAggregationMode(ValueError):
    """Raised when an aggregation mode name is not recognised."""


InvalidAggregationMode = UnsupportedAggregationMode


class InvalidValueError(ValueError):
    """Raised when a record's value field is missing or not usable by the mode."""

    def __init__(self, message: str, *, field: str | None = None, record: Any = None) -> None:
        super().__init__(message)
        self.field = field
        self.record = record


class AggregationMode(str, Enum):
    SUM = "sum"
    COUNT = "count"
    COUNT_UNIQUE = "countUnique"
    AVERAGE = "average"
    MEDIAN = "median"

    @classmethod
    def parse(cls, value: "AggregationMode | str") -> "AggregationMode":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value))
        except ValueError:
            names = ", ".join(mode.value for mode in cls)
            raise UnsupportedAggregationMode(
                f"Unsupported aggregation mode: {value!r} (expected one of {names})"
            ) from None

    @property
    def numeric(self) -> bool:
        """Whether the mode only accepts numeric values."""
        return self in (AggregationMode.SUM, AggregationMode.AVERAGE, AggregationMode.MEDIAN)


def _count_unique(values: Sequence[Scalar]) -> int:
    return len(set(values))


_REDUCERS: dict[AggregationMode, Callable[[Sequence[Any]], Any]] = {
    AggregationMode.SUM: sum,
    AggregationMode.COUNT: len,
    AggregationMode.COUNT_UNIQUE: _count_unique,
    AggregationMode.AVERAGE: mean,
    AggregationMode.MEDIAN: median,
}


def reduce_values(values: Sequence[Scalar], mode: AggregationMode | str) -> float | int:
    """Reduce one cell's value list to a scalar.

    ``values`` is never empty when called from the engine; an empty list is
    rejected because ``average`` and ``median`` have no defined result.
    """
    agg = AggregationMode.parse(mode)
    if not values:
        raise ValueError("cannot aggregate an empty value list")
    if agg.numeric:
        for value in values:
            if not is_number(value):
                raise InvalidValueError(
                    f"{agg.value} requires numeric values, got {value!r}"
                )
    return _REDUCERS[agg](list(values))
