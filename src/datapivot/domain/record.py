from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Any, Union

Scalar = Union[int, float, str]


class FieldNotFoundError(KeyError):
    """Raised when a record has no value for a requested field."""

    def __init__(self, field: str, record: "Record | None" = None) -> None:
        super().__init__(field)
        self.field = field
        self.record = record

    def __str__(self) -> str:
        if self.record is None:
            return f"field {self.field!r} not found"
        return f"field {self.field!r} not found in record {self.record!r}"


def is_scalar(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    return isinstance(value, (int, float, str))


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class Record(Mapping[str, Scalar]):
    """Immutable row of named scalar values.

    Values that are neither numbers nor strings (bools, lists, objects) are
    kept out of the mapping; looking one up raises ``TypeError`` so a row
    only fails when a pivot actually reads such a field.
    """

    __slots__ = ("_values", "_unsupported")

    def __init__(self, values: Mapping[str, Any] | None = None, **fields: Any) -> None:
        data: dict[str, Scalar] = {}
        unsupported: dict[str, str] = {}
        for source in (values or {}, fields):
            for name, value in source.items():
                name = str(name)
                if value is None:
                    continue
                if is_scalar(value):
                    data[name] = value
                    unsupported.pop(name, None)
                else:
                    unsupported[name] = type(value).__name__
                    data.pop(name, None)
        self._values = data
        self._unsupported = unsupported

    @classmethod
    def coerce(cls, item: "Record | Mapping[str, Any]") -> "Record":
        if isinstance(item, Record):
            return item
        if not isinstance(item, Mapping):
            raise TypeError(f"records must be mappings, got {type(item).__name__}")
        return cls(item)

    def __getitem__(self, field: str) -> Scalar:
        try:
            return self._values[field]
        except KeyError:
            if field in self._unsupported:
                raise TypeError(
                    f"field {field!r} must be a number or string, "
                    f"got {self._unsupported[field]}"
                ) from None
            raise FieldNotFoundError(field, self) from None

    def __contains__(self, field: object) -> bool:
        return field in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __hash__(self) -> int:
        return hash(tuple(sorted(self._values.items(), key=lambda kv: kv[0])))

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Record):
            return self._values == other._values
        if isinstance(other, Mapping):
            return self._values == dict(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"Record({self._values!r})"

    def to_dict(self) -> dict[str, Scalar]:
        return dict(self._values)
