from __future__ import annotations

from typing import Any, Mapping, Sequence

from datapivot.domain.key import CompositeKey, format_token
from datapivot.domain.record import Record


def composite_key(fields: Sequence[str], record: Record | Mapping[str, Any]) -> CompositeKey:
    """Build the key for ``record`` over ``fields`` (in order).

    An empty field list yields ``EMPTY_KEY`` so every record falls into a
    single group. A missing field raises ``FieldNotFoundError``.
    """
    rec = Record.coerce(record)
    return CompositeKey(tuple(format_token(rec[field]) for field in fields))


class KeyGenerator:
    """
    Generates composite keys for one axis of a pivot.
    """

    def __init__(self, fields: Sequence[str] | str | None):
        if fields is None:
            fields = ()
        elif isinstance(fields, str):
            fields = (fields,)
        self.fields: tuple[str, ...] = tuple(fields)

    @property
    def depth(self) -> int:
        return len(self.fields)

    def generate(self, record: Record | Mapping[str, Any]) -> CompositeKey:
        return composite_key(self.fields, record)
