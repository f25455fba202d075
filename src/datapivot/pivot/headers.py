from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from datapivot.domain.key import CompositeKey


@dataclass(frozen=True)
class HeaderSpan:
    """Run of identical header tokens at one depth level."""

    label: str
    span: int
    start: int

    @property
    def stop(self) -> int:
        return self.start + self.span


def _ensure_sorted(keys: Sequence[CompositeKey]) -> None:
    for previous, current in zip(keys, keys[1:]):
        if not previous < current:
            raise ValueError(
                "header keys must be strictly ascending; "
                f"{previous.label!r} is followed by {current.label!r}"
            )


def merge_level(keys: Sequence[CompositeKey], level: int) -> list[HeaderSpan]:
    """Run-length encode the tokens of ``keys`` at ``level``.

    A run also ends where an enclosing level changes, so a span never
    straddles two parent headers. This is stricter than comparing the
    level's own token alone: ``A/X, B/X`` yields two ``X`` spans of 1,
    not one span of 2. Span lengths still sum to ``len(keys)``.
    """
    spans: list[HeaderSpan] = []
    previous: tuple[str, ...] = ()
    count = 0
    start = 0
    for index, key in enumerate(keys):
        prefix = tuple(key.token(i) for i in range(level + 1))
        if count and prefix == previous:
            count += 1
            continue
        if count:
            spans.append(HeaderSpan(previous[-1], count, start))
        previous = prefix
        count = 1
        start = index
    if count:
        spans.append(HeaderSpan(previous[-1], count, start))
    return spans


def merge_headers(keys: Sequence[CompositeKey], depth: int) -> list[list[HeaderSpan]]:
    """Return one list of spans per depth level for a sorted key sequence.

    Spans only merge correctly over sorted keys, so unsorted input is
    rejected instead of producing undercounted spans.
    """
    if depth < 0:
        raise ValueError("depth must be non-negative")
    keys = list(keys)
    _ensure_sorted(keys)
    return [merge_level(keys, level) for level in range(depth)]


def row_span_starts(levels: Sequence[Sequence[HeaderSpan]]) -> dict[int, list[tuple[int, HeaderSpan]]]:
    """Index spans by the row they start on, as (level, span) pairs."""
    starts: dict[int, list[tuple[int, HeaderSpan]]] = {}
    for level, spans in enumerate(levels):
        for span in spans:
            starts.setdefault(span.start, []).append((level, span))
    return starts
