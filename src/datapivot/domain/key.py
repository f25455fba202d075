from __future__ import annotations

from dataclasses import dataclass

from datapivot.domain.record import Scalar

KEY_SEPARATOR = " | "


def format_token(value: Scalar) -> str:
    """Return the header token for a field value."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


@dataclass(frozen=True, order=True)
class CompositeKey:
    """Tuple of per-field tokens identifying a row or column group.

    Keys compare token by token, so equal prefixes sort next to each other.
    The joined ``label`` is for display only; two keys with different parts
    never collide even if a token contains the separator.
    """

    parts: tuple[str, ...] = ()

    @property
    def label(self) -> str:
        return KEY_SEPARATOR.join(self.parts)

    @property
    def depth(self) -> int:
        return len(self.parts)

    def token(self, level: int) -> str:
        if 0 <= level < len(self.parts):
            return self.parts[level]
        return ""

    def __str__(self) -> str:
        return self.label


EMPTY_KEY = CompositeKey(())
