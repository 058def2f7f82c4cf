"""Numeric kinds, readings and append-only reading histories."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Iterator, List, Tuple, Union

from models.errors import EmptyHistory, KindMismatch

Number = Union[int, float]


class NumericKind(str, Enum):
    """Numeric classification of a sensor, fixed once the sensor exists."""

    INTEGER = "integer"
    FLOAT = "float"

    def __str__(self) -> str:
        return self.value

    @property
    def tag(self) -> str:
        """Protocol tag letter used on the wire."""
        return "P" if self is NumericKind.INTEGER else "T"

    @classmethod
    def from_tag(cls, tag: str) -> "NumericKind":
        """Map a case-insensitive protocol tag (``T``/``P``) to a kind."""
        candidate = tag.strip().upper()
        if candidate == "P":
            return cls.INTEGER
        if candidate == "T":
            return cls.FLOAT
        raise ValueError(f"Unknown sensor type tag {tag!r}.")

    @classmethod
    def of(cls, value: object) -> "NumericKind":
        """Infer the kind of a Python value; ``bool`` is rejected."""
        if isinstance(value, bool):
            raise TypeError("Boolean values are not sensor readings.")
        if isinstance(value, int):
            return cls.INTEGER
        if isinstance(value, float):
            return cls.FLOAT
        raise TypeError(f"Unsupported reading type {type(value).__name__}.")

    def parse(self, token: str) -> Number:
        """Parse a protocol value token in this kind.

        Tokens must be ASCII. Integers must be plain base-10 literals and
        floats must be finite.
        Raises ``ValueError`` when the token does not fit the kind.
        """
        if not token.isascii():
            raise ValueError(f"Non-ASCII digits are not allowed: {token!r}.")
        if "_" in token:
            raise ValueError(f"Digit separators are not allowed: {token!r}.")
        if self is NumericKind.INTEGER:
            return int(token, 10)
        value = float(token)
        if not math.isfinite(value):
            raise ValueError(f"Non-finite value {token!r}.")
        return value


@dataclass(frozen=True, slots=True)
class Reading:
    """A single scalar value tagged with its kind."""

    kind: NumericKind
    value: Number

    def __post_init__(self) -> None:
        try:
            actual = NumericKind.of(self.value)
        except TypeError as exc:
            raise KindMismatch(self.kind, type(self.value).__name__) from exc
        if actual is not self.kind:
            raise KindMismatch(self.kind, actual)

    @classmethod
    def of(cls, value: Number) -> "Reading":
        return cls(kind=NumericKind.of(value), value=value)


def _mean(values: List[Number]) -> float:
    return sum(values) / len(values)


def _minimum(values: List[Number]) -> float:
    return float(min(values))


_AGGREGATORS: Dict[NumericKind, Tuple[str, Callable[[List[Number]], float]]] = {
    NumericKind.INTEGER: ("mean", _mean),
    NumericKind.FLOAT: ("minimum", _minimum),
}


class ReadingHistory:
    """Ordered, append-only sequence of readings of one kind."""

    def __init__(self, kind: NumericKind) -> None:
        self.kind = kind
        self._values: List[Number] = []

    @property
    def aggregate_name(self) -> str:
        return _AGGREGATORS[self.kind][0]

    def append(self, value: Union[Reading, Number]) -> None:
        reading = value if isinstance(value, Reading) else Reading(self.kind, value)
        if reading.kind is not self.kind:
            raise KindMismatch(self.kind, reading.kind)
        self._values.append(reading.value)

    def is_empty(self) -> bool:
        return not self._values

    def size(self) -> int:
        return len(self._values)

    def aggregate(self) -> float:
        """Mean for integer histories, minimum for float histories."""
        if not self._values:
            raise EmptyHistory()
        _, aggregator = _AGGREGATORS[self.kind]
        return aggregator(self._values)

    def values(self) -> Tuple[Number, ...]:
        return tuple(self._values)

    def for_each(self, visitor: Callable[[Number], None]) -> None:
        for value in self:
            visitor(value)

    def __iter__(self) -> Iterator[Number]:
        # Appending while iterating is a precondition violation.
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"ReadingHistory(kind={self.kind.value}, size={len(self._values)})"
