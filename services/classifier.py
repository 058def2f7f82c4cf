"""Classification of raw protocol lines into commands.

Each line of the serial protocol is either ``T <id> <float>`` or
``P <id> <int>``. Anything else is diagnosed but never applied, so every line
maps to exactly one command and classification never raises.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Union

from models.readings import Number, NumericKind

DEFAULT_BANNERS = ("===", "Arduino", "Formato")


class MalformedReason(str, Enum):
    unknown_type = "unknown sensor type"
    invalid_value = "invalid value for declared kind"
    unformatted_float = "unformatted float, no id"
    unformatted_integer = "unformatted integer, no id"
    unparseable = "unparseable"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Record:
    kind: NumericKind
    sensor_id: str
    value: Number


@dataclass(frozen=True)
class Ignore:
    pass


@dataclass(frozen=True)
class Malformed:
    raw_line: str
    reason: MalformedReason
    detail: str = ""


Command = Union[Record, Ignore, Malformed]


def classify(line: str, banners: Iterable[str] = DEFAULT_BANNERS) -> Command:
    content = line.strip("\r\n").strip()
    if not content or any(marker in content for marker in banners):
        return Ignore()

    tokens = content.split()
    if len(tokens) >= 2 and len(tokens[0]) == 1:
        return _classify_tagged(line, tokens)
    return _classify_untagged(line, content)


def _classify_tagged(line: str, tokens: list[str]) -> Command:
    tag, sensor_id = tokens[0], tokens[1]
    try:
        kind = NumericKind.from_tag(tag)
    except ValueError:
        return Malformed(line, MalformedReason.unknown_type, f"unknown sensor type {tag!r}")

    if len(tokens) != 3:
        detail = "missing value" if len(tokens) == 2 else "unexpected trailing tokens"
        return Malformed(line, MalformedReason.invalid_value, detail)

    try:
        value = kind.parse(tokens[2])
    except ValueError:
        return Malformed(
            line,
            MalformedReason.invalid_value,
            f"{tokens[2]!r} is not a valid {kind.value} value",
        )
    return Record(kind=kind, sensor_id=sensor_id, value=value)


def _classify_untagged(line: str, content: str) -> Command:
    hint = "expected 'T <id> <value>' or 'P <id> <value>'"
    if "_" in content or not content.isascii():
        return Malformed(line, MalformedReason.unparseable, hint)
    try:
        number = float(content)
    except ValueError:
        return Malformed(line, MalformedReason.unparseable, hint)
    if not math.isfinite(number):
        return Malformed(line, MalformedReason.unparseable, "non-finite number")
    if "." in content:
        return Malformed(line, MalformedReason.unformatted_float, f"bare value {number}")
    return Malformed(line, MalformedReason.unformatted_integer, f"bare value {int(number)}")
