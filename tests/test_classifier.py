from __future__ import annotations

import pytest

from models.readings import NumericKind
from services.classifier import Ignore, Malformed, MalformedReason, Record, classify


def test_temperature_line_yields_float_record() -> None:
    assert classify("T T-001 23.5") == Record(NumericKind.FLOAT, "T-001", 23.5)


def test_pressure_line_yields_integer_record() -> None:
    command = classify("P P-010 101325\r\n")

    assert command == Record(NumericKind.INTEGER, "P-010", 101325)
    assert isinstance(command.value, int)


def test_tag_is_case_insensitive_and_ids_are_kept_verbatim() -> None:
    assert classify("t room-a 19") == Record(NumericKind.FLOAT, "room-a", 19.0)
    assert classify("p Tank-B -3") == Record(NumericKind.INTEGER, "Tank-B", -3)


@pytest.mark.parametrize(
    "line",
    ["", "\r\n", "   ", "=== Sensor Simulator ===", "Arduino listo", "Formato: T ID VALOR"],
)
def test_blank_and_banner_lines_are_ignored(line: str) -> None:
    assert classify(line) == Ignore()


def test_custom_banners_replace_defaults() -> None:
    assert classify("# boot", banners=("#",)) == Ignore()
    assert isinstance(classify("=== boot", banners=("#",)), Malformed)


def test_unknown_tag_is_malformed() -> None:
    command = classify("X foo 1")

    assert isinstance(command, Malformed)
    assert command.reason is MalformedReason.unknown_type
    assert command.raw_line == "X foo 1"


@pytest.mark.parametrize("line", ["- foo 1", "1 foo 2", ". foo 3.5", "+ foo"])
def test_numeric_looking_tag_is_an_unknown_type(line: str) -> None:
    command = classify(line)

    assert isinstance(command, Malformed)
    assert command.reason is MalformedReason.unknown_type


@pytest.mark.parametrize(
    "line",
    [
        "P P-010 12.5",
        "T T-001 warm",
        "T T-001 nan",
        "P P-010",
        "T T-001 1.0 2.0",
        "P P-010 \u0663",
    ],
)
def test_values_outside_declared_kind_are_malformed(line: str) -> None:
    command = classify(line)

    assert isinstance(command, Malformed)
    assert command.reason is MalformedReason.invalid_value


def test_bare_float_is_never_a_record() -> None:
    command = classify("42.5")

    assert isinstance(command, Malformed)
    assert command.reason is MalformedReason.unformatted_float
    assert str(command.reason) == "unformatted float, no id"


def test_bare_integer_is_diagnosed() -> None:
    command = classify("42\n")

    assert isinstance(command, Malformed)
    assert command.reason is MalformedReason.unformatted_integer
    assert command.raw_line == "42\n"


@pytest.mark.parametrize("line", ["hello", "12 34", "inf", "1_000", "\u0663\u0664"])
def test_garbage_is_unparseable(line: str) -> None:
    command = classify(line)

    assert isinstance(command, Malformed)
    assert command.reason is MalformedReason.unparseable
