from datetime import date, datetime

import pytest

from app.crm.modules.imports.coerce import (
    coerce,
    normalize_ico,
    parse_bool,
    parse_date,
    parse_int,
    parse_number,
    parse_text,
)


@pytest.mark.parametrize("value", ["ANO", "ano", "true", "1", "Yes", "hotovo", 1, True])
def test_parse_bool_true(value):
    assert parse_bool(value) is True


@pytest.mark.parametrize("value", ["NE", "ne", "false", "0", "no", 0, False])
def test_parse_bool_false(value):
    assert parse_bool(value) is False


@pytest.mark.parametrize("value", [None, "", "  ", "možná", 2])
def test_parse_bool_unknown(value):
    assert parse_bool(value) is None


@pytest.mark.parametrize(
    "value, expected",
    [
        ("1 234,50 Kč", 1234.5),
        ("1.234,5", 1234.5),
        ("1,234.5", 1234.5),
        ("12,5", 12.5),
        ("1.000.000", 1000000.0),
        ("-15", -15.0),
        (42, 42.0),
        (3.25, 3.25),
    ],
)
def test_parse_number(value, expected):
    assert parse_number(value) == pytest.approx(expected)


@pytest.mark.parametrize("value", [None, "", "abc", "Kč", True, float("nan")])
def test_parse_number_rejects(value):
    assert parse_number(value) is None


def test_parse_date_formats():
    assert parse_date("15.03.2024") == date(2024, 3, 15)
    assert parse_date("1. 2. 2023") == date(2023, 2, 1)
    assert parse_date("2024-03-15") == date(2024, 3, 15)
    assert parse_date("2024-03-15T10:30:00") == date(2024, 3, 15)
    assert parse_date(datetime(2024, 3, 15, 8, 0)) == date(2024, 3, 15)
    assert parse_date(date(2024, 3, 15)) == date(2024, 3, 15)


def test_parse_date_excel_serial():
    # 45366 is 2024-03-15 in the 1900 date system
    assert parse_date(45366) == date(2024, 3, 15)


@pytest.mark.parametrize("value", ["31.02.2024", "hello", "+2024-01-01", "-5", "01.01.1800", 0, 100000, True])
def test_parse_date_rejects(value):
    assert parse_date(value) is None


def test_parse_text():
    assert parse_text("  Solar s.r.o. ") == "Solar s.r.o."
    assert parse_text(777123456.0) == "777123456"
    assert parse_text(date(2024, 1, 2)) == "2024-01-02"
    assert parse_text("   ") is None


@pytest.mark.parametrize(
    "value, expected",
    [
        (1234567, "01234567"),
        (1234567.0, "01234567"),
        ("1234567.0", "01234567"),
        ("123 456 78", "12345678"),
        ("12345678", "12345678"),
        ("CZ12345678", "CZ12345678"),
        ("", None),
        (None, None),
    ],
)
def test_normalize_ico(value, expected):
    assert normalize_ico(value) == expected


def test_parse_int_and_coerce():
    assert parse_int("12") == 12
    assert parse_int("12,5") is None
    assert coerce("bool", "ANO") is True
    assert coerce("number", "2,5") == pytest.approx(2.5)
    assert coerce("date", "01.01.2024") == date(2024, 1, 1)


def test_parse_date_czech_with_time():
    assert parse_date("15.03.2024 10:00") == date(2024, 3, 15)
    assert parse_date("1. 2. 2023 8:05:30") == date(2023, 2, 1)
    assert parse_date("15.03.2024 later") is None
