"""
tests/test_value_parsers.py

Pytest unit tests for numeric, percentage and date parsing.
"""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from app.mappers.value_parsers import (
    is_blank,
    parse_date,
    parse_int,
    parse_numeric,
    weeks_between,
)


# ---------------------------------------------------------------------------
# parse_numeric
# ---------------------------------------------------------------------------


class TestParseNumeric:
    def test_plain_numbers(self) -> None:
        assert parse_numeric(1000) == pytest.approx(1000.0)
        assert parse_numeric("1000") == pytest.approx(1000.0)
        assert parse_numeric(" 12.5 ") == pytest.approx(12.5)

    def test_currency_and_thousands_separators(self) -> None:
        assert parse_numeric("$1,234.50") == pytest.approx(1234.5)
        assert parse_numeric("-1,000") == pytest.approx(-1000.0)

    def test_unparseable_returns_none(self) -> None:
        assert parse_numeric(None) is None
        assert parse_numeric("") is None
        assert parse_numeric("n/a") is None
        assert parse_numeric(True) is None
        assert parse_numeric(float("nan")) is None

    def test_percent_sign_is_divided(self) -> None:
        assert parse_numeric("45%") == pytest.approx(0.45)

    def test_fraction_with_percent_sign_is_kept(self) -> None:
        assert parse_numeric("0.5%") == pytest.approx(0.5)

    @pytest.mark.parametrize(
        "raw, expected",
        [
            (45, 0.45),
            ("45", 0.45),
            (100, 1.0),
            (0.3, 0.3),
            (1, 1.0),
            (0, 0.0),
            (150, 1.0),
            ("250%", 1.0),
        ],
    )
    def test_reach_values_normalize_into_unit_interval(self, raw: object, expected: float) -> None:
        value = parse_numeric(raw, is_reach_value=True)
        assert value == pytest.approx(expected)
        assert 0.0 <= value <= 1.0

    def test_reach_above_hundred_is_exactly_one(self) -> None:
        assert parse_numeric(100.5, is_reach_value=True) == 1.0


class TestParseInt:
    def test_whole_numbers(self) -> None:
        assert parse_int("2") == 2
        assert parse_int("2.0") == 2

    def test_fractional_and_blank(self) -> None:
        assert parse_int("2.5") is None
        assert parse_int("") is None


# ---------------------------------------------------------------------------
# parse_date
# ---------------------------------------------------------------------------


class TestParseDate:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("2025-01-15", date(2025, 1, 15)),
            ("2025-01-15T10:30:00Z", date(2025, 1, 15)),
            ("2025/01/15", date(2025, 1, 15)),
            ("15-Jan-25", date(2025, 1, 15)),
            ("15-Jan-2025", date(2025, 1, 15)),
            ("25/12/2025", date(2025, 12, 25)),
            ("12/25/2025", date(2025, 12, 25)),
            ("03/04/2025", date(2025, 3, 4)),
        ],
    )
    def test_supported_formats(self, raw: str, expected: date) -> None:
        assert parse_date(raw) == expected

    def test_date_and_datetime_instances(self) -> None:
        assert parse_date(date(2025, 6, 1)) == date(2025, 6, 1)
        assert parse_date(datetime(2025, 6, 1, 8, 0)) == date(2025, 6, 1)

    def test_epoch_seconds_and_milliseconds(self) -> None:
        stamp = int(datetime(2025, 1, 15, 12, tzinfo=timezone.utc).timestamp())
        assert parse_date(str(stamp)) == date(2025, 1, 15)
        assert parse_date(str(stamp * 1000)) == date(2025, 1, 15)

    def test_epoch_outside_supported_years(self) -> None:
        assert parse_date("0000000001") is None

    @pytest.mark.parametrize("raw", ["not a date", "2025-13-45", "31-Foo-25", "", None])
    def test_invalid_dates(self, raw: object) -> None:
        assert parse_date(raw) is None


def test_weeks_between_two_weeks() -> None:
    assert weeks_between(date(2025, 1, 1), date(2025, 1, 15)) == pytest.approx(2.0)


def test_weeks_between_rounds_to_two_decimals() -> None:
    assert weeks_between(date(2025, 1, 1), date(2025, 1, 11)) == pytest.approx(1.43)


def test_is_blank() -> None:
    assert is_blank(None)
    assert is_blank("  ")
    assert not is_blank(0)
    assert not is_blank("x")
