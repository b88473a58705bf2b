"""Tests for Rupiah formatting, Roman months, sequences, dates and margins."""

from datetime import date, datetime
from decimal import Decimal

import pytest

from logistics_engines.formatting import (
    budget_usage_percent,
    calculate_margin,
    calculate_profit,
    format_date,
    format_datetime,
    format_idr,
    format_number_input,
    format_sequence,
    format_variance_percentage,
    parse_idr,
    to_roman_month,
)


class TestFormatIDR:
    """Rupiah strings: '.' thousands groups, no decimals."""

    @pytest.mark.parametrize("amount, expected", [
        (0, "Rp 0"),
        (1000, "Rp 1.000"),
        (30000000, "Rp 30.000.000"),
        (Decimal("1500000.49"), "Rp 1.500.000"),
        (Decimal("999.5"), "Rp 1.000"),
        ("2500000", "Rp 2.500.000"),
    ])
    def test_positive(self, amount, expected):
        assert format_idr(amount) == expected

    def test_negative(self):
        assert format_idr(-1000) == "-Rp 1.000"
        assert format_idr(Decimal("-30000000")) == "-Rp 30.000.000"

    def test_number_input(self):
        assert format_number_input(30000000) == "30.000.000"
        assert format_number_input(-1500) == "-1.500"


class TestParseIDR:
    """Parsing is the inverse of formatting; garbage yields 0."""

    @pytest.mark.parametrize("text, expected", [
        ("Rp 30.000.000", Decimal("30000000")),
        ("30.000.000", Decimal("30000000")),
        ("1.500,50", Decimal("1500.50")),
        ("Rp1.000", Decimal("1000")),
        ("", Decimal("0")),
        ("abc", Decimal("0")),
    ])
    def test_parse(self, text, expected):
        assert parse_idr(text) == expected

    def test_none_is_zero(self):
        assert parse_idr(None) == Decimal("0")

    def test_round_trip_whole_amount(self):
        assert parse_idr(format_idr(123456789)) == Decimal("123456789")


class TestRomanMonths:

    @pytest.mark.parametrize("month, roman", [
        (1, "I"), (4, "IV"), (9, "IX"), (10, "X"), (12, "XII"),
    ])
    def test_valid(self, month, roman):
        assert to_roman_month(month) == roman

    @pytest.mark.parametrize("month", [0, 13, -1])
    def test_out_of_range_is_empty(self, month):
        assert to_roman_month(month) == ""


class TestSequenceAndDates:

    def test_sequence_padding(self):
        assert format_sequence(1) == "0001"
        assert format_sequence(42) == "0042"
        assert format_sequence(12345) == "12345"
        assert format_sequence(7, width=6) == "000007"

    def test_format_date(self):
        assert format_date(date(2025, 12, 14)) == "14/12/2025"
        assert format_date("2025-01-05") == "05/01/2025"

    def test_format_datetime(self):
        assert format_datetime(datetime(2025, 12, 14, 15, 30)) == "14/12/2025 15:30"
        assert format_datetime("2025-12-14T08:05:00") == "14/12/2025 08:05"


class TestProfitAndMargin:

    def test_profit(self):
        assert calculate_profit(Decimal("3750000"), Decimal("2500000")) == Decimal("1250000")

    def test_margin(self):
        assert calculate_margin(Decimal("1000"), Decimal("750")) == Decimal("25")

    def test_margin_zero_revenue_is_zero(self):
        assert calculate_margin(0, 500) == Decimal("0")

    def test_negative_margin(self):
        assert calculate_margin(Decimal("1000"), Decimal("1200")) == Decimal("-20")

    def test_budget_usage(self):
        assert budget_usage_percent(Decimal("1000"), Decimal("900")) == Decimal("90")
        assert budget_usage_percent(0, 100) == Decimal("0")


class TestVariancePercentageFormat:

    @pytest.mark.parametrize("pct, expected", [
        (None, "N/A"),
        (Decimal("10"), "+10.0%"),
        (Decimal("12.345"), "+12.3%"),
        (Decimal("-5.25"), "-5.3%"),
        (Decimal("0"), "0.0%"),
    ])
    def test_format(self, pct, expected):
        assert format_variance_percentage(pct) == expected
