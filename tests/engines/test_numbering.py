"""Tests for PJO / JO document number generation."""

from datetime import date, datetime

import pytest

from logistics_engines.numbering import (
    JO_NUMBER_PATTERN,
    PJO_NUMBER_PATTERN,
    generate_jo_number,
    generate_pjo_number,
    is_valid_jo_number,
    is_valid_pjo_number,
    next_sequence,
    period_suffix,
)


class TestGeneratePJONumber:

    def test_format(self):
        assert generate_pjo_number(1, date(2025, 12, 14)) == "0001/CARGO/XII/2025"

    @pytest.mark.parametrize("month, roman", [(1, "I"), (4, "IV"), (9, "IX"), (11, "XI")])
    def test_month_numerals(self, month, roman):
        assert generate_pjo_number(7, date(2025, month, 1)) == f"0007/CARGO/{roman}/2025"

    def test_accepts_datetime(self):
        assert generate_pjo_number(12, datetime(2024, 2, 29, 23, 59)) == "0012/CARGO/II/2024"

    def test_deterministic(self):
        on = date(2025, 6, 1)
        assert generate_pjo_number(42, on) == generate_pjo_number(42, on)

    def test_wide_sequence_not_truncated(self):
        assert generate_pjo_number(12345, date(2025, 1, 1)) == "12345/CARGO/I/2025"

    def test_custom_division_and_width(self):
        assert generate_pjo_number(3, date(2025, 1, 1), division="SEA", width=5) == "00003/SEA/I/2025"

    @pytest.mark.parametrize("sequence", [0, -1, True, "1", 1.0])
    def test_invalid_sequence(self, sequence):
        with pytest.raises(ValueError):
            generate_pjo_number(sequence, date(2025, 1, 1))

    def test_matches_pattern(self):
        number = generate_pjo_number(99, date(2025, 8, 17))
        assert PJO_NUMBER_PATTERN.match(number)
        assert is_valid_pjo_number(number)


class TestGenerateJONumber:

    def test_format(self):
        assert generate_jo_number(1, date(2025, 12, 14)) == "JO-0001/CARGO/XII/2025"

    def test_matches_pattern(self):
        number = generate_jo_number(5, date(2025, 3, 1))
        assert JO_NUMBER_PATTERN.match(number)
        assert is_valid_jo_number(number)
        assert not is_valid_pjo_number(number)

    def test_invalid_sequence(self):
        with pytest.raises(ValueError):
            generate_jo_number(0, date(2025, 1, 1))


class TestNumberPatterns:

    @pytest.mark.parametrize("number", [
        "001/CARGO/I/2025",
        "0001/CARGO/XIII/2025",
        "0001/SEA/I/2025",
        "0001/CARGO/I/25",
        "",
    ])
    def test_invalid_pjo_numbers(self, number):
        assert not is_valid_pjo_number(number)


class TestNextSequence:

    def test_empty_period(self):
        assert next_sequence(None) == 1
        assert next_sequence("") == 1

    def test_increments_last(self):
        assert next_sequence("0041/CARGO/III/2025") == 42

    def test_job_order_prefix(self):
        assert next_sequence("JO-0009/CARGO/III/2025") == 10

    def test_custom_prefix(self):
        assert next_sequence("JOB-0009/CARGO/III/2025", prefix="JOB-") == 10

    def test_unreadable_restarts(self):
        assert next_sequence("garbage") == 1

    def test_period_suffix(self):
        assert period_suffix(date(2025, 3, 14)) == "/CARGO/III/2025"
        assert period_suffix(date(2025, 3, 14), "SEA") == "/SEA/III/2025"
