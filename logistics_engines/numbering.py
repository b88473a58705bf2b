"""
logistics_engines.numbering -- PJO and JO document numbers.

Responsibility:
    Build ``NNNN/CARGO/<ROMAN-MONTH>/YYYY`` proforma numbers and
    ``JO-NNNN/CARGO/<ROMAN-MONTH>/YYYY`` job order numbers from a caller
    supplied sequence and date, and recover the next sequence from the
    highest number already issued in a period.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  The sequence is
    allocated by the caller (storage boundary), never here.

Invariants enforced:
    - Deterministic: identical (sequence, date) always yields the same
      number.
    - The sequence is zero-padded to at least four digits; the year is the
      four-digit calendar year of the supplied date.
"""

from __future__ import annotations

import re
from datetime import date, datetime

from logistics_engines.formatting import ROMAN_MONTHS, format_sequence, to_roman_month

DEFAULT_DIVISION = "CARGO"
DEFAULT_SEQUENCE_WIDTH = 4
JO_PREFIX = "JO-"

_ROMAN_ALTERNATION = "|".join(ROMAN_MONTHS.values())

PJO_NUMBER_PATTERN = re.compile(rf"^\d{{4}}/CARGO/({_ROMAN_ALTERNATION})/\d{{4}}$")
JO_NUMBER_PATTERN = re.compile(rf"^JO-\d{{4}}/CARGO/({_ROMAN_ALTERNATION})/\d{{4}}$")

_LEADING_SEQUENCE = re.compile(r"^(\d+)/")


def _check_sequence(sequence: int) -> None:
    if isinstance(sequence, bool) or not isinstance(sequence, int):
        raise ValueError(f"sequence must be an int, got {sequence!r}")
    if sequence < 1:
        raise ValueError(f"sequence must be >= 1, got {sequence}")


def period_suffix(on_date: date | datetime, division: str = DEFAULT_DIVISION) -> str:
    """``/CARGO/XII/2025`` -- the part of a number shared by a whole month."""
    return f"/{division}/{to_roman_month(on_date.month)}/{on_date.year:04d}"


def generate_pjo_number(
    sequence: int,
    on_date: date | datetime,
    division: str = DEFAULT_DIVISION,
    width: int = DEFAULT_SEQUENCE_WIDTH,
) -> str:
    """``0001/CARGO/XII/2025`` for sequence 1 in December 2025."""
    _check_sequence(sequence)
    return f"{format_sequence(sequence, width)}{period_suffix(on_date, division)}"


def generate_jo_number(
    sequence: int,
    on_date: date | datetime,
    division: str = DEFAULT_DIVISION,
    width: int = DEFAULT_SEQUENCE_WIDTH,
    prefix: str = JO_PREFIX,
) -> str:
    """``JO-0001/CARGO/XII/2025`` for sequence 1 in December 2025."""
    return f"{prefix}{generate_pjo_number(sequence, on_date, division, width)}"


def is_valid_pjo_number(number: str) -> bool:
    return bool(number) and PJO_NUMBER_PATTERN.match(number) is not None


def is_valid_jo_number(number: str) -> bool:
    return bool(number) and JO_NUMBER_PATTERN.match(number) is not None


def next_sequence(last_number: str | None, prefix: str = JO_PREFIX) -> int:
    """Sequence after the highest number issued in the period; 1 if none.

    A leading job order ``prefix`` is ignored.

    A number whose leading digits cannot be read restarts at 1, matching
    an empty period.
    """
    if not last_number:
        return 1
    if prefix and last_number.startswith(prefix):
        last_number = last_number[len(prefix):]
    match = _LEADING_SEQUENCE.match(last_number)
    if match is None:
        return 1
    return int(match.group(1)) + 1
