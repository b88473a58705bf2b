"""
Values -- immutable money value objects for job order figures.

Responsibility:
    Currency and Money carry the final figures a job order is seeded with
    (revenue, cost, profit).  Line items keep plain Decimals; Money appears
    once the amounts leave the engines as a settled result.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - A Money amount is always a Decimal; floats pass through ``str``.
    - Currency codes must be registered in CurrencyRegistry.
    - Adding or subtracting different currencies is refused.

Failure modes:
    - ValueError on an unparsable amount, an unknown currency, or a
      currency mismatch.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from logistics_kernel.domain.currency import CurrencyRegistry
from logistics_kernel.domain.validation import round_minor


@dataclass(frozen=True, slots=True)
class Currency:
    """ISO 4217 code, normalised to upper case."""

    code: str

    def __post_init__(self) -> None:
        normalized = self.code.upper().strip() if self.code else ""
        if not CurrencyRegistry.is_valid(normalized):
            raise ValueError(f"Invalid ISO 4217 currency code: {self.code}")
        object.__setattr__(self, "code", normalized)

    @property
    def decimal_places(self) -> int:
        return CurrencyRegistry.get_decimal_places(self.code)

    def __str__(self) -> str:
        return self.code


@dataclass(frozen=True, slots=True)
class Money:
    """
    An amount in one currency.

    Does NOT round on construction; ``round()`` is explicit so that a
    JO's final figures match the sums the engines produced.
    """

    amount: Decimal
    currency: Currency

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            try:
                object.__setattr__(self, "amount", Decimal(str(self.amount)))
            except (InvalidOperation, ValueError) as e:
                raise ValueError(f"Invalid amount: {self.amount}") from e
        if isinstance(self.currency, str):
            object.__setattr__(self, "currency", Currency(self.currency))
        elif not isinstance(self.currency, Currency):
            raise TypeError(f"currency must be Currency or str, got {type(self.currency)}")

    @classmethod
    def of(cls, amount: Decimal | str | int, currency: str | Currency) -> Money:
        return cls(amount=amount, currency=currency)

    @classmethod
    def zero(cls, currency: str | Currency = "IDR") -> Money:
        return cls(amount=Decimal("0"), currency=currency)

    @property
    def is_negative(self) -> bool:
        """A loss-making job order has negative profit."""
        return self.amount < 0

    def round(self, rounding: str = ROUND_HALF_UP) -> Money:
        """Rounded to the currency's minor unit."""
        if rounding == ROUND_HALF_UP:
            return Money(round_minor(self.amount, self.currency.code), self.currency)
        quantum = Decimal(1).scaleb(-self.currency.decimal_places)
        return Money(self.amount.quantize(quantum, rounding=rounding), self.currency)

    def _same_currency(self, other: Money) -> None:
        if self.currency != other.currency:
            raise ValueError(
                f"Currency mismatch: {self.currency} and {other.currency}"
            )

    def __add__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        self._same_currency(other)
        return Money(self.amount + other.amount, self.currency)

    def __sub__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        self._same_currency(other)
        return Money(self.amount - other.amount, self.currency)

    def __str__(self) -> str:
        return f"{self.amount} {self.currency.code}"
