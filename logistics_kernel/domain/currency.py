"""Currency registry: the ISO 4217 codes a job order may be quoted in."""

from typing import ClassVar, NamedTuple


class CurrencyInfo(NamedTuple):
    code: str
    decimal_places: int
    name: str


class CurrencyRegistry:
    """Billing currency plus the currencies carriers and agents quote in."""

    _CURRENCIES: ClassVar[dict[str, CurrencyInfo]] = {
        info.code: info
        for info in (
            CurrencyInfo("IDR", 2, "Indonesian Rupiah"),
            CurrencyInfo("USD", 2, "US Dollar"),
            CurrencyInfo("SGD", 2, "Singapore Dollar"),
            CurrencyInfo("MYR", 2, "Malaysian Ringgit"),
            CurrencyInfo("CNY", 2, "Yuan Renminbi"),
            CurrencyInfo("EUR", 2, "Euro"),
            CurrencyInfo("JPY", 0, "Japanese Yen"),
        )
    }

    # Unknown codes round like IDR
    DEFAULT_DECIMAL_PLACES: ClassVar[int] = 2

    @classmethod
    def get_info(cls, code: str) -> CurrencyInfo | None:
        if not code or not isinstance(code, str):
            return None
        return cls._CURRENCIES.get(code.upper().strip())

    @classmethod
    def is_valid(cls, code: str) -> bool:
        return cls.get_info(code) is not None

    @classmethod
    def get_decimal_places(cls, code: str) -> int:
        info = cls.get_info(code)
        return info.decimal_places if info else cls.DEFAULT_DECIMAL_PLACES
