"""
Currency -- ISO 4217 codes the portal prices, invoices and pays in.

The registry answers two questions: is a code acceptable, and how many
minor units does it have.  It knows nothing about exchange rates; those
live in freight_engines.rates.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import ClassVar


@dataclass(frozen=True)
class CurrencyInfo:
    code: str
    decimal_places: int
    name: str

    @property
    def quantum(self) -> Decimal:
        """Smallest unit, e.g. Decimal("0.01") for TZS, Decimal("1") for JPY."""
        return Decimal(1).scaleb(-self.decimal_places)


# code, minor units, name.  TZS is the reporting currency; the rest are
# origin-region, agent and neighbouring-market currencies.
_ISO_4217 = (
    ("TZS", 2, "Tanzanian Shilling"),
    ("USD", 2, "US Dollar"),
    ("EUR", 2, "Euro"),
    ("GBP", 2, "Pound Sterling"),
    ("AED", 2, "UAE Dirham"),
    ("CNY", 2, "Chinese Yuan"),
    ("INR", 2, "Indian Rupee"),
    ("JPY", 0, "Japanese Yen"),
    ("HKD", 2, "Hong Kong Dollar"),
    ("ZAR", 2, "South African Rand"),
    ("KES", 2, "Kenyan Shilling"),
    ("UGX", 0, "Ugandan Shilling"),
    ("RWF", 0, "Rwandan Franc"),
    ("BIF", 0, "Burundian Franc"),
    ("CDF", 2, "Congolese Franc"),
    ("MZN", 2, "Mozambican Metical"),
    ("ZMW", 2, "Zambian Kwacha"),
    ("MWK", 2, "Malawian Kwacha"),
    ("TRY", 2, "Turkish Lira"),
    ("SAR", 2, "Saudi Riyal"),
    ("OMR", 3, "Omani Rial"),
    ("KRW", 0, "South Korean Won"),
    ("SGD", 2, "Singapore Dollar"),
    ("THB", 2, "Thai Baht"),
    ("MYR", 2, "Malaysian Ringgit"),
    ("CAD", 2, "Canadian Dollar"),
    ("AUD", 2, "Australian Dollar"),
    ("CHF", 2, "Swiss Franc"),
)


def _normalize(code: object) -> str:
    return code.upper().strip() if isinstance(code, str) else ""


class CurrencyRegistry:
    """Lookup over the supported ISO 4217 codes.  Case and padding are ignored."""

    _CURRENCIES: ClassVar[dict[str, CurrencyInfo]] = {
        code: CurrencyInfo(code, places, name) for code, places, name in _ISO_4217
    }

    DEFAULT_DECIMAL_PLACES: ClassVar[int] = 2

    @classmethod
    def is_valid(cls, code: object) -> bool:
        return _normalize(code) in cls._CURRENCIES

    @classmethod
    def get_info(cls, code: object) -> CurrencyInfo | None:
        return cls._CURRENCIES.get(_normalize(code))

    @classmethod
    def get_decimal_places(cls, code: object) -> int:
        info = cls.get_info(code)
        return cls.DEFAULT_DECIMAL_PLACES if info is None else info.decimal_places
