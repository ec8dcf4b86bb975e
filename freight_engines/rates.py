"""
Module: freight_engines.rates
Responsibility:
    Immutable currency rate snapshot used by every aggregation pass.
    Maps each original currency to the reporting currency and converts
    Money into it.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  The table is built once
    per report by a service from whatever the rate collaborator returned,
    and passed explicitly to every engine call.  Nothing here is module
    state.

Invariants enforced:
    - Exactly one rate per currency code (DuplicateRateError).
    - The reporting currency always has rate 1; an explicit entry for it
      must also be 1.
    - A currency missing from the table fails loudly with
      UnknownCurrencyError.  A soft default is only produced by
      ``lookup_or_default``, and the result says it was used.

Failure modes:
    - UnknownCurrencyError from ``lookup`` / ``convert``.
    - DuplicateRateError / InvalidRateError at construction.

Usage:
    from freight_engines.rates import RateTable
    from freight_kernel.domain.values import Money, RateEntry

    table = RateTable([RateEntry.of("USD", "2500")], reporting_currency="TZS")
    table.convert(Money.of("100", "USD"))   # Money(250000, TZS)
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import Decimal
from types import MappingProxyType

from freight_kernel.domain.values import Currency, Money, RateEntry, to_decimal
from freight_kernel.exceptions import (
    DuplicateRateError,
    InvalidRateError,
    UnknownCurrencyError,
)

DEFAULT_REPORTING_CURRENCY = "TZS"

_ONE = Decimal("1")


@dataclass(frozen=True)
class RateLookup:
    """
    Result of a soft lookup.

    ``is_default`` is True when the table had no entry and the caller's
    default was returned instead.
    """

    currency_code: str
    rate: Decimal
    is_default: bool = False


class RateTable:
    """
    Snapshot of currency -> reporting-currency rates.

    Contract:
        1 unit of a currency equals ``lookup(code)`` units of the
        reporting currency.
    Guarantees:
        - Immutable after construction.
        - Lookups are case-insensitive on the currency code.
    Non-goals:
        - Does not round converted amounts.
        - Does not fetch or refresh rates.
    """

    __slots__ = ("_reporting_currency", "_rates")

    def __init__(
        self,
        entries: Iterable[RateEntry] = (),
        reporting_currency: str = DEFAULT_REPORTING_CURRENCY,
    ):
        reporting = Currency(reporting_currency).code
        rates: dict[str, Decimal] = {}
        for entry in entries:
            code = entry.currency_code
            if code in rates:
                raise DuplicateRateError(code)
            if code == reporting and entry.rate_to_reporting != _ONE:
                raise InvalidRateError(code, str(entry.rate_to_reporting))
            rates[code] = entry.rate_to_reporting
        rates[reporting] = _ONE
        self._reporting_currency = reporting
        self._rates = MappingProxyType(rates)

    @classmethod
    def from_mapping(
        cls,
        rates: Mapping[str, Decimal | str | int],
        reporting_currency: str = DEFAULT_REPORTING_CURRENCY,
    ) -> RateTable:
        """Build from a ``{code: rate}`` mapping."""
        return cls(
            (RateEntry.of(code, rate) for code, rate in rates.items()),
            reporting_currency=reporting_currency,
        )

    def with_fallbacks(self, defaults: Mapping[str, Decimal | str | int]) -> RateTable:
        """
        Return a new table where ``defaults`` fill the codes this table
        lacks.  Rates already in the table take priority.
        """
        merged: dict[str, Decimal] = {}
        for code, rate in defaults.items():
            merged[Currency(code).code] = to_decimal(rate)
        merged.update(self._rates)
        merged.pop(self._reporting_currency, None)
        return RateTable.from_mapping(merged, self._reporting_currency)

    @property
    def reporting_currency(self) -> str:
        return self._reporting_currency

    @property
    def codes(self) -> frozenset[str]:
        return frozenset(self._rates)

    def __contains__(self, code: object) -> bool:
        return isinstance(code, str) and code.upper().strip() in self._rates

    def __len__(self) -> int:
        return len(self._rates)

    def as_dict(self) -> dict[str, Decimal]:
        return dict(self._rates)

    def lookup(self, code: str) -> Decimal:
        """
        Rate of ``code`` into the reporting currency.

        Raises:
            UnknownCurrencyError: no entry for ``code``.
        """
        normalized = code.upper().strip()
        try:
            return self._rates[normalized]
        except KeyError:
            raise UnknownCurrencyError(normalized, self._reporting_currency) from None

    def lookup_or_default(self, code: str, default: Decimal = _ONE) -> RateLookup:
        """Soft lookup.  The caller opts in and must surface ``is_default``."""
        normalized = code.upper().strip()
        rate = self._rates.get(normalized)
        if rate is None:
            return RateLookup(normalized, default, is_default=True)
        return RateLookup(normalized, rate)

    def convert(self, money: Money) -> Money:
        """Convert ``money`` into the reporting currency."""
        if money.currency_code == self._reporting_currency:
            return money
        rate = self.lookup(money.currency_code)
        return Money(money.amount * rate, Currency(self._reporting_currency))

    def convert_between(self, money: Money, target_code: str) -> Money:
        """
        Cross-convert through the reporting currency:
        ``amount * rate(source) / rate(target)``.
        """
        target = Currency(target_code)
        if money.currency == target:
            return money
        in_reporting = self.convert(money).amount
        return Money(in_reporting / self.lookup(target.code), target)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RateTable):
            return NotImplemented
        return (
            self._reporting_currency == other._reporting_currency
            and dict(self._rates) == dict(other._rates)
        )

    def __hash__(self) -> int:
        return hash((self._reporting_currency, frozenset(self._rates.items())))

    def __repr__(self) -> str:
        rates = ",".join(f"{k}={v}" for k, v in sorted(self._rates.items()))
        return f"RateTable({self._reporting_currency}; {rates})"
