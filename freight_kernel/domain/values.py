"""
Values -- Immutable, self-validating domain value objects.

Responsibility:
    Provides the value types every engine computes with: Currency, Money
    (the monetary amount of a record, paired with its original currency)
    and RateEntry (one row of the rate table into the reporting currency).

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    No outward dependencies except freight_kernel.domain.currency and
    freight_kernel.exceptions.

Invariants enforced:
    - Money amounts are always Decimal, never float.
    - Currency codes are validated against CurrencyRegistry at construction.
    - Money arithmetic never mixes currencies silently.
    - RateEntry rates are strictly positive.

Failure modes:
    - InvalidCurrencyError on an unknown currency code.
    - CurrencyMismatchError when arithmetic mixes currencies.
    - InvalidRateError on a non-positive or non-numeric rate.
    - ValueError on an amount that cannot be read as a Decimal.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from functools import total_ordering

from freight_kernel.domain.currency import CurrencyRegistry
from freight_kernel.exceptions import (
    CurrencyMismatchError,
    InvalidCurrencyError,
    InvalidRateError,
)


def to_decimal(value: Decimal | str | int) -> Decimal:
    """Coerce a str/int/Decimal to Decimal. Floats go through str()."""
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"Invalid decimal value: {value!r}") from e


_ZERO = Decimal("0")


@dataclass(frozen=True, slots=True)
class Currency:
    """An ISO 4217 code, upper-cased and checked against CurrencyRegistry."""

    code: str

    def __post_init__(self) -> None:
        normalized = self.code.upper().strip() if isinstance(self.code, str) else ""
        if not CurrencyRegistry.is_valid(normalized):
            raise InvalidCurrencyError(str(self.code))
        object.__setattr__(self, "code", normalized)

    @property
    def decimal_places(self) -> int:
        return CurrencyRegistry.get_decimal_places(self.code)

    def __str__(self) -> str:
        return self.code

    def __repr__(self) -> str:
        return f"Currency({self.code!r})"


@total_ordering
@dataclass(frozen=True, slots=True)
class Money:
    """
    An amount in one currency.

    Contract:
        The amount may be signed (agent net balances).  Charge lines are
        non-negative because charge rules reject negative rates, not
        because Money checks.

    Guarantees:
        - amount is always a Decimal.
        - Adding, subtracting and ordering two amounts requires one currency.

    Non-goals:
        - Does NOT convert (see freight_engines.rates.RateTable).
        - Does NOT round unless .round() is called.
    """

    amount: Decimal
    currency: Currency

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", to_decimal(self.amount))
        if isinstance(self.currency, str):
            object.__setattr__(self, "currency", Currency(self.currency))
        elif not isinstance(self.currency, Currency):
            raise TypeError(f"currency must be Currency or str, got {type(self.currency)}")

    @classmethod
    def of(cls, amount: Decimal | str | int, currency: str | Currency) -> Money:
        return cls(to_decimal(amount), currency)

    @classmethod
    def zero(cls, currency: str | Currency) -> Money:
        return cls(_ZERO, currency)

    @property
    def currency_code(self) -> str:
        return self.currency.code

    @property
    def is_zero(self) -> bool:
        return self.amount == _ZERO

    @property
    def is_negative(self) -> bool:
        return self.amount < _ZERO

    def round(self, rounding: str = ROUND_HALF_UP) -> Money:
        """Quantize to the currency's minor unit."""
        quantum = Decimal(1).scaleb(-self.currency.decimal_places)
        return Money(self.amount.quantize(quantum, rounding=rounding), self.currency)

    def _same_currency_amount(self, other: Money) -> Decimal:
        if self.currency != other.currency:
            raise CurrencyMismatchError(self.currency.code, other.currency.code)
        return other.amount

    def __add__(self, other: object) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        return Money(self.amount + self._same_currency_amount(other), self.currency)

    def __sub__(self, other: object) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        return Money(self.amount - self._same_currency_amount(other), self.currency)

    def __mul__(self, factor: object) -> Money:
        if isinstance(factor, bool) or not isinstance(factor, (Decimal, int, str)):
            return NotImplemented
        return Money(self.amount * to_decimal(factor), self.currency)

    __rmul__ = __mul__

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        return self.amount < self._same_currency_amount(other)

    def __str__(self) -> str:
        return f"{self.amount} {self.currency.code}"

    def __repr__(self) -> str:
        return f"Money({self.amount!r}, {self.currency!r})"

@dataclass(frozen=True, slots=True)
class RateEntry:
    """
    One conversion rate into the reporting currency.

    1 unit of ``currency_code`` = ``rate_to_reporting`` units of the
    reporting currency.
    """

    currency_code: str
    rate_to_reporting: Decimal

    def __post_init__(self) -> None:
        object.__setattr__(self, "currency_code", Currency(self.currency_code).code)
        try:
            rate = to_decimal(self.rate_to_reporting)
        except ValueError as e:
            raise InvalidRateError(self.currency_code, str(self.rate_to_reporting)) from e
        if not rate.is_finite() or rate <= Decimal("0"):
            raise InvalidRateError(self.currency_code, str(rate))
        object.__setattr__(self, "rate_to_reporting", rate)

    @classmethod
    def of(cls, currency_code: str, rate: Decimal | str | int) -> RateEntry:
        return cls(currency_code=currency_code, rate_to_reporting=to_decimal(rate))
