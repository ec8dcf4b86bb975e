"""
Typed Exception Hierarchy for the Freight Finance Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Every failure the aggregation engine can produce is a synchronous,
value-level error: an unknown currency, a malformed interval, a charge rate
that cannot be resolved.  Callers (report screens, quote previews) decide
whether such a failure aborts the whole computation or is substituted with a
default and flagged.  They can only make that decision reliably if they can
catch by TYPE and read structured DATA, never by parsing messages.

Every exception:
  1. Has a typed class (catch by type, not message)
  2. Has a CODE class attribute (machine-readable, API-safe)
  3. Carries structured attributes (currency code, record id, bounds...)

Example:
    try:
        report = build_financial_report(...)
    except UnknownCurrencyError as e:
        show_error_state(code=e.code, currency=e.currency)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    FreightKernelError (base)
    |
    +-- CurrencyError
    |   +-- InvalidCurrencyError
    |   +-- CurrencyMismatchError
    |   +-- UnknownCurrencyError
    |   +-- DuplicateRateError
    |   +-- InvalidRateError
    |
    +-- IntervalError
    |   +-- InvalidIntervalError
    |
    +-- RecordError
    |   +-- MissingGoverningTimestampError
    |
    +-- ChargeError
        +-- InvalidChargeRuleError
        +-- UnresolvableRateError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category   | Code                          | When Raised
-----------|-------------------------------|------------------------------------
Currency   | INVALID_CURRENCY              | Not a known ISO 4217 code
           | CURRENCY_MISMATCH             | Mixed currencies in one operation
           | UNKNOWN_CURRENCY              | No rate entry in the rate table
           | DUPLICATE_RATE                | Two entries for one currency code
           | INVALID_RATE                  | Rate is zero, negative or not numeric
-----------|-------------------------------|------------------------------------
Interval   | INVALID_INTERVAL              | start > end
-----------|-------------------------------|------------------------------------
Record     | MISSING_GOVERNING_TIMESTAMP   | Record excluded from a bounded query
           |                               | (exclusion reason, never aborts)
-----------|-------------------------------|------------------------------------
Charge     | INVALID_CHARGE_RULE           | Negative rate, unknown kind/base
           | UNRESOLVABLE_RATE             | No product rate and no default

===============================================================================
HANDLING PATTERNS
===============================================================================

1. ABORT THE REPORT on UnknownCurrencyError (computation failed), but
   render an empty result normally (no data in range is valid).

2. SUBSTITUTE AND FLAG only where the call site opted in explicitly:

    lookup = rate_table.lookup_or_default(code)
    if lookup.is_default:
        flag_for_review(code)

3. MissingGoverningTimestampError is a VALUE, not a raised error, when it
   comes out of ``partition_records``: it explains why a record is not in
   a bounded result.
"""


class FreightKernelError(Exception):
    """
    Base exception for all freight kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "FREIGHT_KERNEL_ERROR"


# Currency-related exceptions


class CurrencyError(FreightKernelError):
    """Base exception for currency-related errors."""

    code: str = "CURRENCY_ERROR"


class InvalidCurrencyError(CurrencyError):
    """Invalid ISO 4217 currency code provided."""

    code: str = "INVALID_CURRENCY"

    def __init__(self, currency: str):
        self.currency = currency
        super().__init__(f"Invalid ISO 4217 currency code: '{currency}'")


class CurrencyMismatchError(CurrencyError):
    """Attempted operation on mismatched currencies."""

    code: str = "CURRENCY_MISMATCH"

    def __init__(self, currency1: str, currency2: str):
        self.currency1 = currency1
        self.currency2 = currency2
        super().__init__(f"Currency mismatch: {currency1} vs {currency2}")


class UnknownCurrencyError(CurrencyError):
    """The rate table has no entry for the requested currency."""

    code: str = "UNKNOWN_CURRENCY"

    def __init__(self, currency: str, reporting_currency: str):
        self.currency = currency
        self.reporting_currency = reporting_currency
        super().__init__(
            f"No rate to {reporting_currency} for currency '{currency}'"
        )


class DuplicateRateError(CurrencyError):
    """More than one rate entry supplied for a single currency code."""

    code: str = "DUPLICATE_RATE"

    def __init__(self, currency: str):
        self.currency = currency
        super().__init__(f"Duplicate rate entry for currency '{currency}'")


class InvalidRateError(CurrencyError):
    """Rate is zero, negative or not a number."""

    code: str = "INVALID_RATE"

    def __init__(self, currency: str, rate: str):
        self.currency = currency
        self.rate = rate
        super().__init__(f"Invalid rate {rate} for currency '{currency}'")


# Interval-related exceptions


class IntervalError(FreightKernelError):
    """Base exception for date interval errors."""

    code: str = "INTERVAL_ERROR"


class InvalidIntervalError(IntervalError):
    """Interval start is after its end."""

    code: str = "INVALID_INTERVAL"

    def __init__(self, start: str, end: str):
        self.start = start
        self.end = end
        super().__init__(f"Invalid interval: start {start} is after end {end}")


# Record-related exceptions


class RecordError(FreightKernelError):
    """Base exception for transaction record errors."""

    code: str = "RECORD_ERROR"


class MissingGoverningTimestampError(RecordError):
    """
    Record has no governing timestamp.

    Used as an exclusion reason by the date-range filter.  Records carrying
    this reason are left out of bounded queries; they are not a failure of
    the computation.
    """

    code: str = "MISSING_GOVERNING_TIMESTAMP"

    def __init__(self, record_id: str, record_kind: str):
        self.record_id = record_id
        self.record_kind = record_kind
        super().__init__(
            f"{record_kind} {record_id} has no governing timestamp"
        )


# Charge-related exceptions


class ChargeError(FreightKernelError):
    """Base exception for cost-breakdown errors."""

    code: str = "CHARGE_ERROR"


class InvalidChargeRuleError(ChargeError):
    """Charge rule definition is malformed."""

    code: str = "INVALID_CHARGE_RULE"

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Invalid charge rule '{key}': {reason}")


class UnresolvableRateError(ChargeError):
    """No product rate matched and no default rate is available."""

    code: str = "UNRESOLVABLE_RATE"

    def __init__(self, region: str, category: str):
        self.region = region
        self.category = category
        super().__init__(
            f"No product rate for region '{region}', category '{category}' "
            f"and no default configured"
        )
