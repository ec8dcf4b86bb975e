"""
Domain layer -- pure value objects, record variants and intervals.

Nothing in this package performs I/O.
"""

from freight_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from freight_kernel.domain.collaborators import (
    ChargeRuleSource,
    ProductInfo,
    ProductInfoSource,
    RateSource,
    RecordSource,
)
from freight_kernel.domain.currency import CurrencyInfo, CurrencyRegistry
from freight_kernel.domain.intervals import (
    ComparisonMode,
    DateInterval,
    DatePreset,
    Granularity,
)
from freight_kernel.domain.records import (
    AnyRecord,
    ExpenseRecord,
    ExpenseStatus,
    InvoiceDirection,
    InvoiceRecord,
    InvoiceStatus,
    RecordKind,
    ShipmentRecord,
    ShipmentStatus,
    TransactionRecord,
)
from freight_kernel.domain.values import Currency, Money, RateEntry, to_decimal

__all__ = [
    "AnyRecord",
    "ChargeRuleSource",
    "Clock",
    "ComparisonMode",
    "Currency",
    "CurrencyInfo",
    "CurrencyRegistry",
    "DateInterval",
    "DatePreset",
    "DeterministicClock",
    "ExpenseRecord",
    "ExpenseStatus",
    "Granularity",
    "InvoiceDirection",
    "InvoiceRecord",
    "InvoiceStatus",
    "Money",
    "ProductInfo",
    "ProductInfoSource",
    "RateEntry",
    "RateSource",
    "RecordKind",
    "RecordSource",
    "ShipmentRecord",
    "ShipmentStatus",
    "SystemClock",
    "TransactionRecord",
    "to_decimal",
]
