"""
Module: freight_engines.normalizer
Responsibility:
    Bring the amount of any transaction record into the reporting currency.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Same record and same rate snapshot always give the same result.
    - No retries, no substitution: a missing rate propagates
      UnknownCurrencyError to the caller.
    - A record without an amount (a shipment with no cost) normalizes to
      zero in the reporting currency.
"""

from __future__ import annotations

from collections.abc import Iterable

from freight_engines.rates import RateTable
from freight_engines.tracer import traced_engine
from freight_kernel.domain.records import TransactionRecord
from freight_kernel.domain.values import Money


def normalize(record: TransactionRecord, rate_table: RateTable) -> Money:
    """Amount of ``record`` in the reporting currency."""
    amount = record.amount
    if amount is None:
        return Money.zero(rate_table.reporting_currency)
    return rate_table.convert(amount)


@traced_engine("normalizer", "1.0", fingerprint_fields=("records", "rate_table"))
def normalize_all(
    records: Iterable[TransactionRecord],
    rate_table: RateTable,
) -> tuple[Money, ...]:
    return tuple(normalize(r, rate_table) for r in records)
