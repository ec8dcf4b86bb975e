"""
Module: freight_engines.rollup
Responsibility:
    Group records by a derived key and accumulate, per group, the record
    count, the total in the reporting currency, the totals per original
    currency and the total shipped weight.  Every breakdown on the
    analytics screens (revenue by currency, expenses by category,
    shipments by status or region, monthly trend) is one rollup with a
    different key function.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Single pass over the input; each record lands in exactly one bucket
      or is skipped because its key function returned None.
    - ``sum_in_reporting_currency`` of a bucket equals the sum of its
      ``sum_by_original_currency`` entries converted through the one rate
      snapshot used by the pass.
    - Output order is first-seen by default.  TOTAL_DESC sorts by the
      reporting total, descending, ties keep first-seen order.

Failure modes:
    - UnknownCurrencyError when a record's currency is missing from the
      rate table.  The whole pass fails; partial buckets are never
      returned.

Usage:
    from freight_engines.rollup import rollup, by_currency, RollupOrder

    buckets = rollup(paid_invoices, by_currency, table,
                     order=RollupOrder.TOTAL_DESC)
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Any

from freight_engines.rates import RateTable
from freight_engines.tracer import traced_engine
from freight_kernel.domain.intervals import DateInterval, Granularity
from freight_kernel.domain.records import TransactionRecord
from freight_kernel.domain.values import Money

GroupKey = tuple[Any, ...]
KeyFn = Callable[[TransactionRecord], GroupKey | None]

UNASSIGNED = "unassigned"

_ZERO = Decimal("0")


class RollupOrder(str, Enum):
    FIRST_SEEN = "first_seen"
    TOTAL_DESC = "total_desc"


@dataclass(frozen=True)
class RollupBucket:
    """
    One group of a rollup.

    Guarantees:
        - ``count`` counts every record keyed into the group, including
          records without an amount.
        - ``sum_by_original_currency`` only lists currencies seen.
    """

    group_key: GroupKey
    count: int
    sum_in_reporting_currency: Decimal
    sum_by_original_currency: Mapping[str, Decimal]
    total_weight_kg: Decimal
    reporting_currency: str

    @property
    def total(self) -> Money:
        return Money(self.sum_in_reporting_currency, self.reporting_currency)

    @property
    def label(self) -> str:
        return "/".join(str(part) for part in self.group_key)


@dataclass
class _Accumulator:
    count: int = 0
    by_currency: dict[str, Decimal] = field(default_factory=dict)
    weight: Decimal = _ZERO

    def add(self, record: TransactionRecord, rate_table: RateTable) -> None:
        self.count += 1
        amount = record.amount
        if amount is not None:
            # Fails the pass on the first unknown currency.
            rate_table.lookup(amount.currency_code)
            code = amount.currency_code
            self.by_currency[code] = self.by_currency.get(code, _ZERO) + amount.amount
        weight = record.weight
        if weight is not None:
            self.weight += weight

    def freeze(self, key: GroupKey, rate_table: RateTable) -> RollupBucket:
        reporting_total = sum(
            (total * rate_table.lookup(code) for code, total in self.by_currency.items()),
            _ZERO,
        )
        return RollupBucket(
            group_key=key,
            count=self.count,
            sum_in_reporting_currency=reporting_total,
            sum_by_original_currency=MappingProxyType(dict(self.by_currency)),
            total_weight_kg=self.weight,
            reporting_currency=rate_table.reporting_currency,
        )


@traced_engine(
    "rollup", "1.0", fingerprint_fields=("records", "rate_table", "order")
)
def rollup(
    records: Iterable[TransactionRecord],
    key_fn: KeyFn,
    rate_table: RateTable,
    *,
    order: RollupOrder = RollupOrder.FIRST_SEEN,
) -> tuple[RollupBucket, ...]:
    """Group ``records`` by ``key_fn`` and total each group."""
    groups: dict[GroupKey, _Accumulator] = {}
    for record in records:
        key = key_fn(record)
        if key is None:
            continue
        acc = groups.get(key)
        if acc is None:
            acc = groups[key] = _Accumulator()
        acc.add(record, rate_table)

    buckets = tuple(acc.freeze(key, rate_table) for key, acc in groups.items())
    if order == RollupOrder.TOTAL_DESC:
        buckets = tuple(
            sorted(buckets, key=lambda b: b.sum_in_reporting_currency, reverse=True)
        )
    return buckets


# ---------------------------------------------------------------------------
# Key functions
# ---------------------------------------------------------------------------


def _tag_or_unassigned(value: str | None) -> str:
    return value if value else UNASSIGNED


def by_currency(record: TransactionRecord) -> GroupKey:
    amount = record.amount
    return (amount.currency_code if amount is not None else UNASSIGNED,)


def by_category(record: TransactionRecord) -> GroupKey:
    return (_tag_or_unassigned(getattr(record, "category", None)),)


def by_region(record: TransactionRecord) -> GroupKey:
    return (_tag_or_unassigned(getattr(record, "region", None)),)


def by_status(record: TransactionRecord) -> GroupKey:
    return (_tag_or_unassigned(record.status),)


def by_direction(record: TransactionRecord) -> GroupKey:
    return (_tag_or_unassigned(getattr(record, "direction", None)),)


def by_agent(record: TransactionRecord) -> GroupKey:
    return (_tag_or_unassigned(getattr(record, "agent_id", None)),)


def by_kind(record: TransactionRecord) -> GroupKey:
    return (record.kind.value,)


def bucket_start(moment: date, granularity: Granularity) -> date:
    """
    First day of the bucket containing ``moment``.

    Weeks start on Sunday.
    """
    if isinstance(moment, datetime):
        moment = moment.date()
    if granularity == Granularity.DAY:
        return moment
    if granularity == Granularity.WEEK:
        # date.weekday(): Monday=0 .. Sunday=6
        return moment - timedelta(days=(moment.weekday() + 1) % 7)
    return moment.replace(day=1)


def by_time_bucket(granularity: Granularity) -> KeyFn:
    """
    Key function bucketing by governing timestamp.

    Records without a governing timestamp are skipped.
    """

    def key(record: TransactionRecord) -> GroupKey | None:
        moment = record.governing_timestamp
        if moment is None:
            return None
        return (bucket_start(moment, granularity),)

    key.__qualname__ = f"by_time_bucket({Granularity(granularity).value})"
    return key


def composite(*key_fns: KeyFn) -> KeyFn:
    """Concatenate several keys; skip the record if any part skips it."""

    def key(record: TransactionRecord) -> GroupKey | None:
        parts: list[Any] = []
        for fn in key_fns:
            part = fn(record)
            if part is None:
                return None
            parts.extend(part)
        return tuple(parts)

    return key


# ---------------------------------------------------------------------------
# Derived views
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ShareLine:
    """A bucket's share of the grand total, in percent."""

    group_key: GroupKey
    amount: Decimal
    percentage: Decimal


def share_breakdown(buckets: Iterable[RollupBucket]) -> tuple[ShareLine, ...]:
    """Each bucket's percentage of the summed reporting total (0 if empty)."""
    buckets = tuple(buckets)
    grand_total = sum((b.sum_in_reporting_currency for b in buckets), _ZERO)
    lines = []
    for b in buckets:
        if grand_total == _ZERO:
            pct = _ZERO
        else:
            pct = b.sum_in_reporting_currency / grand_total * Decimal("100")
        lines.append(ShareLine(b.group_key, b.sum_in_reporting_currency, pct))
    return tuple(lines)


def bucket_starts(interval: DateInterval, granularity: Granularity) -> tuple[date, ...]:
    """
    Every bucket start covering a bounded interval, in order.

    Returns an empty tuple for unbounded or half-open intervals.
    """
    if not interval.is_bounded:
        return ()
    current = bucket_start(interval.start, granularity)
    last = bucket_start(interval.end, granularity)
    starts: list[date] = []
    while current <= last:
        starts.append(current)
        if granularity == Granularity.DAY:
            current += timedelta(days=1)
        elif granularity == Granularity.WEEK:
            current += timedelta(days=7)
        elif current.month == 12:
            current = current.replace(year=current.year + 1, month=1)
        else:
            current = current.replace(month=current.month + 1)
    return tuple(starts)
