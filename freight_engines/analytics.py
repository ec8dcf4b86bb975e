"""
Module: freight_engines.analytics
Responsibility:
    Assemble the financial report behind the analytics screen from one
    snapshot of records and one rate table: headline metrics, the
    baseline comparison, breakdowns by currency, category, status and
    region, and a trend series per time bucket.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Composes the filter,
    rollup and comparison engines; adds no arithmetic of its own beyond
    per-bucket differences.

Invariants enforced:
    - Revenue counts paid invoices, expenses count approved expenses,
      pending counts pending invoices.
    - Every figure in one report comes from the same rate snapshot.
    - For a bounded interval the trend covers every bucket in range,
      including empty ones.  Otherwise it covers the buckets that have
      data, in chronological order.
    - Records without a governing timestamp are listed in ``excluded``
      when the interval is bounded.

Failure modes:
    - UnknownCurrencyError propagates; no partial report is returned.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from freight_engines.comparison import (
    FinancialComparison,
    FinancialMetrics,
    compare_periods,
    compute_metrics,
)
from freight_engines.date_filter import partition_records
from freight_engines.rates import RateTable
from freight_engines.rollup import (
    RollupBucket,
    RollupOrder,
    ShareLine,
    bucket_starts,
    by_category,
    by_currency,
    by_region,
    by_status,
    by_time_bucket,
    rollup,
    share_breakdown,
)
from freight_engines.tracer import traced_engine
from freight_kernel.domain.intervals import ComparisonMode, DateInterval, Granularity
from freight_kernel.domain.records import (
    ExpenseRecord,
    InvoiceRecord,
    ShipmentRecord,
    ShipmentStatus,
)
from freight_kernel.exceptions import MissingGoverningTimestampError

_ZERO = Decimal("0")


@dataclass(frozen=True)
class RecordSnapshot:
    """Unfiltered records fetched once for a report."""

    invoices: tuple[InvoiceRecord, ...] = ()
    expenses: tuple[ExpenseRecord, ...] = ()
    shipments: tuple[ShipmentRecord, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "invoices", tuple(self.invoices))
        object.__setattr__(self, "expenses", tuple(self.expenses))
        object.__setattr__(self, "shipments", tuple(self.shipments))

    @property
    def is_empty(self) -> bool:
        return not (self.invoices or self.expenses or self.shipments)


@dataclass(frozen=True)
class TrendPoint:
    bucket_start: date
    revenue: Decimal = _ZERO
    pending: Decimal = _ZERO
    expenses: Decimal = _ZERO
    shipments: int = 0
    weight_kg: Decimal = _ZERO
    delivered: int = 0

    @property
    def net_profit(self) -> Decimal:
        return self.revenue - self.expenses


@dataclass(frozen=True)
class FinancialReport:
    """
    Everything the analytics screen renders for one interval.

    ``comparison`` is None when the interval has no baseline.
    """

    interval: DateInterval
    mode: ComparisonMode
    granularity: Granularity
    reporting_currency: str
    metrics: FinancialMetrics
    comparison: FinancialComparison | None
    revenue_by_currency: tuple[RollupBucket, ...]
    pending_by_currency: tuple[RollupBucket, ...]
    expenses_by_currency: tuple[RollupBucket, ...]
    expenses_by_category: tuple[RollupBucket, ...]
    shipments_by_status: tuple[RollupBucket, ...]
    shipments_by_region: tuple[RollupBucket, ...]
    trend: tuple[TrendPoint, ...]
    excluded: tuple[MissingGoverningTimestampError, ...] = field(default=())

    @property
    def revenue_shares(self) -> tuple[ShareLine, ...]:
        return share_breakdown(self.revenue_by_currency)

    @property
    def expense_shares(self) -> tuple[ShareLine, ...]:
        return share_breakdown(self.expenses_by_currency)

    @property
    def total_shipments(self) -> int:
        return sum(b.count for b in self.shipments_by_status)

    @property
    def total_weight_kg(self) -> Decimal:
        return sum((b.total_weight_kg for b in self.shipments_by_status), _ZERO)

    @property
    def is_empty(self) -> bool:
        """
        True when the interval has no revenue, pending, expense or shipment
        data.  Draft or overdue invoices alone still count as empty.
        """
        return (
            not self.revenue_by_currency
            and not self.pending_by_currency
            and not self.expenses_by_currency
            and not self.shipments_by_status
        )


def _by_bucket(buckets: Sequence[RollupBucket]) -> dict[date, RollupBucket]:
    return {b.group_key[0]: b for b in buckets}


def _build_trend(
    paid: Sequence[InvoiceRecord],
    pending: Sequence[InvoiceRecord],
    expenses: Sequence[ExpenseRecord],
    shipments: Sequence[ShipmentRecord],
    rate_table: RateTable,
    interval: DateInterval,
    granularity: Granularity,
) -> tuple[TrendPoint, ...]:
    key = by_time_bucket(granularity)
    revenue = _by_bucket(rollup(paid, key, rate_table))
    pending_b = _by_bucket(rollup(pending, key, rate_table))
    expense_b = _by_bucket(rollup(expenses, key, rate_table))
    shipment_b = _by_bucket(rollup(shipments, key, rate_table))
    delivered_b = _by_bucket(
        rollup(
            [s for s in shipments if s.status == ShipmentStatus.DELIVERED.value],
            key,
            rate_table,
        )
    )

    starts = bucket_starts(interval, granularity)
    if not starts:
        seen = set(revenue) | set(pending_b) | set(expense_b) | set(shipment_b)
        starts = tuple(sorted(seen))

    points = []
    for start in starts:
        shipped = shipment_b.get(start)
        delivered = delivered_b.get(start)
        points.append(
            TrendPoint(
                bucket_start=start,
                revenue=revenue[start].sum_in_reporting_currency if start in revenue else _ZERO,
                pending=pending_b[start].sum_in_reporting_currency if start in pending_b else _ZERO,
                expenses=expense_b[start].sum_in_reporting_currency if start in expense_b else _ZERO,
                shipments=shipped.count if shipped else 0,
                weight_kg=shipped.total_weight_kg if shipped else _ZERO,
                delivered=delivered.count if delivered else 0,
            )
        )
    return tuple(points)


@traced_engine(
    "financial_report",
    "1.0",
    fingerprint_fields=("rate_table", "interval", "mode", "granularity"),
)
def build_financial_report(
    snapshot: RecordSnapshot,
    rate_table: RateTable,
    interval: DateInterval,
    mode: ComparisonMode = ComparisonMode.PERIOD_OVER_PERIOD,
    *,
    granularity: Granularity = Granularity.MONTH,
) -> FinancialReport:
    """
    Build the report for ``interval``.

    Args:
        snapshot: Unfiltered records.
        rate_table: The one rate snapshot for this report.
        interval: Current period.
        mode: How the comparison baseline is derived.
        granularity: Trend bucket size.
    """
    mode = ComparisonMode(mode)
    granularity = Granularity(granularity)

    inv_part = partition_records(snapshot.invoices, interval)
    exp_part = partition_records(snapshot.expenses, interval)
    shp_part = partition_records(snapshot.shipments, interval)

    invoices: tuple[InvoiceRecord, ...] = inv_part.included
    expenses: tuple[ExpenseRecord, ...] = exp_part.included
    shipments: tuple[ShipmentRecord, ...] = shp_part.included

    paid = [i for i in invoices if i.is_paid]
    pending = [i for i in invoices if i.is_pending]
    approved = [e for e in expenses if e.is_approved]

    return FinancialReport(
        interval=interval,
        mode=mode,
        granularity=granularity,
        reporting_currency=rate_table.reporting_currency,
        metrics=compute_metrics(invoices, expenses, rate_table),
        comparison=compare_periods(
            snapshot.invoices, snapshot.expenses, rate_table, interval, mode
        ),
        revenue_by_currency=rollup(
            paid, by_currency, rate_table, order=RollupOrder.TOTAL_DESC
        ),
        pending_by_currency=rollup(
            pending, by_currency, rate_table, order=RollupOrder.TOTAL_DESC
        ),
        expenses_by_currency=rollup(
            approved, by_currency, rate_table, order=RollupOrder.TOTAL_DESC
        ),
        expenses_by_category=rollup(
            approved, by_category, rate_table, order=RollupOrder.TOTAL_DESC
        ),
        shipments_by_status=rollup(shipments, by_status, rate_table),
        shipments_by_region=rollup(shipments, by_region, rate_table),
        trend=_build_trend(
            paid, pending, approved, shipments, rate_table, interval, granularity
        ),
        excluded=inv_part.excluded + exp_part.excluded + shp_part.excluded,
    )
