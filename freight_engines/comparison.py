"""
Module: freight_engines.comparison
Responsibility:
    Resolve report date presets into concrete intervals, derive the
    baseline interval for a comparison, and compute growth metrics of the
    current period against the baseline.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  The current instant is
    always a parameter; this module never reads a clock.

Invariants enforced:
    - Growth is None exactly when baseline and current are both zero.
      A zero baseline with a positive current is 100, with a negative
      current -100.
    - Margin is compared in percentage points (plain difference), never
      as a growth percent.
    - Year-over-year shifts calendar fields (Feb 29 -> Feb 28), never
      365 days.
    - Period-over-period keeps the interval length and ends one
      microsecond before the current start.
    - No baseline exists for unbounded or half-open intervals; the
      comparison is suppressed (None), not computed against zero.

Failure modes:
    - UnknownCurrencyError propagates from normalization.
    - ValueError for an unknown preset.

Usage:
    from freight_engines.comparison import resolve_preset, compare_periods

    interval = resolve_preset(DatePreset.THIS_MONTH, clock.now())
    comparison = compare_periods(invoices, expenses, table, interval,
                                 ComparisonMode.YEAR_OVER_YEAR)
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal

from freight_engines.date_filter import filter_records
from freight_engines.normalizer import normalize
from freight_engines.rates import RateTable
from freight_engines.tracer import traced_engine
from freight_kernel.domain.intervals import ComparisonMode, DateInterval, DatePreset
from freight_kernel.domain.records import ExpenseRecord, InvoiceRecord

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")
_ONE_MICROSECOND = timedelta(microseconds=1)


# ---------------------------------------------------------------------------
# Presets and baselines
# ---------------------------------------------------------------------------


def _start_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def _end_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=23, minute=59, second=59, microsecond=999999)


def _end_of_month(moment: datetime) -> datetime:
    if moment.month == 12:
        first_of_next = moment.replace(year=moment.year + 1, month=1, day=1)
    else:
        first_of_next = moment.replace(month=moment.month + 1, day=1)
    return _end_of_day(first_of_next - timedelta(days=1))


def resolve_preset(
    preset: DatePreset,
    now: datetime,
    custom_start: datetime | None = None,
    custom_end: datetime | None = None,
) -> DateInterval:
    """
    Concrete interval for a preset relative to ``now``.

    Day boundaries follow ``now``'s timezone.
    """
    preset = DatePreset(preset)
    end_of_today = _end_of_day(now)

    if preset == DatePreset.ALL_TIME:
        return DateInterval.all_time()
    if preset == DatePreset.TODAY:
        return DateInterval(_start_of_day(now), end_of_today)
    if preset == DatePreset.LAST_7:
        return DateInterval(end_of_today - timedelta(days=7), end_of_today)
    if preset == DatePreset.LAST_30:
        return DateInterval(end_of_today - timedelta(days=30), end_of_today)
    if preset == DatePreset.THIS_MONTH:
        start = _start_of_day(now.replace(day=1))
        return DateInterval(start, _end_of_month(start))
    if preset == DatePreset.LAST_MONTH:
        previous = _start_of_day(now.replace(day=1)) - timedelta(days=1)
        start = _start_of_day(previous.replace(day=1))
        return DateInterval(start, _end_of_month(start))
    if preset == DatePreset.THIS_YEAR:
        start = _start_of_day(now.replace(month=1, day=1))
        return DateInterval(start, end_of_today)
    if preset == DatePreset.CUSTOM:
        return DateInterval(custom_start, custom_end)
    raise ValueError(f"Unknown date preset: {preset!r}")


def shift_year_back(moment: datetime) -> datetime:
    """Same calendar position one year earlier; Feb 29 clamps to Feb 28."""
    try:
        return moment.replace(year=moment.year - 1)
    except ValueError:
        return moment.replace(year=moment.year - 1, day=28)


def baseline_interval(
    interval: DateInterval,
    mode: ComparisonMode,
) -> DateInterval | None:
    """Baseline for ``interval``, or None when no comparison is possible."""
    if not interval.is_bounded:
        return None
    mode = ComparisonMode(mode)
    if mode == ComparisonMode.YEAR_OVER_YEAR:
        return DateInterval(shift_year_back(interval.start), shift_year_back(interval.end))
    baseline_end = interval.start - _ONE_MICROSECOND
    return DateInterval(baseline_end - interval.length, baseline_end)


# ---------------------------------------------------------------------------
# Growth
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ComparisonResult:
    """A metric in the current and baseline periods, with growth percent."""

    current: Decimal
    baseline: Decimal
    growth_percent: Decimal | None

    @property
    def delta(self) -> Decimal:
        return self.current - self.baseline


@dataclass(frozen=True)
class PointsComparison:
    """A percentage metric compared as an absolute points difference."""

    current: Decimal
    baseline: Decimal
    change_points: Decimal


def growth_percent(current: Decimal, baseline: Decimal) -> Decimal | None:
    """
    Relative change of ``current`` against ``baseline`` in percent.

    Zero-baseline rule: None when both are zero, otherwise +/-100 by the
    sign of ``current``.
    """
    if baseline == _ZERO:
        if current > _ZERO:
            return _HUNDRED
        if current < _ZERO:
            return -_HUNDRED
        return None
    return (current - baseline) / abs(baseline) * _HUNDRED


def compare(current: Decimal, baseline: Decimal) -> ComparisonResult:
    return ComparisonResult(current, baseline, growth_percent(current, baseline))


def compare_margin(current_margin: Decimal, baseline_margin: Decimal) -> PointsComparison:
    return PointsComparison(
        current_margin, baseline_margin, current_margin - baseline_margin
    )


# ---------------------------------------------------------------------------
# Financial metrics
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FinancialMetrics:
    """
    Headline figures of one period, in the reporting currency.

    Guarantees:
        - revenue counts paid invoices only.
        - expenses counts approved expenses only.
        - margin_percent is 0 when revenue is 0.
    """

    revenue: Decimal
    expenses: Decimal
    pending: Decimal
    reporting_currency: str

    @property
    def net_profit(self) -> Decimal:
        return self.revenue - self.expenses

    @property
    def margin_percent(self) -> Decimal:
        if self.revenue > _ZERO:
            return self.net_profit / self.revenue * _HUNDRED
        return _ZERO


@dataclass(frozen=True)
class FinancialComparison:
    """Current vs baseline for each headline metric."""

    current_interval: DateInterval
    baseline_interval: DateInterval
    mode: ComparisonMode
    revenue: ComparisonResult
    expenses: ComparisonResult
    net_profit: ComparisonResult
    margin: PointsComparison


def _total(records: Iterable, rate_table: RateTable) -> Decimal:
    return sum((normalize(r, rate_table).amount for r in records), _ZERO)


def compute_metrics(
    invoices: Iterable[InvoiceRecord],
    expenses: Iterable[ExpenseRecord],
    rate_table: RateTable,
) -> FinancialMetrics:
    """Headline metrics over already-filtered records."""
    invoices = tuple(invoices)
    return FinancialMetrics(
        revenue=_total((i for i in invoices if i.is_paid), rate_table),
        expenses=_total((e for e in expenses if e.is_approved), rate_table),
        pending=_total((i for i in invoices if i.is_pending), rate_table),
        reporting_currency=rate_table.reporting_currency,
    )


@traced_engine(
    "comparison", "1.0", fingerprint_fields=("interval", "mode", "rate_table")
)
def compare_periods(
    invoices: Iterable[InvoiceRecord],
    expenses: Iterable[ExpenseRecord],
    rate_table: RateTable,
    interval: DateInterval,
    mode: ComparisonMode,
) -> FinancialComparison | None:
    """
    Compare the headline metrics of ``interval`` with its baseline.

    Returns None when ``interval`` has no baseline (all time, half-open).
    """
    baseline = baseline_interval(interval, mode)
    if baseline is None:
        return None

    invoices = tuple(invoices)
    expenses = tuple(expenses)
    current = compute_metrics(
        filter_records(invoices, interval),
        filter_records(expenses, interval),
        rate_table,
    )
    previous = compute_metrics(
        filter_records(invoices, baseline),
        filter_records(expenses, baseline),
        rate_table,
    )
    return FinancialComparison(
        current_interval=interval,
        baseline_interval=baseline,
        mode=ComparisonMode(mode),
        revenue=compare(current.revenue, previous.revenue),
        expenses=compare(current.expenses, previous.expenses),
        net_profit=compare(current.net_profit, previous.net_profit),
        margin=compare_margin(current.margin_percent, previous.margin_percent),
    )
