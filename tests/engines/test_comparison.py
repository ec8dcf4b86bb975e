"""
Tests for the comparative analytics engine.

Covers:
- Preset resolution against a fixed "now"
- Baseline derivation (period-over-period, calendar year-over-year)
- The zero-baseline growth rule
- Headline metric comparison
"""

from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest

from freight_engines.comparison import (
    baseline_interval,
    compare,
    compare_margin,
    compare_periods,
    compute_metrics,
    growth_percent,
    resolve_preset,
    shift_year_back,
)
from freight_kernel.domain.intervals import ComparisonMode, DateInterval, DatePreset
from freight_kernel.exceptions import InvalidIntervalError

NOW = datetime(2024, 3, 15, 12, 0, tzinfo=UTC)
END_OF_TODAY = datetime(2024, 3, 15, 23, 59, 59, 999999, tzinfo=UTC)
MARCH = DateInterval(
    datetime(2024, 3, 1, tzinfo=UTC),
    datetime(2024, 3, 31, 23, 59, 59, 999999, tzinfo=UTC),
)


class TestResolvePreset:
    def test_all_time(self):
        assert resolve_preset(DatePreset.ALL_TIME, NOW).is_unbounded

    def test_today(self):
        interval = resolve_preset(DatePreset.TODAY, NOW)
        assert interval.start == datetime(2024, 3, 15, tzinfo=UTC)
        assert interval.end == END_OF_TODAY

    def test_last_7_counts_back_from_end_of_today(self):
        interval = resolve_preset("last7", NOW)
        assert interval.end == END_OF_TODAY
        assert interval.start == END_OF_TODAY - timedelta(days=7)

    def test_last_30(self):
        interval = resolve_preset(DatePreset.LAST_30, NOW)
        assert interval.length == timedelta(days=30)

    def test_this_month(self):
        assert resolve_preset(DatePreset.THIS_MONTH, NOW) == MARCH

    def test_last_month_in_leap_year(self):
        interval = resolve_preset(DatePreset.LAST_MONTH, NOW)
        assert interval.start == datetime(2024, 2, 1, tzinfo=UTC)
        assert interval.end == datetime(2024, 2, 29, 23, 59, 59, 999999, tzinfo=UTC)

    def test_last_month_in_january(self):
        interval = resolve_preset(DatePreset.LAST_MONTH, datetime(2024, 1, 10, tzinfo=UTC))
        assert interval.start == datetime(2023, 12, 1, tzinfo=UTC)
        assert interval.end.day == 31

    def test_this_year(self):
        interval = resolve_preset(DatePreset.THIS_YEAR, NOW)
        assert interval.start == datetime(2024, 1, 1, tzinfo=UTC)
        assert interval.end == END_OF_TODAY

    def test_custom_bounds_passed_through(self):
        start = datetime(2024, 1, 5, tzinfo=UTC)
        interval = resolve_preset(DatePreset.CUSTOM, NOW, start, None)
        assert interval.start == start
        assert interval.end is None

    def test_custom_inverted_bounds_rejected(self):
        with pytest.raises(InvalidIntervalError):
            resolve_preset(DatePreset.CUSTOM, NOW, MARCH.end, MARCH.start)

    def test_unknown_preset(self):
        with pytest.raises(ValueError):
            resolve_preset("fortnight", NOW)


class TestBaselineInterval:
    def test_year_over_year_is_calendar_shift(self):
        """[2024-03-01, 2024-03-31] -> [2023-03-01, 2023-03-31], not 365 days."""
        baseline = baseline_interval(MARCH, ComparisonMode.YEAR_OVER_YEAR)
        assert baseline.start == datetime(2023, 3, 1, tzinfo=UTC)
        assert baseline.end == datetime(2023, 3, 31, 23, 59, 59, 999999, tzinfo=UTC)

    def test_feb_29_clamps(self):
        assert shift_year_back(datetime(2024, 2, 29, 10, tzinfo=UTC)) == datetime(
            2023, 2, 28, 10, tzinfo=UTC
        )

    def test_period_over_period_adjacent_and_same_length(self):
        baseline = baseline_interval(MARCH, ComparisonMode.PERIOD_OVER_PERIOD)
        assert baseline.end == MARCH.start - timedelta(microseconds=1)
        assert baseline.length == MARCH.length

    def test_no_baseline_for_all_time_or_half_open(self):
        assert baseline_interval(DateInterval.all_time(), ComparisonMode.YEAR_OVER_YEAR) is None
        half_open = DateInterval(MARCH.start, None)
        assert baseline_interval(half_open, ComparisonMode.PERIOD_OVER_PERIOD) is None


class TestGrowth:
    def test_regular_growth(self):
        assert growth_percent(Decimal("150"), Decimal("100")) == Decimal("50")

    def test_decline(self):
        assert growth_percent(Decimal("50"), Decimal("100")) == Decimal("-50")

    def test_zero_baseline_positive_current(self):
        assert growth_percent(Decimal("10"), Decimal("0")) == Decimal("100")

    def test_zero_baseline_negative_current(self):
        assert growth_percent(Decimal("-10"), Decimal("0")) == Decimal("-100")

    def test_both_zero_is_none(self):
        assert growth_percent(Decimal("0"), Decimal("0")) is None

    def test_negative_baseline_uses_magnitude(self):
        """Net profit from -100 to 50 is growth, not decline."""
        assert growth_percent(Decimal("50"), Decimal("-100")) == Decimal("150")

    def test_compare_delta(self):
        result = compare(Decimal("120"), Decimal("100"))
        assert result.delta == Decimal("20")
        assert result.growth_percent == Decimal("20")

    def test_margin_in_points(self):
        assert compare_margin(Decimal("30"), Decimal("25")).change_points == Decimal("5")


class TestComparePeriods:
    def test_metrics_only_count_paid_and_approved(self, rate_table, make_invoice, make_expense):
        metrics = compute_metrics(
            [make_invoice("100", "USD", "paid"), make_invoice("30", "USD", "pending")],
            [make_expense("20", "USD", "approved"), make_expense("5", "USD", "rejected")],
            rate_table,
        )
        assert metrics.revenue == Decimal("250000")
        assert metrics.pending == Decimal("75000")
        assert metrics.expenses == Decimal("50000")
        assert metrics.net_profit == Decimal("200000")
        assert metrics.margin_percent == Decimal("80")

    def test_margin_zero_without_revenue(self, rate_table, make_expense):
        metrics = compute_metrics([], [make_expense("10")], rate_table)
        assert metrics.margin_percent == Decimal("0")

    def test_year_over_year(self, rate_table, make_invoice, make_expense):
        invoices = [
            make_invoice("200", "USD", created_at=datetime(2024, 3, 10, tzinfo=UTC)),
            make_invoice("100", "USD", created_at=datetime(2023, 3, 10, tzinfo=UTC)),
            make_invoice("999", "USD", created_at=datetime(2024, 2, 10, tzinfo=UTC)),
        ]
        expenses = [make_expense("50", "USD", created_at=datetime(2024, 3, 11, tzinfo=UTC))]

        result = compare_periods(
            invoices, expenses, rate_table, MARCH, ComparisonMode.YEAR_OVER_YEAR
        )
        assert result.revenue.current == Decimal("500000")
        assert result.revenue.baseline == Decimal("250000")
        assert result.revenue.growth_percent == Decimal("100")
        assert result.expenses.growth_percent == Decimal("100")
        assert result.net_profit.current == Decimal("375000")
        assert result.margin.current == Decimal("75")
        assert result.margin.baseline == Decimal("100")
        assert result.margin.change_points == Decimal("-25")

    def test_period_over_period_uses_february(self, rate_table, make_invoice):
        invoices = [
            make_invoice("100", "USD", created_at=datetime(2024, 3, 10, tzinfo=UTC)),
            make_invoice("100", "USD", created_at=datetime(2024, 2, 10, tzinfo=UTC)),
        ]
        result = compare_periods(
            invoices, [], rate_table, MARCH, ComparisonMode.PERIOD_OVER_PERIOD
        )
        assert result.revenue.growth_percent == Decimal("0")
        assert result.expenses.growth_percent is None

    def test_all_time_suppresses_comparison(self, rate_table, make_invoice):
        assert (
            compare_periods(
                [make_invoice()], [], rate_table, DateInterval.all_time(), "pop"
            )
            is None
        )
