"""
Property-based tests for the aggregation engines.

Properties:
- Rollup reconciliation: per-currency sums converted at the table's rates
  add up to the reporting total, bucket by bucket and overall.
- Rollup conservation: group counts add up to the record count whatever
  the key function.
- Filtering is idempotent and never admits a record outside the interval.
- Growth is None only when both periods are zero.
"""

from datetime import UTC, datetime, timedelta
from decimal import Decimal

from hypothesis import given, settings
from hypothesis import strategies as st

from freight_engines.comparison import growth_percent
from freight_engines.date_filter import filter_records, partition_records
from freight_engines.rates import RateTable
from freight_engines.rollup import by_currency, by_status, rollup
from freight_kernel.domain.intervals import DateInterval
from freight_kernel.domain.records import InvoiceRecord
from freight_kernel.domain.values import Money

RATES = RateTable.from_mapping({"USD": "2500", "EUR": "2700", "GBP": "3150", "CNY": "345"})
EPOCH = datetime(2024, 1, 1, tzinfo=UTC)

amounts = st.decimals(
    min_value=Decimal("0"),
    max_value=Decimal("1000000"),
    places=2,
    allow_nan=False,
    allow_infinity=False,
)
currencies = st.sampled_from(["USD", "EUR", "GBP", "CNY", "TZS"])
statuses = st.sampled_from(["paid", "pending", "draft", "cancelled"])
moments = st.one_of(
    st.none(),
    st.integers(min_value=0, max_value=365 * 24).map(lambda h: EPOCH + timedelta(hours=h)),
)


@st.composite
def invoices(draw):
    index = draw(st.integers(min_value=0, max_value=10**9))
    return InvoiceRecord(
        record_id=f"inv-{index}",
        money=Money.of(draw(amounts), draw(currencies)),
        status=draw(statuses),
        created_at=draw(moments),
    )


@st.composite
def intervals(draw):
    start = draw(st.integers(min_value=0, max_value=365))
    length = draw(st.integers(min_value=0, max_value=120))
    return DateInterval(
        EPOCH + timedelta(days=start),
        EPOCH + timedelta(days=start + length),
    )


class TestRollupProperties:
    @given(records=st.lists(invoices(), max_size=40))
    @settings(max_examples=100, deadline=None)
    def test_per_currency_sums_reconcile(self, records):
        buckets = rollup(records, by_status, RATES)
        for bucket in buckets:
            converted = sum(
                (total * RATES.lookup(code) for code, total in bucket.sum_by_original_currency.items()),
                Decimal("0"),
            )
            assert converted == bucket.sum_in_reporting_currency

        overall = sum((b.sum_in_reporting_currency for b in buckets), Decimal("0"))
        direct = sum(
            (r.money.amount * RATES.lookup(r.money.currency_code) for r in records),
            Decimal("0"),
        )
        assert overall == direct

    @given(records=st.lists(invoices(), max_size=40))
    @settings(max_examples=100, deadline=None)
    def test_counts_are_conserved(self, records):
        for key_fn in (by_status, by_currency):
            buckets = rollup(records, key_fn, RATES)
            assert sum(b.count for b in buckets) == len(records)


class TestFilterProperties:
    @given(records=st.lists(invoices(), max_size=40), interval=intervals())
    @settings(max_examples=100, deadline=None)
    def test_filter_is_idempotent(self, records, interval):
        once = filter_records(records, interval)
        assert filter_records(once, interval) == once

    @given(records=st.lists(invoices(), max_size=40), interval=intervals())
    @settings(max_examples=100, deadline=None)
    def test_partition_accounts_for_every_record(self, records, interval):
        partition = partition_records(records, interval)
        for record in partition.included:
            assert interval.contains(record.governing_timestamp)
        undated = [r for r in records if r.governing_timestamp is None]
        assert len(partition.excluded) == len(undated)
        outside = [
            r
            for r in records
            if r.governing_timestamp is not None and not interval.contains(r.governing_timestamp)
        ]
        assert len(partition.included) + len(partition.excluded) + len(outside) == len(records)

    @given(records=st.lists(invoices(), max_size=20))
    def test_all_time_keeps_everything(self, records):
        assert filter_records(records, DateInterval.all_time()) == tuple(records)


class TestGrowthProperties:
    @given(
        current=st.decimals(min_value=-10**6, max_value=10**6, places=2),
        baseline=st.decimals(min_value=-10**6, max_value=10**6, places=2),
    )
    def test_none_only_when_both_zero(self, current, baseline):
        result = growth_percent(current, baseline)
        if current == 0 and baseline == 0:
            assert result is None
        else:
            assert result is not None

    @given(current=st.decimals(min_value=Decimal("0.01"), max_value=10**6, places=2))
    def test_zero_baseline_is_full_growth(self, current):
        assert growth_percent(current, Decimal("0")) == Decimal("100")
        assert growth_percent(-current, Decimal("0")) == Decimal("-100")
