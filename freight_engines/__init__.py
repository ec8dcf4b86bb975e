"""
Module: freight_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    calculation engines.  This is the import surface for freight_services
    and freight_config.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import freight_kernel (and sibling engine modules).
    MUST NOT import freight_services.

Invariants enforced:
    - Purity: engines never read the clock.  The current instant is passed
      in by services.
    - Decimal-only arithmetic: floats never enter an amount.
    - One rate snapshot per computation, passed explicitly.
    - Engines raise; they never retry, substitute or swallow.  The only
      log records they emit are FREIGHT_ENGINE_TRACE and the product-rate
      fallback steps.

Usage:
    from freight_engines import RateTable, rollup, by_currency
    from freight_engines import resolve_preset, compare_periods
    from freight_engines import compute_charges, quote_landed_cost
"""

from freight_engines.analytics import (
    FinancialReport,
    RecordSnapshot,
    TrendPoint,
    build_financial_report,
)
from freight_engines.balances import AgentBalance, agent_balance, all_agent_balances
from freight_engines.charges import (
    DEFAULT_PRODUCT_RATE,
    ChargeBase,
    ChargeBreakdown,
    ChargeKind,
    ChargeLine,
    ChargeRule,
    ProductRate,
    ProductRateResolver,
    ResolutionStep,
    ResolvedProductRate,
    compute_charges,
    ordered_rules,
    round_weight_up,
)
from freight_engines.comparison import (
    ComparisonResult,
    FinancialComparison,
    FinancialMetrics,
    PointsComparison,
    baseline_interval,
    compare,
    compare_margin,
    compare_periods,
    compute_metrics,
    growth_percent,
    resolve_preset,
)
from freight_engines.date_filter import IntervalPartition, filter_records, partition_records
from freight_engines.landed_cost import (
    LandedCostGroup,
    LandedCostQuote,
    ProductItem,
    quote_landed_cost,
)
from freight_engines.normalizer import normalize, normalize_all
from freight_engines.rates import RateLookup, RateTable
from freight_engines.rollup import (
    RollupBucket,
    RollupOrder,
    ShareLine,
    bucket_starts,
    by_agent,
    by_category,
    by_currency,
    by_direction,
    by_kind,
    by_region,
    by_status,
    by_time_bucket,
    composite,
    rollup,
    share_breakdown,
)
from freight_engines.tracer import traced_engine

__all__ = [
    # analytics
    "FinancialReport",
    "RecordSnapshot",
    "TrendPoint",
    "build_financial_report",
    # balances
    "AgentBalance",
    "agent_balance",
    "all_agent_balances",
    # charges
    "DEFAULT_PRODUCT_RATE",
    "ChargeBase",
    "ChargeBreakdown",
    "ChargeKind",
    "ChargeLine",
    "ChargeRule",
    "ProductRate",
    "ProductRateResolver",
    "ResolutionStep",
    "ResolvedProductRate",
    "compute_charges",
    "ordered_rules",
    "round_weight_up",
    # comparison
    "ComparisonResult",
    "FinancialComparison",
    "FinancialMetrics",
    "PointsComparison",
    "baseline_interval",
    "compare",
    "compare_margin",
    "compare_periods",
    "compute_metrics",
    "growth_percent",
    "resolve_preset",
    # date filter
    "IntervalPartition",
    "filter_records",
    "partition_records",
    # landed cost
    "LandedCostGroup",
    "LandedCostQuote",
    "ProductItem",
    "quote_landed_cost",
    # normalizer
    "normalize",
    "normalize_all",
    # rates
    "RateLookup",
    "RateTable",
    # rollup
    "RollupBucket",
    "RollupOrder",
    "ShareLine",
    "bucket_starts",
    "by_agent",
    "by_category",
    "by_currency",
    "by_direction",
    "by_kind",
    "by_region",
    "by_status",
    "by_time_bucket",
    "composite",
    "rollup",
    "share_breakdown",
    # tracer
    "traced_engine",
]
