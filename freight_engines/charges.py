"""
Module: freight_engines.charges
Responsibility:
    Itemized cost breakdown for shop-for-me quotes and invoices: a base
    cost followed by an ordered sequence of charge lines (shipping by
    weight, percentage fees, fixed fees), plus the explicit fallback chain
    that picks the product rate for a (region, category) pair.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import freight_kernel and the engine tracer.

Invariants enforced:
    - Rules are evaluated in the sequence given.  The caller orders rule
      sets delivered unordered with ``ordered_rules``.
    - The breakdown always starts with the base-cost line.
    - ``total`` equals the sum of every line amount.
    - Amounts are never rounded here; presentation rounds.
    - Rate resolution walks EXACT -> REGION_GENERAL -> DEFAULT and reports
      the step that matched.  Every step past EXACT is logged.

Failure modes:
    - InvalidChargeRuleError on a negative rate or an unknown kind/base.
    - UnresolvableRateError when no product rate matches and the resolver
      has no default.

Usage:
    from freight_engines.charges import compute_charges, round_weight_up

    result = compute_charges(
        Money.of("200", "USD"),
        round_weight_up(Decimal("3.4")),
        resolved.rate.charge_rules(),
    )
    result.total  # Money(308.96, USD)
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from decimal import ROUND_CEILING, Decimal
from enum import Enum

from freight_engines.tracer import traced_engine
from freight_kernel.domain.values import Money, to_decimal
from freight_kernel.exceptions import InvalidChargeRuleError, UnresolvableRateError
from freight_kernel.logging_config import get_logger

logger = get_logger("engines.charges")

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")

GENERAL_CATEGORY = "general"


class ChargeKind(str, Enum):
    FIXED = "fixed"
    PER_UNIT_WEIGHT = "per_unit_weight"
    PERCENTAGE_OF_BASE = "percentage"


class ChargeBase(str, Enum):
    """What a percentage charge is taken of."""

    BASE_COST = "base_cost"  # the base cost only
    SUBTOTAL = "subtotal"  # base + earlier non-weight charges
    RUNNING_SUBTOTAL = "running_subtotal"  # base + every earlier line


@dataclass(frozen=True)
class ChargeRule:
    """
    One configurable charge.

    Contract:
        ``rate`` is an amount for FIXED, an amount per weight unit for
        PER_UNIT_WEIGHT and a percent for PERCENTAGE_OF_BASE.  ``base``
        only matters for percentage rules.
    """

    name: str
    key: str
    kind: ChargeKind
    rate: Decimal
    base: ChargeBase = ChargeBase.BASE_COST
    display_order: int = 0

    def __post_init__(self) -> None:
        try:
            object.__setattr__(self, "kind", ChargeKind(self.kind))
            object.__setattr__(self, "base", ChargeBase(self.base))
        except ValueError as e:
            raise InvalidChargeRuleError(self.key, str(e)) from e
        try:
            rate = to_decimal(self.rate)
        except ValueError as e:
            raise InvalidChargeRuleError(self.key, f"rate {self.rate!r} is not a number") from e
        if not rate.is_finite() or rate < _ZERO:
            raise InvalidChargeRuleError(self.key, f"rate {rate} must be >= 0")
        object.__setattr__(self, "rate", rate)

    @property
    def is_percentage(self) -> bool:
        return self.kind == ChargeKind.PERCENTAGE_OF_BASE


@dataclass(frozen=True)
class ChargeLine:
    """A line of the breakdown.  ``percentage`` is set for percentage rules."""

    name: str
    key: str
    amount: Money
    percentage: Decimal | None = None


@dataclass(frozen=True)
class ChargeBreakdown:
    breakdown: tuple[ChargeLine, ...]
    total: Money

    def line(self, key: str) -> ChargeLine | None:
        for line in self.breakdown:
            if line.key == key:
                return line
        return None

    def amount_of(self, key: str) -> Decimal:
        """Sum of the lines with ``key`` (0 if absent)."""
        return sum(
            (line.amount.amount for line in self.breakdown if line.key == key), _ZERO
        )


def round_weight_up(weight: Decimal | str | int) -> Decimal:
    """Ceiling to whole weight units: 1.2 -> 2, 3.0 -> 3."""
    return to_decimal(weight).to_integral_value(rounding=ROUND_CEILING)


def ordered_rules(rules: Iterable[ChargeRule]) -> tuple[ChargeRule, ...]:
    """Stable sort by display_order."""
    return tuple(sorted(rules, key=lambda r: r.display_order))


@traced_engine(
    "charges", "1.0", fingerprint_fields=("base_cost", "weight", "rules")
)
def compute_charges(
    base_cost: Money,
    weight: Decimal,
    rules: Sequence[ChargeRule],
    *,
    base_label: str = "Product Cost",
    base_key: str = "product_cost",
) -> ChargeBreakdown:
    """
    Evaluate ``rules`` in order on top of ``base_cost``.

    Args:
        base_cost: Product or service cost the breakdown starts from.
        weight: Billable weight, already rounded by the caller.
        rules: Charge rules in evaluation order.

    Returns:
        ChargeBreakdown whose first line is the base cost.
    """
    weight = to_decimal(weight)
    currency = base_cost.currency
    lines = [ChargeLine(base_label, base_key, base_cost)]

    non_weight_total = base_cost.amount
    running_total = base_cost.amount

    for rule in rules:
        if rule.kind == ChargeKind.FIXED:
            amount = rule.rate
        elif rule.kind == ChargeKind.PER_UNIT_WEIGHT:
            amount = rule.rate * weight
        else:
            if rule.base == ChargeBase.BASE_COST:
                basis = base_cost.amount
            elif rule.base == ChargeBase.SUBTOTAL:
                basis = non_weight_total
            else:
                basis = running_total
            amount = basis * rule.rate / _HUNDRED

        lines.append(
            ChargeLine(
                rule.name,
                rule.key,
                Money(amount, currency),
                rule.rate if rule.is_percentage else None,
            )
        )
        running_total += amount
        if rule.kind != ChargeKind.PER_UNIT_WEIGHT:
            non_weight_total += amount

    total = sum((line.amount.amount for line in lines), _ZERO)
    return ChargeBreakdown(tuple(lines), Money(total, currency))


# ---------------------------------------------------------------------------
# Product rate resolution
# ---------------------------------------------------------------------------


class ResolutionStep(str, Enum):
    EXACT = "exact"
    REGION_GENERAL = "region_general"
    DEFAULT = "default"


@dataclass(frozen=True)
class ProductRate:
    """
    Shipping and fee rates for one (region, category) pair.

    Percentages are in percent (35 means 35%).
    """

    region: str
    category: str
    rate_per_kg: Decimal
    handling_fee_percentage: Decimal = _ZERO
    duty_percentage: Decimal = _ZERO
    markup_percentage: Decimal = _ZERO

    def __post_init__(self) -> None:
        object.__setattr__(self, "region", self.region.strip().lower())
        object.__setattr__(self, "category", self.category.strip().lower())
        for name in (
            "rate_per_kg",
            "handling_fee_percentage",
            "duty_percentage",
            "markup_percentage",
        ):
            object.__setattr__(self, name, to_decimal(getattr(self, name)))

    def charge_rules(self) -> tuple[ChargeRule, ...]:
        """
        Rules for this rate, in evaluation order.

        Handling is taken of base + shipping, duty of the base cost, markup
        of everything before it.  A zero markup produces no line.
        """
        rules = [
            ChargeRule("Shipping", "shipping", ChargeKind.PER_UNIT_WEIGHT,
                       self.rate_per_kg, display_order=1),
            ChargeRule("Handling Fee", "handling_fee", ChargeKind.PERCENTAGE_OF_BASE,
                       self.handling_fee_percentage, ChargeBase.RUNNING_SUBTOTAL, 2),
            ChargeRule("Duty", "duty", ChargeKind.PERCENTAGE_OF_BASE,
                       self.duty_percentage, ChargeBase.BASE_COST, 3),
        ]
        if self.markup_percentage > _ZERO:
            rules.append(
                ChargeRule("Markup", "markup", ChargeKind.PERCENTAGE_OF_BASE,
                           self.markup_percentage, ChargeBase.RUNNING_SUBTOTAL, 4)
            )
        return tuple(rules)


# Used when neither the exact pair nor the region's general rate exists.
DEFAULT_PRODUCT_RATE = ProductRate(
    region="*", category=GENERAL_CATEGORY, rate_per_kg=Decimal("8")
)


@dataclass(frozen=True)
class ResolvedProductRate:
    rate: ProductRate
    step: ResolutionStep

    @property
    def is_fallback(self) -> bool:
        return self.step != ResolutionStep.EXACT


class ProductRateResolver:
    """
    Explicit fallback chain over a product rate table.

    Steps, in order:
        1. EXACT           (region, category)
        2. REGION_GENERAL  (region, "general")
        3. DEFAULT         the resolver's default rate, if any
    """

    def __init__(
        self,
        rates: Iterable[ProductRate],
        default: ProductRate | None = DEFAULT_PRODUCT_RATE,
    ):
        self._rates: dict[tuple[str, str], ProductRate] = {}
        for rate in rates:
            self._rates.setdefault((rate.region, rate.category), rate)
        self._default = default

    @property
    def default(self) -> ProductRate | None:
        return self._default

    def resolve(self, region: str, category: str | None) -> ResolvedProductRate:
        region = region.strip().lower()
        category = (category or GENERAL_CATEGORY).strip().lower()

        exact = self._rates.get((region, category))
        if exact is not None:
            return ResolvedProductRate(exact, ResolutionStep.EXACT)

        general = self._rates.get((region, GENERAL_CATEGORY))
        if general is not None:
            logger.info(
                "product_rate_fallback",
                extra={
                    "region": region,
                    "category": category,
                    "step": ResolutionStep.REGION_GENERAL.value,
                },
            )
            return ResolvedProductRate(general, ResolutionStep.REGION_GENERAL)

        if self._default is None:
            raise UnresolvableRateError(region, category)

        logger.warning(
            "product_rate_fallback",
            extra={
                "region": region,
                "category": category,
                "step": ResolutionStep.DEFAULT.value,
            },
        )
        return ResolvedProductRate(self._default, ResolutionStep.DEFAULT)
