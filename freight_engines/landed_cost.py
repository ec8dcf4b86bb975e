"""
Module: freight_engines.landed_cost
Responsibility:
    Shop-for-me quote preview.  Groups requested products by origin region
    and product category, prices each group with its resolved product rate
    plus any configured extra charges, and converts every group subtotal
    into the reporting currency.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Product details come in
    as ProductItem values built by the caller from the product lookup
    collaborator.

Invariants enforced:
    - Items are grouped by the composite (region, category) key so that
      two categories from one region never share a rate, and vice versa.
    - Each item's weight is rounded up to whole kilograms before it is
      multiplied by the quantity.
    - All items of one group share one currency.
    - Unknown currencies fail unless the caller opted in to soft defaults,
      and every defaulted group is flagged on the quote.

Failure modes:
    - CurrencyMismatchError when a group mixes currencies.
    - UnknownCurrencyError for an unknown currency without the opt-in.
    - UnresolvableRateError from the resolver.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from decimal import Decimal

from freight_engines.charges import (
    GENERAL_CATEGORY,
    ChargeBreakdown,
    ChargeRule,
    ProductRateResolver,
    ResolvedProductRate,
    compute_charges,
    ordered_rules,
    round_weight_up,
)
from freight_engines.rates import RateTable
from freight_engines.tracer import traced_engine
from freight_kernel.domain.collaborators import ProductInfo
from freight_kernel.domain.values import Money, to_decimal
from freight_kernel.exceptions import CurrencyMismatchError

DEFAULT_ITEM_WEIGHT_KG = Decimal("0.5")
DEFAULT_ITEM_CURRENCY = "USD"

_ZERO = Decimal("0")

ExtraRulesFn = Callable[[str, str], Sequence[ChargeRule]]


@dataclass(frozen=True)
class ProductItem:
    """One requested product line."""

    description: str
    unit_price: Money
    region: str
    quantity: int = 1
    estimated_weight_kg: Decimal = DEFAULT_ITEM_WEIGHT_KG
    category: str = GENERAL_CATEGORY
    url: str | None = None

    def __post_init__(self) -> None:
        if self.quantity < 1:
            raise ValueError(f"quantity must be >= 1, got {self.quantity}")
        weight = to_decimal(self.estimated_weight_kg)
        if weight < _ZERO:
            raise ValueError(f"estimated weight cannot be negative: {weight}")
        object.__setattr__(self, "estimated_weight_kg", weight)
        object.__setattr__(self, "region", self.region.strip().lower())
        object.__setattr__(
            self, "category", (self.category or GENERAL_CATEGORY).strip().lower()
        )

    @classmethod
    def from_product_info(
        cls,
        info: ProductInfo,
        region: str,
        *,
        category: str = GENERAL_CATEGORY,
        quantity: int = 1,
    ) -> ProductItem:
        """Fill the gaps the lookup left with the portal defaults."""
        price = info.price or Money.zero(DEFAULT_ITEM_CURRENCY)
        weight = info.estimated_weight_kg
        return cls(
            description=info.description or info.url,
            unit_price=price,
            region=region,
            quantity=quantity,
            estimated_weight_kg=weight if weight is not None else DEFAULT_ITEM_WEIGHT_KG,
            category=category,
            url=info.url,
        )

    @property
    def billable_weight(self) -> Decimal:
        return round_weight_up(self.estimated_weight_kg) * self.quantity

    @property
    def line_cost(self) -> Money:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class LandedCostGroup:
    """Priced (region, category) group."""

    region: str
    category: str
    items: tuple[ProductItem, ...]
    product_cost: Money
    weight: Decimal
    resolved_rate: ResolvedProductRate
    charges: ChargeBreakdown
    exchange_rate: Decimal
    rate_is_default: bool
    total_in_reporting: Money

    @property
    def subtotal(self) -> Money:
        return self.charges.total


@dataclass(frozen=True)
class LandedCostQuote:
    groups: tuple[LandedCostGroup, ...]
    grand_total: Money
    total_weight: Decimal
    is_single_group: bool

    @property
    def defaulted_currencies(self) -> tuple[str, ...]:
        """Currencies priced with a soft default rate, first-seen order."""
        seen: dict[str, None] = {}
        for g in self.groups:
            if g.rate_is_default:
                seen.setdefault(g.product_cost.currency_code, None)
        return tuple(seen)

    @property
    def fallback_groups(self) -> tuple[LandedCostGroup, ...]:
        return tuple(g for g in self.groups if g.resolved_rate.is_fallback)


def _group_items(
    items: Sequence[ProductItem],
) -> dict[tuple[str, str], list[ProductItem]]:
    groups: dict[tuple[str, str], list[ProductItem]] = {}
    for item in items:
        groups.setdefault((item.region, item.category), []).append(item)
    return groups


@traced_engine(
    "landed_cost",
    "1.0",
    fingerprint_fields=("items", "rate_table", "extra_rules", "allow_default_rates"),
)
def quote_landed_cost(
    items: Sequence[ProductItem],
    resolver: ProductRateResolver,
    rate_table: RateTable,
    *,
    extra_rules: Sequence[ChargeRule] | ExtraRulesFn = (),
    allow_default_rates: bool = False,
    default_rate: Decimal = Decimal("1"),
) -> LandedCostQuote:
    """
    Price ``items`` group by group.

    Args:
        items: Requested products.
        resolver: Product rate fallback chain.
        rate_table: Snapshot used to convert group subtotals.
        extra_rules: Additional charges applied after the product-rate
            rules, ordered by display_order.  Either one sequence for
            every group or a function of (region, category).
        allow_default_rates: Opt in to pricing an unknown currency at
            ``default_rate`` instead of failing.

    Returns:
        LandedCostQuote with one group per (region, category).
    """
    shared_extra = () if callable(extra_rules) else ordered_rules(extra_rules)
    reporting = rate_table.reporting_currency
    groups: list[LandedCostGroup] = []
    grand_total = _ZERO
    total_weight = _ZERO

    for (region, category), members in _group_items(items).items():
        currency = members[0].unit_price.currency
        for item in members[1:]:
            if item.unit_price.currency != currency:
                raise CurrencyMismatchError(currency.code, item.unit_price.currency_code)

        product_cost = Money.zero(currency)
        weight = _ZERO
        for item in members:
            product_cost = product_cost + item.line_cost
            weight += item.billable_weight

        resolved = resolver.resolve(region, category)
        if callable(extra_rules):
            extra = ordered_rules(extra_rules(region, category))
        else:
            extra = shared_extra
        charges = compute_charges(
            product_cost, weight, resolved.rate.charge_rules() + extra
        )

        if allow_default_rates:
            lookup = rate_table.lookup_or_default(currency.code, default_rate)
            rate, is_default = lookup.rate, lookup.is_default
        else:
            rate, is_default = rate_table.lookup(currency.code), False

        in_reporting = Money(charges.total.amount * rate, reporting)
        groups.append(
            LandedCostGroup(
                region=region,
                category=category,
                items=tuple(members),
                product_cost=product_cost,
                weight=weight,
                resolved_rate=resolved,
                charges=charges,
                exchange_rate=rate,
                rate_is_default=is_default,
                total_in_reporting=in_reporting,
            )
        )
        grand_total += in_reporting.amount
        total_weight += weight

    return LandedCostQuote(
        groups=tuple(groups),
        grand_total=Money(grand_total, reporting),
        total_weight=total_weight,
        is_single_group=len(groups) == 1,
    )
