"""
freight_services.quote_service -- Shop-for-me quotes and charge estimates.

Responsibility:
    Price a shop-for-me request.  Builds ProductItems from product URLs
    through the product lookup collaborator, resolves product rates and
    extra charges from configuration, snapshots exchange rates once, and
    delegates the arithmetic to the landed-cost and charges engines.

Architecture position:
    Services -- orchestration over engines + config.  The engines never
    see configuration; this service translates it through
    freight_config.bridges.

Invariants enforced:
    - One RateTable snapshot per quote.
    - Item weights are rounded up to whole kilograms before pricing.
    - Soft default exchange rates are used only when the config policy (or
      the caller) opts in, and every defaulted currency is logged.

Failure modes:
    - UnknownCurrencyError when a currency is unknown and soft defaults
      are off.
    - CurrencyMismatchError when one (region, category) group mixes
      currencies.
    - RuntimeError from items_from_urls() when no product lookup was
      configured.

Usage:
    service = QuoteService(get_active_config(), selector)
    quote = service.quote([
        ProductItem("Phone case", Money.of("25.00", "USD"), region="usa"),
    ])
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from uuid import uuid4

from freight_config.bridges import (
    ConfigChargeRuleSource,
    build_charge_rules,
    build_product_rate_resolver,
    build_rate_table,
)
from freight_config.schema import EngineConfig
from freight_engines.charges import (
    GENERAL_CATEGORY,
    ChargeBreakdown,
    ChargeKind,
    ChargeRule,
    compute_charges,
    round_weight_up,
)
from freight_engines.landed_cost import LandedCostQuote, ProductItem, quote_landed_cost
from freight_engines.rates import RateTable
from freight_kernel.domain.collaborators import (
    ChargeRuleSource,
    ProductInfoSource,
    RateSource,
)
from freight_kernel.domain.values import Money, to_decimal
from freight_kernel.logging_config import LogContext, get_logger

logger = get_logger("services.quote")

SHIPPING_RULE_KEY = "shipping"


@dataclass(frozen=True)
class ItemRequest:
    """A product URL the customer wants bought and shipped."""

    url: str
    region: str
    category: str = GENERAL_CATEGORY
    quantity: int = 1


class QuoteService:
    """
    Shop-for-me pricing.

    Contract:
        quote() prices ProductItems grouped by (region, category).
        estimate_charges() applies the configured shop-for-me charge rules
        to a single base cost and weight.

    Guarantees:
        - Rates are read once per call.
        - Charge rules are evaluated in display_order.
        - Every soft-defaulted currency and every rate fallback shows up
          in the log.

    Non-goals:
        - Does not persist quotes or create orders.
    """

    def __init__(
        self,
        config: EngineConfig,
        rate_source: RateSource,
        *,
        charge_rule_source: ChargeRuleSource | None = None,
        product_info_source: ProductInfoSource | None = None,
    ):
        self._config = config
        self._rates = rate_source
        self._charge_rules = charge_rule_source or ConfigChargeRuleSource(config)
        self._product_info = product_info_source
        self._resolver = build_product_rate_resolver(config)

    def rate_snapshot(self) -> RateTable:
        return build_rate_table(self._config, self._rates.fetch_rates())

    def items_from_urls(self, requests: Sequence[ItemRequest]) -> tuple[ProductItem, ...]:
        """Look up each URL and fill missing price and weight with defaults."""
        if self._product_info is None:
            raise RuntimeError("QuoteService has no product info source configured")
        items = []
        for request in requests:
            info = self._product_info.fetch(request.url)
            items.append(
                ProductItem.from_product_info(
                    info,
                    request.region,
                    category=request.category,
                    quantity=request.quantity,
                )
            )
        return tuple(items)

    def quote(
        self,
        items: Sequence[ProductItem],
        *,
        allow_default_rates: bool | None = None,
        quote_id: str | None = None,
    ) -> LandedCostQuote:
        """
        Landed-cost quote for ``items``.

        Args:
            items: Requested products.
            allow_default_rates: Overrides the config quote policy for
                this call when not None.
            quote_id: Log correlation id; generated when omitted.
        """
        policy = self._config.quotes
        allow = policy.allow_default_rates if allow_default_rates is None else allow_default_rates

        with LogContext.bind(quote_id=quote_id or str(uuid4())):
            quote = quote_landed_cost(
                items,
                self._resolver,
                self.rate_snapshot(),
                extra_rules=self._charge_rules.rules_for,
                allow_default_rates=allow,
                default_rate=policy.soft_default_rate,
            )

            for currency in quote.defaulted_currencies:
                logger.warning(
                    "quote_rate_defaulted",
                    extra={
                        "currency": currency,
                        "default_rate": str(policy.soft_default_rate),
                        "reporting_currency": quote.grand_total.currency_code,
                    },
                )
            logger.info(
                "quote_computed",
                extra={
                    "group_count": len(quote.groups),
                    "item_count": len(items),
                    "fallback_group_count": len(quote.fallback_groups),
                    "grand_total": str(quote.grand_total.amount),
                    "config_checksum": self._config.checksum,
                },
            )
            return quote

    def quote_urls(
        self,
        requests: Sequence[ItemRequest],
        *,
        allow_default_rates: bool | None = None,
    ) -> LandedCostQuote:
        return self.quote(
            self.items_from_urls(requests), allow_default_rates=allow_default_rates
        )

    def charge_rules(self, region: str | None = None) -> tuple[ChargeRule, ...]:
        """
        Shop-for-me charge rules for ``region``.

        A shipping rule at the default per-kg rate is appended when the
        configuration defines none.
        """
        rules = build_charge_rules(self._config, region)
        if any(r.kind == ChargeKind.PER_UNIT_WEIGHT for r in rules):
            return rules
        last_order = max((r.display_order for r in rules), default=0)
        shipping = ChargeRule(
            name="Shipping Charges",
            key=SHIPPING_RULE_KEY,
            kind=ChargeKind.PER_UNIT_WEIGHT,
            rate=self._config.default_shipping_rate_per_kg,
            display_order=last_order + 1,
        )
        return rules + (shipping,)

    def estimate_charges(
        self,
        base_cost: Money,
        weight: Decimal | str | int,
        region: str | None = None,
    ) -> ChargeBreakdown:
        """Breakdown of the shop-for-me charges for one order."""
        billable = round_weight_up(weight) if to_decimal(weight) > 0 else Decimal("0")
        breakdown = compute_charges(base_cost, billable, self.charge_rules(region))
        logger.info(
            "charges_estimated",
            extra={
                "region": region,
                "billable_weight": str(billable),
                "total": str(breakdown.total.amount),
                "currency": breakdown.total.currency_code,
            },
        )
        return breakdown
