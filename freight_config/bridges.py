"""
Config -> Engine Bridges.

Functions that convert EngineConfig definitions into engine types.  They
live in freight_config (the producer) so that the engines never import
configuration.

Usage:
    from freight_config.bridges import build_product_rate_resolver

    config = get_active_config()
    resolver = build_product_rate_resolver(config)
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from freight_config.schema import ChargeRuleDef, EngineConfig, ProductRateDef
from freight_engines.charges import (
    ChargeRule,
    ProductRate,
    ProductRateResolver,
    ordered_rules,
)
from freight_engines.rates import RateTable
from freight_kernel.domain.values import RateEntry


def to_charge_rule(definition: ChargeRuleDef) -> ChargeRule:
    return ChargeRule(
        name=definition.name,
        key=definition.key,
        kind=definition.kind,
        rate=definition.rate,
        base=definition.base,
        display_order=definition.display_order,
    )


def to_product_rate(definition: ProductRateDef) -> ProductRate:
    return ProductRate(
        region=definition.region,
        category=definition.category,
        rate_per_kg=definition.rate_per_kg,
        handling_fee_percentage=definition.handling_fee_percentage,
        duty_percentage=definition.duty_percentage,
        markup_percentage=definition.markup_percentage,
    )


def _rules(
    definitions: Iterable[ChargeRuleDef], region: str | None
) -> tuple[ChargeRule, ...]:
    return ordered_rules(
        to_charge_rule(d)
        for d in definitions
        if d.is_active and (region is None or d.applies_to_region(region))
    )


def build_charge_rules(
    config: EngineConfig, region: str | None = None
) -> tuple[ChargeRule, ...]:
    """Active shop-for-me charge rules, ordered by display_order."""
    return _rules(config.charge_rules, region)


def build_extra_charge_rules(
    config: EngineConfig, region: str | None = None
) -> tuple[ChargeRule, ...]:
    """Active charges added on top of product-rate rules in quotes."""
    return _rules(config.extra_charge_rules, region)


def build_product_rate_resolver(config: EngineConfig) -> ProductRateResolver:
    """Resolver over the active product rates, with the configured default."""
    rates = [to_product_rate(r) for r in config.active_product_rates]
    if config.default_product_rate is None:
        return ProductRateResolver(rates)
    return ProductRateResolver(rates, default=to_product_rate(config.default_product_rate))


def build_rate_table(config: EngineConfig, entries: Sequence[RateEntry]) -> RateTable:
    """Collaborator rates over the configured fallback rates."""
    table = RateTable(entries, reporting_currency=config.reporting_currency)
    return table.with_fallbacks(config.fallback_rates)


class ConfigChargeRuleSource:
    """ChargeRuleSource backed by the extra charge rules of a config."""

    def __init__(self, config: EngineConfig):
        self._config = config

    def rules_for(self, region: str, category: str) -> Sequence[ChargeRule]:
        return build_extra_charge_rules(self._config, region)
