"""
EngineConfig schema.

Defines the reviewable configuration artifact for the freight engines:
reporting currency, fallback exchange rates, charge rules and product
rates.  YAML is parsed into these types by the loader; bridges turn them
into engine types.

All types are frozen.  Decimal values are never floats.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

# ---------------------------------------------------------------------------
# Charges
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ChargeRuleDef:
    """One configured charge.  ``regions`` empty means every region."""

    name: str
    key: str
    kind: str  # fixed, per_unit_weight, percentage
    rate: Decimal
    base: str = "base_cost"  # base_cost, subtotal, running_subtotal
    display_order: int = 0
    is_active: bool = True
    regions: tuple[str, ...] = ()
    description: str | None = None

    def applies_to_region(self, region: str) -> bool:
        return not self.regions or region.strip().lower() in self.regions


@dataclass(frozen=True)
class ProductRateDef:
    """Rates for one (region, category) pair; percentages in percent."""

    region: str
    category: str
    rate_per_kg: Decimal
    handling_fee_percentage: Decimal = Decimal("0")
    duty_percentage: Decimal = Decimal("0")
    markup_percentage: Decimal = Decimal("0")
    is_active: bool = True


# ---------------------------------------------------------------------------
# Quotes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class QuotePolicy:
    """Soft-default policy for quote previews."""

    allow_default_rates: bool = False
    soft_default_rate: Decimal = Decimal("1")


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EngineConfig:
    """
    The complete engine configuration.

    ``checksum`` is the SHA-256 of the canonical JSON of the source
    document, so two configs with the same checksum price identically.
    """

    config_id: str
    version: int
    reporting_currency: str
    fallback_exchange_rates: tuple[tuple[str, Decimal], ...] = ()
    default_shipping_rate_per_kg: Decimal = Decimal("8")
    default_product_rate: ProductRateDef | None = None
    charge_rules: tuple[ChargeRuleDef, ...] = ()
    extra_charge_rules: tuple[ChargeRuleDef, ...] = ()
    product_rates: tuple[ProductRateDef, ...] = ()
    quotes: QuotePolicy = field(default_factory=QuotePolicy)
    agent_base_currency: str = "USD"
    checksum: str = ""

    @property
    def fallback_rates(self) -> dict[str, Decimal]:
        return dict(self.fallback_exchange_rates)

    @property
    def active_charge_rules(self) -> tuple[ChargeRuleDef, ...]:
        return tuple(r for r in self.charge_rules if r.is_active)

    @property
    def active_product_rates(self) -> tuple[ProductRateDef, ...]:
        return tuple(r for r in self.product_rates if r.is_active)
