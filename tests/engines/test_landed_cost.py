"""
Tests for the landed-cost quote.

Covers:
- Grouping by the composite (region, category) key
- Per-item weight rounding before quantity
- Conversion into the reporting currency
- Soft default rates (opt-in only, flagged)
"""

from decimal import Decimal

import pytest

from freight_engines.charges import (
    ChargeKind,
    ChargeRule,
    ProductRate,
    ProductRateResolver,
    ResolutionStep,
)
from freight_engines.landed_cost import ProductItem, quote_landed_cost
from freight_kernel.domain.collaborators import ProductInfo
from freight_kernel.domain.values import Money
from freight_kernel.exceptions import CurrencyMismatchError, UnknownCurrencyError


def _resolver():
    return ProductRateResolver(
        [
            ProductRate("usa", "general", "8", "3", "35"),
            ProductRate("usa", "electronics", "12", "4", "25"),
            ProductRate("uk", "general", "7", "3", "35"),
        ]
    )


class TestProductItem:
    def test_billable_weight_rounds_each_item(self):
        item = ProductItem("Cable", Money.of("5", "USD"), "usa", quantity=3, estimated_weight_kg="1.2")
        assert item.billable_weight == Decimal("6")
        assert item.line_cost == Money.of("15", "USD")

    def test_invalid_quantity(self):
        with pytest.raises(ValueError):
            ProductItem("Cable", Money.of("5", "USD"), "usa", quantity=0)

    def test_from_product_info_defaults(self):
        item = ProductItem.from_product_info(ProductInfo("https://shop.example/p/1"), "USA")
        assert item.unit_price == Money.zero("USD")
        assert item.estimated_weight_kg == Decimal("0.5")
        assert item.description == "https://shop.example/p/1"
        assert item.region == "usa"

    def test_from_product_info_keeps_lookup_values(self):
        info = ProductInfo(
            "https://shop.example/p/2",
            description="Headphones",
            price=Money.of("80", "GBP"),
            estimated_weight_kg=Decimal("0.3"),
        )
        item = ProductItem.from_product_info(info, "uk", category="electronics", quantity=2)
        assert item.unit_price == Money.of("80", "GBP")
        assert item.category == "electronics"
        assert item.billable_weight == Decimal("2")


class TestQuoteLandedCost:
    def test_single_group_worked_example(self, rate_table):
        items = [ProductItem("Boots", Money.of("200", "USD"), "usa", estimated_weight_kg="3.4")]
        quote = quote_landed_cost(items, _resolver(), rate_table)

        assert quote.is_single_group
        (group,) = quote.groups
        assert group.weight == Decimal("4")
        assert group.subtotal == Money.of("308.96", "USD")
        assert group.exchange_rate == Decimal("2500")
        assert group.total_in_reporting == Money.of("772400", "TZS")
        assert quote.grand_total == Money.of("772400", "TZS")

    def test_groups_by_region_and_category(self, rate_table):
        items = [
            ProductItem("Shirt", Money.of("20", "USD"), "usa"),
            ProductItem("Phone", Money.of("300", "USD"), "usa", category="electronics"),
            ProductItem("Socks", Money.of("5", "USD"), "usa"),
            ProductItem("Tea", Money.of("10", "GBP"), "uk"),
        ]
        quote = quote_landed_cost(items, _resolver(), rate_table)

        keys = [(g.region, g.category) for g in quote.groups]
        assert keys == [("usa", "general"), ("usa", "electronics"), ("uk", "general")]
        assert quote.groups[0].product_cost == Money.of("25", "USD")
        assert quote.groups[0].weight == Decimal("2")
        assert quote.groups[1].resolved_rate.rate.rate_per_kg == Decimal("12")
        assert not quote.is_single_group
        assert quote.total_weight == Decimal("4")

    def test_grand_total_is_sum_of_groups(self, rate_table):
        items = [
            ProductItem("Shirt", Money.of("20", "USD"), "usa"),
            ProductItem("Tea", Money.of("10", "GBP"), "uk"),
        ]
        quote = quote_landed_cost(items, _resolver(), rate_table)
        assert quote.grand_total.amount == sum(g.total_in_reporting.amount for g in quote.groups)

    def test_fallback_group_flagged(self, rate_table):
        items = [ProductItem("Lipstick", Money.of("15", "USD"), "uk", category="cosmetics")]
        quote = quote_landed_cost(items, _resolver(), rate_table)
        assert quote.groups[0].resolved_rate.step is ResolutionStep.REGION_GENERAL
        assert quote.fallback_groups == quote.groups

    def test_extra_rules_after_rate_rules(self, rate_table):
        insurance = ChargeRule("Insurance", "insurance", ChargeKind.FIXED, Decimal("5"))
        items = [ProductItem("Boots", Money.of("200", "USD"), "usa", estimated_weight_kg="3.4")]
        quote = quote_landed_cost(items, _resolver(), rate_table, extra_rules=[insurance])
        charges = quote.groups[0].charges
        assert charges.breakdown[-1].key == "insurance"
        assert charges.total == Money.of("313.96", "USD")

    def test_extra_rules_per_group(self, rate_table):
        insurance = ChargeRule("Insurance", "insurance", ChargeKind.FIXED, Decimal("5"))

        def rules_for(region, category):
            return [insurance] if region == "uk" else []

        items = [
            ProductItem("Shirt", Money.of("20", "USD"), "usa"),
            ProductItem("Tea", Money.of("10", "GBP"), "uk"),
        ]
        quote = quote_landed_cost(items, _resolver(), rate_table, extra_rules=rules_for)
        assert quote.groups[0].charges.line("insurance") is None
        assert quote.groups[1].charges.line("insurance") is not None

    def test_mixed_currency_group_rejected(self, rate_table):
        items = [
            ProductItem("Shirt", Money.of("20", "USD"), "usa"),
            ProductItem("Hat", Money.of("20", "EUR"), "usa"),
        ]
        with pytest.raises(CurrencyMismatchError):
            quote_landed_cost(items, _resolver(), rate_table)


class TestDefaultRates:
    def _items(self):
        return [ProductItem("Kikoi", Money.of("10", "KES"), "usa")]

    def test_unknown_currency_fails_by_default(self, rate_table):
        with pytest.raises(UnknownCurrencyError):
            quote_landed_cost(self._items(), _resolver(), rate_table)

    def test_opt_in_uses_soft_default(self, rate_table):
        quote = quote_landed_cost(
            self._items(), _resolver(), rate_table, allow_default_rates=True
        )
        group = quote.groups[0]
        assert group.rate_is_default
        assert group.exchange_rate == Decimal("1")
        assert group.total_in_reporting.amount == group.subtotal.amount
        assert quote.defaulted_currencies == ("KES",)

    def test_known_currency_not_flagged(self, rate_table):
        items = [ProductItem("Shirt", Money.of("20", "USD"), "usa")]
        quote = quote_landed_cost(items, _resolver(), rate_table, allow_default_rates=True)
        assert quote.defaulted_currencies == ()
