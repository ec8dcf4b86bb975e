"""
Tests for QuoteService.

Covers:
- Landed-cost quotes priced from the default configuration
- Soft default exchange rates (policy and per-call override)
- Shop-for-me charge estimates in display order
- Product lookup by URL
"""

from decimal import Decimal

import pytest

from freight_config import get_active_config
from freight_config.loader import parse_engine_config
from freight_engines.charges import ChargeKind, ResolutionStep
from freight_engines.landed_cost import ProductItem
from freight_kernel.domain.collaborators import ProductInfo
from freight_kernel.domain.values import Money, RateEntry
from freight_kernel.exceptions import UnknownCurrencyError
from freight_services import ItemRequest, QuoteService


class StaticRates:
    def __init__(self, **rates):
        self.rates = rates or {"USD": "2500", "GBP": "3150"}

    def fetch_rates(self):
        return [RateEntry.of(code, rate) for code, rate in self.rates.items()]


class CatalogLookup:
    def __init__(self, catalog):
        self.catalog = catalog
        self.requested = []

    def fetch(self, url):
        self.requested.append(url)
        return self.catalog.get(url, ProductInfo(url))


def _boots():
    return ProductItem("Boots", Money.of("200", "USD"), "usa", estimated_weight_kg="3.4")


class TestQuote:
    def setup_method(self):
        self.service = QuoteService(get_active_config(), StaticRates())

    def test_default_config_quote(self):
        quote = self.service.quote([_boots()])

        (group,) = quote.groups
        assert group.resolved_rate.step is ResolutionStep.EXACT
        assert group.subtotal == Money.of("308.96", "USD")
        assert quote.grand_total == Money.of("772400", "TZS")

    def test_category_fallback_to_general(self):
        item = ProductItem("Chair", Money.of("50", "USD"), "usa", category="furniture")
        quote = self.service.quote([item])
        assert quote.groups[0].resolved_rate.step is ResolutionStep.REGION_GENERAL
        assert quote.fallback_groups == quote.groups

    def test_unknown_currency_rejected_by_policy(self):
        item = ProductItem("Kikoi", Money.of("10", "KES"), "usa")
        with pytest.raises(UnknownCurrencyError):
            self.service.quote([item])

    def test_soft_default_opt_in(self, captured_logs):
        item = ProductItem("Kikoi", Money.of("10", "KES"), "usa")
        quote = self.service.quote([item], allow_default_rates=True)

        assert quote.defaulted_currencies == ("KES",)
        assert quote.groups[0].exchange_rate == Decimal("1")
        (warning,) = [r for r in captured_logs() if r["message"] == "quote_rate_defaulted"]
        assert warning["currency"] == "KES"
        assert warning["level"] == "WARNING"

    def test_policy_from_config(self):
        config = parse_engine_config(
            {
                "config_id": "lenient",
                "version": 1,
                "reporting_currency": "TZS",
                "quotes": {"allow_default_rates": True, "soft_default_rate": "2"},
                "default_product_rate": {
                    "rate_per_kg": 8,
                    "handling_fee_percentage": 3,
                    "duty_percentage": 35,
                },
            }
        )
        service = QuoteService(config, StaticRates())
        quote = service.quote([ProductItem("Kikoi", Money.of("10", "KES"), "usa")])
        assert quote.groups[0].exchange_rate == Decimal("2")

    def test_quote_logged(self, captured_logs):
        self.service.quote([_boots()], quote_id="q-7")
        (computed,) = [r for r in captured_logs() if r["message"] == "quote_computed"]
        assert Decimal(computed["grand_total"]) == Decimal("772400")
        assert computed["group_count"] == 1
        assert computed["quote_id"] == "q-7"


class TestQuoteUrls:
    def test_items_from_urls(self):
        lookup = CatalogLookup(
            {
                "https://shop.example/boots": ProductInfo(
                    "https://shop.example/boots",
                    description="Boots",
                    price=Money.of("200", "USD"),
                    estimated_weight_kg=Decimal("3.4"),
                )
            }
        )
        service = QuoteService(get_active_config(), StaticRates(), product_info_source=lookup)
        quote = service.quote_urls([ItemRequest("https://shop.example/boots", "USA")])

        assert lookup.requested == ["https://shop.example/boots"]
        assert quote.grand_total == Money.of("772400", "TZS")

    def test_unknown_product_uses_defaults(self):
        service = QuoteService(
            get_active_config(), StaticRates(), product_info_source=CatalogLookup({})
        )
        (item,) = service.items_from_urls([ItemRequest("https://shop.example/x", "uk", quantity=2)])
        assert item.unit_price == Money.zero("USD")
        assert item.billable_weight == Decimal("2")

    def test_requires_lookup(self):
        service = QuoteService(get_active_config(), StaticRates())
        with pytest.raises(RuntimeError):
            service.items_from_urls([ItemRequest("https://shop.example/x", "usa")])


class TestEstimateCharges:
    def test_default_rules(self, captured_logs):
        service = QuoteService(get_active_config(), StaticRates())
        breakdown = service.estimate_charges(Money.of("200", "USD"), "3.4")

        assert [line.key for line in breakdown.breakdown] == [
            "duty_clearing",
            "shipping",
            "handling_fee",
        ]
        assert breakdown.amount_of("duty_clearing") == Decimal("70")
        assert breakdown.amount_of("shipping") == Decimal("32")
        assert breakdown.amount_of("handling_fee") == Decimal("9.06")
        assert breakdown.total == Money.of("311.06", "USD")
        assert any(r["message"] == "charges_estimated" for r in captured_logs())

    def test_zero_weight_has_no_shipping(self):
        service = QuoteService(get_active_config(), StaticRates())
        breakdown = service.estimate_charges(Money.of("100", "USD"), 0)
        assert breakdown.amount_of("shipping") == Decimal("0")

    def test_shipping_rule_added_when_missing(self):
        config = parse_engine_config(
            {
                "config_id": "fees-only",
                "version": 1,
                "reporting_currency": "TZS",
                "default_shipping_rate_per_kg": 10,
                "charge_rules": [
                    {"key": "service", "kind": "fixed", "rate": 5, "display_order": 4},
                ],
            }
        )
        service = QuoteService(config, StaticRates())
        rules = service.charge_rules()
        assert [r.key for r in rules] == ["service", "shipping"]
        assert rules[-1].kind is ChargeKind.PER_UNIT_WEIGHT
        assert rules[-1].display_order == 5

        breakdown = service.estimate_charges(Money.of("100", "USD"), "1.5")
        assert breakdown.total == Money.of("125", "USD")
