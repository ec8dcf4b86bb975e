"""
Tests for the cost-breakdown calculator and product rate resolution.

Covers:
- The landed-cost worked example (200 base, 3.4 kg -> 308.96)
- Weight rounding (1.2 kg billed as 2)
- Fixed evaluation order for running-subtotal rules
- The EXACT -> REGION_GENERAL -> DEFAULT fallback chain and its logging
"""

from decimal import Decimal

import pytest

from freight_engines.charges import (
    DEFAULT_PRODUCT_RATE,
    ChargeBase,
    ChargeKind,
    ChargeRule,
    ProductRate,
    ProductRateResolver,
    ResolutionStep,
    compute_charges,
    ordered_rules,
    round_weight_up,
)
from freight_kernel.domain.values import Money
from freight_kernel.exceptions import InvalidChargeRuleError, UnresolvableRateError

SHIPPING = ChargeRule("Shipping", "shipping", ChargeKind.PER_UNIT_WEIGHT, Decimal("8"), display_order=1)
HANDLING = ChargeRule(
    "Handling Fee", "handling_fee", ChargeKind.PERCENTAGE_OF_BASE, Decimal("3"),
    ChargeBase.RUNNING_SUBTOTAL, 2,
)
DUTY = ChargeRule(
    "Duty", "duty", ChargeKind.PERCENTAGE_OF_BASE, Decimal("35"), ChargeBase.BASE_COST, 3
)


class TestWorkedExample:
    """Base 200, weight 3.4 kg, 8/kg, duty 35% of base, handling 3% of base + shipping."""

    def setup_method(self):
        self.weight = round_weight_up(Decimal("3.4"))
        self.result = compute_charges(
            Money.of("200", "USD"), self.weight, [SHIPPING, HANDLING, DUTY]
        )

    def test_weight_rounds_to_4(self):
        assert self.weight == Decimal("4")

    def test_lines(self):
        assert self.result.amount_of("shipping") == Decimal("32")
        assert self.result.amount_of("duty") == Decimal("70")
        assert self.result.amount_of("handling_fee") == Decimal("6.96")

    def test_total(self):
        assert self.result.total == Money.of("308.96", "USD")

    def test_base_line_first(self):
        first = self.result.breakdown[0]
        assert first.key == "product_cost"
        assert first.name == "Product Cost"
        assert first.amount == Money.of("200", "USD")

    def test_percentage_recorded_on_line(self):
        assert self.result.line("duty").percentage == Decimal("35")
        assert self.result.line("shipping").percentage is None

    def test_product_rate_rules_match(self):
        rate = ProductRate("usa", "general", Decimal("8"), Decimal("3"), Decimal("35"))
        result = compute_charges(Money.of("200", "USD"), self.weight, rate.charge_rules())
        assert result.total == Money.of("308.96", "USD")


class TestWeightRounding:
    @pytest.mark.parametrize(
        "raw,billed",
        [("1.2", "2"), ("1.0", "1"), ("0.01", "1"), ("0", "0"), ("3", "3")],
    )
    def test_ceiling(self, raw, billed):
        assert round_weight_up(Decimal(raw)) == Decimal(billed)

    def test_never_rounds_down(self):
        result = compute_charges(Money.of("0", "USD"), round_weight_up("1.2"), [SHIPPING])
        assert result.amount_of("shipping") == Decimal("16")


class TestEvaluationOrder:
    def test_running_subtotal_depends_on_order(self):
        """Moving duty ahead of handling changes handling's basis."""
        documented = compute_charges(Money.of("200", "USD"), Decimal("4"), [SHIPPING, HANDLING, DUTY])
        reordered = compute_charges(Money.of("200", "USD"), Decimal("4"), [DUTY, SHIPPING, HANDLING])

        assert documented.total == Money.of("308.96", "USD")
        assert reordered.total == Money.of("311.06", "USD")

    def test_order_free_rules_commute(self):
        fixed = ChargeRule("Insurance", "insurance", ChargeKind.FIXED, Decimal("5"))
        rules = [SHIPPING, DUTY, fixed]
        forward = compute_charges(Money.of("200", "USD"), Decimal("4"), rules)
        backward = compute_charges(Money.of("200", "USD"), Decimal("4"), list(reversed(rules)))
        assert forward.total == backward.total == Money.of("307", "USD")

    def test_subtotal_excludes_weight_charges(self):
        fixed = ChargeRule("Packing", "packing", ChargeKind.FIXED, Decimal("10"))
        pct = ChargeRule("Agency", "agency", ChargeKind.PERCENTAGE_OF_BASE, Decimal("10"), ChargeBase.SUBTOTAL)
        result = compute_charges(Money.of("100", "USD"), Decimal("2"), [SHIPPING, fixed, pct])
        assert result.amount_of("agency") == Decimal("11")
        assert result.total == Money.of("137", "USD")

    def test_ordered_rules_stable_by_display_order(self):
        late = ChargeRule("B", "b", ChargeKind.FIXED, Decimal("1"), display_order=5)
        tie_a = ChargeRule("A1", "a1", ChargeKind.FIXED, Decimal("1"), display_order=1)
        tie_b = ChargeRule("A2", "a2", ChargeKind.FIXED, Decimal("1"), display_order=1)
        assert [r.key for r in ordered_rules([late, tie_a, tie_b])] == ["a1", "a2", "b"]

    def test_empty_rules(self):
        result = compute_charges(Money.of("50", "EUR"), Decimal("0"), [])
        assert result.total == Money.of("50", "EUR")
        assert len(result.breakdown) == 1


class TestChargeRuleValidation:
    def test_negative_rate_rejected(self):
        with pytest.raises(InvalidChargeRuleError):
            ChargeRule("X", "x", ChargeKind.FIXED, Decimal("-1"))

    def test_unknown_kind_rejected(self):
        with pytest.raises(InvalidChargeRuleError):
            ChargeRule("X", "x", "per_parcel", Decimal("1"))

    def test_string_enums_coerced(self):
        rule = ChargeRule("X", "x", "percentage", "3", "running_subtotal")
        assert rule.kind is ChargeKind.PERCENTAGE_OF_BASE
        assert rule.base is ChargeBase.RUNNING_SUBTOTAL
        assert rule.rate == Decimal("3")


class TestProductRate:
    def test_zero_markup_omitted(self):
        keys = [r.key for r in ProductRate("uk", "general", "7", "3", "35").charge_rules()]
        assert keys == ["shipping", "handling_fee", "duty"]

    def test_markup_on_running_subtotal(self):
        rate = ProductRate("uk", "general", "0", "0", "0", markup_percentage="10")
        result = compute_charges(Money.of("100", "GBP"), Decimal("1"), rate.charge_rules())
        assert result.amount_of("markup") == Decimal("10")


class TestProductRateResolver:
    def setup_method(self):
        self.resolver = ProductRateResolver(
            [
                ProductRate("usa", "general", "8", "3", "35"),
                ProductRate("usa", "electronics", "12", "4", "25"),
            ]
        )

    def test_exact(self):
        resolved = self.resolver.resolve("USA", "Electronics")
        assert resolved.step is ResolutionStep.EXACT
        assert resolved.rate.rate_per_kg == Decimal("12")
        assert not resolved.is_fallback

    def test_region_general(self, captured_logs):
        resolved = self.resolver.resolve("usa", "cosmetics")
        assert resolved.step is ResolutionStep.REGION_GENERAL
        assert resolved.rate.rate_per_kg == Decimal("8")

        record = next(r for r in captured_logs() if r["message"] == "product_rate_fallback")
        assert record["level"] == "INFO"
        assert record["step"] == "region_general"

    def test_default(self, captured_logs):
        resolved = self.resolver.resolve("china", "hazardous")
        assert resolved.step is ResolutionStep.DEFAULT
        assert resolved.rate == DEFAULT_PRODUCT_RATE

        record = next(r for r in captured_logs() if r["message"] == "product_rate_fallback")
        assert record["level"] == "WARNING"
        assert record["region"] == "china"

    def test_missing_category_means_general(self):
        assert self.resolver.resolve("usa", None).step is ResolutionStep.EXACT

    def test_no_default_raises(self):
        resolver = ProductRateResolver([], default=None)
        with pytest.raises(UnresolvableRateError):
            resolver.resolve("usa", "general")
