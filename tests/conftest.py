"""
Pytest fixtures for the freight finance test suite.

Provides:
- Structured logging configured once per session, LogContext cleared per test
- captured_logs: freight_kernel log records as parsed JSON dicts
- A deterministic clock and a standard TZS rate table
- Record factories for invoices, expenses and shipments
"""

import json
import logging
from datetime import UTC, datetime
from decimal import Decimal
from io import StringIO
from itertools import count

import pytest

from freight_engines.rates import RateTable
from freight_kernel.domain.clock import DeterministicClock
from freight_kernel.domain.records import ExpenseRecord, InvoiceRecord, ShipmentRecord
from freight_kernel.domain.values import Money
from freight_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)

STANDARD_RATES = {
    "USD": Decimal("2500"),
    "EUR": Decimal("2700"),
    "GBP": Decimal("3150"),
    "AED": Decimal("680"),
    "CNY": Decimal("345"),
}

FIXED_NOW = datetime(2024, 3, 15, 12, 0, tzinfo=UTC)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture freight_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            service.quote(items)
            logs = captured_logs()
            assert any(r["message"] == "quote_computed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("freight_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Clock and rates
# =============================================================================


@pytest.fixture
def deterministic_clock():
    return DeterministicClock(FIXED_NOW)


@pytest.fixture
def rate_table():
    """USD 2500, EUR 2700, GBP 3150, AED 680, CNY 345 to TZS."""
    return RateTable.from_mapping(STANDARD_RATES)


# =============================================================================
# Record factories
# =============================================================================


_ids = count(1)


def _next_id(prefix: str) -> str:
    return f"{prefix}-{next(_ids)}"


@pytest.fixture
def make_invoice():
    def _make(
        amount="100",
        currency="USD",
        status="paid",
        created_at=FIXED_NOW,
        paid_at=None,
        **kwargs,
    ) -> InvoiceRecord:
        return InvoiceRecord(
            record_id=kwargs.pop("record_id", None) or _next_id("inv"),
            money=Money.of(amount, currency),
            status=status,
            created_at=created_at,
            paid_at=paid_at,
            **kwargs,
        )

    return _make


@pytest.fixture
def make_expense():
    def _make(
        amount="100",
        currency="USD",
        status="approved",
        category="fuel",
        created_at=FIXED_NOW,
        **kwargs,
    ) -> ExpenseRecord:
        return ExpenseRecord(
            record_id=kwargs.pop("record_id", None) or _next_id("exp"),
            money=Money.of(amount, currency),
            status=status,
            category=category,
            created_at=created_at,
            **kwargs,
        )

    return _make


@pytest.fixture
def make_shipment():
    def _make(
        status="in_transit",
        created_at=FIXED_NOW,
        origin_region="usa",
        weight_kg="10",
        **kwargs,
    ) -> ShipmentRecord:
        return ShipmentRecord(
            record_id=kwargs.pop("record_id", None) or _next_id("shp"),
            status=status,
            created_at=created_at,
            origin_region=origin_region,
            weight_kg=Decimal(weight_kg) if weight_kg is not None else None,
            **kwargs,
        )

    return _make
