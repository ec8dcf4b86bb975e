"""
Module: freight_kernel.selectors.record_selector
Responsibility: Read-only access to the portal's invoices, expenses,
    shipments, exchange rates and agent settings, returned as frozen domain
    records.  Implements the RecordSource and RateSource collaborators.
Architecture position: Kernel > Selectors.  May import from models/,
    domain/ and selectors/base.py.

Invariants enforced:
    - Every fetch returns the full, unfiltered table; filtering belongs to
      the engines.
    - A row without a currency is read as USD, and a row without an amount
      as zero, matching how the portal has always displayed them.
    - Timestamps come back timezone-aware; naive values (SQLite) are read
      as UTC.

Failure modes:
    - InvalidCurrencyError when a row carries a code that is not ISO 4217.
    - InvalidRateError for a stored rate that is zero or negative.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import select

from freight_kernel.domain.records import ExpenseRecord, InvoiceRecord, ShipmentRecord
from freight_kernel.domain.values import Money, RateEntry
from freight_kernel.models.agent_setting import AgentSetting
from freight_kernel.models.exchange_rate import CurrencyExchangeRate
from freight_kernel.models.expense import Expense
from freight_kernel.models.invoice import Invoice
from freight_kernel.models.shipment import Shipment
from freight_kernel.selectors.base import BaseSelector

DEFAULT_ROW_CURRENCY = "USD"


def _aware(moment: datetime | None) -> datetime | None:
    if moment is not None and moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def _money(amount: Decimal | None, currency: str | None) -> Money:
    return Money.of(
        amount if amount is not None else Decimal("0"),
        currency or DEFAULT_ROW_CURRENCY,
    )


class RecordSelector(BaseSelector):
    """
    Selector over the portal tables.

    Contract:
        Read-only; rows are converted to domain records in creation order.
    """

    def fetch_invoices(self) -> list[InvoiceRecord]:
        rows = self.session.scalars(
            select(Invoice).order_by(Invoice.created_at, Invoice.id)
        )
        return [
            InvoiceRecord(
                record_id=str(row.id),
                money=_money(row.amount, row.currency),
                status=row.status,
                created_at=_aware(row.created_at),
                paid_at=_aware(row.paid_at),
                invoice_type=row.invoice_type,
                direction=row.invoice_direction,
                agent_id=row.agent_id,
                customer_id=row.customer_id,
                region=row.region,
            )
            for row in rows
        ]

    def fetch_expenses(self) -> list[ExpenseRecord]:
        rows = self.session.scalars(
            select(Expense).order_by(Expense.created_at, Expense.id)
        )
        return [
            ExpenseRecord(
                record_id=str(row.id),
                money=_money(row.amount, row.currency),
                status=row.status,
                category=row.category,
                created_at=_aware(row.created_at),
                region=row.region,
            )
            for row in rows
        ]

    def fetch_shipments(self) -> list[ShipmentRecord]:
        rows = self.session.scalars(
            select(Shipment).order_by(Shipment.created_at, Shipment.id)
        )
        return [
            ShipmentRecord(
                record_id=str(row.id),
                status=row.status,
                created_at=_aware(row.created_at),
                origin_region=row.origin_region,
                weight_kg=row.total_weight_kg,
                money=_money(row.cost, row.currency) if row.cost is not None else None,
                customer_id=row.customer_id,
                delivered_at=_aware(row.delivered_at),
            )
            for row in rows
        ]

    def fetch_rates(self) -> list[RateEntry]:
        rows = self.session.scalars(
            select(CurrencyExchangeRate).order_by(CurrencyExchangeRate.currency_code)
        )
        return [RateEntry.of(row.currency_code, row.rate_to_tzs) for row in rows]

    def fetch_agent_base_currencies(self) -> dict[str, str]:
        """Agent id -> base currency, for agents that set one."""
        rows = self.session.scalars(select(AgentSetting))
        return {
            row.user_id: row.base_currency.upper()
            for row in rows
            if row.base_currency
        }
