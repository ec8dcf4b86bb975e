"""
Collaborators -- Read-side interfaces the engines are fed from.

The engines never fetch anything.  Services pull one snapshot through these
protocols at the start of a report or quote and pass plain values down.
No filtering is assumed to happen upstream: record sources return the full,
unfiltered record set for their entity kind.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Protocol

from freight_kernel.domain.records import ExpenseRecord, InvoiceRecord, ShipmentRecord
from freight_kernel.domain.values import Money, RateEntry

if TYPE_CHECKING:
    from freight_engines.charges import ChargeRule


class RecordSource(Protocol):
    """Returns every record of a kind, unfiltered."""

    def fetch_invoices(self) -> Sequence[InvoiceRecord]: ...

    def fetch_expenses(self) -> Sequence[ExpenseRecord]: ...

    def fetch_shipments(self) -> Sequence[ShipmentRecord]: ...


class RateSource(Protocol):
    """Returns the current currency -> reporting-currency rates."""

    def fetch_rates(self) -> Sequence[RateEntry]: ...


class ChargeRuleSource(Protocol):
    """Returns the charge rules that apply to a (region, category) pair."""

    def rules_for(self, region: str, category: str) -> Sequence[ChargeRule]: ...


@dataclass(frozen=True)
class ProductInfo:
    """What the product lookup could learn about a shop URL."""

    url: str
    description: str | None = None
    price: Money | None = None
    estimated_weight_kg: Decimal | None = None


class ProductInfoSource(Protocol):
    """Black-box product lookup by URL."""

    def fetch(self, url: str) -> ProductInfo: ...
