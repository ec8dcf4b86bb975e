"""
Records -- Read-only transactional record variants.

Responsibility:
    Defines the tagged union of records the aggregation engines consume:
    invoices, expenses and shipment events.  Each variant resolves its own
    governing timestamp and monetary amount through the same two accessors,
    so engines never probe fields by record shape.

Architecture position:
    Kernel > Domain -- pure data, zero I/O.  Records are created by the
    record-fetch collaborator (see freight_kernel.selectors) and are never
    mutated or deleted by any engine.

Invariants enforced:
    - Records are frozen dataclasses.
    - ``governing_timestamp`` is chosen per kind: an invoice prefers
      ``paid_at`` over ``created_at`` (revenue recognition depends on the
      paid-or-created precedence); expenses and shipments use ``created_at``.
    - Status, category and region tags are normalized to lowercase.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import ClassVar, Protocol, runtime_checkable

from freight_kernel.domain.values import Money


class RecordKind(str, Enum):
    """Discriminator of the record union."""

    INVOICE = "invoice"
    EXPENSE = "expense"
    SHIPMENT = "shipment"


class InvoiceStatus(str, Enum):
    DRAFT = "draft"
    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


class InvoiceDirection(str, Enum):
    """Direction of a B2B invoice relative to the agent."""

    TO_AGENT = "to_agent"  # company pays the agent
    FROM_AGENT = "from_agent"  # agent pays the company


class ExpenseStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    NEEDS_CLARIFICATION = "needs_clarification"


class ShipmentStatus(str, Enum):
    COLLECTED = "collected"
    IN_TRANSIT = "in_transit"
    ARRIVED = "arrived"
    DELIVERED = "delivered"


def _tag(value: str | None) -> str | None:
    if value is None:
        return None
    if isinstance(value, Enum):
        value = value.value
    return str(value).strip().lower() or None


@runtime_checkable
class TransactionRecord(Protocol):
    """The accessor interface shared by every record variant."""

    kind: ClassVar[RecordKind]
    record_id: str
    status: str | None

    @property
    def governing_timestamp(self) -> datetime | None: ...

    @property
    def amount(self) -> Money | None: ...

    @property
    def weight(self) -> Decimal | None: ...


@dataclass(frozen=True)
class InvoiceRecord:
    """An invoice as fetched from the store."""

    kind: ClassVar[RecordKind] = RecordKind.INVOICE

    record_id: str
    money: Money
    status: str | None
    created_at: datetime | None
    paid_at: datetime | None = None
    invoice_type: str | None = None
    direction: str | None = None
    agent_id: str | None = None
    customer_id: str | None = None
    region: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "status", _tag(self.status))
        object.__setattr__(self, "direction", _tag(self.direction))
        object.__setattr__(self, "invoice_type", _tag(self.invoice_type))
        object.__setattr__(self, "region", _tag(self.region))

    @property
    def governing_timestamp(self) -> datetime | None:
        # Paid-or-created precedence
        if self.paid_at is not None:
            return self.paid_at
        return self.created_at

    @property
    def amount(self) -> Money:
        return self.money

    @property
    def weight(self) -> Decimal | None:
        return None

    @property
    def is_paid(self) -> bool:
        return self.status == InvoiceStatus.PAID.value

    @property
    def is_pending(self) -> bool:
        return self.status == InvoiceStatus.PENDING.value


@dataclass(frozen=True)
class ExpenseRecord:
    """An operating expense as fetched from the store."""

    kind: ClassVar[RecordKind] = RecordKind.EXPENSE

    record_id: str
    money: Money
    status: str | None
    category: str | None
    created_at: datetime | None
    region: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "status", _tag(self.status))
        object.__setattr__(self, "category", _tag(self.category))
        object.__setattr__(self, "region", _tag(self.region))

    @property
    def governing_timestamp(self) -> datetime | None:
        return self.created_at

    @property
    def amount(self) -> Money:
        return self.money

    @property
    def weight(self) -> Decimal | None:
        return None

    @property
    def is_approved(self) -> bool:
        return self.status == ExpenseStatus.APPROVED.value


@dataclass(frozen=True)
class ShipmentRecord:
    """A shipment event.  Cost is optional; weight drives volume metrics."""

    kind: ClassVar[RecordKind] = RecordKind.SHIPMENT

    record_id: str
    status: str | None
    created_at: datetime | None
    origin_region: str | None = None
    weight_kg: Decimal | None = None
    money: Money | None = None
    customer_id: str | None = None
    delivered_at: datetime | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "status", _tag(self.status))
        object.__setattr__(self, "origin_region", _tag(self.origin_region))
        if self.weight_kg is not None and not isinstance(self.weight_kg, Decimal):
            object.__setattr__(self, "weight_kg", Decimal(str(self.weight_kg)))

    @property
    def governing_timestamp(self) -> datetime | None:
        return self.created_at

    @property
    def amount(self) -> Money | None:
        return self.money

    @property
    def weight(self) -> Decimal | None:
        return self.weight_kg

    @property
    def region(self) -> str | None:
        return self.origin_region


AnyRecord = InvoiceRecord | ExpenseRecord | ShipmentRecord
