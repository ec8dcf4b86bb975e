"""
Module: freight_kernel.models.invoice
Responsibility: ORM read model for the portal ``invoices`` table, covering
    customer invoices and B2B agent invoices.
Architecture position: Kernel > Models.  May import from db/base.py only.

Nullable columns mirror the portal: older rows carry no currency (read as
USD by the selector) and unpaid invoices have no ``paid_at``.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import Index, String
from sqlalchemy.orm import Mapped, mapped_column

from freight_kernel.db.base import Base


class Invoice(Base):
    """Invoice row.  ``invoice_direction`` is set on B2B agent invoices only."""

    __tablename__ = "invoices"

    __table_args__ = (
        Index("idx_invoice_status", "status"),
        Index("idx_invoice_agent", "agent_id"),
        Index("idx_invoice_created", "created_at"),
    )

    invoice_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    amount: Mapped[Decimal | None] = mapped_column(nullable=True)
    currency: Mapped[str | None] = mapped_column(String(3), nullable=True)
    status: Mapped[str | None] = mapped_column(String(32), nullable=True)
    invoice_type: Mapped[str | None] = mapped_column(String(32), nullable=True)
    invoice_direction: Mapped[str | None] = mapped_column(String(16), nullable=True)
    agent_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    customer_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    region: Mapped[str | None] = mapped_column(String(32), nullable=True)
    created_at: Mapped[datetime | None] = mapped_column(nullable=True)
    paid_at: Mapped[datetime | None] = mapped_column(nullable=True)

    def __repr__(self) -> str:
        return f"<Invoice {self.invoice_number or self.id}: {self.amount} {self.currency}>"
