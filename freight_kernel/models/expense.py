"""
Module: freight_kernel.models.expense
Responsibility: ORM read model for the portal ``expenses`` table.
Architecture position: Kernel > Models.  May import from db/base.py only.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import Index, String
from sqlalchemy.orm import Mapped, mapped_column

from freight_kernel.db.base import Base


class Expense(Base):
    __tablename__ = "expenses"

    __table_args__ = (
        Index("idx_expense_status", "status"),
        Index("idx_expense_created", "created_at"),
    )

    amount: Mapped[Decimal | None] = mapped_column(nullable=True)
    currency: Mapped[str | None] = mapped_column(String(3), nullable=True)
    status: Mapped[str | None] = mapped_column(String(32), nullable=True)
    category: Mapped[str | None] = mapped_column(String(64), nullable=True)
    region: Mapped[str | None] = mapped_column(String(32), nullable=True)
    description: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime | None] = mapped_column(nullable=True)

    def __repr__(self) -> str:
        return f"<Expense {self.id}: {self.amount} {self.currency} ({self.status})>"
