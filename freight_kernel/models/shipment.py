"""
Module: freight_kernel.models.shipment
Responsibility: ORM read model for the portal ``shipments`` table.
Architecture position: Kernel > Models.  May import from db/base.py only.

Shipments usually carry weight only.  ``cost`` and ``currency`` are set
when a shipment is billed on its own.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import Index, String
from sqlalchemy.orm import Mapped, mapped_column

from freight_kernel.db.base import Base


class Shipment(Base):
    __tablename__ = "shipments"

    __table_args__ = (
        Index("idx_shipment_status", "status"),
        Index("idx_shipment_created", "created_at"),
    )

    tracking_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    status: Mapped[str | None] = mapped_column(String(32), nullable=True)
    origin_region: Mapped[str | None] = mapped_column(String(32), nullable=True)
    total_weight_kg: Mapped[Decimal | None] = mapped_column(nullable=True)
    cost: Mapped[Decimal | None] = mapped_column(nullable=True)
    currency: Mapped[str | None] = mapped_column(String(3), nullable=True)
    customer_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime | None] = mapped_column(nullable=True)
    delivered_at: Mapped[datetime | None] = mapped_column(nullable=True)

    def __repr__(self) -> str:
        return f"<Shipment {self.tracking_number or self.id}: {self.status}>"
