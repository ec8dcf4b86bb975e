"""
Module: freight_kernel.models.exchange_rate
Responsibility: ORM read model for ``currency_exchange_rates``: one rate per
    currency into the reporting currency (TZS).
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - currency_code is unique, so a rate snapshot never sees two entries
      for one currency.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from freight_kernel.db.base import Base


class CurrencyExchangeRate(Base):
    __tablename__ = "currency_exchange_rates"

    currency_code: Mapped[str] = mapped_column(String(3), unique=True, nullable=False)
    currency_name: Mapped[str | None] = mapped_column(String(64), nullable=True)
    rate_to_tzs: Mapped[Decimal] = mapped_column(nullable=False)
    updated_at: Mapped[datetime | None] = mapped_column(nullable=True)

    def __repr__(self) -> str:
        return f"<CurrencyExchangeRate {self.currency_code}={self.rate_to_tzs} TZS>"
