"""
Module: freight_kernel.models.agent_setting
Responsibility: ORM read model for ``agent_settings``; only the agent's base
    currency is read here.
Architecture position: Kernel > Models.  May import from db/base.py only.
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from freight_kernel.db.base import Base


class AgentSetting(Base):
    __tablename__ = "agent_settings"

    user_id: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    base_currency: Mapped[str | None] = mapped_column(String(3), nullable=True)
