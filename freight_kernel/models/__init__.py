"""Read models for the portal tables the engines aggregate."""

from freight_kernel.models.agent_setting import AgentSetting
from freight_kernel.models.exchange_rate import CurrencyExchangeRate
from freight_kernel.models.expense import Expense
from freight_kernel.models.invoice import Invoice
from freight_kernel.models.shipment import Shipment

__all__ = [
    "AgentSetting",
    "CurrencyExchangeRate",
    "Expense",
    "Invoice",
    "Shipment",
]
