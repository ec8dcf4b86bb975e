"""
Module: freight_engines.balances
Responsibility:
    B2B agent balances: what the company has paid or owes to each agent
    and what each agent has paid or owes to the company, expressed in the
    agent's base currency.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Built on the rollup
    engine with a composite (agent, direction, status) key.

Invariants enforced:
    - Only paid and pending invoices with a direction contribute.
    - Amounts go original currency -> reporting currency -> agent base
      currency through one rate snapshot.
    - net_balance = (paid_from + pending_from) - (paid_to + pending_to).
      Positive means the agent owes the company.

Failure modes:
    - UnknownCurrencyError for an invoice or base currency missing from
      the rate table.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import Decimal

from freight_engines.rates import RateTable
from freight_engines.rollup import GroupKey, RollupBucket, by_direction, by_status, composite, rollup
from freight_engines.tracer import traced_engine
from freight_kernel.domain.records import InvoiceDirection, InvoiceRecord, InvoiceStatus

DEFAULT_BASE_CURRENCY = "USD"

_ZERO = Decimal("0")


@dataclass(frozen=True)
class AgentBalance:
    agent_id: str | None
    base_currency: str
    paid_to_agent: Decimal = _ZERO
    pending_to_agent: Decimal = _ZERO
    paid_from_agent: Decimal = _ZERO
    pending_from_agent: Decimal = _ZERO

    @property
    def total_to_agent(self) -> Decimal:
        return self.paid_to_agent + self.pending_to_agent

    @property
    def total_from_agent(self) -> Decimal:
        return self.paid_from_agent + self.pending_from_agent

    @property
    def net_balance(self) -> Decimal:
        return self.total_from_agent - self.total_to_agent


_FIELDS = {
    (InvoiceDirection.TO_AGENT.value, InvoiceStatus.PAID.value): "paid_to_agent",
    (InvoiceDirection.TO_AGENT.value, InvoiceStatus.PENDING.value): "pending_to_agent",
    (InvoiceDirection.FROM_AGENT.value, InvoiceStatus.PAID.value): "paid_from_agent",
    (InvoiceDirection.FROM_AGENT.value, InvoiceStatus.PENDING.value): "pending_from_agent",
}


def _agent_key(record: InvoiceRecord) -> GroupKey | None:
    if record.agent_id is None:
        return None
    return (record.agent_id,)


def _in_base(bucket: RollupBucket, rate_table: RateTable, base_currency: str) -> Decimal:
    return bucket.sum_in_reporting_currency / rate_table.lookup(base_currency)


def _balance_from_buckets(
    agent_id: str | None,
    buckets: Iterable[tuple[tuple[str, str], RollupBucket]],
    rate_table: RateTable,
    base_currency: str,
) -> AgentBalance:
    amounts: dict[str, Decimal] = {}
    for (direction, status), bucket in buckets:
        field_name = _FIELDS.get((direction, status))
        if field_name is None:
            continue
        amounts[field_name] = amounts.get(field_name, _ZERO) + _in_base(
            bucket, rate_table, base_currency
        )
    return AgentBalance(agent_id, base_currency, **amounts)


@traced_engine(
    "agent_balance", "1.0", fingerprint_fields=("invoices", "rate_table", "base_currency")
)
def agent_balance(
    invoices: Iterable[InvoiceRecord],
    rate_table: RateTable,
    base_currency: str = DEFAULT_BASE_CURRENCY,
    *,
    agent_id: str | None = None,
) -> AgentBalance:
    """Balance of one agent over that agent's invoices."""
    base_currency = base_currency.upper().strip()
    rate_table.lookup(base_currency)
    buckets = rollup(invoices, composite(by_direction, by_status), rate_table)
    return _balance_from_buckets(
        agent_id,
        ((b.group_key, b) for b in buckets),
        rate_table,
        base_currency,
    )


@traced_engine(
    "agent_balances", "1.0", fingerprint_fields=("invoices", "rate_table", "base_currencies")
)
def all_agent_balances(
    invoices: Iterable[InvoiceRecord],
    rate_table: RateTable,
    base_currencies: Mapping[str, str] | None = None,
    *,
    default_base_currency: str = DEFAULT_BASE_CURRENCY,
) -> tuple[AgentBalance, ...]:
    """
    One balance per agent seen in ``invoices`` (first-seen order).

    Invoices without an agent are ignored.  ``base_currencies`` maps
    agent id to base currency; unmapped agents use the default.
    """
    base_currencies = base_currencies or {}
    buckets = rollup(
        invoices, composite(_agent_key, by_direction, by_status), rate_table
    )

    per_agent: dict[str, list[tuple[tuple[str, str], RollupBucket]]] = {}
    for bucket in buckets:
        agent, direction, status = bucket.group_key
        per_agent.setdefault(agent, []).append(((direction, status), bucket))

    balances = []
    for agent, agent_buckets in per_agent.items():
        base = (base_currencies.get(agent) or default_base_currency).upper().strip()
        balances.append(_balance_from_buckets(agent, agent_buckets, rate_table, base))
    return tuple(balances)
