"""
freight_services.analytics_service -- Dashboard reports and agent balances.

Responsibility:
    Take one snapshot of rates and records from the collaborators, resolve
    the requested date preset against the injected clock, and run the
    report engines over that snapshot.  Owns the error policy of the
    finance dashboard: an unknown currency or bad rate data aborts the report and is
    returned as an error outcome, which stays distinguishable from a
    report that simply had no records.

Architecture position:
    Services -- orchestration over engines + kernel.  Reads configuration
    only through the EngineConfig it is handed.

Invariants enforced:
    - Rates are read once per call; every engine in a report sees the
      same RateTable.
    - Records are read once per call into a RecordSnapshot.
    - Every call runs inside a LogContext carrying its report_id.

Failure modes:
    - Report calls never raise for CurrencyError (unknown currency, bad
      or duplicate rate rows) or InvalidIntervalError; they return
      ReportStatus.ERROR with the error code.
    - agent_balances() propagates UnknownCurrencyError (abort).

Usage:
    service = AnalyticsService(selector, selector, SystemClock(), get_active_config())
    outcome = service.financial_report(DatePreset.THIS_MONTH)
    if outcome.status is ReportStatus.OK:
        render(outcome.report)
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from uuid import uuid4

from freight_config.bridges import build_rate_table
from freight_config.schema import EngineConfig
from freight_engines.analytics import FinancialReport, RecordSnapshot, build_financial_report
from freight_engines.balances import AgentBalance, all_agent_balances
from freight_engines.comparison import resolve_preset
from freight_engines.rates import RateTable
from freight_kernel.domain.clock import Clock
from freight_kernel.domain.collaborators import RateSource, RecordSource
from freight_kernel.domain.intervals import ComparisonMode, DatePreset, Granularity
from freight_kernel.exceptions import (
    CurrencyError,
    InvalidIntervalError,
    UnknownCurrencyError,
)
from freight_kernel.logging_config import LogContext, get_logger

logger = get_logger("services.analytics")


class ReportStatus(str, Enum):
    OK = "ok"
    EMPTY = "empty"
    ERROR = "error"


@dataclass(frozen=True)
class ReportOutcome:
    """Result of one report call.  ``report`` is None only on ERROR."""

    report_id: str
    status: ReportStatus
    report: FinancialReport | None = None
    error_code: str | None = None
    error_message: str | None = None

    @property
    def is_error(self) -> bool:
        return self.status is ReportStatus.ERROR


class AnalyticsService:
    """
    Financial dashboard orchestration.

    Contract:
        Accepts a date preset (and custom bounds for CUSTOM), a comparison
        mode and a trend granularity.  Returns a ReportOutcome.

    Guarantees:
        - One rate snapshot and one record snapshot per call.
        - Fallback exchange rates from the config fill currencies the
          rate collaborator does not know.
        - ``report_started`` and ``report_finished`` are logged for every
          call, ``report_aborted`` when the policy aborts.

    Non-goals:
        - Does not cache snapshots between calls.
        - Does not render or paginate.
    """

    def __init__(
        self,
        record_source: RecordSource,
        rate_source: RateSource,
        clock: Clock,
        config: EngineConfig,
    ):
        self._records = record_source
        self._rates = rate_source
        self._clock = clock
        self._config = config

    def rate_snapshot(self) -> RateTable:
        """Collaborator rates merged over the configured fallbacks."""
        return build_rate_table(self._config, self._rates.fetch_rates())

    def record_snapshot(self) -> RecordSnapshot:
        return RecordSnapshot(
            invoices=self._records.fetch_invoices(),
            expenses=self._records.fetch_expenses(),
            shipments=self._records.fetch_shipments(),
        )

    def financial_report(
        self,
        preset: DatePreset = DatePreset.ALL_TIME,
        *,
        mode: ComparisonMode = ComparisonMode.PERIOD_OVER_PERIOD,
        granularity: Granularity = Granularity.MONTH,
        custom_start: datetime | None = None,
        custom_end: datetime | None = None,
        report_id: str | None = None,
    ) -> ReportOutcome:
        report_id = report_id or str(uuid4())
        preset = DatePreset(preset)

        with LogContext.bind(report_id=report_id):
            logger.info(
                "report_started",
                extra={
                    "preset": preset.value,
                    "mode": ComparisonMode(mode).value,
                    "granularity": Granularity(granularity).value,
                },
            )
            interval = None
            try:
                interval = resolve_preset(
                    preset, self._clock.now(), custom_start, custom_end
                )
                rate_table = self.rate_snapshot()
                snapshot = self.record_snapshot()
                report = build_financial_report(
                    snapshot, rate_table, interval, mode, granularity=granularity
                )
            except (CurrencyError, InvalidIntervalError) as exc:
                logger.error(
                    "report_aborted",
                    extra={"error_code": exc.code, "reason": str(exc)},
                )
                outcome = ReportOutcome(
                    report_id=report_id,
                    status=ReportStatus.ERROR,
                    error_code=exc.code,
                    error_message=str(exc),
                )
            else:
                status = ReportStatus.EMPTY if report.is_empty else ReportStatus.OK
                if report.excluded:
                    logger.info(
                        "records_excluded",
                        extra={
                            "excluded_count": len(report.excluded),
                            "reason": "MISSING_GOVERNING_TIMESTAMP",
                        },
                    )
                outcome = ReportOutcome(report_id=report_id, status=status, report=report)

            logger.info(
                "report_finished",
                extra={
                    "status": outcome.status.value,
                    "interval": str(interval) if interval is not None else None,
                },
            )
            return outcome

    def agent_balances(
        self,
        base_currencies: Mapping[str, str] | None = None,
        *,
        report_id: str | None = None,
    ) -> tuple[AgentBalance, ...]:
        """
        Balance of every agent with directional invoices.

        ``base_currencies`` maps agent id to base currency; when omitted,
        the record source is asked for them if it can provide them.
        """
        report_id = report_id or str(uuid4())
        with LogContext.bind(report_id=report_id):
            rate_table = self.rate_snapshot()
            if base_currencies is None:
                fetch = getattr(self._records, "fetch_agent_base_currencies", None)
                base_currencies = fetch() if fetch is not None else {}
            try:
                balances = all_agent_balances(
                    self._records.fetch_invoices(),
                    rate_table,
                    base_currencies,
                    default_base_currency=self._config.agent_base_currency,
                )
            except UnknownCurrencyError as exc:
                logger.error(
                    "agent_balances_aborted",
                    extra={"error_code": exc.code, "currency": exc.currency},
                )
                raise
            logger.info("agent_balances_computed", extra={"agent_count": len(balances)})
            return balances
