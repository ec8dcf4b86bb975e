"""
Intervals -- Date ranges, presets and time-bucket granularity.

Responsibility:
    ``DateInterval`` is the one range type used by filtering, baseline
    resolution and trend bucketing.  ``None`` on a bound means "open on that
    side"; ``None`` on both means "all time".

Invariants enforced:
    - If both bounds are set, ``start <= end`` (InvalidIntervalError).
    - Membership is inclusive on both bounds.
    - Naive bounds and moments are read as UTC, as the record selector
      reads stored timestamps.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import Enum

from freight_kernel.exceptions import InvalidIntervalError


class DatePreset(str, Enum):
    """Report range presets offered by the analytics screens."""

    ALL_TIME = "all"
    TODAY = "today"
    LAST_7 = "last7"
    LAST_30 = "last30"
    THIS_MONTH = "thisMonth"
    LAST_MONTH = "lastMonth"
    THIS_YEAR = "thisYear"
    CUSTOM = "custom"


class ComparisonMode(str, Enum):
    """How the baseline interval is derived from the current one."""

    PERIOD_OVER_PERIOD = "pop"
    YEAR_OVER_YEAR = "yoy"


class Granularity(str, Enum):
    """Time-bucket size for trend rollups."""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"


def _as_utc(moment: datetime | None) -> datetime | None:
    if moment is not None and moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment


@dataclass(frozen=True)
class DateInterval:
    """Inclusive date-time interval; either bound may be open."""

    start: datetime | None = None
    end: datetime | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "start", _as_utc(self.start))
        object.__setattr__(self, "end", _as_utc(self.end))
        if self.start is not None and self.end is not None and self.start > self.end:
            raise InvalidIntervalError(self.start.isoformat(), self.end.isoformat())

    @classmethod
    def all_time(cls) -> DateInterval:
        return cls(None, None)

    @property
    def is_unbounded(self) -> bool:
        """True for the "all time" sentinel."""
        return self.start is None and self.end is None

    @property
    def is_bounded(self) -> bool:
        """True when both bounds are set."""
        return self.start is not None and self.end is not None

    @property
    def length(self) -> timedelta | None:
        if not self.is_bounded:
            return None
        return self.end - self.start

    def contains(self, moment: datetime | None) -> bool:
        """
        Inclusive membership test.

        A missing moment is only contained by the unbounded interval.
        """
        if self.is_unbounded:
            return True
        if moment is None:
            return False
        moment = _as_utc(moment)
        if self.start is not None and moment < self.start:
            return False
        if self.end is not None and moment > self.end:
            return False
        return True

    def __str__(self) -> str:
        start = self.start.isoformat() if self.start else "-inf"
        end = self.end.isoformat() if self.end else "+inf"
        return f"[{start}, {end}]"
