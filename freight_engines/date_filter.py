"""
Module: freight_engines.date_filter
Responsibility:
    Restrict a record set to those whose governing timestamp falls in a
    DateInterval.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Unbounded interval: passthrough.  Every record is kept, including
      records without a governing timestamp.
    - One bound set: half-open filter on that bound (inclusive).
    - Both bounds set: inclusive on both ends.
    - A record without a governing timestamp is never inside a bounded or
      half-open interval.
    - Idempotent: filtering a filtered set with the same interval returns
      the same set, in the same order.

Failure modes:
    - None raised.  ``partition_records`` reports each exclusion caused by
      a missing timestamp as a MissingGoverningTimestampError value.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from freight_engines.tracer import traced_engine
from freight_kernel.domain.intervals import DateInterval
from freight_kernel.domain.records import TransactionRecord
from freight_kernel.exceptions import MissingGoverningTimestampError


@dataclass(frozen=True)
class IntervalPartition:
    """
    Split of a record set against one interval.

    ``excluded`` lists only records dropped because they carry no governing
    timestamp; records outside the interval are simply not in ``included``.
    """

    included: tuple[TransactionRecord, ...]
    excluded: tuple[MissingGoverningTimestampError, ...]

    @property
    def excluded_ids(self) -> tuple[str, ...]:
        return tuple(e.record_id for e in self.excluded)


@traced_engine("date_filter", "1.0", fingerprint_fields=("interval",))
def filter_records(
    records: Iterable[TransactionRecord],
    interval: DateInterval,
) -> tuple[TransactionRecord, ...]:
    """Records whose governing timestamp lies inside ``interval``."""
    if interval.is_unbounded:
        return tuple(records)
    return tuple(r for r in records if interval.contains(r.governing_timestamp))


def partition_records(
    records: Iterable[TransactionRecord],
    interval: DateInterval,
) -> IntervalPartition:
    """Like ``filter_records`` but also explains timestamp-less exclusions."""
    if interval.is_unbounded:
        return IntervalPartition(tuple(records), ())

    included: list[TransactionRecord] = []
    excluded: list[MissingGoverningTimestampError] = []
    for record in records:
        moment = record.governing_timestamp
        if moment is None:
            excluded.append(
                MissingGoverningTimestampError(record.record_id, record.kind.value)
            )
        elif interval.contains(moment):
            included.append(record)
    return IntervalPartition(tuple(included), tuple(excluded))
