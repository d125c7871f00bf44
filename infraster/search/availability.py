"""
Availability resolver.

An infrastructure is *available* over a date range when at least one day in
the range is open (existential semantics, not "open every day"). A day ``d``
is open when

  * its weekday is in the weekly open-day set and no ``CLOSURE`` exception
    covers ``d``, or
  * any ``SPECIAL_OPENING`` exception covers ``d``, whatever the weekday and
    whatever closures overlap it.

Exceptions are bound to dates, not weekdays, so every concrete date of the
range is evaluated, not just the seven weekday slots.

``AvailabilityIndex`` applies the resolver to every schedule of the store once
per request and hands the set of available infrastructure ids to the query
translator.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, Iterator

from sqlalchemy import select
from sqlalchemy.orm import Session

from infraster.common.errors import ClientInputError
from infraster.core.config import MAX_AVAILABILITY_RANGE_DAYS
from infraster.db.models import ExceptionKind, OpeningSchedule, ScheduleDay, ScheduleException, Weekday

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DatedException:
    start: date
    end: date
    kind: ExceptionKind

    def covers(self, day: date) -> bool:
        return self.start <= day <= self.end

    def overlaps(self, start: date, end: date) -> bool:
        return self.start <= end and start <= self.end

    @classmethod
    def from_model(cls, row: ScheduleException) -> "DatedException":
        return cls(start=row.start_date, end=row.end_date, kind=ExceptionKind(row.kind))


def normalize_range(range_start: date | None, range_end: date | None) -> tuple[date, date]:
    """Collapse a half-open request onto its single bound and order the bounds."""
    if range_start is None and range_end is None:
        raise ClientInputError("a date range needs at least one bound")
    start = range_start if range_start is not None else range_end
    end = range_end if range_end is not None else start
    if end < start:
        start, end = end, start
    return start, end


def iter_days(start: date, end: date, max_days: int = MAX_AVAILABILITY_RANGE_DAYS) -> Iterator[date]:
    """Every date of ``[start, end]``.

    The length check runs on call, not on first iteration: ranges longer than
    ``max_days`` are rejected before anything is evaluated.
    """
    length = (end - start).days + 1
    if length > max_days:
        raise ClientInputError(f"date range spans {length} days, the maximum is {max_days}")
    return (start + timedelta(days=offset) for offset in range(length))


def is_open_on(day: date, open_days: frozenset[Weekday] | set[Weekday], exceptions: Iterable[DatedException]) -> bool:
    closed = False
    for exc in exceptions:
        if not exc.covers(day):
            continue
        if exc.kind is ExceptionKind.SPECIAL_OPENING:
            return True
        closed = True
    return not closed and Weekday.of(day) in open_days


def is_available(
    open_days: frozenset[Weekday] | set[Weekday],
    exceptions: Iterable[DatedException],
    range_start: date | None,
    range_end: date | None,
) -> bool:
    start, end = normalize_range(range_start, range_end)
    days = iter_days(start, end)
    relevant = [exc for exc in exceptions if exc.overlaps(start, end)]
    if not open_days and not any(exc.kind is ExceptionKind.SPECIAL_OPENING for exc in relevant):
        return False
    return any(is_open_on(day, open_days, relevant) for day in days)


# ── Store-backed index ─────────────────────────────────────────────────

class AvailabilityIndex:
    """Ids of the infrastructures available somewhere in ``[start, end]``.

    Built with two queries per request: the weekday sets of every schedule,
    and the exceptions overlapping the range. Each schedule is then resolved
    once, so the cost is range length times schedule count, independent of
    how many candidate rows the search later filters.
    """

    def __init__(self, start: date, end: date, available_ids: frozenset[int]):
        self.start = start
        self.end = end
        self.available_ids = available_ids

    def __contains__(self, infrastructure_id: object) -> bool:
        return infrastructure_id in self.available_ids

    def __len__(self) -> int:
        return len(self.available_ids)

    @classmethod
    def build(cls, db: Session, range_start: date | None, range_end: date | None) -> "AvailabilityIndex":
        start, end = normalize_range(range_start, range_end)
        iter_days(start, end)

        rows = db.execute(select(OpeningSchedule.id, OpeningSchedule.infrastructure_id)).all()
        schedules: dict[int, int] = {schedule_id: infrastructure_id for schedule_id, infrastructure_id in rows}

        open_days: dict[int, set[Weekday]] = defaultdict(set)
        for schedule_id, weekday in db.execute(select(ScheduleDay.schedule_id, ScheduleDay.weekday)):
            open_days[schedule_id].add(Weekday(weekday))

        exceptions: dict[int, list[DatedException]] = defaultdict(list)
        overlapping = select(ScheduleException).where(
            ScheduleException.start_date <= end,
            ScheduleException.end_date >= start,
        )
        for row in db.scalars(overlapping):
            exceptions[row.schedule_id].append(DatedException.from_model(row))

        available = frozenset(
            infrastructure_id
            for schedule_id, infrastructure_id in schedules.items()
            if is_available(open_days.get(schedule_id, set()), exceptions.get(schedule_id, ()), start, end)
        )
        logger.debug(
            "Availability index %s..%s: %d/%d schedules available",
            start,
            end,
            len(available),
            len(schedules),
        )
        return cls(start, end, available)
