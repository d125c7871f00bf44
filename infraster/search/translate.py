"""Lower a ``QueryPlan`` to a SQLAlchemy statement and run it."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import singledispatch

from sqlalchemy import Select, and_, literal, or_, select
from sqlalchemy.orm import Session
from sqlalchemy.sql.elements import ColumnElement

from infraster.core.config import VIEWPORT_SAMPLE_SEED
from infraster.db.models import AccessibilityType, Equipment, Infrastructure, RoomType
from infraster.search.availability import AvailabilityIndex
from infraster.search.distance import search_window, with_distance
from infraster.search.predicates import (
    AvailableInRange,
    CapacityBetween,
    CategoryIn,
    DistanceWithin,
    Facet,
    Ordering,
    QueryPlan,
    TextMatch,
    WithinBounds,
)
from infraster.search.viewport import StableSampleKey, longitude_clause

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Candidate:
    id: int
    name: str
    address: str | None
    lat: float | None
    lon: float | None
    distance_km: float | None = None

    @classmethod
    def from_row(cls, row) -> "Candidate":
        lat, lon = row.latitude, row.longitude
        if lat is None or lon is None:
            lat = lon = None
        return cls(id=row.id, name=row.name, address=row.address, lat=lat, lon=lon)


_COLUMNS = (
    Infrastructure.id,
    Infrastructure.name,
    Infrastructure.address,
    Infrastructure.latitude,
    Infrastructure.longitude,
)


# ── Clauses ────────────────────────────────────────────────────────────

@singledispatch
def clause(predicate, availability: AvailabilityIndex | None = None) -> ColumnElement[bool]:
    raise TypeError(f"no translation for predicate {type(predicate).__name__}")


@clause.register(TextMatch)
def _(predicate: TextMatch, availability: AvailabilityIndex | None = None) -> ColumnElement[bool]:
    return or_(
        Infrastructure.name.icontains(predicate.text, autoescape=True),
        Infrastructure.address.icontains(predicate.text, autoescape=True),
    )


@clause.register(CategoryIn)
def _(predicate: CategoryIn, availability: AvailabilityIndex | None = None) -> ColumnElement[bool]:
    values = list(predicate.values)
    if predicate.facet is Facet.ROOM_TYPE:
        return Infrastructure.room_types.any(RoomType.name.in_(values))
    if predicate.facet is Facet.EQUIPMENT:
        return Infrastructure.equipment.any(Equipment.equipment_type.in_(values))
    return Infrastructure.accessibility_types.any(AccessibilityType.name.in_(values))


@clause.register(CapacityBetween)
def _(predicate: CapacityBetween, availability: AvailabilityIndex | None = None) -> ColumnElement[bool]:
    conditions = [Infrastructure.capacity.is_not(None)]
    if predicate.low is not None:
        conditions.append(Infrastructure.capacity >= predicate.low)
    if predicate.high is not None:
        conditions.append(Infrastructure.capacity <= predicate.high)
    return and_(*conditions)


@clause.register(AvailableInRange)
def _(predicate: AvailableInRange, availability: AvailabilityIndex | None = None) -> ColumnElement[bool]:
    if availability is None or (availability.start, availability.end) != (predicate.start, predicate.end):
        raise RuntimeError("availability index missing for the requested range")
    return Infrastructure.id.in_(sorted(availability.available_ids))


@clause.register(DistanceWithin)
def _(predicate: DistanceWithin, availability: AvailabilityIndex | None = None) -> ColumnElement[bool]:
    # Rectangle around the circle; the exact cut is made by ``with_distance``.
    window = search_window(predicate.center.lat, predicate.center.lon, predicate.radius_km)
    conditions = [
        Infrastructure.latitude.is_not(None),
        Infrastructure.longitude.is_not(None),
        Infrastructure.latitude.between(window.lat_min, window.lat_max),
    ]
    if window.west is not None and window.east is not None:
        conditions.append(longitude_clause(Infrastructure.longitude, window.west, window.east))
    return and_(*conditions)


@clause.register(WithinBounds)
def _(predicate: WithinBounds, availability: AvailabilityIndex | None = None) -> ColumnElement[bool]:
    return predicate.box.clause(Infrastructure.latitude, Infrastructure.longitude)


# ── Statement ──────────────────────────────────────────────────────────

def lower(
    plan: QueryPlan,
    availability: AvailabilityIndex | None = None,
    *,
    seed: str = VIEWPORT_SAMPLE_SEED,
) -> Select:
    stmt = select(*_COLUMNS)
    for predicate in plan.predicates:
        stmt = stmt.where(clause(predicate, availability))

    if plan.ordering is Ordering.SAMPLE:
        stmt = stmt.order_by(StableSampleKey(Infrastructure.id, literal(seed)), Infrastructure.id)
    elif plan.ordering is Ordering.NAME:
        stmt = stmt.order_by(Infrastructure.name, Infrastructure.id)
    else:
        stmt = stmt.order_by(Infrastructure.id)

    # Distance plans are cut after the exact distance is known.
    if plan.distance is None:
        stmt = stmt.limit(plan.limit)
    return stmt


def execute(db: Session, plan: QueryPlan, *, seed: str = VIEWPORT_SAMPLE_SEED) -> list[Candidate]:
    """Run ``plan`` against the store and return at most ``plan.limit`` candidates."""
    availability = None
    wanted = plan.availability
    if wanted is not None:
        availability = AvailabilityIndex.build(db, wanted.start, wanted.end)
        if not availability.available_ids:
            return []

    rows = db.execute(lower(plan, availability, seed=seed)).all()
    candidates = [Candidate.from_row(row) for row in rows]
    logger.debug("Plan %s matched %d rows", plan.describe(), len(candidates))

    distance = plan.distance
    if distance is not None:
        candidates = with_distance(candidates, distance.center.lat, distance.center.lon, distance.radius_km)
    return candidates[: plan.limit]
