"""
Predicate composer.

A search is described by a ``QueryPlan``: an ordered conjunction of tagged
predicates plus an ordering and a result cap. Building a plan is pure;
``infraster.search.translate`` lowers it to the store's query language.

Rules applied by ``build_query``:
  - text is matched (name OR address, case-insensitive) only when non-blank;
  - each non-empty facet list becomes its own membership clause: values are
    OR-ed inside a facet, facets are AND-ed together;
  - capacity bounds exclude rows without a capacity value;
  - a date range becomes ``AvailableInRange`` (resolved once per request);
  - a center plus a positive radius becomes ``DistanceWithin``;
  - the limit is clamped to ``[1, MAX_RESULTS]`` whatever the client sent.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Union

from infraster.db.schemas import FilterRequest
from infraster.search.availability import normalize_range
from infraster.search.viewport import BoundingBox

MAX_RESULTS = 100


class Facet(str, enum.Enum):
    ROOM_TYPE = "room_type"
    EQUIPMENT = "equipment"
    ACCESSIBILITY = "accessibility"


class Ordering(str, enum.Enum):
    NAME = "name"
    DISTANCE = "distance"
    SAMPLE = "sample"


# ── Predicates ─────────────────────────────────────────────────────────

@dataclass(frozen=True)
class TextMatch:
    text: str


@dataclass(frozen=True)
class CategoryIn:
    facet: Facet
    values: tuple[str, ...]


@dataclass(frozen=True)
class CapacityBetween:
    low: float | None = None
    high: float | None = None


@dataclass(frozen=True)
class AvailableInRange:
    start: date
    end: date

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1


@dataclass(frozen=True)
class GeoPoint:
    lat: float
    lon: float


@dataclass(frozen=True)
class DistanceWithin:
    center: GeoPoint
    radius_km: float


@dataclass(frozen=True)
class WithinBounds:
    box: BoundingBox


Predicate = Union[TextMatch, CategoryIn, CapacityBetween, AvailableInRange, DistanceWithin, WithinBounds]


@dataclass(frozen=True)
class QueryPlan:
    predicates: tuple[Predicate, ...] = ()
    limit: int = MAX_RESULTS
    ordering: Ordering = Ordering.NAME
    kind: str = field(default="filter", compare=False)

    def first(self, predicate_type: type) -> Any:
        for predicate in self.predicates:
            if isinstance(predicate, predicate_type):
                return predicate
        return None

    @property
    def distance(self) -> DistanceWithin | None:
        return self.first(DistanceWithin)

    @property
    def availability(self) -> AvailableInRange | None:
        return self.first(AvailableInRange)

    def describe(self) -> dict[str, Any]:
        """Shape of the plan for diagnostics: predicate kinds and sizes, no user values."""
        shape: dict[str, Any] = {"kind": self.kind, "limit": self.limit, "ordering": self.ordering.value}
        for predicate in self.predicates:
            name = type(predicate).__name__
            if isinstance(predicate, CategoryIn):
                shape[f"{name}:{predicate.facet.value}"] = len(predicate.values)
            elif isinstance(predicate, AvailableInRange):
                shape[name] = predicate.days
            else:
                shape[name] = True
        return shape


# ── Builders ───────────────────────────────────────────────────────────

def clamp_limit(value: Any, default: int = MAX_RESULTS, maximum: int = MAX_RESULTS) -> int:
    """Coerce a client-supplied limit into ``[1, maximum]``."""
    try:
        limit = int(value)
    except (TypeError, ValueError, OverflowError):
        return min(default, maximum)
    if limit <= 0:
        return min(default, maximum)
    return min(limit, maximum)


def build_query(request: FilterRequest) -> QueryPlan:
    predicates: list[Predicate] = []

    text = request.q.strip()
    if text:
        predicates.append(TextMatch(text))

    for facet, values in (
        (Facet.ROOM_TYPE, request.pieces),
        (Facet.EQUIPMENT, request.equipments),
        (Facet.ACCESSIBILITY, request.accessibilites),
    ):
        if values:
            predicates.append(CategoryIn(facet, tuple(values)))

    low, high = request.jauge_min, request.jauge_max
    if low is not None or high is not None:
        if low is not None and high is not None and low > high:
            low, high = high, low
        predicates.append(CapacityBetween(low, high))

    if request.date_from is not None or request.date_to is not None:
        start, end = normalize_range(request.date_from, request.date_to)
        predicates.append(AvailableInRange(start, end))

    ordering = Ordering.NAME
    if request.has_distance:
        center = GeoPoint(request.center_lat, request.center_lon)  # type: ignore[arg-type]
        predicates.append(DistanceWithin(center, float(request.distance_km)))  # type: ignore[arg-type]
        ordering = Ordering.DISTANCE

    return QueryPlan(tuple(predicates), clamp_limit(request.limit), ordering, kind="filter")


def viewport_query(box: BoundingBox, limit: Any = None) -> QueryPlan:
    return QueryPlan((WithinBounds(box),), clamp_limit(limit), Ordering.SAMPLE, kind="viewport")


def text_query(text: str, limit: int) -> QueryPlan:
    return QueryPlan((TextMatch(text.strip()),), limit, Ordering.NAME, kind="text")
