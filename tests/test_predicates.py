"""
Unit tests – predicate composer and translation.

Coverage:
  - Limit clamping for every kind of client input
  - Blank text and empty facets impose no constraint
  - One clause per facet; capacity and date bounds normalized
  - Distance switches ordering and adds the distance predicate
  - Plan shape carries no user values
  - Facet clauses: OR inside a facet, AND across facets
"""

from datetime import date

import pytest

from infraster.db.schemas import FilterRequest
from infraster.search.predicates import (
    MAX_RESULTS,
    AvailableInRange,
    CapacityBetween,
    CategoryIn,
    DistanceWithin,
    Facet,
    Ordering,
    TextMatch,
    build_query,
    clamp_limit,
)
from infraster.search.translate import execute
from tests.conftest import add_infrastructure


@pytest.mark.parametrize(
    "value,expected",
    [(None, 100), ("abc", 100), (0, 100), (-5, 100), (10, 10), ("25", 25), (10_000, 100), (float("inf"), 100)],
)
def test_clamp_limit(value, expected):
    assert clamp_limit(value) == expected


def test_clamp_limit_custom_default():
    assert clamp_limit(None, default=12) == 12
    assert clamp_limit(500, default=12) == MAX_RESULTS


def _plan(**payload):
    return build_query(FilterRequest.model_validate(payload))


def test_empty_request_has_no_predicates():
    plan = _plan(q="   ", pieces=[], equipments=None)
    assert plan.predicates == ()
    assert plan.ordering is Ordering.NAME
    assert plan.limit == MAX_RESULTS


def test_each_facet_becomes_one_clause():
    plan = _plan(pieces=["Gymnase", "Dojo", "Gymnase"], equipments=["Panier de basket"])
    assert plan.predicates == (
        CategoryIn(Facet.ROOM_TYPE, ("Gymnase", "Dojo")),
        CategoryIn(Facet.EQUIPMENT, ("Panier de basket",)),
    )


def test_text_is_trimmed():
    assert _plan(q="  tennis ").predicates == (TextMatch("tennis"),)


def test_capacity_bounds_swapped_when_reversed():
    assert _plan(jaugeMin=500, jaugeMax=100).predicates == (CapacityBetween(100, 500),)
    assert _plan(jaugeMin="").predicates == ()


def test_date_strings_keep_calendar_date():
    plan = _plan(dateFrom="2025-07-14T22:00:00.000Z", dateTo=None)
    assert plan.availability == AvailableInRange(date(2025, 7, 14), date(2025, 7, 14))


def test_distance_needs_center_and_positive_radius():
    assert _plan(centerLat=48.85, centerLon=2.35, distanceKm=0).distance is None
    assert _plan(centerLat=48.85, distanceKm=10).distance is None

    plan = _plan(centerLat=48.85, centerLon=2.35, distanceKm=10, limit=5)
    assert isinstance(plan.distance, DistanceWithin)
    assert plan.ordering is Ordering.DISTANCE
    assert plan.limit == 5


def test_describe_hides_values():
    shape = _plan(q="secret", pieces=["Gymnase"], dateFrom="2025-07-14", dateTo="2025-07-20").describe()
    assert "secret" not in str(shape)
    assert "Gymnase" not in str(shape)
    assert shape["CategoryIn:room_type"] == 1
    assert shape["AvailableInRange"] == 7


# ═══════════════════════════════════════════════════════════════════════
#  Translation against the store
# ═══════════════════════════════════════════════════════════════════════


def test_facets_or_inside_and_across(db):
    both = add_infrastructure(db, "Complexe A", pieces=["Gymnase"], equipements=["Panier de basket"])
    add_infrastructure(db, "Complexe B", pieces=["Gymnase"], equipements=["Filet de volley"])
    add_infrastructure(db, "Complexe C", pieces=["Dojo"], equipements=["Panier de basket"])
    dojo = add_infrastructure(db, "Complexe D", pieces=["Dojo"])

    only_both = execute(db, _plan(pieces=["Gymnase"], equipments=["Panier de basket"]))
    assert [c.id for c in only_both] == [both.id]

    either_room = execute(db, _plan(pieces=["Gymnase", "Dojo"]))
    assert len(either_room) == 4

    dojo_without_basket = execute(db, _plan(pieces=["Dojo"], equipments=["Filet de volley"]))
    assert dojo_without_basket == []
    assert dojo.id in {c.id for c in execute(db, _plan(pieces=["Dojo"]))}


def test_text_matches_name_or_address_case_insensitively(db):
    add_infrastructure(db, "Stade Charléty", address="99 Boulevard Kellermann, Paris")
    add_infrastructure(db, "Piscine Pontoise", address="19 Rue de Pontoise, Paris")
    add_infrastructure(db, "Gymnase 100%", address="Lyon")

    assert [c.name for c in execute(db, _plan(q="KELLERMANN"))] == ["Stade Charléty"]
    assert [c.name for c in execute(db, _plan(q="piscine"))] == ["Piscine Pontoise"]
    assert [c.name for c in execute(db, _plan(q="100%"))] == ["Gymnase 100%"]
    assert [c.name for c in execute(db, _plan(q="_"))] == []
