"""
Great-circle distance and radius cutoff.

Distances use the spherical law of cosines on a sphere of radius 6371 km:

    d = R * acos(cos φc · cos φ · cos(λ − λc) + sin φc · sin φ)

For two nearly identical points rounding can push the ``acos`` argument a
hair outside ``[-1, 1]``; it is clamped first.

The store pre-filters rows with ``search_window`` (a rectangle containing the
circle); ``with_distance`` then applies the exact cutoff to the rows the other
predicates already kept.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Iterable, Protocol, TypeVar

EARTH_RADIUS_KM = 6371.0

# Safety margin (degrees) added around the pre-filter window.
_WINDOW_MARGIN_DEG = 1e-6


class Positioned(Protocol):
    lat: float | None
    lon: float | None
    distance_km: float | None


P = TypeVar("P", bound=Positioned)


def great_circle_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    if lat1 == lat2 and lon1 == lon2:
        # acos near 1 amplifies rounding error to ~1e-4 km; a point is 0 from itself.
        return 0.0
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dlon = math.radians(lon2) - math.radians(lon1)
    cosine = math.cos(phi1) * math.cos(phi2) * math.cos(dlon) + math.sin(phi1) * math.sin(phi2)
    return EARTH_RADIUS_KM * math.acos(max(-1.0, min(1.0, cosine)))


def with_distance(candidates: Iterable[P], center_lat: float, center_lon: float, radius_km: float) -> list[P]:
    """Annotate ``distance_km`` and keep candidates within ``radius_km``, nearest first.

    Candidates without a complete position are dropped.
    """
    kept: list[P] = []
    for candidate in candidates:
        if candidate.lat is None or candidate.lon is None:
            continue
        distance = great_circle_km(center_lat, center_lon, candidate.lat, candidate.lon)
        if distance <= radius_km:
            kept.append(replace(candidate, distance_km=distance))  # type: ignore[type-var]
    kept.sort(key=lambda c: c.distance_km)  # type: ignore[arg-type, return-value]
    return kept


@dataclass(frozen=True)
class SearchWindow:
    """Latitude/longitude rectangle enclosing a search circle.

    ``west``/``east`` are ``None`` when the circle covers a pole or every
    longitude; ``west > east`` means the window wraps across the antimeridian.
    """

    lat_min: float
    lat_max: float
    west: float | None
    east: float | None


def search_window(center_lat: float, center_lon: float, radius_km: float) -> SearchWindow:
    """Smallest lat/lon window guaranteed to contain every point within ``radius_km``."""
    angular = radius_km / EARTH_RADIUS_KM
    dlat = math.degrees(angular) + _WINDOW_MARGIN_DEG
    lat_min = center_lat - dlat
    lat_max = center_lat + dlat
    if lat_min <= -90.0 or lat_max >= 90.0 or angular >= math.pi / 2:
        return SearchWindow(max(lat_min, -90.0), min(lat_max, 90.0), None, None)

    ratio = math.sin(angular) / math.cos(math.radians(center_lat))
    if ratio >= 1.0:
        return SearchWindow(lat_min, lat_max, None, None)
    dlon = math.degrees(math.asin(ratio)) + _WINDOW_MARGIN_DEG
    if dlon >= 180.0:
        return SearchWindow(lat_min, lat_max, None, None)

    west = _wrap_lon(center_lon - dlon)
    east = _wrap_lon(center_lon + dlon)
    return SearchWindow(lat_min, lat_max, west, east)


def _wrap_lon(lon: float) -> float:
    if lon < -180.0:
        return lon + 360.0
    if lon > 180.0:
        return lon - 360.0
    return lon
