"""
Viewport sampling primitives.

A map viewport asks for at most 100 infrastructures inside a bounding box. The
subset must not reshuffle when the user pans or zooms, so rows are ordered by
a key that depends only on the infrastructure id and one process-wide seed:

    sample_key(id, seed) = int(md5(str(id) + seed)[:8], 16)

The viewport only decides *which* rows qualify; the order is global. Any
box therefore returns the prefix of the global order restricted to the rows
it contains.
"""

from __future__ import annotations

import hashlib
import math
from dataclasses import dataclass

from sqlalchemy import BigInteger, and_, or_
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.sql.elements import ColumnElement
from sqlalchemy.sql.functions import FunctionElement

from infraster.common.errors import ClientInputError

SQLITE_SAMPLE_KEY_FUNCTION = "infraster_sample_key"


def sample_key(ident: object, seed: str) -> int:
    digest = hashlib.md5(f"{ident}{seed}".encode("utf-8")).hexdigest()
    return int(digest[:8], 16)


class StableSampleKey(FunctionElement):
    """``sample_key(id, seed)`` evaluated inside the store."""

    type = BigInteger()
    name = "stable_sample_key"
    inherit_cache = True


@compiles(StableSampleKey)
def _compile_registered(element, compiler, **kw):
    # SQLite: Python function registered on connect by ``Store``.
    return f"{SQLITE_SAMPLE_KEY_FUNCTION}({compiler.process(element.clauses, **kw)})"


@compiles(StableSampleKey, "postgresql")
def _compile_postgresql(element, compiler, **kw):
    ident, seed = list(element.clauses)
    return "('x' || substr(md5(CAST({} AS TEXT) || {}), 1, 8))::bit(32)::bigint".format(
        compiler.process(ident, **kw), compiler.process(seed, **kw)
    )


@compiles(StableSampleKey, "mysql")
def _compile_mysql(element, compiler, **kw):
    ident, seed = list(element.clauses)
    return "CAST(CONV(SUBSTRING(MD5(CONCAT({}, {})), 1, 8), 16, 10) AS UNSIGNED)".format(
        compiler.process(ident, **kw), compiler.process(seed, **kw)
    )


# ── Bounding box ───────────────────────────────────────────────────────

def _finite(name: str, raw: object) -> float:
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        raise ClientInputError(f"missing bbox parameter '{name}'")
    try:
        value = float(raw)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        raise ClientInputError(f"invalid bbox parameter '{name}'") from None
    if not math.isfinite(value):
        raise ClientInputError(f"invalid bbox parameter '{name}'")
    return value


@dataclass(frozen=True)
class BoundingBox:
    north: float
    south: float
    east: float
    west: float

    @classmethod
    def parse(cls, north: object, south: object, east: object, west: object) -> "BoundingBox":
        """Build a box from raw query values; missing or non-finite values are client errors."""
        return cls(
            north=_finite("north", north),
            south=_finite("south", south),
            east=_finite("east", east),
            west=_finite("west", west),
        )

    @property
    def lat_min(self) -> float:
        return min(self.north, self.south)

    @property
    def lat_max(self) -> float:
        return max(self.north, self.south)

    @property
    def crosses_dateline(self) -> bool:
        return self.west > self.east

    def contains(self, lat: float | None, lon: float | None) -> bool:
        """In-process counterpart of ``clause``; both must select the same points."""
        if lat is None or lon is None:
            return False
        if not self.lat_min <= lat <= self.lat_max:
            return False
        if self.crosses_dateline:
            return lon >= self.west or lon <= self.east
        return self.west <= lon <= self.east

    def clause(self, lat_col: ColumnElement, lon_col: ColumnElement) -> ColumnElement[bool]:
        return and_(
            lat_col.is_not(None),
            lon_col.is_not(None),
            lat_col.between(self.lat_min, self.lat_max),
            longitude_clause(lon_col, self.west, self.east),
        )


def longitude_clause(lon_col: ColumnElement, west: float, east: float) -> ColumnElement[bool]:
    """``lon in [west, east]``, wrapping across the antimeridian when ``west > east``."""
    if west <= east:
        return lon_col.between(west, east)
    return or_(lon_col >= west, lon_col <= east)
