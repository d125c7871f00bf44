"""Pydantic schemas for request / response bodies.

Wire names follow the map client (``pieces``, ``equipements``, ``jaugeMax``,
``distanceKm``...); snake_case names are accepted on input as well.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _as_name_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple, set)):
        raise ValueError("must be a list of strings")
    out: list[str] = []
    for item in value:
        if item is None:
            continue
        name = str(item).strip()
        if name and name not in out:
            out.append(name)
    return out


class FilterRequest(BaseModel):
    """Structured search filters. Empty / missing fields impose no constraint."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", allow_inf_nan=False)

    q: str = ""
    pieces: list[str] = []
    equipments: list[str] = []
    accessibilites: list[str] = []
    jauge_min: float | None = Field(None, alias="jaugeMin")
    jauge_max: float | None = Field(None, alias="jaugeMax")
    center_lat: float | None = Field(None, alias="centerLat", ge=-90, le=90)
    center_lon: float | None = Field(None, alias="centerLon", ge=-180, le=180)
    distance_km: float | None = Field(None, alias="distanceKm")
    date_from: date | None = Field(None, alias="dateFrom")
    date_to: date | None = Field(None, alias="dateTo")
    limit: int | None = None

    @field_validator("q", mode="before")
    @classmethod
    def _text(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("pieces", "equipments", "accessibilites", mode="before")
    @classmethod
    def _names(cls, v: Any) -> list[str]:
        return _as_name_list(v)

    @field_validator("jauge_min", "jauge_max", "center_lat", "center_lon", "distance_km", mode="before")
    @classmethod
    def _blank_number(cls, v: Any) -> Any:
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        return v

    @field_validator("date_from", "date_to", mode="before")
    @classmethod
    def _date_part(cls, v: Any) -> Any:
        # The client sends ``Date.toISOString()``; only the calendar date matters.
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        if isinstance(v, datetime):
            return v.date()
        if isinstance(v, str) and "T" in v:
            return v.split("T", 1)[0]
        return v

    @field_validator("limit", mode="before")
    @classmethod
    def _loose_limit(cls, v: Any) -> int | None:
        # Unparseable limits fall back to the default instead of failing the search.
        try:
            return int(float(v))
        except (TypeError, ValueError, OverflowError):
            return None

    @property
    def has_distance(self) -> bool:
        return (
            self.center_lat is not None
            and self.center_lon is not None
            and self.distance_km is not None
            and self.distance_km > 0
        )


class ResultItem(BaseModel):
    id: int
    name: str
    address: str | None
    lat: float | None
    lon: float | None
    distance_km: float | None = Field(None, serialization_alias="distanceKm")

    @classmethod
    def from_candidate(cls, c) -> "ResultItem":
        return cls(id=c.id, name=c.name, address=c.address, lat=c.lat, lon=c.lon, distance_km=c.distance_km)

    def to_wire(self) -> dict[str, Any]:
        """JSON shape for the map client; ``distanceKm`` only when a distance was computed."""
        data = self.model_dump(by_alias=True)
        if self.distance_km is None:
            data.pop("distanceKm")
        return data


class FacetCatalog(BaseModel):
    room_types: list[str] = Field(default_factory=list, serialization_alias="pieces")
    equipment_types: list[str] = Field(default_factory=list, serialization_alias="equipements")
    accessibility_types: list[str] = Field(default_factory=list, serialization_alias="accessibilites")
    max_capacity: float = Field(0, serialization_alias="jaugeMax")


class FacetValue(BaseModel):
    id: int
    name: str
    type: str | None = None


class InfrastructureDetail(BaseModel):
    id: int
    name: str
    address: str | None
    lat: float | None
    lon: float | None
    information: str | None
    in_service: bool
    capacity: float | None
    room_types: list[FacetValue]
    equipment: list[FacetValue]
    accessibility_types: list[FacetValue]
    is_owner: bool


class ExceptionOut(BaseModel):
    start_date: date
    end_date: date
    kind: str


class AvailabilityOut(BaseModel):
    weekly: list[str]
    exceptions: list[ExceptionOut]
    date_from: date | None = None
    date_to: date | None = None
    available: bool | None = None


class GaugeOut(BaseModel):
    occupancy: float | None = None
    max_occupancy: float | None = None
    recorded_at: datetime | None = None
