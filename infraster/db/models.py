"""SQLAlchemy models for the infrastructure store.

The search service only reads these tables; rows are written by the
infrastructure management forms.
"""

from __future__ import annotations

import enum
from datetime import date, datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from infraster.db.session import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Weekday(str, enum.Enum):
    MONDAY = "MONDAY"
    TUESDAY = "TUESDAY"
    WEDNESDAY = "WEDNESDAY"
    THURSDAY = "THURSDAY"
    FRIDAY = "FRIDAY"
    SATURDAY = "SATURDAY"
    SUNDAY = "SUNDAY"

    @classmethod
    def of(cls, day: date) -> "Weekday":
        return _WEEKDAYS[day.weekday()]


_WEEKDAYS = list(Weekday)


class ExceptionKind(str, enum.Enum):
    CLOSURE = "CLOSURE"
    SPECIAL_OPENING = "SPECIAL_OPENING"


# ── Facet link tables ──────────────────────────────────────────────────

infrastructure_room_types = Table(
    "infrastructure_room_types",
    Base.metadata,
    Column("infrastructure_id", ForeignKey("infrastructures.id", ondelete="CASCADE"), primary_key=True),
    Column("room_type_id", ForeignKey("room_types.id", ondelete="CASCADE"), primary_key=True),
)

infrastructure_equipment = Table(
    "infrastructure_equipment",
    Base.metadata,
    Column("infrastructure_id", ForeignKey("infrastructures.id", ondelete="CASCADE"), primary_key=True),
    Column("equipment_id", ForeignKey("equipment.id", ondelete="CASCADE"), primary_key=True),
)

infrastructure_accessibility = Table(
    "infrastructure_accessibility",
    Base.metadata,
    Column("infrastructure_id", ForeignKey("infrastructures.id", ondelete="CASCADE"), primary_key=True),
    Column("accessibility_type_id", ForeignKey("accessibility_types.id", ondelete="CASCADE"), primary_key=True),
)


class RoomType(Base):
    __tablename__ = "room_types"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)


class Equipment(Base):
    __tablename__ = "equipment"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    equipment_type: Mapped[str] = mapped_column(String(200), nullable=False, index=True)


class AccessibilityType(Base):
    __tablename__ = "accessibility_types"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)


# ── Infrastructure ─────────────────────────────────────────────────────

class Infrastructure(Base):
    __tablename__ = "infrastructures"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(500), nullable=False, index=True)
    address: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True, index=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True, index=True)
    information: Mapped[str | None] = mapped_column(Text, nullable=True)
    in_service: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    capacity: Mapped[float | None] = mapped_column(Float, nullable=True)
    owner_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )

    room_types: Mapped[list[RoomType]] = relationship(secondary=infrastructure_room_types, lazy="selectin")
    equipment: Mapped[list[Equipment]] = relationship(secondary=infrastructure_equipment, lazy="selectin")
    accessibility_types: Mapped[list[AccessibilityType]] = relationship(
        secondary=infrastructure_accessibility, lazy="selectin"
    )
    schedule: Mapped["OpeningSchedule | None"] = relationship(back_populates="infrastructure", uselist=False)
    notes: Mapped[list["InformationNote"]] = relationship(back_populates="infrastructure")

    @property
    def has_position(self) -> bool:
        return self.latitude is not None and self.longitude is not None


# ── Opening schedule ───────────────────────────────────────────────────

class OpeningSchedule(Base):
    __tablename__ = "opening_schedules"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    infrastructure_id: Mapped[int] = mapped_column(
        ForeignKey("infrastructures.id", ondelete="CASCADE"), nullable=False, unique=True
    )

    infrastructure: Mapped[Infrastructure] = relationship(back_populates="schedule")
    days: Mapped[list["ScheduleDay"]] = relationship(
        back_populates="schedule", cascade="all, delete-orphan", lazy="selectin"
    )
    exceptions: Mapped[list["ScheduleException"]] = relationship(
        back_populates="schedule", cascade="all, delete-orphan", order_by="ScheduleException.start_date"
    )

    @property
    def open_days(self) -> frozenset[Weekday]:
        return frozenset(Weekday(d.weekday) for d in self.days)


class ScheduleDay(Base):
    __tablename__ = "schedule_days"
    __table_args__ = (UniqueConstraint("schedule_id", "weekday", name="uq_schedule_days_schedule_weekday"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    schedule_id: Mapped[int] = mapped_column(
        ForeignKey("opening_schedules.id", ondelete="CASCADE"), nullable=False, index=True
    )
    weekday: Mapped[str] = mapped_column(String(10), nullable=False)

    schedule: Mapped[OpeningSchedule] = relationship(back_populates="days")


class ScheduleException(Base):
    __tablename__ = "schedule_exceptions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    schedule_id: Mapped[int] = mapped_column(
        ForeignKey("opening_schedules.id", ondelete="CASCADE"), nullable=False, index=True
    )
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    kind: Mapped[str] = mapped_column(String(20), nullable=False)

    schedule: Mapped[OpeningSchedule] = relationship(back_populates="exceptions")


# ── Informational notes and gauge readings ─────────────────────────────

class InformationNote(Base):
    __tablename__ = "information_notes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    infrastructure_id: Mapped[int] = mapped_column(
        ForeignKey("infrastructures.id", ondelete="CASCADE"), nullable=False, index=True
    )
    text: Mapped[str] = mapped_column(Text, nullable=False)
    appears_on: Mapped[date] = mapped_column(Date, nullable=False)
    expires_on: Mapped[date | None] = mapped_column(Date, nullable=True)

    infrastructure: Mapped[Infrastructure] = relationship(back_populates="notes")


class GaugeReading(Base):
    __tablename__ = "gauge_readings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    infrastructure_id: Mapped[int] = mapped_column(
        ForeignKey("infrastructures.id", ondelete="CASCADE"), nullable=False, index=True
    )
    occupancy: Mapped[float | None] = mapped_column(Float, nullable=True)
    max_occupancy: Mapped[float | None] = mapped_column(Float, nullable=True)
    recorded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)
