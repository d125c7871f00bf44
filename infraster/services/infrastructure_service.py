"""Read-only views of a single infrastructure: detail, schedule and gauge."""

from __future__ import annotations

import logging
from datetime import date

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from infraster.common.errors import ForbiddenError, NotFoundError, store_errors
from infraster.db.models import GaugeReading, InformationNote, Infrastructure, OpeningSchedule, Weekday
from infraster.db.schemas import (
    AvailabilityOut,
    ExceptionOut,
    FacetValue,
    GaugeOut,
    InfrastructureDetail,
)
from infraster.search.availability import DatedException, is_available, normalize_range

logger = logging.getLogger(__name__)

_WEEK_ORDER = {day: i for i, day in enumerate(Weekday)}


class InfrastructureService:
    def __init__(self, db: Session):
        self.db = db

    def get(self, infrastructure_id: int) -> Infrastructure:
        infra = self.db.get(Infrastructure, infrastructure_id)
        if not infra:
            raise NotFoundError(f"Infrastructure {infrastructure_id} not found")
        return infra

    # ── Detail ──────────────────────────────────────────────────────────
    def get_detail(
        self,
        infrastructure_id: int,
        user_id: int | None = None,
        today: date | None = None,
    ) -> InfrastructureDetail:
        with store_errors("infrastructure detail"):
            infra = self.get(infrastructure_id)
            is_owner = user_id is not None and infra.owner_id == user_id
            if not infra.in_service and not is_owner:
                logger.info("Infrastructure %s is withdrawn; hidden from non-owner", infrastructure_id)
                raise ForbiddenError(f"Infrastructure {infrastructure_id} is withdrawn from service")

            note = self.active_note(infrastructure_id, today or date.today())
            return InfrastructureDetail(
                id=infra.id,
                name=infra.name,
                address=infra.address,
                lat=infra.latitude if infra.has_position else None,
                lon=infra.longitude if infra.has_position else None,
                information=note.text if note else infra.information,
                in_service=infra.in_service,
                capacity=infra.capacity,
                room_types=[FacetValue(id=r.id, name=r.name) for r in infra.room_types],
                equipment=[FacetValue(id=e.id, name=e.name, type=e.equipment_type) for e in infra.equipment],
                accessibility_types=[FacetValue(id=a.id, name=a.name) for a in infra.accessibility_types],
                is_owner=is_owner,
            )

    def active_note(self, infrastructure_id: int, today: date) -> InformationNote | None:
        """Most recent note published on or before ``today`` and not yet expired."""
        stmt = (
            select(InformationNote)
            .where(
                InformationNote.infrastructure_id == infrastructure_id,
                InformationNote.appears_on <= today,
                or_(InformationNote.expires_on.is_(None), InformationNote.expires_on >= today),
            )
            .order_by(InformationNote.appears_on.desc(), InformationNote.id.desc())
            .limit(1)
        )
        return self.db.scalars(stmt).first()

    # ── Schedule ────────────────────────────────────────────────────────
    def get_availability(
        self,
        infrastructure_id: int,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> AvailabilityOut:
        with store_errors("infrastructure availability"):
            self.get(infrastructure_id)
            schedule = self.db.scalars(
                select(OpeningSchedule).where(OpeningSchedule.infrastructure_id == infrastructure_id)
            ).first()

            open_days = schedule.open_days if schedule else frozenset()
            exceptions = [DatedException.from_model(e) for e in schedule.exceptions] if schedule else []

        out = AvailabilityOut(
            weekly=[d.value for d in sorted(open_days, key=_WEEK_ORDER.__getitem__)],
            exceptions=[ExceptionOut(start_date=e.start, end_date=e.end, kind=e.kind.value) for e in exceptions],
        )
        if date_from is not None or date_to is not None:
            out.date_from, out.date_to = normalize_range(date_from, date_to)
            out.available = is_available(open_days, exceptions, out.date_from, out.date_to)
        return out

    # ── Gauge ───────────────────────────────────────────────────────────
    def latest_gauge(self, infrastructure_id: int) -> GaugeOut:
        with store_errors("infrastructure gauge"):
            self.get(infrastructure_id)
            reading = self.db.scalars(
                select(GaugeReading)
                .where(GaugeReading.infrastructure_id == infrastructure_id)
                .order_by(GaugeReading.recorded_at.desc(), GaugeReading.id.desc())
                .limit(1)
            ).first()
        if reading is None:
            return GaugeOut()
        return GaugeOut(
            occupancy=reading.occupancy,
            max_occupancy=reading.max_occupancy,
            recorded_at=reading.recorded_at,
        )
