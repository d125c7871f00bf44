"""Facet catalog: the values offered by the filter panel."""

from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from infraster.common.errors import classify_store_error
from infraster.db.models import AccessibilityType, Equipment, Infrastructure, RoomType
from infraster.db.schemas import FacetCatalog
from infraster.services.outcome import Outcome

logger = logging.getLogger(__name__)


class FacetService:
    def __init__(self, db: Session):
        self.db = db

    def list_facets(self) -> Outcome[FacetCatalog]:
        """Sorted, de-duplicated facet values and the largest capacity on record.

        A store failure yields the all-empty catalog; the filter panel must
        keep working without it.
        """
        try:
            catalog = FacetCatalog(
                room_types=self._distinct(RoomType.name),
                equipment_types=self._distinct(Equipment.equipment_type),
                accessibility_types=self._distinct(AccessibilityType.name),
                max_capacity=self.db.scalar(select(func.max(Infrastructure.capacity))) or 0,
            )
        except Exception as exc:
            error = classify_store_error(exc)
            logger.error("Facet catalog unavailable (%s)", error.error, exc_info=True)
            return Outcome(FacetCatalog(), error)
        return Outcome(catalog)

    def _distinct(self, column) -> list[str]:
        values = self.db.scalars(select(column).distinct()).all()
        return sorted({v.strip() for v in values if v and v.strip()})
