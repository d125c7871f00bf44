"""Map viewport sampling and per-infrastructure views."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from infraster.api.deps import current_user_id, get_db
from infraster.db.schemas import AvailabilityOut, GaugeOut, InfrastructureDetail
from infraster.services.infrastructure_service import InfrastructureService
from infraster.services.search_service import SearchService

router = APIRouter(prefix="/infrastructures", tags=["infrastructures"])


def _svc(db: Session = Depends(get_db)) -> InfrastructureService:
    return InfrastructureService(db)


@router.get("")
def sample_viewport(
    north: str | None = None,
    south: str | None = None,
    east: str | None = None,
    west: str | None = None,
    limit: str | None = Query(None),
    db: Session = Depends(get_db),
):
    outcome = SearchService(db).sample_viewport(north, south, east, west, limit)
    return JSONResponse([item.to_wire() for item in outcome.value], status_code=outcome.status_code)


@router.get("/{infrastructure_id}", response_model=InfrastructureDetail)
def get_infrastructure(
    infrastructure_id: int,
    user_id: int | None = Depends(current_user_id),
    svc: InfrastructureService = Depends(_svc),
):
    return svc.get_detail(infrastructure_id, user_id)


@router.get("/{infrastructure_id}/availability", response_model=AvailabilityOut)
def get_availability(
    infrastructure_id: int,
    date_from: date | None = None,
    date_to: date | None = None,
    svc: InfrastructureService = Depends(_svc),
):
    return svc.get_availability(infrastructure_id, date_from, date_to)


@router.get("/{infrastructure_id}/gauge", response_model=GaugeOut)
def get_gauge(infrastructure_id: int, svc: InfrastructureService = Depends(_svc)):
    return svc.latest_gauge(infrastructure_id)
