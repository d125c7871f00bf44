"""Facet catalog for the filter panel."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from infraster.api.deps import get_db
from infraster.services.facet_service import FacetService

router = APIRouter(tags=["facets"])


@router.get("/facets")
def list_facets(db: Session = Depends(get_db)):
    outcome = FacetService(db).list_facets()
    return JSONResponse(outcome.value.model_dump(by_alias=True), status_code=outcome.status_code)
