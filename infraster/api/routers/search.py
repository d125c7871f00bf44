"""Filtered search and quick text search.

Both endpoints always answer a JSON list; on failure the list is empty and the
status code carries the error class.
"""

from __future__ import annotations

import json
from typing import Any

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from infraster.api.deps import get_db
from infraster.common.errors import ClientInputError
from infraster.services.outcome import Outcome
from infraster.services.search_service import SearchOutcome, SearchService

router = APIRouter(prefix="/search", tags=["search"])


class _Malformed:
    pass


async def _json_body(request: Request) -> Any:
    # Parsed here rather than by FastAPI so a bad body still answers a list.
    raw = await request.body()
    if not raw.strip():
        return None
    try:
        return json.loads(raw)
    except ValueError:
        return _Malformed()


def _svc(db: Session = Depends(get_db)) -> SearchService:
    return SearchService(db)


def _respond(outcome: SearchOutcome) -> JSONResponse:
    return JSONResponse([item.to_wire() for item in outcome.value], status_code=outcome.status_code)


@router.post("")
def search(payload: Any = Depends(_json_body), svc: SearchService = Depends(_svc)):
    if isinstance(payload, _Malformed):
        return _respond(Outcome([], ClientInputError("request body is not valid JSON")))
    return _respond(svc.search(payload))


@router.get("")
def quick_search(
    q: str | None = None,
    limit: str | None = Query(None),
    svc: SearchService = Depends(_svc),
):
    return _respond(svc.quick_search(q, limit))
