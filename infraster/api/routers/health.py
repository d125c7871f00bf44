"""Health-check endpoints."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from infraster.api.deps import get_store
from infraster.common.errors import classify_store_error
from infraster.db.session import Store

router = APIRouter(tags=["health"])


@router.get("/healthz")
def healthz():
    return {"status": "ok"}


@router.get("/readyz")
def readyz(store: Store = Depends(get_store)):
    try:
        with store.session() as db:
            db.execute(text("SELECT 1"))
        return {"status": "ready"}
    except SQLAlchemyError as exc:
        error = classify_store_error(exc)
        return JSONResponse(
            status_code=503,
            content={"status": "not_ready", "detail": error.error},
        )
