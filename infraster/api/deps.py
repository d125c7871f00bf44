"""Request-scoped dependencies."""

from __future__ import annotations

from typing import Iterator

from fastapi import Header, Request
from sqlalchemy.orm import Session

from infraster.db.session import Store


def get_store(request: Request) -> Store:
    return request.app.state.store


def get_db(request: Request) -> Iterator[Session]:
    with get_store(request).session() as db:
        yield db


def current_user_id(x_user_id: str | None = Header(None)) -> int | None:
    """Caller identity forwarded by the gateway; anything unparseable is anonymous."""
    if x_user_id is None:
        return None
    try:
        return int(x_user_id.strip())
    except ValueError:
        return None
