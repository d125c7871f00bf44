"""
Search orchestration layer.

Handles:
  - filtered search (text, facets, capacity, availability, distance)
  - viewport sampling for the map
  - quick text search for the search bar

Every entry point fails open: the caller always gets a list (possibly empty)
and the classified error, never an exception. Failures are logged with the
shape of the query plan only.
"""

from __future__ import annotations

import logging
from contextlib import suppress
from typing import Any

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from infraster.common.errors import ClientInputError, UpstreamUnavailable, classify_store_error
from infraster.core.config import QUICK_SEARCH_LIMIT, VIEWPORT_SAMPLE_SEED
from infraster.db.schemas import FilterRequest, ResultItem
from infraster.search.predicates import QueryPlan, build_query, clamp_limit, text_query, viewport_query
from infraster.search.translate import execute
from infraster.search.viewport import BoundingBox
from infraster.services.outcome import Outcome

logger = logging.getLogger(__name__)

SearchOutcome = Outcome[list[ResultItem]]


def _validation_detail(exc: ValidationError) -> str:
    first = exc.errors()[0]
    field = ".".join(str(part) for part in first.get("loc", ())) or "body"
    return f"invalid filter '{field}': {first.get('msg', 'invalid value')}"


class SearchService:
    def __init__(self, db: Session, *, seed: str = VIEWPORT_SAMPLE_SEED):
        self.db = db
        self.seed = seed

    # ── Filtered search ─────────────────────────────────────────────────
    def search(self, payload: Any) -> SearchOutcome:
        plan: QueryPlan | None = None
        try:
            if isinstance(payload, FilterRequest):
                request = payload
            else:
                request = FilterRequest.model_validate({} if payload is None else payload)
            plan = build_query(request)
            return Outcome(self._run(plan))
        except ValidationError as exc:
            return self._fail(ClientInputError(_validation_detail(exc)), plan)
        except Exception as exc:
            return self._fail(exc, plan)

    # ── Viewport sampling ───────────────────────────────────────────────
    def sample_viewport(
        self,
        north: object,
        south: object,
        east: object,
        west: object,
        limit: object = None,
    ) -> SearchOutcome:
        plan: QueryPlan | None = None
        try:
            box = BoundingBox.parse(north, south, east, west)
            plan = viewport_query(box, limit)
            return Outcome(self._run(plan))
        except Exception as exc:
            return self._fail(exc, plan)

    # ── Quick text search ───────────────────────────────────────────────
    def quick_search(self, q: str | None, limit: object = None) -> SearchOutcome:
        text = (q or "").strip()
        if not text:
            return Outcome([])
        plan = text_query(text, clamp_limit(limit, default=QUICK_SEARCH_LIMIT))
        try:
            return Outcome(self._run(plan))
        except Exception as exc:
            return self._fail(exc, plan)

    # ── Internal ────────────────────────────────────────────────────────
    def _run(self, plan: QueryPlan) -> list[ResultItem]:
        candidates = execute(self.db, plan, seed=self.seed)
        logger.info("Search %s returned %d items", plan.kind, len(candidates))
        return [ResultItem.from_candidate(c) for c in candidates]

    def _fail(self, exc: Exception, plan: QueryPlan | None) -> SearchOutcome:
        error = classify_store_error(exc)
        shape = plan.describe() if plan is not None else None
        if isinstance(error, ClientInputError):
            logger.info("Search rejected (%s): %s", shape, error.detail)
        elif isinstance(error, UpstreamUnavailable):
            logger.warning("Store unavailable during search %s", shape, exc_info=exc)
        else:
            logger.error("Search failed for plan %s", shape, exc_info=exc)
        with suppress(SQLAlchemyError):
            self.db.rollback()
        return Outcome([], error)
