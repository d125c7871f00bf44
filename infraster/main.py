"""Infraster search service – FastAPI application entry-point."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from infraster.api.routers.facets import router as facets_router
from infraster.api.routers.health import router as health_router
from infraster.api.routers.infrastructures import router as infrastructures_router
from infraster.api.routers.search import router as search_router
from infraster.common.errors import register_error_handlers
from infraster.common.middleware import CorrelationMiddleware, RequestSizeLimitMiddleware
from infraster.core.config import database_url
from infraster.core.logging import init_logging
from infraster.db.session import Store

init_logging()


def create_app(store: Store | None = None) -> FastAPI:
    """Build the application around ``store``, or one on ``database_url()`` when omitted."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Open the store on startup; a store built here is disposed of on shutdown."""
        owned = store is None
        app.state.store = Store(database_url()) if owned else store
        app.state.store.open()
        yield
        if owned:
            app.state.store.close()

    app = FastAPI(
        title="Infraster Search",
        description="Infrastructure search, map viewport sampling and availability",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(RequestSizeLimitMiddleware)
    app.add_middleware(CorrelationMiddleware)

    register_error_handlers(app)

    app.include_router(health_router)
    app.include_router(facets_router)
    app.include_router(search_router)
    app.include_router(infrastructures_router)
    return app


app = create_app()
