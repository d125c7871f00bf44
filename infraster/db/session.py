"""Store handle: SQLAlchemy engine and session factory with an explicit lifecycle.

A ``Store`` is built once at process start (see ``infraster.main``), opened in
the application lifespan and disposed at shutdown. Request handlers reach it
through ``request.app.state.store``; nothing in the package holds a global
engine.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from infraster.core.config import STORE_MAX_OVERFLOW, STORE_POOL_SIZE, STORE_TIMEOUT_MS
from infraster.search.viewport import SQLITE_SAMPLE_KEY_FUNCTION, sample_key

logger = logging.getLogger(__name__)

Base = declarative_base()


class Store:
    """Owns the connection pool for one database URL."""

    def __init__(self, url: str, *, timeout_ms: int = STORE_TIMEOUT_MS, **engine_kwargs: Any):
        self.url = make_url(url)
        self.timeout_ms = timeout_ms
        self._engine_kwargs = engine_kwargs
        self._engine: Engine | None = None
        self._session_factory: sessionmaker | None = None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise RuntimeError("store is not open")
        return self._engine

    def open(self) -> None:
        if self._engine is not None:
            return
        engine = create_engine(self.url, **self._engine_options())
        if self.url.get_backend_name() == "sqlite":
            _register_sqlite_functions(engine)
        self._engine = engine
        self._session_factory = sessionmaker(bind=engine, autoflush=False, autocommit=False)
        logger.info("Store opened: %s", self.url.render_as_string(hide_password=True))

    def close(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            self._session_factory = None
            logger.info("Store closed")

    @contextmanager
    def session(self) -> Iterator[Session]:
        self.open()
        db: Session = self._session_factory()  # type: ignore[misc]
        try:
            yield db
        finally:
            db.close()

    def _engine_options(self) -> dict[str, Any]:
        timeout_s = self.timeout_ms / 1000
        backend = self.url.get_backend_name()
        options: dict[str, Any] = {"pool_pre_ping": True}
        if backend == "sqlite":
            options["connect_args"] = {"check_same_thread": False, "timeout": timeout_s}
        else:
            options.update(
                pool_size=STORE_POOL_SIZE,
                max_overflow=STORE_MAX_OVERFLOW,
                pool_recycle=300,
                pool_timeout=timeout_s,
            )
            if backend == "postgresql":
                options["connect_args"] = {
                    "connect_timeout": max(1, round(timeout_s)),
                    "options": f"-c statement_timeout={self.timeout_ms}",
                }
        options.update(self._engine_kwargs)
        return options


def _register_sqlite_functions(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record) -> None:  # type: ignore[no-untyped-def]
        del connection_record
        dbapi_connection.create_function(SQLITE_SAMPLE_KEY_FUNCTION, 2, sample_key, deterministic=True)
