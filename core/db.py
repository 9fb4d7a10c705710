from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from core.errors import StoreError

LOGGER = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Shared handle around a lazily created engine and its connection pool."""

    def __init__(self, url: str) -> None:
        self.url = url
        self._engine: Optional[Engine] = None

    @property
    def is_sqlite(self) -> bool:
        return make_url(self.url).get_backend_name() == "sqlite"

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            self._engine = self._create_engine()
        return self._engine

    def _create_engine(self) -> Engine:
        if not self.is_sqlite:
            return create_engine(self.url, pool_pre_ping=True)

        database = make_url(self.url).database
        if database and database != ":memory:":
            Path(database).parent.mkdir(parents=True, exist_ok=True)
            engine = create_engine(self.url, connect_args={"check_same_thread": False})
        else:
            # one shared connection, otherwise every checkout sees an empty database
            engine = create_engine(
                self.url,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    def init(self) -> None:
        SQLModel.metadata.create_all(self.engine)
        LOGGER.info("Database ready (%s).", make_url(self.url).get_backend_name())

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Yield a short-lived session, translating driver failures into StoreError."""

        try:
            with Session(self.engine) as session:
                yield session
        except SQLAlchemyError as exc:
            LOGGER.exception("Database operation failed.")
            raise StoreError(f"Database operation failed: {exc}") from exc

    def dispose(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None


def get_database(request: Request) -> Database:
    return request.app.state.database
