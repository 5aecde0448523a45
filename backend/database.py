# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
SQLAlchemy declarative base, the explicitly constructed ``Database`` handle,
and the FastAPI dependency that provides a session per request.

Lifecycle
---------
``main.create_app`` builds one ``Database``, calls :meth:`Database.connect`
on startup and :meth:`Database.dispose` on shutdown.  The handle lives on
``app.state.database``; nothing in this module holds a global engine.
"""

from contextlib import contextmanager
from typing import Iterator, Optional

from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

Base = declarative_base()


class Database:
    """Owns the engine and session factory for one database URL."""

    def __init__(self, url: str, **engine_kwargs):
        self.url = url
        self._engine_kwargs = engine_kwargs
        self._engine: Optional[Engine] = None
        self._sessionmaker: Optional[sessionmaker] = None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise RuntimeError("Database is not connected")
        return self._engine

    def connect(self) -> None:
        """Create the engine.  Safe to call more than once."""
        if self._engine is not None:
            return
        kwargs = dict(self._engine_kwargs)
        if self.url.startswith("sqlite"):
            # Handlers run in FastAPI's thread pool
            kwargs.setdefault("connect_args", {"check_same_thread": False})
        else:
            # pool_pre_ping keeps idle connections alive across MySQL's wait_timeout
            kwargs.setdefault("pool_pre_ping", True)
        self._engine = create_engine(self.url, **kwargs)
        self._sessionmaker = sessionmaker(autocommit=False, autoflush=False, bind=self._engine)

    def dispose(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
        self._engine = None
        self._sessionmaker = None

    def create_all(self) -> None:
        """Create every table known to ``Base`` (tests and local dev only)."""
        # Import every ORM model so that Base.metadata knows about all tables
        import models.activity_log  # noqa: F401
        import models.paper         # noqa: F401
        import models.user          # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    def ping(self) -> bool:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError:
            return False
        return True

    def new_session(self) -> Session:
        if self._sessionmaker is None:
            raise RuntimeError("Database is not connected")
        return self._sessionmaker()

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Standalone session for scripts and background tasks."""
        db = self.new_session()
        try:
            yield db
        finally:
            db.close()


def get_db(request: Request):
    """
    FastAPI dependency.  Yields a session for the duration of the request,
    then closes it.  Use with Depends(get_db).
    """
    database: Database = request.app.state.database
    db = database.new_session()
    try:
        yield db
    finally:
        db.close()


def get_database(request: Request) -> Database:
    """FastAPI dependency returning the application's ``Database`` handle."""
    return request.app.state.database
