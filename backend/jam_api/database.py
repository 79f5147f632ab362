"""Database handle, declarative base and the per-request session dependency.

The engine is owned by an explicitly constructed ``Database`` object that the
application opens at startup and disposes at shutdown; nothing here connects
at import time.
"""
import logging
from typing import Iterator

from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


class Database:
    """Engine plus session factory with a defined open/close lifecycle."""

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        if url.startswith("sqlite"):
            self.engine = create_engine(url, echo=echo, connect_args={"check_same_thread": False})
            _enable_sqlite_savepoints(self.engine)
        else:
            self.engine = create_engine(url, echo=echo, pool_pre_ping=True, pool_recycle=3600)
        self.session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    def session(self) -> Session:
        return self.session_factory()

    def create_all(self) -> None:
        """Create tables directly (SQLite dev mode and tests; Postgres uses Alembic)."""
        Base.metadata.create_all(bind=self.engine)

    def drop_all(self) -> None:
        Base.metadata.drop_all(bind=self.engine)

    def close(self) -> None:
        self.engine.dispose()
        logger.info("Disposed database engine for %s", self.engine.url.render_as_string(hide_password=True))


def _enable_sqlite_savepoints(engine) -> None:
    """Let SQLAlchemy, not pysqlite, decide when transactions begin.

    Without this the driver defers BEGIN until the first DML statement, which
    breaks SAVEPOINT semantics used by the settlement upsert. Transactions
    start IMMEDIATE so concurrent writers queue on the busy timeout instead of
    failing when a stale read snapshot tries to write.
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_conn, connection_record):
        dbapi_conn.isolation_level = None
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def get_db(request: Request) -> Iterator[Session]:
    """Yield a request-scoped session from the application's database handle."""
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()
