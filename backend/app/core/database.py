from collections.abc import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from backend.app.core.config import settings


def _build_engine(url: str):
    if not url.startswith("sqlite"):
        return create_engine(url, echo=False, pool_pre_ping=True)

    kwargs: dict = {"connect_args": {"check_same_thread": False}}
    if ":memory:" in url or url.rstrip("/").endswith("sqlite:"):
        kwargs["poolclass"] = StaticPool
    sqlite_engine = create_engine(url, echo=False, **kwargs)

    # pysqlite does not emit BEGIN itself; take over so SAVEPOINTs behave.
    @event.listens_for(sqlite_engine, "connect")
    def _on_connect(dbapi_connection, connection_record) -> None:
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(sqlite_engine, "begin")
    def _on_begin(conn) -> None:
        conn.exec_driver_sql("BEGIN")

    return sqlite_engine


engine = _build_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


class Base(DeclarativeBase):
    pass


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
