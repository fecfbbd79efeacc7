import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from config import get_settings


logger = logging.getLogger(__name__)


def _create_engine() -> Engine:
    settings = get_settings()
    connect_args: dict[str, object] = {}
    is_sqlite = settings.database_url.startswith("sqlite")
    if is_sqlite:
        connect_args["check_same_thread"] = False

    eng = create_engine(
        settings.database_url,
        connect_args=connect_args,
        pool_pre_ping=not is_sqlite,
    )
    if is_sqlite:
        event.listen(eng, "connect", _enable_sqlite_pragmas)
    logger.info(f"database_engine: dialect={eng.dialect.name}")
    return eng


def _enable_sqlite_pragmas(dbapi_conn, _record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL;")
    # expense -> category references rely on RESTRICT semantics
    cursor.execute("PRAGMA foreign_keys=ON;")
    cursor.close()


engine = _create_engine()
SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


class Base(DeclarativeBase):
    pass


def get_db() -> Iterator[Session]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def session_scope() -> Iterator[Session]:
    session: Session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        logger.exception("session_scope: rolled back")
        session.rollback()
        raise
    finally:
        session.close()
