from __future__ import annotations

from contextlib import contextmanager

from loguru import logger
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # Exclusions and matches rely on ON DELETE CASCADE, which SQLite skips by default.
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def init_engine(database_url: str, **engine_kwargs):
    engine_kwargs.setdefault("pool_pre_ping", True)
    engine = create_engine(database_url, future=True, **engine_kwargs)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    SessionLocal.configure(bind=engine)
    logger.bind(dialect=engine.dialect.name).info("Database engine initialized")
    return engine


def _ensure_initialized() -> None:
    if SessionLocal.kw.get("bind") is None:
        raise RuntimeError("Database engine not initialized. Call init_engine() before use.")


@contextmanager
def get_session():
    """Session scope for one handler call: commit on success, roll back on any error."""
    _ensure_initialized()
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception as exc:
        session.rollback()
        logger.bind(error=type(exc).__name__).debug("Session rolled back")
        raise
    finally:
        session.close()
