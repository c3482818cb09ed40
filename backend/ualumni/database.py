"""Database engine and helpers.

This module configures the SQLModel/SQLAlchemy engine from
`settings.DATABASE_URL` and provides small helpers used by the
application and tests. SQLite (the development default) and PostgreSQL
are supported; every dialect difference the services care about is kept
in this module and in `repositories`.
"""

import hashlib

from sqlalchemy import event
from sqlmodel import SQLModel, create_engine, Session

from .config import settings


def _seeded_random(seed, key) -> float:
    """Deterministic pseudo-random value in [0, 1) for `(seed, key)`.

    Registered on SQLite connections as `seeded_random`, the stand-in for
    PostgreSQL's `setseed()` + `random()` pair.
    """
    digest = hashlib.sha256(f"{seed}:{key}".encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big") / 2 ** 64


def _connect_args(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"check_same_thread": False, "timeout": settings.DB_TIMEOUT_SECONDS}
    if url.startswith("postgresql"):
        timeout_ms = int(settings.DB_TIMEOUT_SECONDS * 1000)
        return {"options": f"-c statement_timeout={timeout_ms}"}
    return {}


def build_engine(url: str):
    """Create an engine for `url` with per-dialect connection setup."""
    eng = create_engine(url, echo=False, pool_pre_ping=True, connect_args=_connect_args(url))
    if eng.dialect.name == "sqlite":
        @event.listens_for(eng, "connect")
        def _on_connect(dbapi_conn, _record):
            # cascades on users/alumni/resumes rely on enforced foreign keys
            cur = dbapi_conn.cursor()
            cur.execute("PRAGMA foreign_keys=ON")
            cur.close()
            dbapi_conn.create_function("seeded_random", 2, _seeded_random, deterministic=True)
    return eng


engine = build_engine(settings.DATABASE_URL)


def create_db_and_tables():
    """Create database tables using SQLModel metadata.

    This function is intended for local development and tests; production
    deployments should rely on a proper migration tool (alembic) instead.
    """
    from . import models  # noqa: F401

    SQLModel.metadata.create_all(engine)


def drop_db_and_tables():
    """Drop every table known to the SQLModel metadata."""
    from . import models  # noqa: F401

    SQLModel.metadata.drop_all(engine)


def get_session():
    """Yield a database `Session` for FastAPI dependency injection.

    The generator yields a session and ensures it is closed when the
    request scope finishes, whatever the outcome of the request.
    """
    with Session(engine) as session:
        yield session
