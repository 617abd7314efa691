"""Database configuration used across the application."""

from __future__ import annotations

from collections.abc import Generator

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

# Base class for all ORM models
Base = declarative_base()


def make_engine(url: str) -> Engine:
    """Return an Engine for ``url``.

    In-memory SQLite databases share one connection so every session sees the
    same tables.
    """

    parsed = make_url(url)
    if parsed.get_backend_name() != "sqlite":
        return create_engine(parsed, pool_pre_ping=True)

    kwargs: dict = {"connect_args": {"check_same_thread": False}}
    if parsed.database in (None, "", ":memory:"):
        kwargs["poolclass"] = StaticPool
    return create_engine(parsed, **kwargs)


def make_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine,
        expire_on_commit=False,
    )


def create_tables(engine: Engine) -> None:
    # models must be imported so their tables are registered on Base
    from . import models  # noqa: F401

    Base.metadata.create_all(bind=engine)


def get_db(request: Request) -> Generator[Session, None, None]:
    """Provide a database session for a single request."""

    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
