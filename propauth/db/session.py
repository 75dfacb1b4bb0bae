from __future__ import annotations

from collections.abc import Generator

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from propauth.settings import get_settings


_settings = get_settings()

engine = create_engine(
    _settings.resolved_db_url(),
    connect_args={"check_same_thread": False} if _settings.resolved_db_url().startswith("sqlite") else {},
)

SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, class_=Session)


def attach_authz(db: Session, request: Request) -> Session:
    """
    Copy the request's authorization context onto the session.

    `db/filters.py` reads `Session.info["scope"]` on every ORM select.
    """

    authz = getattr(getattr(request, "state", None), "authz", None)
    if authz is not None:
        db.info["authz"] = authz
        if authz.scope is not None:
            db.info["scope"] = authz.scope
    return db


def get_db(request: Request) -> Generator[Session, None, None]:
    """
    Main DB dependency.

    FastAPI caches it per request, so the global security dependency and the
    route handler share one session. The guard attaches its decision once it
    has made one; a session opened after that carries it from the start.
    """

    db = SessionLocal()
    try:
        yield attach_authz(db, request)
    finally:
        db.close()
