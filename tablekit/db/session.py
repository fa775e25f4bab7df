# File: /tablekit/db/session.py | Version: 2.0 | Title: SQLAlchemy Sessions routed per connection name
from contextlib import contextmanager
from typing import Dict, Generator, Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from tablekit.core.config import settings

SQLALCHEMY_DATABASE_URL = settings.DATABASE_URL


def _make_engine(url: str) -> Engine:
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, connect_args=connect_args, pool_pre_ping=True)


engine = _make_engine(SQLALCHEMY_DATABASE_URL)
engines: Dict[str, Engine] = {name: _make_engine(url) for name, url in settings.DATABASE_CONNECTIONS.items()}


class RoutingSession(Session):
    """Sends models that declare ``__connection__`` to the matching engine."""

    def get_bind(self, mapper=None, clause=None, **kwargs):
        if mapper is not None:
            name = getattr(mapper.class_, "__connection__", None)
            if name in engines:
                return engines[name]
        return super().get_bind(mapper=mapper, clause=clause, **kwargs)


SessionLocal = sessionmaker(class_=RoutingSession, autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def session_scope() -> Iterator[Session]:
    """Session for work outside a request (queued exports)."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
