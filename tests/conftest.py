# ruff: noqa: E402
# File: /tests/conftest.py | Version: 2.1 | Title: Shared fixtures (two SQLite connections, client, eager Celery)
import pathlib
import sys
from contextlib import contextmanager

# Make repo root importable as "tablekit"
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from sample_app import Badge, Department, SampleBase, Skill, user_skills
from tablekit.db.base_class import Base
from tablekit.main import app
from tablekit.tables.config import reset_table_config

TEST_DATABASE_URL = "sqlite:///./test.db"
ARCHIVE_DATABASE_URL = "sqlite:///./test_archive.db"

engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
archive_engine = create_engine(ARCHIVE_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False)


@pytest.fixture(scope="session", autouse=True)
def _create_schema():
    for target in (engine, archive_engine):
        Base.metadata.create_all(bind=target)
        SampleBase.metadata.create_all(bind=target)
    try:
        yield
    finally:
        for target in (engine, archive_engine):
            SampleBase.metadata.drop_all(bind=target)
            Base.metadata.drop_all(bind=target)


@pytest.fixture(autouse=True)
def _table_defaults():
    reset_table_config()
    yield
    reset_table_config()


@pytest.fixture()
def db_session():
    connection = engine.connect()
    archive = archive_engine.connect()
    trans = connection.begin()
    archive_trans = archive.begin()
    try:
        # departments, skills and badges live on the archive connection, everything else on the main one
        session = TestingSessionLocal(bind=connection, binds={Department: archive, Skill: archive, Badge: archive, user_skills: archive})
        yield session
    finally:
        session.close()
        archive_trans.rollback()
        trans.rollback()
        archive.close()
        connection.close()


@pytest.fixture()
def client(db_session):
    from tablekit.db.session import get_db  # late import to avoid circulars

    def _override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def sql_log():
    """Statements sent to the main connection while the test runs."""
    statements = []

    def _record(conn, cursor, statement, parameters, context, executemany):
        statements.append(statement)

    event.listen(engine, "before_cursor_execute", _record)
    try:
        yield statements
    finally:
        event.remove(engine, "before_cursor_execute", _record)


@pytest.fixture()
def eager_worker(db_session, monkeypatch, tmp_path):
    """Run queued exports inline, on the test session, writing into tmp_path."""
    from tablekit.core.config import settings
    from tablekit.db import session as sessions
    from tablekit.worker.celery_app import celery_app

    @contextmanager
    def _scope():
        yield db_session

    monkeypatch.setattr(sessions, "session_scope", _scope)
    monkeypatch.setattr(settings, "EXPORT_DISKS", {"local": str(tmp_path)})
    previous = celery_app.conf.task_always_eager
    celery_app.conf.task_always_eager = True
    try:
        yield tmp_path
    finally:
        celery_app.conf.task_always_eager = previous
