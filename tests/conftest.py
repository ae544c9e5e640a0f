import os
from collections.abc import Generator
from datetime import date

# Keep the module-level engine off the real data directory during tests
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker

from shopfloor.core.security import hash_password
from shopfloor.db.session import get_db, init_db, make_engine
from shopfloor.main import app
from shopfloor.models.machine import Machine
from shopfloor.models.project import Project
from shopfloor.models.schedule import ScheduleEntry
from shopfloor.models.user import User

DEFAULT_PASSWORD = "password123"


@pytest.fixture()
def engine(tmp_path):
    eng = make_engine(f"sqlite:///{(tmp_path / 'test.db').as_posix()}")
    init_db(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture()
def db(session_factory) -> Generator[Session, None, None]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(session_factory) -> Generator[TestClient, None, None]:
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def make_user(db):
    def _make(username: str, role: str = "Operator", password: str = DEFAULT_PASSWORD,
              is_active: bool = True, full_name: str | None = None) -> User:
        u = User(
            username=username,
            password_hash=hash_password(password),
            full_name=full_name or username.title(),
            role=role,
            is_active=is_active,
        )
        db.add(u)
        db.commit()
        return u
    return _make


@pytest.fixture()
def make_machine(db):
    def _make(name: str) -> Machine:
        m = Machine(name=name, model="VMC")
        db.add(m)
        db.commit()
        return m
    return _make


@pytest.fixture()
def make_project(db):
    def _make(name: str) -> Project:
        p = Project(name=name, status="active")
        db.add(p)
        db.commit()
        return p
    return _make


@pytest.fixture()
def make_entry(db):
    def _make(machine: Machine, day: date, planned: float, actual: float | None = None,
              start_time: str | None = None, **kwargs) -> ScheduleEntry:
        s = ScheduleEntry(
            machine_id=machine.id,
            date=day,
            planned_hours=planned,
            actual_hours=actual,
            start_time=start_time,
            status=kwargs.pop("status", "scheduled"),
            **kwargs,
        )
        db.add(s)
        db.commit()
        return s
    return _make


@pytest.fixture()
def login(client):
    """Log in through the API; returns (token, headers)."""
    def _login(username: str, password: str = DEFAULT_PASSWORD) -> tuple[str, dict[str, str]]:
        r = client.post("/api/v1/auth/login", json={"username": username, "password": password})
        assert r.status_code == 200, r.text
        token = r.json()["token"]
        return token, {"Authorization": f"Bearer {token}"}
    return _login
