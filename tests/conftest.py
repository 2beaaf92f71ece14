from __future__ import annotations

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret")

from datetime import date
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from parlour_api.auth.jwt_handler import claims_for_user, create_access_token
from parlour_api.database import Base, get_db
from parlour_api.main import app
from parlour_api.models import Employee


class RecordingPublisher:
    def __init__(self):
        self.events = []

    def publish(self, event, data):
        self.events.append((event, data))

    def __call__(self, event, data):
        self.publish(event, data)

    @property
    def names(self):
        return [name for name, _ in self.events]

    def of(self, name):
        return [data for event, data in self.events if event == name]


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def publisher():
    return RecordingPublisher()


@pytest.fixture
def make_employee(session_factory):
    counter = {"n": 0}

    def _make(name="Employee", **fields):
        counter["n"] += 1
        session = session_factory()
        try:
            emp = Employee(
                name=name,
                email=fields.pop("email", f"emp{counter['n']}@parlour.local"),
                mobile=fields.pop("mobile", "9000000000"),
                role=fields.pop("role", "Stylist"),
                position=fields.pop("position", "Senior"),
                join_date=fields.pop("join_date", date(2024, 1, 1)),
                **fields,
            )
            session.add(emp)
            session.commit()
            return emp.id
        finally:
            session.close()

    return _make


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    previous_factory = app.state.session_factory
    app.dependency_overrides[get_db] = override_get_db
    app.state.session_factory = session_factory
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
    app.state.session_factory = previous_factory


@pytest.fixture
def events():
    listener = RecordingPublisher()
    app.state.publisher.subscribe(listener)
    yield listener
    app.state.publisher.unsubscribe(listener)


def _token(user_id, role, name):
    return create_access_token(claims_for_user(SimpleNamespace(id=user_id, role=role, name=name)))


@pytest.fixture
def super_admin_headers():
    return {"Authorization": f"Bearer {_token(1, 'super-admin', 'Sara Super')}"}


@pytest.fixture
def admin_headers():
    return {"Authorization": f"Bearer {_token(2, 'admin', 'Alice Admin')}"}


@pytest.fixture
def admin_token():
    return _token(2, "admin", "Alice Admin")
