"""Shared test fixtures and helpers."""

from datetime import date, datetime
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from config import AdminCredential, Settings
from database import Database
from main import create_app
from models import Appointment, AppointmentStatus
from repository import AppointmentRepository

ROOT = Path(__file__).resolve().parent.parent

BASE_CREATED = datetime(2025, 3, 15, 10, 0)


@pytest.fixture
def settings():
    return Settings(
        database_url="sqlite://",
        admins=(
            AdminCredential(username="admin1", password="password1"),
            AdminCredential(username="admin2", password="password2"),
        ),
        pages_dir=str(ROOT / "pages"),
    )


@pytest.fixture
def database():
    db = Database("sqlite://")
    db.create_tables()
    yield db
    db.dispose()


@pytest.fixture
def db_session(database):
    session = database.session()
    yield session
    session.close()


@pytest.fixture
def repo(db_session):
    return AppointmentRepository(db_session)


@pytest.fixture
def seed(database):
    """Insert an appointment directly, bypassing the repository. Returns its id."""

    def _seed(
        status: AppointmentStatus = AppointmentStatus.PENDING,
        created_at: datetime = BASE_CREATED,
        **overrides,
    ) -> int:
        fields = {
            "name": "Mario Rossi",
            "email": "mario@example.com",
            "phone": "+39 333 1234567",
            "service": "Taglio",
            "date": date(2025, 4, 1),
            "time": "10:00",
        }
        fields.update(overrides)
        session = database.session()
        try:
            appointment = Appointment(status=status.value, created_at=created_at, **fields)
            session.add(appointment)
            session.commit()
            return appointment.id
        finally:
            session.close()

    return _seed


@pytest.fixture
def app(settings, database):
    return create_app(settings, database)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def admin_client(client):
    client.cookies.set("isLoggedIn", "true")
    return client

