# tests/conftest.py

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from signup_service.main import app
from signup_service.db.session import get_db
from signup_service.db.base_class import Base
from signup_service.models.registration import Registration


# --- In-memory store shared by the app and the test code ---
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    yield session
    session.close()
    Base.metadata.drop_all(bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="function")
def test_client_e2e(db_session):
    """
    TestClient backed by the in-memory store. Entering the client runs the
    lifespan, so every test gets fresh rate limiters.
    """
    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def fetch_registration(db_session):
    """Read a row as the store currently has it, bypassing the identity map."""

    def _fetch(email: str):
        db_session.expire_all()
        return db_session.query(Registration).filter(Registration.email == email).one_or_none()

    return _fetch


@pytest.fixture
def count_registrations(db_session):
    def _count() -> int:
        db_session.expire_all()
        return db_session.query(Registration).count()

    return _count
