"""
Pytest configuration and fixtures.
"""
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient
from unittest.mock import patch

# Import Base and get_db from the app's database module
from app.core.database import Base, get_db
from app.main import app

# Import all models to ensure they register with Base.metadata
# This is critical - tables won't be created if models aren't imported
from app.models import (
    Item,
    SecurityControl,
    SubControl,
    ControlImplementation,
    SubControlImplementation,
)

# Use file-based SQLite for testing (more reliable than in-memory)
TEST_DATABASE_URL = "sqlite:///./test_security_tracker.db"

# Create test engine
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    pool_pre_ping=False,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

# Children first so foreign keys never block the cleanup
ALL_MODELS = [
    SubControlImplementation,
    ControlImplementation,
    SubControl,
    SecurityControl,
    Item,
]


@pytest.fixture(scope="session", autouse=True)
def setup_test_database():
    """
    Create all tables before tests run and clean up after all tests complete.
    This runs once per test session.
    """
    Base.metadata.drop_all(bind=test_engine)
    Base.metadata.create_all(bind=test_engine)
    yield
    Base.metadata.drop_all(bind=test_engine)
    # Note: We don't delete the SQLite file here because on Windows it may still be in use


@pytest.fixture(scope="function", autouse=True)
def clean_tables():
    """Empty every table after each test so tests never see each other's rows."""
    yield
    db = TestingSessionLocal()
    try:
        for model in ALL_MODELS:
            db.query(model).delete(synchronize_session=False)
        db.commit()
    finally:
        db.close()


@pytest.fixture(scope="function")
def client():
    """
    Create a test client with database override.

    The get_db dependency is overridden to use TestingSessionLocal,
    creating a new session for each request (as FastAPI expects).
    """
    def override_get_db():
        """Override get_db dependency to use test database session."""
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def db_session():
    """
    Provide a database session for tests that need direct DB access.
    """
    db = TestingSessionLocal()
    try:
        yield db
        db.rollback()
    finally:
        db.close()


@pytest.fixture
def make_item(client):
    """Create an item through the API and return its JSON."""
    def _make_item(name="Customer Portal", **fields):
        response = client.post("/api/items", json={"name": name, **fields})
        assert response.status_code == 201, response.text
        return response.json()
    return _make_item


@pytest.fixture
def make_control(client):
    """Create a control through the API and return its JSON."""
    def _make_control(name="Access Control", description=None):
        response = client.post("/api/controls", json={"name": name, "description": description})
        assert response.status_code == 201, response.text
        return response.json()
    return _make_control


@pytest.fixture
def make_sub_control(client):
    """Create a sub-control through the API and return its JSON."""
    def _make_sub_control(control_id, name="Multi-Factor Authentication", description=None):
        response = client.post(
            "/api/sub-controls",
            json={"control_id": control_id, "name": name, "description": description},
        )
        assert response.status_code == 201, response.text
        return response.json()
    return _make_sub_control


@pytest.fixture
def cli_database():
    """Point the maintenance CLI at the test database."""
    with patch("app.cli.SessionLocal", TestingSessionLocal), patch("app.cli.engine", test_engine):
        yield
