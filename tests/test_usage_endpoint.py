"""
Integration tests for the /me/usage endpoints.
"""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.db.base import Base
from app.db.models.subscription import Subscription
from app.core.auth_dependency import get_current_user, get_db
from app.services.quota_service import track_usage


# Setup in-memory SQLite database for testing
TEST_DATABASE_URL = "sqlite:///:memory:"
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

client = TestClient(app)


def override_get_db():
    """Override get_db dependency for testing."""
    db = TestSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="function", autouse=True)
def setup_app():
    """Create and drop tables for each test, signed in as user-1."""
    Base.metadata.create_all(bind=test_engine)
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = lambda: "user-1"
    yield
    app.dependency_overrides.clear()
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def db_session():
    """Provide a database session for tests."""
    db = TestSessionLocal()
    try:
        yield db
    finally:
        db.close()


def test_usage_empty_free_user():
    response = client.get("/me/usage")
    assert response.status_code == 200
    data = response.json()
    assert data["plan"] == "free"
    assert data["used"] == 0
    assert data["limit"] == 5
    assert data["remaining"] == 5
    assert data["unlimited"] is False


def test_usage_after_tracking(db_session):
    track_usage(db_session, "user-1", 3)

    data = client.get("/me/usage").json()
    assert data["used"] == 3
    assert data["remaining"] == 2


def test_usage_requires_auth():
    app.dependency_overrides.pop(get_current_user)
    response = client.get("/me/usage")
    assert response.status_code == 401


def test_record_questions():
    response = client.post("/me/usage/questions", json={"count": 2})
    assert response.status_code == 200
    assert response.json()["used"] == 2
    assert response.json()["remaining"] == 3


def test_record_questions_quota_exceeded(db_session):
    track_usage(db_session, "user-1", 4)

    response = client.post("/me/usage/questions", json={"count": 2})
    assert response.status_code == 429
    detail = response.json()["detail"]
    assert detail["error"] == "quota_exceeded"
    assert detail["feature"] == "question"
    assert detail["limit"] == 5
    assert detail["used"] == 4
    assert detail["remaining"] == 1
    assert detail["upgrade_url"].endswith("/pricing")

    # The last remaining question still fits
    response = client.post("/me/usage/questions", json={"count": 1})
    assert response.status_code == 200
    assert response.json()["remaining"] == 0


def test_record_questions_premium_unlimited(db_session):
    db_session.add(Subscription(user_id="user-1", plan_type="premium_yearly", status="active"))
    db_session.commit()

    response = client.post("/me/usage/questions", json={"count": 50})
    assert response.status_code == 200
    data = response.json()
    assert data["used"] == 50
    assert data["limit"] is None
    assert data["unlimited"] is True


def test_record_questions_rejects_invalid_count():
    response = client.post("/me/usage/questions", json={"count": 0})
    assert response.status_code == 422
