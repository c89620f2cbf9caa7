"""
Integration tests for the analytics and plan endpoints.
"""
import pytest
from datetime import datetime, timedelta
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.db.base import Base
from app.db.models.interview_session import InterviewSession
from app.db.models.subscription import Subscription
from app.core.auth_dependency import get_current_user, get_db
from app.repositories import session_repository


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
def setup_app(monkeypatch):
    """Fresh tables, SQL backend and a signed-in user for each test."""
    Base.metadata.create_all(bind=test_engine)
    monkeypatch.setattr(session_repository, "_selected_backend", "sql")
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


@pytest.fixture
def premium_user(db_session):
    """Give user-1 an active premium subscription."""
    subscription = Subscription(user_id="user-1", plan_type="premium_monthly", status="active")
    db_session.add(subscription)
    db_session.commit()
    return subscription


@pytest.fixture
def recent_sessions(db_session):
    """Five sessions over the last five days with rising scores."""
    now = datetime.utcnow()
    for i, score in enumerate([4, 5, 6, 7, 8]):
        db_session.add(InterviewSession(
            user_id="user-1",
            job_title="Backend Engineer",
            session_type="practice",
            overall_score=score,
            confidence_score=score - 1,
            technical_score=score,
            behavioral_score=score,
            questions_data=[{"question": "Q", "category": "Technical"}],
            analysis_results=[{"score": score}],
            improvement_areas=["Communication"],
            session_duration=600,
            created_at=now - timedelta(days=4 - i),
        ))
    db_session.commit()


# ============================================
# Summary
# ============================================

def test_summary_empty_is_null():
    response = client.get("/analytics/summary")
    assert response.status_code == 200
    assert response.json() is None


def test_summary_uses_camel_case(recent_sessions):
    response = client.get("/analytics/summary", params={"time_range": "7d"})
    assert response.status_code == 200
    data = response.json()

    assert data["totalSessions"] == 5
    assert data["avgOverallScore"] == 6
    assert data["bestScore"] == 8
    assert data["jobTypes"] == {"Backend Engineer": 5}
    assert data["improvementAreas"] == {"Communication": 5}
    assert data["totalPracticeTime"] == 3000
    assert data["streakDays"] == 5
    assert len(data["scoreTrend"]) == 5
    assert data["mostRecentSession"]["overall_score"] == 8


def test_summary_free_users_allowed(recent_sessions):
    response = client.get("/analytics/summary")
    assert response.status_code == 200


def test_summary_rejects_unknown_time_range():
    response = client.get("/analytics/summary", params={"time_range": "6m"})
    assert response.status_code == 422


# ============================================
# Insights (premium)
# ============================================

def test_insights_paywall_for_free_user(recent_sessions):
    response = client.get("/analytics/insights")
    assert response.status_code == 402
    detail = response.json()["detail"]
    assert detail["code"] == "PAYWALL"
    assert detail["feature"] == "analytics"
    assert detail["required_plan"] == "premium"


def test_insights_paywall_for_inactive_premium(db_session):
    db_session.add(Subscription(user_id="user-1", plan_type="premium_yearly", status="canceled"))
    db_session.commit()

    response = client.get("/analytics/insights")
    assert response.status_code == 402


def test_insights_for_premium_user(premium_user, recent_sessions):
    response = client.get("/analytics/insights")
    assert response.status_code == 200
    data = response.json()

    performance = data["performanceAnalysis"]
    assert performance["trendDirection"] == "improving"
    assert performance["currentLevel"] == "developing"
    assert set(performance["scoreDistribution"]) == {"excellent", "good", "fair", "poor"}

    assert "skillsGapAnalysis" in data
    assert "confidenceTrends" in data
    assert data["questionTypePerformance"][0]["type"] == "Technical"
    assert data["industryBenchmarks"]["yourRanking"]

    predictive = data["predictiveInsights"]
    assert 0 <= predictive["readinessScore"] <= 10
    assert 0 <= predictive["successProbability"] <= 1

    priorities = [r["priority"] for r in data["personalizedRecommendations"]]
    assert priorities == sorted(priorities, key=["high", "medium", "low"].index)


def test_insights_empty_history_is_well_formed(premium_user):
    response = client.get("/analytics/insights")
    assert response.status_code == 200
    data = response.json()
    assert data["predictiveInsights"]["readinessScore"] == 0
    assert data["personalizedRecommendations"] == []


# ============================================
# Plan
# ============================================

def test_plan_free_by_default():
    response = client.get("/me/plan")
    assert response.status_code == 200
    assert response.json() == {"plan": "free", "is_premium": False, "monthly_question_limit": 5}


def test_plan_premium(premium_user):
    response = client.get("/me/plan")
    data = response.json()
    assert data["plan"] == "premium_monthly"
    assert data["is_premium"] is True
    assert data["monthly_question_limit"] is None


# ============================================
# Health
# ============================================

def test_health(monkeypatch):
    from app.api.routes import health
    monkeypatch.setattr(health, "SessionLocal", TestSessionLocal)

    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["database"] == "connected"
    assert data["session_backend"] == "sql"


def test_insights_time_patterns_follow_client_offset(premium_user, db_session):
    evening_utc = (datetime.utcnow() - timedelta(days=1)).replace(hour=20, minute=0, second=0, microsecond=0)
    db_session.add(InterviewSession(user_id="user-1", overall_score=7, created_at=evening_utc))
    db_session.commit()

    utc = client.get("/analytics/insights").json()
    assert [p["timeSlot"] for p in utc["timeBasedPatterns"]] == ["evening"]

    # UTC-10: 10:00 local
    local = client.get("/analytics/insights", params={"utc_offset": -600}).json()
    assert [p["timeSlot"] for p in local["timeBasedPatterns"]] == ["morning"]


def test_insights_rejects_out_of_range_offset(premium_user):
    response = client.get("/analytics/insights", params={"utc_offset": 1000})
    assert response.status_code == 422
