"""
Unit tests for quota service.
Tests question usage recording, monthly aggregation and plan limits.
"""
import pytest
from datetime import datetime
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db.base import Base
import app.db.models  # noqa: F401
from app.db.models.subscription import Subscription
from app.db.models.usage import UsageRecord
from app.services.quota_service import (
    check_and_consume,
    get_month_usage,
    get_usage,
    track_usage,
)
from app.services import subscription_service


# Setup in-memory SQLite database for testing
TEST_DATABASE_URL = "sqlite:///:memory:"
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

USER_ID = "user-1"


@pytest.fixture(scope="function")
def db():
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=test_engine)
    db = TestSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def premium_subscription(db):
    """Create an active premium subscription for the test user."""
    sub = Subscription(user_id=USER_ID, plan_type="premium_monthly", status="active")
    db.add(sub)
    db.commit()
    return sub


def test_month_key_format():
    assert UsageRecord.get_month_key(datetime(2026, 3, 9)) == "2026-03"
    assert len(UsageRecord.get_month_key()) == 7


def test_month_usage_sums_current_month(db):
    track_usage(db, USER_ID, 2)
    track_usage(db, USER_ID, 1)
    track_usage(db, "user-2", 4)

    assert get_month_usage(db, USER_ID) == 3
    assert get_month_usage(db, "user-2") == 4
    assert get_month_usage(db, "nobody") == 0


def test_month_usage_ignores_other_months_and_features(db):
    db.add(UsageRecord(user_id=USER_ID, questions_used=4, month_key="2020-01"))
    db.add(UsageRecord(
        user_id=USER_ID,
        feature_type="voice",
        questions_used=3,
        month_key=UsageRecord.get_month_key(),
    ))
    db.commit()
    track_usage(db, USER_ID, 1)

    assert get_month_usage(db, USER_ID) == 1
    assert get_month_usage(db, USER_ID, "2020-01") == 4


def test_free_plan_usage_report(db):
    track_usage(db, USER_ID, 3)
    usage = get_usage(db, USER_ID, "free")

    assert usage["plan"] == "free"
    assert usage["used"] == 3
    assert usage["limit"] == 5
    assert usage["remaining"] == 2
    assert usage["unlimited"] is False
    assert usage["is_premium"] is False


def test_premium_plan_usage_report(db):
    track_usage(db, USER_ID, 40)
    usage = get_usage(db, USER_ID, "premium_yearly")

    assert usage["used"] == 40
    assert usage["limit"] is None
    assert usage["remaining"] is None
    assert usage["unlimited"] is True


def test_check_and_consume_within_limit(db):
    consumed, used, limit, remaining = check_and_consume(db, USER_ID, "free", 2)

    assert consumed is True
    assert (used, limit, remaining) == (2, 5, 3)
    assert get_month_usage(db, USER_ID) == 2


def test_check_and_consume_up_to_exact_limit(db):
    track_usage(db, USER_ID, 4)
    consumed, used, limit, remaining = check_and_consume(db, USER_ID, "free", 1)

    assert consumed is True
    assert (used, remaining) == (5, 0)


def test_check_and_consume_refuses_over_limit(db):
    track_usage(db, USER_ID, 4)
    consumed, used, limit, remaining = check_and_consume(db, USER_ID, "free", 2)

    assert consumed is False
    assert (used, limit, remaining) == (4, 5, 1)
    # Nothing recorded on refusal
    assert get_month_usage(db, USER_ID) == 4


def test_check_and_consume_unlimited(db):
    track_usage(db, USER_ID, 100)
    consumed, used, limit, remaining = check_and_consume(db, USER_ID, "premium_monthly", 10)

    assert consumed is True
    assert (used, limit, remaining) == (110, None, None)


# ============================================
# Question feature gating
# ============================================

def test_free_user_can_generate_questions_until_quota_used(db):
    assert subscription_service.can_use_feature(db, USER_ID, "question", 5) is True
    assert subscription_service.can_use_feature(db, USER_ID, "question", 6) is False

    track_usage(db, USER_ID, 5)
    assert subscription_service.can_use_feature(db, USER_ID, "question") is False


def test_premium_user_questions_unlimited(db, premium_subscription):
    track_usage(db, USER_ID, 500)
    assert subscription_service.can_use_feature(db, USER_ID, "question", 10) is True


def test_user_usage_uses_subscription_plan(db, premium_subscription):
    usage = subscription_service.get_user_usage(db, USER_ID)
    assert usage["plan"] == "premium_monthly"
    assert usage["is_premium"] is True
