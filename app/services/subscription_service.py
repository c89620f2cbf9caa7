"""
Subscription lookups and premium feature gating.

Subscriptions are written by the external billing webhook; this service only
reads them. A user without a subscription row is on the free plan.
"""
import logging
from typing import Optional
from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from app.core.auth_dependency import get_current_user, get_db
from app.core.config import FRONTEND_URL
from app.core.plan_limits import (
    FREE_PLAN,
    PREMIUM_PLANS,
    get_question_limit,
    is_premium_feature,
    normalize_plan,
)
from app.db.models.subscription import Subscription
from app.services import quota_service

logger = logging.getLogger(__name__)


def get_user_subscription(db: Session, user_id: str) -> Optional[Subscription]:
    return db.query(Subscription).filter(Subscription.user_id == user_id).first()


def get_plan_for_user(db: Session, user_id: str) -> str:
    """
    Get the user's plan, defaulting to 'free'.
    
    Falls back to 'free' when the subscription table cannot be read, so a
    billing outage never locks users out of basic features.
    """
    try:
        subscription = get_user_subscription(db, user_id)
    except SQLAlchemyError as e:
        logger.warning(f"Subscription lookup failed, treating user as free: user_id={user_id}, error={e}")
        db.rollback()
        return FREE_PLAN

    if not subscription or subscription.status != "active":
        return FREE_PLAN
    return normalize_plan(subscription.plan_type)


def has_premium_access(db: Session, user_id: str) -> bool:
    return get_plan_for_user(db, user_id) in PREMIUM_PLANS


def get_user_usage(db: Session, user_id: str) -> dict:
    """Current month question usage against the user's plan."""
    return quota_service.get_usage(db, user_id, get_plan_for_user(db, user_id))


def can_use_feature(db: Session, user_id: str, feature: str, count: int = 1) -> bool:
    """
    Whether the user may use a feature.

    Premium users can use everything. Free users may generate questions while
    their monthly quota covers count, and cannot use premium-only features.
    """
    if has_premium_access(db, user_id):
        return True
    if feature == quota_service.QUESTION_FEATURE:
        return get_user_usage(db, user_id)["remaining"] >= count
    return not is_premium_feature(feature)


def describe_plan(db: Session, user_id: str) -> dict:
    plan = get_plan_for_user(db, user_id)
    return {
        "plan": plan,
        "is_premium": plan in PREMIUM_PLANS,
        "monthly_question_limit": get_question_limit(plan),
    }


def require_feature(feature: str):
    """
    Dependency that enforces plan access to a feature.
    
    Returns:
        The current user id if allowed
        
    Raises:
        HTTPException 402: Feature requires a premium plan
    """
    def feature_checker(
        user_id: str = Depends(get_current_user),
        db: Session = Depends(get_db),
    ) -> str:
        if can_use_feature(db, user_id, feature):
            return user_id

        logger.warning(f"Feature access denied: user_id={user_id}, feature={feature}")
        raise HTTPException(
            status_code=status.HTTP_402_PAYMENT_REQUIRED,
            detail={
                "detail": "This feature requires a Premium plan. Upgrade to unlock.",
                "code": "PAYWALL",
                "feature": feature,
                "upgrade_url": f"{FRONTEND_URL}/pricing",
                "required_plan": "premium",
            }
        )

    return feature_checker
