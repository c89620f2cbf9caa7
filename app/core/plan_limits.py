"""
Subscription plan configuration.

Single source of truth for plan ids, monthly question limits and
premium-only features. None means unlimited.
"""
from typing import Dict, Optional, List

from app.core.config import FREE_MONTHLY_QUESTION_LIMIT

FREE_PLAN = "free"
PREMIUM_PLANS: List[str] = ["premium_monthly", "premium_yearly"]

# Features only available on a premium plan
PREMIUM_FEATURES: List[str] = [
    "voice",
    "analytics",
    "history",
    "custom",
]

# Generated interview questions per month
MONTHLY_QUESTION_LIMITS: Dict[str, Optional[int]] = {
    "free": FREE_MONTHLY_QUESTION_LIMIT,
    "premium_monthly": None,  # Unlimited
    "premium_yearly": None,
}


def normalize_plan(plan_type: Optional[str]) -> str:
    """Unknown or missing plans are treated as free."""
    plan_type = plan_type.lower() if plan_type else FREE_PLAN
    return plan_type if plan_type in MONTHLY_QUESTION_LIMITS else FREE_PLAN


def get_question_limit(plan_type: str) -> Optional[int]:
    return MONTHLY_QUESTION_LIMITS[normalize_plan(plan_type)]


def is_premium_feature(feature: str) -> bool:
    return feature in PREMIUM_FEATURES
