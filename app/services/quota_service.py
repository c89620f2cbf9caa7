"""
Quota service for monthly question usage.

Free plans get a fixed number of generated interview questions per calendar
month (UTC); premium plans are unlimited. Usage rows live in usage_tracking.
Callers resolve the user's plan first (subscription_service.get_plan_for_user).
"""
import logging
from typing import Dict, Optional, Tuple
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.plan_limits import PREMIUM_PLANS, get_question_limit
from app.db.models.usage import UsageRecord

logger = logging.getLogger(__name__)

QUESTION_FEATURE = "question"


def get_month_usage(db: Session, user_id: str, month_key: Optional[str] = None) -> int:
    """
    Total questions used by a user in a month.

    Args:
        db: Database session
        user_id: Auth user id
        month_key: "YYYY-MM", defaults to the current month
    """
    month_key = month_key or UsageRecord.get_month_key()
    total = db.query(func.sum(UsageRecord.questions_used)).filter(
        UsageRecord.user_id == user_id,
        UsageRecord.feature_type == QUESTION_FEATURE,
        UsageRecord.month_key == month_key,
    ).scalar()
    return int(total or 0)


def track_usage(db: Session, user_id: str, question_count: int = 1, feature_type: str = QUESTION_FEATURE) -> UsageRecord:
    """Record usage without checking the quota."""
    record = UsageRecord(
        user_id=user_id,
        feature_type=feature_type,
        questions_used=question_count,
        month_key=UsageRecord.get_month_key(),
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


def remaining_questions(used: int, limit: Optional[int]) -> Optional[int]:
    """Remaining quota, None for unlimited."""
    return None if limit is None else max(0, limit - used)


def get_usage(db: Session, user_id: str, plan: str) -> Dict:
    """
    Current month usage formatted for GET /me/usage.

    Returns:
        Dictionary with plan, month_key, used, limit, remaining, unlimited, is_premium
    """
    month_key = UsageRecord.get_month_key()
    used = get_month_usage(db, user_id, month_key)
    limit = get_question_limit(plan)

    return {
        "plan": plan,
        "month_key": month_key,
        "used": used,
        "limit": limit,
        "remaining": remaining_questions(used, limit),
        "unlimited": limit is None,
        "is_premium": plan in PREMIUM_PLANS,
    }


def check_and_consume(
    db: Session,
    user_id: str,
    plan: str,
    count: int = 1,
) -> Tuple[bool, int, Optional[int], Optional[int]]:
    """
    Check the question quota and record usage if allowed.

    Returns:
        Tuple of (consumed, used, limit, remaining)
        - consumed: False when the request would exceed the limit
        - used: month total after this request (unchanged when refused)
        - limit: plan limit, None for unlimited
        - remaining: quota left, None for unlimited

    Note:
        A refused request records nothing.
    """
    current = get_month_usage(db, user_id)
    limit = get_question_limit(plan)

    if limit is not None and current + count > limit:
        logger.info(
            f"Question quota exceeded: user_id={user_id}, plan={plan}, "
            f"used={current}/{limit}, requested={count}"
        )
        return False, current, limit, remaining_questions(current, limit)

    track_usage(db, user_id, count)
    used = current + count

    logger.info(f"Questions consumed: user_id={user_id}, plan={plan}, count={count}, used={used}/{'unlimited' if limit is None else limit}")
    return True, used, limit, remaining_questions(used, limit)
