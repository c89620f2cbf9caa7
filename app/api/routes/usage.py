"""
Question usage endpoints.

Free plans get a monthly quota of generated interview questions; the client
records each batch here before showing it.
"""
import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.core.auth_dependency import get_current_user, get_db
from app.core.config import FRONTEND_URL
from app.schemas.usage import QuestionUsageRequest, QuotaExceededResponse, UsageResponse
from app.services import quota_service
from app.services.subscription_service import get_plan_for_user, get_user_usage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/me", tags=["Usage"])


@router.get("/usage", status_code=status.HTTP_200_OK, response_model=UsageResponse)
def get_usage(
    user_id: str = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Get current month question usage for the authenticated user.
    
    Returns:
    - plan: Current plan
    - month_key: Current month in YYYY-MM format
    - used / limit / remaining: limit and remaining are null when unlimited
    """
    usage = get_user_usage(db, user_id)
    logger.debug(f"Usage requested: user_id={user_id}, plan={usage['plan']}, used={usage['used']}")
    return usage


@router.post(
    "/usage/questions",
    status_code=status.HTTP_200_OK,
    response_model=UsageResponse,
    responses={429: {"model": QuotaExceededResponse}},
)
def record_questions(
    payload: QuestionUsageRequest,
    user_id: str = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Record generated interview questions against the monthly quota.
    
    Raises:
        HTTPException 429: The batch would exceed the free plan's monthly limit
    """
    plan = get_plan_for_user(db, user_id)

    try:
        consumed, used, limit, remaining = quota_service.check_and_consume(db, user_id, plan, payload.count)
    except Exception as e:
        db.rollback()
        logger.error(f"Failed to record question usage: user_id={user_id}, error={e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to record usage"
        )

    if not consumed:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=QuotaExceededResponse(
                plan=plan,
                limit=limit,
                used=used,
                remaining=remaining,
                message=(
                    f"You have reached your monthly limit of {limit} interview questions. "
                    "Upgrade to Premium for unlimited practice."
                ),
                upgrade_url=f"{FRONTEND_URL}/pricing",
            ).model_dump()
        )

    return get_user_usage(db, user_id)
