"""
Plan endpoint.

Lets the client show plan badges and hide premium-only features.
"""
import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.core.auth_dependency import get_current_user, get_db
from app.services.subscription_service import describe_plan

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/me", tags=["Plan"])


@router.get("/plan", status_code=status.HTTP_200_OK)
def get_plan(
    user_id: str = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Get the authenticated user's plan.
    
    Returns:
    - plan: free, premium_monthly or premium_yearly
    - is_premium: whether premium features are unlocked
    - monthly_question_limit: generated questions per month (null for unlimited)
    """
    plan = describe_plan(db, user_id)
    logger.debug(f"Plan requested: user_id={user_id}, plan={plan['plan']}")
    return plan
