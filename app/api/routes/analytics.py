"""
Analytics endpoints.

Summary statistics for the history page and the premium insights dashboard.
Results are computed from stored sessions on every request.
"""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query

from app.core.auth_dependency import get_current_user
from app.core.config import DEFAULT_TIME_RANGE
from app.repositories.session_repository import (
    SessionRepository,
    SessionStoreError,
    get_session_repository,
)
from app.schemas.analytics import HistorySummary, UserInsights
from app.services import session_service
from app.services.session_service import TIME_RANGE_PATTERN
from app.services.subscription_service import require_feature

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/analytics", tags=["Analytics"])


@router.get("/summary", status_code=status.HTTP_200_OK, response_model=Optional[HistorySummary])
def get_summary(
    time_range: str = Query(DEFAULT_TIME_RANGE, pattern=TIME_RANGE_PATTERN, description="7d, 30d, 90d, 1y or all"),
    user_id: str = Depends(get_current_user),
    repo: SessionRepository = Depends(get_session_repository)
):
    """
    Get history summary statistics for the authenticated user.
    
    Returns null when there are no sessions in the time range.
    """
    try:
        return session_service.get_user_analytics(repo, user_id, time_range)
    except SessionStoreError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"error": e.kind.value, "message": e.message}
        )
    except Exception as e:
        logger.error(f"Failed to compute summary: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to compute analytics"
        )


@router.get("/insights", status_code=status.HTTP_200_OK, response_model=UserInsights)
def get_insights(
    time_range: str = Query("90d", pattern=TIME_RANGE_PATTERN, description="7d, 30d, 90d, 1y or all"),
    utc_offset: int = Query(0, ge=-840, le=840, description="Client offset from UTC in minutes (120 for UTC+2)"),
    user_id: str = Depends(require_feature("analytics")),
    repo: SessionRepository = Depends(get_session_repository)
):
    """
    Get advanced performance insights (Premium).
    
    Always returns a well-formed result; with no sessions most values are 0.
    """
    try:
        return session_service.get_user_insights(repo, user_id, time_range, utc_offset)
    except SessionStoreError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"error": e.kind.value, "message": e.message}
        )
    except Exception as e:
        logger.error(f"Failed to generate insights: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to generate insights"
        )
