"""
Interview session endpoints.

Save completed practice interviews and browse the interview history.
Saving is open to every plan; reading the history back is a Premium feature.
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
from app.schemas.analytics import HistoryExport
from app.schemas.session import SessionCreate, SessionRecord, SessionListResponse
from app.services import session_service
from app.services.session_service import TIME_RANGE_PATTERN
from app.services.subscription_service import require_feature

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sessions", tags=["Sessions"])


def store_unavailable(e: SessionStoreError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail={"error": e.kind.value, "message": e.message}
    )


@router.post("", status_code=status.HTTP_201_CREATED, response_model=SessionRecord)
def save_session(
    payload: SessionCreate,
    user_id: str = Depends(get_current_user),
    repo: SessionRepository = Depends(get_session_repository)
):
    """
    Save a completed interview session.
    
    Scores and feedback come from the remote evaluator and are stored as sent.
    """
    try:
        return session_service.save_session(repo, user_id, payload)
    except SessionStoreError as e:
        raise store_unavailable(e)
    except Exception as e:
        logger.error(f"Failed to save session: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save session"
        )


@router.get("", status_code=status.HTTP_200_OK, response_model=SessionListResponse)
def list_sessions(
    search: Optional[str] = Query(None, description="Search job title or company"),
    job_title: Optional[str] = Query(None, description="Exact job title"),
    min_score: Optional[float] = Query(None, ge=0, le=10, description="Minimum overall score"),
    max_score: Optional[float] = Query(None, ge=0, le=10, description="Maximum overall score"),
    limit: int = Query(50, ge=1, le=200, description="Items per page"),
    offset: int = Query(0, ge=0, description="Items to skip"),
    user_id: str = Depends(require_feature("history")),
    repo: SessionRepository = Depends(get_session_repository)
):
    """
    Get the authenticated user's interview history, newest first.
    
    Filters are applied before pagination; total counts the filtered sessions.
    """
    try:
        sessions = repo.list_for_user(user_id, newest_first=True)
        filtered = session_service.filter_sessions(sessions, search, job_title, min_score, max_score)
        
        logger.debug(f"Sessions listed: user_id={user_id}, total={len(filtered)}")
        
        return SessionListResponse(
            sessions=filtered[offset:offset + limit],
            total=len(filtered),
            limit=limit,
            offset=offset
        )
    except SessionStoreError as e:
        raise store_unavailable(e)
    except Exception as e:
        logger.error(f"Failed to list sessions: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to list sessions"
        )


@router.get("/export", status_code=status.HTTP_200_OK, response_model=HistoryExport)
def export_sessions(
    time_range: str = Query(DEFAULT_TIME_RANGE, pattern=TIME_RANGE_PATTERN),
    search: Optional[str] = Query(None),
    job_title: Optional[str] = Query(None),
    min_score: Optional[float] = Query(None, ge=0, le=10),
    max_score: Optional[float] = Query(None, ge=0, le=10),
    user_id: str = Depends(require_feature("history")),
    repo: SessionRepository = Depends(get_session_repository)
):
    """Download the (filtered) interview history together with its summary."""
    try:
        return session_service.export_history(
            repo, user_id, time_range, search, job_title, min_score, max_score
        )
    except SessionStoreError as e:
        raise store_unavailable(e)
    except Exception as e:
        logger.error(f"Failed to export sessions: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to export sessions"
        )


@router.get("/{session_id}", status_code=status.HTTP_200_OK, response_model=SessionRecord)
def get_session(
    session_id: int,
    user_id: str = Depends(require_feature("history")),
    repo: SessionRepository = Depends(get_session_repository)
):
    """Get one of the authenticated user's sessions."""
    try:
        session = session_service.get_session_by_id(repo, user_id, session_id)
    except SessionStoreError as e:
        raise store_unavailable(e)

    if not session:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Session not found"
        )
    return session
