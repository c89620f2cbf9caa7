"""
Session history service.

Saves completed interview sessions and reads them back for the history
page and the analytics dashboards. Storage goes through a SessionRepository,
so these functions work the same against the database or the local cache.
"""
import logging
from datetime import date, datetime, timedelta
from typing import List, Optional

from app.core.logging_config import sanitize_log_data
from app.repositories.session_repository import SessionRepository
from app.schemas.analytics import HistoryExport, HistorySummary, UserInsights
from app.schemas.session import SessionCreate, SessionRecord
from app.services import analytics_service

logger = logging.getLogger(__name__)

# Supported look-back windows; "all" means no lower bound
TIME_RANGES = {
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
    "90d": timedelta(days=90),
    "1y": timedelta(days=365),
    "all": None,
}
TIME_RANGE_PATTERN = "^(7d|30d|90d|1y|all)$"

# Left out of debug logs
_BULKY_FIELDS = {"questions_data", "responses_data", "analysis_results"}


def get_range_start(time_range: str, now: Optional[datetime] = None) -> Optional[datetime]:
    """
    Convert a time range key into the earliest timestamp it covers.

    Raises:
        ValueError: Unknown time range
    """
    if time_range not in TIME_RANGES:
        raise ValueError(f"Unsupported time range: {time_range}")
    window = TIME_RANGES[time_range]
    if window is None:
        return None
    return (now or datetime.utcnow()) - window


def save_session(repo: SessionRepository, user_id: str, data: SessionCreate) -> SessionRecord:
    logger.debug(f"Saving session: {sanitize_log_data(data.model_dump(exclude=_BULKY_FIELDS))}")
    record = repo.add(user_id, data)
    logger.debug(
        f"Session stored: user_id={user_id}, session_id={record.id}, "
        f"backend={repo.backend_name}, overall_score={record.overall_score}"
    )
    return record


def get_user_sessions(
    repo: SessionRepository,
    user_id: str,
    limit: int = 50,
    offset: int = 0,
) -> List[SessionRecord]:
    """Interview history, newest first."""
    return repo.list_for_user(user_id, limit=limit, offset=offset, newest_first=True)


def get_session_by_id(repo: SessionRepository, user_id: str, session_id: int) -> Optional[SessionRecord]:
    return repo.get(user_id, session_id)


def get_sessions_in_range(
    repo: SessionRepository,
    user_id: str,
    time_range: str,
    now: Optional[datetime] = None,
) -> List[SessionRecord]:
    """Sessions inside the time range, oldest first (the order analytics expect)."""
    since = get_range_start(time_range, now)
    return repo.list_for_user(user_id, since=since, newest_first=False)


def filter_sessions(
    sessions: List[SessionRecord],
    search: Optional[str] = None,
    job_title: Optional[str] = None,
    min_score: Optional[float] = None,
    max_score: Optional[float] = None,
) -> List[SessionRecord]:
    """
    Apply history page filters.

    Args:
        sessions: Sessions to filter (order is preserved)
        search: Case-insensitive substring of job title or company name
        job_title: Exact job title
        min_score: Inclusive lower bound on overall score (missing counts as 0)
        max_score: Inclusive upper bound on overall score
    """
    filtered = list(sessions)

    if search:
        needle = search.lower()
        filtered = [
            s for s in filtered
            if needle in (s.job_title or "").lower() or needle in (s.company_name or "").lower()
        ]

    if job_title:
        filtered = [s for s in filtered if s.job_title == job_title]

    if min_score is not None:
        filtered = [s for s in filtered if (s.overall_score or 0) >= min_score]

    if max_score is not None:
        filtered = [s for s in filtered if (s.overall_score or 0) <= max_score]

    return filtered


def get_user_analytics(
    repo: SessionRepository,
    user_id: str,
    time_range: str = "30d",
    today: Optional[date] = None,
) -> Optional[HistorySummary]:
    """History summary for the time range, or None when it holds no sessions."""
    sessions = get_sessions_in_range(repo, user_id, time_range)
    return analytics_service.calculate_summary(sessions, today)


def get_user_insights(
    repo: SessionRepository,
    user_id: str,
    time_range: str = "90d",
    utc_offset_minutes: int = 0,
) -> UserInsights:
    sessions = get_sessions_in_range(repo, user_id, time_range)
    logger.info(f"Insights requested: user_id={user_id}, time_range={time_range}, sessions={len(sessions)}")
    return analytics_service.generate_user_insights(sessions, utc_offset_minutes)


def export_history(
    repo: SessionRepository,
    user_id: str,
    time_range: str = "30d",
    search: Optional[str] = None,
    job_title: Optional[str] = None,
    min_score: Optional[float] = None,
    max_score: Optional[float] = None,
) -> HistoryExport:
    """Filtered history plus the time-range summary, ready to download as JSON."""
    sessions = repo.list_for_user(user_id, newest_first=True)
    return HistoryExport(
        sessions=filter_sessions(sessions, search, job_title, min_score, max_score),
        analytics=get_user_analytics(repo, user_id, time_range),
        export_date=datetime.utcnow(),
    )
