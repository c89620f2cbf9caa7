"""
Session storage behind one interface.

Two interchangeable backends:
- SqlSessionRepository: the relational database (SQLAlchemy)
- LocalSessionRepository: a JSON file cache used when the database is unreachable

The backend is chosen once by a capability check (configure_session_backend),
not by per-call fallbacks. Storage failures raise SessionStoreError with a
FailureKind instead of free-form messages.
"""
import enum
import errno
import json
import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from fastapi import Depends
from sqlalchemy import desc, text
from sqlalchemy.exc import DataError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core import config
from app.core.auth_dependency import get_db
from app.db.models.interview_session import InterviewSession
from app.schemas.session import SessionCreate, SessionRecord

logger = logging.getLogger(__name__)

SQL_BACKEND = "sql"
LOCAL_BACKEND = "local"


class FailureKind(str, enum.Enum):
    """Why a storage operation failed."""
    NETWORK_ERROR = "network_error"
    QUOTA_EXCEEDED = "quota_exceeded"
    UNSUPPORTED_FORMAT = "unsupported_format"
    NOT_AVAILABLE = "not_available"


class SessionStoreError(Exception):
    """Raised by repositories; carries a FailureKind."""

    def __init__(self, kind: FailureKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message

    def __str__(self):
        return f"{self.kind.value}: {self.message}"


class SessionRepository(ABC):
    """Abstract store for completed interview sessions."""

    backend_name: str = ""

    @abstractmethod
    def add(self, user_id: str, data: SessionCreate) -> SessionRecord:
        """Persist a completed session and return the stored record."""
        pass

    @abstractmethod
    def list_for_user(
        self,
        user_id: str,
        since: Optional[datetime] = None,
        limit: Optional[int] = None,
        offset: int = 0,
        newest_first: bool = True,
    ) -> List[SessionRecord]:
        """
        List a user's sessions ordered by created_at.

        Args:
            user_id: Owner's auth user id
            since: Only sessions created at or after this time
            limit: Maximum rows (None for all)
            offset: Rows to skip
            newest_first: Descending order when True, ascending otherwise
        """
        pass

    @abstractmethod
    def get(self, user_id: str, session_id: int) -> Optional[SessionRecord]:
        """Fetch one session owned by user_id, or None."""
        pass


# ============================================
# SQL backend
# ============================================

class SqlSessionRepository(SessionRepository):
    backend_name = SQL_BACKEND

    def __init__(self, db: Session):
        self.db = db

    def _fail(self, action: str, error: SQLAlchemyError) -> SessionStoreError:
        self.db.rollback()
        if isinstance(error, DataError):
            kind = FailureKind.UNSUPPORTED_FORMAT
        elif isinstance(error, OperationalError):
            kind = FailureKind.NETWORK_ERROR
        else:
            kind = FailureKind.NOT_AVAILABLE
        logger.error(f"Session store {action} failed ({kind.value}): {error}", exc_info=True)
        return SessionStoreError(kind, f"Failed to {action}")

    def add(self, user_id: str, data: SessionCreate) -> SessionRecord:
        values = data.model_dump(exclude_none=True)
        row = InterviewSession(user_id=user_id, **values)
        try:
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
        except SQLAlchemyError as e:
            raise self._fail("save session", e)

        logger.info(f"Session saved: user_id={user_id}, session_id={row.id}")
        return SessionRecord.model_validate(row)

    def list_for_user(
        self,
        user_id: str,
        since: Optional[datetime] = None,
        limit: Optional[int] = None,
        offset: int = 0,
        newest_first: bool = True,
    ) -> List[SessionRecord]:
        query = self.db.query(InterviewSession).filter(InterviewSession.user_id == user_id)
        if since is not None:
            query = query.filter(InterviewSession.created_at >= since)

        if newest_first:
            query = query.order_by(desc(InterviewSession.created_at), desc(InterviewSession.id))
        else:
            query = query.order_by(InterviewSession.created_at, InterviewSession.id)

        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)

        try:
            rows = query.all()
        except SQLAlchemyError as e:
            raise self._fail("fetch sessions", e)
        return [SessionRecord.model_validate(row) for row in rows]

    def get(self, user_id: str, session_id: int) -> Optional[SessionRecord]:
        try:
            row = self.db.query(InterviewSession).filter(
                InterviewSession.id == session_id,
                InterviewSession.user_id == user_id,
            ).first()
        except SQLAlchemyError as e:
            raise self._fail("fetch session", e)
        return SessionRecord.model_validate(row) if row else None


# ============================================
# Local JSON cache backend
# ============================================

_file_locks: Dict[str, threading.Lock] = {}
_file_locks_guard = threading.Lock()


def _lock_for(path: Path) -> threading.Lock:
    with _file_locks_guard:
        return _file_locks.setdefault(str(path.resolve()), threading.Lock())


class LocalSessionRepository(SessionRepository):
    """Sessions kept in a single JSON document on local disk."""

    backend_name = LOCAL_BACKEND

    def __init__(self, path: Optional[str] = None):
        self.path = Path(path or config.LOCAL_SESSION_STORE_PATH)
        self._lock = _lock_for(self.path)

    def _read(self) -> List[dict]:
        if not self.path.exists():
            return []
        try:
            document = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except json.JSONDecodeError as e:
            logger.error(f"Local session cache is corrupted: {self.path}: {e}")
            raise SessionStoreError(FailureKind.UNSUPPORTED_FORMAT, "Local session cache is not valid JSON")
        except OSError as e:
            raise SessionStoreError(FailureKind.NOT_AVAILABLE, f"Cannot read local session cache: {e}")

        sessions = document.get("sessions", []) if isinstance(document, dict) else None
        if not isinstance(sessions, list):
            raise SessionStoreError(FailureKind.UNSUPPORTED_FORMAT, "Local session cache has an unexpected layout")
        return sessions

    def _write(self, sessions: List[dict]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
            tmp_path.write_text(json.dumps({"sessions": sessions}, indent=2), encoding="utf-8")
            tmp_path.replace(self.path)
        except OSError as e:
            kind = FailureKind.QUOTA_EXCEEDED if e.errno in (errno.ENOSPC, errno.EDQUOT) else FailureKind.NOT_AVAILABLE
            logger.error(f"Failed to write local session cache ({kind.value}): {e}")
            raise SessionStoreError(kind, "Failed to save session locally")

    def _records(self, user_id: str) -> List[SessionRecord]:
        return [
            SessionRecord.model_validate(raw)
            for raw in self._read()
            if raw.get("user_id") == user_id
        ]

    def add(self, user_id: str, data: SessionCreate) -> SessionRecord:
        with self._lock:
            sessions = self._read()
            next_id = max((raw.get("id", 0) for raw in sessions), default=0) + 1
            values = data.model_dump()
            values["created_at"] = values.get("created_at") or datetime.utcnow()
            record = SessionRecord(id=next_id, user_id=user_id, **values)
            sessions.append(record.model_dump(mode="json"))
            self._write(sessions)

        logger.info(f"Session saved locally: user_id={user_id}, session_id={record.id}")
        return record

    def list_for_user(
        self,
        user_id: str,
        since: Optional[datetime] = None,
        limit: Optional[int] = None,
        offset: int = 0,
        newest_first: bool = True,
    ) -> List[SessionRecord]:
        with self._lock:
            records = self._records(user_id)

        if since is not None:
            records = [r for r in records if r.created_at >= since]
        records.sort(key=lambda r: (r.created_at, r.id), reverse=newest_first)

        end = None if limit is None else offset + limit
        return records[offset:end]

    def get(self, user_id: str, session_id: int) -> Optional[SessionRecord]:
        with self._lock:
            records = self._records(user_id)
        return next((r for r in records if r.id == session_id), None)


# ============================================
# Backend selection
# ============================================

_selected_backend: Optional[str] = None


def check_database_available(bind=None) -> bool:
    """Capability check: can we run a trivial query against the database?"""
    if bind is None:
        from app.db.session import engine as bind
    try:
        with bind.connect() as connection:
            connection.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as e:
        logger.warning(f"Database unavailable, sessions will use the local cache: {e}")
        return False


def configure_session_backend(bind=None) -> str:
    """Pick the storage backend once; called at application startup."""
    global _selected_backend
    _selected_backend = SQL_BACKEND if check_database_available(bind) else LOCAL_BACKEND
    logger.info(f"Session storage backend: {_selected_backend}")
    return _selected_backend


def get_selected_backend() -> str:
    if _selected_backend is None:
        configure_session_backend()
    return _selected_backend


def get_session_repository(db: Session = Depends(get_db)) -> SessionRepository:
    """FastAPI dependency returning the configured repository."""
    if get_selected_backend() == SQL_BACKEND:
        return SqlSessionRepository(db)
    return LocalSessionRepository()
