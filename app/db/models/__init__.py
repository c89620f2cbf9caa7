"""
Database models module.

This module imports all database models to ensure they are registered with SQLAlchemy's Base.metadata
before table creation.
"""
from app.db.models.interview_session import InterviewSession
from app.db.models.subscription import Subscription
from app.db.models.usage import UsageRecord

__all__ = [
    "InterviewSession",
    "Subscription",
    "UsageRecord",
]
