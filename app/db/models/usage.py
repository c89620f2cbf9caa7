from sqlalchemy import Column, Integer, String, DateTime, Index
from datetime import datetime
from app.db.base import Base


class UsageRecord(Base):
    """
    One metered use of a plan-limited feature (generated interview questions).

    month_key allows monthly totals without date-range arithmetic.
    """
    __tablename__ = "usage_tracking"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, nullable=False, index=True)  # Supabase auth user id
    feature_type = Column(String, nullable=False, default="question")
    questions_used = Column(Integer, default=1, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    month_key = Column(String(7), nullable=False, index=True)  # "YYYY-MM"

    __table_args__ = (
        Index('idx_usage_user_feature_month', 'user_id', 'feature_type', 'month_key'),
    )

    @staticmethod
    def get_month_key(moment: datetime = None) -> str:
        """Month key in YYYY-MM format (UTC)."""
        return (moment or datetime.utcnow()).strftime("%Y-%m")
