"""
InterviewSession model for completed practice interviews.
"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, DateTime, Float, Boolean, JSON, Index
from app.db.base import Base


class InterviewSession(Base):
    """
    One completed practice interview.
    
    Scores, improvement areas and per-question evaluations are produced by the
    remote evaluator and stored verbatim. Rows are never updated after insert.
    """
    __tablename__ = "interview_sessions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, nullable=False, index=True)  # Supabase auth user id
    job_title = Column(String, nullable=True)
    company_name = Column(String, nullable=True)
    session_type = Column(String, default="practice")  # practice / mock / quick

    questions_data = Column(JSON, nullable=True)  # [{"question", "category", ...}]
    responses_data = Column(JSON, nullable=True)
    analysis_results = Column(JSON, nullable=True)  # per-question evaluations, "score" on 0-10

    overall_score = Column(Float, nullable=True)
    confidence_score = Column(Float, nullable=True)
    technical_score = Column(Float, nullable=True)
    behavioral_score = Column(Float, nullable=True)
    communication_score = Column(Float, nullable=True)

    session_duration = Column(Integer, default=0)  # seconds
    voice_enabled = Column(Boolean, default=False)
    job_description = Column(Text, nullable=True)
    feedback_summary = Column(Text, nullable=True)
    improvement_areas = Column(JSON, nullable=True)
    strengths_identified = Column(JSON, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    __table_args__ = (
        Index('idx_sessions_user_created', 'user_id', 'created_at'),
    )

    def __repr__(self):
        return f"<InterviewSession(id={self.id}, user_id={self.user_id}, job_title={self.job_title})>"
