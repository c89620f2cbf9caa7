"""
Pydantic schemas for interview session records.

Field names mirror the stored columns (snake_case) so rows written by the
browser client, the SQL store and the local cache all share one shape.
"""
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field, field_validator


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalise timestamps to naive UTC, the form the database stores."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class QuestionData(BaseModel):
    """One generated interview question."""
    question: Optional[str] = Field(None, description="Question text")
    category: Optional[str] = Field(None, description="Technical, Behavioral, Communication, Leadership, ...")
    difficulty: Optional[str] = Field(None, description="easy / medium / hard")

    class Config:
        extra = "allow"


class QuestionEvaluation(BaseModel):
    """Remote evaluation of a single answer."""
    score: Optional[float] = Field(None, ge=0, le=10, description="Per-question score 0-10")

    class Config:
        extra = "allow"


class SessionBase(BaseModel):
    """Fields shared by session input and output."""
    job_title: Optional[str] = Field(None, description="Role practiced for")
    company_name: Optional[str] = Field(None, description="Target company")
    session_type: str = Field("practice", description="practice, mock or quick")

    questions_data: List[QuestionData] = Field(default_factory=list)
    responses_data: List[Dict[str, Any]] = Field(default_factory=list)
    analysis_results: List[QuestionEvaluation] = Field(default_factory=list)

    overall_score: Optional[float] = Field(None, ge=0, le=10)
    confidence_score: Optional[float] = Field(None, ge=0, le=10)
    technical_score: Optional[float] = Field(None, ge=0, le=10)
    behavioral_score: Optional[float] = Field(None, ge=0, le=10)
    communication_score: Optional[float] = Field(None, ge=0, le=10)

    session_duration: int = Field(0, ge=0, description="Duration in seconds")
    voice_enabled: bool = False
    job_description: Optional[str] = None
    feedback_summary: Optional[str] = None
    improvement_areas: List[str] = Field(default_factory=list)
    strengths_identified: List[str] = Field(default_factory=list)

    @field_validator(
        "questions_data", "responses_data", "analysis_results",
        "improvement_areas", "strengths_identified",
        mode="before",
    )
    @classmethod
    def _none_as_empty(cls, value):
        return [] if value is None else value

    @field_validator("session_type", mode="before")
    @classmethod
    def _default_session_type(cls, value):
        return value or "practice"

    @field_validator("session_duration", mode="before")
    @classmethod
    def _default_duration(cls, value):
        return value or 0

    @field_validator("voice_enabled", mode="before")
    @classmethod
    def _default_voice(cls, value):
        return bool(value)


class SessionCreate(SessionBase):
    """Schema for saving a completed session."""
    created_at: Optional[datetime] = Field(None, description="Completion time, defaults to now")

    @field_validator("created_at")
    @classmethod
    def _normalise_created_at(cls, value):
        return to_naive_utc(value)

    class Config:
        json_schema_extra = {
            "example": {
                "job_title": "Backend Engineer",
                "company_name": "Acme",
                "session_type": "practice",
                "questions_data": [{"question": "Tell me about a hard bug", "category": "Technical"}],
                "analysis_results": [{"score": 7.5}],
                "overall_score": 7.5,
                "confidence_score": 6.0,
                "technical_score": 8.0,
                "behavioral_score": 7.0,
                "session_duration": 900,
                "improvement_areas": ["Communication"],
            }
        }


class SessionRecord(SessionBase):
    """A stored session, the input of every analytics computation."""
    id: int = Field(..., description="Session ID")
    user_id: str = Field(..., description="Owner's auth user id")
    created_at: datetime = Field(..., description="When the session was completed")

    @field_validator("created_at")
    @classmethod
    def _normalise_created_at(cls, value):
        return to_naive_utc(value)

    class Config:
        from_attributes = True


class SessionListResponse(BaseModel):
    """Schema for session list response."""
    sessions: List[SessionRecord] = Field(..., description="Sessions, newest first")
    total: int = Field(..., description="Number of sessions after filtering")
    limit: int = Field(50, description="Page size")
    offset: int = Field(0, description="Page offset")
