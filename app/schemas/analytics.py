"""
Pydantic schemas for derived session analytics.

These results are recomputed on every request and never persisted.
Attributes are snake_case; JSON keys are camelCase for the browser client.
"""
from datetime import datetime
from typing import Optional, List, Dict
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from app.schemas.session import SessionRecord


class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True


class ScoreDistribution(CamelModel):
    """Bucket counts for a score series."""
    excellent: int = 0
    good: int = 0
    fair: int = 0
    poor: int = 0


class PerformanceAnalysis(CamelModel):
    current_level: str = Field(..., description="expert, proficient, developing, beginner or needs_improvement")
    improvement_rate: float = Field(..., description="Percent change of recent vs earliest window average")
    consistency: float = Field(..., ge=0, le=10)
    performance_stability: float = Field(..., ge=0, le=10)
    trend_direction: str = Field(..., description="improving, declining or stable")
    score_distribution: ScoreDistribution
    performance_variability: float = Field(..., ge=0)


class SkillTrend(CamelModel):
    skill: str
    current_level: float = Field(..., ge=0, le=10)
    trend: float
    improvement_rate: float


class AreaFrequency(CamelModel):
    area: str
    frequency: float = Field(..., ge=0, le=1)


class EmergingStrength(CamelModel):
    skill: str
    trend: float


class SkillsGapAnalysis(CamelModel):
    skills_trends: List[SkillTrend] = Field(default_factory=list)
    persistent_gaps: List[AreaFrequency] = Field(default_factory=list)
    emerging_strengths: List[EmergingStrength] = Field(default_factory=list)
    priority_areas: List[AreaFrequency] = Field(default_factory=list)


class JobTypeConfidence(CamelModel):
    job_type: str
    average_confidence: float = Field(..., ge=0, le=10)
    session_count: int


class SessionTypeConfidence(CamelModel):
    session_type: str
    average_confidence: float = Field(..., ge=0, le=10)
    session_count: int


class ConfidencePatterns(CamelModel):
    average_by_session_type: List[SessionTypeConfidence] = Field(default_factory=list)
    trend_over_time: float = 0


class ConfidenceTrends(CamelModel):
    overall_trend: float = 0
    confidence_by_job_type: List[JobTypeConfidence] = Field(default_factory=list)
    confidence_patterns: ConfidencePatterns = Field(default_factory=ConfidencePatterns)
    confidence_volatility: float = Field(0, ge=0)
    confidence_correlations: float = Field(0, ge=-1, le=1, description="Pearson r between confidence and overall score")


class QuestionTypePerformance(CamelModel):
    type: str
    average_score: float = Field(..., ge=0, le=10)
    total_questions: int
    trend: float


class TimeSlotPerformance(CamelModel):
    time_slot: str = Field(..., description="morning, afternoon or evening")
    average_score: float = Field(..., ge=0, le=10)
    session_count: int


class IndustryBenchmarks(CamelModel):
    average_score: float
    top_percentile: float
    industry_median: float
    your_ranking: str


class PredictiveInsights(CamelModel):
    readiness_score: float = Field(0, ge=0, le=10)
    success_probability: float = Field(0, ge=0, le=1)
    recommended_practice_areas: List[str] = Field(default_factory=list)
    time_to_improvement: str = "8-12 weeks"
    risk_factors: List[str] = Field(default_factory=list)
    opportunity_areas: List[str] = Field(default_factory=list)


class Recommendation(CamelModel):
    type: str = Field(..., description="urgent, development or skill")
    category: str
    title: str
    description: str
    actions: List[str] = Field(default_factory=list)
    priority: str = Field(..., description="high, medium or low")
    estimated_impact: str


class UserInsights(CamelModel):
    """Full insights result for the advanced analytics dashboard."""
    performance_analysis: PerformanceAnalysis
    skills_gap_analysis: SkillsGapAnalysis
    confidence_trends: ConfidenceTrends
    question_type_performance: List[QuestionTypePerformance] = Field(default_factory=list)
    time_based_patterns: List[TimeSlotPerformance] = Field(default_factory=list)
    industry_benchmarks: IndustryBenchmarks
    predictive_insights: PredictiveInsights
    personalized_recommendations: List[Recommendation] = Field(default_factory=list)


class ScoreTrendPoint(CamelModel):
    date: datetime
    overall: float = 0
    confidence: float = 0
    technical: float = 0
    behavioral: float = 0


class HistorySummary(CamelModel):
    """Summary cards and charts for the interview history page."""
    total_sessions: int
    avg_overall_score: float = Field(..., ge=0, le=10)
    avg_confidence_score: float = Field(..., ge=0, le=10)
    avg_technical_score: float = Field(..., ge=0, le=10)
    avg_behavioral_score: float = Field(..., ge=0, le=10)
    score_trend: List[ScoreTrendPoint] = Field(default_factory=list)
    job_types: Dict[str, int] = Field(default_factory=dict)
    improvement_areas: Dict[str, int] = Field(default_factory=dict)
    total_practice_time: int = Field(0, description="Seconds")
    streak_days: int = 0
    best_score: float = Field(0, ge=0, le=10)
    most_recent_session: Optional[SessionRecord] = None


class HistoryExport(CamelModel):
    """Downloadable copy of the user's (filtered) interview history."""
    sessions: List[SessionRecord] = Field(default_factory=list)
    analytics: Optional[HistorySummary] = None
    export_date: datetime
