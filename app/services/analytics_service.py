"""
Session analytics service.

Turns a user's completed interview sessions (oldest first) into performance
analytics: trends, consistency, distributions, readiness and recommendations.

Every function here is pure: no I/O, no hidden state. Sparse input degrades
to zeroed results instead of raising, so "no data" is always displayable.
Scores reported by the remote evaluator are read as-is; everything computed
here is derived on demand and never stored.
"""
import logging
import math
from collections import Counter
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Sequence

from app.schemas.session import SessionRecord
from app.schemas.analytics import (
    AreaFrequency,
    ConfidencePatterns,
    ConfidenceTrends,
    EmergingStrength,
    HistorySummary,
    IndustryBenchmarks,
    JobTypeConfidence,
    PerformanceAnalysis,
    PredictiveInsights,
    QuestionTypePerformance,
    Recommendation,
    ScoreDistribution,
    ScoreTrendPoint,
    SessionTypeConfidence,
    SkillsGapAnalysis,
    SkillTrend,
    TimeSlotPerformance,
    UserInsights,
)

logger = logging.getLogger(__name__)

MAX_SCORE = 10.0

# Window sizes (sessions)
RECENT_WINDOW = 5
SHORT_WINDOW = 3
PREDICTIVE_WINDOW = 10

# Slopes smaller than this are treated as flat
SLOPE_EPSILON = 1e-9

# Improvement rate (percent) beyond which a trend is no longer "stable"
TREND_THRESHOLD_PCT = 5

PERSISTENT_GAP_FREQUENCY = 0.3
PRIORITY_AREA_FREQUENCY = 0.4
HIGH_PRIORITY_GAP_FREQUENCY = 0.5

READINESS_WEIGHTS = {
    "recent_performance": 0.3,
    "consistency": 0.2,
    "confidence": 0.2,
    "practice_frequency": 0.15,
    "skills_coverage": 0.15,
}

EXPECTED_SKILLS = ["Technical", "Behavioral", "Communication", "Leadership"]
SKILL_FIELDS = {
    "technical": "technical_score",
    "behavioral": "behavioral_score",
    "communication": "communication_score",
}

PRIORITY_ORDER = {"high": 3, "medium": 2, "low": 1}

# Reference figures until aggregated cross-user data is available
INDUSTRY_BENCHMARKS = {
    "average_score": 6.8,
    "top_percentile": 8.5,
    "industry_median": 6.2,
}

SKILL_SPECIFIC_ACTIONS: Dict[str, List[str]] = {
    "Technical Skills": [
        "Practice coding problems on LeetCode",
        "Review system design concepts",
        "Prepare technical project explanations",
    ],
    "Communication": [
        "Practice explaining complex topics simply",
        "Work on active listening skills",
        "Record yourself speaking to improve clarity",
    ],
    "Leadership": [
        "Prepare leadership scenario examples",
        "Practice conflict resolution stories",
        "Develop team management examples",
    ],
}
DEFAULT_SKILL_ACTIONS = [
    "Research best practices for this area",
    "Practice with mock scenarios",
    "Seek feedback from mentors",
]


# ============================================
# Numeric helpers
# ============================================

def _clamp(value: float, low: float = 0.0, high: float = MAX_SCORE) -> float:
    return min(high, max(low, value))


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _score(value: Optional[float]) -> float:
    """Missing scores count as 0."""
    return float(value or 0)


def _overall(sessions: Sequence[SessionRecord]) -> List[float]:
    return [_score(s.overall_score) for s in sessions]


def _confidence(sessions: Sequence[SessionRecord]) -> List[float]:
    return [_score(s.confidence_score) for s in sessions]


def _pct_change(recent: float, older: float) -> float:
    return ((recent - older) / older) * 100 if older > 0 else 0.0


# ============================================
# Series statistics
# ============================================

def trend(values: Sequence[float]) -> float:
    """
    Ordinary-least-squares slope of values against their 1-based index.

    Returns 0 for fewer than 2 points.
    """
    n = len(values)
    if n < 2:
        return 0.0
    sum_x = n * (n + 1) / 2
    sum_y = sum(values)
    sum_xy = sum((i + 1) * y for i, y in enumerate(values))
    sum_x2 = n * (n + 1) * (2 * n + 1) / 6
    slope = (n * sum_xy - sum_x * sum_y) / (n * sum_x2 - sum_x * sum_x)
    # Rounding noise on flat series
    return 0.0 if abs(slope) < SLOPE_EPSILON else slope


def variability(values: Sequence[float]) -> float:
    """Population standard deviation, 0 for empty input."""
    if not values:
        return 0.0
    mean = _mean(values)
    variance = sum((v - mean) ** 2 for v in values) / len(values)
    return math.sqrt(variance)


def consistency(values: Sequence[float]) -> float:
    """10 minus the standard deviation, floored at 0. Empty input returns 0."""
    if not values:
        return 0.0
    return max(0.0, MAX_SCORE - variability(values))


def volatility(values: Sequence[float]) -> float:
    """Mean absolute difference between consecutive values."""
    if len(values) < 2:
        return 0.0
    changes = [abs(values[i] - values[i - 1]) for i in range(1, len(values))]
    return _mean(changes)


def stability(values: Sequence[float]) -> float:
    """10 minus the volatility; a single point is perfectly stable."""
    if len(values) < 2:
        return MAX_SCORE
    return max(0.0, MAX_SCORE - volatility(values))


def correlation(xs: Sequence[float], ys: Sequence[float]) -> float:
    """Pearson correlation, 0 when undefined."""
    n = min(len(xs), len(ys))
    if n < 2:
        return 0.0
    xs, ys = xs[:n], ys[:n]
    sum_x, sum_y = sum(xs), sum(ys)
    sum_xy = sum(x * y for x, y in zip(xs, ys))
    sum_x2 = sum(x * x for x in xs)
    sum_y2 = sum(y * y for y in ys)
    denominator = (n * sum_x2 - sum_x ** 2) * (n * sum_y2 - sum_y ** 2)
    if denominator <= 0:
        return 0.0
    return _clamp((n * sum_xy - sum_x * sum_y) / math.sqrt(denominator), -1.0, 1.0)


def score_distribution(values: Sequence[float]) -> ScoreDistribution:
    distribution = ScoreDistribution()
    for value in values:
        if value >= 8:
            distribution.excellent += 1
        elif value >= 6:
            distribution.good += 1
        elif value >= 4:
            distribution.fair += 1
        else:
            distribution.poor += 1
    return distribution


def categorize_performance_level(score: float) -> str:
    if score >= 8.5:
        return "expert"
    if score >= 7:
        return "proficient"
    if score >= 5.5:
        return "developing"
    if score >= 4:
        return "beginner"
    return "needs_improvement"


# ============================================
# Performance
# ============================================

def analyze_performance(sessions: Sequence[SessionRecord]) -> PerformanceAnalysis:
    """
    Overall performance level and direction.

    The improvement rate compares the most recent window against the earliest
    one. Windows hold up to 5 sessions but never overlap, so short histories
    compare their first half against their last half.
    """
    overall = _overall(sessions)
    scores = [s for s in overall if s]

    window = min(RECENT_WINDOW, len(sessions) // 2)
    if window:
        improvement_rate = _pct_change(_mean(overall[-window:]), _mean(overall[:window]))
    else:
        improvement_rate = 0.0

    if improvement_rate > TREND_THRESHOLD_PCT:
        direction = "improving"
    elif improvement_rate < -TREND_THRESHOLD_PCT:
        direction = "declining"
    else:
        direction = "stable"

    return PerformanceAnalysis(
        current_level=categorize_performance_level(_mean(overall[-RECENT_WINDOW:])),
        improvement_rate=improvement_rate,
        consistency=consistency(scores),
        performance_stability=stability(scores),
        trend_direction=direction,
        score_distribution=score_distribution(scores),
        performance_variability=variability(scores),
    )


# ============================================
# Skills gaps
# ============================================

def _skill_series(sessions: Sequence[SessionRecord]) -> Dict[str, List[float]]:
    series = {}
    for skill, field in SKILL_FIELDS.items():
        values = [float(getattr(s, field)) for s in sessions if getattr(s, field) is not None]
        if values:
            series[skill] = values
    return series


def _improvement_area_counts(sessions: Sequence[SessionRecord]) -> Counter:
    """Number of sessions each improvement area was raised in."""
    counts = Counter()
    for session in sessions:
        counts.update(dict.fromkeys(session.improvement_areas, 1))
    return counts


def _skill_improvement_rate(values: Sequence[float]) -> float:
    if len(values) < 2:
        return 0.0
    return _pct_change(_mean(values[-SHORT_WINDOW:]), _mean(values[:SHORT_WINDOW]))


def persistent_gaps(sessions: Sequence[SessionRecord]) -> List[AreaFrequency]:
    """Improvement areas raised in at least 30% of sessions."""
    total = len(sessions)
    if not total:
        return []
    return [
        AreaFrequency(area=area, frequency=_clamp(count / total, 0, 1))
        for area, count in _improvement_area_counts(sessions).items()
        if count / total >= PERSISTENT_GAP_FREQUENCY
    ]


def priority_areas(sessions: Sequence[SessionRecord]) -> List[AreaFrequency]:
    """Top 3 improvement areas raised in more than 40% of sessions."""
    total = len(sessions)
    if not total:
        return []
    frequent = [
        (area, count) for area, count in _improvement_area_counts(sessions).items()
        if count / total > PRIORITY_AREA_FREQUENCY
    ]
    frequent.sort(key=lambda item: item[1], reverse=True)
    return [
        AreaFrequency(area=area, frequency=_clamp(count / total, 0, 1))
        for area, count in frequent[:3]
    ]


def analyze_skills_gaps(sessions: Sequence[SessionRecord]) -> SkillsGapAnalysis:
    series = _skill_series(sessions)

    skills_trends = [
        SkillTrend(
            skill=skill,
            current_level=_clamp(_mean(values[-SHORT_WINDOW:])),
            trend=trend(values),
            improvement_rate=_skill_improvement_rate(values),
        )
        for skill, values in series.items()
    ]

    emerging = [
        EmergingStrength(skill=skill, trend=trend(values))
        for skill, values in series.items()
        if trend(values) > 0.5 and _mean(values[-SHORT_WINDOW:]) > 7
    ]

    return SkillsGapAnalysis(
        skills_trends=skills_trends,
        persistent_gaps=persistent_gaps(sessions),
        emerging_strengths=emerging,
        priority_areas=priority_areas(sessions),
    )


# ============================================
# Confidence
# ============================================

def _average_confidence_by(sessions: Sequence[SessionRecord], key) -> Dict[str, List[float]]:
    grouped: Dict[str, List[float]] = {}
    for session in sessions:
        grouped.setdefault(key(session), []).append(_score(session.confidence_score))
    return grouped


def analyze_confidence_trends(sessions: Sequence[SessionRecord]) -> ConfidenceTrends:
    confidence_scores = _confidence(sessions)

    by_job = _average_confidence_by(sessions, lambda s: s.job_title or "Unknown")
    by_type = _average_confidence_by(sessions, lambda s: s.session_type or "unknown")

    # Only sessions where both scores were reported
    pairs = [
        (_score(s.confidence_score), _score(s.overall_score)) for s in sessions
        if s.confidence_score and s.overall_score
    ]

    return ConfidenceTrends(
        overall_trend=trend(confidence_scores),
        confidence_by_job_type=[
            JobTypeConfidence(job_type=job, average_confidence=_clamp(_mean(values)), session_count=len(values))
            for job, values in by_job.items()
        ],
        confidence_patterns=ConfidencePatterns(
            average_by_session_type=[
                SessionTypeConfidence(
                    session_type=kind,
                    average_confidence=_clamp(_mean(values)),
                    session_count=len(values),
                )
                for kind, values in by_type.items()
            ],
            trend_over_time=trend(confidence_scores),
        ),
        confidence_volatility=volatility(confidence_scores),
        confidence_correlations=correlation([p[0] for p in pairs], [p[1] for p in pairs]),
    )


# ============================================
# Question types and timing
# ============================================

def analyze_question_types(sessions: Sequence[SessionRecord]) -> List[QuestionTypePerformance]:
    """Per-category performance, pairing questions with evaluations by position."""
    counts: Counter = Counter()
    scores: Dict[str, List[float]] = {}

    for session in sessions:
        for index, question in enumerate(session.questions_data):
            category = question.category or "General"
            counts[category] += 1
            scores.setdefault(category, [])
            if index < len(session.analysis_results):
                scores[category].append(_score(session.analysis_results[index].score))

    return [
        QuestionTypePerformance(
            type=category,
            average_score=_clamp(_mean(scores[category])),
            total_questions=count,
            trend=trend(scores[category]),
        )
        for category, count in counts.items()
    ]


def _time_slot(moment: datetime) -> str:
    if moment.hour < 12:
        return "morning"
    if moment.hour < 17:
        return "afternoon"
    return "evening"


def analyze_time_patterns(
    sessions: Sequence[SessionRecord],
    utc_offset_minutes: int = 0,
) -> List[TimeSlotPerformance]:
    """
    Average score per time of day (morning, afternoon, evening).

    Timestamps are stored in UTC; utc_offset_minutes shifts them to the
    user's local clock (120 for UTC+2, -300 for UTC-5).
    """
    offset = timedelta(minutes=utc_offset_minutes)
    slots: Dict[str, List[float]] = {}
    for session in sessions:
        slots.setdefault(_time_slot(session.created_at + offset), []).append(_score(session.overall_score))

    return [
        TimeSlotPerformance(time_slot=slot, average_score=_clamp(_mean(scores)), session_count=len(scores))
        for slot, scores in slots.items()
    ]


def industry_benchmarks(sessions: Sequence[SessionRecord]) -> IndustryBenchmarks:
    recent_avg = _mean(_overall(sessions[-RECENT_WINDOW:]))

    if recent_avg >= INDUSTRY_BENCHMARKS["top_percentile"]:
        ranking = "Top Performer"
    elif recent_avg >= INDUSTRY_BENCHMARKS["average_score"]:
        ranking = "Above Average"
    elif recent_avg >= INDUSTRY_BENCHMARKS["industry_median"]:
        ranking = "Average"
    else:
        ranking = "Below Average"

    return IndustryBenchmarks(your_ranking=ranking, **INDUSTRY_BENCHMARKS)


# ============================================
# Readiness and prediction
# ============================================

def practice_frequency(sessions: Sequence[SessionRecord]) -> float:
    """Sessions per day over the covered period, scaled so daily practice scores 10."""
    if len(sessions) < 2:
        return 0.0
    span = sessions[-1].created_at - sessions[0].created_at
    days_between = span.total_seconds() / 86400
    frequency = len(sessions) / max(1.0, days_between)
    return _clamp(frequency * 30)


def skills_coverage(sessions: Sequence[SessionRecord]) -> float:
    categories = {
        question.category
        for session in sessions
        for question in session.questions_data
        if question.category
    }
    return _clamp(len(categories) / len(EXPECTED_SKILLS) * 10)


def readiness_score(sessions: Sequence[SessionRecord]) -> float:
    """
    Composite interview readiness on a 0-10 scale.

    Blends recent performance, consistency, recent confidence, practice
    cadence and question-category coverage.
    """
    if not sessions:
        return 0.0

    factors = {
        "recent_performance": _mean(_overall(sessions[-SHORT_WINDOW:])),
        "consistency": consistency(_overall(sessions)),
        "confidence": _mean(_confidence(sessions[-SHORT_WINDOW:])),
        "practice_frequency": practice_frequency(sessions),
        "skills_coverage": skills_coverage(sessions),
    }

    score = sum(factors[name] * weight for name, weight in READINESS_WEIGHTS.items())
    return _clamp(score)


def success_probability(sessions: Sequence[SessionRecord]) -> float:
    if not sessions:
        return 0.0

    overall = _overall(sessions)
    recent_avg = _mean(overall[-SHORT_WINDOW:])
    probability = (
        (recent_avg / MAX_SCORE) * 0.6
        + (consistency(overall) / MAX_SCORE) * 0.3
        + max(0.0, trend(overall)) * 0.1
    )
    return _clamp(probability, 0.0, 1.0)


def estimate_improvement_time(sessions: Sequence[SessionRecord]) -> str:
    slope = trend(_overall(sessions))
    if slope <= 0:
        return "8-12 weeks"

    current_avg = _mean(_overall(sessions[-SHORT_WINDOW:]))
    target_score = 8
    weeks_to_target = math.ceil((target_score - current_avg) / (slope * 4))
    return f"{max(2, weeks_to_target)} weeks"


def identify_risk_factors(sessions: Sequence[SessionRecord]) -> List[str]:
    if not sessions:
        return []

    overall = _overall(sessions)
    risks = []
    if _mean(overall[-RECENT_WINDOW:]) < 5:
        risks.append("Low overall performance")
    if consistency(overall) < 5:
        risks.append("Inconsistent performance")
    if trend(overall) < -0.5:
        risks.append("Declining performance trend")
    return risks


def identify_opportunities(sessions: Sequence[SessionRecord]) -> List[str]:
    opportunities = []
    if analyze_skills_gaps(sessions).emerging_strengths:
        opportunities.append("Leverage emerging strengths in technical areas")
    if trend(_confidence(sessions)) > 0.5:
        opportunities.append("Building confidence - continue current approach")
    return opportunities


def generate_predictive_insights(sessions: Sequence[SessionRecord]) -> PredictiveInsights:
    recent = sessions[-PREDICTIVE_WINDOW:]
    return PredictiveInsights(
        readiness_score=readiness_score(recent),
        success_probability=success_probability(recent),
        recommended_practice_areas=[area.area for area in priority_areas(sessions)],
        time_to_improvement=estimate_improvement_time(sessions),
        risk_factors=identify_risk_factors(sessions),
        opportunity_areas=identify_opportunities(sessions),
    )


# ============================================
# Recommendations
# ============================================

def recommendations(sessions: Sequence[SessionRecord]) -> List[Recommendation]:
    """
    Rule-based coaching recommendations, highest priority first.

    Ties keep their rule order (the sort is stable).
    """
    if not sessions:
        return []

    recent = sessions[-RECENT_WINDOW:]
    recs: List[Recommendation] = []

    if _mean(_overall(recent)) < 6:
        recs.append(Recommendation(
            type="urgent",
            category="fundamentals",
            title="Focus on Interview Fundamentals",
            description="Your scores suggest you need to work on basic interview skills",
            actions=[
                "Practice STAR method for behavioral questions",
                "Prepare 5-7 core stories about your experience",
                "Research common interview questions for your field",
            ],
            priority="high",
            estimated_impact="high",
        ))

    if _mean(_confidence(recent)) < 5:
        recs.append(Recommendation(
            type="development",
            category="confidence",
            title="Build Interview Confidence",
            description="Work on projecting confidence and reducing interview anxiety",
            actions=[
                "Practice power posing before interviews",
                "Record yourself answering questions",
                "Focus on accomplishment-based stories",
            ],
            priority="medium",
            estimated_impact="medium",
        ))

    for gap in persistent_gaps(sessions):
        recs.append(Recommendation(
            type="skill",
            category="technical",
            title=f"Improve {gap.area}",
            description=f"This area appears in {round(gap.frequency * 100)}% of your sessions",
            actions=SKILL_SPECIFIC_ACTIONS.get(gap.area, DEFAULT_SKILL_ACTIONS),
            priority="high" if gap.frequency > HIGH_PRIORITY_GAP_FREQUENCY else "medium",
            estimated_impact="high",
        ))

    return sorted(recs, key=lambda rec: PRIORITY_ORDER.get(rec.priority, 0), reverse=True)


# ============================================
# Aggregates
# ============================================

def generate_user_insights(sessions: Sequence[SessionRecord], utc_offset_minutes: int = 0) -> UserInsights:
    """
    Build the full insights result for the advanced analytics dashboard.

    Args:
        sessions: Session records, oldest first
        utc_offset_minutes: Client clock offset from UTC, used for time-of-day patterns

    Returns:
        UserInsights; zeroed but well-formed when there are no sessions
    """
    logger.debug(f"Generating insights over {len(sessions)} sessions")
    return UserInsights(
        performance_analysis=analyze_performance(sessions),
        skills_gap_analysis=analyze_skills_gaps(sessions),
        confidence_trends=analyze_confidence_trends(sessions),
        question_type_performance=analyze_question_types(sessions),
        time_based_patterns=analyze_time_patterns(sessions, utc_offset_minutes),
        industry_benchmarks=industry_benchmarks(sessions),
        predictive_insights=generate_predictive_insights(sessions),
        personalized_recommendations=recommendations(sessions),
    )


def calculate_streak(sessions: Sequence[SessionRecord], today: Optional[date] = None) -> int:
    """
    Consecutive practice days ending today (or yesterday).

    Args:
        sessions: Session records in any order
        today: Reference day, defaults to the current UTC date
    """
    if not sessions:
        return 0

    today = today or datetime.utcnow().date()
    practice_days = {s.created_at.date() for s in sessions}

    # Not having practiced yet today does not break the streak
    cursor = today if today in practice_days else today - timedelta(days=1)

    streak = 0
    while cursor in practice_days:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def calculate_summary(
    sessions: Sequence[SessionRecord],
    today: Optional[date] = None,
) -> Optional[HistorySummary]:
    """
    Summary statistics for the interview history page.

    Returns None when there are no sessions in the window.
    """
    if not sessions:
        return None

    job_types = Counter(s.job_title or "Unknown" for s in sessions)
    improvement_areas = Counter(area for s in sessions for area in s.improvement_areas)

    return HistorySummary(
        total_sessions=len(sessions),
        avg_overall_score=_clamp(_mean(_overall(sessions))),
        avg_confidence_score=_clamp(_mean(_confidence(sessions))),
        avg_technical_score=_clamp(_mean([_score(s.technical_score) for s in sessions])),
        avg_behavioral_score=_clamp(_mean([_score(s.behavioral_score) for s in sessions])),
        score_trend=[
            ScoreTrendPoint(
                date=s.created_at,
                overall=_score(s.overall_score),
                confidence=_score(s.confidence_score),
                technical=_score(s.technical_score),
                behavioral=_score(s.behavioral_score),
            )
            for s in sessions
        ],
        job_types=dict(job_types),
        improvement_areas=dict(improvement_areas),
        total_practice_time=sum(s.session_duration for s in sessions),
        streak_days=calculate_streak(sessions, today),
        best_score=_clamp(max(_overall(sessions))),
        most_recent_session=sessions[-1],
    )
