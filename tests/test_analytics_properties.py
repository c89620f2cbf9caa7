"""
Randomised property tests for the analytics aggregator.

Each seed builds a random history of 0-50 sessions with scores in [0, 10]
(sometimes missing) and checks the bounds the dashboard relies on.
"""
import random
import pytest
from datetime import datetime, timedelta

from app.schemas.session import SessionRecord
from app.services import analytics_service as analytics

SEEDS = list(range(60))
AREAS = ["Communication", "Leadership", "Technical Skills", "Structure", "Conciseness"]
CATEGORIES = ["Technical", "Behavioral", "Communication", "Leadership", "Situational", None]


def maybe_score(rng: random.Random):
    return None if rng.random() < 0.1 else round(rng.uniform(0, 10), 2)


def random_sessions(seed: int):
    rng = random.Random(seed)
    created_at = datetime(2026, 1, 1, 8, 0)
    sessions = []

    for i in range(rng.randint(0, 50)):
        created_at += timedelta(hours=rng.randint(0, 96))
        question_count = rng.randint(0, 6)
        sessions.append(SessionRecord(
            id=i + 1,
            user_id="fuzz-user",
            job_title=rng.choice(["Backend Engineer", "Product Manager", None]),
            session_type=rng.choice(["practice", "mock", "quick"]),
            overall_score=maybe_score(rng),
            confidence_score=maybe_score(rng),
            technical_score=maybe_score(rng),
            behavioral_score=maybe_score(rng),
            communication_score=maybe_score(rng),
            questions_data=[{"category": rng.choice(CATEGORIES)} for _ in range(question_count)],
            analysis_results=[{"score": maybe_score(rng)} for _ in range(rng.randint(0, question_count))],
            improvement_areas=rng.sample(AREAS, rng.randint(0, 3)),
            session_duration=rng.randint(0, 3600),
            created_at=created_at,
        ))
    return sessions


@pytest.mark.parametrize("seed", SEEDS)
def test_readiness_score_bounds(seed):
    sessions = random_sessions(seed)
    assert 0 <= analytics.readiness_score(sessions) <= 10


@pytest.mark.parametrize("seed", SEEDS)
def test_success_probability_bounds(seed):
    sessions = random_sessions(seed)
    assert 0 <= analytics.success_probability(sessions) <= 1


@pytest.mark.parametrize("seed", SEEDS)
def test_recommendations_sorted_by_priority(seed):
    recs = analytics.recommendations(random_sessions(seed))
    ranks = [analytics.PRIORITY_ORDER[r.priority] for r in recs]
    assert ranks == sorted(ranks, reverse=True)


@pytest.mark.parametrize("seed", SEEDS)
def test_insights_derived_values_in_range(seed):
    sessions = random_sessions(seed)
    insights = analytics.generate_user_insights(sessions)

    performance = insights.performance_analysis
    assert 0 <= performance.consistency <= 10
    assert 0 <= performance.performance_stability <= 10
    assert performance.trend_direction in ("improving", "declining", "stable")
    assert sum(performance.score_distribution.model_dump().values()) == len(
        [s for s in sessions if s.overall_score]
    )

    for gap in insights.skills_gap_analysis.persistent_gaps + insights.skills_gap_analysis.priority_areas:
        assert 0 <= gap.frequency <= 1
    for skill in insights.skills_gap_analysis.skills_trends:
        assert 0 <= skill.current_level <= 10

    assert -1 <= insights.confidence_trends.confidence_correlations <= 1
    for question_type in insights.question_type_performance:
        assert 0 <= question_type.average_score <= 10

    predictive = insights.predictive_insights
    assert 0 <= predictive.readiness_score <= 10
    assert 0 <= predictive.success_probability <= 1


@pytest.mark.parametrize("seed", SEEDS[:20])
def test_insights_are_deterministic(seed):
    sessions = random_sessions(seed)
    first = analytics.generate_user_insights(sessions).model_dump()
    second = analytics.generate_user_insights(list(sessions)).model_dump()
    assert first == second


@pytest.mark.parametrize("seed", SEEDS[:20])
def test_summary_totals(seed):
    sessions = random_sessions(seed)
    summary = analytics.calculate_summary(sessions)
    if not sessions:
        assert summary is None
        return
    assert summary.total_sessions == len(sessions)
    assert sum(summary.job_types.values()) == len(sessions)
    assert 0 <= summary.best_score <= 10
    assert summary.total_practice_time == sum(s.session_duration for s in sessions)
