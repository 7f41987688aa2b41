"""Academic tracking: study sessions, performance analysis and daily goals.

Responsibilities:
- Record study sessions (history, topic progress, profile totals, streaks)
- Analyse performance (cached for cache.analysis_ttl_seconds)
- Identify knowledge gaps against the target course syllabus
- Generate spaced-repetition and theory recommendations
- Adaptive daily goals and achievements

Topic status from session score:
- mastered: score >= 90
- completed: score >= 70
- in-progress: otherwise
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timedelta
from typing import Any

import structlog

from examprep.config import load_app_config
from examprep.core.errors import NotFoundError
from examprep.db import practice_repository, tracking_repository, users_repository
from examprep.db.database import utc_now
from examprep.db.tracking_repository import (
    AcademicProfileRecord,
    AchievementRecord,
    DailyGoalRecord,
    PerformanceRecord,
    RecommendationRecord,
    TopicProgressRecord,
)

logger = structlog.get_logger(__name__)

# =============================================================================
# CONSTANTS
# =============================================================================

MASTERED_SCORE = 90
COMPLETED_SCORE = 70
STRENGTH_SCORE = 80
WEAKNESS_SCORE = 60
READY_THRESHOLD = 80
DAILY_READINESS_GAIN = 2

DEFAULT_GOAL_QUESTIONS = 10
DEFAULT_GOAL_MINUTES = 30

# (minimum score, days before a review is due)
REVIEW_INTERVALS = ((90, 30), (80, 14), (70, 7))

DEFAULT_TOPIC_NAME = "Study topic"


# =============================================================================
# DATA CLASSES
# =============================================================================


@dataclass
class StudySession:
    """A finished study session as reported by the client."""

    score: float
    questions_answered: int
    correct_answers: int
    time_spent: int  # minutes
    topics_studied: list[str] = field(default_factory=list)


@dataclass
class KnowledgeGap:
    topic_id: str
    topic_name: str
    discipline_id: str
    priority: str
    severity: float
    estimated_time_to_fix: float  # hours

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class PerformanceAnalysis:
    """Snapshot of a student's performance."""

    user_id: str
    analyzed_at: str
    overall_score: float
    discipline_scores: dict[str, int]
    trend: str
    improvement_rate: int
    readiness_score: int
    estimated_admission_chance: int
    days_until_ready: int
    strengths: list[dict[str, Any]] = field(default_factory=list)
    weaknesses: list[dict[str, Any]] = field(default_factory=list)
    common_mistakes: list[str] = field(default_factory=list)
    insights: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PerformanceAnalysis:
        return cls(**data)


# =============================================================================
# PURE CALCULATIONS
# =============================================================================


def status_for_score(score: float) -> str:
    if score >= MASTERED_SCORE:
        return "mastered"
    if score >= COMPLETED_SCORE:
        return "completed"
    return "in-progress"


def calculate_discipline_scores(progress: list[TopicProgressRecord]) -> dict[str, int]:
    """Mean topic score per discipline title ("General" when unknown)."""
    buckets: dict[str, list[float]] = {}
    for item in progress:
        buckets.setdefault(item.discipline_title or "General", []).append(item.score)
    return {title: round(sum(scores) / len(scores)) for title, scores in buckets.items()}


def calculate_trend(history: list[PerformanceRecord]) -> str:
    """Compare the 7 newest sessions with the 7 before them.

    History must be ordered newest first.
    """
    if len(history) < 2:
        return "stable"

    recent = history[:7]
    older = history[7:14]
    recent_avg = sum(h.score for h in recent) / len(recent)
    older_avg = sum(h.score for h in older) / len(older) if older else recent_avg

    if recent_avg > older_avg + 5:
        return "improving"
    if recent_avg < older_avg - 5:
        return "declining"
    return "stable"


def calculate_improvement_rate(history: list[PerformanceRecord]) -> int:
    """Percent change between the newer and older halves of the history."""
    if len(history) < 10:
        return 0

    mid = len(history) // 2
    recent = history[:mid]
    older = history[mid:]
    recent_avg = sum(h.score for h in recent) / len(recent)
    older_avg = sum(h.score for h in older) / len(older)

    if older_avg == 0:
        return 100
    return round((recent_avg - older_avg) / older_avg * 100)


def calculate_readiness(progress: list[TopicProgressRecord]) -> int:
    """Percentage of studied topics that are mastered."""
    mastered = sum(1 for p in progress if p.status == "mastered")
    return round(mastered / (len(progress) or 1) * 100)


def estimate_admission_chance(overall_accuracy: float, progress: list[TopicProgressRecord]) -> int:
    return round(calculate_readiness(progress) * 0.6 + overall_accuracy * 0.4)


def estimate_days_until_ready(progress: list[TopicProgressRecord]) -> int:
    readiness = calculate_readiness(progress)
    if readiness >= READY_THRESHOLD:
        return 0
    return math.ceil((READY_THRESHOLD - readiness) / DAILY_READINESS_GAIN)


def identify_strengths(progress: list[TopicProgressRecord]) -> list[dict[str, Any]]:
    strong = sorted((p for p in progress if p.score >= STRENGTH_SCORE), key=lambda p: -p.score)
    return [
        {
            "topic_id": p.topic_id,
            "topic_name": p.topic_name or DEFAULT_TOPIC_NAME,
            "score": p.score,
        }
        for p in strong[:5]
    ]


def identify_weaknesses(progress: list[TopicProgressRecord]) -> list[dict[str, Any]]:
    weak = sorted((p for p in progress if p.score < WEAKNESS_SCORE), key=lambda p: p.score)
    return [
        {
            "topic_id": p.topic_id,
            "topic_name": p.topic_name or DEFAULT_TOPIC_NAME,
            "score": p.score,
            "recommended_action": "Review the theory and practise more questions",
        }
        for p in weak[:5]
    ]


def generate_insights(profile: AcademicProfileRecord, progress: list[TopicProgressRecord]) -> list[str]:
    insights = []
    if profile.current_streak > 7:
        insights.append(f"Excellent! You are on a {profile.current_streak}-day streak.")
    if profile.overall_accuracy > 80:
        insights.append("Your performance is above average. Keep it up!")
    mastered = sum(1 for p in progress if p.status == "mastered")
    if mastered > 0:
        insights.append(f"You have already mastered {mastered} important topics!")
    return insights


def goal_completion_rate(goal: DailyGoalRecord, questions: int, minutes: int) -> int:
    rate = questions / goal.questions_to_solve * 50 + minutes / goal.minutes_to_study * 50
    return min(100, round(rate))


# =============================================================================
# PROFILE, PROGRESS AND HISTORY
# =============================================================================


def get_profile(uid: str) -> AcademicProfileRecord | None:
    return tracking_repository.get_profile(uid)


def upsert_profile(uid: str, **fields: Any) -> AcademicProfileRecord:
    profile = tracking_repository.upsert_profile(uid, **fields)
    tracking_repository.clear_analysis_cache(uid)
    return profile


def topic_progress(uid: str) -> list[TopicProgressRecord]:
    """Topic progress, most recently studied first."""
    return tracking_repository.list_topic_progress(uid)


def performance_history(uid: str, days: int = 30, today: date | None = None) -> list[PerformanceRecord]:
    """Sessions of the last `days` days, newest first."""
    today = today or utc_now().date()
    since = (today - timedelta(days=days)).isoformat()
    return tracking_repository.list_performance_history(uid, since)


def _next_streak(uid: str, today: date) -> tuple[int, bool]:
    """Streak after studying today, and whether today was already counted."""
    profile = tracking_repository.get_profile(uid)
    current = profile.current_streak if profile else 0
    recent = performance_history(uid, days=1, today=today)
    days = {h.session_date for h in recent}
    if today.isoformat() in days:
        return max(current, 1), True
    if (today - timedelta(days=1)).isoformat() in days:
        return current + 1, False
    return 1, False


def record_study_session(
    uid: str,
    discipline_id: str | None,
    session: StudySession,
    now: datetime | None = None,
) -> list[AchievementRecord]:
    """Record a finished study session.

    Appends to the performance history, upserts progress for every topic
    studied, updates profile totals, accuracy and streak, advances today's
    goal and checks achievements.

    Returns:
        Achievements unlocked by this session.
    """
    now = now or utc_now()
    today = now.date()

    streak, already_counted = _next_streak(uid, today)

    tracking_repository.insert_performance_record(
        user_id=uid,
        discipline_id=discipline_id,
        session_date=today.isoformat(),
        recorded_at=now.isoformat(),
        score=session.score,
        questions_answered=session.questions_answered,
        correct_answers=session.correct_answers,
        time_spent=session.time_spent,
        topics_studied=session.topics_studied,
    )

    status = status_for_score(session.score)
    for topic_id in session.topics_studied:
        tracking_repository.upsert_topic_progress(
            user_id=uid,
            topic_id=topic_id,
            score=session.score,
            questions_answered=session.questions_answered,
            correct_answers=session.correct_answers,
            time_spent=session.time_spent,
            status=status,
            studied_at=now.isoformat(),
        )

    profile = tracking_repository.get_profile(uid) or AcademicProfileRecord(user_id=uid)
    total_questions = profile.total_questions_answered + session.questions_answered
    correct_so_far = profile.overall_accuracy / 100 * profile.total_questions_answered
    accuracy = (
        round((correct_so_far + session.correct_answers) / total_questions * 100, 1)
        if total_questions
        else profile.overall_accuracy
    )

    mastered = [t for t in profile.mastered_topics if t not in session.topics_studied]
    weak = [t for t in profile.weak_topics if t not in session.topics_studied]
    if session.score >= MASTERED_SCORE:
        mastered.extend(session.topics_studied)
    elif session.score < WEAKNESS_SCORE:
        weak.extend(session.topics_studied)

    tracking_repository.upsert_profile(
        uid,
        total_study_time=profile.total_study_time + session.time_spent,
        total_questions_answered=total_questions,
        overall_accuracy=accuracy,
        current_streak=streak,
        longest_streak=max(profile.longest_streak, streak),
        mastered_topics=mastered,
        weak_topics=weak,
    )
    users_repository.update_user(uid, streak=streak, last_study_date=today.isoformat())

    update_daily_goal(uid, session.questions_answered, session.time_spent, today=today)
    tracking_repository.clear_analysis_cache(uid)

    logger.info(
        "tracking.session_recorded",
        uid=uid,
        discipline_id=discipline_id,
        score=session.score,
        topics=len(session.topics_studied),
        streak=streak,
        streak_extended=not already_counted,
    )
    return check_achievements(uid)


# =============================================================================
# ANALYSIS
# =============================================================================


def analyze_performance(
    uid: str,
    now: datetime | None = None,
    force_refresh: bool = False,
) -> PerformanceAnalysis | None:
    """Full performance analysis, served from cache while fresh.

    Returns:
        The analysis, or None when the user has no academic profile.
    """
    now = now or utc_now()
    ttl = timedelta(seconds=load_app_config().cache.analysis_ttl_seconds)

    if not force_refresh:
        cached = tracking_repository.get_analysis_cache(uid)
        if cached is not None:
            payload, analyzed_at = cached
            if datetime.fromisoformat(analyzed_at) > now - ttl:
                logger.debug("tracking.analysis_cache_hit", uid=uid)
                return PerformanceAnalysis.from_dict(payload)

    profile = tracking_repository.get_profile(uid)
    if profile is None:
        return None

    progress = topic_progress(uid)
    history = performance_history(uid, days=30, today=now.date())

    analysis = PerformanceAnalysis(
        user_id=uid,
        analyzed_at=now.isoformat(),
        overall_score=profile.overall_accuracy,
        discipline_scores=calculate_discipline_scores(progress),
        trend=calculate_trend(history),
        improvement_rate=calculate_improvement_rate(history),
        readiness_score=calculate_readiness(progress),
        estimated_admission_chance=estimate_admission_chance(profile.overall_accuracy, progress),
        days_until_ready=estimate_days_until_ready(progress),
        strengths=identify_strengths(progress),
        weaknesses=identify_weaknesses(progress),
        insights=generate_insights(profile, progress),
        recommendations=[r.reason for r in get_recommendations(uid)],
    )

    tracking_repository.save_analysis_cache(
        uid,
        analysis.to_dict(),
        analyzed_at=analysis.analyzed_at,
        expires_at=(now + ttl).isoformat(),
    )
    logger.info("tracking.analysis_computed", uid=uid, readiness=analysis.readiness_score)
    return analysis


def identify_knowledge_gaps(uid: str) -> list[KnowledgeGap]:
    """Syllabus topics of the target course not yet studied or below 60.

    Sorted by severity, highest first.
    """
    profile = tracking_repository.get_profile(uid)
    if profile is None or not profile.target_course:
        return []

    requirements = tracking_repository.get_course_requirements(profile.target_course)
    if requirements is None:
        return []

    progress_by_topic = {p.topic_id: p for p in topic_progress(uid)}
    gaps = []
    for discipline in requirements.disciplines:
        discipline_id = discipline.get("discipline_id")
        if not discipline_id:
            continue
        for topic in tracking_repository.list_syllabus_topics(discipline_id):
            progress = progress_by_topic.get(topic.id)
            if progress is not None and progress.score >= WEAKNESS_SCORE:
                continue
            gaps.append(
                KnowledgeGap(
                    topic_id=topic.id,
                    topic_name=topic.topic_name,
                    discipline_id=discipline_id,
                    priority="high" if topic.importance <= 2 else "medium",
                    severity=100 - progress.score if progress else 100,
                    estimated_time_to_fix=topic.estimated_hours,
                )
            )

    gaps.sort(key=lambda g: g.severity, reverse=True)
    return gaps


# =============================================================================
# RECOMMENDATIONS
# =============================================================================


def get_recommendations(uid: str) -> list[RecommendationRecord]:
    """Open recommendations: top 10 by priority, then newest."""
    return tracking_repository.list_open_recommendations(uid, limit=10)


def complete_recommendation(uid: str, recommendation_id: str) -> None:
    """Mark one of the user's recommendations as done.

    Raises:
        NotFoundError: If the recommendation is not the user's
    """
    if not tracking_repository.complete_recommendation(uid, recommendation_id):
        raise NotFoundError("Recommendation", recommendation_id)
    tracking_repository.clear_analysis_cache(uid)


def _review_due(progress: TopicProgressRecord, now: datetime) -> bool:
    if not progress.last_studied:
        return False
    days_since = (now - datetime.fromisoformat(progress.last_studied)).total_seconds() / 86400
    for min_score, interval in REVIEW_INTERVALS:
        if progress.score >= min_score:
            return days_since > interval
    return False


def generate_recommendations(uid: str, now: datetime | None = None) -> int:
    """Store new spaced-repetition and theory recommendations.

    - Up to 2 reviews of well-known topics not seen for a while
    - Theory for the 3 most severe gaps that have a matching learning step

    Returns:
        Number of recommendations stored.
    """
    now = now or utc_now()
    gaps = identify_knowledge_gaps(uid)
    progress = topic_progress(uid)

    items: list[dict[str, Any]] = []

    for p in [p for p in progress if _review_due(p, now)][:2]:
        items.append(
            {
                "type": "review",
                "priority": "high",
                "content_id": p.topic_id,
                "content_type": "topic",
                "content_title": f"Review: {p.topic_name or 'Topic'}",
                "topic_id": p.topic_id,
                "estimated_time": 15,
                "difficulty": 3,
                "reason": "Spaced review: you have not seen this in a while!",
                "expected_impact": 10,
            }
        )

    for gap in gaps[:3]:
        step = practice_repository.find_step_for_topic(gap.topic_id, gap.topic_name)
        if step is None:
            continue
        items.append(
            {
                "type": "theory",
                "priority": gap.priority,
                "content_id": step.id,
                "content_type": "step",
                "content_title": step.title,
                "topic_id": gap.topic_id,
                "estimated_time": gap.estimated_time_to_fix * 60,
                "difficulty": 3,
                "reason": f"You need to strengthen {gap.topic_name}",
                "expected_impact": gap.severity,
            }
        )

    if items:
        tracking_repository.insert_recommendations(uid, items)
        tracking_repository.clear_analysis_cache(uid)
    logger.info("tracking.recommendations_generated", uid=uid, count=len(items))
    return len(items)


# =============================================================================
# DAILY GOALS
# =============================================================================


def get_daily_goal(uid: str, goal_date: date | None = None) -> DailyGoalRecord:
    """Goal for the date, creating an adaptive one if missing."""
    goal_date = goal_date or utc_now().date()
    goal = tracking_repository.get_daily_goal(uid, goal_date.isoformat())
    if goal is not None:
        return goal
    return create_daily_goal(uid, goal_date)


def create_daily_goal(uid: str, goal_date: date) -> DailyGoalRecord:
    """Create a goal adapted to the last week and recent goal completion.

    Three failed goals in a row (< 50%) lower the targets by 30%; three
    fully completed goals raise questions by 20% and minutes by 10%.
    """
    profile = tracking_repository.get_profile(uid)
    history = performance_history(uid, days=7, today=goal_date)
    recent_goals = tracking_repository.list_recent_goals(uid, limit=3)

    questions = DEFAULT_GOAL_QUESTIONS
    minutes = DEFAULT_GOAL_MINUTES
    if history:
        questions = round(sum(h.questions_answered for h in history) / len(history))
        minutes = round(sum(h.time_spent for h in history) / len(history))

    if len(recent_goals) >= 3:
        if all(g.completion_rate < 50 for g in recent_goals):
            questions = max(5, math.floor(questions * 0.7))
            minutes = max(15, math.floor(minutes * 0.7))
        elif all(g.completion_rate >= 100 for g in recent_goals):
            questions = math.floor(questions * 1.2)
            minutes = math.floor(minutes * 1.1)

    goal = DailyGoalRecord(
        user_id=uid,
        goal_date=goal_date.isoformat(),
        questions_to_solve=max(5, min(questions, 50)),
        minutes_to_study=max(15, min(minutes, 120)),
        topics_to_review=profile.weak_topics[:2] if profile else [],
    )
    stored = tracking_repository.upsert_daily_goal(goal)
    logger.debug(
        "tracking.daily_goal_created",
        uid=uid,
        questions=stored.questions_to_solve,
        minutes=stored.minutes_to_study,
    )
    return stored


def update_daily_goal(
    uid: str,
    questions: int,
    minutes: int,
    today: date | None = None,
) -> DailyGoalRecord:
    """Add solved questions and studied minutes to today's goal."""
    goal = get_daily_goal(uid, today)
    solved = goal.questions_solved + questions
    studied = goal.minutes_studied + minutes
    rate = goal_completion_rate(goal, solved, studied)

    tracking_repository.save_goal_progress(uid, goal.goal_date, solved, studied, rate)
    goal.questions_solved = solved
    goal.minutes_studied = studied
    goal.completion_rate = rate
    goal.is_completed = rate >= 100
    return goal


# =============================================================================
# ACHIEVEMENTS
# =============================================================================

ACHIEVEMENT_RULES = (
    (
        lambda p: p.total_questions_answered == 1,
        ("questions_solved", "First Question", "Solved your first question!", "🎯"),
    ),
    (
        lambda p: p.current_streak == 7,
        ("streak", "Full Week", "7 consecutive days of study!", "🔥"),
    ),
    (
        lambda p: p.total_questions_answered == 100,
        ("questions_solved", "Centenarian", "100 questions solved!", "💯"),
    ),
)


def check_achievements(uid: str) -> list[AchievementRecord]:
    """Unlock achievements whose condition holds. Returns new ones only."""
    profile = tracking_repository.get_profile(uid)
    if profile is None:
        return []

    unlocked = []
    for condition, (kind, title, description, icon) in ACHIEVEMENT_RULES:
        if not condition(profile):
            continue
        achievement, created = tracking_repository.unlock_achievement(
            uid, kind, title, description, icon
        )
        if created:
            unlocked.append(achievement)
    return unlocked


def list_achievements(uid: str) -> list[AchievementRecord]:
    """Unlocked achievements, newest first."""
    return tracking_repository.list_achievements(uid)
