"""Predictive analytics over a student's tracking data.

Everything here is deterministic arithmetic on the performance history,
topic progress and knowledge gaps kept by examprep.core.tracking:

- Future score prediction (least-squares regression on the history)
- Learning plateau detection
- What-if simulation of study scenarios
- Study pattern analysis (time of day, weekday, session length)
- Greedy ROI schedule optimisation
- Multi-signal smart recommendations
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timedelta
from typing import Any

import structlog

from examprep.core import tracking
from examprep.db.database import utc_now
from examprep.db.tracking_repository import (
    AcademicProfileRecord,
    PerformanceRecord,
    TopicProgressRecord,
)

logger = structlog.get_logger(__name__)

INSUFFICIENT_DATA = "Insufficient data"

PLATEAU_THRESHOLD = 3
PLATEAU_MIN_DAYS = 7

PRIORITY_MULTIPLIERS = {"urgent": 2.0, "high": 1.5, "medium": 1.0, "low": 0.5}
SESSION_SLOTS = ("08:00", "14:00", "19:00", "21:00")
MAX_SESSION_HOURS = 2
MIN_SESSION_HOURS = 0.5
MAX_SCHEDULE_DAYS = 30

WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

MAX_SMART_RECOMMENDATIONS = 7


# =============================================================================
# DATA CLASSES
# =============================================================================


@dataclass
class RegressionResult:
    slope: float
    intercept: float
    r_squared: float

    def predict(self, x: float) -> float:
        return self.slope * x + self.intercept


@dataclass
class PerformancePrediction:
    predicted_score: int
    confidence: int
    trajectory: str  # accelerating | steady | decelerating
    bottleneck: str | None
    days_analyzed: int
    data_quality: str  # excellent | good | fair | insufficient

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class PlateauDetection:
    is_in_plateau: bool
    plateau_duration: int
    last_significant_improvement: str | None
    suggested_action: str
    break_through_strategies: list[str]
    plateau_severity: str  # mild | moderate | severe

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class StudyScenario:
    hours_per_day: float
    days: int


@dataclass
class ScenarioSimulation:
    scenario: str
    estimated_score: int
    estimated_admission_chance: int
    recommendation: str
    feasibility: str  # optimal | good | challenging | unrealistic

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class StudyPattern:
    best_time_of_day: str
    best_day_of_week: str
    avg_session_length: int
    optimal_session_length: int
    fatigue_point: int
    insights: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class ScheduledSession:
    time: str
    topic_id: str
    topic_name: str
    duration: int  # minutes
    expected_gain: int
    priority: str  # critical | high | medium | low


@dataclass
class DailySchedule:
    day: str
    date: str
    sessions: list[ScheduledSession]


@dataclass
class OptimizedSchedule:
    schedule: list[DailySchedule]
    expected_final_score: int
    weaknesses_addressed: int
    total_study_hours: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class SmartRecommendation:
    id: str
    type: str  # urgent | review | practice | theory | rest
    title: str
    description: str
    reasoning: str
    priority: int
    estimated_impact: int
    confidence: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# =============================================================================
# MATH HELPERS
# =============================================================================


def linear_regression(points: list[tuple[float, float]]) -> RegressionResult:
    """Least-squares fit y = slope * x + intercept.

    R-squared is clamped to [0, 1] and is 0 when y has no variance. When
    every x is equal the slope is 0 and the intercept is the mean of y.
    """
    n = len(points)
    if n == 0:
        return RegressionResult(slope=0.0, intercept=0.0, r_squared=0.0)

    sum_x = sum(x for x, _ in points)
    sum_y = sum(y for _, y in points)
    sum_xy = sum(x * y for x, y in points)
    sum_x2 = sum(x * x for x, _ in points)

    denominator = n * sum_x2 - sum_x * sum_x
    slope = (n * sum_xy - sum_x * sum_y) / denominator if denominator else 0.0
    intercept = (sum_y - slope * sum_x) / n

    mean_y = sum_y / n
    ss_total = sum((y - mean_y) ** 2 for _, y in points)
    ss_residual = sum((y - (slope * x + intercept)) ** 2 for x, y in points)
    r_squared = 0.0 if ss_total == 0 else 1 - ss_residual / ss_total

    return RegressionResult(slope=slope, intercept=intercept, r_squared=max(0.0, min(1.0, r_squared)))


def learning_efficiency(profile: AcademicProfileRecord, progress: list[TopicProgressRecord]) -> float:
    """0.5 x accuracy + 0.3 x consistency + 0.2 x coverage, in [0, 1]."""
    accuracy = profile.overall_accuracy / 100
    consistency = min(profile.current_streak / 30, 1)
    studied = sum(1 for p in progress if p.questions_answered > 0)
    coverage = studied / (len(progress) or 1)
    return accuracy * 0.5 + consistency * 0.3 + coverage * 0.2


def admission_chance(score: float) -> int:
    """Sigmoid centred on a score of 50."""
    return round(100 / (1 + math.exp(-(score - 50) / 20)))


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _days_between(later: str, earlier: str) -> int:
    return (date.fromisoformat(later) - date.fromisoformat(earlier)).days


def identify_bottleneck(uid: str, gaps: list[tracking.KnowledgeGap] | None = None) -> str | None:
    """Name of the first high-priority gap with severity above 70."""
    gaps = tracking.identify_knowledge_gaps(uid) if gaps is None else gaps
    for gap in gaps:
        if gap.priority == "high" and gap.severity > 70:
            return gap.topic_name
    return None


# =============================================================================
# PREDICTION AND PLATEAU
# =============================================================================


def predict_future_performance(
    uid: str,
    days_ahead: int = 30,
    today: date | None = None,
) -> PerformancePrediction:
    """Predict the score days_ahead days after the latest session."""
    history = tracking.performance_history(uid, days=60, today=today)

    if len(history) < 5:
        return PerformancePrediction(
            predicted_score=0,
            confidence=0,
            trajectory="steady",
            bottleneck=None,
            days_analyzed=len(history),
            data_quality="insufficient",
        )

    # History is newest first; x counts days from the oldest session.
    first_date = history[-1].session_date
    points = [(_days_between(h.session_date, first_date), h.score) for h in history]

    regression = linear_regression(points)
    latest_day = points[0][0]
    predicted = min(100.0, max(0.0, regression.predict(latest_day + days_ahead)))
    confidence = round(regression.r_squared * 100)

    mid = len(points) // 2
    recent = linear_regression(points[:mid])
    older = linear_regression(points[mid:])
    if recent.slope > older.slope * 1.2:
        trajectory = "accelerating"
    elif recent.slope < older.slope * 0.8:
        trajectory = "decelerating"
    else:
        trajectory = "steady"

    if len(history) >= 30 and confidence >= 70:
        quality = "excellent"
    elif len(history) >= 20 and confidence >= 60:
        quality = "good"
    elif len(history) >= 10:
        quality = "fair"
    else:
        quality = "insufficient"

    return PerformancePrediction(
        predicted_score=round(predicted),
        confidence=confidence,
        trajectory=trajectory,
        bottleneck=identify_bottleneck(uid),
        days_analyzed=len(history),
        data_quality=quality,
    )


def detect_learning_plateau(uid: str, today: date | None = None) -> PlateauDetection:
    """Detect a run of 7+ sessions whose scores barely moved."""
    history = tracking.performance_history(uid, days=14, today=today)

    if len(history) < PLATEAU_MIN_DAYS:
        return PlateauDetection(
            is_in_plateau=False,
            plateau_duration=0,
            last_significant_improvement=None,
            suggested_action="Keep studying to gather more data.",
            break_through_strategies=[],
            plateau_severity="mild",
        )

    variations = [abs(history[i].score - history[i + 1].score) for i in range(len(history) - 1)]

    plateau_days = 0
    last_improvement = None
    for i, variation in enumerate(variations):
        if variation < PLATEAU_THRESHOLD:
            plateau_days += 1
            continue
        if plateau_days == 0:
            last_improvement = history[i].session_date
        break

    is_in_plateau = plateau_days >= PLATEAU_MIN_DAYS
    if plateau_days >= 14:
        severity = "severe"
    elif plateau_days >= 10:
        severity = "moderate"
    else:
        severity = "mild"

    strategies: list[str] = []
    if is_in_plateau:
        strategies = [
            "Switch to another discipline for a while to refresh",
            "Focus on harder questions to leave your comfort zone",
            "Review the theory before doing more questions",
            "Study in a group or explain the concepts to someone",
            "Take 1-2 days off to consolidate",
        ]
        if severity == "severe":
            strategies.insert(
                0,
                "URGENT: you have been stuck for a long time. Consider changing your study approach completely.",
            )

    if is_in_plateau:
        action = f"You have been on a plateau for {plateau_days} days. Change your approach!"
    else:
        action = "Keep your current strategy. You are improving!"

    return PlateauDetection(
        is_in_plateau=is_in_plateau,
        plateau_duration=plateau_days,
        last_significant_improvement=last_improvement,
        suggested_action=action,
        break_through_strategies=strategies,
        plateau_severity=severity,
    )


# =============================================================================
# SCENARIOS
# =============================================================================


def _scenario_label(scenario: StudyScenario) -> str:
    return f"{scenario.hours_per_day:g}h/day for {scenario.days} days"


def _feasibility(hours_per_day: float) -> tuple[str, str]:
    if hours_per_day > 8:
        return "unrealistic", "Unsustainable pace. High risk of burnout."
    if 4 <= hours_per_day <= 6:
        return "optimal", "Excellent! This pace gets you there with balance."
    if 2 <= hours_per_day < 4:
        return "good", "Good pace. Expect steady progress."
    if hours_per_day < 2:
        return "challenging", "Slow pace. Consider studying more."
    return "challenging", "Intense pace. Watch for signs of fatigue."


def _fatigue_factor(hours_per_day: float) -> float:
    if hours_per_day > 8:
        return 0.4
    if hours_per_day > 6:
        return 0.6
    if hours_per_day > 4:
        return 0.8
    return 1.0


def simulate_study_scenarios(uid: str, scenarios: list[StudyScenario]) -> list[ScenarioSimulation]:
    """Estimate the score each study scenario would lead to.

    gain = hours x efficiency x 0.5 x (1 - score/100) x fatigue factor
    """
    profile = tracking.get_profile(uid)
    if profile is None:
        return [
            ScenarioSimulation(
                scenario=_scenario_label(s),
                estimated_score=0,
                estimated_admission_chance=0,
                recommendation="Not enough data to simulate.",
                feasibility="unrealistic",
            )
            for s in scenarios
        ]

    current = profile.overall_accuracy
    efficiency = learning_efficiency(profile, tracking.topic_progress(uid))

    results = []
    for scenario in scenarios:
        total_hours = scenario.hours_per_day * scenario.days
        gain = total_hours * efficiency * 0.5 * (1 - current / 100)
        gain *= _fatigue_factor(scenario.hours_per_day)
        score = min(100, round(current + gain))
        feasibility, recommendation = _feasibility(scenario.hours_per_day)
        results.append(
            ScenarioSimulation(
                scenario=_scenario_label(scenario),
                estimated_score=score,
                estimated_admission_chance=admission_chance(score),
                recommendation=recommendation,
                feasibility=feasibility,
            )
        )
    return results


# =============================================================================
# STUDY PATTERNS
# =============================================================================


def _period_of(record: PerformanceRecord) -> str:
    hour = datetime.fromisoformat(record.recorded_at).hour
    if 6 <= hour < 12:
        return "morning"
    if 12 <= hour < 18:
        return "afternoon"
    return "evening"


PERIOD_LABELS = {
    "morning": "Morning (6h-12h)",
    "afternoon": "Afternoon (12h-18h)",
    "evening": "Evening (18h-6h)",
}


def _time_of_day_averages(history: list[PerformanceRecord]) -> dict[str, float]:
    buckets: dict[str, list[float]] = {"morning": [], "afternoon": [], "evening": []}
    for record in history:
        buckets[_period_of(record)].append(record.score)
    return {period: _mean(scores) for period, scores in buckets.items()}


def _weekday_averages(history: list[PerformanceRecord]) -> dict[str, float]:
    buckets: dict[str, list[float]] = {}
    for record in history:
        weekday = WEEKDAYS[date.fromisoformat(record.session_date).weekday()]
        buckets.setdefault(weekday, []).append(record.score)
    return {day: _mean(scores) for day, scores in buckets.items()}


def _percent_above_mean(values: list[float]) -> int:
    nonzero = [v for v in values if v > 0]
    if not nonzero:
        return 0
    avg = _mean(nonzero)
    return round((max(values) - avg) / avg * 100)


def analyze_study_patterns(uid: str, today: date | None = None) -> StudyPattern:
    """Best time of day and weekday, session length and fatigue point.

    Needs at least 10 sessions in the last 60 days.
    """
    history = tracking.performance_history(uid, days=60, today=today)

    if len(history) < 10:
        return StudyPattern(
            best_time_of_day=INSUFFICIENT_DATA,
            best_day_of_week=INSUFFICIENT_DATA,
            avg_session_length=0,
            optimal_session_length=0,
            fatigue_point=0,
            insights=["Keep studying to gather more data for the analysis."],
        )

    by_period = _time_of_day_averages(history)
    best_score = max(by_period.values())
    if best_score == 0:
        best_time = INSUFFICIENT_DATA
    else:
        best_time = next(PERIOD_LABELS[p] for p, avg in by_period.items() if avg == best_score)

    by_weekday = _weekday_averages(history)
    best_day = max(by_weekday.items(), key=lambda item: item[1])[0]

    avg_length = round(_mean([h.time_spent for h in history]))

    short_avg = _mean([h.score for h in history if h.time_spent < 60])
    medium_avg = _mean([h.score for h in history if 60 <= h.time_spent <= 90])
    long_avg = _mean([h.score for h in history if h.time_spent > 90])

    optimal_length = 60
    best_bucket = medium_avg
    if short_avg > best_bucket:
        optimal_length = 45
        best_bucket = short_avg
    if long_avg > best_bucket:
        optimal_length = 90

    fatigue_point = 60 if long_avg < medium_avg - 5 else 90

    insights = []
    period_gain = _percent_above_mean(list(by_period.values()))
    if period_gain > 10:
        insights.append(f"You perform {period_gain}% better in the {best_time.split(' ')[0].lower()}")
    if fatigue_point == 60:
        insights.append("You lose focus after 1h. Take 10-minute breaks.")
    if optimal_length != avg_length:
        insights.append(f"Sessions of {optimal_length}min work best for you")
    weekday_gain = _percent_above_mean(list(by_weekday.values()))
    if weekday_gain > 8:
        insights.append(f"{best_day} is your best day ({weekday_gain}% above average)")
    if avg_length < 30:
        insights.append(f"Your sessions are short ({avg_length}min). Try 45-60min.")

    return StudyPattern(
        best_time_of_day=best_time,
        best_day_of_week=best_day,
        avg_session_length=avg_length,
        optimal_session_length=optimal_length,
        fatigue_point=fatigue_point,
        insights=insights,
    )


# =============================================================================
# SCHEDULE OPTIMISATION
# =============================================================================


@dataclass
class _RankedGap:
    gap: tracking.KnowledgeGap
    potential_gain: float
    time_needed: float
    roi: float


def _rank_gaps(gaps: list[tracking.KnowledgeGap]) -> list[_RankedGap]:
    ranked = []
    for gap in gaps:
        if gap.severity <= 0:
            continue
        potential_gain = gap.severity * PRIORITY_MULTIPLIERS.get(gap.priority, 0.5)
        time_needed = gap.severity / 10
        ranked.append(_RankedGap(gap, potential_gain, time_needed, potential_gain / time_needed))
    ranked.sort(key=lambda r: r.roi, reverse=True)
    return ranked


def _session_priority(severity: float) -> str:
    if severity > 80:
        return "critical"
    if severity > 60:
        return "high"
    if severity > 40:
        return "medium"
    return "low"


def optimize_schedule(
    uid: str,
    hours_per_day: float,
    target_date: date,
    today: date | None = None,
) -> OptimizedSchedule:
    """Greedy day-by-day plan that tackles the highest-ROI gaps first.

    ROI = severity x priority multiplier / (severity / 10). Sessions last
    at most 2 hours, use the fixed slots 08:00, 14:00, 19:00 and 21:00, and
    the plan covers at most 30 days.
    """
    today = today or utc_now().date()
    profile = tracking.get_profile(uid)
    gaps = tracking.identify_knowledge_gaps(uid)

    baseline = round(profile.overall_accuracy) if profile else 0
    empty = OptimizedSchedule(schedule=[], expected_final_score=baseline, weaknesses_addressed=0, total_study_hours=0)
    if profile is None or not gaps or hours_per_day <= 0:
        return empty

    days_until_exam = (target_date - today).days
    if days_until_exam <= 0:
        return empty

    topics = _rank_gaps(gaps)
    if not topics:
        return empty

    schedule: list[DailySchedule] = []
    total_hours = 0.0
    addressed = 0
    index = 0
    remaining = topics[0].time_needed

    for offset in range(min(days_until_exam, MAX_SCHEDULE_DAYS)):
        current = today + timedelta(days=offset)
        sessions: list[ScheduledSession] = []
        allocated = 0.0

        while allocated < hours_per_day and index < len(topics):
            topic = topics[index]
            duration = min(MAX_SESSION_HOURS, remaining, hours_per_day - allocated)

            if duration < MIN_SESSION_HOURS:
                index += 1
                if index < len(topics):
                    remaining = topics[index].time_needed
                continue

            sessions.append(
                ScheduledSession(
                    time=SESSION_SLOTS[min(len(sessions), len(SESSION_SLOTS) - 1)],
                    topic_id=topic.gap.topic_id,
                    topic_name=topic.gap.topic_name,
                    duration=round(duration * 60),
                    expected_gain=round(topic.roi * duration),
                    priority=_session_priority(topic.gap.severity),
                )
            )
            allocated += duration
            remaining -= duration
            total_hours += duration

            if remaining <= 0:
                addressed += 1
                index += 1
                if index < len(topics):
                    remaining = topics[index].time_needed

        if sessions:
            schedule.append(
                DailySchedule(
                    day=f"{WEEKDAYS[current.weekday()]}, {current.strftime('%d/%m')}",
                    date=current.isoformat(),
                    sessions=sessions,
                )
            )
        if index >= len(topics):
            break

    total_gain = sum(t.potential_gain for t in topics[:addressed])
    efficiency = learning_efficiency(profile, tracking.topic_progress(uid))
    expected = min(100, round(profile.overall_accuracy + total_gain * efficiency * 0.3))

    logger.info(
        "ai.schedule_optimized",
        uid=uid,
        days=len(schedule),
        addressed=addressed,
        hours=round(total_hours),
    )
    return OptimizedSchedule(
        schedule=schedule,
        expected_final_score=expected,
        weaknesses_addressed=addressed,
        total_study_hours=round(total_hours),
    )


# =============================================================================
# SMART RECOMMENDATIONS
# =============================================================================


def _review_interval(score: float) -> int:
    if score >= 90:
        return 30
    if score >= 80:
        return 14
    if score >= 70:
        return 7
    return 5


def generate_smart_recommendations(uid: str, now: datetime | None = None) -> list[SmartRecommendation]:
    """Combine bottleneck, spaced repetition, ROI, plateau, theory and rest
    signals into at most 7 recommendations, most important first."""
    now = now or utc_now()
    profile = tracking.get_profile(uid)
    if profile is None:
        return []

    gaps = tracking.identify_knowledge_gaps(uid)
    progress = tracking.topic_progress(uid)
    plateau = detect_learning_plateau(uid, today=now.date())
    patterns = analyze_study_patterns(uid, today=now.date())

    recommendations: list[SmartRecommendation] = []

    bottleneck = identify_bottleneck(uid, gaps)
    if bottleneck:
        recommendations.append(
            SmartRecommendation(
                id="bottleneck",
                type="urgent",
                title="Critical bottleneck detected",
                description=f"{bottleneck} is holding back your progress",
                reasoning="This topic is a prerequisite for others",
                priority=10,
                estimated_impact=25,
                confidence=85,
            )
        )

    for topic in progress:
        if not topic.last_studied:
            continue
        days_since = (now - datetime.fromisoformat(topic.last_studied)).days
        interval = _review_interval(topic.score)
        if days_since < interval:
            continue
        name = topic.topic_name or f"Topic {topic.topic_id[:8]}"
        recommendations.append(
            SmartRecommendation(
                id=f"srs-{topic.topic_id}",
                type="review",
                title="Spaced review",
                description=f"{name} needs a review",
                reasoning=f"Last studied {days_since} days ago",
                priority=min(10, round(days_since / interval * 10)),
                estimated_impact=15,
                confidence=95,
            )
        )

    for gap in [g for g in gaps if g.priority in ("high", "urgent")][:3]:
        recommendations.append(
            SmartRecommendation(
                id=f"roi-{gap.topic_id}",
                type="practice",
                title="High-return gap",
                description=f"{gap.topic_name} has a high potential for improvement",
                reasoning=f"Severity: {gap.severity:g}% | Estimated time: {gap.estimated_time_to_fix:g}h",
                priority=9 if gap.priority == "urgent" else 8,
                estimated_impact=round(gap.severity / 5),
                confidence=80,
            )
        )

    if plateau.is_in_plateau and plateau.plateau_duration > PLATEAU_MIN_DAYS:
        recommendations.append(
            SmartRecommendation(
                id="plateau",
                type="rest",
                title="Plateau detected",
                description=plateau.suggested_action,
                reasoning=f"No significant change for {plateau.plateau_duration} days",
                priority=9,
                estimated_impact=20,
                confidence=90,
            )
        )

    weak = [g for g in gaps if g.severity > 60]
    if len(weak) >= 3:
        recommendations.append(
            SmartRecommendation(
                id="theory",
                type="theory",
                title="Theory reinforcement needed",
                description="Several topics are giving you trouble",
                reasoning=f"{len(weak)} topics scored below 40%",
                priority=7,
                estimated_impact=30,
                confidence=75,
            )
        )

    if patterns.fatigue_point < 60 and patterns.avg_session_length > 0:
        recommendations.append(
            SmartRecommendation(
                id="rest",
                type="rest",
                title="Strategic breaks",
                description="You lose focus quickly",
                reasoning=f"Fatigue point: {patterns.fatigue_point}min",
                priority=6,
                estimated_impact=10,
                confidence=85,
            )
        )

    recommendations.sort(key=lambda r: (r.priority, r.estimated_impact, r.confidence), reverse=True)
    return recommendations[:MAX_SMART_RECOMMENDATIONS]
