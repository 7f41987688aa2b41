"""Preparation milestones.

Milestones measure readiness for the admission exam rather than
gamification: questions answered and syllabus coverage of the target
disciplines, full simulations taken, average score and study habit.

Disciplines named "dynamic_subject_N" stand for the N-th discipline of
the user's study plan; a milestone whose dynamic discipline is not in the
plan is irrelevant for that user and is never awarded.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

import structlog

from examprep.core import syllabus, users
from examprep.db import simulation_repository, tracking_repository

logger = structlog.get_logger(__name__)

DYNAMIC_PREFIX = "dynamic_subject_"

REQUIREMENT_TYPES = (
    "questions_count",
    "exams_completed",
    "average_score",
    "syllabus_coverage",
    "simulation_count",
    "study_streak",
)

MIN_EXAMS_FOR_AVERAGE = 3

DISCIPLINE_NAMES = {
    "math": "Mathematics",
    "portuguese": "Portuguese",
    "physics": "Physics",
    "chemistry": "Chemistry",
    "biology": "Biology",
    "history": "History",
    "geography": "Geography",
    "drawing": "Drawing",
    "geometry": "Geometry",
    "english": "English",
}


@dataclass(frozen=True)
class Requirement:
    type: str
    value: int
    discipline_id: str | None = None


@dataclass(frozen=True)
class Milestone:
    id: str
    category: str  # syllabus | simulation | performance | consistency
    name: str
    description: str
    icon: str
    requirement: Requirement


@dataclass
class MilestoneStats:
    """Current numbers a user is measured against."""

    total_questions_answered: int = 0
    exams_completed: int = 0
    simulations_completed: int = 0
    average_score: float = 0.0
    study_streak: int = 0
    questions_per_discipline: dict[str, int] = field(default_factory=dict)
    study_plan_subjects: list[str] = field(default_factory=list)
    syllabus_coverage: dict[str, float] = field(default_factory=dict)


PREPARATION_MILESTONES: tuple[Milestone, ...] = (
    Milestone(
        id="syllabus_base_1",
        category="syllabus",
        name="Core Discipline Foundation I",
        description="Answered 100 questions of your 1st main discipline.",
        icon="Calculator",
        requirement=Requirement("questions_count", 100, "dynamic_subject_1"),
    ),
    Milestone(
        id="syllabus_base_2",
        category="syllabus",
        name="Core Discipline Foundation II",
        description="Answered 100 questions of your 2nd main discipline.",
        icon="Book",
        requirement=Requirement("questions_count", 100, "dynamic_subject_2"),
    ),
    Milestone(
        id="sim_initiate",
        category="simulation",
        name="Testing Journey Begins",
        description="Completed the first full simulation.",
        icon="Flag",
        requirement=Requirement("simulation_count", 1),
    ),
    Milestone(
        id="sim_consistency",
        category="simulation",
        name="Exam Routine",
        description="Completed 5 full simulations.",
        icon="Repeat",
        requirement=Requirement("simulation_count", 5),
    ),
    Milestone(
        id="syllabus_coverage_half",
        category="syllabus",
        name="Halfway Through the Syllabus",
        description="Completed half of the practice path of your target disciplines.",
        icon="Map",
        requirement=Requirement("syllabus_coverage", 50),
    ),
    Milestone(
        id="readiness_foundational",
        category="performance",
        name="Pass Level: Foundational",
        description="Keeps an average above 50% in simulations.",
        icon="BarChart3",
        requirement=Requirement("average_score", 50),
    ),
    Milestone(
        id="readiness_competitive",
        category="performance",
        name="Pass Level: Competitive",
        description="Keeps an average above 75% in simulations.",
        icon="TrendingUp",
        requirement=Requirement("average_score", 75),
    ),
    Milestone(
        id="study_habit_formed",
        category="consistency",
        name="Study Habit Formed",
        description="Completed 50 sessions or exams.",
        icon="CalendarCheck",
        requirement=Requirement("exams_completed", 50),
    ),
)


def translate_discipline(discipline_id: str) -> str:
    return DISCIPLINE_NAMES.get(discipline_id.lower(), discipline_id.upper())


def _dynamic_index(discipline_id: str | None) -> int | None:
    if discipline_id and discipline_id.startswith(DYNAMIC_PREFIX):
        return int(discipline_id[len(DYNAMIC_PREFIX):]) - 1
    return None


def resolve_discipline(milestone: Milestone, stats: MilestoneStats) -> str | None:
    """Real discipline id of the requirement (dynamic ids mapped to the plan)."""
    discipline_id = milestone.requirement.discipline_id
    index = _dynamic_index(discipline_id)
    if index is None:
        return discipline_id
    if index < len(stats.study_plan_subjects):
        return stats.study_plan_subjects[index]
    return None


def is_milestone_irrelevant(milestone: Milestone, stats: MilestoneStats) -> bool:
    discipline_id = milestone.requirement.discipline_id
    if not discipline_id:
        return False

    index = _dynamic_index(discipline_id)
    if index is not None:
        return index >= len(stats.study_plan_subjects) or not stats.study_plan_subjects[index]

    return bool(stats.study_plan_subjects) and discipline_id not in stats.study_plan_subjects


def _current_value(milestone: Milestone, stats: MilestoneStats) -> float:
    req = milestone.requirement
    discipline_id = resolve_discipline(milestone, stats)

    if req.type == "questions_count":
        if discipline_id and stats.questions_per_discipline:
            return stats.questions_per_discipline.get(discipline_id, 0)
        return stats.total_questions_answered
    if req.type == "exams_completed":
        return stats.exams_completed
    if req.type == "simulation_count":
        return stats.simulations_completed
    if req.type == "study_streak":
        return stats.study_streak
    if req.type == "average_score":
        return stats.average_score
    if req.type == "syllabus_coverage":
        if discipline_id:
            return stats.syllabus_coverage.get(discipline_id, 0)
        values = list(stats.syllabus_coverage.values())
        return sum(values) / len(values) if values else 0
    return 0


def evaluate_requirement(milestone: Milestone, stats: MilestoneStats) -> bool:
    """Whether the stats satisfy the milestone.

    An average score only counts after MIN_EXAMS_FOR_AVERAGE exams.
    """
    req = milestone.requirement
    if req.type not in REQUIREMENT_TYPES:
        return False
    if req.type == "average_score" and stats.exams_completed < MIN_EXAMS_FOR_AVERAGE:
        return False
    return _current_value(milestone, stats) >= req.value


def milestone_progress(milestone: Milestone, stats: MilestoneStats) -> int:
    """Progress towards the milestone, 0-100."""
    return min(100, int(_current_value(milestone, stats) / milestone.requirement.value * 100))


def milestone_display_data(milestone: Milestone, stats: MilestoneStats) -> dict[str, str]:
    """Name and description with dynamic disciplines spelled out."""
    name, description = milestone.name, milestone.description
    if _dynamic_index(milestone.requirement.discipline_id) is not None:
        real_id = resolve_discipline(milestone, stats)
        discipline_name = translate_discipline(real_id) if real_id else "Discipline"
        name = re.sub(r"Core Discipline Foundation I{1,2}", f"{discipline_name} Foundation", name)
        description = re.sub(r"your (1st|2nd) main discipline", discipline_name, description)
    return {"name": name, "description": description}


# =============================================================================
# PERSISTENCE
# =============================================================================


def collect_user_stats(uid: str) -> MilestoneStats:
    """Build the milestone stats of a user from the stored data."""
    user = users.get_user(uid)
    profile = tracking_repository.get_profile(uid)

    per_discipline: dict[str, int] = {}
    for record in tracking_repository.list_performance_history(uid, since_date=""):
        if record.discipline_id:
            per_discipline[record.discipline_id] = (
                per_discipline.get(record.discipline_id, 0) + record.questions_answered
            )

    plan = user.study_plan or {}
    return MilestoneStats(
        total_questions_answered=profile.total_questions_answered if profile else 0,
        exams_completed=user.exams_completed,
        simulations_completed=simulation_repository.count_simulations(uid),
        average_score=simulation_repository.average_simulation_score(uid),
        study_streak=user.streak,
        questions_per_discipline=per_discipline,
        study_plan_subjects=list(plan.get("subjects", [])),
        syllabus_coverage=syllabus.coverage_by_discipline(uid),
    )


def check_and_update_milestones(uid: str, stats: MilestoneStats) -> list[Milestone]:
    """Persist milestones newly achieved. Returns them."""
    achieved = simulation_repository.list_milestone_ids(uid)
    new_milestones = []
    for milestone in PREPARATION_MILESTONES:
        if milestone.id in achieved or is_milestone_irrelevant(milestone, stats):
            continue
        if evaluate_requirement(milestone, stats):
            if simulation_repository.save_milestone(uid, milestone.id):
                new_milestones.append(milestone)

    if new_milestones:
        logger.info("milestones.achieved", uid=uid, milestones=[m.id for m in new_milestones])
    return new_milestones


def milestone_overview(uid: str) -> list[dict]:
    """Every relevant milestone with progress, achieved ones flagged.

    Newly reached milestones are saved first.
    """
    stats = collect_user_stats(uid)
    check_and_update_milestones(uid, stats)
    achieved = simulation_repository.list_milestone_ids(uid)

    overview = []
    for milestone in PREPARATION_MILESTONES:
        if is_milestone_irrelevant(milestone, stats):
            continue
        overview.append(
            {
                "id": milestone.id,
                "category": milestone.category,
                "icon": milestone.icon,
                **milestone_display_data(milestone, stats),
                "progress": milestone_progress(milestone, stats),
                "achieved": milestone.id in achieved,
            }
        )
    return overview
