"""Repository functions for academic tracking.

Covers student academic profiles, per-topic progress, performance history,
the syllabus and course requirements, stored content
recommendations, daily goals, achievements and the performance analysis
cache.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import structlog

from examprep.db.database import (
    build_update,
    from_json,
    generate_id,
    get_db,
    to_json,
    utc_now_iso,
)

logger = structlog.get_logger(__name__)

PROFILE_COLUMNS = frozenset(
    {
        "target_university",
        "target_course",
        "target_year",
        "admission_exam_date",
        "current_level",
        "completed_sections",
        "completed_sessions",
        "mastered_topics",
        "weak_topics",
        "total_study_time",
        "total_questions_answered",
        "overall_accuracy",
        "current_streak",
        "longest_streak",
        "last_updated",
    }
)
PROFILE_JSON_COLUMNS = frozenset(
    {
        "current_level",
        "completed_sections",
        "completed_sessions",
        "mastered_topics",
        "weak_topics",
    }
)


@dataclass
class AcademicProfileRecord:
    """Admission target and aggregate study statistics."""

    user_id: str
    target_university: str = ""
    target_course: str = ""
    target_year: int | None = None
    admission_exam_date: str | None = None
    current_level: dict[str, Any] = field(default_factory=dict)
    completed_sections: list[str] = field(default_factory=list)
    completed_sessions: list[str] = field(default_factory=list)
    mastered_topics: list[str] = field(default_factory=list)
    weak_topics: list[str] = field(default_factory=list)
    total_study_time: int = 0
    total_questions_answered: int = 0
    overall_accuracy: float = 0.0
    current_streak: int = 0
    longest_streak: int = 0
    last_updated: str = ""


@dataclass
class TopicProgressRecord:
    """A student's progress on one syllabus topic.

    topic_name, discipline_id and discipline_title come from the syllabus
    and are None when the topic is not in it.
    """

    user_id: str
    topic_id: str
    status: str
    score: float
    questions_answered: int
    correct_answers: int
    time_spent: int
    last_studied: str | None
    completed_at: str | None
    topic_name: str | None = None
    discipline_id: str | None = None
    discipline_title: str | None = None


@dataclass
class PerformanceRecord:
    """One recorded study session."""

    id: str
    user_id: str
    discipline_id: str | None
    discipline_name: str
    session_date: str
    recorded_at: str
    score: float
    questions_answered: int
    correct_answers: int
    time_spent: int
    topics_studied: list[str]


@dataclass
class SyllabusTopicRecord:
    """Syllabus topic (importance 1 is critical, 5 optional)."""

    id: str
    discipline_id: str
    discipline_name: str
    topic_name: str
    importance: int
    estimated_hours: float
    order_index: int
    subtopics: list[str] = field(default_factory=list)
    prerequisites: list[str] = field(default_factory=list)
    description: str | None = None
    university_id: str | None = None
    course_name: str | None = None


@dataclass
class CourseRequirementsRecord:
    """Disciplines (with weights) required by a university course."""

    id: str
    course_name: str
    disciplines: list[dict[str, Any]]
    minimum_score: float
    estimated_study_hours: float
    university_id: str | None = None
    university_name: str | None = None


@dataclass
class RecommendationRecord:
    """Stored content recommendation."""

    id: str
    user_id: str
    type: str
    priority: str
    content_id: str | None
    content_type: str | None
    content_title: str
    topic_id: str | None
    estimated_time: int
    difficulty: int
    reason: str
    expected_impact: float
    is_completed: bool
    created_at: str
    expires_at: str | None = None


@dataclass
class DailyGoalRecord:
    user_id: str
    goal_date: str
    questions_to_solve: int
    minutes_to_study: int
    topics_to_review: list[str]
    questions_solved: int = 0
    minutes_studied: int = 0
    completion_rate: int = 0
    is_completed: bool = False


@dataclass
class AchievementRecord:
    id: str
    user_id: str
    type: str
    title: str
    description: str
    icon: str
    progress: int
    is_completed: bool
    unlocked_at: str


# =============================================================================
# PROFILES
# =============================================================================


def get_profile(user_id: str) -> AcademicProfileRecord | None:
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM student_academic_profiles WHERE user_id = ?", (user_id,)
        ).fetchone()
    return _row_to_profile(row) if row else None


def upsert_profile(user_id: str, **fields: Any) -> AcademicProfileRecord:
    """Create the profile if missing, then apply the given fields.

    Raises:
        ValueError: If a field is not a profile column
    """
    fields = {**fields, "last_updated": utc_now_iso()}
    statement = build_update(
        "student_academic_profiles",
        "user_id",
        user_id,
        fields,
        PROFILE_COLUMNS,
        PROFILE_JSON_COLUMNS,
    )

    with get_db() as conn:
        conn.execute(
            "INSERT OR IGNORE INTO student_academic_profiles (user_id, last_updated) VALUES (?, ?)",
            (user_id, fields["last_updated"]),
        )
        conn.execute(*statement)
        row = conn.execute(
            "SELECT * FROM student_academic_profiles WHERE user_id = ?", (user_id,)
        ).fetchone()

    logger.debug("tracking.profile_upserted", user_id=user_id, fields=sorted(fields))
    return _row_to_profile(row)


# =============================================================================
# TOPIC PROGRESS
# =============================================================================


_TOPIC_PROGRESS_SELECT = """
    SELECT tp.*, st.topic_name AS topic_name,
           st.discipline_id AS topic_discipline_id,
           COALESCE(d.title, NULLIF(st.discipline_name, '')) AS discipline_title
    FROM topic_progress tp
    LEFT JOIN syllabus_topics st ON st.id = tp.topic_id
    LEFT JOIN disciplines d ON d.id = st.discipline_id
"""


def list_topic_progress(user_id: str) -> list[TopicProgressRecord]:
    """All topic progress of a user, most recently studied first."""
    with get_db() as conn:
        rows = conn.execute(
            _TOPIC_PROGRESS_SELECT
            + " WHERE tp.user_id = ? ORDER BY tp.last_studied DESC, tp.updated_at DESC",
            (user_id,),
        ).fetchall()
    return [_row_to_topic_progress(row) for row in rows]


def upsert_topic_progress(
    user_id: str,
    topic_id: str,
    score: float,
    questions_answered: int,
    correct_answers: int,
    time_spent: int,
    status: str = "in-progress",
    studied_at: str | None = None,
) -> None:
    """Insert or replace a topic's progress, stamping last_studied (now by default)."""
    now = studied_at or utc_now_iso()
    completed_at = now if status in ("completed", "mastered") else None
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO topic_progress (
                user_id, topic_id, status, score, questions_answered,
                correct_answers, time_spent, last_studied, completed_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(user_id, topic_id) DO UPDATE SET
                status = excluded.status,
                score = excluded.score,
                questions_answered = excluded.questions_answered,
                correct_answers = excluded.correct_answers,
                time_spent = excluded.time_spent,
                last_studied = excluded.last_studied,
                completed_at = COALESCE(topic_progress.completed_at, excluded.completed_at),
                updated_at = excluded.updated_at
            """,
            (
                user_id,
                topic_id,
                status,
                score,
                questions_answered,
                correct_answers,
                time_spent,
                now,
                completed_at,
                now,
            ),
        )


# =============================================================================
# PERFORMANCE HISTORY
# =============================================================================


def insert_performance_record(
    user_id: str,
    discipline_id: str | None,
    session_date: str,
    score: float,
    questions_answered: int = 0,
    correct_answers: int = 0,
    time_spent: int = 0,
    topics_studied: list[str] | None = None,
    recorded_at: str | None = None,
) -> str:
    """Append a study session to the history. Returns the record id."""
    record_id = generate_id()
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO performance_history (
                id, user_id, discipline_id, session_date, recorded_at, score,
                questions_answered, correct_answers, time_spent, topics_studied
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                record_id,
                user_id,
                discipline_id,
                session_date,
                recorded_at or utc_now_iso(),
                score,
                questions_answered,
                correct_answers,
                time_spent,
                to_json(topics_studied or []),
            ),
        )
    return record_id


def list_performance_history(user_id: str, since_date: str) -> list[PerformanceRecord]:
    """Sessions on or after since_date (YYYY-MM-DD), newest first."""
    with get_db() as conn:
        rows = conn.execute(
            """
            SELECT ph.*, COALESCE(d.title, '') AS discipline_name
            FROM performance_history ph
            LEFT JOIN disciplines d ON d.id = ph.discipline_id
            WHERE ph.user_id = ? AND ph.session_date >= ?
            ORDER BY ph.session_date DESC, ph.recorded_at DESC
            """,
            (user_id, since_date),
        ).fetchall()

    return [
        PerformanceRecord(
            id=row["id"],
            user_id=row["user_id"],
            discipline_id=row["discipline_id"],
            discipline_name=row["discipline_name"],
            session_date=row["session_date"],
            recorded_at=row["recorded_at"],
            score=row["score"],
            questions_answered=row["questions_answered"],
            correct_answers=row["correct_answers"],
            time_spent=row["time_spent"],
            topics_studied=from_json(row["topics_studied"], []),
        )
        for row in rows
    ]


# =============================================================================
# SYLLABUS AND COURSES
# =============================================================================

SYLLABUS_COLUMNS = frozenset(
    {
        "discipline_name",
        "university_id",
        "course_name",
        "topic_name",
        "subtopics",
        "description",
        "importance",
        "estimated_hours",
        "order_index",
        "prerequisites",
    }
)
SYLLABUS_JSON_COLUMNS = frozenset({"subtopics", "prerequisites"})

COURSE_COLUMNS = frozenset(
    {
        "university_id",
        "university_name",
        "course_name",
        "disciplines",
        "minimum_score",
        "estimated_study_hours",
    }
)


def insert_syllabus_topic(
    discipline_id: str,
    topic_name: str,
    importance: int = 3,
    estimated_hours: float = 1.0,
    discipline_name: str = "",
    order_index: int = 0,
    subtopics: list[str] | None = None,
    prerequisites: list[str] | None = None,
    description: str | None = None,
    university_id: str | None = None,
    course_name: str | None = None,
) -> SyllabusTopicRecord:
    record = SyllabusTopicRecord(
        id=generate_id(),
        discipline_id=discipline_id,
        discipline_name=discipline_name,
        topic_name=topic_name,
        importance=importance,
        estimated_hours=estimated_hours,
        order_index=order_index,
        subtopics=subtopics or [],
        prerequisites=prerequisites or [],
        description=description,
        university_id=university_id,
        course_name=course_name,
    )
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO syllabus_topics (
                id, discipline_id, discipline_name, university_id, course_name,
                topic_name, subtopics, description, importance, estimated_hours,
                order_index, prerequisites, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                record.id,
                discipline_id,
                discipline_name,
                university_id,
                course_name,
                topic_name,
                to_json(record.subtopics),
                description,
                importance,
                estimated_hours,
                order_index,
                to_json(record.prerequisites),
                utc_now_iso(),
            ),
        )
    return record


def get_syllabus_topic(topic_id: str) -> SyllabusTopicRecord | None:
    with get_db() as conn:
        row = conn.execute("SELECT * FROM syllabus_topics WHERE id = ?", (topic_id,)).fetchone()
    return _row_to_syllabus_topic(row) if row else None


def list_syllabus_topics(discipline_id: str | None = None) -> list[SyllabusTopicRecord]:
    sql = "SELECT * FROM syllabus_topics"
    params: tuple[Any, ...] = ()
    if discipline_id is not None:
        sql += " WHERE discipline_id = ?"
        params = (discipline_id,)
    sql += " ORDER BY order_index, rowid"

    with get_db() as conn:
        rows = conn.execute(sql, params).fetchall()
    return [_row_to_syllabus_topic(row) for row in rows]


def update_syllabus_topic(topic_id: str, **fields: Any) -> bool:
    statement = build_update(
        "syllabus_topics", "id", topic_id, fields, SYLLABUS_COLUMNS, SYLLABUS_JSON_COLUMNS
    )
    if statement is None:
        return get_syllabus_topic(topic_id) is not None

    with get_db() as conn:
        cursor = conn.execute(*statement)
    return cursor.rowcount > 0


def delete_syllabus_topic(topic_id: str) -> bool:
    """Delete a topic; learning steps linked to it lose the link."""
    with get_db() as conn:
        cursor = conn.execute("DELETE FROM syllabus_topics WHERE id = ?", (topic_id,))
    return cursor.rowcount > 0


def upsert_course_requirements(
    course_name: str,
    disciplines: list[dict[str, Any]],
    minimum_score: float = 0,
    estimated_study_hours: float = 0,
    university_id: str | None = None,
    university_name: str | None = None,
) -> CourseRequirementsRecord:
    """Store the requirements of a course (keyed by course name)."""
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO course_requirements (
                id, university_id, university_name, course_name, disciplines,
                minimum_score, estimated_study_hours, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(course_name) DO UPDATE SET
                university_id = excluded.university_id,
                university_name = excluded.university_name,
                disciplines = excluded.disciplines,
                minimum_score = excluded.minimum_score,
                estimated_study_hours = excluded.estimated_study_hours
            """,
            (
                generate_id(),
                university_id,
                university_name,
                course_name,
                to_json(disciplines),
                minimum_score,
                estimated_study_hours,
                utc_now_iso(),
            ),
        )
    return get_course_requirements(course_name)


def get_course_requirements(course_name: str) -> CourseRequirementsRecord | None:
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM course_requirements WHERE course_name = ?", (course_name,)
        ).fetchone()
    return _row_to_course(row) if row else None


def get_course_by_id(course_id: str) -> CourseRequirementsRecord | None:
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM course_requirements WHERE id = ?", (course_id,)
        ).fetchone()
    return _row_to_course(row) if row else None


def list_course_requirements(university_id: str | None = None) -> list[CourseRequirementsRecord]:
    """Courses ordered by name."""
    sql = "SELECT * FROM course_requirements"
    params: tuple[Any, ...] = ()
    if university_id is not None:
        sql += " WHERE university_id = ?"
        params = (university_id,)
    sql += " ORDER BY course_name"

    with get_db() as conn:
        rows = conn.execute(sql, params).fetchall()
    return [_row_to_course(row) for row in rows]


def update_course_requirements(course_id: str, **fields: Any) -> bool:
    statement = build_update(
        "course_requirements", "id", course_id, fields, COURSE_COLUMNS, {"disciplines"}
    )
    if statement is None:
        return get_course_by_id(course_id) is not None

    with get_db() as conn:
        cursor = conn.execute(*statement)
    return cursor.rowcount > 0


def delete_course_requirements(course_id: str) -> bool:
    with get_db() as conn:
        cursor = conn.execute("DELETE FROM course_requirements WHERE id = ?", (course_id,))
    return cursor.rowcount > 0


# =============================================================================
# RECOMMENDATIONS
# =============================================================================


def insert_recommendations(user_id: str, items: list[dict[str, Any]]) -> int:
    """Insert recommendation rows in one transaction. Returns the count."""
    now = utc_now_iso()
    with get_db() as conn:
        for item in items:
            conn.execute(
                """
                INSERT INTO content_recommendations (
                    id, user_id, type, priority, content_id, content_type,
                    content_title, topic_id, estimated_time, difficulty, reason,
                    expected_impact, is_completed, created_at, expires_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, 0, ?, ?)
                """,
                (
                    generate_id(),
                    user_id,
                    item["type"],
                    item["priority"],
                    item.get("content_id"),
                    item.get("content_type"),
                    item["content_title"],
                    item.get("topic_id"),
                    int(item.get("estimated_time", 0)),
                    int(item.get("difficulty", 3)),
                    item["reason"],
                    item.get("expected_impact", 0),
                    now,
                    item.get("expires_at"),
                ),
            )
    return len(items)


def list_open_recommendations(user_id: str, limit: int = 10) -> list[RecommendationRecord]:
    """Open recommendations by priority (urgent first), then newest."""
    with get_db() as conn:
        rows = conn.execute(
            """
            SELECT * FROM content_recommendations
            WHERE user_id = ? AND is_completed = 0
            ORDER BY CASE priority
                    WHEN 'urgent' THEN 4 WHEN 'high' THEN 3
                    WHEN 'medium' THEN 2 ELSE 1 END DESC,
                created_at DESC, rowid DESC
            LIMIT ?
            """,
            (user_id, limit),
        ).fetchall()

    return [
        RecommendationRecord(
            id=row["id"],
            user_id=row["user_id"],
            type=row["type"],
            priority=row["priority"],
            content_id=row["content_id"],
            content_type=row["content_type"],
            content_title=row["content_title"],
            topic_id=row["topic_id"],
            estimated_time=row["estimated_time"],
            difficulty=row["difficulty"],
            reason=row["reason"],
            expected_impact=row["expected_impact"],
            is_completed=bool(row["is_completed"]),
            created_at=row["created_at"],
            expires_at=row["expires_at"],
        )
        for row in rows
    ]


def complete_recommendation(user_id: str, recommendation_id: str) -> bool:
    with get_db() as conn:
        cursor = conn.execute(
            "UPDATE content_recommendations SET is_completed = 1 WHERE id = ? AND user_id = ?",
            (recommendation_id, user_id),
        )
    return cursor.rowcount > 0


# =============================================================================
# DAILY GOALS
# =============================================================================


def get_daily_goal(user_id: str, goal_date: str) -> DailyGoalRecord | None:
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM daily_goals WHERE user_id = ? AND goal_date = ?",
            (user_id, goal_date),
        ).fetchone()
    return _row_to_goal(row) if row else None


def list_recent_goals(user_id: str, limit: int = 3) -> list[DailyGoalRecord]:
    """Most recent goals first."""
    with get_db() as conn:
        rows = conn.execute(
            "SELECT * FROM daily_goals WHERE user_id = ? ORDER BY goal_date DESC LIMIT ?",
            (user_id, limit),
        ).fetchall()
    return [_row_to_goal(row) for row in rows]


def upsert_daily_goal(goal: DailyGoalRecord) -> DailyGoalRecord:
    """Insert a goal, or reset targets of an existing one for that date."""
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO daily_goals (
                user_id, goal_date, questions_to_solve, minutes_to_study,
                topics_to_review, questions_solved, minutes_studied,
                completion_rate, is_completed
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(user_id, goal_date) DO UPDATE SET
                questions_to_solve = excluded.questions_to_solve,
                minutes_to_study = excluded.minutes_to_study,
                topics_to_review = excluded.topics_to_review
            """,
            (
                goal.user_id,
                goal.goal_date,
                goal.questions_to_solve,
                goal.minutes_to_study,
                to_json(goal.topics_to_review),
                goal.questions_solved,
                goal.minutes_studied,
                goal.completion_rate,
                int(goal.is_completed),
            ),
        )
        row = conn.execute(
            "SELECT * FROM daily_goals WHERE user_id = ? AND goal_date = ?",
            (goal.user_id, goal.goal_date),
        ).fetchone()
    return _row_to_goal(row)


def save_goal_progress(
    user_id: str,
    goal_date: str,
    questions_solved: int,
    minutes_studied: int,
    completion_rate: int,
) -> None:
    with get_db() as conn:
        conn.execute(
            """
            UPDATE daily_goals
            SET questions_solved = ?, minutes_studied = ?,
                completion_rate = ?, is_completed = ?
            WHERE user_id = ? AND goal_date = ?
            """,
            (
                questions_solved,
                minutes_studied,
                completion_rate,
                int(completion_rate >= 100),
                user_id,
                goal_date,
            ),
        )


# =============================================================================
# ACHIEVEMENTS
# =============================================================================


def unlock_achievement(
    user_id: str,
    achievement_type: str,
    title: str,
    description: str = "",
    icon: str = "",
) -> tuple[AchievementRecord, bool]:
    """Unlock an achievement once per (type, title).

    Returns:
        (achievement, created) where created is False if it already existed.
    """
    with get_db() as conn:
        cursor = conn.execute(
            """
            INSERT OR IGNORE INTO user_achievements (
                id, user_id, type, title, description, icon, progress,
                is_completed, unlocked_at
            ) VALUES (?, ?, ?, ?, ?, ?, 100, 1, ?)
            """,
            (generate_id(), user_id, achievement_type, title, description, icon, utc_now_iso()),
        )
        created = cursor.rowcount > 0
        row = conn.execute(
            "SELECT * FROM user_achievements WHERE user_id = ? AND type = ? AND title = ?",
            (user_id, achievement_type, title),
        ).fetchone()

    if created:
        logger.info("tracking.achievement_unlocked", user_id=user_id, title=title)
    return _row_to_achievement(row), created


def list_achievements(user_id: str) -> list[AchievementRecord]:
    with get_db() as conn:
        rows = conn.execute(
            "SELECT * FROM user_achievements WHERE user_id = ? ORDER BY unlocked_at DESC",
            (user_id,),
        ).fetchall()
    return [_row_to_achievement(row) for row in rows]


# =============================================================================
# ANALYSIS CACHE
# =============================================================================


def get_analysis_cache(user_id: str) -> tuple[dict[str, Any], str] | None:
    """Cached analysis payload and its analyzed_at timestamp."""
    with get_db() as conn:
        row = conn.execute(
            "SELECT payload, analyzed_at FROM performance_analysis_cache WHERE user_id = ?",
            (user_id,),
        ).fetchone()
    if row is None:
        return None
    return from_json(row["payload"], {}), row["analyzed_at"]


def save_analysis_cache(
    user_id: str,
    payload: dict[str, Any],
    analyzed_at: str,
    expires_at: str,
) -> None:
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO performance_analysis_cache (user_id, payload, analyzed_at, expires_at)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(user_id) DO UPDATE SET
                payload = excluded.payload,
                analyzed_at = excluded.analyzed_at,
                expires_at = excluded.expires_at
            """,
            (user_id, to_json(payload), analyzed_at, expires_at),
        )


def clear_analysis_cache(user_id: str) -> None:
    with get_db() as conn:
        conn.execute(
            "DELETE FROM performance_analysis_cache WHERE user_id = ?", (user_id,)
        )


def _row_to_profile(row) -> AcademicProfileRecord:
    return AcademicProfileRecord(
        user_id=row["user_id"],
        target_university=row["target_university"],
        target_course=row["target_course"],
        target_year=row["target_year"],
        admission_exam_date=row["admission_exam_date"],
        current_level=from_json(row["current_level"], {}),
        completed_sections=from_json(row["completed_sections"], []),
        completed_sessions=from_json(row["completed_sessions"], []),
        mastered_topics=from_json(row["mastered_topics"], []),
        weak_topics=from_json(row["weak_topics"], []),
        total_study_time=row["total_study_time"],
        total_questions_answered=row["total_questions_answered"],
        overall_accuracy=row["overall_accuracy"],
        current_streak=row["current_streak"],
        longest_streak=row["longest_streak"],
        last_updated=row["last_updated"],
    )


def _row_to_topic_progress(row) -> TopicProgressRecord:
    return TopicProgressRecord(
        user_id=row["user_id"],
        topic_id=row["topic_id"],
        status=row["status"],
        score=row["score"],
        questions_answered=row["questions_answered"],
        correct_answers=row["correct_answers"],
        time_spent=row["time_spent"],
        last_studied=row["last_studied"],
        completed_at=row["completed_at"],
        topic_name=row["topic_name"],
        discipline_id=row["topic_discipline_id"],
        discipline_title=row["discipline_title"],
    )


def _row_to_goal(row) -> DailyGoalRecord:
    return DailyGoalRecord(
        user_id=row["user_id"],
        goal_date=row["goal_date"],
        questions_to_solve=row["questions_to_solve"],
        minutes_to_study=row["minutes_to_study"],
        topics_to_review=from_json(row["topics_to_review"], []),
        questions_solved=row["questions_solved"],
        minutes_studied=row["minutes_studied"],
        completion_rate=row["completion_rate"],
        is_completed=bool(row["is_completed"]),
    )


def _row_to_achievement(row) -> AchievementRecord:
    return AchievementRecord(
        id=row["id"],
        user_id=row["user_id"],
        type=row["type"],
        title=row["title"],
        description=row["description"],
        icon=row["icon"],
        progress=row["progress"],
        is_completed=bool(row["is_completed"]),
        unlocked_at=row["unlocked_at"],
    )


def _row_to_syllabus_topic(row) -> SyllabusTopicRecord:
    return SyllabusTopicRecord(
        id=row["id"],
        discipline_id=row["discipline_id"],
        discipline_name=row["discipline_name"],
        topic_name=row["topic_name"],
        importance=row["importance"],
        estimated_hours=row["estimated_hours"],
        order_index=row["order_index"],
        subtopics=from_json(row["subtopics"], []),
        prerequisites=from_json(row["prerequisites"], []),
        description=row["description"],
        university_id=row["university_id"],
        course_name=row["course_name"],
    )


def _row_to_course(row) -> CourseRequirementsRecord:
    return CourseRequirementsRecord(
        id=row["id"],
        course_name=row["course_name"],
        disciplines=from_json(row["disciplines"], []),
        minimum_score=row["minimum_score"],
        estimated_study_hours=row["estimated_study_hours"],
        university_id=row["university_id"],
        university_name=row["university_name"],
    )
