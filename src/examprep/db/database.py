"""SQLite database connection and schema management.

Provides connection management and schema initialization for every table
the platform persists: accounts, content catalogue, exams, materials,
academic tracking, the practice path and simulations.
"""

from __future__ import annotations

import json
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Generator, Iterable

import structlog

from examprep.config.app_config import get_db_path

logger = structlog.get_logger(__name__)

# Current database location (set by init_db, falls back to config)
_db_path: Path | None = None


def init_db(db_path: Path | None = None) -> Path:
    """Initialize database with schema.

    Creates the database file and all required tables if they don't exist.

    Args:
        db_path: Path to database file. Defaults to the configured path.

    Returns:
        The path that was initialized.
    """
    global _db_path
    _db_path = db_path or get_db_path()

    _db_path.parent.mkdir(parents=True, exist_ok=True)

    with get_db() as conn:
        _create_schema(conn)

    logger.info("database.initialized", path=str(_db_path))
    return _db_path


def reset_db_path() -> None:
    """Forget the initialized path so the next call resolves it again."""
    global _db_path
    _db_path = None


@contextmanager
def get_db() -> Generator[sqlite3.Connection, None, None]:
    """Get database connection as context manager.

    Commits on success, rolls back and re-raises on error.

    Example:
        with get_db() as conn:
            rows = conn.execute("SELECT * FROM exams").fetchall()
    """
    db_path = _db_path or get_db_path()
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")

    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


# =============================================================================
# HELPERS
# =============================================================================


def generate_id() -> str:
    """Generate a document id (32 hex chars)."""
    return uuid.uuid4().hex


def utc_now() -> datetime:
    """Current time in UTC."""
    return datetime.now(timezone.utc)


def utc_now_iso() -> str:
    """Current UTC time as ISO-8601 string."""
    return utc_now().isoformat()


def to_json(value: Any) -> str:
    """Serialize a JSON column value."""
    return json.dumps(value, ensure_ascii=False)


def from_json(raw: str | None, default: Any) -> Any:
    """Deserialize a JSON column value, using default for NULL/empty."""
    if not raw:
        return default
    return json.loads(raw)


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so the term matches literally (use ESCAPE '\\')."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def build_update(
    table: str,
    key_column: str,
    key_value: Any,
    fields: dict[str, Any],
    allowed: Iterable[str],
    json_columns: Iterable[str] = (),
) -> tuple[str, tuple[Any, ...]] | None:
    """Build a parameterized UPDATE statement from a field mapping.

    Only columns in `allowed` are written; unknown keys raise ValueError so
    column names never reach SQL unchecked.

    Returns:
        (sql, params) or None when there is nothing to update.
    """
    allowed = set(allowed)
    json_columns = set(json_columns)

    unknown = set(fields) - allowed
    if unknown:
        raise ValueError(f"Invalid column(s) for {table}: {sorted(unknown)}")

    if not fields:
        return None

    assignments = []
    params: list[Any] = []
    for column, value in fields.items():
        assignments.append(f"{column} = ?")
        if column in json_columns:
            params.append(to_json(value))
        elif isinstance(value, bool):
            params.append(int(value))
        else:
            params.append(value)

    params.append(key_value)
    sql = f"UPDATE {table} SET {', '.join(assignments)} WHERE {key_column} = ?"
    return sql, tuple(params)


# =============================================================================
# SCHEMA
# =============================================================================


def _create_schema(conn: sqlite3.Connection) -> None:
    """Create database schema.

    Uses IF NOT EXISTS for idempotency.
    """
    conn.executescript(
        """
        -- Accounts: credentials and bearer tokens
        CREATE TABLE IF NOT EXISTS auth_accounts (
            uid TEXT PRIMARY KEY,
            email TEXT NOT NULL UNIQUE,
            password_hash TEXT NOT NULL,
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS auth_tokens (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            uid TEXT NOT NULL REFERENCES auth_accounts(uid) ON DELETE CASCADE,
            token_hash TEXT NOT NULL UNIQUE,
            created_at TEXT NOT NULL,
            expires_at TEXT NOT NULL,
            revoked_at TEXT
        );

        -- User profiles
        CREATE TABLE IF NOT EXISTS users (
            uid TEXT PRIMARY KEY,
            email TEXT NOT NULL,
            display_name TEXT NOT NULL UNIQUE,
            photo_url TEXT,
            role TEXT NOT NULL DEFAULT 'user' CHECK(role IN ('user', 'admin')),
            streak INTEGER NOT NULL DEFAULT 0,
            is_premium INTEGER NOT NULL DEFAULT 0,
            premium_until TEXT,
            last_study_date TEXT,
            last_exam_date TEXT,
            last_challenge_date TEXT,
            daily_exercises_count INTEGER NOT NULL DEFAULT 0,
            exams_completed INTEGER NOT NULL DEFAULT 0,
            challenges_completed INTEGER NOT NULL DEFAULT 0,
            average_grade INTEGER NOT NULL DEFAULT 0,
            score INTEGER NOT NULL DEFAULT 0,
            xp INTEGER NOT NULL DEFAULT 0,
            level INTEGER NOT NULL DEFAULT 1,
            badges TEXT NOT NULL DEFAULT '[]',
            discipline_scores TEXT NOT NULL DEFAULT '{}',
            study_plan TEXT,
            data_saver_mode INTEGER NOT NULL DEFAULT 0,
            last_active TEXT,
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS user_activities (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL REFERENCES users(uid) ON DELETE CASCADE,
            activity_type TEXT NOT NULL,
            title TEXT NOT NULL,
            score INTEGER NOT NULL DEFAULT 0,
            xp_earned INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL
        );

        -- Content catalogue
        CREATE TABLE IF NOT EXISTS universities (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            short_name TEXT NOT NULL,
            is_active INTEGER NOT NULL DEFAULT 1,
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS disciplines (
            id TEXT PRIMARY KEY,
            title TEXT NOT NULL,
            icon TEXT NOT NULL DEFAULT '',
            color TEXT NOT NULL DEFAULT '',
            university_id TEXT REFERENCES universities(id) ON DELETE SET NULL,
            university_name TEXT,
            is_active INTEGER NOT NULL DEFAULT 1,
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS exams (
            id TEXT PRIMARY KEY,
            discipline_id TEXT NOT NULL,
            name TEXT NOT NULL,
            year INTEGER NOT NULL,
            season TEXT NOT NULL DEFAULT '',
            questions_count INTEGER NOT NULL DEFAULT 0,
            description TEXT,
            university TEXT,
            is_active INTEGER NOT NULL DEFAULT 1,
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS questions (
            id TEXT PRIMARY KEY,
            exam_id TEXT NOT NULL REFERENCES exams(id) ON DELETE CASCADE,
            discipline_id TEXT,
            statement TEXT NOT NULL,
            options TEXT NOT NULL,
            correct_option INTEGER NOT NULL,
            explanation TEXT,
            difficulty INTEGER,
            order_index INTEGER NOT NULL DEFAULT 0
        );

        -- Materials
        CREATE TABLE IF NOT EXISTS downloads (
            id TEXT PRIMARY KEY,
            title TEXT NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            file_url TEXT NOT NULL,
            file_size TEXT,
            type TEXT NOT NULL CHECK(type IN ('exam', 'guide', 'summary', 'other')),
            discipline_id TEXT,
            discipline_name TEXT,
            university_id TEXT,
            university_name TEXT,
            year INTEGER,
            is_premium INTEGER NOT NULL DEFAULT 0,
            download_count INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS videos (
            id TEXT PRIMARY KEY,
            title TEXT NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            youtube_url TEXT NOT NULL,
            youtube_id TEXT NOT NULL,
            thumbnail_url TEXT NOT NULL,
            duration INTEGER NOT NULL DEFAULT 0,
            discipline_id TEXT,
            subject TEXT,
            order_index INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL
        );

        -- Academic tracking
        CREATE TABLE IF NOT EXISTS student_academic_profiles (
            user_id TEXT PRIMARY KEY REFERENCES users(uid) ON DELETE CASCADE,
            target_university TEXT NOT NULL DEFAULT '',
            target_course TEXT NOT NULL DEFAULT '',
            target_year INTEGER,
            admission_exam_date TEXT,
            current_level TEXT NOT NULL DEFAULT '{}',
            completed_sections TEXT NOT NULL DEFAULT '[]',
            completed_sessions TEXT NOT NULL DEFAULT '[]',
            mastered_topics TEXT NOT NULL DEFAULT '[]',
            weak_topics TEXT NOT NULL DEFAULT '[]',
            total_study_time INTEGER NOT NULL DEFAULT 0,
            total_questions_answered INTEGER NOT NULL DEFAULT 0,
            overall_accuracy REAL NOT NULL DEFAULT 0,
            current_streak INTEGER NOT NULL DEFAULT 0,
            longest_streak INTEGER NOT NULL DEFAULT 0,
            last_updated TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS syllabus_topics (
            id TEXT PRIMARY KEY,
            discipline_id TEXT NOT NULL,
            discipline_name TEXT NOT NULL DEFAULT '',
            university_id TEXT,
            course_name TEXT,
            topic_name TEXT NOT NULL,
            subtopics TEXT NOT NULL DEFAULT '[]',
            description TEXT,
            importance INTEGER NOT NULL DEFAULT 3 CHECK(importance BETWEEN 1 AND 5),
            estimated_hours REAL NOT NULL DEFAULT 1,
            order_index INTEGER NOT NULL DEFAULT 0,
            prerequisites TEXT NOT NULL DEFAULT '[]',
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS course_requirements (
            id TEXT PRIMARY KEY,
            university_id TEXT,
            university_name TEXT,
            course_name TEXT NOT NULL UNIQUE,
            disciplines TEXT NOT NULL DEFAULT '[]',
            minimum_score REAL NOT NULL DEFAULT 0,
            estimated_study_hours REAL NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL
        );

        -- Practice path: sections > steps > practice questions
        CREATE TABLE IF NOT EXISTS learning_sections (
            id TEXT PRIMARY KEY,
            discipline_id TEXT NOT NULL REFERENCES disciplines(id) ON DELETE CASCADE,
            title TEXT NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            order_index INTEGER NOT NULL DEFAULT 0,
            is_active INTEGER NOT NULL DEFAULT 1,
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS learning_steps (
            id TEXT PRIMARY KEY,
            section_id TEXT REFERENCES learning_sections(id) ON DELETE CASCADE,
            topic_id TEXT REFERENCES syllabus_topics(id) ON DELETE SET NULL,
            title TEXT NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            content TEXT NOT NULL DEFAULT '',
            order_index INTEGER NOT NULL DEFAULT 0,
            is_active INTEGER NOT NULL DEFAULT 1,
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS learning_questions (
            id TEXT PRIMARY KEY,
            step_id TEXT NOT NULL REFERENCES learning_steps(id) ON DELETE CASCADE,
            statement TEXT NOT NULL,
            options TEXT NOT NULL,
            correct_option INTEGER NOT NULL,
            explanation TEXT,
            xp INTEGER NOT NULL DEFAULT 10,
            order_index INTEGER NOT NULL DEFAULT 0
        );

        CREATE TABLE IF NOT EXISTS practice_progress (
            user_id TEXT NOT NULL REFERENCES users(uid) ON DELETE CASCADE,
            step_id TEXT NOT NULL REFERENCES learning_steps(id) ON DELETE CASCADE,
            section_id TEXT,
            discipline_id TEXT NOT NULL,
            completed INTEGER NOT NULL DEFAULT 0,
            best_score INTEGER NOT NULL DEFAULT 0,
            last_score INTEGER NOT NULL DEFAULT 0,
            attempts INTEGER NOT NULL DEFAULT 0,
            xp_earned INTEGER NOT NULL DEFAULT 0,
            last_active TEXT NOT NULL,
            PRIMARY KEY (user_id, step_id)
        );

        CREATE TABLE IF NOT EXISTS topic_progress (
            user_id TEXT NOT NULL REFERENCES users(uid) ON DELETE CASCADE,
            topic_id TEXT NOT NULL,
            status TEXT NOT NULL DEFAULT 'in-progress'
                CHECK(status IN ('not-started', 'in-progress', 'completed', 'mastered')),
            score REAL NOT NULL DEFAULT 0,
            questions_answered INTEGER NOT NULL DEFAULT 0,
            correct_answers INTEGER NOT NULL DEFAULT 0,
            time_spent INTEGER NOT NULL DEFAULT 0,
            last_studied TEXT,
            completed_at TEXT,
            updated_at TEXT NOT NULL,
            PRIMARY KEY (user_id, topic_id)
        );

        CREATE TABLE IF NOT EXISTS performance_history (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL REFERENCES users(uid) ON DELETE CASCADE,
            discipline_id TEXT,
            session_date TEXT NOT NULL,
            recorded_at TEXT NOT NULL,
            score REAL NOT NULL,
            questions_answered INTEGER NOT NULL DEFAULT 0,
            correct_answers INTEGER NOT NULL DEFAULT 0,
            time_spent INTEGER NOT NULL DEFAULT 0,
            topics_studied TEXT NOT NULL DEFAULT '[]'
        );

        CREATE TABLE IF NOT EXISTS content_recommendations (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL REFERENCES users(uid) ON DELETE CASCADE,
            type TEXT NOT NULL,
            priority TEXT NOT NULL,
            content_id TEXT,
            content_type TEXT,
            content_title TEXT NOT NULL,
            topic_id TEXT,
            estimated_time INTEGER NOT NULL DEFAULT 0,
            difficulty INTEGER NOT NULL DEFAULT 3,
            reason TEXT NOT NULL,
            expected_impact REAL NOT NULL DEFAULT 0,
            is_completed INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL,
            expires_at TEXT
        );

        CREATE TABLE IF NOT EXISTS daily_goals (
            user_id TEXT NOT NULL REFERENCES users(uid) ON DELETE CASCADE,
            goal_date TEXT NOT NULL,
            questions_to_solve INTEGER NOT NULL,
            minutes_to_study INTEGER NOT NULL,
            topics_to_review TEXT NOT NULL DEFAULT '[]',
            questions_solved INTEGER NOT NULL DEFAULT 0,
            minutes_studied INTEGER NOT NULL DEFAULT 0,
            completion_rate INTEGER NOT NULL DEFAULT 0,
            is_completed INTEGER NOT NULL DEFAULT 0,
            PRIMARY KEY (user_id, goal_date)
        );

        CREATE TABLE IF NOT EXISTS user_achievements (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL REFERENCES users(uid) ON DELETE CASCADE,
            type TEXT NOT NULL,
            title TEXT NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            icon TEXT NOT NULL DEFAULT '',
            progress INTEGER NOT NULL DEFAULT 100,
            is_completed INTEGER NOT NULL DEFAULT 1,
            unlocked_at TEXT NOT NULL,
            UNIQUE (user_id, type, title)
        );

        CREATE TABLE IF NOT EXISTS performance_analysis_cache (
            user_id TEXT PRIMARY KEY REFERENCES users(uid) ON DELETE CASCADE,
            payload TEXT NOT NULL,
            analyzed_at TEXT NOT NULL,
            expires_at TEXT NOT NULL
        );

        -- Challenges in progress (one per user and exam)
        CREATE TABLE IF NOT EXISTS challenge_sessions (
            user_id TEXT NOT NULL REFERENCES users(uid) ON DELETE CASCADE,
            exam_id TEXT NOT NULL REFERENCES exams(id) ON DELETE CASCADE,
            started_at TEXT NOT NULL,
            PRIMARY KEY (user_id, exam_id)
        );

        -- Simulations and milestones
        CREATE TABLE IF NOT EXISTS simulation_sessions (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL REFERENCES users(uid) ON DELETE CASCADE,
            config TEXT NOT NULL,
            question_ids TEXT NOT NULL,
            started_at TEXT NOT NULL,
            completed_at TEXT
        );

        CREATE TABLE IF NOT EXISTS simulations (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL REFERENCES users(uid) ON DELETE CASCADE,
            config TEXT NOT NULL,
            score INTEGER NOT NULL,
            correct_count INTEGER NOT NULL,
            total_questions INTEGER NOT NULL,
            time_spent INTEGER NOT NULL DEFAULT 0,
            answers TEXT NOT NULL DEFAULT '{}',
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS question_history (
            user_id TEXT NOT NULL REFERENCES users(uid) ON DELETE CASCADE,
            question_id TEXT NOT NULL,
            was_correct INTEGER NOT NULL,
            attempts INTEGER NOT NULL DEFAULT 1,
            last_attempt TEXT NOT NULL,
            PRIMARY KEY (user_id, question_id)
        );

        CREATE TABLE IF NOT EXISTS user_milestones (
            user_id TEXT NOT NULL REFERENCES users(uid) ON DELETE CASCADE,
            milestone_id TEXT NOT NULL,
            earned_at TEXT NOT NULL,
            PRIMARY KEY (user_id, milestone_id)
        );

        -- Indexes
        CREATE INDEX IF NOT EXISTS idx_exams_discipline ON exams(discipline_id);
        CREATE INDEX IF NOT EXISTS idx_questions_exam ON questions(exam_id);
        CREATE INDEX IF NOT EXISTS idx_questions_discipline ON questions(discipline_id);
        CREATE INDEX IF NOT EXISTS idx_disciplines_university ON disciplines(university_id);
        CREATE INDEX IF NOT EXISTS idx_activities_user ON user_activities(user_id, created_at);
        CREATE INDEX IF NOT EXISTS idx_history_user_date ON performance_history(user_id, session_date);
        CREATE INDEX IF NOT EXISTS idx_recommendations_user ON content_recommendations(user_id, is_completed);
        CREATE INDEX IF NOT EXISTS idx_simulations_user ON simulations(user_id, created_at);
        CREATE INDEX IF NOT EXISTS idx_sections_discipline ON learning_sections(discipline_id, order_index);
        CREATE INDEX IF NOT EXISTS idx_steps_section ON learning_steps(section_id, order_index);
        CREATE INDEX IF NOT EXISTS idx_steps_topic ON learning_steps(topic_id);
        CREATE INDEX IF NOT EXISTS idx_learning_questions_step ON learning_questions(step_id);
        CREATE INDEX IF NOT EXISTS idx_practice_progress_discipline ON practice_progress(user_id, discipline_id);
        """
    )
