"""Repository functions for universities and disciplines."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import structlog

from examprep.db.database import build_update, generate_id, get_db, utc_now_iso

logger = structlog.get_logger(__name__)

UNIVERSITY_COLUMNS = frozenset({"name", "short_name", "is_active"})
DISCIPLINE_COLUMNS = frozenset(
    {"title", "icon", "color", "university_id", "university_name", "is_active"}
)


@dataclass
class UniversityRecord:
    """University from database."""

    id: str
    name: str
    short_name: str
    is_active: bool
    created_at: str


@dataclass
class DisciplineRecord:
    """Discipline (subject area scoped to a university)."""

    id: str
    title: str
    icon: str
    color: str
    university_id: str | None
    university_name: str | None
    is_active: bool
    created_at: str


# =============================================================================
# UNIVERSITIES
# =============================================================================


def insert_university(name: str, short_name: str, is_active: bool = True) -> UniversityRecord:
    """Insert a university and return it with its generated id."""
    record = UniversityRecord(
        id=generate_id(),
        name=name,
        short_name=short_name,
        is_active=is_active,
        created_at=utc_now_iso(),
    )
    with get_db() as conn:
        conn.execute(
            "INSERT INTO universities (id, name, short_name, is_active, created_at) VALUES (?, ?, ?, ?, ?)",
            (record.id, name, short_name, int(is_active), record.created_at),
        )

    logger.debug("universities.inserted", university_id=record.id, short_name=short_name)
    return record


def get_university(university_id: str) -> UniversityRecord | None:
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM universities WHERE id = ?", (university_id,)
        ).fetchone()
    return _row_to_university(row) if row else None


def update_university(university_id: str, **fields: Any) -> bool:
    statement = build_update(
        "universities", "id", university_id, fields, UNIVERSITY_COLUMNS
    )
    if statement is None:
        return get_university(university_id) is not None

    with get_db() as conn:
        cursor = conn.execute(*statement)
    return cursor.rowcount > 0


def delete_university(university_id: str) -> bool:
    with get_db() as conn:
        cursor = conn.execute("DELETE FROM universities WHERE id = ?", (university_id,))
    deleted = cursor.rowcount > 0
    if deleted:
        logger.debug("universities.deleted", university_id=university_id)
    return deleted


def list_universities(active_only: bool = False) -> list[UniversityRecord]:
    """List universities sorted by name."""
    sql = "SELECT * FROM universities"
    if active_only:
        sql += " WHERE is_active = 1"
    sql += " ORDER BY name COLLATE NOCASE"

    with get_db() as conn:
        rows = conn.execute(sql).fetchall()
    return [_row_to_university(row) for row in rows]


def count_universities() -> int:
    with get_db() as conn:
        return conn.execute("SELECT COUNT(*) FROM universities").fetchone()[0]


# =============================================================================
# DISCIPLINES
# =============================================================================


def insert_discipline(
    title: str,
    icon: str = "",
    color: str = "",
    university_id: str | None = None,
    university_name: str | None = None,
    is_active: bool = True,
) -> DisciplineRecord:
    """Insert a discipline and return it with its generated id."""
    record = DisciplineRecord(
        id=generate_id(),
        title=title,
        icon=icon,
        color=color,
        university_id=university_id,
        university_name=university_name,
        is_active=is_active,
        created_at=utc_now_iso(),
    )
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO disciplines (id, title, icon, color, university_id, university_name, is_active, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                record.id,
                title,
                icon,
                color,
                university_id,
                university_name,
                int(is_active),
                record.created_at,
            ),
        )

    logger.debug("disciplines.inserted", discipline_id=record.id, title=title)
    return record


def get_discipline(discipline_id: str) -> DisciplineRecord | None:
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM disciplines WHERE id = ?", (discipline_id,)
        ).fetchone()
    return _row_to_discipline(row) if row else None


def update_discipline(discipline_id: str, **fields: Any) -> bool:
    statement = build_update(
        "disciplines", "id", discipline_id, fields, DISCIPLINE_COLUMNS
    )
    if statement is None:
        return get_discipline(discipline_id) is not None

    with get_db() as conn:
        cursor = conn.execute(*statement)
    return cursor.rowcount > 0


def delete_discipline(discipline_id: str) -> bool:
    with get_db() as conn:
        cursor = conn.execute("DELETE FROM disciplines WHERE id = ?", (discipline_id,))
    deleted = cursor.rowcount > 0
    if deleted:
        logger.debug("disciplines.deleted", discipline_id=discipline_id)
    return deleted


def list_disciplines(
    active_only: bool = False,
    university_id: str | None = None,
) -> list[DisciplineRecord]:
    """List disciplines sorted by title, optionally scoped to a university."""
    clauses = []
    params: list[Any] = []
    if active_only:
        clauses.append("is_active = 1")
    if university_id is not None:
        clauses.append("university_id = ?")
        params.append(university_id)

    sql = "SELECT * FROM disciplines"
    if clauses:
        sql += " WHERE " + " AND ".join(clauses)
    sql += " ORDER BY title COLLATE NOCASE"

    with get_db() as conn:
        rows = conn.execute(sql, params).fetchall()
    return [_row_to_discipline(row) for row in rows]


def _row_to_university(row) -> UniversityRecord:
    return UniversityRecord(
        id=row["id"],
        name=row["name"],
        short_name=row["short_name"],
        is_active=bool(row["is_active"]),
        created_at=row["created_at"],
    )


def _row_to_discipline(row) -> DisciplineRecord:
    return DisciplineRecord(
        id=row["id"],
        title=row["title"],
        icon=row["icon"],
        color=row["color"],
        university_id=row["university_id"],
        university_name=row["university_name"],
        is_active=bool(row["is_active"]),
        created_at=row["created_at"],
    )
