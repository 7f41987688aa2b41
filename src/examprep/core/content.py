"""Content catalogue: universities and their disciplines.

Responsibilities:
- Admin CRUD for universities and disciplines
- Active listings for students (sorted by name / title)
- Seeding the default catalogue (UEM and UP admission disciplines)
"""

from __future__ import annotations

from typing import Any

import structlog

from examprep.core.errors import NotFoundError
from examprep.db import content_repository
from examprep.db.content_repository import DisciplineRecord, UniversityRecord

logger = structlog.get_logger(__name__)

# =============================================================================
# DEFAULT CATALOGUE
# =============================================================================

DEFAULT_UNIVERSITIES = [
    {"name": "Universidade Eduardo Mondlane", "short_name": "UEM"},
    {"name": "Universidade Pedagógica", "short_name": "UP"},
]

# (title, university short name, icon, color)
DEFAULT_DISCIPLINES = [
    ("Biologia", "UEM", "🧬", "bg-green-100 text-green-600"),
    ("Filosofia", "UEM", "🤔", "bg-yellow-100 text-yellow-600"),
    ("Física", "UEM", "⚡", "bg-yellow-100 text-yellow-600"),
    ("Francês", "UEM", "🇫🇷", "bg-blue-100 text-blue-600"),
    ("Geografia", "UEM", "🌍", "bg-teal-100 text-teal-600"),
    ("História", "UEM", "🏛️", "bg-orange-100 text-orange-600"),
    ("Inglês", "UEM", "🇬🇧", "bg-purple-100 text-purple-600"),
    ("Matemática", "UEM", "📐", "bg-red-100 text-red-600"),
    ("Música", "UEM", "🎵", "bg-pink-100 text-pink-600"),
    ("Português 1", "UEM", "📚", "bg-blue-100 text-blue-600"),
    ("Português 2", "UEM", "📖", "bg-blue-100 text-blue-600"),
    ("Química", "UEM", "🧪", "bg-pink-100 text-pink-600"),
    ("Desenho 1", "UEM", "✏️", "bg-gray-100 text-gray-600"),
    ("Desenho 2", "UEM", "🎨", "bg-gray-100 text-gray-600"),
    ("Teatro", "UEM", "🎭", "bg-red-100 text-red-600"),
    ("Biologia", "UP", "🧬", "bg-green-100 text-green-600"),
    ("Biologia (Ed. Física)", "UP", "🏃", "bg-green-100 text-green-600"),
    ("Desenho", "UP", "✏️", "bg-gray-100 text-gray-600"),
    ("Filosofia", "UP", "🤔", "bg-yellow-100 text-yellow-600"),
    ("Física", "UP", "⚡", "bg-yellow-100 text-yellow-600"),
    ("Francês", "UP", "🇫🇷", "bg-blue-100 text-blue-600"),
    ("Geografia", "UP", "🌍", "bg-teal-100 text-teal-600"),
    ("História", "UP", "🏛️", "bg-orange-100 text-orange-600"),
    ("Inglês", "UP", "🇬🇧", "bg-purple-100 text-purple-600"),
    ("Matemática", "UP", "📐", "bg-red-100 text-red-600"),
    ("Português", "UP", "📚", "bg-blue-100 text-blue-600"),
    ("Química", "UP", "🧪", "bg-pink-100 text-pink-600"),
]


# =============================================================================
# UNIVERSITIES
# =============================================================================


def create_university(name: str, short_name: str, is_active: bool = True) -> UniversityRecord:
    university = content_repository.insert_university(name, short_name, is_active)
    logger.info("universities.created", university_id=university.id, short_name=short_name)
    return university


def update_university(university_id: str, **fields: Any) -> UniversityRecord:
    """Update a university and return the stored version.

    Raises:
        NotFoundError: If the university does not exist
    """
    if not content_repository.update_university(university_id, **fields):
        raise NotFoundError("University", university_id)
    return content_repository.get_university(university_id)


def delete_university(university_id: str) -> None:
    if not content_repository.delete_university(university_id):
        raise NotFoundError("University", university_id)
    logger.info("universities.deleted", university_id=university_id)


def list_universities(active_only: bool = False) -> list[UniversityRecord]:
    return content_repository.list_universities(active_only=active_only)


# =============================================================================
# DISCIPLINES
# =============================================================================


def create_discipline(
    title: str,
    icon: str = "",
    color: str = "",
    university_id: str | None = None,
    is_active: bool = True,
) -> DisciplineRecord:
    """Create a discipline, denormalising the university name.

    Raises:
        NotFoundError: If university_id is given but unknown
    """
    university_name = None
    if university_id is not None:
        university = content_repository.get_university(university_id)
        if university is None:
            raise NotFoundError("University", university_id)
        university_name = university.name

    discipline = content_repository.insert_discipline(
        title=title,
        icon=icon,
        color=color,
        university_id=university_id,
        university_name=university_name,
        is_active=is_active,
    )
    logger.info("disciplines.created", discipline_id=discipline.id, title=title)
    return discipline


def update_discipline(discipline_id: str, **fields: Any) -> DisciplineRecord:
    """Update a discipline; changing university_id refreshes university_name."""
    if fields.get("university_id") is not None:
        university = content_repository.get_university(fields["university_id"])
        if university is None:
            raise NotFoundError("University", fields["university_id"])
        fields["university_name"] = university.name

    if not content_repository.update_discipline(discipline_id, **fields):
        raise NotFoundError("Discipline", discipline_id)
    return content_repository.get_discipline(discipline_id)


def delete_discipline(discipline_id: str) -> None:
    if not content_repository.delete_discipline(discipline_id):
        raise NotFoundError("Discipline", discipline_id)
    logger.info("disciplines.deleted", discipline_id=discipline_id)


def get_discipline(discipline_id: str) -> DisciplineRecord:
    discipline = content_repository.get_discipline(discipline_id)
    if discipline is None:
        raise NotFoundError("Discipline", discipline_id)
    return discipline


def list_disciplines(active_only: bool = False) -> list[DisciplineRecord]:
    return content_repository.list_disciplines(active_only=active_only)


def disciplines_by_university(university_id: str) -> list[DisciplineRecord]:
    """Active disciplines of one university, sorted by title."""
    return content_repository.list_disciplines(active_only=True, university_id=university_id)


# =============================================================================
# SEEDING
# =============================================================================


def initialize_default_content() -> bool:
    """Seed the default universities and their disciplines.

    Does nothing when any university already exists.

    Returns:
        True if content was created, False if the catalogue was not empty.
    """
    if content_repository.count_universities() > 0:
        logger.info("content.seed_skipped", reason="universities_exist")
        return False

    universities = {}
    for data in DEFAULT_UNIVERSITIES:
        universities[data["short_name"]] = content_repository.insert_university(
            data["name"], data["short_name"]
        )

    for title, short_name, icon, color in DEFAULT_DISCIPLINES:
        university = universities[short_name]
        content_repository.insert_discipline(
            title=title,
            icon=icon,
            color=color,
            university_id=university.id,
            university_name=university.name,
        )

    logger.info(
        "content.seeded",
        universities=len(universities),
        disciplines=len(DEFAULT_DISCIPLINES),
    )
    return True
