"""Downloadable study materials (past exams, guides, summaries).

Premium materials can only be requested by premium members or admins.
Discipline and university names are denormalised onto the material so
listings need no joins.
"""

from __future__ import annotations

from typing import Any

import structlog

from examprep.core import content
from examprep.core.errors import NotFoundError, PremiumRequiredError, ValidationError
from examprep.db import content_repository, materials_repository
from examprep.db.materials_repository import DOWNLOAD_TYPES, DownloadRecord
from examprep.db.users_repository import UserRecord

logger = structlog.get_logger(__name__)


def _with_names(fields: dict[str, Any]) -> dict[str, Any]:
    """Fill discipline_name/university_name from the ids being set."""
    fields = dict(fields)
    if "type" in fields and fields["type"] not in DOWNLOAD_TYPES:
        raise ValidationError(
            f"Invalid material type '{fields['type']}'. Valid: {', '.join(DOWNLOAD_TYPES)}"
        )
    if fields.get("discipline_id"):
        fields["discipline_name"] = content.get_discipline(fields["discipline_id"]).title
    if fields.get("university_id"):
        university = content_repository.get_university(fields["university_id"])
        if university is None:
            raise NotFoundError("University", fields["university_id"])
        fields["university_name"] = university.name
    return fields


def create_download(title: str, file_url: str, **fields: Any) -> DownloadRecord:
    if not title.strip() or not file_url.strip():
        raise ValidationError("title and file_url are required")
    material = materials_repository.insert_download(
        title=title, file_url=file_url, **_with_names(fields)
    )
    logger.info("downloads.created", download_id=material.id, is_premium=material.is_premium)
    return material


def get_download(download_id: str) -> DownloadRecord:
    material = materials_repository.get_download(download_id)
    if material is None:
        raise NotFoundError("Download", download_id)
    return material


def update_download(download_id: str, **fields: Any) -> DownloadRecord:
    if not materials_repository.update_download(download_id, **_with_names(fields)):
        raise NotFoundError("Download", download_id)
    return get_download(download_id)


def delete_download(download_id: str) -> None:
    if not materials_repository.delete_download(download_id):
        raise NotFoundError("Download", download_id)
    logger.info("downloads.deleted", download_id=download_id)


def list_downloads(
    search: str | None = None,
    university_id: str | None = None,
    discipline_id: str | None = None,
    material_type: str | None = None,
) -> list[DownloadRecord]:
    """Materials newest first, optionally filtered."""
    return materials_repository.list_downloads(
        search=search,
        university_id=university_id,
        discipline_id=discipline_id,
        material_type=material_type,
    )


def request_download(user: UserRecord, download_id: str) -> str:
    """Count a download and return the file URL.

    Raises:
        NotFoundError: If the material does not exist
        PremiumRequiredError: If the material is premium and the user is not
    """
    material = get_download(download_id)
    if material.is_premium and not user.has_premium_access:
        raise PremiumRequiredError("This material is available to premium members only")

    materials_repository.increment_download_count(download_id)
    logger.info("downloads.requested", download_id=download_id, uid=user.uid)
    return material.file_url
