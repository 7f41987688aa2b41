"""Repository functions for study materials: downloads and video lessons."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import structlog

from examprep.db.database import build_update, escape_like, generate_id, get_db, utc_now_iso

logger = structlog.get_logger(__name__)

DOWNLOAD_TYPES = ("exam", "guide", "summary", "other")

DOWNLOAD_COLUMNS = frozenset(
    {
        "title",
        "description",
        "file_url",
        "file_size",
        "type",
        "discipline_id",
        "discipline_name",
        "university_id",
        "university_name",
        "year",
        "is_premium",
    }
)
VIDEO_COLUMNS = frozenset(
    {
        "title",
        "description",
        "youtube_url",
        "youtube_id",
        "thumbnail_url",
        "duration",
        "discipline_id",
        "subject",
        "order_index",
    }
)


@dataclass
class DownloadRecord:
    """Downloadable material (PDF exam, guide, summary)."""

    id: str
    title: str
    description: str
    file_url: str
    file_size: str | None
    type: str
    discipline_id: str | None
    discipline_name: str | None
    university_id: str | None
    university_name: str | None
    year: int | None
    is_premium: bool
    download_count: int
    created_at: str


@dataclass
class VideoRecord:
    """YouTube-hosted video lesson."""

    id: str
    title: str
    description: str
    youtube_url: str
    youtube_id: str
    thumbnail_url: str
    duration: int
    discipline_id: str | None
    subject: str | None
    order_index: int
    created_at: str


# =============================================================================
# DOWNLOADS
# =============================================================================


def insert_download(**fields: Any) -> DownloadRecord:
    """Insert a download material.

    Raises:
        ValueError: If a field is not a download column
    """
    unknown = set(fields) - DOWNLOAD_COLUMNS
    if unknown:
        raise ValueError(f"Invalid column(s) for downloads: {sorted(unknown)}")

    record = DownloadRecord(
        id=generate_id(),
        title=fields["title"],
        description=fields.get("description", ""),
        file_url=fields["file_url"],
        file_size=fields.get("file_size"),
        type=fields.get("type", "other"),
        discipline_id=fields.get("discipline_id"),
        discipline_name=fields.get("discipline_name"),
        university_id=fields.get("university_id"),
        university_name=fields.get("university_name"),
        year=fields.get("year"),
        is_premium=bool(fields.get("is_premium", False)),
        download_count=0,
        created_at=utc_now_iso(),
    )
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO downloads (
                id, title, description, file_url, file_size, type,
                discipline_id, discipline_name, university_id, university_name,
                year, is_premium, download_count, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                record.id,
                record.title,
                record.description,
                record.file_url,
                record.file_size,
                record.type,
                record.discipline_id,
                record.discipline_name,
                record.university_id,
                record.university_name,
                record.year,
                int(record.is_premium),
                0,
                record.created_at,
            ),
        )

    logger.debug("downloads.inserted", download_id=record.id, type=record.type)
    return record


def get_download(download_id: str) -> DownloadRecord | None:
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM downloads WHERE id = ?", (download_id,)
        ).fetchone()
    return _row_to_download(row) if row else None


def list_downloads(
    search: str | None = None,
    university_id: str | None = None,
    discipline_id: str | None = None,
    material_type: str | None = None,
) -> list[DownloadRecord]:
    """List materials newest first, with optional filters.

    `search` matches the title case-insensitively.
    """
    clauses = []
    params: list[Any] = []
    if search:
        clauses.append("LOWER(title) LIKE ? ESCAPE '\\'")
        params.append(f"%{escape_like(search.lower())}%")
    if university_id:
        clauses.append("university_id = ?")
        params.append(university_id)
    if discipline_id:
        clauses.append("discipline_id = ?")
        params.append(discipline_id)
    if material_type:
        clauses.append("type = ?")
        params.append(material_type)

    sql = "SELECT * FROM downloads"
    if clauses:
        sql += " WHERE " + " AND ".join(clauses)
    sql += " ORDER BY created_at DESC, rowid DESC"

    with get_db() as conn:
        rows = conn.execute(sql, params).fetchall()
    return [_row_to_download(row) for row in rows]


def update_download(download_id: str, **fields: Any) -> bool:
    statement = build_update("downloads", "id", download_id, fields, DOWNLOAD_COLUMNS)
    if statement is None:
        return get_download(download_id) is not None

    with get_db() as conn:
        cursor = conn.execute(*statement)
    return cursor.rowcount > 0


def delete_download(download_id: str) -> bool:
    with get_db() as conn:
        cursor = conn.execute("DELETE FROM downloads WHERE id = ?", (download_id,))
    return cursor.rowcount > 0


def increment_download_count(download_id: str) -> bool:
    with get_db() as conn:
        cursor = conn.execute(
            "UPDATE downloads SET download_count = download_count + 1 WHERE id = ?",
            (download_id,),
        )
    return cursor.rowcount > 0


# =============================================================================
# VIDEOS
# =============================================================================


def insert_video(
    title: str,
    youtube_url: str,
    youtube_id: str,
    thumbnail_url: str,
    description: str = "",
    duration: int = 0,
    discipline_id: str | None = None,
    subject: str | None = None,
    order_index: int = 0,
) -> VideoRecord:
    """Insert a video lesson."""
    record = VideoRecord(
        id=generate_id(),
        title=title,
        description=description,
        youtube_url=youtube_url,
        youtube_id=youtube_id,
        thumbnail_url=thumbnail_url,
        duration=duration,
        discipline_id=discipline_id,
        subject=subject,
        order_index=order_index,
        created_at=utc_now_iso(),
    )
    with get_db() as conn:
        conn.execute(
            """
            INSERT INTO videos (
                id, title, description, youtube_url, youtube_id, thumbnail_url,
                duration, discipline_id, subject, order_index, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                record.id,
                title,
                description,
                youtube_url,
                youtube_id,
                thumbnail_url,
                duration,
                discipline_id,
                subject,
                order_index,
                record.created_at,
            ),
        )

    logger.debug("videos.inserted", video_id=record.id, youtube_id=youtube_id)
    return record


def get_video(video_id: str) -> VideoRecord | None:
    with get_db() as conn:
        row = conn.execute("SELECT * FROM videos WHERE id = ?", (video_id,)).fetchone()
    return _row_to_video(row) if row else None


def list_videos_page(
    page_size: int = 20,
    after: str | None = None,
    subject: str | None = None,
) -> list[VideoRecord]:
    """Page through lessons ordered by order_index.

    Args:
        page_size: Maximum number of lessons returned.
        after: Id of the last lesson of the previous page (cursor).
        subject: Only lessons of this subject.

    Returns:
        Up to page_size lessons. An unknown cursor yields an empty page.
    """
    clauses = []
    params: list[Any] = []
    if subject:
        clauses.append("subject = ?")
        params.append(subject)

    with get_db() as conn:
        if after is not None:
            cursor_row = conn.execute(
                "SELECT order_index, rowid FROM videos WHERE id = ?", (after,)
            ).fetchone()
            if cursor_row is None:
                return []
            clauses.append("(order_index > ? OR (order_index = ? AND rowid > ?))")
            params.extend(
                [cursor_row["order_index"], cursor_row["order_index"], cursor_row["rowid"]]
            )

        sql = "SELECT * FROM videos"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY order_index, rowid LIMIT ?"
        params.append(page_size)

        rows = conn.execute(sql, params).fetchall()
    return [_row_to_video(row) for row in rows]


def update_video(video_id: str, **fields: Any) -> bool:
    statement = build_update("videos", "id", video_id, fields, VIDEO_COLUMNS)
    if statement is None:
        return get_video(video_id) is not None

    with get_db() as conn:
        cursor = conn.execute(*statement)
    return cursor.rowcount > 0


def delete_video(video_id: str) -> bool:
    with get_db() as conn:
        cursor = conn.execute("DELETE FROM videos WHERE id = ?", (video_id,))
    return cursor.rowcount > 0


def _row_to_download(row) -> DownloadRecord:
    return DownloadRecord(
        id=row["id"],
        title=row["title"],
        description=row["description"],
        file_url=row["file_url"],
        file_size=row["file_size"],
        type=row["type"],
        discipline_id=row["discipline_id"],
        discipline_name=row["discipline_name"],
        university_id=row["university_id"],
        university_name=row["university_name"],
        year=row["year"],
        is_premium=bool(row["is_premium"]),
        download_count=row["download_count"],
        created_at=row["created_at"],
    )


def _row_to_video(row) -> VideoRecord:
    return VideoRecord(
        id=row["id"],
        title=row["title"],
        description=row["description"],
        youtube_url=row["youtube_url"],
        youtube_id=row["youtube_id"],
        thumbnail_url=row["thumbnail_url"],
        duration=row["duration"],
        discipline_id=row["discipline_id"],
        subject=row["subject"],
        order_index=row["order_index"],
        created_at=row["created_at"],
    )
