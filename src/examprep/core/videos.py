"""YouTube video lessons."""

from __future__ import annotations

from typing import Any

import structlog

from examprep.core.errors import NotFoundError, ValidationError
from examprep.db import materials_repository
from examprep.db.materials_repository import VideoRecord
from examprep.utils.youtube import extract_youtube_id, youtube_thumbnail

logger = structlog.get_logger(__name__)

DEFAULT_PAGE_SIZE = 20


def _parse_url(url: str) -> str:
    youtube_id = extract_youtube_id(url)
    if youtube_id is None:
        raise ValidationError(f"Not a valid YouTube URL: {url}")
    return youtube_id


def create_video(
    title: str,
    youtube_url: str,
    description: str = "",
    duration: int = 0,
    discipline_id: str | None = None,
    subject: str | None = None,
    order_index: int = 0,
) -> VideoRecord:
    """Add a lesson; the video id and thumbnail come from the URL.

    Raises:
        ValidationError: If the URL is not a YouTube video URL
    """
    youtube_id = _parse_url(youtube_url)
    video = materials_repository.insert_video(
        title=title,
        youtube_url=youtube_url,
        youtube_id=youtube_id,
        thumbnail_url=youtube_thumbnail(youtube_id, "hq"),
        description=description,
        duration=duration,
        discipline_id=discipline_id,
        subject=subject,
        order_index=order_index,
    )
    logger.info("videos.created", video_id=video.id, youtube_id=youtube_id)
    return video


def get_video(video_id: str) -> VideoRecord:
    video = materials_repository.get_video(video_id)
    if video is None:
        raise NotFoundError("Video", video_id)
    return video


def update_video(video_id: str, **fields: Any) -> VideoRecord:
    if "youtube_url" in fields:
        youtube_id = _parse_url(fields["youtube_url"])
        fields["youtube_id"] = youtube_id
        fields["thumbnail_url"] = youtube_thumbnail(youtube_id, "hq")

    if not materials_repository.update_video(video_id, **fields):
        raise NotFoundError("Video", video_id)
    return get_video(video_id)


def delete_video(video_id: str) -> None:
    if not materials_repository.delete_video(video_id):
        raise NotFoundError("Video", video_id)


def list_videos(
    page_size: int = DEFAULT_PAGE_SIZE,
    after: str | None = None,
    subject: str | None = None,
) -> list[VideoRecord]:
    if page_size <= 0:
        raise ValidationError("page_size must be positive")
    return materials_repository.list_videos_page(page_size=page_size, after=after, subject=subject)
