"""Video lessons."""

from fastapi import APIRouter, Depends, Query, status

from examprep.core import videos
from examprep.db.materials_repository import VideoRecord
from examprep.db.users_repository import UserRecord
from examprep.web.deps import require_admin
from examprep.web.schemas import VideoCreate, VideoPageResponse, VideoResponse, VideoUpdate

router = APIRouter(prefix="/api/videos", tags=["videos"])


@router.get("", response_model=VideoPageResponse)
def list_videos(
    page_size: int = Query(default=videos.DEFAULT_PAGE_SIZE, ge=1, le=100),
    after: str | None = Query(default=None),
    subject: str | None = Query(default=None),
) -> VideoPageResponse:
    """One page of lessons; pass next_cursor as `after` for the next one."""
    page = videos.list_videos(page_size, after, subject)
    next_cursor = page[-1].id if len(page) == page_size else None
    return VideoPageResponse(
        videos=[VideoResponse.model_validate(v) for v in page],
        next_cursor=next_cursor,
    )


@router.post("", response_model=VideoResponse, status_code=status.HTTP_201_CREATED)
def create_video(data: VideoCreate, admin: UserRecord = Depends(require_admin)) -> VideoRecord:
    return videos.create_video(**data.model_dump())


@router.patch("/{video_id}", response_model=VideoResponse)
def update_video(
    video_id: str,
    data: VideoUpdate,
    admin: UserRecord = Depends(require_admin),
) -> VideoRecord:
    return videos.update_video(video_id, **data.model_dump(exclude_unset=True))


@router.delete("/{video_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_video(video_id: str, admin: UserRecord = Depends(require_admin)) -> None:
    videos.delete_video(video_id)
