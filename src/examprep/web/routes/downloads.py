"""Downloadable study materials."""

from fastapi import APIRouter, Depends, Query, status

from examprep.core import downloads
from examprep.db.materials_repository import DownloadRecord
from examprep.db.users_repository import UserRecord
from examprep.web.deps import get_current_user, require_admin
from examprep.web.schemas import (
    DownloadCreate,
    DownloadLinkResponse,
    DownloadResponse,
    DownloadUpdate,
)

router = APIRouter(prefix="/api/downloads", tags=["downloads"])


@router.get("", response_model=list[DownloadResponse])
def list_downloads(
    search: str | None = Query(default=None),
    university_id: str | None = Query(default=None),
    discipline_id: str | None = Query(default=None),
    type: str | None = Query(default=None),
) -> list[DownloadRecord]:
    """Materials newest first; search matches title and description."""
    return downloads.list_downloads(search, university_id, discipline_id, type)


@router.post("", response_model=DownloadResponse, status_code=status.HTTP_201_CREATED)
def create_download(
    data: DownloadCreate,
    admin: UserRecord = Depends(require_admin),
) -> DownloadRecord:
    return downloads.create_download(**data.model_dump())


@router.patch("/{download_id}", response_model=DownloadResponse)
def update_download(
    download_id: str,
    data: DownloadUpdate,
    admin: UserRecord = Depends(require_admin),
) -> DownloadRecord:
    return downloads.update_download(download_id, **data.model_dump(exclude_unset=True))


@router.delete("/{download_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_download(download_id: str, admin: UserRecord = Depends(require_admin)) -> None:
    downloads.delete_download(download_id)


@router.post("/{download_id}/request", response_model=DownloadLinkResponse)
def request_download(
    download_id: str,
    user: UserRecord = Depends(get_current_user),
) -> DownloadLinkResponse:
    """Count the download and hand out the file URL (premium gate applies)."""
    return DownloadLinkResponse(file_url=downloads.request_download(user, download_id))
