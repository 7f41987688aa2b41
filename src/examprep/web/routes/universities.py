"""University catalogue."""

from fastapi import APIRouter, Depends, status

from examprep.core import content
from examprep.core.content_cache import get_content_store
from examprep.db.content_repository import UniversityRecord
from examprep.db.users_repository import UserRecord
from examprep.web.deps import require_admin
from examprep.web.schemas import UniversityCreate, UniversityResponse, UniversityUpdate

router = APIRouter(prefix="/api/universities", tags=["universities"])


@router.get("", response_model=list[UniversityResponse])
def list_universities() -> list[UniversityRecord]:
    """Active universities sorted by name."""
    return get_content_store().fetch().universities


@router.post("", response_model=UniversityResponse, status_code=status.HTTP_201_CREATED)
def create_university(
    data: UniversityCreate,
    admin: UserRecord = Depends(require_admin),
) -> UniversityRecord:
    university = content.create_university(data.name, data.short_name, data.is_active)
    get_content_store().clear()
    return university


@router.patch("/{university_id}", response_model=UniversityResponse)
def update_university(
    university_id: str,
    data: UniversityUpdate,
    admin: UserRecord = Depends(require_admin),
) -> UniversityRecord:
    university = content.update_university(university_id, **data.model_dump(exclude_unset=True))
    get_content_store().clear()
    return university


@router.delete("/{university_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_university(university_id: str, admin: UserRecord = Depends(require_admin)) -> None:
    content.delete_university(university_id)
    get_content_store().clear()
