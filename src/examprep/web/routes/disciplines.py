"""Discipline catalogue."""

from fastapi import APIRouter, Depends, Query, status

from examprep.core import content
from examprep.core.content_cache import get_content_store
from examprep.db.content_repository import DisciplineRecord
from examprep.db.users_repository import UserRecord
from examprep.web.deps import require_admin
from examprep.web.schemas import DisciplineCreate, DisciplineResponse, DisciplineUpdate

router = APIRouter(prefix="/api/disciplines", tags=["disciplines"])


@router.get("", response_model=list[DisciplineResponse])
def list_disciplines(university_id: str | None = Query(default=None)) -> list[DisciplineRecord]:
    """Active disciplines sorted by title, optionally of one university."""
    return get_content_store().disciplines(university_id)


@router.post("", response_model=DisciplineResponse, status_code=status.HTTP_201_CREATED)
def create_discipline(
    data: DisciplineCreate,
    admin: UserRecord = Depends(require_admin),
) -> DisciplineRecord:
    discipline = content.create_discipline(**data.model_dump())
    get_content_store().clear()
    return discipline


@router.patch("/{discipline_id}", response_model=DisciplineResponse)
def update_discipline(
    discipline_id: str,
    data: DisciplineUpdate,
    admin: UserRecord = Depends(require_admin),
) -> DisciplineRecord:
    discipline = content.update_discipline(discipline_id, **data.model_dump(exclude_unset=True))
    get_content_store().clear()
    return discipline


@router.delete("/{discipline_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_discipline(discipline_id: str, admin: UserRecord = Depends(require_admin)) -> None:
    content.delete_discipline(discipline_id)
    get_content_store().clear()
