"""관리자 수업 라우터 — 댄스 스타일 및 수업 관리 API.

Admin Class Router — Dance styles (``styles_router``) and class instances
(``router``). Teachers may read; admin and staff manage.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import require_admin_or_staff, require_instructor
from app.database import get_db
from app.models.user import User
from app.schemas.dance_class import ClassCreate, ClassUpdate, DanceStyleCreate
from app.services.class_service import class_service

router: APIRouter = APIRouter()
styles_router: APIRouter = APIRouter()


# === 댄스 스타일 (Dance styles) ===

@styles_router.get("")
async def list_styles(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_instructor)],
) -> list[dict]:
    """댄스 스타일 목록을 조회합니다."""
    return await class_service.list_styles(db, organization_id=current_user.organization_id)


@styles_router.post("", status_code=201)
async def create_style(
    data: DanceStyleCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
) -> dict:
    """댄스 스타일을 추가합니다. 이름 중복은 409."""
    result = await class_service.create_style(db, organization_id=current_user.organization_id, data=data)
    await db.commit()
    return result


# === 수업 (Classes) ===

@router.get("")
async def list_classes(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_instructor)],
    status: Annotated[str | None, Query()] = None,
    teacher_id: Annotated[UUID | None, Query()] = None,
    dance_style_id: Annotated[UUID | None, Query()] = None,
) -> list[dict]:
    """수업 목록을 조회합니다 (활성 수강 인원 포함).

    List classes with their active enrollment counts.
    """
    return await class_service.list_classes(
        db,
        organization_id=current_user.organization_id,
        status=status,
        teacher_id=teacher_id,
        dance_style_id=dance_style_id,
    )


@router.post("", status_code=201)
async def create_class(
    data: ClassCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
) -> dict:
    """수업을 생성합니다."""
    result = await class_service.create_class(db, organization_id=current_user.organization_id, data=data)
    await db.commit()
    return result


@router.get("/{class_id}")
async def get_class(
    class_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_instructor)],
) -> dict:
    """수업 상세를 조회합니다."""
    return await class_service.get_class(db, class_id=class_id, organization_id=current_user.organization_id)


@router.put("/{class_id}")
async def update_class(
    class_id: UUID,
    data: ClassUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
) -> dict:
    """수업 정보를 수정합니다."""
    result = await class_service.update_class(
        db, class_id=class_id, organization_id=current_user.organization_id, data=data
    )
    await db.commit()
    return result


@router.delete("/{class_id}")
async def delete_class(
    class_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
) -> dict:
    """수업을 삭제합니다.

    Classes with enrollments are cancelled instead of removed; the
    response says which happened.
    """
    result = await class_service.delete_class(db, class_id=class_id, organization_id=current_user.organization_id)
    await db.commit()
    return result
