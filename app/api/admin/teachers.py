"""관리자 강사 라우터 — 강사 정보 및 가용 시간 관리 API.

Admin Teacher Router — Teacher records and their weekly availability.

Permission Matrix:
    - 조회: admin + staff + teacher
    - 생성/수정/비활성화: admin + staff
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import require_admin_or_staff, require_instructor
from app.database import get_db
from app.models.user import User
from app.schemas.common import MessageResponse
from app.schemas.people import AvailabilityCreate, TeacherCreate, TeacherUpdate
from app.services.people_service import people_service

router: APIRouter = APIRouter()


@router.get("")
async def list_teachers(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_instructor)],
    active_only: Annotated[bool, Query()] = False,
) -> list[dict]:
    """강사 목록을 조회합니다."""
    return await people_service.list_teachers(
        db, organization_id=current_user.organization_id, active_only=active_only
    )


@router.post("", status_code=201)
async def create_teacher(
    data: TeacherCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
) -> dict:
    """강사를 등록합니다."""
    result = await people_service.create_teacher(db, organization_id=current_user.organization_id, data=data)
    await db.commit()
    return result


@router.get("/{teacher_id}")
async def get_teacher(
    teacher_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_instructor)],
) -> dict:
    """강사 상세를 조회합니다."""
    return await people_service.get_teacher(db, teacher_id=teacher_id, organization_id=current_user.organization_id)


@router.put("/{teacher_id}")
async def update_teacher(
    teacher_id: UUID,
    data: TeacherUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
) -> dict:
    """강사 정보를 수정합니다."""
    result = await people_service.update_teacher(
        db, teacher_id=teacher_id, organization_id=current_user.organization_id, data=data
    )
    await db.commit()
    return result


@router.delete("/{teacher_id}", response_model=MessageResponse)
async def deactivate_teacher(
    teacher_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
) -> dict:
    """강사를 비활성화합니다.

    Soft delete: the teacher stays on past classes and pay stubs.
    """
    await people_service.deactivate_teacher(db, teacher_id=teacher_id, organization_id=current_user.organization_id)
    await db.commit()
    return {"message": "강사가 비활성화되었습니다 (Teacher deactivated)"}


# === 가용 시간 (Availability) ===

@router.get("/{teacher_id}/availability")
async def list_availability(
    teacher_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_instructor)],
) -> list[dict]:
    """강사의 주간 가용 시간을 조회합니다."""
    return await people_service.list_availability(
        db, teacher_id=teacher_id, organization_id=current_user.organization_id
    )


@router.post("/{teacher_id}/availability", status_code=201)
async def add_availability(
    teacher_id: UUID,
    data: AvailabilityCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
) -> dict:
    """가용 시간 블록을 추가합니다. 종료가 시작보다 늦어야 합니다."""
    result = await people_service.add_availability(
        db, teacher_id=teacher_id, organization_id=current_user.organization_id, data=data
    )
    await db.commit()
    return result


@router.delete("/{teacher_id}/availability/{availability_id}", response_model=MessageResponse)
async def delete_availability(
    teacher_id: UUID,
    availability_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
) -> dict:
    """가용 시간 블록을 삭제합니다."""
    await people_service.delete_availability(
        db, teacher_id=teacher_id, availability_id=availability_id, organization_id=current_user.organization_id
    )
    await db.commit()
    return {"message": "가용 시간이 삭제되었습니다 (Availability deleted)"}
