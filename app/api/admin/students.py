"""관리자 학생/보호자 라우터.

Admin Student & Guardian Router — Student records, guardian records and
the links between them. Exposes two routers: ``router`` (students) and
``guardians_router``.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import require_admin_or_staff, require_instructor
from app.database import get_db
from app.models.user import User
from app.schemas.common import PaginatedResponse
from app.schemas.people import GuardianCreate, GuardianLinkRequest, StudentCreate, StudentUpdate
from app.services.people_service import people_service

router: APIRouter = APIRouter()
guardians_router: APIRouter = APIRouter()


# === 학생 (Students) ===

@router.get("", response_model=PaginatedResponse)
async def list_students(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_instructor)],
    search: Annotated[str | None, Query()] = None,
    status: Annotated[str | None, Query()] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    per_page: Annotated[int, Query(ge=1, le=100)] = 20,
) -> dict:
    """학생 목록을 조회합니다 (이름/이메일 검색)."""
    return await people_service.list_students(
        db,
        organization_id=current_user.organization_id,
        search=search,
        status=status,
        page=page,
        per_page=per_page,
    )


@router.post("", status_code=201)
async def create_student(
    data: StudentCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
) -> dict:
    """학생을 등록합니다."""
    result = await people_service.create_student(db, organization_id=current_user.organization_id, data=data)
    await db.commit()
    return result


@router.get("/{student_id}")
async def get_student(
    student_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_instructor)],
) -> dict:
    """학생 상세 (보호자 포함) 를 조회합니다."""
    return await people_service.get_student(db, student_id=student_id, organization_id=current_user.organization_id)


@router.put("/{student_id}")
async def update_student(
    student_id: UUID,
    data: StudentUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
) -> dict:
    """학생 정보를 수정합니다."""
    result = await people_service.update_student(
        db, student_id=student_id, organization_id=current_user.organization_id, data=data
    )
    await db.commit()
    return result


@router.post("/{student_id}/guardians", status_code=201)
async def link_guardian(
    student_id: UUID,
    data: GuardianLinkRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
) -> dict:
    """학생과 보호자를 연결합니다.

    Link an existing guardian to the student (relationship, is_primary).
    """
    result = await people_service.link_guardian(
        db, student_id=student_id, organization_id=current_user.organization_id, data=data
    )
    await db.commit()
    return result


# === 보호자 (Guardians) ===

@guardians_router.get("")
async def list_guardians(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
) -> list[dict]:
    """보호자 목록을 조회합니다."""
    return await people_service.list_guardians(db, organization_id=current_user.organization_id)


@guardians_router.post("", status_code=201)
async def create_guardian(
    data: GuardianCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
) -> dict:
    """보호자를 등록합니다."""
    result = await people_service.create_guardian(db, organization_id=current_user.organization_id, data=data)
    await db.commit()
    return result
