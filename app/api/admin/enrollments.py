"""관리자 수강 등록 라우터 — 직접 등록, 상태 변경, 등록 요청 처리.

Admin Enrollment Router — Staff-side direct enrollment (``router``) and
processing of parent enrollment requests (``requests_router``).
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import require_admin_or_staff
from app.database import get_db
from app.models.user import User
from app.schemas.common import PaginatedResponse
from app.schemas.enrollment import (
    EnrollmentCreate,
    EnrollmentRequestProcess,
    EnrollmentUpdate,
    EnrollmentValidateRequest,
)
from app.services.enrollment_service import enrollment_service

router: APIRouter = APIRouter()
requests_router: APIRouter = APIRouter()


@router.post("/validate")
async def validate_enrollment(
    data: EnrollmentValidateRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
) -> dict:
    """등록 가능 여부를 미리 검사합니다 (저장하지 않음).

    Dry run returning conflicts, warnings and whether the student would
    land on the waitlist.
    """
    return await enrollment_service.validate(
        db,
        organization_id=current_user.organization_id,
        student_id=data.student_id,
        class_id=data.class_instance_id,
    )


@router.get("", response_model=PaginatedResponse)
async def list_enrollments(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
    class_instance_id: Annotated[UUID | None, Query()] = None,
    student_id: Annotated[UUID | None, Query()] = None,
    status: Annotated[str | None, Query()] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    per_page: Annotated[int, Query(ge=1, le=100)] = 20,
) -> dict:
    """수강 등록 목록을 조회합니다."""
    return await enrollment_service.list_enrollments(
        db,
        organization_id=current_user.organization_id,
        class_instance_id=class_instance_id,
        student_id=student_id,
        status=status,
        page=page,
        per_page=per_page,
    )


@router.post("", status_code=201)
async def create_enrollment(
    data: EnrollmentCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
) -> dict:
    """학생을 수업에 직접 등록합니다.

    Conflicts → 400 with detail; a full class puts the student on the
    waitlist.
    """
    result = await enrollment_service.create_enrollment(db, organization_id=current_user.organization_id, data=data)
    await db.commit()
    return result


@router.patch("/{enrollment_id}")
async def update_enrollment(
    enrollment_id: UUID,
    data: EnrollmentUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
) -> dict:
    """수강 상태를 변경합니다 (drop, 대기자 승격 등)."""
    result = await enrollment_service.update_enrollment(
        db, enrollment_id=enrollment_id, organization_id=current_user.organization_id, data=data
    )
    await db.commit()
    return result


# === 등록 요청 (Enrollment requests) ===

@requests_router.get("", response_model=PaginatedResponse)
async def list_requests(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
    status: Annotated[str | None, Query()] = None,
    class_instance_id: Annotated[UUID | None, Query()] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    per_page: Annotated[int, Query(ge=1, le=100)] = 20,
) -> dict:
    """보호자 등록 요청 목록을 조회합니다."""
    return await enrollment_service.list_requests(
        db,
        organization_id=current_user.organization_id,
        status=status,
        class_instance_id=class_instance_id,
        page=page,
        per_page=per_page,
    )


@requests_router.patch("/{request_id}")
async def process_request(
    request_id: UUID,
    data: EnrollmentRequestProcess,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
) -> dict:
    """등록 요청을 승인 또는 거절합니다.

    Approve creates the enrollment (active or waitlist); deny requires a
    reason.
    """
    result = await enrollment_service.process_request(
        db,
        request_id=request_id,
        organization_id=current_user.organization_id,
        data=data,
        current_user=current_user,
    )
    await db.commit()
    return result
