"""앱 수강 등록 라우터 — 보호자의 직접 등록과 등록 요청.

App Enrollment Router — Direct enrollment of the caller's children
(``router``) and enrollment requests awaiting staff approval
(``requests_router``).
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_guardian_for_user, require_parent
from app.database import get_db
from app.models.user import User
from app.schemas.enrollment import EnrollmentCreate, EnrollmentRequestCreate
from app.services.enrollment_service import enrollment_service

router: APIRouter = APIRouter()
requests_router: APIRouter = APIRouter()


@router.get("")
async def list_my_enrollments(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_parent)],
    student_id: Annotated[UUID | None, Query()] = None,
) -> list[dict]:
    """내 자녀의 수강 목록을 조회합니다."""
    guardian = await get_guardian_for_user(db, current_user)
    return await enrollment_service.list_my_enrollments(db, guardian=guardian, student_id=student_id)


@router.post("", status_code=201)
async def create_my_enrollment(
    data: EnrollmentCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_parent)],
) -> dict:
    """자녀를 수업에 등록합니다.

    Not my child → 403; already enrolled or schedule conflict → 400;
    full class → waitlist.
    """
    guardian = await get_guardian_for_user(db, current_user)
    result = await enrollment_service.create_my_enrollment(db, guardian=guardian, data=data)
    await db.commit()
    return result


@router.delete("/{enrollment_id}")
async def drop_my_enrollment(
    enrollment_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_parent)],
) -> dict:
    """수강을 취소합니다 (dropped 처리)."""
    guardian = await get_guardian_for_user(db, current_user)
    result = await enrollment_service.drop_my_enrollment(db, guardian=guardian, enrollment_id=enrollment_id)
    await db.commit()
    return result


# === 등록 요청 (Enrollment requests) ===

@requests_router.get("")
async def list_my_requests(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_parent)],
) -> list[dict]:
    """내 등록 요청 목록을 조회합니다."""
    guardian = await get_guardian_for_user(db, current_user)
    return await enrollment_service.list_my_requests(db, guardian=guardian)


@requests_router.post("", status_code=201)
async def create_my_request(
    data: EnrollmentRequestCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_parent)],
) -> dict:
    """등록 요청을 제출합니다. 정원 초과 시 waitlist 상태로 접수됩니다."""
    guardian = await get_guardian_for_user(db, current_user)
    result = await enrollment_service.create_my_request(db, guardian=guardian, data=data)
    await db.commit()
    return result


@requests_router.delete("/{request_id}")
async def cancel_my_request(
    request_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_parent)],
) -> dict:
    """대기 중인 등록 요청을 취소합니다."""
    guardian = await get_guardian_for_user(db, current_user)
    result = await enrollment_service.cancel_my_request(db, guardian=guardian, request_id=request_id)
    await db.commit()
    return result
