"""앱 자녀 라우터 — 보호자의 자녀 목록, 등록, 주간 시간표.

App Student Router — A parent's children: listing, adding a child, and
the child's weekly class timetable.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_guardian_for_user, require_parent
from app.database import get_db
from app.models.user import User
from app.schemas.people import StudentCreate
from app.services.people_service import people_service

router: APIRouter = APIRouter()


@router.get("")
async def list_my_students(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_parent)],
) -> list[dict]:
    """내 자녀 목록을 조회합니다."""
    guardian = await get_guardian_for_user(db, current_user)
    return await people_service.list_my_students(db, guardian=guardian)


@router.post("", status_code=201)
async def create_my_student(
    data: StudentCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_parent)],
) -> dict:
    """자녀를 등록합니다. 등록한 보호자와 자동으로 연결됩니다.

    Add a child; the new student is linked to the caller's guardian record
    as primary.
    """
    guardian = await get_guardian_for_user(db, current_user)
    result = await people_service.create_my_student(db, guardian=guardian, data=data)
    await db.commit()
    return result


@router.get("/{student_id}/schedule")
async def get_my_student_schedule(
    student_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_parent)],
) -> dict:
    """자녀의 주간 수업 시간표 — 내 자녀가 아니면 403."""
    guardian = await get_guardian_for_user(db, current_user)
    return await people_service.get_my_student_schedule(db, guardian=guardian, student_id=student_id)
