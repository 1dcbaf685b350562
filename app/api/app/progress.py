"""앱 출결/평가 라우터 — 자녀의 출석 기록, 결석 신고, 평가 리포트.

App Progress Router — A parent's view of their children's attendance,
upcoming-absence reports, and submitted evaluations.
"""

from datetime import date
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_guardian_for_user, require_parent
from app.database import get_db
from app.models.user import User
from app.schemas.attendance import AbsenceReport
from app.services.attendance_service import attendance_service
from app.services.evaluation_service import evaluation_service
from app.utils.export import bytes_download

router: APIRouter = APIRouter()


# === 출석 (Attendance) ===

@router.get("/attendance")
async def my_attendance(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_parent)],
    student_id: Annotated[UUID, Query()],
    start_date: Annotated[date | None, Query()] = None,
    end_date: Annotated[date | None, Query()] = None,
) -> dict:
    """자녀의 출석 기록과 출석률을 조회합니다."""
    guardian = await get_guardian_for_user(db, current_user)
    return await attendance_service.my_attendance(
        db, guardian=guardian, student_id=student_id, start_date=start_date, end_date=end_date
    )


@router.post("/absences", status_code=201)
async def report_absence(
    data: AbsenceReport,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_parent)],
) -> dict:
    """예정된 결석을 미리 신고합니다 (사유 있는 결석으로 기록)."""
    guardian = await get_guardian_for_user(db, current_user)
    result = await attendance_service.report_absence(db, guardian=guardian, data=data, current_user=current_user)
    await db.commit()
    return result


# === 평가 (Evaluations) ===

@router.get("/evaluations")
async def my_evaluations(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_parent)],
    student_id: Annotated[UUID | None, Query()] = None,
) -> list[dict]:
    """자녀의 제출된 평가 목록."""
    guardian = await get_guardian_for_user(db, current_user)
    return await evaluation_service.list_my_evaluations(db, guardian=guardian, student_id=student_id)


@router.get("/evaluations/{evaluation_id}/pdf")
async def my_evaluation_pdf(
    evaluation_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_parent)],
) -> StreamingResponse:
    """평가 리포트 PDF를 내려받습니다."""
    guardian = await get_guardian_for_user(db, current_user)
    data, filename = await evaluation_service.render_my_pdf(db, guardian=guardian, evaluation_id=evaluation_id)
    return bytes_download(data, filename, "application/pdf")
