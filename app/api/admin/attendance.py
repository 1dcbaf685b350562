"""관리자 출석 라우터 — 출석 체크, 체크인/아웃, 출석부, 보강 관리 API.

Admin Attendance Router — Marking, check-in/out, rosters, exports,
summaries, absences and makeup bookings.

Permission Matrix:
    - 모든 엔드포인트: admin + staff + teacher
    - 강사는 담당 수업만 처리 가능 (Teachers are limited to their classes → 403)
"""

from datetime import date
from typing import Annotated, Literal
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_teacher_class_scope, require_instructor
from app.database import get_db
from app.models.user import User
from app.schemas.attendance import (
    CheckInRequest,
    CheckOutRequest,
    MakeupCreate,
    MakeupUpdate,
    MarkAttendanceRequest,
)
from app.schemas.common import PaginatedResponse
from app.services.attendance_service import attendance_service
from app.utils.export import bytes_download, text_download
from app.utils.timeutil import utcnow

router: APIRouter = APIRouter()

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@router.post("/mark")
async def mark_attendance(
    data: MarkAttendanceRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_instructor)],
) -> dict:
    """출석 상태를 기록합니다 (학생·수업·날짜 기준 upsert).

    Record a status for an actively enrolled student. ``absent`` also
    records an Absence.
    """
    scope = await get_teacher_class_scope(db, current_user)
    result = await attendance_service.mark(
        db, organization_id=current_user.organization_id, data=data, current_user=current_user, scope=scope
    )
    await db.commit()
    return result


@router.post("/check-in")
async def check_in(
    data: CheckInRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_instructor)],
) -> dict:
    """학생 체크인 — student_id 또는 check_in_code.

    Check a student in; more than 10 minutes after the start counts as
    tardy.
    """
    scope = await get_teacher_class_scope(db, current_user)
    result = await attendance_service.check_in(
        db, organization_id=current_user.organization_id, data=data, current_user=current_user, scope=scope
    )
    await db.commit()
    return result


@router.post("/check-out")
async def check_out(
    data: CheckOutRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_instructor)],
) -> dict:
    """학생 체크아웃 — 종료 10분 전보다 이르면 left_early."""
    scope = await get_teacher_class_scope(db, current_user)
    result = await attendance_service.check_out(
        db, organization_id=current_user.organization_id, data=data, scope=scope
    )
    await db.commit()
    return result


@router.get("/roster")
async def get_roster(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_instructor)],
    class_instance_id: Annotated[UUID, Query()],
    roster_date: Annotated[date | None, Query(alias="date")] = None,
) -> dict:
    """수업 출석부 — 등록 학생, 보강 학생과 그날의 기록."""
    scope = await get_teacher_class_scope(db, current_user)
    return await attendance_service.roster(
        db,
        organization_id=current_user.organization_id,
        class_instance_id=class_instance_id,
        roster_date=roster_date,
        scope=scope,
    )


@router.get("/records", response_model=PaginatedResponse)
async def list_records(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_instructor)],
    start_date: Annotated[date | None, Query()] = None,
    end_date: Annotated[date | None, Query()] = None,
    class_instance_id: Annotated[UUID | None, Query()] = None,
    student_id: Annotated[UUID | None, Query()] = None,
    status: Annotated[str | None, Query()] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    per_page: Annotated[int, Query(ge=1, le=100)] = 20,
) -> dict:
    """출석 기록을 필터링하여 조회합니다."""
    scope = await get_teacher_class_scope(db, current_user)
    return await attendance_service.list_records(
        db,
        organization_id=current_user.organization_id,
        scope=scope,
        start_date=start_date,
        end_date=end_date,
        class_instance_id=class_instance_id,
        student_id=student_id,
        status=status,
        page=page,
        per_page=per_page,
    )


@router.get("/export", response_model=None)
async def export_records(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_instructor)],
    export_format: Annotated[Literal["csv", "json", "xlsx"], Query(alias="format")] = "csv",
    start_date: Annotated[date | None, Query()] = None,
    end_date: Annotated[date | None, Query()] = None,
    class_instance_id: Annotated[UUID | None, Query()] = None,
    student_id: Annotated[UUID | None, Query()] = None,
    status: Annotated[str | None, Query()] = None,
):
    """출석 기록 내보내기 — csv | json | xlsx.

    Export attendance records. JSON returns the rows inline; CSV and XLSX
    are served as attachments.
    """
    scope = await get_teacher_class_scope(db, current_user)
    rows = await attendance_service.export_rows(
        db,
        organization_id=current_user.organization_id,
        scope=scope,
        start_date=start_date,
        end_date=end_date,
        class_instance_id=class_instance_id,
        student_id=student_id,
        status=status,
    )
    stem = f"attendance_{utcnow():%Y%m%d}"
    if export_format == "json":
        return {"items": rows, "total": len(rows)}
    if export_format == "xlsx":
        return bytes_download(attendance_service.to_xlsx(rows), f"{stem}.xlsx", XLSX_MEDIA_TYPE)
    return text_download(attendance_service.to_csv(rows), f"{stem}.csv")


@router.get("/summary")
async def get_summary(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_instructor)],
    start_date: Annotated[date | None, Query()] = None,
    end_date: Annotated[date | None, Query()] = None,
    class_instance_id: Annotated[UUID | None, Query()] = None,
) -> dict:
    """기간별 수업·학생 출석률 요약."""
    scope = await get_teacher_class_scope(db, current_user)
    return await attendance_service.summary(
        db,
        organization_id=current_user.organization_id,
        scope=scope,
        start_date=start_date,
        end_date=end_date,
        class_instance_id=class_instance_id,
    )


# === 결석 / 보강 (Absences & makeups) ===

@router.get("/absences")
async def list_absences(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_instructor)],
    start_date: Annotated[date | None, Query()] = None,
    end_date: Annotated[date | None, Query()] = None,
    student_id: Annotated[UUID | None, Query()] = None,
    class_instance_id: Annotated[UUID | None, Query()] = None,
) -> list[dict]:
    """결석 목록을 조회합니다."""
    scope = await get_teacher_class_scope(db, current_user)
    return await attendance_service.list_absences(
        db,
        organization_id=current_user.organization_id,
        scope=scope,
        start_date=start_date,
        end_date=end_date,
        student_id=student_id,
        class_instance_id=class_instance_id,
    )


@router.post("/makeups", status_code=201)
async def create_makeup(
    data: MakeupCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_instructor)],
) -> dict:
    """보강 수업을 예약합니다."""
    scope = await get_teacher_class_scope(db, current_user)
    result = await attendance_service.create_makeup(
        db, organization_id=current_user.organization_id, data=data, current_user=current_user, scope=scope
    )
    await db.commit()
    return result


@router.patch("/makeups/{makeup_id}")
async def update_makeup(
    makeup_id: UUID,
    data: MakeupUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_instructor)],
) -> dict:
    """보강 예약 상태를 변경합니다 (attended / cancelled)."""
    scope = await get_teacher_class_scope(db, current_user)
    result = await attendance_service.update_makeup(
        db, makeup_id=makeup_id, organization_id=current_user.organization_id, data=data, scope=scope
    )
    await db.commit()
    return result
