"""관리자 급여 라우터 — 급여율, 급여 기간, 근무 기록, 조정, 급여 명세서 API.

Admin Payroll Router — Teacher pay rates, payroll periods, time entries,
adjustments, pay stubs and exports.

Permission Matrix:
    - 조회: admin + staff
    - 생성/수정/삭제/생성 작업/내보내기: admin only
"""

from typing import Annotated, Literal
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import require_admin, require_admin_or_staff
from app.database import get_db
from app.models.user import User
from app.schemas.common import MessageResponse
from app.schemas.payroll import (
    AdjustmentCreate,
    PayRateCreate,
    PayRateUpdate,
    PayrollPeriodCreate,
    PayrollPeriodUpdate,
    TimeEntryCreate,
    TimeEntryUpdate,
)
from app.services.payroll_service import payroll_service
from app.utils.export import bytes_download, text_download

router: APIRouter = APIRouter()


# === 급여율 (Pay rates) ===

@router.get("/pay-rates")
async def list_pay_rates(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
    teacher_id: Annotated[UUID | None, Query()] = None,
) -> list[dict]:
    """강사 급여율 목록을 조회합니다."""
    return await payroll_service.list_rates(db, organization_id=current_user.organization_id, teacher_id=teacher_id)


@router.post("/pay-rates", status_code=201)
async def create_pay_rate(
    data: PayRateCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> dict:
    """급여율을 등록합니다."""
    result = await payroll_service.create_rate(db, organization_id=current_user.organization_id, data=data)
    await db.commit()
    return result


@router.put("/pay-rates/{rate_id}")
async def update_pay_rate(
    rate_id: UUID,
    data: PayRateUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> dict:
    """급여율을 수정합니다."""
    result = await payroll_service.update_rate(
        db, rate_id=rate_id, organization_id=current_user.organization_id, data=data
    )
    await db.commit()
    return result


@router.delete("/pay-rates/{rate_id}", response_model=MessageResponse)
async def delete_pay_rate(
    rate_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> dict:
    """급여율을 삭제합니다."""
    await payroll_service.delete_rate(db, rate_id=rate_id, organization_id=current_user.organization_id)
    await db.commit()
    return {"message": "급여율이 삭제되었습니다 (Pay rate deleted)"}


# === 급여 기간 (Periods) ===

@router.get("/periods")
async def list_periods(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
    status: Annotated[str | None, Query()] = None,
) -> list[dict]:
    """급여 기간 목록을 조회합니다."""
    return await payroll_service.list_periods(db, organization_id=current_user.organization_id, status=status)


@router.post("/periods", status_code=201)
async def create_period(
    data: PayrollPeriodCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> dict:
    """급여 기간을 생성합니다."""
    result = await payroll_service.create_period(db, organization_id=current_user.organization_id, data=data)
    await db.commit()
    return result


@router.get("/periods/{period_id}")
async def get_period(
    period_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
) -> dict:
    """급여 기간 상세를 조회합니다."""
    return await payroll_service.get_period(db, period_id=period_id, organization_id=current_user.organization_id)


@router.patch("/periods/{period_id}")
async def update_period(
    period_id: UUID,
    data: PayrollPeriodUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> dict:
    """급여 기간 상태를 전환하거나 메모를 수정합니다.

    Status only moves forward (processing → draft is the one step back).
    """
    result = await payroll_service.update_period(
        db, period_id=period_id, organization_id=current_user.organization_id, data=data, current_user=current_user
    )
    await db.commit()
    return result


# === 근무 기록 (Time entries) ===

@router.post("/periods/{period_id}/time-entries/generate")
async def generate_time_entries(
    period_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> dict:
    """활성 스케줄에서 근무 기록을 생성합니다. 이미 있는 기록은 건너뜁니다."""
    result = await payroll_service.generate_time_entries(
        db, period_id=period_id, organization_id=current_user.organization_id
    )
    await db.commit()
    return result


@router.get("/periods/{period_id}/time-entries")
async def list_time_entries(
    period_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
    teacher_id: Annotated[UUID | None, Query()] = None,
    status: Annotated[str | None, Query()] = None,
) -> list[dict]:
    """근무 기록 목록을 조회합니다."""
    return await payroll_service.list_time_entries(
        db,
        period_id=period_id,
        organization_id=current_user.organization_id,
        teacher_id=teacher_id,
        status=status,
    )


@router.post("/periods/{period_id}/time-entries", status_code=201)
async def create_time_entry(
    period_id: UUID,
    data: TimeEntryCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> dict:
    """수동 근무 기록을 추가합니다."""
    result = await payroll_service.create_time_entry(
        db, period_id=period_id, organization_id=current_user.organization_id, data=data
    )
    await db.commit()
    return result


@router.patch("/time-entries/{entry_id}")
async def update_time_entry(
    entry_id: UUID,
    data: TimeEntryUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> dict:
    """근무 기록을 수정합니다 (승인/반려 포함)."""
    result = await payroll_service.update_time_entry(
        db, entry_id=entry_id, organization_id=current_user.organization_id, data=data
    )
    await db.commit()
    return result


# === 조정 (Adjustments) ===

@router.get("/periods/{period_id}/adjustments")
async def list_adjustments(
    period_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
) -> list[dict]:
    """급여 조정 목록을 조회합니다."""
    return await payroll_service.list_adjustments(
        db, period_id=period_id, organization_id=current_user.organization_id
    )


@router.post("/periods/{period_id}/adjustments", status_code=201)
async def create_adjustment(
    period_id: UUID,
    data: AdjustmentCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> dict:
    """보너스/공제/환급 조정을 추가합니다."""
    result = await payroll_service.create_adjustment(
        db, period_id=period_id, organization_id=current_user.organization_id, data=data, current_user=current_user
    )
    await db.commit()
    return result


@router.delete("/adjustments/{adjustment_id}", response_model=MessageResponse)
async def delete_adjustment(
    adjustment_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> dict:
    """급여 조정을 삭제합니다."""
    await payroll_service.delete_adjustment(
        db, adjustment_id=adjustment_id, organization_id=current_user.organization_id
    )
    await db.commit()
    return {"message": "조정이 삭제되었습니다 (Adjustment deleted)"}


# === 급여 명세서 (Pay stubs) ===

@router.post("/periods/{period_id}/pay-stubs/generate")
async def generate_pay_stubs(
    period_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
) -> dict:
    """강사별 급여 명세서를 계산합니다.

    Compute one stub per teacher (upsert). Teachers without an active
    pay rate come back in ``skipped``.
    """
    result = await payroll_service.generate_pay_stubs(
        db, period_id=period_id, organization_id=current_user.organization_id
    )
    await db.commit()
    return result


@router.get("/periods/{period_id}/pay-stubs")
async def list_pay_stubs(
    period_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
) -> list[dict]:
    """급여 명세서 목록을 조회합니다."""
    return await payroll_service.list_pay_stubs(db, period_id=period_id, organization_id=current_user.organization_id)


@router.get("/pay-stubs/{stub_id}/pdf")
async def download_pay_stub(
    stub_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
) -> StreamingResponse:
    """급여 명세서 PDF를 내려받습니다."""
    data, filename = await payroll_service.render_stub_pdf(
        db, stub_id=stub_id, organization_id=current_user.organization_id
    )
    return bytes_download(data, filename, "application/pdf")


@router.get("/periods/{period_id}/export")
async def export_period(
    period_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin)],
    export_format: Annotated[Literal["csv", "quickbooks", "xlsx"], Query(alias="format")] = "csv",
) -> StreamingResponse:
    """급여 내보내기 — csv | quickbooks (IIF) | xlsx.

    Writes an export log entry; a period without pay stubs is 404.
    """
    content, filename, media_type = await payroll_service.export(
        db,
        period_id=period_id,
        organization_id=current_user.organization_id,
        export_format=export_format,
        current_user=current_user,
    )
    await db.commit()
    if isinstance(content, bytes):
        return bytes_download(content, filename, media_type)
    return text_download(content, filename, media_type)
