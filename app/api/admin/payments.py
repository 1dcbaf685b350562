"""관리자 수강료 결제 라우터 — 청구, 납부, 환불 기록 API.

Admin Payment Router — Tuition and fee charges recorded by the studio.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import require_admin_or_staff
from app.database import get_db
from app.models.user import User
from app.schemas.common import PaginatedResponse
from app.schemas.payment import PaymentCreate, PaymentUpdate
from app.services.payment_service import payment_service

router: APIRouter = APIRouter()


@router.get("", response_model=PaginatedResponse)
async def list_payments(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
    guardian_id: Annotated[UUID | None, Query()] = None,
    student_id: Annotated[UUID | None, Query()] = None,
    payment_status: Annotated[str | None, Query()] = None,
    payment_type: Annotated[str | None, Query()] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    per_page: Annotated[int, Query(ge=1, le=100)] = 20,
) -> dict:
    """결제 목록을 조회합니다."""
    return await payment_service.list_payments(
        db,
        organization_id=current_user.organization_id,
        guardian_id=guardian_id,
        student_id=student_id,
        payment_status=payment_status,
        payment_type=payment_type,
        page=page,
        per_page=per_page,
    )


@router.post("", status_code=201)
async def create_payment(
    data: PaymentCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
) -> dict:
    """청구/결제를 기록합니다."""
    result = await payment_service.create_payment(db, organization_id=current_user.organization_id, data=data)
    await db.commit()
    return result


@router.patch("/{payment_id}")
async def update_payment(
    payment_id: UUID,
    data: PaymentUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
) -> dict:
    """결제 상태/환불액을 변경합니다."""
    result = await payment_service.update_payment(
        db, payment_id=payment_id, organization_id=current_user.organization_id, data=data
    )
    await db.commit()
    return result
