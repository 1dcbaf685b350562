"""앱 계정 라우터 — 보호자의 결제 내역, 영수증, 스튜디오 문의.

App Account Router — A parent's tuition payments (list, CSV export, PDF
receipt) and their messages to the studio.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_guardian_for_user, require_parent
from app.database import get_db
from app.models.user import User
from app.schemas.message import ParentMessageCreate
from app.services.inbox_service import inbox_service
from app.services.payment_service import payment_service
from app.utils.export import bytes_download, text_download

router: APIRouter = APIRouter()


# === 결제 (Payments) ===

@router.get("/payments")
async def my_payments(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_parent)],
) -> list[dict]:
    """내 결제 내역을 조회합니다."""
    guardian = await get_guardian_for_user(db, current_user)
    return await payment_service.list_my_payments(db, guardian=guardian)


# export 는 /payments/{payment_id} 보다 먼저 등록
@router.get("/payments/export")
async def export_my_payments(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_parent)],
) -> StreamingResponse:
    """결제 내역 CSV를 내려받습니다."""
    guardian = await get_guardian_for_user(db, current_user)
    content, filename = await payment_service.export_my_payments(db, guardian=guardian)
    return text_download(content, filename)


@router.get("/payments/{payment_id}/receipt")
async def my_payment_receipt(
    payment_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_parent)],
) -> StreamingResponse:
    """결제 영수증 PDF — 다른 보호자의 결제는 404."""
    guardian = await get_guardian_for_user(db, current_user)
    data, filename = await payment_service.render_receipt(db, guardian=guardian, payment_id=payment_id)
    return bytes_download(data, filename, "application/pdf")


# === 문의 (Messages) ===

@router.get("/messages")
async def my_messages(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_parent)],
) -> list[dict]:
    """내가 보낸 문의와 스튜디오 답장을 조회합니다."""
    return await inbox_service.list_parent_messages(db, user=current_user)


@router.post("/messages", status_code=201)
async def send_my_message(
    data: ParentMessageCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_parent)],
) -> dict:
    """스튜디오에 문의를 보냅니다 (메시지함 수신)."""
    guardian = await get_guardian_for_user(db, current_user)
    result = await inbox_service.create_parent_message(db, user=current_user, guardian=guardian, data=data)
    await db.commit()
    return result
