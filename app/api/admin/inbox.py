"""관리자 메시지함 라우터 — 수신 메시지 관리, 발송, 답장 API.

Admin Inbox Router — Studio inbox: listing and triage, stats, outbound
email, replies, bulk actions and attachments. Open to admin, staff and
teachers; the service enforces per-message edit rights.
"""

from typing import Annotated, Literal
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import require_instructor
from app.database import get_db
from app.models.user import User
from app.schemas.common import MessageResponse
from app.schemas.message import (
    AttachmentCreate,
    AttachmentUploadRequest,
    BulkActionRequest,
    MessageUpdate,
    ReplyRequest,
    SendMessageRequest,
)
from app.services.inbox_service import inbox_service

router: APIRouter = APIRouter()


@router.get("")
async def list_messages(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_instructor)],
    status: Annotated[str | None, Query()] = None,
    message_type: Annotated[str | None, Query()] = None,
    priority: Annotated[str | None, Query()] = None,
    assigned_to: Annotated[UUID | None, Query()] = None,
    is_starred: Annotated[bool | None, Query()] = None,
    search: Annotated[str | None, Query()] = None,
    include_deleted: Annotated[bool, Query()] = False,
    sort_by: Annotated[str, Query()] = "created_at",
    sort_order: Annotated[Literal["asc", "desc"], Query()] = "desc",
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 50,
) -> dict:
    """메시지 목록을 필터링하여 조회합니다.

    List inbox messages. Deleted messages are excluded unless
    ``include_deleted`` is set.
    """
    return await inbox_service.list_messages(
        db,
        organization_id=current_user.organization_id,
        status=status,
        message_type=message_type,
        priority=priority,
        assigned_to=assigned_to,
        is_starred=is_starred,
        search=search,
        include_deleted=include_deleted,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        limit=limit,
    )


@router.get("/stats")
async def get_stats(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_instructor)],
) -> dict:
    """메시지함 통계 — 상태/유형/우선순위별 건수, 평균 응답 시간."""
    return await inbox_service.stats(db, organization_id=current_user.organization_id, user=current_user)


@router.post("/send", status_code=201)
async def send_message(
    data: SendMessageRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_instructor)],
) -> dict:
    """이메일 메시지를 발송합니다.

    Creates a thread and an outbound message and emails every recipient.
    A failed send archives the message and returns 500.
    """
    result = await inbox_service.send(db, organization_id=current_user.organization_id, data=data, user=current_user)
    await db.commit()
    return result


@router.post("/bulk-action")
async def bulk_action(
    data: BulkActionRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_instructor)],
) -> dict:
    """여러 메시지에 일괄 작업을 적용합니다 (assign 은 관리자만)."""
    result = await inbox_service.bulk_action(
        db, organization_id=current_user.organization_id, data=data, user=current_user
    )
    await db.commit()
    return result


@router.get("/{message_id}")
async def get_message(
    message_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_instructor)],
) -> dict:
    """메시지 상세를 조회하고 읽음 처리합니다."""
    result = await inbox_service.get_message(
        db, message_id=message_id, organization_id=current_user.organization_id, user=current_user
    )
    await db.commit()
    return result


@router.patch("/{message_id}")
async def update_message(
    message_id: UUID,
    data: MessageUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_instructor)],
) -> dict:
    """메시지 상태/우선순위/담당자/태그/별표를 수정합니다."""
    result = await inbox_service.update_message(
        db, message_id=message_id, organization_id=current_user.organization_id, data=data, user=current_user
    )
    await db.commit()
    return result


@router.delete("/{message_id}", response_model=MessageResponse)
async def delete_message(
    message_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_instructor)],
) -> dict:
    """메시지를 삭제합니다 (소프트 삭제)."""
    await inbox_service.delete_message(
        db, message_id=message_id, organization_id=current_user.organization_id, user=current_user
    )
    await db.commit()
    return {"message": "메시지가 삭제되었습니다 (Message deleted)"}


@router.post("/{message_id}/reply", status_code=201)
async def reply_message(
    message_id: UUID,
    data: ReplyRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_instructor)],
) -> dict:
    """원 발신자에게 답장합니다."""
    result = await inbox_service.reply(
        db, message_id=message_id, organization_id=current_user.organization_id, data=data, user=current_user
    )
    await db.commit()
    return result


@router.post("/{message_id}/attachments/upload-url")
async def attachment_upload_url(
    message_id: UUID,
    data: AttachmentUploadRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_instructor)],
) -> dict:
    """첨부파일 업로드용 presigned URL을 발급합니다."""
    return await inbox_service.attachment_upload_url(
        db, message_id=message_id, organization_id=current_user.organization_id, data=data
    )


@router.post("/{message_id}/attachments", status_code=201)
async def add_attachment(
    message_id: UUID,
    data: AttachmentCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_instructor)],
) -> dict:
    """업로드한 첨부파일을 메시지에 등록합니다."""
    result = await inbox_service.add_attachment(
        db, message_id=message_id, organization_id=current_user.organization_id, data=data, user=current_user
    )
    await db.commit()
    return result
