"""메시지함 레포지토리 — 스레드, 메시지, 첨부파일.

Inbox Repository — Threads, messages and attachments.
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import Select, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.communication import Message, MessageAttachment, MessageThread
from app.repositories.base import BaseRepository

# 정렬 가능 컬럼 — Sortable columns for the inbox listing
SORT_COLUMNS = {
    "created_at": Message.created_at,
    "priority": Message.priority,
    "status": Message.status,
    "subject": Message.subject,
}


class MessageRepository(BaseRepository[Message]):
    """메시지 레포지토리."""

    def __init__(self) -> None:
        super().__init__(Message, "Message")

    def filter_query(
        self,
        organization_id: UUID,
        status: str | None = None,
        message_type: str | None = None,
        priority: str | None = None,
        assigned_to: UUID | None = None,
        is_starred: bool | None = None,
        search: str | None = None,
        include_deleted: bool = False,
        sort_by: str = "created_at",
        sort_order: str = "desc",
    ) -> Select:
        query: Select = select(Message).where(Message.organization_id == organization_id)
        if status:
            query = query.where(Message.status == status)
        elif not include_deleted:
            query = query.where(Message.status != "deleted")
        if message_type:
            query = query.where(Message.message_type == message_type)
        if priority:
            query = query.where(Message.priority == priority)
        if assigned_to:
            query = query.where(Message.assigned_to == assigned_to)
        if is_starred is not None:
            query = query.where(Message.is_starred.is_(is_starred))
        if search:
            like = f"%{search.strip()}%"
            query = query.where(or_(
                Message.subject.ilike(like),
                Message.body.ilike(like),
                Message.sender_name.ilike(like),
                Message.sender_email.ilike(like),
            ))
        column = SORT_COLUMNS.get(sort_by, Message.created_at)
        return query.order_by(column.asc() if sort_order == "asc" else column.desc())

    async def get_many(self, db: AsyncSession, organization_id: UUID, message_ids: list[UUID]) -> Sequence[Message]:
        if not message_ids:
            return []
        result = await db.execute(
            select(Message).where(Message.organization_id == organization_id, Message.id.in_(message_ids))
        )
        return result.scalars().all()

    async def get_all_for_stats(self, db: AsyncSession, organization_id: UUID) -> Sequence[Message]:
        result = await db.execute(
            select(Message).where(Message.organization_id == organization_id, Message.status != "deleted")
        )
        return result.scalars().all()

    async def get_for_sender(self, db: AsyncSession, sender_id: UUID) -> Sequence[Message]:
        result = await db.execute(
            select(Message)
            .where(Message.sender_id == sender_id, Message.status != "deleted")
            .order_by(Message.created_at.desc())
        )
        return result.scalars().all()

    async def get_thread_messages(self, db: AsyncSession, thread_ids: list[UUID]) -> Sequence[Message]:
        if not thread_ids:
            return []
        result = await db.execute(
            select(Message)
            .where(Message.thread_id.in_(thread_ids), Message.status != "deleted")
            .order_by(Message.created_at)
        )
        return result.scalars().all()

    async def create_thread(
        self,
        db: AsyncSession,
        organization_id: UUID,
        subject: str,
        created_by: UUID | None,
    ) -> MessageThread:
        thread = MessageThread(organization_id=organization_id, subject=subject, created_by=created_by)
        db.add(thread)
        await db.flush()
        return thread

    async def get_attachments(self, db: AsyncSession, message_id: UUID) -> Sequence[MessageAttachment]:
        result = await db.execute(
            select(MessageAttachment).where(MessageAttachment.message_id == message_id).order_by(MessageAttachment.created_at)
        )
        return result.scalars().all()

    async def add_attachment(self, db: AsyncSession, data: dict) -> MessageAttachment:
        attachment = MessageAttachment(**data)
        db.add(attachment)
        await db.flush()
        return attachment


# 싱글턴 인스턴스 — Singleton instance
message_repository: MessageRepository = MessageRepository()
