"""메시지함 서비스 — 문의 수신, 발신, 답장, 일괄 처리, 첨부파일.

Inbox Service — Studio inbox for messages from families and outbound
email from staff. Outbound mail goes through SMTP (aiosmtplib); a failed
send keeps the message archived so it is not lost.
"""

import html
import logging
from collections import Counter
from datetime import timedelta
from typing import Sequence
from uuid import UUID

import aiosmtplib
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.communication import MESSAGE_PRIORITIES, MESSAGE_STATUSES, MESSAGE_TYPES, Message
from app.models.people import Guardian
from app.models.user import User
from app.repositories.message_repository import message_repository
from app.repositories.organization_repository import organization_repository, user_repository
from app.schemas.message import (
    AttachmentCreate,
    AttachmentUploadRequest,
    BulkActionRequest,
    MessageUpdate,
    ParentMessageCreate,
    ReplyRequest,
    SendMessageRequest,
)
from app.services.storage_service import storage_service
from app.utils.email import is_email_configured, send_email
from app.utils.exceptions import (
    BadRequestError,
    DeliveryFailedError,
    ForbiddenError,
    ServiceNotConfiguredError,
)
from app.utils.pagination import page_envelope
from app.utils.timeutil import ensure_utc, utcnow

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE: int = 100
ACTION_STATUSES: frozenset[str] = frozenset({"new", "in_progress"})


def _body_html(body: str) -> str:
    return "<br>".join(html.escape(line) for line in body.splitlines())


class InboxService:
    """메시지함 서비스."""

    async def _to_dicts(self, db: AsyncSession, messages: Sequence[Message]) -> list[dict]:
        names = await user_repository.get_names(db, {m.assigned_to for m in messages})
        return [
            {
                "id": str(m.id),
                "thread_id": str(m.thread_id),
                "direction": m.direction,
                "message_type": m.message_type,
                "subject": m.subject,
                "body": m.body,
                "sender_id": str(m.sender_id) if m.sender_id else None,
                "sender_name": m.sender_name,
                "sender_email": m.sender_email,
                "recipients": m.recipients or [],
                "status": m.status,
                "priority": m.priority,
                "is_starred": m.is_starred,
                "tags": m.tags or [],
                "assigned_to": str(m.assigned_to) if m.assigned_to else None,
                "assigned_to_name": names.get(m.assigned_to),
                "read_at": m.read_at,
                "responded_at": m.responded_at,
                "created_at": m.created_at,
            }
            for m in messages
        ]

    async def list_messages(
        self,
        db: AsyncSession,
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
        page: int = 1,
        limit: int = 50,
    ) -> dict:
        """메시지 목록 — 삭제된 메시지는 요청 시에만 포함."""
        limit = min(max(limit, 1), MAX_PAGE_SIZE)
        query = message_repository.filter_query(
            organization_id, status, message_type, priority, assigned_to, is_starred,
            search, include_deleted, sort_by, sort_order,
        )
        items, total = await message_repository.get_paginated(db, query, page, limit)
        return page_envelope(await self._to_dicts(db, items), total, page, limit)

    async def stats(self, db: AsyncSession, organization_id: UUID, user: User) -> dict:
        """메시지함 통계.

        avg_response_time_hours covers inbound messages created in the last
        30 days that have been answered.
        """
        messages = await message_repository.get_all_for_stats(db, organization_id)
        since = utcnow() - timedelta(days=30)
        response_hours = [
            (ensure_utc(m.responded_at) - ensure_utc(m.created_at)).total_seconds() / 3600
            for m in messages
            if m.direction == "inbound" and m.responded_at is not None and ensure_utc(m.created_at) >= since
        ]
        by_status = Counter(m.status for m in messages)
        by_type = Counter(m.message_type for m in messages)
        by_priority = Counter(m.priority for m in messages)
        return {
            "total": len(messages),
            "unread": by_status.get("new", 0),
            "by_status": {s: by_status.get(s, 0) for s in MESSAGE_STATUSES if s != "deleted"},
            "by_type": {t: by_type.get(t, 0) for t in MESSAGE_TYPES},
            "by_priority": {p: by_priority.get(p, 0) for p in MESSAGE_PRIORITIES},
            "assigned_to_me": sum(1 for m in messages if m.assigned_to == user.id),
            "requires_action": sum(1 for m in messages if m.direction == "inbound" and m.status in ACTION_STATUSES),
            "avg_response_time_hours": round(sum(response_hours) / len(response_hours), 1) if response_hours else None,
        }

    async def get_message(self, db: AsyncSession, message_id: UUID, organization_id: UUID, user: User) -> dict:
        """메시지 상세 — 처음 열면 읽음 처리. 스레드와 첨부 포함."""
        message = await message_repository.get_or_404(db, message_id, organization_id)
        if message.read_at is None:
            message.read_at = utcnow()
            message.read_by = user.id
            if message.status == "new":
                message.status = "read"
            await db.flush()
        data = (await self._to_dicts(db, [message]))[0]
        thread = await message_repository.get_thread_messages(db, [message.thread_id])
        data["thread"] = await self._to_dicts(db, thread)
        data["attachments"] = [
            {
                "id": str(a.id),
                "file_name": a.file_name,
                "file_url": a.file_url,
                "content_type": a.content_type,
                "size_bytes": a.size_bytes,
            }
            for a in await message_repository.get_attachments(db, message.id)
        ]
        return data

    def _ensure_can_edit(self, message: Message, user: User) -> None:
        if user.role in ("admin", "staff") or user.id in (message.sender_id, message.assigned_to):
            return
        raise ForbiddenError("이 메시지를 수정할 권한이 없습니다 (You cannot modify this message)")

    async def update_message(
        self,
        db: AsyncSession,
        message_id: UUID,
        organization_id: UUID,
        data: MessageUpdate,
        user: User,
    ) -> dict:
        message = await message_repository.get_or_404(db, message_id, organization_id)
        self._ensure_can_edit(message, user)
        update_data = data.model_dump(exclude_unset=True)
        if update_data.get("assigned_to") is not None:
            await user_repository.get_or_404(db, update_data["assigned_to"], organization_id)
        if update_data.get("status") == "deleted":
            update_data["deleted_at"] = utcnow()
        message = await message_repository.update(db, message, update_data)
        return (await self._to_dicts(db, [message]))[0]

    async def delete_message(self, db: AsyncSession, message_id: UUID, organization_id: UUID, user: User) -> None:
        """소프트 삭제 — status=deleted."""
        message = await message_repository.get_or_404(db, message_id, organization_id)
        self._ensure_can_edit(message, user)
        message.status = "deleted"
        message.deleted_at = utcnow()
        await db.flush()

    async def _deliver(self, to: str, subject: str, body: str, reply_to: str | None) -> None:
        if not is_email_configured():
            raise ServiceNotConfiguredError("이메일이 설정되지 않았습니다 (Email service is not configured)")
        await send_email(to, subject, _body_html(body), text=body, reply_to=reply_to)

    async def send(self, db: AsyncSession, organization_id: UUID, data: SendMessageRequest, user: User) -> dict:
        """발신 메시지 — 스레드 생성 후 수신자별 메일 발송.

        A delivery failure archives the message, commits it and raises 500.

        Raises:
            BadRequestError: 제목/본문/수신자 누락
            DeliveryFailedError: 발송 실패 (500)
        """
        subject = (data.subject or "").strip()
        body = (data.body or "").strip()
        recipients = [r.strip().lower() for r in data.recipients if r and r.strip()]
        if not subject or not body or not recipients:
            raise BadRequestError("제목, 본문, 수신자는 필수입니다 (subject, body and recipients are required)")

        org = await organization_repository.get_or_404(db, organization_id)
        thread = await message_repository.create_thread(db, organization_id, subject, user.id)
        message = await message_repository.create(db, {
            "organization_id": organization_id,
            "thread_id": thread.id,
            "direction": "outbound",
            "message_type": data.message_type,
            "subject": subject,
            "body": body,
            "sender_id": user.id,
            "sender_name": user.full_name,
            "sender_email": user.email,
            "recipients": recipients,
            "status": "read",
            "priority": data.priority,
            "read_at": utcnow(),
            "read_by": user.id,
        })

        try:
            for recipient in recipients:
                await self._deliver(recipient, f"[{org.name}] {subject}", body, org.email or user.email)
        except (aiosmtplib.SMTPException, OSError, ServiceNotConfiguredError) as exc:
            logger.error("Sending message %s failed: %s", message.id, exc)
            message.status = "archived"
            await db.commit()
            raise DeliveryFailedError({
                "message": "메시지 발송에 실패했습니다 (Failed to send message)",
                "message_id": str(message.id),
            })
        logger.info("Message %s sent to %d recipients", message.id, len(recipients))
        return (await self._to_dicts(db, [message]))[0]

    async def reply(
        self,
        db: AsyncSession,
        message_id: UUID,
        organization_id: UUID,
        data: ReplyRequest,
        user: User,
    ) -> dict:
        """답장 — 원 발신자에게 메일, responded_at 기록.

        Raises:
            BadRequestError: 원 발신자 이메일 없음
            DeliveryFailedError: 발송 실패 (500)
        """
        original = await message_repository.get_or_404(db, message_id, organization_id)
        if not original.sender_email:
            raise BadRequestError("발신자 이메일이 없습니다 (Original sender has no email address)")
        org = await organization_repository.get_or_404(db, organization_id)
        subject = original.subject if original.subject.lower().startswith("re:") else f"Re: {original.subject}"
        try:
            await self._deliver(original.sender_email, subject, data.body, org.email or user.email)
        except (aiosmtplib.SMTPException, OSError, ServiceNotConfiguredError) as exc:
            logger.error("Reply to message %s failed: %s", original.id, exc)
            raise DeliveryFailedError("답장 발송에 실패했습니다 (Failed to send reply)")

        now = utcnow()
        reply = await message_repository.create(db, {
            "organization_id": organization_id,
            "thread_id": original.thread_id,
            "direction": "outbound",
            "message_type": original.message_type,
            "subject": subject,
            "body": data.body,
            "sender_id": user.id,
            "sender_name": user.full_name,
            "sender_email": user.email,
            "recipients": [original.sender_email],
            "status": "read",
            "priority": original.priority,
            "read_at": now,
            "read_by": user.id,
        })
        if original.responded_at is None:
            original.responded_at = now
        if original.status in ("new", "read"):
            original.status = "in_progress"
        await db.flush()
        return (await self._to_dicts(db, [reply]))[0]

    async def bulk_action(
        self,
        db: AsyncSession,
        organization_id: UUID,
        data: BulkActionRequest,
        user: User,
    ) -> dict:
        """일괄 처리 — assign 은 관리자만, assigned_to 필수.

        Returns:
            dict: {"updated": int}
        """
        if data.action == "assign":
            if user.role != "admin":
                raise ForbiddenError("담당자 지정은 관리자만 가능합니다 (Only admins can assign messages)")
            if data.assigned_to is None:
                raise BadRequestError("assigned_to 가 필요합니다 (assigned_to is required)")
            await user_repository.get_or_404(db, data.assigned_to, organization_id)
        if data.action == "tag" and not data.tags:
            raise BadRequestError("tags 가 필요합니다 (tags are required)")

        messages = await message_repository.get_many(db, organization_id, list(set(data.message_ids)))
        now = utcnow()
        for m in messages:
            if data.action == "mark_read":
                m.read_at = m.read_at or now
                m.read_by = m.read_by or user.id
                if m.status == "new":
                    m.status = "read"
            elif data.action == "mark_unread":
                m.read_at = None
                m.read_by = None
                m.status = "new"
            elif data.action == "archive":
                m.status = "archived"
            elif data.action == "delete":
                m.status = "deleted"
                m.deleted_at = now
            elif data.action in ("star", "unstar"):
                m.is_starred = data.action == "star"
            elif data.action == "assign":
                m.assigned_to = data.assigned_to
            elif data.action == "tag":
                m.tags = sorted(set(m.tags or []) | {t.strip() for t in data.tags if t.strip()})
        await db.flush()
        return {"updated": len(messages)}

    async def attachment_upload_url(
        self,
        db: AsyncSession,
        message_id: UUID,
        organization_id: UUID,
        data: AttachmentUploadRequest,
    ) -> dict:
        await message_repository.get_or_404(db, message_id, organization_id)
        return storage_service.generate_presigned_upload_url(data.filename, data.content_type, folder="attachments")

    async def add_attachment(
        self,
        db: AsyncSession,
        message_id: UUID,
        organization_id: UUID,
        data: AttachmentCreate,
        user: User,
    ) -> dict:
        message = await message_repository.get_or_404(db, message_id, organization_id)
        file_url = storage_service.finalize_upload(data.file_url)
        attachment = await message_repository.add_attachment(db, {
            "message_id": message.id,
            "file_name": data.file_name,
            "file_url": file_url,
            "content_type": data.content_type,
            "size_bytes": data.size_bytes,
            "uploaded_by": user.id,
        })
        return {
            "id": str(attachment.id),
            "file_name": attachment.file_name,
            "file_url": attachment.file_url,
            "content_type": attachment.content_type,
            "size_bytes": attachment.size_bytes,
        }

    # === 보호자 (Parent) ===

    async def create_parent_message(
        self,
        db: AsyncSession,
        user: User,
        guardian: Guardian,
        data: ParentMessageCreate,
    ) -> dict:
        thread = await message_repository.create_thread(db, user.organization_id, data.subject, user.id)
        message = await message_repository.create(db, {
            "organization_id": user.organization_id,
            "thread_id": thread.id,
            "direction": "inbound",
            "message_type": data.message_type,
            "subject": data.subject,
            "body": data.body,
            "sender_id": user.id,
            "sender_name": guardian.full_name,
            "sender_email": guardian.email or user.email,
            "status": "new",
            "priority": "normal",
        })
        return (await self._to_dicts(db, [message]))[0]

    async def list_parent_messages(self, db: AsyncSession, user: User) -> list[dict]:
        """보호자의 문의와 스튜디오 답장 — Own threads with replies."""
        own = await message_repository.get_for_sender(db, user.id)
        thread_ids = list({m.thread_id for m in own})
        messages = await message_repository.get_thread_messages(db, thread_ids)
        threads: dict[UUID, list[Message]] = {}
        for m in messages:
            threads.setdefault(m.thread_id, []).append(m)
        results = []
        for thread_id, items in threads.items():
            dicts = await self._to_dicts(db, items)
            results.append({
                "thread_id": str(thread_id),
                "subject": items[0].subject,
                "last_message_at": items[-1].created_at,
                "messages": [
                    {k: d[k] for k in ("id", "direction", "subject", "body", "sender_name", "created_at")}
                    for d in dicts
                ],
            })
        results.sort(key=lambda t: t["last_message_at"], reverse=True)
        return results


# 싱글턴 인스턴스 — Singleton instance
inbox_service: InboxService = InboxService()
