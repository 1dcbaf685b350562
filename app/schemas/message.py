"""메시지함 관련 Pydantic 요청 스키마 정의.

Inbox / messaging Pydantic request schema definitions.
"""

from typing import Literal
from uuid import UUID
from pydantic import BaseModel, Field

MessageStatus = Literal["new", "read", "in_progress", "resolved", "archived", "deleted"]
MessagePriority = Literal["low", "normal", "high", "urgent"]
MessageType = Literal["general", "inquiry", "enrollment", "billing", "support", "announcement"]


class MessageUpdate(BaseModel):
    """메시지 상태/담당자/태그 수정 (부분 업데이트)."""

    status: MessageStatus | None = None
    priority: MessagePriority | None = None
    assigned_to: UUID | None = None
    tags: list[str] | None = None
    is_starred: bool | None = None


class SendMessageRequest(BaseModel):
    """발신 메시지 — 제목, 본문, 수신자는 서비스에서 필수 검증 (400)."""

    subject: str | None = Field(default=None, max_length=500)
    body: str | None = None
    recipients: list[str] = []
    message_type: MessageType = "general"
    priority: MessagePriority = "normal"


class ReplyRequest(BaseModel):
    """답장 요청."""

    body: str = Field(min_length=1)


class BulkActionRequest(BaseModel):
    """일괄 처리 요청.

    Attributes:
        action: mark_read | mark_unread | archive | delete | star | unstar | assign | tag
        assigned_to: assign 대상 (admin only)
        tags: tag 시 추가할 태그
    """

    message_ids: list[UUID] = Field(min_length=1, max_length=200)
    action: Literal["mark_read", "mark_unread", "archive", "delete", "star", "unstar", "assign", "tag"]
    assigned_to: UUID | None = None
    tags: list[str] = []


class AttachmentCreate(BaseModel):
    """업로드 완료된 첨부파일 등록."""

    file_name: str = Field(min_length=1, max_length=255)
    file_url: str = Field(min_length=1, max_length=1024)
    content_type: str | None = Field(default=None, max_length=100)
    size_bytes: int | None = Field(default=None, ge=0)


class ParentMessageCreate(BaseModel):
    """보호자 → 스튜디오 문의."""

    subject: str = Field(min_length=1, max_length=500)
    body: str = Field(min_length=1)
    message_type: MessageType = "general"


class AttachmentUploadRequest(BaseModel):
    """첨부파일 업로드 URL 요청."""

    filename: str = Field(min_length=1, max_length=255)
    content_type: str = Field(min_length=1, max_length=100)
