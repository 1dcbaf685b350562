"""수강 등록 및 신청 관련 Pydantic 요청 스키마 정의.

Enrollment and enrollment-request Pydantic request schema definitions.
"""

from typing import Literal
from uuid import UUID
from pydantic import BaseModel, Field


class EnrollmentValidateRequest(BaseModel):
    """수강 가능 여부 사전 검증 요청."""

    student_id: UUID
    class_instance_id: UUID


class EnrollmentCreate(BaseModel):
    """수강 등록 요청 (스태프 직접 등록 / 보호자 등록 공통)."""

    student_id: UUID
    class_instance_id: UUID
    notes: str | None = None


class EnrollmentUpdate(BaseModel):
    """수강 상태 변경 요청.

    Attributes:
        status: active | waitlist | dropped | completed
        notes: 메모
    """

    status: Literal["active", "waitlist", "dropped", "completed"] | None = None
    notes: str | None = None


class EnrollmentRequestCreate(BaseModel):
    """보호자 수강 신청 요청."""

    student_id: UUID
    class_instance_id: UUID
    notes: str | None = Field(default=None, max_length=2000)


class EnrollmentRequestProcess(BaseModel):
    """수강 신청 처리 — approve | deny (거절 시 사유 필수)."""

    action: Literal["approve", "deny"]
    denial_reason: str | None = None
    notes: str | None = None
