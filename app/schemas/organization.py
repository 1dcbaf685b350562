"""스튜디오 및 강의실 관련 Pydantic 요청/응답 스키마 정의.

Studio profile and room Pydantic request/response schema definitions.
"""

from datetime import datetime
from pydantic import BaseModel, EmailStr, Field


# === 스튜디오 (Studio) 스키마 ===

class StudioUpdate(BaseModel):
    """스튜디오 프로필 수정 요청 스키마 (부분 업데이트).

    Studio profile update request schema (partial update).

    Attributes:
        name: 스튜디오 이름 (Studio display name)
        email / phone / website / address: 연락처 (Printed on receipts)
        timezone: IANA 타임존 (Studio wall clock, e.g. "America/Chicago")
    """

    name: str | None = Field(default=None, min_length=1, max_length=255)
    email: EmailStr | None = None
    phone: str | None = Field(default=None, max_length=50)
    website: str | None = Field(default=None, max_length=255)
    address: str | None = None
    timezone: str | None = Field(default=None, max_length=64)


class StudioResponse(BaseModel):
    """스튜디오 응답 스키마.

    Studio profile response schema returned from API.
    """

    id: str  # 스튜디오 UUID 문자열 (Studio UUID as string)
    name: str
    code: str  # 가입용 스튜디오 코드 (Code parents register with)
    email: str | None = None
    phone: str | None = None
    website: str | None = None
    address: str | None = None
    timezone: str
    logo_url: str | None = None
    is_active: bool
    created_at: datetime


class UploadUrlRequest(BaseModel):
    """업로드 URL 요청 — presigned PUT URL 발급용."""

    filename: str = Field(min_length=1, max_length=255)
    content_type: str = Field(min_length=1, max_length=100)


class LogoFinalizeRequest(BaseModel):
    """로고 업로드 완료 요청 — 임시 업로드 URL을 확정."""

    file_url: str = Field(min_length=1, max_length=1024)


# === 강의실 (Room) 스키마 ===

class RoomCreate(BaseModel):
    """강의실 생성 요청 스키마."""

    name: str = Field(min_length=1, max_length=100)  # 강의실 이름 (e.g. "Studio A")
    capacity: int | None = Field(default=None, ge=1)  # 수용 인원 (Optional headcount)
    is_active: bool = True


class RoomUpdate(BaseModel):
    """강의실 수정 요청 스키마 (부분 업데이트)."""

    name: str | None = Field(default=None, min_length=1, max_length=100)
    capacity: int | None = Field(default=None, ge=1)
    is_active: bool | None = None
