"""스튜디오 사용자 계정 Pydantic 요청/응답 스키마 정의.

Studio user account Pydantic request/response schema definitions.
Admins manage staff and teacher logins; parents register themselves.
"""

from datetime import datetime
from typing import Literal
from uuid import UUID
from pydantic import BaseModel, EmailStr, Field


class UserCreate(BaseModel):
    """사용자 생성 요청 스키마 (관리자용).

    User creation request schema (admin-only operation).

    Attributes:
        email: 로그인 이메일 (Login email, unique per studio)
        password: 비밀번호 (Plain text, will be bcrypt-hashed)
        full_name: 실명 (Full display name)
        role: 역할 (admin | staff | teacher)
        teacher_id: 연결할 강사 UUID (Links a teacher login to a teacher record)
    """

    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    full_name: str = Field(min_length=1, max_length=255)
    role: Literal["admin", "staff", "teacher"]
    teacher_id: UUID | None = None


class UserUpdate(BaseModel):
    """사용자 수정 요청 스키마 (부분 업데이트).

    User update request schema (partial update). A new password is
    hashed before it is stored.
    """

    full_name: str | None = Field(default=None, min_length=1, max_length=255)
    role: Literal["admin", "staff", "teacher"] | None = None
    is_active: bool | None = None
    password: str | None = Field(default=None, min_length=8, max_length=128)


class UserResponse(BaseModel):
    """사용자 응답 스키마."""

    id: str
    email: str
    full_name: str
    role: str
    is_active: bool
    created_at: datetime
