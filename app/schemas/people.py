"""강사, 학생, 보호자 관련 Pydantic 요청 스키마 정의.

Teacher, student and guardian Pydantic request schema definitions.
"""

from datetime import date, time
from uuid import UUID
from pydantic import BaseModel, EmailStr, Field


# === 강사 (Teacher) 스키마 ===

class TeacherCreate(BaseModel):
    """강사 생성 요청 스키마.

    Attributes:
        first_name / last_name: 이름
        email / phone: 연락처
        bio: 소개
        specialties: 전문 장르 목록 (e.g. ["Ballet", "Jazz"])
        user_id: 연결할 강사 로그인 UUID (optional)
    """

    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: EmailStr | None = None
    phone: str | None = Field(default=None, max_length=50)
    bio: str | None = None
    specialties: list[str] = []
    user_id: UUID | None = None


class TeacherUpdate(BaseModel):
    """강사 수정 요청 스키마 (부분 업데이트)."""

    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    last_name: str | None = Field(default=None, min_length=1, max_length=100)
    email: EmailStr | None = None
    phone: str | None = Field(default=None, max_length=50)
    bio: str | None = None
    specialties: list[str] | None = None
    is_active: bool | None = None


class AvailabilityCreate(BaseModel):
    """강사 가용 시간 추가 — day_of_week 0=일요일 ... 6=토요일."""

    day_of_week: int = Field(ge=0, le=6)
    start_time: time
    end_time: time


# === 학생 (Student) 스키마 ===

class StudentCreate(BaseModel):
    """학생 생성 요청 스키마."""

    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    date_of_birth: date | None = None
    gender: str | None = Field(default=None, max_length=20)
    medical_notes: str | None = None


class StudentUpdate(BaseModel):
    """학생 수정 요청 스키마 (부분 업데이트)."""

    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    last_name: str | None = Field(default=None, min_length=1, max_length=100)
    date_of_birth: date | None = None
    gender: str | None = Field(default=None, max_length=20)
    medical_notes: str | None = None
    status: str | None = Field(default=None, pattern="^(active|inactive)$")


# === 보호자 (Guardian) 스키마 ===

class GuardianCreate(BaseModel):
    """보호자 생성 요청 스키마 (스태프 입력)."""

    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: EmailStr | None = None
    phone: str | None = Field(default=None, max_length=50)
    address: str | None = None


class GuardianLinkRequest(BaseModel):
    """학생-보호자 연결 요청."""

    guardian_id: UUID
    relationship_type: str = Field(default="parent", max_length=50)  # mother, father, guardian ...
    is_primary: bool = False
