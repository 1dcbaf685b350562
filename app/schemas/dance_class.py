"""수업 및 시간표 관련 Pydantic 요청 스키마 정의.

Class catalogue and schedule (term) Pydantic request schema definitions.
"""

from datetime import date, time
from typing import Literal
from uuid import UUID
from pydantic import BaseModel, Field


# === 장르 (Dance style) ===

class DanceStyleCreate(BaseModel):
    """댄스 장르 생성 요청."""

    name: str = Field(min_length=1, max_length=100)
    color: str | None = Field(default=None, max_length=20)  # 캘린더 색상 (e.g. "#f472b6")


# === 수업 (Class) ===

class ClassCreate(BaseModel):
    """수업 생성 요청 스키마.

    Attributes:
        name: 수업명 (e.g. "Ballet II")
        dance_style_id: 장르 UUID
        level: 난이도
        min_age / max_age: 연령 제한 (Inclusive, optional)
        max_students: 정원 (None = unlimited)
        teacher_id: 담당 강사 UUID
        tuition_in_cents: 월 수강료 (Integer cents)
        status: active | draft | cancelled
    """

    name: str = Field(min_length=1, max_length=255)
    dance_style_id: UUID | None = None
    level: str | None = Field(default=None, max_length=50)
    description: str | None = None
    min_age: int | None = Field(default=None, ge=0, le=120)
    max_age: int | None = Field(default=None, ge=0, le=120)
    max_students: int | None = Field(default=None, ge=1)
    teacher_id: UUID | None = None
    tuition_in_cents: int = Field(default=0, ge=0)
    status: Literal["active", "draft", "cancelled"] = "active"


class ClassUpdate(BaseModel):
    """수업 수정 요청 스키마 (부분 업데이트)."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    dance_style_id: UUID | None = None
    level: str | None = Field(default=None, max_length=50)
    description: str | None = None
    min_age: int | None = Field(default=None, ge=0, le=120)
    max_age: int | None = Field(default=None, ge=0, le=120)
    max_students: int | None = Field(default=None, ge=1)
    teacher_id: UUID | None = None
    tuition_in_cents: int | None = Field(default=None, ge=0)
    status: Literal["active", "draft", "cancelled"] | None = None


# === 시간표 (Schedule) ===

class ScheduleCreate(BaseModel):
    """학기 시간표 생성 요청."""

    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    start_date: date
    end_date: date
    is_active: bool = False


class ScheduleUpdate(BaseModel):
    """학기 시간표 수정 요청 (부분 업데이트)."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    is_active: bool | None = None


class SlotCreate(BaseModel):
    """시간표 슬롯 추가 요청.

    Attributes:
        class_instance_id: 수업 UUID
        room_id: 강의실 UUID (optional)
        teacher_id: 강사 UUID (없으면 수업의 담당 강사, defaults to the class teacher)
        day_of_week: 0=일요일 ... 6=토요일
        start_time / end_time: 시작/종료 시각 (Studio wall clock)
        force: 가용 시간 충돌 무시 (Admin only; room/teacher overlaps still block)
    """

    class_instance_id: UUID
    room_id: UUID | None = None
    teacher_id: UUID | None = None
    day_of_week: int = Field(ge=0, le=6)
    start_time: time
    end_time: time
    force: bool = False


class SlotUpdate(BaseModel):
    """시간표 슬롯 수정 요청 (부분 업데이트)."""

    room_id: UUID | None = None
    teacher_id: UUID | None = None
    day_of_week: int | None = Field(default=None, ge=0, le=6)
    start_time: time | None = None
    end_time: time | None = None
    force: bool = False


class ConflictCheckRequest(BaseModel):
    """충돌 사전 점검 요청 — 저장하지 않고 충돌 목록만 반환."""

    schedule_id: UUID
    room_id: UUID | None = None
    teacher_id: UUID | None = None
    day_of_week: int = Field(ge=0, le=6)
    start_time: time
    end_time: time
    ignore_slot_id: UUID | None = None  # 수정 중인 슬롯 (Slot being edited)


class PublishRequest(BaseModel):
    """시간표 게시 요청."""

    notes: str | None = None


class DuplicateRequest(BaseModel):
    """시간표 복제 요청 — 필수 항목 누락 시 400.

    Fields are optional in the schema so the service can answer a
    missing name or date with its own message.
    """

    new_name: str | None = None
    new_start_date: date | None = None
    new_end_date: date | None = None
    clone_classes: bool = True
    is_active: bool = False
