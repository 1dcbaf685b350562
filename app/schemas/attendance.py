"""출석 관련 Pydantic 요청 스키마 정의.

Attendance, absence and makeup booking Pydantic request schema definitions.
"""

from datetime import date
from typing import Literal
from uuid import UUID
from pydantic import BaseModel, Field


class MarkAttendanceRequest(BaseModel):
    """출석 기록 요청 — (학생, 수업, 날짜) 기준 upsert.

    Attributes:
        status: present | absent | tardy | excused | left_early
        attendance_date: 수업 날짜 (Default: studio's today)
        is_makeup: 보강 출석 여부
    """

    student_id: UUID
    class_instance_id: UUID
    status: Literal["present", "absent", "tardy", "excused", "left_early"]
    attendance_date: date | None = None
    notes: str | None = None
    is_makeup: bool = False


class CheckInRequest(BaseModel):
    """체크인 요청 — student_id 또는 check_in_code(QR) 중 하나 필수."""

    student_id: UUID | None = None
    check_in_code: str | None = Field(default=None, max_length=32)
    class_instance_id: UUID | None = None  # 없으면 현재 시간대 수업으로 결정 (Resolved from the timetable)


class CheckOutRequest(BaseModel):
    """체크아웃 요청."""

    student_id: UUID
    class_instance_id: UUID
    attendance_date: date | None = None


class MakeupCreate(BaseModel):
    """보강 예약 생성 요청."""

    student_id: UUID
    original_class_id: UUID
    makeup_class_id: UUID
    makeup_date: date
    absence_id: UUID | None = None
    notes: str | None = None


class MakeupUpdate(BaseModel):
    """보강 예약 상태 변경."""

    status: Literal["scheduled", "attended", "cancelled"] | None = None
    notes: str | None = None


class AbsenceReport(BaseModel):
    """보호자 결석 신고 — 예정된 결석을 사전에 알림."""

    student_id: UUID
    class_instance_id: UUID
    absence_date: date
    reason: str | None = Field(default=None, max_length=2000)
