"""출석 관련 SQLAlchemy ORM 모델 정의.

Attendance SQLAlchemy ORM model definitions.

Tables:
    - attendance_records: 출석 기록 (One row per student, class and date)
    - absences: 결석 (Reported or recorded absences)
    - makeup_bookings: 보강 예약 (Makeup class bookings for absences)
"""

import uuid
from datetime import date, datetime, timezone
from sqlalchemy import String, Boolean, Date, DateTime, Text, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base

ATTENDANCE_STATUSES: tuple[str, ...] = ("present", "absent", "tardy", "excused", "left_early")
# 출석으로 집계하는 상태 — Statuses that count as attended
ATTENDED_STATUSES: tuple[str, ...] = ("present", "tardy", "left_early")


class AttendanceRecord(Base):
    """출석 기록 모델.

    Attendance record — Unique per (student, class, date). Check-in and
    check-out times are UTC; tardy/left-early are judged against the
    slot's wall-clock times in the studio timezone.

    Attributes:
        student_id: 학생 FK
        class_instance_id: 수업 FK
        schedule_class_id: 해당 슬롯 FK (Slot the student attended)
        attendance_date: 수업 날짜
        status: present | absent | tardy | excused | left_early
        check_in_time / check_out_time: 체크인/체크아웃 시각
        is_makeup: 보강 출석 여부
        marked_by: 기록한 사용자 FK
    """

    __tablename__ = "attendance_records"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False)
    student_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    class_instance_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("class_instances.id", ondelete="CASCADE"), nullable=False, index=True)
    schedule_class_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("schedule_classes.id", ondelete="SET NULL"), nullable=True)
    attendance_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    check_in_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    check_out_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    is_makeup: Mapped[bool] = mapped_column(Boolean, default=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    marked_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("student_id", "class_instance_id", "attendance_date", name="uq_attendance_student_class_date"),
    )


class Absence(Base):
    """결석 모델 — 보호자 사전 신고 또는 출석 체크 시 기록."""

    __tablename__ = "absences"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False)
    student_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    class_instance_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("class_instances.id", ondelete="CASCADE"), nullable=False)
    absence_date: Mapped[date] = mapped_column(Date, nullable=False)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_excused: Mapped[bool] = mapped_column(Boolean, default=False)
    reported_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    attendance_record_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("attendance_records.id", ondelete="SET NULL"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))


class MakeupBooking(Base):
    """보강 예약 — 결석한 수업 대신 다른 수업에 출석."""

    __tablename__ = "makeup_bookings"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False)
    student_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    original_class_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("class_instances.id", ondelete="CASCADE"), nullable=False)
    makeup_class_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("class_instances.id", ondelete="CASCADE"), nullable=False)
    makeup_date: Mapped[date] = mapped_column(Date, nullable=False)
    absence_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("absences.id", ondelete="SET NULL"), nullable=True)
    status: Mapped[str] = mapped_column(String(20), default="scheduled")  # scheduled, attended, cancelled
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
