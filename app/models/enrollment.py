"""수강 관련 SQLAlchemy ORM 모델 정의.

Enrollment SQLAlchemy ORM model definitions.

Tables:
    - enrollments: 수강 등록 (active / waitlist / dropped / completed)
    - enrollment_requests: 보호자의 수강 신청 (Parent requests awaiting staff approval)
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import String, DateTime, Text, ForeignKey, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base, JSONType

# 수강 상태 — Enrollment statuses counted against a student's timetable
OPEN_ENROLLMENT_STATUSES: tuple[str, ...] = ("active", "waitlist")


class Enrollment(Base):
    """수강 등록 모델.

    Attributes:
        student_id: 학생 FK
        class_instance_id: 수업 FK
        status: active | waitlist | dropped | completed
        enrolled_at: 등록 일시
        dropped_at: 중단 일시 (Set when status becomes dropped)
        notes: 메모
    """

    __tablename__ = "enrollments"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False)
    student_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    class_instance_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("class_instances.id", ondelete="CASCADE"), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(20), default="active")
    enrolled_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    dropped_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))


class EnrollmentRequest(Base):
    """수강 신청 모델 — 보호자가 제출, 스태프가 승인/거절.

    conflicts/warnings 는 신청 시점의 검증 결과 스냅샷 (JSON list).
    """

    __tablename__ = "enrollment_requests"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False)
    student_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    class_instance_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("class_instances.id", ondelete="CASCADE"), nullable=False)
    guardian_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("guardians.id", ondelete="SET NULL"), nullable=True)
    status: Mapped[str] = mapped_column(String(20), default="pending")  # pending, approved, denied, waitlist, cancelled
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    denial_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    conflicts: Mapped[list | None] = mapped_column(JSONType, nullable=True)
    warnings: Mapped[list | None] = mapped_column(JSONType, nullable=True)
    processed_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    processed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
