"""시간표(학기) 관련 SQLAlchemy ORM 모델 정의.

Schedule (term) SQLAlchemy ORM model definitions.

Tables:
    - schedules: 학기 시간표 (A term with start/end dates and publication state)
    - schedule_classes: 시간표 슬롯 (Weekly meeting slot of a class in a room)
    - schedule_publish_history: 게시 이력 (One row per publish)
"""

import uuid
from datetime import date, datetime, time, timezone
from sqlalchemy import String, Boolean, Date, DateTime, Integer, Text, Time, ForeignKey, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class Schedule(Base):
    """시간표 모델 — 학기 단위.

    Schedule model — A term. Parents only see slots of the active,
    published schedule.

    Attributes:
        name: 학기명 (e.g. "Fall 2026")
        start_date / end_date: 학기 기간
        is_active: 현재 학기 여부
        publication_status: draft | published
        published_version: 게시 횟수 (Incremented on every publish)
        published_at / published_by: 마지막 게시 정보
    """

    __tablename__ = "schedules"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=False)
    publication_status: Mapped[str] = mapped_column(String(20), default="draft")  # draft, published
    published_version: Mapped[int] = mapped_column(Integer, default=0)
    published_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    published_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    slots = relationship("ScheduleClass", back_populates="schedule", cascade="all, delete-orphan")


class ScheduleClass(Base):
    """시간표 슬롯 — 수업의 주간 정기 시간 (day 0=Sunday)."""

    __tablename__ = "schedule_classes"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    schedule_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("schedules.id", ondelete="CASCADE"), nullable=False, index=True)
    class_instance_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("class_instances.id", ondelete="CASCADE"), nullable=False, index=True)
    room_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("studio_rooms.id", ondelete="SET NULL"), nullable=True)
    teacher_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("teachers.id", ondelete="SET NULL"), nullable=True)
    day_of_week: Mapped[int] = mapped_column(Integer, nullable=False)
    start_time: Mapped[time] = mapped_column(Time(), nullable=False)
    end_time: Mapped[time] = mapped_column(Time(), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    schedule = relationship("Schedule", back_populates="slots")


class SchedulePublishHistory(Base):
    """시간표 게시 이력."""

    __tablename__ = "schedule_publish_history"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    schedule_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("schedules.id", ondelete="CASCADE"), nullable=False, index=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    slot_count: Mapped[int] = mapped_column(Integer, default=0)
    published_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    published_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
