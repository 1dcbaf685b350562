"""수업 관련 SQLAlchemy ORM 모델 정의.

Class catalogue SQLAlchemy ORM model definitions.

Tables:
    - dance_styles: 댄스 장르 (Ballet, Jazz, Hip Hop ...)
    - class_instances: 수업 (A class offering with age bounds and capacity)
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import String, DateTime, Integer, Text, ForeignKey, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class DanceStyle(Base):
    """댄스 장르 — 분석 리포트의 장르별 집계 기준."""

    __tablename__ = "dance_styles"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    color: Mapped[str | None] = mapped_column(String(20), nullable=True)  # 캘린더 표시 색상 (e.g. "#f472b6")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))


class ClassInstance(Base):
    """수업 모델.

    Class model — A class offering (e.g. "Ballet II"). Meeting times live
    on ``ScheduleClass`` rows of a schedule (term).

    Attributes:
        id: 고유 식별자 UUID
        organization_id: 소속 스튜디오 FK
        name: 수업명
        dance_style_id: 장르 FK
        level: 난이도 (beginner, intermediate, advanced ...)
        min_age / max_age: 연령 제한 (Inclusive bounds, optional)
        max_students: 정원 (None = unlimited)
        teacher_id: 담당 강사 FK (Default teacher)
        tuition_in_cents: 월 수강료 (Monthly tuition, integer cents)
        status: active | draft | cancelled
    """

    __tablename__ = "class_instances"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    dance_style_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("dance_styles.id", ondelete="SET NULL"), nullable=True)
    level: Mapped[str | None] = mapped_column(String(50), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    min_age: Mapped[int | None] = mapped_column(Integer, nullable=True)
    max_age: Mapped[int | None] = mapped_column(Integer, nullable=True)
    max_students: Mapped[int | None] = mapped_column(Integer, nullable=True)
    teacher_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("teachers.id", ondelete="SET NULL"), nullable=True)
    tuition_in_cents: Mapped[int] = mapped_column(Integer, default=0)
    status: Mapped[str] = mapped_column(String(20), default="active")  # active, draft, cancelled
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    dance_style = relationship("DanceStyle")
    teacher = relationship("Teacher")
