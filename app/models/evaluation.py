"""학생 평가 SQLAlchemy ORM 모델 정의.

Student evaluation SQLAlchemy ORM model definitions.

Tables:
    - class_evaluations: 수업별 학생 평가 (Per student, class and term)
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import String, DateTime, Integer, Text, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base, JSONType


class ClassEvaluation(Base):
    """학생 평가 모델.

    Evaluation written by a teacher (or staff) for one student in one class
    and term. Ratings are integers 1-5. Parents only see submitted ones.

    Attributes:
        overall_rating / effort_rating / attitude_rating: 1~5 점수
        strengths / areas_for_improvement / comments: 서술형 평가
        skills: 기술별 점수 (JSON list of {"name", "rating"})
        status: draft | submitted
    """

    __tablename__ = "class_evaluations"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False)
    student_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    class_instance_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("class_instances.id", ondelete="CASCADE"), nullable=False)
    schedule_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("schedules.id", ondelete="SET NULL"), nullable=True)
    teacher_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("teachers.id", ondelete="SET NULL"), nullable=True)
    evaluator_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    overall_rating: Mapped[int | None] = mapped_column(Integer, nullable=True)
    effort_rating: Mapped[int | None] = mapped_column(Integer, nullable=True)
    attitude_rating: Mapped[int | None] = mapped_column(Integer, nullable=True)
    strengths: Mapped[str | None] = mapped_column(Text, nullable=True)
    areas_for_improvement: Mapped[str | None] = mapped_column(Text, nullable=True)
    comments: Mapped[str | None] = mapped_column(Text, nullable=True)
    skills: Mapped[list | None] = mapped_column(JSONType, nullable=True)
    status: Mapped[str] = mapped_column(String(20), default="draft")
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("student_id", "class_instance_id", "schedule_id", name="uq_evaluation_student_class_schedule"),
    )
