"""평가 레포지토리 — 학생 평가 조회.

Evaluation Repository — Student evaluation queries.
"""

from uuid import UUID

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.evaluation import ClassEvaluation
from app.repositories.base import BaseRepository


class EvaluationRepository(BaseRepository[ClassEvaluation]):
    """학생 평가 레포지토리."""

    def __init__(self) -> None:
        super().__init__(ClassEvaluation, "Evaluation")

    def filter_query(
        self,
        organization_id: UUID,
        student_id: UUID | None = None,
        class_instance_id: UUID | None = None,
        schedule_id: UUID | None = None,
        status: str | None = None,
        teacher_id: UUID | None = None,
        student_ids: list[UUID] | None = None,
    ) -> Select:
        query: Select = select(ClassEvaluation).where(ClassEvaluation.organization_id == organization_id)
        if student_id:
            query = query.where(ClassEvaluation.student_id == student_id)
        if student_ids is not None:
            query = query.where(ClassEvaluation.student_id.in_(student_ids))
        if class_instance_id:
            query = query.where(ClassEvaluation.class_instance_id == class_instance_id)
        if schedule_id:
            query = query.where(ClassEvaluation.schedule_id == schedule_id)
        if status:
            query = query.where(ClassEvaluation.status == status)
        if teacher_id:
            query = query.where(ClassEvaluation.teacher_id == teacher_id)
        return query.order_by(ClassEvaluation.created_at.desc())

    async def find_existing(
        self,
        db: AsyncSession,
        student_id: UUID,
        class_instance_id: UUID,
        schedule_id: UUID | None,
    ) -> ClassEvaluation | None:
        """(학생, 수업, 학기) 중복 검사 — Existing evaluation for the same term."""
        query: Select = select(ClassEvaluation).where(
            ClassEvaluation.student_id == student_id,
            ClassEvaluation.class_instance_id == class_instance_id,
        )
        if schedule_id is None:
            query = query.where(ClassEvaluation.schedule_id.is_(None))
        else:
            query = query.where(ClassEvaluation.schedule_id == schedule_id)
        result = await db.execute(query)
        return result.scalars().first()


# 싱글턴 인스턴스 — Singleton instance
evaluation_repository: EvaluationRepository = EvaluationRepository()
