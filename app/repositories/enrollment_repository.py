"""수강 레포지토리 — 수강 등록 및 수강 신청 조회.

Enrollment Repository — Enrollment and enrollment request queries.
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enrollment import OPEN_ENROLLMENT_STATUSES, Enrollment, EnrollmentRequest
from app.repositories.base import BaseRepository


class EnrollmentRepository(BaseRepository[Enrollment]):
    """수강 등록 레포지토리."""

    def __init__(self) -> None:
        super().__init__(Enrollment, "Enrollment")

    def filter_query(
        self,
        organization_id: UUID,
        class_instance_id: UUID | None = None,
        student_id: UUID | None = None,
        status: str | None = None,
        student_ids: list[UUID] | None = None,
    ) -> Select:
        query: Select = select(Enrollment).where(Enrollment.organization_id == organization_id)
        if class_instance_id:
            query = query.where(Enrollment.class_instance_id == class_instance_id)
        if student_id:
            query = query.where(Enrollment.student_id == student_id)
        if student_ids is not None:
            query = query.where(Enrollment.student_id.in_(student_ids))
        if status:
            query = query.where(Enrollment.status == status)
        return query.order_by(Enrollment.enrolled_at.desc())

    async def get_open_for_student(self, db: AsyncSession, student_id: UUID) -> Sequence[Enrollment]:
        """학생의 active/waitlist 수강 — Open enrollments of a student."""
        result = await db.execute(
            select(Enrollment).where(
                Enrollment.student_id == student_id,
                Enrollment.status.in_(OPEN_ENROLLMENT_STATUSES),
            )
        )
        return result.scalars().all()

    async def get_open(self, db: AsyncSession, student_id: UUID, class_instance_id: UUID) -> Enrollment | None:
        result = await db.execute(
            select(Enrollment).where(
                Enrollment.student_id == student_id,
                Enrollment.class_instance_id == class_instance_id,
                Enrollment.status.in_(OPEN_ENROLLMENT_STATUSES),
            )
        )
        return result.scalars().first()

    async def get_active(self, db: AsyncSession, student_id: UUID, class_instance_id: UUID) -> Enrollment | None:
        result = await db.execute(
            select(Enrollment).where(
                Enrollment.student_id == student_id,
                Enrollment.class_instance_id == class_instance_id,
                Enrollment.status == "active",
            )
        )
        return result.scalars().first()

    async def get_active_for_class(self, db: AsyncSession, class_instance_id: UUID) -> Sequence[Enrollment]:
        result = await db.execute(
            select(Enrollment).where(
                Enrollment.class_instance_id == class_instance_id,
                Enrollment.status == "active",
            )
        )
        return result.scalars().all()


class EnrollmentRequestRepository(BaseRepository[EnrollmentRequest]):
    """수강 신청 레포지토리."""

    def __init__(self) -> None:
        super().__init__(EnrollmentRequest, "Enrollment request")

    def filter_query(
        self,
        organization_id: UUID,
        status: str | None = None,
        class_instance_id: UUID | None = None,
        guardian_id: UUID | None = None,
    ) -> Select:
        query: Select = select(EnrollmentRequest).where(EnrollmentRequest.organization_id == organization_id)
        if status:
            query = query.where(EnrollmentRequest.status == status)
        if class_instance_id:
            query = query.where(EnrollmentRequest.class_instance_id == class_instance_id)
        if guardian_id:
            query = query.where(EnrollmentRequest.guardian_id == guardian_id)
        return query.order_by(EnrollmentRequest.created_at.desc())

    async def get_open_request(
        self,
        db: AsyncSession,
        student_id: UUID,
        class_instance_id: UUID,
    ) -> EnrollmentRequest | None:
        """진행 중/승인된 신청 — Pending, approved or waitlisted request."""
        result = await db.execute(
            select(EnrollmentRequest).where(
                EnrollmentRequest.student_id == student_id,
                EnrollmentRequest.class_instance_id == class_instance_id,
                EnrollmentRequest.status.in_(("pending", "approved", "waitlist")),
            )
        )
        return result.scalars().first()


# 싱글턴 인스턴스 — Singleton instances
enrollment_repository: EnrollmentRepository = EnrollmentRepository()
enrollment_request_repository: EnrollmentRequestRepository = EnrollmentRequestRepository()
