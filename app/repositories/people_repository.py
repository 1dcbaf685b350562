"""인물 레포지토리 — 강사, 가용 시간, 학생, 보호자.

People Repository — Teachers, teacher availability, students, guardians
and the student/guardian links.
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import Select, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.people import Guardian, Student, StudentGuardian, Teacher, TeacherAvailability
from app.repositories.base import BaseRepository


class TeacherRepository(BaseRepository[Teacher]):
    """강사 레포지토리."""

    def __init__(self) -> None:
        super().__init__(Teacher, "Teacher")

    async def get_by_org(
        self,
        db: AsyncSession,
        organization_id: UUID,
        active_only: bool = False,
    ) -> Sequence[Teacher]:
        query: Select = select(Teacher).where(Teacher.organization_id == organization_id)
        if active_only:
            query = query.where(Teacher.is_active.is_(True))
        result = await db.execute(query.order_by(Teacher.last_name, Teacher.first_name))
        return result.scalars().all()

    async def get_by_ids(self, db: AsyncSession, teacher_ids: set[UUID]) -> dict[UUID, Teacher]:
        ids = {t for t in teacher_ids if t is not None}
        if not ids:
            return {}
        result = await db.execute(select(Teacher).where(Teacher.id.in_(ids)))
        return {t.id: t for t in result.scalars().all()}


class AvailabilityRepository(BaseRepository[TeacherAvailability]):
    """강사 가용 시간 레포지토리."""

    def __init__(self) -> None:
        super().__init__(TeacherAvailability, "Availability")

    async def get_by_teacher(self, db: AsyncSession, teacher_id: UUID) -> Sequence[TeacherAvailability]:
        result = await db.execute(
            select(TeacherAvailability)
            .where(TeacherAvailability.teacher_id == teacher_id)
            .order_by(TeacherAvailability.day_of_week, TeacherAvailability.start_time)
        )
        return result.scalars().all()


class StudentRepository(BaseRepository[Student]):
    """학생 레포지토리."""

    def __init__(self) -> None:
        super().__init__(Student, "Student")

    def search_query(
        self,
        organization_id: UUID,
        search: str | None = None,
        status: str | None = None,
    ) -> Select:
        query: Select = select(Student).where(Student.organization_id == organization_id)
        if status:
            query = query.where(Student.status == status)
        if search:
            like = f"%{search.strip()}%"
            query = query.where(or_(Student.first_name.ilike(like), Student.last_name.ilike(like)))
        return query.order_by(Student.last_name, Student.first_name)

    async def get_by_check_in_code(self, db: AsyncSession, organization_id: UUID, code: str) -> Student | None:
        result = await db.execute(
            select(Student).where(
                Student.organization_id == organization_id,
                Student.check_in_code == code.strip().upper(),
            )
        )
        return result.scalar_one_or_none()

    async def get_by_ids(self, db: AsyncSession, student_ids: set[UUID]) -> dict[UUID, Student]:
        ids = {s for s in student_ids if s is not None}
        if not ids:
            return {}
        result = await db.execute(select(Student).where(Student.id.in_(ids)))
        return {s.id: s for s in result.scalars().all()}

    async def get_for_guardian(self, db: AsyncSession, guardian_id: UUID) -> Sequence[Student]:
        """보호자의 자녀 목록 — Students linked to a guardian."""
        result = await db.execute(
            select(Student)
            .join(StudentGuardian, StudentGuardian.student_id == Student.id)
            .where(StudentGuardian.guardian_id == guardian_id)
            .order_by(Student.first_name)
        )
        return result.scalars().all()


class GuardianRepository(BaseRepository[Guardian]):
    """보호자 레포지토리."""

    def __init__(self) -> None:
        super().__init__(Guardian, "Guardian")

    async def get_by_org(self, db: AsyncSession, organization_id: UUID) -> Sequence[Guardian]:
        return await self.get_all(db, organization_id, order_by=Guardian.last_name)

    async def get_by_ids(self, db: AsyncSession, guardian_ids: set[UUID]) -> dict[UUID, Guardian]:
        ids = {g for g in guardian_ids if g is not None}
        if not ids:
            return {}
        result = await db.execute(select(Guardian).where(Guardian.id.in_(ids)))
        return {g.id: g for g in result.scalars().all()}

    async def is_linked(self, db: AsyncSession, guardian_id: UUID, student_id: UUID) -> bool:
        """보호자-학생 연결 여부 — Whether the guardian is linked to the student."""
        result = await db.execute(
            select(StudentGuardian.id).where(
                StudentGuardian.guardian_id == guardian_id,
                StudentGuardian.student_id == student_id,
            )
        )
        return result.first() is not None

    async def link(
        self,
        db: AsyncSession,
        student_id: UUID,
        guardian_id: UUID,
        relationship_type: str = "parent",
        is_primary: bool = False,
    ) -> StudentGuardian:
        link = StudentGuardian(
            student_id=student_id,
            guardian_id=guardian_id,
            relationship_type=relationship_type,
            is_primary=is_primary,
        )
        db.add(link)
        await db.flush()
        return link

    async def get_for_student(self, db: AsyncSession, student_id: UUID) -> list[tuple[Guardian, StudentGuardian]]:
        result = await db.execute(
            select(Guardian, StudentGuardian)
            .join(StudentGuardian, StudentGuardian.guardian_id == Guardian.id)
            .where(StudentGuardian.student_id == student_id)
        )
        return [(row[0], row[1]) for row in result.all()]


# 싱글턴 인스턴스 — Singleton instances
teacher_repository: TeacherRepository = TeacherRepository()
availability_repository: AvailabilityRepository = AvailabilityRepository()
student_repository: StudentRepository = StudentRepository()
guardian_repository: GuardianRepository = GuardianRepository()
