"""인물 서비스 — 강사, 가용 시간, 학생, 보호자 비즈니스 로직.

People Service — Business logic for teachers (and their weekly
availability), students, guardians and the student/guardian links.
Parents see only the students linked to their guardian record.
"""

from datetime import date
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.people import Guardian, Student, Teacher, TeacherAvailability
from app.repositories.class_repository import slot_repository
from app.repositories.enrollment_repository import enrollment_repository
from app.repositories.organization_repository import user_repository
from app.repositories.people_repository import (
    availability_repository,
    guardian_repository,
    student_repository,
    teacher_repository,
)
from app.schemas.people import (
    AvailabilityCreate,
    GuardianCreate,
    GuardianLinkRequest,
    StudentCreate,
    StudentUpdate,
    TeacherCreate,
    TeacherUpdate,
)
from app.services.schedule_service import schedule_service
from app.utils.exceptions import BadRequestError, DuplicateError, ForbiddenError
from app.utils.pagination import page_envelope
from app.utils.timeutil import age_in_years, day_name


class PeopleService:
    """강사/학생/보호자 서비스."""

    # === 강사 (Teachers) ===

    def _teacher_to_dict(self, t: Teacher) -> dict:
        return {
            "id": str(t.id),
            "user_id": str(t.user_id) if t.user_id else None,
            "first_name": t.first_name,
            "last_name": t.last_name,
            "full_name": t.full_name,
            "email": t.email,
            "phone": t.phone,
            "bio": t.bio,
            "specialties": t.specialties or [],
            "is_active": t.is_active,
            "created_at": t.created_at,
        }

    def _availability_to_dict(self, a: TeacherAvailability) -> dict:
        return {
            "id": str(a.id),
            "day_of_week": a.day_of_week,
            "day_name": day_name(a.day_of_week),
            "start_time": a.start_time.strftime("%H:%M"),
            "end_time": a.end_time.strftime("%H:%M"),
        }

    async def list_teachers(self, db: AsyncSession, organization_id: UUID, active_only: bool = False) -> list[dict]:
        teachers = await teacher_repository.get_by_org(db, organization_id, active_only=active_only)
        return [self._teacher_to_dict(t) for t in teachers]

    async def get_teacher(self, db: AsyncSession, teacher_id: UUID, organization_id: UUID) -> dict:
        teacher = await teacher_repository.get_or_404(db, teacher_id, organization_id)
        data = self._teacher_to_dict(teacher)
        data["availability"] = [
            self._availability_to_dict(a) for a in await availability_repository.get_by_teacher(db, teacher.id)
        ]
        return data

    async def _check_teacher_login(self, db: AsyncSession, organization_id: UUID, user_id: UUID) -> None:
        user = await user_repository.get_or_404(db, user_id, organization_id)
        if user.role != "teacher":
            raise BadRequestError("강사 역할의 계정만 연결할 수 있습니다 (Only teacher logins can be linked)")
        if await teacher_repository.exists(db, {"user_id": user_id}):
            raise DuplicateError("이미 다른 강사와 연결된 계정입니다 (Login is already linked to a teacher)")

    async def create_teacher(self, db: AsyncSession, organization_id: UUID, data: TeacherCreate) -> dict:
        """강사 등록 — user_id 지정 시 teacher 로그인과 연결."""
        if data.user_id is not None:
            await self._check_teacher_login(db, organization_id, data.user_id)
        teacher = await teacher_repository.create(db, {"organization_id": organization_id, **data.model_dump()})
        return self._teacher_to_dict(teacher)

    async def update_teacher(
        self,
        db: AsyncSession,
        teacher_id: UUID,
        organization_id: UUID,
        data: TeacherUpdate,
    ) -> dict:
        teacher = await teacher_repository.get_or_404(db, teacher_id, organization_id)
        teacher = await teacher_repository.update(db, teacher, data.model_dump(exclude_unset=True))
        return self._teacher_to_dict(teacher)

    async def deactivate_teacher(self, db: AsyncSession, teacher_id: UUID, organization_id: UUID) -> None:
        """강사 삭제 — 급여/평가 이력 보존을 위해 비활성화로 처리."""
        teacher = await teacher_repository.get_or_404(db, teacher_id, organization_id)
        await teacher_repository.update(db, teacher, {"is_active": False})

    async def list_availability(self, db: AsyncSession, teacher_id: UUID, organization_id: UUID) -> list[dict]:
        await teacher_repository.get_or_404(db, teacher_id, organization_id)
        return [self._availability_to_dict(a) for a in await availability_repository.get_by_teacher(db, teacher_id)]

    async def add_availability(
        self,
        db: AsyncSession,
        teacher_id: UUID,
        organization_id: UUID,
        data: AvailabilityCreate,
    ) -> dict:
        """가용 시간 추가 — 종료 시각은 시작 이후 (400)."""
        await teacher_repository.get_or_404(db, teacher_id, organization_id)
        if data.end_time <= data.start_time:
            raise BadRequestError("종료 시각은 시작 시각 이후여야 합니다 (end_time must be after start_time)")
        window = await availability_repository.create(db, {"teacher_id": teacher_id, **data.model_dump()})
        return self._availability_to_dict(window)

    async def delete_availability(
        self,
        db: AsyncSession,
        teacher_id: UUID,
        availability_id: UUID,
        organization_id: UUID,
    ) -> None:
        await teacher_repository.get_or_404(db, teacher_id, organization_id)
        window = await availability_repository.get_or_404(db, availability_id)
        if window.teacher_id != teacher_id:
            raise BadRequestError("해당 강사의 가용 시간이 아닙니다 (Availability belongs to another teacher)")
        await availability_repository.delete(db, availability_id)

    # === 학생 (Students) ===

    def _student_to_dict(self, s: Student) -> dict:
        return {
            "id": str(s.id),
            "first_name": s.first_name,
            "last_name": s.last_name,
            "full_name": s.full_name,
            "date_of_birth": s.date_of_birth,
            "age": age_in_years(s.date_of_birth, date.today()) if s.date_of_birth else None,
            "gender": s.gender,
            "medical_notes": s.medical_notes,
            "check_in_code": s.check_in_code,
            "status": s.status,
            "created_at": s.created_at,
        }

    async def list_students(
        self,
        db: AsyncSession,
        organization_id: UUID,
        search: str | None,
        status: str | None,
        page: int,
        per_page: int,
    ) -> dict:
        query = student_repository.search_query(organization_id, search=search, status=status)
        items, total = await student_repository.get_paginated(db, query, page, per_page)
        return page_envelope([self._student_to_dict(s) for s in items], total, page, per_page)

    async def get_student(self, db: AsyncSession, student_id: UUID, organization_id: UUID) -> dict:
        """학생 상세 — 보호자 및 수강 목록 포함."""
        student = await student_repository.get_or_404(db, student_id, organization_id)
        data = self._student_to_dict(student)
        data["guardians"] = [
            {
                "id": str(g.id),
                "full_name": g.full_name,
                "email": g.email,
                "phone": g.phone,
                "relationship_type": link.relationship_type,
                "is_primary": link.is_primary,
            }
            for g, link in await guardian_repository.get_for_student(db, student.id)
        ]
        data["enrollments"] = [
            {"id": str(e.id), "class_instance_id": str(e.class_instance_id), "status": e.status}
            for e in await enrollment_repository.get_open_for_student(db, student.id)
        ]
        return data

    async def create_student(self, db: AsyncSession, organization_id: UUID, data: StudentCreate) -> dict:
        student = await student_repository.create(db, {"organization_id": organization_id, **data.model_dump()})
        return self._student_to_dict(student)

    async def update_student(
        self,
        db: AsyncSession,
        student_id: UUID,
        organization_id: UUID,
        data: StudentUpdate,
    ) -> dict:
        student = await student_repository.get_or_404(db, student_id, organization_id)
        student = await student_repository.update(db, student, data.model_dump(exclude_unset=True))
        return self._student_to_dict(student)

    # === 보호자 (Guardians) ===

    def _guardian_to_dict(self, g: Guardian) -> dict:
        return {
            "id": str(g.id),
            "user_id": str(g.user_id) if g.user_id else None,
            "first_name": g.first_name,
            "last_name": g.last_name,
            "full_name": g.full_name,
            "email": g.email,
            "phone": g.phone,
            "address": g.address,
            "created_at": g.created_at,
        }

    async def list_guardians(self, db: AsyncSession, organization_id: UUID) -> list[dict]:
        return [self._guardian_to_dict(g) for g in await guardian_repository.get_by_org(db, organization_id)]

    async def create_guardian(self, db: AsyncSession, organization_id: UUID, data: GuardianCreate) -> dict:
        guardian = await guardian_repository.create(db, {"organization_id": organization_id, **data.model_dump()})
        return self._guardian_to_dict(guardian)

    async def link_guardian(
        self,
        db: AsyncSession,
        student_id: UUID,
        organization_id: UUID,
        data: GuardianLinkRequest,
    ) -> dict:
        """학생-보호자 연결.

        Raises:
            DuplicateError: 이미 연결됨 (Already linked)
        """
        await student_repository.get_or_404(db, student_id, organization_id)
        await guardian_repository.get_or_404(db, data.guardian_id, organization_id)
        if await guardian_repository.is_linked(db, data.guardian_id, student_id):
            raise DuplicateError("이미 연결된 보호자입니다 (Guardian is already linked to this student)")
        link = await guardian_repository.link(
            db, student_id, data.guardian_id, data.relationship_type, data.is_primary
        )
        return {
            "id": str(link.id),
            "student_id": str(student_id),
            "guardian_id": str(data.guardian_id),
            "relationship_type": link.relationship_type,
            "is_primary": link.is_primary,
        }

    # === 보호자 앱 (Parent app) ===

    async def list_my_students(self, db: AsyncSession, guardian: Guardian) -> list[dict]:
        return [self._student_to_dict(s) for s in await student_repository.get_for_guardian(db, guardian.id)]

    async def create_my_student(self, db: AsyncSession, guardian: Guardian, data: StudentCreate) -> dict:
        """보호자가 자녀 등록 — 호출자의 보호자 레코드에 주 보호자로 연결."""
        student = await student_repository.create(
            db, {"organization_id": guardian.organization_id, **data.model_dump()}
        )
        await guardian_repository.link(db, student.id, guardian.id, "parent", True)
        return self._student_to_dict(student)

    async def ensure_my_student(self, db: AsyncSession, guardian: Guardian, student_id: UUID) -> Student:
        """본인 자녀인지 확인 — 아니면 403.

        Raises:
            ForbiddenError: 연결되지 않은 학생 (Student not linked to the caller)
        """
        student = await student_repository.get_by_id(db, student_id, guardian.organization_id)
        if student is None or not await guardian_repository.is_linked(db, guardian.id, student_id):
            raise ForbiddenError("본인 자녀의 정보만 조회할 수 있습니다 (You can only access your own students)")
        return student

    async def get_my_student_schedule(self, db: AsyncSession, guardian: Guardian, student_id: UUID) -> dict:
        """자녀의 주간 시간표 — active/waitlist 수업의 활성 학기 슬롯.

        Weekly slots of the student's active and waitlisted classes.
        """
        student = await self.ensure_my_student(db, guardian, student_id)
        enrollments = await enrollment_repository.get_open_for_student(db, student.id)
        status_by_class = {e.class_instance_id: e.status for e in enrollments}
        slots = await slot_repository.get_active_slots(db, guardian.organization_id, list(status_by_class))
        details = await schedule_service.slot_details(db, slots, guardian.organization_id)
        for item in details:
            item["enrollment_status"] = status_by_class.get(UUID(item["class_instance_id"]))
        return {"student_id": str(student.id), "student_name": student.full_name, "slots": details}


# 싱글턴 인스턴스 — Singleton instance
people_service: PeopleService = PeopleService()
