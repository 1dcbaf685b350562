"""수강 서비스 — 수강 등록, 대기자, 수강 신청 승인 비즈니스 로직.

Enrollment Service — Business logic for enrollments and parent
enrollment requests. Every new enrollment runs the conflict validator
(time overlap, age bounds, duplicates) against the student's active and
waitlisted classes; a full class routes the student to the waitlist.
"""

import logging
from datetime import date
from typing import Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.dance_class import ClassInstance
from app.models.enrollment import OPEN_ENROLLMENT_STATUSES, Enrollment, EnrollmentRequest
from app.models.people import Guardian, Student
from app.models.user import User
from app.repositories.class_repository import class_repository, slot_repository
from app.repositories.enrollment_repository import enrollment_repository, enrollment_request_repository
from app.repositories.organization_repository import organization_repository
from app.repositories.people_repository import guardian_repository, student_repository
from app.schemas.enrollment import (
    EnrollmentCreate,
    EnrollmentRequestCreate,
    EnrollmentRequestProcess,
    EnrollmentUpdate,
)
from app.utils.exceptions import BadRequestError, ForbiddenError, NotFoundError
from app.utils.pagination import page_envelope
from app.utils.schedule_conflicts import (
    EnrollmentValidation,
    ExistingEnrollment,
    TargetClass,
    TimeSlot,
    validate_enrollment_request,
)
from app.utils.timeutil import to_studio_time, utcnow

logger = logging.getLogger(__name__)


class EnrollmentService:
    """수강 서비스.

    Enrollment service covering staff enrollment, status changes, the
    request/approval workflow and the parent app.
    """

    # === 검증 (Validation) ===

    async def _studio_today(self, db: AsyncSession, organization_id: UUID) -> date:
        org = await organization_repository.get_or_404(db, organization_id)
        return to_studio_time(utcnow(), org.timezone).date()

    async def run_validation(
        self,
        db: AsyncSession,
        organization_id: UUID,
        student: Student,
        cls: ClassInstance,
        exclude_enrollment_id: UUID | None = None,
    ) -> EnrollmentValidation:
        """학생과 수업으로 충돌 검증을 수행합니다.

        Load the student's open enrollments with their active-schedule
        slots and the target class's slots, then run the validator. Ages
        are computed against the studio-local date. ``exclude_enrollment_id``
        leaves out the enrollment being re-validated itself.
        """
        open_enrollments = [
            e for e in await enrollment_repository.get_open_for_student(db, student.id)
            if e.id != exclude_enrollment_id
        ]
        class_ids = [e.class_instance_id for e in open_enrollments] + [cls.id]
        slots_by_class = await slot_repository.get_active_slots_by_class(db, organization_id, class_ids)
        classes = await class_repository.get_by_ids(db, {e.class_instance_id for e in open_enrollments})

        existing = [
            ExistingEnrollment(
                class_instance_id=e.class_instance_id,
                class_name=classes[e.class_instance_id].name if e.class_instance_id in classes else "Class",
                status=e.status,
                slots=[TimeSlot(s.day_of_week, s.start_time, s.end_time) for s in slots_by_class.get(e.class_instance_id, [])],
            )
            for e in open_enrollments
        ]
        target = TargetClass(
            class_instance_id=cls.id,
            class_name=cls.name,
            slots=[TimeSlot(s.day_of_week, s.start_time, s.end_time) for s in slots_by_class.get(cls.id, [])],
            min_age=cls.min_age,
            max_age=cls.max_age,
            max_students=cls.max_students,
            active_count=await class_repository.active_count(db, cls.id),
        )
        today = await self._studio_today(db, organization_id)
        return validate_enrollment_request(student.date_of_birth, existing, target, today)

    def _reject(self, validation: EnrollmentValidation) -> BadRequestError:
        return BadRequestError({
            "message": "수강 신청에 충돌이 있습니다 (Enrollment has conflicts)",
            "conflicts": [c.to_dict() for c in validation.conflicts],
            "warnings": [w.to_dict() for w in validation.warnings],
        })

    async def _load_pair(
        self,
        db: AsyncSession,
        organization_id: UUID,
        student_id: UUID,
        class_id: UUID,
    ) -> tuple[Student, ClassInstance]:
        student = await student_repository.get_or_404(db, student_id, organization_id)
        cls = await class_repository.get_or_404(db, class_id, organization_id)
        if cls.status != "active":
            raise BadRequestError("수강 신청을 받지 않는 수업입니다 (Class is not open for enrollment)")
        return student, cls

    async def validate(self, db: AsyncSession, organization_id: UUID, student_id: UUID, class_id: UUID) -> dict:
        """수강 가능 여부 사전 점검 — Dry run of the validator."""
        student, cls = await self._load_pair(db, organization_id, student_id, class_id)
        validation = await self.run_validation(db, organization_id, student, cls)
        return {"student_id": str(student.id), "class_instance_id": str(cls.id), **validation.to_dict()}

    # === 응답 구성 (Response building) ===

    async def _enrollments_to_dicts(self, db: AsyncSession, enrollments: Sequence[Enrollment]) -> list[dict]:
        students = await student_repository.get_by_ids(db, {e.student_id for e in enrollments})
        classes = await class_repository.get_by_ids(db, {e.class_instance_id for e in enrollments})
        results: list[dict] = []
        for e in enrollments:
            student = students.get(e.student_id)
            cls = classes.get(e.class_instance_id)
            results.append({
                "id": str(e.id),
                "student_id": str(e.student_id),
                "student_name": student.full_name if student else None,
                "class_instance_id": str(e.class_instance_id),
                "class_name": cls.name if cls else None,
                "status": e.status,
                "enrolled_at": e.enrolled_at,
                "dropped_at": e.dropped_at,
                "notes": e.notes,
            })
        return results

    async def _requests_to_dicts(self, db: AsyncSession, requests: Sequence[EnrollmentRequest]) -> list[dict]:
        students = await student_repository.get_by_ids(db, {r.student_id for r in requests})
        classes = await class_repository.get_by_ids(db, {r.class_instance_id for r in requests})
        results: list[dict] = []
        for r in requests:
            student = students.get(r.student_id)
            cls = classes.get(r.class_instance_id)
            results.append({
                "id": str(r.id),
                "student_id": str(r.student_id),
                "student_name": student.full_name if student else None,
                "class_instance_id": str(r.class_instance_id),
                "class_name": cls.name if cls else None,
                "guardian_id": str(r.guardian_id) if r.guardian_id else None,
                "status": r.status,
                "notes": r.notes,
                "denial_reason": r.denial_reason,
                "conflicts": r.conflicts or [],
                "warnings": r.warnings or [],
                "processed_at": r.processed_at,
                "created_at": r.created_at,
            })
        return results

    # === 스태프 수강 관리 (Staff enrollment) ===

    async def list_enrollments(
        self,
        db: AsyncSession,
        organization_id: UUID,
        class_instance_id: UUID | None,
        student_id: UUID | None,
        status: str | None,
        page: int,
        per_page: int,
    ) -> dict:
        query = enrollment_repository.filter_query(
            organization_id, class_instance_id=class_instance_id, student_id=student_id, status=status
        )
        items, total = await enrollment_repository.get_paginated(db, query, page, per_page)
        return page_envelope(await self._enrollments_to_dicts(db, items), total, page, per_page)

    async def _enroll(
        self,
        db: AsyncSession,
        organization_id: UUID,
        student: Student,
        cls: ClassInstance,
        notes: str | None,
    ) -> tuple[Enrollment, EnrollmentValidation]:
        validation = await self.run_validation(db, organization_id, student, cls)
        if not validation.can_enroll:
            raise self._reject(validation)
        enrollment = await enrollment_repository.create(db, {
            "organization_id": organization_id,
            "student_id": student.id,
            "class_instance_id": cls.id,
            "status": "waitlist" if validation.requires_waitlist else "active",
            "notes": notes,
        })
        logger.info("Student %s enrolled in %s as %s", student.id, cls.id, enrollment.status)
        return enrollment, validation

    async def create_enrollment(self, db: AsyncSession, organization_id: UUID, data: EnrollmentCreate) -> dict:
        """스태프 직접 등록.

        Enroll a student directly. Conflicts are a 400 carrying the
        conflict and warning lists; a full class yields a waitlist entry.
        """
        student, cls = await self._load_pair(db, organization_id, data.student_id, data.class_instance_id)
        enrollment, validation = await self._enroll(db, organization_id, student, cls, data.notes)
        result = (await self._enrollments_to_dicts(db, [enrollment]))[0]
        result["warnings"] = [w.to_dict() for w in validation.warnings]
        return result

    async def update_enrollment(
        self,
        db: AsyncSession,
        enrollment_id: UUID,
        organization_id: UUID,
        data: EnrollmentUpdate,
    ) -> dict:
        """수강 상태 변경.

        Change an enrollment's status. Dropping stamps ``dropped_at``.
        Reopening a dropped or completed enrollment, or promoting one from
        the waitlist, runs the conflict validator again and rechecks
        capacity.

        Raises:
            BadRequestError: 같은 수업의 다른 수강 존재, 충돌, 정원 초과 상태에서 활성화
        """
        enrollment = await enrollment_repository.get_or_404(db, enrollment_id, organization_id)
        update_data: dict = data.model_dump(exclude_unset=True)
        new_status = update_data.get("status")

        if new_status in OPEN_ENROLLMENT_STATUSES and new_status != enrollment.status:
            await self._check_reopen(db, organization_id, enrollment, new_status)
        if new_status == "dropped" and enrollment.status != "dropped":
            update_data["dropped_at"] = utcnow()
        elif new_status and new_status != "dropped":
            update_data["dropped_at"] = None

        enrollment = await enrollment_repository.update(db, enrollment, update_data)
        return (await self._enrollments_to_dicts(db, [enrollment]))[0]

    async def _check_reopen(
        self,
        db: AsyncSession,
        organization_id: UUID,
        enrollment: Enrollment,
        new_status: str,
    ) -> None:
        if enrollment.status not in OPEN_ENROLLMENT_STATUSES:
            other = await enrollment_repository.get_open(db, enrollment.student_id, enrollment.class_instance_id)
            if other is not None and other.id != enrollment.id:
                raise BadRequestError("이미 수강 중인 학생입니다 (Student is already enrolled in this class)")
        elif new_status == "waitlist":
            # active → waitlist 강등은 검증 불필요
            return

        student = await student_repository.get_or_404(db, enrollment.student_id, organization_id)
        cls = await class_repository.get_or_404(db, enrollment.class_instance_id, organization_id)
        validation = await self.run_validation(
            db, organization_id, student, cls, exclude_enrollment_id=enrollment.id
        )
        if not validation.can_enroll:
            raise self._reject(validation)
        if new_status == "active" and validation.requires_waitlist:
            raise BadRequestError("정원이 찼습니다 (Class is full)")

    # === 수강 신청 처리 (Request processing) ===

    async def list_requests(
        self,
        db: AsyncSession,
        organization_id: UUID,
        status: str | None,
        class_instance_id: UUID | None,
        page: int,
        per_page: int,
    ) -> dict:
        query = enrollment_request_repository.filter_query(
            organization_id, status=status, class_instance_id=class_instance_id
        )
        items, total = await enrollment_request_repository.get_paginated(db, query, page, per_page)
        return page_envelope(await self._requests_to_dicts(db, items), total, page, per_page)

    async def process_request(
        self,
        db: AsyncSession,
        request_id: UUID,
        organization_id: UUID,
        data: EnrollmentRequestProcess,
        current_user: User,
    ) -> dict:
        """수강 신청 승인/거절.

        Approve or deny a pending (or waitlisted) request. Approval runs
        the conflict validator against the student's current classes and
        creates the enrollment, active or waitlisted depending on capacity.

        Raises:
            BadRequestError: 처리 불가 상태, 거절 사유 누락, 이미 수강 중, 충돌
        """
        request = await enrollment_request_repository.get_or_404(db, request_id, organization_id)
        if request.status not in ("pending", "waitlist"):
            raise BadRequestError(f"이미 처리된 신청입니다 (Request is already {request.status})")

        update: dict = {"processed_by": current_user.id, "processed_at": utcnow()}
        if data.notes is not None:
            update["notes"] = data.notes

        enrollment_dict: dict | None = None
        if data.action == "deny":
            if not data.denial_reason:
                raise BadRequestError("거절 사유가 필요합니다 (denial_reason is required)")
            update.update({"status": "denied", "denial_reason": data.denial_reason})
        else:
            if await enrollment_repository.get_open(db, request.student_id, request.class_instance_id):
                raise BadRequestError("이미 수강 중인 학생입니다 (Student is already enrolled in this class)")
            student, cls = await self._load_pair(db, organization_id, request.student_id, request.class_instance_id)
            enrollment, _ = await self._enroll(db, organization_id, student, cls, request.notes)
            update["status"] = "approved"
            enrollment_dict = (await self._enrollments_to_dicts(db, [enrollment]))[0]

        request = await enrollment_request_repository.update(db, request, update)
        result = (await self._requests_to_dicts(db, [request]))[0]
        result["enrollment"] = enrollment_dict
        return result

    # === 보호자 앱 (Parent app) ===

    async def _ensure_linked(self, db: AsyncSession, guardian: Guardian, student_id: UUID) -> None:
        if not await guardian_repository.is_linked(db, guardian.id, student_id):
            raise ForbiddenError("본인 자녀만 신청할 수 있습니다 (You can only manage your own students)")

    async def list_my_enrollments(self, db: AsyncSession, guardian: Guardian, student_id: UUID | None = None) -> list[dict]:
        students = await student_repository.get_for_guardian(db, guardian.id)
        student_ids = [s.id for s in students]
        if student_id is not None:
            if student_id not in student_ids:
                raise ForbiddenError("본인 자녀만 조회할 수 있습니다 (You can only view your own students)")
            student_ids = [student_id]
        if not student_ids:
            return []
        query = enrollment_repository.filter_query(guardian.organization_id, student_ids=student_ids)
        enrollments = (await db.execute(query)).scalars().all()
        return await self._enrollments_to_dicts(db, enrollments)

    async def create_my_enrollment(self, db: AsyncSession, guardian: Guardian, data: EnrollmentCreate) -> dict:
        """보호자 직접 수강 등록.

        Raises:
            ForbiddenError: 연결되지 않은 학생
            BadRequestError: 이미 수강 중, 충돌
        """
        await self._ensure_linked(db, guardian, data.student_id)
        org_id = guardian.organization_id
        student, cls = await self._load_pair(db, org_id, data.student_id, data.class_instance_id)
        if await enrollment_repository.get_open(db, student.id, cls.id):
            raise BadRequestError("이미 수강 중인 수업입니다 (Student is already enrolled in this class)")
        enrollment, validation = await self._enroll(db, org_id, student, cls, data.notes)
        result = (await self._enrollments_to_dicts(db, [enrollment]))[0]
        result["warnings"] = [w.to_dict() for w in validation.warnings]
        return result

    async def drop_my_enrollment(self, db: AsyncSession, guardian: Guardian, enrollment_id: UUID) -> dict:
        """보호자 수강 취소 — 소프트 드롭 (status=dropped)."""
        enrollment = await enrollment_repository.get_by_id(db, enrollment_id, guardian.organization_id)
        if enrollment is None:
            raise NotFoundError("Enrollment not found")
        await self._ensure_linked(db, guardian, enrollment.student_id)
        if enrollment.status == "dropped":
            raise BadRequestError("이미 취소된 수강입니다 (Enrollment is already dropped)")
        enrollment = await enrollment_repository.update(
            db, enrollment, {"status": "dropped", "dropped_at": utcnow()}
        )
        return (await self._enrollments_to_dicts(db, [enrollment]))[0]

    async def list_my_requests(self, db: AsyncSession, guardian: Guardian) -> list[dict]:
        query = enrollment_request_repository.filter_query(guardian.organization_id, guardian_id=guardian.id)
        requests = (await db.execute(query)).scalars().all()
        return await self._requests_to_dicts(db, requests)

    async def create_my_request(self, db: AsyncSession, guardian: Guardian, data: EnrollmentRequestCreate) -> dict:
        """보호자 수강 신청.

        Submit a request for staff approval. The validator snapshot is
        stored on the request; a full class files it as ``waitlist``.

        Raises:
            ForbiddenError: 연결되지 않은 학생
            BadRequestError: 중복 신청, 이미 수강 중, 충돌
        """
        await self._ensure_linked(db, guardian, data.student_id)
        org_id = guardian.organization_id
        student, cls = await self._load_pair(db, org_id, data.student_id, data.class_instance_id)
        if await enrollment_request_repository.get_open_request(db, student.id, cls.id):
            raise BadRequestError("이미 신청한 수업입니다 (A request for this class already exists)")
        if await enrollment_repository.get_open(db, student.id, cls.id):
            raise BadRequestError("이미 수강 중인 수업입니다 (Student is already enrolled in this class)")

        validation = await self.run_validation(db, org_id, student, cls)
        if not validation.can_enroll:
            raise self._reject(validation)

        request = await enrollment_request_repository.create(db, {
            "organization_id": org_id,
            "student_id": student.id,
            "class_instance_id": cls.id,
            "guardian_id": guardian.id,
            "status": "waitlist" if validation.requires_waitlist else "pending",
            "notes": data.notes,
            "conflicts": [],
            "warnings": [w.to_dict() for w in validation.warnings],
        })
        return (await self._requests_to_dicts(db, [request]))[0]

    async def cancel_my_request(self, db: AsyncSession, guardian: Guardian, request_id: UUID) -> dict:
        request = await enrollment_request_repository.get_by_id(db, request_id, guardian.organization_id)
        if request is None or request.guardian_id != guardian.id:
            raise NotFoundError("Enrollment request not found")
        if request.status not in ("pending", "waitlist"):
            raise BadRequestError("대기 중인 신청만 취소할 수 있습니다 (Only pending requests can be cancelled)")
        request = await enrollment_request_repository.update(db, request, {"status": "cancelled"})
        return (await self._requests_to_dicts(db, [request]))[0]


# 싱글턴 인스턴스 — Singleton instance
enrollment_service: EnrollmentService = EnrollmentService()
