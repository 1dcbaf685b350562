"""평가 서비스 — 학생 평가 작성, 제출, PDF 비즈니스 로직.

Evaluation Service — Business logic for student evaluations: drafting,
submission, per-student history, PDF reports and the parent view.
Teachers work only within the classes they teach and on their own drafts.
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import ensure_class_in_scope, get_teacher_for_user
from app.models.evaluation import ClassEvaluation
from app.models.organization import Organization
from app.models.people import Guardian
from app.models.user import User
from app.repositories.class_repository import class_repository, schedule_repository
from app.repositories.enrollment_repository import enrollment_repository
from app.repositories.evaluation_repository import evaluation_repository
from app.repositories.organization_repository import organization_repository, user_repository
from app.repositories.people_repository import guardian_repository, student_repository, teacher_repository
from app.schemas.evaluation import EvaluationCreate, EvaluationUpdate
from app.utils.exceptions import BadRequestError, ForbiddenError, NotFoundError
from app.utils.pagination import page_envelope
from app.utils.pdf import PDFReport
from app.utils.timeutil import utcnow

RATING_LABELS: dict[int, str] = {1: "Needs Work", 2: "Developing", 3: "Proficient", 4: "Strong", 5: "Excellent"}


class EvaluationService:
    """학생 평가 서비스."""

    async def _to_dicts(self, db: AsyncSession, evaluations: Sequence[ClassEvaluation]) -> list[dict]:
        students = await student_repository.get_by_ids(db, {e.student_id for e in evaluations})
        classes = await class_repository.get_by_ids(db, {e.class_instance_id for e in evaluations})
        teachers = await teacher_repository.get_by_ids(db, {e.teacher_id for e in evaluations})
        schedules = {
            s.id: s
            for s in [
                await schedule_repository.get_by_id(db, sid)
                for sid in {e.schedule_id for e in evaluations if e.schedule_id}
            ]
            if s is not None
        }
        evaluators = await user_repository.get_names(db, {e.evaluator_id for e in evaluations if e.evaluator_id})

        results: list[dict] = []
        for e in evaluations:
            student = students.get(e.student_id)
            cls = classes.get(e.class_instance_id)
            teacher = teachers.get(e.teacher_id)
            schedule = schedules.get(e.schedule_id)
            results.append({
                "id": str(e.id),
                "student_id": str(e.student_id),
                "student_name": student.full_name if student else None,
                "class_instance_id": str(e.class_instance_id),
                "class_name": cls.name if cls else None,
                "schedule_id": str(e.schedule_id) if e.schedule_id else None,
                "schedule_name": schedule.name if schedule else None,
                "teacher_id": str(e.teacher_id) if e.teacher_id else None,
                "teacher_name": teacher.full_name if teacher else None,
                "evaluator_id": str(e.evaluator_id) if e.evaluator_id else None,
                "evaluator_name": evaluators.get(e.evaluator_id) if e.evaluator_id else None,
                "overall_rating": e.overall_rating,
                "effort_rating": e.effort_rating,
                "attitude_rating": e.attitude_rating,
                "strengths": e.strengths,
                "areas_for_improvement": e.areas_for_improvement,
                "comments": e.comments,
                "skills": e.skills or [],
                "status": e.status,
                "submitted_at": e.submitted_at,
                "created_at": e.created_at,
                "updated_at": e.updated_at,
            })
        return results

    async def _get_in_scope(
        self,
        db: AsyncSession,
        evaluation_id: UUID,
        organization_id: UUID,
        scope: set[UUID] | None,
    ) -> ClassEvaluation:
        evaluation = await evaluation_repository.get_or_404(db, evaluation_id, organization_id)
        ensure_class_in_scope(scope, evaluation.class_instance_id)
        return evaluation

    def _ensure_editable(self, evaluation: ClassEvaluation, current_user: User) -> None:
        """강사는 본인이 작성한 초안만 수정/삭제 가능 (403)."""
        if current_user.role != "teacher":
            return
        if evaluation.evaluator_id != current_user.id:
            raise ForbiddenError("본인이 작성한 평가만 수정할 수 있습니다 (You can only edit your own evaluations)")
        if evaluation.status == "submitted":
            raise ForbiddenError("제출된 평가는 수정할 수 없습니다 (Submitted evaluations cannot be edited)")

    async def list_evaluations(
        self,
        db: AsyncSession,
        organization_id: UUID,
        scope: set[UUID] | None,
        student_id: UUID | None,
        class_instance_id: UUID | None,
        schedule_id: UUID | None,
        status: str | None,
        page: int,
        per_page: int,
    ) -> dict:
        query = evaluation_repository.filter_query(
            organization_id,
            student_id=student_id,
            class_instance_id=class_instance_id,
            schedule_id=schedule_id,
            status=status,
        )
        if scope is not None:
            query = query.where(ClassEvaluation.class_instance_id.in_(list(scope)))
        items, total = await evaluation_repository.get_paginated(db, query, page, per_page)
        return page_envelope(await self._to_dicts(db, items), total, page, per_page)

    async def get_evaluation(
        self,
        db: AsyncSession,
        evaluation_id: UUID,
        organization_id: UUID,
        scope: set[UUID] | None,
    ) -> dict:
        evaluation = await self._get_in_scope(db, evaluation_id, organization_id, scope)
        return (await self._to_dicts(db, [evaluation]))[0]

    async def student_history(
        self,
        db: AsyncSession,
        student_id: UUID,
        organization_id: UUID,
        scope: set[UUID] | None,
    ) -> list[dict]:
        """학생별 평가 이력 — Evaluations of one student, newest first."""
        await student_repository.get_or_404(db, student_id, organization_id)
        query = evaluation_repository.filter_query(organization_id, student_id=student_id)
        if scope is not None:
            query = query.where(ClassEvaluation.class_instance_id.in_(list(scope)))
        return await self._to_dicts(db, (await db.execute(query)).scalars().all())

    async def create_evaluation(
        self,
        db: AsyncSession,
        organization_id: UUID,
        data: EvaluationCreate,
        current_user: User,
        scope: set[UUID] | None,
    ) -> dict:
        """평가 초안 작성.

        Create a draft evaluation. Teachers may only evaluate students
        actively enrolled in a class they teach.

        Raises:
            ForbiddenError: 담당 외 수업 또는 수강생이 아님 (teacher)
            BadRequestError: 같은 학생/수업/학기 평가가 이미 있음
        """
        await student_repository.get_or_404(db, data.student_id, organization_id)
        cls = await class_repository.get_or_404(db, data.class_instance_id, organization_id)
        if data.schedule_id is not None:
            await schedule_repository.get_or_404(db, data.schedule_id, organization_id)

        teacher_id = cls.teacher_id
        if scope is not None:
            ensure_class_in_scope(scope, cls.id)
            if await enrollment_repository.get_active(db, data.student_id, cls.id) is None:
                raise ForbiddenError("수강 중인 학생만 평가할 수 있습니다 (Student is not enrolled in your class)")
            teacher = await get_teacher_for_user(db, current_user)
            teacher_id = teacher.id if teacher else teacher_id

        if await evaluation_repository.find_existing(db, data.student_id, cls.id, data.schedule_id):
            raise BadRequestError(
                "이미 해당 학기 평가가 있습니다 (An evaluation already exists for this student, class and term)"
            )

        payload: dict = data.model_dump()
        evaluation = await evaluation_repository.create(db, {
            "organization_id": organization_id,
            **payload,
            "teacher_id": teacher_id,
            "evaluator_id": current_user.id,
            "status": "draft",
        })
        return (await self._to_dicts(db, [evaluation]))[0]

    async def update_evaluation(
        self,
        db: AsyncSession,
        evaluation_id: UUID,
        organization_id: UUID,
        data: EvaluationUpdate,
        current_user: User,
        scope: set[UUID] | None,
    ) -> dict:
        evaluation = await self._get_in_scope(db, evaluation_id, organization_id, scope)
        self._ensure_editable(evaluation, current_user)
        evaluation = await evaluation_repository.update(db, evaluation, data.model_dump(exclude_unset=True))
        return (await self._to_dicts(db, [evaluation]))[0]

    async def delete_evaluation(
        self,
        db: AsyncSession,
        evaluation_id: UUID,
        organization_id: UUID,
        current_user: User,
        scope: set[UUID] | None,
    ) -> None:
        evaluation = await self._get_in_scope(db, evaluation_id, organization_id, scope)
        self._ensure_editable(evaluation, current_user)
        await evaluation_repository.delete(db, evaluation.id, organization_id)

    async def submit(
        self,
        db: AsyncSession,
        evaluation_id: UUID,
        organization_id: UUID,
        current_user: User,
        scope: set[UUID] | None,
    ) -> dict:
        """평가 제출 — 제출 후 보호자에게 공개.

        Raises:
            BadRequestError: 이미 제출됨, 종합 점수 누락
        """
        evaluation = await self._get_in_scope(db, evaluation_id, organization_id, scope)
        if evaluation.status == "submitted":
            raise BadRequestError("이미 제출된 평가입니다 (Evaluation is already submitted)")
        self._ensure_editable(evaluation, current_user)
        if evaluation.overall_rating is None:
            raise BadRequestError("종합 점수가 필요합니다 (overall_rating is required before submitting)")
        evaluation = await evaluation_repository.update(
            db, evaluation, {"status": "submitted", "submitted_at": utcnow()}
        )
        return (await self._to_dicts(db, [evaluation]))[0]

    # === PDF ===

    def _render_pdf(self, org: Organization, data: dict) -> bytes:
        def rating(value: int | None) -> str:
            return f"{value}/5 ({RATING_LABELS[value]})" if value else "-"

        report = PDFReport(
            "Student Progress Report",
            org.name,
            [org.address or "", " | ".join(v for v in (org.phone, org.email) if v)],
        )
        report.key_values([
            ("Student", data["student_name"]),
            ("Class", data["class_name"]),
            ("Term", data["schedule_name"] or "-"),
            ("Teacher", data["teacher_name"] or "-"),
            ("Status", data["status"].title()),
            ("Submitted", data["submitted_at"].strftime("%B %d, %Y") if data["submitted_at"] else "-"),
        ])
        report.heading("Ratings").key_values([
            ("Overall", rating(data["overall_rating"])),
            ("Effort", rating(data["effort_rating"])),
            ("Attitude", rating(data["attitude_rating"])),
        ])
        if data["skills"]:
            report.heading("Skills").table(
                ["Skill", "Rating"],
                [[s.get("name"), rating(s.get("rating"))] for s in data["skills"]],
            )
        report.heading("Strengths").paragraph(data["strengths"])
        report.heading("Areas for Improvement").paragraph(data["areas_for_improvement"])
        report.heading("Teacher Comments").paragraph(data["comments"])
        return report.build()

    async def render_pdf(
        self,
        db: AsyncSession,
        evaluation_id: UUID,
        organization_id: UUID,
        scope: set[UUID] | None,
    ) -> tuple[bytes, str]:
        """평가 PDF — (bytes, filename)."""
        evaluation = await self._get_in_scope(db, evaluation_id, organization_id, scope)
        org = await organization_repository.get_or_404(db, organization_id)
        data = (await self._to_dicts(db, [evaluation]))[0]
        return self._render_pdf(org, data), f"evaluation-{evaluation.id}.pdf"

    # === 보호자 앱 (Parent app) ===

    async def list_my_evaluations(self, db: AsyncSession, guardian: Guardian, student_id: UUID | None) -> list[dict]:
        """자녀의 제출된 평가만 — Submitted evaluations of the caller's students."""
        student_ids = [s.id for s in await student_repository.get_for_guardian(db, guardian.id)]
        if student_id is not None:
            if student_id not in student_ids:
                raise ForbiddenError("본인 자녀의 정보만 조회할 수 있습니다 (You can only access your own students)")
            student_ids = [student_id]
        if not student_ids:
            return []
        query = evaluation_repository.filter_query(
            guardian.organization_id, status="submitted", student_ids=student_ids
        )
        return await self._to_dicts(db, (await db.execute(query)).scalars().all())

    async def render_my_pdf(self, db: AsyncSession, guardian: Guardian, evaluation_id: UUID) -> tuple[bytes, str]:
        evaluation = await evaluation_repository.get_by_id(db, evaluation_id, guardian.organization_id)
        if evaluation is None or evaluation.status != "submitted":
            raise NotFoundError("Evaluation not found")
        if not await guardian_repository.is_linked(db, guardian.id, evaluation.student_id):
            raise ForbiddenError("본인 자녀의 정보만 조회할 수 있습니다 (You can only access your own students)")
        org = await organization_repository.get_or_404(db, guardian.organization_id)
        data = (await self._to_dicts(db, [evaluation]))[0]
        return self._render_pdf(org, data), f"evaluation-{evaluation.id}.pdf"


# 싱글턴 인스턴스 — Singleton instance
evaluation_service: EvaluationService = EvaluationService()
