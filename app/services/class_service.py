"""수업 서비스 — 댄스 장르 및 수업 카탈로그 비즈니스 로직.

Class Service — Business logic for dance styles and the class catalogue.
Class listings carry live enrollment counts (active and waitlist).
"""

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.dance_class import ClassInstance, DanceStyle
from app.models.enrollment import Enrollment
from app.repositories.class_repository import class_repository, dance_style_repository
from app.repositories.people_repository import teacher_repository
from app.schemas.dance_class import ClassCreate, ClassUpdate, DanceStyleCreate
from app.utils.exceptions import BadRequestError


class ClassService:
    """수업 카탈로그 서비스.

    Service handling dance styles and class offerings.
    """

    # === 장르 (Dance styles) ===

    def _style_to_dict(self, style: DanceStyle) -> dict:
        return {"id": str(style.id), "name": style.name, "color": style.color}

    async def list_styles(self, db: AsyncSession, organization_id: UUID) -> list[dict]:
        return [self._style_to_dict(s) for s in await dance_style_repository.get_by_org(db, organization_id)]

    async def create_style(self, db: AsyncSession, organization_id: UUID, data: DanceStyleCreate) -> dict:
        style = await dance_style_repository.create(
            db, {"organization_id": organization_id, "name": data.name, "color": data.color}
        )
        return self._style_to_dict(style)

    # === 수업 (Classes) ===

    async def _build_responses(
        self,
        db: AsyncSession,
        classes: list[ClassInstance],
        organization_id: UUID,
    ) -> list[dict]:
        """수업 목록 응답 — 장르/강사 이름과 수강 인원 포함."""
        class_ids = [c.id for c in classes]
        active = await class_repository.count_by_status(db, class_ids, "active")
        waitlist = await class_repository.count_by_status(db, class_ids, "waitlist")
        styles = {s.id: s for s in await dance_style_repository.get_by_org(db, organization_id)}
        teachers = await teacher_repository.get_by_ids(db, {c.teacher_id for c in classes})

        results: list[dict] = []
        for c in classes:
            style = styles.get(c.dance_style_id)
            teacher = teachers.get(c.teacher_id)
            enrolled = active.get(c.id, 0)
            results.append({
                "id": str(c.id),
                "name": c.name,
                "dance_style_id": str(c.dance_style_id) if c.dance_style_id else None,
                "dance_style_name": style.name if style else None,
                "dance_style_color": style.color if style else None,
                "level": c.level,
                "description": c.description,
                "min_age": c.min_age,
                "max_age": c.max_age,
                "max_students": c.max_students,
                "teacher_id": str(c.teacher_id) if c.teacher_id else None,
                "teacher_name": teacher.full_name if teacher else None,
                "tuition_in_cents": c.tuition_in_cents,
                "status": c.status,
                "enrolled_count": enrolled,
                "waitlist_count": waitlist.get(c.id, 0),
                "spots_remaining": max(c.max_students - enrolled, 0) if c.max_students is not None else None,
                "created_at": c.created_at,
            })
        return results

    async def _validate_refs(
        self,
        db: AsyncSession,
        organization_id: UUID,
        data: dict,
        current: ClassInstance | None = None,
    ) -> None:
        min_age = data.get("min_age", current.min_age if current else None)
        max_age = data.get("max_age", current.max_age if current else None)
        if min_age is not None and max_age is not None and min_age > max_age:
            raise BadRequestError("최소 연령이 최대 연령보다 큽니다 (min_age must not exceed max_age)")
        if data.get("teacher_id") is not None:
            await teacher_repository.get_or_404(db, data["teacher_id"], organization_id)
        if data.get("dance_style_id") is not None:
            await dance_style_repository.get_or_404(db, data["dance_style_id"], organization_id)

    async def list_classes(
        self,
        db: AsyncSession,
        organization_id: UUID,
        status: str | None = None,
        teacher_id: UUID | None = None,
        dance_style_id: UUID | None = None,
    ) -> list[dict]:
        classes = await class_repository.get_by_org(
            db, organization_id, status=status, teacher_id=teacher_id, dance_style_id=dance_style_id
        )
        return await self._build_responses(db, list(classes), organization_id)

    async def get_class(self, db: AsyncSession, class_id: UUID, organization_id: UUID) -> dict:
        cls = await class_repository.get_or_404(db, class_id, organization_id)
        return (await self._build_responses(db, [cls], organization_id))[0]

    async def create_class(self, db: AsyncSession, organization_id: UUID, data: ClassCreate) -> dict:
        """수업 생성 — 강사와 장르는 같은 스튜디오 소속이어야 함."""
        payload: dict = data.model_dump()
        await self._validate_refs(db, organization_id, payload)
        cls = await class_repository.create(db, {"organization_id": organization_id, **payload})
        return (await self._build_responses(db, [cls], organization_id))[0]

    async def update_class(
        self,
        db: AsyncSession,
        class_id: UUID,
        organization_id: UUID,
        data: ClassUpdate,
    ) -> dict:
        cls = await class_repository.get_or_404(db, class_id, organization_id)
        update_data: dict = data.model_dump(exclude_unset=True)
        await self._validate_refs(db, organization_id, update_data, cls)
        cls = await class_repository.update(db, cls, update_data)
        return (await self._build_responses(db, [cls], organization_id))[0]

    async def delete_class(self, db: AsyncSession, class_id: UUID, organization_id: UUID) -> dict:
        """수업 삭제.

        Delete a class. A class with enrollment history is cancelled
        instead so attendance and payment records keep their reference.

        Returns:
            dict: {"deleted": bool, "status": str}
        """
        cls = await class_repository.get_or_404(db, class_id, organization_id)
        has_history = (
            await db.execute(select(func.count(Enrollment.id)).where(Enrollment.class_instance_id == cls.id))
        ).scalar() or 0
        if has_history:
            await class_repository.update(db, cls, {"status": "cancelled"})
            return {"deleted": False, "status": "cancelled"}
        await class_repository.delete(db, cls.id, organization_id)
        return {"deleted": True, "status": "deleted"}


# 싱글턴 인스턴스 — Singleton instance
class_service: ClassService = ClassService()
