"""수업/시간표 레포지토리 — 장르, 수업, 시간표, 슬롯, 게시 이력.

Class & Schedule Repository — Dance styles, classes, schedules (terms),
schedule slots and publish history.
"""

from collections import defaultdict
from typing import Sequence
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.dance_class import ClassInstance, DanceStyle
from app.models.enrollment import Enrollment
from app.models.schedule import Schedule, ScheduleClass, SchedulePublishHistory
from app.repositories.base import BaseRepository


class DanceStyleRepository(BaseRepository[DanceStyle]):
    """장르 레포지토리."""

    def __init__(self) -> None:
        super().__init__(DanceStyle, "Dance style")

    async def get_by_org(self, db: AsyncSession, organization_id: UUID) -> Sequence[DanceStyle]:
        return await self.get_all(db, organization_id, order_by=DanceStyle.name)

    async def get_by_ids(self, db: AsyncSession, style_ids: set[UUID]) -> dict[UUID, DanceStyle]:
        ids = {s for s in style_ids if s is not None}
        if not ids:
            return {}
        result = await db.execute(select(DanceStyle).where(DanceStyle.id.in_(ids)))
        return {s.id: s for s in result.scalars().all()}


class ClassRepository(BaseRepository[ClassInstance]):
    """수업 레포지토리."""

    def __init__(self) -> None:
        super().__init__(ClassInstance, "Class")

    async def get_by_org(
        self,
        db: AsyncSession,
        organization_id: UUID,
        status: str | None = None,
        teacher_id: UUID | None = None,
        dance_style_id: UUID | None = None,
    ) -> Sequence[ClassInstance]:
        return await self.get_all(
            db,
            organization_id,
            filters={"status": status, "teacher_id": teacher_id, "dance_style_id": dance_style_id},
            order_by=ClassInstance.name,
        )

    async def get_by_ids(self, db: AsyncSession, class_ids: set[UUID]) -> dict[UUID, ClassInstance]:
        ids = {c for c in class_ids if c is not None}
        if not ids:
            return {}
        result = await db.execute(select(ClassInstance).where(ClassInstance.id.in_(ids)))
        return {c.id: c for c in result.scalars().all()}

    async def count_by_status(
        self,
        db: AsyncSession,
        class_ids: list[UUID] | None,
        status: str,
        organization_id: UUID | None = None,
    ) -> dict[UUID, int]:
        """수업별 수강 인원 — Enrollment count per class for one status."""
        query: Select = (
            select(Enrollment.class_instance_id, func.count(Enrollment.id))
            .where(Enrollment.status == status)
            .group_by(Enrollment.class_instance_id)
        )
        if class_ids is not None:
            if not class_ids:
                return {}
            query = query.where(Enrollment.class_instance_id.in_(class_ids))
        if organization_id is not None:
            query = query.where(Enrollment.organization_id == organization_id)
        result = await db.execute(query)
        return {row[0]: row[1] for row in result.all()}

    async def active_count(self, db: AsyncSession, class_id: UUID) -> int:
        counts = await self.count_by_status(db, [class_id], "active")
        return counts.get(class_id, 0)

    async def get_taught_class_ids(self, db: AsyncSession, teacher_id: UUID) -> set[UUID]:
        """강사가 담당하는 수업 — Classes a teacher leads or has a slot in."""
        lead = await db.execute(select(ClassInstance.id).where(ClassInstance.teacher_id == teacher_id))
        slotted = await db.execute(
            select(ScheduleClass.class_instance_id).where(ScheduleClass.teacher_id == teacher_id)
        )
        return set(lead.scalars().all()) | set(slotted.scalars().all())


class ScheduleRepository(BaseRepository[Schedule]):
    """시간표 레포지토리."""

    def __init__(self) -> None:
        super().__init__(Schedule, "Schedule")

    async def get_by_org(self, db: AsyncSession, organization_id: UUID) -> Sequence[Schedule]:
        return await self.get_all(db, organization_id, order_by=Schedule.start_date.desc())

    async def get_active(self, db: AsyncSession, organization_id: UUID) -> Sequence[Schedule]:
        result = await db.execute(
            select(Schedule)
            .where(Schedule.organization_id == organization_id, Schedule.is_active.is_(True))
            .order_by(Schedule.start_date.desc())
        )
        return result.scalars().all()

    async def add_history(
        self,
        db: AsyncSession,
        schedule_id: UUID,
        version: int,
        notes: str | None,
        slot_count: int,
        published_by: UUID,
    ) -> SchedulePublishHistory:
        entry = SchedulePublishHistory(
            schedule_id=schedule_id,
            version=version,
            notes=notes,
            slot_count=slot_count,
            published_by=published_by,
        )
        db.add(entry)
        await db.flush()
        return entry

    async def get_history(self, db: AsyncSession, schedule_id: UUID) -> Sequence[SchedulePublishHistory]:
        result = await db.execute(
            select(SchedulePublishHistory)
            .where(SchedulePublishHistory.schedule_id == schedule_id)
            .order_by(SchedulePublishHistory.version.desc())
        )
        return result.scalars().all()


class SlotRepository(BaseRepository[ScheduleClass]):
    """시간표 슬롯 레포지토리."""

    def __init__(self) -> None:
        super().__init__(ScheduleClass, "Schedule slot")

    async def get_by_schedule(self, db: AsyncSession, schedule_id: UUID) -> Sequence[ScheduleClass]:
        result = await db.execute(
            select(ScheduleClass)
            .where(ScheduleClass.schedule_id == schedule_id)
            .order_by(ScheduleClass.day_of_week, ScheduleClass.start_time)
        )
        return result.scalars().all()

    async def get_active_slots(
        self,
        db: AsyncSession,
        organization_id: UUID,
        class_ids: list[UUID] | None = None,
    ) -> Sequence[ScheduleClass]:
        """활성 학기의 슬롯 — Slots of the studio's active schedules."""
        query: Select = (
            select(ScheduleClass)
            .join(Schedule, Schedule.id == ScheduleClass.schedule_id)
            .where(Schedule.organization_id == organization_id, Schedule.is_active.is_(True))
        )
        if class_ids is not None:
            if not class_ids:
                return []
            query = query.where(ScheduleClass.class_instance_id.in_(class_ids))
        result = await db.execute(query.order_by(ScheduleClass.day_of_week, ScheduleClass.start_time))
        return result.scalars().all()

    async def get_active_slots_by_class(
        self,
        db: AsyncSession,
        organization_id: UUID,
        class_ids: list[UUID],
    ) -> dict[UUID, list[ScheduleClass]]:
        grouped: dict[UUID, list[ScheduleClass]] = defaultdict(list)
        for slot in await self.get_active_slots(db, organization_id, class_ids):
            grouped[slot.class_instance_id].append(slot)
        return grouped


# 싱글턴 인스턴스 — Singleton instances
dance_style_repository: DanceStyleRepository = DanceStyleRepository()
class_repository: ClassRepository = ClassRepository()
schedule_repository: ScheduleRepository = ScheduleRepository()
slot_repository: SlotRepository = SlotRepository()
