"""시간표 서비스 — 학기 시간표, 슬롯 편성, 게시, 복제 비즈니스 로직.

Schedule Service — Business logic for terms (schedules) and their weekly
class slots. Slot writes run the room/teacher/availability conflict
checker; publishing bumps the version and records history.
"""

import logging
from typing import Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.schedule import Schedule, ScheduleClass
from app.models.user import User
from app.repositories.class_repository import (
    class_repository,
    dance_style_repository,
    schedule_repository,
    slot_repository,
)
from app.repositories.organization_repository import room_repository, user_repository
from app.repositories.people_repository import availability_repository, teacher_repository
from app.schemas.dance_class import (
    ConflictCheckRequest,
    DuplicateRequest,
    PublishRequest,
    ScheduleCreate,
    ScheduleUpdate,
    SlotCreate,
    SlotUpdate,
)
from app.utils.exceptions import BadRequestError, ConflictError, ForbiddenError
from app.utils.schedule_conflicts import (
    AVAILABILITY_ISSUES,
    Issue,
    PlacedSlot,
    TimeSlot,
    check_slot_conflicts,
)
from app.utils.timeutil import day_name, minutes_between, utcnow

logger = logging.getLogger(__name__)


class ScheduleService:
    """시간표 서비스.

    Schedule service handling terms, slot placement with conflict
    checking, publication and duplication.
    """

    # === 응답 구성 (Response building) ===

    async def slot_details(
        self,
        db: AsyncSession,
        slots: Sequence[ScheduleClass],
        organization_id: UUID,
    ) -> list[dict]:
        """슬롯 목록에 수업/강사/강의실 이름을 붙여 반환합니다.

        Resolve class, style, teacher and room names for a list of slots.
        """
        classes = await class_repository.get_by_ids(db, {s.class_instance_id for s in slots})
        teachers = await teacher_repository.get_by_ids(db, {s.teacher_id for s in slots})
        rooms = {r.id: r for r in await room_repository.get_by_org(db, organization_id)}
        styles = {s.id: s for s in await dance_style_repository.get_by_org(db, organization_id)}

        results: list[dict] = []
        for s in slots:
            cls = classes.get(s.class_instance_id)
            teacher = teachers.get(s.teacher_id)
            room = rooms.get(s.room_id)
            style = styles.get(cls.dance_style_id) if cls else None
            results.append({
                "id": str(s.id),
                "schedule_id": str(s.schedule_id),
                "class_instance_id": str(s.class_instance_id),
                "class_name": cls.name if cls else None,
                "dance_style_name": style.name if style else None,
                "level": cls.level if cls else None,
                "room_id": str(s.room_id) if s.room_id else None,
                "room_name": room.name if room else None,
                "teacher_id": str(s.teacher_id) if s.teacher_id else None,
                "teacher_name": teacher.full_name if teacher else None,
                "day_of_week": s.day_of_week,
                "day_name": day_name(s.day_of_week),
                "start_time": s.start_time.strftime("%H:%M"),
                "end_time": s.end_time.strftime("%H:%M"),
                "duration_minutes": minutes_between(s.start_time, s.end_time),
            })
        return results

    def _to_dict(self, schedule: Schedule, slot_count: int | None = None) -> dict:
        return {
            "id": str(schedule.id),
            "name": schedule.name,
            "description": schedule.description,
            "start_date": schedule.start_date,
            "end_date": schedule.end_date,
            "is_active": schedule.is_active,
            "publication_status": schedule.publication_status,
            "published_version": schedule.published_version,
            "published_at": schedule.published_at,
            "published_by": str(schedule.published_by) if schedule.published_by else None,
            "slot_count": slot_count,
            "created_at": schedule.created_at,
        }

    # === 학기 CRUD (Schedules) ===

    async def list_schedules(self, db: AsyncSession, organization_id: UUID) -> list[dict]:
        schedules = await schedule_repository.get_by_org(db, organization_id)
        results: list[dict] = []
        for schedule in schedules:
            slots = await slot_repository.get_by_schedule(db, schedule.id)
            results.append(self._to_dict(schedule, len(slots)))
        return results

    async def get_schedule(self, db: AsyncSession, schedule_id: UUID, organization_id: UUID) -> dict:
        """시간표 상세 — 이름이 포함된 슬롯 목록 포함."""
        schedule = await schedule_repository.get_or_404(db, schedule_id, organization_id)
        slots = await slot_repository.get_by_schedule(db, schedule.id)
        data = self._to_dict(schedule, len(slots))
        data["slots"] = await self.slot_details(db, slots, organization_id)
        return data

    async def create_schedule(self, db: AsyncSession, organization_id: UUID, data: ScheduleCreate) -> dict:
        if data.end_date < data.start_date:
            raise BadRequestError("종료일이 시작일보다 빠릅니다 (end_date must be on or after start_date)")
        schedule = await schedule_repository.create(db, {"organization_id": organization_id, **data.model_dump()})
        return self._to_dict(schedule, 0)

    async def update_schedule(
        self,
        db: AsyncSession,
        schedule_id: UUID,
        organization_id: UUID,
        data: ScheduleUpdate,
    ) -> dict:
        schedule = await schedule_repository.get_or_404(db, schedule_id, organization_id)
        update_data: dict = data.model_dump(exclude_unset=True)
        start = update_data.get("start_date") or schedule.start_date
        end = update_data.get("end_date") or schedule.end_date
        if end < start:
            raise BadRequestError("종료일이 시작일보다 빠릅니다 (end_date must be on or after start_date)")
        schedule = await schedule_repository.update(db, schedule, update_data)
        return self._to_dict(schedule)

    async def delete_schedule(self, db: AsyncSession, schedule_id: UUID, organization_id: UUID) -> None:
        await schedule_repository.get_or_404(db, schedule_id, organization_id)
        await schedule_repository.delete(db, schedule_id, organization_id)

    # === 슬롯 편성 (Slots) ===

    async def find_conflicts(
        self,
        db: AsyncSession,
        schedule_id: UUID,
        candidate: TimeSlot,
        room_id: UUID | None,
        teacher_id: UUID | None,
        ignore_slot_id: UUID | None = None,
    ) -> list[Issue]:
        """같은 시간표 안의 강의실/강사 충돌과 강사 가용 시간 검사.

        Run the slot conflict checker against the other slots of the same
        schedule and the teacher's availability windows.
        """
        existing = await slot_repository.get_by_schedule(db, schedule_id)
        classes = await class_repository.get_by_ids(db, {s.class_instance_id for s in existing})
        placed = [
            PlacedSlot(
                slot_id=s.id,
                class_name=classes[s.class_instance_id].name if s.class_instance_id in classes else "Class",
                slot=TimeSlot(s.day_of_week, s.start_time, s.end_time),
                room_id=s.room_id,
                teacher_id=s.teacher_id,
            )
            for s in existing
        ]
        availability: list[TimeSlot] = []
        if teacher_id is not None:
            availability = [
                TimeSlot(a.day_of_week, a.start_time, a.end_time)
                for a in await availability_repository.get_by_teacher(db, teacher_id)
            ]
        return check_slot_conflicts(
            candidate, room_id, teacher_id, placed, availability=availability, ignore_slot_id=ignore_slot_id
        )

    def _raise_on_conflicts(self, issues: list[Issue], force: bool, current_user: User) -> None:
        """충돌 시 409. force 는 관리자만, 가용 시간 충돌만 무시.

        Raise 409 with the conflict list. ``force`` (admins only) skips
        availability issues; room and teacher overlaps always block.
        """
        if force and current_user.role != "admin":
            raise ForbiddenError("강제 편성은 관리자만 가능합니다 (Only admins can force a slot)")
        blocking = [i for i in issues if not (force and i.type in AVAILABILITY_ISSUES)]
        if blocking:
            raise ConflictError({
                "message": "시간표 충돌이 있습니다 (Scheduling conflicts detected)",
                "conflicts": [i.to_dict() for i in blocking],
            })
        if issues:
            logger.info("Slot placed by %s overriding %d availability issue(s)", current_user.id, len(issues))

    async def _validate_slot_refs(
        self,
        db: AsyncSession,
        organization_id: UUID,
        room_id: UUID | None,
        teacher_id: UUID | None,
    ) -> None:
        if room_id is not None:
            await room_repository.get_or_404(db, room_id, organization_id)
        if teacher_id is not None:
            await teacher_repository.get_or_404(db, teacher_id, organization_id)

    async def add_slot(
        self,
        db: AsyncSession,
        schedule_id: UUID,
        organization_id: UUID,
        data: SlotCreate,
        current_user: User,
    ) -> dict:
        """시간표에 수업 슬롯을 추가합니다.

        Add a weekly class slot. The teacher defaults to the class's
        teacher.

        Raises:
            BadRequestError: 종료 시각이 시작 시각보다 빠르거나 같음
            ConflictError(409): 강의실/강사/가용 시간 충돌
        """
        await schedule_repository.get_or_404(db, schedule_id, organization_id)
        cls = await class_repository.get_or_404(db, data.class_instance_id, organization_id)
        if data.end_time <= data.start_time:
            raise BadRequestError("종료 시각은 시작 시각 이후여야 합니다 (end_time must be after start_time)")
        teacher_id = data.teacher_id or cls.teacher_id
        await self._validate_slot_refs(db, organization_id, data.room_id, teacher_id)

        candidate = TimeSlot(data.day_of_week, data.start_time, data.end_time)
        issues = await self.find_conflicts(db, schedule_id, candidate, data.room_id, teacher_id)
        self._raise_on_conflicts(issues, data.force, current_user)

        slot = await slot_repository.create(db, {
            "schedule_id": schedule_id,
            "class_instance_id": cls.id,
            "room_id": data.room_id,
            "teacher_id": teacher_id,
            "day_of_week": data.day_of_week,
            "start_time": data.start_time,
            "end_time": data.end_time,
        })
        return (await self.slot_details(db, [slot], organization_id))[0]

    async def _get_slot(self, db: AsyncSession, schedule_id: UUID, slot_id: UUID, organization_id: UUID) -> ScheduleClass:
        await schedule_repository.get_or_404(db, schedule_id, organization_id)
        slot = await slot_repository.get_or_404(db, slot_id)
        if slot.schedule_id != schedule_id:
            raise BadRequestError("슬롯이 해당 시간표에 속하지 않습니다 (Slot does not belong to this schedule)")
        return slot

    async def update_slot(
        self,
        db: AsyncSession,
        schedule_id: UUID,
        slot_id: UUID,
        organization_id: UUID,
        data: SlotUpdate,
        current_user: User,
    ) -> dict:
        slot = await self._get_slot(db, schedule_id, slot_id, organization_id)
        update_data: dict = data.model_dump(exclude_unset=True, exclude={"force"})
        merged = {
            "room_id": slot.room_id,
            "teacher_id": slot.teacher_id,
            "day_of_week": slot.day_of_week,
            "start_time": slot.start_time,
            "end_time": slot.end_time,
            **update_data,
        }
        if merged["end_time"] <= merged["start_time"]:
            raise BadRequestError("종료 시각은 시작 시각 이후여야 합니다 (end_time must be after start_time)")
        await self._validate_slot_refs(db, organization_id, merged["room_id"], merged["teacher_id"])

        candidate = TimeSlot(merged["day_of_week"], merged["start_time"], merged["end_time"])
        issues = await self.find_conflicts(
            db, schedule_id, candidate, merged["room_id"], merged["teacher_id"], ignore_slot_id=slot.id
        )
        self._raise_on_conflicts(issues, data.force, current_user)

        slot = await slot_repository.update(db, slot, update_data)
        return (await self.slot_details(db, [slot], organization_id))[0]

    async def delete_slot(self, db: AsyncSession, schedule_id: UUID, slot_id: UUID, organization_id: UUID) -> None:
        slot = await self._get_slot(db, schedule_id, slot_id, organization_id)
        await slot_repository.delete(db, slot.id)

    async def check_conflicts(self, db: AsyncSession, organization_id: UUID, data: ConflictCheckRequest) -> dict:
        """충돌 사전 점검 — Dry run returning the conflict list."""
        await schedule_repository.get_or_404(db, data.schedule_id, organization_id)
        if data.end_time <= data.start_time:
            raise BadRequestError("종료 시각은 시작 시각 이후여야 합니다 (end_time must be after start_time)")
        candidate = TimeSlot(data.day_of_week, data.start_time, data.end_time)
        issues = await self.find_conflicts(
            db, data.schedule_id, candidate, data.room_id, data.teacher_id, ignore_slot_id=data.ignore_slot_id
        )
        return {"has_conflicts": bool(issues), "conflicts": [i.to_dict() for i in issues]}

    # === 게시 / 복제 (Publish & duplicate) ===

    async def publish(
        self,
        db: AsyncSession,
        schedule_id: UUID,
        organization_id: UUID,
        data: PublishRequest,
        current_user: User,
    ) -> dict:
        """시간표 게시 — 버전 증가, 게시 이력 기록.

        Publish a schedule: bump ``published_version``, stamp the
        publisher, and record a history row.
        """
        schedule = await schedule_repository.get_or_404(db, schedule_id, organization_id)
        slots = await slot_repository.get_by_schedule(db, schedule.id)
        version = (schedule.published_version or 0) + 1
        schedule = await schedule_repository.update(db, schedule, {
            "publication_status": "published",
            "published_version": version,
            "published_at": utcnow(),
            "published_by": current_user.id,
        })
        await schedule_repository.add_history(db, schedule.id, version, data.notes, len(slots), current_user.id)
        logger.info("Schedule %s published as version %d", schedule.id, version)
        return self._to_dict(schedule, len(slots))

    async def get_history(self, db: AsyncSession, schedule_id: UUID, organization_id: UUID) -> list[dict]:
        await schedule_repository.get_or_404(db, schedule_id, organization_id)
        history = await schedule_repository.get_history(db, schedule_id)
        names = await user_repository.get_names(db, {h.published_by for h in history})
        return [
            {
                "id": str(h.id),
                "version": h.version,
                "notes": h.notes,
                "slot_count": h.slot_count,
                "published_by": str(h.published_by) if h.published_by else None,
                "published_by_name": names.get(h.published_by),
                "published_at": h.published_at,
            }
            for h in history
        ]

    async def duplicate(
        self,
        db: AsyncSession,
        schedule_id: UUID,
        organization_id: UUID,
        data: DuplicateRequest,
    ) -> dict:
        """시간표 복제 — 새 이름/기간 필수, 슬롯 복사 선택.

        Duplicate a schedule into a new draft term, optionally copying
        its slots.

        Raises:
            BadRequestError: 이름/기간 누락 또는 기간 역전
        """
        if not data.new_name or not data.new_start_date or not data.new_end_date:
            raise BadRequestError(
                "새 이름, 시작일, 종료일이 필요합니다 (new_name, new_start_date and new_end_date are required)"
            )
        if data.new_end_date < data.new_start_date:
            raise BadRequestError("종료일이 시작일보다 빠릅니다 (end_date must be on or after start_date)")

        source = await schedule_repository.get_or_404(db, schedule_id, organization_id)
        copy = await schedule_repository.create(db, {
            "organization_id": organization_id,
            "name": data.new_name,
            "description": source.description,
            "start_date": data.new_start_date,
            "end_date": data.new_end_date,
            "is_active": data.is_active,
            "publication_status": "draft",
            "published_version": 0,
        })

        copied = 0
        if data.clone_classes:
            for slot in await slot_repository.get_by_schedule(db, source.id):
                await slot_repository.create(db, {
                    "schedule_id": copy.id,
                    "class_instance_id": slot.class_instance_id,
                    "room_id": slot.room_id,
                    "teacher_id": slot.teacher_id,
                    "day_of_week": slot.day_of_week,
                    "start_time": slot.start_time,
                    "end_time": slot.end_time,
                })
                copied += 1
        return self._to_dict(copy, copied)

    # === 공개 시간표 (Public schedule) ===

    async def get_public_schedule(self, db: AsyncSession, organization_id: UUID) -> dict:
        """보호자용 공개 시간표 — 게시된 활성 학기의 슬롯만.

        Slots of the studio's active, published schedule(s).
        """
        schedules = [
            s for s in await schedule_repository.get_active(db, organization_id)
            if s.publication_status == "published"
        ]
        results: list[dict] = []
        for schedule in schedules:
            slots = await slot_repository.get_by_schedule(db, schedule.id)
            results.append({
                "id": str(schedule.id),
                "name": schedule.name,
                "start_date": schedule.start_date,
                "end_date": schedule.end_date,
                "published_version": schedule.published_version,
                "slots": await self.slot_details(db, slots, organization_id),
            })
        return {"schedules": results}


# 싱글턴 인스턴스 — Singleton instance
schedule_service: ScheduleService = ScheduleService()
