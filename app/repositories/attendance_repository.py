"""출석 레포지토리 — 출석 기록, 결석, 보강 예약.

Attendance Repository — Attendance records, absences and makeup bookings.
"""

from datetime import date
from typing import Sequence
from uuid import UUID

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.attendance import Absence, AttendanceRecord, MakeupBooking
from app.repositories.base import BaseRepository


class AttendanceRepository(BaseRepository[AttendanceRecord]):
    """출석 기록 레포지토리."""

    def __init__(self) -> None:
        super().__init__(AttendanceRecord, "Attendance record")

    async def get_record(
        self,
        db: AsyncSession,
        student_id: UUID,
        class_instance_id: UUID,
        attendance_date: date,
    ) -> AttendanceRecord | None:
        result = await db.execute(
            select(AttendanceRecord).where(
                AttendanceRecord.student_id == student_id,
                AttendanceRecord.class_instance_id == class_instance_id,
                AttendanceRecord.attendance_date == attendance_date,
            )
        )
        return result.scalar_one_or_none()

    def filter_query(
        self,
        organization_id: UUID,
        start_date: date | None = None,
        end_date: date | None = None,
        class_instance_id: UUID | None = None,
        student_id: UUID | None = None,
        status: str | None = None,
        class_ids: list[UUID] | None = None,
    ) -> Select:
        query: Select = select(AttendanceRecord).where(AttendanceRecord.organization_id == organization_id)
        if start_date:
            query = query.where(AttendanceRecord.attendance_date >= start_date)
        if end_date:
            query = query.where(AttendanceRecord.attendance_date <= end_date)
        if class_instance_id:
            query = query.where(AttendanceRecord.class_instance_id == class_instance_id)
        if class_ids is not None:
            query = query.where(AttendanceRecord.class_instance_id.in_(class_ids))
        if student_id:
            query = query.where(AttendanceRecord.student_id == student_id)
        if status:
            query = query.where(AttendanceRecord.status == status)
        return query.order_by(AttendanceRecord.attendance_date.desc(), AttendanceRecord.created_at.desc())

    async def get_for_class_date(
        self,
        db: AsyncSession,
        class_instance_id: UUID,
        attendance_date: date,
    ) -> Sequence[AttendanceRecord]:
        result = await db.execute(
            select(AttendanceRecord).where(
                AttendanceRecord.class_instance_id == class_instance_id,
                AttendanceRecord.attendance_date == attendance_date,
            )
        )
        return result.scalars().all()


class AbsenceRepository(BaseRepository[Absence]):
    """결석 레포지토리."""

    def __init__(self) -> None:
        super().__init__(Absence, "Absence")

    def filter_query(
        self,
        organization_id: UUID,
        start_date: date | None = None,
        end_date: date | None = None,
        student_id: UUID | None = None,
        class_instance_id: UUID | None = None,
    ) -> Select:
        query: Select = select(Absence).where(Absence.organization_id == organization_id)
        if start_date:
            query = query.where(Absence.absence_date >= start_date)
        if end_date:
            query = query.where(Absence.absence_date <= end_date)
        if student_id:
            query = query.where(Absence.student_id == student_id)
        if class_instance_id:
            query = query.where(Absence.class_instance_id == class_instance_id)
        return query.order_by(Absence.absence_date.desc())

    async def get_for(
        self,
        db: AsyncSession,
        student_id: UUID,
        class_instance_id: UUID,
        absence_date: date,
    ) -> Absence | None:
        result = await db.execute(
            select(Absence).where(
                Absence.student_id == student_id,
                Absence.class_instance_id == class_instance_id,
                Absence.absence_date == absence_date,
            )
        )
        return result.scalars().first()


class MakeupRepository(BaseRepository[MakeupBooking]):
    """보강 예약 레포지토리."""

    def __init__(self) -> None:
        super().__init__(MakeupBooking, "Makeup booking")

    async def get_scheduled(
        self,
        db: AsyncSession,
        student_id: UUID,
        makeup_class_id: UUID,
        makeup_date: date,
    ) -> MakeupBooking | None:
        result = await db.execute(
            select(MakeupBooking).where(
                MakeupBooking.student_id == student_id,
                MakeupBooking.makeup_class_id == makeup_class_id,
                MakeupBooking.makeup_date == makeup_date,
                MakeupBooking.status != "cancelled",
            )
        )
        return result.scalars().first()

    async def get_for_class_date(
        self,
        db: AsyncSession,
        makeup_class_id: UUID,
        makeup_date: date,
    ) -> Sequence[MakeupBooking]:
        result = await db.execute(
            select(MakeupBooking).where(
                MakeupBooking.makeup_class_id == makeup_class_id,
                MakeupBooking.makeup_date == makeup_date,
                MakeupBooking.status != "cancelled",
            )
        )
        return result.scalars().all()

    async def get_for_student_date(
        self,
        db: AsyncSession,
        student_id: UUID,
        makeup_date: date,
    ) -> Sequence[MakeupBooking]:
        result = await db.execute(
            select(MakeupBooking).where(
                MakeupBooking.student_id == student_id,
                MakeupBooking.makeup_date == makeup_date,
                MakeupBooking.status == "scheduled",
            )
        )
        return result.scalars().all()


# 싱글턴 인스턴스 — Singleton instances
attendance_repository: AttendanceRepository = AttendanceRepository()
absence_repository: AbsenceRepository = AbsenceRepository()
makeup_repository: MakeupRepository = MakeupRepository()
