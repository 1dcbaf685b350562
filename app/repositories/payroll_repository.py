"""급여 레포지토리 — 단가, 기간, 근무 기록, 조정, 명세서, 내보내기 이력.

Payroll Repository — Pay rates, periods, time entries, adjustments,
pay stubs and export logs.
"""

from datetime import date
from typing import Sequence
from uuid import UUID

from sqlalchemy import Select, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.payroll import (
    PayrollAdjustment,
    PayrollExportLog,
    PayrollPeriod,
    PayrollTimeEntry,
    PayStub,
    TeacherPayRate,
)
from app.repositories.base import BaseRepository


class PayRateRepository(BaseRepository[TeacherPayRate]):
    """강사 급여 단가 레포지토리."""

    def __init__(self) -> None:
        super().__init__(TeacherPayRate, "Pay rate")

    async def get_by_org(
        self,
        db: AsyncSession,
        organization_id: UUID,
        teacher_id: UUID | None = None,
    ) -> Sequence[TeacherPayRate]:
        return await self.get_all(
            db, organization_id, filters={"teacher_id": teacher_id}, order_by=TeacherPayRate.effective_from.desc()
        )

    async def get_effective(
        self,
        db: AsyncSession,
        teacher_id: UUID,
        period_start: date,
        period_end: date,
    ) -> TeacherPayRate | None:
        """기간에 적용되는 최신 단가 — Latest active rate overlapping the period."""
        result = await db.execute(
            select(TeacherPayRate)
            .where(
                TeacherPayRate.teacher_id == teacher_id,
                TeacherPayRate.is_active.is_(True),
                TeacherPayRate.effective_from <= period_end,
                or_(TeacherPayRate.effective_to.is_(None), TeacherPayRate.effective_to >= period_start),
            )
            .order_by(TeacherPayRate.effective_from.desc())
        )
        return result.scalars().first()


class PayrollPeriodRepository(BaseRepository[PayrollPeriod]):
    """급여 기간 레포지토리."""

    def __init__(self) -> None:
        super().__init__(PayrollPeriod, "Payroll period")

    def filter_query(self, organization_id: UUID, status: str | None = None) -> Select:
        query: Select = select(PayrollPeriod).where(PayrollPeriod.organization_id == organization_id)
        if status:
            query = query.where(PayrollPeriod.status == status)
        return query.order_by(PayrollPeriod.period_start.desc())


class TimeEntryRepository(BaseRepository[PayrollTimeEntry]):
    """근무 기록 레포지토리."""

    def __init__(self) -> None:
        super().__init__(PayrollTimeEntry, "Time entry")

    async def get_by_period(
        self,
        db: AsyncSession,
        period_id: UUID,
        teacher_id: UUID | None = None,
        status: str | None = None,
    ) -> Sequence[PayrollTimeEntry]:
        query: Select = select(PayrollTimeEntry).where(PayrollTimeEntry.payroll_period_id == period_id)
        if teacher_id:
            query = query.where(PayrollTimeEntry.teacher_id == teacher_id)
        if status:
            query = query.where(PayrollTimeEntry.status == status)
        result = await db.execute(query.order_by(PayrollTimeEntry.entry_date, PayrollTimeEntry.start_time))
        return result.scalars().all()

    async def existing_keys(self, db: AsyncSession, period_id: UUID) -> set[tuple[UUID, UUID | None, date]]:
        """이미 생성된 (강사, 슬롯, 날짜) — Keys of entries already in the period."""
        result = await db.execute(
            select(
                PayrollTimeEntry.teacher_id,
                PayrollTimeEntry.schedule_class_id,
                PayrollTimeEntry.entry_date,
            ).where(PayrollTimeEntry.payroll_period_id == period_id)
        )
        return {(row[0], row[1], row[2]) for row in result.all()}


class AdjustmentRepository(BaseRepository[PayrollAdjustment]):
    """급여 조정 레포지토리."""

    def __init__(self) -> None:
        super().__init__(PayrollAdjustment, "Adjustment")

    async def get_by_period(self, db: AsyncSession, period_id: UUID) -> Sequence[PayrollAdjustment]:
        result = await db.execute(
            select(PayrollAdjustment)
            .where(PayrollAdjustment.payroll_period_id == period_id)
            .order_by(PayrollAdjustment.created_at)
        )
        return result.scalars().all()


class PayStubRepository(BaseRepository[PayStub]):
    """급여 명세서 레포지토리."""

    def __init__(self) -> None:
        super().__init__(PayStub, "Pay stub")

    async def get_by_period(self, db: AsyncSession, period_id: UUID) -> Sequence[PayStub]:
        result = await db.execute(
            select(PayStub).where(PayStub.payroll_period_id == period_id).order_by(PayStub.stub_number)
        )
        return result.scalars().all()

    async def get_for_teacher(self, db: AsyncSession, period_id: UUID, teacher_id: UUID) -> PayStub | None:
        result = await db.execute(
            select(PayStub).where(PayStub.payroll_period_id == period_id, PayStub.teacher_id == teacher_id)
        )
        return result.scalar_one_or_none()

    async def log_export(self, db: AsyncSession, data: dict) -> PayrollExportLog:
        log = PayrollExportLog(**data)
        db.add(log)
        await db.flush()
        return log


# 싱글턴 인스턴스 — Singleton instances
pay_rate_repository: PayRateRepository = PayRateRepository()
payroll_period_repository: PayrollPeriodRepository = PayrollPeriodRepository()
time_entry_repository: TimeEntryRepository = TimeEntryRepository()
adjustment_repository: AdjustmentRepository = AdjustmentRepository()
pay_stub_repository: PayStubRepository = PayStubRepository()
