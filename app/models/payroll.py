"""강사 급여 관련 SQLAlchemy ORM 모델 정의.

Teacher payroll SQLAlchemy ORM model definitions.
Money is stored as integer cents and worked time as integer minutes.

Tables:
    - teacher_pay_rates: 강사 급여 단가 (hourly / per_class / salary)
    - payroll_periods: 급여 기간 (draft → processing → approved → paid → closed)
    - payroll_time_entries: 근무 기록 (One row per taught slot occurrence)
    - payroll_adjustments: 급여 조정 (bonus / deduction / reimbursement)
    - pay_stubs: 급여 명세서 (One per teacher per period)
    - payroll_export_logs: 내보내기 이력
"""

import uuid
from datetime import date, datetime, time, timezone
from decimal import Decimal
from sqlalchemy import String, Boolean, Date, DateTime, Integer, Numeric, Text, Time, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base

PERIOD_STATUSES: tuple[str, ...] = ("draft", "processing", "approved", "paid", "closed")
# 잠긴 기간 — Periods whose entries and stubs can no longer change
LOCKED_PERIOD_STATUSES: tuple[str, ...] = ("approved", "paid", "closed")


class TeacherPayRate(Base):
    """강사 급여 단가.

    Attributes:
        rate_type: hourly | per_class | salary
        rate_amount_in_cents: 단가 (Per hour, per class, or flat per period)
        overtime_multiplier: 초과근무 배율 (Default 1.5)
        effective_from / effective_to: 적용 기간 (effective_to None = open ended)
    """

    __tablename__ = "teacher_pay_rates"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False)
    teacher_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("teachers.id", ondelete="CASCADE"), nullable=False, index=True)
    rate_type: Mapped[str] = mapped_column(String(20), nullable=False, default="hourly")
    rate_amount_in_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    overtime_multiplier: Mapped[Decimal] = mapped_column(Numeric(4, 2), default=Decimal("1.5"))
    currency: Mapped[str] = mapped_column(String(3), default="USD")
    effective_from: Mapped[date] = mapped_column(Date, nullable=False)
    effective_to: Mapped[date | None] = mapped_column(Date, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))


class PayrollPeriod(Base):
    """급여 기간 모델."""

    __tablename__ = "payroll_periods"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    period_start: Mapped[date] = mapped_column(Date, nullable=False)
    period_end: Mapped[date] = mapped_column(Date, nullable=False)
    pay_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    status: Mapped[str] = mapped_column(String(20), default="draft")
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    approved_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))


class PayrollTimeEntry(Base):
    """근무 기록 — 시간표 슬롯 1회 수업 또는 수동 입력."""

    __tablename__ = "payroll_time_entries"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    payroll_period_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("payroll_periods.id", ondelete="CASCADE"), nullable=False, index=True)
    teacher_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("teachers.id", ondelete="CASCADE"), nullable=False, index=True)
    schedule_class_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("schedule_classes.id", ondelete="SET NULL"), nullable=True)
    class_instance_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("class_instances.id", ondelete="SET NULL"), nullable=True)
    entry_date: Mapped[date] = mapped_column(Date, nullable=False)
    start_time: Mapped[time | None] = mapped_column(Time(), nullable=True)
    end_time: Mapped[time | None] = mapped_column(Time(), nullable=True)
    minutes: Mapped[int] = mapped_column(Integer, default=0)
    entry_type: Mapped[str] = mapped_column(String(20), default="scheduled")  # scheduled, substitute, extra, admin
    is_overtime: Mapped[bool] = mapped_column(Boolean, default=False)
    status: Mapped[str] = mapped_column(String(20), default="pending")  # pending, approved, rejected
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))


class PayrollAdjustment(Base):
    """급여 조정 — 양수 금액, 종류로 가감 결정."""

    __tablename__ = "payroll_adjustments"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    payroll_period_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("payroll_periods.id", ondelete="CASCADE"), nullable=False, index=True)
    teacher_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("teachers.id", ondelete="CASCADE"), nullable=False)
    adjustment_type: Mapped[str] = mapped_column(String(20), nullable=False)  # bonus, deduction, reimbursement
    amount_in_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))


class PayStub(Base):
    """급여 명세서 — (기간, 강사) 당 1건."""

    __tablename__ = "pay_stubs"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    payroll_period_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("payroll_periods.id", ondelete="CASCADE"), nullable=False, index=True)
    teacher_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("teachers.id", ondelete="CASCADE"), nullable=False)
    stub_number: Mapped[str] = mapped_column(String(50), nullable=False)
    regular_minutes: Mapped[int] = mapped_column(Integer, default=0)
    overtime_minutes: Mapped[int] = mapped_column(Integer, default=0)
    class_count: Mapped[int] = mapped_column(Integer, default=0)
    regular_pay_in_cents: Mapped[int] = mapped_column(Integer, default=0)
    overtime_pay_in_cents: Mapped[int] = mapped_column(Integer, default=0)
    bonuses_in_cents: Mapped[int] = mapped_column(Integer, default=0)
    deductions_in_cents: Mapped[int] = mapped_column(Integer, default=0)
    reimbursements_in_cents: Mapped[int] = mapped_column(Integer, default=0)
    gross_pay_in_cents: Mapped[int] = mapped_column(Integer, default=0)
    net_pay_in_cents: Mapped[int] = mapped_column(Integer, default=0)
    status: Mapped[str] = mapped_column(String(20), default="draft")  # draft, issued, paid
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("payroll_period_id", "teacher_id", name="uq_pay_stub_period_teacher"),
    )


class PayrollExportLog(Base):
    """급여 내보내기 이력."""

    __tablename__ = "payroll_export_logs"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    payroll_period_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("payroll_periods.id", ondelete="CASCADE"), nullable=False)
    export_format: Mapped[str] = mapped_column(String(20), nullable=False)  # csv, quickbooks, xlsx
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    record_count: Mapped[int] = mapped_column(Integer, default=0)
    total_gross_in_cents: Mapped[int] = mapped_column(Integer, default=0)
    exported_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    exported_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
