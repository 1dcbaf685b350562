"""강사 급여 관련 Pydantic 요청 스키마 정의.

Teacher payroll Pydantic request schema definitions.
Money is integer cents.
"""

from datetime import date, time
from decimal import Decimal
from typing import Literal
from uuid import UUID
from pydantic import BaseModel, Field


class PayRateCreate(BaseModel):
    """급여 단가 생성 요청.

    Attributes:
        rate_type: hourly | per_class | salary
        rate_amount_in_cents: 단가 (시간당 / 수업당 / 기간 정액)
        overtime_multiplier: 초과근무 배율 (default 1.5)
        effective_from / effective_to: 적용 기간
    """

    teacher_id: UUID
    rate_type: Literal["hourly", "per_class", "salary"] = "hourly"
    rate_amount_in_cents: int = Field(ge=0)
    overtime_multiplier: Decimal = Field(default=Decimal("1.5"), ge=1, le=5)
    currency: str = Field(default="USD", min_length=3, max_length=3)
    effective_from: date
    effective_to: date | None = None


class PayRateUpdate(BaseModel):
    """급여 단가 수정 요청 (부분 업데이트)."""

    rate_type: Literal["hourly", "per_class", "salary"] | None = None
    rate_amount_in_cents: int | None = Field(default=None, ge=0)
    overtime_multiplier: Decimal | None = Field(default=None, ge=1, le=5)
    effective_from: date | None = None
    effective_to: date | None = None
    is_active: bool | None = None


class PayrollPeriodCreate(BaseModel):
    """급여 기간 생성 요청."""

    name: str = Field(min_length=1, max_length=255)
    period_start: date
    period_end: date
    pay_date: date | None = None
    notes: str | None = None


class PayrollPeriodUpdate(BaseModel):
    """급여 기간 상태 전환 / 메모 수정."""

    status: Literal["draft", "processing", "approved", "paid", "closed"] | None = None
    pay_date: date | None = None
    notes: str | None = None


class TimeEntryCreate(BaseModel):
    """수동 근무 기록 추가 (대강, 추가 수업, 행정 업무)."""

    teacher_id: UUID
    entry_date: date
    class_instance_id: UUID | None = None
    start_time: time | None = None
    end_time: time | None = None
    minutes: int | None = Field(default=None, ge=1, le=24 * 60)  # 없으면 시작/종료로 계산
    entry_type: Literal["scheduled", "substitute", "extra", "admin"] = "extra"
    is_overtime: bool = False
    notes: str | None = None


class TimeEntryUpdate(BaseModel):
    """근무 기록 수정 — 승인/반려, 초과근무 표시."""

    status: Literal["pending", "approved", "rejected"] | None = None
    minutes: int | None = Field(default=None, ge=0, le=24 * 60)
    is_overtime: bool | None = None
    notes: str | None = None


class AdjustmentCreate(BaseModel):
    """급여 조정 추가 — 금액은 양수, 종류로 가감 결정."""

    teacher_id: UUID
    adjustment_type: Literal["bonus", "deduction", "reimbursement"]
    amount_in_cents: int = Field(gt=0)
    description: str | None = None
