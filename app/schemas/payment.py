"""수강료 결제 관련 Pydantic 요청 스키마 정의.

Tuition payment Pydantic request schema definitions.
"""

from datetime import date, datetime
from typing import Literal
from uuid import UUID
from pydantic import BaseModel, Field

PaymentType = Literal["tuition", "registration", "costume", "recital", "other"]
PaymentStatus = Literal["pending", "completed", "failed", "refunded"]


class PaymentCreate(BaseModel):
    """결제(청구) 생성 요청."""

    guardian_id: UUID
    student_id: UUID | None = None
    description: str | None = None
    payment_type: PaymentType = "tuition"
    amount_in_cents: int = Field(gt=0)
    payment_status: PaymentStatus = "pending"
    payment_method: str | None = Field(default=None, max_length=30)  # card, cash, check ...
    due_date: date | None = None
    payment_date: datetime | None = None


class PaymentUpdate(BaseModel):
    """결제 상태 변경 — 납부 처리, 환불 기록."""

    payment_status: PaymentStatus | None = None
    payment_method: str | None = Field(default=None, max_length=30)
    refund_amount_in_cents: int | None = Field(default=None, ge=0)
    payment_date: datetime | None = None
    due_date: date | None = None
    description: str | None = None
