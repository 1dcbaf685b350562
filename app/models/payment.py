"""수강료 결제 SQLAlchemy ORM 모델 정의.

Tuition payment SQLAlchemy ORM model definitions.

Tables:
    - payments: 결제 내역 (Tuition, registration, costume and recital fees)
"""

import secrets
import uuid
from datetime import date, datetime, timezone
from sqlalchemy import String, Date, DateTime, Integer, Text, ForeignKey, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base

PAYMENT_TYPES: tuple[str, ...] = ("tuition", "registration", "costume", "recital", "other")
PAYMENT_STATUSES: tuple[str, ...] = ("pending", "completed", "failed", "refunded")


def generate_receipt_number() -> str:
    """영수증 번호 — "RCP-YYYYMMDD-XXXXXX"."""
    today = datetime.now(timezone.utc).strftime("%Y%m%d")
    return f"RCP-{today}-{secrets.token_hex(3).upper()}"


class Payment(Base):
    """결제 모델.

    Attributes:
        guardian_id: 청구 대상 보호자 FK
        student_id: 관련 학생 FK (optional)
        payment_type: tuition | registration | costume | recital | other
        amount_in_cents: 청구액
        refund_amount_in_cents: 환불액 (Net revenue = amount - refund)
        payment_status: pending | completed | failed | refunded
        receipt_number: 영수증 번호
        due_date / payment_date: 납부 기한 / 납부 일시
    """

    __tablename__ = "payments"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False)
    guardian_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("guardians.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("students.id", ondelete="SET NULL"), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    payment_type: Mapped[str] = mapped_column(String(20), default="tuition")
    amount_in_cents: Mapped[int] = mapped_column(Integer, nullable=False)
    refund_amount_in_cents: Mapped[int] = mapped_column(Integer, default=0)
    payment_status: Mapped[str] = mapped_column(String(20), default="pending")
    payment_method: Mapped[str | None] = mapped_column(String(30), nullable=True)
    receipt_number: Mapped[str] = mapped_column(String(40), unique=True, nullable=False, default=generate_receipt_number)
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    payment_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))
