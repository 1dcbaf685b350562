"""결제 레포지토리 — 수강료 결제 조회.

Payment Repository — Tuition payment queries.
"""

from datetime import date
from typing import Sequence
from uuid import UUID

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.payment import Payment
from app.repositories.base import BaseRepository


class PaymentRepository(BaseRepository[Payment]):
    """결제 레포지토리."""

    def __init__(self) -> None:
        super().__init__(Payment, "Payment")

    def filter_query(
        self,
        organization_id: UUID,
        guardian_id: UUID | None = None,
        student_id: UUID | None = None,
        payment_status: str | None = None,
        payment_type: str | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> Select:
        query: Select = select(Payment).where(Payment.organization_id == organization_id)
        if guardian_id:
            query = query.where(Payment.guardian_id == guardian_id)
        if student_id:
            query = query.where(Payment.student_id == student_id)
        if payment_status:
            query = query.where(Payment.payment_status == payment_status)
        if payment_type:
            query = query.where(Payment.payment_type == payment_type)
        if start_date:
            query = query.where(Payment.due_date >= start_date)
        if end_date:
            query = query.where(Payment.due_date <= end_date)
        return query.order_by(Payment.created_at.desc())

    async def get_for_guardian(self, db: AsyncSession, organization_id: UUID, guardian_id: UUID) -> Sequence[Payment]:
        result = await db.execute(self.filter_query(organization_id, guardian_id=guardian_id))
        return result.scalars().all()


# 싱글턴 인스턴스 — Singleton instance
payment_repository: PaymentRepository = PaymentRepository()
