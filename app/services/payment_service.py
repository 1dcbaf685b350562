"""수강료 결제 서비스 — 청구, 납부 처리, 환불 기록, 보호자 조회/영수증.

Payment Service — Tuition and fee charges recorded by the studio, and
the parent view of them with CSV export and PDF receipts.
"""

import logging
from typing import Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.payment import Payment
from app.models.people import Guardian
from app.repositories.organization_repository import organization_repository
from app.repositories.payment_repository import payment_repository
from app.repositories.people_repository import guardian_repository, student_repository
from app.schemas.payment import PaymentCreate, PaymentUpdate
from app.utils.exceptions import BadRequestError, NotFoundError
from app.utils.export import build_csv, format_money
from app.utils.pagination import page_envelope
from app.utils.pdf import PDFReport
from app.utils.timeutil import utcnow

logger = logging.getLogger(__name__)

EXPORT_HEADERS: list[str] = [
    "Date", "Receipt #", "Student", "Description", "Type", "Amount",
    "Status", "Payment Method", "Due Date", "Paid Date",
]


class PaymentService:
    """수강료 결제 서비스."""

    async def _to_dicts(self, db: AsyncSession, payments: Sequence[Payment]) -> list[dict]:
        students = await student_repository.get_by_ids(db, {p.student_id for p in payments})
        guardians = await guardian_repository.get_by_ids(db, {p.guardian_id for p in payments})
        return [
            {
                "id": str(p.id),
                "receipt_number": p.receipt_number,
                "guardian_id": str(p.guardian_id),
                "guardian_name": guardians[p.guardian_id].full_name if p.guardian_id in guardians else None,
                "student_id": str(p.student_id) if p.student_id else None,
                "student_name": students[p.student_id].full_name if p.student_id in students else None,
                "description": p.description,
                "payment_type": p.payment_type,
                "amount_in_cents": p.amount_in_cents,
                "refund_amount_in_cents": p.refund_amount_in_cents,
                "net_amount_in_cents": p.amount_in_cents - p.refund_amount_in_cents,
                "payment_status": p.payment_status,
                "payment_method": p.payment_method,
                "due_date": p.due_date,
                "payment_date": p.payment_date,
                "created_at": p.created_at,
            }
            for p in payments
        ]

    async def list_payments(
        self,
        db: AsyncSession,
        organization_id: UUID,
        guardian_id: UUID | None = None,
        student_id: UUID | None = None,
        payment_status: str | None = None,
        payment_type: str | None = None,
        page: int = 1,
        per_page: int = 20,
    ) -> dict:
        query = payment_repository.filter_query(organization_id, guardian_id, student_id, payment_status, payment_type)
        items, total = await payment_repository.get_paginated(db, query, page, per_page)
        return page_envelope(await self._to_dicts(db, items), total, page, per_page)

    async def create_payment(self, db: AsyncSession, organization_id: UUID, data: PaymentCreate) -> dict:
        """청구 생성.

        Raises:
            NotFoundError: 보호자/학생 없음
            BadRequestError: 보호자와 연결되지 않은 학생
        """
        await guardian_repository.get_or_404(db, data.guardian_id, organization_id)
        if data.student_id is not None:
            await student_repository.get_or_404(db, data.student_id, organization_id)
            if not await guardian_repository.is_linked(db, data.guardian_id, data.student_id):
                raise BadRequestError("보호자와 연결되지 않은 학생입니다 (Student is not linked to this guardian)")
        values = data.model_dump()
        if values["payment_status"] == "completed" and values["payment_date"] is None:
            values["payment_date"] = utcnow()
        payment = await payment_repository.create(db, {"organization_id": organization_id, **values})
        logger.info("Payment %s recorded (%d cents)", payment.receipt_number, payment.amount_in_cents)
        return (await self._to_dicts(db, [payment]))[0]

    async def update_payment(
        self,
        db: AsyncSession,
        payment_id: UUID,
        organization_id: UUID,
        data: PaymentUpdate,
    ) -> dict:
        """결제 상태 변경.

        A refund can never exceed the charged amount; refunding the full
        amount marks the payment refunded.

        Raises:
            BadRequestError: 환불액 초과
        """
        payment = await payment_repository.get_or_404(db, payment_id, organization_id)
        update_data = data.model_dump(exclude_unset=True)
        refund = update_data.get("refund_amount_in_cents")
        if refund is not None:
            if refund > payment.amount_in_cents:
                raise BadRequestError("환불액이 결제액보다 큽니다 (Refund cannot exceed the payment amount)")
            if refund == payment.amount_in_cents and "payment_status" not in update_data:
                update_data["payment_status"] = "refunded"
        if update_data.get("payment_status") == "completed" and payment.payment_date is None:
            update_data.setdefault("payment_date", utcnow())
        payment = await payment_repository.update(db, payment, update_data)
        return (await self._to_dicts(db, [payment]))[0]

    # === 보호자 (Parent) ===

    async def list_my_payments(self, db: AsyncSession, guardian: Guardian) -> list[dict]:
        payments = await payment_repository.get_for_guardian(db, guardian.organization_id, guardian.id)
        return await self._to_dicts(db, payments)

    async def export_my_payments(self, db: AsyncSession, guardian: Guardian) -> tuple[str, str]:
        """보호자 결제 내역 CSV — (content, filename)."""
        rows = [
            [
                p["created_at"].strftime("%Y-%m-%d") if p["created_at"] else "",
                p["receipt_number"],
                p["student_name"] or "",
                p["description"] or "",
                p["payment_type"],
                format_money(p["amount_in_cents"]),
                p["payment_status"],
                p["payment_method"] or "",
                p["due_date"].isoformat() if p["due_date"] else "",
                p["payment_date"].strftime("%Y-%m-%d") if p["payment_date"] else "",
            ]
            for p in await self.list_my_payments(db, guardian)
        ]
        return build_csv(EXPORT_HEADERS, rows), f"payments_{utcnow():%Y%m%d}.csv"

    async def render_receipt(self, db: AsyncSession, guardian: Guardian, payment_id: UUID) -> tuple[bytes, str]:
        """영수증 PDF — 다른 보호자의 결제는 404."""
        payment = await payment_repository.get_by_id(db, payment_id, guardian.organization_id)
        if payment is None or payment.guardian_id != guardian.id:
            raise NotFoundError("Payment not found")
        org = await organization_repository.get_or_404(db, guardian.organization_id)
        data = (await self._to_dicts(db, [payment]))[0]

        report = PDFReport(
            "Payment Receipt",
            org.name,
            [org.address or "", " | ".join(v for v in (org.phone, org.email, org.website) if v)],
        )
        report.key_values([
            ("Receipt #", payment.receipt_number),
            ("Billed to", guardian.full_name),
            ("Student", data["student_name"] or "-"),
            ("Date", payment.created_at.strftime("%B %d, %Y") if payment.created_at else "-"),
            ("Status", payment.payment_status.title()),
            ("Payment method", payment.payment_method or "-"),
            ("Paid on", payment.payment_date.strftime("%B %d, %Y") if payment.payment_date else "-"),
        ])
        rows = [[payment.description or payment.payment_type.title(), payment.payment_type, format_money(payment.amount_in_cents)]]
        if payment.refund_amount_in_cents:
            rows.append(["Refund", "", f"-{format_money(payment.refund_amount_in_cents)}"])
        rows.append(["Total", "", format_money(data["net_amount_in_cents"])])
        report.heading("Details").table(["Description", "Type", "Amount"], rows)
        report.spacer().paragraph("Thank you for dancing with us!")
        return report.build(), f"receipt-{payment.receipt_number}.pdf"


# 싱글턴 인스턴스 — Singleton instance
payment_service: PaymentService = PaymentService()
