"""급여 서비스 — 강사 단가, 급여 기간, 근무 기록, 명세서, 내보내기 비즈니스 로직.

Payroll Service — Teacher pay rates, payroll periods and their status
workflow, time entries generated from the timetable, adjustments, pay
stub calculation, pay stub PDFs and CSV / QuickBooks IIF / XLSX exports.

Pay calculation (integer cents, minutes):
    hourly    → regular = minutes × rate / 60, overtime × multiplier
    per_class → regular = entries × rate, overtime entries × multiplier
    salary    → regular = flat rate per period
    gross = regular + overtime + bonuses + reimbursements
    net   = gross − deductions
"""

import logging
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.payroll import (
    LOCKED_PERIOD_STATUSES,
    PayrollAdjustment,
    PayrollPeriod,
    PayrollTimeEntry,
    PayStub,
    TeacherPayRate,
)
from app.models.people import Teacher
from app.models.user import User
from app.repositories.class_repository import class_repository, schedule_repository, slot_repository
from app.repositories.organization_repository import organization_repository
from app.repositories.payroll_repository import (
    adjustment_repository,
    pay_rate_repository,
    pay_stub_repository,
    payroll_period_repository,
    time_entry_repository,
)
from app.repositories.people_repository import teacher_repository
from app.schemas.payroll import (
    AdjustmentCreate,
    PayRateCreate,
    PayRateUpdate,
    PayrollPeriodCreate,
    PayrollPeriodUpdate,
    TimeEntryCreate,
    TimeEntryUpdate,
)
from app.utils.exceptions import BadRequestError, NotFoundError
from app.utils.export import XLSX_MEDIA_TYPE, build_csv, build_xlsx, cents_to_decimal_str, format_money
from app.utils.pdf import PDFReport
from app.utils.timeutil import day_of_week, iter_dates, minutes_between, utcnow

logger = logging.getLogger(__name__)

# 상태 전환 — Allowed period status transitions
PERIOD_TRANSITIONS: dict[str, set[str]] = {
    "draft": {"processing"},
    "processing": {"approved", "draft"},
    "approved": {"paid"},
    "paid": {"closed"},
    "closed": set(),
}

CSV_HEADERS: list[str] = [
    "Teacher ID", "First Name", "Last Name", "Email", "Regular Hours", "Regular Pay",
    "Overtime Hours", "Overtime Pay", "Bonuses", "Deductions", "Reimbursements",
    "Gross Pay", "Net Pay", "Pay Stub Number",
]
IIF_HEADERS: list[str] = ["!TIMERHDR", "DATE", "JOB", "EMP", "ITEM", "PITEM", "DURATION", "RATE", "AMOUNT", "NOTE"]


def _round_cents(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _hours(minutes: int) -> str:
    return f"{minutes / 60:.2f}"


def calculate_pay(
    rate: TeacherPayRate,
    entries: Sequence[PayrollTimeEntry],
    adjustments: Sequence[PayrollAdjustment],
) -> dict[str, int]:
    """명세서 금액 계산 — rejected 기록은 제외.

    Compute pay stub amounts for one teacher from their rate, time entries
    and adjustments. Rejected entries are ignored.
    """
    counted = [e for e in entries if e.status != "rejected"]
    regular = [e for e in counted if not e.is_overtime]
    overtime = [e for e in counted if e.is_overtime]
    regular_minutes = sum(e.minutes or 0 for e in regular)
    overtime_minutes = sum(e.minutes or 0 for e in overtime)
    amount = Decimal(rate.rate_amount_in_cents)
    multiplier = Decimal(str(rate.overtime_multiplier or Decimal("1.5")))

    if rate.rate_type == "hourly":
        regular_pay = _round_cents(amount * regular_minutes / 60)
        overtime_pay = _round_cents(amount * multiplier * overtime_minutes / 60)
    elif rate.rate_type == "per_class":
        regular_pay = _round_cents(amount * len(regular))
        overtime_pay = _round_cents(amount * multiplier * len(overtime))
    else:
        regular_pay = rate.rate_amount_in_cents
        overtime_pay = 0

    totals = {"bonus": 0, "deduction": 0, "reimbursement": 0}
    for adj in adjustments:
        totals[adj.adjustment_type] = totals.get(adj.adjustment_type, 0) + adj.amount_in_cents

    gross = regular_pay + overtime_pay + totals["bonus"] + totals["reimbursement"]
    return {
        "regular_minutes": regular_minutes,
        "overtime_minutes": overtime_minutes,
        "class_count": len([e for e in counted if e.class_instance_id is not None]),
        "regular_pay_in_cents": regular_pay,
        "overtime_pay_in_cents": overtime_pay,
        "bonuses_in_cents": totals["bonus"],
        "deductions_in_cents": totals["deduction"],
        "reimbursements_in_cents": totals["reimbursement"],
        "gross_pay_in_cents": gross,
        "net_pay_in_cents": gross - totals["deduction"],
    }


class PayrollService:
    """강사 급여 서비스."""

    # === 급여 단가 (Pay rates) ===

    def _rate_to_dict(self, r: TeacherPayRate, teachers: dict[UUID, Teacher]) -> dict:
        teacher = teachers.get(r.teacher_id)
        return {
            "id": str(r.id),
            "teacher_id": str(r.teacher_id),
            "teacher_name": teacher.full_name if teacher else None,
            "rate_type": r.rate_type,
            "rate_amount_in_cents": r.rate_amount_in_cents,
            "overtime_multiplier": str(r.overtime_multiplier),
            "currency": r.currency,
            "effective_from": r.effective_from,
            "effective_to": r.effective_to,
            "is_active": r.is_active,
            "created_at": r.created_at,
        }

    async def list_rates(self, db: AsyncSession, organization_id: UUID, teacher_id: UUID | None) -> list[dict]:
        rates = await pay_rate_repository.get_by_org(db, organization_id, teacher_id)
        teachers = await teacher_repository.get_by_ids(db, {r.teacher_id for r in rates})
        return [self._rate_to_dict(r, teachers) for r in rates]

    def _check_effective_range(self, start: date | None, end: date | None) -> None:
        if start is not None and end is not None and end < start:
            raise BadRequestError("적용 종료일이 시작일보다 빠릅니다 (effective_to must be on or after effective_from)")

    async def create_rate(self, db: AsyncSession, organization_id: UUID, data: PayRateCreate) -> dict:
        teacher = await teacher_repository.get_or_404(db, data.teacher_id, organization_id)
        self._check_effective_range(data.effective_from, data.effective_to)
        rate = await pay_rate_repository.create(db, {"organization_id": organization_id, **data.model_dump()})
        return self._rate_to_dict(rate, {teacher.id: teacher})

    async def update_rate(self, db: AsyncSession, rate_id: UUID, organization_id: UUID, data: PayRateUpdate) -> dict:
        rate = await pay_rate_repository.get_or_404(db, rate_id, organization_id)
        update_data: dict = data.model_dump(exclude_unset=True)
        self._check_effective_range(
            update_data.get("effective_from", rate.effective_from),
            update_data.get("effective_to", rate.effective_to),
        )
        rate = await pay_rate_repository.update(db, rate, update_data)
        teachers = await teacher_repository.get_by_ids(db, {rate.teacher_id})
        return self._rate_to_dict(rate, teachers)

    async def delete_rate(self, db: AsyncSession, rate_id: UUID, organization_id: UUID) -> None:
        await pay_rate_repository.get_or_404(db, rate_id, organization_id)
        await pay_rate_repository.delete(db, rate_id, organization_id)

    # === 급여 기간 (Periods) ===

    def _period_to_dict(self, p: PayrollPeriod) -> dict:
        return {
            "id": str(p.id),
            "name": p.name,
            "period_start": p.period_start,
            "period_end": p.period_end,
            "pay_date": p.pay_date,
            "status": p.status,
            "notes": p.notes,
            "approved_by": str(p.approved_by) if p.approved_by else None,
            "approved_at": p.approved_at,
            "created_at": p.created_at,
        }

    async def list_periods(self, db: AsyncSession, organization_id: UUID, status: str | None) -> list[dict]:
        query = payroll_period_repository.filter_query(organization_id, status)
        return [self._period_to_dict(p) for p in (await db.execute(query)).scalars().all()]

    async def create_period(self, db: AsyncSession, organization_id: UUID, data: PayrollPeriodCreate) -> dict:
        if data.period_end < data.period_start:
            raise BadRequestError("종료일이 시작일보다 빠릅니다 (period_end must be on or after period_start)")
        period = await payroll_period_repository.create(
            db, {"organization_id": organization_id, **data.model_dump(), "status": "draft"}
        )
        return self._period_to_dict(period)

    async def get_period(self, db: AsyncSession, period_id: UUID, organization_id: UUID) -> dict:
        """급여 기간 상세 — 근무 기록/명세서 합계 포함."""
        period = await payroll_period_repository.get_or_404(db, period_id, organization_id)
        entries = await time_entry_repository.get_by_period(db, period.id)
        stubs = await pay_stub_repository.get_by_period(db, period.id)
        data = self._period_to_dict(period)
        data.update({
            "time_entry_count": len(entries),
            "total_minutes": sum(e.minutes or 0 for e in entries if e.status != "rejected"),
            "pay_stub_count": len(stubs),
            "total_gross_in_cents": sum(s.gross_pay_in_cents for s in stubs),
            "total_net_in_cents": sum(s.net_pay_in_cents for s in stubs),
        })
        return data

    async def update_period(
        self,
        db: AsyncSession,
        period_id: UUID,
        organization_id: UUID,
        data: PayrollPeriodUpdate,
        current_user: User,
    ) -> dict:
        """급여 기간 상태 전환.

        Move the period through draft → processing → approved → paid →
        closed. processing → draft is the only backwards step.

        Raises:
            BadRequestError: 허용되지 않는 상태 전환
        """
        period = await payroll_period_repository.get_or_404(db, period_id, organization_id)
        update_data: dict = data.model_dump(exclude_unset=True)
        new_status = update_data.get("status")
        if new_status is not None and new_status != period.status:
            if new_status not in PERIOD_TRANSITIONS.get(period.status, set()):
                raise BadRequestError(
                    f"상태를 변경할 수 없습니다 (Cannot move payroll period from {period.status} to {new_status})"
                )
            if new_status == "approved":
                update_data["approved_by"] = current_user.id
                update_data["approved_at"] = utcnow()
        period = await payroll_period_repository.update(db, period, update_data)
        logger.info("Payroll period %s is now %s", period.id, period.status)
        return self._period_to_dict(period)

    async def _get_open_period(self, db: AsyncSession, period_id: UUID, organization_id: UUID) -> PayrollPeriod:
        period = await payroll_period_repository.get_or_404(db, period_id, organization_id)
        if period.status in LOCKED_PERIOD_STATUSES:
            raise BadRequestError(f"잠긴 급여 기간입니다 (Payroll period is {period.status} and locked)")
        return period

    # === 근무 기록 (Time entries) ===

    async def _entries_to_dicts(self, db: AsyncSession, entries: Sequence[PayrollTimeEntry]) -> list[dict]:
        teachers = await teacher_repository.get_by_ids(db, {e.teacher_id for e in entries})
        classes = await class_repository.get_by_ids(db, {e.class_instance_id for e in entries})
        results: list[dict] = []
        for e in entries:
            teacher = teachers.get(e.teacher_id)
            cls = classes.get(e.class_instance_id)
            results.append({
                "id": str(e.id),
                "payroll_period_id": str(e.payroll_period_id),
                "teacher_id": str(e.teacher_id),
                "teacher_name": teacher.full_name if teacher else None,
                "schedule_class_id": str(e.schedule_class_id) if e.schedule_class_id else None,
                "class_instance_id": str(e.class_instance_id) if e.class_instance_id else None,
                "class_name": cls.name if cls else None,
                "entry_date": e.entry_date,
                "start_time": e.start_time.strftime("%H:%M") if e.start_time else None,
                "end_time": e.end_time.strftime("%H:%M") if e.end_time else None,
                "minutes": e.minutes,
                "entry_type": e.entry_type,
                "is_overtime": e.is_overtime,
                "status": e.status,
                "notes": e.notes,
            })
        return results

    async def generate_time_entries(self, db: AsyncSession, period_id: UUID, organization_id: UUID) -> dict:
        """시간표로부터 근무 기록 생성.

        One pending ``scheduled`` entry per teacher-assigned slot of every
        active schedule, for each matching weekday inside both the period
        and the schedule's dates. Existing (teacher, slot, date) entries
        are skipped.

        Returns:
            dict: {"created": int, "skipped": int}
        """
        period = await self._get_open_period(db, period_id, organization_id)
        existing = await time_entry_repository.existing_keys(db, period.id)
        created = skipped = 0

        for schedule in await schedule_repository.get_active(db, organization_id):
            start = max(period.period_start, schedule.start_date)
            end = min(period.period_end, schedule.end_date)
            if start > end:
                continue
            slots = [s for s in await slot_repository.get_by_schedule(db, schedule.id) if s.teacher_id]
            for day in iter_dates(start, end):
                dow = day_of_week(day)
                for slot in slots:
                    if slot.day_of_week != dow:
                        continue
                    key = (slot.teacher_id, slot.id, day)
                    if key in existing:
                        skipped += 1
                        continue
                    await time_entry_repository.create(db, {
                        "payroll_period_id": period.id,
                        "teacher_id": slot.teacher_id,
                        "schedule_class_id": slot.id,
                        "class_instance_id": slot.class_instance_id,
                        "entry_date": day,
                        "start_time": slot.start_time,
                        "end_time": slot.end_time,
                        "minutes": minutes_between(slot.start_time, slot.end_time),
                        "entry_type": "scheduled",
                        "status": "pending",
                    })
                    existing.add(key)
                    created += 1

        logger.info("Generated %d time entries for period %s (%d skipped)", created, period.id, skipped)
        return {"created": created, "skipped": skipped}

    async def list_time_entries(
        self,
        db: AsyncSession,
        period_id: UUID,
        organization_id: UUID,
        teacher_id: UUID | None,
        status: str | None,
    ) -> list[dict]:
        await payroll_period_repository.get_or_404(db, period_id, organization_id)
        return await self._entries_to_dicts(
            db, await time_entry_repository.get_by_period(db, period_id, teacher_id, status)
        )

    async def create_time_entry(
        self,
        db: AsyncSession,
        period_id: UUID,
        organization_id: UUID,
        data: TimeEntryCreate,
    ) -> dict:
        """수동 근무 기록 추가 — minutes 미지정 시 시작/종료로 계산."""
        period = await self._get_open_period(db, period_id, organization_id)
        await teacher_repository.get_or_404(db, data.teacher_id, organization_id)
        if data.class_instance_id is not None:
            await class_repository.get_or_404(db, data.class_instance_id, organization_id)
        if not period.period_start <= data.entry_date <= period.period_end:
            raise BadRequestError("근무일이 급여 기간 밖입니다 (entry_date is outside the payroll period)")

        minutes = data.minutes
        if minutes is None:
            if data.start_time is None or data.end_time is None:
                raise BadRequestError("minutes 또는 시작/종료 시각이 필요합니다 (minutes or start/end time required)")
            minutes = minutes_between(data.start_time, data.end_time)
            if minutes <= 0:
                raise BadRequestError("종료 시각은 시작 시각 이후여야 합니다 (end_time must be after start_time)")

        entry = await time_entry_repository.create(db, {
            "payroll_period_id": period.id,
            **data.model_dump(exclude={"minutes"}),
            "minutes": minutes,
            "status": "pending",
        })
        return (await self._entries_to_dicts(db, [entry]))[0]

    async def update_time_entry(
        self,
        db: AsyncSession,
        entry_id: UUID,
        organization_id: UUID,
        data: TimeEntryUpdate,
    ) -> dict:
        entry = await time_entry_repository.get_or_404(db, entry_id)
        await self._get_open_period(db, entry.payroll_period_id, organization_id)
        entry = await time_entry_repository.update(db, entry, data.model_dump(exclude_unset=True))
        return (await self._entries_to_dicts(db, [entry]))[0]

    # === 급여 조정 (Adjustments) ===

    def _adjustment_to_dict(self, a: PayrollAdjustment, teachers: dict[UUID, Teacher]) -> dict:
        teacher = teachers.get(a.teacher_id)
        return {
            "id": str(a.id),
            "payroll_period_id": str(a.payroll_period_id),
            "teacher_id": str(a.teacher_id),
            "teacher_name": teacher.full_name if teacher else None,
            "adjustment_type": a.adjustment_type,
            "amount_in_cents": a.amount_in_cents,
            "description": a.description,
            "created_at": a.created_at,
        }

    async def list_adjustments(self, db: AsyncSession, period_id: UUID, organization_id: UUID) -> list[dict]:
        await payroll_period_repository.get_or_404(db, period_id, organization_id)
        adjustments = await adjustment_repository.get_by_period(db, period_id)
        teachers = await teacher_repository.get_by_ids(db, {a.teacher_id for a in adjustments})
        return [self._adjustment_to_dict(a, teachers) for a in adjustments]

    async def create_adjustment(
        self,
        db: AsyncSession,
        period_id: UUID,
        organization_id: UUID,
        data: AdjustmentCreate,
        current_user: User,
    ) -> dict:
        period = await self._get_open_period(db, period_id, organization_id)
        teacher = await teacher_repository.get_or_404(db, data.teacher_id, organization_id)
        adjustment = await adjustment_repository.create(db, {
            "payroll_period_id": period.id,
            **data.model_dump(),
            "created_by": current_user.id,
        })
        return self._adjustment_to_dict(adjustment, {teacher.id: teacher})

    async def delete_adjustment(self, db: AsyncSession, adjustment_id: UUID, organization_id: UUID) -> None:
        adjustment = await adjustment_repository.get_or_404(db, adjustment_id)
        await self._get_open_period(db, adjustment.payroll_period_id, organization_id)
        await adjustment_repository.delete(db, adjustment.id)

    # === 급여 명세서 (Pay stubs) ===

    def _stub_to_dict(self, s: PayStub, teachers: dict[UUID, Teacher]) -> dict:
        teacher = teachers.get(s.teacher_id)
        return {
            "id": str(s.id),
            "payroll_period_id": str(s.payroll_period_id),
            "teacher_id": str(s.teacher_id),
            "teacher_name": teacher.full_name if teacher else None,
            "stub_number": s.stub_number,
            "regular_minutes": s.regular_minutes,
            "overtime_minutes": s.overtime_minutes,
            "class_count": s.class_count,
            "regular_pay_in_cents": s.regular_pay_in_cents,
            "overtime_pay_in_cents": s.overtime_pay_in_cents,
            "bonuses_in_cents": s.bonuses_in_cents,
            "deductions_in_cents": s.deductions_in_cents,
            "reimbursements_in_cents": s.reimbursements_in_cents,
            "gross_pay_in_cents": s.gross_pay_in_cents,
            "net_pay_in_cents": s.net_pay_in_cents,
            "status": s.status,
            "updated_at": s.updated_at,
        }

    async def generate_pay_stubs(self, db: AsyncSession, period_id: UUID, organization_id: UUID) -> dict:
        """급여 명세서 생성 (upsert).

        Calculate one stub per teacher with entries or adjustments in the
        period. Teachers without an active pay rate are reported under
        ``skipped`` instead of failing the run.
        """
        period = await self._get_open_period(db, period_id, organization_id)
        entries = await time_entry_repository.get_by_period(db, period.id)
        adjustments = await adjustment_repository.get_by_period(db, period.id)
        teacher_ids = {e.teacher_id for e in entries} | {a.teacher_id for a in adjustments}
        teachers = await teacher_repository.get_by_ids(db, teacher_ids)
        existing_count = len(await pay_stub_repository.get_by_period(db, period.id))

        stubs: list[PayStub] = []
        skipped: list[dict] = []
        for teacher_id in sorted(teacher_ids, key=lambda t: teachers[t].full_name if t in teachers else ""):
            rate = await pay_rate_repository.get_effective(db, teacher_id, period.period_start, period.period_end)
            teacher = teachers.get(teacher_id)
            if rate is None:
                skipped.append({
                    "teacher_id": str(teacher_id),
                    "teacher_name": teacher.full_name if teacher else None,
                    "reason": "No active pay rate",
                })
                continue

            amounts = calculate_pay(
                rate,
                [e for e in entries if e.teacher_id == teacher_id],
                [a for a in adjustments if a.teacher_id == teacher_id],
            )
            stub = await pay_stub_repository.get_for_teacher(db, period.id, teacher_id)
            if stub is None:
                existing_count += 1
                stub = await pay_stub_repository.create(db, {
                    "payroll_period_id": period.id,
                    "teacher_id": teacher_id,
                    "stub_number": f"PS-{period.period_start:%Y%m%d}-{existing_count:04d}",
                    "status": "draft",
                    **amounts,
                })
            else:
                stub = await pay_stub_repository.update(db, stub, amounts)
            stubs.append(stub)

        logger.info("Generated %d pay stubs for period %s (%d skipped)", len(stubs), period.id, len(skipped))
        return {
            "generated": len(stubs),
            "pay_stubs": [self._stub_to_dict(s, teachers) for s in stubs],
            "skipped": skipped,
        }

    async def list_pay_stubs(self, db: AsyncSession, period_id: UUID, organization_id: UUID) -> list[dict]:
        await payroll_period_repository.get_or_404(db, period_id, organization_id)
        stubs = await pay_stub_repository.get_by_period(db, period_id)
        teachers = await teacher_repository.get_by_ids(db, {s.teacher_id for s in stubs})
        return [self._stub_to_dict(s, teachers) for s in stubs]

    async def render_stub_pdf(self, db: AsyncSession, stub_id: UUID, organization_id: UUID) -> tuple[bytes, str]:
        """급여 명세서 PDF — (bytes, filename)."""
        stub = await pay_stub_repository.get_or_404(db, stub_id)
        period = await payroll_period_repository.get_or_404(db, stub.payroll_period_id, organization_id)
        teacher = await teacher_repository.get_or_404(db, stub.teacher_id)
        org = await organization_repository.get_or_404(db, organization_id)

        report = PDFReport(
            "Pay Stub",
            org.name,
            [org.address or "", " | ".join(v for v in (org.phone, org.email) if v)],
        )
        report.key_values([
            ("Stub Number", stub.stub_number),
            ("Teacher", teacher.full_name),
            ("Pay Period", f"{period.name} ({period.period_start} - {period.period_end})"),
            ("Pay Date", period.pay_date or "-"),
        ])
        report.heading("Earnings").table(
            ["Item", "Hours", "Amount"],
            [
                ["Regular", _hours(stub.regular_minutes), format_money(stub.regular_pay_in_cents)],
                ["Overtime", _hours(stub.overtime_minutes), format_money(stub.overtime_pay_in_cents)],
                ["Bonuses", "", format_money(stub.bonuses_in_cents)],
                ["Reimbursements", "", format_money(stub.reimbursements_in_cents)],
                ["Deductions", "", f"-{format_money(stub.deductions_in_cents)}"],
            ],
        )
        report.spacer().key_values([
            ("Gross Pay", format_money(stub.gross_pay_in_cents)),
            ("Net Pay", format_money(stub.net_pay_in_cents)),
        ])
        return report.build(), f"pay-stub-{stub.stub_number}.pdf"

    # === 내보내기 (Export) ===

    async def export(
        self,
        db: AsyncSession,
        period_id: UUID,
        organization_id: UUID,
        export_format: str,
        current_user: User,
    ) -> tuple[str | bytes, str, str]:
        """급여 내보내기 — (content, filename, media_type).

        CSV, QuickBooks IIF (tab separated ``TIMEACT`` rows) or XLSX.
        Each export is recorded in the export log.

        Raises:
            NotFoundError: 명세서가 없음 (Generate pay stubs first)
            BadRequestError: 지원하지 않는 형식
        """
        period = await payroll_period_repository.get_or_404(db, period_id, organization_id)
        stubs = await pay_stub_repository.get_by_period(db, period.id)
        if not stubs:
            raise NotFoundError("명세서가 없습니다 (No pay stubs found for this period. Generate pay stubs first)")
        teachers = await teacher_repository.get_by_ids(db, {s.teacher_id for s in stubs})

        rows: list[list] = []
        for s in stubs:
            t = teachers.get(s.teacher_id)
            rows.append([
                str(s.teacher_id),
                t.first_name if t else "",
                t.last_name if t else "",
                (t.email if t else "") or "",
                _hours(s.regular_minutes),
                cents_to_decimal_str(s.regular_pay_in_cents),
                _hours(s.overtime_minutes),
                cents_to_decimal_str(s.overtime_pay_in_cents),
                cents_to_decimal_str(s.bonuses_in_cents),
                cents_to_decimal_str(s.deductions_in_cents),
                cents_to_decimal_str(s.reimbursements_in_cents),
                cents_to_decimal_str(s.gross_pay_in_cents),
                cents_to_decimal_str(s.net_pay_in_cents),
                s.stub_number,
            ])

        slug = "_".join(period.name.split())
        stamp = utcnow().strftime("%Y%m%d%H%M%S")
        content: str | bytes
        if export_format == "csv":
            content = build_csv(CSV_HEADERS, rows)
            filename, media_type = f"payroll_{slug}_{stamp}.csv", "text/csv"
        elif export_format == "quickbooks":
            lines = ["\t".join(IIF_HEADERS)]
            for s in stubs:
                t = teachers.get(s.teacher_id)
                hours = s.regular_minutes / 60
                hourly = f"{s.regular_pay_in_cents / 100 / hours:.2f}" if hours > 0 else "0"
                lines.append("\t".join([
                    "TIMEACT",
                    period.period_end.isoformat(),
                    "Regular Hours",
                    t.full_name if t else "",
                    "Regular Pay",
                    "",
                    _hours(s.regular_minutes),
                    hourly,
                    cents_to_decimal_str(s.regular_pay_in_cents),
                    period.name,
                ]))
            content = "\n".join(lines) + "\n"
            filename, media_type = f"payroll_quickbooks_{slug}_{stamp}.iif", "text/plain"
        elif export_format == "xlsx":
            content = build_xlsx([("Payroll", CSV_HEADERS, rows)])
            filename, media_type = f"payroll_{slug}_{stamp}.xlsx", XLSX_MEDIA_TYPE
        else:
            raise BadRequestError("지원하지 않는 형식입니다 (Unsupported export format)")

        await pay_stub_repository.log_export(db, {
            "payroll_period_id": period.id,
            "export_format": export_format,
            "file_name": filename,
            "record_count": len(stubs),
            "total_gross_in_cents": sum(s.gross_pay_in_cents for s in stubs),
            "exported_by": current_user.id,
        })
        logger.info("Payroll period %s exported as %s", period.id, export_format)
        return content, filename, media_type


# 싱글턴 인스턴스 — Singleton instance
payroll_service: PayrollService = PayrollService()
