"""분석 서비스 — 수강, 매출, 재등록률, 수업 성과, 강사 지표 집계.

Analytics Service — Aggregations for the admin analytics screens.
Every report takes a date range validated by ``validate_date_range``
(default trailing 12 months, at most 5 years). Results are computed per
request; nothing is cached in process.
"""

from collections import defaultdict
from datetime import date, datetime, time, timezone
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.attendance import AttendanceRecord
from app.models.dance_class import ClassInstance, DanceStyle
from app.models.enrollment import Enrollment
from app.models.merchandise import MerchandiseOrder
from app.models.payment import Payment
from app.models.people import Student, Teacher
from app.models.schedule import Schedule, ScheduleClass
from app.models.ticketing import TicketOrder
from app.utils.timeutil import age_in_years, ensure_utc, minutes_between, month_key, validate_date_range

ATTENDED_STATUSES: frozenset[str] = frozenset({"present", "tardy", "left_early"})
AGE_GROUPS: list[tuple[str, int, int | None]] = [
    ("0-5", 0, 5),
    ("6-8", 6, 8),
    ("9-12", 9, 12),
    ("13-17", 13, 17),
    ("18+", 18, None),
]


def _bounds(start: date, end: date) -> tuple[datetime, datetime]:
    """날짜 범위 → UTC datetime 경계 (end inclusive)."""
    return (
        datetime.combine(start, time.min, tzinfo=timezone.utc),
        datetime.combine(end, time.max, tzinfo=timezone.utc),
    )


def _months(start: date, end: date) -> list[str]:
    keys: list[str] = []
    year, month = start.year, start.month
    while (year, month) <= (end.year, end.month):
        keys.append(f"{year:04d}-{month:02d}")
        month += 1
        if month > 12:
            year, month = year + 1, 1
    return keys


def _rate(part: int, whole: int) -> float:
    return round(part / whole * 100, 1) if whole else 0.0


def _age_group(age: int) -> str:
    for label, low, high in AGE_GROUPS:
        if age >= low and (high is None or age <= high):
            return label
    return "unknown"


class AnalyticsService:
    """분석 서비스.

    Analytics aggregation service for the admin analytics views.
    """

    async def _attendance_counts(
        self,
        db: AsyncSession,
        organization_id: UUID,
        start: date,
        end: date,
        group_column,
    ) -> dict[UUID, tuple[int, int]]:
        """그룹별 (출석, 전체) 기록 수 — (attended, total) per group key."""
        result = await db.execute(
            select(group_column, AttendanceRecord.status, func.count(AttendanceRecord.id))
            .where(
                AttendanceRecord.organization_id == organization_id,
                AttendanceRecord.attendance_date >= start,
                AttendanceRecord.attendance_date <= end,
            )
            .group_by(group_column, AttendanceRecord.status)
        )
        counts: dict[UUID, list[int]] = defaultdict(lambda: [0, 0])
        for key, status, count in result.all():
            counts[key][1] += count
            if status in ATTENDED_STATUSES:
                counts[key][0] += count
        return {k: (v[0], v[1]) for k, v in counts.items()}

    async def enrollment(
        self,
        db: AsyncSession,
        organization_id: UUID,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> dict:
        """수강 분석.

        Monthly new enrollments with unique students, withdrawals and net
        growth; current active enrollments by dance style and age group;
        capacity utilisation of active classes.
        """
        start, end = validate_date_range(start_date, end_date)
        lo, hi = _bounds(start, end)
        enrollments = (await db.execute(
            select(Enrollment).where(
                Enrollment.organization_id == organization_id,
                or_(
                    Enrollment.enrolled_at.between(lo, hi),
                    Enrollment.dropped_at.between(lo, hi),
                ),
            )
        )).scalars().all()

        months = {k: {"new_enrollments": 0, "students": set(), "withdrawals": 0} for k in _months(start, end)}
        for e in enrollments:
            enrolled = ensure_utc(e.enrolled_at)
            if lo <= enrolled <= hi and e.status != "waitlist":
                bucket = months[month_key(enrolled)]
                bucket["new_enrollments"] += 1
                bucket["students"].add(e.student_id)
            if e.dropped_at is not None and lo <= ensure_utc(e.dropped_at) <= hi:
                months[month_key(ensure_utc(e.dropped_at))]["withdrawals"] += 1
        monthly = [
            {
                "month": key,
                "new_enrollments": m["new_enrollments"],
                "unique_students": len(m["students"]),
                "withdrawals": m["withdrawals"],
                "net_growth": m["new_enrollments"] - m["withdrawals"],
            }
            for key, m in months.items()
        ]

        active = (await db.execute(
            select(Enrollment, ClassInstance, Student)
            .join(ClassInstance, ClassInstance.id == Enrollment.class_instance_id)
            .join(Student, Student.id == Enrollment.student_id)
            .where(Enrollment.organization_id == organization_id, Enrollment.status == "active")
        )).all()
        styles = {
            s.id: s.name for s in (await db.execute(
                select(DanceStyle).where(DanceStyle.organization_id == organization_id)
            )).scalars().all()
        }
        by_style: dict[str, int] = defaultdict(int)
        age_students: dict[str, set[UUID]] = {label: set() for label, _, _ in AGE_GROUPS}
        age_students["unknown"] = set()
        today = date.today()
        for _, cls, student in active:
            by_style[styles.get(cls.dance_style_id, "Unassigned")] += 1
            group = _age_group(age_in_years(student.date_of_birth, today)) if student.date_of_birth else "unknown"
            age_students[group].add(student.id)

        classes = (await db.execute(
            select(ClassInstance).where(
                ClassInstance.organization_id == organization_id,
                ClassInstance.status == "active",
                ClassInstance.max_students.is_not(None),
            )
        )).scalars().all()
        capacity = sum(c.max_students for c in classes)
        capped_ids = {c.id for c in classes}
        filled = sum(1 for e, _, _ in active if e.class_instance_id in capped_ids)

        return {
            "start_date": start,
            "end_date": end,
            "monthly": monthly,
            "totals": {
                "new_enrollments": sum(m["new_enrollments"] for m in monthly),
                "withdrawals": sum(m["withdrawals"] for m in monthly),
                "net_growth": sum(m["net_growth"] for m in monthly),
                "active_enrollments": len(active),
            },
            "by_dance_style": [{"dance_style": k, "count": v} for k, v in sorted(by_style.items())],
            "age_groups": [{"age_group": k, "students": len(v)} for k, v in age_students.items()],
            "capacity": {"enrolled": filled, "capacity": capacity, "utilization": _rate(filled, capacity)},
        }

    async def revenue(
        self,
        db: AsyncSession,
        organization_id: UUID,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> dict:
        """매출 분석 — 수강료(환불 차감), 티켓, 상품. 금액은 cents."""
        start, end = validate_date_range(start_date, end_date)
        lo, hi = _bounds(start, end)
        monthly = {k: {"tuition": 0, "tickets": 0, "merchandise": 0} for k in _months(start, end)}
        by_type: dict[str, int] = defaultdict(int)

        payments = (await db.execute(
            select(Payment).where(
                Payment.organization_id == organization_id,
                Payment.payment_status.in_(("completed", "refunded")),
                Payment.payment_date.between(lo, hi),
            )
        )).scalars().all()
        for p in payments:
            net = p.amount_in_cents - p.refund_amount_in_cents
            monthly[month_key(ensure_utc(p.payment_date))]["tuition"] += net
            by_type[p.payment_type] += net

        tickets = (await db.execute(
            select(TicketOrder).where(
                TicketOrder.organization_id == organization_id,
                TicketOrder.status == "paid",
                TicketOrder.paid_at.between(lo, hi),
            )
        )).scalars().all()
        for o in tickets:
            monthly[month_key(ensure_utc(o.paid_at))]["tickets"] += o.total_amount_in_cents - o.refunded_amount_in_cents

        merch = (await db.execute(
            select(MerchandiseOrder).where(
                MerchandiseOrder.organization_id == organization_id,
                MerchandiseOrder.payment_status == "completed",
                MerchandiseOrder.status != "cancelled",
                MerchandiseOrder.paid_at.between(lo, hi),
            )
        )).scalars().all()
        for o in merch:
            monthly[month_key(ensure_utc(o.paid_at))]["merchandise"] += o.total_in_cents

        series = [
            {"month": k, **v, "total": v["tuition"] + v["tickets"] + v["merchandise"]}
            for k, v in monthly.items()
        ]
        totals = {
            "tuition": sum(m["tuition"] for m in series),
            "tickets": sum(m["tickets"] for m in series),
            "merchandise": sum(m["merchandise"] for m in series),
        }
        totals["total"] = sum(totals.values())
        return {
            "start_date": start,
            "end_date": end,
            "currency_unit": "cents",
            "totals": totals,
            "monthly": series,
            "by_payment_type": [{"payment_type": k, "amount_in_cents": v} for k, v in sorted(by_type.items())],
        }

    async def _term_students(self, db: AsyncSession, schedule: Schedule) -> set[UUID]:
        """학기 재원생 — Students with a non-waitlist enrollment overlapping the term
        in a class that has a slot in that schedule."""
        lo, hi = _bounds(schedule.start_date, schedule.end_date)
        class_ids = select(ScheduleClass.class_instance_id).where(ScheduleClass.schedule_id == schedule.id)
        result = await db.execute(
            select(Enrollment.student_id).where(
                Enrollment.class_instance_id.in_(class_ids),
                Enrollment.status != "waitlist",
                Enrollment.enrolled_at <= hi,
                or_(Enrollment.dropped_at.is_(None), Enrollment.dropped_at >= lo),
            )
        )
        return set(result.scalars().all())

    async def retention(
        self,
        db: AsyncSession,
        organization_id: UUID,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> dict:
        """학기 간 재등록률 — Share of students from one term enrolled in the next."""
        start, end = validate_date_range(start_date, end_date)
        schedules = (await db.execute(
            select(Schedule)
            .where(
                Schedule.organization_id == organization_id,
                Schedule.start_date <= end,
                Schedule.end_date >= start,
            )
            .order_by(Schedule.start_date)
        )).scalars().all()

        students = {s.id: await self._term_students(db, s) for s in schedules}
        periods = []
        for prev, nxt in zip(schedules, schedules[1:]):
            before, after = students[prev.id], students[nxt.id]
            retained = len(before & after)
            periods.append({
                "from_schedule": {"id": str(prev.id), "name": prev.name, "start_date": prev.start_date},
                "to_schedule": {"id": str(nxt.id), "name": nxt.name, "start_date": nxt.start_date},
                "previous_students": len(before),
                "retained_students": retained,
                "new_students": len(after - before),
                "retention_rate": _rate(retained, len(before)),
            })
        total_before = sum(p["previous_students"] for p in periods)
        total_retained = sum(p["retained_students"] for p in periods)
        return {
            "start_date": start,
            "end_date": end,
            "periods": periods,
            "overall_retention_rate": _rate(total_retained, total_before),
        }

    async def class_performance(
        self,
        db: AsyncSession,
        organization_id: UUID,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> dict:
        """수업별 성과 — enrolled, capacity, waitlist, utilisation, attendance rate."""
        start, end = validate_date_range(start_date, end_date)
        classes = (await db.execute(
            select(ClassInstance)
            .where(ClassInstance.organization_id == organization_id, ClassInstance.status != "cancelled")
            .order_by(ClassInstance.name)
        )).scalars().all()
        counts = (await db.execute(
            select(Enrollment.class_instance_id, Enrollment.status, func.count(Enrollment.id))
            .where(Enrollment.organization_id == organization_id, Enrollment.status.in_(("active", "waitlist")))
            .group_by(Enrollment.class_instance_id, Enrollment.status)
        )).all()
        enrolled: dict[UUID, dict[str, int]] = defaultdict(lambda: {"active": 0, "waitlist": 0})
        for class_id, status, count in counts:
            enrolled[class_id][status] = count
        attendance = await self._attendance_counts(
            db, organization_id, start, end, AttendanceRecord.class_instance_id
        )

        rows = []
        for c in classes:
            active = enrolled[c.id]["active"]
            attended, total = attendance.get(c.id, (0, 0))
            rows.append({
                "class_id": str(c.id),
                "class_name": c.name,
                "status": c.status,
                "enrolled": active,
                "capacity": c.max_students,
                "waitlist": enrolled[c.id]["waitlist"],
                "utilization": _rate(active, c.max_students) if c.max_students else None,
                "attendance_records": total,
                "attendance_rate": _rate(attended, total),
            })
        return {"start_date": start, "end_date": end, "classes": rows}

    async def teacher_metrics(
        self,
        db: AsyncSession,
        organization_id: UUID,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> dict:
        """강사별 지표 — classes, weekly minutes (active terms), students, attendance rate."""
        start, end = validate_date_range(start_date, end_date)
        teachers = (await db.execute(
            select(Teacher)
            .where(Teacher.organization_id == organization_id, Teacher.is_active.is_(True))
            .order_by(Teacher.last_name, Teacher.first_name)
        )).scalars().all()

        slots = (await db.execute(
            select(ScheduleClass, ClassInstance.teacher_id)
            .join(Schedule, Schedule.id == ScheduleClass.schedule_id)
            .join(ClassInstance, ClassInstance.id == ScheduleClass.class_instance_id)
            .where(Schedule.organization_id == organization_id, Schedule.is_active.is_(True))
        )).all()
        weekly_minutes: dict[UUID, int] = defaultdict(int)
        class_ids: dict[UUID, set[UUID]] = defaultdict(set)
        for slot, class_teacher in slots:
            teacher_id = slot.teacher_id or class_teacher
            if teacher_id is None:
                continue
            weekly_minutes[teacher_id] += minutes_between(slot.start_time, slot.end_time)
            class_ids[teacher_id].add(slot.class_instance_id)
        for class_id, teacher_id in (await db.execute(
            select(ClassInstance.id, ClassInstance.teacher_id).where(
                ClassInstance.organization_id == organization_id,
                ClassInstance.status == "active",
                ClassInstance.teacher_id.is_not(None),
            )
        )).all():
            class_ids[teacher_id].add(class_id)

        students = (await db.execute(
            select(Enrollment.class_instance_id, Enrollment.student_id).where(
                Enrollment.organization_id == organization_id, Enrollment.status == "active"
            )
        )).all()
        students_by_class: dict[UUID, set[UUID]] = defaultdict(set)
        for class_id, student_id in students:
            students_by_class[class_id].add(student_id)
        attendance = await self._attendance_counts(
            db, organization_id, start, end, AttendanceRecord.class_instance_id
        )

        rows = []
        for t in teachers:
            taught = class_ids.get(t.id, set())
            attended = sum(attendance.get(c, (0, 0))[0] for c in taught)
            total = sum(attendance.get(c, (0, 0))[1] for c in taught)
            rows.append({
                "teacher_id": str(t.id),
                "teacher_name": t.full_name,
                "classes": len(taught),
                "weekly_minutes": weekly_minutes.get(t.id, 0),
                "students": len(set().union(*(students_by_class[c] for c in taught))) if taught else 0,
                "attendance_rate": _rate(attended, total),
            })
        return {"start_date": start, "end_date": end, "teachers": rows}


# 싱글턴 인스턴스 — Singleton instance
analytics_service: AnalyticsService = AnalyticsService()
