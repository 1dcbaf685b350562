"""출석 관리 서비스 — 출석 체크, QR 체크인/아웃, 결석 및 보강 비즈니스 로직.

Attendance Service — Business logic for attendance marking, QR check-in
and check-out, rosters, exports, absences and makeup bookings.

Check-in window: a student may check in from 30 minutes before the slot
starts until it ends (studio wall clock). Checking in more than 10 minutes
after the start is ``tardy``; checking out more than 10 minutes before
the end is ``left_early``.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Sequence
from uuid import UUID

from sqlalchemy import Select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import ensure_class_in_scope
from app.models.attendance import ATTENDED_STATUSES, Absence, AttendanceRecord, MakeupBooking
from app.models.people import Guardian, Student
from app.models.schedule import ScheduleClass
from app.models.user import User
from app.repositories.attendance_repository import (
    absence_repository,
    attendance_repository,
    makeup_repository,
)
from app.repositories.class_repository import class_repository, dance_style_repository, slot_repository
from app.repositories.enrollment_repository import enrollment_repository
from app.repositories.organization_repository import organization_repository, user_repository
from app.repositories.people_repository import guardian_repository, student_repository
from app.schemas.attendance import (
    AbsenceReport,
    CheckInRequest,
    CheckOutRequest,
    MakeupCreate,
    MakeupUpdate,
    MarkAttendanceRequest,
)
from app.utils.exceptions import BadRequestError, ConflictError, DuplicateError, ForbiddenError, NotFoundError
from app.utils.export import build_csv, build_xlsx
from app.utils.pagination import page_envelope
from app.utils.timeutil import combine_local, day_of_week, to_studio_time, utcnow, validate_date_range

logger = logging.getLogger(__name__)

# 체크인 창 / 지각·조퇴 기준 — Check-in window and grace periods
CHECK_IN_OPENS_BEFORE: timedelta = timedelta(minutes=30)
TARDY_AFTER: timedelta = timedelta(minutes=10)
LEFT_EARLY_BEFORE: timedelta = timedelta(minutes=10)

EXPORT_HEADERS: list[str] = [
    "Date", "Student Name", "Class Name", "Dance Style", "Status",
    "Check-In Time", "Check-Out Time", "Is Makeup", "Notes", "Marked By",
]


class AttendanceService:
    """출석 관리 서비스.

    Attendance service. ``scope`` arguments carry the class ids a teacher
    login may act on (``None`` for admin/staff).
    """

    async def _studio_now(self, db: AsyncSession, organization_id: UUID) -> tuple[datetime, str]:
        org = await organization_repository.get_or_404(db, organization_id)
        return to_studio_time(utcnow(), org.timezone), org.timezone

    async def _studio_today(self, db: AsyncSession, organization_id: UUID) -> date:
        local_now, _ = await self._studio_now(db, organization_id)
        return local_now.date()

    # === 응답 구성 (Response building) ===

    async def _records_to_dicts(self, db: AsyncSession, records: Sequence[AttendanceRecord]) -> list[dict]:
        students = await student_repository.get_by_ids(db, {r.student_id for r in records})
        classes = await class_repository.get_by_ids(db, {r.class_instance_id for r in records})
        styles = await dance_style_repository.get_by_ids(db, {c.dance_style_id for c in classes.values()})
        markers = await user_repository.get_names(db, {r.marked_by for r in records if r.marked_by})
        results: list[dict] = []
        for r in records:
            student = students.get(r.student_id)
            cls = classes.get(r.class_instance_id)
            style = styles.get(cls.dance_style_id) if cls else None
            results.append({
                "id": str(r.id),
                "student_id": str(r.student_id),
                "student_name": student.full_name if student else None,
                "class_instance_id": str(r.class_instance_id),
                "class_name": cls.name if cls else None,
                "dance_style": style.name if style else None,
                "schedule_class_id": str(r.schedule_class_id) if r.schedule_class_id else None,
                "attendance_date": r.attendance_date,
                "status": r.status,
                "check_in_time": r.check_in_time,
                "check_out_time": r.check_out_time,
                "is_makeup": r.is_makeup,
                "notes": r.notes,
                "marked_by": str(r.marked_by) if r.marked_by else None,
                "marked_by_name": markers.get(r.marked_by) if r.marked_by else None,
            })
        return results

    def _absence_to_dict(self, a: Absence, students: dict, classes: dict) -> dict:
        student = students.get(a.student_id)
        cls = classes.get(a.class_instance_id)
        return {
            "id": str(a.id),
            "student_id": str(a.student_id),
            "student_name": student.full_name if student else None,
            "class_instance_id": str(a.class_instance_id),
            "class_name": cls.name if cls else None,
            "absence_date": a.absence_date,
            "reason": a.reason,
            "is_excused": a.is_excused,
            "attendance_record_id": str(a.attendance_record_id) if a.attendance_record_id else None,
            "created_at": a.created_at,
        }

    def _makeup_to_dict(self, m: MakeupBooking) -> dict:
        return {
            "id": str(m.id),
            "student_id": str(m.student_id),
            "original_class_id": str(m.original_class_id),
            "makeup_class_id": str(m.makeup_class_id),
            "makeup_date": m.makeup_date,
            "absence_id": str(m.absence_id) if m.absence_id else None,
            "status": m.status,
            "notes": m.notes,
            "created_at": m.created_at,
        }

    # === 출석 체크 (Marking) ===

    async def mark(
        self,
        db: AsyncSession,
        organization_id: UUID,
        data: MarkAttendanceRequest,
        current_user: User,
        scope: set[UUID] | None,
    ) -> dict:
        """출석 기록 (upsert).

        Record attendance for one student, class and date. The student
        must be actively enrolled, or hold a makeup booking when
        ``is_makeup`` is set. An ``absent`` mark also records an Absence.

        Raises:
            ForbiddenError: 담당하지 않는 수업 (teacher scope)
            NotFoundError: 수강 중이 아닌 학생
        """
        ensure_class_in_scope(scope, data.class_instance_id)
        await class_repository.get_or_404(db, data.class_instance_id, organization_id)
        await student_repository.get_or_404(db, data.student_id, organization_id)
        attendance_date = data.attendance_date or await self._studio_today(db, organization_id)

        enrolled = await enrollment_repository.get_active(db, data.student_id, data.class_instance_id)
        makeup = None
        if data.is_makeup:
            makeup = await makeup_repository.get_scheduled(db, data.student_id, data.class_instance_id, attendance_date)
        if enrolled is None and makeup is None:
            raise NotFoundError("수강 중인 학생이 아닙니다 (Student is not actively enrolled in this class)")

        record = await attendance_repository.get_record(db, data.student_id, data.class_instance_id, attendance_date)
        values: dict = {
            "status": data.status,
            "notes": data.notes,
            "is_makeup": makeup is not None and enrolled is None,
            "marked_by": current_user.id,
        }
        if record is None:
            record = await attendance_repository.create(db, {
                "organization_id": organization_id,
                "student_id": data.student_id,
                "class_instance_id": data.class_instance_id,
                "attendance_date": attendance_date,
                **values,
            })
        else:
            record = await attendance_repository.update(db, record, values)

        if data.status == "absent":
            existing = await absence_repository.get_for(db, data.student_id, data.class_instance_id, attendance_date)
            if existing is None:
                await absence_repository.create(db, {
                    "organization_id": organization_id,
                    "student_id": data.student_id,
                    "class_instance_id": data.class_instance_id,
                    "absence_date": attendance_date,
                    "reported_by": current_user.id,
                    "attendance_record_id": record.id,
                })
            elif existing.attendance_record_id is None:
                await absence_repository.update(db, existing, {"attendance_record_id": record.id})
        elif makeup is not None and data.status in ATTENDED_STATUSES:
            await makeup_repository.update(db, makeup, {"status": "attended"})

        return (await self._records_to_dicts(db, [record]))[0]

    # === 체크인/체크아웃 (Check-in / check-out) ===

    async def _resolve_student(self, db: AsyncSession, organization_id: UUID, data: CheckInRequest) -> Student:
        if data.student_id is None and not data.check_in_code:
            raise BadRequestError("student_id 또는 check_in_code 가 필요합니다 (student_id or check_in_code is required)")
        if data.student_id is not None:
            return await student_repository.get_or_404(db, data.student_id, organization_id)
        student = await student_repository.get_by_check_in_code(db, organization_id, data.check_in_code)
        if student is None:
            raise NotFoundError("Student not found")
        return student

    def _in_window(self, slot: ScheduleClass, today: date, local_now: datetime, tz: str) -> bool:
        start = combine_local(today, slot.start_time, tz)
        end = combine_local(today, slot.end_time, tz)
        return start - CHECK_IN_OPENS_BEFORE <= local_now <= end

    async def _todays_slots(
        self,
        db: AsyncSession,
        organization_id: UUID,
        class_ids: list[UUID],
        today: date,
    ) -> list[ScheduleClass]:
        dow = day_of_week(today)
        slots = await slot_repository.get_active_slots(db, organization_id, class_ids)
        return [s for s in slots if s.day_of_week == dow]

    async def check_in(
        self,
        db: AsyncSession,
        organization_id: UUID,
        data: CheckInRequest,
        current_user: User,
        scope: set[UUID] | None,
    ) -> dict:
        """QR/수동 체크인.

        Check a student in by id or QR code. Without ``class_instance_id``
        the class is the student's class (enrolled or makeup) whose
        check-in window contains the current studio time.

        Raises:
            BadRequestError: 학생 식별자 누락
            NotFoundError: 학생/진행 중 수업 없음
            ForbiddenError: 수강/보강 예약 없음, 담당 외 수업
            ConflictError: 이미 체크인됨
        """
        student = await self._resolve_student(db, organization_id, data)
        local_now, tz = await self._studio_now(db, organization_id)
        today = local_now.date()

        slot: ScheduleClass | None = None
        if data.class_instance_id is not None:
            class_id = data.class_instance_id
            await class_repository.get_or_404(db, class_id, organization_id)
            todays = await self._todays_slots(db, organization_id, [class_id], today)
            in_window = [s for s in todays if self._in_window(s, today, local_now, tz)]
            slot = (in_window or todays or [None])[0]
        else:
            enrollments = await enrollment_repository.get_open_for_student(db, student.id)
            candidates = [e.class_instance_id for e in enrollments if e.status == "active"]
            candidates += [m.makeup_class_id for m in await makeup_repository.get_for_student_date(db, student.id, today)]
            todays = await self._todays_slots(db, organization_id, candidates, today)
            in_window = sorted(
                (s for s in todays if self._in_window(s, today, local_now, tz)),
                key=lambda s: s.start_time,
            )
            if not in_window:
                raise NotFoundError("지금 진행 중인 수업이 없습니다 (No class is in session for this student)")
            slot = in_window[0]
            class_id = slot.class_instance_id

        ensure_class_in_scope(scope, class_id)
        enrolled = await enrollment_repository.get_active(db, student.id, class_id)
        makeup = None if enrolled else await makeup_repository.get_scheduled(db, student.id, class_id, today)
        if enrolled is None and makeup is None:
            raise ForbiddenError("수강 중이거나 보강 예약된 수업이 아닙니다 (Student is not enrolled in this class)")

        record = await attendance_repository.get_record(db, student.id, class_id, today)
        if record is not None and record.check_in_time is not None:
            raise ConflictError("이미 체크인했습니다 (Student is already checked in)")

        status = "present"
        if slot is not None and local_now > combine_local(today, slot.start_time, tz) + TARDY_AFTER:
            status = "tardy"

        values: dict = {
            "status": status,
            "check_in_time": utcnow(),
            "schedule_class_id": slot.id if slot else None,
            "is_makeup": makeup is not None,
            "marked_by": current_user.id,
        }
        if record is None:
            record = await attendance_repository.create(db, {
                "organization_id": organization_id,
                "student_id": student.id,
                "class_instance_id": class_id,
                "attendance_date": today,
                **values,
            })
        else:
            record = await attendance_repository.update(db, record, values)
        if makeup is not None:
            await makeup_repository.update(db, makeup, {"status": "attended"})

        logger.info("Student %s checked in to %s (%s)", student.id, class_id, status)
        return (await self._records_to_dicts(db, [record]))[0]

    async def check_out(
        self,
        db: AsyncSession,
        organization_id: UUID,
        data: CheckOutRequest,
        scope: set[UUID] | None,
    ) -> dict:
        """체크아웃 — 종료 10분 전보다 이르면 left_early.

        Raises:
            NotFoundError: 체크인 기록 없음
            ConflictError: 이미 체크아웃됨
        """
        ensure_class_in_scope(scope, data.class_instance_id)
        local_now, tz = await self._studio_now(db, organization_id)
        attendance_date = data.attendance_date or local_now.date()

        record = await attendance_repository.get_record(db, data.student_id, data.class_instance_id, attendance_date)
        if record is None or record.organization_id != organization_id or record.check_in_time is None:
            raise NotFoundError("체크인 기록이 없습니다 (No check-in found for this class)")
        if record.check_out_time is not None:
            raise ConflictError("이미 체크아웃했습니다 (Student is already checked out)")

        update: dict = {"check_out_time": utcnow()}
        slot = await slot_repository.get_by_id(db, record.schedule_class_id) if record.schedule_class_id else None
        if slot is not None and attendance_date == local_now.date():
            if local_now < combine_local(attendance_date, slot.end_time, tz) - LEFT_EARLY_BEFORE:
                update["status"] = "left_early"
        record = await attendance_repository.update(db, record, update)
        return (await self._records_to_dicts(db, [record]))[0]

    # === 조회 (Queries) ===

    async def roster(
        self,
        db: AsyncSession,
        organization_id: UUID,
        class_instance_id: UUID,
        roster_date: date | None,
        scope: set[UUID] | None,
    ) -> dict:
        """수업 명단 — 수강생, 보강생, 해당 날짜 출석 기록.

        Class roster for one date: active students and makeup students
        with their attendance record, if any.
        """
        ensure_class_in_scope(scope, class_instance_id)
        cls = await class_repository.get_or_404(db, class_instance_id, organization_id)
        roster_date = roster_date or await self._studio_today(db, organization_id)

        enrollments = await enrollment_repository.get_active_for_class(db, cls.id)
        makeups = await makeup_repository.get_for_class_date(db, cls.id, roster_date)
        records = await attendance_repository.get_for_class_date(db, cls.id, roster_date)
        record_dicts = {UUID(r["student_id"]): r for r in await self._records_to_dicts(db, records)}
        students = await student_repository.get_by_ids(
            db, {e.student_id for e in enrollments} | {m.student_id for m in makeups}
        )

        entries: list[dict] = []
        for student_id, kind in [(e.student_id, "enrolled") for e in enrollments] + [
            (m.student_id, "makeup") for m in makeups
        ]:
            student = students.get(student_id)
            entries.append({
                "student_id": str(student_id),
                "student_name": student.full_name if student else None,
                "medical_notes": student.medical_notes if student else None,
                "roster_type": kind,
                "attendance": record_dicts.get(student_id),
            })
        entries.sort(key=lambda e: (e["student_name"] or "").lower())
        return {
            "class_instance_id": str(cls.id),
            "class_name": cls.name,
            "date": roster_date,
            "students": entries,
        }

    def _records_query(
        self,
        organization_id: UUID,
        scope: set[UUID] | None,
        start_date: date | None,
        end_date: date | None,
        class_instance_id: UUID | None,
        student_id: UUID | None,
        status: str | None,
    ) -> Select:
        if class_instance_id is not None:
            ensure_class_in_scope(scope, class_instance_id)
        return attendance_repository.filter_query(
            organization_id,
            start_date=start_date,
            end_date=end_date,
            class_instance_id=class_instance_id,
            student_id=student_id,
            status=status,
            class_ids=list(scope) if scope is not None else None,
        )

    async def list_records(
        self,
        db: AsyncSession,
        organization_id: UUID,
        scope: set[UUID] | None,
        start_date: date | None,
        end_date: date | None,
        class_instance_id: UUID | None,
        student_id: UUID | None,
        status: str | None,
        page: int,
        per_page: int,
    ) -> dict:
        query = self._records_query(organization_id, scope, start_date, end_date, class_instance_id, student_id, status)
        items, total = await attendance_repository.get_paginated(db, query, page, per_page)
        return page_envelope(await self._records_to_dicts(db, items), total, page, per_page)

    async def export_rows(
        self,
        db: AsyncSession,
        organization_id: UUID,
        scope: set[UUID] | None,
        start_date: date | None,
        end_date: date | None,
        class_instance_id: UUID | None,
        student_id: UUID | None,
        status: str | None,
    ) -> list[dict]:
        """내보내기용 전체 기록 — All matching records, unpaginated."""
        query = self._records_query(organization_id, scope, start_date, end_date, class_instance_id, student_id, status)
        records = (await db.execute(query)).scalars().all()
        return await self._records_to_dicts(db, records)

    def _export_row(self, r: dict) -> list:
        return [
            r["attendance_date"], r["student_name"], r["class_name"], r["dance_style"], r["status"],
            r["check_in_time"], r["check_out_time"], r["is_makeup"], r["notes"], r["marked_by_name"],
        ]

    def to_csv(self, rows: list[dict]) -> str:
        return build_csv(EXPORT_HEADERS, (self._export_row(r) for r in rows))

    def to_xlsx(self, rows: list[dict]) -> bytes:
        return build_xlsx([("Attendance", EXPORT_HEADERS, (self._export_row(r) for r in rows))])

    async def summary(
        self,
        db: AsyncSession,
        organization_id: UUID,
        scope: set[UUID] | None,
        start_date: date | None,
        end_date: date | None,
        class_instance_id: UUID | None = None,
    ) -> dict:
        """출석률 요약 — 수업별/학생별.

        Attendance rate per class and per student over a date range.
        Rate = attended (present, tardy, left_early) / recorded * 100.
        """
        start, end = validate_date_range(start_date, end_date)
        query = self._records_query(organization_id, scope, start, end, class_instance_id, None, None)
        records = (await db.execute(query)).scalars().all()

        by_class: dict[UUID, dict[str, int]] = {}
        by_student: dict[UUID, dict[str, int]] = {}
        for r in records:
            for bucket, key in ((by_class, r.class_instance_id), (by_student, r.student_id)):
                counts = bucket.setdefault(key, {"total": 0, "attended": 0, "absent": 0, "tardy": 0})
                counts["total"] += 1
                if r.status in ATTENDED_STATUSES:
                    counts["attended"] += 1
                if r.status == "absent":
                    counts["absent"] += 1
                if r.status == "tardy":
                    counts["tardy"] += 1

        classes = await class_repository.get_by_ids(db, set(by_class))
        students = await student_repository.get_by_ids(db, set(by_student))

        def rate(c: dict[str, int]) -> float:
            return round(c["attended"] / c["total"] * 100, 1) if c["total"] else 0.0

        total = len(records)
        attended = sum(1 for r in records if r.status in ATTENDED_STATUSES)
        return {
            "start_date": start,
            "end_date": end,
            "total_records": total,
            "attendance_rate": round(attended / total * 100, 1) if total else 0.0,
            "by_class": [
                {
                    "class_instance_id": str(cid),
                    "class_name": classes[cid].name if cid in classes else None,
                    **counts,
                    "attendance_rate": rate(counts),
                }
                for cid, counts in by_class.items()
            ],
            "by_student": [
                {
                    "student_id": str(sid),
                    "student_name": students[sid].full_name if sid in students else None,
                    **counts,
                    "attendance_rate": rate(counts),
                }
                for sid, counts in by_student.items()
            ],
        }

    # === 결석 및 보강 (Absences and makeups) ===

    async def list_absences(
        self,
        db: AsyncSession,
        organization_id: UUID,
        scope: set[UUID] | None,
        start_date: date | None,
        end_date: date | None,
        student_id: UUID | None,
        class_instance_id: UUID | None,
    ) -> list[dict]:
        if class_instance_id is not None:
            ensure_class_in_scope(scope, class_instance_id)
        query = absence_repository.filter_query(organization_id, start_date, end_date, student_id, class_instance_id)
        absences = [
            a for a in (await db.execute(query)).scalars().all()
            if scope is None or a.class_instance_id in scope
        ]
        students = await student_repository.get_by_ids(db, {a.student_id for a in absences})
        classes = await class_repository.get_by_ids(db, {a.class_instance_id for a in absences})
        return [self._absence_to_dict(a, students, classes) for a in absences]

    async def create_makeup(
        self,
        db: AsyncSession,
        organization_id: UUID,
        data: MakeupCreate,
        current_user: User,
        scope: set[UUID] | None,
    ) -> dict:
        """보강 예약 생성.

        Raises:
            BadRequestError: 같은 수업으로 보강, 이미 예약됨
        """
        ensure_class_in_scope(scope, data.makeup_class_id)
        await student_repository.get_or_404(db, data.student_id, organization_id)
        await class_repository.get_or_404(db, data.original_class_id, organization_id)
        await class_repository.get_or_404(db, data.makeup_class_id, organization_id)
        if data.original_class_id == data.makeup_class_id:
            raise BadRequestError("보강 수업은 원래 수업과 달라야 합니다 (Makeup class must differ from the original)")
        if await makeup_repository.get_scheduled(db, data.student_id, data.makeup_class_id, data.makeup_date):
            raise BadRequestError("이미 예약된 보강입니다 (Makeup already booked for this class and date)")
        if data.absence_id is not None:
            await absence_repository.get_or_404(db, data.absence_id, organization_id)

        booking = await makeup_repository.create(db, {
            "organization_id": organization_id,
            **data.model_dump(),
            "status": "scheduled",
            "created_by": current_user.id,
        })
        return self._makeup_to_dict(booking)

    async def update_makeup(
        self,
        db: AsyncSession,
        makeup_id: UUID,
        organization_id: UUID,
        data: MakeupUpdate,
        scope: set[UUID] | None,
    ) -> dict:
        booking = await makeup_repository.get_or_404(db, makeup_id, organization_id)
        ensure_class_in_scope(scope, booking.makeup_class_id)
        booking = await makeup_repository.update(db, booking, data.model_dump(exclude_unset=True))
        return self._makeup_to_dict(booking)

    # === 보호자 앱 (Parent app) ===

    async def _ensure_linked(self, db: AsyncSession, guardian: Guardian, student_id: UUID) -> None:
        student = await student_repository.get_by_id(db, student_id, guardian.organization_id)
        if student is None or not await guardian_repository.is_linked(db, guardian.id, student_id):
            raise ForbiddenError("본인 자녀의 정보만 조회할 수 있습니다 (You can only access your own students)")

    async def my_attendance(
        self,
        db: AsyncSession,
        guardian: Guardian,
        student_id: UUID,
        start_date: date | None,
        end_date: date | None,
    ) -> dict:
        """자녀 출석 기록 및 출석률."""
        await self._ensure_linked(db, guardian, student_id)
        query = attendance_repository.filter_query(
            guardian.organization_id, start_date=start_date, end_date=end_date, student_id=student_id
        )
        records = (await db.execute(query)).scalars().all()
        attended = sum(1 for r in records if r.status in ATTENDED_STATUSES)
        return {
            "student_id": str(student_id),
            "total": len(records),
            "attended": attended,
            "attendance_rate": round(attended / len(records) * 100, 1) if records else 0.0,
            "records": await self._records_to_dicts(db, records),
        }

    async def report_absence(
        self,
        db: AsyncSession,
        guardian: Guardian,
        data: AbsenceReport,
        current_user: User,
    ) -> dict:
        """보호자 결석 사전 신고 — 인정 결석(is_excused)으로 기록.

        Raises:
            ForbiddenError: 본인 자녀 아님
            BadRequestError: 과거 날짜, 수강 중이 아닌 수업
            DuplicateError: 이미 신고된 결석
        """
        await self._ensure_linked(db, guardian, data.student_id)
        org_id = guardian.organization_id
        if data.absence_date < await self._studio_today(db, org_id):
            raise BadRequestError("지난 날짜는 신고할 수 없습니다 (Absence date is in the past)")
        if await enrollment_repository.get_active(db, data.student_id, data.class_instance_id) is None:
            raise BadRequestError("수강 중인 수업이 아닙니다 (Student is not enrolled in this class)")
        if await absence_repository.get_for(db, data.student_id, data.class_instance_id, data.absence_date):
            raise DuplicateError("이미 신고된 결석입니다 (Absence already reported)")

        absence = await absence_repository.create(db, {
            "organization_id": org_id,
            "student_id": data.student_id,
            "class_instance_id": data.class_instance_id,
            "absence_date": data.absence_date,
            "reason": data.reason,
            "is_excused": True,
            "reported_by": current_user.id,
        })
        students = await student_repository.get_by_ids(db, {absence.student_id})
        classes = await class_repository.get_by_ids(db, {absence.class_instance_id})
        return self._absence_to_dict(absence, students, classes)


# 싱글턴 인스턴스 — Singleton instance
attendance_service: AttendanceService = AttendanceService()
