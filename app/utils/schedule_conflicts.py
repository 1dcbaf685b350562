"""스케줄 충돌 검사 — 순수 함수 모듈.

Schedule conflict checking (pure functions, no I/O).

Two checkers live here:
    - 수강 신청 검증 (Enrollment validation): a student's current
      active/waitlisted classes against a candidate class slot, plus age
      bounds and capacity. Produces hard conflicts, soft warnings and an
      outcome of ``enroll``, ``waitlist`` or ``reject``.
    - 시간표 편성 검증 (Slot validation): a new/edited schedule slot
      against the room's and teacher's other slots and the teacher's
      availability windows.

Intervals are half-open: a class ending at 17:00 and one starting at
17:00 do not overlap (back-to-back).
"""

from dataclasses import asdict, dataclass, field
from datetime import date, time
from typing import Any
from uuid import UUID

from app.utils.timeutil import age_in_years, day_name

# 경고 기준 — Warning thresholds
SAME_DAY_WARNING_THRESHOLD: int = 2
MAX_ACTIVE_CLASSES_WARNING: int = 5


@dataclass(frozen=True)
class TimeSlot:
    """요일 + 시작/종료 시각 (day 0=Sunday)."""

    day_of_week: int
    start_time: time
    end_time: time


@dataclass
class ExistingEnrollment:
    """학생의 기존 수강 (active / waitlist) 과 그 시간표."""

    class_instance_id: UUID
    class_name: str
    status: str
    slots: list[TimeSlot] = field(default_factory=list)


@dataclass
class TargetClass:
    """신청 대상 수업 — 시간표, 연령 제한, 정원."""

    class_instance_id: UUID
    class_name: str
    slots: list[TimeSlot] = field(default_factory=list)
    min_age: int | None = None
    max_age: int | None = None
    max_students: int | None = None
    active_count: int = 0


@dataclass
class Issue:
    """충돌 또는 경고 한 건 — One conflict or warning."""

    type: str
    message: str
    severity: str = "error"
    class_instance_id: str | None = None
    class_name: str | None = None
    day_of_week: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass
class EnrollmentValidation:
    """수강 신청 검증 결과."""

    conflicts: list[Issue] = field(default_factory=list)
    warnings: list[Issue] = field(default_factory=list)
    requires_waitlist: bool = False

    @property
    def can_enroll(self) -> bool:
        return not self.conflicts

    @property
    def outcome(self) -> str:
        if self.conflicts:
            return "reject"
        if self.requires_waitlist:
            return "waitlist"
        return "enroll"

    def to_dict(self) -> dict[str, Any]:
        return {
            "can_enroll": self.can_enroll,
            "requires_waitlist": self.requires_waitlist,
            "outcome": self.outcome,
            "conflicts": [c.to_dict() for c in self.conflicts],
            "warnings": [w.to_dict() for w in self.warnings],
        }


def slots_overlap(a: TimeSlot, b: TimeSlot) -> bool:
    """같은 요일에 시간이 겹치는지 (끝=시작은 겹침 아님)."""
    if a.day_of_week != b.day_of_week:
        return False
    return a.start_time < b.end_time and a.end_time > b.start_time


def slots_back_to_back(a: TimeSlot, b: TimeSlot) -> bool:
    """같은 요일에 쉬는 시간 없이 이어지는지."""
    if a.day_of_week != b.day_of_week:
        return False
    return a.start_time == b.end_time or a.end_time == b.start_time


def _fmt(t: time) -> str:
    return t.strftime("%H:%M")


def check_student_schedule_conflicts(
    existing: list[ExistingEnrollment],
    target: TargetClass,
) -> tuple[list[Issue], list[Issue]]:
    """학생 시간표 충돌 검사.

    Compare the student's active/waitlisted classes with the target class.

    Returns:
        tuple[list[Issue], list[Issue]]: (conflicts, warnings)
    """
    conflicts: list[Issue] = []
    warnings: list[Issue] = []
    relevant = [e for e in existing if e.status in ("active", "waitlist")]

    for enrollment in relevant:
        if enrollment.class_instance_id == target.class_instance_id:
            conflicts.append(Issue(
                type="duplicate_enrollment",
                message=f"Student is already enrolled in {target.class_name}",
                class_instance_id=str(enrollment.class_instance_id),
                class_name=enrollment.class_name,
            ))
            continue

        for new_slot in target.slots:
            for slot in enrollment.slots:
                if slots_overlap(new_slot, slot):
                    conflicts.append(Issue(
                        type="time_overlap",
                        message=(
                            f"{target.class_name} ({_fmt(new_slot.start_time)}-{_fmt(new_slot.end_time)}) overlaps "
                            f"{enrollment.class_name} ({_fmt(slot.start_time)}-{_fmt(slot.end_time)}) "
                            f"on {day_name(slot.day_of_week)}"
                        ),
                        class_instance_id=str(enrollment.class_instance_id),
                        class_name=enrollment.class_name,
                        day_of_week=slot.day_of_week,
                    ))
                elif slots_back_to_back(new_slot, slot):
                    warnings.append(Issue(
                        type="back_to_back",
                        severity="warning",
                        message=(
                            f"{target.class_name} runs back-to-back with {enrollment.class_name} "
                            f"on {day_name(slot.day_of_week)} with no break"
                        ),
                        class_instance_id=str(enrollment.class_instance_id),
                        class_name=enrollment.class_name,
                        day_of_week=slot.day_of_week,
                    ))

    # 같은 요일 다수 수업 경고 — several classes already on the same day
    for day in sorted({s.day_of_week for s in target.slots}):
        same_day = [
            e for e in relevant
            if e.class_instance_id != target.class_instance_id
            and any(s.day_of_week == day for s in e.slots)
        ]
        if len(same_day) >= SAME_DAY_WARNING_THRESHOLD:
            warnings.append(Issue(
                type="same_day_multiple",
                severity="warning",
                message=f"Student already has {len(same_day)} classes on {day_name(day)}",
                day_of_week=day,
            ))

    active_count = sum(1 for e in relevant if e.status == "active")
    if active_count >= MAX_ACTIVE_CLASSES_WARNING:
        warnings.append(Issue(
            type="max_classes_exceeded",
            severity="warning",
            message=f"Student is already enrolled in {active_count} classes",
        ))

    return conflicts, warnings


def check_age_requirements(
    birth_date: date | None,
    min_age: int | None,
    max_age: int | None,
    on: date,
) -> list[Issue]:
    """연령 제한 검사 — 생년월일이 없으면 검사하지 않음."""
    if birth_date is None:
        return []
    age = age_in_years(birth_date, on)
    issues: list[Issue] = []
    if min_age is not None and age < min_age:
        issues.append(Issue(
            type="age_too_young",
            message=f"Student is {age}; minimum age for this class is {min_age}",
        ))
    if max_age is not None and age > max_age:
        issues.append(Issue(
            type="age_too_old",
            message=f"Student is {age}; maximum age for this class is {max_age}",
        ))
    return issues


def is_class_full(max_students: int | None, active_count: int) -> bool:
    """정원 초과 여부 — 정원 미설정 시 무제한."""
    if max_students is None:
        return False
    return active_count >= max_students


def validate_enrollment_request(
    birth_date: date | None,
    existing: list[ExistingEnrollment],
    target: TargetClass,
    today: date,
) -> EnrollmentValidation:
    """수강 신청 종합 검증.

    Validate a candidate enrollment.

    Hard conflicts (reject): duplicate enrollment, time overlap, age outside
    [min_age, max_age]. A full class does not reject; it routes the
    enrollment to the waitlist. Warnings never block.

    Args:
        birth_date: 학생 생년월일 (Student date of birth, optional)
        existing: 학생의 기존 수강 목록 (Current enrollments with their slots)
        target: 신청 대상 수업 (Candidate class)
        today: 연령 계산 기준일 (Reference date for the age check)

    Returns:
        EnrollmentValidation: 검증 결과 (conflicts, warnings, waitlist flag)
    """
    conflicts, warnings = check_student_schedule_conflicts(existing, target)
    conflicts.extend(check_age_requirements(birth_date, target.min_age, target.max_age, today))

    result = EnrollmentValidation(conflicts=conflicts, warnings=warnings)
    if is_class_full(target.max_students, target.active_count):
        result.requires_waitlist = True
        result.warnings.append(Issue(
            type="class_full",
            severity="warning",
            message=f"{target.class_name} is full; the student will be placed on the waitlist",
            class_instance_id=str(target.class_instance_id),
            class_name=target.class_name,
        ))
    return result


# ---------------------------------------------------------------------------
# 시간표 편성 검증 — Slot validation for schedule administration
# ---------------------------------------------------------------------------

@dataclass
class PlacedSlot:
    """이미 편성된 수업 슬롯."""

    slot_id: UUID
    class_name: str
    slot: TimeSlot
    room_id: UUID | None = None
    teacher_id: UUID | None = None


def check_slot_conflicts(
    candidate: TimeSlot,
    room_id: UUID | None,
    teacher_id: UUID | None,
    placed: list[PlacedSlot],
    availability: list[TimeSlot] | None = None,
    ignore_slot_id: UUID | None = None,
) -> list[Issue]:
    """슬롯 편성 충돌 검사.

    Check a candidate slot against the other slots of the same schedule.

    - 같은 강의실 + 시간 겹침 → ``studio_conflict``
    - 같은 강사 + 시간 겹침 → ``teacher_conflict``
    - 강사 가용 시간 밖 → ``outside_availability`` / ``no_availability``
      (only when the teacher has any availability configured)

    Args:
        candidate: 검사할 슬롯 (Slot being created or edited)
        room_id: 강의실 ID (Room of the candidate)
        teacher_id: 강사 ID (Teacher of the candidate)
        placed: 같은 시간표의 기존 슬롯 (Other slots in the schedule)
        availability: 강사 가용 시간 목록 (Teacher availability windows)
        ignore_slot_id: 수정 시 자기 자신 제외 (Slot id excluded when editing)

    Returns:
        list[Issue]: 충돌 목록 (Empty when the slot is clear)
    """
    issues: list[Issue] = []
    for other in placed:
        if ignore_slot_id is not None and other.slot_id == ignore_slot_id:
            continue
        if not slots_overlap(candidate, other.slot):
            continue
        window = f"{_fmt(other.slot.start_time)}-{_fmt(other.slot.end_time)}"
        if room_id is not None and other.room_id == room_id:
            issues.append(Issue(
                type="studio_conflict",
                message=f"Room is already booked for {other.class_name} ({window}) on {day_name(candidate.day_of_week)}",
                class_name=other.class_name,
                day_of_week=candidate.day_of_week,
            ))
        if teacher_id is not None and other.teacher_id == teacher_id:
            issues.append(Issue(
                type="teacher_conflict",
                message=f"Teacher is already teaching {other.class_name} ({window}) on {day_name(candidate.day_of_week)}",
                class_name=other.class_name,
                day_of_week=candidate.day_of_week,
            ))

    if teacher_id is not None and availability:
        same_day = [a for a in availability if a.day_of_week == candidate.day_of_week]
        if not same_day:
            issues.append(Issue(
                type="no_availability",
                message=f"Teacher has no availability on {day_name(candidate.day_of_week)}",
                day_of_week=candidate.day_of_week,
            ))
        elif not any(a.start_time <= candidate.start_time and candidate.end_time <= a.end_time for a in same_day):
            issues.append(Issue(
                type="outside_availability",
                message=(
                    f"{_fmt(candidate.start_time)}-{_fmt(candidate.end_time)} is outside the teacher's "
                    f"availability on {day_name(candidate.day_of_week)}"
                ),
                day_of_week=candidate.day_of_week,
            ))
    return issues


AVAILABILITY_ISSUES: frozenset[str] = frozenset({"no_availability", "outside_availability"})
