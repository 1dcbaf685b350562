"""충돌 검사 순수 함수 테스트.

Unit tests for the enrollment validator and the slot conflict checker.
"""

import uuid
from datetime import date, time

from app.utils.schedule_conflicts import (
    ExistingEnrollment,
    PlacedSlot,
    TargetClass,
    TimeSlot,
    check_age_requirements,
    check_slot_conflicts,
    slots_overlap,
    validate_enrollment_request,
)

MON = 1
TUE = 2
TODAY = date(2026, 9, 1)


def _slot(day: int, start: str, end: str) -> TimeSlot:
    return TimeSlot(day, time.fromisoformat(start), time.fromisoformat(end))


def _existing(name: str, *slots: TimeSlot, status: str = "active") -> ExistingEnrollment:
    return ExistingEnrollment(class_instance_id=uuid.uuid4(), class_name=name, status=status, slots=list(slots))


def _target(*slots: TimeSlot, **kwargs) -> TargetClass:
    return TargetClass(class_instance_id=uuid.uuid4(), class_name="Jazz I", slots=list(slots), **kwargs)


class TestSlotsOverlap:
    def test_overlap_same_day(self):
        assert slots_overlap(_slot(MON, "16:00", "17:00"), _slot(MON, "16:30", "17:30"))

    def test_back_to_back_is_not_overlap(self):
        assert not slots_overlap(_slot(MON, "16:00", "17:00"), _slot(MON, "17:00", "18:00"))

    def test_different_day(self):
        assert not slots_overlap(_slot(MON, "16:00", "17:00"), _slot(TUE, "16:00", "17:00"))


class TestEnrollmentValidation:
    def test_clean_enrollment(self):
        result = validate_enrollment_request(None, [], _target(_slot(MON, "16:00", "17:00")), TODAY)
        assert result.outcome == "enroll"
        assert result.conflicts == []

    def test_time_overlap_rejects(self):
        ballet = _existing("Ballet I", _slot(MON, "16:00", "17:00"))
        result = validate_enrollment_request(None, [ballet], _target(_slot(MON, "16:30", "17:30")), TODAY)
        assert result.outcome == "reject"
        assert [c.type for c in result.conflicts] == ["time_overlap"]
        assert "Monday" in result.conflicts[0].message

    def test_dropped_enrollment_is_ignored(self):
        ballet = _existing("Ballet I", _slot(MON, "16:00", "17:00"), status="dropped")
        result = validate_enrollment_request(None, [ballet], _target(_slot(MON, "16:30", "17:30")), TODAY)
        assert result.outcome == "enroll"

    def test_waitlisted_enrollment_still_conflicts(self):
        ballet = _existing("Ballet I", _slot(MON, "16:00", "17:00"), status="waitlist")
        result = validate_enrollment_request(None, [ballet], _target(_slot(MON, "16:30", "17:30")), TODAY)
        assert result.outcome == "reject"

    def test_back_to_back_is_warning_only(self):
        ballet = _existing("Ballet I", _slot(MON, "16:00", "17:00"))
        result = validate_enrollment_request(None, [ballet], _target(_slot(MON, "17:00", "18:00")), TODAY)
        assert result.outcome == "enroll"
        assert [w.type for w in result.warnings] == ["back_to_back"]

    def test_duplicate_enrollment(self):
        target = _target(_slot(MON, "16:00", "17:00"))
        same = ExistingEnrollment(
            class_instance_id=target.class_instance_id, class_name="Jazz I", status="active", slots=target.slots
        )
        result = validate_enrollment_request(None, [same], target, TODAY)
        assert [c.type for c in result.conflicts] == ["duplicate_enrollment"]

    def test_full_class_goes_to_waitlist(self):
        target = _target(_slot(MON, "16:00", "17:00"), max_students=10, active_count=10)
        result = validate_enrollment_request(None, [], target, TODAY)
        assert result.can_enroll
        assert result.requires_waitlist
        assert result.outcome == "waitlist"
        assert any(w.type == "class_full" for w in result.warnings)

    def test_same_day_warning(self):
        a = _existing("Tap", _slot(MON, "14:00", "15:00"))
        b = _existing("Hip Hop", _slot(MON, "15:00", "15:45"))
        result = validate_enrollment_request(None, [a, b], _target(_slot(MON, "18:00", "19:00")), TODAY)
        assert any(w.type == "same_day_multiple" for w in result.warnings)

    def test_five_active_classes_warning(self):
        existing = [_existing(f"Class {i}", _slot(TUE, f"1{i}:00", f"1{i}:30")) for i in range(5)]
        result = validate_enrollment_request(None, existing, _target(_slot(MON, "16:00", "17:00")), TODAY)
        assert any(w.type == "max_classes_exceeded" for w in result.warnings)


class TestAgeRequirements:
    def test_no_birth_date_skips_check(self):
        assert check_age_requirements(None, 5, 7, TODAY) == []

    def test_too_young(self):
        issues = check_age_requirements(date(2022, 9, 1), 6, None, TODAY)
        assert [i.type for i in issues] == ["age_too_young"]

    def test_too_old(self):
        issues = check_age_requirements(date(2010, 1, 1), None, 12, TODAY)
        assert [i.type for i in issues] == ["age_too_old"]

    def test_bounds_are_inclusive(self):
        assert check_age_requirements(date(2018, 1, 1), 8, 8, TODAY) == []


class TestSlotConflicts:
    def test_room_and_teacher_conflicts(self):
        room, teacher = uuid.uuid4(), uuid.uuid4()
        placed = [PlacedSlot(uuid.uuid4(), "Ballet I", _slot(MON, "16:00", "17:00"), room_id=room, teacher_id=teacher)]
        issues = check_slot_conflicts(_slot(MON, "16:30", "17:30"), room, teacher, placed)
        assert {i.type for i in issues} == {"studio_conflict", "teacher_conflict"}

    def test_editing_slot_ignores_itself(self):
        room = uuid.uuid4()
        slot_id = uuid.uuid4()
        placed = [PlacedSlot(slot_id, "Ballet I", _slot(MON, "16:00", "17:00"), room_id=room)]
        assert check_slot_conflicts(_slot(MON, "16:15", "17:15"), room, None, placed, ignore_slot_id=slot_id) == []

    def test_outside_availability(self):
        teacher = uuid.uuid4()
        availability = [_slot(MON, "15:00", "18:00")]
        issues = check_slot_conflicts(_slot(MON, "17:30", "18:30"), None, teacher, [], availability=availability)
        assert [i.type for i in issues] == ["outside_availability"]

    def test_no_availability_that_day(self):
        teacher = uuid.uuid4()
        availability = [_slot(TUE, "15:00", "18:00")]
        issues = check_slot_conflicts(_slot(MON, "16:00", "17:00"), None, teacher, [], availability=availability)
        assert [i.type for i in issues] == ["no_availability"]

    def test_no_availability_configured_means_unrestricted(self):
        issues = check_slot_conflicts(_slot(MON, "16:00", "17:00"), None, uuid.uuid4(), [], availability=[])
        assert issues == []
