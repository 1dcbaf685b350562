"""수강 등록 API 테스트 — 시간 충돌, 대기자, 연령 제한, 수강 신청 승인.

Enrollment API tests — Overlap rejection, waitlisting of full classes,
age bounds, parent enrollment and the request/approval workflow.
"""

from datetime import date
from uuid import UUID

from httpx import AsyncClient

from tests.conftest import auth_header

CLASSES = "/api/v1/admin/classes"
SCHEDULES = "/api/v1/admin/schedules"
ENROLLMENTS = "/api/v1/admin/enrollments"
REQUESTS = "/api/v1/admin/enrollment-requests"
MY_ENROLLMENTS = "/api/v1/app/my/enrollments"
MY_REQUESTS = "/api/v1/app/my/enrollment-requests"


async def _active_schedule(client: AsyncClient, token: str) -> str:
    today = date.today()
    res = await client.post(SCHEDULES, json={
        "name": "Fall Term",
        "start_date": date(today.year, 1, 1).isoformat(),
        "end_date": date(today.year, 12, 31).isoformat(),
        "is_active": True,
    }, headers=auth_header(token))
    assert res.status_code == 201
    return res.json()["id"]


async def _class_with_slot(
    client: AsyncClient,
    token: str,
    schedule_id: str,
    name: str,
    day: int,
    start: str,
    end: str,
    **class_fields,
) -> str:
    res = await client.post(CLASSES, json={"name": name, **class_fields}, headers=auth_header(token))
    assert res.status_code == 201
    class_id = res.json()["id"]
    res = await client.post(f"{SCHEDULES}/{schedule_id}/classes", json={
        "class_instance_id": class_id,
        "day_of_week": day,
        "start_time": start,
        "end_time": end,
    }, headers=auth_header(token))
    assert res.status_code == 201
    return class_id


class TestStaffEnrollment:
    """스태프 직접 등록 테스트."""

    async def test_enroll_success(self, client: AsyncClient, admin_token, student):
        schedule_id = await _active_schedule(client, admin_token)
        class_id = await _class_with_slot(client, admin_token, schedule_id, "Ballet I", 1, "16:00", "17:00")

        res = await client.post(ENROLLMENTS, json={
            "student_id": str(student.id),
            "class_instance_id": class_id,
        }, headers=auth_header(admin_token))
        assert res.status_code == 201
        data = res.json()
        assert data["status"] == "active"
        assert data["class_name"] == "Ballet I"

    async def test_overlapping_class_rejected(self, client: AsyncClient, admin_token, student):
        schedule_id = await _active_schedule(client, admin_token)
        ballet = await _class_with_slot(client, admin_token, schedule_id, "Ballet I", 1, "16:00", "17:00")
        jazz = await _class_with_slot(client, admin_token, schedule_id, "Jazz I", 1, "16:30", "17:30")

        res = await client.post(ENROLLMENTS, json={
            "student_id": str(student.id), "class_instance_id": ballet,
        }, headers=auth_header(admin_token))
        assert res.status_code == 201

        res = await client.post(ENROLLMENTS, json={
            "student_id": str(student.id), "class_instance_id": jazz,
        }, headers=auth_header(admin_token))
        assert res.status_code == 400
        detail = res.json()["detail"]
        assert [c["type"] for c in detail["conflicts"]] == ["time_overlap"]

    async def test_back_to_back_returns_warning(self, client: AsyncClient, admin_token, student):
        schedule_id = await _active_schedule(client, admin_token)
        ballet = await _class_with_slot(client, admin_token, schedule_id, "Ballet I", 1, "16:00", "17:00")
        jazz = await _class_with_slot(client, admin_token, schedule_id, "Jazz I", 1, "17:00", "18:00")

        await client.post(ENROLLMENTS, json={
            "student_id": str(student.id), "class_instance_id": ballet,
        }, headers=auth_header(admin_token))
        res = await client.post(ENROLLMENTS, json={
            "student_id": str(student.id), "class_instance_id": jazz,
        }, headers=auth_header(admin_token))
        assert res.status_code == 201
        assert [w["type"] for w in res.json()["warnings"]] == ["back_to_back"]

    async def test_full_class_goes_to_waitlist(self, client: AsyncClient, db, org, admin_token, student):
        from app.models.people import Student

        schedule_id = await _active_schedule(client, admin_token)
        class_id = await _class_with_slot(
            client, admin_token, schedule_id, "Tap", 3, "10:00", "11:00", max_students=1
        )
        other = Student(organization_id=org.id, first_name="Other", last_name="Kid")
        db.add(other)
        await db.flush()

        first = await client.post(ENROLLMENTS, json={
            "student_id": str(other.id), "class_instance_id": class_id,
        }, headers=auth_header(admin_token))
        assert first.json()["status"] == "active"

        second = await client.post(ENROLLMENTS, json={
            "student_id": str(student.id), "class_instance_id": class_id,
        }, headers=auth_header(admin_token))
        assert second.status_code == 201
        assert second.json()["status"] == "waitlist"

        # 정원이 찬 상태에서 대기자 승격 불가
        res = await client.patch(f"{ENROLLMENTS}/{second.json()['id']}", json={
            "status": "active",
        }, headers=auth_header(admin_token))
        assert res.status_code == 400

        # 기존 학생 드롭 후 승격 가능
        await client.patch(f"{ENROLLMENTS}/{first.json()['id']}", json={
            "status": "dropped",
        }, headers=auth_header(admin_token))
        res = await client.patch(f"{ENROLLMENTS}/{second.json()['id']}", json={
            "status": "active",
        }, headers=auth_header(admin_token))
        assert res.status_code == 200
        assert res.json()["status"] == "active"

    async def test_age_bounds(self, client: AsyncClient, admin_token, student):
        schedule_id = await _active_schedule(client, admin_token)
        class_id = await _class_with_slot(
            client, admin_token, schedule_id, "Teen Jazz", 5, "18:00", "19:00", min_age=13, max_age=17
        )
        res = await client.post(f"{ENROLLMENTS}/validate", json={
            "student_id": str(student.id), "class_instance_id": class_id,
        }, headers=auth_header(admin_token))
        assert res.status_code == 200
        data = res.json()
        assert data["outcome"] == "reject"
        assert data["conflicts"][0]["type"] == "age_too_young"

    async def test_cancelled_class_not_open(self, client: AsyncClient, admin_token, student):
        res = await client.post(CLASSES, json={"name": "Old", "status": "cancelled"}, headers=auth_header(admin_token))
        res = await client.post(ENROLLMENTS, json={
            "student_id": str(student.id), "class_instance_id": res.json()["id"],
        }, headers=auth_header(admin_token))
        assert res.status_code == 400

    async def test_teacher_cannot_enroll(self, client: AsyncClient, teacher_token, student):
        res = await client.post(ENROLLMENTS, json={
            "student_id": str(student.id), "class_instance_id": str(student.id),
        }, headers=auth_header(teacher_token))
        assert res.status_code == 403


class TestParentEnrollment:
    """보호자 앱 등록/신청 테스트."""

    async def test_parent_enrolls_own_child(self, client: AsyncClient, admin_token, parent_token, student):
        schedule_id = await _active_schedule(client, admin_token)
        class_id = await _class_with_slot(client, admin_token, schedule_id, "Ballet I", 1, "16:00", "17:00")

        res = await client.post(MY_ENROLLMENTS, json={
            "student_id": str(student.id), "class_instance_id": class_id,
        }, headers=auth_header(parent_token))
        assert res.status_code == 201

        listed = await client.get(MY_ENROLLMENTS, headers=auth_header(parent_token))
        assert [e["class_instance_id"] for e in listed.json()] == [class_id]

        res = await client.post(MY_ENROLLMENTS, json={
            "student_id": str(student.id), "class_instance_id": class_id,
        }, headers=auth_header(parent_token))
        assert res.status_code == 400

    async def test_parent_cannot_enroll_other_child(self, client: AsyncClient, db, org, admin_token, parent_token):
        from app.models.people import Student

        stranger = Student(organization_id=org.id, first_name="Not", last_name="Mine")
        db.add(stranger)
        await db.flush()
        schedule_id = await _active_schedule(client, admin_token)
        class_id = await _class_with_slot(client, admin_token, schedule_id, "Ballet I", 1, "16:00", "17:00")

        res = await client.post(MY_ENROLLMENTS, json={
            "student_id": str(stranger.id), "class_instance_id": class_id,
        }, headers=auth_header(parent_token))
        assert res.status_code == 403

    async def test_request_then_approve(self, client: AsyncClient, admin_token, parent_token, student):
        schedule_id = await _active_schedule(client, admin_token)
        class_id = await _class_with_slot(client, admin_token, schedule_id, "Hip Hop", 2, "17:00", "18:00")

        res = await client.post(MY_REQUESTS, json={
            "student_id": str(student.id), "class_instance_id": class_id,
        }, headers=auth_header(parent_token))
        assert res.status_code == 201
        request_id = res.json()["id"]
        assert res.json()["status"] == "pending"

        dup = await client.post(MY_REQUESTS, json={
            "student_id": str(student.id), "class_instance_id": class_id,
        }, headers=auth_header(parent_token))
        assert dup.status_code == 400

        res = await client.patch(f"{REQUESTS}/{request_id}", json={"action": "approve"}, headers=auth_header(admin_token))
        assert res.status_code == 200
        data = res.json()
        assert data["status"] == "approved"
        assert data["enrollment"]["status"] == "active"
        assert UUID(data["enrollment"]["id"])

        again = await client.patch(f"{REQUESTS}/{request_id}", json={"action": "approve"}, headers=auth_header(admin_token))
        assert again.status_code == 400

    async def test_deny_requires_reason(self, client: AsyncClient, admin_token, parent_token, student):
        schedule_id = await _active_schedule(client, admin_token)
        class_id = await _class_with_slot(client, admin_token, schedule_id, "Hip Hop", 2, "17:00", "18:00")
        res = await client.post(MY_REQUESTS, json={
            "student_id": str(student.id), "class_instance_id": class_id,
        }, headers=auth_header(parent_token))
        request_id = res.json()["id"]

        res = await client.patch(f"{REQUESTS}/{request_id}", json={"action": "deny"}, headers=auth_header(admin_token))
        assert res.status_code == 400

        res = await client.patch(f"{REQUESTS}/{request_id}", json={
            "action": "deny", "denial_reason": "Class is for advanced students",
        }, headers=auth_header(admin_token))
        assert res.status_code == 200
        assert res.json()["status"] == "denied"


class TestEnrollmentStatusChanges:
    """수강 상태 변경 시 재검증 테스트."""

    async def test_reactivating_dropped_enrollment_with_open_duplicate(self, client: AsyncClient, admin_token, student):
        schedule_id = await _active_schedule(client, admin_token)
        ballet = await _class_with_slot(client, admin_token, schedule_id, "Ballet I", 1, "16:00", "17:00")
        body = {"student_id": str(student.id), "class_instance_id": ballet}

        first = await client.post(ENROLLMENTS, json=body, headers=auth_header(admin_token))
        await client.patch(f"{ENROLLMENTS}/{first.json()['id']}", json={"status": "dropped"}, headers=auth_header(admin_token))
        second = await client.post(ENROLLMENTS, json=body, headers=auth_header(admin_token))
        assert second.status_code == 201

        res = await client.patch(f"{ENROLLMENTS}/{first.json()['id']}", json={"status": "active"}, headers=auth_header(admin_token))
        assert res.status_code == 400

        listed = await client.get(ENROLLMENTS, params={
            "student_id": str(student.id), "status": "active",
        }, headers=auth_header(admin_token))
        assert [e["id"] for e in listed.json()["items"]] == [second.json()["id"]]

    async def test_reactivating_into_overlap_rejected(self, client: AsyncClient, admin_token, student):
        schedule_id = await _active_schedule(client, admin_token)
        ballet = await _class_with_slot(client, admin_token, schedule_id, "Ballet I", 1, "16:00", "17:00")
        jazz = await _class_with_slot(client, admin_token, schedule_id, "Jazz I", 1, "16:30", "17:30")

        old = await client.post(ENROLLMENTS, json={
            "student_id": str(student.id), "class_instance_id": ballet,
        }, headers=auth_header(admin_token))
        await client.patch(f"{ENROLLMENTS}/{old.json()['id']}", json={"status": "completed"}, headers=auth_header(admin_token))
        res = await client.post(ENROLLMENTS, json={
            "student_id": str(student.id), "class_instance_id": jazz,
        }, headers=auth_header(admin_token))
        assert res.status_code == 201

        res = await client.patch(f"{ENROLLMENTS}/{old.json()['id']}", json={"status": "waitlist"}, headers=auth_header(admin_token))
        assert res.status_code == 400
        assert [c["type"] for c in res.json()["detail"]["conflicts"]] == ["time_overlap"]

    async def test_reactivating_without_conflicts(self, client: AsyncClient, admin_token, student):
        schedule_id = await _active_schedule(client, admin_token)
        ballet = await _class_with_slot(client, admin_token, schedule_id, "Ballet I", 1, "16:00", "17:00")
        res = await client.post(ENROLLMENTS, json={
            "student_id": str(student.id), "class_instance_id": ballet,
        }, headers=auth_header(admin_token))
        enrollment_id = res.json()["id"]

        await client.patch(f"{ENROLLMENTS}/{enrollment_id}", json={"status": "dropped"}, headers=auth_header(admin_token))
        res = await client.patch(f"{ENROLLMENTS}/{enrollment_id}", json={"status": "active"}, headers=auth_header(admin_token))
        assert res.status_code == 200
        assert res.json()["status"] == "active"
        assert res.json()["dropped_at"] is None


class TestEnrollmentRequests:
    """수강 신청 승인 시 재검증 테스트."""

    async def test_approve_rechecks_overlap(self, client: AsyncClient, admin_token, parent_token, student):
        schedule_id = await _active_schedule(client, admin_token)
        jazz = await _class_with_slot(client, admin_token, schedule_id, "Jazz I", 1, "16:30", "17:30")
        ballet = await _class_with_slot(client, admin_token, schedule_id, "Ballet I", 1, "16:00", "17:00")

        res = await client.post(MY_REQUESTS, json={
            "student_id": str(student.id), "class_instance_id": jazz,
        }, headers=auth_header(parent_token))
        assert res.status_code == 201
        request_id = res.json()["id"]

        # 신청 이후 겹치는 수업에 직접 등록됨
        res = await client.post(ENROLLMENTS, json={
            "student_id": str(student.id), "class_instance_id": ballet,
        }, headers=auth_header(admin_token))
        assert res.status_code == 201

        res = await client.patch(f"{REQUESTS}/{request_id}", json={"action": "approve"}, headers=auth_header(admin_token))
        assert res.status_code == 400
        assert [c["type"] for c in res.json()["detail"]["conflicts"]] == ["time_overlap"]

        pending = await client.get(REQUESTS, params={"status": "pending"}, headers=auth_header(admin_token))
        assert [r["id"] for r in pending.json()["items"]] == [request_id]
        jazz_rows = await client.get(ENROLLMENTS, params={"class_instance_id": jazz}, headers=auth_header(admin_token))
        assert jazz_rows.json()["items"] == []

    async def test_approve_full_class_waitlists(self, client: AsyncClient, db, org, admin_token, parent_token, student):
        from app.models.people import Student

        schedule_id = await _active_schedule(client, admin_token)
        tap = await _class_with_slot(client, admin_token, schedule_id, "Tap", 3, "10:00", "11:00", max_students=1)
        res = await client.post(MY_REQUESTS, json={
            "student_id": str(student.id), "class_instance_id": tap,
        }, headers=auth_header(parent_token))
        request_id = res.json()["id"]

        other = Student(organization_id=org.id, first_name="Other", last_name="Kid")
        db.add(other)
        await db.flush()
        await client.post(ENROLLMENTS, json={
            "student_id": str(other.id), "class_instance_id": tap,
        }, headers=auth_header(admin_token))

        res = await client.patch(f"{REQUESTS}/{request_id}", json={"action": "approve"}, headers=auth_header(admin_token))
        assert res.status_code == 200
        assert res.json()["enrollment"]["status"] == "waitlist"


class TestAgeReferenceDate:
    """연령 계산 기준일 테스트."""

    async def test_age_uses_studio_local_date(self, client: AsyncClient, db, org, admin_token, monkeypatch):
        from datetime import datetime, timezone

        from app.models.people import Student
        from app.services import enrollment_service as module

        # UTC 6/1 02:00 == 뉴욕 5/31 22:00 — 스튜디오 기준으로는 아직 생일 전날
        monkeypatch.setattr(module, "utcnow", lambda: datetime(2026, 6, 1, 2, 0, tzinfo=timezone.utc))
        kid = Student(organization_id=org.id, first_name="June", last_name="Kid", date_of_birth=date(2018, 6, 1))
        db.add(kid)
        await db.flush()

        res = await client.post(CLASSES, json={"name": "Ballet 8+", "min_age": 8}, headers=auth_header(admin_token))
        res = await client.post(f"{ENROLLMENTS}/validate", json={
            "student_id": str(kid.id), "class_instance_id": res.json()["id"],
        }, headers=auth_header(admin_token))
        assert res.status_code == 200
        assert [c["type"] for c in res.json()["conflicts"]] == ["age_too_young"]
