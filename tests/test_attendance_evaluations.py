"""출석/평가 API 테스트.

Attendance and evaluation API tests — Marking, absences, teacher scope,
summaries and exports, evaluation drafts, submission and the parent view.
"""

from datetime import date, timedelta

from httpx import AsyncClient

from tests.conftest import auth_header

CLASSES = "/api/v1/admin/classes"
ENROLLMENTS = "/api/v1/admin/enrollments"
ATTENDANCE = "/api/v1/admin/attendance"
EVALUATIONS = "/api/v1/admin/evaluations"
MY = "/api/v1/app/my"


async def _enrolled_class(client: AsyncClient, token: str, student, teacher=None, name: str = "Ballet I") -> str:
    body = {"name": name}
    if teacher is not None:
        body["teacher_id"] = str(teacher.id)
    res = await client.post(CLASSES, json=body, headers=auth_header(token))
    class_id = res.json()["id"]
    res = await client.post(ENROLLMENTS, json={
        "student_id": str(student.id), "class_instance_id": class_id,
    }, headers=auth_header(token))
    assert res.status_code == 201
    return class_id


class TestAttendance:
    """출석 기록 테스트."""

    async def test_mark_is_upsert(self, client: AsyncClient, admin_token, student):
        class_id = await _enrolled_class(client, admin_token, student)
        day = (date.today() - timedelta(days=1)).isoformat()
        body = {"student_id": str(student.id), "class_instance_id": class_id, "attendance_date": day}

        first = await client.post(f"{ATTENDANCE}/mark", json={**body, "status": "tardy"}, headers=auth_header(admin_token))
        assert first.status_code == 200
        second = await client.post(f"{ATTENDANCE}/mark", json={**body, "status": "present"}, headers=auth_header(admin_token))
        assert second.json()["id"] == first.json()["id"]
        assert second.json()["status"] == "present"

    async def test_absent_mark_records_absence(self, client: AsyncClient, admin_token, student):
        class_id = await _enrolled_class(client, admin_token, student)
        day = (date.today() - timedelta(days=2)).isoformat()
        await client.post(f"{ATTENDANCE}/mark", json={
            "student_id": str(student.id), "class_instance_id": class_id, "attendance_date": day, "status": "absent",
        }, headers=auth_header(admin_token))

        res = await client.get(f"{ATTENDANCE}/absences", headers=auth_header(admin_token))
        assert [a["absence_date"] for a in res.json()] == [day]

    async def test_not_enrolled_student(self, client: AsyncClient, admin_token, student):
        res = await client.post(CLASSES, json={"name": "Tap"}, headers=auth_header(admin_token))
        res = await client.post(f"{ATTENDANCE}/mark", json={
            "student_id": str(student.id), "class_instance_id": res.json()["id"], "status": "present",
        }, headers=auth_header(admin_token))
        assert res.status_code == 404

    async def test_teacher_limited_to_own_classes(self, client: AsyncClient, admin_token, teacher_token, teacher, student):
        own = await _enrolled_class(client, admin_token, student, teacher=teacher, name="Jazz I")
        other = await _enrolled_class(client, admin_token, student, name="Hip Hop")

        ok = await client.post(f"{ATTENDANCE}/mark", json={
            "student_id": str(student.id), "class_instance_id": own, "status": "present",
        }, headers=auth_header(teacher_token))
        assert ok.status_code == 200

        denied = await client.post(f"{ATTENDANCE}/mark", json={
            "student_id": str(student.id), "class_instance_id": other, "status": "present",
        }, headers=auth_header(teacher_token))
        assert denied.status_code == 403

    async def test_summary_and_export(self, client: AsyncClient, admin_token, student):
        class_id = await _enrolled_class(client, admin_token, student)
        for offset, status in ((1, "present"), (2, "absent"), (3, "left_early"), (4, "excused")):
            await client.post(f"{ATTENDANCE}/mark", json={
                "student_id": str(student.id),
                "class_instance_id": class_id,
                "attendance_date": (date.today() - timedelta(days=offset)).isoformat(),
                "status": status,
            }, headers=auth_header(admin_token))

        summary = await client.get(f"{ATTENDANCE}/summary", headers=auth_header(admin_token))
        data = summary.json()
        assert data["total_records"] == 4
        assert data["attendance_rate"] == 50.0
        assert data["by_class"][0]["absent"] == 1

        as_json = await client.get(f"{ATTENDANCE}/export", params={"format": "json"}, headers=auth_header(admin_token))
        assert as_json.json()["total"] == 4

        as_csv = await client.get(f"{ATTENDANCE}/export", headers=auth_header(admin_token))
        assert as_csv.status_code == 200
        assert "attachment" in as_csv.headers["content-disposition"]
        assert len(as_csv.text.strip().splitlines()) == 5

    async def test_parent_reports_future_absence(self, client: AsyncClient, admin_token, parent_token, student):
        class_id = await _enrolled_class(client, admin_token, student)
        body = {
            "student_id": str(student.id),
            "class_instance_id": class_id,
            "absence_date": (date.today() + timedelta(days=7)).isoformat(),
            "reason": "Family trip",
        }
        res = await client.post(f"{MY}/absences", json=body, headers=auth_header(parent_token))
        assert res.status_code == 201
        assert res.json()["is_excused"] is True

        dup = await client.post(f"{MY}/absences", json=body, headers=auth_header(parent_token))
        assert dup.status_code == 409

        past = await client.post(f"{MY}/absences", json={
            **body, "absence_date": (date.today() - timedelta(days=7)).isoformat(),
        }, headers=auth_header(parent_token))
        assert past.status_code == 400

    async def test_parent_attendance_view(self, client: AsyncClient, admin_token, parent_token, student):
        class_id = await _enrolled_class(client, admin_token, student)
        await client.post(f"{ATTENDANCE}/mark", json={
            "student_id": str(student.id), "class_instance_id": class_id, "status": "present",
            "attendance_date": (date.today() - timedelta(days=1)).isoformat(),
        }, headers=auth_header(admin_token))

        res = await client.get(f"{MY}/attendance", params={"student_id": str(student.id)}, headers=auth_header(parent_token))
        assert res.json()["attendance_rate"] == 100.0


class TestEvaluations:
    """평가 테스트."""

    async def test_draft_submit_and_parent_view(
        self, client: AsyncClient, admin_token, teacher_token, parent_token, teacher, student
    ):
        class_id = await _enrolled_class(client, admin_token, student, teacher=teacher)
        res = await client.post(EVALUATIONS, json={
            "student_id": str(student.id),
            "class_instance_id": class_id,
            "effort_rating": 5,
            "skills": [{"name": "Turns", "rating": 4}],
        }, headers=auth_header(teacher_token))
        assert res.status_code == 201
        evaluation_id = res.json()["id"]
        assert res.json()["status"] == "draft"

        # 보호자에게는 제출 전 평가가 보이지 않음
        hidden = await client.get(f"{MY}/evaluations", headers=auth_header(parent_token))
        assert hidden.json() == []

        missing = await client.post(f"{EVALUATIONS}/{evaluation_id}/submit", headers=auth_header(teacher_token))
        assert missing.status_code == 400

        await client.put(f"{EVALUATIONS}/{evaluation_id}", json={"overall_rating": 4}, headers=auth_header(teacher_token))
        submitted = await client.post(f"{EVALUATIONS}/{evaluation_id}/submit", headers=auth_header(teacher_token))
        assert submitted.json()["status"] == "submitted"

        locked = await client.put(f"{EVALUATIONS}/{evaluation_id}", json={"comments": "late edit"}, headers=auth_header(teacher_token))
        assert locked.status_code == 403

        visible = await client.get(f"{MY}/evaluations", headers=auth_header(parent_token))
        assert [e["id"] for e in visible.json()] == [evaluation_id]

        pdf = await client.get(f"{MY}/evaluations/{evaluation_id}/pdf", headers=auth_header(parent_token))
        assert pdf.status_code == 200
        assert pdf.content.startswith(b"%PDF")

    async def test_duplicate_evaluation(self, client: AsyncClient, admin_token, student):
        class_id = await _enrolled_class(client, admin_token, student)
        body = {"student_id": str(student.id), "class_instance_id": class_id, "overall_rating": 3}
        await client.post(EVALUATIONS, json=body, headers=auth_header(admin_token))
        dup = await client.post(EVALUATIONS, json=body, headers=auth_header(admin_token))
        assert dup.status_code == 400

    async def test_teacher_cannot_evaluate_other_class(self, client: AsyncClient, admin_token, teacher_token, student):
        class_id = await _enrolled_class(client, admin_token, student)
        res = await client.post(EVALUATIONS, json={
            "student_id": str(student.id), "class_instance_id": class_id,
        }, headers=auth_header(teacher_token))
        assert res.status_code == 403
