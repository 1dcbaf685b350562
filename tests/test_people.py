"""강사/학생/보호자 API 테스트."""

from httpx import AsyncClient

from tests.conftest import auth_header

STUDENTS = "/api/v1/admin/students"
GUARDIANS = "/api/v1/admin/guardians"
TEACHERS = "/api/v1/admin/teachers"
MY_STUDENTS = "/api/v1/app/my/students"


class TestStudents:
    """학생/보호자 관리 테스트."""

    async def test_create_and_search(self, client: AsyncClient, staff_token):
        res = await client.post(STUDENTS, json={
            "first_name": "Ava", "last_name": "Lee", "date_of_birth": "2018-04-02",
        }, headers=auth_header(staff_token))
        assert res.status_code == 201
        assert res.json()["check_in_code"]
        assert res.json()["age"] >= 8

        found = await client.get(STUDENTS, params={"search": "ava"}, headers=auth_header(staff_token))
        assert [s["full_name"] for s in found.json()["items"]] == ["Ava Lee"]

    async def test_link_guardian_once(self, client: AsyncClient, staff_token):
        student = (await client.post(STUDENTS, json={"first_name": "Mia", "last_name": "Cho"}, headers=auth_header(staff_token))).json()
        guardian = (await client.post(GUARDIANS, json={
            "first_name": "Jin", "last_name": "Cho", "email": "jin@test.com",
        }, headers=auth_header(staff_token))).json()

        url = f"{STUDENTS}/{student['id']}/guardians"
        body = {"guardian_id": guardian["id"], "relationship_type": "mother", "is_primary": True}
        first = await client.post(url, json=body, headers=auth_header(staff_token))
        assert first.status_code == 201
        dup = await client.post(url, json=body, headers=auth_header(staff_token))
        assert dup.status_code == 409

        detail = await client.get(f"{STUDENTS}/{student['id']}", headers=auth_header(staff_token))
        assert detail.json()["guardians"][0]["relationship_type"] == "mother"

    async def test_teacher_can_read_but_not_create(self, client: AsyncClient, teacher_token, student):
        listed = await client.get(STUDENTS, headers=auth_header(teacher_token))
        assert listed.status_code == 200
        res = await client.post(STUDENTS, json={"first_name": "A", "last_name": "B"}, headers=auth_header(teacher_token))
        assert res.status_code == 403

    async def test_parent_adds_own_child(self, client: AsyncClient, parent_token, student):
        res = await client.post(MY_STUDENTS, json={"first_name": "Leo", "last_name": "Parent"}, headers=auth_header(parent_token))
        assert res.status_code == 201

        mine = await client.get(MY_STUDENTS, headers=auth_header(parent_token))
        assert sorted(s["first_name"] for s in mine.json()) == ["Leo", "Sam"]

    async def test_parent_schedule_of_other_child(self, client: AsyncClient, db, org, parent_token):
        from app.models.people import Student

        stranger = Student(organization_id=org.id, first_name="Not", last_name="Mine")
        db.add(stranger)
        await db.flush()
        res = await client.get(f"{MY_STUDENTS}/{stranger.id}/schedule", headers=auth_header(parent_token))
        assert res.status_code == 403


class TestTeachers:
    """강사 관리 테스트."""

    async def test_deactivate_keeps_record(self, client: AsyncClient, staff_token):
        created = await client.post(TEACHERS, json={
            "first_name": "Rae", "last_name": "Kim", "specialties": ["Ballet"],
        }, headers=auth_header(staff_token))
        teacher_id = created.json()["id"]

        res = await client.delete(f"{TEACHERS}/{teacher_id}", headers=auth_header(staff_token))
        assert res.status_code == 200

        detail = await client.get(f"{TEACHERS}/{teacher_id}", headers=auth_header(staff_token))
        assert detail.json()["is_active"] is False
        active = await client.get(TEACHERS, params={"active_only": True}, headers=auth_header(staff_token))
        assert teacher_id not in [t["id"] for t in active.json()]

    async def test_link_requires_teacher_login(self, client: AsyncClient, staff_token, parent_user):
        res = await client.post(TEACHERS, json={
            "first_name": "X", "last_name": "Y", "user_id": str(parent_user.id),
        }, headers=auth_header(staff_token))
        assert res.status_code == 400

    async def test_availability_window(self, client: AsyncClient, staff_token, teacher):
        url = f"{TEACHERS}/{teacher.id}/availability"
        bad = await client.post(url, json={"day_of_week": 1, "start_time": "18:00", "end_time": "17:00"}, headers=auth_header(staff_token))
        assert bad.status_code == 400
        ok = await client.post(url, json={"day_of_week": 1, "start_time": "15:00", "end_time": "20:00"}, headers=auth_header(staff_token))
        assert ok.status_code == 201
        listed = await client.get(url, headers=auth_header(staff_token))
        assert len(listed.json()) == 1
