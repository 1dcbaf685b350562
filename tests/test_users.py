"""사용자 계정 API 테스트.

User account API tests — Staff/teacher login creation, teacher record
linking, self-protection rules and admin-only access.
"""

from httpx import AsyncClient

from tests.conftest import auth_header

URL = "/api/v1/admin/users"
TEACHERS = "/api/v1/admin/teachers"


class TestUserCreate:
    """사용자 생성 테스트."""

    async def test_create_staff_login(self, client: AsyncClient, admin_token, staff_user):
        res = await client.post(URL, json={
            "email": "Front.Desk@Test.com",
            "password": "secure123!",
            "full_name": "Front Desk",
            "role": "staff",
        }, headers=auth_header(admin_token))
        assert res.status_code == 201
        assert res.json()["email"] == "front.desk@test.com"

        listed = await client.get(URL, params={"role": "staff"}, headers=auth_header(admin_token))
        assert sorted(u["email"] for u in listed.json()) == ["front.desk@test.com", "staff@test.com"]

    async def test_duplicate_email(self, client: AsyncClient, admin_token, staff_user):
        res = await client.post(URL, json={
            "email": "STAFF@test.com", "password": "secure123!", "full_name": "Again", "role": "staff",
        }, headers=auth_header(admin_token))
        assert res.status_code == 409

    async def test_link_teacher_record(self, client: AsyncClient, admin_token):
        created = await client.post(TEACHERS, json={"first_name": "Noa", "last_name": "Park"}, headers=auth_header(admin_token))
        teacher_id = created.json()["id"]

        wrong_role = await client.post(URL, json={
            "email": "noa@test.com", "password": "secure123!", "full_name": "Noa Park",
            "role": "staff", "teacher_id": teacher_id,
        }, headers=auth_header(admin_token))
        assert wrong_role.status_code == 400

        res = await client.post(URL, json={
            "email": "noa@test.com", "password": "secure123!", "full_name": "Noa Park",
            "role": "teacher", "teacher_id": teacher_id,
        }, headers=auth_header(admin_token))
        assert res.status_code == 201

        detail = await client.get(f"{TEACHERS}/{teacher_id}", headers=auth_header(admin_token))
        assert detail.json()["user_id"] == res.json()["id"]

    async def test_staff_cannot_manage_users(self, client: AsyncClient, staff_token):
        res = await client.get(URL, headers=auth_header(staff_token))
        assert res.status_code == 403


class TestUserUpdate:
    """사용자 수정 테스트."""

    async def test_admin_cannot_deactivate_self(self, client: AsyncClient, admin_token, admin_user):
        res = await client.put(f"{URL}/{admin_user.id}", json={"is_active": False}, headers=auth_header(admin_token))
        assert res.status_code == 400

        demote = await client.put(f"{URL}/{admin_user.id}", json={"role": "staff"}, headers=auth_header(admin_token))
        assert demote.status_code == 400

    async def test_deactivated_user_cannot_log_in(self, client: AsyncClient, org, admin_token, staff_user):
        res = await client.put(f"{URL}/{staff_user.id}", json={"is_active": False}, headers=auth_header(admin_token))
        assert res.json()["is_active"] is False

        login = await client.post("/api/v1/admin/auth/login", json={
            "email": "staff@test.com", "password": "staff123!", "studio_code": org.code,
        })
        assert login.status_code == 401

    async def test_parent_account_not_editable(self, client: AsyncClient, admin_token, parent_user):
        res = await client.put(f"{URL}/{parent_user.id}", json={"full_name": "Renamed"}, headers=auth_header(admin_token))
        assert res.status_code == 403
