"""인증 API 테스트 — 로그인, 회원가입, 토큰 갱신, 로그아웃, /me, 역할 검사.

Auth API tests — Staff login, parent registration/login, token refresh,
logout, /me and role gating on protected routes.
"""

import pytest
from httpx import AsyncClient

from tests.conftest import auth_header

ADMIN_AUTH = "/api/v1/admin/auth"
APP_AUTH = "/api/v1/app/auth"
AUTH = "/api/v1/auth"


# ===== Admin Login =====

class TestAdminLogin:
    """관리자 로그인 테스트."""

    async def test_admin_login_success(self, client: AsyncClient, admin_user, org):
        """관리자 로그인 성공."""
        res = await client.post(f"{ADMIN_AUTH}/login", json={
            "email": "admin@test.com",
            "password": "admin123!",
            "studio_code": org.code,
        })
        assert res.status_code == 200
        data = res.json()
        assert "access_token" in data
        assert "refresh_token" in data
        assert data["token_type"] == "bearer"

    async def test_admin_login_without_studio_code(self, client: AsyncClient, admin_user):
        """스튜디오 코드 없이 로그인."""
        res = await client.post(f"{ADMIN_AUTH}/login", json={
            "email": "admin@test.com",
            "password": "admin123!",
        })
        assert res.status_code == 200

    async def test_admin_login_email_is_case_insensitive(self, client: AsyncClient, admin_user):
        res = await client.post(f"{ADMIN_AUTH}/login", json={
            "email": "ADMIN@Test.com",
            "password": "admin123!",
        })
        assert res.status_code == 200

    async def test_admin_login_wrong_password(self, client: AsyncClient, admin_user):
        """잘못된 비밀번호로 로그인 실패."""
        res = await client.post(f"{ADMIN_AUTH}/login", json={
            "email": "admin@test.com",
            "password": "wrong_password",
        })
        assert res.status_code == 401

    async def test_admin_login_teacher_allowed(self, client: AsyncClient, teacher_user):
        """강사 계정도 관리자 화면 로그인 가능."""
        res = await client.post(f"{ADMIN_AUTH}/login", json={
            "email": "teacher@test.com",
            "password": "teacher123!",
        })
        assert res.status_code == 200

    async def test_admin_login_parent_rejected(self, client: AsyncClient, parent_user):
        """보호자 계정으로 관리자 로그인 시 403."""
        res = await client.post(f"{ADMIN_AUTH}/login", json={
            "email": "parent@test.com",
            "password": "parent123!",
        })
        assert res.status_code == 403

    async def test_admin_login_inactive_user(self, client: AsyncClient, db, admin_user):
        """비활성 계정 로그인 실패."""
        admin_user.is_active = False
        await db.flush()

        res = await client.post(f"{ADMIN_AUTH}/login", json={
            "email": "admin@test.com",
            "password": "admin123!",
        })
        assert res.status_code == 401

    async def test_admin_login_invalid_studio_code(self, client: AsyncClient, admin_user):
        """잘못된 스튜디오 코드로 로그인 실패."""
        res = await client.post(f"{ADMIN_AUTH}/login", json={
            "email": "admin@test.com",
            "password": "admin123!",
            "studio_code": "ZZZZZZ",
        })
        assert res.status_code == 404

    async def test_admin_login_missing_fields(self, client: AsyncClient):
        """필수 필드 누락 시 400."""
        res = await client.post(f"{ADMIN_AUTH}/login", json={"email": "admin@test.com"})
        assert res.status_code == 400


# ===== App Register / Login =====

class TestAppAuth:
    """보호자 회원가입/로그인 테스트."""

    async def test_register_creates_parent_and_guardian(self, client: AsyncClient, org):
        res = await client.post(f"{APP_AUTH}/register", json={
            "studio_code": org.code,
            "email": "new.parent@test.com",
            "password": "longenough1",
            "first_name": "New",
            "last_name": "Parent",
        })
        assert res.status_code == 201
        token = res.json()["access_token"]

        me = await client.get(f"{AUTH}/me", headers=auth_header(token))
        assert me.status_code == 200
        data = me.json()
        assert data["role"] == "parent"
        assert data["guardian_id"] is not None
        assert data["studio_code"] == org.code

    async def test_register_duplicate_email(self, client: AsyncClient, org, parent_user):
        res = await client.post(f"{APP_AUTH}/register", json={
            "studio_code": org.code,
            "email": "parent@test.com",
            "password": "longenough1",
            "first_name": "Dup",
            "last_name": "Parent",
        })
        assert res.status_code == 409

    async def test_register_unknown_studio(self, client: AsyncClient, org):
        res = await client.post(f"{APP_AUTH}/register", json={
            "studio_code": "NOPE00",
            "email": "x@test.com",
            "password": "longenough1",
            "first_name": "X",
            "last_name": "Y",
        })
        assert res.status_code == 404

    async def test_register_short_password(self, client: AsyncClient, org):
        res = await client.post(f"{APP_AUTH}/register", json={
            "studio_code": org.code,
            "email": "x@test.com",
            "password": "short",
            "first_name": "X",
            "last_name": "Y",
        })
        assert res.status_code == 400

    async def test_app_login_parent(self, client: AsyncClient, parent_user, guardian):
        res = await client.post(f"{APP_AUTH}/login", json={
            "email": "parent@test.com",
            "password": "parent123!",
        })
        assert res.status_code == 200

    async def test_app_login_staff_rejected(self, client: AsyncClient, staff_user):
        """스태프 계정으로 앱 로그인 시 403."""
        res = await client.post(f"{APP_AUTH}/login", json={
            "email": "staff@test.com",
            "password": "staff123!",
        })
        assert res.status_code == 403


# ===== Refresh / Logout / Me =====

class TestTokenLifecycle:
    """토큰 갱신/로그아웃 테스트."""

    async def _login(self, client: AsyncClient) -> dict:
        res = await client.post(f"{ADMIN_AUTH}/login", json={
            "email": "admin@test.com",
            "password": "admin123!",
        })
        return res.json()

    async def test_refresh_rotates_token(self, client: AsyncClient, admin_user):
        tokens = await self._login(client)
        res = await client.post(f"{AUTH}/refresh", json={"refresh_token": tokens["refresh_token"]})
        assert res.status_code == 200
        assert res.json()["refresh_token"] != tokens["refresh_token"]

        # 이미 사용한 리프레시 토큰은 재사용 불가
        again = await client.post(f"{AUTH}/refresh", json={"refresh_token": tokens["refresh_token"]})
        assert again.status_code == 401

    async def test_logout_revokes_refresh_token(self, client: AsyncClient, admin_user):
        tokens = await self._login(client)
        res = await client.post(f"{AUTH}/logout", json={"refresh_token": tokens["refresh_token"]})
        assert res.status_code == 204

        res = await client.post(f"{AUTH}/refresh", json={"refresh_token": tokens["refresh_token"]})
        assert res.status_code == 401

    async def test_access_token_cannot_refresh(self, client: AsyncClient, admin_user):
        tokens = await self._login(client)
        res = await client.post(f"{AUTH}/refresh", json={"refresh_token": tokens["access_token"]})
        assert res.status_code == 401

    async def test_me_teacher_has_teacher_id(self, client: AsyncClient, teacher_token, teacher):
        res = await client.get(f"{AUTH}/me", headers=auth_header(teacher_token))
        assert res.status_code == 200
        assert res.json()["teacher_id"] == str(teacher.id)

    async def test_me_requires_token(self, client: AsyncClient):
        res = await client.get(f"{AUTH}/me")
        assert res.status_code == 401

    async def test_me_garbage_token(self, client: AsyncClient):
        res = await client.get(f"{AUTH}/me", headers=auth_header("not-a-jwt"))
        assert res.status_code == 401


# ===== Role gating =====

class TestRoleGating:
    """역할별 접근 제어 테스트."""

    @pytest.mark.parametrize("path", [
        "/api/v1/admin/students",
        "/api/v1/admin/payroll/periods",
        "/api/v1/admin/inbox",
        "/api/v1/app/my/students",
    ])
    async def test_protected_routes_require_token(self, client: AsyncClient, path: str):
        res = await client.get(path)
        assert res.status_code == 401

    async def test_parent_cannot_use_admin_api(self, client: AsyncClient, parent_token):
        res = await client.get("/api/v1/admin/students", headers=auth_header(parent_token))
        assert res.status_code == 403

    async def test_staff_cannot_use_parent_api(self, client: AsyncClient, staff_token):
        res = await client.get("/api/v1/app/my/students", headers=auth_header(staff_token))
        assert res.status_code == 403

    async def test_teacher_cannot_read_payroll(self, client: AsyncClient, teacher_token):
        res = await client.get("/api/v1/admin/payroll/periods", headers=auth_header(teacher_token))
        assert res.status_code == 403

    async def test_staff_can_read_payroll_but_not_write(self, client: AsyncClient, staff_token):
        res = await client.get("/api/v1/admin/payroll/periods", headers=auth_header(staff_token))
        assert res.status_code == 200

        res = await client.post("/api/v1/admin/payroll/periods", json={
            "name": "March",
            "period_start": "2026-03-01",
            "period_end": "2026-03-31",
        }, headers=auth_header(staff_token))
        assert res.status_code == 403

    async def test_revenue_analytics_admin_only(self, client: AsyncClient, staff_token):
        res = await client.get("/api/v1/admin/analytics/revenue", headers=auth_header(staff_token))
        assert res.status_code == 403
