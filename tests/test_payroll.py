"""강사 급여 테스트 — 금액 계산, 기간 상태 전환, 명세서 생성, 내보내기.

Payroll tests — Pay calculation per rate type, period status transitions,
locking, pay stub generation and CSV/IIF export.
"""

from decimal import Decimal
from types import SimpleNamespace

from httpx import AsyncClient

from app.services.payroll_service import calculate_pay
from tests.conftest import auth_header

PAYROLL = "/api/v1/admin/payroll"


def _rate(rate_type: str, amount: int, multiplier: str = "1.5") -> SimpleNamespace:
    return SimpleNamespace(rate_type=rate_type, rate_amount_in_cents=amount, overtime_multiplier=Decimal(multiplier))


def _entry(minutes: int, is_overtime: bool = False, status: str = "approved", class_id: str | None = "c") -> SimpleNamespace:
    return SimpleNamespace(minutes=minutes, is_overtime=is_overtime, status=status, class_instance_id=class_id)


def _adj(kind: str, cents: int) -> SimpleNamespace:
    return SimpleNamespace(adjustment_type=kind, amount_in_cents=cents)


class TestCalculatePay:
    def test_hourly(self):
        result = calculate_pay(_rate("hourly", 3000), [_entry(90), _entry(60, is_overtime=True)], [])
        assert result["regular_minutes"] == 90
        assert result["regular_pay_in_cents"] == 4500
        assert result["overtime_pay_in_cents"] == 4500
        assert result["gross_pay_in_cents"] == 9000

    def test_hourly_rounds_half_up(self):
        # 1001 * 45 / 60 = 750.75 → 751
        result = calculate_pay(_rate("hourly", 1001), [_entry(45)], [])
        assert result["regular_pay_in_cents"] == 751

    def test_per_class(self):
        result = calculate_pay(_rate("per_class", 4000, "2"), [_entry(60), _entry(45), _entry(60, True)], [])
        assert result["regular_pay_in_cents"] == 8000
        assert result["overtime_pay_in_cents"] == 8000
        assert result["class_count"] == 3

    def test_salary_ignores_hours(self):
        result = calculate_pay(_rate("salary", 250000), [_entry(600), _entry(120, True)], [])
        assert result["regular_pay_in_cents"] == 250000
        assert result["overtime_pay_in_cents"] == 0

    def test_rejected_entries_excluded(self):
        result = calculate_pay(_rate("hourly", 3000), [_entry(60), _entry(60, status="rejected")], [])
        assert result["regular_minutes"] == 60
        assert result["regular_pay_in_cents"] == 3000

    def test_adjustments(self):
        result = calculate_pay(
            _rate("hourly", 3000),
            [_entry(60)],
            [_adj("bonus", 1000), _adj("reimbursement", 250), _adj("deduction", 500)],
        )
        assert result["gross_pay_in_cents"] == 4250
        assert result["deductions_in_cents"] == 500
        assert result["net_pay_in_cents"] == 3750


async def _period(client: AsyncClient, token: str) -> str:
    res = await client.post(f"{PAYROLL}/periods", json={
        "name": "March 2026",
        "period_start": "2026-03-01",
        "period_end": "2026-03-31",
        "pay_date": "2026-04-05",
    }, headers=auth_header(token))
    assert res.status_code == 201
    assert res.json()["status"] == "draft"
    return res.json()["id"]


class TestPayrollPeriods:
    """급여 기간 API 테스트."""

    async def test_end_before_start(self, client: AsyncClient, admin_token):
        res = await client.post(f"{PAYROLL}/periods", json={
            "name": "Bad", "period_start": "2026-03-31", "period_end": "2026-03-01",
        }, headers=auth_header(admin_token))
        assert res.status_code == 400

    async def test_status_transitions(self, client: AsyncClient, admin_token):
        period_id = await _period(client, admin_token)

        skip = await client.patch(f"{PAYROLL}/periods/{period_id}", json={"status": "approved"}, headers=auth_header(admin_token))
        assert skip.status_code == 400

        for status in ("processing", "draft", "processing", "approved"):
            res = await client.patch(f"{PAYROLL}/periods/{period_id}", json={"status": status}, headers=auth_header(admin_token))
            assert res.status_code == 200
            assert res.json()["status"] == status
        assert res.json()["approved_at"] is not None

        back = await client.patch(f"{PAYROLL}/periods/{period_id}", json={"status": "draft"}, headers=auth_header(admin_token))
        assert back.status_code == 400

    async def test_approved_period_is_locked(self, client: AsyncClient, admin_token, teacher):
        period_id = await _period(client, admin_token)
        for status in ("processing", "approved"):
            await client.patch(f"{PAYROLL}/periods/{period_id}", json={"status": status}, headers=auth_header(admin_token))

        res = await client.post(f"{PAYROLL}/periods/{period_id}/time-entries", json={
            "teacher_id": str(teacher.id), "entry_date": "2026-03-10", "minutes": 60,
        }, headers=auth_header(admin_token))
        assert res.status_code == 400


class TestPayStubs:
    """명세서 생성/내보내기 테스트."""

    async def test_generate_and_export(self, client: AsyncClient, admin_token, teacher):
        await client.post(f"{PAYROLL}/pay-rates", json={
            "teacher_id": str(teacher.id),
            "rate_type": "hourly",
            "rate_amount_in_cents": 3000,
            "effective_from": "2026-01-01",
        }, headers=auth_header(admin_token))
        period_id = await _period(client, admin_token)

        entry = await client.post(f"{PAYROLL}/periods/{period_id}/time-entries", json={
            "teacher_id": str(teacher.id),
            "entry_date": "2026-03-10",
            "start_time": "16:00",
            "end_time": "17:30",
        }, headers=auth_header(admin_token))
        assert entry.status_code == 201
        assert entry.json()["minutes"] == 90

        outside = await client.post(f"{PAYROLL}/periods/{period_id}/time-entries", json={
            "teacher_id": str(teacher.id), "entry_date": "2026-04-10", "minutes": 60,
        }, headers=auth_header(admin_token))
        assert outside.status_code == 400

        await client.post(f"{PAYROLL}/periods/{period_id}/adjustments", json={
            "teacher_id": str(teacher.id), "adjustment_type": "bonus", "amount_in_cents": 1000,
        }, headers=auth_header(admin_token))

        res = await client.post(f"{PAYROLL}/periods/{period_id}/pay-stubs/generate", headers=auth_header(admin_token))
        assert res.status_code == 200
        data = res.json()
        assert data["generated"] == 1
        stub = data["pay_stubs"][0]
        assert stub["stub_number"] == "PS-20260301-0001"
        assert stub["gross_pay_in_cents"] == 5500

        # 재생성은 같은 명세서를 갱신
        again = await client.post(f"{PAYROLL}/periods/{period_id}/pay-stubs/generate", headers=auth_header(admin_token))
        assert again.json()["pay_stubs"][0]["id"] == stub["id"]

        csv_res = await client.get(f"{PAYROLL}/periods/{period_id}/export", headers=auth_header(admin_token))
        assert csv_res.status_code == 200
        assert "PS-20260301-0001" in csv_res.text
        assert "55.00" in csv_res.text

        iif = await client.get(
            f"{PAYROLL}/periods/{period_id}/export", params={"format": "quickbooks"}, headers=auth_header(admin_token)
        )
        lines = iif.text.splitlines()
        assert lines[0].startswith("!TIMERHDR")
        assert lines[1].split("\t")[:2] == ["TIMEACT", "2026-03-31"]

    async def test_teacher_without_rate_is_skipped(self, client: AsyncClient, admin_token, teacher):
        period_id = await _period(client, admin_token)
        await client.post(f"{PAYROLL}/periods/{period_id}/time-entries", json={
            "teacher_id": str(teacher.id), "entry_date": "2026-03-10", "minutes": 60,
        }, headers=auth_header(admin_token))

        res = await client.post(f"{PAYROLL}/periods/{period_id}/pay-stubs/generate", headers=auth_header(admin_token))
        data = res.json()
        assert data["generated"] == 0
        assert data["skipped"][0]["teacher_id"] == str(teacher.id)

    async def test_export_without_stubs(self, client: AsyncClient, admin_token):
        period_id = await _period(client, admin_token)
        res = await client.get(f"{PAYROLL}/periods/{period_id}/export", headers=auth_header(admin_token))
        assert res.status_code == 404
