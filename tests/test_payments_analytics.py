"""수강료 결제 및 분석 API 테스트.

Tuition payment and analytics API tests — Refund rules, parent receipts
and CSV export, analytics date ranges and revenue totals.
"""

from datetime import date, timedelta

from httpx import AsyncClient

from tests.conftest import auth_header

PAYMENTS = "/api/v1/admin/payments"
MY_PAYMENTS = "/api/v1/app/my/payments"
ANALYTICS = "/api/v1/admin/analytics"


async def _payment(client: AsyncClient, token: str, guardian, student, **fields) -> dict:
    res = await client.post(PAYMENTS, json={
        "guardian_id": str(guardian.id),
        "student_id": str(student.id),
        "description": "September tuition",
        "amount_in_cents": 12000,
        **fields,
    }, headers=auth_header(token))
    assert res.status_code == 201
    return res.json()


class TestPayments:
    """결제 테스트."""

    async def test_completed_payment_gets_date(self, client: AsyncClient, staff_token, guardian, student):
        data = await _payment(client, staff_token, guardian, student, payment_status="completed")
        assert data["payment_date"] is not None
        assert data["receipt_number"]

    async def test_unlinked_student_rejected(self, client: AsyncClient, db, org, staff_token, guardian):
        from app.models.people import Student

        other = Student(organization_id=org.id, first_name="Not", last_name="Linked")
        db.add(other)
        await db.flush()
        res = await client.post(PAYMENTS, json={
            "guardian_id": str(guardian.id), "student_id": str(other.id), "amount_in_cents": 100,
        }, headers=auth_header(staff_token))
        assert res.status_code == 400

    async def test_refund_rules(self, client: AsyncClient, staff_token, guardian, student):
        data = await _payment(client, staff_token, guardian, student, payment_status="completed")

        too_much = await client.patch(f"{PAYMENTS}/{data['id']}", json={
            "refund_amount_in_cents": 12001,
        }, headers=auth_header(staff_token))
        assert too_much.status_code == 400

        partial = await client.patch(f"{PAYMENTS}/{data['id']}", json={
            "refund_amount_in_cents": 2000,
        }, headers=auth_header(staff_token))
        assert partial.json()["payment_status"] == "completed"
        assert partial.json()["net_amount_in_cents"] == 10000

        full = await client.patch(f"{PAYMENTS}/{data['id']}", json={
            "refund_amount_in_cents": 12000,
        }, headers=auth_header(staff_token))
        assert full.json()["payment_status"] == "refunded"

    async def test_parent_sees_own_payments(self, client: AsyncClient, staff_token, parent_token, guardian, student):
        data = await _payment(client, staff_token, guardian, student, payment_status="completed")

        mine = await client.get(MY_PAYMENTS, headers=auth_header(parent_token))
        assert [p["id"] for p in mine.json()] == [data["id"]]

        export = await client.get(f"{MY_PAYMENTS}/export", headers=auth_header(parent_token))
        assert export.status_code == 200
        assert data["receipt_number"] in export.text

        receipt = await client.get(f"{MY_PAYMENTS}/{data['id']}/receipt", headers=auth_header(parent_token))
        assert receipt.status_code == 200
        assert receipt.content.startswith(b"%PDF")


class TestAnalytics:
    """분석 API 테스트."""

    async def test_start_after_end_rejected(self, client: AsyncClient, admin_token):
        res = await client.get(f"{ANALYTICS}/enrollment", params={
            "start_date": "2026-06-01", "end_date": "2026-01-01",
        }, headers=auth_header(admin_token))
        assert res.status_code == 400

    async def test_range_longer_than_five_years_rejected(self, client: AsyncClient, admin_token):
        res = await client.get(f"{ANALYTICS}/revenue", params={
            "start_date": "2015-01-01", "end_date": "2026-01-01",
        }, headers=auth_header(admin_token))
        assert res.status_code == 400

    async def test_revenue_nets_refunds(self, client: AsyncClient, admin_token, guardian, student):
        data = await _payment(client, admin_token, guardian, student, payment_status="completed")
        await client.patch(f"{PAYMENTS}/{data['id']}", json={
            "refund_amount_in_cents": 2000,
        }, headers=auth_header(admin_token))
        await _payment(client, admin_token, guardian, student)  # pending, not counted

        today = date.today()
        res = await client.get(f"{ANALYTICS}/revenue", params={
            "start_date": (today - timedelta(days=31)).isoformat(), "end_date": today.isoformat(),
        }, headers=auth_header(admin_token))
        assert res.status_code == 200
        body = res.json()
        assert body["totals"]["tuition"] == 10000
        assert body["totals"]["total"] == 10000
        assert body["by_payment_type"] == [{"payment_type": "tuition", "amount_in_cents": 10000}]

    async def test_enrollment_report_shape(self, client: AsyncClient, admin_token):
        res = await client.get(f"{ANALYTICS}/enrollment", headers=auth_header(admin_token))
        assert res.status_code == 200
        body = res.json()
        assert len(body["monthly"]) in (12, 13)
        assert body["totals"]["active_enrollments"] == 0
        assert body["capacity"]["utilization"] == 0.0

    async def test_other_reports_respond(self, client: AsyncClient, staff_token):
        for report in ("retention", "class-performance", "teacher-metrics"):
            res = await client.get(f"{ANALYTICS}/{report}", headers=auth_header(staff_token))
            assert res.status_code == 200, report
