"""발표회 티켓 API 테스트 — 좌석 배치, 예약, 주문, 결제, 발권, 환불, 입장.

Recital ticketing API tests — Seat layout, seat holds, ticket orders,
payment intents (gateway stubbed per test), ticket issue, refunds and
door check-in.
"""

import uuid
from datetime import date, datetime, timedelta, timezone

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from app.config import settings
from app.models.ticketing import SeatReservation, ShowSeat
from app.services.payment_gateway import payment_gateway
from tests.conftest import auth_header

VENUES = "/api/v1/admin/venues"
RECITALS = "/api/v1/admin/recitals"
SHOWS = "/api/v1/app/shows"
RESERVATIONS = "/api/v1/app/seat-reservations"
ORDERS = "/api/v1/app/ticket-orders"


async def _show_on_sale(client: AsyncClient, token: str) -> tuple[str, list[dict]]:
    """공연장 2행×3석 배치 후 판매 중 공연 생성 — (show_id, seats)."""
    venue = await client.post(VENUES, json={"name": "Civic Theater"}, headers=auth_header(token))
    venue_id = venue.json()["id"]
    layout = await client.post(f"{VENUES}/{venue_id}/seats/layout", json={
        "section": "Orchestra", "rows": ["a", "B"], "seats_per_row": 3, "price_in_cents": 2500,
    }, headers=auth_header(token))
    assert layout.json() == {"created": 6, "skipped": 0}

    show = await client.post(f"{RECITALS}/shows", json={
        "name": "Spring Recital",
        "show_date": (date.today() + timedelta(days=30)).isoformat(),
        "start_time": "18:30",
        "venue_id": venue_id,
        "status": "on_sale",
    }, headers=auth_header(token))
    assert show.status_code == 201
    show_id = show.json()["id"]

    generated = await client.post(f"{RECITALS}/shows/{show_id}/seats/generate", headers=auth_header(token))
    assert generated.json()["created"] == 6

    seats = await client.get(f"{SHOWS}/{show_id}/seats")
    assert seats.status_code == 200
    return show_id, seats.json()["seats"]


class TestLayoutAndShows:
    """좌석 배치/공연 관리 테스트."""

    async def test_layout_is_idempotent(self, client: AsyncClient, admin_token):
        venue = await client.post(VENUES, json={"name": "Hall"}, headers=auth_header(admin_token))
        venue_id = venue.json()["id"]
        body = {"section": "Balcony", "rows": ["A"], "seats_per_row": 4, "price_in_cents": 1500}
        await client.post(f"{VENUES}/{venue_id}/seats/layout", json=body, headers=auth_header(admin_token))
        again = await client.post(f"{VENUES}/{venue_id}/seats/layout", json=body, headers=auth_header(admin_token))
        assert again.json() == {"created": 0, "skipped": 4}

    async def test_public_listing_excludes_drafts(self, client: AsyncClient, admin_token, org):
        await client.post(f"{RECITALS}/shows", json={
            "name": "Draft Show", "show_date": date.today().isoformat(),
        }, headers=auth_header(admin_token))
        res = await client.get(SHOWS, params={"studio_code": org.code})
        assert res.status_code == 200
        assert res.json() == []

    async def test_public_listing_requires_studio(self, client: AsyncClient, org):
        res = await client.get(SHOWS)
        assert res.status_code == 400

    async def test_teacher_cannot_manage_recitals(self, client: AsyncClient, teacher_token):
        res = await client.post(VENUES, json={"name": "Hall"}, headers=auth_header(teacher_token))
        assert res.status_code == 403


class TestReservations:
    """좌석 예약 테스트."""

    async def test_reserve_outside_sale_window(self, client: AsyncClient, admin_token, parent_token):
        show_id, seats = await _show_on_sale(client, admin_token)
        now = datetime.now(timezone.utc)
        body = {"show_id": show_id, "seat_ids": [seats[0]["id"]]}

        await client.put(f"{RECITALS}/shows/{show_id}", json={
            "ticket_sale_start": (now + timedelta(days=1)).isoformat(),
        }, headers=auth_header(admin_token))
        early = await client.post(RESERVATIONS, json=body, headers=auth_header(parent_token))
        assert early.status_code == 400

        await client.put(f"{RECITALS}/shows/{show_id}", json={
            "ticket_sale_start": (now - timedelta(days=10)).isoformat(),
            "ticket_sale_end": (now - timedelta(days=1)).isoformat(),
        }, headers=auth_header(admin_token))
        late = await client.post(RESERVATIONS, json=body, headers=auth_header(parent_token))
        assert late.status_code == 400

        await client.put(f"{RECITALS}/shows/{show_id}", json={
            "ticket_sale_end": (now + timedelta(days=1)).isoformat(),
        }, headers=auth_header(admin_token))
        ok = await client.post(RESERVATIONS, json=body, headers=auth_header(parent_token))
        assert ok.status_code == 201

    async def test_reserve_and_check(self, client: AsyncClient, admin_token, parent_token):
        show_id, seats = await _show_on_sale(client, admin_token)
        res = await client.post(RESERVATIONS, json={
            "show_id": show_id, "seat_ids": [seats[0]["id"], seats[1]["id"]],
        }, headers=auth_header(parent_token))
        assert res.status_code == 201
        data = res.json()
        assert data["total_in_cents"] == 5000
        assert data["time_remaining_seconds"] > 0

        check = await client.get(f"{RESERVATIONS}/check", params={"token": data["reservation_token"]})
        assert check.json()["is_expired"] is False

        # 내가 잡은 좌석은 held_by_you 로 표시
        mine = await client.get(f"{SHOWS}/{show_id}/seats", headers=auth_header(parent_token))
        held = [s for s in mine.json()["seats"] if s["held_by_you"]]
        assert len(held) == 2

    async def test_reserve_unavailable_seat_conflicts(self, client: AsyncClient, admin_token, parent_token):
        show_id, seats = await _show_on_sale(client, admin_token)
        first = await client.post(RESERVATIONS, json={
            "show_id": show_id, "seat_ids": [seats[0]["id"]],
        }, headers=auth_header(parent_token))
        assert first.status_code == 201

        # 다른 구매자(비로그인)가 같은 좌석 + 빈 좌석을 요청 → 409, 아무 좌석도 잡히지 않음
        res = await client.post(RESERVATIONS, json={
            "show_id": show_id, "seat_ids": [seats[0]["id"], seats[2]["id"]],
        })
        assert res.status_code == 409
        assert res.json()["detail"]["unavailable_seats"]

        public = await client.get(f"{SHOWS}/{show_id}/seats", headers=auth_header(parent_token))
        statuses = {s["id"]: s["status"] for s in public.json()["seats"]}
        assert statuses[seats[2]["id"]] == "available"

    async def test_expired_hold_frees_seat(self, client: AsyncClient, db, admin_token, parent_token):
        show_id, seats = await _show_on_sale(client, admin_token)
        first = await client.post(RESERVATIONS, json={
            "show_id": show_id, "seat_ids": [seats[0]["id"]],
        }, headers=auth_header(parent_token))
        reservation = (await db.execute(
            select(SeatReservation).where(SeatReservation.reservation_token == first.json()["reservation_token"])
        )).scalar_one()
        past = reservation.expires_at - timedelta(hours=1)
        reservation.expires_at = past
        seat = await db.get(ShowSeat, uuid.UUID(seats[0]["id"]))
        seat.reserved_until = past
        await db.flush()

        # 만료된 홀드는 별도 정리 작업 없이 바로 다시 예약 가능
        res = await client.post(RESERVATIONS, json={"show_id": show_id, "seat_ids": [seats[0]["id"]]})
        assert res.status_code == 201

    async def test_seat_limit(self, client: AsyncClient, admin_token):
        show_id, seats = await _show_on_sale(client, admin_token)
        res = await client.post(RESERVATIONS, json={"show_id": show_id, "seat_ids": []})
        assert res.status_code == 400

    async def test_extend_limit(self, client: AsyncClient, admin_token, parent_token):
        show_id, seats = await _show_on_sale(client, admin_token)
        res = await client.post(RESERVATIONS, json={
            "show_id": show_id, "seat_ids": [seats[0]["id"]],
        }, headers=auth_header(parent_token))
        token = res.json()["reservation_token"]

        for _ in range(settings.SEAT_HOLD_MAX_EXTENSIONS):
            ok = await client.post(f"{RESERVATIONS}/extend", json={
                "reservation_token": token,
            }, headers=auth_header(parent_token))
            assert ok.status_code == 200
        over = await client.post(f"{RESERVATIONS}/extend", json={
            "reservation_token": token,
        }, headers=auth_header(parent_token))
        assert over.status_code == 429

    async def test_release_returns_seats(self, client: AsyncClient, admin_token, parent_token):
        show_id, seats = await _show_on_sale(client, admin_token)
        res = await client.post(RESERVATIONS, json={
            "show_id": show_id, "seat_ids": [seats[0]["id"]],
        }, headers=auth_header(parent_token))
        release = await client.post(f"{RESERVATIONS}/release", json={
            "reservation_token": res.json()["reservation_token"],
        }, headers=auth_header(parent_token))
        assert release.status_code == 200
        assert release.json()["released"] == 1


class TestOrders:
    """주문/결제/발권 테스트."""

    async def _order(self, client: AsyncClient, admin_token: str, parent_token: str) -> tuple[str, dict]:
        show_id, seats = await _show_on_sale(client, admin_token)
        hold = await client.post(RESERVATIONS, json={
            "show_id": show_id, "seat_ids": [seats[0]["id"], seats[3]["id"]],
        }, headers=auth_header(parent_token))
        order = await client.post(ORDERS, json={
            "reservation_token": hold.json()["reservation_token"],
            "customer_name": "Pat Parent",
            "customer_email": "Parent@Test.com",
        }, headers=auth_header(parent_token))
        assert order.status_code == 201
        return show_id, order.json()

    async def test_order_reuses_pending_order(self, client: AsyncClient, admin_token, parent_token):
        show_id, seats = await _show_on_sale(client, admin_token)
        hold = await client.post(RESERVATIONS, json={
            "show_id": show_id, "seat_ids": [seats[0]["id"]],
        }, headers=auth_header(parent_token))
        body = {
            "reservation_token": hold.json()["reservation_token"],
            "customer_name": "Pat Parent",
            "customer_email": "parent@test.com",
        }
        first = await client.post(ORDERS, json=body, headers=auth_header(parent_token))
        second = await client.post(ORDERS, json=body, headers=auth_header(parent_token))
        assert first.json()["id"] == second.json()["id"]
        assert first.json()["order_number"].startswith("ORD-")

    async def test_order_from_other_session_forbidden(self, client: AsyncClient, admin_token, parent_token):
        show_id, seats = await _show_on_sale(client, admin_token)
        hold = await client.post(RESERVATIONS, json={
            "show_id": show_id, "seat_ids": [seats[0]["id"]],
        }, headers=auth_header(parent_token))
        res = await client.post(ORDERS, json={
            "reservation_token": hold.json()["reservation_token"],
            "customer_name": "Someone Else",
            "customer_email": "else@test.com",
        }, headers=auth_header(admin_token))
        assert res.status_code == 403

    async def test_payment_intent_unconfigured(self, client: AsyncClient, admin_token, parent_token, monkeypatch):
        monkeypatch.setattr(settings, "STRIPE_SECRET_KEY", "")
        _, order = await self._order(client, admin_token, parent_token)
        res = await client.post(f"{ORDERS}/{order['id']}/payment-intent")
        assert res.status_code == 500

    async def test_payment_intent_after_expiry_is_gone(
        self, client: AsyncClient, db, admin_token, parent_token, monkeypatch
    ):
        _, order = await self._order(client, admin_token, parent_token)
        reservation = (await db.execute(
            select(SeatReservation).where(SeatReservation.id == uuid.UUID(order["reservation_id"]))
        )).scalar_one()
        reservation.expires_at = reservation.expires_at - timedelta(hours=2)
        await db.flush()

        res = await client.post(f"{ORDERS}/{order['id']}/payment-intent")
        assert res.status_code == 410

    async def test_pay_confirm_check_in_refund(self, client: AsyncClient, admin_token, parent_token, monkeypatch):
        intents: dict[str, dict] = {}

        async def fake_create(amount_in_cents, metadata, idempotency_key, receipt_email=None, description=None):
            intent = {
                "id": "pi_test_1", "client_secret": "secret_1", "amount": amount_in_cents,
                "currency": "usd", "status": "requires_payment_method", "metadata": metadata,
            }
            intents[intent["id"]] = intent
            return intent

        async def fake_retrieve(intent_id):
            return intents[intent_id]

        async def fake_refund(intent_id, amount_in_cents):
            return {"id": "re_test_1", "amount": amount_in_cents, "status": "succeeded"}

        monkeypatch.setattr(payment_gateway, "create_payment_intent", fake_create)
        monkeypatch.setattr(payment_gateway, "retrieve_payment_intent", fake_retrieve)
        monkeypatch.setattr(payment_gateway, "refund", fake_refund)

        show_id, order = await self._order(client, admin_token, parent_token)
        assert order["customer_email"] == "parent@test.com"
        intent = await client.post(f"{ORDERS}/{order['id']}/payment-intent")
        assert intent.status_code == 200
        assert intent.json()["amount"] == 5000

        # 결제 미완료 상태에서 확정 불가
        early = await client.post(f"{ORDERS}/{order['id']}/confirm", json={"payment_intent_id": "pi_test_1"})
        assert early.status_code == 400

        intents["pi_test_1"]["status"] = "succeeded"
        confirmed = await client.post(f"{ORDERS}/{order['id']}/confirm", json={"payment_intent_id": "pi_test_1"})
        assert confirmed.status_code == 200
        paid = confirmed.json()["order"]
        assert paid["status"] == "paid"
        assert len(paid["tickets"]) == 2

        # 재확정은 성공 no-op
        again = await client.post(f"{ORDERS}/{order['id']}/confirm", json={"payment_intent_id": "pi_test_1"})
        assert again.json()["success"] is True

        lookup = await client.get(f"{ORDERS}/lookup", params={
            "order_number": paid["order_number"], "email": "PARENT@test.com",
        })
        assert lookup.status_code == 200

        code = paid["tickets"][0]["ticket_code"]
        verify = await client.post(f"{RECITALS}/tickets/verify", json={"ticket_code": code}, headers=auth_header(admin_token))
        assert verify.json()["valid"] is True
        check_in = await client.post(f"{RECITALS}/tickets/{code}/check-in", headers=auth_header(admin_token))
        assert check_in.status_code == 200
        verify = await client.post(f"{RECITALS}/tickets/verify", json={"ticket_code": code}, headers=auth_header(admin_token))
        assert verify.json()["valid"] is False

        export = await client.get(f"{RECITALS}/shows/{show_id}/sales-export", headers=auth_header(admin_token))
        assert export.status_code == 200
        assert paid["order_number"] in export.text

        partial = await client.post(f"{RECITALS}/orders/{order['id']}/refund", json={
            "amount_in_cents": 1000,
        }, headers=auth_header(admin_token))
        assert partial.json()["full_refund"] is False
        too_much = await client.post(f"{RECITALS}/orders/{order['id']}/refund", json={
            "amount_in_cents": 999999,
        }, headers=auth_header(admin_token))
        assert too_much.status_code == 400
        full = await client.post(f"{RECITALS}/orders/{order['id']}/refund", json={}, headers=auth_header(admin_token))
        assert full.json()["full_refund"] is True
        assert full.json()["order"]["status"] == "refunded"

        seats = await client.get(f"{SHOWS}/{show_id}/seats")
        assert all(s["status"] == "available" for s in seats.json()["seats"])

    @pytest.mark.parametrize("email", ["wrong@test.com"])
    async def test_lookup_wrong_email(self, client: AsyncClient, admin_token, parent_token, email):
        _, order = await self._order(client, admin_token, parent_token)
        res = await client.get(f"{ORDERS}/lookup", params={"order_number": order["order_number"], "email": email})
        assert res.status_code == 404
