"""발표회 티켓 서비스 — 공연장, 공연, 좌석 예약, 주문, 결제, 환불, 입장 비즈니스 로직.

Ticketing Service — Venues and seat maps, recital shows, per-show seat
inventory, 30-minute seat holds, ticket orders, payment intents, ticket
issue, refunds, sales export and door check-in.

Seat holds:
    - Reserving locks the requested seat rows (``SELECT ... FOR UPDATE``)
      and writes the reservation, its seat links and the seat holds in the
      caller's transaction.
    - Expiry is evaluated lazily: a ``reserved`` seat whose
      ``reserved_until`` has passed counts as available. No sweeper job.
    - A reservation belongs to a session id: the user id when logged in,
      otherwise the anonymous reservation cookie.
"""

import logging
import secrets
from datetime import datetime, timedelta
from typing import Sequence
from uuid import UUID

import aiosmtplib
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.ticketing import RecitalShow, SeatReservation, ShowSeat, Ticket, TicketOrder, Venue, VenueSeat
from app.repositories.organization_repository import organization_repository
from app.repositories.ticketing_repository import (
    reservation_repository,
    show_repository,
    show_seat_repository,
    ticket_order_repository,
    venue_repository,
)
from app.schemas.ticketing import (
    ConfirmOrderRequest,
    RefundRequest,
    ReleaseReservationRequest,
    ReserveSeatsRequest,
    SeatBlockRequest,
    SeatLayoutRequest,
    ShowCreate,
    ShowUpdate,
    TicketOrderCreate,
    VenueCreate,
)
from app.services.payment_gateway import TERMINAL_INTENT_STATUSES, payment_gateway
from app.utils.email import is_email_configured, send_email
from app.utils.exceptions import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    GoneError,
    NotFoundError,
    TooManyRequestsError,
)
from app.utils.export import build_csv, cents_to_decimal_str, format_money
from app.utils.timeutil import ensure_utc, utcnow

logger = logging.getLogger(__name__)

SALES_HEADERS: list[str] = [
    "Order Number", "Order Date", "Show Date", "Show Time", "Customer Name", "Customer Email",
    "Customer Phone", "Channel", "Tickets", "Subtotal", "Discount", "Total", "Status", "Seats",
]


def new_session_id() -> str:
    """비로그인 예약 세션 ID — 32 random bytes, hex."""
    return secrets.token_hex(32)


def generate_order_number() -> str:
    return f"ORD-{utcnow():%Y%m%d}-{secrets.token_hex(3).upper()}"


def hold_lapsed(seat: ShowSeat, now: datetime) -> bool:
    """예약 유지 시간이 지난 좌석 — A reserved seat whose hold has expired."""
    return seat.status == "reserved" and (seat.reserved_until is None or ensure_utc(seat.reserved_until) <= now)


def effective_status(seat: ShowSeat, now: datetime) -> str:
    return "available" if hold_lapsed(seat, now) else seat.status


def is_seat_available(seat: ShowSeat, now: datetime) -> bool:
    return effective_status(seat, now) == "available"


def _release_seat(seat: ShowSeat) -> None:
    seat.status = "available"
    seat.reserved_until = None
    seat.reserved_by = None
    seat.reservation_id = None


class TicketingService:
    """발표회 티켓 서비스."""

    # === 공연장 (Venues) ===

    async def list_venues(self, db: AsyncSession, organization_id: UUID) -> list[dict]:
        venues = await venue_repository.get_all(db, organization_id, order_by=Venue.name)
        results: list[dict] = []
        for v in venues:
            seats = await venue_repository.get_seats(db, v.id)
            results.append({
                "id": str(v.id),
                "name": v.name,
                "address": v.address,
                "seat_count": len(seats),
                "sections": sorted({s.section for s in seats}),
                "created_at": v.created_at,
            })
        return results

    async def create_venue(self, db: AsyncSession, organization_id: UUID, data: VenueCreate) -> dict:
        venue = await venue_repository.create(db, {"organization_id": organization_id, **data.model_dump()})
        return {"id": str(venue.id), "name": venue.name, "address": venue.address, "seat_count": 0, "sections": []}

    async def create_layout(
        self,
        db: AsyncSession,
        venue_id: UUID,
        organization_id: UUID,
        data: SeatLayoutRequest,
    ) -> dict:
        """구역 좌석 배치 생성 — 이미 있는 (구역, 행, 번호) 는 건너뜀.

        Returns:
            dict: {"created": int, "skipped": int}
        """
        venue = await venue_repository.get_or_404(db, venue_id, organization_id)
        existing = {(s.section, s.row_name, s.seat_number) for s in await venue_repository.get_seats(db, venue.id)}
        created = skipped = 0
        for row_name in data.rows:
            row_name = row_name.strip().upper()
            if not row_name:
                raise BadRequestError("행 이름이 비어 있습니다 (Row names cannot be blank)")
            for number in range(1, data.seats_per_row + 1):
                if (data.section, row_name, number) in existing:
                    skipped += 1
                    continue
                db.add(VenueSeat(
                    venue_id=venue.id,
                    section=data.section,
                    row_name=row_name,
                    seat_number=number,
                    seat_type=data.seat_type,
                    handicap_access=data.seat_type == "handicap",
                    price_in_cents=data.price_in_cents,
                    is_sellable=True,
                ))
                created += 1
        await db.flush()
        return {"created": created, "skipped": skipped}

    # === 공연 회차 (Shows) ===

    async def _show_to_dict(self, db: AsyncSession, show: RecitalShow, now: datetime | None = None) -> dict:
        now = now or utcnow()
        seats = await show_seat_repository.get_by_show(db, show.id)
        counts: dict[str, int] = {"available": 0, "reserved": 0, "sold": 0, "blocked": 0}
        for seat in seats:
            status = effective_status(seat, now)
            counts[status] = counts.get(status, 0) + 1
        venue = await venue_repository.get_by_id(db, show.venue_id) if show.venue_id else None
        prices = [s.price_in_cents for s in seats]
        return {
            "id": str(show.id),
            "name": show.name,
            "description": show.description,
            "show_date": show.show_date,
            "start_time": show.start_time.strftime("%H:%M") if show.start_time else None,
            "venue_id": str(show.venue_id) if show.venue_id else None,
            "venue_name": venue.name if venue else None,
            "status": show.status,
            "ticket_sale_start": show.ticket_sale_start,
            "ticket_sale_end": show.ticket_sale_end,
            "total_seats": len(seats),
            "seat_counts": counts,
            "min_price_in_cents": min(prices) if prices else None,
            "max_price_in_cents": max(prices) if prices else None,
        }

    def _is_selling(self, show: RecitalShow, now: datetime) -> bool:
        """판매 상태와 판매 기간 확인 — on_sale and inside the optional sale window."""
        if show.status != "on_sale":
            return False
        if show.ticket_sale_start is not None and ensure_utc(show.ticket_sale_start) > now:
            return False
        return show.ticket_sale_end is None or ensure_utc(show.ticket_sale_end) >= now

    def _check_sale_window(self, start: datetime | None, end: datetime | None) -> None:
        if start is not None and end is not None and ensure_utc(end) < ensure_utc(start):
            raise BadRequestError("판매 종료가 시작보다 빠릅니다 (ticket_sale_end must be after ticket_sale_start)")

    async def list_shows(self, db: AsyncSession, organization_id: UUID, status: str | None = None) -> list[dict]:
        now = utcnow()
        return [
            await self._show_to_dict(db, s, now)
            for s in await show_repository.get_by_org(db, organization_id, status)
        ]

    async def get_show(self, db: AsyncSession, show_id: UUID, organization_id: UUID) -> dict:
        return await self._show_to_dict(db, await show_repository.get_or_404(db, show_id, organization_id))

    async def create_show(self, db: AsyncSession, organization_id: UUID, data: ShowCreate) -> dict:
        if data.venue_id is not None:
            await venue_repository.get_or_404(db, data.venue_id, organization_id)
        self._check_sale_window(data.ticket_sale_start, data.ticket_sale_end)
        show = await show_repository.create(db, {"organization_id": organization_id, **data.model_dump()})
        return await self._show_to_dict(db, show)

    async def update_show(self, db: AsyncSession, show_id: UUID, organization_id: UUID, data: ShowUpdate) -> dict:
        show = await show_repository.get_or_404(db, show_id, organization_id)
        update_data: dict = data.model_dump(exclude_unset=True)
        if update_data.get("venue_id") is not None:
            await venue_repository.get_or_404(db, update_data["venue_id"], organization_id)
        self._check_sale_window(
            update_data.get("ticket_sale_start", show.ticket_sale_start),
            update_data.get("ticket_sale_end", show.ticket_sale_end),
        )
        show = await show_repository.update(db, show, update_data)
        return await self._show_to_dict(db, show)

    # === 회차 좌석 (Show seats) ===

    def _seat_to_dict(self, seat: ShowSeat, now: datetime, session_id: str | None = None) -> dict:
        status = effective_status(seat, now)
        return {
            "id": str(seat.id),
            "label": seat.label,
            "section": seat.section,
            "row_name": seat.row_name,
            "seat_number": seat.seat_number,
            "seat_type": seat.seat_type,
            "handicap_access": seat.handicap_access,
            "price_in_cents": seat.price_in_cents,
            "status": status,
            "held_by_you": bool(session_id) and status == "reserved" and seat.reserved_by == session_id,
        }

    async def generate_seats(self, db: AsyncSession, show_id: UUID, organization_id: UUID) -> dict:
        """공연장 좌석을 회차 좌석으로 복사 — 이미 있는 좌석은 건너뜀.

        Raises:
            NotFoundError: 공연 없음
            BadRequestError: 공연장 미지정
        """
        show = await show_repository.get_or_404(db, show_id, organization_id)
        if show.venue_id is None:
            raise BadRequestError("공연장이 지정되지 않았습니다 (Show has no venue)")
        existing = await show_seat_repository.existing_venue_seat_ids(db, show.id)
        created = skipped = 0
        for vs in await venue_repository.get_seats(db, show.venue_id, sellable_only=True):
            if vs.id in existing:
                skipped += 1
                continue
            db.add(ShowSeat(
                show_id=show.id,
                venue_seat_id=vs.id,
                section=vs.section,
                row_name=vs.row_name,
                seat_number=vs.seat_number,
                seat_type=vs.seat_type,
                handicap_access=vs.handicap_access,
                price_in_cents=vs.price_in_cents,
                status="available",
            ))
            created += 1
        await db.flush()
        logger.info("Generated %d seats for show %s (%d skipped)", created, show.id, skipped)
        return {"created": created, "skipped": skipped}

    async def set_seat_block(
        self,
        db: AsyncSession,
        show_id: UUID,
        organization_id: UUID,
        data: SeatBlockRequest,
    ) -> dict:
        """좌석 판매 차단/해제.

        Raises:
            BadRequestError: 다른 공연의 좌석
            ConflictError: 예약/판매된 좌석 차단 시도
        """
        show = await show_repository.get_or_404(db, show_id, organization_id)
        seats = await show_seat_repository.get_many(db, list(set(data.seat_ids)), for_update=True)
        if len(seats) != len(set(data.seat_ids)):
            raise NotFoundError("Seat not found")
        if any(s.show_id != show.id for s in seats):
            raise BadRequestError("다른 공연의 좌석입니다 (Seat belongs to another show)")

        now = utcnow()
        if data.action == "block":
            busy = [s.label for s in seats if not is_seat_available(s, now) and s.status != "blocked"]
            if busy:
                raise ConflictError({"message": "예약 또는 판매된 좌석입니다 (Seats are reserved or sold)", "seats": busy})
            for seat in seats:
                _release_seat(seat)
                seat.status = "blocked"
        else:
            for seat in seats:
                if seat.status == "blocked":
                    seat.status = "available"
        await db.flush()
        return {"updated": len(seats), "seats": [self._seat_to_dict(s, now) for s in seats]}

    async def get_seat_map(self, db: AsyncSession, show_id: UUID, organization_id: UUID) -> dict:
        show = await show_repository.get_or_404(db, show_id, organization_id)
        now = utcnow()
        return {
            "show_id": str(show.id),
            "seats": [self._seat_to_dict(s, now) for s in await show_seat_repository.get_by_show(db, show.id)],
        }

    # === 공개 (Public) ===

    async def list_public_shows(self, db: AsyncSession, organization_id: UUID) -> list[dict]:
        """판매 중인 공연 — Shows currently on sale."""
        now = utcnow()
        results: list[dict] = []
        for show in await show_repository.get_by_org(db, organization_id, "on_sale"):
            if show.ticket_sale_end is not None and ensure_utc(show.ticket_sale_end) < now:
                continue
            results.append(await self._show_to_dict(db, show, now))
        return results

    async def get_public_seats(self, db: AsyncSession, show_id: UUID, session_id: str | None) -> dict:
        show = await show_repository.get_by_id(db, show_id)
        if show is None or show.status == "draft":
            raise NotFoundError("Show not found")
        now = utcnow()
        return {
            "show": await self._show_to_dict(db, show, now),
            "seats": [
                self._seat_to_dict(s, now, session_id) for s in await show_seat_repository.get_by_show(db, show.id)
            ],
        }

    # === 좌석 예약 (Seat holds) ===

    def _time_remaining(self, reservation: SeatReservation, now: datetime) -> int:
        return max(int((ensure_utc(reservation.expires_at) - now).total_seconds()), 0)

    def _reservation_to_dict(self, reservation: SeatReservation, seats: Sequence[ShowSeat], now: datetime) -> dict:
        expired = not reservation.is_active or ensure_utc(reservation.expires_at) <= now
        return {
            "reservation_id": str(reservation.id),
            "reservation_token": reservation.reservation_token,
            "show_id": str(reservation.show_id),
            "expires_at": ensure_utc(reservation.expires_at),
            "is_active": reservation.is_active,
            "is_expired": expired,
            "time_remaining_seconds": 0 if expired else self._time_remaining(reservation, now),
            "extension_count": reservation.extension_count,
            "seats": [self._seat_to_dict(s, now) for s in seats],
            "total_in_cents": sum(s.price_in_cents for s in seats),
        }

    async def reserve(
        self,
        db: AsyncSession,
        data: ReserveSeatsRequest,
        session_id: str,
        user_id: UUID | None,
    ) -> dict:
        """좌석 임시 예약.

        Hold 1..MAX seats of one show for ``SEAT_HOLD_MINUTES``. Seat rows
        are locked while checked, so two concurrent holds on the same seat
        cannot both succeed.

        Raises:
            BadRequestError: 좌석 수 범위 밖, 다른 공연 좌석, 판매 중 아님
            NotFoundError: 공연/좌석 없음
            ConflictError: 이미 예약/판매된 좌석 (409)
        """
        seat_ids = list(dict.fromkeys(data.seat_ids))
        if not 1 <= len(seat_ids) <= settings.MAX_SEATS_PER_RESERVATION:
            raise BadRequestError(
                f"좌석은 1~{settings.MAX_SEATS_PER_RESERVATION}개까지 예약할 수 있습니다 "
                f"(Select between 1 and {settings.MAX_SEATS_PER_RESERVATION} seats)"
            )
        show = await show_repository.get_or_404(db, data.show_id)
        if not self._is_selling(show, utcnow()):
            raise BadRequestError("판매 중인 공연이 아닙니다 (Tickets for this show are not on sale)")

        seats = await show_seat_repository.get_many(db, seat_ids, for_update=True)
        if len(seats) != len(seat_ids):
            raise NotFoundError("좌석을 찾을 수 없습니다 (One or more seats were not found)")
        if any(s.show_id != show.id for s in seats):
            raise BadRequestError("다른 공연의 좌석입니다 (Seat belongs to another show)")

        now = utcnow()
        unavailable = [s.label for s in seats if not is_seat_available(s, now)]
        if unavailable:
            raise ConflictError({
                "message": "이미 선택된 좌석입니다 (Some seats are no longer available)",
                "unavailable_seats": unavailable,
            })

        expires_at = now + timedelta(minutes=settings.SEAT_HOLD_MINUTES)
        reservation = await reservation_repository.create(db, {
            "show_id": show.id,
            "session_id": session_id,
            "user_id": user_id,
            "expires_at": expires_at,
            "is_active": True,
        })
        await reservation_repository.add_seats(db, reservation.id, [s.id for s in seats])
        for seat in seats:
            seat.status = "reserved"
            seat.reserved_until = expires_at
            seat.reserved_by = session_id
            seat.reservation_id = reservation.id
        await db.flush()
        logger.info("Reservation %s holds %d seats for show %s", reservation.id, len(seats), show.id)
        return self._reservation_to_dict(reservation, seats, now)

    async def _held_seats(self, db: AsyncSession, reservation: SeatReservation) -> list[ShowSeat]:
        seat_ids = await reservation_repository.get_seat_ids(db, reservation.id)
        return list(await show_seat_repository.get_many(db, seat_ids))

    async def check(self, db: AsyncSession, token: str) -> dict:
        """예약 상태 확인 — is_expired, time_remaining_seconds."""
        reservation = await reservation_repository.get_by_token(db, token)
        if reservation is None:
            raise NotFoundError("Reservation not found")
        return self._reservation_to_dict(reservation, await self._held_seats(db, reservation), utcnow())

    async def extend(self, db: AsyncSession, token: str, session_id: str | None) -> dict:
        """예약 연장 — +5분, 최대 3회.

        Raises:
            ForbiddenError: 다른 세션의 예약
            BadRequestError: 비활성/만료된 예약
            TooManyRequestsError: 연장 횟수 초과 (429)
        """
        reservation = await reservation_repository.get_by_token(db, token, for_update=True)
        if reservation is None:
            raise NotFoundError("Reservation not found")
        if reservation.session_id != session_id:
            raise ForbiddenError("다른 세션의 예약입니다 (Reservation belongs to another session)")
        now = utcnow()
        if not reservation.is_active or ensure_utc(reservation.expires_at) <= now:
            raise BadRequestError("만료된 예약입니다 (Reservation is no longer active)")
        if reservation.extension_count >= settings.SEAT_HOLD_MAX_EXTENSIONS:
            raise TooManyRequestsError(
                f"연장은 최대 {settings.SEAT_HOLD_MAX_EXTENSIONS}회입니다 "
                f"(Reservation can be extended at most {settings.SEAT_HOLD_MAX_EXTENSIONS} times)"
            )

        new_expiry = ensure_utc(reservation.expires_at) + timedelta(minutes=settings.SEAT_HOLD_EXTENSION_MINUTES)
        reservation.expires_at = new_expiry
        reservation.extension_count += 1
        seats = await self._held_seats(db, reservation)
        for seat in seats:
            if seat.reservation_id == reservation.id and seat.status == "reserved":
                seat.reserved_until = new_expiry
        await db.flush()
        return self._reservation_to_dict(reservation, seats, now)

    async def release(self, db: AsyncSession, data: ReleaseReservationRequest, session_id: str | None) -> dict:
        """예약 해제 — 아직 이 예약이 잡고 있는 좌석만 반환.

        Raises:
            BadRequestError: 식별자 없음, 이미 비활성
            ForbiddenError: 다른 세션의 예약
        """
        if data.reservation_token:
            reservation = await reservation_repository.get_by_token(db, data.reservation_token, for_update=True)
        elif data.reservation_id is not None:
            reservation = await reservation_repository.get_by_id(db, data.reservation_id, for_update=True)
        else:
            raise BadRequestError("reservation_token 또는 reservation_id 가 필요합니다 (reservation_token or reservation_id is required)")
        if reservation is None:
            raise NotFoundError("Reservation not found")
        if reservation.session_id != session_id:
            raise ForbiddenError("다른 세션의 예약입니다 (Reservation belongs to another session)")
        if not reservation.is_active:
            raise BadRequestError("이미 해제된 예약입니다 (Reservation is not active)")

        seat_ids = await reservation_repository.get_seat_ids(db, reservation.id)
        released = 0
        for seat in await show_seat_repository.get_many(db, seat_ids, for_update=True):
            if seat.reservation_id == reservation.id and seat.status == "reserved":
                _release_seat(seat)
                released += 1
        reservation.is_active = False
        await db.flush()
        return {"released": released, "reservation_id": str(reservation.id)}

    # === 주문 (Orders) ===

    async def _order_to_dict(self, db: AsyncSession, order: TicketOrder, include_tickets: bool = True) -> dict:
        data = {
            "id": str(order.id),
            "order_number": order.order_number,
            "show_id": str(order.show_id),
            "reservation_id": str(order.reservation_id) if order.reservation_id else None,
            "customer_name": order.customer_name,
            "customer_email": order.customer_email,
            "customer_phone": order.customer_phone,
            "channel": order.channel,
            "subtotal_in_cents": order.subtotal_in_cents,
            "discount_in_cents": order.discount_in_cents,
            "total_amount_in_cents": order.total_amount_in_cents,
            "refunded_amount_in_cents": order.refunded_amount_in_cents,
            "status": order.status,
            "payment_intent_id": order.payment_intent_id,
            "paid_at": order.paid_at,
            "notes": order.notes,
            "created_at": order.created_at,
        }
        if include_tickets:
            tickets = await ticket_order_repository.get_tickets(db, order.id)
            seats = {s.id: s for s in await show_seat_repository.get_many(db, [t.show_seat_id for t in tickets])}
            data["tickets"] = [self._ticket_to_dict(t, seats.get(t.show_seat_id)) for t in tickets]
        return data

    def _ticket_to_dict(self, ticket: Ticket, seat: ShowSeat | None) -> dict:
        return {
            "id": str(ticket.id),
            "ticket_code": ticket.ticket_code,
            "status": ticket.status,
            "seat": seat.label if seat else None,
            "section": seat.section if seat else None,
            "row_name": seat.row_name if seat else None,
            "seat_number": seat.seat_number if seat else None,
            "checked_in_at": ticket.checked_in_at,
        }

    async def create_order(
        self,
        db: AsyncSession,
        data: TicketOrderCreate,
        session_id: str | None,
        user_id: UUID | None,
    ) -> dict:
        """예약으로 주문 생성 (status=pending).

        Raises:
            NotFoundError: 예약 없음
            ForbiddenError: 다른 세션의 예약
            BadRequestError: 비활성/만료 예약, 좌석 점유 상실
        """
        reservation = await reservation_repository.get_by_token(db, data.reservation_token, for_update=True)
        if reservation is None:
            raise NotFoundError("Reservation not found")
        if reservation.session_id != session_id:
            raise ForbiddenError("다른 세션의 예약입니다 (Reservation belongs to another session)")
        now = utcnow()
        if not reservation.is_active:
            raise BadRequestError("만료된 예약입니다 (Reservation is no longer active)")
        if ensure_utc(reservation.expires_at) <= now:
            raise BadRequestError("예약 시간이 만료되었습니다 (Reservation has expired)")

        seats = await self._held_seats(db, reservation)
        if not seats or any(s.reservation_id != reservation.id or s.status != "reserved" for s in seats):
            raise BadRequestError("예약한 좌석 일부가 더 이상 유효하지 않습니다 (Some reserved seats are no longer held)")

        show = await show_repository.get_or_404(db, reservation.show_id)
        subtotal = sum(s.price_in_cents for s in seats)
        values: dict = {
            "customer_name": data.customer_name.strip(),
            "customer_email": str(data.customer_email).lower(),
            "customer_phone": data.customer_phone,
            "subtotal_in_cents": subtotal,
            "discount_in_cents": 0,
            "total_amount_in_cents": subtotal,
        }
        pending = await ticket_order_repository.get_all(
            db, filters={"reservation_id": reservation.id, "status": "pending"}
        )
        if pending:
            order = await ticket_order_repository.update(db, pending[0], values)
        else:
            order = await ticket_order_repository.create(db, {
                "organization_id": show.organization_id,
                "order_number": generate_order_number(),
                "show_id": show.id,
                "reservation_id": reservation.id,
                "user_id": user_id,
                "channel": "online",
                "status": "pending",
                **values,
            })
        data_out = await self._order_to_dict(db, order, include_tickets=False)
        data_out["seats"] = [self._seat_to_dict(s, now) for s in seats]
        return data_out

    async def create_payment_intent(self, db: AsyncSession, order_id: UUID) -> dict:
        """주문 결제 intent 생성 또는 재사용.

        Raises:
            BadRequestError: 결제 대기 상태가 아님
            GoneError: 좌석 예약 만료 (410)
            ServiceNotConfiguredError: 결제 미설정 (500)
        """
        order = await ticket_order_repository.get_or_404(db, order_id)
        if order.status != "pending":
            raise BadRequestError(f"결제 대기 중인 주문이 아닙니다 (Order is {order.status})")
        reservation = (
            await reservation_repository.get_by_id(db, order.reservation_id) if order.reservation_id else None
        )
        if reservation is None or not reservation.is_active or ensure_utc(reservation.expires_at) <= utcnow():
            raise GoneError("좌석 예약이 만료되었습니다 (Seat reservation has expired. Please select seats again)")

        if order.payment_intent_id:
            intent = await payment_gateway.retrieve_payment_intent(order.payment_intent_id)
            if intent["status"] not in TERMINAL_INTENT_STATUSES:
                return {
                    "client_secret": intent["client_secret"],
                    "payment_intent_id": intent["id"],
                    "amount": intent["amount"],
                    "currency": intent["currency"],
                }
            idempotency_key = f"ticket-order-{order.id}-{order.payment_intent_id}"
        else:
            idempotency_key = f"ticket-order-{order.id}"

        intent = await payment_gateway.create_payment_intent(
            amount_in_cents=order.total_amount_in_cents,
            metadata={
                "order_id": str(order.id),
                "order_number": order.order_number,
                "customer_email": order.customer_email,
                "show_id": str(order.show_id),
            },
            idempotency_key=idempotency_key,
            receipt_email=order.customer_email,
            description=f"Recital tickets {order.order_number}",
        )
        order.payment_intent_id = intent["id"]
        await db.flush()
        return {
            "client_secret": intent["client_secret"],
            "payment_intent_id": intent["id"],
            "amount": intent["amount"],
            "currency": intent["currency"],
        }

    async def confirm_order(self, db: AsyncSession, order_id: UUID, data: ConfirmOrderRequest) -> dict:
        """결제 확인 후 발권.

        Verify the intent succeeded for this order, mark the seats sold,
        close the reservation, issue one ticket per seat and email the
        confirmation. Confirming an already paid order is a no-op success.

        Raises:
            BadRequestError: 결제 미완료, 다른 주문의 결제
            ConflictError: 좌석이 다른 예약으로 넘어감
        """
        order = await ticket_order_repository.get_or_404(db, order_id)
        if order.status == "paid":
            return {"success": True, "order": await self._order_to_dict(db, order)}
        if order.status != "pending":
            raise BadRequestError(f"확정할 수 없는 주문입니다 (Order is {order.status})")

        intent = await payment_gateway.retrieve_payment_intent(data.payment_intent_id)
        if intent["status"] != "succeeded":
            raise BadRequestError(f"결제가 완료되지 않았습니다 (Payment status is {intent['status']})")
        if intent["metadata"].get("order_id") != str(order.id):
            raise BadRequestError("주문과 결제 정보가 일치하지 않습니다 (Payment does not belong to this order)")

        reservation = (
            await reservation_repository.get_by_id(db, order.reservation_id, for_update=True)
            if order.reservation_id else None
        )
        if reservation is None:
            raise BadRequestError("주문에 연결된 예약이 없습니다 (Order has no seat reservation)")
        seat_ids = await reservation_repository.get_seat_ids(db, reservation.id)
        seats = await show_seat_repository.get_many(db, seat_ids, for_update=True)
        now = utcnow()
        lost = [
            s.label for s in seats
            if not (s.reservation_id == reservation.id and s.status == "reserved") and not is_seat_available(s, now)
        ]
        if lost:
            logger.error("Paid order %s lost seats %s; manual refund required", order.id, lost)
            raise ConflictError({"message": "좌석이 이미 판매되었습니다 (Seats were sold to another order)", "seats": lost})

        for seat in seats:
            seat.status = "sold"
            seat.reserved_until = None
            seat.reserved_by = reservation.session_id
            seat.reservation_id = reservation.id
            db.add(Ticket(order_id=order.id, show_seat_id=seat.id, status="valid"))
        reservation.is_active = False
        order.status = "paid"
        order.paid_at = now
        order.payment_intent_id = data.payment_intent_id
        await db.flush()
        logger.info("Order %s paid; %d tickets issued", order.order_number, len(seats))

        result = await self._order_to_dict(db, order)
        await self._send_confirmation(db, order, result)
        return {"success": True, "order": result}

    async def _send_confirmation(self, db: AsyncSession, order: TicketOrder, data: dict) -> None:
        """주문 확인 메일 — 실패는 로그만 남김 (The order stays paid)."""
        if not is_email_configured():
            logger.warning("SMTP not configured; skipping confirmation for %s", order.order_number)
            return
        show = await show_repository.get_by_id(db, order.show_id)
        org = await organization_repository.get_by_id(db, order.organization_id)
        rows = "".join(
            f"<tr><td>{t['seat']}</td><td>{t['ticket_code']}</td></tr>" for t in data["tickets"]
        )
        html = (
            f"<h2>{org.name if org else 'Dance Studio'}</h2>"
            f"<p>Thank you, {order.customer_name}! Your order <b>{order.order_number}</b> is confirmed.</p>"
            f"<p>{show.name if show else ''} on {show.show_date if show else ''}</p>"
            f"<table><tr><th>Seat</th><th>Ticket</th></tr>{rows}</table>"
            f"<p>Total paid: {format_money(order.total_amount_in_cents)}</p>"
        )
        try:
            await send_email(order.customer_email, f"Your tickets - {order.order_number}", html)
        except (aiosmtplib.SMTPException, OSError) as exc:
            logger.error("Confirmation email for %s failed: %s", order.order_number, exc)

    async def lookup(self, db: AsyncSession, order_number: str, email: str) -> dict:
        """주문번호 + 이메일로 주문 조회."""
        order = await ticket_order_repository.get_by_number(db, order_number)
        if order is None or order.customer_email.lower() != email.strip().lower():
            raise NotFoundError("Order not found")
        data = await self._order_to_dict(db, order)
        data["show"] = await self._show_to_dict(db, await show_repository.get_or_404(db, order.show_id))
        return data

    # === 관리자 (Admin) ===

    async def list_show_orders(
        self,
        db: AsyncSession,
        show_id: UUID,
        organization_id: UUID,
        status: str | None,
    ) -> list[dict]:
        show = await show_repository.get_or_404(db, show_id, organization_id)
        return [
            await self._order_to_dict(db, o) for o in await ticket_order_repository.get_by_show(db, show.id, status)
        ]

    async def refund(
        self,
        db: AsyncSession,
        order_id: UUID,
        organization_id: UUID,
        data: RefundRequest,
    ) -> dict:
        """주문 환불.

        Refund a paid order in full or in part. A full refund frees the
        seats and voids the tickets; a partial refund leaves the order
        paid. Box-office orders without a payment intent skip the gateway.

        Raises:
            BadRequestError: 결제 완료 주문 아님, 금액 범위 밖
        """
        order = await ticket_order_repository.get_or_404(db, order_id, organization_id)
        if order.status != "paid":
            raise BadRequestError("결제 완료된 주문만 환불할 수 있습니다 (Only paid orders can be refunded)")
        remaining = order.total_amount_in_cents - order.refunded_amount_in_cents
        amount = data.amount_in_cents if data.amount_in_cents is not None else remaining
        if amount <= 0 or amount > remaining:
            raise BadRequestError(
                f"환불 금액이 올바르지 않습니다 (Refund amount must be between 1 and {remaining} cents)"
            )

        refund_id = None
        if order.payment_intent_id:
            refund_id = (await payment_gateway.refund(order.payment_intent_id, amount))["id"]

        order.refunded_amount_in_cents += amount
        full = order.refunded_amount_in_cents >= order.total_amount_in_cents
        note = f"Refunded {format_money(amount)}" + (f": {data.reason}" if data.reason else "")
        order.notes = f"{order.notes}\n{note}" if order.notes else note
        if full:
            order.status = "refunded"
            tickets = await ticket_order_repository.get_tickets(db, order.id)
            for seat in await show_seat_repository.get_many(db, [t.show_seat_id for t in tickets], for_update=True):
                _release_seat(seat)
            for ticket in tickets:
                ticket.status = "void"
        await db.flush()
        logger.info("Order %s refunded %d cents (full=%s)", order.order_number, amount, full)
        return {
            "success": True,
            "refund_id": refund_id,
            "amount_in_cents": amount,
            "full_refund": full,
            "order": await self._order_to_dict(db, order),
        }

    async def sales_export(self, db: AsyncSession, show_id: UUID, organization_id: UUID) -> tuple[str, str]:
        """판매 내역 CSV — (content, filename). 결제 대기 주문 제외."""
        show = await show_repository.get_or_404(db, show_id, organization_id)
        orders = [o for o in await ticket_order_repository.get_by_show(db, show.id) if o.status != "pending"]
        seats_by_order = await ticket_order_repository.get_seats_for_orders(db, [o.id for o in orders])
        rows = []
        for o in orders:
            seats = seats_by_order.get(o.id, [])
            rows.append([
                o.order_number,
                ensure_utc(o.created_at).strftime("%Y-%m-%d %H:%M"),
                show.show_date,
                show.start_time.strftime("%H:%M") if show.start_time else "",
                o.customer_name,
                o.customer_email,
                o.customer_phone,
                o.channel,
                len(seats),
                cents_to_decimal_str(o.subtotal_in_cents),
                cents_to_decimal_str(o.discount_in_cents),
                cents_to_decimal_str(o.total_amount_in_cents),
                o.status,
                "; ".join(sorted(s.label for s in seats)),
            ])
        slug = "_".join(show.name.split())
        return build_csv(SALES_HEADERS, rows), f"sales_{slug}_{show.show_date}.csv"

    async def _ticket_context(self, db: AsyncSession, ticket: Ticket) -> tuple[TicketOrder, ShowSeat | None, RecitalShow]:
        order = await ticket_order_repository.get_or_404(db, ticket.order_id)
        seat = await show_seat_repository.get_by_id(db, ticket.show_seat_id)
        show = await show_repository.get_or_404(db, order.show_id)
        return order, seat, show

    async def verify_ticket(self, db: AsyncSession, organization_id: UUID, ticket_code: str) -> dict:
        """입장 티켓 검증 — 무효여도 200과 {valid: false, message}."""
        ticket = await ticket_order_repository.get_ticket_by_code(db, ticket_code)
        if ticket is None:
            return {"valid": False, "message": "Ticket not found"}
        order, seat, show = await self._ticket_context(db, ticket)
        if order.organization_id != organization_id:
            return {"valid": False, "message": "Ticket not found"}
        payload = {
            "ticket": self._ticket_to_dict(ticket, seat),
            "order_number": order.order_number,
            "customer_name": order.customer_name,
            "show": {"id": str(show.id), "name": show.name, "show_date": show.show_date},
        }
        if ticket.status == "void":
            return {"valid": False, "message": "Ticket has been voided", **payload}
        if ticket.status == "used":
            return {"valid": False, "message": "Ticket has already been used", **payload}
        return {"valid": True, "message": "Ticket is valid", **payload}

    async def check_in_ticket(self, db: AsyncSession, organization_id: UUID, ticket_code: str) -> dict:
        """입장 처리.

        Raises:
            NotFoundError: 티켓 없음
            ConflictError: 이미 사용됨 (409)
            BadRequestError: 무효 티켓
        """
        ticket = await ticket_order_repository.get_ticket_by_code(db, ticket_code)
        if ticket is None:
            raise NotFoundError("Ticket not found")
        order, seat, _ = await self._ticket_context(db, ticket)
        if order.organization_id != organization_id:
            raise NotFoundError("Ticket not found")
        if ticket.status == "used":
            raise ConflictError("이미 입장한 티켓입니다 (Ticket has already been checked in)")
        if ticket.status == "void":
            raise BadRequestError("무효 티켓입니다 (Ticket has been voided)")
        ticket.status = "used"
        ticket.checked_in_at = utcnow()
        await db.flush()
        return {"success": True, "ticket": self._ticket_to_dict(ticket, seat), "customer_name": order.customer_name}


# 싱글턴 인스턴스 — Singleton instance
ticketing_service: TicketingService = TicketingService()
