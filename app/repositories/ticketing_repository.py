"""티켓 레포지토리 — 공연장, 공연, 좌석, 예약, 주문, 티켓.

Ticketing Repository — Venues, shows, show seats, seat reservations,
ticket orders and tickets. Seat rows that take part in a reservation are
read with ``SELECT ... FOR UPDATE``.
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.ticketing import (
    RecitalShow,
    ReservationSeat,
    SeatReservation,
    ShowSeat,
    Ticket,
    TicketOrder,
    Venue,
    VenueSeat,
)
from app.repositories.base import BaseRepository


class VenueRepository(BaseRepository[Venue]):
    """공연장 레포지토리."""

    def __init__(self) -> None:
        super().__init__(Venue, "Venue")

    async def get_seats(self, db: AsyncSession, venue_id: UUID, sellable_only: bool = False) -> Sequence[VenueSeat]:
        query: Select = select(VenueSeat).where(VenueSeat.venue_id == venue_id)
        if sellable_only:
            query = query.where(VenueSeat.is_sellable.is_(True))
        result = await db.execute(query.order_by(VenueSeat.section, VenueSeat.row_name, VenueSeat.seat_number))
        return result.scalars().all()


class ShowRepository(BaseRepository[RecitalShow]):
    """공연 회차 레포지토리."""

    def __init__(self) -> None:
        super().__init__(RecitalShow, "Show")

    async def get_by_org(
        self,
        db: AsyncSession,
        organization_id: UUID,
        status: str | None = None,
    ) -> Sequence[RecitalShow]:
        return await self.get_all(
            db, organization_id, filters={"status": status}, order_by=RecitalShow.show_date
        )


class ShowSeatRepository(BaseRepository[ShowSeat]):
    """회차 좌석 레포지토리."""

    def __init__(self) -> None:
        super().__init__(ShowSeat, "Seat")

    async def get_by_show(self, db: AsyncSession, show_id: UUID) -> Sequence[ShowSeat]:
        result = await db.execute(
            select(ShowSeat)
            .where(ShowSeat.show_id == show_id)
            .order_by(ShowSeat.section, ShowSeat.row_name, ShowSeat.seat_number)
        )
        return result.scalars().all()

    async def get_many(self, db: AsyncSession, seat_ids: list[UUID], for_update: bool = False) -> Sequence[ShowSeat]:
        """좌석 일괄 조회 — 예약 시 행 잠금 (Locked when reserving)."""
        if not seat_ids:
            return []
        query: Select = select(ShowSeat).where(ShowSeat.id.in_(seat_ids)).order_by(ShowSeat.id)
        if for_update:
            query = query.with_for_update()
        result = await db.execute(query)
        return result.scalars().all()

    async def existing_venue_seat_ids(self, db: AsyncSession, show_id: UUID) -> set[UUID]:
        result = await db.execute(select(ShowSeat.venue_seat_id).where(ShowSeat.show_id == show_id))
        return {row[0] for row in result.all()}


class ReservationRepository(BaseRepository[SeatReservation]):
    """좌석 예약 레포지토리."""

    def __init__(self) -> None:
        super().__init__(SeatReservation, "Reservation")

    async def get_by_token(self, db: AsyncSession, token: str, for_update: bool = False) -> SeatReservation | None:
        query: Select = select(SeatReservation).where(SeatReservation.reservation_token == token)
        if for_update:
            query = query.with_for_update()
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def add_seats(self, db: AsyncSession, reservation_id: UUID, seat_ids: list[UUID]) -> None:
        for seat_id in seat_ids:
            db.add(ReservationSeat(reservation_id=reservation_id, show_seat_id=seat_id))
        await db.flush()

    async def get_seat_ids(self, db: AsyncSession, reservation_id: UUID) -> list[UUID]:
        result = await db.execute(
            select(ReservationSeat.show_seat_id).where(ReservationSeat.reservation_id == reservation_id)
        )
        return [row[0] for row in result.all()]


class TicketOrderRepository(BaseRepository[TicketOrder]):
    """티켓 주문 레포지토리."""

    def __init__(self) -> None:
        super().__init__(TicketOrder, "Order")

    async def get_by_show(self, db: AsyncSession, show_id: UUID, status: str | None = None) -> Sequence[TicketOrder]:
        query: Select = select(TicketOrder).where(TicketOrder.show_id == show_id)
        if status:
            query = query.where(TicketOrder.status == status)
        result = await db.execute(query.order_by(TicketOrder.created_at.desc()))
        return result.scalars().all()

    async def get_by_number(self, db: AsyncSession, order_number: str) -> TicketOrder | None:
        result = await db.execute(select(TicketOrder).where(TicketOrder.order_number == order_number.strip().upper()))
        return result.scalar_one_or_none()

    async def get_tickets(self, db: AsyncSession, order_id: UUID) -> Sequence[Ticket]:
        result = await db.execute(select(Ticket).where(Ticket.order_id == order_id))
        return result.scalars().all()

    async def get_ticket_by_code(self, db: AsyncSession, code: str) -> Ticket | None:
        result = await db.execute(select(Ticket).where(Ticket.ticket_code == code.strip().upper()))
        return result.scalar_one_or_none()

    async def get_seats_for_orders(self, db: AsyncSession, order_ids: list[UUID]) -> dict[UUID, list[ShowSeat]]:
        """주문별 좌석 — Seats per order (through issued tickets)."""
        if not order_ids:
            return {}
        result = await db.execute(
            select(Ticket.order_id, ShowSeat)
            .join(ShowSeat, ShowSeat.id == Ticket.show_seat_id)
            .where(Ticket.order_id.in_(order_ids))
        )
        grouped: dict[UUID, list[ShowSeat]] = {}
        for order_id, seat in result.all():
            grouped.setdefault(order_id, []).append(seat)
        return grouped


# 싱글턴 인스턴스 — Singleton instances
venue_repository: VenueRepository = VenueRepository()
show_repository: ShowRepository = ShowRepository()
show_seat_repository: ShowSeatRepository = ShowSeatRepository()
reservation_repository: ReservationRepository = ReservationRepository()
ticket_order_repository: TicketOrderRepository = TicketOrderRepository()
