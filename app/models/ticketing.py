"""발표회 티켓 관련 SQLAlchemy ORM 모델 정의.

Recital ticketing SQLAlchemy ORM model definitions.

Tables:
    - venues / venue_seats: 공연장과 좌석 배치 (Venue seat map)
    - recital_shows: 공연 회차 (One performance of a recital)
    - show_seats: 회차별 좌석 (Per-show seat inventory with hold state)
    - seat_reservations / reservation_seats: 좌석 임시 예약 (30 minute holds)
    - ticket_orders / tickets: 주문과 발권 티켓
"""

import secrets
import uuid
from datetime import date, datetime, time, timezone
from sqlalchemy import String, Boolean, Date, DateTime, Integer, Text, Time, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


def generate_reservation_token() -> str:
    """예약 토큰 — 32바이트 난수 hex (64 chars)."""
    return secrets.token_hex(32)


def generate_ticket_code() -> str:
    return f"TKT-{secrets.token_hex(6).upper()}"


class Venue(Base):
    """공연장."""

    __tablename__ = "venues"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))


class VenueSeat(Base):
    """공연장 좌석 — 회차 좌석 생성의 원본."""

    __tablename__ = "venue_seats"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    venue_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("venues.id", ondelete="CASCADE"), nullable=False, index=True)
    section: Mapped[str] = mapped_column(String(50), nullable=False)
    row_name: Mapped[str] = mapped_column(String(10), nullable=False)
    seat_number: Mapped[int] = mapped_column(Integer, nullable=False)
    seat_type: Mapped[str] = mapped_column(String(20), default="regular")  # regular, premium, handicap
    handicap_access: Mapped[bool] = mapped_column(Boolean, default=False)
    price_in_cents: Mapped[int] = mapped_column(Integer, default=0)
    is_sellable: Mapped[bool] = mapped_column(Boolean, default=True)

    __table_args__ = (
        UniqueConstraint("venue_id", "section", "row_name", "seat_number", name="uq_venue_seat_position"),
    )


class RecitalShow(Base):
    """공연 회차.

    Attributes:
        show_date / start_time: 공연 일시 (Studio local date and wall time)
        status: draft | on_sale | closed
        ticket_sale_start / ticket_sale_end: 판매 기간 (optional)
    """

    __tablename__ = "recital_shows"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False)
    venue_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("venues.id", ondelete="SET NULL"), nullable=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    show_date: Mapped[date] = mapped_column(Date, nullable=False)
    start_time: Mapped[time | None] = mapped_column(Time(), nullable=True)
    status: Mapped[str] = mapped_column(String(20), default="draft")
    ticket_sale_start: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    ticket_sale_end: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))


class ShowSeat(Base):
    """회차 좌석 — 판매 상태와 임시 예약 정보를 가짐.

    A ``reserved`` seat whose ``reserved_until`` has passed is treated as
    available on read; nothing sweeps expired holds in the background.
    """

    __tablename__ = "show_seats"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    show_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("recital_shows.id", ondelete="CASCADE"), nullable=False, index=True)
    venue_seat_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("venue_seats.id", ondelete="CASCADE"), nullable=False)
    section: Mapped[str] = mapped_column(String(50), nullable=False)
    row_name: Mapped[str] = mapped_column(String(10), nullable=False)
    seat_number: Mapped[int] = mapped_column(Integer, nullable=False)
    seat_type: Mapped[str] = mapped_column(String(20), default="regular")
    handicap_access: Mapped[bool] = mapped_column(Boolean, default=False)
    price_in_cents: Mapped[int] = mapped_column(Integer, default=0)
    status: Mapped[str] = mapped_column(String(20), default="available")  # available, reserved, sold, blocked
    reserved_until: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    reserved_by: Mapped[str | None] = mapped_column(String(128), nullable=True)  # 예약 세션 ID (Reservation session id)
    reservation_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)

    __table_args__ = (
        UniqueConstraint("show_id", "venue_seat_id", name="uq_show_seat_venue_seat"),
    )

    @property
    def label(self) -> str:
        return f"{self.section} {self.row_name}{self.seat_number}"


class SeatReservation(Base):
    """좌석 임시 예약 — 세션 단위, 30분 유지, 최대 3회 연장."""

    __tablename__ = "seat_reservations"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    show_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("recital_shows.id", ondelete="CASCADE"), nullable=False)
    session_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    user_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    reservation_token: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, default=generate_reservation_token)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    extension_count: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))


class ReservationSeat(Base):
    """예약-좌석 연결."""

    __tablename__ = "reservation_seats"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    reservation_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("seat_reservations.id", ondelete="CASCADE"), nullable=False, index=True)
    show_seat_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("show_seats.id", ondelete="CASCADE"), nullable=False)


class TicketOrder(Base):
    """티켓 주문.

    Attributes:
        order_number: 주문 번호 (Human readable, e.g. "ORD-20261018-4F2A9C")
        status: pending | paid | cancelled | refunded
        channel: online | box_office
        payment_intent_id: 결제 게이트웨이 intent ID
        refunded_amount_in_cents: 누적 환불액
    """

    __tablename__ = "ticket_orders"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False)
    order_number: Mapped[str] = mapped_column(String(40), unique=True, nullable=False)
    show_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("recital_shows.id", ondelete="CASCADE"), nullable=False, index=True)
    reservation_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("seat_reservations.id", ondelete="SET NULL"), nullable=True)
    user_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    customer_name: Mapped[str] = mapped_column(String(255), nullable=False)
    customer_email: Mapped[str] = mapped_column(String(255), nullable=False)
    customer_phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    channel: Mapped[str] = mapped_column(String(20), default="online")
    subtotal_in_cents: Mapped[int] = mapped_column(Integer, default=0)
    discount_in_cents: Mapped[int] = mapped_column(Integer, default=0)
    total_amount_in_cents: Mapped[int] = mapped_column(Integer, default=0)
    status: Mapped[str] = mapped_column(String(20), default="pending")
    payment_intent_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    refunded_amount_in_cents: Mapped[int] = mapped_column(Integer, default=0)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))


class Ticket(Base):
    """발권 티켓 — 좌석 1개당 1장, 입장 시 ticket_code 스캔."""

    __tablename__ = "tickets"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    order_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("ticket_orders.id", ondelete="CASCADE"), nullable=False, index=True)
    show_seat_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("show_seats.id", ondelete="CASCADE"), nullable=False)
    ticket_code: Mapped[str] = mapped_column(String(32), unique=True, nullable=False, default=generate_ticket_code)
    status: Mapped[str] = mapped_column(String(20), default="valid")  # valid, used, void
    checked_in_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
