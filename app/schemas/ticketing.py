"""발표회 티켓 관련 Pydantic 요청 스키마 정의.

Recital ticketing Pydantic request schema definitions: venues, shows,
seat holds, ticket orders, refunds and door check-in.
"""

from datetime import date, datetime, time
from typing import Literal
from uuid import UUID
from pydantic import BaseModel, EmailStr, Field


# === 공연장 (Venue) ===

class VenueCreate(BaseModel):
    """공연장 생성 요청."""

    name: str = Field(min_length=1, max_length=255)
    address: str | None = None


class SeatLayoutRequest(BaseModel):
    """좌석 배치 생성 — 구역 하나에 rows x seats_per_row 좌석.

    Attributes:
        section: 구역명 (e.g. "Orchestra")
        rows: 행 이름 목록 (e.g. ["A", "B", "C"])
        seats_per_row: 행당 좌석 수
        price_in_cents: 좌석 가격
        seat_type: regular | premium | handicap
    """

    section: str = Field(min_length=1, max_length=50)
    rows: list[str] = Field(min_length=1, max_length=100)
    seats_per_row: int = Field(ge=1, le=200)
    price_in_cents: int = Field(ge=0)
    seat_type: Literal["regular", "premium", "handicap"] = "regular"


# === 공연 회차 (Show) ===

class ShowCreate(BaseModel):
    """공연 회차 생성 요청."""

    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    show_date: date
    start_time: time | None = None
    venue_id: UUID | None = None
    status: Literal["draft", "on_sale", "closed"] = "draft"
    ticket_sale_start: datetime | None = None
    ticket_sale_end: datetime | None = None


class ShowUpdate(BaseModel):
    """공연 회차 수정 요청 (부분 업데이트)."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    show_date: date | None = None
    start_time: time | None = None
    venue_id: UUID | None = None
    status: Literal["draft", "on_sale", "closed"] | None = None
    ticket_sale_start: datetime | None = None
    ticket_sale_end: datetime | None = None


class SeatBlockRequest(BaseModel):
    """좌석 판매 차단/해제."""

    seat_ids: list[UUID] = Field(min_length=1)
    action: Literal["block", "unblock"]


# === 좌석 예약 (Seat hold) ===

class ReserveSeatsRequest(BaseModel):
    """좌석 임시 예약 요청 — 좌석 수 제한은 서비스에서 400으로 검증."""

    show_id: UUID
    seat_ids: list[UUID]


class ExtendReservationRequest(BaseModel):
    """예약 연장 요청."""

    reservation_token: str = Field(min_length=1, max_length=64)


class ReleaseReservationRequest(BaseModel):
    """예약 해제 요청 — token 또는 reservation_id 중 하나."""

    reservation_token: str | None = Field(default=None, max_length=64)
    reservation_id: UUID | None = None


# === 주문 (Order) ===

class TicketOrderCreate(BaseModel):
    """티켓 주문 생성 요청."""

    reservation_token: str = Field(min_length=1, max_length=64)
    customer_name: str = Field(min_length=1, max_length=255)
    customer_email: EmailStr
    customer_phone: str | None = Field(default=None, max_length=50)


class ConfirmOrderRequest(BaseModel):
    """결제 완료 확인 요청."""

    payment_intent_id: str = Field(min_length=1, max_length=255)


class RefundRequest(BaseModel):
    """환불 요청 — amount 없으면 전액 환불."""

    amount_in_cents: int | None = None
    reason: str | None = Field(default=None, max_length=500)


class TicketVerifyRequest(BaseModel):
    """입장 티켓 검증 요청."""

    ticket_code: str = Field(min_length=1, max_length=32)
