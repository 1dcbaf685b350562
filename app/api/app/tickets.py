"""앱 발표회 티켓 라우터 — 공연 조회, 좌석 예약, 티켓 주문/결제.

App Ticket Router — Public recital shows and seat maps (``shows_router``),
seat holds (``reservations_router``) and ticket checkout
(``orders_router``).

Buyers do not need an account. A logged-in caller's holds are keyed by
their user id; anonymous callers get an httpOnly session cookie the first
time they reserve.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, Response
from pydantic import EmailStr
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_optional_user, resolve_studio_id
from app.config import settings
from app.database import get_db
from app.models.user import User
from app.schemas.ticketing import (
    ConfirmOrderRequest,
    ExtendReservationRequest,
    ReleaseReservationRequest,
    ReserveSeatsRequest,
    TicketOrderCreate,
)
from app.services.ticketing_service import new_session_id, ticketing_service

shows_router: APIRouter = APIRouter()
reservations_router: APIRouter = APIRouter()
orders_router: APIRouter = APIRouter()


def _session_id(request: Request, user: User | None) -> str | None:
    """예약 세션 ID — 로그인 사용자는 user id, 아니면 쿠키 값."""
    if user is not None:
        return str(user.id)
    return request.cookies.get(settings.RESERVATION_SESSION_COOKIE)


def _ensure_session(request: Request, response: Response, user: User | None) -> str:
    """세션이 없으면 새로 발급하고 쿠키로 내려줍니다."""
    session_id = _session_id(request, user)
    if session_id is None:
        session_id = new_session_id()
        response.set_cookie(
            settings.RESERVATION_SESSION_COOKIE,
            session_id,
            max_age=settings.RESERVATION_SESSION_HOURS * 3600,
            httponly=True,
            samesite="lax",
            secure=settings.PUBLIC_BASE_URL.startswith("https"),
        )
    return session_id


# === 공연 (Shows) ===

@shows_router.get("")
async def list_public_shows(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User | None, Depends(get_optional_user)],
    studio_code: Annotated[str | None, Query()] = None,
) -> list[dict]:
    """판매 중인 공연 목록을 조회합니다."""
    organization_id = await resolve_studio_id(db, current_user, studio_code)
    return await ticketing_service.list_public_shows(db, organization_id=organization_id)


@shows_router.get("/{show_id}/seats")
async def get_public_seats(
    show_id: UUID,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User | None, Depends(get_optional_user)],
) -> dict:
    """공연 좌석 배치도 — 내가 잡은 좌석은 held_by_you 로 표시됩니다."""
    return await ticketing_service.get_public_seats(
        db, show_id=show_id, session_id=_session_id(request, current_user)
    )


# === 좌석 예약 (Seat reservations) ===

@reservations_router.post("", status_code=201)
async def reserve_seats(
    data: ReserveSeatsRequest,
    request: Request,
    response: Response,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User | None, Depends(get_optional_user)],
) -> dict:
    """좌석을 예약(홀드)합니다.

    Hold 1 to 10 seats for 30 minutes. Any seat that is not available
    → 409 and nothing is held.
    """
    session_id = _ensure_session(request, response, current_user)
    result = await ticketing_service.reserve(
        db, data=data, session_id=session_id, user_id=current_user.id if current_user else None
    )
    await db.commit()
    return result


@reservations_router.get("/check")
async def check_reservation(
    db: Annotated[AsyncSession, Depends(get_db)],
    token: Annotated[str, Query(min_length=1, max_length=64)],
) -> dict:
    """예약 만료 여부와 남은 시간을 조회합니다."""
    return await ticketing_service.check(db, token=token)


@reservations_router.post("/extend")
async def extend_reservation(
    data: ExtendReservationRequest,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User | None, Depends(get_optional_user)],
) -> dict:
    """예약을 5분 연장합니다 (최대 3회)."""
    result = await ticketing_service.extend(
        db, token=data.reservation_token, session_id=_session_id(request, current_user)
    )
    await db.commit()
    return result


@reservations_router.post("/release")
async def release_reservation(
    data: ReleaseReservationRequest,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User | None, Depends(get_optional_user)],
) -> dict:
    """예약을 해제하고 좌석을 반환합니다."""
    result = await ticketing_service.release(db, data=data, session_id=_session_id(request, current_user))
    await db.commit()
    return result


# === 티켓 주문 (Ticket orders) ===

@orders_router.post("", status_code=201)
async def create_ticket_order(
    data: TicketOrderCreate,
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User | None, Depends(get_optional_user)],
) -> dict:
    """예약한 좌석으로 주문을 생성합니다 (결제 대기)."""
    result = await ticketing_service.create_order(
        db,
        data=data,
        session_id=_session_id(request, current_user),
        user_id=current_user.id if current_user else None,
    )
    await db.commit()
    return result


@orders_router.get("/lookup")
async def lookup_order(
    db: Annotated[AsyncSession, Depends(get_db)],
    order_number: Annotated[str, Query(min_length=1, max_length=32)],
    email: Annotated[EmailStr, Query()],
) -> dict:
    """주문번호와 이메일로 주문/티켓을 조회합니다."""
    return await ticketing_service.lookup(db, order_number=order_number, email=email)


@orders_router.post("/{order_id}/payment-intent")
async def create_payment_intent(
    order_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict:
    """결제 intent 를 생성하거나 기존 intent 를 재사용합니다.

    Linked reservation expired → 410; gateway not configured → 500.
    """
    result = await ticketing_service.create_payment_intent(db, order_id=order_id)
    await db.commit()
    return result


@orders_router.post("/{order_id}/confirm")
async def confirm_order(
    order_id: UUID,
    data: ConfirmOrderRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict:
    """결제 완료를 확인하고 티켓을 발급합니다."""
    result = await ticketing_service.confirm_order(db, order_id=order_id, data=data)
    await db.commit()
    return result
