"""관리자 발표회 티켓 라우터 — 공연장, 공연, 좌석, 주문, 티켓 API.

Admin Recital Router — Venues and seat layouts (``venues_router``), shows,
seat maps, orders, refunds, sales export and door check-in (``router``).
All endpoints are admin + staff.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import require_admin_or_staff
from app.database import get_db
from app.models.user import User
from app.schemas.ticketing import (
    RefundRequest,
    SeatBlockRequest,
    SeatLayoutRequest,
    ShowCreate,
    ShowUpdate,
    TicketVerifyRequest,
    VenueCreate,
)
from app.services.ticketing_service import ticketing_service
from app.utils.export import text_download

router: APIRouter = APIRouter()
venues_router: APIRouter = APIRouter()


# === 공연장 (Venues) ===

@venues_router.get("")
async def list_venues(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
) -> list[dict]:
    """공연장 목록을 조회합니다."""
    return await ticketing_service.list_venues(db, organization_id=current_user.organization_id)


@venues_router.post("", status_code=201)
async def create_venue(
    data: VenueCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
) -> dict:
    """공연장을 등록합니다."""
    result = await ticketing_service.create_venue(db, organization_id=current_user.organization_id, data=data)
    await db.commit()
    return result


@venues_router.post("/{venue_id}/seats/layout", status_code=201)
async def create_seat_layout(
    venue_id: UUID,
    data: SeatLayoutRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
) -> dict:
    """구역 좌석 배치를 생성합니다 (행 × 좌석 수).

    Seats that already exist at the same position are skipped.
    """
    result = await ticketing_service.create_layout(
        db, venue_id=venue_id, organization_id=current_user.organization_id, data=data
    )
    await db.commit()
    return result


# === 공연 (Shows) ===

@router.get("/shows")
async def list_shows(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
    status: Annotated[str | None, Query()] = None,
) -> list[dict]:
    """공연 목록 (좌석 현황 포함) 을 조회합니다."""
    return await ticketing_service.list_shows(db, organization_id=current_user.organization_id, status=status)


@router.post("/shows", status_code=201)
async def create_show(
    data: ShowCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
) -> dict:
    """공연을 생성합니다."""
    result = await ticketing_service.create_show(db, organization_id=current_user.organization_id, data=data)
    await db.commit()
    return result


@router.get("/shows/{show_id}")
async def get_show(
    show_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
) -> dict:
    """공연 상세를 조회합니다."""
    return await ticketing_service.get_show(db, show_id=show_id, organization_id=current_user.organization_id)


@router.put("/shows/{show_id}")
async def update_show(
    show_id: UUID,
    data: ShowUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
) -> dict:
    """공연 정보를 수정합니다 (판매 시작/종료 포함)."""
    result = await ticketing_service.update_show(
        db, show_id=show_id, organization_id=current_user.organization_id, data=data
    )
    await db.commit()
    return result


# === 좌석 (Seats) ===

@router.post("/shows/{show_id}/seats/generate")
async def generate_show_seats(
    show_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
) -> dict:
    """공연장 좌석을 공연 좌석으로 복사합니다."""
    result = await ticketing_service.generate_seats(db, show_id=show_id, organization_id=current_user.organization_id)
    await db.commit()
    return result


@router.get("/shows/{show_id}/seats")
async def get_seat_map(
    show_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
) -> dict:
    """공연 좌석 배치도를 조회합니다."""
    return await ticketing_service.get_seat_map(db, show_id=show_id, organization_id=current_user.organization_id)


@router.patch("/shows/{show_id}/seats")
async def block_seats(
    show_id: UUID,
    data: SeatBlockRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
) -> dict:
    """좌석을 판매 차단/해제합니다."""
    result = await ticketing_service.set_seat_block(
        db, show_id=show_id, organization_id=current_user.organization_id, data=data
    )
    await db.commit()
    return result


# === 주문 (Orders) ===

@router.get("/shows/{show_id}/orders")
async def list_show_orders(
    show_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
    status: Annotated[str | None, Query()] = None,
) -> list[dict]:
    """공연의 티켓 주문 목록을 조회합니다."""
    return await ticketing_service.list_show_orders(
        db, show_id=show_id, organization_id=current_user.organization_id, status=status
    )


@router.get("/shows/{show_id}/sales-export")
async def export_sales(
    show_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
) -> StreamingResponse:
    """판매 내역 CSV를 내려받습니다."""
    content, filename = await ticketing_service.sales_export(
        db, show_id=show_id, organization_id=current_user.organization_id
    )
    return text_download(content, filename)


@router.post("/orders/{order_id}/refund")
async def refund_order(
    order_id: UUID,
    data: RefundRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
) -> dict:
    """결제된 주문을 환불합니다.

    A full refund frees the seats and voids the tickets.
    """
    result = await ticketing_service.refund(
        db, order_id=order_id, organization_id=current_user.organization_id, data=data
    )
    await db.commit()
    return result


# === 티켓 (Tickets) ===

@router.post("/tickets/verify")
async def verify_ticket(
    data: TicketVerifyRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
) -> dict:
    """티켓 코드를 검증합니다 (valid / invalid)."""
    return await ticketing_service.verify_ticket(
        db, organization_id=current_user.organization_id, ticket_code=data.ticket_code
    )


@router.post("/tickets/{ticket_code}/check-in")
async def check_in_ticket(
    ticket_code: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
) -> dict:
    """입장 처리 — 이미 사용된 티켓은 409."""
    result = await ticketing_service.check_in_ticket(
        db, organization_id=current_user.organization_id, ticket_code=ticket_code
    )
    await db.commit()
    return result
