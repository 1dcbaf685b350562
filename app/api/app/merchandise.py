"""앱 상품 라우터 — 상품 목록, 주문, 결제, 내 주문 내역.

App Merchandise Router — Public product catalogue and checkout
(``router``), plus a parent's order history (``my_orders_router``).
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_optional_user, require_parent, resolve_studio_id
from app.database import get_db
from app.models.user import User
from app.schemas.merchandise import MerchandiseOrderCreate
from app.schemas.ticketing import ConfirmOrderRequest
from app.services.merchandise_service import merchandise_service

router: APIRouter = APIRouter()
my_orders_router: APIRouter = APIRouter()


@router.get("/products")
async def list_products(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User | None, Depends(get_optional_user)],
    studio_code: Annotated[str | None, Query()] = None,
    category: Annotated[str | None, Query()] = None,
) -> list[dict]:
    """판매 중인 상품 목록을 조회합니다."""
    organization_id = await resolve_studio_id(db, current_user, studio_code)
    return await merchandise_service.list_products(
        db, organization_id=organization_id, active_only=True, category=category
    )


@router.post("/orders", status_code=201)
async def create_order(
    data: MerchandiseOrderCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User | None, Depends(get_optional_user)],
    studio_code: Annotated[str | None, Query()] = None,
) -> dict:
    """상품 주문을 생성하고 재고를 예약합니다.

    Prices come from the catalogue; insufficient stock → 409; shipping
    without an address → 400.
    """
    organization_id = await resolve_studio_id(db, current_user, studio_code)
    result = await merchandise_service.create_order(
        db, organization_id=organization_id, data=data, user_id=current_user.id if current_user else None
    )
    await db.commit()
    return result


@router.post("/orders/{order_id}/payment-intent")
async def create_payment_intent(
    order_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User | None, Depends(get_optional_user)],
) -> dict:
    """주문 결제 intent 를 생성합니다."""
    result = await merchandise_service.create_payment_intent(
        db, order_id=order_id, user_id=current_user.id if current_user else None
    )
    await db.commit()
    return result


@router.post("/orders/{order_id}/confirm")
async def confirm_order(
    order_id: UUID,
    data: ConfirmOrderRequest,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User | None, Depends(get_optional_user)],
) -> dict:
    """결제 완료를 확인하고 주문을 처리 중으로 전환합니다."""
    result = await merchandise_service.confirm_order(
        db,
        order_id=order_id,
        payment_intent_id=data.payment_intent_id,
        user_id=current_user.id if current_user else None,
    )
    await db.commit()
    return result


@my_orders_router.get("")
async def list_my_orders(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_parent)],
) -> list[dict]:
    """내 상품 주문 내역을 조회합니다."""
    return await merchandise_service.list_my_orders(
        db, organization_id=current_user.organization_id, user_id=current_user.id
    )
