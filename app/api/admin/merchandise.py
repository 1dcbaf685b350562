"""관리자 상품 라우터 — 상품, 옵션, 재고, 주문 관리 API.

Admin Merchandise Router — Products and variants, inventory adjustment,
low-stock report and order fulfilment. Admin + staff.
"""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import require_admin_or_staff
from app.database import get_db
from app.models.user import User
from app.schemas.common import PaginatedResponse
from app.schemas.merchandise import (
    InventoryAdjust,
    MerchandiseOrderUpdate,
    ProductCreate,
    ProductUpdate,
    VariantCreate,
    VariantUpdate,
)
from app.services.merchandise_service import merchandise_service

router: APIRouter = APIRouter()


# === 상품 (Products) ===

@router.get("/products")
async def list_products(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
    category: Annotated[str | None, Query()] = None,
    active_only: Annotated[bool, Query()] = False,
) -> list[dict]:
    """상품 목록 (옵션/재고 포함) 을 조회합니다."""
    return await merchandise_service.list_products(
        db, organization_id=current_user.organization_id, active_only=active_only, category=category
    )


@router.post("/products", status_code=201)
async def create_product(
    data: ProductCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
) -> dict:
    """상품을 등록합니다 (옵션 포함). SKU 중복은 409."""
    result = await merchandise_service.create_product(db, organization_id=current_user.organization_id, data=data)
    await db.commit()
    return result


@router.get("/products/{product_id}")
async def get_product(
    product_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
) -> dict:
    """상품 상세를 조회합니다."""
    return await merchandise_service.get_product(
        db, product_id=product_id, organization_id=current_user.organization_id
    )


@router.put("/products/{product_id}")
async def update_product(
    product_id: UUID,
    data: ProductUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
) -> dict:
    """상품 정보를 수정합니다."""
    result = await merchandise_service.update_product(
        db, product_id=product_id, organization_id=current_user.organization_id, data=data
    )
    await db.commit()
    return result


@router.delete("/products/{product_id}")
async def delete_product(
    product_id: UUID,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
) -> dict:
    """상품을 삭제합니다. 주문 이력이 있으면 비활성화만 합니다."""
    result = await merchandise_service.delete_product(
        db, product_id=product_id, organization_id=current_user.organization_id
    )
    await db.commit()
    return result


# === 옵션 / 재고 (Variants & inventory) ===

@router.post("/products/{product_id}/variants", status_code=201)
async def add_variant(
    product_id: UUID,
    data: VariantCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
) -> dict:
    """상품 옵션을 추가합니다."""
    result = await merchandise_service.add_variant(
        db, product_id=product_id, organization_id=current_user.organization_id, data=data
    )
    await db.commit()
    return result


@router.put("/variants/{variant_id}")
async def update_variant(
    variant_id: UUID,
    data: VariantUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
) -> dict:
    """상품 옵션을 수정합니다."""
    result = await merchandise_service.update_variant(
        db, variant_id=variant_id, organization_id=current_user.organization_id, data=data
    )
    await db.commit()
    return result


@router.patch("/variants/{variant_id}/inventory")
async def adjust_inventory(
    variant_id: UUID,
    data: InventoryAdjust,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
) -> dict:
    """재고 수량과 부족 기준을 조정합니다."""
    result = await merchandise_service.adjust_inventory(
        db, variant_id=variant_id, organization_id=current_user.organization_id, data=data
    )
    await db.commit()
    return result


@router.get("/low-stock")
async def low_stock(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
) -> list[dict]:
    """재고 부족 옵션 목록."""
    return await merchandise_service.low_stock(db, organization_id=current_user.organization_id)


# === 주문 (Orders) ===

@router.get("/orders", response_model=PaginatedResponse)
async def list_orders(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
    status: Annotated[str | None, Query()] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    per_page: Annotated[int, Query(ge=1, le=100)] = 20,
) -> dict:
    """상품 주문 목록을 조회합니다."""
    return await merchandise_service.list_orders(
        db, organization_id=current_user.organization_id, status=status, page=page, per_page=per_page
    )


@router.patch("/orders/{order_id}")
async def update_order(
    order_id: UUID,
    data: MerchandiseOrderUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(require_admin_or_staff)],
) -> dict:
    """주문 상태를 변경합니다. 취소 시 예약 재고를 해제합니다."""
    result = await merchandise_service.update_order(
        db, order_id=order_id, organization_id=current_user.organization_id, data=data
    )
    await db.commit()
    return result
