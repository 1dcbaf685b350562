"""상품 판매 관련 Pydantic 요청 스키마 정의.

Merchandise Pydantic request schema definitions.
Order prices are never taken from the client; they are read from the
catalogue when the order is placed.
"""

from typing import Literal
from uuid import UUID
from pydantic import BaseModel, EmailStr, Field


class VariantCreate(BaseModel):
    """상품 옵션 생성 요청 — 초기 재고 포함."""

    sku: str = Field(min_length=1, max_length=64)
    size: str | None = Field(default=None, max_length=20)
    color: str | None = Field(default=None, max_length=30)
    price_in_cents: int | None = Field(default=None, ge=0)  # 없으면 상품 기본가
    quantity_on_hand: int = Field(default=0, ge=0)
    low_stock_threshold: int = Field(default=5, ge=0)


class VariantUpdate(BaseModel):
    """상품 옵션 수정 요청 (부분 업데이트)."""

    size: str | None = Field(default=None, max_length=20)
    color: str | None = Field(default=None, max_length=30)
    price_in_cents: int | None = Field(default=None, ge=0)
    is_active: bool | None = None


class ProductCreate(BaseModel):
    """상품 생성 요청."""

    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    category: str | None = Field(default=None, max_length=50)  # costume, shoes, apparel ...
    base_price_in_cents: int = Field(ge=0)
    image_url: str | None = Field(default=None, max_length=1024)
    is_active: bool = True
    variants: list[VariantCreate] = []


class ProductUpdate(BaseModel):
    """상품 수정 요청 (부분 업데이트)."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    category: str | None = Field(default=None, max_length=50)
    base_price_in_cents: int | None = Field(default=None, ge=0)
    image_url: str | None = Field(default=None, max_length=1024)
    is_active: bool | None = None


class InventoryAdjust(BaseModel):
    """재고 조정 — quantity_change 는 증감량, quantity_on_hand 는 절대값."""

    quantity_change: int | None = None
    quantity_on_hand: int | None = Field(default=None, ge=0)
    low_stock_threshold: int | None = Field(default=None, ge=0)


class OrderItemRequest(BaseModel):
    """주문 항목."""

    variant_id: UUID
    quantity: int = Field(ge=1, le=100)


class MerchandiseOrderCreate(BaseModel):
    """상품 주문 생성 요청."""

    items: list[OrderItemRequest] = Field(min_length=1)
    customer_name: str = Field(min_length=1, max_length=255)
    customer_email: EmailStr
    customer_phone: str | None = Field(default=None, max_length=50)
    fulfillment_method: Literal["pickup", "shipping"] = "pickup"
    shipping_address: str | None = None
    notes: str | None = None


class MerchandiseOrderUpdate(BaseModel):
    """상품 주문 상태 변경 (관리자)."""

    status: Literal["processing", "ready", "completed", "cancelled"] | None = None
    notes: str | None = None
