"""상품 판매 서비스 — 상품, 옵션, 재고, 주문 비즈니스 로직.

Merchandise Service — Product catalogue with variants, inventory
adjustments, low-stock report, and orders with atomic stock reservation,
payment intents and confirmation.

Stock model:
    - ``quantity_reserved`` grows when an order is placed and shrinks when
      it is confirmed (stock leaves ``quantity_on_hand``) or cancelled.
    - Available stock is ``on_hand - reserved``; it never goes negative.
"""

import logging
import secrets
from typing import Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.merchandise import (
    Inventory,
    MerchandiseOrder,
    MerchandiseOrderItem,
    Product,
    ProductVariant,
)
from app.repositories.merchandise_repository import (
    inventory_repository,
    merchandise_order_repository,
    product_repository,
    variant_repository,
)
from app.schemas.merchandise import (
    InventoryAdjust,
    MerchandiseOrderCreate,
    MerchandiseOrderUpdate,
    ProductCreate,
    ProductUpdate,
    VariantCreate,
    VariantUpdate,
)
from app.services.payment_gateway import TERMINAL_INTENT_STATUSES, payment_gateway
from app.utils.exceptions import BadRequestError, ConflictError, DuplicateError, ForbiddenError, NotFoundError
from app.utils.pagination import page_envelope
from app.utils.timeutil import utcnow

logger = logging.getLogger(__name__)

ORDER_TRANSITIONS: dict[str, set[str]] = {
    "pending": {"processing", "cancelled"},
    "processing": {"ready", "completed", "cancelled"},
    "ready": {"completed", "cancelled"},
    "completed": set(),
    "cancelled": set(),
}


def generate_order_number() -> str:
    return f"MRC-{utcnow():%Y%m%d}-{secrets.token_hex(3).upper()}"


def unit_price(variant: ProductVariant, product: Product) -> int:
    """옵션 가격, 없으면 상품 기본가."""
    return variant.price_in_cents if variant.price_in_cents is not None else product.base_price_in_cents


class MerchandiseService:
    """상품 판매 서비스."""

    # === 상품 (Catalogue) ===

    def _variant_to_dict(self, variant: ProductVariant, product: Product, inventory: Inventory | None) -> dict:
        return {
            "id": str(variant.id),
            "sku": variant.sku,
            "size": variant.size,
            "color": variant.color,
            "price_in_cents": unit_price(variant, product),
            "is_active": variant.is_active,
            "quantity_on_hand": inventory.quantity_on_hand if inventory else 0,
            "quantity_reserved": inventory.quantity_reserved if inventory else 0,
            "quantity_available": inventory.quantity_available if inventory else 0,
            "low_stock_threshold": inventory.low_stock_threshold if inventory else 0,
        }

    async def _products_to_dicts(
        self,
        db: AsyncSession,
        products: Sequence[Product],
        active_variants_only: bool = False,
    ) -> list[dict]:
        variants = await product_repository.get_variants(db, [p.id for p in products])
        inventory = await inventory_repository.get_for_variants(db, [v.id for v in variants])
        by_product: dict[UUID, list[ProductVariant]] = {}
        for v in variants:
            if active_variants_only and not v.is_active:
                continue
            by_product.setdefault(v.product_id, []).append(v)
        return [
            {
                "id": str(p.id),
                "name": p.name,
                "description": p.description,
                "category": p.category,
                "base_price_in_cents": p.base_price_in_cents,
                "image_url": p.image_url,
                "is_active": p.is_active,
                "variants": [self._variant_to_dict(v, p, inventory.get(v.id)) for v in by_product.get(p.id, [])],
                "created_at": p.created_at,
            }
            for p in products
        ]

    async def list_products(
        self,
        db: AsyncSession,
        organization_id: UUID,
        active_only: bool = False,
        category: str | None = None,
    ) -> list[dict]:
        products = await product_repository.get_by_org(db, organization_id, active_only, category)
        return await self._products_to_dicts(db, products, active_variants_only=active_only)

    async def get_product(self, db: AsyncSession, product_id: UUID, organization_id: UUID) -> dict:
        product = await product_repository.get_or_404(db, product_id, organization_id)
        return (await self._products_to_dicts(db, [product]))[0]

    async def _add_variant(self, db: AsyncSession, product: Product, data: VariantCreate) -> ProductVariant:
        sku = data.sku.strip().upper()
        if await variant_repository.exists(db, {"sku": sku}):
            raise DuplicateError(f"이미 존재하는 SKU 입니다 (SKU '{sku}' already exists)")
        variant = await variant_repository.create(db, {
            "product_id": product.id,
            "sku": sku,
            "size": data.size,
            "color": data.color,
            "price_in_cents": data.price_in_cents,
        })
        await inventory_repository.create(db, {
            "variant_id": variant.id,
            "quantity_on_hand": data.quantity_on_hand,
            "low_stock_threshold": data.low_stock_threshold,
        })
        return variant

    async def create_product(self, db: AsyncSession, organization_id: UUID, data: ProductCreate) -> dict:
        """상품 생성 — 옵션과 초기 재고 포함."""
        skus = [v.sku.strip().upper() for v in data.variants]
        if len(skus) != len(set(skus)):
            raise BadRequestError("SKU 가 중복되었습니다 (Duplicate SKUs in request)")
        product = await product_repository.create(db, {
            "organization_id": organization_id,
            **data.model_dump(exclude={"variants"}),
        })
        for variant_data in data.variants:
            await self._add_variant(db, product, variant_data)
        return await self.get_product(db, product.id, organization_id)

    async def update_product(
        self,
        db: AsyncSession,
        product_id: UUID,
        organization_id: UUID,
        data: ProductUpdate,
    ) -> dict:
        product = await product_repository.get_or_404(db, product_id, organization_id)
        await product_repository.update(db, product, data.model_dump(exclude_unset=True))
        return await self.get_product(db, product.id, organization_id)

    async def delete_product(self, db: AsyncSession, product_id: UUID, organization_id: UUID) -> dict:
        """상품 삭제 — 주문 이력이 있으면 비활성화만.

        Returns:
            dict: {"deleted": bool, "deactivated": bool}
        """
        product = await product_repository.get_or_404(db, product_id, organization_id)
        variant_ids = [v.id for v in await product_repository.get_variants(db, [product.id])]
        if await merchandise_order_repository.variants_ordered(db, variant_ids):
            product.is_active = False
            await db.flush()
            return {"deleted": False, "deactivated": True}
        await product_repository.delete(db, product.id, organization_id)
        return {"deleted": True, "deactivated": False}

    async def add_variant(
        self,
        db: AsyncSession,
        product_id: UUID,
        organization_id: UUID,
        data: VariantCreate,
    ) -> dict:
        product = await product_repository.get_or_404(db, product_id, organization_id)
        variant = await self._add_variant(db, product, data)
        inventory = await inventory_repository.get_for_variants(db, [variant.id])
        return self._variant_to_dict(variant, product, inventory.get(variant.id))

    async def _get_variant(
        self,
        db: AsyncSession,
        variant_id: UUID,
        organization_id: UUID,
    ) -> tuple[ProductVariant, Product]:
        found = await variant_repository.get_with_product(db, [variant_id], organization_id)
        if variant_id not in found:
            raise NotFoundError("Variant not found")
        return found[variant_id]

    async def update_variant(
        self,
        db: AsyncSession,
        variant_id: UUID,
        organization_id: UUID,
        data: VariantUpdate,
    ) -> dict:
        variant, product = await self._get_variant(db, variant_id, organization_id)
        variant = await variant_repository.update(db, variant, data.model_dump(exclude_unset=True))
        inventory = await inventory_repository.get_for_variants(db, [variant.id])
        return self._variant_to_dict(variant, product, inventory.get(variant.id))

    async def adjust_inventory(
        self,
        db: AsyncSession,
        variant_id: UUID,
        organization_id: UUID,
        data: InventoryAdjust,
    ) -> dict:
        """재고 조정.

        ``quantity_change`` adds to on-hand; ``quantity_on_hand`` sets it.
        On-hand may never drop below what open orders have reserved.

        Raises:
            BadRequestError: 조정 값 없음, 예약 수량 미만
        """
        variant, product = await self._get_variant(db, variant_id, organization_id)
        inventory = (await inventory_repository.get_for_variants(db, [variant.id], for_update=True)).get(variant.id)
        if inventory is None:
            inventory = await inventory_repository.create(db, {"variant_id": variant.id, "quantity_on_hand": 0})

        if data.quantity_change is None and data.quantity_on_hand is None and data.low_stock_threshold is None:
            raise BadRequestError("조정할 값이 없습니다 (Nothing to adjust)")
        new_on_hand = inventory.quantity_on_hand
        if data.quantity_on_hand is not None:
            new_on_hand = data.quantity_on_hand
        if data.quantity_change is not None:
            new_on_hand += data.quantity_change
        if new_on_hand < inventory.quantity_reserved:
            raise BadRequestError(
                f"재고가 예약 수량보다 적을 수 없습니다 "
                f"(On-hand cannot drop below the {inventory.quantity_reserved} units reserved by open orders)"
            )
        inventory.quantity_on_hand = new_on_hand
        if data.low_stock_threshold is not None:
            inventory.low_stock_threshold = data.low_stock_threshold
        await db.flush()
        logger.info("Inventory for %s set to %d on hand", variant.sku, new_on_hand)
        return self._variant_to_dict(variant, product, inventory)

    async def low_stock(self, db: AsyncSession, organization_id: UUID) -> list[dict]:
        """재고 부족 목록 — Available at or below threshold."""
        return [
            {"product_id": str(product.id), "product_name": product.name, **self._variant_to_dict(variant, product, inv)}
            for inv, variant, product in await inventory_repository.get_low_stock(db, organization_id)
        ]

    # === 주문 (Orders) ===

    async def _orders_to_dicts(self, db: AsyncSession, orders: Sequence[MerchandiseOrder]) -> list[dict]:
        items = await merchandise_order_repository.get_items(db, [o.id for o in orders])
        return [
            {
                "id": str(o.id),
                "order_number": o.order_number,
                "customer_name": o.customer_name,
                "customer_email": o.customer_email,
                "customer_phone": o.customer_phone,
                "fulfillment_method": o.fulfillment_method,
                "shipping_address": o.shipping_address,
                "subtotal_in_cents": o.subtotal_in_cents,
                "total_in_cents": o.total_in_cents,
                "status": o.status,
                "payment_status": o.payment_status,
                "paid_at": o.paid_at,
                "notes": o.notes,
                "items": [
                    {
                        "variant_id": str(i.variant_id),
                        "product_name": i.product_name,
                        "sku": i.sku,
                        "quantity": i.quantity,
                        "unit_price_in_cents": i.unit_price_in_cents,
                        "line_total_in_cents": i.line_total_in_cents,
                    }
                    for i in items.get(o.id, [])
                ],
                "created_at": o.created_at,
            }
            for o in orders
        ]

    async def list_orders(
        self,
        db: AsyncSession,
        organization_id: UUID,
        status: str | None = None,
        page: int = 1,
        per_page: int = 20,
    ) -> dict:
        query = merchandise_order_repository.filter_query(organization_id, status)
        orders, total = await merchandise_order_repository.get_paginated(db, query, page, per_page)
        return page_envelope(await self._orders_to_dicts(db, orders), total, page, per_page)

    async def create_order(
        self,
        db: AsyncSession,
        organization_id: UUID,
        data: MerchandiseOrderCreate,
        user_id: UUID | None,
    ) -> dict:
        """상품 주문 생성 — 가격은 DB 에서 읽고 재고는 잠금 후 예약.

        Raises:
            BadRequestError: 배송지 누락, 판매 중지 상품
            NotFoundError: 옵션 없음
            ConflictError: 재고 부족 (409)
        """
        if data.fulfillment_method == "shipping" and not (data.shipping_address or "").strip():
            raise BadRequestError("배송 주문에는 주소가 필요합니다 (Shipping address is required for shipping orders)")

        quantities: dict[UUID, int] = {}
        for item in data.items:
            quantities[item.variant_id] = quantities.get(item.variant_id, 0) + item.quantity
        variant_ids = list(quantities)

        catalogue = await variant_repository.get_with_product(db, variant_ids, organization_id)
        missing = [str(v) for v in variant_ids if v not in catalogue]
        if missing:
            raise NotFoundError({"message": "상품을 찾을 수 없습니다 (Variant not found)", "variant_ids": missing})
        inactive = [v.sku for v, p in catalogue.values() if not (v.is_active and p.is_active)]
        if inactive:
            raise BadRequestError({"message": "판매 중지된 상품입니다 (Items are no longer sold)", "skus": inactive})

        stock = await inventory_repository.get_for_variants(db, variant_ids, for_update=True)
        short = [
            {
                "sku": catalogue[vid][0].sku,
                "requested": qty,
                "available": stock[vid].quantity_available if vid in stock else 0,
            }
            for vid, qty in quantities.items()
            if vid not in stock or stock[vid].quantity_available < qty
        ]
        if short:
            raise ConflictError({"message": "재고가 부족합니다 (Insufficient stock)", "items": short})

        subtotal = 0
        lines: list[MerchandiseOrderItem] = []
        for vid, qty in quantities.items():
            variant, product = catalogue[vid]
            price = unit_price(variant, product)
            subtotal += price * qty
            stock[vid].quantity_reserved += qty
            lines.append(MerchandiseOrderItem(
                variant_id=vid,
                product_name=product.name,
                sku=variant.sku,
                quantity=qty,
                unit_price_in_cents=price,
                line_total_in_cents=price * qty,
            ))

        order = await merchandise_order_repository.create(db, {
            "organization_id": organization_id,
            "order_number": generate_order_number(),
            "user_id": user_id,
            "customer_name": data.customer_name.strip(),
            "customer_email": str(data.customer_email).lower(),
            "customer_phone": data.customer_phone,
            "fulfillment_method": data.fulfillment_method,
            "shipping_address": data.shipping_address if data.fulfillment_method == "shipping" else None,
            "subtotal_in_cents": subtotal,
            "total_in_cents": subtotal,
            "status": "pending",
            "payment_status": "pending",
            "notes": data.notes,
        })
        for line in lines:
            line.order_id = order.id
            db.add(line)
        await db.flush()
        logger.info("Merchandise order %s placed (%d cents)", order.order_number, subtotal)
        return (await self._orders_to_dicts(db, [order]))[0]

    async def _release_reserved(self, db: AsyncSession, order: MerchandiseOrder, restock: bool) -> None:
        """예약 재고 반환 — restock 이면 이미 출고된 재고를 on-hand 로 복구."""
        items = (await merchandise_order_repository.get_items(db, [order.id])).get(order.id, [])
        stock = await inventory_repository.get_for_variants(db, [i.variant_id for i in items], for_update=True)
        for item in items:
            inv = stock.get(item.variant_id)
            if inv is None:
                continue
            if restock:
                inv.quantity_on_hand += item.quantity
            else:
                inv.quantity_reserved = max(inv.quantity_reserved - item.quantity, 0)

    async def update_order(
        self,
        db: AsyncSession,
        order_id: UUID,
        organization_id: UUID,
        data: MerchandiseOrderUpdate,
    ) -> dict:
        """주문 상태 변경 — 취소 시 재고 반환.

        Raises:
            BadRequestError: 허용되지 않는 상태 전이
        """
        order = await merchandise_order_repository.get_or_404(db, order_id, organization_id)
        if data.status is not None and data.status != order.status:
            if data.status not in ORDER_TRANSITIONS[order.status]:
                raise BadRequestError(
                    f"'{order.status}' 에서 '{data.status}' 로 변경할 수 없습니다 "
                    f"(Cannot move order from {order.status} to {data.status})"
                )
            if data.status == "cancelled":
                await self._release_reserved(db, order, restock=order.payment_status == "completed")
            order.status = data.status
        if data.notes is not None:
            order.notes = data.notes
        await db.flush()
        return (await self._orders_to_dicts(db, [order]))[0]

    async def _get_own_order(self, db: AsyncSession, order_id: UUID, user_id: UUID | None) -> MerchandiseOrder:
        order = await merchandise_order_repository.get_or_404(db, order_id)
        if order.user_id is not None and order.user_id != user_id:
            raise ForbiddenError("다른 사용자의 주문입니다 (Order belongs to another customer)")
        return order

    async def create_payment_intent(self, db: AsyncSession, order_id: UUID, user_id: UUID | None) -> dict:
        """주문 결제 intent 생성 또는 재사용.

        Raises:
            BadRequestError: 결제 대기 주문 아님
            ServiceNotConfiguredError: 결제 미설정 (500)
        """
        order = await self._get_own_order(db, order_id, user_id)
        if order.status != "pending" or order.payment_status != "pending":
            raise BadRequestError("결제 대기 중인 주문이 아닙니다 (Order is not awaiting payment)")

        if order.payment_intent_id:
            intent = await payment_gateway.retrieve_payment_intent(order.payment_intent_id)
            if intent["status"] not in TERMINAL_INTENT_STATUSES:
                return {
                    "client_secret": intent["client_secret"],
                    "payment_intent_id": intent["id"],
                    "amount": intent["amount"],
                    "currency": intent["currency"],
                }
            idempotency_key = f"merch-order-{order.id}-{order.payment_intent_id}"
        else:
            idempotency_key = f"merch-order-{order.id}"

        intent = await payment_gateway.create_payment_intent(
            amount_in_cents=order.total_in_cents,
            metadata={"merchandise_order_id": str(order.id), "order_number": order.order_number},
            idempotency_key=idempotency_key,
            receipt_email=order.customer_email,
            description=f"Studio merchandise {order.order_number}",
        )
        order.payment_intent_id = intent["id"]
        await db.flush()
        return {
            "client_secret": intent["client_secret"],
            "payment_intent_id": intent["id"],
            "amount": intent["amount"],
            "currency": intent["currency"],
        }

    async def confirm_order(
        self,
        db: AsyncSession,
        order_id: UUID,
        payment_intent_id: str,
        user_id: UUID | None,
    ) -> dict:
        """결제 확인 — 주문 processing, 예약 재고 출고.

        Raises:
            BadRequestError: 결제 미완료, 다른 주문의 결제, 취소된 주문
        """
        order = await self._get_own_order(db, order_id, user_id)
        if order.payment_status == "completed":
            return {"success": True, "order": (await self._orders_to_dicts(db, [order]))[0]}
        if order.status != "pending":
            raise BadRequestError(f"확정할 수 없는 주문입니다 (Order is {order.status})")

        intent = await payment_gateway.retrieve_payment_intent(payment_intent_id)
        if intent["status"] != "succeeded":
            raise BadRequestError(f"결제가 완료되지 않았습니다 (Payment status is {intent['status']})")
        if intent["metadata"].get("merchandise_order_id") != str(order.id):
            raise BadRequestError("주문과 결제 정보가 일치하지 않습니다 (Payment does not belong to this order)")

        items = (await merchandise_order_repository.get_items(db, [order.id])).get(order.id, [])
        stock = await inventory_repository.get_for_variants(db, [i.variant_id for i in items], for_update=True)
        for item in items:
            inv = stock.get(item.variant_id)
            if inv is not None:
                inv.quantity_reserved = max(inv.quantity_reserved - item.quantity, 0)
                inv.quantity_on_hand = max(inv.quantity_on_hand - item.quantity, 0)

        order.payment_status = "completed"
        order.payment_intent_id = payment_intent_id
        order.paid_at = utcnow()
        order.status = "processing"
        await db.flush()
        logger.info("Merchandise order %s paid", order.order_number)
        return {"success": True, "order": (await self._orders_to_dicts(db, [order]))[0]}

    async def list_my_orders(self, db: AsyncSession, organization_id: UUID, user_id: UUID) -> list[dict]:
        query = merchandise_order_repository.filter_query(organization_id, user_id=user_id)
        orders, _ = await merchandise_order_repository.get_paginated(db, query, 1, 100)
        return await self._orders_to_dicts(db, orders)


# 싱글턴 인스턴스 — Singleton instance
merchandise_service: MerchandiseService = MerchandiseService()
