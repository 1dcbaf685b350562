"""상품 레포지토리 — 상품, 옵션, 재고, 주문.

Merchandise Repository — Products, variants, inventory and orders.
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.merchandise import Inventory, MerchandiseOrder, MerchandiseOrderItem, Product, ProductVariant
from app.repositories.base import BaseRepository


class ProductRepository(BaseRepository[Product]):
    """상품 레포지토리."""

    def __init__(self) -> None:
        super().__init__(Product, "Product")

    async def get_by_org(
        self,
        db: AsyncSession,
        organization_id: UUID,
        active_only: bool = False,
        category: str | None = None,
    ) -> Sequence[Product]:
        query: Select = select(Product).where(Product.organization_id == organization_id)
        if active_only:
            query = query.where(Product.is_active.is_(True))
        if category:
            query = query.where(Product.category == category)
        result = await db.execute(query.order_by(Product.name))
        return result.scalars().all()

    async def get_variants(self, db: AsyncSession, product_ids: list[UUID]) -> Sequence[ProductVariant]:
        if not product_ids:
            return []
        result = await db.execute(
            select(ProductVariant).where(ProductVariant.product_id.in_(product_ids)).order_by(ProductVariant.sku)
        )
        return result.scalars().all()


class VariantRepository(BaseRepository[ProductVariant]):
    """상품 옵션 레포지토리."""

    def __init__(self) -> None:
        super().__init__(ProductVariant, "Variant")

    async def get_with_product(
        self,
        db: AsyncSession,
        variant_ids: list[UUID],
        organization_id: UUID,
    ) -> dict[UUID, tuple[ProductVariant, Product]]:
        if not variant_ids:
            return {}
        result = await db.execute(
            select(ProductVariant, Product)
            .join(Product, Product.id == ProductVariant.product_id)
            .where(ProductVariant.id.in_(variant_ids), Product.organization_id == organization_id)
        )
        return {row[0].id: (row[0], row[1]) for row in result.all()}


class InventoryRepository(BaseRepository[Inventory]):
    """재고 레포지토리."""

    def __init__(self) -> None:
        super().__init__(Inventory, "Inventory")

    async def get_for_variants(
        self,
        db: AsyncSession,
        variant_ids: list[UUID],
        for_update: bool = False,
    ) -> dict[UUID, Inventory]:
        """옵션별 재고 — 주문 시 행 잠금 (Locked while reserving stock)."""
        if not variant_ids:
            return {}
        query: Select = select(Inventory).where(Inventory.variant_id.in_(variant_ids)).order_by(Inventory.variant_id)
        if for_update:
            query = query.with_for_update()
        result = await db.execute(query)
        return {inv.variant_id: inv for inv in result.scalars().all()}

    async def get_low_stock(self, db: AsyncSession, organization_id: UUID) -> list[tuple[Inventory, ProductVariant, Product]]:
        result = await db.execute(
            select(Inventory, ProductVariant, Product)
            .join(ProductVariant, ProductVariant.id == Inventory.variant_id)
            .join(Product, Product.id == ProductVariant.product_id)
            .where(
                Product.organization_id == organization_id,
                Inventory.quantity_on_hand - Inventory.quantity_reserved <= Inventory.low_stock_threshold,
            )
            .order_by(Product.name, ProductVariant.sku)
        )
        return [(row[0], row[1], row[2]) for row in result.all()]


class MerchandiseOrderRepository(BaseRepository[MerchandiseOrder]):
    """상품 주문 레포지토리."""

    def __init__(self) -> None:
        super().__init__(MerchandiseOrder, "Order")

    def filter_query(
        self,
        organization_id: UUID,
        status: str | None = None,
        user_id: UUID | None = None,
    ) -> Select:
        query: Select = select(MerchandiseOrder).where(MerchandiseOrder.organization_id == organization_id)
        if status:
            query = query.where(MerchandiseOrder.status == status)
        if user_id:
            query = query.where(MerchandiseOrder.user_id == user_id)
        return query.order_by(MerchandiseOrder.created_at.desc())

    async def variants_ordered(self, db: AsyncSession, variant_ids: list[UUID]) -> bool:
        if not variant_ids:
            return False
        result = await db.execute(
            select(MerchandiseOrderItem.id).where(MerchandiseOrderItem.variant_id.in_(variant_ids)).limit(1)
        )
        return result.first() is not None

    async def get_items(self, db: AsyncSession, order_ids: list[UUID]) -> dict[UUID, list[MerchandiseOrderItem]]:
        if not order_ids:
            return {}
        result = await db.execute(select(MerchandiseOrderItem).where(MerchandiseOrderItem.order_id.in_(order_ids)))
        grouped: dict[UUID, list[MerchandiseOrderItem]] = {}
        for item in result.scalars().all():
            grouped.setdefault(item.order_id, []).append(item)
        return grouped


# 싱글턴 인스턴스 — Singleton instances
product_repository: ProductRepository = ProductRepository()
variant_repository: VariantRepository = VariantRepository()
inventory_repository: InventoryRepository = InventoryRepository()
merchandise_order_repository: MerchandiseOrderRepository = MerchandiseOrderRepository()
