"""상품 판매 API 테스트 — 상품/옵션, 재고 예약, 주문, 결제 확인, 취소 시 재고 반환."""

from httpx import AsyncClient

from app.services.payment_gateway import payment_gateway
from tests.conftest import auth_header

ADMIN = "/api/v1/admin/merchandise"
SHOP = "/api/v1/app/merchandise"
MY_ORDERS = "/api/v1/app/my/merchandise-orders"


async def _product(client: AsyncClient, token: str, on_hand: int = 3) -> dict:
    res = await client.post(f"{ADMIN}/products", json={
        "name": "Recital Tee",
        "category": "apparel",
        "base_price_in_cents": 2000,
        "variants": [
            {"sku": "tee-s", "size": "S", "quantity_on_hand": on_hand, "low_stock_threshold": 2},
            {"sku": "tee-m", "size": "M", "price_in_cents": 2200, "quantity_on_hand": on_hand, "low_stock_threshold": 0},
        ],
    }, headers=auth_header(token))
    assert res.status_code == 201
    return res.json()


def _variant(product: dict, sku: str) -> dict:
    return next(v for v in product["variants"] if v["sku"] == sku)


def _order_body(variant_id: str, quantity: int, **fields) -> dict:
    return {
        "items": [{"variant_id": variant_id, "quantity": quantity}],
        "customer_name": "Pat Parent",
        "customer_email": "Parent@Test.com",
        **fields,
    }


class TestCatalogue:
    """상품/재고 관리 테스트."""

    async def test_create_product_normalises_sku(self, client: AsyncClient, staff_token):
        product = await _product(client, staff_token)
        small = _variant(product, "TEE-S")
        assert small["price_in_cents"] == 2000
        assert _variant(product, "TEE-M")["price_in_cents"] == 2200
        assert small["quantity_available"] == 3

    async def test_duplicate_sku_conflicts(self, client: AsyncClient, staff_token):
        product = await _product(client, staff_token)
        res = await client.post(f"{ADMIN}/products/{product['id']}/variants", json={
            "sku": "Tee-S",
        }, headers=auth_header(staff_token))
        assert res.status_code == 409

    async def test_low_stock(self, client: AsyncClient, staff_token):
        product = await _product(client, staff_token, on_hand=2)
        res = await client.get(f"{ADMIN}/low-stock", headers=auth_header(staff_token))
        assert [v["sku"] for v in res.json()] == ["TEE-S"]
        assert res.json()[0]["product_id"] == product["id"]

    async def test_inventory_adjust(self, client: AsyncClient, staff_token):
        product = await _product(client, staff_token)
        variant_id = _variant(product, "TEE-M")["id"]

        res = await client.patch(f"{ADMIN}/variants/{variant_id}/inventory", json={
            "quantity_change": 4,
        }, headers=auth_header(staff_token))
        assert res.json()["quantity_on_hand"] == 7

        empty = await client.patch(f"{ADMIN}/variants/{variant_id}/inventory", json={}, headers=auth_header(staff_token))
        assert empty.status_code == 400

    async def test_teacher_cannot_manage_products(self, client: AsyncClient, teacher_token):
        res = await client.get(f"{ADMIN}/products", headers=auth_header(teacher_token))
        assert res.status_code == 403


class TestOrders:
    """주문 테스트."""

    async def test_order_reserves_stock(self, client: AsyncClient, staff_token, parent_token):
        product = await _product(client, staff_token)
        variant_id = _variant(product, "TEE-M")["id"]

        res = await client.post(f"{SHOP}/orders", json=_order_body(variant_id, 2), headers=auth_header(parent_token))
        assert res.status_code == 201
        order = res.json()
        assert order["order_number"].startswith("MRC-")
        assert order["total_in_cents"] == 4400
        assert order["customer_email"] == "parent@test.com"

        detail = await client.get(f"{ADMIN}/products/{product['id']}", headers=auth_header(staff_token))
        medium = _variant(detail.json(), "TEE-M")
        assert medium["quantity_reserved"] == 2
        assert medium["quantity_available"] == 1

        mine = await client.get(MY_ORDERS, headers=auth_header(parent_token))
        assert [o["id"] for o in mine.json()] == [order["id"]]

    async def test_insufficient_stock(self, client: AsyncClient, staff_token, parent_token):
        product = await _product(client, staff_token)
        variant_id = _variant(product, "TEE-S")["id"]
        res = await client.post(f"{SHOP}/orders", json=_order_body(variant_id, 4), headers=auth_header(parent_token))
        assert res.status_code == 409
        assert res.json()["detail"]["items"][0] == {"sku": "TEE-S", "requested": 4, "available": 3}

    async def test_shipping_requires_address(self, client: AsyncClient, staff_token, parent_token):
        product = await _product(client, staff_token)
        variant_id = _variant(product, "TEE-S")["id"]
        res = await client.post(f"{SHOP}/orders", json=_order_body(
            variant_id, 1, fulfillment_method="shipping"
        ), headers=auth_header(parent_token))
        assert res.status_code == 400

    async def test_cancel_pending_order_releases_reservation(self, client: AsyncClient, staff_token, parent_token):
        product = await _product(client, staff_token)
        variant_id = _variant(product, "TEE-S")["id"]
        order = (await client.post(
            f"{SHOP}/orders", json=_order_body(variant_id, 3), headers=auth_header(parent_token)
        )).json()

        res = await client.patch(f"{ADMIN}/orders/{order['id']}", json={"status": "cancelled"}, headers=auth_header(staff_token))
        assert res.json()["status"] == "cancelled"

        detail = await client.get(f"{ADMIN}/products/{product['id']}", headers=auth_header(staff_token))
        assert _variant(detail.json(), "TEE-S")["quantity_available"] == 3

        again = await client.patch(f"{ADMIN}/orders/{order['id']}", json={"status": "processing"}, headers=auth_header(staff_token))
        assert again.status_code == 400

    async def test_paid_order_flow(self, client: AsyncClient, staff_token, parent_token, monkeypatch):
        intents: dict[str, dict] = {}

        async def fake_create(amount_in_cents, metadata, idempotency_key, receipt_email=None, description=None):
            intent = {
                "id": "pi_merch_1", "client_secret": "secret_m", "amount": amount_in_cents,
                "currency": "usd", "status": "requires_payment_method", "metadata": metadata,
            }
            intents[intent["id"]] = intent
            return intent

        async def fake_retrieve(intent_id):
            return intents[intent_id]

        monkeypatch.setattr(payment_gateway, "create_payment_intent", fake_create)
        monkeypatch.setattr(payment_gateway, "retrieve_payment_intent", fake_retrieve)

        product = await _product(client, staff_token)
        variant_id = _variant(product, "TEE-S")["id"]
        order = (await client.post(
            f"{SHOP}/orders", json=_order_body(variant_id, 2), headers=auth_header(parent_token)
        )).json()

        intent = await client.post(f"{SHOP}/orders/{order['id']}/payment-intent", headers=auth_header(parent_token))
        assert intent.json()["amount"] == 4000

        early = await client.post(f"{SHOP}/orders/{order['id']}/confirm", json={
            "payment_intent_id": "pi_merch_1",
        }, headers=auth_header(parent_token))
        assert early.status_code == 400

        intents["pi_merch_1"]["status"] = "succeeded"
        res = await client.post(f"{SHOP}/orders/{order['id']}/confirm", json={
            "payment_intent_id": "pi_merch_1",
        }, headers=auth_header(parent_token))
        assert res.status_code == 200
        assert res.json()["order"]["status"] == "processing"

        # 결제 완료 시 예약분이 출고됨
        detail = await client.get(f"{ADMIN}/products/{product['id']}", headers=auth_header(staff_token))
        small = _variant(detail.json(), "TEE-S")
        assert (small["quantity_on_hand"], small["quantity_reserved"]) == (1, 0)

        # 결제된 주문 취소는 재입고
        await client.patch(f"{ADMIN}/orders/{order['id']}", json={"status": "cancelled"}, headers=auth_header(staff_token))
        detail = await client.get(f"{ADMIN}/products/{product['id']}", headers=auth_header(staff_token))
        assert _variant(detail.json(), "TEE-S")["quantity_on_hand"] == 3

        # 판매 이력이 있는 상품은 비활성화만
        deleted = await client.delete(f"{ADMIN}/products/{product['id']}", headers=auth_header(staff_token))
        assert deleted.json() == {"deleted": False, "deactivated": True}
