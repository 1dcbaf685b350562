"""결제 게이트웨이 서비스 — Stripe Payment Intents 연동.

Payment gateway service wrapping the Stripe SDK (async variants of the
PaymentIntent and Refund resources). Callers get plain dicts back so the
ticketing and merchandise services never touch SDK objects.

A missing ``STRIPE_SECRET_KEY`` is a server configuration problem and is
reported as HTTP 500 by ``ServiceNotConfiguredError``.
"""

import logging
from typing import Any

import stripe

from app.config import settings
from app.utils.exceptions import BadRequestError, ServiceNotConfiguredError

logger = logging.getLogger(__name__)

# 재사용 불가 상태 — Intents that cannot be reused for a new checkout attempt
TERMINAL_INTENT_STATUSES: frozenset[str] = frozenset({"canceled", "succeeded"})


def _intent_to_dict(intent: Any) -> dict[str, Any]:
    return {
        "id": intent.id,
        "client_secret": intent.client_secret,
        "status": intent.status,
        "amount": intent.amount,
        "currency": intent.currency,
        "metadata": dict(intent.metadata or {}),
    }


class PaymentGateway:
    """Stripe 결제 게이트웨이 래퍼.

    Thin async wrapper over Stripe payment intents and refunds.
    """

    def _require_key(self) -> str:
        if not settings.STRIPE_SECRET_KEY:
            logger.error("STRIPE_SECRET_KEY is not set; payment endpoints are unavailable")
            raise ServiceNotConfiguredError("결제 서비스가 설정되지 않았습니다 (Payment processing is not configured)")
        return settings.STRIPE_SECRET_KEY

    async def create_payment_intent(
        self,
        amount_in_cents: int,
        metadata: dict[str, str],
        idempotency_key: str,
        receipt_email: str | None = None,
        description: str | None = None,
    ) -> dict[str, Any]:
        """결제 intent 생성.

        Create a payment intent for ``amount_in_cents`` in the configured
        currency. ``idempotency_key`` makes retries of the same checkout
        return the same intent.

        Raises:
            ServiceNotConfiguredError: 결제 키 미설정 (500)
            BadRequestError: 게이트웨이가 요청을 거절 (Gateway rejected the request)
        """
        api_key = self._require_key()
        try:
            intent = await stripe.PaymentIntent.create_async(
                api_key=api_key,
                idempotency_key=idempotency_key,
                amount=amount_in_cents,
                currency=settings.STRIPE_CURRENCY,
                metadata=metadata,
                receipt_email=receipt_email,
                description=description,
                automatic_payment_methods={"enabled": True},
            )
        except stripe.StripeError as exc:
            logger.error("Payment intent creation failed (%s): %s", idempotency_key, exc)
            raise BadRequestError("결제 요청이 거절되었습니다 (Payment request was rejected)")
        logger.info("Created payment intent %s for %d cents", intent.id, amount_in_cents)
        return _intent_to_dict(intent)

    async def retrieve_payment_intent(self, intent_id: str) -> dict[str, Any]:
        """결제 intent 조회."""
        api_key = self._require_key()
        try:
            intent = await stripe.PaymentIntent.retrieve_async(intent_id, api_key=api_key)
        except stripe.StripeError as exc:
            logger.error("Payment intent lookup failed (%s): %s", intent_id, exc)
            raise BadRequestError("결제 정보를 확인할 수 없습니다 (Could not verify the payment)")
        return _intent_to_dict(intent)

    async def refund(self, intent_id: str, amount_in_cents: int) -> dict[str, Any]:
        """결제 환불 — 부분 환불 가능 (Partial refunds allowed)."""
        api_key = self._require_key()
        try:
            refund = await stripe.Refund.create_async(
                api_key=api_key,
                payment_intent=intent_id,
                amount=amount_in_cents,
            )
        except stripe.StripeError as exc:
            logger.error("Refund failed for %s: %s", intent_id, exc)
            raise BadRequestError("환불 처리에 실패했습니다 (Refund could not be processed)")
        logger.info("Refunded %d cents on %s (refund %s)", amount_in_cents, intent_id, refund.id)
        return {"id": refund.id, "status": refund.status, "amount": refund.amount}


# 싱글턴 인스턴스 — Singleton instance
payment_gateway: PaymentGateway = PaymentGateway()
