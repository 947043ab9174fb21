from decimal import Decimal
from uuid import uuid4

from app.application.interfaces.payment_gateway import GatewayOrder, PaymentGateway
from app.domain.constants import PAYMENT_PROVIDER_STUB
from app.infrastructure.gateways.stripe_payment_gateway import verify_webhook_event


class StubPaymentGateway(PaymentGateway):
    """Gateway double: orders are created instantly and never charged."""

    provider = PAYMENT_PROVIDER_STUB

    def __init__(self) -> None:
        self.orders: dict[str, GatewayOrder] = {}

    async def create_order(
        self,
        amount: Decimal,
        currency: str,
        booking_id: str,
        idempotency_key: str,
    ) -> GatewayOrder:
        # Same idempotency key, same order, like the real gateways.
        if idempotency_key in self.orders:
            return self.orders[idempotency_key]
        order_id = f"order_{uuid4().hex[:14]}"
        order = GatewayOrder(
            order_id=order_id,
            client_handle=f"{order_id}_secret_{uuid4().hex[:10]}",
            status="created",
        )
        self.orders[idempotency_key] = order
        return order

    async def parse_webhook_event(
        self,
        payload: bytes,
        signature_header: str | None,
        webhook_secret: str | None,
    ) -> dict:
        # Events are still Stripe-signed; only order creation is faked.
        return verify_webhook_event(payload, signature_header, webhook_secret)
