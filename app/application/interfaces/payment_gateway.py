from dataclasses import dataclass
from decimal import Decimal
from typing import Any


@dataclass
class GatewayOrder:
    order_id: str
    client_handle: str | None
    status: str


class PaymentGateway:
    provider: str = "stub"

    async def create_order(
        self,
        amount: Decimal,
        currency: str,
        booking_id: str,
        idempotency_key: str,
    ) -> GatewayOrder:
        raise NotImplementedError

    async def parse_webhook_event(
        self,
        payload: bytes,
        signature_header: str | None,
        webhook_secret: str | None,
    ) -> dict[str, Any]:
        raise NotImplementedError
