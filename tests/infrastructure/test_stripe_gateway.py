import json
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
import stripe

from app.domain.errors import GatewayError, InvalidSignatureError
from app.infrastructure.gateways.stripe_payment_gateway import StripePaymentGateway
from tests.conftest import WEBHOOK_SECRET, stripe_signature


@pytest.fixture
def gateway():
    return StripePaymentGateway(api_key="sk_test_123", timeout_seconds=2.0)


class TestCreateOrder:
    @pytest.mark.asyncio
    async def test_amount_is_sent_in_paise(self, gateway, monkeypatch):
        create = MagicMock(
            return_value=SimpleNamespace(
                id="pi_123", client_secret="pi_123_secret_abc", status="requires_payment_method"
            )
        )
        monkeypatch.setattr(stripe.PaymentIntent, "create", create)

        order = await gateway.create_order(
            amount=Decimal("6000.00"),
            currency="INR",
            booking_id="BK-1",
            idempotency_key="booking-BK-1",
        )

        assert order.order_id == "pi_123"
        assert order.client_handle == "pi_123_secret_abc"
        kwargs = create.call_args.kwargs
        assert kwargs["amount"] == 600000
        assert kwargs["currency"] == "inr"
        assert kwargs["metadata"] == {"booking_id": "BK-1"}
        assert kwargs["idempotency_key"] == "booking-BK-1"

    @pytest.mark.asyncio
    async def test_stripe_errors_become_gateway_errors(self, gateway, monkeypatch):
        monkeypatch.setattr(
            stripe.PaymentIntent,
            "create",
            MagicMock(side_effect=stripe.StripeError("card network down")),
        )

        with pytest.raises(GatewayError):
            await gateway.create_order(
                amount=Decimal("100"),
                currency="INR",
                booking_id="BK-2",
                idempotency_key="booking-BK-2",
            )


class TestWebhookParsing:
    EVENT = {"id": "evt_1", "type": "payment_intent.succeeded", "data": {"object": {"id": "pi_1"}}}

    @pytest.mark.asyncio
    async def test_valid_signature(self, gateway):
        payload = json.dumps(self.EVENT)
        event = await gateway.parse_webhook_event(
            payload=payload.encode(),
            signature_header=stripe_signature(payload),
            webhook_secret=WEBHOOK_SECRET,
        )
        assert event["type"] == "payment_intent.succeeded"
        assert event["data"]["object"]["id"] == "pi_1"

    @pytest.mark.asyncio
    async def test_wrong_secret_is_rejected(self, gateway):
        payload = json.dumps(self.EVENT)
        with pytest.raises(InvalidSignatureError):
            await gateway.parse_webhook_event(
                payload=payload.encode(),
                signature_header=stripe_signature(payload, secret="whsec_other"),
                webhook_secret=WEBHOOK_SECRET,
            )

    @pytest.mark.asyncio
    async def test_missing_header_is_rejected(self, gateway):
        with pytest.raises(InvalidSignatureError):
            await gateway.parse_webhook_event(
                payload=json.dumps(self.EVENT).encode(),
                signature_header=None,
                webhook_secret=WEBHOOK_SECRET,
            )

    @pytest.mark.asyncio
    async def test_without_secret_every_event_is_rejected(self, gateway):
        payload = json.dumps(self.EVENT)
        with pytest.raises(InvalidSignatureError):
            await gateway.parse_webhook_event(
                payload=payload.encode(),
                signature_header=stripe_signature(payload),
                webhook_secret=None,
            )

    @pytest.mark.asyncio
    async def test_signed_garbage_is_invalid_payload(self, gateway):
        with pytest.raises(ValueError):
            await gateway.parse_webhook_event(
                payload=b"not json",
                signature_header=stripe_signature("not json"),
                webhook_secret=WEBHOOK_SECRET,
            )
