import asyncio
import json
import logging
from decimal import Decimal

import stripe

from app.application.interfaces.payment_gateway import GatewayOrder, PaymentGateway
from app.domain.constants import PAYMENT_PROVIDER_STRIPE
from app.domain.errors import GatewayError, InvalidSignatureError
from app.domain.value_objects.money import Money
from app.infrastructure.circuit_breaker import CircuitBreakerError, payment_breaker

logger = logging.getLogger(__name__)


class StripePaymentGateway(PaymentGateway):
    """
    Payment orders as Stripe PaymentIntents.

    The intent id is the order id and its ``client_secret`` is the handle the
    client uses to complete payment.
    """

    provider = PAYMENT_PROVIDER_STRIPE

    def __init__(self, api_key: str, timeout_seconds: float = 10.0) -> None:
        self._api_key = api_key
        # The SDK has no async client; bound the underlying connection instead
        stripe.max_network_retries = 2
        stripe.default_http_client = stripe.RequestsClient(timeout=timeout_seconds)

    async def create_order(
        self,
        amount: Decimal,
        currency: str,
        booking_id: str,
        idempotency_key: str,
    ) -> GatewayOrder:
        """
        Create a PaymentIntent, protected by the payment circuit breaker.

        Raises:
            GatewayError: When Stripe fails or the circuit is open
        """
        try:
            intent = await asyncio.to_thread(
                payment_breaker.call,
                stripe.PaymentIntent.create,
                api_key=self._api_key,
                amount=Money(amount, currency).to_minor_units(),
                currency=currency.lower(),
                metadata={"booking_id": booking_id},
                automatic_payment_methods={"enabled": True},
                idempotency_key=idempotency_key,
            )
        except CircuitBreakerError as exc:
            logger.error(
                "Payment circuit breaker is open - gateway unavailable",
                extra={"booking_id": booking_id, "circuit_state": str(exc)},
            )
            raise GatewayError("Payment gateway temporarily unavailable") from exc
        except stripe.StripeError as exc:
            logger.error(
                "Stripe API error",
                exc_info=exc,
                extra={"booking_id": booking_id},
            )
            raise GatewayError(f"Payment gateway error: {exc.user_message or exc}") from exc

        return GatewayOrder(
            order_id=intent.id,
            client_handle=intent.client_secret,
            status=intent.status,
        )

    async def parse_webhook_event(
        self,
        payload: bytes,
        signature_header: str | None,
        webhook_secret: str | None,
    ) -> dict:
        return verify_webhook_event(payload, signature_header, webhook_secret)


def verify_webhook_event(
    payload: bytes,
    signature_header: str | None,
    webhook_secret: str | None,
) -> dict:
    """
    Check the ``Stripe-Signature`` header and decode the event.

    Without a configured secret no event can be authenticated, so every
    event is rejected.

    Raises:
        InvalidSignatureError: Secret not configured, header missing or mismatched
        ValueError: Payload is not a JSON object
    """
    if not webhook_secret:
        logger.warning("Stripe webhook rejected: no webhook secret configured")
        raise InvalidSignatureError("stripe-webhook")
    if not signature_header:
        raise InvalidSignatureError("stripe-webhook")
    try:
        stripe.Webhook.construct_event(
            payload=payload.decode(),
            sig_header=signature_header,
            secret=webhook_secret,
        )
    except stripe.SignatureVerificationError as exc:
        logger.warning("Invalid Stripe webhook signature")
        raise InvalidSignatureError("stripe-webhook") from exc
    except ValueError as exc:
        raise ValueError("Invalid Stripe webhook payload") from exc

    event = json.loads(payload.decode())
    if not isinstance(event, dict):
        raise ValueError("Invalid webhook payload")
    return event
