import logging
from typing import Any

from app.application.interfaces.payment_gateway import PaymentGateway
from app.application.use_cases.confirm_payment import ConfirmPaymentUseCase
from app.domain.errors import (
    InvalidSignatureError,
    InvalidStateTransitionError,
    UnknownOrderError,
    ValidationError,
)

EVENT_SUCCEEDED = "payment_intent.succeeded"
EVENT_FAILED = "payment_intent.payment_failed"


class HandleStripeWebhookUseCase:
    """
    Feed Stripe PaymentIntent events into the confirmation processor.

    Only events whose ``Stripe-Signature`` verifies against the configured
    webhook secret reach settlement; with no secret configured every event is
    rejected. Replays are no-ops because settlement itself is idempotent.
    """

    def __init__(
        self,
        confirm_payment: ConfirmPaymentUseCase,
        payment_gateway: PaymentGateway,
        stripe_webhook_secret: str | None,
    ) -> None:
        self._confirm_payment = confirm_payment
        self._payment_gateway = payment_gateway
        self._stripe_webhook_secret = stripe_webhook_secret
        self._logger = logging.getLogger(__name__)

    async def execute(self, raw_body: bytes, signature: str | None) -> str:
        """Returns the outcome: ``settled``, ``failed``, ``ignored`` or ``rejected``."""
        if not raw_body:
            raise ValidationError("body", "empty webhook body")
        if not self._stripe_webhook_secret:
            self._logger.warning("Stripe webhook received but STRIPE_WEBHOOK_SECRET is not set")
            raise InvalidSignatureError("stripe-webhook")
        try:
            event = await self._payment_gateway.parse_webhook_event(
                payload=raw_body,
                signature_header=signature,
                webhook_secret=self._stripe_webhook_secret,
            )
        except ValueError as exc:
            raise ValidationError("body", str(exc)) from exc

        event_type = event.get("type")
        intent = self._extract_object(event)
        order_id = intent.get("id") or intent.get("payment_intent")
        if event_type not in (EVENT_SUCCEEDED, EVENT_FAILED) or not order_id:
            self._logger.info(
                "Stripe webhook ignored",
                extra={"stripe_event_id": event.get("id"), "event_type": event_type},
            )
            return "ignored"

        try:
            if event_type == EVENT_SUCCEEDED:
                await self._confirm_payment.settle_verified(
                    order_id, self._extract_reference(intent)
                )
                outcome = "settled"
            else:
                error = intent.get("last_payment_error") or {}
                await self._confirm_payment.record_failure(
                    order_id, error.get("message") or "payment failed"
                )
                outcome = "failed"
        except UnknownOrderError:
            return "ignored"
        except InvalidStateTransitionError:
            # Already logged at ERROR by the processor; Stripe must not retry it.
            return "rejected"

        self._logger.info(
            "Stripe webhook processed",
            extra={
                "stripe_event_id": event.get("id"),
                "event_type": event_type,
                "order_id": order_id,
            },
        )
        return outcome

    def _extract_object(self, event: dict[str, Any]) -> dict[str, Any]:
        data = event.get("data")
        data_obj = data.get("object", {}) if isinstance(data, dict) else {}
        return data_obj if isinstance(data_obj, dict) else {}

    def _extract_reference(self, intent: dict[str, Any]) -> str:
        charges = intent.get("charges")
        if isinstance(charges, dict) and charges.get("data"):
            return charges["data"][0].get("id")
        return intent.get("latest_charge") or intent["id"]
