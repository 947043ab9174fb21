from decimal import Decimal

from pydantic import ConfigDict, constr
from pydantic.alias_generators import to_camel

from app.api.schemas.base import CamelModel


class PaymentOrderResponse(CamelModel):
    order_id: str
    booking_id: str
    client_handle: str | None
    amount: Decimal
    currency: str
    provider: str


class ConfirmPaymentRequest(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    order_id: constr(strip_whitespace=True, min_length=1)
    provider_reference: constr(strip_whitespace=True, min_length=1)
    signature: str | None = None


class ConfirmPaymentResponse(CamelModel):
    booking_id: str
    status: str
    order_id: str
    payment_reference: str | None


class StripeWebhookResponse(CamelModel):
    received: bool = True
    outcome: str
