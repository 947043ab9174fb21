from fastapi import APIRouter, Depends, Header, Request, status

from app.api.dependencies import get_use_cases
from app.api.schemas.payments import (
    ConfirmPaymentRequest,
    ConfirmPaymentResponse,
    StripeWebhookResponse,
)

router = APIRouter()


@router.post("/payments/confirm", response_model=ConfirmPaymentResponse)
async def confirm_payment(
    payload: ConfirmPaymentRequest,
    signature_header: str = Header(
        default=None, convert_underscores=False, alias="X-Payment-Signature"
    ),
    use_cases=Depends(get_use_cases),
) -> ConfirmPaymentResponse:
    result = await use_cases["confirm_payment"].execute(
        order_id=payload.order_id,
        provider_reference=payload.provider_reference,
        signature=payload.signature or signature_header or "",
    )
    booking = result.booking
    return ConfirmPaymentResponse(
        booking_id=booking.id,
        status=booking.status.value,
        order_id=payload.order_id,
        payment_reference=booking.payment_reference,
    )


@router.post(
    "/webhooks/stripe",
    response_model=StripeWebhookResponse,
    status_code=status.HTTP_200_OK,
)
async def stripe_webhook(
    request: Request,
    use_cases=Depends(get_use_cases),
) -> StripeWebhookResponse:
    raw_body = await request.body()
    signature = request.headers.get("Stripe-Signature")
    outcome = await use_cases["handle_webhook"].execute(raw_body=raw_body, signature=signature)
    return StripeWebhookResponse(outcome=outcome)
