from fastapi import APIRouter, Depends, Header, Query, Response, status

from app.api.dependencies import get_use_cases
from app.api.schemas.bookings import (
    BookingView,
    CancelBookingRequest,
    CreateBookingRequest,
    CreateBookingResponse,
)
from app.api.schemas.payments import PaymentOrderResponse
from app.application.dtos.booking_dto import CreateBookingCommand

router = APIRouter()


@router.post(
    "/bookings",
    response_model=CreateBookingResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_booking(
    payload: CreateBookingRequest,
    response: Response,
    idem_key: str = Header(default=None, convert_underscores=False, alias="Idempotency-Key"),
    use_cases=Depends(get_use_cases),
) -> CreateBookingResponse:
    contact = payload.requester_contact
    command = CreateBookingCommand(
        resource_id=payload.resource_id,
        interval_start=payload.interval_start,
        interval_end=payload.interval_end,
        party_size=payload.party_size,
        user_id=payload.user_id,
        requester_name=contact.name,
        requester_email=contact.email,
        requester_phone=contact.phone,
        coupon_code=payload.coupon_code,
    )
    result = await use_cases["create_booking"].create(command, idem_key=idem_key)
    # A replay answers with the body and status stored for the key
    response.status_code = result.http_status
    return CreateBookingResponse.model_validate(result.response)


@router.get("/bookings/{booking_id}", response_model=BookingView)
async def get_booking(booking_id: str, use_cases=Depends(get_use_cases)) -> BookingView:
    booking = await use_cases["get_booking"].execute(booking_id)
    return BookingView.from_entity(booking)


@router.get("/bookings", response_model=list[BookingView])
async def list_user_bookings(
    user_id: str = Query(min_length=1, max_length=64, alias="userId"),
    limit: int = Query(default=50, ge=1, le=200),
    use_cases=Depends(get_use_cases),
) -> list[BookingView]:
    bookings = await use_cases["list_user_bookings"].execute(user_id, limit=limit)
    return [BookingView.from_entity(booking) for booking in bookings]


@router.post("/bookings/{booking_id}/cancel", response_model=BookingView)
async def cancel_booking(
    booking_id: str,
    payload: CancelBookingRequest,
    use_cases=Depends(get_use_cases),
) -> BookingView:
    booking = await use_cases["cancel_booking"].execute(booking_id, user_id=payload.user_id)
    return BookingView.from_entity(booking)


@router.post(
    "/bookings/{booking_id}/payment-order",
    response_model=PaymentOrderResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_payment_order(
    booking_id: str,
    use_cases=Depends(get_use_cases),
) -> PaymentOrderResponse:
    handle = await use_cases["create_payment_order"].execute(booking_id)
    return PaymentOrderResponse(
        order_id=handle.order_id,
        booking_id=handle.booking_id,
        client_handle=handle.client_handle,
        amount=handle.amount,
        currency=handle.currency,
        provider=handle.provider,
    )
