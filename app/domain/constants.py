EVENT_BOOKING_CONFIRMED = "BOOKING_CONFIRMED"
AGGREGATE_BOOKING = "booking"

IDEMPOTENCY_SCOPE_BOOKING_CREATE = "BOOKING_CREATE"

PAYMENT_PROVIDER_STRIPE = "stripe"
PAYMENT_PROVIDER_STUB = "stub"
