"""Entity PaymentOrder - a gateway order bound 1:1 to a booking."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum


class PaymentOrderStatus(str, Enum):
    CREATED = "created"
    PAID = "paid"
    FAILED = "failed"


@dataclass
class PaymentOrder:
    """
    Order created on the payment gateway for a booking's ``final_amount``.

    Finalized exactly once: ``created -> paid`` or ``created -> failed``.
    """

    id: str
    booking_id: str
    amount: Decimal
    currency: str
    provider: str
    status: PaymentOrderStatus = PaymentOrderStatus.CREATED
    client_handle: str | None = None
    provider_reference: str | None = None
    signature: str | None = None
    failure_reason: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        self.status = PaymentOrderStatus(self.status)

    @property
    def is_paid(self) -> bool:
        return self.status == PaymentOrderStatus.PAID

    @property
    def is_final(self) -> bool:
        return self.status in (PaymentOrderStatus.PAID, PaymentOrderStatus.FAILED)
