from datetime import datetime

from app.application.dtos.booking_dto import AvailabilityResult
from app.application.interfaces.booking_repo import BookingRepo
from app.application.interfaces.resource_catalog import ResourceCatalog
from app.domain.entities.resource import ReservableResource
from app.domain.errors import ResourceNotFoundError, ValidationError
from app.domain.value_objects.booking_interval import BookingInterval


class CheckAvailabilityUseCase:
    """
    Decide whether a resource has a free unit of capacity for an interval.

    Remaining capacity is ``total_capacity`` minus the active bookings that
    overlap the interval. Unpaid holds whose ``expires_at`` already passed do
    not count; they are returned as ``lapsed_holds`` so a writer in the same
    transaction can expire them.
    """

    def __init__(
        self,
        resource_catalog: ResourceCatalog,
        booking_repo: BookingRepo,
    ) -> None:
        self._resource_catalog = resource_catalog
        self._booking_repo = booking_repo

    async def load_resource(self, resource_id: str, for_update: bool = False) -> ReservableResource:
        resource = await self._resource_catalog.get(resource_id, for_update=for_update)
        if resource is None or not resource.is_active:
            raise ResourceNotFoundError(resource_id)
        return resource

    async def evaluate(
        self,
        resource: ReservableResource,
        interval: BookingInterval,
        party_size: int,
        now: datetime,
    ) -> AvailabilityResult:
        overlapping = await self._booking_repo.list_active_overlapping(resource.id, interval)
        lapsed = [booking for booking in overlapping if booking.is_expired(now)]
        holding = len(overlapping) - len(lapsed)

        remaining = max(0, resource.total_capacity - holding)
        return AvailabilityResult(
            resource_id=resource.id,
            available=remaining >= 1 and resource.accepts_party_of(party_size),
            remaining_capacity=remaining,
            total_capacity=resource.total_capacity,
            lapsed_holds=lapsed,
        )

    async def execute(
        self,
        resource_id: str,
        interval: BookingInterval,
        party_size: int,
        now: datetime,
    ) -> AvailabilityResult:
        resource = await self.load_resource(resource_id)
        return await self.evaluate(resource, interval, party_size, now)


def make_interval(start: datetime, end: datetime) -> BookingInterval:
    """Build an interval, reporting a malformed one as a validation error."""
    try:
        return BookingInterval(start=start, end=end)
    except ValueError as exc:
        raise ValidationError("interval", str(exc)) from exc
