"""Entity ReservableResource - a bookable unit of capacity owned by a vendor."""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from app.domain.value_objects.booking_interval import BookingInterval


class ResourceCategory(str, Enum):
    LODGING = "lodging"
    DINING = "dining"
    TRANSPORT = "transport"


class CapacityUnit(str, Enum):
    ROOM_NIGHT = "room_night"
    TABLE_SLOT = "table_slot"
    VEHICLE_HOUR = "vehicle_hour"


@dataclass
class ReservableResource:
    """
    Read-only catalog item (room, table pool, driver).

    ``total_capacity`` is how many bookings may overlap at any instant: 1 for a
    homestay room, N for a restaurant with N tables, M for a pool of drivers.
    """

    id: str
    name: str
    category: ResourceCategory
    capacity_unit: CapacityUnit
    unit_price: Decimal
    owner_id: str
    total_capacity: int = 1
    max_party_size: int | None = None
    slot_minutes: int = 60
    is_active: bool = True

    def billable_units(self, interval: BookingInterval) -> int:
        """Units charged for ``interval`` according to the capacity unit."""
        if self.capacity_unit == CapacityUnit.ROOM_NIGHT:
            return interval.nights
        if self.capacity_unit == CapacityUnit.VEHICLE_HOUR:
            return interval.hours
        return interval.slots(self.slot_minutes)

    def accepts_party_of(self, party_size: int) -> bool:
        return self.max_party_size is None or party_size <= self.max_party_size
