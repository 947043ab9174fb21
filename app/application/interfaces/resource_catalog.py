from app.domain.entities.resource import ReservableResource


class ResourceCatalog:
    async def get(self, resource_id: str, for_update: bool = False) -> ReservableResource | None:
        """``for_update`` serializes concurrent bookings of the same resource."""
        raise NotImplementedError

    async def add(self, resource: ReservableResource) -> None:
        raise NotImplementedError
