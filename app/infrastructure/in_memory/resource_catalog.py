import copy

from app.application.interfaces.resource_catalog import ResourceCatalog
from app.domain.entities.resource import ReservableResource
from app.infrastructure.in_memory.store import InMemoryDatabase


class InMemoryResourceCatalog(ResourceCatalog):
    def __init__(self, db: InMemoryDatabase) -> None:
        self._db = db

    async def get(self, resource_id: str, for_update: bool = False) -> ReservableResource | None:
        resource = self._db.resources.get(resource_id)
        return copy.copy(resource) if resource else None

    async def add(self, resource: ReservableResource) -> None:
        if resource.id in self._db.resources:
            raise ValueError(f"Resource already exists: {resource.id}")
        self._db.before_write("resources", resource.id)
        self._db.resources[resource.id] = copy.copy(resource)
