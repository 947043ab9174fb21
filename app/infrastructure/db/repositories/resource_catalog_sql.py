from sqlalchemy import insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.interfaces.resource_catalog import ResourceCatalog
from app.domain.entities.resource import ReservableResource
from app.infrastructure.db.tables import reservable_resources


class ResourceCatalogSQL(ResourceCatalog):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, resource_id: str, for_update: bool = False) -> ReservableResource | None:
        stmt = select(reservable_resources).where(reservable_resources.c.id == resource_id)
        if for_update:
            stmt = stmt.with_for_update()
        result = await self._session.execute(stmt)
        row = result.mappings().first()
        if not row:
            return None
        return ReservableResource(
            id=row["id"],
            name=row["name"],
            category=row["category"],
            capacity_unit=row["capacity_unit"],
            unit_price=row["unit_price"],
            owner_id=row["owner_id"],
            total_capacity=row["total_capacity"],
            max_party_size=row["max_party_size"],
            slot_minutes=row["slot_minutes"],
            is_active=bool(row["is_active"]),
        )

    async def add(self, resource: ReservableResource) -> None:
        stmt = insert(reservable_resources).values(
            id=resource.id,
            name=resource.name,
            category=resource.category.value,
            capacity_unit=resource.capacity_unit.value,
            unit_price=resource.unit_price,
            owner_id=resource.owner_id,
            total_capacity=resource.total_capacity,
            max_party_size=resource.max_party_size,
            slot_minutes=resource.slot_minutes,
            is_active=resource.is_active,
        )
        await self._session.execute(stmt)
