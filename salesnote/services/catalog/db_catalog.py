"""Database-backed catalog provider."""
from typing import List
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from salesnote.db.models import InventoryRecord, VendorRecord
from salesnote.services.catalog.base import CatalogProvider, InventoryItem, Vendor


class DatabaseCatalogProvider(CatalogProvider):
    """Reads the vendor and inventory tables of the shared database."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_vendors(self, organization_id: str) -> List[Vendor]:
        result = await self.db.execute(
            select(VendorRecord)
            .where(VendorRecord.organization_id == organization_id)
            .order_by(VendorRecord.position, VendorRecord.id)
        )
        return [
            Vendor(id=row.id, name=row.name, organization_id=row.organization_id)
            for row in result.scalars().all()
        ]

    async def list_inventory(self, organization_id: str) -> List[InventoryItem]:
        result = await self.db.execute(
            select(InventoryRecord)
            .where(InventoryRecord.organization_id == organization_id)
            .order_by(InventoryRecord.position, InventoryRecord.id)
        )
        return [
            InventoryItem(
                id=row.id,
                name=row.name,
                quantity=row.quantity or 0,
                unit_price=row.unit_price or 0,
                min_price=row.min_price or 0,
                max_price=row.max_price or 0,
                location=row.location or "",
                organization_id=row.organization_id,
            )
            for row in result.scalars().all()
        ]
