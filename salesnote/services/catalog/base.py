"""Catalog provider interface."""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field


class Vendor(BaseModel):
    """Customer (vendor) catalog entry."""

    id: str
    name: str
    organization_id: str


class InventoryItem(BaseModel):
    """Inventory catalog entry."""

    id: str
    name: str
    quantity: float = 0
    unit_price: float = 0
    min_price: float = 0
    max_price: float = 0
    location: str = ""
    organization_id: str


class CatalogSnapshot(BaseModel):
    """Full vendor and inventory lists for one organization, read once per run."""

    organization_id: str
    vendors: List[Vendor] = []
    inventory: List[InventoryItem] = []
    taken_at: datetime = Field(default_factory=datetime.utcnow)

    def find_inventory_item(self, item_id: str) -> Optional[InventoryItem]:
        """Look up an inventory entry by id."""
        for item in self.inventory:
            if item.id == item_id:
                return item
        return None


class CatalogProvider(ABC):
    """Abstract base class for organization-scoped catalog stores."""

    @abstractmethod
    async def list_vendors(self, organization_id: str) -> List[Vendor]:
        """Get all vendors for an organization, in store order."""
        pass

    @abstractmethod
    async def list_inventory(self, organization_id: str) -> List[InventoryItem]:
        """Get all inventory items for an organization, in store order."""
        pass
