"""Catalog repository."""
import logging
from typing import List

from salesnote.services.catalog.base import CatalogProvider, CatalogSnapshot, InventoryItem, Vendor
from salesnote.services.catalog.snapshot import (
    INVENTORY_PROMPT_LIMIT,
    VENDOR_PROMPT_LIMIT,
    PromptCatalog,
    build_prompt_catalog,
)

logger = logging.getLogger(__name__)


class CatalogRepository:
    """Repository for organization-scoped catalog reads."""

    def __init__(
        self,
        provider: CatalogProvider,
        inventory_limit: int = INVENTORY_PROMPT_LIMIT,
        vendor_limit: int = VENDOR_PROMPT_LIMIT,
    ):
        self.provider = provider
        self.inventory_limit = inventory_limit
        self.vendor_limit = vendor_limit

    async def get_vendors(self, organization_id: str) -> List[Vendor]:
        """Get all vendors."""
        return await self.provider.list_vendors(organization_id)

    async def get_inventory(self, organization_id: str) -> List[InventoryItem]:
        """Get all inventory items."""
        return await self.provider.list_inventory(organization_id)

    async def get_snapshot(self, organization_id: str) -> CatalogSnapshot:
        """Read both catalogs once for a processing run."""
        vendors = await self.get_vendors(organization_id)
        inventory = await self.get_inventory(organization_id)
        logger.info(
            f"[CATALOG] Snapshot for organization {organization_id}: "
            f"{len(vendors)} vendors, {len(inventory)} inventory items"
        )
        return CatalogSnapshot(
            organization_id=organization_id,
            vendors=vendors,
            inventory=inventory,
        )

    async def get_prompt_catalog(self, organization_id: str) -> PromptCatalog:
        """Get catalog as formatted text for LLM context."""
        snapshot = await self.get_snapshot(organization_id)
        return self.to_prompt_catalog(snapshot)

    def to_prompt_catalog(self, snapshot: CatalogSnapshot) -> PromptCatalog:
        return build_prompt_catalog(snapshot, self.inventory_limit, self.vendor_limit)
