"""In-memory catalog provider."""
import yaml
from pathlib import Path
from typing import Any, Dict, List, Optional
from salesnote.services.catalog.base import CatalogProvider, InventoryItem, Vendor


class InMemoryCatalogProvider(CatalogProvider):
    """In-memory catalog provider using YAML configuration.

    The file maps organization ids to their vendor and inventory lists::

        organizations:
          org-1:
            vendors:
              - {id: "v-1", name: Acme Corp}
            inventory:
              - {id: "i-1", name: Widget A, quantity: 50, unit_price: 15, min_price: 10}
    """

    def __init__(self, catalog_file: Optional[str] = None):
        """Initialize with optional catalog file path."""
        if catalog_file is None:
            catalog_file = Path(__file__).parent / "data" / "catalog.yaml"
        self.catalog_file = Path(catalog_file)
        self._organizations: Optional[Dict[str, Dict[str, Any]]] = None

    async def _load_catalog(self) -> Dict[str, Dict[str, Any]]:
        """Load catalog from YAML file."""
        if self._organizations is None:
            if not self.catalog_file.exists():
                self._organizations = {}
            else:
                with open(self.catalog_file, "r") as f:
                    data = yaml.safe_load(f) or {}
                    self._organizations = data.get("organizations", {}) or {}
        return self._organizations

    async def _entries(self, organization_id: str, key: str) -> List[Dict[str, Any]]:
        organizations = await self._load_catalog()
        organization = organizations.get(organization_id) or {}
        return organization.get(key, []) or []

    async def list_vendors(self, organization_id: str) -> List[Vendor]:
        """Get all vendors for an organization."""
        return [
            Vendor(**{**entry, "id": str(entry["id"]), "organization_id": organization_id})
            for entry in await self._entries(organization_id, "vendors")
        ]

    async def list_inventory(self, organization_id: str) -> List[InventoryItem]:
        """Get all inventory items for an organization."""
        return [
            InventoryItem(**{**entry, "id": str(entry["id"]), "organization_id": organization_id})
            for entry in await self._entries(organization_id, "inventory")
        ]
