"""Prompt-sized text views of a catalog snapshot."""
from typing import List, Sequence
from pydantic import BaseModel

from salesnote.services.catalog.base import CatalogSnapshot, InventoryItem, Vendor

INVENTORY_PROMPT_LIMIT = 30
VENDOR_PROMPT_LIMIT = 50
MAX_NAME_LENGTH = 80


class PromptCatalog(BaseModel):
    """Text blocks embedded in the extraction prompt."""

    inventory_block: str = ""
    vendor_block: str = ""


def format_number(value: float) -> str:
    """Render a number without a trailing '.0' (5.0 -> '5', 9.5 -> '9.5')."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return str(value)


def _truncate(name: str) -> str:
    name = " ".join(name.split())
    if len(name) <= MAX_NAME_LENGTH:
        return name
    return name[: MAX_NAME_LENGTH - 3].rstrip() + "..."


def build_inventory_block(
    inventory: Sequence[InventoryItem], limit: int = INVENTORY_PROMPT_LIMIT
) -> str:
    """Render the first `limit` inventory entries, one per line."""
    lines: List[str] = []
    for item in list(inventory)[: max(limit, 0)]:
        lines.append(
            f"- {_truncate(item.name)} (Stock: {format_number(item.quantity)}, "
            f"Unit Price: ${item.unit_price:.2f}, Min Price: ${item.min_price:.2f})"
        )
    return "\n".join(lines)


def build_vendor_block(vendors: Sequence[Vendor], limit: int = VENDOR_PROMPT_LIMIT) -> str:
    """Render the first `limit` vendor names, one per line."""
    return "\n".join(f"- {_truncate(vendor.name)}" for vendor in list(vendors)[: max(limit, 0)])


def build_prompt_catalog(
    snapshot: CatalogSnapshot,
    inventory_limit: int = INVENTORY_PROMPT_LIMIT,
    vendor_limit: int = VENDOR_PROMPT_LIMIT,
) -> PromptCatalog:
    """Build both prompt blocks from a snapshot."""
    return PromptCatalog(
        inventory_block=build_inventory_block(snapshot.inventory, inventory_limit),
        vendor_block=build_vendor_block(snapshot.vendors, vendor_limit),
    )
