"""Line item business rules."""
import math
from typing import Any, List, Optional

from salesnote.services.catalog.base import InventoryItem
from salesnote.services.catalog.snapshot import format_number
from salesnote.services.extraction.models import VALID_STATUS, ExtractedLineItem

NOT_FOUND_STATUS = "Warning: Product not found in inventory"
WARNING_PREFIX = "Warning: "


def coerce_number(value: Any) -> float:
    """Coerce user input to a non-negative number; anything unparseable becomes 0."""
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value or "").replace("$", "").replace("%", "").replace(",", "").strip()
        try:
            number = float(text)
        except ValueError:
            return 0.0
    if math.isnan(number) or math.isinf(number) or number < 0:
        return 0.0
    return number


def derive_discount(unit_price: float, catalog_price: float) -> float:
    """Percent below the catalog price, rounded half up and never negative."""
    if catalog_price <= 0:
        return 0.0
    discount = math.floor((catalog_price - unit_price) / catalog_price * 100 + 0.5)
    return float(max(discount, 0))


def compose_status(warnings: List[str]) -> str:
    """'Valid', or 'Warning: first, second' for one or more warnings."""
    if not warnings:
        return VALID_STATUS
    return WARNING_PREFIX + ", ".join(warnings)


def validate_line_item(
    item: ExtractedLineItem, matched: Optional[InventoryItem]
) -> ExtractedLineItem:
    """Check stock and price floor, derive the discount, and set the status.

    Returns a new item; the input is not modified.
    """
    if matched is None:
        return item.model_copy(update={"validation_status": NOT_FOUND_STATUS})

    warnings: List[str] = []
    if item.quantity > matched.quantity:
        warnings.append(
            f"Quantity exceeds available stock ({format_number(matched.quantity)})"
        )
    if item.unit_price < matched.min_price:
        warnings.append(f"Price below minimum ({format_number(matched.min_price)})")

    update = {"validation_status": compose_status(warnings)}
    if not item.discount_explicit and matched.unit_price > 0:
        update["discount_percent"] = derive_discount(item.unit_price, matched.unit_price)
    return item.model_copy(update=update)
