"""Sales note extraction pipeline."""
import logging
from typing import List, Optional
from pydantic import BaseModel

from salesnote.services.catalog.base import CatalogSnapshot
from salesnote.services.catalog.snapshot import (
    INVENTORY_PROMPT_LIMIT,
    VENDOR_PROMPT_LIMIT,
    build_prompt_catalog,
)
from salesnote.services.completion.client import CompletionService, GenerationParams
from salesnote.services.extraction.fallback import (
    FallbackExtraction,
    extract_fallback,
    recover_quantity_and_price,
)
from salesnote.services.extraction.models import ExtractedLineItem, ExtractedOrder, ExtractionSource
from salesnote.services.extraction.parser import parse_response
from salesnote.services.extraction.prompt import get_extraction_prompt
from salesnote.services.extraction.resolver import EntityResolver
from salesnote.services.extraction.validator import validate_line_item

logger = logging.getLogger(__name__)


class ExtractionResult(BaseModel):
    """A validated draft order and the parse issues met on the way."""

    order: ExtractedOrder
    issues: List[str] = []


def merge_fallback(order: ExtractedOrder, fallback: FallbackExtraction) -> ExtractedOrder:
    """Take line items from the fallback; keep parsed customer/note/task when present."""
    return order.model_copy(
        update={
            "line_items": list(fallback.line_items),
            "customer": order.customer or fallback.customer,
            "task": order.task or "; ".join(fallback.tasks),
            "note": order.note or "; ".join(fallback.notes),
            "source": ExtractionSource.FALLBACK,
        }
    )


def fill_from_note(item: ExtractedLineItem, note: str) -> ExtractedLineItem:
    """Fill a zero quantity or price of an unmatched item from the note line naming it."""
    if item.quantity and item.unit_price:
        return item
    quantity, price = recover_quantity_and_price(item.product_name, note)
    update = {}
    if not item.quantity and quantity is not None:
        update["quantity"] = quantity
    if not item.unit_price and price is not None:
        update["unit_price"] = price
    return item.model_copy(update=update) if update else item


class ExtractionPipeline:
    """Catalog snapshot -> prompt -> completion -> parser -> (fallback) -> resolver -> validator."""

    def __init__(
        self,
        completion_service: CompletionService,
        resolver: Optional[EntityResolver] = None,
        params: Optional[GenerationParams] = None,
        inventory_limit: int = INVENTORY_PROMPT_LIMIT,
        vendor_limit: int = VENDOR_PROMPT_LIMIT,
    ):
        self.completion_service = completion_service
        self.resolver = resolver or EntityResolver()
        self.params = params or GenerationParams()
        self.inventory_limit = inventory_limit
        self.vendor_limit = vendor_limit

    def compose_prompt(self, note: str, snapshot: CatalogSnapshot) -> str:
        catalog = build_prompt_catalog(snapshot, self.inventory_limit, self.vendor_limit)
        return get_extraction_prompt(note, catalog)

    async def run(self, note: str, snapshot: CatalogSnapshot) -> ExtractionResult:
        """
        Process one note end to end.

        Raises:
            CompletionFailure: if the completion service fails; nothing is parsed
        """
        prompt = self.compose_prompt(note, snapshot)
        logger.info("=" * 80)
        logger.info(f"[PIPELINE] Organization: {snapshot.organization_id}")
        logger.info(f"[PIPELINE] Note: '{note}'")
        logger.info(f"[PIPELINE] Prompt length: {len(prompt)} chars")
        logger.info("=" * 80)

        raw_response = await self.completion_service.complete(prompt, self.params)
        return self.build_draft(note, raw_response, snapshot)

    def build_draft(
        self, note: str, raw_response: Optional[str], snapshot: CatalogSnapshot
    ) -> ExtractionResult:
        """Parse a completion (or nothing) into a resolved, validated draft."""
        parsed = parse_response(raw_response)
        order = parsed.order
        issues = list(parsed.issues)

        if not order.line_items:
            logger.info("[PIPELINE] Completion yielded no line items, running fallback extraction")
            fallback = extract_fallback(note)
            order = merge_fallback(order, fallback)
            issues.append(
                f"Line items recovered from the note by heuristic extraction "
                f"({len(fallback.line_items)} found)"
            )
            for line in fallback.unmatched_lines:
                issues.append(f"Could not read a product from: {line}")

        order = self.resolve_and_validate(order, snapshot, note)

        logger.info(
            f"[PIPELINE] Draft ready - customer='{order.customer}' ({order.customer_match.value}), "
            f"{len(order.line_items)} items, source={order.source.value}"
        )
        return ExtractionResult(order=order, issues=issues)

    def resolve_and_validate(
        self, order: ExtractedOrder, snapshot: CatalogSnapshot, note: str = ""
    ) -> ExtractedOrder:
        """Resolve the customer and every item against the full catalog, then validate items."""
        match = self.resolver.match_customer(order.customer, snapshot.vendors)
        if not match.resolved and note:
            hint = extract_fallback(note).customer
            match = self.resolver.match_customer(order.customer, snapshot.vendors, hint=hint)

        line_items = []
        for item in order.line_items:
            resolved, entry = self.resolver.resolve_line_item(item, snapshot.inventory)
            if entry is None and note:
                resolved = fill_from_note(resolved, note)
            line_items.append(validate_line_item(resolved, entry))

        return order.model_copy(
            update={
                "customer": match.name,
                "customer_id": match.entry.id if match.entry else None,
                "customer_match": match.method,
                "line_items": line_items,
            }
        )
