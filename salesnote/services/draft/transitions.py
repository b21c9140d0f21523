"""Draft session transitions.

Every transition takes a session and returns a new one; the input is never
modified. A transition the current stage does not allow raises InvalidTransition.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from salesnote.services.catalog.base import CatalogSnapshot, InventoryItem
from salesnote.services.draft.stages import DraftStage
from salesnote.services.draft.state import DraftSession, LedgerSubmission
from salesnote.services.extraction.models import ExtractedLineItem, ExtractedOrder, MatchMethod
from salesnote.services.extraction.resolver import EntityResolver
from salesnote.services.extraction.validator import coerce_number, validate_line_item

logger = logging.getLogger(__name__)

NEW_ITEM_STATUS = "New item"
EDITABLE_ITEM_FIELDS = ("product_name", "quantity", "unit_price", "discount_percent")

_default_resolver = EntityResolver()


class InvalidTransition(Exception):
    """The draft's current stage does not allow the requested action."""


class LineItemNotFound(Exception):
    """A line item index outside the draft's item list."""


def _require(session: DraftSession, *stages: DraftStage) -> None:
    if session.stage not in stages:
        allowed = ", ".join(stage.value for stage in stages)
        raise InvalidTransition(
            f"Cannot do that while the draft is {session.stage.value} (needs: {allowed})"
        )


def _update(session: DraftSession, **changes: Any) -> DraftSession:
    changes["updated_at"] = datetime.utcnow()
    updated = session.model_copy(update=changes)
    if updated.stage != session.stage:
        logger.info(
            f"[DRAFT] {session.session_key}: {session.stage.value} -> {updated.stage.value}"
        )
    return updated


def _drafted_order(session: DraftSession) -> ExtractedOrder:
    _require(session, DraftStage.DRAFTED)
    if session.order is None:
        raise InvalidTransition("The draft has no order to edit")
    return session.order


def _inventory(session: DraftSession) -> List[InventoryItem]:
    return session.catalog.inventory if session.catalog else []


def _matched_item(session: DraftSession, item: ExtractedLineItem) -> Optional[InventoryItem]:
    if session.catalog is None or not item.catalog_id:
        return None
    return session.catalog.find_inventory_item(item.catalog_id)


def _check_index(order: ExtractedOrder, index: int) -> None:
    if index < 0 or index >= len(order.line_items):
        raise LineItemNotFound(f"No line item at position {index}")


# --- processing -----------------------------------------------------------


def begin_processing(
    session: DraftSession, note: str, organization_id: str, processing_id: str
) -> DraftSession:
    """Start a processing run. A draft already on screen is discarded."""
    if not note or not note.strip():
        raise InvalidTransition("Nothing to process: the note is empty")
    return _update(
        session,
        stage=DraftStage.PROCESSING,
        organization_id=organization_id,
        note_text=note,
        order=None,
        catalog=None,
        issues=[],
        processing_id=processing_id,
        error=None,
        pending_submission=None,
    )


def _require_run(session: DraftSession, processing_id: str) -> None:
    _require(session, DraftStage.PROCESSING)
    if session.processing_id != processing_id:
        raise InvalidTransition(f"Processing run {processing_id} is no longer current")


def complete_processing(
    session: DraftSession,
    processing_id: str,
    order: ExtractedOrder,
    catalog: CatalogSnapshot,
    issues: Optional[List[str]] = None,
    error: Optional[str] = None,
) -> DraftSession:
    """Show the extracted order. `error` records an upstream failure the draft recovered from."""
    _require_run(session, processing_id)
    return _update(
        session,
        stage=DraftStage.DRAFTED,
        order=order,
        catalog=catalog,
        issues=list(issues or []),
        processing_id=None,
        error=error,
    )


def fail_processing(session: DraftSession, processing_id: str, error: str) -> DraftSession:
    """Return to empty with the error; the note text is kept."""
    _require_run(session, processing_id)
    return _update(
        session,
        stage=DraftStage.EMPTY,
        order=None,
        processing_id=None,
        error=error,
    )


def append_transcript(session: DraftSession, text: str) -> DraftSession:
    """Append transcribed speech to the note being built. Allowed in every stage."""
    text = (text or "").strip()
    if not text:
        return session
    note_text = f"{session.note_text.rstrip()} {text}" if session.note_text.strip() else text
    return _update(session, note_text=note_text, error=None)


# --- edits ----------------------------------------------------------------


def rename_customer(session: DraftSession, name: str) -> DraftSession:
    """Keep the typed name; link it to a vendor only on an exact (case-insensitive) match."""
    order = _drafted_order(session)
    vendors = session.catalog.vendors if session.catalog else []
    vendor = _default_resolver.find_exact(name, vendors)
    if vendor is not None:
        method = MatchMethod.EXACT
    elif name.strip():
        method = MatchMethod.UNRESOLVED
    else:
        method = MatchMethod.NONE
    updated = order.model_copy(
        update={
            "customer": name,
            "customer_id": vendor.id if vendor else None,
            "customer_match": method,
        }
    )
    return _update(session, order=updated)


def _revalidate(
    session: DraftSession,
    item: ExtractedLineItem,
    resolver: EntityResolver,
    rename: bool,
) -> ExtractedLineItem:
    if rename:
        match = resolver.match_product(item.product_name, _inventory(session))
        item = item.model_copy(
            update={
                "catalog_id": match.entry.id if match.entry else None,
                "match_method": match.method,
            }
        )
    return validate_line_item(item, _matched_item(session, item))


def add_line_item(
    session: DraftSession,
    fields: Optional[Dict[str, Any]] = None,
    resolver: EntityResolver = _default_resolver,
) -> DraftSession:
    """Append a line item. A blank item is marked "New item" until it is edited."""
    order = _drafted_order(session)
    fields = fields or {}
    item = _apply_fields(ExtractedLineItem(), fields)
    if item.product_name.strip():
        item = _revalidate(session, item, resolver, rename=True)
    else:
        item = item.model_copy(update={"validation_status": NEW_ITEM_STATUS})
    updated = order.model_copy(update={"line_items": order.line_items + [item]})
    return _update(session, order=updated)


def remove_line_item(session: DraftSession, index: int) -> DraftSession:
    order = _drafted_order(session)
    _check_index(order, index)
    items = order.line_items[:index] + order.line_items[index + 1:]
    return _update(session, order=order.model_copy(update={"line_items": items}))


def _apply_fields(item: ExtractedLineItem, fields: Dict[str, Any]) -> ExtractedLineItem:
    unknown = set(fields) - set(EDITABLE_ITEM_FIELDS)
    if unknown:
        raise InvalidTransition(f"Line item fields cannot be edited: {', '.join(sorted(unknown))}")

    update: Dict[str, Any] = {}
    if "product_name" in fields:
        update["product_name"] = str(fields["product_name"] or "")
    for field in ("quantity", "unit_price"):
        if field in fields:
            update[field] = coerce_number(fields[field])
    if "discount_percent" in fields:
        discount = coerce_number(fields["discount_percent"])
        update["discount_percent"] = discount
        # a cleared discount is derived again from the catalog price
        update["discount_explicit"] = discount > 0
    return item.model_copy(update=update)


def edit_line_item(
    session: DraftSession,
    index: int,
    fields: Dict[str, Any],
    resolver: EntityResolver = _default_resolver,
) -> DraftSession:
    """Edit one item's fields and re-run the business rules on it.

    Non-numeric quantity, price or discount values become 0. A new product
    name is re-resolved against the session's catalog; the typed text is kept.
    """
    order = _drafted_order(session)
    _check_index(order, index)
    item = _apply_fields(order.line_items[index], fields)
    item = _revalidate(session, item, resolver, rename="product_name" in fields)

    items = list(order.line_items)
    items[index] = item
    return _update(session, order=order.model_copy(update={"line_items": items}))


def edit_note(session: DraftSession, note: str) -> DraftSession:
    order = _drafted_order(session)
    return _update(session, order=order.model_copy(update={"note": note or ""}))


def edit_task(session: DraftSession, task: str) -> DraftSession:
    order = _drafted_order(session)
    return _update(session, order=order.model_copy(update={"task": task or ""}))


# --- confirm / cancel -----------------------------------------------------


def build_submission(session: DraftSession, timestamp: datetime) -> LedgerSubmission:
    """The ledger records a confirm of this draft would write."""
    order = _drafted_order(session)
    return LedgerSubmission(
        organization_id=session.organization_id,
        vendor_id=order.customer_id,
        line_items=[
            item.model_dump(
                mode="json",
                include={
                    "product_name",
                    "quantity",
                    "unit_price",
                    "discount_percent",
                    "validation_status",
                    "catalog_id",
                },
            )
            for item in order.line_items
        ],
        notes=order.note,
        task=order.task.strip(),
        timestamp=timestamp,
    )


def stage_submission(session: DraftSession, timestamp: datetime) -> DraftSession:
    """Stage the ledger payload, reusing a pending one if the draft is unchanged."""
    submission = build_submission(session, timestamp)
    pending = session.pending_submission
    if pending is not None and pending.same_payload(submission):
        logger.info(f"[DRAFT] {session.session_key}: retrying staged submission from {pending.timestamp}")
        return session
    return _update(session, pending_submission=submission, error=None)


def record_ledger_write(
    session: DraftSession, order_id: Optional[int] = None, task_id: Optional[int] = None
) -> DraftSession:
    """Remember a ledger write that succeeded so a retry does not repeat it."""
    _require(session, DraftStage.DRAFTED)
    if session.pending_submission is None:
        raise InvalidTransition("No submission is staged")
    update: Dict[str, Any] = {}
    if order_id is not None:
        update["order_id"] = order_id
    if task_id is not None:
        update["task_id"] = task_id
    return _update(session, pending_submission=session.pending_submission.model_copy(update=update))


def fail_submission(session: DraftSession, error: str) -> DraftSession:
    """Keep the draft and the staged payload so confirm can be retried."""
    _require(session, DraftStage.DRAFTED)
    return _update(session, error=error)


def mark_confirmed(session: DraftSession) -> DraftSession:
    """Finish a confirm once every staged write has succeeded; the draft is discarded."""
    _require(session, DraftStage.DRAFTED)
    submission = session.pending_submission
    if submission is None or not submission.complete:
        raise InvalidTransition("Ledger writes are still pending")
    return _update(session, stage=DraftStage.CONFIRMED, order=None, error=None)


def cancel(session: DraftSession) -> DraftSession:
    """Discard the draft. An in-flight completion is left to finish and then ignored."""
    _require(session, DraftStage.PROCESSING, DraftStage.DRAFTED)
    return _update(
        session,
        stage=DraftStage.CANCELLED,
        order=None,
        processing_id=None,
        error=None,
        pending_submission=None,
    )
