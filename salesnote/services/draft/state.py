"""Draft session state."""
from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

from salesnote.services.catalog.base import CatalogSnapshot
from salesnote.services.draft.stages import DraftStage
from salesnote.services.extraction.models import ExtractedOrder


class LedgerSubmission(BaseModel):
    """The payload staged for the ledger on confirm.

    Kept on the session until both writes succeed, so a retry resends the
    same records with the same timestamp and skips writes already made.
    """

    organization_id: str
    vendor_id: Optional[str] = None
    line_items: List[Dict[str, Any]] = []
    notes: str = ""
    task: str = ""
    timestamp: datetime
    order_id: Optional[int] = None
    task_id: Optional[int] = None

    @property
    def order_pending(self) -> bool:
        return bool(self.line_items) and self.order_id is None

    @property
    def task_pending(self) -> bool:
        return bool(self.task) and self.task_id is None

    @property
    def complete(self) -> bool:
        return not self.order_pending and not self.task_pending

    def same_payload(self, other: "LedgerSubmission") -> bool:
        """True if both submissions would write the same records."""
        return (
            self.organization_id == other.organization_id
            and self.vendor_id == other.vendor_id
            and self.line_items == other.line_items
            and self.notes == other.notes
            and self.task == other.task
        )


class DraftSession(BaseModel):
    """One user's live draft: the note being built and the order extracted from it."""

    session_key: str
    organization_id: str = ""
    stage: DraftStage = DraftStage.EMPTY
    note_text: str = ""
    order: Optional[ExtractedOrder] = None
    catalog: Optional[CatalogSnapshot] = None
    issues: List[str] = []
    processing_id: Optional[str] = None  # identifies the in-flight processing run
    error: Optional[str] = None
    pending_submission: Optional[LedgerSubmission] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
