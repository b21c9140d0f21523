"""Draft session stage enumeration."""
from enum import Enum


class DraftStage(str, Enum):
    """Lifecycle stages of a draft order."""

    EMPTY = "empty"  # No draft yet; note text may be accumulating
    PROCESSING = "processing"  # Prompt sent, awaiting completion
    DRAFTED = "drafted"  # Order populated, shown for review and edits
    CONFIRMED = "confirmed"  # Handed to the ledger
    CANCELLED = "cancelled"  # Discarded by the user

    def __str__(self) -> str:
        """Return the string value of the stage."""
        return self.value

