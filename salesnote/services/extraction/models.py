"""Extraction models."""
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel

VALID_STATUS = "Valid"


class MatchMethod(str, Enum):
    """How a free-text name was tied to a catalog entry."""

    NONE = ""  # not resolved yet
    EXACT = "exact"
    FUZZY = "fuzzy"
    UNRESOLVED = "unresolved"

    def __str__(self) -> str:
        return self.value


class ExtractionSource(str, Enum):
    """Which stage produced the line items of a draft."""

    MODEL = "model"
    FALLBACK = "fallback"

    def __str__(self) -> str:
        return self.value


class ExtractedLineItem(BaseModel):
    """One product / quantity / price / discount / status tuple."""

    product_name: str = ""
    quantity: float = 0
    unit_price: float = 0
    discount_percent: float = 0
    discount_explicit: bool = False  # supplied by the model or the user, never derived
    validation_status: str = VALID_STATUS
    catalog_id: Optional[str] = None
    match_method: MatchMethod = MatchMethod.NONE


class ExtractedOrder(BaseModel):
    """Structured draft produced from one sales note."""

    customer: str = ""
    customer_id: Optional[str] = None
    customer_match: MatchMethod = MatchMethod.NONE
    line_items: List[ExtractedLineItem] = []
    note: str = ""
    task: str = ""
    ambiguities: str = ""
    raw_model_response: Optional[str] = None
    source: ExtractionSource = ExtractionSource.MODEL


class ParseResult(BaseModel):
    """Parser output plus a record of what could not be parsed."""

    order: ExtractedOrder
    issues: List[str] = []
