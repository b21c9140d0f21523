"""Heuristic extraction straight from the salesperson's note.

Used when the completion produced no line items. The rules are deliberately
simple: they recover the obvious "name, qty, $price" entries so the user gets
an editable draft instead of an empty one.
"""
import logging
import re
from typing import List, Optional, Tuple
from pydantic import BaseModel

from salesnote.services.extraction.models import ExtractedLineItem

logger = logging.getLogger(__name__)

_SEGMENT_RE = re.compile(r"[^\n,;]+")
_LINE_RE = re.compile(r"[^\n]+")
_DIGIT_RE = re.compile(r"\d")
_CURRENCY_RE = re.compile(r"[$€£]")
_PRODUCT_KEYWORD_RE = re.compile(
    r"\b(?:products?|items?|orders?|qty|quantity|price|each|pcs|pieces|units?)\b", re.IGNORECASE
)
_BY_DATE_RE = re.compile(
    r"\bby\s+(?:"
    r"\d{1,2}[/.-]\d{1,2}(?:[/.-]\d{2,4})?"
    r"|(?:mon|tues|wednes|thurs|fri|satur|sun)day"
    r"|today|tonight|tomorrow"
    r"|next\s+\w+"
    r"|end\s+of\s+(?:the\s+)?\w+"
    r"|eod|eow|eom"
    r"|(?:jan|feb|mar|apr|may|jun|jul|aug|sep|sept|oct|nov|dec)[a-z]*\.?\s+\d{1,2}"
    r")\b",
    re.IGNORECASE,
)
_TASK_KEYWORD_RE = re.compile(r"\b(?:check|follow|call|contact|remind|schedule)\w*", re.IGNORECASE)
_QUANTITY_RE = re.compile(r"(?<![$\d.])(\d+)(?![\d.])")
_DOLLAR_PRICE_RE = re.compile(r"\$\s*(\d+(?:\.\d+)?)")

# "BoxSet, 3, $9" and "BoxSet 3 $9"
COMMA_PATTERN = re.compile(r"([A-Za-z\s]+)\s*,\s*(\d+)\s*,\s*\$?(\d+(?:\.\d+)?)")
SPACE_PATTERN = re.compile(r"([A-Za-z\s]+)\s+(\d+)\s+\$?(\d+(?:\.\d+)?)")


class FallbackExtraction(BaseModel):
    """Candidates recovered from the original note."""

    customer: str = ""
    line_items: List[ExtractedLineItem] = []
    tasks: List[str] = []
    notes: List[str] = []
    unmatched_lines: List[str] = []


def is_product_candidate(text: str) -> bool:
    """Digit plus currency mark, digit plus product keyword, or a short ALL-CAPS run with a digit."""
    if not _DIGIT_RE.search(text):
        return False
    if _CURRENCY_RE.search(text):
        return True
    if _PRODUCT_KEYWORD_RE.search(text):
        return True
    stripped = text.strip()
    return (
        any(ch.isalpha() for ch in stripped)
        and stripped.upper() == stripped
        and len(stripped.split()) <= 4
    )


def is_task_candidate(text: str) -> bool:
    return bool(_BY_DATE_RE.search(text) or _TASK_KEYWORD_RE.search(text))


def _items_from_line(line: str) -> List[Tuple[ExtractedLineItem, Tuple[int, int]]]:
    matches = list(COMMA_PATTERN.finditer(line)) or list(SPACE_PATTERN.finditer(line))
    found = []
    for match in matches:
        name = " ".join(match.group(1).split())
        if not name:
            continue
        item = ExtractedLineItem(
            product_name=name,
            quantity=float(match.group(2)),
            unit_price=float(match.group(3)),
        )
        found.append((item, match.span()))
    return found


def extract_line_items(note: str) -> Tuple[List[ExtractedLineItem], List[Tuple[int, int]], List[str]]:
    """Scan product-candidate lines with the two literal patterns.

    Returns the items, the character spans they were read from, and the
    candidate lines that matched neither pattern.
    """
    items: List[ExtractedLineItem] = []
    spans: List[Tuple[int, int]] = []
    unmatched: List[str] = []
    for line_match in _LINE_RE.finditer(note):
        line = line_match.group(0)
        if not is_product_candidate(line):
            continue
        found = _items_from_line(line)
        if not found:
            unmatched.append(line.strip())
            logger.info(f"[FALLBACK] No product pattern matched line: '{line.strip()}'")
            continue
        offset = line_match.start()
        for item, (start, end) in found:
            items.append(item)
            spans.append((offset + start, offset + end))
    return items, spans, unmatched


def _overlaps(span: Tuple[int, int], spans: List[Tuple[int, int]]) -> bool:
    start, end = span
    return any(start < other_end and other_start < end for other_start, other_end in spans)


def extract_fallback(note: str) -> FallbackExtraction:
    """Derive customer, products, tasks and notes from a raw sales note."""
    note = note or ""
    items, spans, unmatched = extract_line_items(note)

    customer = ""
    tasks: List[str] = []
    notes: List[str] = []
    for segment_match in _SEGMENT_RE.finditer(note):
        segment = segment_match.group(0).strip()
        if not segment:
            continue
        # The first non-empty segment is always the customer candidate
        if not customer:
            customer = segment
            continue
        if _overlaps(segment_match.span(), spans) or is_product_candidate(segment):
            continue
        if is_task_candidate(segment):
            tasks.append(segment)
        else:
            notes.append(segment)

    logger.info(
        f"[FALLBACK] customer='{customer}', {len(items)} items, {len(tasks)} tasks, "
        f"{len(notes)} notes, {len(unmatched)} unmatched product lines"
    )
    return FallbackExtraction(
        customer=customer,
        line_items=items,
        tasks=tasks,
        notes=notes,
        unmatched_lines=unmatched,
    )


def recover_quantity_and_price(
    product_name: str, note: str
) -> Tuple[Optional[float], Optional[float]]:
    """Read quantity and $price from the first product-candidate line naming the product."""
    name = product_name.strip().lower()
    if not name:
        return None, None
    for line in _LINE_RE.findall(note or ""):
        if name not in line.lower() or not is_product_candidate(line):
            continue
        rest = line[line.lower().index(name) + len(name):]
        quantity = _QUANTITY_RE.search(rest)
        price = _DOLLAR_PRICE_RE.search(rest)
        logger.info(f"[FALLBACK] Recovering values for '{product_name}' from: '{line.strip()}'")
        return (
            float(quantity.group(1)) if quantity else None,
            float(price.group(1)) if price else None,
        )
    return None, None
