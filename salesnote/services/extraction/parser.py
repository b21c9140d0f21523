"""Completion response parser.

Reads the Markdown layout requested by the extraction prompt. Every section is
optional; a missing or malformed section leaves its field at the default and
adds an entry to ``ParseResult.issues``. ``parse_response`` never raises.
"""
import logging
import re
from typing import Dict, List, Optional

from salesnote.services.extraction.models import (
    VALID_STATUS,
    ExtractedLineItem,
    ExtractedOrder,
    ParseResult,
)
from salesnote.services.extraction.prompt import (
    AMBIGUITIES_HEADER,
    CUSTOMER_HEADER,
    NOTE_HEADER,
    ORDER_HEADER,
    TASK_HEADER,
)

logger = logging.getLogger(__name__)

_HEADER_RE = re.compile(r"^\s*\*\*\s*(?P<name>[^*]+?)\s*(?::\s*\*\*|\*\*\s*:)\s*(?P<rest>.*)$")
_SEPARATOR_CELL_RE = re.compile(r"^:?-{2,}:?$")
_RULE_LINE_RE = re.compile(r"^\s*(?:-{3,}|_{3,}|\*{3,})\s*$")
_QUOTE_MARKER_RE = re.compile(r"^\s*>\s?")
_NUMBER_RE = re.compile(r"^-?(?:\d+(?:\.\d*)?|\.\d+)")
_PLACEHOLDER_RE = re.compile(r"^\[[^\]]*\]$")

_PLACEHOLDERS = {
    "none", "n/a", "na", "-", "--", "nil", "null", "nothing",
    "not specified", "no task", "no tasks", "no note", "no notes", "no ambiguities",
}

CUSTOMER = "customer"
ORDER = "order"
NOTE = "note"
TASK = "task"
AMBIGUITIES = "ambiguities"

SECTION_TITLES = {
    CUSTOMER: CUSTOMER_HEADER,
    ORDER: ORDER_HEADER,
    NOTE: NOTE_HEADER,
    TASK: TASK_HEADER,
    AMBIGUITIES: AMBIGUITIES_HEADER,
}

DEFAULT_COLUMNS = {"product": 0, "quantity": 1, "unit_price": 2, "discount": 3, "status": 4}


def _section_key(header_name: str) -> Optional[str]:
    name = " ".join(header_name.lower().split())
    if name == "customer":
        return CUSTOMER
    if name.startswith("quote") or name.startswith("order"):
        return ORDER
    if name in ("note", "notes"):
        return NOTE
    if name in ("task", "tasks"):
        return TASK
    if name.startswith("ambiguit"):
        return AMBIGUITIES
    return None


def split_sections(text: str) -> Dict[str, List[str]]:
    """Group lines under the first occurrence of each known header.

    Any header line, known or not, ends the section above it.
    """
    sections: Dict[str, List[str]] = {}
    current: Optional[List[str]] = None
    for line in text.splitlines():
        match = _HEADER_RE.match(line)
        if match:
            key = _section_key(match.group("name"))
            if key is None or key in sections:
                current = None
                continue
            current = sections[key] = []
            rest = match.group("rest").strip()
            if rest:
                current.append(rest)
            continue
        if current is not None:
            current.append(line)
    return sections


def parse_number(text: str) -> Optional[float]:
    """Parse a leading number after stripping currency, percent and grouping marks."""
    cleaned = re.sub(r"[$€£%,\s]", "", text or "")
    match = _NUMBER_RE.match(cleaned)
    if not match:
        return None
    try:
        return max(float(match.group(0)), 0.0)
    except ValueError:
        return None


def _number_or_zero(text: str) -> float:
    value = parse_number(text)
    return value if value is not None else 0.0


def clean_value(text: str) -> str:
    """Normalize placeholder answers ('none', '[Freeform notes extracted]') to ''."""
    text = text.strip()
    if _PLACEHOLDER_RE.match(text):
        return ""
    if text.lower().rstrip(".!") in _PLACEHOLDERS:
        return ""
    return text


def _block_text(lines: List[str]) -> str:
    body = []
    for line in lines:
        if _RULE_LINE_RE.match(line):
            continue
        while _QUOTE_MARKER_RE.match(line):
            line = _QUOTE_MARKER_RE.sub("", line, count=1)
        body.append(line.rstrip())
    return clean_value("\n".join(body).strip())


def _split_row(line: str) -> List[str]:
    row = line.strip()
    if row.startswith("|"):
        row = row[1:]
    if row.endswith("|"):
        row = row[:-1]
    return [cell.strip() for cell in row.split("|")]


def _is_separator(cells: List[str]) -> bool:
    filled = [cell for cell in cells if cell]
    return bool(filled) and all(_SEPARATOR_CELL_RE.match(cell) for cell in filled)


def _is_header(cells: List[str]) -> bool:
    return any("product name" in cell.lower() for cell in cells)


def _columns_from_header(cells: List[str]) -> Optional[Dict[str, int]]:
    """Map column keys to header positions; None when the header is unusable."""
    columns: Dict[str, int] = {}
    for index, cell in enumerate(cells):
        name = cell.lower()
        if "product" in name:
            key = "product"
        elif "qty" in name or "quantity" in name:
            key = "quantity"
        elif "discount" in name:
            key = "discount"
        elif "status" in name or "validation" in name:
            key = "status"
        elif "price" in name:
            key = "unit_price"
        else:
            continue
        columns.setdefault(key, index)
    # A header that lost its product/quantity/price columns is not trustworthy.
    if not {"product", "quantity", "unit_price"} <= columns.keys():
        return None
    return columns


def _parse_row(cells: List[str], columns: Dict[str, int]) -> Optional[ExtractedLineItem]:
    def cell(key: str) -> str:
        index = columns.get(key)
        if index is None or index >= len(cells):
            return ""
        return cells[index]

    product = cell("product")
    if not product:
        return None

    discount_text = cell("discount")
    status_text = cell("status")
    # Rows that dropped the empty discount cell carry the status in its place.
    if not status_text and discount_text and parse_number(discount_text) is None:
        status_text, discount_text = discount_text, ""

    discount = _number_or_zero(discount_text)
    status = status_text or VALID_STATUS
    if status.upper() == "OK":
        status = VALID_STATUS

    return ExtractedLineItem(
        product_name=product,
        quantity=_number_or_zero(cell("quantity")),
        unit_price=_number_or_zero(cell("unit_price")),
        discount_percent=discount,
        discount_explicit=discount > 0,
        validation_status=status,
    )


def parse_order_table(lines: List[str], issues: List[str]) -> List[ExtractedLineItem]:
    """Parse the Markdown table rows of the order section."""
    items: List[ExtractedLineItem] = []
    header_columns: Optional[Dict[str, int]] = None
    rows = [line for line in lines if line.strip().startswith("|")]
    if not rows:
        issues.append(f"No table rows found under '{ORDER_HEADER}'")
        return items

    for line in rows:
        cells = _split_row(line)
        if _is_separator(cells):
            continue
        if _is_header(cells):
            header_columns = _columns_from_header(cells)
            continue
        filled = [cell for cell in cells if cell]
        if not filled:
            continue
        if len(filled) < 3:
            issues.append(f"Skipped table row with fewer than 3 values: {line.strip()}")
            continue
        if header_columns is not None:
            item = _parse_row(cells, header_columns)
        else:
            # Positional rows drop their empty cells first
            item = _parse_row(filled, DEFAULT_COLUMNS)
        if item is None:
            issues.append(f"Skipped table row without a product name: {line.strip()}")
            continue
        items.append(item)
    return items


def parse_response(text: Optional[str]) -> ParseResult:
    """Extract customer, line items, note, task and ambiguities from completion text."""
    order = ExtractedOrder(raw_model_response=text)
    issues: List[str] = []
    if not text or not text.strip():
        issues.append("Completion text is empty")
        return ParseResult(order=order, issues=issues)

    try:
        sections = split_sections(text)
        for key, title in SECTION_TITLES.items():
            if key not in sections:
                issues.append(f"Section '{title}' not found")

        if CUSTOMER in sections:
            customer = " ".join(_block_text(sections[CUSTOMER]).split())
            order.customer = clean_value(customer.strip("*").strip())
        if ORDER in sections:
            order.line_items = parse_order_table(sections[ORDER], issues)
        if NOTE in sections:
            order.note = _block_text(sections[NOTE])
        if TASK in sections:
            order.task = _block_text(sections[TASK])
        if AMBIGUITIES in sections:
            order.ambiguities = _block_text(sections[AMBIGUITIES])
    except Exception as e:
        logger.error(f"[PARSER] Unexpected error, keeping partial result: {e}", exc_info=True)
        issues.append(f"Parser error: {type(e).__name__}")

    logger.info(
        f"[PARSER] customer='{order.customer}', {len(order.line_items)} line items, "
        f"{len(issues)} issues"
    )
    return ParseResult(order=order, issues=issues)
