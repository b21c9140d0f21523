"""Extraction prompt template.

The parser reads the section headers defined here; change both together.
"""
from salesnote.services.catalog.snapshot import PromptCatalog

CUSTOMER_HEADER = "Customer"
ORDER_HEADER = "Quote / Order"
NOTE_HEADER = "Note"
TASK_HEADER = "Task"
AMBIGUITIES_HEADER = "Ambiguities (if any)"

TABLE_COLUMNS = ["Product Name", "Quantity", "Unit Price", "Discount", "Validation Status"]


def _output_format() -> str:
    header_row = "| " + " | ".join(TABLE_COLUMNS) + " |"
    separator_row = "|" + "|".join("---" for _ in TABLE_COLUMNS) + "|"
    return f"""**{CUSTOMER_HEADER}**: [Detected Customer]
**{ORDER_HEADER}**:
{header_row}
{separator_row}
**{NOTE_HEADER}**:
> [Freeform notes extracted]
**{TASK_HEADER}**:
> [Action items or reminders extracted]
**{AMBIGUITIES_HEADER}**:
> [Clearly list any assumptions or uncertainties]"""


def get_extraction_prompt(note: str, catalog: PromptCatalog) -> str:
    """Generate the single-shot extraction prompt for a sales note."""
    inventory_text = catalog.inventory_block or "(no inventory available)"
    vendor_text = catalog.vendor_block or "(no customers available)"

    return f"""You are a sales assistant helping a field salesperson extract actionable data from freeform sales notes.
---
Below is the current inventory information:
{inventory_text}
Each product includes:
- Product Name
- Stock (available inventory)
- Unit Price (the catalog standard price, not the price to use for this order)
- Min Price (the lowest allowed selling price)
---
Below is the current customer list:
{vendor_text}
---
Now, interpret the following freeform sales note and extract structured data.
### Instructions:
1. **Identify**:
   - Customer name (exactly as it appears in the sales note)
   - Ordered items with:
     - Product name (exactly as it appears in the sales note)
     - Quantity (exactly as it appears in the sales note)
     - Unit price (IMPORTANT: use the EXACT price from the note, NOT the inventory price)
     - Discount (only if the note states one)
   - Any other information relevant to:
     - A **{NOTE_HEADER}** (e.g., delivery date, special instructions)
     - A **{TASK_HEADER}** (e.g., follow-up, future reminder)
2. **Validate**:
   - Flag items whose quantity exceeds the available stock
   - Flag items priced below the minimum price
   - Do NOT modify the quantities or unit prices typed by the salesperson
3. **Resolve Ambiguity**:
   - If a product or customer name is unclear, make the best-guess match and list it under ambiguities
   - Always preserve the EXACT text of prices, quantities and names from the note
4. **Classify Output** into the structured format below, one table row per ordered item.
---
### Output Format (Strictly Follow)
{_output_format()}
---
Freeform Sales Note:
{note}"""
