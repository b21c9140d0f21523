"""Unit tests for the extraction prompt."""
from salesnote.services.catalog.snapshot import PromptCatalog
from salesnote.services.extraction.parser import parse_response
from salesnote.services.extraction.prompt import get_extraction_prompt


CATALOG = PromptCatalog(
    inventory_block="- Widget A (Stock: 50, Unit Price: $15.00, Min Price: $10.00)",
    vendor_block="- Acme Corp",
)


class TestExtractionPrompt:
    """Test prompt composition."""

    def test_embeds_catalog_and_note(self):
        """Test both catalog blocks and the note are embedded verbatim."""
        prompt = get_extraction_prompt("Acme Corp, 30 units Widget A at $12", CATALOG)

        assert CATALOG.inventory_block in prompt
        assert CATALOG.vendor_block in prompt
        assert prompt.rstrip().endswith("Acme Corp, 30 units Widget A at $12")

    def test_requires_output_sections(self):
        """Test the prompt mandates every section the parser reads."""
        prompt = get_extraction_prompt("note", CATALOG)

        assert "**Customer**:" in prompt
        assert "**Quote / Order**:" in prompt
        assert "| Product Name | Quantity | Unit Price | Discount | Validation Status |" in prompt
        assert "**Note**:" in prompt
        assert "**Task**:" in prompt
        assert "**Ambiguities (if any)**:" in prompt

    def test_asks_for_literal_prices(self):
        """Test the prompt tells the model to keep the typed prices."""
        prompt = get_extraction_prompt("note", CATALOG)

        assert "EXACT price from the note" in prompt

    def test_empty_catalog_placeholders(self):
        """Test empty catalogs are stated rather than left blank."""
        prompt = get_extraction_prompt("note", PromptCatalog())

        assert "(no inventory available)" in prompt
        assert "(no customers available)" in prompt

    def test_template_parses_to_empty_order(self):
        """Test the bare output template reads as an order with nothing in it."""
        prompt = get_extraction_prompt("note", CATALOG)
        template = prompt[prompt.index("**Customer**:"):prompt.index("Freeform Sales Note:")]

        result = parse_response(template)

        assert result.order.customer == ""
        assert result.order.line_items == []
        assert result.order.note == ""
        assert result.order.task == ""
