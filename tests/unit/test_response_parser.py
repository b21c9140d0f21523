"""Unit tests for the completion response parser."""
from salesnote.services.extraction.models import VALID_STATUS
from salesnote.services.extraction.parser import (
    clean_value,
    parse_number,
    parse_response,
    split_sections,
)


SCENARIO_RESPONSE = (
    "**Customer**: Acme Corp\n"
    "**Quote / Order**:\n"
    "| Widget A | 10 | $12.00 | | OK |\n"
    "**Note**:\n"
    "> Deliver Friday\n"
    "**Task**:\n"
    "> none\n"
    "**Ambiguities (if any)**:\n"
    "> none"
)


class TestParseResponse:
    """Test full response parsing."""

    def test_well_formed_response(self, well_formed_response):
        """Test every section of a well-formed response is read."""
        result = parse_response(well_formed_response)
        order = result.order

        assert order.customer == "Acme Corp"
        assert len(order.line_items) == 2
        assert order.note == "Deliver Friday"
        assert order.task == "Call back about the spring catalog"
        assert order.ambiguities == ""
        assert order.raw_model_response == well_formed_response
        assert result.issues == []

    def test_row_without_header(self):
        """Test a table row is read positionally when the header row is missing."""
        order = parse_response(SCENARIO_RESPONSE).order

        item = order.line_items[0]
        assert item.product_name == "Widget A"
        assert item.quantity == 10
        assert item.unit_price == 12.0
        assert item.discount_percent == 0
        assert item.discount_explicit is False
        assert item.validation_status == VALID_STATUS
        assert order.task == ""

    def test_explicit_discount(self, well_formed_response):
        """Test a discount cell marks the discount as explicit."""
        item = parse_response(well_formed_response).order.line_items[1]

        assert item.discount_percent == 5
        assert item.discount_explicit is True

    def test_idempotent(self, well_formed_response):
        """Test parsing the same text twice gives equal results."""
        assert parse_response(well_formed_response) == parse_response(well_formed_response)

    def test_missing_table_keeps_other_fields(self):
        """Test a response without the order section still yields customer, note and task."""
        text = (
            "**Customer**: Acme Corp\n"
            "**Note**:\n"
            "> Deliver Friday\n"
            "**Task**:\n"
            "> Call Monday"
        )

        result = parse_response(text)

        assert result.order.customer == "Acme Corp"
        assert result.order.line_items == []
        assert result.order.note == "Deliver Friday"
        assert result.order.task == "Call Monday"
        assert "Section 'Quote / Order' not found" in result.issues
        assert "Section 'Ambiguities (if any)' not found" in result.issues

    def test_empty_and_none(self):
        """Test empty input never raises."""
        for text in (None, "", "   \n"):
            result = parse_response(text)
            assert result.order.line_items == []
            assert result.order.customer == ""
            assert result.issues == ["Completion text is empty"]

    def test_garbage_text(self):
        """Test unstructured text yields an empty order and issues."""
        result = parse_response("Sorry, I cannot help with that.")

        assert result.order.line_items == []
        assert len(result.issues) == 5

    def test_short_rows_are_rejected(self):
        """Test rows with fewer than 3 values are skipped and reported."""
        text = (
            "**Quote / Order**:\n"
            "| Product Name | Quantity | Unit Price | Discount | Validation Status |\n"
            "|---|---|---|---|---|\n"
            "| Widget A | 10 |\n"
            "| | | | | |\n"
            "| Widget B | 3 | 20 | | OK |\n"
        )

        result = parse_response(text)

        assert [item.product_name for item in result.order.line_items] == ["Widget B"]
        assert any("fewer than 3 values" in issue for issue in result.issues)

    def test_status_in_discount_column(self):
        """Test a row that dropped the empty discount cell still reads its status."""
        text = "**Quote / Order**:\n| Widget A | 10 | $12 | Warning: Low stock |\n"

        item = parse_response(text).order.line_items[0]

        assert item.discount_percent == 0
        assert item.validation_status == "Warning: Low stock"

    def test_columns_follow_header_names(self):
        """Test cells are mapped by header name, not position."""
        text = (
            "**Quote / Order**:\n"
            "| Quantity | Product Name | Unit Price |\n"
            "|---|---|---|\n"
            "| 4 | Widget A | $1,200.50 |\n"
        )

        item = parse_response(text).order.line_items[0]

        assert item.product_name == "Widget A"
        assert item.quantity == 4
        assert item.unit_price == 1200.5

    def test_unparseable_numbers_default_to_zero(self):
        """Test non-numeric quantity and price become 0."""
        text = "**Quote / Order**:\n| Widget A | ten | TBD | | OK |\n"

        item = parse_response(text).order.line_items[0]

        assert item.quantity == 0
        assert item.unit_price == 0

    def test_first_occurrence_wins(self):
        """Test a repeated header does not overwrite the first section."""
        text = "**Customer**: Acme Corp\n**Customer**: Someone Else\n"

        assert parse_response(text).order.customer == "Acme Corp"

    def test_bold_customer_is_unwrapped(self):
        """Test bold markers around the customer are removed."""
        text = "**Customer**: **Acme Corp**\n"

        assert parse_response(text).order.customer == "Acme Corp"

    def test_bold_text_inside_note(self):
        """Test a bold phrase without a colon stays part of the note body."""
        text = "**Note**:\n> line one\n**Urgent** deliver asap\n**Task**:\n> none"

        result = parse_response(text)

        assert result.order.note == "line one\n**Urgent** deliver asap"
        assert result.order.task == ""

    def test_colon_inside_bold_header(self):
        text = "**Customer:** Acme Corp\n**Note:**\n> Deliver Friday"

        order = parse_response(text).order

        assert order.customer == "Acme Corp"
        assert order.note == "Deliver Friday"

    def test_row_with_stray_empty_cell(self):
        """Test empty cells are dropped before positions are assigned."""
        text = "**Quote / Order**:\n|| Widget A | 10 | $12.00 | | OK |\n"

        result = parse_response(text)

        assert len(result.order.line_items) == 1
        item = result.order.line_items[0]
        assert item.product_name == "Widget A"
        assert item.quantity == 10
        assert item.unit_price == 12.0
        assert item.discount_percent == 0
        assert item.validation_status == VALID_STATUS
        assert not any("without a product name" in issue for issue in result.issues)

    def test_multiline_blockquote(self):
        """Test a blockquote spanning lines is kept as one note."""
        text = "**Note**:\n> Deliver Friday\n> Use the back door\n**Task**:\n> none"

        order = parse_response(text).order

        assert order.note == "Deliver Friday\nUse the back door"
        assert order.task == ""


class TestHelpers:
    """Test parser helpers."""

    def test_split_sections_unknown_header_ends_section(self):
        """Test an unrecognized header closes the section above it."""
        sections = split_sections("**Note**:\n> a\n**Summary**:\nb\n")

        assert sections["note"] == ["> a"]

    def test_parse_number(self):
        assert parse_number("$1,234.50") == 1234.5
        assert parse_number("15%") == 15
        assert parse_number("3 pcs") == 3
        assert parse_number("abc") is None
        assert parse_number("-4") == 0

    def test_clean_value(self):
        assert clean_value("None") == ""
        assert clean_value("N/A.") == ""
        assert clean_value("[Detected Customer]") == ""
        assert clean_value("Call Bob") == "Call Bob"
