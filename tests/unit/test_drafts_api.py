"""Unit tests for the HTTP API."""
from datetime import datetime
from unittest.mock import AsyncMock, Mock

from salesnote.core.config import settings
from salesnote.db.database import get_db
from salesnote.main import app
from salesnote.services.completion.client import CompletionFailure
from salesnote.services.persistence.ledger import LedgerWriteError
from salesnote.services.speech.stt import TranscriptionFailure


NOTE = "Acme Corp, Widget A, 10, $12"


def _process(client, key="user-1", note=NOTE):
    return client.post(
        f"/api/drafts/{key}/process",
        json={"organization_id": "org-1", "note": note},
    )


class TestDraftEndpoints:
    """Test the draft lifecycle over HTTP."""

    def test_process_note(self, test_client):
        """Test processing returns a validated draft."""
        response = _process(test_client)

        assert response.status_code == 200
        data = response.json()
        assert data["stage"] == "drafted"
        assert data["order"]["customer"] == "Acme Corp"
        assert data["order"]["customer_id"] == "v-1"
        items = data["order"]["line_items"]
        assert [item["product_name"] for item in items] == ["Widget A", "Widget B"]
        assert items[0]["discount_percent"] == 20
        assert items[0]["validation_status"] == "Valid"
        assert items[1]["discount_percent"] == 5

    def test_get_draft(self, test_client):
        _process(test_client)

        response = test_client.get("/api/drafts/user-1")

        assert response.status_code == 200
        assert response.json()["note_text"] == NOTE

    def test_get_missing_draft(self, test_client):
        response = test_client.get("/api/drafts/nobody")

        assert response.status_code == 404

    def test_process_empty_note(self, test_client):
        """Test an empty note is rejected."""
        response = _process(test_client, note="   ")

        assert response.status_code == 409

    def test_edit_line_item(self, test_client):
        _process(test_client)

        response = test_client.patch("/api/drafts/user-1/items/0", json={"quantity": 60})

        assert response.status_code == 200
        item = response.json()["order"]["line_items"][0]
        assert item["quantity"] == 60
        assert item["validation_status"] == "Warning: Quantity exceeds available stock (50)"

    def test_edit_line_item_text_value(self, test_client):
        """Test numeric fields accept typed text."""
        _process(test_client)

        response = test_client.patch("/api/drafts/user-1/items/0", json={"unit_price": "$13.50"})

        item = response.json()["order"]["line_items"][0]
        assert item["unit_price"] == 13.5
        assert item["discount_percent"] == 10

    def test_edit_missing_item(self, test_client):
        _process(test_client)

        response = test_client.patch("/api/drafts/user-1/items/9", json={"quantity": 1})

        assert response.status_code == 404

    def test_add_and_remove_items(self, test_client):
        _process(test_client)

        added = test_client.post("/api/drafts/user-1/items")
        assert added.json()["order"]["line_items"][2]["validation_status"] == "New item"

        removed = test_client.delete("/api/drafts/user-1/items/0")
        assert [item["product_name"] for item in removed.json()["order"]["line_items"]] == [
            "Widget B",
            "",
        ]

    def test_edit_customer_note_task(self, test_client):
        _process(test_client)

        customer = test_client.patch("/api/drafts/user-1/customer", json={"customer": "Carter & Sons"})
        note = test_client.patch("/api/drafts/user-1/note", json={"note": "Back door"})
        task = test_client.patch("/api/drafts/user-1/task", json={"task": ""})

        assert customer.json()["order"]["customer_id"] == "v-3"
        assert note.json()["order"]["note"] == "Back door"
        assert task.json()["order"]["task"] == ""

    def test_edit_before_draft(self, test_client):
        test_client.post("/api/drafts/user-1/transcriptions", content=b"audio")

        response = test_client.patch("/api/drafts/user-1/note", json={"note": "x"})

        assert response.status_code == 409

    def test_transcription_appends(self, test_client, mock_transcription_service):
        response = test_client.post(
            "/api/drafts/user-1/transcriptions?encoding=wav", content=b"audio"
        )

        assert response.status_code == 200
        assert response.json()["note_text"] == "Acme Corp"
        mock_transcription_service.transcribe_audio.assert_awaited_with(b"audio", "wav")

    def test_transcription_failure(self, test_client, mock_transcription_service):
        mock_transcription_service.transcribe_audio.side_effect = TranscriptionFailure("bad audio")

        response = test_client.post("/api/drafts/user-1/transcriptions", content=b"audio")

        assert response.status_code == 502

    def test_completion_failure_without_fallback(self, test_client, mock_completion_service, monkeypatch):
        """Test an upstream failure is reported when fallback is off."""
        monkeypatch.setattr(settings, "fallback_on_completion_failure", False)
        mock_completion_service.complete.side_effect = CompletionFailure("Completion failed: 503")

        response = _process(test_client)

        assert response.status_code == 502
        assert test_client.get("/api/drafts/user-1").json()["stage"] == "empty"

    def test_completion_failure_with_fallback(self, test_client, mock_completion_service):
        mock_completion_service.complete.side_effect = CompletionFailure("Completion failed: 503")

        response = _process(test_client)

        data = response.json()
        assert response.status_code == 200
        assert data["error"] == "Completion failed: 503"
        assert data["order"]["source"] == "fallback"
        assert data["order"]["line_items"][0]["product_name"] == "Widget A"


class TestConfirmEndpoint:
    """Test confirming and cancelling drafts."""

    def test_confirm(self, test_client, mock_ledger):
        _process(test_client)

        response = test_client.post("/api/drafts/user-1/confirm")

        assert response.status_code == 200
        assert response.json()["stage"] == "confirmed"
        assert response.json()["order"] is None
        mock_ledger.create_order.assert_awaited_once()
        mock_ledger.create_task.assert_awaited_once()

    def test_confirm_before_draft(self, test_client):
        test_client.post("/api/drafts/user-1/transcriptions", content=b"audio")

        response = test_client.post("/api/drafts/user-1/confirm")

        assert response.status_code == 409

    def test_ledger_failure_keeps_draft(self, test_client, mock_ledger):
        """Test a failed write is reported and the draft stays editable."""
        _process(test_client)
        mock_ledger.create_order.side_effect = LedgerWriteError("Could not save order")

        response = test_client.post("/api/drafts/user-1/confirm")

        assert response.status_code == 500
        draft = test_client.get("/api/drafts/user-1").json()
        assert draft["stage"] == "drafted"
        assert draft["error"] == "Could not save order"
        assert draft["pending_submission"] is not None

    def test_cancel(self, test_client):
        _process(test_client)

        response = test_client.post("/api/drafts/user-1/cancel")

        assert response.status_code == 200
        assert response.json()["stage"] == "cancelled"

    def test_cancel_without_draft(self, test_client):
        test_client.post("/api/drafts/user-1/transcriptions", content=b"audio")

        response = test_client.post("/api/drafts/user-1/cancel")

        assert response.status_code == 409


class TestCatalogEndpoints:
    """Test catalog endpoints."""

    def test_get_catalog(self, test_client):
        response = test_client.get("/api/organizations/org-1/catalog")

        assert response.status_code == 200
        data = response.json()
        assert [vendor["name"] for vendor in data["vendors"]] == [
            "Acme Corp",
            "Blue River Supply",
            "Carter & Sons",
        ]
        assert len(data["inventory"]) == 3

    def test_unknown_organization_is_empty(self, test_client):
        response = test_client.get("/api/organizations/nobody/catalog")

        assert response.status_code == 200
        assert response.json()["vendors"] == []

    def test_get_prompt_catalog(self, test_client):
        response = test_client.get("/api/organizations/org-1/catalog/prompt")

        data = response.json()
        assert "- Widget A (Stock: 50, Unit Price: $15.00, Min Price: $10.00)" in data["inventory_block"]
        assert "- Acme Corp" in data["vendor_block"]


class TestLedgerEndpoints:
    """Test order and task history."""

    def test_order_history(self, test_client, mock_ledger):
        mock_ledger.list_orders.return_value = [
            Mock(
                id=4,
                organization_id="org-1",
                vendor_id="v-1",
                items=[{"product_name": "Widget A", "quantity": 10.0}],
                notes="Deliver Friday",
                created_at=datetime(2026, 3, 2, 14, 0),
            )
        ]

        response = test_client.get("/api/organizations/org-1/orders?limit=5")

        assert response.status_code == 200
        assert response.json()[0]["created_at"] == "2026-03-02T14:00:00"
        mock_ledger.list_orders.assert_awaited_with("org-1", limit=5)

    def test_task_history(self, test_client, mock_ledger):
        mock_ledger.list_tasks.return_value = [
            Mock(
                id=2,
                organization_id="org-1",
                vendor_id=None,
                description="Call back",
                created_at=datetime(2026, 3, 2),
            )
        ]

        response = test_client.get("/api/organizations/org-1/tasks")

        assert response.json()[0]["description"] == "Call back"


class TestHealthEndpoint:
    """Test health and root endpoints."""

    def test_health(self, test_client):
        response = test_client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "database": "ok"}

    def test_health_degraded(self, test_client):
        async def _failing_db():
            db = Mock()
            db.execute = AsyncMock(side_effect=ConnectionError("refused"))
            yield db

        app.dependency_overrides[get_db] = _failing_db

        response = test_client.get("/health")

        assert response.json()["status"] == "degraded"

    def test_root(self, test_client):
        assert test_client.get("/").json()["message"] == "SalesNote API"
