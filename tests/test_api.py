"""
Integration tests for the BillRead HTTP endpoints.
"""
import pytest

from app.ledger import StatusLedger
from app.models.queue_entry import COMPLETED, FAILED, PROCESSING
from app.routers import bills as bills_router

PAYLOAD = {
    "customer": "Acme",
    "location_id": "S-100",
    "location_address": "1 Main St",
    "email": "ops@example.com",
}


@pytest.fixture()
def scheduled(monkeypatch):
    calls = []
    monkeypatch.setattr(bills_router, "process_batch", lambda request: calls.append(request))
    return calls


class TestService:
    def test_root(self, client):
        resp = client.get("/")
        assert resp.status_code == 200
        assert resp.json()["service"] == "BillRead"

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}


class TestAnalyze:
    def test_accepted_and_scheduled(self, client, scheduled):
        resp = client.post("/api/bills/analyze", json={**PAYLOAD, "customer": "  Acme  "})
        assert resp.status_code == 202
        assert resp.json() == {"success": True}
        assert len(scheduled) == 1
        assert scheduled[0].customer == "Acme"
        assert scheduled[0].location_address == "1 Main St"

    def test_address_optional(self, client, scheduled):
        body = {k: v for k, v in PAYLOAD.items() if k != "location_address"}
        resp = client.post("/api/bills/analyze", json=body)
        assert resp.status_code == 202
        assert scheduled[0].location_address == ""

    @pytest.mark.parametrize("field", ["customer", "location_id", "email"])
    def test_missing_required_field(self, client, scheduled, field):
        body = {k: v for k, v in PAYLOAD.items() if k != field}
        resp = client.post("/api/bills/analyze", json=body)
        assert resp.status_code == 400
        assert resp.json()["detail"] == f"{field} is required"
        assert scheduled == []

    def test_blank_required_field(self, client, scheduled):
        resp = client.post("/api/bills/analyze", json={**PAYLOAD, "email": "   "})
        assert resp.status_code == 400
        assert scheduled == []

    def test_malformed_body(self, client, scheduled):
        resp = client.post(
            "/api/bills/analyze",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )
        assert resp.status_code in (400, 422)
        assert scheduled == []


class TestQueue:
    def test_list_empty(self, client):
        resp = client.get("/api/bills/queue")
        assert resp.status_code == 200
        assert resp.json() == []

    def test_list_and_filter(self, client, db):
        ledger = StatusLedger(db)
        ledger.upsert("a.pdf", COMPLETED)
        ledger.upsert("b.docx", FAILED, "Invalid file extension. Only .pdf, .jpg, .png allowed.")
        ledger.upsert("c.pdf", PROCESSING)

        assert len(client.get("/api/bills/queue").json()) == 3
        failed = client.get("/api/bills/queue", params={"status": FAILED}).json()
        assert [e["filename"] for e in failed] == ["b.docx"]
        assert failed[0]["error"].startswith("Invalid file extension")

    def test_get_entry(self, client, db):
        StatusLedger(db).upsert("a.pdf", COMPLETED)
        resp = client.get("/api/bills/queue/a.pdf")
        assert resp.status_code == 200
        assert resp.json()["status"] == COMPLETED

    def test_get_not_found(self, client):
        resp = client.get("/api/bills/queue/nonexistent.pdf")
        assert resp.status_code == 404
