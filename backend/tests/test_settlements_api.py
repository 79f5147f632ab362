"""Tests for the settlement HTTP surface.

Covers:
- Response envelope (success / error code / data / message)
- Confirm payment -> confirm receipt happy path
- Stable error codes for validation, not-found-or-unauthorized, precondition and storage failures
- Event and user ledgers with payer/receiver identity
"""
from decimal import Decimal

from sqlalchemy.exc import OperationalError

from jam_api.stores.settlement_store import SettlementStore
from tests.conftest import confirm_payment, confirm_receipt, create_test_user


def _setup_users(client):
    alice = create_test_user(client, user_id="alice", name="Alice", profile_pic="https://img.example/a.png")
    bob = create_test_user(client, user_id="bob", name="Bob")
    carol = create_test_user(client, user_id="carol", name="Carol")
    return alice, bob, carol


class TestConfirmPaymentEndpoint:
    """POST /api/settlements/confirm-payment"""

    def test_confirm_payment_creates_settlement(self, client):
        resp = confirm_payment(client, "event-1", "alice", "bob", "10.00")
        assert resp.status_code == 200, resp.text
        body = resp.json()
        assert body["success"] is True
        assert body["error"] is None
        assert body["message"] == "Payment confirmation recorded"
        data = body["data"]
        assert data["payer_confirmed"] is True
        assert data["receiver_confirmed"] is False
        assert data["payer_confirmed_at"] is not None
        assert data["receiver_confirmed_at"] is None
        assert data["status"] == "payer_confirmed"
        assert Decimal(str(data["amount"])) == Decimal("10.00")

    def test_confirm_payment_twice_yields_one_row(self, client):
        first = confirm_payment(client, "event-1", "alice", "bob", 10).json()["data"]
        second = confirm_payment(client, "event-1", "alice", "bob", "10.00").json()["data"]
        assert first["id"] == second["id"]

        listed = client.get("/api/settlements/event-1").json()["data"]
        assert len(listed) == 1
        assert listed[0]["payer_confirmed"] is True

    def test_zero_amount_is_validation_error(self, client):
        resp = confirm_payment(client, "event-1", "alice", "bob", 0)
        assert resp.status_code == 400
        body = resp.json()
        assert body["success"] is False
        assert body["error"] == "VALIDATION_ERROR"
        assert body["data"] is None
        assert client.get("/api/settlements/event-1").json()["data"] == []

    def test_missing_payer_is_validation_error(self, client):
        resp = client.post("/api/settlements/confirm-payment", json={
            "event_id": "event-1",
            "receiver_id": "bob",
            "amount": "10.00",
        })
        assert resp.status_code == 400
        assert resp.json()["error"] == "VALIDATION_ERROR"
        assert "payer_id" in resp.json()["message"]
        assert client.get("/api/settlements/event-1").json()["data"] == []

    def test_non_numeric_amount_is_validation_error(self, client):
        resp = confirm_payment(client, "event-1", "alice", "bob", "ten dollars")
        assert resp.status_code == 400
        assert resp.json()["error"] == "VALIDATION_ERROR"


class TestConfirmReceiptEndpoint:
    """POST /api/settlements/confirm-receipt"""

    def test_full_settlement_scenario(self, client):
        """Payer confirms, receiver confirms, then the payer cannot confirm receipt."""
        settlement = confirm_payment(client, "event-1", "alice", "bob", "10.00").json()["data"]
        assert settlement["payer_confirmed"] is True
        assert settlement["receiver_confirmed"] is False

        resp = confirm_receipt(client, settlement["id"], "bob")
        assert resp.status_code == 200, resp.text
        data = resp.json()["data"]
        assert data["receiver_confirmed"] is True
        assert data["receiver_confirmed_at"] is not None
        assert data["status"] == "settled"
        assert resp.json()["message"] == "Receipt confirmation recorded"

        resp = confirm_receipt(client, settlement["id"], "alice")
        assert resp.status_code == 404
        assert resp.json()["error"] == "NOT_FOUND_OR_UNAUTHORIZED"

    def test_wrong_user_is_not_found_or_unauthorized(self, client):
        settlement = confirm_payment(client, "event-1", "alice", "bob").json()["data"]
        resp = confirm_receipt(client, settlement["id"], "carol")
        assert resp.status_code == 404
        body = resp.json()
        assert body["error"] == "NOT_FOUND_OR_UNAUTHORIZED"
        assert body["message"] == "Settlement not found or unauthorized"

    def test_unknown_settlement_is_indistinguishable(self, client):
        resp = confirm_receipt(client, "00000000-0000-0000-0000-000000000000", "bob")
        assert resp.status_code == 404
        assert resp.json()["message"] == "Settlement not found or unauthorized"

    def test_receipt_before_payment_is_precondition_failed(self, client, database):
        session = database.session()
        try:
            pending = SettlementStore(session).create(
                event_id="event-1", payer_id="alice", receiver_id="bob", amount=Decimal("10.00"),
            )
            session.commit()
            pending_id = pending.id
        finally:
            session.close()

        resp = confirm_receipt(client, pending_id, "bob")
        assert resp.status_code == 409
        assert resp.json() == {
            "success": False,
            "error": "PRECONDITION_FAILED",
            "data": None,
            "message": "Payment must be confirmed by payer first",
        }
        rows = client.get("/api/settlements/event-1").json()["data"]
        assert rows[0]["receiver_confirmed"] is False
        assert rows[0]["status"] == "unconfirmed"

    def test_storage_failure_is_storage_error(self, client, monkeypatch):
        settlement = confirm_payment(client, "event-1", "alice", "bob").json()["data"]

        def broken_find(self, *args, **kwargs):
            raise OperationalError("SELECT", {}, Exception("database is gone"))

        monkeypatch.setattr(SettlementStore, "find_by_id", broken_find)
        resp = confirm_receipt(client, settlement["id"], "bob")
        assert resp.status_code == 500
        body = resp.json()
        assert body["success"] is False
        assert body["error"] == "STORAGE_ERROR"
        assert body["data"] is None

    def test_missing_fields_is_validation_error(self, client):
        resp = client.post("/api/settlements/confirm-receipt", json={"settlement_id": "abc"})
        assert resp.status_code == 400
        assert resp.json()["error"] == "VALIDATION_ERROR"


class TestLedgers:
    """GET /api/settlements/{event_id} and GET /api/user-settlements/{user_id}"""

    def test_event_ledger_enriched_and_ordered(self, client):
        _setup_users(client)
        first = confirm_payment(client, "event-1", "alice", "bob", "10.00").json()["data"]
        second = confirm_payment(client, "event-1", "carol", "alice", "4.50").json()["data"]
        confirm_payment(client, "event-2", "bob", "alice", "7.25")

        resp = client.get("/api/settlements/event-1")
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        rows = body["data"]
        assert [r["id"] for r in rows] == [second["id"], first["id"]]
        assert rows[1]["payer"] == {
            "user_id": "alice",
            "name": "Alice",
            "profile_pic": "https://img.example/a.png",
        }
        assert rows[1]["receiver"]["name"] == "Bob"
        assert rows[0]["payer"]["name"] == "Carol"

    def test_user_ledger_spans_events(self, client):
        _setup_users(client)
        a = confirm_payment(client, "event-1", "alice", "bob", "10.00").json()["data"]
        b = confirm_payment(client, "event-2", "bob", "alice", "7.25").json()["data"]
        confirm_payment(client, "event-2", "bob", "carol", "3.00")

        rows = client.get("/api/user-settlements/alice").json()["data"]
        assert [r["id"] for r in rows] == [b["id"], a["id"]]

        rows = client.get("/api/user-settlements/alice", params={"event_id": "event-1"}).json()["data"]
        assert [r["id"] for r in rows] == [a["id"]]

    def test_status_filter(self, client):
        a = confirm_payment(client, "event-1", "alice", "bob", "10.00").json()["data"]
        confirm_payment(client, "event-1", "carol", "bob", "2.00")
        confirm_receipt(client, a["id"], "bob")

        rows = client.get("/api/user-settlements/bob", params={"status": "settled"}).json()["data"]
        assert [r["id"] for r in rows] == [a["id"]]

    def test_invalid_status_filter(self, client):
        resp = client.get("/api/settlements/event-1", params={"status": "paid"})
        assert resp.status_code == 400
        assert resp.json()["error"] == "VALIDATION_ERROR"

    def test_empty_ledger(self, client):
        resp = client.get("/api/settlements/nothing-here")
        assert resp.status_code == 200
        assert resp.json()["data"] == []


class TestHealth:
    def test_health(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}
