"""API contract conformance tests for the ledger endpoints.

These tests pin the HTTP surface: paths, status codes, and the
``{"error": ...}`` body shape.
"""

import json

import pytest
from fastapi.testclient import TestClient

from budget_ledger import __version__
from budget_ledger.persistence.store import JsonLedgerStore
from budget_ledger.service.app import create_ledger_app
from budget_ledger.service.config import LedgerConfig


@pytest.fixture
def db_file(tmp_path):
    return tmp_path / "db.json"


@pytest.fixture
def config(db_file):
    """Create test configuration."""
    return LedgerConfig(db_path=str(db_file))


@pytest.fixture
def app(config):
    """Create test application."""
    return create_ledger_app(config)


@pytest.fixture
def client(app):
    """Create test client."""
    with TestClient(app) as client:
        yield client


GIFT = {"date": "2021-01-01", "object": "Gift", "amount": 20}
GIFT_ID = "1fd9ab84cdf17f9e1b7527b0a7865c30"


class TestInfoEndpoints:
    """Tests for banner and health endpoints."""

    def test_banner(self, client):
        """GET /api/ returns the text banner."""
        response = client.get("/api/")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert response.text == f"Minimal personal-finance ledger API v{__version__}"

    def test_healthz(self, client):
        response = client.get("/healthz")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["service"] == "budget-ledger"
        assert data["accounts"] == 1

    def test_correlation_id_is_echoed(self, client):
        response = client.get("/api/", headers={"X-Correlation-ID": "corr-123"})

        assert response.headers["X-Correlation-ID"] == "corr-123"
        assert response.headers["X-Request-ID"]


class TestAccountEndpoints:
    """Tests for /api/accounts."""

    def test_create_account(self, client, db_file):
        response = client.post("/api/accounts", json={"user": "alice", "currency": "$"})

        assert response.status_code == 201
        assert response.json() == {
            "user": "alice",
            "currency": "$",
            "description": "alice's budget",
            "balance": 0,
            "transactions": [],
        }
        assert "alice" in json.loads(db_file.read_text(encoding="utf-8"))

    def test_create_missing_parameters(self, client):
        response = client.post("/api/accounts", json={"user": "alice"})

        assert response.status_code == 400
        assert response.json() == {"error": "Missing parameters"}

    def test_create_without_body(self, client):
        response = client.post("/api/accounts")

        assert response.status_code == 400
        assert response.json() == {"error": "Missing parameters"}

    def test_create_invalid_balance(self, client):
        response = client.post(
            "/api/accounts", json={"user": "alice", "currency": "$", "balance": "abc"}
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Balance must be a number"}

    def test_create_malformed_body(self, client):
        response = client.post(
            "/api/accounts", json={"user": {"name": "alice"}, "currency": "$"}
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid parameters"}

    def test_create_invalid_json(self, client):
        response = client.post(
            "/api/accounts",
            content=b'{"user": "alice",',
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid parameters"}

    def test_create_non_object_json(self, client):
        response = client.post("/api/accounts", json=["alice", "$"])

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid parameters"}

    def test_create_boolean_balance(self, client):
        response = client.post(
            "/api/accounts", json={"user": "alice", "currency": "$", "balance": True}
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Balance must be a number"}
        assert client.get("/api/accounts/alice").status_code == 404

    def test_create_huge_integer_balance(self, client):
        response = client.post(
            "/api/accounts",
            json={"user": "alice", "currency": "$", "balance": int("9" * 400)},
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Balance must be a number"}

    def test_create_from_form(self, client):
        """URL-encoded form bodies are accepted alongside JSON."""
        response = client.post(
            "/api/accounts",
            data={"user": "alice", "currency": "$", "balance": "12.5"},
        )

        assert response.status_code == 201
        assert response.json()["balance"] == 12.5
        assert response.json()["description"] == "alice's budget"

    def test_create_existing(self, client):
        response = client.post("/api/accounts", json={"user": "test", "currency": "$"})

        assert response.status_code == 409
        assert response.json() == {"error": "User already exists"}

    def test_get_account(self, client):
        response = client.get("/api/accounts/test")

        assert response.status_code == 200
        data = response.json()
        assert data["balance"] == 75
        assert [t["object"] for t in data["transactions"]] == [
            "Pocket money",
            "Book",
            "Sandwich",
        ]

    def test_get_missing_account(self, client):
        response = client.get("/api/accounts/nobody")

        assert response.status_code == 404
        assert response.json() == {"error": "Username or password does not exist"}

    def test_delete_account(self, client):
        response = client.delete("/api/accounts/test")

        assert response.status_code == 204
        assert response.content == b""
        assert client.get("/api/accounts/test").status_code == 404

    def test_delete_missing_account(self, client):
        response = client.delete("/api/accounts/nobody")

        assert response.status_code == 404
        assert response.json() == {"error": "User does not exist"}


class TestTransactionEndpoints:
    """Tests for /api/accounts/{user}/transactions."""

    def test_scenario(self, client):
        """Create account, add, re-add, delete."""
        assert client.post(
            "/api/accounts", json={"user": "alice", "currency": "$"}
        ).status_code == 201

        response = client.post("/api/accounts/alice/transactions", json=GIFT)
        assert response.status_code == 201
        assert response.json() == {"id": GIFT_ID, **GIFT}
        assert client.get("/api/accounts/alice").json()["balance"] == 20

        response = client.post("/api/accounts/alice/transactions", json=GIFT)
        assert response.status_code == 409
        assert response.json() == {"error": "Transaction already exists"}
        assert client.get("/api/accounts/alice").json()["balance"] == 20

        response = client.delete(f"/api/accounts/alice/transactions/{GIFT_ID}")
        assert response.status_code == 204

        account = client.get("/api/accounts/alice").json()
        assert account["transactions"] == []
        assert account["balance"] == 0

    def test_string_amount(self, client):
        response = client.post(
            "/api/accounts/test/transactions",
            json={"date": "2021-01-01", "object": "Gift", "amount": "20"},
        )

        assert response.status_code == 201
        assert response.json()["amount"] == 20
        assert response.json()["id"] == GIFT_ID

    def test_unknown_account(self, client):
        response = client.post("/api/accounts/nobody/transactions", json=GIFT)

        assert response.status_code == 404
        assert response.json() == {"error": "User does not exist"}

    def test_missing_parameters(self, client):
        response = client.post(
            "/api/accounts/test/transactions", json={"date": "2021-01-01"}
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Missing parameters"}

    def test_zero_amount(self, client):
        response = client.post(
            "/api/accounts/test/transactions", json={**GIFT, "amount": 0}
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Missing parameters"}

    def test_invalid_amount(self, client):
        response = client.post(
            "/api/accounts/test/transactions", json={**GIFT, "amount": "lots"}
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Amount must be a number"}

    def test_boolean_amount(self, client):
        response = client.post(
            "/api/accounts/test/transactions", json={**GIFT, "amount": True}
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Amount must be a number"}
        assert client.get("/api/accounts/test").json()["balance"] == 75

    def test_false_amount_is_missing(self, client):
        response = client.post(
            "/api/accounts/test/transactions", json={**GIFT, "amount": False}
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Missing parameters"}

    def test_huge_integer_amount(self, client):
        response = client.post(
            "/api/accounts/test/transactions",
            json={**GIFT, "amount": int("9" * 400)},
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Amount must be a number"}

    def test_form_amount(self, client):
        """Form fields arrive as strings and hash like string amounts."""
        response = client.post(
            "/api/accounts/test/transactions",
            data={"date": "2021-01-01", "object": "Gift", "amount": "20"},
        )

        assert response.status_code == 201
        assert response.json()["amount"] == 20
        assert response.json()["id"] == GIFT_ID

    def test_delete_unknown_transaction(self, client):
        response = client.delete("/api/accounts/test/transactions/nope")

        assert response.status_code == 404
        assert response.json() == {"error": "Transaction does not exist"}
        assert len(client.get("/api/accounts/test").json()["transactions"]) == 3

    def test_delete_transaction_unknown_account(self, client):
        response = client.delete("/api/accounts/nobody/transactions/1")

        assert response.status_code == 404
        assert response.json() == {"error": "User does not exist"}


class TestPersistenceFailure:
    """Tests for save failures surfacing as server errors."""

    def test_failed_save_returns_500(self, tmp_path):
        target = tmp_path / "db.json"
        target.mkdir()
        app = create_ledger_app(
            LedgerConfig(db_path=str(target)), store=JsonLedgerStore(target)
        )

        with TestClient(app) as client:
            response = client.post(
                "/api/accounts", json={"user": "alice", "currency": "$"}
            )

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to persist ledger"}


class TestCors:
    """Tests for the CORS policy."""

    def test_localhost_origin_allowed(self, client):
        response = client.get("/api/", headers={"Origin": "http://localhost:3000"})

        assert response.headers["access-control-allow-origin"] == "http://localhost:3000"

    def test_configured_origin_allowed(self, client):
        response = client.get("/api/", headers={"Origin": "https://kigombo.live"})

        assert response.headers["access-control-allow-origin"] == "https://kigombo.live"

    def test_unknown_origin_rejected(self, client):
        response = client.get("/api/", headers={"Origin": "https://evil.example"})

        assert "access-control-allow-origin" not in response.headers
