"""Currency ledger API tests."""

from decimal import Decimal

from fastapi.testclient import TestClient

from tests.helpers import create_customer, create_invoice


class TestCurrenciesAPI:
    def test_list_seeded_ledgers(self, client: TestClient):
        response = client.get("/v1/currencies/")
        assert response.status_code == 200
        assert [c["code"] for c in response.json()] == ["EUR", "JPY", "USD"]

    def test_create_currency(self, client: TestClient):
        response = client.post("/v1/currencies/", json={"code": "gbp", "name": "Pound Sterling"})
        assert response.status_code == 201
        data = response.json()
        assert data["code"] == "GBP"
        assert Decimal(data["amount_due"]) == Decimal("0")

    def test_create_duplicate_currency(self, client: TestClient):
        response = client.post("/v1/currencies/", json={"code": "usd"})
        assert response.status_code == 400
        assert response.json()["detail"] == "Currency USD already exists"

    def test_create_currency_invalid_code(self, client: TestClient):
        assert client.post("/v1/currencies/", json={"code": "US"}).status_code == 422

    def test_get_currency_is_case_insensitive(self, client: TestClient, db_session):
        customer = create_customer(db_session)
        create_invoice(db_session, customer, "INV-001", "250.50")
        response = client.get("/v1/currencies/usd")
        assert response.status_code == 200
        data = response.json()
        assert Decimal(data["total_amount"]) == Decimal("250.50")
        assert Decimal(data["amount_due"]) == Decimal("250.50")

    def test_get_currency_not_found(self, client: TestClient):
        assert client.get("/v1/currencies/CHF").status_code == 404
