"""Invoice settings API tests."""

from fastapi.testclient import TestClient

from invoicing.repositories.invoice_settings_repository import InvoiceSettingsRepository

BANK_ACCOUNTS = [
    {
        "id": "mizuho-usd",
        "bank_name": "Mizuho Bank",
        "account_number": "1234567",
        "swift_code": "MHCBJPJT",
        "currency": "USD",
        "is_default": True,
    },
    {"id": "smbc-jpy", "bank_name": "SMBC", "account_number": "7654321", "currency": "JPY"},
]


class TestInvoiceSettingsAPI:
    def test_get_creates_empty_settings(self, client: TestClient):
        response = client.get("/v1/invoice_settings/")
        assert response.status_code == 200
        data = response.json()
        assert data["company_name"] == ""
        assert data["bank_accounts"] == []

        again = client.get("/v1/invoice_settings/").json()
        assert again["id"] == data["id"]

    def test_update_settings(self, client: TestClient):
        response = client.put(
            "/v1/invoice_settings/",
            json={
                "company_name": "Trade Co",
                "company_address": "1-1 Minato, Tokyo",
                "bank_accounts": BANK_ACCOUNTS,
                "bank_notes": "Payment within 30 days",
            },
        )
        assert response.status_code == 200
        data = response.json()
        assert data["company_name"] == "Trade Co"
        assert [a["id"] for a in data["bank_accounts"]] == ["mizuho-usd", "smbc-jpy"]
        assert data["bank_accounts"][1]["is_default"] is False

    def test_partial_update_keeps_other_fields(self, client: TestClient):
        client.put("/v1/invoice_settings/", json={"company_name": "Trade Co"})
        response = client.put(
            "/v1/invoice_settings/", json={"signatory_name": "K. Sato", "company_name": None}
        )
        data = response.json()
        assert data["company_name"] == "Trade Co"
        assert data["signatory_name"] == "K. Sato"

    def test_bank_account_requires_id(self, client: TestClient):
        response = client.put(
            "/v1/invoice_settings/", json={"bank_accounts": [{"bank_name": "No id"}]}
        )
        assert response.status_code == 422


class TestFindBankAccount:
    def test_returns_copy_of_matching_account(self, client: TestClient, db_session):
        client.put("/v1/invoice_settings/", json={"bank_accounts": BANK_ACCOUNTS})
        repo = InvoiceSettingsRepository(db_session)

        account = repo.find_bank_account("smbc-jpy")
        assert account is not None
        assert account["bank_name"] == "SMBC"
        account["bank_name"] = "Changed"
        assert repo.find_bank_account("smbc-jpy")["bank_name"] == "SMBC"  # type: ignore[index]

    def test_unknown_or_empty_id(self, client: TestClient, db_session):
        repo = InvoiceSettingsRepository(db_session)
        assert repo.find_bank_account("mizuho-usd") is None
        client.put("/v1/invoice_settings/", json={"bank_accounts": BANK_ACCOUNTS})
        assert repo.find_bank_account("missing") is None
        assert repo.find_bank_account(None) is None
