"""Smoke tests: the app boots and exposes its routes."""

from fastapi.testclient import TestClient

from invoicing import __version__


class TestRootEndpoint:
    def test_root(self, client: TestClient):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json() == {
            "app": "trade-invoicing",
            "version": __version__,
            "status": "running",
        }


class TestOpenAPI:
    def test_schema_lists_every_router(self, client: TestClient):
        paths = client.get("/openapi.json").json()["paths"]
        for path in (
            "/v1/customers/",
            "/v1/currencies/",
            "/v1/invoices/",
            "/v1/invoices/{invoice_id}/finalize",
            "/v1/invoices/{invoice_id}/pdf",
            "/v1/payments/",
            "/v1/payments/preview",
            "/v1/catalog_items/",
            "/v1/exchange_rates/{currency}",
            "/v1/invoice_settings/",
            "/v1/reconciliation/",
        ):
            assert path in paths

    def test_cors_exposes_replay_header(self, client: TestClient):
        response = client.get("/", headers={"Origin": "http://localhost:3000"})
        assert "Idempotency-Replayed" in response.headers.get("access-control-expose-headers", "")
