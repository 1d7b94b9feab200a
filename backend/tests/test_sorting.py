"""Tests for column sorting across API endpoints and the sorting utility."""

from datetime import UTC, date, datetime, timedelta

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from invoicing.core.sorting import apply_order_by
from invoicing.models.invoice import Invoice
from tests.helpers import create_customer, create_invoice

# ---------------------------------------------------------------------------
# Unit tests for the apply_order_by utility
# ---------------------------------------------------------------------------


def _numbers(query) -> list[str]:  # type: ignore[no-untyped-def]
    return [invoice.invoice_no for invoice in query.all()]


class TestApplyOrderBy:
    """Tests for the core sorting utility function."""

    def _seed(self, db_session: Session) -> None:
        customer = create_customer(db_session)
        now = datetime.now(UTC)
        create_invoice(
            db_session, customer, "INV-B", "300", invoice_date=date(2024, 2, 1), created_at=now
        )
        create_invoice(
            db_session,
            customer,
            "INV-A",
            "100",
            invoice_date=date(2024, 1, 1),
            created_at=now + timedelta(seconds=1),
        )
        create_invoice(
            db_session,
            customer,
            "INV-C",
            "200",
            invoice_date=date(2024, 2, 1),
            created_at=now + timedelta(seconds=2),
        )

    def test_default_sort_created_at_desc(self, db_session: Session):
        """When order_by is None, default to created_at desc."""
        self._seed(db_session)
        query = apply_order_by(db_session.query(Invoice), Invoice, None)
        assert _numbers(query) == ["INV-C", "INV-A", "INV-B"]

    def test_sort_by_valid_field_asc(self, db_session: Session):
        self._seed(db_session)
        query = apply_order_by(db_session.query(Invoice), Invoice, "total_amount:asc")
        assert _numbers(query) == ["INV-A", "INV-C", "INV-B"]

    def test_ties_fall_back_to_created_at(self, db_session: Session):
        """Invoices sharing a date keep creation order in the chosen direction."""
        self._seed(db_session)
        query = apply_order_by(db_session.query(Invoice), Invoice, "date:asc")
        assert _numbers(query) == ["INV-A", "INV-B", "INV-C"]
        query = apply_order_by(db_session.query(Invoice), Invoice, "date:desc")
        assert _numbers(query) == ["INV-C", "INV-B", "INV-A"]

    def test_direction_defaults_to_asc(self, db_session: Session):
        self._seed(db_session)
        query = apply_order_by(db_session.query(Invoice), Invoice, "invoice_no")
        assert _numbers(query) == ["INV-A", "INV-B", "INV-C"]

    def test_invalid_direction_uses_default(self, db_session: Session):
        self._seed(db_session)
        query = apply_order_by(db_session.query(Invoice), Invoice, "invoice_no:sideways")
        assert _numbers(query) == ["INV-C", "INV-B", "INV-A"]

    def test_unknown_field_uses_default(self, db_session: Session):
        self._seed(db_session)
        query = apply_order_by(
            db_session.query(Invoice), Invoice, "nonexistent:asc", default_field="invoice_no"
        )
        assert _numbers(query) == ["INV-C", "INV-B", "INV-A"]


# ---------------------------------------------------------------------------
# Endpoint tests
# ---------------------------------------------------------------------------


class TestSortingEndpoints:
    def test_invoices_default_to_date_desc(self, client: TestClient, db_session: Session):
        customer = create_customer(db_session)
        create_invoice(db_session, customer, "INV-OLD", "100", invoice_date=date(2024, 1, 1))
        create_invoice(db_session, customer, "INV-NEW", "100", invoice_date=date(2024, 3, 1))
        response = client.get("/v1/invoices/")
        assert [i["invoice_no"] for i in response.json()] == ["INV-NEW", "INV-OLD"]

    def test_invoices_sort_by_balance(self, client: TestClient, db_session: Session):
        customer = create_customer(db_session)
        create_invoice(db_session, customer, "INV-SMALL", "50")
        create_invoice(db_session, customer, "INV-LARGE", "500")
        response = client.get("/v1/invoices/", params={"order_by": "balance:desc"})
        assert [i["invoice_no"] for i in response.json()] == ["INV-LARGE", "INV-SMALL"]

    def test_payments_sort_by_amount(self, client: TestClient, db_session: Session):
        customer = create_customer(db_session)
        create_invoice(db_session, customer, "INV-001", "300")
        for amount in ("50", "150"):
            client.post(
                "/v1/payments/",
                json={
                    "customer_id": str(customer.id),
                    "currency": "USD",
                    "amount": amount,
                    "jpy_amount": "7500",
                    "payment_date": "2024-03-10",
                },
            )
        response = client.get("/v1/payments/", params={"order_by": "amount:asc"})
        assert [p["amount"] for p in response.json()] == ["50.00", "150.00"]
