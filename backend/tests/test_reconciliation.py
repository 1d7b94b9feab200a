"""Tests for the reconciliation report."""

from decimal import Decimal
from types import SimpleNamespace
from uuid import uuid4

from fastapi.testclient import TestClient
from sqlalchemy import text

from invoicing.services.reconciliation_service import build_reconciliation_report
from tests.helpers import create_customer, create_invoice


def _rows(**overrides):  # type: ignore[no-untyped-def]
    """One invoice, one payment, one allocation and the USD ledger, all in agreement."""
    invoice_id, payment_id = uuid4(), uuid4()
    invoice = SimpleNamespace(
        id=invoice_id,
        invoice_no="INV-001",
        amount_paid=Decimal("100"),
        recieved_jpy=Decimal("14000"),
        foreign_bank_charge=Decimal("10"),
        local_bank_charge=Decimal("500"),
    )
    payment = SimpleNamespace(
        id=payment_id,
        payment_no="PAY-000001",
        currency="USD",
        allocated_amount=Decimal("100"),
        amount_in_jpy=Decimal("14000"),
        foreign_bank_charge=Decimal("10"),
        local_bank_charge=Decimal("500"),
    )
    allocation = SimpleNamespace(
        id=uuid4(),
        payment_id=payment_id,
        invoice_id=invoice_id,
        invoice_no="INV-001",
        allocated_amount=Decimal("100"),
        recieved_jpy=Decimal("14000"),
        foreign_bank_charge=Decimal("10"),
        local_bank_charge=Decimal("500"),
    )
    ledger = SimpleNamespace(
        code="USD",
        amount_paid=Decimal("100"),
        amount_in_jpy=Decimal("14000"),
        foreign_bank_charge=Decimal("10"),
        local_bank_charge=Decimal("500"),
    )
    rows = {"invoice": invoice, "payment": payment, "allocation": allocation, "ledger": ledger}
    for name, value in overrides.items():
        target, field = name.split("__")
        setattr(rows[target], field, value)
    return invoice, payment, allocation, ledger


class TestBuildReport:
    def test_consistent_records_are_clean(self):
        invoice, payment, allocation, ledger = _rows()
        report = build_reconciliation_report([invoice], [payment], [allocation], [ledger])
        assert report.has_issues is False
        assert report.totals.is_foreign_matched is True
        assert report.totals.allocations.local_bank_charge == Decimal("500.00")

    def test_difference_within_tolerance_is_ignored(self):
        invoice, payment, allocation, ledger = _rows(payment__amount_in_jpy=Decimal("14000.01"))
        report = build_reconciliation_report([invoice], [payment], [allocation])
        assert report.payment_issues == []

    def test_invoice_drift_is_reported(self):
        invoice, payment, allocation, _ = _rows(invoice__amount_paid=Decimal("90"))
        report = build_reconciliation_report([invoice], [payment], [allocation])
        assert report.has_issues is True
        (issue,) = report.invoice_issues
        assert issue.number == "INV-001"
        (mismatch,) = issue.mismatches
        assert mismatch.field == "amount_paid"
        assert mismatch.recorded == Decimal("90.00")
        assert mismatch.allocated == Decimal("100.00")
        assert mismatch.delta == Decimal("-10.00")

    def test_charge_drift_breaks_charge_totals(self):
        invoice, payment, allocation, _ = _rows(invoice__foreign_bank_charge=Decimal("0"))
        report = build_reconciliation_report([invoice], [payment], [allocation])
        assert report.totals.is_foreign_matched is False
        assert report.totals.is_local_matched is True
        assert [m.field for m in report.invoice_issues[0].mismatches] == ["foreign_bank_charge"]

    def test_orphan_allocation(self):
        invoice, payment, allocation, _ = _rows()
        allocation.payment_id = uuid4()
        report = build_reconciliation_report([invoice], [payment], [allocation])
        (orphan,) = report.orphan_allocations
        assert orphan.missing_payment is True
        assert orphan.missing_invoice is False
        assert report.has_issues is True

    def test_payment_without_allocations_is_reported(self):
        _, payment, _, _ = _rows()
        report = build_reconciliation_report([], [payment], [])
        fields = {m.field for m in report.payment_issues[0].mismatches}
        assert fields == {
            "allocated_amount",
            "amount_in_jpy",
            "foreign_bank_charge",
            "local_bank_charge",
        }

    def test_ledger_drift(self):
        invoice, payment, allocation, ledger = _rows(ledger__amount_in_jpy=Decimal("13000"))
        report = build_reconciliation_report([invoice], [payment], [allocation], [ledger])
        (issue,) = report.ledger_issues
        assert issue.currency == "USD"
        assert issue.mismatches[0].delta == Decimal("-1000.00")
        assert report.has_issues is False

    def test_empty_database_is_clean(self):
        assert build_reconciliation_report([], [], []).has_issues is False


class TestReconciliationEndpoint:
    def _pay(self, client: TestClient, db_session) -> str:  # type: ignore[no-untyped-def]
        customer = create_customer(db_session)
        create_invoice(db_session, customer, "INV-001", "100")
        create_invoice(db_session, customer, "INV-002", "100")
        response = client.post(
            "/v1/payments/",
            json={
                "customer_id": str(customer.id),
                "currency": "USD",
                "amount": "150",
                "foreign_bank_charge": "15",
                "local_bank_charge": "1000",
                "jpy_amount": "20000",
                "payment_date": "2024-03-10",
            },
        )
        assert response.status_code == 201
        return response.json()["id"]

    def test_clean_after_payment_and_reversal(self, client: TestClient, db_session):
        payment_id = self._pay(client, db_session)
        report = client.get("/v1/reconciliation/").json()
        assert report["has_issues"] is False

        client.delete(f"/v1/payments/{payment_id}")
        assert client.get("/v1/reconciliation/").json()["has_issues"] is False

    def test_removed_allocation_row_is_detected(self, client: TestClient, db_session):
        payment_id = self._pay(client, db_session)
        db_session.execute(
            text("DELETE FROM payment_allocations WHERE invoice_no = 'INV-002'")
        )
        db_session.commit()

        report = client.get("/v1/reconciliation/").json()
        assert report["has_issues"] is True
        assert [issue["number"] for issue in report["invoice_issues"]] == ["INV-002"]
        assert report["payment_issues"][0]["id"] == payment_id

    def test_ledgers_can_be_skipped(self, client: TestClient, db_session):
        self._pay(client, db_session)
        db_session.execute(text("UPDATE currencies SET amount_in_jpy = 0 WHERE code = 'USD'"))
        db_session.commit()

        full = client.get("/v1/reconciliation/").json()
        assert full["ledger_issues"][0]["currency"] == "USD"
        assert full["has_issues"] is False
        report = client.get("/v1/reconciliation/", params={"include_ledgers": "false"}).json()
        assert report["ledger_issues"] == []
        assert report["has_issues"] is False
