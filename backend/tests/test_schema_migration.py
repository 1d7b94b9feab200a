"""Tests for the legacy schema backfill."""

from datetime import UTC, date, datetime
from decimal import Decimal

import pytest
from sqlalchemy import update
from sqlalchemy.orm import Session

from invoicing.core.dates import is_local_midnight, to_local_date, to_local_midnight
from invoicing.models.invoice import Invoice
from invoicing.models.payment import Payment
from invoicing.models.shared import CURRENT_SCHEMA_VERSION, LEGACY_SCHEMA_VERSION
from invoicing.services.schema_migration_service import SchemaMigrationService
from tests.helpers import create_customer, create_invoice


@pytest.fixture
def legacy_rows(db_session: Session):
    """A legacy invoice without items, a legacy invoice with items and a legacy payment."""
    customer = create_customer(db_session)
    plain = Invoice(
        invoice_no="OLD-001",
        customer_id=customer.id,
        customer_name=customer.name,
        currency="USD",
        status="pending",
        date=datetime(2024, 3, 1, 12, 0, tzinfo=UTC),
        total_amount=Decimal("500"),
        amount_paid=Decimal("0"),
        balance=Decimal("500"),
        foreign_bank_charge=None,
        local_bank_charge=None,
        recieved_jpy=None,
        item_groups=None,
        document_source=None,
        schema_version=LEGACY_SCHEMA_VERSION,
    )
    itemized = Invoice(
        invoice_no="OLD-002",
        customer_id=customer.id,
        customer_name=customer.name,
        currency="USD",
        status="pending",
        date=to_local_midnight(date(2024, 3, 2)),
        total_amount=Decimal("10"),
        amount_paid=Decimal("0"),
        balance=Decimal("10"),
        item_groups=[{"id": "grp-1", "name": "Parts", "items": [{"item_name": "Bolt"}]}],
        document_source=None,
        schema_version=LEGACY_SCHEMA_VERSION,
    )
    payment = Payment(
        payment_no="PAY-OLD1",
        customer_id=customer.id,
        customer_name=customer.name,
        currency="USD",
        amount=Decimal("100"),
        foreign_bank_charge=None,
        local_bank_charge=None,
        payment_date=None,
        date=datetime(2024, 3, 10, 20, 0, tzinfo=UTC),
        schema_version=LEGACY_SCHEMA_VERSION,
    )
    db_session.add_all([plain, itemized, payment])
    db_session.commit()
    # Column defaults fill charges on insert; legacy rows stored them as NULL.
    db_session.execute(
        update(Invoice)
        .where(Invoice.id == plain.id)
        .values(foreign_bank_charge=None, local_bank_charge=None, recieved_jpy=None)
    )
    db_session.execute(
        update(Payment)
        .where(Payment.id == payment.id)
        .values(foreign_bank_charge=None, local_bank_charge=None)
    )
    db_session.commit()
    db_session.expire_all()
    current = create_invoice(db_session, customer, "INV-NEW", "100")
    return plain, itemized, payment, current


class TestBackfill:
    def test_upgrades_legacy_rows(self, db_session: Session, legacy_rows):
        plain, itemized, payment, current = legacy_rows
        result = SchemaMigrationService(db_session).backfill_legacy_records()

        assert result.invoices_updated == 2
        assert result.payments_updated == 1
        assert current.id not in result.invoice_ids

        db_session.expire_all()
        assert plain.schema_version == CURRENT_SCHEMA_VERSION
        assert plain.foreign_bank_charge == Decimal("0")
        assert plain.local_bank_charge == Decimal("0")
        assert plain.recieved_jpy == Decimal("0")
        assert plain.document_source == "legacy"
        assert is_local_midnight(plain.date)
        assert to_local_date(plain.date) == date(2024, 3, 1)

        assert itemized.document_source == "system"
        assert to_local_date(itemized.date) == date(2024, 3, 2)

        assert payment.schema_version == CURRENT_SCHEMA_VERSION
        assert payment.foreign_bank_charge == Decimal("0")
        assert payment.local_bank_charge == Decimal("0")
        assert to_local_date(payment.date) == date(2024, 3, 11)
        assert to_local_date(payment.payment_date) == date(2024, 3, 11)
        assert is_local_midnight(payment.payment_date)

    def test_second_run_changes_nothing(self, db_session: Session, legacy_rows):
        service = SchemaMigrationService(db_session)
        service.backfill_legacy_records()
        result = service.backfill_legacy_records()
        assert result.invoices_updated == 0
        assert result.payments_updated == 0

    def test_dry_run_writes_nothing(self, db_session: Session, legacy_rows):
        plain, _, payment, _ = legacy_rows
        result = SchemaMigrationService(db_session).backfill_legacy_records(dry_run=True)

        assert result.invoices_updated == 2
        assert result.payments_updated == 1
        db_session.expire_all()
        assert plain.schema_version == LEGACY_SCHEMA_VERSION
        assert plain.foreign_bank_charge is None
        assert plain.recieved_jpy is None
        assert payment.local_bank_charge is None
        assert payment.payment_date is None

    def test_upgraded_legacy_invoice_can_be_paid(self, client, db_session: Session, legacy_rows):
        plain, _, _, _ = legacy_rows
        SchemaMigrationService(db_session).backfill_legacy_records()

        response = client.post(
            "/v1/payments/",
            json={
                "customer_id": str(plain.customer_id),
                "currency": "USD",
                "amount": "500",
                "jpy_amount": "75000",
                "payment_date": "2024-03-15",
            },
        )
        assert response.status_code == 201
        db_session.expire_all()
        assert plain.status == "paid"
        assert plain.recieved_jpy == Decimal("75000.00")
