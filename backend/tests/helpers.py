"""Factories for building customers and invoices directly in the test database."""

from datetime import UTC, date, datetime
from decimal import Decimal

from sqlalchemy.orm import Session

from invoicing.core.dates import to_local_midnight
from invoicing.models.currency import CurrencyLedger
from invoicing.models.customer import Customer
from invoicing.models.invoice import Invoice, InvoiceStatus
from invoicing.services import ledger


def create_customer(db: Session, name: str = "Pacific Motors Ltd", currency: str = "USD") -> Customer:
    customer = Customer(name=name, email="accounts@pacific.example", currency=currency)
    db.add(customer)
    db.commit()
    db.refresh(customer)
    return customer


def get_ledger(db: Session, code: str) -> CurrencyLedger:
    db.expire_all()
    return db.query(CurrencyLedger).filter(CurrencyLedger.code == code).one()


def create_invoice(
    db: Session,
    customer: Customer,
    invoice_no: str,
    total: str | Decimal,
    currency: str = "USD",
    invoice_date: date = date(2024, 3, 1),
    status: InvoiceStatus = InvoiceStatus.PENDING,
    created_at: datetime | None = None,
) -> Invoice:
    """Insert an invoice with an exact total and add it to the currency ledger."""
    amount = Decimal(str(total))
    invoice = Invoice(
        invoice_no=invoice_no,
        customer_id=customer.id,
        customer_name=customer.name,
        currency=currency,
        status=status.value,
        date=to_local_midnight(invoice_date),
        total_amount=amount,
        amount_paid=Decimal("0"),
        balance=amount,
        foreign_bank_charge=Decimal("0"),
        local_bank_charge=Decimal("0"),
        recieved_jpy=Decimal("0"),
        exchange_rate=Decimal("0.01"),
        item_groups=[],
        created_at=created_at or datetime.now(UTC),
    )
    db.add(invoice)
    ledger.add_invoiced(get_ledger(db, currency), amount)
    db.commit()
    db.refresh(invoice)
    return invoice


def snapshot(row: object, fields: tuple[str, ...]) -> dict[str, object]:
    return {name: getattr(row, name) for name in fields}
