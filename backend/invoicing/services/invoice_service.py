"""Invoice lifecycle: create, edit, finalize and delete.

Every mutation keeps the currency ledger in step with the invoice total and
runs as a single transaction.
"""

import logging
from collections.abc import Callable
from datetime import date
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from invoicing.core.config import settings
from invoicing.core.database import atomic
from invoicing.core.dates import to_local_date, to_local_midnight
from invoicing.core.errors import NotFoundError, PreconditionError, ValidationError
from invoicing.core.money import ZERO, round2, round4, to_decimal
from invoicing.models.currency import CurrencyLedger
from invoicing.models.customer import Customer
from invoicing.models.invoice import (
    SETTLED_STATUSES,
    DocumentSource,
    Invoice,
    InvoiceStatus,
    MarkupMode,
)
from invoicing.repositories.currency_repository import CurrencyRepository
from invoicing.repositories.customer_repository import CustomerRepository
from invoicing.repositories.invoice_repository import InvoiceRepository
from invoicing.repositories.invoice_settings_repository import InvoiceSettingsRepository
from invoicing.schemas.invoice import InvoiceCreate, InvoiceItemGroupInput, InvoiceUpdate
from invoicing.services import ledger
from invoicing.services.exchange_rate_service import ExchangeRateService
from invoicing.services.invoice_pricing import PricedInvoice, default_markup_value, price_invoice

logger = logging.getLogger(__name__)

RateFetcher = Callable[[str, date | None], Decimal | None]

# Fields of a paid or partially paid invoice that may still be edited
DESCRIPTIVE_FIELDS = (
    "invoice_no",
    "remarks",
    "invoice_link",
    "items_per_page",
    "template_version",
)


class InvoiceService:
    """Service for invoice lifecycle mutations."""

    def __init__(self, db: Session, rate_fetcher: RateFetcher | None = None):
        self.db = db
        self.invoice_repo = InvoiceRepository(db)
        self.customer_repo = CustomerRepository(db)
        self.currency_repo = CurrencyRepository(db)
        self.settings_repo = InvoiceSettingsRepository(db)
        self.rate_fetcher = rate_fetcher or ExchangeRateService().fetch_rate

    def _get_invoice(self, invoice_id: UUID) -> Invoice:
        invoice = self.invoice_repo.get_by_id(invoice_id)
        if not invoice:
            raise NotFoundError(f"Invoice {invoice_id} not found")
        return invoice

    def _get_customer(self, customer_id: UUID) -> Customer:
        customer = self.customer_repo.get_by_id(customer_id)
        if not customer:
            raise NotFoundError(f"Customer {customer_id} not found")
        return customer

    def _get_ledger(self, currency: str) -> CurrencyLedger:
        ledger_row = self.currency_repo.get_by_code(currency)
        if not ledger_row:
            raise NotFoundError(f"Currency {currency.upper()} not found")
        return ledger_row

    def _ensure_invoice_no_available(self, invoice_no: str, invoice_id: UUID | None = None) -> None:
        existing = self.invoice_repo.get_by_invoice_no(invoice_no)
        if existing is not None and existing.id != invoice_id:
            raise ValidationError(f"Invoice number {invoice_no} already exists")

    def resolve_rate(
        self, currency: str, on_date: date, manual_rate: Decimal | None = None
    ) -> Decimal:
        """Pick the invoice exchange rate: a manual rate wins, else the market rate."""
        if currency.upper() == settings.BASE_CURRENCY.upper():
            return Decimal("1")
        if manual_rate is not None:
            return round4(manual_rate)
        rate = self.rate_fetcher(currency.upper(), on_date)
        if rate is None:
            raise ValidationError(
                f"Exchange rate for {currency.upper()} on {on_date.isoformat()} is unavailable; "
                "enter the rate manually"
            )
        return round4(rate)

    def _bank_account_snapshot(self, bank_account_id: str | None) -> dict[str, Any] | None:
        if bank_account_id:
            account = self.settings_repo.find_bank_account(bank_account_id)
            if account is None:
                raise ValidationError(f"Bank account {bank_account_id} is not configured")
            return account
        invoice_settings = self.settings_repo.get()
        accounts = list(invoice_settings.bank_accounts or []) if invoice_settings else []
        for account in accounts:
            if account.get("is_default"):
                return dict(account)
        return dict(accounts[0]) if accounts else None

    @staticmethod
    def _stored_groups(invoice: Invoice) -> list[InvoiceItemGroupInput]:
        return [InvoiceItemGroupInput.model_validate(group) for group in invoice.item_groups or []]

    @staticmethod
    def _apply_priced(invoice: Invoice, priced: PricedInvoice) -> None:
        invoice.item_groups = [g.model_dump(mode="json") for g in priced.item_groups]  # type: ignore[assignment]
        invoice.total_amount = priced.total_amount  # type: ignore[assignment]
        invoice.total_cost = priced.total_cost  # type: ignore[assignment]
        invoice.total_jpy = priced.total_jpy  # type: ignore[assignment]
        invoice.total_profit_jpy = priced.total_profit_jpy  # type: ignore[assignment]

    def create_invoice(self, data: InvoiceCreate) -> Invoice:
        """Create a draft or pending invoice and add its total to the currency ledger.

        Raises:
            ValidationError: Duplicate invoice number, no priced items, or no
                exchange rate available.
            NotFoundError: Unknown customer or currency.
        """
        self._ensure_invoice_no_available(data.invoice_no)
        customer = self._get_customer(data.customer_id)
        currency = (data.currency or str(customer.currency)).upper()
        ledger_row = self._get_ledger(currency)

        markup_value = (
            data.markup_value
            if data.markup_value is not None
            else default_markup_value(data.markup_mode, settings.DEFAULT_MARKUP_PERCENT)
        )
        rate = self.resolve_rate(currency, data.date, data.exchange_rate)
        priced = price_invoice(data.item_groups, data.markup_mode, markup_value, rate)
        if priced.item_count == 0:
            raise ValidationError("Add at least one invoice item")

        invoice = Invoice(
            invoice_no=data.invoice_no.strip(),
            customer_id=customer.id,
            customer_name=customer.name,
            currency=currency,
            status=data.status.value,
            date=to_local_midnight(data.date),
            amount_paid=round2(ZERO),
            foreign_bank_charge=round2(ZERO),
            local_bank_charge=round2(ZERO),
            recieved_jpy=round2(ZERO),
            exchange_rate=rate,
            markup_mode=data.markup_mode.value,
            markup_value=round2(markup_value),
            items_per_page=data.items_per_page or settings.DEFAULT_ITEMS_PER_PAGE,
            remarks=data.remarks,
            invoice_link=data.invoice_link,
            bank_account_id=data.bank_account_id,
            bank_account=self._bank_account_snapshot(data.bank_account_id),
            template_version=data.template_version,
            document_source=DocumentSource.SYSTEM.value,
        )
        self._apply_priced(invoice, priced)
        invoice.balance = invoice.total_amount

        with atomic(self.db):
            self.invoice_repo.add(invoice)
            ledger.add_invoiced(ledger_row, priced.total_amount)

        self.db.refresh(invoice)
        logger.info(
            "Created invoice %s for customer %s: %s %s",
            invoice.invoice_no,
            customer.id,
            invoice.total_amount,
            currency,
        )
        return invoice

    def update_invoice(self, invoice_id: UUID, data: InvoiceUpdate) -> Invoice:
        """Edit an invoice.

        Draft and pending invoices are repriced and may move to another
        customer or currency; the ledger change is written once as the
        difference between old and new totals. Paid and partially paid
        invoices keep their financial fields and only take descriptive edits
        and item content.

        Raises:
            NotFoundError: Unknown invoice, customer or currency.
            PreconditionError: Customer or currency change on a settled invoice.
            ValidationError: Duplicate invoice number, no items, no rate, or a
                legacy invoice edit that would change its total.
        """
        invoice = self._get_invoice(invoice_id)
        update_data = data.model_dump(exclude_unset=True)

        if data.invoice_no is not None:
            self._ensure_invoice_no_available(data.invoice_no, invoice_id)

        if invoice.status in SETTLED_STATUSES:
            self._update_settled(invoice, data, update_data)
        else:
            self._update_open(invoice, data, update_data)

        self.db.refresh(invoice)
        logger.info("Updated invoice %s", invoice.invoice_no)
        return invoice

    def _apply_descriptive(self, invoice: Invoice, data: InvoiceUpdate, update_data: dict) -> None:
        for key in DESCRIPTIVE_FIELDS:
            if key in update_data and update_data[key] is not None:
                setattr(invoice, key, update_data[key])
        if data.date is not None:
            invoice.date = to_local_midnight(data.date)  # type: ignore[assignment]
        if "bank_account_id" in update_data:
            invoice.bank_account_id = data.bank_account_id  # type: ignore[assignment]
            invoice.bank_account = self._bank_account_snapshot(data.bank_account_id)  # type: ignore[assignment]

    def _update_settled(self, invoice: Invoice, data: InvoiceUpdate, update_data: dict) -> None:
        if data.customer_id is not None and data.customer_id != invoice.customer_id:
            raise PreconditionError(
                "Cannot move a paid or partially paid invoice to another customer"
            )
        if data.currency is not None and data.currency.upper() != invoice.currency:
            raise PreconditionError(
                "Cannot change the currency of a paid or partially paid invoice"
            )

        with atomic(self.db):
            self._apply_descriptive(invoice, data, update_data)
            if data.exchange_rate is not None:
                invoice.exchange_rate = round4(data.exchange_rate)  # type: ignore[assignment]
            if data.markup_mode is not None:
                invoice.markup_mode = data.markup_mode.value  # type: ignore[assignment]
            if data.markup_value is not None:
                invoice.markup_value = round2(data.markup_value)  # type: ignore[assignment]

            if data.item_groups is not None:
                rate = to_decimal(invoice.exchange_rate)
                priced = price_invoice(
                    data.item_groups,
                    MarkupMode(invoice.markup_mode or MarkupMode.PERCENT.value),
                    to_decimal(invoice.markup_value),
                    rate,
                )
                if priced.item_count > 0:
                    total_jpy = (
                        round2(to_decimal(invoice.total_amount) / rate) if rate > 0 else round2(ZERO)
                    )
                    invoice.item_groups = [  # type: ignore[assignment]
                        g.model_dump(mode="json") for g in priced.item_groups
                    ]
                    invoice.total_cost = priced.total_cost  # type: ignore[assignment]
                    invoice.total_jpy = total_jpy  # type: ignore[assignment]
                    invoice.total_profit_jpy = round2(total_jpy - priced.total_cost)  # type: ignore[assignment]

    def _update_open(self, invoice: Invoice, data: InvoiceUpdate, update_data: dict) -> None:
        old_currency = str(invoice.currency)
        old_total = to_decimal(invoice.total_amount)

        customer = self._get_customer(data.customer_id or invoice.customer_id)  # type: ignore[arg-type]
        new_currency = (data.currency or old_currency).upper()
        old_ledger = self._get_ledger(old_currency)
        new_ledger = old_ledger if new_currency == old_currency else self._get_ledger(new_currency)

        invoice_date = data.date or to_local_date(invoice.date)  # type: ignore[arg-type]
        needs_rate = (
            data.exchange_rate is not None
            or new_currency != old_currency
            or invoice.exchange_rate is None
        )
        if needs_rate:
            rate = self.resolve_rate(new_currency, invoice_date, data.exchange_rate)
        else:
            rate = to_decimal(invoice.exchange_rate)

        markup_mode = data.markup_mode or MarkupMode(
            invoice.markup_mode or MarkupMode.PERCENT.value
        )
        markup_value = (
            data.markup_value if data.markup_value is not None else to_decimal(invoice.markup_value)
        )

        is_legacy = not invoice.item_groups
        groups = data.item_groups if data.item_groups is not None else self._stored_groups(invoice)
        priced = price_invoice(groups, markup_mode, markup_value, rate)

        keep_legacy_totals = is_legacy and priced.item_count == 0
        if is_legacy and priced.item_count > 0 and priced.total_amount != round2(old_total):
            raise ValidationError("Calculated total must match existing total for legacy invoices")
        if not is_legacy and priced.item_count == 0:
            raise ValidationError("Add at least one invoice item")

        with atomic(self.db):
            self._apply_descriptive(invoice, data, update_data)
            invoice.customer_id = customer.id  # type: ignore[assignment]
            invoice.customer_name = customer.name  # type: ignore[assignment]
            invoice.currency = new_currency  # type: ignore[assignment]
            invoice.exchange_rate = rate  # type: ignore[assignment]
            invoice.markup_mode = markup_mode.value  # type: ignore[assignment]
            invoice.markup_value = round2(markup_value)  # type: ignore[assignment]
            if not keep_legacy_totals:
                self._apply_priced(invoice, priced)
            new_total = to_decimal(invoice.total_amount)
            invoice.amount_paid = round2(ZERO)  # type: ignore[assignment]
            invoice.balance = round2(new_total)  # type: ignore[assignment]

            if new_ledger is old_ledger:
                delta = round2(new_total - old_total)
                if delta > 0:
                    ledger.increase_due(old_ledger, delta)
                elif delta < 0:
                    ledger.decrease_due(old_ledger, -delta)
            else:
                ledger.decrease_due(old_ledger, old_total)
                ledger.increase_due(new_ledger, new_total)

    def finalize_invoice(self, invoice_id: UUID) -> Invoice:
        """Move a draft invoice to pending so it can receive payments."""
        invoice = self._get_invoice(invoice_id)
        if invoice.status != InvoiceStatus.DRAFT.value:
            raise PreconditionError("Only draft invoices can be finalized")
        with atomic(self.db):
            invoice.status = InvoiceStatus.PENDING.value  # type: ignore[assignment]
        self.db.refresh(invoice)
        logger.info("Finalized invoice %s", invoice.invoice_no)
        return invoice

    def delete_invoice(self, invoice_id: UUID) -> None:
        """Delete an unpaid invoice and remove its total from the amount due.

        Raises:
            NotFoundError: Unknown invoice or currency.
            PreconditionError: The invoice is paid or partially paid.
        """
        invoice = self._get_invoice(invoice_id)
        if invoice.status in SETTLED_STATUSES:
            raise PreconditionError("Cannot delete a paid or partially paid invoice")
        ledger_row = self._get_ledger(str(invoice.currency))
        invoice_no = invoice.invoice_no

        with atomic(self.db):
            ledger.decrease_due(ledger_row, to_decimal(invoice.total_amount))
            self.db.delete(invoice)

        logger.info("Deleted invoice %s", invoice_no)
