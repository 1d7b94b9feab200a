"""Payment apply and reverse transactions.

Applying a payment allocates it across the customer's open invoices (see
``allocation_engine``), then writes the payment, its allocation rows, the
invoice updates and the customer and ledger aggregates in one commit.
Deleting a payment undoes exactly what its stored allocation rows recorded.
"""

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from invoicing.core.config import settings
from invoicing.core.database import atomic
from invoicing.core.dates import to_local_midnight
from invoicing.core.errors import NotFoundError, PreconditionError, ValidationError
from invoicing.core.money import ZERO, clamp_non_negative, round2, to_decimal
from invoicing.models.currency import CurrencyLedger
from invoicing.models.customer import Customer
from invoicing.models.invoice import Invoice, InvoiceStatus
from invoicing.models.payment import Payment
from invoicing.models.payment_allocation import PaymentAllocation
from invoicing.repositories.currency_repository import CurrencyRepository
from invoicing.repositories.customer_repository import CustomerRepository
from invoicing.repositories.invoice_repository import InvoiceRepository
from invoicing.repositories.payment_allocation_repository import PaymentAllocationRepository
from invoicing.repositories.payment_repository import PaymentRepository
from invoicing.schemas.payment import AllocationRequest, PaymentCreate
from invoicing.services import ledger
from invoicing.services.allocation_engine import (
    AllocationResult,
    OpenInvoice,
    allocation_errors,
    compute_allocation,
    default_jpy_amount,
    validate_allocation,
)

logger = logging.getLogger(__name__)


@dataclass
class AllocationPlan:
    """Engine output together with the inputs it was computed from."""

    result: AllocationResult
    jpy_amount: Decimal | None
    open_invoices: list[OpenInvoice] = field(default_factory=list)
    invoices: list[Invoice] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


def generate_payment_no(now: datetime | None = None) -> str:
    """Payment number from the last six digits of the millisecond clock."""
    now = now or datetime.now(UTC)
    return f"PAY-{str(int(now.timestamp() * 1000))[-6:]}"


def invoice_status_for(amount_paid: Decimal, balance: Decimal) -> str:
    if balance == 0:
        return InvoiceStatus.PAID.value
    if amount_paid == 0:
        return InvoiceStatus.PENDING.value
    return InvoiceStatus.PARTIALLY_PAID.value


class PaymentService:
    """Service for applying and reversing payments."""

    def __init__(self, db: Session):
        self.db = db
        self.payment_repo = PaymentRepository(db)
        self.allocation_repo = PaymentAllocationRepository(db)
        self.invoice_repo = InvoiceRepository(db)
        self.customer_repo = CustomerRepository(db)
        self.currency_repo = CurrencyRepository(db)

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

    def _check_selectable(self, invoice_id: UUID, open_ids: set[UUID]) -> None:
        """Reject an invoice id that is not among the customer's open invoices."""
        if invoice_id in open_ids:
            return
        if self.invoice_repo.get_by_id(invoice_id) is None:
            raise NotFoundError(f"Invoice {invoice_id} not found")
        raise ValidationError(
            f"Invoice {invoice_id} is not an open invoice for this customer and currency"
        )

    def preview_allocation(self, data: AllocationRequest) -> AllocationPlan:
        """Compute the draft allocation the user reviews before submitting.

        Nothing is written. Validation problems are returned in ``errors``
        rather than raised, so a partially filled manual allocation can still
        be shown.

        Raises:
            NotFoundError: Unknown customer, currency or selected invoice.
            ValidationError: A selected invoice belongs elsewhere or is not open.
        """
        customer = self._get_customer(data.customer_id)
        currency = data.currency.upper()
        self._get_ledger(currency)

        invoices = self.invoice_repo.get_open_for_customer(customer.id, currency)  # type: ignore[arg-type]
        open_ids = {UUID(str(inv.id)) for inv in invoices}

        manual: dict[UUID, Decimal] | None = None
        if data.allocations is not None:
            manual = {}
            for entry in data.allocations:
                self._check_selectable(entry.invoice_id, open_ids)
                manual[entry.invoice_id] = round2(
                    manual.get(entry.invoice_id, ZERO) + entry.allocated_amount
                )
        if data.charge_invoice_id is not None:
            self._check_selectable(data.charge_invoice_id, open_ids)

        jpy_amount = data.jpy_amount
        if jpy_amount is None:
            jpy_amount = default_jpy_amount(
                currency, data.amount, data.foreign_bank_charge, settings.BASE_CURRENCY
            )

        open_invoices = [
            OpenInvoice(
                invoice_id=UUID(str(inv.id)),
                invoice_no=str(inv.invoice_no),
                balance=to_decimal(inv.balance),
            )
            for inv in invoices
        ]
        result = compute_allocation(
            open_invoices,
            data.amount,
            data.foreign_bank_charge,
            data.local_bank_charge,
            jpy_amount if jpy_amount is not None else ZERO,
            charge_invoice_id=data.charge_invoice_id,
            allocated_amounts=manual,
        )

        errors: list[str] = []
        if jpy_amount is None:
            errors.append(f"JPY amount is required for {currency} payments")
        else:
            errors.extend(
                allocation_errors(
                    result,
                    data.amount,
                    jpy_amount,
                    data.foreign_bank_charge,
                    data.local_bank_charge,
                    open_invoices,
                )
            )
        return AllocationPlan(
            result=result,
            jpy_amount=jpy_amount,
            open_invoices=open_invoices,
            invoices=invoices,
            errors=errors,
        )

    def create_payment(self, data: PaymentCreate) -> Payment:
        """Record a payment and apply it to the customer's open invoices.

        Raises:
            NotFoundError: Unknown customer, currency or invoice.
            ValidationError: The allocation fails a validation gate.
            ConflictError: Another request changed the same invoices or
                ledger first; recompute against fresh balances and resubmit.
        """
        customer = self._get_customer(data.customer_id)
        currency = data.currency.upper()
        ledger_row = self._get_ledger(currency)

        plan = self.preview_allocation(data)
        if plan.jpy_amount is None:
            raise ValidationError(f"JPY amount is required for {currency} payments")
        validate_allocation(
            plan.result,
            data.amount,
            plan.jpy_amount,
            data.foreign_bank_charge,
            data.local_bank_charge,
            plan.open_invoices,
        )

        result = plan.result
        invoices_by_id = {UUID(str(inv.id)): inv for inv in plan.invoices}
        fbc = round2(data.foreign_bank_charge)
        lbc = round2(data.local_bank_charge)

        with atomic(self.db):
            payment = self.payment_repo.add(
                Payment(
                    payment_no=(data.payment_no or "").strip() or generate_payment_no(),
                    customer_id=customer.id,
                    customer_name=customer.name,
                    currency=currency,
                    amount=round2(data.amount),
                    exchange_rate=result.exchange_rate,
                    allocated_amount=result.total_allocated,
                    amount_in_jpy=result.total_received_jpy,
                    foreign_bank_charge=fbc,
                    local_bank_charge=lbc,
                    payment_date=to_local_midnight(data.payment_date),
                    date=to_local_midnight(data.date or data.payment_date),
                )
            )

            for draft in result.allocations:
                invoice = invoices_by_id[draft.invoice_id]
                self.allocation_repo.add(
                    PaymentAllocation(
                        payment_id=payment.id,
                        invoice_id=draft.invoice_id,
                        invoice_no=draft.invoice_no,
                        allocated_amount=draft.allocated_amount,
                        foreign_bank_charge=draft.foreign_bank_charge,
                        local_bank_charge=draft.local_bank_charge,
                        recieved_jpy=draft.recieved_jpy,
                        exchange_rate=draft.exchange_rate,
                    )
                )
                amount_paid = round2(to_decimal(invoice.amount_paid) + draft.allocated_amount)
                balance = round2(to_decimal(invoice.total_amount) - amount_paid)
                invoice.amount_paid = amount_paid  # type: ignore[assignment]
                invoice.balance = balance  # type: ignore[assignment]
                invoice.status = (  # type: ignore[assignment]
                    InvoiceStatus.PAID.value if balance == 0 else InvoiceStatus.PARTIALLY_PAID.value
                )
                invoice.foreign_bank_charge = round2(  # type: ignore[assignment]
                    to_decimal(invoice.foreign_bank_charge) + draft.foreign_bank_charge
                )
                invoice.local_bank_charge = round2(  # type: ignore[assignment]
                    to_decimal(invoice.local_bank_charge) + draft.local_bank_charge
                )
                invoice.recieved_jpy = round2(  # type: ignore[assignment]
                    to_decimal(invoice.recieved_jpy) + draft.recieved_jpy
                )

            ledger.apply_receipt(
                ledger_row,
                customer,
                allocated=result.total_allocated,
                amount_in_jpy=result.total_received_jpy,
                foreign_bank_charge=fbc,
                local_bank_charge=lbc,
            )

        self.db.refresh(payment)
        logger.info(
            "Applied payment %s for customer %s: %s %s to %d invoice(s), %s JPY at %s",
            payment.payment_no,
            customer.id,
            payment.amount,
            currency,
            len(result.allocations),
            payment.amount_in_jpy,
            payment.exchange_rate,
        )
        return payment

    def delete_payment(self, payment_id: UUID) -> None:
        """Reverse a payment using its stored allocation rows.

        Only the customer's most recently created payment may be deleted, so
        earlier allocations stay consistent with oldest-first ordering.

        Raises:
            NotFoundError: Unknown payment, or a referenced invoice, customer
                or currency no longer exists.
            PreconditionError: A newer payment exists for the customer.
            ConflictError: A concurrent write touched the same rows.
        """
        payment = self.payment_repo.get_by_id(payment_id)
        if not payment:
            raise NotFoundError(f"Payment {payment_id} not found")

        latest = self.payment_repo.get_latest_for_customer(payment.customer_id)  # type: ignore[arg-type]
        if latest is not None and latest.id != payment.id:
            raise PreconditionError(
                "Only the most recent payment for a customer can be deleted"
            )

        customer = self._get_customer(payment.customer_id)  # type: ignore[arg-type]
        ledger_row = self._get_ledger(str(payment.currency))
        allocations = self.allocation_repo.get_by_payment_id(payment.id)  # type: ignore[arg-type]
        payment_no = payment.payment_no

        total_allocated = ZERO
        total_jpy = ZERO
        total_fbc = ZERO
        total_lbc = ZERO

        with atomic(self.db):
            for allocation in allocations:
                invoice = self.invoice_repo.get_by_id(allocation.invoice_id)  # type: ignore[arg-type]
                if invoice is None:
                    raise NotFoundError(
                        f"Invoice {allocation.invoice_no} referenced by payment "
                        f"{payment_no} not found"
                    )
                allocated = to_decimal(allocation.allocated_amount)
                fbc = to_decimal(allocation.foreign_bank_charge)
                lbc = to_decimal(allocation.local_bank_charge)
                recieved_jpy = to_decimal(allocation.recieved_jpy)

                amount_paid = clamp_non_negative(
                    round2(to_decimal(invoice.amount_paid) - allocated)
                )
                balance = round2(to_decimal(invoice.total_amount) - amount_paid)
                invoice.amount_paid = amount_paid  # type: ignore[assignment]
                invoice.balance = balance  # type: ignore[assignment]
                invoice.status = invoice_status_for(amount_paid, balance)  # type: ignore[assignment]
                invoice.foreign_bank_charge = clamp_non_negative(  # type: ignore[assignment]
                    round2(to_decimal(invoice.foreign_bank_charge) - fbc)
                )
                invoice.local_bank_charge = clamp_non_negative(  # type: ignore[assignment]
                    round2(to_decimal(invoice.local_bank_charge) - lbc)
                )
                invoice.recieved_jpy = clamp_non_negative(  # type: ignore[assignment]
                    round2(to_decimal(invoice.recieved_jpy) - recieved_jpy)
                )

                total_allocated += allocated
                total_jpy += recieved_jpy
                total_fbc += fbc
                total_lbc += lbc
                self.db.delete(allocation)

            ledger.reverse_receipt(
                ledger_row,
                customer,
                allocated=round2(total_allocated),
                amount_in_jpy=round2(total_jpy),
                foreign_bank_charge=round2(total_fbc),
                local_bank_charge=round2(total_lbc),
            )
            # Allocation rows reference the payment, so they go first
            self.db.flush()
            self.db.delete(payment)

        logger.info(
            "Reversed payment %s for customer %s: %s %s from %d invoice(s)",
            payment_no,
            customer.id,
            round2(total_allocated),
            ledger_row.code,
            len(allocations),
        )
