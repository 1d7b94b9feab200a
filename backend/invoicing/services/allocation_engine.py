"""Payment allocation engine.

Splits one payment, received in a foreign currency net of bank charges,
across a customer's open invoices and converts each share to JPY.

Everything here is a pure function over plain inputs: no session, no settings
lookups, no clock. ``PaymentService`` feeds it fresh invoice balances and
persists whatever it returns.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace
from decimal import Decimal
from uuid import UUID

from invoicing.core.errors import ValidationError
from invoicing.core.money import ZERO, floor_jpy, round2, to_decimal


@dataclass(frozen=True)
class OpenInvoice:
    """An invoice with an outstanding balance, as seen when the draft is built."""

    invoice_id: UUID
    invoice_no: str
    balance: Decimal


@dataclass(frozen=True)
class AllocationDraft:
    """Proposed credit of part of a payment to one invoice."""

    invoice_id: UUID
    invoice_no: str
    balance: Decimal
    allocated_amount: Decimal
    foreign_bank_charge: Decimal = ZERO
    local_bank_charge: Decimal = ZERO
    recieved_jpy: Decimal = ZERO
    exchange_rate: Decimal = ZERO


@dataclass
class AllocationResult:
    """Result of an allocation computation."""

    allocations: list[AllocationDraft] = field(default_factory=list)
    exchange_rate: Decimal = ZERO
    total_received_jpy: Decimal = ZERO
    total_allocated: Decimal = ZERO
    charge_invoice_id: UUID | None = None

    def by_invoice(self) -> dict[UUID, AllocationDraft]:
        return {draft.invoice_id: draft for draft in self.allocations}


def fifo_allocate(open_invoices: Sequence[OpenInvoice], payment_amount: Decimal) -> list[Decimal]:
    """Allocate a payment to the oldest open invoices first.

    Returns one amount per invoice, aligned with ``open_invoices``. Invoices
    the payment does not reach get zero, so balances of 100, 50 and 30 paid
    with 120 yield 100, 20 and 0.
    """
    remaining = round2(payment_amount)
    amounts: list[Decimal] = []
    for invoice in open_invoices:
        if remaining <= 0:
            amounts.append(round2(ZERO))
            continue
        allocated = round2(min(remaining, to_decimal(invoice.balance)))
        remaining = round2(remaining - allocated)
        amounts.append(allocated)
    return amounts


def derive_exchange_rate(
    payment_amount: Decimal, foreign_bank_charge: Decimal, jpy_amount: Decimal
) -> Decimal:
    """Realized JPY-per-unit rate: JPY credited over the amount that reached the bank."""
    effective_amount = to_decimal(payment_amount) - to_decimal(foreign_bank_charge)
    if effective_amount <= 0:
        return round2(ZERO)
    return round2(to_decimal(jpy_amount) / effective_amount)


def default_jpy_amount(
    currency: str,
    payment_amount: Decimal,
    foreign_bank_charge: Decimal,
    base_currency: str = "JPY",
) -> Decimal | None:
    """JPY credited when it can be derived without the bank statement.

    A payment in the base currency credits its face amount minus the foreign
    bank charge. For any other currency the figure must be entered by hand,
    so ``None`` is returned.
    """
    if currency.upper() != base_currency.upper():
        return None
    return round2(to_decimal(payment_amount) - to_decimal(foreign_bank_charge))


def resolve_charge_invoice(
    allocated_amounts: Sequence[tuple[UUID, Decimal]],
    charge_invoice_id: UUID | None = None,
) -> UUID | None:
    """Pick the invoice that absorbs the bank charges.

    An explicit choice wins when it is part of the allocation set; otherwise
    the first invoice with a non-zero allocation is used.
    """
    if charge_invoice_id is not None:
        if any(invoice_id == charge_invoice_id for invoice_id, _ in allocated_amounts):
            return charge_invoice_id
        return None
    for invoice_id, amount in allocated_amounts:
        if amount > 0:
            return invoice_id
    return None


def distribute_jpy(
    drafts: Sequence[AllocationDraft],
    foreign_bank_charge: Decimal,
    local_bank_charge: Decimal,
    exchange_rate: Decimal,
    charge_invoice_id: UUID | None,
) -> list[AllocationDraft]:
    """Convert each allocation to JPY and attach the charges to the charge invoice.

    The charge invoice converts its allocation net of the foreign charge and
    then carries the local charge as a JPY deduction. Converted amounts are
    floored to whole yen.
    """
    fbc = round2(foreign_bank_charge)
    lbc = round2(local_bank_charge)
    rate = to_decimal(exchange_rate)

    distributed: list[AllocationDraft] = []
    for draft in drafts:
        is_charge_invoice = draft.invoice_id == charge_invoice_id
        adjusted = draft.allocated_amount - (fbc if is_charge_invoice else ZERO)
        gross_jpy = floor_jpy(adjusted * rate) if draft.allocated_amount > 0 else ZERO
        recieved_jpy = gross_jpy - lbc if is_charge_invoice else gross_jpy
        distributed.append(
            replace(
                draft,
                foreign_bank_charge=fbc if is_charge_invoice else round2(ZERO),
                local_bank_charge=lbc if is_charge_invoice else round2(ZERO),
                recieved_jpy=round2(recieved_jpy),
                exchange_rate=round2(rate),
            )
        )
    return distributed


def reconcile_rounding(
    drafts: Sequence[AllocationDraft],
    payment_amount: Decimal,
    jpy_amount: Decimal,
    charge_invoice_id: UUID | None,
) -> list[AllocationDraft]:
    """Push the per-line flooring difference onto one invoice so JPY ties out.

    Only applied once the allocations consume the whole payment; a partial
    manual draft is returned unchanged.
    """
    result = list(drafts)
    if not result:
        return result

    total_allocated = round2(sum((d.allocated_amount for d in result), ZERO))
    if total_allocated != round2(payment_amount):
        return result

    diff = round2(to_decimal(jpy_amount) - sum((d.recieved_jpy for d in result), ZERO))
    if diff == 0:
        return result

    target_index = next(
        (i for i, d in enumerate(result) if d.invoice_id == charge_invoice_id),
        None,
    )
    if target_index is None:
        target_index = next((i for i, d in enumerate(result) if d.allocated_amount > 0), 0)

    target = result[target_index]
    result[target_index] = replace(target, recieved_jpy=round2(target.recieved_jpy + diff))
    return result


def compute_allocation(
    open_invoices: Sequence[OpenInvoice],
    payment_amount: Decimal,
    foreign_bank_charge: Decimal,
    local_bank_charge: Decimal,
    jpy_amount: Decimal,
    charge_invoice_id: UUID | None = None,
    allocated_amounts: Mapping[UUID, Decimal] | None = None,
) -> AllocationResult:
    """Build the allocation set for one payment.

    Args:
        open_invoices: The customer's open invoices in this currency, oldest
            first by (date, created_at).
        payment_amount: Face amount of the payment.
        foreign_bank_charge: Charge deducted before the funds reached the bank,
            in the payment currency.
        local_bank_charge: Charge deducted by the receiving bank, in JPY.
        jpy_amount: JPY actually credited for this receipt.
        charge_invoice_id: Invoice that absorbs the charges; defaults to the
            first invoice with a non-zero allocation.
        allocated_amounts: Manual allocation per invoice id. When given, FIFO
            is skipped and these amounts are used as-is (invoices missing from
            the mapping get zero).

    Returns:
        The non-zero allocations with their charges and JPY amounts, the
        realized exchange rate and the totals.
    """
    amount = round2(payment_amount)
    fbc = round2(foreign_bank_charge)
    lbc = round2(local_bank_charge)
    jpy = round2(jpy_amount)

    if allocated_amounts is None:
        amounts = fifo_allocate(open_invoices, amount)
    else:
        amounts = [round2(allocated_amounts.get(inv.invoice_id, ZERO)) for inv in open_invoices]

    pairs = [(inv.invoice_id, amt) for inv, amt in zip(open_invoices, amounts, strict=True)]
    resolved_charge_invoice = resolve_charge_invoice(pairs, charge_invoice_id)

    drafts = [
        AllocationDraft(
            invoice_id=inv.invoice_id,
            invoice_no=inv.invoice_no,
            balance=round2(inv.balance),
            allocated_amount=amt,
        )
        for inv, amt in zip(open_invoices, amounts, strict=True)
        if amt != 0
    ]

    exchange_rate = derive_exchange_rate(amount, fbc, jpy)
    drafts = distribute_jpy(drafts, fbc, lbc, exchange_rate, resolved_charge_invoice)
    drafts = reconcile_rounding(drafts, amount, jpy, resolved_charge_invoice)

    return AllocationResult(
        allocations=drafts,
        exchange_rate=exchange_rate,
        total_received_jpy=round2(sum((d.recieved_jpy for d in drafts), ZERO)),
        total_allocated=round2(sum((d.allocated_amount for d in drafts), ZERO)),
        charge_invoice_id=resolved_charge_invoice,
    )


def allocation_errors(
    result: AllocationResult,
    payment_amount: Decimal,
    jpy_amount: Decimal,
    foreign_bank_charge: Decimal,
    local_bank_charge: Decimal,
    open_invoices: Sequence[OpenInvoice],
) -> list[str]:
    """Return every reason the allocation cannot be committed (empty when valid)."""
    amount = round2(payment_amount)
    fbc = round2(foreign_bank_charge)
    lbc = round2(local_bank_charge)
    errors: list[str] = []

    if amount <= 0:
        errors.append("Payment amount must be greater than zero")
    if fbc < 0 or lbc < 0:
        errors.append("Bank charges cannot be negative")
    if not result.allocations:
        errors.append("Select at least one invoice to allocate the payment to")

    balances = {inv.invoice_id: round2(inv.balance) for inv in open_invoices}
    for draft in result.allocations:
        if draft.allocated_amount < 0:
            errors.append(f"Allocation to invoice {draft.invoice_no} cannot be negative")
        balance = balances.get(draft.invoice_id)
        if balance is not None and draft.allocated_amount > balance:
            errors.append(
                f"Allocation of {draft.allocated_amount} to invoice {draft.invoice_no} "
                f"exceeds its balance of {balance}"
            )

    if result.total_allocated != amount:
        errors.append(
            f"Allocated amount {result.total_allocated} must exactly match "
            f"the payment amount {amount}"
        )
    if result.total_received_jpy != round2(jpy_amount):
        errors.append(
            f"Received JPY {result.total_received_jpy} must exactly match "
            f"the JPY amount {round2(jpy_amount)}"
        )

    if fbc > 0 or lbc > 0:
        charge_draft = result.by_invoice().get(result.charge_invoice_id)  # type: ignore[arg-type]
        if charge_draft is None:
            errors.append("Choose the invoice that absorbs the bank charges")
        elif charge_draft.allocated_amount < fbc:
            errors.append(
                f"Invoice {charge_draft.invoice_no} must be allocated at least "
                f"the foreign bank charge of {fbc}"
            )

    return errors


def validate_allocation(
    result: AllocationResult,
    payment_amount: Decimal,
    jpy_amount: Decimal,
    foreign_bank_charge: Decimal,
    local_bank_charge: Decimal,
    open_invoices: Sequence[OpenInvoice],
) -> None:
    """Reject an allocation that may not be committed.

    Raises:
        ValidationError: With every failed gate joined into one message.
    """
    errors = allocation_errors(
        result, payment_amount, jpy_amount, foreign_bank_charge, local_bank_charge, open_invoices
    )
    if errors:
        raise ValidationError("; ".join(errors))
