"""Currency ledger and customer aggregate mutations.

Apply and reverse go through the same pair of functions so that reversing a
payment is the exact inverse of applying it. Decrements are clamped at zero.
``total_amount`` is a running total of everything ever invoiced: only
creating an invoice raises it, and edits and deletes move ``amount_due`` alone.
"""

from decimal import Decimal

from invoicing.core.money import clamp_non_negative, round2
from invoicing.models.currency import CurrencyLedger
from invoicing.models.customer import Customer


def add_invoiced(ledger: CurrencyLedger, amount: Decimal) -> None:
    ledger.amount_due = round2(ledger.amount_due + amount)  # type: ignore[assignment]
    ledger.total_amount = round2(ledger.total_amount + amount)  # type: ignore[assignment]


def increase_due(ledger: CurrencyLedger, amount: Decimal) -> None:
    ledger.amount_due = round2(ledger.amount_due + amount)  # type: ignore[assignment]


def decrease_due(ledger: CurrencyLedger, amount: Decimal) -> None:
    ledger.amount_due = clamp_non_negative(round2(ledger.amount_due - amount))  # type: ignore[assignment]


def apply_receipt(
    ledger: CurrencyLedger,
    customer: Customer,
    allocated: Decimal,
    amount_in_jpy: Decimal,
    foreign_bank_charge: Decimal,
    local_bank_charge: Decimal,
) -> None:
    """Record a payment's totals on the currency ledger and the customer."""
    ledger.amount_due = clamp_non_negative(round2(ledger.amount_due - allocated))  # type: ignore[assignment]
    ledger.amount_paid = round2(ledger.amount_paid + allocated)  # type: ignore[assignment]
    ledger.amount_in_jpy = round2(ledger.amount_in_jpy + amount_in_jpy)  # type: ignore[assignment]
    ledger.foreign_bank_charge = round2(ledger.foreign_bank_charge + foreign_bank_charge)  # type: ignore[assignment]
    ledger.local_bank_charge = round2(ledger.local_bank_charge + local_bank_charge)  # type: ignore[assignment]
    customer.amount_in_jpy = round2(customer.amount_in_jpy + amount_in_jpy)  # type: ignore[assignment]


def reverse_receipt(
    ledger: CurrencyLedger,
    customer: Customer,
    allocated: Decimal,
    amount_in_jpy: Decimal,
    foreign_bank_charge: Decimal,
    local_bank_charge: Decimal,
) -> None:
    """Remove a payment's totals from the currency ledger and the customer."""
    ledger.amount_due = round2(ledger.amount_due + allocated)  # type: ignore[assignment]
    ledger.amount_paid = clamp_non_negative(round2(ledger.amount_paid - allocated))  # type: ignore[assignment]
    ledger.amount_in_jpy = clamp_non_negative(round2(ledger.amount_in_jpy - amount_in_jpy))  # type: ignore[assignment]
    ledger.foreign_bank_charge = clamp_non_negative(  # type: ignore[assignment]
        round2(ledger.foreign_bank_charge - foreign_bank_charge)
    )
    ledger.local_bank_charge = clamp_non_negative(  # type: ignore[assignment]
        round2(ledger.local_bank_charge - local_bank_charge)
    )
    customer.amount_in_jpy = clamp_non_negative(round2(customer.amount_in_jpy - amount_in_jpy))  # type: ignore[assignment]
