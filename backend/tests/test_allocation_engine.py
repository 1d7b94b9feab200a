"""Tests for the pure payment allocation engine."""

from decimal import Decimal
from uuid import uuid4

import pytest

from invoicing.core.errors import ValidationError
from invoicing.services.allocation_engine import (
    AllocationDraft,
    OpenInvoice,
    allocation_errors,
    compute_allocation,
    default_jpy_amount,
    derive_exchange_rate,
    distribute_jpy,
    fifo_allocate,
    reconcile_rounding,
    resolve_charge_invoice,
    validate_allocation,
)


def _open(*balances: str) -> list[OpenInvoice]:
    return [
        OpenInvoice(invoice_id=uuid4(), invoice_no=f"INV-{i:03d}", balance=Decimal(b))
        for i, b in enumerate(balances, start=1)
    ]


class TestFifoAllocate:
    def test_oldest_invoices_are_paid_first(self):
        invoices = _open("100", "50", "30")
        assert fifo_allocate(invoices, Decimal("120")) == [
            Decimal("100.00"),
            Decimal("20.00"),
            Decimal("0.00"),
        ]

    def test_payment_larger_than_open_balance_stops_at_balances(self):
        invoices = _open("100", "50")
        assert fifo_allocate(invoices, Decimal("500")) == [Decimal("100.00"), Decimal("50.00")]

    def test_no_invoices(self):
        assert fifo_allocate([], Decimal("100")) == []


class TestExchangeRate:
    def test_rate_is_jpy_over_net_amount(self):
        assert derive_exchange_rate(Decimal("1000"), Decimal("20"), Decimal("146000")) == Decimal(
            "148.98"
        )

    def test_rate_is_zero_when_charge_consumes_payment(self):
        assert derive_exchange_rate(Decimal("10"), Decimal("10"), Decimal("1000")) == Decimal("0.00")

    def test_default_jpy_amount_for_base_currency(self):
        assert default_jpy_amount("jpy", Decimal("50000"), Decimal("1500")) == Decimal("48500.00")

    def test_default_jpy_amount_requires_entry_for_foreign_currency(self):
        assert default_jpy_amount("USD", Decimal("100"), Decimal("0")) is None


class TestChargeInvoice:
    def test_first_nonzero_allocation_is_default(self):
        first, second = uuid4(), uuid4()
        pairs = [(first, Decimal("0")), (second, Decimal("10"))]
        assert resolve_charge_invoice(pairs) == second

    def test_explicit_choice_wins(self):
        first, second = uuid4(), uuid4()
        pairs = [(first, Decimal("10")), (second, Decimal("10"))]
        assert resolve_charge_invoice(pairs, second) == second

    def test_explicit_choice_outside_allocation_set_is_dropped(self):
        first = uuid4()
        assert resolve_charge_invoice([(first, Decimal("10"))], uuid4()) is None


class TestDistributeJpy:
    def test_charge_invoice_carries_both_charges(self):
        charge_id, other_id = uuid4(), uuid4()
        drafts = [
            AllocationDraft(charge_id, "INV-001", Decimal("100"), Decimal("100")),
            AllocationDraft(other_id, "INV-002", Decimal("50"), Decimal("0")),
        ]
        charge, other = distribute_jpy(
            drafts, Decimal("10"), Decimal("5"), Decimal("150"), charge_id
        )
        assert charge.recieved_jpy == Decimal("13495.00")
        assert charge.foreign_bank_charge == Decimal("10.00")
        assert charge.local_bank_charge == Decimal("5.00")
        assert other.recieved_jpy == Decimal("0.00")
        assert other.foreign_bank_charge == Decimal("0.00")

    def test_non_charge_invoices_convert_gross(self):
        charge_id, other_id = uuid4(), uuid4()
        drafts = [
            AllocationDraft(charge_id, "INV-001", Decimal("100"), Decimal("100")),
            AllocationDraft(other_id, "INV-002", Decimal("50"), Decimal("33.33")),
        ]
        _, other = distribute_jpy(drafts, Decimal("10"), Decimal("0"), Decimal("150"), charge_id)
        assert other.recieved_jpy == Decimal("4999.00")
        assert other.exchange_rate == Decimal("150.00")


class TestReconcileRounding:
    def test_difference_goes_to_charge_invoice(self):
        first, second = uuid4(), uuid4()
        drafts = [
            AllocationDraft(first, "INV-001", Decimal("10"), Decimal("10"), recieved_jpy=Decimal("1499")),
            AllocationDraft(second, "INV-002", Decimal("10"), Decimal("10"), recieved_jpy=Decimal("1499")),
        ]
        result = reconcile_rounding(drafts, Decimal("20"), Decimal("3000"), second)
        assert result[0].recieved_jpy == Decimal("1499")
        assert result[1].recieved_jpy == Decimal("1501.00")

    def test_partial_allocation_is_left_alone(self):
        first = uuid4()
        drafts = [
            AllocationDraft(first, "INV-001", Decimal("10"), Decimal("5"), recieved_jpy=Decimal("749")),
        ]
        assert reconcile_rounding(drafts, Decimal("10"), Decimal("1500"), first) == drafts


class TestComputeAllocation:
    def test_allocation_closure_and_jpy_closure(self):
        invoices = _open("333.33", "333.33", "333.34", "250")
        result = compute_allocation(
            invoices,
            Decimal("1000"),
            Decimal("15"),
            Decimal("1500"),
            Decimal("143777"),
        )
        assert result.total_allocated == Decimal("1000.00")
        assert sum(d.allocated_amount for d in result.allocations) == Decimal("1000.00")
        assert result.total_received_jpy == Decimal("143777.00")
        assert sum(d.recieved_jpy for d in result.allocations) == Decimal("143777.00")
        assert len(result.allocations) == 3
        assert result.charge_invoice_id == invoices[0].invoice_id

    def test_end_to_end_single_invoice(self):
        invoices = _open("1000")
        result = compute_allocation(
            invoices, Decimal("1000"), Decimal("20"), Decimal("0"), Decimal("146000")
        )
        assert result.exchange_rate == Decimal("148.98")
        (draft,) = result.allocations
        assert draft.allocated_amount == Decimal("1000.00")
        assert draft.foreign_bank_charge == Decimal("20.00")
        assert draft.recieved_jpy == Decimal("146000.00")

    def test_manual_amounts_skip_fifo(self):
        invoices = _open("100", "50", "30")
        manual = {invoices[2].invoice_id: Decimal("30"), invoices[1].invoice_id: Decimal("20")}
        result = compute_allocation(
            invoices, Decimal("50"), Decimal("0"), Decimal("0"), Decimal("7500"), allocated_amounts=manual
        )
        assert [d.invoice_no for d in result.allocations] == ["INV-002", "INV-003"]
        assert result.total_received_jpy == Decimal("7500.00")

    def test_zero_manual_allocations_are_dropped(self):
        invoices = _open("100", "50")
        manual = {invoices[0].invoice_id: Decimal("0"), invoices[1].invoice_id: Decimal("50")}
        result = compute_allocation(
            invoices, Decimal("50"), Decimal("0"), Decimal("0"), Decimal("7500"), allocated_amounts=manual
        )
        assert [d.invoice_no for d in result.allocations] == ["INV-002"]


class TestValidation:
    def test_valid_allocation_has_no_errors(self):
        invoices = _open("100", "50", "30")
        result = compute_allocation(
            invoices, Decimal("120"), Decimal("5"), Decimal("200"), Decimal("17000")
        )
        assert allocation_errors(
            result, Decimal("120"), Decimal("17000"), Decimal("5"), Decimal("200"), invoices
        ) == []

    def test_over_allocation_is_rejected(self):
        invoices = _open("100")
        manual = {invoices[0].invoice_id: Decimal("120")}
        result = compute_allocation(
            invoices, Decimal("120"), Decimal("0"), Decimal("0"), Decimal("18000"), allocated_amounts=manual
        )
        errors = allocation_errors(
            result, Decimal("120"), Decimal("18000"), Decimal("0"), Decimal("0"), invoices
        )
        assert any("exceeds its balance" in e for e in errors)

    def test_sum_mismatch_is_rejected(self):
        invoices = _open("100", "50")
        manual = {invoices[0].invoice_id: Decimal("60")}
        result = compute_allocation(
            invoices, Decimal("100"), Decimal("0"), Decimal("0"), Decimal("15000"), allocated_amounts=manual
        )
        errors = allocation_errors(
            result, Decimal("100"), Decimal("15000"), Decimal("0"), Decimal("0"), invoices
        )
        assert any("must exactly match the payment amount" in e for e in errors)
        assert any("must exactly match the JPY amount" in e for e in errors)

    def test_payment_exceeding_open_balance_is_rejected(self):
        invoices = _open("100")
        result = compute_allocation(
            invoices, Decimal("150"), Decimal("0"), Decimal("0"), Decimal("22500")
        )
        with pytest.raises(ValidationError, match="must exactly match the payment amount"):
            validate_allocation(
                result, Decimal("150"), Decimal("22500"), Decimal("0"), Decimal("0"), invoices
            )

    def test_charges_need_a_charge_invoice_in_the_set(self):
        invoices = _open("100")
        result = compute_allocation(
            invoices,
            Decimal("100"),
            Decimal("10"),
            Decimal("0"),
            Decimal("13500"),
            charge_invoice_id=uuid4(),
        )
        errors = allocation_errors(
            result, Decimal("100"), Decimal("13500"), Decimal("10"), Decimal("0"), invoices
        )
        assert "Choose the invoice that absorbs the bank charges" in errors

    def test_charge_invoice_must_cover_foreign_charge(self):
        invoices = _open("100", "50")
        manual = {invoices[0].invoice_id: Decimal("5"), invoices[1].invoice_id: Decimal("50")}
        result = compute_allocation(
            invoices,
            Decimal("55"),
            Decimal("10"),
            Decimal("0"),
            Decimal("6750"),
            allocated_amounts=manual,
        )
        errors = allocation_errors(
            result, Decimal("55"), Decimal("6750"), Decimal("10"), Decimal("0"), invoices
        )
        assert any("at least the foreign bank charge" in e for e in errors)

    def test_empty_allocation_is_rejected(self):
        result = compute_allocation([], Decimal("100"), Decimal("0"), Decimal("0"), Decimal("15000"))
        with pytest.raises(ValidationError, match="Select at least one invoice"):
            validate_allocation(
                result, Decimal("100"), Decimal("15000"), Decimal("0"), Decimal("0"), []
            )
