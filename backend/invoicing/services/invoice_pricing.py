"""Invoice line pricing.

Each line carries a JPY cost. A markup (percent or fixed yen) turns it into a
JPY unit price, which is converted to the invoice currency at the invoice's
exchange rate. The rate is quoted as units of invoice currency per 1 JPY, so
JPY invoices use a rate of 1.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from decimal import Decimal
from uuid import uuid4

from invoicing.core.errors import ValidationError
from invoicing.core.money import ZERO, clamp_non_negative, round2, round4, to_decimal
from invoicing.models.invoice import MarkupMode
from invoicing.schemas.invoice import (
    InvoiceItem,
    InvoiceItemGroup,
    InvoiceItemGroupInput,
    InvoiceItemInput,
)

UNNAMED_GROUP = "Unnamed Group"


@dataclass
class PricedInvoice:
    item_groups: list[InvoiceItemGroup] = field(default_factory=list)
    total_amount: Decimal = ZERO
    total_cost: Decimal = ZERO
    total_jpy: Decimal = ZERO
    total_profit_jpy: Decimal = ZERO

    @property
    def item_count(self) -> int:
        return sum(len(group.items) for group in self.item_groups)


def unit_price_jpy(cost: Decimal, markup_mode: MarkupMode, markup_value: Decimal) -> Decimal:
    if markup_mode == MarkupMode.FIXED:
        return round2(cost + markup_value)
    return round2(cost * (1 + markup_value / 100))


def _sort_key(item: InvoiceItemInput) -> int:
    return item.line_no if item.line_no is not None else 2**31


def price_item(
    item: InvoiceItemInput,
    line_no: int,
    markup_mode: MarkupMode,
    markup_value: Decimal,
    exchange_rate: Decimal,
) -> InvoiceItem:
    """Price one line.

    A line-level markup overrides the invoice markup and is the only markup
    stored on the line, so a later change to the invoice markup reprices
    lines that do not override it.
    """
    cost = clamp_non_negative(round2(item.cost))
    quantity = clamp_non_negative(round2(item.quantity))
    line_mode = item.markup_mode or markup_mode
    line_value = clamp_non_negative(
        round2(item.markup_value if item.markup_value is not None else markup_value)
    )
    jpy_price = unit_price_jpy(cost, line_mode, line_value)
    unit_price = round2(jpy_price * exchange_rate)
    return InvoiceItem(
        line_no=item.line_no if item.line_no is not None else line_no,
        items_catalog_id=item.items_catalog_id,
        item_name=item.item_name.strip(),
        description=(item.description or "").strip(),
        part_no=(item.part_no or "").strip(),
        item_code=(item.item_code or "").strip(),
        cost=cost,
        quantity=quantity,
        markup_mode=item.markup_mode,
        markup_value=line_value if item.markup_value is not None else None,
        unit_price_jpy=jpy_price,
        unit_price=unit_price,
        total_price=round2(unit_price * quantity),
    )


def price_invoice(
    item_groups: Sequence[InvoiceItemGroupInput],
    markup_mode: MarkupMode,
    markup_value: Decimal,
    exchange_rate: Decimal,
) -> PricedInvoice:
    """Price every line and compute invoice totals.

    Lines with a blank name are dropped. Negative costs, quantities and markups
    count as zero. Lines keep their position by ``line_no``; unnumbered lines
    are numbered by position and sorted last.

    Raises:
        ValidationError: If a named line has no cost.
    """
    rate = clamp_non_negative(round4(exchange_rate))
    invoice_markup = clamp_non_negative(round2(markup_value))

    priced_groups: list[InvoiceItemGroup] = []
    for group in item_groups:
        named = [item for item in group.items if item.item_name.strip()]
        for item in named:
            if item.cost is None:
                raise ValidationError(
                    f"Cost is required for invoice item '{item.item_name.strip()}'"
                )
        ordered = sorted(named, key=_sort_key)
        priced_groups.append(
            InvoiceItemGroup(
                id=group.id or f"grp-{uuid4().hex[:12]}",
                name=group.name.strip() or UNNAMED_GROUP,
                is_show=group.is_show,
                items=[
                    price_item(item, index, markup_mode, invoice_markup, rate)
                    for index, item in enumerate(ordered, start=1)
                ],
            )
        )

    items = [item for group in priced_groups for item in group.items]
    total_amount = round2(sum((item.total_price for item in items), ZERO))
    total_cost = round2(sum((item.cost * item.quantity for item in items), ZERO))
    total_jpy = round2(total_amount / rate) if rate > 0 else round2(ZERO)

    return PricedInvoice(
        item_groups=priced_groups,
        total_amount=total_amount,
        total_cost=total_cost,
        total_jpy=total_jpy,
        total_profit_jpy=round2(total_jpy - total_cost),
    )


def default_markup_value(markup_mode: MarkupMode, default_percent: Decimal) -> Decimal:
    """Markup applied when the invoice does not specify one."""
    if markup_mode == MarkupMode.PERCENT:
        return to_decimal(default_percent)
    return ZERO
