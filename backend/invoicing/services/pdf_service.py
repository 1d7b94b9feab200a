"""PDF generation service for invoices."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from html import escape
from string import Template
from typing import TYPE_CHECKING, Any

from invoicing.core.dates import to_local_date

if TYPE_CHECKING:
    from invoicing.models.customer import Customer
    from invoicing.models.invoice import Invoice
    from invoicing.models.invoice_settings import InvoiceSettings

# Rows the last page can hold before totals and bank details move to a page of their own
FOOTER_ROW_LIMIT = 19
FOOTER_ROW_LIMIT_WITH_TERMS = 16

_PAGE_TEMPLATE = Template("""\
<section class="page${page_break}">
<div class="header">
  <div class="header-left">
    ${logo}
    <h1>${company_name}</h1>
    <p>${company_address}</p>
  </div>
  <div class="header-right" style="text-align: right;">
    <h1>INVOICE</h1>
    <p>Page ${page_no} of ${page_count}</p>
  </div>
</div>
<table class="meta">
  <tr><td><strong>Invoice #:</strong></td><td>${invoice_no}</td></tr>
  <tr><td><strong>Date:</strong></td><td>${invoice_date}</td></tr>
  <tr><td><strong>Currency:</strong></td><td>${currency}</td></tr>
  <tr><td><strong>Bill To:</strong></td><td>${customer_name}<br>${customer_address}</td></tr>
</table>
<table class="items">
  <thead>
    <tr>
      <th>No.</th>
      <th>Item</th>
      <th>Part No.</th>
      <th class="right">Qty</th>
      <th class="right">Unit Price</th>
      <th class="right">Amount</th>
    </tr>
  </thead>
  <tbody>
    ${rows}
  </tbody>
</table>
${footer}
</section>
""")

_DOCUMENT_TEMPLATE = Template("""\
<!DOCTYPE html>
<html>
<head>
<title>${title}</title>
<style>
  @page { size: A4; margin: 20mm 15mm; }
  body { font-family: Helvetica, Arial, sans-serif; font-size: 11px; color: #333; }
  h1 { font-size: 20px; margin-bottom: 4px; }
  .page-break { page-break-after: always; }
  .header { display: flex; justify-content: space-between; margin-bottom: 20px; }
  .header-left, .header-right { width: 48%; }
  .logo { max-height: 48px; }
  .meta td { padding: 2px 8px 2px 0; vertical-align: top; }
  table.items { width: 100%; border-collapse: collapse; margin: 16px 0; }
  table.items th { text-align: left; border-bottom: 2px solid #333; padding: 4px 6px; }
  table.items td { padding: 4px 6px; border-bottom: 1px solid #ddd; }
  table.items .right { text-align: right; }
  table.items .group td { font-weight: bold; background: #f1f3f4; }
  .totals { width: 300px; margin-left: auto; }
  .totals td { padding: 4px 8px; }
  .totals .total-row { font-weight: bold; border-top: 2px solid #333; }
  .bank, .terms, .remarks, .signature { margin-top: 16px; }
</style>
</head>
<body>
${pages}
</body>
</html>
""")

_ITEM_ROW_TEMPLATE = Template(
    '<tr><td>${line_no}</td><td>${item_name}<br><small>${description}</small></td>'
    '<td>${part_no}</td><td class="right">${quantity}</td>'
    '<td class="right">${unit_price}</td><td class="right">${amount}</td></tr>'
)

_GROUP_ROW_TEMPLATE = Template('<tr class="group"><td colspan="6">${name}</td></tr>')

_FOOTER_TEMPLATE = Template("""\
<table class="totals">
  <tr class="total-row"><td>Total (${currency}):</td><td class="right">${total}</td></tr>
</table>
<div class="bank">${bank}</div>
<div class="terms">${terms}</div>
<div class="remarks">${remarks}</div>
<div class="signature">${signatory_name}<br>${signatory_title}</div>
<p>${footer_notes}</p>
""")


@dataclass
class GroupChunk:
    """The part of one item group that lands on one page."""

    id: str
    name: str
    is_show: bool
    items: list[dict[str, Any]] = field(default_factory=list)


def _line_no(item: dict[str, Any]) -> int:
    value = item.get("line_no")
    return int(value) if value is not None else 2**31


def paginate_item_groups(
    item_groups: list[dict[str, Any]] | None, items_per_page: int
) -> list[list[GroupChunk]]:
    """Split item groups into pages of at most ``items_per_page`` rows.

    A visible group header takes a row of its own when a page holds more
    than one row. A group that does not fit is continued on the next page
    with its header repeated. There is always at least one page.
    """
    items_per_page = max(1, int(items_per_page))
    pages: list[list[GroupChunk]] = []
    current_page: list[GroupChunk] = []
    current_count = 0

    for group in item_groups or []:
        is_show = bool(group.get("is_show", True))
        header_rows = 1 if is_show and items_per_page > 1 else 0
        chunk = GroupChunk(
            id=str(group.get("id", "")), name=str(group.get("name", "")), is_show=is_show
        )
        header_reserved = False

        for item in sorted(group.get("items") or [], key=_line_no):
            if not header_reserved and header_rows:
                if current_count + header_rows > items_per_page:
                    if chunk.items:
                        current_page.append(chunk)
                        chunk = GroupChunk(id=chunk.id, name=chunk.name, is_show=is_show)
                    pages.append(current_page)
                    current_page = []
                    current_count = 0
                current_count += header_rows
                header_reserved = True

            if current_count + 1 > items_per_page:
                if chunk.items:
                    current_page.append(chunk)
                    chunk = GroupChunk(id=chunk.id, name=chunk.name, is_show=is_show)
                pages.append(current_page)
                current_page = []
                current_count = header_rows
                header_reserved = bool(header_rows)

            chunk.items.append(item)
            current_count += 1

        if chunk.items:
            current_page.append(chunk)

    if current_page:
        pages.append(current_page)
    if not pages:
        pages.append([])
    return pages


def page_row_usage(page: list[GroupChunk]) -> int:
    return sum((1 if chunk.is_show else 0) + len(chunk.items) for chunk in page)


def needs_footer_page(last_page: list[GroupChunk], payment_terms: str) -> bool:
    """Return True when the totals and bank details do not fit under the last page's rows."""
    limit = FOOTER_ROW_LIMIT_WITH_TERMS if payment_terms.strip() else FOOTER_ROW_LIMIT
    return page_row_usage(last_page) > limit


def _format_amount(value: object) -> str:
    """Format a monetary amount to two decimal places with thousands separators."""
    if value is None:
        return "0.00"
    return f"{Decimal(str(value)):,.2f}"


def _format_quantity(value: object) -> str:
    if value is None:
        return "0"
    return f"{Decimal(str(value)).normalize():f}"


def _lines(value: object) -> str:
    return escape(str(value or "")).replace("\n", "<br>")


def _bank_block(bank_account: dict[str, Any] | None) -> str:
    if not bank_account:
        return ""
    labels = (
        ("bank_name", "Bank"),
        ("branch_name", "Branch"),
        ("account_name", "Account Name"),
        ("account_number", "Account No."),
        ("swift_code", "SWIFT"),
    )
    parts = [
        f"<strong>{label}:</strong> {escape(str(bank_account[key]))}"
        for key, label in labels
        if bank_account.get(key)
    ]
    return "<br>".join(parts)


class PdfService:
    """Service for generating PDF documents."""

    def render_invoice_html(
        self,
        invoice: Invoice,
        customer: Customer | None = None,
        invoice_settings: InvoiceSettings | None = None,
    ) -> str:
        """Render the invoice as paginated HTML."""
        items_per_page = int(invoice.items_per_page or 20)
        pages = paginate_item_groups(invoice.item_groups, items_per_page)  # type: ignore[arg-type]
        payment_terms = str(invoice_settings.bank_notes or "") if invoice_settings else ""
        if needs_footer_page(pages[-1], payment_terms):
            pages.append([])

        footer = _FOOTER_TEMPLATE.substitute(
            currency=escape(str(invoice.currency)),
            total=_format_amount(invoice.total_amount),
            bank=_bank_block(invoice.bank_account),  # type: ignore[arg-type]
            terms=_lines(payment_terms),
            remarks=_lines(invoice.remarks),
            signatory_name=escape(str(getattr(invoice_settings, "signatory_name", "") or "")),
            signatory_title=escape(str(getattr(invoice_settings, "signatory_title", "") or "")),
            footer_notes=_lines(getattr(invoice_settings, "footer_notes", "")),
        )
        logo_url = getattr(invoice_settings, "logo_url", None)
        logo = f'<img class="logo" src="{escape(str(logo_url))}">' if logo_url else ""

        rendered_pages = []
        for index, page in enumerate(pages):
            is_last = index == len(pages) - 1
            rows: list[str] = []
            for chunk in page:
                if chunk.is_show:
                    rows.append(_GROUP_ROW_TEMPLATE.substitute(name=escape(chunk.name)))
                rows.extend(
                    _ITEM_ROW_TEMPLATE.substitute(
                        line_no=escape(str(item.get("line_no", ""))),
                        item_name=escape(str(item.get("item_name", ""))),
                        description=escape(str(item.get("description") or "")),
                        part_no=escape(str(item.get("part_no") or "")),
                        quantity=_format_quantity(item.get("quantity")),
                        unit_price=_format_amount(item.get("unit_price")),
                        amount=_format_amount(item.get("total_price")),
                    )
                    for item in chunk.items
                )
            rendered_pages.append(
                _PAGE_TEMPLATE.substitute(
                    page_break="" if is_last else " page-break",
                    logo=logo,
                    company_name=escape(str(getattr(invoice_settings, "company_name", "") or "")),
                    company_address=_lines(getattr(invoice_settings, "company_address", "")),
                    page_no=index + 1,
                    page_count=len(pages),
                    invoice_no=escape(str(invoice.invoice_no)),
                    invoice_date=to_local_date(invoice.date).isoformat(),  # type: ignore[arg-type]
                    currency=escape(str(invoice.currency)),
                    customer_name=escape(str(invoice.customer_name or "")),
                    customer_address=_lines(customer.address if customer else ""),
                    rows="\n    ".join(rows),
                    footer=footer if is_last else "",
                )
            )

        return _DOCUMENT_TEMPLATE.substitute(
            title=escape(str(invoice.invoice_no)),
            pages="\n".join(rendered_pages),
        )

    def generate_invoice_pdf(
        self,
        invoice: Invoice,
        customer: Customer | None = None,
        invoice_settings: InvoiceSettings | None = None,
    ) -> bytes:
        """Generate a PDF for an invoice.

        Args:
            invoice: The invoice to render; ``items_per_page`` controls pagination.
            customer: The customer billed, for the billing address.
            invoice_settings: Company, bank and signature details.

        Returns:
            Raw PDF bytes.
        """
        html = self.render_invoice_html(invoice, customer, invoice_settings)

        import weasyprint

        pdf_bytes: bytes = weasyprint.HTML(string=html).write_pdf()
        return pdf_bytes
