from invoicing.models.catalog_item import CatalogItem
from invoicing.models.currency import CurrencyLedger
from invoicing.models.customer import Customer
from invoicing.models.idempotency_record import IdempotencyRecord
from invoicing.models.invoice import DocumentSource, Invoice, InvoiceStatus, MarkupMode
from invoicing.models.invoice_settings import InvoiceSettings
from invoicing.models.payment import Payment
from invoicing.models.payment_allocation import PaymentAllocation

__all__ = [
    "CatalogItem",
    "CurrencyLedger",
    "Customer",
    "DocumentSource",
    "IdempotencyRecord",
    "Invoice",
    "InvoiceSettings",
    "InvoiceStatus",
    "MarkupMode",
    "Payment",
    "PaymentAllocation",
]
