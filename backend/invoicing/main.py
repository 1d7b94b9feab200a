import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from invoicing.core.config import settings
from invoicing.routers import (
    catalog_items,
    currencies,
    customers,
    exchange_rates,
    invoice_settings,
    invoices,
    payments,
    reconciliation,
)

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

OPENAPI_TAGS = [
    {"name": "Customers", "description": "Create, read, update, and delete customers."},
    {"name": "Currencies", "description": "Per-currency ledger totals."},
    {"name": "Invoices", "description": "Price, issue and edit invoices; download PDFs."},
    {"name": "Payments", "description": "Preview, record and reverse customer payments."},
    {"name": "Catalog", "description": "Reusable invoice line items."},
    {"name": "Exchange Rates", "description": "Market rate lookup against JPY."},
    {"name": "Settings", "description": "Company and bank details printed on invoices."},
    {"name": "Reconciliation", "description": "Consistency check of stored totals."},
]

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.version,
    description=(
        "Invoicing and payment reconciliation API for an export trading business. "
        "Invoices are priced from JPY costs, payments are allocated oldest-first "
        "with bank charges and realized JPY tracked per invoice."
    ),
    openapi_tags=OPENAPI_TAGS,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Idempotency-Replayed"],
)

app.include_router(customers.router, prefix="/v1/customers", tags=["Customers"])
app.include_router(currencies.router, prefix="/v1/currencies", tags=["Currencies"])
app.include_router(invoices.router, prefix="/v1/invoices", tags=["Invoices"])
app.include_router(payments.router, prefix="/v1/payments", tags=["Payments"])
app.include_router(catalog_items.router, prefix="/v1/catalog_items", tags=["Catalog"])
app.include_router(
    exchange_rates.router,
    prefix="/v1/exchange_rates",
    tags=["Exchange Rates"],
)
app.include_router(
    invoice_settings.router,
    prefix="/v1/invoice_settings",
    tags=["Settings"],
)
app.include_router(
    reconciliation.router,
    prefix="/v1/reconciliation",
    tags=["Reconciliation"],
)


@app.get("/")
async def root() -> dict[str, str]:
    return {
        "app": settings.APP_NAME,
        "version": settings.version,
        "status": "running",
    }
