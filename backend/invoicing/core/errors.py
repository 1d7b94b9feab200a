"""Error taxonomy shared by services and routers.

Every error derives from ``ValueError`` so callers that only distinguish
"bad request" from success keep working. Routers map each class to an HTTP
status via ``STATUS_CODES``.
"""


class InvoicingError(ValueError):
    """Base class for all business-rule failures."""


class ValidationError(InvoicingError):
    """User-correctable input problem. Raised before anything is written."""


class NotFoundError(InvoicingError):
    """A referenced invoice, payment, currency or customer does not exist."""


class ConflictError(InvoicingError):
    """A concurrent write touched the same rows; recompute and resubmit."""


class PreconditionError(InvoicingError):
    """The operation is not allowed in the entity's current state."""


STATUS_CODES: dict[type[InvoicingError], int] = {
    ValidationError: 400,
    NotFoundError: 404,
    ConflictError: 409,
    PreconditionError: 409,
}


def status_code_for(exc: InvoicingError) -> int:
    """Return the HTTP status code for an invoicing error."""
    for error_type, status in STATUS_CODES.items():
        if isinstance(exc, error_type):
            return status
    return 400
