"""Idempotency support for payment creation.

A client that times out while recording a payment can resend the request
with the same ``Idempotency-Key`` header. If the first attempt completed, the
cached response is replayed instead of allocating the payment twice.
Only successful responses are recorded; a conflict or validation failure
leaves the key open so the client can resubmit with fresh numbers.
"""

from dataclasses import dataclass
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from invoicing.repositories.idempotency_repository import IdempotencyRepository


@dataclass
class IdempotencyResult:
    """Holds pending idempotency key info for later recording."""

    key: str
    method: str
    path: str


def check_idempotency(request: Request, db: Session) -> JSONResponse | IdempotencyResult | None:
    """Check the ``Idempotency-Key`` header for a cached response.

    Returns:
        - ``None`` if no ``Idempotency-Key`` header is present.
        - A ``JSONResponse`` with the cached response and ``Idempotency-Replayed: true``
          header if a completed record already exists.
        - An ``IdempotencyResult`` to record once the request succeeds.
    """
    key = request.headers.get("Idempotency-Key")
    if not key:
        return None

    repo = IdempotencyRepository(db)
    existing = repo.get_by_key(key)

    if existing is not None and existing.response_status is not None:
        response = JSONResponse(
            content=existing.response_body,
            status_code=int(existing.response_status),
        )
        response.headers["Idempotency-Replayed"] = "true"
        return response

    return IdempotencyResult(key=key, method=request.method, path=request.url.path)


def record_idempotency_response(
    db: Session,
    pending: IdempotencyResult,
    status: int,
    body: dict[str, Any],
) -> None:
    """Persist the endpoint response so subsequent calls return the cached result."""
    repo = IdempotencyRepository(db)
    record = repo.get_by_key(pending.key)
    if record is None:
        repo.create(
            idempotency_key=pending.key,
            request_method=pending.method,
            request_path=pending.path,
            response_status=status,
            response_body=body,
        )
    else:
        repo.update_response(record, status, body)
