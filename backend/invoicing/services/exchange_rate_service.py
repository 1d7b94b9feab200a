"""Market exchange rate lookup.

Rates are quoted against JPY: the number of units of the target currency
bought by 1 JPY on a given day. The lookup is best-effort; callers fall back
to a manually entered rate when it returns ``None``.
"""

import logging
from datetime import date
from decimal import Decimal, InvalidOperation

import httpx

from invoicing.core.config import settings
from invoicing.core.money import round4, to_decimal

logger = logging.getLogger(__name__)


class ExchangeRateService:
    """Fetches JPY-based rates from a Frankfurter-compatible API."""

    def __init__(self, base_url: str | None = None, timeout: float | None = None):
        self.base_url = (base_url or settings.RATE_API_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.RATE_API_TIMEOUT

    def fetch_rate(self, currency: str, on_date: date | None = None) -> Decimal | None:
        """Return units of ``currency`` per 1 JPY, rounded to 4 places.

        Args:
            currency: ISO currency code.
            on_date: Day to quote; the latest published rate when omitted.

        Returns:
            The rate, ``1`` for the base currency, or ``None`` when the service
            is unreachable, errors, or has no positive rate for the pair.
        """
        code = currency.upper()
        if code == settings.BASE_CURRENCY.upper():
            return Decimal("1")

        path = on_date.isoformat() if on_date else "latest"
        url = f"{self.base_url}/{path}"
        params = {"from": settings.BASE_CURRENCY.upper(), "to": code}

        try:
            with httpx.Client(timeout=self.timeout) as client:
                resp = client.get(url, params=params)
            resp.raise_for_status()
            raw_rate = resp.json().get("rates", {}).get(code)
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Exchange rate lookup failed for %s on %s: %s", code, path, exc)
            return None

        if raw_rate is None:
            logger.warning("Exchange rate for %s on %s not available", code, path)
            return None

        try:
            rate = round4(to_decimal(raw_rate))
        except InvalidOperation:
            logger.warning("Exchange rate for %s on %s is not a number: %r", code, path, raw_rate)
            return None

        if rate <= 0:
            logger.warning("Exchange rate for %s on %s rounds to zero", code, path)
            return None
        return rate
