import datetime as dt
from decimal import Decimal

from pydantic import BaseModel


class ExchangeRateResponse(BaseModel):
    """Market rate quoted as units of ``currency`` per 1 JPY."""

    currency: str
    date: dt.date | None = None
    rate: Decimal | None = None
    available: bool
