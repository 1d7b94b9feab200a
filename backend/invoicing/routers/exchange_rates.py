from datetime import date

from fastapi import APIRouter, Query

from invoicing.schemas.exchange_rate import ExchangeRateResponse
from invoicing.services.exchange_rate_service import ExchangeRateService

router = APIRouter()


@router.get(
    "/{currency}",
    response_model=ExchangeRateResponse,
    summary="Look up market exchange rate",
)
async def get_exchange_rate(
    currency: str,
    on_date: date | None = Query(default=None, alias="date"),
) -> ExchangeRateResponse:
    """Return units of ``currency`` per 1 JPY for a day.

    ``available`` is false when the rate service has no usable rate; the
    invoice form then asks for a manual rate.
    """
    rate = ExchangeRateService().fetch_rate(currency, on_date)
    return ExchangeRateResponse(
        currency=currency.upper(),
        date=on_date,
        rate=rate,
        available=rate is not None,
    )
