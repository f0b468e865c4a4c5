"""
Currency API Endpoints
Fiat exchange rates for local-currency display
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Query

from src.services.currency_service import CurrencyService, get_currency_service
from src.services.schemas import ExchangeRates


router = APIRouter(prefix="/currency", tags=["currency"])


@router.get("/rates", response_model=ExchangeRates)
async def get_rates(
    service: CurrencyService = Depends(get_currency_service),
) -> ExchangeRates:
    return await service.get_exchange_rates()


@router.get("/convert")
async def convert(
    amount: float = Query(...),
    from_currency: str = Query("USD", alias="from", min_length=3, max_length=3),
    to_currency: str = Query("USD", alias="to", min_length=3, max_length=3),
    service: CurrencyService = Depends(get_currency_service),
) -> Dict[str, Any]:
    """
    Convert an amount between fiat currencies

    Unknown currencies return the original amount.
    """
    converted = await service.convert_currency(amount, from_currency, to_currency)
    return {
        "amount": amount,
        "from": from_currency.upper(),
        "to": to_currency.upper(),
        "result": converted,
    }
