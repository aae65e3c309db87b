"""API endpoints for exchange rates, conversion and currency preference."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from pennywise.dependencies import get_db, get_current_user_id, get_rate_service
from pennywise.schemas.currency import (
    ConversionResponse,
    CurrencyInfo,
    PreferenceResponse,
    PreferenceUpdate,
    RateChangeResponse,
    RatesResponse,
    RefreshResponse,
    SupportedCurrenciesResponse,
)
from pennywise.services import currency_service
from pennywise.services.exchange_rate_service import ExchangeRateService

router = APIRouter(prefix="/currency", tags=["currency"])


@router.get("/rates", response_model=RatesResponse)
def get_rates(rate_service: ExchangeRateService = Depends(get_rate_service)):
    """Current rates relative to the base currency."""
    return RatesResponse(**rate_service.snapshot())


@router.post("/rates/refresh", response_model=RefreshResponse)
async def refresh_rates(
    force: bool = Query(False),
    rate_service: ExchangeRateService = Depends(get_rate_service)
):
    """Fetch today's rates. Never fails: on source errors the previous tier stays in use."""
    refreshed = await rate_service.refresh_rates(force=force)
    return RefreshResponse(refreshed=refreshed, **rate_service.snapshot())


@router.get("/convert", response_model=ConversionResponse)
def convert(
    amount: float = Query(...),
    from_currency: str = Query(..., min_length=1, max_length=8),
    to_currency: str = Query(..., min_length=1, max_length=8),
    rate_service: ExchangeRateService = Depends(get_rate_service)
):
    converted = rate_service.convert(amount, from_currency, to_currency)
    return ConversionResponse(
        amount=amount,
        from_currency=from_currency.upper(),
        to_currency=to_currency.upper(),
        converted_amount=converted,
        rate=rate_service.convert(1, from_currency, to_currency),
        formatted=currency_service.format_amount(converted, to_currency),
    )


@router.get("/rates/{currency}/change", response_model=RateChangeResponse)
def get_rate_change(
    currency: str,
    rate_service: ExchangeRateService = Depends(get_rate_service)
):
    """Day-over-day movement of one currency against the base."""
    return RateChangeResponse(
        currency=currency.upper(),
        rate=rate_service.get_rate(currency),
        change_percent=rate_service.rate_change(currency),
    )


@router.get("/supported", response_model=SupportedCurrenciesResponse)
def get_supported_currencies(rate_service: ExchangeRateService = Depends(get_rate_service)):
    return SupportedCurrenciesResponse(
        base_currency=rate_service.base_currency,
        currencies=[
            CurrencyInfo(code=c.code, name=c.name, symbol=c.symbol)
            for c in currency_service.SUPPORTED_CURRENCIES
        ],
    )


@router.get("/preference", response_model=PreferenceResponse)
def get_preference(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    return PreferenceResponse(
        preferred_currency=currency_service.get_preferred_currency(db, user_id)
    )


@router.put("/preference", response_model=PreferenceResponse)
def update_preference(
    update: PreferenceUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    code = currency_service.set_preferred_currency(db, user_id, update.preferred_currency)
    return PreferenceResponse(preferred_currency=code)
