from pydantic import BaseModel
from typing import Optional, Dict, List
from datetime import datetime


class RatesResponse(BaseModel):
    base_currency: str
    rates: Dict[str, float]
    previous_rates: Dict[str, float]
    fetched_at: Optional[datetime] = None
    is_stale: bool
    source: str


class RefreshResponse(RatesResponse):
    refreshed: bool


class ConversionResponse(BaseModel):
    amount: float
    from_currency: str
    to_currency: str
    converted_amount: float
    rate: float
    formatted: str


class RateChangeResponse(BaseModel):
    currency: str
    rate: float
    change_percent: Optional[float] = None


class CurrencyInfo(BaseModel):
    code: str
    name: str
    symbol: str


class SupportedCurrenciesResponse(BaseModel):
    base_currency: str
    currencies: List[CurrencyInfo]


class PreferenceResponse(BaseModel):
    preferred_currency: str


class PreferenceUpdate(BaseModel):
    preferred_currency: str
