"""
Pydantic schemas package.
"""

from pennywise.schemas.recurring import (
    RecurringExpenseBase,
    RecurringExpenseCreate,
    RecurringExpenseResponse,
    RecurringExpenseList,
    ProcessDueResponse,
)
from pennywise.schemas.expense import (
    ExpenseCreate,
    ExpenseResponse,
    DisplayExpenseResponse,
    ExpenseListResponse,
)
from pennywise.schemas.currency import (
    RatesResponse,
    RefreshResponse,
    ConversionResponse,
    RateChangeResponse,
    CurrencyInfo,
    SupportedCurrenciesResponse,
    PreferenceResponse,
    PreferenceUpdate,
)

__all__ = [
    "RecurringExpenseBase",
    "RecurringExpenseCreate",
    "RecurringExpenseResponse",
    "RecurringExpenseList",
    "ProcessDueResponse",
    "ExpenseCreate",
    "ExpenseResponse",
    "DisplayExpenseResponse",
    "ExpenseListResponse",
    "RatesResponse",
    "RefreshResponse",
    "ConversionResponse",
    "RateChangeResponse",
    "CurrencyInfo",
    "SupportedCurrenciesResponse",
    "PreferenceResponse",
    "PreferenceUpdate",
]
