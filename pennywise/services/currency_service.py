"""Supported currencies, formatting and each user's preferred display currency."""

from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional, Union
from sqlalchemy.orm import Session

from pennywise.config import settings
from pennywise.errors import ValidationError
from pennywise.models.user_profile import UserProfile, get_or_create_profile
from pennywise.services.expense_service import require_user


@dataclass(frozen=True)
class Currency:
    code: str
    name: str
    symbol: str


SUPPORTED_CURRENCIES: List[Currency] = [
    Currency(code="INR", name="Indian Rupee", symbol="₹"),
    Currency(code="USD", name="US Dollar", symbol="$"),
    Currency(code="EUR", name="Euro", symbol="€"),
    Currency(code="GBP", name="British Pound", symbol="£"),
    Currency(code="AED", name="UAE Dirham", symbol="د.إ"),
    Currency(code="SGD", name="Singapore Dollar", symbol="S$"),
    Currency(code="AUD", name="Australian Dollar", symbol="A$"),
    Currency(code="CAD", name="Canadian Dollar", symbol="C$"),
    Currency(code="JPY", name="Japanese Yen", symbol="¥"),
    Currency(code="CNY", name="Chinese Yuan", symbol="¥"),
]

_BY_CODE = {currency.code: currency for currency in SUPPORTED_CURRENCIES}


def get_currency(code: str) -> Optional[Currency]:
    return _BY_CODE.get((code or "").upper())


def get_symbol(code: str) -> str:
    currency = get_currency(code)
    return currency.symbol if currency else code


def format_amount(amount: Union[float, Decimal], code: str) -> str:
    """Format an amount with its currency symbol, e.g. '₹1,234.50'."""
    return f"{get_symbol(code)}{float(amount):,.2f}"


def get_preferred_currency(db: Session, user_id: Optional[str]) -> str:
    """A user's display currency, or the default when they never chose one."""
    user_id = require_user(user_id)
    profile = db.query(UserProfile).filter(UserProfile.user_id == user_id).first()
    if profile and profile.preferred_currency:
        return profile.preferred_currency
    return settings.default_currency


def set_preferred_currency(db: Session, user_id: Optional[str], code: str) -> str:
    user_id = require_user(user_id)
    currency = get_currency(code)
    if currency is None:
        raise ValidationError(f"Unsupported currency: {code}")

    profile = get_or_create_profile(db, user_id, default_currency=settings.default_currency)
    profile.preferred_currency = currency.code
    db.commit()
    return currency.code
