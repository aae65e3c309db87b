"""Service for expense rows, used by the API and by the recurrence engine."""

from typing import List, Optional
from datetime import date
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from sqlalchemy.orm import Session
import uuid

from pennywise.errors import NotAuthenticatedError, ValidationError
from pennywise.models.expense import Expense

CENTS = Decimal("0.01")


def require_user(user_id: Optional[str]) -> str:
    """Return the user id or raise if there is no active user."""
    if not user_id:
        raise NotAuthenticatedError("User not authenticated")
    return user_id


def validate_amount(amount) -> Decimal:
    """
    Return amount at the stored two-decimal scale.

    Rounding happens before the sign check so nothing that would be
    stored as 0.00 gets through.
    """
    try:
        amount = Decimal(str(amount))
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError("Amount must be a number.")
    if not amount.is_finite():
        raise ValidationError("Amount must be a finite number.")

    try:
        amount = amount.quantize(CENTS, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValidationError("Amount is too large.")

    if amount <= 0:
        raise ValidationError("Amount must be positive.")
    return amount


def validate_currency(currency: Optional[str]) -> str:
    """Return the upper-cased three-letter currency code."""
    if not currency or len(currency) != 3 or not currency.isalpha():
        raise ValidationError("Currency must be a three-letter code.")
    return currency.upper()


def build_expense(
    user_id: str,
    amount: Decimal,
    currency: str,
    description: Optional[str] = None,
    category_id: Optional[str] = None,
    expense_date: Optional[date] = None,
    recurring_expense_id: Optional[str] = None,
) -> Expense:
    """Build an expense row without adding it to a session."""
    return Expense(
        id=str(uuid.uuid4()),
        user_id=user_id,
        amount=amount,
        currency=currency,
        description=description,
        category_id=category_id,
        expense_date=expense_date or date.today(),
        recurring_expense_id=recurring_expense_id,
    )


def add_expense(
    db: Session,
    user_id: Optional[str],
    amount: Decimal,
    currency: str,
    description: Optional[str] = None,
    category_id: Optional[str] = None,
    expense_date: Optional[date] = None,
) -> Expense:
    """Add a manually entered expense."""
    user_id = require_user(user_id)
    amount = validate_amount(amount)
    currency = validate_currency(currency)

    expense = build_expense(
        user_id=user_id,
        amount=amount,
        currency=currency,
        description=description,
        category_id=category_id,
        expense_date=expense_date,
    )
    db.add(expense)
    db.commit()
    db.refresh(expense)
    return expense


def get_expenses(
    db: Session,
    user_id: Optional[str],
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> List[Expense]:
    """Get a user's expenses, newest first."""
    user_id = require_user(user_id)

    query = db.query(Expense).filter(Expense.user_id == user_id)
    if start_date:
        query = query.filter(Expense.expense_date >= start_date)
    if end_date:
        query = query.filter(Expense.expense_date <= end_date)

    return query.order_by(Expense.expense_date.desc(), Expense.created_at.desc()).all()
