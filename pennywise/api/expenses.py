"""
Expense API endpoints.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Optional
from datetime import date

from pennywise.dependencies import get_db, get_current_user_id, get_rate_service
from pennywise.schemas.expense import (
    DisplayExpenseResponse,
    ExpenseCreate,
    ExpenseListResponse,
    ExpenseResponse,
)
from pennywise.services import currency_service, expense_service
from pennywise.services.exchange_rate_service import ExchangeRateService

router = APIRouter(prefix="/expenses", tags=["expenses"])


@router.get("", response_model=ExpenseListResponse)
def list_expenses(
    display_currency: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
    rate_service: ExchangeRateService = Depends(get_rate_service)
):
    """List expenses with amounts shown in the display currency (default: the user's preference)."""
    target = (display_currency or currency_service.get_preferred_currency(db, user_id)).upper()
    expenses = expense_service.get_expenses(db, user_id, start_date, end_date)

    rows = rate_service.convert_expenses(
        [ExpenseResponse.model_validate(e).model_dump() for e in expenses],
        target
    )
    items = [
        DisplayExpenseResponse(
            **row,
            formatted_amount=currency_service.format_amount(row["converted_amount"], target)
        )
        for row in rows
    ]

    return ExpenseListResponse(items=items, total=len(items), display_currency=target)


@router.post("", response_model=ExpenseResponse, status_code=201)
def create_expense(
    data: ExpenseCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """Add an expense."""
    expense = expense_service.add_expense(
        db,
        user_id,
        amount=data.amount,
        currency=data.currency,
        description=data.description,
        category_id=data.category_id,
        expense_date=data.expense_date,
    )
    return ExpenseResponse.model_validate(expense)
