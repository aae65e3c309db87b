"""
Expense schemas.
"""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import date, datetime
from decimal import Decimal


class ExpenseCreate(BaseModel):
    amount: Decimal
    currency: str = "INR"
    category_id: Optional[str] = None
    description: Optional[str] = None
    expense_date: date = Field(default_factory=date.today)


class ExpenseResponse(BaseModel):
    id: str
    amount: Decimal
    currency: str
    category_id: Optional[str]
    description: Optional[str]
    expense_date: date
    recurring_expense_id: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


class DisplayExpenseResponse(ExpenseResponse):
    """Expense with its amount converted to the display currency."""
    original_amount: Decimal
    original_currency: str
    converted_amount: float
    display_currency: str
    formatted_amount: str


class ExpenseListResponse(BaseModel):
    items: list[DisplayExpenseResponse]
    total: int
    display_currency: str
