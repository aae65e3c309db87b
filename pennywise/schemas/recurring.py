"""Pydantic schemas for recurring expenses."""

from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import date, datetime
from decimal import Decimal

from pennywise.models.recurring import Frequency


class RecurringExpenseBase(BaseModel):
    amount: Decimal
    currency: str = "INR"
    category_id: Optional[str] = None
    description: Optional[str] = None
    frequency: Frequency


class RecurringExpenseCreate(RecurringExpenseBase):
    start_date: date = Field(default_factory=date.today)
    end_date: Optional[date] = None


class RecurringExpenseResponse(RecurringExpenseBase):
    id: str
    user_id: str
    start_date: date
    end_date: Optional[date] = None
    last_executed_at: Optional[datetime] = None
    next_execution_date: date
    is_active: bool
    created_at: datetime

    # Computed field added by API
    frequency_display: Optional[str] = None

    class Config:
        from_attributes = True


class RecurringExpenseList(BaseModel):
    items: List[RecurringExpenseResponse]
    total: int


class ProcessDueResponse(BaseModel):
    """Result of one processing pass."""
    processed: int
    as_of: date
