"""API endpoints for recurring expense management."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date

from pennywise.dependencies import get_db, get_current_user_id
from pennywise.models.recurring import RecurringExpense
from pennywise.schemas.expense import ExpenseResponse
from pennywise.schemas.recurring import (
    RecurringExpenseCreate,
    RecurringExpenseResponse,
    RecurringExpenseList,
    ProcessDueResponse,
)
from pennywise.services import recurring_service

router = APIRouter(prefix="/recurring", tags=["recurring"])


def _to_response(recurring: RecurringExpense) -> RecurringExpenseResponse:
    response = RecurringExpenseResponse.model_validate(recurring)
    response.frequency_display = recurring_service.frequency_display_name(recurring.frequency)
    return response


@router.get("", response_model=RecurringExpenseList)
def get_recurring_expenses(
    include_inactive: bool = Query(True),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """Get the caller's recurring expenses."""
    items = recurring_service.get_recurring_expenses(db, user_id, include_inactive)
    return RecurringExpenseList(
        items=[_to_response(r) for r in items],
        total=len(items)
    )


@router.post("", response_model=RecurringExpenseResponse, status_code=201)
def create_recurring_expense(
    data: RecurringExpenseCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """Create a recurring expense."""
    recurring = recurring_service.create_recurring_expense(
        db,
        user_id,
        amount=data.amount,
        currency=data.currency,
        frequency=data.frequency,
        start_date=data.start_date,
        category_id=data.category_id,
        description=data.description,
        end_date=data.end_date,
    )
    return _to_response(recurring)


@router.post("/process", response_model=ProcessDueResponse)
def process_due_expenses(
    as_of: Optional[date] = Query(None),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """Materialize the caller's due recurring expenses."""
    as_of = as_of or date.today()
    processed = recurring_service.process_due_expenses(db, user_id, as_of)
    return ProcessDueResponse(processed=processed, as_of=as_of)


@router.get("/{recurring_id}", response_model=RecurringExpenseResponse)
def get_recurring_expense(
    recurring_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """Get a single recurring expense."""
    return _to_response(recurring_service.get_recurring_expense(db, user_id, recurring_id))


@router.get("/{recurring_id}/expenses", response_model=List[ExpenseResponse])
def get_generated_expenses(
    recurring_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """Get the expenses a recurring expense has created."""
    expenses = recurring_service.get_generated_expenses(db, user_id, recurring_id)
    return [ExpenseResponse.model_validate(e) for e in expenses]


@router.post("/{recurring_id}/toggle", response_model=RecurringExpenseResponse)
def toggle_recurring_expense(
    recurring_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """Pause or resume a recurring expense."""
    return _to_response(recurring_service.toggle_active(db, user_id, recurring_id))


@router.delete("/{recurring_id}")
def delete_recurring_expense(
    recurring_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id)
):
    """Delete a recurring expense (expenses it created are kept)."""
    recurring_service.delete_recurring_expense(db, user_id, recurring_id)
    return {"deleted": True}
