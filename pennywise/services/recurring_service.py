"""Service for recurring expense definitions and their scheduled execution."""

from typing import List, Optional
from datetime import date, datetime, time, timedelta
from decimal import Decimal
import calendar
import logging
import uuid

from sqlalchemy.orm import Session

from pennywise.config import settings
from pennywise.errors import NotAuthorizedError, NotFoundError, ValidationError
from pennywise.models.expense import Expense
from pennywise.models.recurring import Frequency, RecurringExpense
from pennywise.services.expense_service import (
    build_expense,
    require_user,
    validate_amount,
    validate_currency,
)

logger = logging.getLogger(__name__)


FREQUENCY_DISPLAY_NAMES = {
    Frequency.daily: "Daily",
    Frequency.weekly: "Weekly",
    Frequency.biweekly: "Bi-weekly",
    Frequency.monthly: "Monthly",
    Frequency.quarterly: "Quarterly",
    Frequency.yearly: "Yearly",
}


def frequency_display_name(frequency: Frequency) -> str:
    return FREQUENCY_DISPLAY_NAMES[Frequency(frequency)]


def add_months(d: date, n: int) -> date:
    """Add n months to date d, clamping the day to the end of the target month."""
    month = d.month - 1 + n
    year = d.year + month // 12
    month = month % 12 + 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return d.replace(year=year, month=month, day=day)


def advance(from_date: date, frequency: Frequency) -> date:
    """
    Return the next execution date after from_date.

    Month-based frequencies keep the day of month and clamp it to the last
    day of shorter months, so Jan 31 + monthly is Feb 28 (or 29).
    """
    frequency = Frequency(frequency)

    if frequency == Frequency.daily:
        return from_date + timedelta(days=1)
    elif frequency == Frequency.weekly:
        return from_date + timedelta(days=7)
    elif frequency == Frequency.biweekly:
        return from_date + timedelta(days=14)
    elif frequency == Frequency.monthly:
        return add_months(from_date, 1)
    elif frequency == Frequency.quarterly:
        return add_months(from_date, 3)
    elif frequency == Frequency.yearly:
        return add_months(from_date, 12)

    raise ValueError(f"Unsupported frequency: {frequency}")


def _validate(amount, currency: str, frequency, start_date: Optional[date], end_date: Optional[date]):
    amount = validate_amount(amount)
    currency = validate_currency(currency)

    try:
        frequency = Frequency(frequency)
    except ValueError:
        raise ValidationError(f"Invalid frequency: {frequency}")

    if start_date is None:
        raise ValidationError("Start date is required.")
    if end_date is not None and end_date < start_date:
        raise ValidationError("End date cannot be before start date.")

    return amount, currency, frequency


def create_recurring_expense(
    db: Session,
    user_id: Optional[str],
    amount: Decimal,
    currency: str,
    frequency: Frequency,
    start_date: Optional[date],
    category_id: Optional[str] = None,
    description: Optional[str] = None,
    end_date: Optional[date] = None,
) -> RecurringExpense:
    """Create a recurring expense. The first execution is one period after start_date."""
    user_id = require_user(user_id)
    amount, currency, frequency = _validate(amount, currency, frequency, start_date, end_date)

    recurring = RecurringExpense(
        id=str(uuid.uuid4()),
        user_id=user_id,
        amount=amount,
        currency=currency,
        category_id=category_id,
        description=description,
        frequency=frequency,
        start_date=start_date,
        end_date=end_date,
        next_execution_date=advance(start_date, frequency),
        is_active=True,
    )
    db.add(recurring)
    db.commit()
    db.refresh(recurring)

    logger.info(
        f"Created recurring expense {recurring.id} ({frequency.value}), "
        f"first execution {recurring.next_execution_date}"
    )
    return recurring


def get_recurring_expenses(
    db: Session,
    user_id: Optional[str],
    include_inactive: bool = True
) -> List[RecurringExpense]:
    """Get a user's recurring expenses, newest first."""
    user_id = require_user(user_id)
    query = db.query(RecurringExpense).filter(RecurringExpense.user_id == user_id)

    if not include_inactive:
        query = query.filter(RecurringExpense.is_active == True)

    return query.order_by(RecurringExpense.created_at.desc()).all()


def get_active_recurring_expenses(db: Session, user_id: Optional[str]) -> List[RecurringExpense]:
    """Get a user's active recurring expenses, soonest first."""
    user_id = require_user(user_id)
    return db.query(RecurringExpense).filter(
        RecurringExpense.user_id == user_id,
        RecurringExpense.is_active == True
    ).order_by(RecurringExpense.next_execution_date.asc()).all()


def get_recurring_expense(db: Session, user_id: Optional[str], recurring_id: str) -> RecurringExpense:
    """Get one recurring expense owned by the user."""
    user_id = require_user(user_id)

    recurring = db.query(RecurringExpense).filter(RecurringExpense.id == recurring_id).first()
    if not recurring:
        raise NotFoundError(f"Recurring expense {recurring_id} not found")
    if recurring.user_id != user_id:
        raise NotAuthorizedError(f"Recurring expense {recurring_id} belongs to another user")
    return recurring


def get_generated_expenses(db: Session, user_id: Optional[str], recurring_id: str) -> List[Expense]:
    """Get expenses materialized from a recurring expense, newest first."""
    recurring = get_recurring_expense(db, user_id, recurring_id)
    return db.query(Expense).filter(
        Expense.user_id == recurring.user_id,
        Expense.recurring_expense_id == recurring.id
    ).order_by(Expense.expense_date.desc()).all()


def toggle_active(db: Session, user_id: Optional[str], recurring_id: str) -> RecurringExpense:
    """Pause or resume a recurring expense. The next execution date is left alone."""
    recurring = get_recurring_expense(db, user_id, recurring_id)
    recurring.is_active = not recurring.is_active

    db.commit()
    db.refresh(recurring)
    return recurring


def delete_recurring_expense(db: Session, user_id: Optional[str], recurring_id: str) -> None:
    """Delete a recurring expense. Expenses it already created are kept."""
    recurring = get_recurring_expense(db, user_id, recurring_id)
    db.delete(recurring)
    db.commit()


def auto_description(description: Optional[str]) -> str:
    """Description for a materialized expense, marked as automatically created."""
    return f"{description or settings.auto_default_description}{settings.auto_suffix}"


def process_recurring_expense(db: Session, recurring: RecurringExpense, as_of: date) -> bool:
    """
    Fire or retire one due recurring expense.

    The row is only updated if its next_execution_date is still the one we
    read, so a second concurrent pass can't fire the same period twice.
    Returns True if an expense was created.
    """
    recurring_id = recurring.id
    observed_next = recurring.next_execution_date
    if not recurring.is_active or observed_next > as_of:
        return False

    guard = db.query(RecurringExpense).filter(
        RecurringExpense.id == recurring_id,
        RecurringExpense.is_active == True,
        RecurringExpense.next_execution_date == observed_next,
    )

    # Expired definitions are retired, not fired one last time
    if recurring.end_date is not None and recurring.end_date < as_of:
        retired = guard.update({RecurringExpense.is_active: False}, synchronize_session=False)
        db.commit()
        if retired:
            logger.info(f"Deactivated recurring expense {recurring_id}: ended {recurring.end_date}")
        return False

    claimed = guard.update(
        {
            RecurringExpense.last_executed_at: datetime.combine(as_of, time.min),
            RecurringExpense.next_execution_date: advance(as_of, recurring.frequency),
        },
        synchronize_session=False
    )
    if not claimed:
        db.rollback()
        logger.info(f"Recurring expense {recurring_id} already processed for {observed_next}")
        return False

    db.add(build_expense(
        user_id=recurring.user_id,
        amount=recurring.amount,
        currency=recurring.currency,
        description=auto_description(recurring.description),
        category_id=recurring.category_id,
        expense_date=as_of,
        recurring_expense_id=recurring_id,
    ))
    db.commit()
    return True


def process_due_expenses(db: Session, user_id: Optional[str], as_of: Optional[date] = None) -> int:
    """
    Materialize every due recurring expense of the user.

    At most one expense per definition is created per call, however many
    periods have passed; the next execution date restarts from as_of.
    A failing definition is rolled back and skipped.
    Returns the number of expenses created.
    """
    user_id = require_user(user_id)
    as_of = as_of or date.today()

    due = db.query(RecurringExpense).filter(
        RecurringExpense.user_id == user_id,
        RecurringExpense.is_active == True,
        RecurringExpense.next_execution_date <= as_of
    ).order_by(RecurringExpense.created_at.asc(), RecurringExpense.id.asc()).all()

    # Ids are read up front: each commit below expires the loaded rows
    due_ids = [recurring.id for recurring in due]

    processed = 0
    for recurring_id, recurring in zip(due_ids, due):
        try:
            if process_recurring_expense(db, recurring, as_of):
                processed += 1
        except Exception:
            db.rollback()
            logger.exception(f"Failed to process recurring expense {recurring_id}")

    if due:
        logger.info(f"Processed {processed} of {len(due)} due recurring expenses for user {user_id}")
    return processed


def get_users_with_due_expenses(db: Session, as_of: date) -> List[str]:
    """User ids that have at least one due, active recurring expense."""
    rows = db.query(RecurringExpense.user_id).filter(
        RecurringExpense.is_active == True,
        RecurringExpense.next_execution_date <= as_of
    ).distinct().order_by(RecurringExpense.user_id).all()
    return [row[0] for row in rows]
