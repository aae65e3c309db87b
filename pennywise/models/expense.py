"""
Expense database model.
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Date, Numeric, Text, Index
from pennywise.database import Base


class Expense(Base):
    """A concrete expense, entered manually or materialized from a recurring definition."""

    __tablename__ = "expenses"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="INR")
    category_id = Column(String(36), nullable=True)
    description = Column(Text, nullable=True)
    expense_date = Column(Date, nullable=False, index=True)
    # Plain reference, not a foreign key: deleting the definition keeps its expenses
    recurring_expense_id = Column(String(36), nullable=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index("idx_expense_user_date", "user_id", "expense_date"),
    )
