"""
Database models package.
"""

from pennywise.models.recurring import RecurringExpense, Frequency
from pennywise.models.expense import Expense
from pennywise.models.user_profile import UserProfile, get_or_create_profile

__all__ = [
    "RecurringExpense",
    "Frequency",
    "Expense",
    "UserProfile",
    "get_or_create_profile",
]
