"""
Main API router.
"""

from fastapi import APIRouter
from pennywise.api import currency, expenses, recurring

api_router = APIRouter()

api_router.include_router(recurring.router)
api_router.include_router(expenses.router)
api_router.include_router(currency.router)
