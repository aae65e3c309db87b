"""
FastAPI dependencies.
"""

from typing import Generator, Optional
from fastapi import Header, Request
from sqlalchemy.orm import Session

from pennywise.database import SessionLocal
from pennywise.errors import NotAuthenticatedError
from pennywise.services.exchange_rate_service import ExchangeRateService


def get_db() -> Generator[Session, None, None]:
    """
    Dependency for getting database sessions.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_user_id(x_user_id: Optional[str] = Header(None)) -> str:
    """
    Caller identity, supplied by the fronting auth layer in X-User-Id.
    """
    if not x_user_id or not x_user_id.strip():
        raise NotAuthenticatedError("User not authenticated")
    return x_user_id.strip()


def get_rate_service(request: Request) -> ExchangeRateService:
    """The exchange rate service built at startup."""
    return request.app.state.rate_service
