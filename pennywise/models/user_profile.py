"""User profile model - one row per user."""

from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func

from pennywise.database import Base


class UserProfile(Base):
    """
    Per-user preferences.
    Keyed by the user id so writes are upserts.
    """
    __tablename__ = "user_profiles"

    user_id = Column(String(36), primary_key=True)
    preferred_currency = Column(String(3), nullable=False, default="INR")

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


def get_or_create_profile(db, user_id: str, default_currency: str = "INR") -> UserProfile:
    """Get a user's profile, creating it with defaults if needed."""
    profile = db.query(UserProfile).filter(UserProfile.user_id == user_id).first()
    if not profile:
        profile = UserProfile(user_id=user_id, preferred_currency=default_currency)
        db.add(profile)
        db.commit()
        db.refresh(profile)
    return profile
