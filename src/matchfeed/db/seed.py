from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from matchfeed.config import get_settings
from matchfeed.db.models import User


def seed_demo_user(session: Session) -> int:
    """Create the single demo user the deployment serves, if missing."""
    settings = get_settings()
    existing = session.scalar(select(User).where(User.email == settings.demo_user_email))
    if existing is not None:
        return 0

    session.add(User(email=settings.demo_user_email, password=settings.demo_user_password))
    session.commit()
    return 1
