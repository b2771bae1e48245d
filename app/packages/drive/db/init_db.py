"""Database bootstrapping utilities."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from app.packages.drive.core.config import get_settings
from app.packages.drive.core.security import hash_password
from app.packages.drive.db import session as db_session
from app.packages.drive.models.base import Base
from app.packages.drive.models.entry import Entry  # noqa: F401 - ensure table creation
from app.packages.drive.models.timer_config import TimerConfig  # noqa: F401 - ensure table creation
from app.packages.drive.models.user import User

logger = logging.getLogger(__name__)


def init_db() -> None:
    """Create all database tables if they do not exist and seed the administrator."""
    Base.metadata.create_all(bind=db_session.engine)

    session = db_session.SessionLocal()
    try:
        _seed_admin_user(session)
        session.commit()
    except Exception:  # pragma: no cover - initialization failures should surface
        session.rollback()
        logger.exception("Failed to seed default data during database initialization")
        raise
    finally:
        session.close()


def _seed_admin_user(db: Session) -> None:
    """Ensure the configured administrator account exists and keeps its admin flag."""
    settings = get_settings()
    email = settings.admin_email.strip().lower()
    admin = db.query(User).filter(User.email == email).first()
    if admin is None:
        db.add(
            User(
                email=email,
                hashed_password=hash_password(settings.admin_password),
                first_name="Admin",
                is_admin=True,
                is_active=True,
            )
        )
        db.flush()
        logger.info("Seeded administrator account %s", email)
        return
    if not admin.is_admin or not admin.is_active:
        admin.is_admin = True
        admin.is_active = True
        db.add(admin)
