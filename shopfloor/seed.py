import logging

from sqlalchemy.orm import Session
from sqlalchemy import text
from sqlalchemy.exc import OperationalError, ProgrammingError

from shopfloor.db.session import SessionLocal
from shopfloor.core.config import settings
from shopfloor.core.permissions import Role
from shopfloor.models.user import User
from shopfloor.services.user_service import ensure_user

logger = logging.getLogger(__name__)


def run(db: Session | None = None) -> bool:
    """Create the initial admin account when the users table is empty. Returns True if created."""
    owns_session = db is None
    if db is None:
        db = SessionLocal()
    try:
        # If the schema isn't there yet, seeding must not crash the API.
        try:
            db.execute(text("SELECT 1 FROM users LIMIT 1"))
        except (OperationalError, ProgrammingError):
            db.rollback()
            logger.warning("[seed] users table not found yet. Skipping seeding.")
            return False

        if db.query(User).count() > 0:
            return False
        created = ensure_user(
            db,
            settings.ADMIN_USERNAME,
            settings.ADMIN_PASSWORD,
            Role.ADMIN,
            settings.ADMIN_FULL_NAME,
        )
        if created:
            logger.info("[seed] created initial admin account %r", settings.ADMIN_USERNAME)
        return created
    finally:
        if owns_session:
            db.close()


if __name__ == "__main__":
    run()
