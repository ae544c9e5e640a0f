import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from shopfloor.core.errors import StorageError

logger = logging.getLogger(__name__)


def commit_or_raise(db: Session, what: str) -> None:
    """Commit, or roll back and surface the driver's message as a StorageError."""
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Failed to %s: %s", what, e)
        raise StorageError(f"Failed to {what}: {e}") from e
