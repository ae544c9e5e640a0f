"""
Session lifecycle: issue, validate, revoke.

Sessions live only in storage and are read fresh on every validation. A session
is usable while ``is_valid`` is set and ``expires_at`` lies in the future.
Expiry is detected lazily: the first validation past ``expires_at`` flips
``is_valid`` off and reports ``SessionExpired``; later calls see ``InvalidSession``.

    Active --logout / password change / reset--> Invalidated
    Active --validate after expiry--> Expired --> Invalidated
"""
import logging
from datetime import datetime
from typing import Tuple

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from shopfloor.core.errors import InvalidSession, SessionExpired, ShopFloorError, UserNotFound
from shopfloor.core.security import as_utc, generate_token, session_expiry, utcnow
from shopfloor.models.auth_session import AuthSession
from shopfloor.models.user import User
from shopfloor.services.db_utils import commit_or_raise

logger = logging.getLogger(__name__)


def issue(db: Session, user_id: int) -> Tuple[str, datetime]:
    """Create a session for user_id. Returns (token, expires_at)."""
    token = generate_token()
    expires_at = session_expiry()
    db.add(AuthSession(user_id=user_id, token=token, expires_at=expires_at, is_valid=True))
    commit_or_raise(db, "create session")
    return token, expires_at


def _mark_expired(db: Session, session_id: int) -> None:
    # Best effort: a failed write here must not mask the expiry result.
    try:
        db.execute(update(AuthSession).where(AuthSession.id == session_id).values(is_valid=False))
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning("Could not invalidate expired session id=%s: %s", session_id, e)


def validate(db: Session, token: str, now: datetime | None = None) -> User:
    if not token:
        raise InvalidSession()
    s = (
        db.query(AuthSession)
        .filter(AuthSession.token == token, AuthSession.is_valid.is_(True))
        .first()
    )
    if not s:
        # unknown and already-invalidated tokens are reported identically
        raise InvalidSession()

    if as_utc(s.expires_at) <= (now or utcnow()):
        logger.info("Session id=%s for user_id=%s expired; invalidating", s.id, s.user_id)
        _mark_expired(db, s.id)
        raise SessionExpired()

    user = db.get(User, s.user_id)
    if not user or not user.is_active:
        raise UserNotFound()
    return user


def is_valid(db: Session, token: str) -> bool:
    try:
        validate(db, token)
    except ShopFloorError:
        return False
    return True


def invalidate(db: Session, token: str) -> None:
    """Revoke one token. Unknown tokens are not an error."""
    db.execute(update(AuthSession).where(AuthSession.token == token).values(is_valid=False))
    commit_or_raise(db, "invalidate session")


def invalidate_all_for(db: Session, user_id: int, commit: bool = True) -> int:
    """Revoke every session of a user. Returns how many were still valid."""
    res = db.execute(
        update(AuthSession)
        .where(AuthSession.user_id == user_id, AuthSession.is_valid.is_(True))
        .values(is_valid=False)
    )
    if commit:
        commit_or_raise(db, "invalidate sessions")
    return res.rowcount or 0
