import logging

from sqlalchemy.orm import Session

from shopfloor.core.errors import InvalidCredentials, WrongPassword
from shopfloor.core.security import hash_password, verify_password
from shopfloor.schemas.auth import AuthResponse, UserPublic
from shopfloor.services import session_service
from shopfloor.services.audit_service import log_audit
from shopfloor.services.db_utils import commit_or_raise
from shopfloor.services.user_service import check_password_policy, get_by_username

logger = logging.getLogger(__name__)


def login(db: Session, username: str, password: str) -> AuthResponse:
    user = get_by_username(db, (username or "").strip())
    # unknown, inactive and wrong-password all look the same to the caller
    if not user or not user.is_active or not verify_password(password, user.password_hash):
        logger.warning("Failed login for username=%r", username)
        raise InvalidCredentials()

    token, expires_at = session_service.issue(db, user.id)
    log_audit(db, user, "auth.login", "sessions", user.id)
    commit_or_raise(db, "record login")
    logger.info("User %s logged in", user.username)
    return AuthResponse(user=UserPublic.model_validate(user), token=token, expires_at=expires_at)


def logout(db: Session, token: str) -> None:
    session_service.invalidate(db, token)


def current_user(db: Session, token: str) -> UserPublic:
    return UserPublic.model_validate(session_service.validate(db, token))


def change_password(db: Session, token: str, old_password: str, new_password: str) -> None:
    """Change the caller's password and revoke all of their sessions."""
    user = session_service.validate(db, token)
    if not verify_password(old_password, user.password_hash):
        raise WrongPassword()
    check_password_policy(new_password)

    user.password_hash = hash_password(new_password)
    revoked = session_service.invalidate_all_for(db, user.id, commit=False)
    log_audit(db, user, "auth.change_password", "users", user.id, {"sessions_revoked": revoked})
    commit_or_raise(db, "update password")
    logger.info("User %s changed password; %d session(s) revoked", user.username, revoked)
