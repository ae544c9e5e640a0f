import logging
from typing import List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from shopfloor.core.config import settings
from shopfloor.core.errors import Conflict, NotFound, StorageError, ValidationError
from shopfloor.core.permissions import Role
from shopfloor.core.security import hash_password
from shopfloor.models.user import User
from shopfloor.schemas.user import UserCreate, UserUpdate
from shopfloor.services import session_service
from shopfloor.services.audit_service import log_audit
from shopfloor.services.db_utils import commit_or_raise

logger = logging.getLogger(__name__)


def get_by_username(db: Session, username: str) -> User | None:
    return db.query(User).filter(User.username == username).first()


def get_user(db: Session, user_id: int) -> User:
    u = db.get(User, user_id)
    if not u:
        raise NotFound("User not found")
    return u


def list_users(db: Session) -> List[User]:
    return db.query(User).order_by(User.created_at.desc(), User.id.desc()).all()


def check_password_policy(password: str) -> None:
    if len(password or "") < settings.MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {settings.MIN_PASSWORD_LENGTH} characters")


def create_user(db: Session, body: UserCreate, actor: User | None = None) -> User:
    username = (body.username or "").strip()
    if not username:
        raise ValidationError("username required")
    role = Role.parse(body.role)
    check_password_policy(body.password)
    if get_by_username(db, username):
        raise Conflict("Username already exists")
    u = User(
        username=username,
        password_hash=hash_password(body.password),
        email=body.email,
        full_name=body.full_name,
        role=role.value,
        is_active=True,
    )
    db.add(u)
    try:
        db.flush()
    except IntegrityError as e:
        # lost a race with another insert of the same username
        db.rollback()
        raise Conflict("Username already exists") from e
    log_audit(db, actor, "user.create", "users", u.id, {"username": u.username, "role": u.role})
    commit_or_raise(db, "create user")
    logger.info("User %s created with role %s", u.username, u.role)
    return u


def update_user(db: Session, user_id: int, body: UserUpdate, actor: User | None = None) -> User:
    changes = body.model_dump(exclude_unset=True)
    if "role" in changes and changes["role"] is None:
        changes.pop("role")
    if "is_active" in changes and changes["is_active"] is None:
        changes.pop("is_active")
    if not changes:
        raise ValidationError("No fields to update")
    u = get_user(db, user_id)
    if "role" in changes:
        changes["role"] = Role.parse(changes["role"]).value
    for field, value in changes.items():
        setattr(u, field, value)
    log_audit(db, actor, "user.update", "users", u.id, changes)
    commit_or_raise(db, "update user")
    return u


def delete_user(db: Session, user_id: int, actor: User) -> None:
    if actor.id == user_id:
        raise ValidationError("Cannot delete your own account")
    u = get_user(db, user_id)
    db.delete(u)
    log_audit(db, actor, "user.delete", "users", user_id, {"username": u.username})
    commit_or_raise(db, "delete user")


def reset_password(db: Session, user_id: int, new_password: str, actor: User | None = None) -> None:
    """Admin reset: new hash, then every session of the target stops working."""
    check_password_policy(new_password)
    u = get_user(db, user_id)
    u.password_hash = hash_password(new_password)
    revoked = session_service.invalidate_all_for(db, u.id, commit=False)
    log_audit(db, actor, "user.reset_password", "users", u.id, {"sessions_revoked": revoked})
    commit_or_raise(db, "reset password")
    logger.info("Password reset for %s; %d session(s) revoked", u.username, revoked)


def ensure_user(db: Session, username: str, password: str, role: Role, full_name: str = "") -> bool:
    """Create the account if the username is free. Returns True when created."""
    if get_by_username(db, username):
        return False
    db.add(
        User(
            username=username,
            password_hash=hash_password(password),
            full_name=full_name,
            role=Role.parse(role).value,
            is_active=True,
        )
    )
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise StorageError(f"Failed to create user {username}: {e}") from e
    return True
