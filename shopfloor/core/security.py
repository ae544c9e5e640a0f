import uuid
from datetime import datetime, timedelta, timezone

from passlib.context import CryptContext

from shopfloor.core.config import settings

# PBKDF2 avoids bcrypt backend/version issues and the 72-byte bcrypt input limit.
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return pwd_context.verify(password, password_hash)
    except (ValueError, TypeError):
        # unparseable hash in storage counts as a mismatch
        return False


def generate_token() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def session_expiry(now: datetime | None = None, hours: int | None = None) -> datetime:
    if hours is None:
        hours = settings.SESSION_TTL_HOURS
    return (now or utcnow()) + timedelta(hours=hours)


def as_utc(value: datetime) -> datetime:
    """SQLite drops tzinfo on the way back; stored timestamps are always UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
