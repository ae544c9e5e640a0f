from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from shopfloor.db.session import get_db
from shopfloor.core.errors import InvalidSession
from shopfloor.core.permissions import Tier, check
from shopfloor.models.user import User
from shopfloor.services import session_service

bearer = HTTPBearer(auto_error=False)

def get_token(creds: HTTPAuthorizationCredentials | None = Depends(bearer)) -> str:
    if not creds or not creds.credentials:
        raise InvalidSession("Not authenticated")
    return creds.credentials

def get_current_user(
    token: str = Depends(get_token),
    db: Session = Depends(get_db),
) -> User:
    return session_service.validate(db, token)

def require_tier(tier: Tier):
    """Session first, then role: both must pass before the handler runs."""
    def _guard(user: User = Depends(get_current_user)) -> User:
        check(user, tier)
        return user
    return _guard
