from fastapi import APIRouter, Depends
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from shopfloor.db.session import get_db
from shopfloor.schemas.auth import AuthResponse, ChangePasswordRequest, LoginRequest, TokenCheck, UserPublic
from shopfloor.services import auth_service, session_service
from shopfloor.api.deps import bearer, get_token

router = APIRouter(tags=["auth"])

@router.post("/auth/login", response_model=AuthResponse)
def login(body: LoginRequest, db: Session = Depends(get_db)):
    return auth_service.login(db, body.username, body.password)


@router.post("/auth/logout")
def logout(creds: HTTPAuthorizationCredentials | None = Depends(bearer), db: Session = Depends(get_db)):
    # idempotent: a missing or unknown token still logs out cleanly
    if creds and creds.credentials:
        auth_service.logout(db, creds.credentials)
    return {"ok": True}


@router.get("/auth/me", response_model=UserPublic)
def me(token: str = Depends(get_token), db: Session = Depends(get_db)):
    """Return current user info including role."""
    return auth_service.current_user(db, token)


@router.get("/auth/validate", response_model=TokenCheck)
def validate_token(creds: HTTPAuthorizationCredentials | None = Depends(bearer), db: Session = Depends(get_db)):
    token = creds.credentials if creds else ""
    return TokenCheck(valid=session_service.is_valid(db, token))


@router.post("/auth/change-password")
def change_password(body: ChangePasswordRequest,
                    token: str = Depends(get_token),
                    db: Session = Depends(get_db)):
    auth_service.change_password(db, token, body.old_password, body.new_password)
    return {"ok": True}
