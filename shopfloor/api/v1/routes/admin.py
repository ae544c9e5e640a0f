from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from shopfloor.db.session import get_db
from shopfloor.api.deps import require_tier
from shopfloor.core.permissions import Tier
from shopfloor.models.user import User
from shopfloor.schemas.audit import AuditFilters, AuditLogOut
from shopfloor.schemas.auth import UserPublic
from shopfloor.schemas.user import PasswordResetIn, UserCreate, UserUpdate
from shopfloor.services import user_service
from shopfloor.services.audit_service import list_audit

router = APIRouter(tags=["admin"])

@router.get("/admin/users", response_model=List[UserPublic])
def list_users(db: Session = Depends(get_db), me: User = Depends(require_tier(Tier.ADMIN))):
    return user_service.list_users(db)

@router.get("/admin/users/{user_id}", response_model=UserPublic)
def get_user(user_id: int, db: Session = Depends(get_db), me: User = Depends(require_tier(Tier.ADMIN))):
    return user_service.get_user(db, user_id)

@router.post("/admin/users", response_model=UserPublic, status_code=201)
def create_user(body: UserCreate, db: Session = Depends(get_db), me: User = Depends(require_tier(Tier.ADMIN))):
    return user_service.create_user(db, body, actor=me)

@router.patch("/admin/users/{user_id}", response_model=UserPublic)
def update_user(user_id: int, body: UserUpdate,
                db: Session = Depends(get_db),
                me: User = Depends(require_tier(Tier.ADMIN))):
    return user_service.update_user(db, user_id, body, actor=me)

@router.delete("/admin/users/{user_id}")
def delete_user(user_id: int, db: Session = Depends(get_db), me: User = Depends(require_tier(Tier.ADMIN))):
    user_service.delete_user(db, user_id, actor=me)
    return {"ok": True}

@router.post("/admin/users/{user_id}/reset-password")
def reset_password(user_id: int, body: PasswordResetIn,
                   db: Session = Depends(get_db),
                   me: User = Depends(require_tier(Tier.ADMIN))):
    user_service.reset_password(db, user_id, body.new_password, actor=me)
    return {"ok": True}

@router.get("/admin/audit", response_model=List[AuditLogOut])
def audit_logs(tableName: Optional[str] = None, action: Optional[str] = None, userId: Optional[int] = None,
               fromDate: Optional[date] = None, toDate: Optional[date] = None,
               limit: int = 100, offset: int = 0,
               db: Session = Depends(get_db),
               me: User = Depends(require_tier(Tier.ADMIN))):
    filters = AuditFilters(
        table_name=tableName, action=action, user_id=userId,
        from_date=fromDate, to_date=toDate,
        limit=min(max(limit, 1), 1000), offset=max(offset, 0),
    )
    return list_audit(db, filters)
