from datetime import date, datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class AuditFilters(BaseModel):
    table_name: Optional[str] = None
    action: Optional[str] = None
    user_id: Optional[int] = None
    from_date: Optional[date] = None
    to_date: Optional[date] = None
    limit: int = Field(default=100, ge=1, le=1000)
    offset: int = Field(default=0, ge=0)


class AuditLogOut(BaseModel):
    id: int
    user_id: Optional[int] = None
    username: Optional[str] = None
    action: str
    table_name: str
    record_id: Optional[int] = None
    details: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
