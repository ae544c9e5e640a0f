import json
from datetime import datetime, time, timezone
from sqlalchemy.orm import Session
from shopfloor.models.audit_log import AuditLog
from shopfloor.schemas.audit import AuditFilters, AuditLogOut

def log_audit(db: Session, actor, action: str, table_name: str, record_id: int | None = None, details: dict | None = None):
    """Append an audit row in the caller's transaction; the caller commits."""
    db.add(AuditLog(
        user_id=getattr(actor, "id", None),
        username=getattr(actor, "username", None),
        action=action,
        table_name=table_name,
        record_id=record_id,
        details_json=json.dumps(details or {}, ensure_ascii=False, default=str),
    ))


def _details(raw: str | None) -> dict:
    try:
        return json.loads(raw or "{}")
    except (json.JSONDecodeError, TypeError):
        return {}


def list_audit(db: Session, filters: AuditFilters) -> list[AuditLogOut]:
    q = db.query(AuditLog)
    if filters.table_name:
        q = q.filter(AuditLog.table_name == filters.table_name)
    if filters.action:
        q = q.filter(AuditLog.action == filters.action)
    if filters.user_id is not None:
        q = q.filter(AuditLog.user_id == filters.user_id)
    if filters.from_date:
        q = q.filter(AuditLog.created_at >= datetime.combine(filters.from_date, time.min, tzinfo=timezone.utc))
    if filters.to_date:
        # inclusive of the whole to_date day
        q = q.filter(AuditLog.created_at <= datetime.combine(filters.to_date, time.max, tzinfo=timezone.utc))
    rows = (
        q.order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        .limit(filters.limit)
        .offset(filters.offset)
        .all()
    )
    return [
        AuditLogOut(
            id=r.id,
            user_id=r.user_id,
            username=r.username,
            action=r.action,
            table_name=r.table_name,
            record_id=r.record_id,
            details=_details(r.details_json),
            created_at=r.created_at,
        )
        for r in rows
    ]
