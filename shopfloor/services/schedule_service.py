import logging
from datetime import date
from typing import List, Optional

from sqlalchemy.orm import Session, aliased

from shopfloor.core.errors import NotFound, ValidationError
from shopfloor.models.machine import Machine
from shopfloor.models.project import Project
from shopfloor.models.schedule import SCHEDULE_STATUSES, ScheduleEntry
from shopfloor.models.user import User
from shopfloor.schemas.schedule import ScheduleCreate, ScheduleOut, ScheduleUpdate
from shopfloor.services.audit_service import log_audit
from shopfloor.services.db_utils import commit_or_raise
from shopfloor.services.weekly_schedule_service import parse_iso_date

logger = logging.getLogger(__name__)

# columns that cannot be cleared by sending an explicit null
_NOT_NULLABLE = ("date", "planned_hours", "status")


def validate_status(status: str) -> str:
    if status not in SCHEDULE_STATUSES:
        raise ValidationError(f"Invalid status. Must be one of: {', '.join(SCHEDULE_STATUSES)}")
    return status


def validate_hhmm(value: Optional[str], field: str) -> Optional[str]:
    if value is None:
        return None
    try:
        hh, mm = map(int, value.split(":"))
    except (ValueError, AttributeError):
        raise ValidationError(f"Invalid {field}: {value!r} (expected HH:MM)")
    if not (0 <= hh <= 23 and 0 <= mm <= 59):
        raise ValidationError(f"Invalid {field}: {value!r} (expected HH:MM)")
    return f"{hh:02d}:{mm:02d}"


def _details_query(db: Session):
    operator = aliased(User)
    return (
        db.query(ScheduleEntry, Machine.name, Project.name, operator.full_name)
        .outerjoin(Machine, Machine.id == ScheduleEntry.machine_id)
        .outerjoin(Project, Project.id == ScheduleEntry.project_id)
        .outerjoin(operator, operator.id == ScheduleEntry.operator_id)
    )


def _to_out(row) -> ScheduleOut:
    s, machine_name, project_name, operator_name = row
    out = ScheduleOut.model_validate(s)
    out.machine_name = machine_name
    out.project_name = project_name
    out.operator_name = operator_name
    return out


def get_entry(db: Session, entry_id: int) -> ScheduleOut:
    row = _details_query(db).filter(ScheduleEntry.id == entry_id).first()
    if not row:
        raise NotFound("Schedule not found")
    return _to_out(row)


def list_range(db: Session, start_date: str, end_date: str, machine_id: int | None = None) -> List[ScheduleOut]:
    start = parse_iso_date(start_date, "start_date")
    end = parse_iso_date(end_date, "end_date")
    q = _details_query(db).filter(ScheduleEntry.date >= start, ScheduleEntry.date <= end)
    if machine_id is not None:
        q = q.filter(ScheduleEntry.machine_id == machine_id)
    rows = q.order_by(
        ScheduleEntry.date.asc(),
        Machine.name.asc(),
        ScheduleEntry.start_time.is_(None),
        ScheduleEntry.start_time.asc(),
        ScheduleEntry.id.asc(),
    ).all()
    return [_to_out(r) for r in rows]


def _check_refs(db: Session, machine_id: int | None = None, project_id: int | None = None,
                operator_id: int | None = None) -> None:
    if machine_id is not None and not db.get(Machine, machine_id):
        raise NotFound("Machine not found")
    if project_id is not None and not db.get(Project, project_id):
        raise NotFound("Project not found")
    if operator_id is not None and not db.get(User, operator_id):
        raise NotFound("Operator not found")


def create_entry(db: Session, body: ScheduleCreate, actor: User) -> ScheduleOut:
    status = validate_status(body.status) if body.status is not None else "scheduled"
    start_time = validate_hhmm(body.start_time, "start_time")
    end_time = validate_hhmm(body.end_time, "end_time")
    _check_refs(db, body.machine_id, body.project_id, body.operator_id)

    s = ScheduleEntry(
        machine_id=body.machine_id,
        project_id=body.project_id,
        date=body.date,
        start_time=start_time,
        end_time=end_time,
        operator_id=body.operator_id,
        load_name=body.load_name,
        planned_hours=body.planned_hours,
        notes=body.notes,
        status=status,
        created_by=actor.id,
    )
    db.add(s)
    db.flush()
    log_audit(db, actor, "schedule.create", "schedules", s.id, {
        "machine_id": s.machine_id, "date": s.date.isoformat(), "planned_hours": s.planned_hours,
    })
    commit_or_raise(db, "create schedule")
    return get_entry(db, s.id)


def update_entry(db: Session, entry_id: int, body: ScheduleUpdate, actor: User) -> ScheduleOut:
    changes = body.model_dump(exclude_unset=True)
    for field in _NOT_NULLABLE:
        if field in changes and changes[field] is None:
            changes.pop(field)
    if not changes:
        raise ValidationError("No fields to update")

    if "status" in changes:
        validate_status(changes["status"])
    for field in ("start_time", "end_time"):
        if field in changes:
            changes[field] = validate_hhmm(changes[field], field)
    _check_refs(db, project_id=changes.get("project_id"), operator_id=changes.get("operator_id"))

    s = db.get(ScheduleEntry, entry_id)
    if not s:
        raise NotFound("Schedule not found")
    for field, value in changes.items():
        setattr(s, field, value)
    log_audit(db, actor, "schedule.update", "schedules", s.id, changes)
    commit_or_raise(db, "update schedule")
    return get_entry(db, s.id)


def log_actual_hours(db: Session, entry_id: int, hours: float, actor: User) -> ScheduleOut:
    if hours is None or hours < 0:
        raise ValidationError("hours must be >= 0")
    s = db.get(ScheduleEntry, entry_id)
    if not s:
        raise NotFound("Schedule not found")
    s.actual_hours = hours
    log_audit(db, actor, "schedule.log_hours", "schedules", s.id, {"actual_hours": hours})
    commit_or_raise(db, "log hours")
    return get_entry(db, s.id)


def delete_entry(db: Session, entry_id: int, actor: User) -> None:
    s = db.get(ScheduleEntry, entry_id)
    if not s:
        raise NotFound("Schedule not found")
    entry_date: date = s.date
    db.delete(s)
    log_audit(db, actor, "schedule.delete", "schedules", entry_id, {
        "machine_id": s.machine_id, "date": entry_date.isoformat(),
    })
    commit_or_raise(db, "delete schedule")
