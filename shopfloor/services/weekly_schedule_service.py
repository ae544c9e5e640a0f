"""
Weekly machine schedule: per-machine Monday..Sunday grid, week copy, utilization.

Day-of-week convention: 0 = Monday, 1 = Tuesday, ..., 6 = Sunday (Python date.weekday()).
Week views are pure projections recomputed on every request.
"""
import logging
from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Dict, List, Tuple

from sqlalchemy import and_, func
from sqlalchemy.orm import Session

from shopfloor.core.errors import ValidationError
from shopfloor.models.machine import Machine
from shopfloor.models.project import Project
from shopfloor.models.schedule import ScheduleEntry
from shopfloor.models.user import User
from shopfloor.schemas.schedule import (
    DaySchedule,
    MachineUtilization,
    MachineWeek,
    ScheduleEntryView,
    WeeklySchedule,
)
from shopfloor.services.audit_service import log_audit
from shopfloor.services.db_utils import commit_or_raise

logger = logging.getLogger(__name__)

DAYS_IN_WEEK = 7
DAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


def parse_iso_date(value: str, field: str = "date") -> date:
    """YYYY-MM-DD -> date, or ValidationError before anything touches storage."""
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime((value or "").strip(), "%Y-%m-%d").date()
    except (ValueError, TypeError, AttributeError):
        raise ValidationError(f"Invalid {field}: {value!r} (expected YYYY-MM-DD)")


def week_bounds(week_start: date) -> Tuple[date, date]:
    return week_start, shift_date(week_start, timedelta(days=DAYS_IN_WEEK - 1))


def shift_date(value: date, delta: timedelta) -> date:
    try:
        return value + delta
    except OverflowError:
        raise ValidationError(f"date out of range: {value.isoformat()} shifted by {delta.days} days")


def entry_sort_key(entry) -> tuple:
    """Start time ascending, entries without a start time last, then by id."""
    return (entry.start_time is None, entry.start_time or "", entry.id)


def _week_entries(db: Session, start: date, end: date) -> List[Tuple[int, date, ScheduleEntryView]]:
    rows = (
        db.query(ScheduleEntry, Project.name, User.full_name)
        .outerjoin(Project, Project.id == ScheduleEntry.project_id)
        .outerjoin(User, User.id == ScheduleEntry.operator_id)
        .filter(ScheduleEntry.date >= start, ScheduleEntry.date <= end)
        .all()
    )
    out = []
    for s, project_name, operator_name in rows:
        out.append((s.machine_id, s.date, ScheduleEntryView(
            id=s.id,
            project_id=s.project_id,
            project_name=project_name,
            operator_id=s.operator_id,
            operator_name=operator_name,
            load_name=s.load_name,
            start_time=s.start_time,
            end_time=s.end_time,
            planned_hours=s.planned_hours or 0.0,
            actual_hours=s.actual_hours,
            notes=s.notes,
            status=s.status,
        )))
    return out


def build_week(db: Session, week_start: str) -> WeeklySchedule:
    """
    Build the weekly grid for the week starting on week_start (must be a Monday).

    Every machine (by name) gets exactly seven day buckets, empty or not.
    Day totals sum the bucket's entries (missing actual_hours count as 0);
    week totals sum the seven day totals in day order.
    """
    start = parse_iso_date(week_start, "week_start")
    if start.weekday() != 0:
        raise ValidationError(f"week_start must be a Monday, got {start.isoformat()} ({DAY_NAMES[start.weekday()]})")
    start, end = week_bounds(start)

    machines = db.query(Machine.id, Machine.name).order_by(Machine.name.asc(), Machine.id.asc()).all()

    buckets: Dict[Tuple[int, date], List[ScheduleEntryView]] = defaultdict(list)
    for machine_id, day, view in _week_entries(db, start, end):
        buckets[(machine_id, day)].append(view)

    machine_weeks = []
    for machine_id, machine_name in machines:
        days: List[DaySchedule] = []
        for offset in range(DAYS_IN_WEEK):
            current = start + timedelta(days=offset)
            entries = sorted(buckets.get((machine_id, current), []), key=entry_sort_key)
            days.append(DaySchedule(
                date=current,
                day_name=DAY_NAMES[offset],
                entries=entries,
                total_planned_hours=sum((e.planned_hours for e in entries), 0.0),
                total_actual_hours=sum((e.actual_hours or 0.0 for e in entries), 0.0),
            ))
        machine_weeks.append(MachineWeek(
            machine_id=machine_id,
            machine_name=machine_name,
            days=days,
            weekly_planned_hours=sum((d.total_planned_hours for d in days), 0.0),
            weekly_actual_hours=sum((d.total_actual_hours for d in days), 0.0),
        ))

    return WeeklySchedule(week_start=start, week_end=end, machines=machine_weeks)


def copy_week(db: Session, source_week_start: str, target_week_start: str, actor: User) -> int:
    """
    Duplicate every entry of the source week onto the target week.

    Dates shift by the fixed day offset between the two starts. Copies keep
    machine/project/operator/load/times/planned hours/notes, drop actual hours,
    restart at status 'scheduled', and are attributed to the acting user.
    All copies are committed together or not at all.
    """
    source = parse_iso_date(source_week_start, "source_week_start")
    target = parse_iso_date(target_week_start, "target_week_start")
    source_start, source_end = week_bounds(source)
    week_bounds(target)
    shift = target - source

    originals = (
        db.query(ScheduleEntry)
        .filter(ScheduleEntry.date >= source_start, ScheduleEntry.date <= source_end)
        .order_by(ScheduleEntry.date.asc(), ScheduleEntry.id.asc())
        .all()
    )
    copies = [
        ScheduleEntry(
            machine_id=s.machine_id,
            project_id=s.project_id,
            date=shift_date(s.date, shift),
            start_time=s.start_time,
            end_time=s.end_time,
            operator_id=s.operator_id,
            load_name=s.load_name,
            planned_hours=s.planned_hours,
            actual_hours=None,
            notes=s.notes,
            status="scheduled",
            created_by=actor.id,
        )
        for s in originals
    ]
    db.add_all(copies)
    log_audit(db, actor, "schedule.copy_week", "schedules", None, {
        "source_week_start": source.isoformat(),
        "target_week_start": target.isoformat(),
        "copied": len(copies),
    })
    commit_or_raise(db, "copy week")
    logger.info("Copied %d schedule entries from week %s to %s", len(copies), source, target)
    return len(copies)


def efficiency_percentage(planned: float, actual: float) -> float:
    """actual/planned as a percentage, capped at 100 for display."""
    if not planned or planned <= 0:
        return 0.0
    return min(actual / planned * 100.0, 100.0)


def machine_utilization(db: Session, start_date: str, end_date: str) -> List[MachineUtilization]:
    start = parse_iso_date(start_date, "start_date")
    end = parse_iso_date(end_date, "end_date")
    if end < start:
        raise ValidationError("end_date must not be before start_date")

    planned = func.coalesce(func.sum(ScheduleEntry.planned_hours), 0.0).label("planned")
    actual = func.coalesce(func.sum(ScheduleEntry.actual_hours), 0.0).label("actual")
    count = func.count(ScheduleEntry.id).label("schedule_count")
    rows = (
        db.query(Machine.id, Machine.name, planned, actual, count)
        .outerjoin(ScheduleEntry, and_(
            ScheduleEntry.machine_id == Machine.id,
            ScheduleEntry.date >= start,
            ScheduleEntry.date <= end,
        ))
        .group_by(Machine.id, Machine.name)
        .order_by(actual.desc(), Machine.name.asc())
        .all()
    )
    return [
        MachineUtilization(
            machine_id=mid,
            machine_name=name,
            planned_hours=float(p or 0.0),
            actual_hours=float(a or 0.0),
            schedule_count=int(c or 0),
            efficiency_percentage=efficiency_percentage(float(p or 0.0), float(a or 0.0)),
        )
        for mid, name, p, a, c in rows
    ]
