from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from shopfloor.db.session import get_db
from shopfloor.api.deps import require_tier
from shopfloor.core.permissions import Tier
from shopfloor.models.user import User
from shopfloor.schemas.schedule import (
    ActualHoursIn,
    CopyWeekRequest,
    CopyWeekResponse,
    MachineUtilization,
    ScheduleCreate,
    ScheduleOut,
    ScheduleUpdate,
    WeeklySchedule,
)
from shopfloor.services import schedule_service, weekly_schedule_service

router = APIRouter(tags=["schedules"])

# -------------------------
# WEEKLY PLANNER
# -------------------------
@router.get("/schedules/week", response_model=WeeklySchedule)
def weekly_schedule(week_start: str, db: Session = Depends(get_db),
                    user: User = Depends(require_tier(Tier.VIEW))):
    return weekly_schedule_service.build_week(db, week_start)

@router.post("/schedules/copy-week", response_model=CopyWeekResponse)
def copy_week(body: CopyWeekRequest, db: Session = Depends(get_db),
              user: User = Depends(require_tier(Tier.EDIT))):
    copied = weekly_schedule_service.copy_week(db, body.source_week_start, body.target_week_start, user)
    return CopyWeekResponse(copied=copied)

@router.get("/schedules/utilization", response_model=List[MachineUtilization])
def utilization(start_date: str, end_date: str, db: Session = Depends(get_db),
                user: User = Depends(require_tier(Tier.VIEW))):
    return weekly_schedule_service.machine_utilization(db, start_date, end_date)

# -------------------------
# ENTRIES
# -------------------------
@router.get("/schedules", response_model=List[ScheduleOut])
def list_schedules(start_date: str, end_date: str, machine_id: Optional[int] = None,
                   db: Session = Depends(get_db),
                   user: User = Depends(require_tier(Tier.VIEW))):
    return schedule_service.list_range(db, start_date, end_date, machine_id)

@router.get("/schedules/{entry_id}", response_model=ScheduleOut)
def get_schedule(entry_id: int, db: Session = Depends(get_db),
                 user: User = Depends(require_tier(Tier.VIEW))):
    return schedule_service.get_entry(db, entry_id)

@router.post("/schedules", response_model=ScheduleOut, status_code=201)
def create_schedule(body: ScheduleCreate, db: Session = Depends(get_db),
                    user: User = Depends(require_tier(Tier.EDIT))):
    return schedule_service.create_entry(db, body, user)

@router.patch("/schedules/{entry_id}", response_model=ScheduleOut)
def update_schedule(entry_id: int, body: ScheduleUpdate, db: Session = Depends(get_db),
                    user: User = Depends(require_tier(Tier.EDIT))):
    return schedule_service.update_entry(db, entry_id, body, user)

@router.post("/schedules/{entry_id}/actual-hours", response_model=ScheduleOut)
def log_actual_hours(entry_id: int, body: ActualHoursIn, db: Session = Depends(get_db),
                     user: User = Depends(require_tier(Tier.EDIT))):
    return schedule_service.log_actual_hours(db, entry_id, body.hours, user)

@router.delete("/schedules/{entry_id}")
def delete_schedule(entry_id: int, db: Session = Depends(get_db),
                    user: User = Depends(require_tier(Tier.EDIT))):
    schedule_service.delete_entry(db, entry_id, user)
    return {"ok": True}
