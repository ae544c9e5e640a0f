from datetime import date as calendar_date, datetime
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List

class ScheduleCreate(BaseModel):
    machine_id: int
    project_id: Optional[int] = None
    date: calendar_date
    start_time: Optional[str] = Field(default=None, description="HH:MM")
    end_time: Optional[str] = Field(default=None, description="HH:MM")
    operator_id: Optional[int] = None
    load_name: Optional[str] = None
    planned_hours: float = Field(ge=0)
    notes: Optional[str] = None
    status: Optional[str] = None

class ScheduleUpdate(BaseModel):
    project_id: Optional[int] = None
    date: Optional[calendar_date] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    operator_id: Optional[int] = None
    load_name: Optional[str] = None
    planned_hours: Optional[float] = Field(default=None, ge=0)
    actual_hours: Optional[float] = Field(default=None, ge=0)
    notes: Optional[str] = None
    status: Optional[str] = None

class ActualHoursIn(BaseModel):
    hours: float = Field(ge=0)

class ScheduleOut(BaseModel):
    """A stored schedule entry with the display names of what it points at."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    machine_id: int
    machine_name: Optional[str] = None
    project_id: Optional[int] = None
    project_name: Optional[str] = None
    date: calendar_date
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    operator_id: Optional[int] = None
    operator_name: Optional[str] = None
    load_name: Optional[str] = None
    planned_hours: float
    actual_hours: Optional[float] = None
    notes: Optional[str] = None
    status: str
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class ScheduleEntryView(BaseModel):
    """One entry inside a weekly day-bucket."""
    id: int
    project_id: Optional[int] = None
    project_name: Optional[str] = None
    operator_id: Optional[int] = None
    operator_name: Optional[str] = None
    load_name: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    planned_hours: float
    actual_hours: Optional[float] = None
    notes: Optional[str] = None
    status: str

class DaySchedule(BaseModel):
    date: calendar_date
    day_name: str
    entries: List[ScheduleEntryView] = Field(default_factory=list)
    total_planned_hours: float = 0.0
    total_actual_hours: float = 0.0

class MachineWeek(BaseModel):
    machine_id: int
    machine_name: str
    days: List[DaySchedule]
    weekly_planned_hours: float = 0.0
    weekly_actual_hours: float = 0.0

class WeeklySchedule(BaseModel):
    week_start: calendar_date
    week_end: calendar_date
    machines: List[MachineWeek] = Field(default_factory=list)

class CopyWeekRequest(BaseModel):
    source_week_start: str = Field(description="YYYY-MM-DD")
    target_week_start: str = Field(description="YYYY-MM-DD")

class CopyWeekResponse(BaseModel):
    copied: int = 0

class MachineUtilization(BaseModel):
    machine_id: int
    machine_name: str
    planned_hours: float = 0.0
    actual_hours: float = 0.0
    schedule_count: int = 0
    efficiency_percentage: float = 0.0
