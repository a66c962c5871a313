from datetime import datetime
from typing import Annotated, List, Literal, Optional, Union
from pydantic import BaseModel, Field, field_validator

from buildingops.utils import ensure_aware

WorkType = Literal["routine", "task", "maintenance", "inspection", "repair", "emergency", "departure"]
WorkStatus = Literal["completed", "in_progress", "pending", "failed", "cancelled"]

WORK_TYPES = ("routine", "task", "maintenance", "inspection", "repair", "emergency", "departure")


class WorkRecord(BaseModel):
    id: str
    work_type: WorkType
    building_id: str
    worker_id: str
    worker_name: str = ""
    title: str
    description: str = ""
    status: WorkStatus = "completed"
    completed_at: datetime
    location: Optional[str] = None
    verification_method: Optional[str] = None

    category: Optional[str] = None
    duration_minutes: Optional[int] = None
    notes: Optional[str] = None
    quality_score: Optional[float] = None
    verified_by: Optional[str] = None
    verification_notes: Optional[str] = None
    verified_at: Optional[datetime] = None

    model_config = {"from_attributes": True, "frozen": True}


class _RawItem(BaseModel):
    """Fields every collector row shares. completed_at may be missing on
    rows that are not finished yet; those never make it into a ledger."""

    id: str
    building_id: str
    worker_id: str
    worker_name: Optional[str] = None
    title: str
    description: Optional[str] = None
    status: WorkStatus = "completed"
    completed_at: Optional[datetime] = None
    location: Optional[str] = None
    verification_method: Optional[str] = None
    category: Optional[str] = None
    duration_minutes: Optional[int] = None
    notes: Optional[str] = None
    quality_score: Optional[float] = Field(default=None, ge=1, le=10)
    verified_by: Optional[str] = None
    verification_notes: Optional[str] = None
    verified_at: Optional[datetime] = None

    model_config = {"from_attributes": True, "extra": "ignore"}

    @field_validator("completed_at", "verified_at")
    @classmethod
    def _aware(cls, value):
        return ensure_aware(value)


class RoutineItem(_RawItem):
    work_type: Literal["routine"] = "routine"
    routine_id: Optional[str] = None


class TaskItem(_RawItem):
    work_type: Literal["task"] = "task"
    task_id: Optional[str] = None


class MaintenanceItem(_RawItem):
    work_type: Literal["maintenance"] = "maintenance"
    maintenance_id: Optional[str] = None


class InspectionItem(_RawItem):
    work_type: Literal["inspection"] = "inspection"
    inspection_id: Optional[str] = None


class RepairItem(_RawItem):
    work_type: Literal["repair"] = "repair"


class EmergencyItem(_RawItem):
    work_type: Literal["emergency"] = "emergency"


class DepartureItem(_RawItem):
    work_type: Literal["departure"] = "departure"
    completed_tasks: List[str] = []
    completed_routines: List[str] = []


RawItem = Annotated[
    Union[RoutineItem, TaskItem, MaintenanceItem, InspectionItem, RepairItem, EmergencyItem, DepartureItem],
    Field(discriminator="work_type"),
]


class SourceError(BaseModel):
    source: str
    message: str
    item_id: Optional[str] = None


class AggregationResult(BaseModel):
    ledger: List[WorkRecord] = []
    warnings: List[SourceError] = []
