from datetime import datetime
from typing import List, Literal, Optional
from pydantic import BaseModel, Field

VerificationMethod = Literal["photo", "signature", "gps", "manual", "automatic"]


class CompletionRequest(BaseModel):
    building_id: str
    building_name: Optional[str] = None
    worker_id: str
    worker_name: Optional[str] = None
    completed_at: datetime
    verification_method: Optional[VerificationMethod] = None
    notes: Optional[str] = None
    quality_score: Optional[float] = Field(default=None, ge=1, le=10)


class RoutineCompletionRequest(CompletionRequest):
    routine_id: str
    routine_title: str
    location: Optional[str] = None


class WorkItemCompletionRequest(CompletionRequest):
    """Task, maintenance, repair and emergency completions."""

    work_type: Literal["task", "maintenance", "repair", "emergency"]
    source_id: str
    title: str
    description: Optional[str] = None
    category: Optional[str] = None
    location: Optional[str] = None
    duration_minutes: Optional[int] = None


class DepartureRequest(CompletionRequest):
    completed_tasks: List[str] = []
    completed_routines: List[str] = []
