from datetime import datetime
from typing import List, Literal, Optional
from pydantic import BaseModel, field_validator

from buildingops.utils import ensure_aware

InspectionStatus = Literal["scheduled", "in_progress", "completed"]
ItemStatus = Literal["pending", "passed", "failed", "not_applicable"]
Severity = Literal["low", "medium", "high", "critical"]
IssueStatus = Literal["open", "in_progress", "resolved", "closed"]
Category = Literal[
    "electrical", "mechanical", "fire_safety", "structural", "plumbing",
    "roof", "elevator", "accessibility", "security", "environmental",
]

# Lifecycles only ever move to the right
INSPECTION_STATUS_ORDER = ("scheduled", "in_progress", "completed")
ISSUE_STATUS_ORDER = ("open", "in_progress", "resolved", "closed")
ITEM_STATUSES = ("pending", "passed", "failed", "not_applicable")
SEVERITIES = ("low", "medium", "high", "critical")


class ChecklistItemTemplate(BaseModel):
    id: str
    category: Category
    title: str
    description: str = ""
    space_id: Optional[str] = None
    space_name: Optional[str] = None
    is_required: bool = True
    priority: Severity = "medium"


class ChecklistItemResponse(ChecklistItemTemplate):
    status: ItemStatus = "pending"
    notes: Optional[str] = None

    model_config = {"from_attributes": True}


class IssueResponse(BaseModel):
    id: str
    inspection_id: str
    checklist_item_id: str
    title: str
    description: Optional[str] = None
    severity: Severity
    status: IssueStatus
    assigned_to: Optional[str] = None
    resolution_notes: Optional[str] = None
    created_at: datetime
    resolved_at: Optional[datetime] = None

    model_config = {"from_attributes": True}

    @field_validator("created_at", "resolved_at")
    @classmethod
    def _aware(cls, value):
        return ensure_aware(value)


class InspectionResponse(BaseModel):
    id: str
    building_id: str
    building_name: Optional[str] = None
    year: int
    month: int
    inspector_id: Optional[str] = None
    inspector_name: Optional[str] = None
    inspection_date: datetime
    status: InspectionStatus
    completion_date: Optional[datetime] = None
    notes: Optional[str] = None
    next_inspection_date: datetime
    version: int
    items: List[ChecklistItemResponse] = []
    issues: List[IssueResponse] = []

    model_config = {"from_attributes": True}

    @field_validator("inspection_date", "completion_date", "next_inspection_date")
    @classmethod
    def _aware(cls, value):
        return ensure_aware(value)


class InspectionProgress(BaseModel):
    total: int = 0
    passed: int = 0
    failed: int = 0
    not_applicable: int = 0
    pending: int = 0
    percentage: int = 0
