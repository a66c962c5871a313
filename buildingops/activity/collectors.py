from datetime import datetime
from typing import Any, Dict, List, Protocol, runtime_checkable
from sqlalchemy import inspect

from buildingops.database.core import SessionLocal, get_session
from buildingops.entities.work_completion import WorkCompletion
from buildingops.entities.inspection import InspectionChecklist
from buildingops.utils import to_utc


@runtime_checkable
class SourceCollector(Protocol):
    """Read contract every work source exposes to the aggregator."""

    source: str

    def list_items(self, building_id: str, start: datetime, end: datetime) -> List[Any]:
        ...


def _row_to_dict(row) -> Dict[str, Any]:
    return {attr.key: getattr(row, attr.key) for attr in inspect(row).mapper.column_attrs}


class WorkCompletionCollector:
    """Lists one work type out of the ``work_completions`` table."""

    def __init__(self, work_type: str, session_factory=SessionLocal):
        self.source = work_type
        self.work_type = work_type
        self.session_factory = session_factory

    def list_items(self, building_id: str, start: datetime, end: datetime) -> List[Dict[str, Any]]:
        start, end = to_utc(start), to_utc(end)
        with get_session(self.session_factory) as db:
            rows = (
                db.query(WorkCompletion)
                .filter(
                    WorkCompletion.building_id == building_id,
                    WorkCompletion.work_type == self.work_type,
                    WorkCompletion.completed_at >= start,
                    WorkCompletion.completed_at <= end,
                )
                .all()
            )
            return [_row_to_dict(row) for row in rows]

    def __repr__(self):
        return f"<WorkCompletionCollector(work_type={self.work_type})>"


class InspectionCollector:
    """Surfaces completed monthly inspections as inspection work."""

    source = "inspection"

    def __init__(self, session_factory=SessionLocal):
        self.session_factory = session_factory

    def list_items(self, building_id: str, start: datetime, end: datetime) -> List[Dict[str, Any]]:
        start, end = to_utc(start), to_utc(end)
        with get_session(self.session_factory) as db:
            checklists = (
                db.query(InspectionChecklist)
                .filter(
                    InspectionChecklist.building_id == building_id,
                    InspectionChecklist.status == "completed",
                    InspectionChecklist.completion_date >= start,
                    InspectionChecklist.completion_date <= end,
                )
                .all()
            )

            items = []
            for checklist in checklists:
                passed = sum(1 for item in checklist.items if item.status == "passed")
                failed = sum(1 for item in checklist.items if item.status == "failed")
                items.append({
                    "id": checklist.id,
                    "work_type": "inspection",
                    "inspection_id": checklist.id,
                    "building_id": checklist.building_id,
                    "worker_id": checklist.inspector_id or "unknown",
                    "worker_name": checklist.inspector_name,
                    "title": f"Monthly Inspection - {checklist.building_name or checklist.building_id}",
                    "description": f"{passed} passed, {failed} failed of {len(checklist.items)} checklist items",
                    "status": "completed",
                    "completed_at": checklist.completion_date,
                    "category": "building_inspection",
                    "verification_method": "checklist",
                    "notes": checklist.notes,
                })
            return items
