from typing import Any, Callable, Dict, Optional
from pydantic import TypeAdapter

from .model import (
    RawItem, RoutineItem, TaskItem, MaintenanceItem, InspectionItem,
    RepairItem, EmergencyItem, DepartureItem, WorkRecord,
)

Mapper = Callable[[str, Any], Optional[WorkRecord]]

_raw_item_adapter = TypeAdapter(RawItem)


def _to_record(source: str, item) -> Optional[WorkRecord]:
    # Unfinished rows have no place in the ledger
    if item.completed_at is None:
        return None

    return WorkRecord(
        id=f"{source}_{item.id}",
        work_type=item.work_type,
        building_id=item.building_id,
        worker_id=item.worker_id,
        worker_name=item.worker_name or "",
        title=item.title,
        description=item.description or "",
        status=item.status,
        completed_at=item.completed_at,
        location=item.location,
        verification_method=item.verification_method or None,
        category=item.category,
        duration_minutes=item.duration_minutes,
        notes=item.notes,
        quality_score=item.quality_score,
        verified_by=item.verified_by,
        verification_notes=item.verification_notes,
        verified_at=item.verified_at,
    )


def map_routine(source: str, raw: Any) -> Optional[WorkRecord]:
    item = RoutineItem.model_validate(raw)
    if not item.description:
        item.description = f"Routine completed: {item.title}"
    return _to_record(source, item)


def map_task(source: str, raw: Any) -> Optional[WorkRecord]:
    return _to_record(source, TaskItem.model_validate(raw))


def map_maintenance(source: str, raw: Any) -> Optional[WorkRecord]:
    return _to_record(source, MaintenanceItem.model_validate(raw))


def map_inspection(source: str, raw: Any) -> Optional[WorkRecord]:
    return _to_record(source, InspectionItem.model_validate(raw))


def map_repair(source: str, raw: Any) -> Optional[WorkRecord]:
    return _to_record(source, RepairItem.model_validate(raw))


def map_emergency(source: str, raw: Any) -> Optional[WorkRecord]:
    return _to_record(source, EmergencyItem.model_validate(raw))


def map_departure(source: str, raw: Any) -> Optional[WorkRecord]:
    item = DepartureItem.model_validate(raw)
    if not item.description:
        item.description = (
            f"Completed {len(item.completed_tasks)} tasks and {len(item.completed_routines)} routines"
        )
    return _to_record(source, item)


def map_any(source: str, raw: Any) -> Optional[WorkRecord]:
    """Fallback for sources without a dedicated mapper, dispatching on the
    row's own ``work_type`` tag."""
    if isinstance(raw, dict):
        return _to_record(source, _raw_item_adapter.validate_python(raw))
    return _to_record(source, _raw_item_adapter.validate_python(raw, from_attributes=True))


MAPPERS: Dict[str, Mapper] = {
    "routine": map_routine,
    "task": map_task,
    "maintenance": map_maintenance,
    "inspection": map_inspection,
    "repair": map_repair,
    "emergency": map_emergency,
    "departure": map_departure,
}


def mapper_for(source: str) -> Mapper:
    return MAPPERS.get(source, map_any)
