from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Session
from buildingops.entities.work_completion import WorkCompletion
from buildingops.exceptions import WorkCompletionNotFoundError
from buildingops.utils import to_utc, utcnow
from . import model
import logging


def _save(db: Session, completion: WorkCompletion) -> WorkCompletion:
    try:
        db.add(completion)
        db.commit()
        logging.info(f"Recorded {completion.work_type} completion {completion.id} for building {completion.building_id}")
        return completion
    except Exception as e:
        db.rollback()
        logging.error(f"Failed to record {completion.work_type} completion {completion.id}. Error: {str(e)}")
        raise


def _stamp(value: datetime) -> str:
    return to_utc(value).strftime("%Y%m%d%H%M%S%f")


def record_routine_completion(db: Session, request: model.RoutineCompletionRequest) -> WorkCompletion:
    completion = WorkCompletion(
        id=f"{request.routine_id}_{_stamp(request.completed_at)}",
        building_id=request.building_id,
        building_name=request.building_name,
        worker_id=request.worker_id,
        worker_name=request.worker_name,
        work_type="routine",
        category="daily_routine",
        title=request.routine_title,
        description=f"Routine completed: {request.routine_title}",
        location=request.location,
        status="completed",
        completed_at=to_utc(request.completed_at),
        verification_method=request.verification_method,
        notes=request.notes,
        quality_score=request.quality_score,
        source_ref=request.routine_id,
    )
    return _save(db, completion)


def record_work_item_completion(db: Session, request: model.WorkItemCompletionRequest) -> WorkCompletion:
    completion = WorkCompletion(
        id=f"{request.source_id}_{_stamp(request.completed_at)}",
        building_id=request.building_id,
        building_name=request.building_name,
        worker_id=request.worker_id,
        worker_name=request.worker_name,
        work_type=request.work_type,
        category=request.category,
        title=request.title,
        description=request.description,
        location=request.location,
        status="completed",
        completed_at=to_utc(request.completed_at),
        duration_minutes=request.duration_minutes,
        verification_method=request.verification_method,
        notes=request.notes,
        quality_score=request.quality_score,
        source_ref=request.source_id,
    )
    return _save(db, completion)


def record_site_departure(db: Session, request: model.DepartureRequest) -> WorkCompletion:
    building_label = request.building_name or request.building_id
    completion = WorkCompletion(
        id=f"{request.building_id}_{request.worker_id}_{_stamp(request.completed_at)}",
        building_id=request.building_id,
        building_name=request.building_name,
        worker_id=request.worker_id,
        worker_name=request.worker_name,
        work_type="departure",
        category="site_departure",
        title=f"Site Departure - {building_label}",
        description=(
            f"Completed {len(request.completed_tasks)} tasks "
            f"and {len(request.completed_routines)} routines"
        ),
        status="completed",
        completed_at=to_utc(request.completed_at),
        verification_method=request.verification_method or "photo",
        notes=request.notes,
    )
    return _save(db, completion)


def verify_work_completion(
    db: Session,
    completion_id: str,
    verified_by: str,
    notes: Optional[str] = None,
    quality_score: Optional[float] = None,
) -> WorkCompletion:
    """Manager sign-off on a recorded completion.

    Re-verifying overwrites the previous sign-off. The completion keeps its
    ``completed`` status; ``verified_at`` is what marks it as checked.
    """
    if quality_score is not None and not 1 <= quality_score <= 10:
        raise ValueError(f"Quality score must be between 1 and 10, got {quality_score}")

    completion = db.get(WorkCompletion, completion_id)
    if not completion:
        logging.warning(f"Work completion with ID {completion_id} not found.")
        raise WorkCompletionNotFoundError(completion_id)

    try:
        completion.verified_by = verified_by
        completion.verification_notes = notes
        completion.quality_score = quality_score
        completion.verified_at = utcnow()
        db.commit()
        logging.info(f"Work completion {completion_id} verified by {verified_by}")
        return completion
    except Exception as e:
        db.rollback()
        logging.error(f"Failed to verify work completion {completion_id}. Error: {str(e)}")
        raise
