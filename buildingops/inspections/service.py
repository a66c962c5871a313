from datetime import datetime, timezone
from typing import List, Optional, Sequence
from uuid import uuid4
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError
from buildingops.entities.inspection import InspectionChecklist, ChecklistItem
from buildingops.entities.issue import Issue
from buildingops.exceptions import (
    ConflictError, InspectionNotFoundError, ChecklistItemNotFoundError,
    IssueNotFoundError, InvalidTransitionError,
)
from buildingops.utils import utcnow, to_utc
from . import model
from .templates import ChecklistTemplateProvider, default_template_provider
import logging


def inspection_id_for(building_id: str, year: int, month: int) -> str:
    return f"inspection_{building_id}_{year}_{month}"


def _next_month(year: int, month: int) -> datetime:
    if month == 12:
        return datetime(year + 1, 1, 1, tzinfo=timezone.utc)
    return datetime(year, month + 1, 1, tzinfo=timezone.utc)


def derive_status(item_statuses: Sequence[str]) -> str:
    finished = sum(1 for status in item_statuses if status != "pending")
    if item_statuses and finished == len(item_statuses):
        return "completed"
    if finished > 0:
        return "in_progress"
    return "scheduled"


def _find_inspection(db: Session, building_id: str, year: int, month: int) -> Optional[InspectionChecklist]:
    return (
        db.query(InspectionChecklist)
        .filter(
            InspectionChecklist.building_id == building_id,
            InspectionChecklist.year == year,
            InspectionChecklist.month == month,
        )
        .first()
    )


def _get_inspection_entity(db: Session, inspection_id: str) -> InspectionChecklist:
    inspection = db.get(InspectionChecklist, inspection_id)
    if not inspection:
        logging.warning(f"Inspection with ID {inspection_id} not found.")
        raise InspectionNotFoundError(inspection_id)
    return inspection


def get_inspection(db: Session, inspection_id: str) -> model.InspectionResponse:
    return model.InspectionResponse.model_validate(_get_inspection_entity(db, inspection_id))


def get_or_create_inspection(
    db: Session,
    building_id: str,
    year: int,
    month: int,
    building_name: Optional[str] = None,
    inspector_id: Optional[str] = None,
    inspector_name: Optional[str] = None,
    template_provider: ChecklistTemplateProvider = default_template_provider,
    now: Optional[datetime] = None,
) -> model.InspectionResponse:
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month: {month}")

    existing = _find_inspection(db, building_id, year, month)
    if existing:
        return model.InspectionResponse.model_validate(existing)

    now = to_utc(now) if now else utcnow()
    if (now.year, now.month) == (year, month):
        inspection_date = now
    else:
        inspection_date = datetime(year, month, 1, tzinfo=timezone.utc)

    inspection = InspectionChecklist(
        id=inspection_id_for(building_id, year, month),
        building_id=building_id,
        building_name=building_name,
        year=year,
        month=month,
        inspector_id=inspector_id,
        inspector_name=inspector_name,
        inspection_date=inspection_date,
        status="scheduled",
        notes="",
        next_inspection_date=_next_month(year, month),
        updated_at=now,
    )
    for position, template in enumerate(template_provider(db, building_id)):
        inspection.items.append(ChecklistItem(position=position, status="pending", **template.model_dump()))

    try:
        db.add(inspection)
        db.commit()
        logging.info(f"Created inspection {inspection.id} with {len(inspection.items)} checklist items")
        return model.InspectionResponse.model_validate(inspection)
    except IntegrityError:
        # Someone else created this period's checklist first
        db.rollback()
        existing = _find_inspection(db, building_id, year, month)
        if existing:
            logging.info(f"Inspection for building {building_id} {year}-{month:02d} created concurrently, reusing it")
            return model.InspectionResponse.model_validate(existing)
        raise ConflictError("inspection", inspection_id_for(building_id, year, month))
    except Exception as e:
        db.rollback()
        logging.error(f"Failed to create inspection for building {building_id}. Error: {str(e)}")
        raise


def _open_issue_for(inspection: InspectionChecklist, item_id: str) -> Optional[Issue]:
    for issue in inspection.issues:
        if issue.checklist_item_id == item_id and issue.status in ("open", "in_progress"):
            return issue
    return None


def _new_issue(inspection: InspectionChecklist, item_id: str, title: str, description: str,
               severity: str, assigned_to: Optional[str] = None) -> Issue:
    issue = Issue(
        id=f"issue_{uuid4().hex}",
        checklist_item_id=item_id,
        title=title,
        description=description,
        severity=severity,
        status="open",
        assigned_to=assigned_to,
        created_at=utcnow(),
    )
    inspection.issues.append(issue)
    return issue


def update_checklist_item(
    db: Session,
    inspection_id: str,
    item_id: str,
    status: str,
    notes: Optional[str] = None,
) -> model.InspectionResponse:
    if status not in model.ITEM_STATUSES:
        raise ValueError(f"Invalid checklist item status: {status}")

    inspection = _get_inspection_entity(db, inspection_id)
    item = next((item for item in inspection.items if item.id == item_id), None)
    if not item:
        logging.warning(f"Checklist item {item_id} not found on inspection {inspection_id}.")
        raise ChecklistItemNotFoundError(inspection_id, item_id)

    new_status = derive_status([status if i.id == item_id else i.status for i in inspection.items])
    order = model.INSPECTION_STATUS_ORDER
    if order.index(new_status) < order.index(inspection.status):
        raise InvalidTransitionError("Inspection", inspection.status, new_status)

    item.status = status
    if notes is not None:
        item.notes = notes

    inspection.status = new_status
    inspection.updated_at = utcnow()
    if new_status == "completed" and inspection.completion_date is None:
        inspection.completion_date = inspection.updated_at

    if status == "failed" and _open_issue_for(inspection, item_id) is None:
        issue = _new_issue(inspection, item_id, item.title, notes or item.description or "", item.priority)
        logging.info(f"Opened issue {issue.id} for failed checklist item {item_id}")

    try:
        db.commit()
    except StaleDataError as e:
        db.rollback()
        logging.warning(f"Stale write rejected on inspection {inspection_id}")
        raise ConflictError("inspection", inspection_id) from e
    except Exception as e:
        db.rollback()
        logging.error(f"Failed to update item {item_id} on inspection {inspection_id}. Error: {str(e)}")
        raise

    if new_status == "completed":
        logging.info(f"Inspection {inspection_id} completed")
    return model.InspectionResponse.model_validate(inspection)


def create_issue(
    db: Session,
    inspection_id: str,
    checklist_item_id: str,
    title: str,
    description: str,
    severity: str,
    assigned_to: Optional[str] = None,
) -> model.IssueResponse:
    if severity not in model.SEVERITIES:
        raise ValueError(f"Invalid severity: {severity}")

    inspection = _get_inspection_entity(db, inspection_id)
    if not any(item.id == checklist_item_id for item in inspection.items):
        raise ChecklistItemNotFoundError(inspection_id, checklist_item_id)

    try:
        issue = _new_issue(inspection, checklist_item_id, title, description, severity, assigned_to)
        db.commit()
        logging.info(f"Created issue {issue.id} on inspection {inspection_id}")
        return model.IssueResponse.model_validate(issue)
    except Exception as e:
        db.rollback()
        logging.error(f"Failed to create issue on inspection {inspection_id}. Error: {str(e)}")
        raise


def transition_issue(
    db: Session,
    issue_id: str,
    status: str,
    resolution_notes: Optional[str] = None,
    assigned_to: Optional[str] = None,
) -> model.IssueResponse:
    order = model.ISSUE_STATUS_ORDER
    if status not in order:
        raise ValueError(f"Invalid issue status: {status}")

    issue = db.get(Issue, issue_id)
    if not issue:
        logging.warning(f"Issue with ID {issue_id} not found.")
        raise IssueNotFoundError(issue_id)

    if order.index(status) < order.index(issue.status):
        raise InvalidTransitionError("Issue", issue.status, status)

    if status != issue.status:
        issue.status = status
        if status in ("resolved", "closed") and issue.resolved_at is None:
            issue.resolved_at = utcnow()
    if resolution_notes is not None:
        issue.resolution_notes = resolution_notes
    if assigned_to is not None:
        issue.assigned_to = assigned_to

    try:
        db.commit()
    except StaleDataError as e:
        db.rollback()
        logging.warning(f"Stale write rejected on issue {issue_id}")
        raise ConflictError("issue", issue_id) from e
    except Exception as e:
        db.rollback()
        logging.error(f"Failed to move issue {issue_id} to {status}. Error: {str(e)}")
        raise

    logging.info(f"Issue {issue_id} is now {issue.status}")
    return model.IssueResponse.model_validate(issue)


def list_issues(db: Session, inspection_id: str, status: Optional[str] = None) -> List[model.IssueResponse]:
    _get_inspection_entity(db, inspection_id)
    query = db.query(Issue).filter(Issue.inspection_id == inspection_id)
    if status:
        query = query.filter(Issue.status == status)
    return [model.IssueResponse.model_validate(issue) for issue in query.order_by(Issue.created_at).all()]


def inspection_progress(inspection: model.InspectionResponse) -> model.InspectionProgress:
    statuses = [item.status for item in inspection.items]
    total = len(statuses)
    pending = statuses.count("pending")
    return model.InspectionProgress(
        total=total,
        passed=statuses.count("passed"),
        failed=statuses.count("failed"),
        not_applicable=statuses.count("not_applicable"),
        pending=pending,
        percentage=round((total - pending) / total * 100) if total else 0,
    )
