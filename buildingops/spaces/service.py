from typing import List, Optional
from sqlalchemy import and_, func, or_
from sqlalchemy.orm import Session
from buildingops.entities.building_space import BuildingSpace
from buildingops.entities.photo import PhotoEvidence
from buildingops.entities.space_summary import SpacePhotoSummary
from buildingops.utils import ensure_aware
from . import model
import logging


def register_space(db: Session, request: model.BuildingSpaceRequest) -> BuildingSpace:
    try:
        space = BuildingSpace(
            id=request.id,
            building_id=request.building_id,
            name=request.name,
            category=request.category,
            floor=request.floor,
            access_type=request.access_type,
            is_accessible=request.is_accessible,
            latitude=request.geofence.latitude if request.geofence else None,
            longitude=request.geofence.longitude if request.geofence else None,
            radius=request.geofence.radius if request.geofence else None,
        )
        db.add(space)
        db.commit()
        logging.info(f"Registered space {request.id} for building {request.building_id}")
        return space
    except Exception as e:
        db.rollback()
        logging.error(f"Failed to register space {request.id}. Error: {str(e)}")
        raise


def get_space(db: Session, building_id: str, space_id: str) -> Optional[BuildingSpace]:
    return (
        db.query(BuildingSpace)
        .filter(BuildingSpace.building_id == building_id, BuildingSpace.id == space_id)
        .first()
    )


def get_spaces_for_building(db: Session, building_id: str) -> List[model.BuildingSpaceResponse]:
    spaces = (
        db.query(BuildingSpace)
        .filter(BuildingSpace.building_id == building_id)
        .order_by(BuildingSpace.id)
        .all()
    )
    return [model.BuildingSpaceResponse.from_entity(space) for space in spaces]


def resolved_space_filter(space_id: str):
    """SQL form of "override if present, else detected"."""
    return or_(
        PhotoEvidence.override_space_id == space_id,
        and_(PhotoEvidence.override_space_id.is_(None), PhotoEvidence.detected_space_id == space_id),
    )


def recompute_space_summary(db: Session, building_id: str, space_id: str) -> SpacePhotoSummary:
    """Refresh photo count and last photo date for one space.

    Flushes but does not commit; the caller owns the transaction so the photo
    change and the summary land together. A summary row changed by someone
    else since it was loaded raises StaleDataError on flush.
    """
    photo_count, last_photo_at = (
        db.query(func.count(PhotoEvidence.id), func.max(PhotoEvidence.captured_at))
        .filter(PhotoEvidence.building_id == building_id, resolved_space_filter(space_id))
        .one()
    )

    summary = db.get(SpacePhotoSummary, (building_id, space_id))
    if summary is None:
        summary = SpacePhotoSummary(building_id=building_id, space_id=space_id)
        db.add(summary)

    summary.photo_count = photo_count
    summary.last_photo_at = last_photo_at
    db.flush()
    return summary


def list_spaces_with_photos(db: Session, building_id: str) -> List[model.SpaceWithPhotos]:
    summaries = {
        summary.space_id: summary
        for summary in db.query(SpacePhotoSummary).filter(SpacePhotoSummary.building_id == building_id)
    }

    result = []
    for space in get_spaces_for_building(db, building_id):
        summary = summaries.get(space.id)
        result.append(model.SpaceWithPhotos(
            **space.model_dump(),
            photo_count=summary.photo_count if summary else 0,
            last_photo_at=ensure_aware(summary.last_photo_at) if summary else None,
        ))
    return result


def get_space_stats(db: Session, building_id: str) -> model.SpaceStats:
    spaces = list_spaces_with_photos(db, building_id)
    return model.SpaceStats(
        total_spaces=len(spaces),
        accessible_spaces=sum(1 for s in spaces if s.is_accessible),
        key_access_spaces=sum(1 for s in spaces if s.access_type == "key"),
        code_access_spaces=sum(1 for s in spaces if s.access_type == "code"),
        categories_count=len({s.category for s in spaces if s.category}),
        spaces_with_photos=sum(1 for s in spaces if s.photo_count > 0),
    )
