from typing import List, Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError
from buildingops.entities.photo import PhotoEvidence
from buildingops.exceptions import ConflictError, InvalidReferenceError, PhotoNotFoundError
from buildingops.spaces import service as spaces_service
from buildingops.utils import to_utc
from . import model
from .geofence import resolve_space
import logging


def _save(db: Session, photo: PhotoEvidence, *space_ids: Optional[str]) -> None:
    """Flush the photo, refresh the touched space summaries and commit.

    Summaries are only ever recomputed inside the photo's own building. A
    stale or duplicate write raises ConflictError naming the record that
    conflicted, the photo itself or one of its building's summaries.
    """
    building_id, photo_id = photo.building_id, photo.id
    conflicting = ("photo", photo_id)
    try:
        db.flush()
        conflicting = ("space photo summary", building_id)
        for space_id in sorted({space_id for space_id in space_ids if space_id}):
            spaces_service.recompute_space_summary(db, building_id, space_id)
        db.commit()
    except (StaleDataError, IntegrityError) as e:
        db.rollback()
        kind, key = conflicting
        logging.warning(f"Conflicting {kind} write for {key}. Error: {str(e)}")
        raise ConflictError(kind, key) from e
    except Exception as e:
        db.rollback()
        logging.error(f"Failed to save photo {photo_id}. Error: {str(e)}")
        raise


def _get_photo_entity(db: Session, photo_id: str) -> PhotoEvidence:
    photo = db.get(PhotoEvidence, photo_id)
    if not photo:
        logging.warning(f"Photo with ID {photo_id} not found.")
        raise PhotoNotFoundError(photo_id)
    return photo


def get_photo(db: Session, photo_id: str) -> model.PhotoEvidenceResponse:
    return model.PhotoEvidenceResponse.from_entity(_get_photo_entity(db, photo_id))


def _match(db: Session, photo: PhotoEvidence) -> model.SpaceResolution:
    spaces = spaces_service.get_spaces_for_building(db, photo.building_id)
    return resolve_space(model.PhotoEvidenceResponse.from_entity(photo), spaces)


def _photo_exists(db: Session, photo_id: str) -> bool:
    return db.get(PhotoEvidence, photo_id) is not None


def capture_photo(db: Session, request: model.PhotoCaptureRequest) -> model.PhotoEvidenceResponse:
    if _photo_exists(db, request.id):
        raise ConflictError("photo", request.id, f"Photo {request.id} has already been captured")

    photo = PhotoEvidence(
        id=request.id,
        building_id=request.building_id,
        worker_id=request.worker_id,
        task_id=request.task_id,
        image_uri=request.image_uri,
        thumbnail_uri=request.thumbnail_uri,
        captured_at=to_utc(request.captured_at),
        latitude=request.gps.latitude if request.gps else None,
        longitude=request.gps.longitude if request.gps else None,
        accuracy=request.gps.accuracy if request.gps else None,
        tags=list(request.tags),
    )
    db.add(photo)

    resolution = _match(db, photo)
    photo.detected_space_id = resolution.space_id if resolution.is_resolved else None
    photo.confidence = resolution.confidence

    _save(db, photo, photo.detected_space_id)
    logging.info(
        f"Captured photo {photo.id} for building {photo.building_id}, "
        f"resolved to {resolution.space_id} ({resolution.confidence:.0f}%)"
    )
    return model.PhotoEvidenceResponse.from_entity(photo)


def auto_resolve_photo(db: Session, photo_id: str) -> model.PhotoEvidenceResponse:
    """Re-run geofence matching for a stored photo.

    Photos carrying a worker override are left untouched.
    """
    photo = _get_photo_entity(db, photo_id)

    if photo.override_space_id:
        logging.info(f"Photo {photo_id} has a worker override, skipping automatic matching")
        return model.PhotoEvidenceResponse.from_entity(photo)

    resolution = _match(db, photo)
    previous = photo.detected_space_id
    detected = resolution.space_id if resolution.is_resolved else None

    photo.detected_space_id = detected
    photo.confidence = resolution.confidence

    if previous != detected:
        _save(db, photo, previous, detected)
    else:
        _save(db, photo)
    return model.PhotoEvidenceResponse.from_entity(photo)


def apply_override(db: Session, photo_id: str, space_id: str, note: Optional[str] = None) -> model.PhotoEvidenceResponse:
    photo = _get_photo_entity(db, photo_id)

    if not spaces_service.get_space(db, photo.building_id, space_id):
        logging.warning(f"Override for photo {photo_id} references unknown space {space_id}")
        raise InvalidReferenceError("Space", space_id, photo.building_id)

    if photo.override_space_id == space_id:
        photo.override_note = note
        _save(db, photo)
        logging.info(f"Updated override note on photo {photo_id}")
        return model.PhotoEvidenceResponse.from_entity(photo)

    previous = photo.resolved_space_id
    photo.override_space_id = space_id
    photo.override_note = note

    _save(db, photo, previous, space_id)
    logging.info(f"Photo {photo_id} overridden from {previous or model.UNRESOLVED} to {space_id}")
    return model.PhotoEvidenceResponse.from_entity(photo)


def get_photos_for_building(db: Session, building_id: str) -> List[model.PhotoEvidenceResponse]:
    photos = (
        db.query(PhotoEvidence)
        .filter(PhotoEvidence.building_id == building_id)
        .order_by(PhotoEvidence.captured_at.desc())
        .all()
    )
    return [model.PhotoEvidenceResponse.from_entity(photo) for photo in photos]


def get_photos_for_space(db: Session, building_id: str, space_id: str) -> List[model.PhotoEvidenceResponse]:
    photos = (
        db.query(PhotoEvidence)
        .filter(PhotoEvidence.building_id == building_id, spaces_service.resolved_space_filter(space_id))
        .order_by(PhotoEvidence.captured_at.desc())
        .all()
    )
    return [model.PhotoEvidenceResponse.from_entity(photo) for photo in photos]


def get_photos_for_worker(db: Session, worker_id: str) -> List[model.PhotoEvidenceResponse]:
    photos = (
        db.query(PhotoEvidence)
        .filter(PhotoEvidence.worker_id == worker_id)
        .order_by(PhotoEvidence.captured_at.desc())
        .all()
    )
    return [model.PhotoEvidenceResponse.from_entity(photo) for photo in photos]


def get_photos_for_task(db: Session, task_id: str) -> List[model.PhotoEvidenceResponse]:
    photos = (
        db.query(PhotoEvidence)
        .filter(PhotoEvidence.task_id == task_id)
        .order_by(PhotoEvidence.captured_at.desc())
        .all()
    )
    return [model.PhotoEvidenceResponse.from_entity(photo) for photo in photos]
