from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field

from buildingops.utils import ensure_aware

UNRESOLVED = "unresolved"


class GpsCoordinate(BaseModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    accuracy: Optional[float] = Field(default=None, ge=0)  # meters


class SmartLocation(BaseModel):
    detected_space_id: Optional[str] = None
    confidence: float = 0.0


class WorkerOverride(BaseModel):
    space_id: str
    note: Optional[str] = None


class PhotoCaptureRequest(BaseModel):
    id: str
    building_id: str
    worker_id: str
    task_id: Optional[str] = None
    image_uri: str
    thumbnail_uri: Optional[str] = None
    captured_at: datetime
    gps: Optional[GpsCoordinate] = None
    tags: List[str] = []


class PhotoEvidenceResponse(PhotoCaptureRequest):
    smart_location: Optional[SmartLocation] = None
    worker_override: Optional[WorkerOverride] = None

    @property
    def resolved_space_id(self) -> str:
        if self.worker_override:
            return self.worker_override.space_id
        if self.smart_location and self.smart_location.detected_space_id:
            return self.smart_location.detected_space_id
        return UNRESOLVED

    @classmethod
    def from_entity(cls, photo) -> "PhotoEvidenceResponse":
        gps = None
        if photo.latitude is not None and photo.longitude is not None:
            gps = GpsCoordinate(latitude=photo.latitude, longitude=photo.longitude, accuracy=photo.accuracy)

        smart_location = None
        if photo.confidence is not None:
            smart_location = SmartLocation(detected_space_id=photo.detected_space_id, confidence=photo.confidence)

        override = None
        if photo.override_space_id:
            override = WorkerOverride(space_id=photo.override_space_id, note=photo.override_note)

        return cls(
            id=photo.id,
            building_id=photo.building_id,
            worker_id=photo.worker_id,
            task_id=photo.task_id,
            image_uri=photo.image_uri,
            thumbnail_uri=photo.thumbnail_uri,
            captured_at=ensure_aware(photo.captured_at),
            gps=gps,
            tags=list(photo.tags or []),
            smart_location=smart_location,
            worker_override=override,
        )


class SpaceResolution(BaseModel):
    space_id: str = UNRESOLVED
    confidence: float = 0.0

    @property
    def is_resolved(self) -> bool:
        return self.space_id != UNRESOLVED
