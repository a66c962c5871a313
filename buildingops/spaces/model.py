from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field

AccessType = Literal["key", "code", "card", "biometric"]


class Geofence(BaseModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    radius: float = Field(gt=0)  # meters


class BuildingSpaceRequest(BaseModel):
    id: str
    building_id: str
    name: str
    category: Optional[str] = None
    floor: Optional[int] = None
    geofence: Optional[Geofence] = None
    access_type: Optional[AccessType] = None
    is_accessible: bool = True


class BuildingSpaceResponse(BuildingSpaceRequest):

    @classmethod
    def from_entity(cls, space) -> "BuildingSpaceResponse":
        geofence = None
        if space.latitude is not None and space.longitude is not None and space.radius and space.radius > 0:
            geofence = Geofence(latitude=space.latitude, longitude=space.longitude, radius=space.radius)
        return cls(
            id=space.id,
            building_id=space.building_id,
            name=space.name,
            category=space.category,
            floor=space.floor,
            geofence=geofence,
            access_type=space.access_type,
            is_accessible=space.is_accessible,
        )


class SpaceWithPhotos(BuildingSpaceResponse):
    photo_count: int = 0
    last_photo_at: Optional[datetime] = None


class SpaceStats(BaseModel):
    total_spaces: int = 0
    accessible_spaces: int = 0
    key_access_spaces: int = 0
    code_access_spaces: int = 0
    categories_count: int = 0
    spaces_with_photos: int = 0
