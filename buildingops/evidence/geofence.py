"""Geofence matching between photo GPS fixes and building spaces.

A space is a candidate when the photo lies within its radius plus the GPS
accuracy reported for the fix. Confidence falls off linearly from 100 at the
geofence centre to 0 at the radius, so a candidate admitted only through the
accuracy margin scores 0. The best candidate is the one with the highest
confidence; on a tie the tighter geofence wins, then the lower space id.
"""
import math
from typing import Iterable, Optional

from buildingops.spaces.model import BuildingSpaceResponse
from .model import GpsCoordinate, SpaceResolution, UNRESOLVED

EARTH_RADIUS_M = 6371000.0


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in meters."""
    p1 = math.radians(lat1)
    p2 = math.radians(lat2)
    d1 = math.radians(lat2 - lat1)
    d2 = math.radians(lon2 - lon1)
    a = math.sin(d1 / 2) ** 2 + math.cos(p1) * math.cos(p2) * math.sin(d2 / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def confidence_for(distance: float, radius: float) -> float:
    return max(0.0, min(100.0, 100.0 * (1 - distance / radius)))


def resolve_gps(gps: Optional[GpsCoordinate], spaces: Iterable[BuildingSpaceResponse]) -> SpaceResolution:
    if gps is None:
        return SpaceResolution()

    accuracy = gps.accuracy or 0.0
    best = None
    for space in spaces:
        fence = space.geofence
        if fence is None or fence.radius <= 0:
            continue

        distance = haversine_distance(gps.latitude, gps.longitude, fence.latitude, fence.longitude)
        if distance > fence.radius + accuracy:
            continue

        # Sorts highest confidence first, then smaller radius, then id
        rank = (-confidence_for(distance, fence.radius), fence.radius, space.id)
        if best is None or rank < best:
            best = rank

    if best is None:
        return SpaceResolution(space_id=UNRESOLVED, confidence=0.0)
    return SpaceResolution(space_id=best[2], confidence=-best[0])


def resolve_space(photo, spaces: Iterable[BuildingSpaceResponse]) -> SpaceResolution:
    """Match a photo (anything carrying ``gps``) against a building's spaces."""
    return resolve_gps(getattr(photo, "gps", None), spaces)
