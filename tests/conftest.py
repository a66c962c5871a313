from datetime import datetime, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from buildingops.database.core import init_db
from buildingops.inspections.model import ChecklistItemTemplate
from buildingops.spaces import service as spaces_service
from buildingops.spaces.model import BuildingSpaceRequest, Geofence

# One meter of latitude in degrees on a 6,371 km sphere
METER = 1 / 111194.92664455873

BUILDING_LAT = 40.7389
BUILDING_LON = -73.9928


@pytest.fixture
def session_factory(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'engine.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    init_db(engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def now():
    # A Wednesday afternoon
    return datetime(2024, 5, 15, 14, 30, tzinfo=timezone.utc)


def add_space(db, space_id, building_id="1", name=None, category=None, lat=BUILDING_LAT, lon=BUILDING_LON,
              radius=5.0, access_type="key"):
    geofence = Geofence(latitude=lat, longitude=lon, radius=radius) if radius else None
    return spaces_service.register_space(db, BuildingSpaceRequest(
        id=space_id,
        building_id=building_id,
        name=name or space_id,
        category=category,
        floor=1,
        geofence=geofence,
        access_type=access_type,
    ))


def three_item_template(db, building_id):
    return [
        ChecklistItemTemplate(id="elec_1", category="electrical", title="Main Electrical Room", priority="high"),
        ChecklistItemTemplate(id="fire_1", category="fire_safety", title="Fire Suppression System",
                              priority="critical"),
        ChecklistItemTemplate(id="roof_1", category="roof", title="Roof Drainage"),
    ]
