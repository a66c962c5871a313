from sqlalchemy import Column, String, Integer, Float, Boolean
from ..database.core import Base


class BuildingSpace(Base):
    __tablename__ = 'building_spaces'

    id = Column(String, primary_key=True)
    building_id = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    category = Column(String, nullable=True)
    floor = Column(Integer, nullable=True)
    access_type = Column(String, nullable=True)
    is_accessible = Column(Boolean, nullable=False, default=True)

    # Geofence, all three set or none
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    radius = Column(Float, nullable=True)

    def __repr__(self):
        return f"<BuildingSpace(id='{self.id}', building='{self.building_id}', name='{self.name}')>"
