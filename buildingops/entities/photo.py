from sqlalchemy import Column, String, DateTime, Float, Integer, JSON
from ..database.core import Base


class PhotoEvidence(Base):
    __tablename__ = 'photo_evidence'

    id = Column(String, primary_key=True)
    building_id = Column(String, nullable=False, index=True)
    worker_id = Column(String, nullable=False)
    task_id = Column(String, nullable=True)
    image_uri = Column(String, nullable=False)
    thumbnail_uri = Column(String, nullable=True)
    captured_at = Column(DateTime(timezone=True), nullable=False)

    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    accuracy = Column(Float, nullable=True)

    tags = Column(JSON, nullable=False, default=list)

    # Smart location
    detected_space_id = Column(String, nullable=True)
    confidence = Column(Float, nullable=True)

    # Worker override, wins over smart location once set
    override_space_id = Column(String, nullable=True)
    override_note = Column(String, nullable=True)

    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    @property
    def resolved_space_id(self):
        return self.override_space_id or self.detected_space_id

    def __repr__(self):
        return f"<PhotoEvidence(id={self.id}, building={self.building_id}, space={self.resolved_space_id})>"
