from sqlalchemy import Column, String, DateTime, Integer
from ..database.core import Base


class SpacePhotoSummary(Base):
    __tablename__ = 'space_photo_summaries'

    building_id = Column(String, primary_key=True)
    space_id = Column(String, primary_key=True)
    photo_count = Column(Integer, nullable=False, default=0)
    last_photo_at = Column(DateTime(timezone=True), nullable=True)
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self):
        return f"<SpacePhotoSummary(space={self.space_id}, photos={self.photo_count})>"
