from sqlalchemy import Column, String, DateTime, Integer, Float, Index
from ..database.core import Base


class WorkCompletion(Base):
    __tablename__ = 'work_completions'

    id = Column(String, primary_key=True)
    building_id = Column(String, nullable=False)
    building_name = Column(String, nullable=True)
    worker_id = Column(String, nullable=False)
    worker_name = Column(String, nullable=True)
    work_type = Column(String, nullable=False)
    category = Column(String, nullable=True)
    title = Column(String, nullable=False)
    description = Column(String, nullable=True)
    location = Column(String, nullable=True)
    status = Column(String, nullable=False, default="completed")
    completed_at = Column(DateTime(timezone=True), nullable=True)
    duration_minutes = Column(Integer, nullable=True)
    verification_method = Column(String, nullable=True)
    notes = Column(String, nullable=True)
    quality_score = Column(Float, nullable=True)

    # Admin sign-off
    verified_by = Column(String, nullable=True)
    verification_notes = Column(String, nullable=True)
    verified_at = Column(DateTime(timezone=True), nullable=True)

    # Id of the routine/task/maintenance row this completion closes out
    source_ref = Column(String, nullable=True)

    __table_args__ = (
        Index('ix_work_completions_building_type_time', 'building_id', 'work_type', 'completed_at'),
    )

    def __repr__(self):
        return f"<WorkCompletion(id={self.id}, type={self.work_type}, building={self.building_id})>"
