from sqlalchemy import Column, String, DateTime, Integer, ForeignKey
from sqlalchemy.orm import relationship
from ..database.core import Base


class Issue(Base):
    __tablename__ = 'inspection_issues'

    id = Column(String, primary_key=True)
    inspection_id = Column(String, ForeignKey('building_inspections.id'), nullable=False, index=True)
    checklist_item_id = Column(String, nullable=False)
    title = Column(String, nullable=False)
    description = Column(String, nullable=True)
    severity = Column(String, nullable=False)
    status = Column(String, nullable=False, default="open")
    assigned_to = Column(String, nullable=True)
    resolution_notes = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    resolved_at = Column(DateTime(timezone=True), nullable=True)
    version = Column(Integer, nullable=False)

    inspection = relationship("InspectionChecklist", back_populates="issues")

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self):
        return f"<Issue(id={self.id}, severity={self.severity}, status={self.status})>"
