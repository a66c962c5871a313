from sqlalchemy import Column, String, DateTime, Integer, Boolean, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from ..database.core import Base


class InspectionChecklist(Base):
    __tablename__ = 'building_inspections'

    id = Column(String, primary_key=True)
    building_id = Column(String, nullable=False)
    building_name = Column(String, nullable=True)
    year = Column(Integer, nullable=False)
    month = Column(Integer, nullable=False)
    inspector_id = Column(String, nullable=True)
    inspector_name = Column(String, nullable=True)
    inspection_date = Column(DateTime(timezone=True), nullable=False)
    status = Column(String, nullable=False, default="scheduled")
    completion_date = Column(DateTime(timezone=True), nullable=True)
    notes = Column(String, nullable=True)
    next_inspection_date = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=True)
    version = Column(Integer, nullable=False)

    items = relationship(
        "ChecklistItem",
        back_populates="inspection",
        cascade="all, delete-orphan",
        order_by="ChecklistItem.position",
    )
    issues = relationship("Issue", back_populates="inspection", cascade="all, delete-orphan",
                          order_by="Issue.created_at")

    __table_args__ = (
        UniqueConstraint('building_id', 'year', 'month', name='uq_inspection_building_period'),
    )
    __mapper_args__ = {"version_id_col": version}

    def __repr__(self):
        return f"<InspectionChecklist(id={self.id}, status={self.status})>"


class ChecklistItem(Base):
    __tablename__ = 'inspection_checklist_items'

    inspection_id = Column(String, ForeignKey('building_inspections.id'), primary_key=True)
    id = Column(String, primary_key=True)
    position = Column(Integer, nullable=False, default=0)
    category = Column(String, nullable=False)
    title = Column(String, nullable=False)
    description = Column(String, nullable=True)
    space_id = Column(String, nullable=True)
    space_name = Column(String, nullable=True)
    is_required = Column(Boolean, nullable=False, default=True)
    priority = Column(String, nullable=False, default="medium")
    status = Column(String, nullable=False, default="pending")
    notes = Column(String, nullable=True)

    inspection = relationship("InspectionChecklist", back_populates="items")

    def __repr__(self):
        return f"<ChecklistItem(id={self.id}, status={self.status})>"
