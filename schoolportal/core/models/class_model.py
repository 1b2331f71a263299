"""School classes (e.g. JSS1A, SS2B). Model named SchoolClass to avoid Python 'class' keyword."""
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from schoolportal.db.session import Base, generate_id


class SchoolClass(Base):
    __tablename__ = "classes"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(50), nullable=False, unique=True)
    category = Column(String(50), nullable=False)
    level = Column(String(50), nullable=False)
    capacity = Column(Integer, nullable=True)
    # Teacher responsible for the class; sees it even without a lesson there
    form_master_id = Column("formmasterid", String(36), ForeignKey("teachers.id", ondelete="SET NULL"), nullable=True)
    created_at = Column("createdAt", DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column("updateAt", DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    form_master = relationship("Teacher", foreign_keys=[form_master_id])
    students = relationship("Student", back_populates="school_class")
