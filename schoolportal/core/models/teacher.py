from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, String
from sqlalchemy.orm import relationship

from schoolportal.db.session import Base, generate_id


class Teacher(Base):
    __tablename__ = "teachers"

    id = Column(String(36), primary_key=True, default=generate_id)
    username = Column(String(100), nullable=False, unique=True)
    title = Column(String(20), nullable=True)
    firstname = Column(String(100), nullable=False)
    surname = Column(String(100), nullable=False)
    othername = Column(String(100), nullable=True)
    email = Column(String(255), nullable=False, unique=True)
    phone = Column(String(50), nullable=True)
    school_id = Column("schoolid", String(36), ForeignKey("schools.id", ondelete="SET NULL"), nullable=True)
    created_at = Column("createdAt", DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column("updateAt", DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    subjects = relationship("Subject", secondary="subject_teachers", back_populates="teachers")
