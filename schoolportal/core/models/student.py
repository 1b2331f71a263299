from datetime import date, datetime

from sqlalchemy import Column, Date, DateTime, ForeignKey, String
from sqlalchemy.orm import relationship

from schoolportal.db.session import Base, generate_id


class Student(Base):
    """Student enrolled in exactly one class, linked to one parent."""

    __tablename__ = "students"

    id = Column(String(36), primary_key=True, default=generate_id)
    username = Column(String(100), nullable=False, unique=True)
    admissionnumber = Column(String(50), nullable=False, unique=True)
    firstname = Column(String(100), nullable=False)
    surname = Column(String(100), nullable=False)
    othername = Column(String(100), nullable=True)
    birthday = Column(Date, nullable=True)
    gender = Column(String(10), nullable=True)  # MALE | FEMALE
    email = Column(String(255), nullable=False, unique=True)
    phone = Column(String(50), nullable=True)
    address = Column(String(500), nullable=True)
    admissiondate = Column(Date, nullable=False, default=date.today)
    class_id = Column("classid", String(36), ForeignKey("classes.id", ondelete="RESTRICT"), nullable=False, index=True)
    parent_id = Column("parentid", String(36), ForeignKey("parents.id", ondelete="RESTRICT"), nullable=False, index=True)
    school_id = Column("schoolid", String(36), ForeignKey("schools.id", ondelete="SET NULL"), nullable=True)
    created_at = Column("createdAt", DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column("updateAt", DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    school_class = relationship("SchoolClass", back_populates="students")
    parent = relationship("Parent", back_populates="children")
