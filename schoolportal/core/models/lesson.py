"""A scheduled lesson: one teacher teaching one subject to one class. Source of a teacher's taught classes."""

from sqlalchemy import Column, ForeignKey, Integer, String, Time
from sqlalchemy.orm import relationship

from schoolportal.db.session import Base, generate_id


class Lesson(Base):
    __tablename__ = "lessons"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(255), nullable=False)
    day_of_week = Column(Integer, nullable=True)  # 0=Monday .. 6=Sunday
    start_time = Column(Time, nullable=True)
    end_time = Column(Time, nullable=True)
    teacher_id = Column("teacherid", String(36), ForeignKey("teachers.id", ondelete="CASCADE"), nullable=False, index=True)
    class_id = Column("classid", String(36), ForeignKey("classes.id", ondelete="CASCADE"), nullable=False, index=True)
    subject_id = Column("subjectid", String(36), ForeignKey("subjects.id", ondelete="CASCADE"), nullable=False)

    teacher = relationship("Teacher")
    school_class = relationship("SchoolClass")
    subject = relationship("Subject", back_populates="lessons")
