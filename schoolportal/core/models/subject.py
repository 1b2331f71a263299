from sqlalchemy import Column, ForeignKey, String, Table
from sqlalchemy.orm import relationship

from schoolportal.db.session import Base, generate_id

# Teachers qualified to teach a subject (independent of the lessons actually scheduled)
subject_teachers = Table(
    "subject_teachers",
    Base.metadata,
    Column("subject_id", String(36), ForeignKey("subjects.id", ondelete="CASCADE"), primary_key=True),
    Column("teacher_id", String(36), ForeignKey("teachers.id", ondelete="CASCADE"), primary_key=True),
)


class Subject(Base):
    __tablename__ = "subjects"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(255), nullable=False)
    category = Column(String(100), nullable=False)
    school_id = Column("schoolid", String(36), ForeignKey("schools.id", ondelete="CASCADE"), nullable=False)

    teachers = relationship("Teacher", secondary=subject_teachers, back_populates="subjects")
    lessons = relationship("Lesson", back_populates="subject")
