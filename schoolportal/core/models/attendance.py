"""Per-lesson attendance. One row per (student, lesson, date)."""

from sqlalchemy import Boolean, Column, Date, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import relationship

from schoolportal.db.session import Base, generate_id


class Attendance(Base):
    __tablename__ = "attendance"
    __table_args__ = (
        UniqueConstraint("studentId", "lessonId", "date", name="uq_attendance_student_lesson_date"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    date = Column(Date, nullable=False)
    present = Column(Boolean, nullable=False)
    student_id = Column("studentId", String(36), ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    lesson_id = Column("lessonId", String(36), ForeignKey("lessons.id", ondelete="CASCADE"), nullable=False, index=True)

    student = relationship("Student")
    lesson = relationship("Lesson")
