from sqlalchemy import Column, DateTime, ForeignKey, String, Text
from sqlalchemy.orm import relationship

from schoolportal.db.session import Base, generate_id


class Event(Base):
    """Calendar event for one class, or school-wide when class_id is null."""

    __tablename__ = "events"

    id = Column(String(36), primary_key=True, default=generate_id)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    start_time = Column("startTime", DateTime(timezone=True), nullable=False)
    end_time = Column("endTime", DateTime(timezone=True), nullable=False)
    class_id = Column("classId", String(36), ForeignKey("classes.id", ondelete="CASCADE"), nullable=True, index=True)

    school_class = relationship("SchoolClass")
