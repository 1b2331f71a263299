from datetime import datetime

from sqlalchemy import Column, DateTime, String

from schoolportal.db.session import Base, generate_id


class School(Base):
    """School profile. Read by every role; written by administration only."""

    __tablename__ = "schools"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(255), nullable=False)
    subtitle = Column(String(255), nullable=True)
    schooltype = Column(String(100), nullable=True)
    email = Column(String(255), nullable=False, unique=True)
    phone = Column(String(50), nullable=True)
    address = Column(String(500), nullable=False)
    logo = Column(String(500), nullable=True)
    created_at = Column("createdAt", DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column("updateAt", DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
