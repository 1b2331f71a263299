from datetime import datetime

from sqlalchemy import Column, DateTime, String
from sqlalchemy.orm import relationship

from schoolportal.db.session import Base, generate_id


class Parent(Base):
    __tablename__ = "parents"

    id = Column(String(36), primary_key=True, default=generate_id)
    username = Column(String(100), nullable=False, unique=True)
    title = Column(String(20), nullable=True)
    firstname = Column(String(100), nullable=False)
    surname = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    phone = Column(String(50), nullable=True)
    created_at = Column("createdAt", DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column("updateAt", DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    children = relationship("Student", back_populates="parent")
