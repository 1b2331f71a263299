from datetime import datetime

from sqlalchemy import Column, DateTime, String

from schoolportal.db.session import Base, generate_id


class Administration(Base):
    """Back-office account. role is one of super, admin, management."""

    __tablename__ = "administration"

    id = Column(String(36), primary_key=True, default=generate_id)
    username = Column(String(100), nullable=False, unique=True)
    email = Column(String(255), nullable=False, unique=True)
    role = Column(String(20), nullable=False)
    created_at = Column("createdAt", DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column("updateAt", DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
