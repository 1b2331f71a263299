from datetime import datetime

from sqlalchemy import Column, Date, DateTime, Integer, String

from schoolportal.db.session import Base, generate_id


class Term(Base):
    """
    Academic term. At most one term has status Active, and exactly one once any term exists.
    status is written only by the term lifecycle service (api/v1/terms/service.py).
    """

    __tablename__ = "terms"

    id = Column(String(36), primary_key=True, default=generate_id)
    session = Column(String(20), nullable=False)  # e.g. "2024/2025"
    term = Column(String(10), nullable=False)  # First | Second | Third
    start = Column(Date, nullable=False)
    end = Column(Date, nullable=False)
    nextterm = Column(Date, nullable=False)
    daysopen = Column(Integer, nullable=False)
    status = Column(String(10), nullable=False, default="Inactive", index=True)  # Active | Inactive
    created_at = Column("createdAt", DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column("updateAt", DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
