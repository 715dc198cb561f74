from datetime import datetime

from sqlalchemy import Column, String, DateTime, Text

from elsquiz.core.database import Base


class StoredValue(Base):
    """One entry of the local key-value store (progress records, learner name)."""
    __tablename__ = "local_storage"

    key = Column(String(255), primary_key=True)  # e.g. "unit_1_exercise_definition"
    value = Column(Text, nullable=False)  # JSON text for progress records
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
