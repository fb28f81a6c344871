"""
CrisisLog: one row per message the crisis detector flagged.
Critical events are marked for admin follow-up.
"""
from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text
from sqlalchemy.sql import func
from sqlalchemy.types import JSON
from companion.db.base import Base


class CrisisLog(Base):
    __tablename__ = "crisis_logs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(128), nullable=False, index=True)
    message = Column(Text, nullable=False)
    severity = Column(String(16), nullable=False)  # low | medium | high | critical
    keywords_detected = Column(JSON, nullable=True)
    admin_notified = Column(Boolean, nullable=False, default=False)
    admin_notified_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
