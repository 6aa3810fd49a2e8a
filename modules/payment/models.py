"""
Payment Module - Models
========================
Processed webhook deliveries, kept so vendor retries are not applied twice.
"""

from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from config.database import Base


class WebhookEvent(Base):
    __tablename__ = "webhook_events"

    id = Column(Integer, primary_key=True)
    webhook_id = Column(String(255), unique=True, nullable=False, index=True)
    event_type = Column(String(100), nullable=True)
    received_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
