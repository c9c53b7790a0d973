"""
Modèle SQLAlchemy pour les évènements du calendrier scolaire
(jours fériés, Poya, offrandes de fleurs, évènements spéciaux).
"""

import uuid
from sqlalchemy import Boolean, Column, Date, DateTime, String, Text, func
from sqlalchemy.dialects.postgresql import UUID

from sathipasala.database import Base


class CalendarEvent(Base):
    __tablename__ = "calendar_events"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title_en = Column(String(255), nullable=False)
    title_si = Column(String(255), nullable=False)
    description_en = Column(Text, nullable=True)
    description_si = Column(Text, nullable=True)
    date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)  # = date si absent
    event_type = Column("type", String(20), nullable=False)  # holiday, poya, flowerOffering, special
    is_recurring_yearly = Column(Boolean, default=False)
    color = Column(String(20), default="#4299e1")
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
