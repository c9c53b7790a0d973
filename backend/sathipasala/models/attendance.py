"""
Modèle SQLAlchemy pour les présences.

Un enregistrement par (élève, date), garanti par l'index uq_attendance_student_date.
Le taux de présence n'est jamais stocké : il est recalculé à la lecture.
"""

import uuid
from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, String, Text, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID

from sathipasala.database import Base


class Attendance(Base):
    """Présence d'un élève à une date, avec l'offrande de fleurs éventuelle."""
    __tablename__ = "attendances"
    __table_args__ = (
        UniqueConstraint("student_id", "date", name="uq_attendance_student_date"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    student_id = Column(UUID(as_uuid=True), ForeignKey("students.id", ondelete="CASCADE"), nullable=False)
    date = Column(Date, nullable=False)
    status = Column(String(10), nullable=False, default="present")  # present, absent, late
    reason = Column(Text, nullable=True)

    flower_brought = Column(Boolean, default=False)
    flower_type = Column(String(100), nullable=True)
    flower_notes = Column(Text, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
