"""
Modèles SQLAlchemy pour les examens et leurs résultats.
"""

import uuid
from sqlalchemy import Column, Date, DateTime, Float, ForeignKey, String, Text, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID

from sathipasala.database import Base


class Exam(Base):
    __tablename__ = "exams"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title_en = Column(String(255), nullable=False)
    title_si = Column(String(255), nullable=False)
    date = Column(Date, nullable=False)
    age_group = Column(String(10), nullable=False)
    exam_type = Column(String(10), nullable=False, default="written")  # written, oral, combined
    max_score = Column(Float, nullable=False)
    pass_mark = Column(Float, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class ExamResult(Base):
    """Résultat d'un élève à un examen, un seul par couple (examen, élève)."""
    __tablename__ = "exam_results"
    __table_args__ = (
        UniqueConstraint("exam_id", "student_id", name="uq_exam_result_exam_student"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    exam_id = Column(UUID(as_uuid=True), ForeignKey("exams.id", ondelete="CASCADE"), nullable=False)
    student_id = Column(UUID(as_uuid=True), ForeignKey("students.id", ondelete="CASCADE"), nullable=False)
    written_score = Column(Float, default=0)
    oral_score = Column(Float, default=0)
    total_score = Column(Float, default=0)  # dérivé à l'écriture
    remarks_en = Column(Text, nullable=True)
    remarks_si = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
