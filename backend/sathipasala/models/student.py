"""
Modèle SQLAlchemy pour la table students.
Nom bilingue (en/si) à plat, tranche d'âge et code de classe dérivés de la date
de naissance à l'écriture.
"""

import uuid
from sqlalchemy import Boolean, Column, Date, DateTime, String, Text, func
from sqlalchemy.dialects.postgresql import UUID

from sathipasala.database import Base


class Student(Base):
    __tablename__ = "students"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    student_id = Column(String(20), unique=True, nullable=False)  # BSP_YY_NNNN
    name_en = Column(String(150), nullable=False)
    name_si = Column(String(150), nullable=False)
    date_of_birth = Column(Date, nullable=False)
    gender = Column(String(1), nullable=True)  # M, F, O
    age_group = Column(String(10), nullable=False)  # 3-6, 7-10, 11-14, 15-17
    class_year = Column(String(20), nullable=False)
    class_code = Column(String(3), nullable=False)  # ADH, MET, KHA, NEK

    parent_name_en = Column(String(150), nullable=True)
    parent_name_si = Column(String(150), nullable=True)
    parent_phone = Column(String(30), nullable=False)
    parent_email = Column(String(255), nullable=True)
    parent_address = Column(Text, nullable=True)
    emergency_contact = Column(String(30), nullable=True)

    profile_image_url = Column(String(500), nullable=True)
    active = Column(Boolean, default=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
