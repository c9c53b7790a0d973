"""
Schémas Pydantic pour les élèves.

Note : la tranche d'âge et le code de classe sont dérivés de la date de naissance
par le service ; s'ils sont fournis par le client, ils doivent être cohérents.
"""

import uuid
import datetime as dt
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, field_validator

from sathipasala.schemas.common import AgeGroup, BilingualText, ClassCode, OptionalBilingualText, parse_student_id

VALID_GENDERS = {"M", "F", "O"}


def _check_gender(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    v = v.strip().upper()
    if v not in VALID_GENDERS:
        raise ValueError(f"Genre invalide. Valeurs acceptées : {VALID_GENDERS}")
    return v


class ParentInfo(BaseModel):
    name: OptionalBilingualText = OptionalBilingualText()
    phone: str
    email: Optional[EmailStr] = None
    address: Optional[str] = None

    @field_validator("phone")
    @classmethod
    def phone_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Le numéro de téléphone du parent est obligatoire.")
        return v.strip()


class StudentCreate(BaseModel):
    """Schéma de création d'un élève (POST /api/students)."""
    student_id: Optional[str] = None  # généré si absent
    name: BilingualText
    date_of_birth: dt.date
    gender: Optional[str] = None
    class_year: str
    age_group: Optional[AgeGroup] = None
    class_code: Optional[ClassCode] = None
    parent_info: ParentInfo
    emergency_contact: Optional[str] = None
    profile_image_url: Optional[str] = None

    @field_validator("student_id")
    @classmethod
    def valid_student_id(cls, v: Optional[str]) -> Optional[str]:
        return parse_student_id(v) if v else None

    @field_validator("date_of_birth")
    @classmethod
    def birth_in_past(cls, v: dt.date) -> dt.date:
        if v >= dt.date.today():
            raise ValueError("La date de naissance doit être dans le passé.")
        return v

    @field_validator("gender")
    @classmethod
    def valid_gender(cls, v: Optional[str]) -> Optional[str]:
        return _check_gender(v)

    @field_validator("class_year")
    @classmethod
    def class_year_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("L'année de classe est obligatoire.")
        return v.strip()


class StudentUpdate(BaseModel):
    """Schéma de mise à jour (PUT /api/students/{id}). Les champs absents ne sont pas modifiés."""
    name: Optional[BilingualText] = None
    date_of_birth: Optional[dt.date] = None
    gender: Optional[str] = None
    class_year: Optional[str] = None
    age_group: Optional[AgeGroup] = None
    class_code: Optional[ClassCode] = None
    parent_info: Optional[ParentInfo] = None
    emergency_contact: Optional[str] = None
    profile_image_url: Optional[str] = None
    active: Optional[bool] = None

    @field_validator("date_of_birth")
    @classmethod
    def birth_in_past(cls, v: Optional[dt.date]) -> Optional[dt.date]:
        if v is not None and v >= dt.date.today():
            raise ValueError("La date de naissance doit être dans le passé.")
        return v

    @field_validator("gender")
    @classmethod
    def valid_gender(cls, v: Optional[str]) -> Optional[str]:
        return _check_gender(v)

    @field_validator("class_year")
    @classmethod
    def class_year_not_empty(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("L'année de classe ne peut pas être vide.")
        return v.strip() if v else v


class ParentInfoResponse(BaseModel):
    name: OptionalBilingualText
    phone: str
    email: Optional[str]
    address: Optional[str]


class StudentResponse(BaseModel):
    id: uuid.UUID
    student_id: str
    name: BilingualText
    date_of_birth: dt.date
    age: int
    age_group: str
    class_year: str
    class_code: str
    gender: Optional[str]
    parent_info: ParentInfoResponse
    emergency_contact: Optional[str]
    profile_image_url: Optional[str]
    active: bool
    created_at: Optional[datetime]
    updated_at: Optional[datetime]


class StudentBrief(BaseModel):
    """Résumé d'un élève dans les vues de présence."""
    id: uuid.UUID
    student_id: str
    name: BilingualText
    class_code: str
