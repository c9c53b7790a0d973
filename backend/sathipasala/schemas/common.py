"""
Types partagés par les schémas : textes bilingues (en/si), énumérations du
domaine et enveloppe de réponse {success, data, message}.
"""

import re
from enum import Enum
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, field_validator

T = TypeVar("T")

STUDENT_ID_REGEX = re.compile(r"^BSP_\d{2}_\d{4}$")


class AgeGroup(str, Enum):
    AGE_3_6 = "3-6"
    AGE_7_10 = "7-10"
    AGE_11_14 = "11-14"
    AGE_15_17 = "15-17"


class ClassCode(str, Enum):
    """Classes de la Sathipasala, une par tranche d'âge."""
    ADH = "ADH"  # Adhiṭṭhāna, 3-6 ans
    MET = "MET"  # Mettā, 7-10 ans
    KHA = "KHA"  # Khanti, 11-14 ans
    NEK = "NEK"  # Nekkhamma, 15-17 ans


class AttendanceStatus(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"


class EventType(str, Enum):
    HOLIDAY = "holiday"
    POYA = "poya"
    FLOWER_OFFERING = "flowerOffering"
    SPECIAL = "special"


class ExamType(str, Enum):
    WRITTEN = "written"
    ORAL = "oral"
    COMBINED = "combined"


class DayType(str, Enum):
    POYA = "poya"
    HOLIDAY = "holiday"
    ORDINARY = "ordinary"


class BilingualText(BaseModel):
    """Texte obligatoire dans les deux langues (anglais et cinghalais)."""
    en: str
    si: str

    @field_validator("en", "si")
    @classmethod
    def not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Le texte ne peut pas être vide.")
        return v.strip()


class OptionalBilingualText(BaseModel):
    """Texte bilingue facultatif : chaque langue vaut "" par défaut."""
    en: str = ""
    si: str = ""

    @field_validator("en", "si", mode="before")
    @classmethod
    def default_empty(cls, v: Optional[str]) -> str:
        return v.strip() if v else ""


def parse_student_id(value: str) -> str:
    """Valide le format BSP_YY_NNNN et retourne l'identifiant normalisé."""
    candidate = (value or "").strip().upper()
    if not STUDENT_ID_REGEX.match(candidate):
        raise ValueError(f"Identifiant élève invalide : {value!r} (format attendu BSP_YY_NNNN).")
    return candidate


class ApiResponse(BaseModel, Generic[T]):
    """Enveloppe commune des réponses de l'API."""
    success: bool = True
    data: Optional[T] = None
    message: Optional[str] = None


class Pagination(BaseModel):
    total_items: int
    total_pages: int
    current_page: int
    limit: int


class PaginatedResponse(BaseModel, Generic[T]):
    success: bool = True
    data: List[T]
    pagination: Pagination
    message: Optional[str] = None
