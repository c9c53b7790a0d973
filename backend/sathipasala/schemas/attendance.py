"""
Schémas Pydantic pour les présences, le marquage en lot et les rapports.
"""

import uuid
import datetime as dt
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, field_validator, model_validator

from sathipasala.schemas.common import AttendanceStatus
from sathipasala.schemas.student import StudentBrief

DEFAULT_FLOWER_TYPE = "Mixed Flowers"
MAX_BATCH_SIZE = 500


class FlowerOffering(BaseModel):
    """Offrande de fleurs apportée par l'élève ce jour-là."""
    brought: bool = False
    type: Optional[str] = None
    notes: str = ""

    @model_validator(mode="after")
    def default_type(self) -> "FlowerOffering":
        if not self.brought:
            self.type = None
        elif not (self.type or "").strip():
            self.type = DEFAULT_FLOWER_TYPE
        return self


class AttendanceMark(BaseModel):
    """Statut en attente pour un élève du registre, avant enregistrement."""
    student_id: uuid.UUID
    status: AttendanceStatus = AttendanceStatus.PRESENT
    reason: Optional[str] = None
    flower_offering: FlowerOffering = FlowerOffering()


class AttendanceCreate(AttendanceMark):
    """Marquage d'un seul élève (POST /api/attendance)."""
    date: dt.date


class AttendanceBatch(BaseModel):
    """Marquage d'une classe entière (POST /api/attendance/batch)."""
    date: dt.date
    records: List[AttendanceMark]
    mark_all: Optional[AttendanceStatus] = None  # "tous présents / absents / en retard"
    confirm_non_class_day: bool = False

    @field_validator("records")
    @classmethod
    def records_size(cls, v: List[AttendanceMark]) -> List[AttendanceMark]:
        if not v:
            raise ValueError("La liste de présences ne peut pas être vide.")
        if len(v) > MAX_BATCH_SIZE:
            raise ValueError(f"Lot trop grand : maximum {MAX_BATCH_SIZE} présences par requête.")
        return v


class AttendanceResponse(BaseModel):
    id: uuid.UUID
    student_id: uuid.UUID
    date: dt.date
    status: AttendanceStatus
    reason: Optional[str]
    flower_offering: FlowerOffering
    created_at: Optional[datetime]
    updated_at: Optional[datetime]


class AttendanceWithStudent(AttendanceResponse):
    student: StudentBrief


class BatchResult(BaseModel):
    """Rapport de marquage en lot."""
    created: int
    updated: int
    failed: int
    errors: List[str]


class AttendanceSummary(BaseModel):
    present: int = 0
    absent: int = 0
    late: int = 0
    total: int = 0
    attendance_rate: float = 0.0  # pourcentage, une décimale
    flower_offerings: int = 0
    last_attendance: Optional[dt.date] = None


class StudentAttendanceSummary(BaseModel):
    student: StudentBrief
    summary: AttendanceSummary


class StudentAttendanceHistory(BaseModel):
    student: StudentBrief
    records: List[AttendanceResponse]
    summary: AttendanceSummary


class RosterEntry(BaseModel):
    student: StudentBrief
    status: AttendanceStatus
    flower_brought: bool


class DailyRoster(BaseModel):
    """Registre d'une classe pour une date."""
    date: dt.date
    class_code: str
    entries: List[RosterEntry]
    present: int
    absent: int
    late: int
    total: int
    attendance_rate: float
    flower_offerings: int


class AttendanceReport(BaseModel):
    start_date: dt.date
    end_date: dt.date
    class_code: Optional[str]
    overall: AttendanceSummary
    students: List[StudentAttendanceSummary]
    days: List[DailyRoster]
