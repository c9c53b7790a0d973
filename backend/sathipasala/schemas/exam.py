"""
Schémas Pydantic pour les examens et leurs résultats.
"""

import uuid
import datetime as dt
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator, model_validator

from sathipasala.schemas.common import AgeGroup, BilingualText, ExamType, OptionalBilingualText


class ExamCreate(BaseModel):
    title: BilingualText
    date: dt.date
    age_group: AgeGroup
    exam_type: ExamType = ExamType.WRITTEN
    max_score: float
    pass_mark: float

    @field_validator("max_score")
    @classmethod
    def max_score_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Le score maximum doit être strictement positif.")
        return v

    @model_validator(mode="after")
    def pass_mark_in_range(self) -> "ExamCreate":
        if not 0 <= self.pass_mark <= self.max_score:
            raise ValueError("La note de passage doit être comprise entre 0 et le score maximum.")
        return self


class ExamUpdate(BaseModel):
    title: Optional[BilingualText] = None
    date: Optional[dt.date] = None
    age_group: Optional[AgeGroup] = None
    exam_type: Optional[ExamType] = None
    max_score: Optional[float] = None
    pass_mark: Optional[float] = None

    @field_validator("max_score")
    @classmethod
    def max_score_positive(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and v <= 0:
            raise ValueError("Le score maximum doit être strictement positif.")
        return v


class ExamResponse(BaseModel):
    id: uuid.UUID
    title: BilingualText
    date: dt.date
    age_group: str
    exam_type: ExamType
    max_score: float
    pass_mark: float
    created_at: Optional[datetime]
    updated_at: Optional[datetime]


class ExamResultCreate(BaseModel):
    student_id: uuid.UUID
    written_score: float = 0
    oral_score: float = 0
    remarks: OptionalBilingualText = OptionalBilingualText()

    @field_validator("written_score", "oral_score")
    @classmethod
    def score_not_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("Un score ne peut pas être négatif.")
        return v


class ExamResultUpdate(BaseModel):
    written_score: Optional[float] = None
    oral_score: Optional[float] = None
    remarks: Optional[OptionalBilingualText] = None

    @field_validator("written_score", "oral_score")
    @classmethod
    def score_not_negative(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and v < 0:
            raise ValueError("Un score ne peut pas être négatif.")
        return v


class ExamResultResponse(BaseModel):
    id: uuid.UUID
    exam_id: uuid.UUID
    student_id: uuid.UUID
    written_score: float
    oral_score: float
    total_score: float
    passed: bool
    remarks: OptionalBilingualText
    created_at: Optional[datetime]
    updated_at: Optional[datetime]
