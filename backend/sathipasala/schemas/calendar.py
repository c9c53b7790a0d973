"""
Schémas Pydantic pour le calendrier : jours fériés, jours de Poya et
évènements enregistrés (holiday, poya, flowerOffering, special).
"""

import re
import uuid
import datetime as dt
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, field_validator, model_validator

from sathipasala.schemas.common import BilingualText, DayType, EventType, OptionalBilingualText

COLOR_REGEX = re.compile(r"^#[0-9a-fA-F]{6}$")


class Holiday(BaseModel):
    date: dt.date
    name: str


class CalendarYearResponse(BaseModel):
    """Jours fériés et jours de Poya (approximation) d'une année."""
    year: int
    holidays: List[Holiday]
    poya_days: List[str]  # YYYY-MM-DD


class DayClassification(BaseModel):
    date: dt.date
    day_type: DayType
    is_sunday: bool
    is_class_day: bool


class CalendarEntry(BaseModel):
    """Entrée du calendrier : évènement enregistré ou généré (férié / Poya)."""
    id: Optional[uuid.UUID] = None
    date: dt.date
    end_date: dt.date
    type: EventType
    title: BilingualText
    color: str
    generated: bool = False


class EventCreate(BaseModel):
    title: BilingualText
    description: OptionalBilingualText = OptionalBilingualText()
    date: dt.date
    end_date: Optional[dt.date] = None
    type: EventType
    is_recurring_yearly: bool = False
    color: str = "#4299e1"

    @field_validator("color")
    @classmethod
    def valid_color(cls, v: str) -> str:
        if not COLOR_REGEX.match(v):
            raise ValueError("Couleur invalide (format attendu #RRGGBB).")
        return v

    @model_validator(mode="after")
    def end_after_start(self) -> "EventCreate":
        if self.end_date is None:
            self.end_date = self.date
        elif self.end_date < self.date:
            raise ValueError("La date de fin doit être postérieure ou égale à la date de début.")
        return self


class EventUpdate(BaseModel):
    title: Optional[BilingualText] = None
    description: Optional[OptionalBilingualText] = None
    date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None
    type: Optional[EventType] = None
    is_recurring_yearly: Optional[bool] = None
    color: Optional[str] = None

    @field_validator("color")
    @classmethod
    def valid_color(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not COLOR_REGEX.match(v):
            raise ValueError("Couleur invalide (format attendu #RRGGBB).")
        return v


class EventResponse(BaseModel):
    id: uuid.UUID
    title: BilingualText
    description: OptionalBilingualText
    date: dt.date
    end_date: dt.date
    type: EventType
    is_recurring_yearly: bool
    color: str
    created_at: Optional[datetime]
    updated_at: Optional[datetime]
