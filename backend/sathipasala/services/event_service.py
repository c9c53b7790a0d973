"""
Service métier pour les évènements du calendrier scolaire.
Gère la création, la lecture, la modification et la suppression des évènements,
ainsi que l'enregistrement des jours fériés / Poya générés (job planifié).
"""

import uuid
import logging
from datetime import date
from typing import List, Optional

from sqlalchemy import and_, extract, or_, select
from sqlalchemy.orm import Session

from sathipasala.exceptions import DomainValidationError
from sathipasala.models.calendar_event import CalendarEvent
from sathipasala.schemas.calendar import CalendarEntry, EventCreate, EventResponse, EventUpdate
from sathipasala.schemas.common import BilingualText, EventType, OptionalBilingualText
from sathipasala.services.calendar_service import build_calendar, generated_entries

logger = logging.getLogger(__name__)


def create_event(db: Session, data: EventCreate) -> EventResponse:
    event = CalendarEvent(
        title_en=data.title.en,
        title_si=data.title.si,
        description_en=data.description.en or None,
        description_si=data.description.si or None,
        date=data.date,
        end_date=data.end_date,
        event_type=data.type.value,
        is_recurring_yearly=data.is_recurring_yearly,
        color=data.color,
    )
    db.add(event)
    db.commit()
    db.refresh(event)
    logger.info("Évènement créé : %s (%s, %s)", event.title_en, event.event_type, event.date)
    return to_response(event)


def get_events(
    db: Session,
    year: Optional[int] = None,
    month: Optional[int] = None,
    event_type: Optional[EventType] = None,
) -> List[CalendarEvent]:
    """
    Évènements triés par date.
    Avec une année (et éventuellement un mois), les évènements récurrents
    annuels sont retenus sur le seul critère du mois.
    """
    query = select(CalendarEvent)

    if year is not None:
        if month is not None:
            start = date(year, month, 1)
            end = date(year + (month == 12), month % 12 + 1, 1)
            recurring = and_(
                CalendarEvent.is_recurring_yearly.is_(True),
                extract("month", CalendarEvent.date) == month,
            )
        else:
            start, end = date(year, 1, 1), date(year + 1, 1, 1)
            recurring = CalendarEvent.is_recurring_yearly.is_(True)
        query = query.where(or_(
            and_(CalendarEvent.date >= start, CalendarEvent.date < end),
            recurring,
        ))

    if event_type is not None:
        query = query.where(CalendarEvent.event_type == event_type.value)

    return list(db.execute(query.order_by(CalendarEvent.date)).scalars().all())


def get_event(db: Session, event_id: uuid.UUID) -> Optional[EventResponse]:
    event = db.get(CalendarEvent, event_id)
    if event is None:
        return None
    return to_response(event)


def update_event(db: Session, event_id: uuid.UUID, data: EventUpdate) -> Optional[EventResponse]:
    """Met à jour les champs fournis d'un évènement."""
    event = db.get(CalendarEvent, event_id)
    if event is None:
        return None

    update_data = data.model_dump(exclude_unset=True, exclude={"title", "description", "type"})
    for field, value in update_data.items():
        setattr(event, field, value)
    if data.title is not None:
        event.title_en, event.title_si = data.title.en, data.title.si
    if data.description is not None:
        event.description_en = data.description.en or None
        event.description_si = data.description.si or None
    if data.type is not None:
        event.event_type = data.type.value

    end_date = event.end_date or event.date
    if end_date < event.date:
        raise DomainValidationError("La date de fin doit être postérieure ou égale à la date de début.")

    db.commit()
    db.refresh(event)
    return to_response(event)


def delete_event(db: Session, event_id: uuid.UUID) -> bool:
    """Supprime un évènement. Retourne True si supprimé, False si introuvable."""
    event = db.get(CalendarEvent, event_id)
    if event is None:
        return False
    db.delete(event)
    db.commit()
    return True


def ensure_generated_events(db: Session, year: int) -> int:
    """
    Enregistre les jours fériés et Poya générés de l'année qui ne sont pas
    encore présents (même date, même type). Retourne le nombre d'évènements créés.
    """
    existing = {
        (d, t) for d, t in db.execute(
            select(CalendarEvent.date, CalendarEvent.event_type)
            .where(CalendarEvent.date >= date(year, 1, 1), CalendarEvent.date < date(year + 1, 1, 1))
        ).all()
    }

    to_insert = [
        {
            "title_en": entry.title.en,
            "title_si": entry.title.si,
            "date": entry.date,
            "end_date": entry.end_date,
            "event_type": entry.type.value,
            "color": entry.color,
            "is_recurring_yearly": False,
        }
        for entry in generated_entries(build_calendar(year))
        if (entry.date, entry.type.value) not in existing
    ]

    if to_insert:
        db.bulk_insert_mappings(CalendarEvent, to_insert)
        db.commit()

    return len(to_insert)


def to_entry(event: CalendarEvent, year: Optional[int] = None) -> CalendarEntry:
    """Convertit un évènement enregistré en entrée de calendrier (projeté sur l'année si récurrent)."""
    start = _occurrence(event, year) if year is not None else event.date
    end = (event.end_date or event.date) + (start - event.date)
    return CalendarEntry(
        id=event.id,
        date=start,
        end_date=end,
        type=EventType(event.event_type),
        title=BilingualText(en=event.title_en, si=event.title_si),
        color=event.color or "#4299e1",
    )


def _occurrence(event: CalendarEvent, year: int) -> date:
    """Date de l'évènement dans l'année donnée (29 février → 28 février hors bissextile)."""
    if not event.is_recurring_yearly or event.date.year == year:
        return event.date
    try:
        return event.date.replace(year=year)
    except ValueError:
        return date(year, 2, 28)


def to_response(event: CalendarEvent) -> EventResponse:
    return EventResponse(
        id=event.id,
        title=BilingualText(en=event.title_en, si=event.title_si),
        description=OptionalBilingualText(en=event.description_en, si=event.description_si),
        date=event.date,
        end_date=event.end_date or event.date,
        type=EventType(event.event_type),
        is_recurring_yearly=bool(event.is_recurring_yearly),
        color=event.color or "#4299e1",
        created_at=event.created_at,
        updated_at=event.updated_at,
    )
