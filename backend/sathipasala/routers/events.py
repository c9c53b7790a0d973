"""
Router pour les évènements du calendrier scolaire (CRUD).
"""

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from sathipasala.database import get_db
from sathipasala.exceptions import DomainValidationError
from sathipasala.schemas.calendar import EventCreate, EventResponse, EventUpdate
from sathipasala.schemas.common import ApiResponse, EventType
from sathipasala.services import event_service

router = APIRouter(prefix="/api/events", tags=["Évènements"])


@router.get("", response_model=ApiResponse[List[EventResponse]], summary="Lister les évènements")
def list_events(
    year: Optional[int] = Query(None, ge=1900, le=2100),
    month: Optional[int] = Query(None, ge=1, le=12),
    type: Optional[EventType] = None,
    db: Session = Depends(get_db),
):
    """Évènements triés par date ; les évènements récurrents sont retenus sur le mois."""
    if month is not None and year is None:
        raise HTTPException(status_code=422, detail="Le filtre par mois nécessite une année.")
    events = event_service.get_events(db, year=year, month=month, event_type=type)
    return ApiResponse[List[EventResponse]](data=[event_service.to_response(e) for e in events])


@router.post("", response_model=ApiResponse[EventResponse], status_code=201, summary="Créer un évènement")
def create_event(data: EventCreate, db: Session = Depends(get_db)):
    return ApiResponse[EventResponse](data=event_service.create_event(db, data), message="Évènement créé.")


@router.get("/{event_id}", response_model=ApiResponse[EventResponse], summary="Détail d'un évènement")
def get_event(event_id: uuid.UUID, db: Session = Depends(get_db)):
    event = event_service.get_event(db, event_id)
    if event is None:
        raise HTTPException(status_code=404, detail="Évènement introuvable.")
    return ApiResponse[EventResponse](data=event)


@router.put("/{event_id}", response_model=ApiResponse[EventResponse], summary="Modifier un évènement")
def update_event(event_id: uuid.UUID, data: EventUpdate, db: Session = Depends(get_db)):
    try:
        event = event_service.update_event(db, event_id, data)
    except DomainValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    if event is None:
        raise HTTPException(status_code=404, detail="Évènement introuvable.")
    return ApiResponse[EventResponse](data=event, message="Évènement mis à jour.")


@router.delete("/{event_id}", response_model=ApiResponse[None], summary="Supprimer un évènement")
def delete_event(event_id: uuid.UUID, db: Session = Depends(get_db)):
    if not event_service.delete_event(db, event_id):
        raise HTTPException(status_code=404, detail="Évènement introuvable.")
    return ApiResponse[None](message="Évènement supprimé.")
