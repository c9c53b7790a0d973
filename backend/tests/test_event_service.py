"""
Tests unitaires pour le service des évènements du calendrier.
"""

import uuid
from datetime import date
from unittest.mock import MagicMock

import pytest
from pydantic import ValidationError

from sathipasala.exceptions import DomainValidationError
from sathipasala.schemas.calendar import EventCreate, EventUpdate
from sathipasala.schemas.common import EventType
from sathipasala.services.event_service import (
    create_event,
    delete_event,
    ensure_generated_events,
    get_events,
    to_entry,
    update_event,
)


# --- Helpers ---

def make_event_mock(event_date=date(2024, 5, 23), event_type="flowerOffering", recurring=False, end_date=None):
    event = MagicMock()
    event.id = uuid.uuid4()
    event.title_en = "Vesak flower offering"
    event.title_si = "වෙසක් මල් පූජාව"
    event.description_en = None
    event.description_si = None
    event.date = event_date
    event.end_date = end_date
    event.event_type = event_type
    event.is_recurring_yearly = recurring
    event.color = "#4299e1"
    event.created_at = None
    event.updated_at = None
    return event


def event_payload(**overrides):
    payload = {
        "title": {"en": "Kathina", "si": "කඨින"},
        "date": date(2024, 10, 20),
        "type": "special",
    }
    payload.update(overrides)
    return payload


# --- Validation des schémas ---

def test_event_create_date_de_fin_par_defaut():
    assert EventCreate(**event_payload()).end_date == date(2024, 10, 20)


def test_event_create_fin_avant_debut():
    with pytest.raises(ValidationError):
        EventCreate(**event_payload(end_date=date(2024, 10, 19)))


def test_event_create_couleur_invalide():
    with pytest.raises(ValidationError):
        EventCreate(**event_payload(color="bleu"))


def test_event_create_type_inconnu():
    with pytest.raises(ValidationError):
        EventCreate(**event_payload(type="birthday"))


# --- CRUD ---

def test_create_event_enregistre_les_champs():
    db = MagicMock()
    db.refresh.side_effect = lambda e: setattr(e, "id", uuid.uuid4())

    response = create_event(db, EventCreate(**event_payload(description={"en": "Robe offering"})))

    stored = db.add.call_args[0][0]
    assert stored.event_type == "special"
    assert stored.description_en == "Robe offering"
    assert stored.description_si is None
    assert response.type == EventType.SPECIAL
    assert response.color == "#4299e1"


def test_get_events_retourne_une_liste():
    db = MagicMock()
    events = [make_event_mock(), make_event_mock(event_date=date(2024, 5, 30))]
    db.execute.return_value.scalars.return_value.all.return_value = events
    assert get_events(db, year=2024, month=5, event_type=EventType.FLOWER_OFFERING) == events


def test_update_event_fin_avant_debut():
    event = make_event_mock(end_date=date(2024, 5, 25))
    db = MagicMock()
    db.get.return_value = event
    with pytest.raises(DomainValidationError):
        update_event(db, event.id, EventUpdate(date=date(2024, 5, 30)))
    db.commit.assert_not_called()


def test_update_event_type_et_titre():
    event = make_event_mock()
    db = MagicMock()
    db.get.return_value = event
    response = update_event(db, event.id, EventUpdate(type="poya", title={"en": "Vesak", "si": "වෙසක්"}))
    assert event.event_type == "poya"
    assert event.title_en == "Vesak"
    assert response.type == EventType.POYA


def test_update_event_introuvable():
    db = MagicMock()
    db.get.return_value = None
    assert update_event(db, uuid.uuid4(), EventUpdate(color="#000000")) is None


def test_delete_event():
    event = make_event_mock()
    db = MagicMock()
    db.get.return_value = event
    assert delete_event(db, event.id) is True
    db.delete.assert_called_once_with(event)
    db.commit.assert_called_once()


# --- Récurrence ---

def test_to_entry_evenement_recurrent_projete_sur_l_annee():
    event = make_event_mock(event_date=date(2020, 5, 7), recurring=True, end_date=date(2020, 5, 8))
    entry = to_entry(event, 2024)
    assert entry.date == date(2024, 5, 7)
    assert entry.end_date == date(2024, 5, 8)
    assert entry.generated is False


def test_to_entry_29_fevrier_hors_bissextile():
    event = make_event_mock(event_date=date(2024, 2, 29), recurring=True)
    assert to_entry(event, 2025).date == date(2025, 2, 28)


def test_to_entry_non_recurrent_inchange():
    event = make_event_mock(event_date=date(2020, 5, 7))
    assert to_entry(event, 2024).date == date(2020, 5, 7)


# --- Génération (job planifié) ---

def test_ensure_generated_events_idempotent():
    """Deux exécutions : la seconde n'insère rien de plus."""
    inserted = []
    db = MagicMock()
    db.execute.return_value.all.side_effect = lambda: list(inserted)
    db.bulk_insert_mappings.side_effect = lambda model, rows: inserted.extend(
        (row["date"], row["event_type"]) for row in rows
    )

    first = ensure_generated_events(db, 2024)
    second = ensure_generated_events(db, 2024)

    assert first > 0
    assert second == 0
    db.bulk_insert_mappings.assert_called_once()
    db.commit.assert_called_once()
