"""
Tests d'intégration API pour les évènements du calendrier.
"""

import uuid
from datetime import date
from unittest.mock import patch

from sathipasala.exceptions import DomainValidationError
from sathipasala.schemas.calendar import EventResponse


def make_event_response(**kwargs) -> EventResponse:
    return EventResponse(
        id=kwargs.get("id", uuid.uuid4()),
        title={"en": "Kathina", "si": "කඨින"},
        description={},
        date=kwargs.get("date", date(2024, 10, 20)),
        end_date=kwargs.get("end_date", date(2024, 10, 20)),
        type=kwargs.get("type", "special"),
        is_recurring_yearly=False,
        color="#4299e1",
        created_at=None,
        updated_at=None,
    )


def test_create_event_succes(client):
    with patch("sathipasala.routers.events.event_service.create_event") as mock:
        mock.return_value = make_event_response()
        response = client.post("/api/events", json={
            "title": {"en": "Kathina", "si": "කඨින"},
            "date": "2024-10-20",
            "type": "special",
        })

    assert response.status_code == 201
    assert response.json()["data"]["type"] == "special"
    assert mock.call_args[0][1].end_date == date(2024, 10, 20)


def test_create_event_couleur_invalide(client):
    response = client.post("/api/events", json={
        "title": {"en": "Kathina", "si": "කඨින"},
        "date": "2024-10-20",
        "type": "special",
        "color": "red",
    })
    assert response.status_code == 422
    assert response.json()["errors"][0]["field"] == "color"


def test_list_events_filtres(client):
    with patch("sathipasala.routers.events.event_service.get_events", return_value=[]) as mock:
        response = client.get("/api/events?year=2024&month=10&type=flowerOffering")

    assert response.status_code == 200
    assert response.json()["data"] == []
    assert mock.call_args.kwargs == {"year": 2024, "month": 10, "event_type": "flowerOffering"}


def test_list_events_mois_sans_annee(client):
    assert client.get("/api/events?month=10").status_code == 422


def test_update_event_fin_avant_debut(client):
    with patch("sathipasala.routers.events.event_service.update_event") as mock:
        mock.side_effect = DomainValidationError("La date de fin doit être postérieure ou égale à la date de début.")
        response = client.put(f"/api/events/{uuid.uuid4()}", json={"end_date": "2024-01-01"})
    assert response.status_code == 422


def test_update_event_introuvable(client):
    with patch("sathipasala.routers.events.event_service.update_event", return_value=None):
        response = client.put(f"/api/events/{uuid.uuid4()}", json={"color": "#000000"})
    assert response.status_code == 404


def test_get_event(client):
    event_id = uuid.uuid4()
    with patch("sathipasala.routers.events.event_service.get_event", return_value=make_event_response(id=event_id)):
        response = client.get(f"/api/events/{event_id}")
    assert response.status_code == 200
    assert response.json()["data"]["id"] == str(event_id)


def test_delete_event_introuvable(client):
    with patch("sathipasala.routers.events.event_service.delete_event", return_value=False):
        response = client.delete(f"/api/events/{uuid.uuid4()}")
    assert response.status_code == 404
