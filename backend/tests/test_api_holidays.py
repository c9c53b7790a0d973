"""
Tests d'intégration API pour les jours fériés et le calendrier des Poya.
"""

from unittest.mock import patch

import requests

from sathipasala.services.calendar_service import get_static_holidays


def test_holidays_annee_publiee(client):
    response = client.get("/api/holidays/2024")
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert {"date": "2024-12-25", "name": "Christmas Day"} in body["data"]


def test_holidays_annee_non_publiee_vide(client):
    response = client.get("/api/holidays/2031")
    assert response.status_code == 200
    assert response.json()["data"] == []


def test_holidays_annee_invalide(client):
    assert client.get("/api/holidays/vingt").status_code == 422
    assert client.get("/api/holidays/1500").status_code == 422


def test_calendar_annee(client):
    with patch("sathipasala.services.calendar_service.settings.HOLIDAYS_API_URL", ""):
        response = client.get("/api/holidays/2024/calendar")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["year"] == 2024
    assert "2024-01-05" in data["poya_days"]
    assert any(d.startswith("2025-01") for d in data["poya_days"])


def test_calendar_source_distante_en_panne(client):
    """Source indisponible : réponse 200 avec la table statique."""
    with patch("sathipasala.services.calendar_service.settings.HOLIDAYS_API_URL", "https://holidays.example.org/{year}"), \
         patch("sathipasala.services.calendar_service.requests.get", side_effect=requests.ConnectionError("down")):
        response = client.get("/api/holidays/2026/calendar")

    assert response.status_code == 200
    holidays = response.json()["data"]["holidays"]
    assert holidays == [h.model_dump(mode="json") for h in get_static_holidays(2026)]


def test_classify_poya(client):
    with patch("sathipasala.services.calendar_service.settings.HOLIDAYS_API_URL", ""):
        response = client.get("/api/holidays/classify?date=2024-05-23")

    assert response.status_code == 200
    assert response.json()["data"] == {
        "date": "2024-05-23",
        "day_type": "poya",
        "is_sunday": False,
        "is_class_day": True,
    }


def test_classify_lundi_ordinaire(client):
    with patch("sathipasala.services.calendar_service.settings.HOLIDAYS_API_URL", ""):
        response = client.get("/api/holidays/classify?date=2024-01-08")

    data = response.json()["data"]
    assert data["day_type"] == "ordinary"
    assert data["is_class_day"] is False
