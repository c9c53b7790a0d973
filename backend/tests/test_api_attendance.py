"""
Tests d'intégration API pour les présences.
"""

import uuid
from datetime import date
from unittest.mock import MagicMock, patch

from sathipasala.exceptions import DomainValidationError, NonClassDayError, NotFoundError
from sathipasala.schemas.attendance import (
    AttendanceReport,
    AttendanceResponse,
    AttendanceSummary,
    BatchResult,
    FlowerOffering,
    StudentAttendanceHistory,
)
from sathipasala.schemas.calendar import CalendarEntry


# --- Helpers ---

def make_attendance_response(student_id=None, status="present") -> AttendanceResponse:
    return AttendanceResponse(
        id=uuid.uuid4(),
        student_id=student_id or uuid.uuid4(),
        date=date(2024, 1, 7),
        status=status,
        reason=None,
        flower_offering=FlowerOffering(brought=True),
        created_at=None,
        updated_at=None,
    )


def make_brief():
    return {"id": str(uuid.uuid4()), "student_id": "BSP_24_1234", "name": {"en": "Nimal", "si": "නිමල්"}, "class_code": "MET"}


# ============================================================
# POST /api/attendance
# ============================================================

def test_mark_attendance_creation_201(client):
    student_id = uuid.uuid4()
    with patch("sathipasala.routers.attendance.attendance_service.mark_attendance") as mock:
        mock.return_value = (make_attendance_response(student_id), True)
        response = client.post("/api/attendance", json={
            "student_id": str(student_id),
            "date": "2024-01-07",
            "flower_offering": {"brought": True},
        })

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["data"]["flower_offering"]["type"] == "Mixed Flowers"


def test_mark_attendance_mise_a_jour_200(client):
    with patch("sathipasala.routers.attendance.attendance_service.mark_attendance") as mock:
        mock.return_value = (make_attendance_response(status="late"), False)
        response = client.post("/api/attendance", json={
            "student_id": str(uuid.uuid4()),
            "date": "2024-01-07",
            "status": "late",
        })

    assert response.status_code == 200
    assert response.json()["data"]["status"] == "late"


def test_mark_attendance_statut_invalide(client):
    response = client.post("/api/attendance", json={
        "student_id": str(uuid.uuid4()),
        "date": "2024-01-07",
        "status": "excused",
    })
    assert response.status_code == 422


def test_mark_attendance_eleve_inconnu(client):
    with patch("sathipasala.routers.attendance.attendance_service.mark_attendance") as mock:
        mock.side_effect = NotFoundError("Élève introuvable.")
        response = client.post("/api/attendance", json={"student_id": str(uuid.uuid4()), "date": "2024-01-07"})
    assert response.status_code == 404


# ============================================================
# POST /api/attendance/batch
# ============================================================

def test_batch_succes(client):
    with patch("sathipasala.routers.attendance.attendance_service.mark_batch_attendance") as mock:
        mock.return_value = BatchResult(created=2, updated=1, failed=0, errors=[])
        response = client.post("/api/attendance/batch", json={
            "date": "2024-01-07",
            "mark_all": "present",
            "records": [{"student_id": str(uuid.uuid4())} for _ in range(3)],
        })

    assert response.status_code == 200
    assert response.json()["data"] == {"created": 2, "updated": 1, "failed": 0, "errors": []}
    assert mock.call_args[0][1].mark_all == "present"


def test_batch_jour_sans_cours_409(client):
    with patch("sathipasala.routers.attendance.attendance_service.mark_batch_attendance") as mock:
        mock.side_effect = NonClassDayError("Le 2024-01-08 n'est ni un dimanche ni un jour de Poya.")
        response = client.post("/api/attendance/batch", json={
            "date": "2024-01-08",
            "records": [{"student_id": str(uuid.uuid4())}],
        })

    assert response.status_code == 409
    assert response.json()["success"] is False
    assert "Poya" in response.json()["message"]


def test_batch_poya_enregistre_en_semaine(client, mock_db):
    student_id = uuid.uuid4()
    poya, students, existing = MagicMock(), MagicMock(), MagicMock()
    poya.scalars.return_value.all.return_value = [date(2026, 3, 3)]
    students.scalars.return_value.all.return_value = [student_id]
    existing.scalars.return_value.all.return_value = []
    mock_db.execute.side_effect = [poya, students, existing]

    with patch("sathipasala.services.attendance_service.get_poya_days", return_value=[]):
        response = client.post("/api/attendance/batch", json={
            "date": "2026-03-03",
            "records": [{"student_id": str(student_id)}],
        })

    assert response.status_code == 200
    assert response.json()["data"]["created"] == 1
    mock_db.commit.assert_called_once()


def test_batch_vide_422(client):
    response = client.post("/api/attendance/batch", json={"date": "2024-01-07", "records": []})
    assert response.status_code == 422


# ============================================================
# Lecture
# ============================================================

def test_list_attendance_par_date(client):
    with patch("sathipasala.routers.attendance.attendance_service.get_attendance_by_date") as mock:
        mock.return_value = []
        response = client.get("/api/attendance?date=2024-01-07&class_code=KHA")

    assert response.status_code == 200
    assert response.json()["data"] == []
    assert mock.call_args[0][1:] == (date(2024, 1, 7), "KHA")


def test_list_attendance_date_obligatoire(client):
    assert client.get("/api/attendance").status_code == 422


def test_student_history(client):
    history = StudentAttendanceHistory(
        student=make_brief(),
        records=[make_attendance_response()],
        summary=AttendanceSummary(present=1, total=1, attendance_rate=100.0),
    )
    with patch("sathipasala.routers.attendance.attendance_service.get_student_attendance", return_value=history):
        response = client.get(f"/api/attendance/student/{uuid.uuid4()}")

    assert response.status_code == 200
    assert response.json()["data"]["summary"]["attendance_rate"] == 100.0


def test_student_history_introuvable(client):
    with patch("sathipasala.routers.attendance.attendance_service.get_student_attendance") as mock:
        mock.side_effect = NotFoundError("Élève introuvable.")
        response = client.get(f"/api/attendance/student/{uuid.uuid4()}")
    assert response.status_code == 404


def test_report(client):
    report = AttendanceReport(
        start_date=date(2024, 1, 1),
        end_date=date(2024, 3, 31),
        class_code="MET",
        overall=AttendanceSummary(),
        students=[],
        days=[],
    )
    with patch("sathipasala.routers.attendance.attendance_service.get_attendance_report", return_value=report):
        response = client.get("/api/attendance/report?start_date=2024-01-01&end_date=2024-03-31&class_code=MET")

    assert response.status_code == 200
    assert response.json()["data"]["class_code"] == "MET"


def test_report_periode_inversee(client):
    with patch("sathipasala.routers.attendance.attendance_service.get_attendance_report") as mock:
        mock.side_effect = DomainValidationError("La date de début doit précéder la date de fin.")
        response = client.get("/api/attendance/report?start_date=2024-03-31&end_date=2024-01-01")
    assert response.status_code == 422


def test_calendar_events(client):
    entry = CalendarEntry(
        date=date(2024, 5, 23),
        end_date=date(2024, 5, 23),
        type="poya",
        title={"en": "Poya Day", "si": "පොහොය දිනය"},
        color="#805ad5",
        generated=True,
    )
    with patch("sathipasala.routers.attendance.calendar_service.list_calendar_entries", return_value=[entry]) as mock:
        response = client.get("/api/attendance/events?year=2024&month=5&type=poya")

    assert response.status_code == 200
    assert response.json()["data"][0]["type"] == "poya"
    assert mock.call_args.kwargs == {"month": 5, "event_type": "poya"}


def test_calendar_events_mois_invalide(client):
    assert client.get("/api/attendance/events?year=2024&month=13").status_code == 422


def test_delete_attendance(client):
    with patch("sathipasala.routers.attendance.attendance_service.delete_attendance", return_value=False):
        response = client.delete(f"/api/attendance/{uuid.uuid4()}")
    assert response.status_code == 404
